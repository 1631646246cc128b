"""Portal Appointments Module - Handles appointment creation and rescheduling."""

from typing import Union

from loguru import logger

from ...constants import Endpoints
from ...core.exceptions import CollaboratorError
from .base import PortalEndpoint
from .models import AppointmentResponse, CreateAppointmentPayload


class PortalAppointments(PortalEndpoint):
    """Handles the reservation collaborator."""

    async def create_appointment(self, payload: CreateAppointmentPayload) -> AppointmentResponse:
        """
        Book an appointment.

        Args:
            payload: Doctor, branch, department, date and canonical HH:mm:ss time

        Returns:
            The created appointment

        Raises:
            CollaboratorError: If the reservation service refuses the booking
        """
        body = await self._request(
            "POST",
            Endpoints.APPOINTMENTS,
            endpoint="create_appointment",
            json=dict(payload),
            default_error="Failed to create appointment",
        )
        appointment = self._data(body).get("appointment")
        if not appointment:
            raise CollaboratorError("Appointment response did not include the appointment")

        logger.info(
            f"Appointment booked: id={appointment.get('id')} "
            f"{payload.get('appointment_date')} {payload.get('appointment_time')}"
        )
        return AppointmentResponse(appointment=appointment)

    async def reschedule_appointment(
        self, appointment_id: Union[int, str], appointment_date: str, appointment_time: str
    ) -> AppointmentResponse:
        """
        Move an existing appointment to a new date and time.

        Args:
            appointment_id: Appointment id
            appointment_date: New date (YYYY-MM-DD)
            appointment_time: New canonical time (HH:mm:ss)

        Returns:
            The updated appointment

        Raises:
            CollaboratorError: If the reservation service refuses the change
        """
        body = await self._request(
            "POST",
            Endpoints.RESCHEDULE.format(appointment_id=appointment_id),
            endpoint="reschedule_appointment",
            json={"appointment_date": appointment_date, "appointment_time": appointment_time},
            default_error="Failed to reschedule appointment",
        )
        appointment = self._data(body).get("appointment") or {}
        logger.info(
            f"Appointment {appointment_id} rescheduled to {appointment_date} {appointment_time}"
        )
        return AppointmentResponse(appointment=appointment)
