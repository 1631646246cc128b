"""Reschedule flow - move a booked appointment to another free slot."""

from datetime import date
from typing import Callable, Optional, Tuple

from loguru import logger

from ...constants import Horizons
from ...core.enums import AppointmentStatus
from ...core.exceptions import CollaboratorError, ValidationError
from .availability import AvailabilityAdapter
from .models import Appointment, TimeSlot
from .protocols import AvailabilityCollaborator, ReservationCollaborator
from .time_normalizer import normalize_slot_time


class RescheduleFlow:
    """Pick a new date and slot for an existing appointment and submit it."""

    def __init__(
        self,
        appointment: Appointment,
        availability: AvailabilityCollaborator,
        reservation: ReservationCollaborator,
        horizon_days: int = Horizons.RESCHEDULE_DAYS,
        clock: Callable[[], date] = date.today,
    ):
        if appointment.id is None or appointment.doctor_id is None:
            raise ValidationError("Appointment cannot be rescheduled", field="appointment")
        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise ValidationError(
                "Cancelled appointments cannot be rescheduled", field="appointment"
            )

        self.appointment = appointment
        self.availability = AvailabilityAdapter(availability, horizon_days, clock)
        self._reservation = reservation
        self.selected_date: Optional[str] = None
        self.selected_slot: Optional[str] = None
        self.is_submitting = False

    async def load(self) -> Tuple[str, ...]:
        """Fetch the doctor's schedule; returns the dates with free slots."""
        await self.availability.load(self.appointment.doctor_id)
        self.selected_date = None
        self.selected_slot = None
        return self.availability.available_dates

    @property
    def available_slots(self) -> Tuple[TimeSlot, ...]:
        return self.availability.slots_for(self.selected_date)

    def choose(self, day_date: str, slot_time: str) -> None:
        """
        Pick the new date and slot.

        Raises:
            ValidationError: If the slot is not free on that date
        """
        if day_date not in self.availability.available_dates:
            raise ValidationError(
                "Selected date has no available time slots", field="selected_date"
            )
        if not self.availability.is_slot_available(day_date, slot_time):
            raise ValidationError("Selected time slot is not available", field="selected_slot")
        self.selected_date = day_date
        self.selected_slot = slot_time

    async def submit(self) -> Appointment:
        """
        Send the new date and time to the reservation service.

        Returns:
            The updated appointment

        Raises:
            ValidationError: If nothing was chosen or a submit is running
            FormatError: If the slot time cannot be normalized
            CollaboratorError: If the reservation service refuses the change
        """
        if not (self.selected_date and self.selected_slot):
            raise ValidationError("Please select a new date and time", field="selected_slot")
        if self.is_submitting:
            raise ValidationError("A request is already in progress")

        new_time = normalize_slot_time(self.selected_slot)
        self.is_submitting = True
        try:
            response = await self._reservation.reschedule_appointment(
                self.appointment.id, self.selected_date, new_time
            )
        finally:
            self.is_submitting = False

        updated = response.get("appointment")
        if not updated:
            raise CollaboratorError("Reschedule response did not include the appointment")

        self.appointment = Appointment.from_dict(updated)
        logger.info(
            f"Appointment {self.appointment.id} moved to {self.selected_date} {new_time}"
        )
        return self.appointment

    async def close(self) -> None:
        await self.availability.close()
