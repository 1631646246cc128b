"""Portal Slots Module - Handles the booking catalog and doctor availability."""

from datetime import date
from typing import Union

from loguru import logger

from ...constants import Endpoints
from .base import PortalEndpoint
from .models import AvailableSlotsResponse, InitialBookingData


class PortalSlots(PortalEndpoint):
    """Handles the catalog and availability collaborators."""

    async def get_initial_booking_data(self) -> InitialBookingData:
        """
        Get branches, departments and doctors for the booking flow.

        Returns:
            Catalog snapshot

        Raises:
            CollaboratorError: If the catalog cannot be fetched
        """
        body = await self._request(
            "GET",
            Endpoints.INITIAL_DATA,
            endpoint="initial_data",
            default_error="Failed to fetch initial data",
        )
        data = self._data(body)
        result = InitialBookingData(
            branches=list(data.get("branches") or []),
            departments=list(data.get("departments") or []),
            doctors=list(data.get("doctors") or []),
        )
        logger.info(
            f"Retrieved catalog: {len(result['branches'])} branches, "
            f"{len(result['departments'])} departments, {len(result['doctors'])} doctors"
        )
        return result

    async def get_available_slots(
        self,
        doctor_id: Union[int, str],
        start_date: Union[date, str],
        end_date: Union[date, str],
    ) -> AvailableSlotsResponse:
        """
        Get a doctor's schedule over a date range.

        Args:
            doctor_id: Doctor id
            start_date: First day of the window (inclusive)
            end_date: Last day of the window (inclusive)

        Returns:
            Per-day schedule

        Raises:
            CollaboratorError: If the schedule cannot be fetched
        """
        params = {
            "doctor_id": str(doctor_id),
            "start_date": start_date.isoformat() if isinstance(start_date, date) else start_date,
            "end_date": end_date.isoformat() if isinstance(end_date, date) else end_date,
        }
        body = await self._request(
            "GET",
            Endpoints.AVAILABLE_SLOTS_RANGE,
            endpoint="available_slots",
            params=params,
            default_error="Failed to load available slots",
        )
        schedule = self._data(body).get("schedule") or []
        logger.debug(f"Retrieved {len(schedule)} schedule days for doctor {doctor_id}")
        return AvailableSlotsResponse(schedule=list(schedule))
