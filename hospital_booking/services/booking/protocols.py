"""Collaborator interfaces consumed by the booking flow.

PortalApiClient implements all four; tests substitute AsyncMocks.
"""

from datetime import date
from typing import Any, Dict, Optional, Protocol, Union

from ...core.enums import OTPPurpose
from ..portal.models import (
    AppointmentResponse,
    AvailableSlotsResponse,
    CreateAppointmentPayload,
    InitialBookingData,
    OTPSendResponse,
    OTPVerifyResponse,
    RegisterResponse,
)


class IdentityCollaborator(Protocol):
    """Login, OTP and profile registration."""

    async def send_otp(self, phone: str, purpose: OTPPurpose) -> OTPSendResponse: ...

    async def verify_otp(
        self, phone: str, code: str, verification_id: Optional[str] = None
    ) -> OTPVerifyResponse: ...

    async def register(
        self, profile: Dict[str, Any], verification_token: Optional[str] = None
    ) -> RegisterResponse: ...


class CatalogCollaborator(Protocol):
    """Branches, departments and doctors."""

    async def get_initial_booking_data(self) -> InitialBookingData: ...


class AvailabilityCollaborator(Protocol):
    """Source of truth for which time slots exist and are free."""

    async def get_available_slots(
        self,
        doctor_id: Union[int, str],
        start_date: Union[date, str],
        end_date: Union[date, str],
    ) -> AvailableSlotsResponse: ...


class ReservationCollaborator(Protocol):
    """Authoritative appointment creation."""

    async def create_appointment(
        self, payload: CreateAppointmentPayload
    ) -> AppointmentResponse: ...

    async def reschedule_appointment(
        self, appointment_id: Union[int, str], appointment_date: str, appointment_time: str
    ) -> AppointmentResponse: ...
