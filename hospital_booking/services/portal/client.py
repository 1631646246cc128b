"""Portal API Client - Main client implementation."""

from datetime import date
from typing import Any, Dict, Optional, Union

import aiohttp
from loguru import logger

from ...constants import Timeouts
from ...core.config.settings import PortalSettings, get_settings
from ...core.enums import OTPPurpose
from .appointments import PortalAppointments
from .auth import PortalAuth
from .models import (
    AppointmentResponse,
    AvailableSlotsResponse,
    CreateAppointmentPayload,
    InitialBookingData,
    OTPSendResponse,
    OTPVerifyResponse,
    RegisterResponse,
)
from .slots import PortalSlots


class PortalApiClient:
    """
    REST client for the hospital portal API.

    Implements the identity, catalog, availability and reservation
    collaborator contracts consumed by the booking flow.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        settings: Optional[PortalSettings] = None,
    ):
        """
        Initialize portal API client.

        Args:
            base_url: API base URL (defaults to settings.api_base_url)
            token: Bearer token of an already authenticated session
            timeout: Total request timeout in seconds
            settings: Settings instance (defaults to the singleton)
        """
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout_seconds
        if token is None and settings.api_token is not None:
            token = settings.api_token.get_secret_value() or None
        self._token: Optional[str] = token

        self._http_session: Optional[aiohttp.ClientSession] = None

        # Initialize modular components
        self._auth = PortalAuth(
            http_session_getter=lambda: self._session,
            base_url_getter=lambda: self.base_url,
            token_setter=self.set_token,
        )
        self._slots = PortalSlots(
            http_session_getter=lambda: self._session,
            base_url_getter=lambda: self.base_url,
        )
        self._appointments = PortalAppointments(
            http_session_getter=lambda: self._session,
            base_url_getter=lambda: self.base_url,
        )

        logger.info(f"PortalApiClient initialized for {self.base_url}")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_http_session(self) -> None:
        """Initialize HTTP session with connection pooling."""
        if self._http_session is None:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=10,
                ttl_dns_cache=120,
                enable_cleanup_closed=True,
            )
            timeout = aiohttp.ClientTimeout(
                total=self.timeout,
                connect=Timeouts.HTTP_CONNECT_SECONDS,
                sock_read=Timeouts.HTTP_SOCK_READ_SECONDS,
            )
            self._http_session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                timeout=timeout,
            )
            logger.debug("HTTP session initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Use 'async with PortalApiClient()'.")
        return self._http_session

    @property
    def is_authenticated(self) -> bool:
        """Whether a bearer token is held for this session."""
        return bool(self._token)

    def set_token(self, token: str) -> None:
        """Store a bearer token and attach it to subsequent requests."""
        self._token = token
        if self._http_session is not None:
            self._http_session.headers.update({"Authorization": f"Bearer {token}"})
        logger.debug("Bearer token updated")

    # Identity collaborator

    async def send_otp(
        self, phone: str, purpose: OTPPurpose = OTPPurpose.REGISTRATION
    ) -> OTPSendResponse:
        """Send a one-time passcode to a phone number."""
        return await self._auth.send_otp(phone, purpose)

    async def verify_otp(
        self, phone: str, code: str, verification_id: Optional[str] = None
    ) -> OTPVerifyResponse:
        """Verify a one-time passcode."""
        return await self._auth.verify_otp(phone, code, verification_id)

    async def register(
        self, profile: Dict[str, Any], verification_token: Optional[str] = None
    ) -> RegisterResponse:
        """Register a patient profile."""
        return await self._auth.register(profile, verification_token)

    # Catalog collaborator

    async def get_initial_booking_data(self) -> InitialBookingData:
        """Get branches, departments and doctors."""
        return await self._slots.get_initial_booking_data()

    # Availability collaborator

    async def get_available_slots(
        self,
        doctor_id: Union[int, str],
        start_date: Union[date, str],
        end_date: Union[date, str],
    ) -> AvailableSlotsResponse:
        """Get a doctor's schedule over a date range."""
        return await self._slots.get_available_slots(doctor_id, start_date, end_date)

    # Reservation collaborator

    async def create_appointment(self, payload: CreateAppointmentPayload) -> AppointmentResponse:
        """Book an appointment."""
        return await self._appointments.create_appointment(payload)

    async def reschedule_appointment(
        self, appointment_id: Union[int, str], appointment_date: str, appointment_time: str
    ) -> AppointmentResponse:
        """Move an appointment to a new date and time."""
        return await self._appointments.reschedule_appointment(
            appointment_id, appointment_date, appointment_time
        )
