"""Portal Identity Module - OTP send/verify and patient registration."""

from typing import Any, Callable, Dict, Optional

import aiohttp
from loguru import logger

from ...constants import Endpoints
from ...core.enums import OTPPurpose
from ...core.exceptions import CollaboratorError
from ...utils.masking import mask_payload, mask_phone
from .base import PortalEndpoint
from .models import OTPSendResponse, OTPVerifyResponse, RegisterResponse

# Statuses with which the identity service answers a well-formed but wrong code
_INVALID_CODE_STATUSES = frozenset({400, 401, 422})


class PortalAuth(PortalEndpoint):
    """Handles the identity collaborator - OTP and registration."""

    def __init__(
        self,
        http_session_getter: Callable[[], aiohttp.ClientSession],
        base_url_getter: Callable[[], str],
        token_setter: Callable[[str], None],
    ):
        """
        Initialize identity handler.

        Args:
            http_session_getter: Callable that returns the HTTP session
            base_url_getter: Callable that returns the API base URL
            token_setter: Callback storing a bearer token issued by the service
        """
        super().__init__(http_session_getter, base_url_getter)
        self._token_setter = token_setter

    async def send_otp(
        self, phone: str, purpose: OTPPurpose = OTPPurpose.REGISTRATION
    ) -> OTPSendResponse:
        """
        Ask the identity service to text a one-time passcode.

        Args:
            phone: Mobile number receiving the code
            purpose: Why the code is requested

        Returns:
            Verification id and the service's message

        Raises:
            CollaboratorError: If the service refuses or is unreachable
        """
        logger.info(f"Sending {purpose.value} OTP to {mask_phone(phone)}")
        body = await self._request(
            "POST",
            Endpoints.OTP_SEND,
            endpoint="otp_send",
            json={"phone": phone, "purpose": purpose.value},
            default_error="Failed to send OTP",
        )
        data = self._data(body)
        return OTPSendResponse(
            verification_id=data.get("verification_id"),
            message=body.get("message", ""),
        )

    async def verify_otp(
        self, phone: str, code: str, verification_id: Optional[str] = None
    ) -> OTPVerifyResponse:
        """
        Check a passcode typed by the patient.

        An invalid code is an expected answer and comes back as
        `verified=False`; only transport or unexpected failures raise.

        Args:
            phone: Mobile number the code was sent to
            code: Passcode typed by the patient
            verification_id: Id returned by send_otp, if any

        Returns:
            Verification result, with a token when verified

        Raises:
            CollaboratorError: On transport or unexpected failures
        """
        payload: Dict[str, Any] = {"phone": phone, "otp": code}
        if verification_id:
            payload["verification_id"] = verification_id

        try:
            body = await self._request(
                "POST",
                Endpoints.OTP_VERIFY,
                endpoint="otp_verify",
                json=payload,
                default_error="Invalid OTP. Please try again.",
            )
        except CollaboratorError as e:
            if e.status in _INVALID_CODE_STATUSES:
                logger.info(f"OTP rejected for {mask_phone(phone)}")
                return OTPVerifyResponse(verified=False, token=None, message=e.message)
            raise

        data = self._data(body)
        verified = bool(data.get("verified"))
        token = data.get("token")
        if verified and token:
            self._token_setter(token)

        logger.info(f"OTP verification for {mask_phone(phone)}: verified={verified}")
        return OTPVerifyResponse(verified=verified, token=token, message=body.get("message", ""))

    async def register(
        self, profile: Dict[str, Any], verification_token: Optional[str] = None
    ) -> RegisterResponse:
        """
        Register a patient profile.

        Args:
            profile: Registration payload built from the profile draft
            verification_token: Token proving the phone number was verified

        Returns:
            Session token and the created user

        Raises:
            CollaboratorError: With the flattened field errors on rejection
        """
        payload = dict(profile)
        if verification_token:
            payload["verification_token"] = verification_token
        logger.debug(f"Registering patient: {mask_payload(payload)}")

        body = await self._request(
            "POST",
            Endpoints.REGISTER,
            endpoint="register",
            json=payload,
            default_error="Registration failed. Please try again.",
        )
        data = self._data(body)
        token = data.get("token") or body.get("token")
        user = data.get("user") or body.get("user") or {}
        if not token:
            raise CollaboratorError("Registration response did not include a session token")

        self._token_setter(token)
        logger.info(f"Registered patient user_id={user.get('id')}")
        return RegisterResponse(token=token, user=user)
