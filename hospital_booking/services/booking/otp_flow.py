"""OTP Verification Flow - phone ownership check with a resend cooldown."""

import asyncio
from typing import Optional

from loguru import logger

from ...constants import OTP, Intervals
from ...core.enums import OTPPurpose
from ...core.exceptions import ValidationError
from ...utils.masking import mask_phone
from .models import VerificationState
from .protocols import IdentityCollaborator


class OTPVerificationFlow:
    """
    Send, resend and verify a one-time passcode.

    Owns the VerificationState and the countdown task that gates resending.
    """

    def __init__(
        self,
        identity: IdentityCollaborator,
        cooldown_seconds: int = OTP.RESEND_COOLDOWN_SECONDS,
        tick_seconds: float = Intervals.OTP_COUNTDOWN_TICK,
        purpose: OTPPurpose = OTPPurpose.REGISTRATION,
    ):
        """
        Initialize OTP flow.

        Args:
            identity: Identity collaborator
            cooldown_seconds: Countdown length after every successful send
            tick_seconds: Duration of one countdown step
            purpose: Why the code is requested
        """
        self._identity = identity
        self.cooldown_seconds = cooldown_seconds
        self.tick_seconds = tick_seconds
        self.purpose = purpose
        self.state = VerificationState()
        self.last_message: str = ""
        self._cooldown_task: Optional[asyncio.Task] = None

    @property
    def verified(self) -> bool:
        return self.state.verified

    @property
    def cooldown_active(self) -> bool:
        return self.state.resend_cooldown_seconds > 0

    async def send_otp(self, phone: str) -> str:
        """
        Send the first code to a phone number.

        Args:
            phone: Patient mobile number

        Returns:
            Message from the identity service

        Raises:
            ValidationError: If the phone is empty or the cooldown is running
            CollaboratorError: If the identity service refuses to send
        """
        phone = (phone or "").strip()
        if not phone:
            raise ValidationError("Please enter your mobile number", field="phone_number")
        if self.cooldown_active:
            raise ValidationError(
                f"Please wait {self.state.resend_cooldown_seconds} seconds before "
                "requesting a new code",
                field="phone_number",
            )

        self.state.phone_number = phone
        try:
            message = await self._dispatch()
        except Exception:
            self.state.otp_sent = False
            raise
        return message

    async def resend_otp(self) -> bool:
        """
        Send a fresh code to the same number.

        Returns:
            False while the cooldown is running or before a first send,
            True once a new code was sent

        Raises:
            CollaboratorError: If the identity service refuses to send
        """
        if not self.state.otp_sent or not self.state.phone_number:
            logger.debug("OTP resend ignored: no code sent yet")
            return False
        if self.cooldown_active:
            logger.debug(
                f"OTP resend ignored: {self.state.resend_cooldown_seconds}s cooldown remaining"
            )
            return False

        await self._dispatch()
        return True

    async def verify_otp(self, code: str) -> bool:
        """
        Check a typed code.

        Args:
            code: Code entered by the patient

        Returns:
            True if the identity service verified the code, False if it
            was rejected

        Raises:
            ValidationError: If the code is empty or nothing was sent yet
            CollaboratorError: On transport or unexpected service errors
        """
        code = (code or "").strip()
        if not code:
            raise ValidationError("Please enter the OTP code", field="otp_code")
        if not self.state.otp_sent:
            raise ValidationError("Please request an OTP first", field="otp_code")

        self.state.otp_code = code
        response = await self._identity.verify_otp(
            self.state.phone_number, code, self.state.verification_id
        )
        self.last_message = response.get("message") or ""

        if not response.get("verified"):
            self.state.verified = False
            logger.info(f"OTP rejected for {mask_phone(self.state.phone_number)}")
            return False

        self.state.verified = True
        self.state.verification_token = response.get("token")
        logger.info(f"Phone verified: {mask_phone(self.state.phone_number)}")
        return True

    def reset_verification(self) -> None:
        """Require the code to be proven again; phone, sent flag and cooldown stay."""
        self.state.verified = False
        self.state.otp_code = ""
        self.state.verification_token = None

    def cancel(self) -> None:
        """Stop the countdown task."""
        if self._cooldown_task and not self._cooldown_task.done():
            self._cooldown_task.cancel()
        self._cooldown_task = None

    async def close(self) -> None:
        """Stop the countdown task and wait for it to finish."""
        task = self._cooldown_task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _dispatch(self) -> str:
        response = await self._identity.send_otp(self.state.phone_number, self.purpose)

        self.state.otp_sent = True
        self.state.verified = False
        self.state.otp_code = ""
        self.state.verification_id = response.get("verification_id")
        self.last_message = response.get("message") or ""
        self._start_cooldown()

        logger.info(
            f"OTP sent to {mask_phone(self.state.phone_number)} "
            f"(purpose={self.purpose.value})"
        )
        return self.last_message

    def _start_cooldown(self) -> None:
        self.cancel()
        self.state.resend_cooldown_seconds = self.cooldown_seconds
        if self.cooldown_seconds > 0:
            self._cooldown_task = asyncio.create_task(self._run_cooldown())

    async def _run_cooldown(self) -> None:
        while self.state.resend_cooldown_seconds > 0:
            await asyncio.sleep(self.tick_seconds)
            self.state.resend_cooldown_seconds = max(0, self.state.resend_cooldown_seconds - 1)
        logger.debug("OTP resend cooldown finished")
