"""Tests for the OTP verification flow."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from hospital_booking.core.enums import OTPPurpose
from hospital_booking.core.exceptions import CollaboratorError, ValidationError
from hospital_booking.services.booking.otp_flow import OTPVerificationFlow


@pytest.fixture
def identity():
    """Identity collaborator mock."""
    mock = AsyncMock()
    mock.send_otp = AsyncMock(return_value={"verification_id": "ver-1", "message": "Sent"})
    mock.verify_otp = AsyncMock(return_value={"verified": True, "token": "tok", "message": "OK"})
    return mock


@pytest.fixture
def flow(identity):
    """Flow with a three-tick cooldown of 10ms ticks."""
    return OTPVerificationFlow(identity, cooldown_seconds=3, tick_seconds=0.01)


async def wait_for_cooldown(flow: OTPVerificationFlow) -> None:
    for _ in range(200):
        if not flow.cooldown_active:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("cooldown never finished")


class TestSend:
    """Test sending the first code."""

    @pytest.mark.asyncio
    async def test_send_marks_sent_and_starts_cooldown(self, flow, identity):
        """Test a successful send."""
        message = await flow.send_otp(" +966501234567 ")

        assert message == "Sent"
        assert flow.state.otp_sent is True
        assert flow.state.phone_number == "+966501234567"
        assert flow.state.verification_id == "ver-1"
        assert flow.state.resend_cooldown_seconds == 3
        identity.send_otp.assert_awaited_once_with("+966501234567", OTPPurpose.REGISTRATION)
        await flow.close()

    @pytest.mark.asyncio
    async def test_empty_phone_is_rejected_without_a_call(self, flow, identity):
        """Test local validation of the phone number."""
        with pytest.raises(ValidationError) as exc_info:
            await flow.send_otp("   ")

        assert exc_info.value.field == "phone_number"
        identity.send_otp.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_send_surfaces_message_and_clears_sent(self, flow, identity):
        """Test that the collaborator message reaches the caller verbatim."""
        identity.send_otp.side_effect = CollaboratorError("Phone number is not registered")

        with pytest.raises(CollaboratorError, match="Phone number is not registered"):
            await flow.send_otp("+966501234567")

        assert flow.state.otp_sent is False
        assert flow.state.resend_cooldown_seconds == 0

    @pytest.mark.asyncio
    async def test_send_during_cooldown_is_rejected(self, flow, identity):
        """Test that a second first-send waits for the cooldown."""
        await flow.send_otp("+966501234567")

        with pytest.raises(ValidationError):
            await flow.send_otp("+966501234567")

        assert identity.send_otp.await_count == 1
        await flow.close()

    @pytest.mark.asyncio
    async def test_purpose_is_forwarded(self, identity):
        """Test that the OTP purpose reaches the collaborator."""
        flow = OTPVerificationFlow(identity, cooldown_seconds=0, purpose=OTPPurpose.LOGIN)

        await flow.send_otp("+966501234567")

        identity.send_otp.assert_awaited_once_with("+966501234567", OTPPurpose.LOGIN)


class TestResend:
    """Test the resend cooldown."""

    @pytest.mark.asyncio
    async def test_resend_before_first_send_is_noop(self, flow, identity):
        """Test that there is nothing to resend yet."""
        assert await flow.resend_otp() is False
        identity.send_otp.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resend_during_cooldown_has_no_effect(self, flow, identity):
        """Test that resend is ignored while the countdown runs."""
        await flow.send_otp("+966501234567")

        assert await flow.resend_otp() is False
        assert identity.send_otp.await_count == 1
        await flow.close()

    @pytest.mark.asyncio
    async def test_resend_after_cooldown_sends_and_resets(self, flow, identity):
        """Test that resend works once the countdown reaches zero."""
        await flow.send_otp("+966501234567")
        await wait_for_cooldown(flow)

        assert flow.state.resend_cooldown_seconds == 0
        assert await flow.resend_otp() is True
        assert identity.send_otp.await_count == 2
        assert flow.state.resend_cooldown_seconds == 3
        await flow.close()

    @pytest.mark.asyncio
    async def test_countdown_decrements_per_tick(self, identity):
        """Test that the countdown moves one unit per tick."""
        flow = OTPVerificationFlow(identity, cooldown_seconds=60, tick_seconds=0.01)
        await flow.send_otp("+966501234567")

        await asyncio.sleep(0.055)

        assert 50 <= flow.state.resend_cooldown_seconds < 60
        await flow.close()

    @pytest.mark.asyncio
    async def test_cancel_stops_the_countdown(self, flow):
        """Test that a cancelled countdown no longer decrements."""
        await flow.send_otp("+966501234567")
        flow.cancel()
        remaining = flow.state.resend_cooldown_seconds

        await asyncio.sleep(0.05)

        assert flow.state.resend_cooldown_seconds == remaining


class TestVerify:
    """Test code verification."""

    @pytest.mark.asyncio
    async def test_verify_success(self, flow, identity):
        """Test that a verified code stores the token."""
        await flow.send_otp("+966501234567")

        assert await flow.verify_otp("123456") is True

        assert flow.verified is True
        assert flow.state.verification_token == "tok"
        identity.verify_otp.assert_awaited_once_with("+966501234567", "123456", "ver-1")
        await flow.close()

    @pytest.mark.asyncio
    async def test_wrong_code_returns_false_and_keeps_sent(self, flow, identity):
        """Test that a rejected code does not reset the sent flag."""
        identity.verify_otp.return_value = {"verified": False, "message": "Invalid OTP"}
        await flow.send_otp("+966501234567")

        assert await flow.verify_otp("000000") is False

        assert flow.verified is False
        assert flow.state.otp_sent is True
        assert flow.last_message == "Invalid OTP"
        await flow.close()

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, flow, identity):
        """Test that unexpected failures propagate."""
        identity.verify_otp.side_effect = CollaboratorError("Network error. Please try again.")
        await flow.send_otp("+966501234567")

        with pytest.raises(CollaboratorError):
            await flow.verify_otp("123456")

        assert flow.state.otp_sent is True
        await flow.close()

    @pytest.mark.asyncio
    async def test_empty_code_rejected(self, flow, identity):
        """Test local validation of the code."""
        await flow.send_otp("+966501234567")

        with pytest.raises(ValidationError):
            await flow.verify_otp("")

        identity.verify_otp.assert_not_awaited()
        await flow.close()

    @pytest.mark.asyncio
    async def test_verify_before_send_rejected(self, flow, identity):
        """Test that a code cannot be checked before one was sent."""
        with pytest.raises(ValidationError):
            await flow.verify_otp("123456")

    @pytest.mark.asyncio
    async def test_reset_verification_keeps_phone_and_cooldown(self, flow):
        """Test the state kept when the patient must re-prove the code."""
        await flow.send_otp("+966501234567")
        await flow.verify_otp("123456")
        flow.cancel()
        cooldown = flow.state.resend_cooldown_seconds

        flow.reset_verification()

        assert flow.verified is False
        assert flow.state.otp_code == ""
        assert flow.state.verification_token is None
        assert flow.state.phone_number == "+966501234567"
        assert flow.state.otp_sent is True
        assert flow.state.resend_cooldown_seconds == cooldown
