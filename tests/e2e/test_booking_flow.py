"""End-to-end tests for the booking flow with a mocked portal API."""

from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest

from hospital_booking.core.enums import BookingStep
from hospital_booking.core.exceptions import CollaboratorError
from hospital_booking.services.booking import BookingStepMachine, RescheduleFlow
from hospital_booking.services.portal import PortalApiClient

BASE_URL = "https://test-portal.example.com/api"


class FakePortalSession:
    """Routes requests by method and path to canned envelopes."""

    def __init__(self, routes: Dict[Tuple[str, str], Tuple[int, Dict[str, Any]]]):
        self.routes = routes
        self.headers: Dict[str, str] = {}
        self.calls: List[Tuple[str, str, Optional[dict], Optional[dict], Optional[str]]] = []

    def request(self, method, url, params=None, json=None):
        path = url[len(BASE_URL):]
        self.calls.append((method, path, params, json, self.headers.get("Authorization")))
        status, body = self.routes[(method, path)]
        response = AsyncMock()
        response.status = status
        response.headers = {}
        response.json = AsyncMock(return_value=body)
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=None)
        return response

    async def close(self):
        pass


async def pick_doctor(machine: BookingStepMachine, doctor_id) -> None:
    """Select a doctor and wait for the fetch it started, if any."""
    fetch = machine.select_doctor(doctor_id)
    if fetch is not None:
        await fetch


def ok(data: Dict[str, Any], message: str = "") -> Tuple[int, Dict[str, Any]]:
    return 200, {"success": True, "message": message, "data": data}


@pytest.fixture
def routes(catalog_payload, schedule_payload):
    """Happy-path portal responses."""
    return {
        ("POST", "/auth/otp/send"): ok({"verification_id": "ver-9"}, "OTP sent successfully"),
        ("POST", "/auth/otp/verify"): ok({"verified": True, "token": "verify-token"}),
        ("POST", "/auth/register"): ok({"token": "session-token", "user": {"id": 7}}),
        ("GET", "/appointments/initial-data"): ok(catalog_payload),
        ("GET", "/appointments/available-slots/range"): ok({"schedule": schedule_payload}),
        ("POST", "/appointments"): ok(
            {
                "appointment": {
                    "id": 321,
                    "appointment_date": "2026-10-20",
                    "appointment_time": "14:00:00",
                    "status": "confirmed",
                    "doctor_id": 200,
                }
            }
        ),
        ("POST", "/appointments/321/reschedule"): ok(
            {
                "appointment": {
                    "id": 321,
                    "appointment_date": "2026-10-20",
                    "appointment_time": "08:15:00",
                    "status": "rescheduled",
                    "doctor_id": 200,
                }
            }
        ),
    }


@pytest.fixture
def client(settings, routes):
    """Portal client wired to the fake session."""
    client = PortalApiClient(settings=settings)
    client._http_session = FakePortalSession(routes)
    return client


class TestBookingFlow:
    """E2E tests for the booking flow."""

    @pytest.mark.asyncio
    async def test_full_booking_flow_success(self, client, settings, clock):
        """Test complete flow from phone verification to confirmation."""
        machine = BookingStepMachine(
            client, client, client, client, settings=settings, clock=clock
        )
        async with machine:
            await machine.send_otp("+966501234567")
            assert await machine.verify_otp("123456") is True
            assert machine.current_step == BookingStep.PROFILE

            machine.update_profile(
                first_name="Noura",
                last_name="Al-Harbi",
                gender="female",
                date_of_birth="1990-04-12",
                nationality="SA",
                medical_record_number="MRN-42",
                email="noura@example.com",
                password="s3cretpass",
                confirm_password="s3cretpass",
            )
            await machine.submit_profile()
            assert machine.current_step == BookingStep.CHOOSE_DOCTOR
            assert client.is_authenticated

            machine.select_branch(2)
            assert [d.id for d in machine.visible_departments] == [20]
            machine.set_doctor_search("lina")
            doctor = machine.visible_doctors[0]
            await pick_doctor(machine, doctor.id)
            machine.select_date(machine.available_dates[0])
            machine.select_slot("02:00 PM - 02:15 PM")

            request = machine.proceed_to_confirm()
            assert request.department_id == 20

            appointment = await machine.confirm(notes="First visit")

        assert machine.current_step == BookingStep.SUCCESS
        assert appointment.id == 321

        session = client._http_session
        booking_call = session.calls[-1]
        assert booking_call[:2] == ("POST", "/appointments")
        assert booking_call[3]["appointment_time"] == "14:00:00"
        assert booking_call[3]["notes"] == "First visit"
        assert booking_call[4] == "Bearer session-token"

        range_call = next(c for c in session.calls if c[1].endswith("/range"))
        assert range_call[2] == {
            "doctor_id": "200",
            "start_date": "2026-10-18",
            "end_date": "2026-11-17",
        }

    @pytest.mark.asyncio
    async def test_pre_authenticated_flow_skips_verification(self, settings, routes, clock):
        """Test a session that starts with a token."""
        client = PortalApiClient(token="existing", settings=settings)
        client._http_session = FakePortalSession(routes)
        client.set_token("existing")

        async with BookingStepMachine(
            client, client, client, client,
            authenticated=client.is_authenticated, settings=settings, clock=clock,
        ) as machine:
            assert machine.current_step == BookingStep.CHOOSE_DOCTOR
            await pick_doctor(machine, 200)
            machine.select_date("2026-10-20")
            machine.select_slot("02:00 PM - 02:15 PM")
            machine.proceed_to_confirm()
            await machine.confirm()

        paths = [c[1] for c in client._http_session.calls]
        assert "/auth/otp/send" not in paths
        assert paths[0] == "/appointments/initial-data"

    @pytest.mark.asyncio
    async def test_taken_slot_keeps_patient_on_confirm(self, client, routes, settings, clock):
        """Test that the reservation service refusing the slot is recoverable."""
        routes[("POST", "/appointments")] = (
            409,
            {"success": False, "message": "This time slot is no longer available"},
        )

        async with BookingStepMachine(
            client, client, client, client, authenticated=True, settings=settings, clock=clock
        ) as machine:
            await pick_doctor(machine, 100)
            machine.select_date("2026-10-20")
            machine.select_slot("08:15 AM")
            machine.proceed_to_confirm()

            with pytest.raises(CollaboratorError, match="no longer available"):
                await machine.confirm()

            assert machine.current_step == BookingStep.CONFIRM
            assert machine.back() == BookingStep.CHOOSE_DOCTOR
            machine.select_slot("02:00 PM - 02:15 PM")
            assert machine.can_proceed()

    @pytest.mark.asyncio
    async def test_reschedule_after_booking(self, client, clock):
        """Test moving the booked appointment to another slot."""
        from hospital_booking.services.booking.models import Appointment

        booked = Appointment.from_dict(
            {"id": 321, "doctor_id": 200, "appointment_date": "2026-10-20",
             "appointment_time": "14:00:00"}
        )
        flow = RescheduleFlow(booked, client, client, clock=clock)

        await flow.load()
        flow.choose("2026-10-20", "08:15 AM")
        updated = await flow.submit()

        assert updated.appointment_time == "08:15:00"
        last = client._http_session.calls[-1]
        assert last[:2] == ("POST", "/appointments/321/reschedule")
        assert last[3] == {"appointment_date": "2026-10-20", "appointment_time": "08:15:00"}
