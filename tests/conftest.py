"""Pytest configuration and common fixtures."""

import os
import sys
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Set environment variables BEFORE any hospital_booking imports; the
# setup_test_environment fixture re-applies them per test with monkeypatch.
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("API_BASE_URL", "https://test-portal.example.com/api")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from datetime import date
from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

from hospital_booking.core.config.settings import PortalSettings

FIXED_TODAY = date(2026, 10, 18)


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("API_BASE_URL", "https://test-portal.example.com/api")
    monkeypatch.delenv("API_TOKEN", raising=False)

    # Reset settings singleton so each test gets fresh settings
    from hospital_booking.core.config.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> PortalSettings:
    """Settings with a fast OTP countdown."""
    return PortalSettings(
        env="testing",
        api_base_url="https://test-portal.example.com/api",
        otp_resend_cooldown_seconds=3,
        otp_tick_seconds=0.01,
    )


@pytest.fixture
def clock():
    """Clock pinned to a fixed day."""
    return lambda: FIXED_TODAY


@pytest.fixture
def catalog_payload() -> Dict[str, Any]:
    """Two branches, two departments, three doctors."""
    return {
        "branches": [
            {"id": 1, "name": "Riyadh Main"},
            {"id": 2, "name": "Jeddah"},
        ],
        "departments": [
            {"id": 10, "name": "Cardiology"},
            {"id": 20, "name": "Dermatology"},
        ],
        "doctors": [
            {"id": 100, "name": "Dr. Sara Khalid", "branch_id": 1, "department_id": 10},
            {"id": 101, "name": "Dr. Omar Nasser", "branch_id": 1, "department_id": 20},
            {"id": 200, "name": "Dr. Lina Haddad", "branch_id": 2, "department_id": 20},
        ],
    }


@pytest.fixture
def schedule_payload() -> List[Dict[str, Any]]:
    """One open day, one fully booked day, one day off."""
    return [
        {
            "date": "2026-10-20",
            "day_name": "Tuesday",
            "has_shift": True,
            "slots": [
                {"time": "08:15 AM", "available": True, "shift_code": "M", "shift_name": "Morning"},
                {"time": "08:30 AM", "available": False, "shift_code": "M"},
                {"time": "02:00 PM - 02:15 PM", "available": True, "shift_code": "E"},
            ],
        },
        {
            "date": "2026-10-21",
            "day_name": "Wednesday",
            "has_shift": True,
            "slots": [{"time": "09:00 AM", "available": False}],
        },
        {"date": "2026-10-22", "day_name": "Thursday", "has_shift": False, "slots": []},
    ]


@pytest.fixture
def portal(catalog_payload, schedule_payload):
    """AsyncMock standing in for all four collaborators."""
    client = AsyncMock()
    client.send_otp = AsyncMock(
        return_value={"verification_id": "ver-1", "message": "OTP sent successfully"}
    )
    client.verify_otp = AsyncMock(
        return_value={"verified": True, "token": "verify-token", "message": "Verified"}
    )
    client.register = AsyncMock(return_value={"token": "session-token", "user": {"id": 7}})
    client.get_initial_booking_data = AsyncMock(return_value=catalog_payload)
    client.get_available_slots = AsyncMock(return_value={"schedule": schedule_payload})
    client.create_appointment = AsyncMock(
        return_value={
            "appointment": {
                "id": 555,
                "appointment_date": "2026-10-20",
                "appointment_time": "08:15:00",
                "status": "confirmed",
                "doctor_id": 100,
            }
        }
    )
    client.reschedule_appointment = AsyncMock(
        return_value={
            "appointment": {
                "id": 555,
                "appointment_date": "2026-10-20",
                "appointment_time": "14:00:00",
                "status": "rescheduled",
                "doctor_id": 100,
            }
        }
    )
    return client
