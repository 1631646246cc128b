"""Appointment Booking Package - Modular Structure.

The step machine drives the flow; the OTP flow, cascade, availability
adapter and time normalizer are the pieces it coordinates.
"""

from .availability import AvailabilityAdapter
from .cascade import (
    clear_schedule_choice,
    filtered_doctors,
    select_branch,
    select_date,
    select_department,
    select_doctor,
    select_slot,
    set_doctor_search,
    visible_branches,
    visible_departments,
    visible_doctors,
)
from .models import (
    Appointment,
    BookingRequest,
    Branch,
    Catalog,
    DaySchedule,
    Department,
    Doctor,
    ResourceSelection,
    TimeSlot,
    VerificationState,
)
from .otp_flow import OTPVerificationFlow
from .profile import ProfileDraft, validate_profile
from .protocols import (
    AvailabilityCollaborator,
    CatalogCollaborator,
    IdentityCollaborator,
    ReservationCollaborator,
)
from .reschedule import RescheduleFlow
from .step_machine import (
    BookingStepMachine,
    ChooseDoctorStage,
    ConfirmStage,
    ProfileStage,
    SuccessStage,
    VerificationStage,
)
from .time_normalizer import normalize_slot_time

__all__ = [
    # Main service
    "BookingStepMachine",
    "RescheduleFlow",
    # Stages
    "VerificationStage",
    "ProfileStage",
    "ChooseDoctorStage",
    "ConfirmStage",
    "SuccessStage",
    # Components
    "OTPVerificationFlow",
    "AvailabilityAdapter",
    "ProfileDraft",
    "validate_profile",
    "normalize_slot_time",
    # Cascade
    "visible_branches",
    "visible_departments",
    "filtered_doctors",
    "visible_doctors",
    "select_branch",
    "select_department",
    "select_doctor",
    "set_doctor_search",
    "select_date",
    "select_slot",
    "clear_schedule_choice",
    # Models
    "Appointment",
    "BookingRequest",
    "Branch",
    "Catalog",
    "DaySchedule",
    "Department",
    "Doctor",
    "ResourceSelection",
    "TimeSlot",
    "VerificationState",
    # Collaborator contracts
    "IdentityCollaborator",
    "CatalogCollaborator",
    "AvailabilityCollaborator",
    "ReservationCollaborator",
]
