"""Portal API Models - TypedDict definitions of collaborator payloads."""

from typing import List, Optional, TypedDict


class BranchInfo(TypedDict):
    """Type definition for a hospital branch."""

    id: int
    name: str


class DepartmentInfo(TypedDict):
    """Type definition for a medical department."""

    id: int
    name: str


class DoctorInfo(TypedDict, total=False):
    """Type definition for a doctor and their affiliation."""

    id: int
    name: str
    department_id: int
    branch_id: int
    department_name: str
    branch_name: str


class InitialBookingData(TypedDict):
    """Type definition for the catalog snapshot used by the booking flow."""

    branches: List[BranchInfo]
    departments: List[DepartmentInfo]
    doctors: List[DoctorInfo]


class TimeSlotInfo(TypedDict, total=False):
    """Type definition for one bookable time slot."""

    time: str
    available: bool
    shift_code: Optional[str]
    shift_name: Optional[str]


class DayScheduleInfo(TypedDict, total=False):
    """Type definition for one day of a doctor's schedule."""

    date: str
    day_name: str
    has_shift: bool
    slots: List[TimeSlotInfo]


class AvailableSlotsResponse(TypedDict):
    """Type definition for an availability range response."""

    schedule: List[DayScheduleInfo]


class OTPSendResponse(TypedDict):
    """Type definition for an OTP send response."""

    verification_id: Optional[str]
    message: str


class OTPVerifyResponse(TypedDict, total=False):
    """Type definition for an OTP verify response."""

    verified: bool
    token: Optional[str]
    message: str


class RegisterResponse(TypedDict):
    """Type definition for a registration response."""

    token: str
    user: dict


class CreateAppointmentPayload(TypedDict, total=False):
    """Type definition for an appointment creation request."""

    doctor_id: int
    branch_id: int
    department_id: int
    appointment_date: str
    appointment_time: str
    reason: str
    notes: str


class AppointmentInfo(TypedDict, total=False):
    """Type definition for a created appointment."""

    id: int
    doctor_id: int
    branch_id: int
    department_id: int
    appointment_date: str
    appointment_time: str
    status: str
    reason: Optional[str]
    notes: Optional[str]


class AppointmentResponse(TypedDict):
    """Type definition for an appointment creation or reschedule response."""

    appointment: AppointmentInfo
