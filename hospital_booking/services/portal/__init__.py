"""Portal API Client - Modular package for the hospital portal REST API."""

from hospital_booking.services.portal.appointments import PortalAppointments
from hospital_booking.services.portal.auth import PortalAuth
from hospital_booking.services.portal.base import PortalEndpoint, flatten_errors
from hospital_booking.services.portal.client import PortalApiClient
from hospital_booking.services.portal.models import (
    AppointmentInfo,
    AppointmentResponse,
    AvailableSlotsResponse,
    BranchInfo,
    CreateAppointmentPayload,
    DayScheduleInfo,
    DepartmentInfo,
    DoctorInfo,
    InitialBookingData,
    OTPSendResponse,
    OTPVerifyResponse,
    RegisterResponse,
    TimeSlotInfo,
)
from hospital_booking.services.portal.slots import PortalSlots

__all__ = [
    "PortalApiClient",
    "PortalAuth",
    "PortalSlots",
    "PortalAppointments",
    "PortalEndpoint",
    "flatten_errors",
    "AppointmentInfo",
    "AppointmentResponse",
    "AvailableSlotsResponse",
    "BranchInfo",
    "CreateAppointmentPayload",
    "DayScheduleInfo",
    "DepartmentInfo",
    "DoctorInfo",
    "InitialBookingData",
    "OTPSendResponse",
    "OTPVerifyResponse",
    "RegisterResponse",
    "TimeSlotInfo",
]
