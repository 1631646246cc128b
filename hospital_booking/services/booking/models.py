"""Booking flow data model - immutable catalog, schedule and selection values."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

ResourceId = Union[int, str]


@dataclass(frozen=True)
class Branch:
    """Hospital branch."""

    id: ResourceId
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Branch":
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass(frozen=True)
class Department:
    """Medical department."""

    id: ResourceId
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Department":
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass(frozen=True)
class Doctor:
    """Doctor and the branch/department they practice in."""

    id: ResourceId
    name: str
    branch_id: ResourceId
    department_id: ResourceId
    branch_name: str = ""
    department_name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Doctor":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            branch_id=data["branch_id"],
            department_id=data["department_id"],
            branch_name=data.get("branch_name") or "",
            department_name=data.get("department_name") or "",
        )


@dataclass(frozen=True)
class Catalog:
    """Snapshot of the bookable resources."""

    branches: Tuple[Branch, ...] = ()
    departments: Tuple[Department, ...] = ()
    doctors: Tuple[Doctor, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Catalog":
        return cls(
            branches=tuple(Branch.from_dict(b) for b in data.get("branches") or []),
            departments=tuple(Department.from_dict(d) for d in data.get("departments") or []),
            doctors=tuple(Doctor.from_dict(d) for d in data.get("doctors") or []),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.branches or self.departments or self.doctors)

    def branch(self, branch_id: ResourceId) -> Optional[Branch]:
        return next((b for b in self.branches if b.id == branch_id), None)

    def department(self, department_id: ResourceId) -> Optional[Department]:
        return next((d for d in self.departments if d.id == department_id), None)

    def doctor(self, doctor_id: ResourceId) -> Optional[Doctor]:
        return next((d for d in self.doctors if d.id == doctor_id), None)


@dataclass(frozen=True)
class TimeSlot:
    """One slot of a doctor's day as displayed to the patient."""

    time: str
    available: bool
    shift_code: Optional[str] = None
    shift_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeSlot":
        return cls(
            time=data["time"],
            available=bool(data.get("available")),
            shift_code=data.get("shift_code"),
            shift_name=data.get("shift_name"),
        )


@dataclass(frozen=True)
class DaySchedule:
    """A doctor's slots for one calendar day."""

    date: str
    day_name: str = ""
    has_shift: bool = False
    slots: Tuple[TimeSlot, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DaySchedule":
        slots = tuple(TimeSlot.from_dict(s) for s in data.get("slots") or [])
        has_shift = data.get("has_shift")
        return cls(
            date=data["date"],
            day_name=data.get("day_name") or "",
            # Older payloads omit has_shift; a day listing slots has a shift
            has_shift=bool(slots) if has_shift is None else bool(has_shift),
            slots=slots,
        )

    @property
    def has_available_slot(self) -> bool:
        return self.has_shift and any(slot.available for slot in self.slots)

    @property
    def is_fully_booked(self) -> bool:
        return self.has_shift and bool(self.slots) and not any(s.available for s in self.slots)

    def available_slots(self) -> Tuple[TimeSlot, ...]:
        return tuple(slot for slot in self.slots if slot.available)


@dataclass(frozen=True)
class ResourceSelection:
    """
    The patient's committed choices on the Choose Doctor step.

    Only ever replaced, never mutated; see cascade.py for the reducers that
    keep the fields consistent with each other.
    """

    branch_id: Optional[ResourceId] = None
    department_id: Optional[ResourceId] = None
    doctor_id: Optional[ResourceId] = None
    doctor_search_text: str = ""
    selected_date: Optional[str] = None
    selected_slot: Optional[str] = None

    REQUIRED_FIELDS = ("branch_id", "department_id", "doctor_id", "selected_date", "selected_slot")

    def missing_fields(self) -> List[str]:
        """Required fields that are still empty, in flow order."""
        return [name for name in self.REQUIRED_FIELDS if getattr(self, name) in (None, "")]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


@dataclass
class VerificationState:
    """Progress of the phone OTP verification, owned by OTPVerificationFlow."""

    phone_number: str = ""
    otp_code: str = ""
    otp_sent: bool = False
    resend_cooldown_seconds: int = 0
    verified: bool = False
    verification_id: Optional[str] = None
    verification_token: Optional[str] = None


@dataclass(frozen=True)
class BookingRequest:
    """Fully resolved booking awaiting confirmation."""

    doctor_id: ResourceId
    branch_id: ResourceId
    department_id: ResourceId
    date: str
    time: str
    reason: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Appointment:
    """Appointment as returned by the reservation service."""

    id: Optional[ResourceId]
    appointment_date: str = ""
    appointment_time: str = ""
    status: str = ""
    doctor_id: Optional[ResourceId] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Appointment":
        return cls(
            id=data.get("id"),
            appointment_date=data.get("appointment_date") or "",
            appointment_time=data.get("appointment_time") or "",
            status=data.get("status") or "",
            doctor_id=data.get("doctor_id"),
            raw=dict(data),
        )
