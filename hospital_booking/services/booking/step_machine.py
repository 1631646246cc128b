"""Booking step machine - coordinates the appointment booking flow."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, AsyncIterator, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from loguru import logger

from ...core.config.settings import PortalSettings, get_settings
from ...core.enums import BookingStep, StepStatus
from ...core.exceptions import CollaboratorError, ValidationError
from ...utils.masking import mask_phone
from . import cascade
from .availability import AvailabilityAdapter
from .models import (
    Appointment,
    BookingRequest,
    Branch,
    Catalog,
    DaySchedule,
    Department,
    Doctor,
    ResourceId,
    ResourceSelection,
    TimeSlot,
)
from .otp_flow import OTPVerificationFlow
from .profile import ProfileDraft, validate_profile
from .protocols import (
    AvailabilityCollaborator,
    CatalogCollaborator,
    IdentityCollaborator,
    ReservationCollaborator,
)
from .time_normalizer import normalize_slot_time


@dataclass(frozen=True)
class VerificationStage:
    step: ClassVar[BookingStep] = BookingStep.VERIFICATION


@dataclass(frozen=True)
class ProfileStage:
    phone_number: str
    verification_token: Optional[str] = None
    step: ClassVar[BookingStep] = BookingStep.PROFILE


@dataclass(frozen=True)
class ChooseDoctorStage:
    selection: ResourceSelection = ResourceSelection()
    step: ClassVar[BookingStep] = BookingStep.CHOOSE_DOCTOR


@dataclass(frozen=True)
class ConfirmStage:
    request: BookingRequest
    selection: ResourceSelection
    step: ClassVar[BookingStep] = BookingStep.CONFIRM


@dataclass(frozen=True)
class SuccessStage:
    appointment: Appointment
    step: ClassVar[BookingStep] = BookingStep.SUCCESS


Stage = Union[VerificationStage, ProfileStage, ChooseDoctorStage, ConfirmStage, SuccessStage]

_FORWARD: Dict[BookingStep, BookingStep] = {
    BookingStep.VERIFICATION: BookingStep.PROFILE,
    BookingStep.PROFILE: BookingStep.CHOOSE_DOCTOR,
    BookingStep.CHOOSE_DOCTOR: BookingStep.CONFIRM,
    BookingStep.CONFIRM: BookingStep.SUCCESS,
}

_BACK: Dict[BookingStep, BookingStep] = {
    BookingStep.PROFILE: BookingStep.VERIFICATION,
    BookingStep.CHOOSE_DOCTOR: BookingStep.PROFILE,
    BookingStep.CONFIRM: BookingStep.CHOOSE_DOCTOR,
}

DISPLAYED_STEPS: Tuple[BookingStep, ...] = (
    BookingStep.VERIFICATION,
    BookingStep.PROFILE,
    BookingStep.CHOOSE_DOCTOR,
    BookingStep.CONFIRM,
)

_FIELD_LABELS = {
    "branch_id": "branch",
    "department_id": "department",
    "doctor_id": "doctor",
    "selected_date": "date",
    "selected_slot": "time slot",
}


class BookingStepMachine:
    """
    Appointment booking flow controller.

    Walks a patient through phone verification, profile registration,
    doctor/date/slot selection and confirmation. Each step is a tagged stage
    carrying only the data valid there; transitions follow an explicit table
    and the only way backwards is back().
    """

    def __init__(
        self,
        identity: IdentityCollaborator,
        catalog: CatalogCollaborator,
        availability: AvailabilityCollaborator,
        reservation: ReservationCollaborator,
        authenticated: bool = False,
        settings: Optional[PortalSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize booking step machine.

        Args:
            identity: Identity collaborator (OTP and registration)
            catalog: Catalog collaborator (branches, departments, doctors)
            availability: Availability collaborator (doctor schedules)
            reservation: Reservation collaborator (appointment creation)
            authenticated: Whether the session is already authenticated;
                verification and profile steps are then skipped
            settings: Settings instance (defaults to the singleton)
            clock: Returns today's date for the availability window
        """
        self.settings = settings or get_settings()
        self._identity = identity
        self._catalog_source = catalog
        self._reservation = reservation

        self.otp = OTPVerificationFlow(
            identity,
            cooldown_seconds=self.settings.otp_resend_cooldown_seconds,
            tick_seconds=self.settings.otp_tick_seconds,
        )
        self.availability = AvailabilityAdapter(
            availability,
            horizon_days=self.settings.availability_horizon_days,
            clock=clock or date.today,
        )

        self.profile = ProfileDraft()
        self.catalog = Catalog()
        self.catalog_error: Optional[str] = None
        self.pre_authenticated = authenticated
        self.is_submitting = False
        self._profile_stage: Optional[ProfileStage] = None

        self.stage: Stage = ChooseDoctorStage() if authenticated else VerificationStage()
        logger.info(f"BookingStepMachine initialized at step {self.current_step.value}")

    async def __aenter__(self) -> "BookingStepMachine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # State

    @property
    def current_step(self) -> BookingStep:
        return self.stage.step

    def steps(self) -> List[Tuple[BookingStep, StepStatus]]:
        """Progress of the four displayed steps."""
        current = self.current_step.order
        progress = []
        for step in DISPLAYED_STEPS:
            if step.order < current:
                status = StepStatus.COMPLETED
            elif step.order == current:
                status = StepStatus.CURRENT
            else:
                status = StepStatus.UPCOMING
            progress.append((step, status))
        return progress

    async def start(self) -> None:
        """Load the catalog when the flow begins on Choose Doctor."""
        if isinstance(self.stage, ChooseDoctorStage) and self.catalog.is_empty:
            await self._load_catalog_safely()

    async def close(self) -> None:
        """Stop the cooldown timer and any availability fetch in flight."""
        await self.otp.close()
        await self.availability.close()
        logger.debug("BookingStepMachine closed")

    def back(self) -> BookingStep:
        """
        Step back one position where allowed.

        Returns:
            The step after the call
        """
        stage = self.stage
        if isinstance(stage, ProfileStage):
            self._profile_stage = stage
            self.otp.reset_verification()
            self._enter(VerificationStage(), _BACK)
        elif isinstance(stage, ChooseDoctorStage):
            if self.pre_authenticated or self._profile_stage is None:
                logger.debug("back() ignored: session was already authenticated")
            else:
                self._enter(self._profile_stage, _BACK)
        elif isinstance(stage, ConfirmStage):
            self._enter(ChooseDoctorStage(stage.selection), _BACK)
        else:
            logger.debug(f"back() ignored at step {stage.step.value}")
        return self.current_step

    # Step 1: verification

    async def send_otp(self, phone: str) -> str:
        """Send the verification code; see OTPVerificationFlow.send_otp."""
        self._require(BookingStep.VERIFICATION)
        async with self._submitting():
            return await self.otp.send_otp(phone)

    async def resend_otp(self) -> bool:
        """Re-send the code unless the cooldown is running."""
        self._require(BookingStep.VERIFICATION)
        async with self._submitting():
            return await self.otp.resend_otp()

    async def verify_otp(self, code: str) -> bool:
        """
        Verify the typed code and advance to Profile on success.

        Returns:
            Whether the code was accepted
        """
        self._require(BookingStep.VERIFICATION)
        async with self._submitting():
            verified = await self.otp.verify_otp(code)
        if not verified:
            return False

        state = self.otp.state
        self.profile.phone = state.phone_number
        self._enter(ProfileStage(state.phone_number, state.verification_token), _FORWARD)
        return True

    # Step 2: profile

    def update_profile(self, **values: Any) -> None:
        """Edit profile draft fields."""
        self._require(BookingStep.PROFILE)
        self.profile.update(**values)

    async def submit_profile(self) -> None:
        """
        Validate and register the profile, then advance to Choose Doctor.

        Raises:
            ValidationError: For the first failing local rule, before any call
            CollaboratorError: If registration is refused
        """
        stage = self._require(BookingStep.PROFILE)
        validate_profile(self.profile, self.settings.password_min_length)

        async with self._submitting():
            await self._identity.register(
                self.profile.to_registration_payload(), stage.verification_token
            )

        logger.info(f"Patient registered: {mask_phone(stage.phone_number)}")
        self._profile_stage = stage
        self.otp.cancel()
        self._enter(ChooseDoctorStage(), _FORWARD)
        await self._load_catalog_safely()

    # Step 3: choose doctor

    async def load_catalog(self) -> Catalog:
        """
        Fetch branches, departments and doctors.

        Raises:
            CollaboratorError: If the catalog service fails
        """
        self._require(BookingStep.CHOOSE_DOCTOR)
        data = await self._catalog_source.get_initial_booking_data()
        self.catalog = Catalog.from_dict(data)
        self.catalog_error = None
        logger.info(
            f"Catalog loaded: {len(self.catalog.branches)} branches, "
            f"{len(self.catalog.departments)} departments, {len(self.catalog.doctors)} doctors"
        )
        return self.catalog

    @property
    def selection(self) -> ResourceSelection:
        stage = self.stage
        if isinstance(stage, ChooseDoctorStage):
            return stage.selection
        if isinstance(stage, ConfirmStage):
            return stage.selection
        return ResourceSelection()

    @property
    def visible_branches(self) -> Tuple[Branch, ...]:
        return cascade.visible_branches(self.catalog, self.selection)

    @property
    def visible_departments(self) -> Tuple[Department, ...]:
        return cascade.visible_departments(self.catalog, self.selection)

    @property
    def visible_doctors(self) -> Tuple[Doctor, ...]:
        return cascade.visible_doctors(self.catalog, self.selection)

    @property
    def schedule(self) -> Tuple[DaySchedule, ...]:
        return self.availability.schedule

    @property
    def available_dates(self) -> Tuple[str, ...]:
        return self.availability.available_dates

    @property
    def booked_dates(self) -> Tuple[str, ...]:
        return self.availability.booked_dates

    @property
    def available_slots(self) -> Tuple[TimeSlot, ...]:
        """Free slots on the selected date."""
        return self.availability.slots_for(self.selection.selected_date)

    def select_branch(self, branch_id: Optional[ResourceId]) -> ResourceSelection:
        return self._update_selection(
            cascade.select_branch(self.catalog, self._choosing().selection, branch_id)
        )

    def select_department(self, department_id: Optional[ResourceId]) -> ResourceSelection:
        return self._update_selection(
            cascade.select_department(self.catalog, self._choosing().selection, department_id)
        )

    def select_doctor(self, doctor_id: Optional[ResourceId]) -> Optional[asyncio.Task]:
        """
        Select a doctor and start fetching their availability.

        Re-selecting the current doctor fetches again when their schedule is
        empty and nothing is in flight, so a failed fetch can be retried.

        Returns:
            The availability fetch task, or None when no fetch was needed
        """
        selection = self._update_selection(
            cascade.select_doctor(self.catalog, self._choosing().selection, doctor_id)
        )
        if selection.doctor_id is None or not self.availability.needs_load(selection.doctor_id):
            return None
        return self.availability.start_load(selection.doctor_id)

    def set_doctor_search(self, text: Optional[str]) -> ResourceSelection:
        return self._update_selection(
            cascade.set_doctor_search(self._choosing().selection, text)
        )

    def select_date(self, day_date: Optional[str]) -> ResourceSelection:
        """
        Raises:
            ValidationError: If the date has no free slot for the selected doctor
        """
        selection = self._choosing().selection
        if day_date is not None and (
            self.availability.doctor_id != selection.doctor_id
            or day_date not in self.availability.available_dates
        ):
            raise ValidationError(
                "Selected date has no available time slots", field="selected_date"
            )
        return self._update_selection(cascade.select_date(selection, day_date))

    def select_slot(self, slot_time: Optional[str]) -> ResourceSelection:
        """
        Raises:
            ValidationError: If the slot is not free on the selected date
        """
        selection = self._choosing().selection
        if slot_time is not None and not self.availability.is_slot_available(
            selection.selected_date or "", slot_time
        ):
            raise ValidationError("Selected time slot is not available", field="selected_slot")
        return self._update_selection(cascade.select_slot(selection, slot_time))

    def can_proceed(self) -> bool:
        """Whether Choose Doctor has everything Confirm needs."""
        stage = self.stage
        return isinstance(stage, ChooseDoctorStage) and stage.selection.is_complete

    def proceed_to_confirm(self) -> BookingRequest:
        """
        Freeze the selection into a booking request and move to Confirm.

        Raises:
            ValidationError: Naming the fields still missing
        """
        selection = self._choosing().selection
        missing = selection.missing_fields()
        if missing:
            labels = ", ".join(_FIELD_LABELS[name] for name in missing)
            raise ValidationError(f"Please select: {labels}", field=missing[0])

        request = BookingRequest(
            doctor_id=selection.doctor_id,
            branch_id=selection.branch_id,
            department_id=selection.department_id,
            date=selection.selected_date,
            time=selection.selected_slot,
        )
        self._enter(ConfirmStage(request, selection), _FORWARD)
        return request

    # Step 4: confirm

    async def confirm(self, reason: Optional[str] = None, notes: Optional[str] = None) -> Appointment:
        """
        Book the appointment and move to Success.

        Args:
            reason: Optional visit reason
            notes: Optional notes for the doctor

        Returns:
            The booked appointment

        Raises:
            FormatError: If the slot time cannot be normalized
            CollaboratorError: If the reservation service refuses the booking
        """
        stage = self._require(BookingStep.CONFIRM)
        request = stage.request
        if reason is not None or notes is not None:
            request = replace(
                request,
                reason=reason if reason is not None else request.reason,
                notes=notes if notes is not None else request.notes,
            )

        payload: Dict[str, Any] = {
            "doctor_id": request.doctor_id,
            "branch_id": request.branch_id,
            "department_id": request.department_id,
            "appointment_date": request.date,
            "appointment_time": normalize_slot_time(request.time),
        }
        if request.reason:
            payload["reason"] = request.reason
        if request.notes:
            payload["notes"] = request.notes

        async with self._submitting():
            response = await self._reservation.create_appointment(payload)

        booked = response.get("appointment")
        if not booked:
            raise CollaboratorError("Appointment response did not include the appointment")

        appointment = Appointment.from_dict(booked)
        logger.info(f"Appointment confirmed: id={appointment.id}")
        self._enter(SuccessStage(appointment), _FORWARD)
        self.availability.cancel()
        return appointment

    @property
    def appointment(self) -> Optional[Appointment]:
        stage = self.stage
        return stage.appointment if isinstance(stage, SuccessStage) else None

    # Internals

    @asynccontextmanager
    async def _submitting(self) -> AsyncIterator[None]:
        if self.is_submitting:
            raise ValidationError("A request is already in progress")
        self.is_submitting = True
        try:
            yield
        finally:
            self.is_submitting = False

    def _require(self, step: BookingStep) -> Any:
        if self.current_step != step:
            raise ValidationError(
                f"Action not available at step '{self.current_step.value}'", field="step"
            )
        return self.stage

    def _choosing(self) -> ChooseDoctorStage:
        return self._require(BookingStep.CHOOSE_DOCTOR)

    def _update_selection(self, selection: ResourceSelection) -> ResourceSelection:
        previous = self._choosing().selection
        if selection == previous:
            return selection
        if selection.doctor_id is None and previous.doctor_id is not None:
            self.availability.clear()
        self.stage = ChooseDoctorStage(selection)
        return selection

    def _enter(self, stage: Stage, table: Dict[BookingStep, BookingStep]) -> None:
        current = self.current_step
        if table.get(current) != stage.step:
            raise RuntimeError(f"Illegal transition {current.value} -> {stage.step.value}")
        self.stage = stage
        logger.info(f"Booking step: {current.value} -> {stage.step.value}")

    async def _load_catalog_safely(self) -> None:
        try:
            await self.load_catalog()
        except CollaboratorError as e:
            self.catalog_error = e.message
            logger.warning(f"Catalog load failed: {e.message}")
