"""Availability Query Adapter - a doctor's schedule over the booking horizon."""

import asyncio
from datetime import date, timedelta
from typing import Callable, Optional, Set, Tuple

from loguru import logger

from ...constants import Horizons
from ...core.exceptions import CollaboratorError, StaleSelectionError
from .models import DaySchedule, ResourceId, TimeSlot
from .protocols import AvailabilityCollaborator


class AvailabilityAdapter:
    """
    Fetches and reshapes doctor availability.

    Each fetch is keyed by the doctor id at request time. A response arriving
    after another doctor became current is dropped, so the schedule always
    belongs to the current doctor.
    """

    def __init__(
        self,
        availability: AvailabilityCollaborator,
        horizon_days: int = Horizons.AVAILABILITY_DAYS,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize availability adapter.

        Args:
            availability: Availability collaborator
            horizon_days: Number of days after today included in the query
            clock: Returns today's date
        """
        self._availability = availability
        self.horizon_days = horizon_days
        self._clock = clock
        self._doctor_id: Optional[ResourceId] = None
        self._schedule: Tuple[DaySchedule, ...] = ()
        self._tasks: Set[asyncio.Task] = set()
        self.is_loading = False

    @property
    def doctor_id(self) -> Optional[ResourceId]:
        return self._doctor_id

    @property
    def schedule(self) -> Tuple[DaySchedule, ...]:
        return self._schedule

    def date_window(self) -> Tuple[date, date]:
        """Inclusive query window starting today."""
        today = self._clock()
        return today, today + timedelta(days=self.horizon_days)

    @property
    def available_dates(self) -> Tuple[str, ...]:
        """Dates with a shift and at least one free slot."""
        return tuple(day.date for day in self._schedule if day.has_available_slot)

    @property
    def booked_dates(self) -> Tuple[str, ...]:
        """Dates with a shift whose slots are all taken."""
        return tuple(day.date for day in self._schedule if day.is_fully_booked)

    def day(self, day_date: str) -> Optional[DaySchedule]:
        return next((d for d in self._schedule if d.date == day_date), None)

    def slots_for(self, day_date: Optional[str]) -> Tuple[TimeSlot, ...]:
        """Free slots on a date; empty for unknown dates."""
        if not day_date:
            return ()
        day = self.day(day_date)
        return day.available_slots() if day else ()

    def is_slot_available(self, day_date: str, slot_time: str) -> bool:
        return any(slot.time == slot_time for slot in self.slots_for(day_date))

    def needs_load(self, doctor_id: ResourceId) -> bool:
        """Whether choosing this doctor should query the service again."""
        if doctor_id != self._doctor_id:
            return True
        return not self.is_loading and not self._schedule

    async def load(self, doctor_id: ResourceId) -> bool:
        """
        Query the doctor's schedule and make it current.

        Collaborator failures and malformed payloads leave an empty schedule
        and are logged, not raised.

        Args:
            doctor_id: Doctor whose schedule is requested

        Returns:
            True if the result was applied, False if it arrived stale
        """
        self._begin(doctor_id)
        return await self._fetch(doctor_id)

    def start_load(self, doctor_id: ResourceId) -> asyncio.Task:
        """
        Run a fetch in the background.

        The doctor becomes current before the task is scheduled, so any later
        selection change turns this fetch stale. Earlier fetches finish and
        are dropped.
        """
        self._begin(doctor_id)
        task = asyncio.create_task(self._fetch(doctor_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def clear(self) -> None:
        """Forget the current doctor and schedule; fetches in flight arrive stale."""
        self._doctor_id = None
        self._schedule = ()
        self.is_loading = False

    def cancel(self) -> None:
        """Cancel background fetches still in flight."""
        for task in list(self._tasks):
            if not task.done():
                task.cancel()

    async def close(self) -> None:
        """Cancel background fetches and wait for them to unwind."""
        pending = list(self._tasks)
        self.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    def _begin(self, doctor_id: ResourceId) -> None:
        self._doctor_id = doctor_id
        self._schedule = ()
        self.is_loading = True

    async def _fetch(self, doctor_id: ResourceId) -> bool:
        start, end = self.date_window()

        try:
            response = await self._availability.get_available_slots(doctor_id, start, end)
            schedule = tuple(DaySchedule.from_dict(d) for d in response.get("schedule") or [])
        except CollaboratorError as e:
            logger.warning(f"Availability fetch failed for doctor {doctor_id}: {e.message}")
            schedule = ()
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Malformed availability for doctor {doctor_id}: {e}")
            schedule = ()

        try:
            self._apply(doctor_id, schedule)
        except StaleSelectionError as e:
            logger.debug(e.message)
            return False
        return True

    def _apply(self, doctor_id: ResourceId, schedule: Tuple[DaySchedule, ...]) -> None:
        if doctor_id != self._doctor_id:
            raise StaleSelectionError(doctor_id, self._doctor_id)
        self._schedule = schedule
        self.is_loading = False
        logger.debug(
            f"Availability for doctor {doctor_id}: {len(self.available_dates)} available, "
            f"{len(self.booked_dates)} fully booked"
        )
