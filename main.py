#!/usr/bin/env python3
"""
Hospital Booking - Patient appointment booking flow.

Console entry point walking the booking flow against the portal API.
"""

import argparse
import asyncio
import logging
import sys
import uuid
from typing import Optional, Sequence

from hospital_booking.core.config.settings import get_settings
from hospital_booking.core.enums import BookingStep, StepStatus
from hospital_booking.core.exceptions import (
    BookingPortalError,
    CollaboratorError,
    ConfigurationError,
    ValidationError,
)
from hospital_booking.core.logger import correlation_id_ctx, setup_structured_logging
from hospital_booking.services.booking import BookingStepMachine
from hospital_booking.services.portal import PortalApiClient

_STATUS_MARKS = {
    StepStatus.COMPLETED: "[x]",
    StepStatus.CURRENT: "[>]",
    StepStatus.UPCOMING: "[ ]",
}


async def prompt(message: str) -> str:
    """Read a line from stdin without blocking the event loop."""
    answer = await asyncio.to_thread(input, f"{message}: ")
    return answer.strip()


async def choose(message: str, options: Sequence[str]) -> Optional[int]:
    """Show a numbered list and return the chosen index, or None for blank input."""
    for index, option in enumerate(options, start=1):
        print(f"  {index}. {option}")
    while True:
        answer = await prompt(message)
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return int(answer) - 1
        print("Please enter one of the listed numbers.")


def print_progress(machine: BookingStepMachine) -> None:
    print()
    print("  ".join(f"{_STATUS_MARKS[s]} {step.value}" for step, s in machine.steps()))


async def run_verification(machine: BookingStepMachine) -> None:
    while not machine.otp.state.otp_sent:
        try:
            print(await machine.send_otp(await prompt("Mobile number")) or "Code sent.")
        except BookingPortalError as e:
            print(e.message)

    while machine.current_step == BookingStep.VERIFICATION:
        code = await prompt("OTP code (or 'r' to resend)")
        try:
            if code.lower() == "r":
                if not await machine.resend_otp():
                    wait = machine.otp.state.resend_cooldown_seconds
                    print(f"You can resend the code in {wait} seconds.")
                continue
            if not await machine.verify_otp(code):
                print(machine.otp.last_message or "Invalid OTP code.")
        except BookingPortalError as e:
            print(e.message)


async def run_profile(machine: BookingStepMachine) -> None:
    required = ("first_name", "last_name", "email", "gender", "date_of_birth", "nationality")
    optional = ("middle_name", "medical_record_number", "national_id", "address")
    while machine.current_step == BookingStep.PROFILE:
        values = {name: await prompt(name.replace("_", " ").capitalize()) for name in required}
        values.update(
            {name: await prompt(f"{name.replace('_', ' ').capitalize()} (optional)")
             for name in optional}
        )
        values["password"] = await prompt("Password")
        values["confirm_password"] = await prompt("Confirm password")
        machine.update_profile(**values)
        try:
            await machine.submit_profile()
        except BookingPortalError as e:
            print(e.message)


async def run_choose_doctor(machine: BookingStepMachine) -> None:
    if machine.catalog.is_empty:
        await machine.load_catalog()

    while not machine.can_proceed():
        try:
            branches = machine.visible_branches
            index = await choose("Branch (blank for any)", [b.name for b in branches])
            machine.select_branch(None if index is None else branches[index].id)

            departments = machine.visible_departments
            index = await choose("Department (blank for any)", [d.name for d in departments])
            machine.select_department(None if index is None else departments[index].id)

            machine.set_doctor_search(await prompt("Search doctor by name (optional)"))
            doctors = machine.visible_doctors
            if not doctors:
                print("No doctors match your choices.")
                continue
            index = await choose("Doctor", [d.name for d in doctors])
            if index is None:
                continue
            fetch = machine.select_doctor(doctors[index].id)
            if fetch is not None:
                await fetch

            dates = machine.available_dates
            if not dates:
                print("No available dates for this doctor.")
                continue
            index = await choose("Date", list(dates))
            if index is None:
                continue
            machine.select_date(dates[index])

            slots = machine.available_slots
            index = await choose("Time", [s.time for s in slots])
            if index is not None:
                machine.select_slot(slots[index].time)
        except ValidationError as e:
            print(e.message)

    machine.proceed_to_confirm()


async def run_confirm(machine: BookingStepMachine) -> None:
    stage_request = machine.stage.request
    print(f"Booking {stage_request.date} at {stage_request.time}")
    reason = await prompt("Reason for visit (optional)") or None
    while machine.current_step == BookingStep.CONFIRM:
        answer = (await prompt("Confirm? [y/n/back]")).lower()
        if answer == "back":
            machine.back()
            return
        if answer != "y":
            continue
        try:
            appointment = await machine.confirm(reason=reason)
            print(f"Appointment booked. Reference: {appointment.id}")
        except BookingPortalError as e:
            print(e.message)


async def run_booking(api_base_url: Optional[str], token: Optional[str]) -> None:
    """
    Walk the booking flow in the console.

    Args:
        api_base_url: Overrides the configured API base URL
        token: Bearer token of an already authenticated session
    """
    logger = logging.getLogger(__name__)
    settings = get_settings()
    correlation_id_ctx.set(uuid.uuid4().hex[:12])

    async with PortalApiClient(base_url=api_base_url, token=token, settings=settings) as client:
        machine = BookingStepMachine(
            identity=client,
            catalog=client,
            availability=client,
            reservation=client,
            authenticated=client.is_authenticated,
            settings=settings,
        )
        async with machine:
            handlers = {
                BookingStep.VERIFICATION: run_verification,
                BookingStep.PROFILE: run_profile,
                BookingStep.CHOOSE_DOCTOR: run_choose_doctor,
                BookingStep.CONFIRM: run_confirm,
            }
            while machine.current_step != BookingStep.SUCCESS:
                print_progress(machine)
                try:
                    await handlers[machine.current_step](machine)
                except CollaboratorError as e:
                    logger.warning(f"Step {machine.current_step.value} failed: {e.message}")
                    print(e.message)
                    if (await prompt("Try again? [y/n]")).lower() != "y":
                        return
    logger.info("Booking flow complete")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Hospital Booking - Patient appointment booking")
    parser.add_argument("--api-base-url", default=None, help="Portal API base URL")
    parser.add_argument(
        "--token", default=None, help="Bearer token of an already authenticated session"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = parser.parse_args()

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"{e.message}: {e.details.get('errors')}", file=sys.stderr)
        sys.exit(1)

    # Setup structured logging
    setup_structured_logging(args.log_level or settings.log_level, json_format=settings.log_json)
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(run_booking(args.api_base_url, args.token))
    except KeyboardInterrupt:
        logger.info("Booking cancelled by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
