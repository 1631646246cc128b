"""
Branch -> department -> doctor cascade.

Pure functions over a Catalog and a ResourceSelection. Reducers return a new
selection and never mutate their input; the visible lists are recomputed from
the selection on demand so they can never drift from it.
"""

from dataclasses import replace
from typing import Optional, Tuple

from ...core.exceptions import ValidationError
from .models import (
    Branch,
    Catalog,
    Department,
    Doctor,
    ResourceId,
    ResourceSelection,
)


def visible_branches(catalog: Catalog, selection: ResourceSelection) -> Tuple[Branch, ...]:
    """Branches are never narrowed."""
    return catalog.branches


def visible_departments(
    catalog: Catalog, selection: ResourceSelection
) -> Tuple[Department, ...]:
    """Departments with at least one doctor in the selected branch, or all of them."""
    if selection.branch_id is None:
        return catalog.departments
    offered = {
        doctor.department_id
        for doctor in catalog.doctors
        if doctor.branch_id == selection.branch_id
    }
    return tuple(d for d in catalog.departments if d.id in offered)


def filtered_doctors(catalog: Catalog, selection: ResourceSelection) -> Tuple[Doctor, ...]:
    """Doctors matching the branch and department filters that are set."""
    return tuple(
        doctor
        for doctor in catalog.doctors
        if _matches(doctor, selection.branch_id, selection.department_id)
    )


def visible_doctors(catalog: Catalog, selection: ResourceSelection) -> Tuple[Doctor, ...]:
    """Filtered doctors narrowed by the free-text name search."""
    doctors = filtered_doctors(catalog, selection)
    needle = selection.doctor_search_text.strip().lower()
    if not needle:
        return doctors
    return tuple(d for d in doctors if needle in d.name.lower())


def select_branch(
    catalog: Catalog, selection: ResourceSelection, branch_id: Optional[ResourceId]
) -> ResourceSelection:
    """
    Set or clear the branch filter.

    A department not offered in the new branch and a doctor outside it are
    dropped. Date and slot are always cleared on change.

    Raises:
        ValidationError: If the branch is not in the catalog
    """
    if branch_id == selection.branch_id:
        return selection
    if branch_id is not None and catalog.branch(branch_id) is None:
        raise ValidationError(f"Unknown branch '{branch_id}'", field="branch_id")

    candidate = replace(selection, branch_id=branch_id)
    department_id = selection.department_id
    if department_id is not None and department_id not in {
        d.id for d in visible_departments(catalog, candidate)
    }:
        department_id = None

    return _constrain(catalog, candidate, department_id=department_id)


def select_department(
    catalog: Catalog, selection: ResourceSelection, department_id: Optional[ResourceId]
) -> ResourceSelection:
    """
    Set or clear the department filter.

    Raises:
        ValidationError: If the department is unknown or not offered in the
            selected branch
    """
    if department_id == selection.department_id:
        return selection
    if department_id is not None:
        if catalog.department(department_id) is None:
            raise ValidationError(
                f"Unknown department '{department_id}'", field="department_id"
            )
        if department_id not in {d.id for d in visible_departments(catalog, selection)}:
            raise ValidationError(
                "Department is not offered in the selected branch", field="department_id"
            )

    return _constrain(catalog, selection, department_id=department_id)


def select_doctor(
    catalog: Catalog, selection: ResourceSelection, doctor_id: Optional[ResourceId]
) -> ResourceSelection:
    """
    Select a doctor, back-filling branch and department from their affiliation.

    The doctor choice wins over whatever filters were set. Passing None
    clears the doctor and keeps the filters.

    Raises:
        ValidationError: If the doctor is not in the catalog
    """
    if doctor_id == selection.doctor_id:
        return selection
    if doctor_id is None:
        return clear_schedule_choice(replace(selection, doctor_id=None))

    doctor = catalog.doctor(doctor_id)
    if doctor is None:
        raise ValidationError(f"Unknown doctor '{doctor_id}'", field="doctor_id")

    return replace(
        selection,
        branch_id=doctor.branch_id,
        department_id=doctor.department_id,
        doctor_id=doctor.id,
        selected_date=None,
        selected_slot=None,
    )


def set_doctor_search(selection: ResourceSelection, text: Optional[str]) -> ResourceSelection:
    """Update the search text; never touches the committed doctor."""
    return replace(selection, doctor_search_text=text or "")


def select_date(selection: ResourceSelection, date: Optional[str]) -> ResourceSelection:
    """
    Choose a date; a different date drops the chosen slot.

    Raises:
        ValidationError: If no doctor is selected
    """
    if date is not None and selection.doctor_id is None:
        raise ValidationError("Please select a doctor first", field="selected_date")
    if date == selection.selected_date:
        return selection
    return replace(selection, selected_date=date, selected_slot=None)


def select_slot(selection: ResourceSelection, slot: Optional[str]) -> ResourceSelection:
    """
    Choose a slot on the selected date.

    Raises:
        ValidationError: If no date is selected
    """
    if slot is not None and selection.selected_date is None:
        raise ValidationError("Please select a date first", field="selected_slot")
    return replace(selection, selected_slot=slot)


def clear_schedule_choice(selection: ResourceSelection) -> ResourceSelection:
    """Drop the chosen date and slot."""
    if selection.selected_date is None and selection.selected_slot is None:
        return selection
    return replace(selection, selected_date=None, selected_slot=None)


def _matches(
    doctor: Doctor, branch_id: Optional[ResourceId], department_id: Optional[ResourceId]
) -> bool:
    if branch_id is not None and doctor.branch_id != branch_id:
        return False
    if department_id is not None and doctor.department_id != department_id:
        return False
    return True


def _constrain(
    catalog: Catalog, selection: ResourceSelection, department_id: Optional[ResourceId]
) -> ResourceSelection:
    """Apply new filters, dropping a doctor who no longer matches them."""
    doctor_id = selection.doctor_id
    if doctor_id is not None:
        doctor = catalog.doctor(doctor_id)
        if doctor is None or not _matches(doctor, selection.branch_id, department_id):
            doctor_id = None

    return replace(
        selection,
        department_id=department_id,
        doctor_id=doctor_id,
        selected_date=None,
        selected_slot=None,
    )
