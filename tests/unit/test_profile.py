"""Tests for profile validation and the registration payload."""

from dataclasses import replace

import pytest

from hospital_booking.core.exceptions import ValidationError
from hospital_booking.services.booking.profile import ProfileDraft, validate_profile


@pytest.fixture
def draft() -> ProfileDraft:
    """A profile passing every rule."""
    return ProfileDraft(
        first_name="Noura",
        last_name="Al-Harbi",
        gender="female",
        date_of_birth="1990-04-12",
        nationality="SA",
        national_id="1234567890",
        email="noura@example.com",
        phone="+966501234567",
        password="s3cretpass",
        confirm_password="s3cretpass",
    )


def failing_field(profile: ProfileDraft, min_length: int = 8) -> str:
    with pytest.raises(ValidationError) as exc_info:
        validate_profile(profile, min_length)
    return exc_info.value.field


def test_valid_profile_passes(draft):
    """Test that a complete profile raises nothing."""
    validate_profile(draft)


@pytest.mark.parametrize("field", ["first_name", "last_name", "email", "password"])
def test_required_fields(draft, field):
    """Test that each required field is enforced."""
    assert failing_field(replace(draft, **{field: "  "})) == field


def test_invalid_email(draft):
    """Test that an address without a domain is rejected."""
    assert failing_field(replace(draft, email="noura@localhost")) == "email"


def test_gender_required(draft):
    """Test that gender is enforced."""
    assert failing_field(replace(draft, gender="")) == "gender"


@pytest.mark.parametrize("value", ["", "12/04/1990", "2999-01-01"])
def test_date_of_birth(draft, value):
    """Test missing, malformed and future birth dates."""
    assert failing_field(replace(draft, date_of_birth=value)) == "date_of_birth"


def test_nationality_required(draft):
    """Test that nationality is enforced."""
    assert failing_field(replace(draft, nationality="")) == "nationality"


def test_medical_record_number_or_national_id(draft):
    """Test that one identity document is required and either one suffices."""
    assert failing_field(replace(draft, national_id="")) == "national_id"
    validate_profile(replace(draft, national_id="", medical_record_number="MRN-42"))


def test_password_mismatch(draft):
    """Test that the confirmation must match."""
    assert failing_field(replace(draft, confirm_password="different1")) == "confirm_password"


def test_password_length(draft):
    """Test the minimum password length."""
    short = replace(draft, password="short", confirm_password="short")

    assert failing_field(short) == "password"
    validate_profile(short, min_password_length=5)


def test_first_failing_rule_wins(draft):
    """Test that rules are checked in form order."""
    broken = replace(draft, gender="", nationality="", password="a", confirm_password="b")

    with pytest.raises(ValidationError) as exc_info:
        validate_profile(broken)

    assert exc_info.value.field == "gender"
    assert exc_info.value.message == "Please select your gender"


def test_registration_payload_omits_empty_optional_fields(draft):
    """Test the collaborator payload shape."""
    payload = replace(draft, middle_name="  ", address="King Fahd Rd").to_registration_payload()

    assert payload["password_confirmation"] == "s3cretpass"
    assert payload["national_id"] == "1234567890"
    assert payload["address"] == "King Fahd Rd"
    assert "middle_name" not in payload
    assert "medical_record_number" not in payload
    assert "confirm_password" not in payload


def test_update_sets_known_fields():
    """Test bulk update of the draft."""
    draft = ProfileDraft()

    draft.update(first_name="Ali", middle_name=None)

    assert draft.first_name == "Ali"
    assert draft.middle_name == ""


def test_update_rejects_unknown_fields():
    """Test that typos in field names are reported."""
    with pytest.raises(ValidationError) as exc_info:
        ProfileDraft().update(frist_name="Ali")

    assert exc_info.value.field == "frist_name"
