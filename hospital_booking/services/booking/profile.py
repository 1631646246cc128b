"""Patient registration profile and its validation rules."""

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...core.exceptions import ValidationError


@dataclass
class ProfileDraft:
    """Registration form as typed by the patient."""

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    gender: str = ""
    date_of_birth: str = ""
    marital_status: str = ""
    nationality: str = ""
    religion: str = ""
    medical_record_number: str = ""
    national_id: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    confirm_password: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def update(self, **values: Any) -> None:
        """
        Set several fields at once.

        Raises:
            ValidationError: If a name is not a profile field
        """
        known = set(self.field_names())
        for name, value in values.items():
            if name not in known:
                raise ValidationError(f"Unknown profile field '{name}'", field=name)
            setattr(self, name, "" if value is None else str(value))

    def to_registration_payload(self) -> Dict[str, Any]:
        """Build the identity service payload, omitting empty optional fields."""
        payload: Dict[str, Any] = {
            "email": self.email.strip(),
            "password": self.password,
            "password_confirmation": self.confirm_password,
            "first_name": self.first_name.strip(),
            "last_name": self.last_name.strip(),
            "gender": self.gender,
            "date_of_birth": self.date_of_birth,
            "nationality": self.nationality,
            "phone": self.phone,
        }
        for name in _OPTIONAL_FIELDS:
            value = getattr(self, name).strip()
            if value:
                payload[name] = value
        return payload


_OPTIONAL_FIELDS = (
    "middle_name",
    "marital_status",
    "religion",
    "medical_record_number",
    "national_id",
    "address",
)


def _required(*names: str) -> Callable[[ProfileDraft], Optional[Tuple[str, str]]]:
    def rule(draft: ProfileDraft) -> Optional[Tuple[str, str]]:
        for name in names:
            if not getattr(draft, name).strip():
                return name, "Please fill in all required fields"
        return None

    return rule


def _email_format(draft: ProfileDraft) -> Optional[Tuple[str, str]]:
    local, _, domain = draft.email.strip().partition("@")
    if not local or "." not in domain:
        return "email", "Please enter a valid email address"
    return None


def _date_of_birth(draft: ProfileDraft) -> Optional[Tuple[str, str]]:
    if not draft.date_of_birth.strip():
        return "date_of_birth", "Please enter your date of birth"
    try:
        born = date.fromisoformat(draft.date_of_birth.strip())
    except ValueError:
        return "date_of_birth", "Date of birth must be in YYYY-MM-DD format"
    if born > date.today():
        return "date_of_birth", "Date of birth cannot be in the future"
    return None


def _identity_document(draft: ProfileDraft) -> Optional[Tuple[str, str]]:
    if not (draft.medical_record_number.strip() or draft.national_id.strip()):
        return "national_id", "Please enter either your Medical Record Number or National ID"
    return None


def _passwords_match(draft: ProfileDraft) -> Optional[Tuple[str, str]]:
    if draft.password != draft.confirm_password:
        return "confirm_password", "Passwords do not match"
    return None


def validate_profile(draft: ProfileDraft, min_password_length: int = 8) -> None:
    """
    Check the draft and raise for the first failing rule.

    Rules run in form order: required name/email/password, gender, date of
    birth, nationality, MRN or national id, password confirmation, password
    length.

    Raises:
        ValidationError: With the field name of the first failing rule
    """
    rules: List[Callable[[ProfileDraft], Optional[Tuple[str, str]]]] = [
        _required("first_name", "last_name", "email", "password"),
        _email_format,
        lambda d: None if d.gender.strip() else ("gender", "Please select your gender"),
        _date_of_birth,
        lambda d: (
            None if d.nationality.strip() else ("nationality", "Please select your nationality")
        ),
        _identity_document,
        _passwords_match,
        lambda d: (
            None
            if len(d.password) >= min_password_length
            else ("password", f"Password must be at least {min_password_length} characters")
        ),
    ]
    for rule in rules:
        failure = rule(draft)
        if failure:
            field, message = failure
            raise ValidationError(message, field=field)
