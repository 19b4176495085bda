"""
Mandatory-field validation for form submissions and CSV uploads
"""
from typing import Iterable, Mapping, Tuple

from crm.errors import ValidationError

INSURANCE_REQUIRED_FIELDS = [
    'name',
    'phone_number',
    'member_id'
]

INBOUND_REQUIRED_FIELDS = [
    'appointment_number',
    'appointment_date',
    'type',
    'dob',
    'phone',
    'address',
    'insurance_policy'
]


def is_blank(value) -> bool:
    """None and whitespace-only strings are blank. False and 0 are values."""
    if value is None:
        return True
    if isinstance(value, str):
        return len(value.strip()) == 0
    return False


def validate_required(payload: Mapping, required_fields: Iterable[str]) -> Tuple[bool, str]:
    """
    Check that every required field is present and non-empty.

    Returns:
        Tuple[bool, str]: (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if is_blank(payload.get(field))]
    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"
    return True, ""


def validate_partial(payload: Mapping, required_fields: Iterable[str]) -> Tuple[bool, str]:
    """
    Check a partial update: omitted fields are fine, present ones must be non-empty.

    Returns:
        Tuple[bool, str]: (is_valid, error_message)
    """
    emptied = [field for field in required_fields if field in payload and is_blank(payload[field])]
    if emptied:
        return False, f"Required fields cannot be empty: {', '.join(emptied)}"
    return True, ""


def require_fields(payload: Mapping, required_fields: Iterable[str]) -> None:
    is_valid, error = validate_required(payload, required_fields)
    if not is_valid:
        raise ValidationError(error)


def require_non_empty(payload: Mapping, required_fields: Iterable[str]) -> None:
    is_valid, error = validate_partial(payload, required_fields)
    if not is_valid:
        raise ValidationError(error)
