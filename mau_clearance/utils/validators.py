"""
Validation utilities
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional
from mau_clearance.models.clearance import SECTIONS, SECTION_STATUSES
from mau_clearance.utils.exceptions import ValidationError


def validate_required(value: Any, field_name: str) -> None:
    """
    Validate required field

    Args:
        value: Value to validate
        field_name: Name of the field for error message

    Raises:
        ValidationError: If value is empty or None
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")


def validate_text(value: Any, field_name: str) -> str:
    """
    Validate a required free-text field

    Returns:
        The stripped text

    Raises:
        ValidationError: If value is missing, blank or not a string
    """
    validate_required(value, field_name)
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip()


def validate_optional_text(value: Any, field_name: str) -> Optional[str]:
    """Like validate_text, but None passes through"""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip()


def validate_section(section: Any) -> str:
    """
    Validate clearance section key

    Raises:
        ValidationError: If section is not one of the known sections
    """
    validate_required(section, "Section")
    key = str(section).strip().lower()
    if key not in SECTIONS:
        raise ValidationError(
            f"Invalid section '{section}'. Expected one of: {', '.join(SECTIONS)}"
        )
    return key


def validate_status(status: Any, allowed: Iterable[str] = SECTION_STATUSES) -> str:
    """
    Validate section status value

    Raises:
        ValidationError: If status is missing or not allowed
    """
    validate_required(status, "Status")
    allowed = tuple(allowed)
    if status not in allowed:
        raise ValidationError(f"Invalid status '{status}'. Expected one of: {', '.join(allowed)}")
    return status


def validate_id_list(ids: Any, field_name: str = "Student IDs") -> List[int]:
    """
    Validate a non-empty list of integer ids

    Raises:
        ValidationError: If the list is empty or holds non-integers
    """
    if not ids or not isinstance(ids, (list, tuple)):
        raise ValidationError(f"{field_name} must be a non-empty list")

    try:
        return [int(value) for value in ids]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must contain integer ids")


def parse_datetime(value: Any, field_name: str) -> datetime:
    """
    Parse an ISO-8601 datetime string

    Args:
        value: Raw value
        field_name: Name of the field for error message

    Returns:
        Naive datetime
    """
    if isinstance(value, datetime):
        return value
    validate_required(value, field_name)
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 date")
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def parse_bool(value: Any, default: Optional[bool] = None) -> Optional[bool]:
    """Interpret JSON/form booleans"""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ['true', 'on', '1', 'yes']
