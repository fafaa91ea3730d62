"""Shared input helpers used by services and blueprints.

parse_date_input:   ISO date or date object → date (raises ValidationError)
normalize_contact:  WhatsApp number → "+<digits>" or None
clean_name:         trimmed, length-checked display name
"""
import re
from datetime import date, datetime

from tilawah.core.exceptions import ValidationError

_CONTACT_STRIP = re.compile(r"[^\d+]")
_CONTACT_VALID = re.compile(r"^\+\d{10,15}$")

MAX_NAME_LENGTH = 255


def parse_date_input(value, field="start_date"):
    """Parse an ISO date (YYYY-MM-DD) or datetime string into a date.

    ``date`` objects pass through unchanged; ``datetime`` objects are
    truncated to their date part.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        raise ValidationError(f"{field} is required", details={field: "required"})
    try:
        return date.fromisoformat(value)
    except ValueError:
        try:
            return datetime.fromisoformat(value).date()
        except ValueError as exc:
            raise ValidationError(
                "Invalid date format. Use YYYY-MM-DD.",
                details={field: value},
            ) from exc


def normalize_contact(value):
    """Normalise a WhatsApp number to ``+<digits>``.

    Everything except digits and ``+`` is stripped and a leading ``+`` is
    added when missing. Empty input clears the contact (returns None).
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("contact must be a string", details={"contact": value})
    cleaned = _CONTACT_STRIP.sub("", value.strip())
    if not cleaned:
        return None
    if not cleaned.startswith("+"):
        cleaned = "+" + cleaned
    if not _CONTACT_VALID.match(cleaned):
        raise ValidationError(
            "Invalid WhatsApp number (example: +6281234567890)",
            details={"contact": value},
        )
    return cleaned


def clean_name(value, *, label="Name", min_length=1):
    """Return the trimmed name or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required", details={"name": "required"})
    name = value.strip()
    if len(name) < min_length:
        raise ValidationError(
            f"{label} must be at least {min_length} characters",
            details={"name": name},
        )
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"{label} must be at most {MAX_NAME_LENGTH} characters",
            details={"name": "too long"},
        )
    return name
