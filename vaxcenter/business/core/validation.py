"""
Input checks shared by the managers.

Everything here raises ValidationError before any state is read or written.
"""

from __future__ import annotations

from datetime import date, datetime

from vaxcenter.business.core.errors import ValidationError


def _is_int(value) -> bool:
    # bool is an int subclass; True must not pass as a quantity of 1
    return isinstance(value, int) and not isinstance(value, bool)


def positive_int(value, field: str) -> int:
    if not _is_int(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive whole number", field=field, value=value)
    return value


def non_negative_int(value, field: str) -> int:
    if not _is_int(value) or value < 0:
        raise ValidationError(f"{field} must be zero or a positive whole number", field=field, value=value)
    return value


def required_text(value, field: str, min_length: int = 1) -> str:
    if not isinstance(value, str) or len(value.strip()) < min_length:
        if min_length > 1:
            raise ValidationError(f"{field} must be at least {min_length} characters", field=field)
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def optional_text(value, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text", field=field)
    return value.strip() or None


def choice(value, field: str, allowed) -> str:
    if value not in allowed:
        raise ValidationError(
            f"{field} must be one of: {', '.join(allowed)}",
            field=field,
            value=value,
        )
    return value


def calendar_date(value, field: str) -> date:
    """Accept a date, a datetime (time-of-day dropped) or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", field=field, value=value)


def optional_date(value, field: str) -> date | None:
    if value in (None, ""):
        return None
    return calendar_date(value, field)


def entity_id(value, field: str) -> int:
    """Ids arrive as ints from Python callers and as digit strings from URLs or JSON."""
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    return positive_int(value, field)


def email_address(value, field: str = "email") -> str:
    text = required_text(value, field)
    local, _, domain = text.partition("@")
    if not local or "." not in domain or " " in text or domain.startswith(".") or domain.endswith("."):
        raise ValidationError(f"{field} must be a valid email address", field=field)
    return text.lower()
