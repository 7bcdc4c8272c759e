from datetime import date

from marshmallow import ValidationError


def looks_like_email(raw: str) -> bool:
    """Exactly one '@' with something on both sides."""
    if not isinstance(raw, str) or raw.count("@") != 1:
        return False
    local, domain = raw.split("@")
    return bool(local) and bool(domain)


def validate_email(raw: str) -> None:
    if not looks_like_email(raw):
        raise ValidationError("Email address invalid.")


def validate_not_blank(value: str) -> None:
    if value is None or not value.strip():
        raise ValidationError("Must not be blank.")


def validate_not_future(d: date) -> None:
    if d and d > date.today():
        raise ValidationError("Date cannot be in the future.")


def parse_enum(enum_cls, raw: str, field_name: str):
    """Map a case-insensitive string onto `enum_cls` or raise ValidationError."""
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        allowed = [m.value for m in enum_cls]
        raise ValidationError(f"{field_name} must be one of {allowed}")
