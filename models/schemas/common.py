import re
from typing import Optional

from marshmallow import ValidationError, validate

SYRIA_CALLING_CODE = "963"

# National significant numbers: mobiles are 9 + 8 digits, landlines an area
# code (1-5x) followed by 6-7 digits
_SY_MOBILE = re.compile(r"^9\d{8}$")
_SY_LANDLINE = re.compile(r"^[1-5]\d{7,8}$")
_E164 = re.compile(r"^\+[1-9]\d{7,14}$")

_email_validator = validate.Email()


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Return the E.164 form of a phone number (default country Syria), or None
    when it is not a valid number.
    """
    if not raw or not isinstance(raw, str):
        return None
    compact = re.sub(r"[\s\-().]", "", raw.strip())
    if compact.startswith("00"):
        compact = "+" + compact[2:]

    if compact.startswith("+"):
        if not compact.startswith("+" + SYRIA_CALLING_CODE):
            return compact if _E164.match(compact) else None
        national = compact[1 + len(SYRIA_CALLING_CODE):]
    elif compact.startswith(SYRIA_CALLING_CODE) and len(compact) >= 11:
        national = compact[len(SYRIA_CALLING_CODE):]
    elif compact.startswith("0"):
        national = compact[1:]
    else:
        national = compact

    if not national.isdigit():
        return None
    if _SY_MOBILE.match(national) or _SY_LANDLINE.match(national):
        return f"+{SYRIA_CALLING_CODE}{national}"
    return None


def is_valid_phone(raw: Optional[str]) -> bool:
    return normalize_phone(raw) is not None


def is_valid_email(raw: Optional[str]) -> bool:
    if not raw or not isinstance(raw, str):
        return False
    try:
        _email_validator(raw)
    except ValidationError:
        return False
    return True


def normalize_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def validate_phone(value: str) -> None:
    if not is_valid_phone(value):
        raise ValidationError("Please provide a valid Syrian phone number")
