from __future__ import annotations

import re
import unicodedata

from ..core.exceptions import ValidationError

# Số điện thoại Việt Nam: 10 chữ số, bắt đầu bằng 0
_PHONE_RE = re.compile(r"^0[0-9]{9}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]{3,50}$")
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} không hợp lệ")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} tối thiểu {min_len} ký tự")
    return value


def is_valid_phone(phone: str | None) -> bool:
    if not phone or not phone.strip():
        return True
    return bool(_PHONE_RE.match(phone.strip()))


def is_valid_email(email: str | None) -> bool:
    if not email or len(email) > 255:
        return False
    return bool(_EMAIL_RE.match(email.strip()))


def is_valid_name(name: str | None) -> bool:
    """2-100 characters; letters, spaces, hyphens and apostrophes only."""
    value = (name or "").strip()
    if len(value) < 2 or len(value) > 100:
        return False
    return all(ch.isalpha() or unicodedata.category(ch).startswith("M") or ch in " '-" for ch in value)


def is_valid_username(username: str | None) -> bool:
    if not username:
        return True
    return bool(_USERNAME_RE.match(username))


def sanitize_csv_field(value: str) -> str:
    """Escape values a spreadsheet would evaluate as a formula."""
    if value and value.startswith(_FORMULA_PREFIXES):
        return "'" + value
    return value
