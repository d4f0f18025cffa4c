from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} wajib diisi")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} minimal {min_len} karakter")
    return value


def require_email(value: str) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Format email tidak valid")
    return email


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def to_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field_name} harus berupa angka")
    # NaN and Infinity parse but cannot be compared or stored
    if not number.is_finite():
        raise ValidationError(f"{field_name} harus berupa angka")
    return number


def require_non_negative(value: Any, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} tidak boleh negatif")
    return amount


def optional_non_negative(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_non_negative(value, field_name)


def require_percentage(value: Any, field_name: str) -> Decimal:
    pct = to_decimal(value, field_name)
    if pct < 0 or pct > 100:
        raise ValidationError(f"{field_name} harus antara 0 dan 100")
    return pct


def optional_percentage(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_percentage(value, field_name)


def require_int_in_range(value: Any, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} harus berupa bilangan bulat")
    if number < low or number > high:
        raise ValidationError(f"{field_name} harus antara {low} dan {high}")
    return number
