"""Shared validation utilities"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..config import MAX_DURATION_MINUTES, MIN_DURATION_MINUTES, PHONE_DEFAULT_COUNTRY
from .errors import ValidationError

COUNTRY_CALLING_CODES = {
    "FR": "33",
    "BE": "32",
}


def normalize_phone(phone: Optional[str], country: Optional[str] = None) -> Optional[str]:
    """
    Best-effort normalisation of a phone number to E.164.

    Examples (FR):
        "06 12 34 56 78" -> "+33612345678"
        "0612345678"     -> "+33612345678"
        "0033612345678"  -> "+33612345678"
        "+33612345678"   -> "+33612345678"

    Args:
        phone: Raw phone number as typed by a customer or staff member
        country: FR or BE, defaults to PHONE_DEFAULT_COUNTRY

    Returns:
        Normalised number, the digits unchanged when no rule applies,
        or None for empty input
    """
    if phone is None:
        return None

    raw = phone.strip()
    if not raw:
        return None

    digits = re.sub(r"\D", "", raw)
    if raw.startswith("+"):
        return f"+{digits}" if digits else None
    if not digits:
        return None

    if digits.startswith("00"):
        return f"+{digits[2:]}"

    calling_code = COUNTRY_CALLING_CODES.get((country or PHONE_DEFAULT_COUNTRY).upper())
    if calling_code is None:
        return digits

    # Local format with trunk prefix: 0XXXXXXXXX
    if digits.startswith("0") and len(digits) == 10:
        return f"+{calling_code}{digits[1:]}"

    # Country code typed without the plus
    if digits.startswith(calling_code) and len(digits) >= 11:
        return f"+{digits}"

    # SMS delivery may fail for anything else; that is tolerated downstream
    return digits


def validate_duration(minutes: Optional[int]) -> int:
    if minutes is None:
        raise ValidationError("Duration is required")
    if minutes < MIN_DURATION_MINUTES or minutes > MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
        )
    return minutes


def validate_future_start(start_time: Optional[datetime], now: datetime) -> datetime:
    """Start time must be timezone-aware and strictly after now"""
    if start_time is None:
        raise ValidationError("Start time is required")
    if start_time.tzinfo is None:
        raise ValidationError("Start time must include a timezone")
    if start_time <= now:
        raise ValidationError("Appointment must start in the future")
    return start_time


def validate_window(start_time: datetime, end_time: datetime) -> None:
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")


def validate_price(price: Optional[Decimal]) -> Optional[Decimal]:
    if price is not None and price < 0:
        raise ValidationError("Price must not be negative")
    return price


def require_non_blank(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def trim_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
