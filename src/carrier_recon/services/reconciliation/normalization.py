"""Normalizers turning carrier-formatted customer data into comparable values."""

from __future__ import annotations

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any

PHONE_SUFFIX_LENGTH = 9
MIN_PHONE_DIGITS = 6
GENERIC_SUFFIX_LENGTH = 8
GENERIC_MIN_DIGITS = 7

_NON_DIGITS = re.compile(r"\D")
_PHONE_PUNCTUATION = re.compile(r"[\s\-().]")
_WHITESPACE = re.compile(r"\s+")
_EXTENSION_MARKERS = (
    re.compile(r"[x#].*$", re.IGNORECASE),
    re.compile(r"ext.*$", re.IGNORECASE),
    re.compile(r"ramal.*$", re.IGNORECASE),
)


def digits_only(raw: str | None) -> str:
    if not raw:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def normalize_phone(raw: str | None) -> str:
    """Return the last nine digits of a phone number, or ``""`` when too short."""

    digits = digits_only(raw)
    if len(digits) < MIN_PHONE_DIGITS:
        return ""
    return digits[-PHONE_SUFFIX_LENGTH:]


def normalize_phone_generic(raw: str | None) -> str:
    """Strip international prefixes and extensions, keeping every remaining digit.

    Used by providers whose markets have 7-8 digit subscriber numbers, so no
    fixed-length truncation happens here.
    """

    if not raw:
        return ""
    normalized = _PHONE_PUNCTUATION.sub("", str(raw))
    if normalized.startswith("+"):
        normalized = normalized[1:]
    if normalized.startswith("00"):
        normalized = normalized[2:]
    elif normalized.startswith("011"):
        normalized = normalized[3:]
    for marker in _EXTENSION_MARKERS:
        normalized = marker.sub("", normalized)
    return digits_only(normalized)


def phones_match(first: str | None, second: str | None) -> bool:
    """Compare two phones tolerating country-code and leading-zero differences."""

    left = normalize_phone_generic(first)
    right = normalize_phone_generic(second)
    if not left or not right:
        return False
    if left == right:
        return True
    if len(left) < GENERIC_MIN_DIGITS or len(right) < GENERIC_MIN_DIGITS:
        return False
    left_suffix = left[-GENERIC_SUFFIX_LENGTH:]
    right_suffix = right[-GENERIC_SUFFIX_LENGTH:]
    return left.endswith(right_suffix) or right.endswith(left_suffix)


def _fold(raw: str | None) -> str:
    if not raw:
        return ""
    decomposed = unicodedata.normalize("NFD", str(raw).lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _WHITESPACE.sub(" ", stripped).strip()


def normalize_name(raw: str | None) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""

    return _fold(raw)


def normalize_city(raw: str | None) -> str:
    return _fold(raw)


def substring_match(first: str, second: str) -> bool:
    """Bidirectional containment between two already-normalized, non-empty values."""

    if not first or not second:
        return False
    return first in second or second in first


def parse_amount(raw: Any) -> Decimal | None:
    """Parse carrier or order monetary values, accepting comma decimals."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))
    text = str(raw).strip().replace(" ", "")
    if not text:
        return None
    if "," in text and ("." not in text or text.rfind(",") > text.rfind(".")):
        # 49,90 or 1.234,50
        text = text.replace(".", "").replace(",", ".")
    else:
        text = text.replace(",", "")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def prices_close(first: Any, second: Any, tolerance: Any = 1) -> bool:
    """Return whether two amounts differ by at most ``tolerance``."""

    left = parse_amount(first)
    right = parse_amount(second)
    limit = parse_amount(tolerance)
    if left is None or right is None or limit is None:
        return False
    return abs(left - right) <= limit


__all__ = [
    "digits_only",
    "normalize_city",
    "normalize_name",
    "normalize_phone",
    "normalize_phone_generic",
    "parse_amount",
    "phones_match",
    "prices_close",
    "substring_match",
]
