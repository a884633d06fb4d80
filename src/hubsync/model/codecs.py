"""Decode/encode helpers shared by the entity adapters.

Decoders take the raw HubSpot value (``str`` or None when absent) and must
never raise on absence. Encoders produce the string HubSpot stores; an
absent value encodes as the empty string.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import Enum
from typing import TypeVar

from src.hubsync.entities.errors import ConfigurationMappingError

T = TypeVar("T", bound=Enum)


def optional_str(value: str | None) -> str | None:
    return value or None


def str_or_empty(value: str | None) -> str:
    return value or ""


def trimmed_or_none(value: str | None) -> str | None:
    return (value or "").strip() or None


def encode_trimmed(value: str | None) -> str:
    return (value or "").strip()


def split_set(value: str | None) -> set[str]:
    """Decode a semicolon-joined multi-select value into a set."""
    if not value:
        return set()
    return {item for item in value.split(";") if item}


def join_set(values: Iterable[str]) -> str:
    """Encode a set as a semicolon-joined string, sorted so equal sets encode equally."""
    return ";".join(sorted(values))


def parse_int(value: str | None) -> int | None:
    """Decode a whole number, tolerating surrounding blanks and a decimal form like "7.0"."""
    number = parse_float(value)
    return None if number is None else round(number)


def format_int(value: int | None) -> str:
    return "" if value is None else str(value)


def parse_float(value: str | None) -> float | None:
    """Decode a number. Values that are not finite numbers decode as None."""
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def format_number(value: float | None) -> str:
    """Encode a number without a trailing ``.0`` for whole values."""
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def is_non_blank(value: str | None) -> bool:
    return bool(value)


def is_non_zero_number(value: str | None) -> bool:
    try:
        return float(value or "") > 0
    except ValueError:
        return False


def enum_from_value(mapping: dict[T, str], api_value: str | None) -> T:
    """Find the enum member configured to ``api_value``.

    Raises:
        ConfigurationMappingError: If no member is configured to that value.
    """
    for member, configured in mapping.items():
        if configured == api_value:
            return member
    raise ConfigurationMappingError(mapping, api_value)
