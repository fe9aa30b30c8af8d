"""Defensive readers for loosely-typed plan and candidate records."""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, Iterable, List

_PRICE_TOKEN = re.compile(r"^\$+$")


def is_record(value: Any) -> bool:
    return isinstance(value, Mapping)


def read_string(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def read_category_like(value: Any) -> str:
    """Return a trimmed, lower-cased token or an empty string."""
    return value.strip().lower() if isinstance(value, str) else ""


def read_string_array(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    out: List[str] = []
    seen = set()
    for entry in value:
        normalized = read_category_like(entry)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        out.append(normalized)
    return out


def read_numeric_value(value: Any) -> float | None:
    """Coerce numbers, numeric strings and ``$``-price tokens to a float.

    ``"$$$"`` reads as ``3``. Booleans, blanks and non-finite results are
    treated as absent, as are integers too large for a float.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            return None
        return parsed if math.isfinite(parsed) else None
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if _PRICE_TOKEN.match(trimmed):
        return float(len(trimmed))
    # Digit separators are a Python literal spelling, not a data format.
    if "_" in trimmed:
        return None
    try:
        parsed = float(trimmed)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def read_metric(record: Any, keys: Iterable[str]) -> float | None:
    if not is_record(record):
        return None
    for key in keys:
        value = read_numeric_value(record.get(key))
        if value is not None:
            return value
    return None


def unique_tokens(*groups: Iterable[str]) -> List[str]:
    """Flatten token groups, dropping blanks and repeats in first-seen order."""
    out: List[str] = []
    seen = set()
    for group in groups:
        for token in group:
            if not token or token in seen:
                continue
            seen.add(token)
            out.append(token)
    return out
