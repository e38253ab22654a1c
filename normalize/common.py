"""
normalize.common
----------------
Low-level helpers shared by the assignment/session normalizers and the
position map builders.
All helpers are pure (no I/O) and should never raise on bad input.
"""

from __future__ import annotations
import math
import re
from decimal import Decimal
from typing import Any, Iterable

# Largest integer a JSON consumer can hold without losing precision.
MAX_SAFE_INTEGER = 2**53 - 1


# Numeric text as a JSON/JS consumer reads it: ASCII digits only, no underscores.
_DECIMAL_RX = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX_RX = re.compile(r"0[xXoObB][0-9a-fA-F]+")


def _safe_int(n: int) -> int | None:
    return n if -MAX_SAFE_INTEGER <= n <= MAX_SAFE_INTEGER else None


def _from_float(f: float) -> int | float | None:
    if not math.isfinite(f):
        return None
    if f.is_integer() and _safe_int(int(f)) is not None:
        return int(f)
    return f


def _from_text(txt: str) -> int | float | None:
    if _RADIX_RX.fullmatch(txt):
        try:
            n = int(txt, 0)
        except ValueError:
            return None
        if _safe_int(n) is not None:
            return n
        try:
            return _from_float(float(n))
        except OverflowError:
            return None
    if not _DECIMAL_RX.fullmatch(txt):
        return None
    return _from_float(float(txt))


def normalize_numeric_id(value: Any) -> int | float | None:
    """
    Coerce an id-like value into a number, else None.
    Examples:
      " 12 "      -> 12
      12.5        -> 12.5
      2**53       -> None   (int outside the safe integer range)
      "1e20"      -> 1e+20  (finite numeric text is kept as a float)
      "1_000"     -> None
      "abc", True -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _safe_int(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        return _safe_int(int(value)) if value == value.to_integral_value() else float(value)
    if isinstance(value, str):
        txt = value.strip()
        if not txt:
            return None
        return _from_text(txt)
    return None


def trim_or_null(value: Any) -> Any:
    """Trim strings (empty -> None). Anything else is returned unchanged."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


def normalize_text(value: Any) -> str | None:
    """Stringify and trim. Returns None if empty."""
    if value is None:
        return None
    return str(value).strip() or None


def first_of(record: Any, keys: Iterable[str]) -> Any:
    """Return the first value in `record` under `keys` that is not None."""
    if not isinstance(record, dict):
        return None
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def collect_unique(values: Iterable[Any]) -> list:
    """Ordered de-duplication; None values are dropped."""
    out = []
    for v in values:
        if v is None or v in out:
            continue
        out.append(v)
    return out
