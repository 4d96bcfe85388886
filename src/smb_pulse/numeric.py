# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Numeric normalization of raw CSV cells.

Uploaded files come from spreadsheets, point-of-sale exports and marketplace
reports, so monetary cells often look like ``"Rp 1.250.000"``, ``"$1,299.00"``
or ``" 42 "``. This module turns such a cell into a float.

Rules
-----
1. Currency markers (``Rp`` in any case, ``$``), commas and whitespace are
   removed.
2. The longest leading float literal of the remainder is parsed (optional
   sign, digits, optional fraction, optional exponent). Trailing garbage is
   ignored, so ``"12.5 kg"`` gives ``12.5``.
3. Anything else (empty cell, missing cell, no leading number) gives ``0.0``.

``parse_numeric`` never raises. It does not distinguish an explicit zero
from an unparseable value; callers needing that distinction use
``parse_numeric_checked`` which carries an ``ok`` flag alongside the value.
"""

import math
import re
from dataclasses import dataclass
from typing import Optional

_STRIP_RE = re.compile(r"rp|\$|,|\s", re.IGNORECASE)
_LEADING_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class ParsedNumber:
    """Result of a checked parse.

    Attributes:
        value: Parsed value, 0.0 when parsing failed.
        ok: True when a number was actually read from the cell.
    """

    value: float
    ok: bool


def parse_leading_float(text: str) -> Optional[float]:
    """Read the longest float literal at the start of 'text'.

    Trailing characters are ignored, so "1.250.000" reads as 1.25 and
    "2024-01-05" as 2024. Returns None when no finite number starts the text.
    """
    match = _LEADING_FLOAT_RE.match(text)
    if match is None:
        return None
    value = float(match.group(0))
    # Overflowing literals (e.g. '1e999') are unparseable.
    if not math.isfinite(value):
        return None
    return value


def parse_numeric_checked(raw: Optional[str]) -> ParsedNumber:
    """Parse a raw cell and report whether a number was found."""
    if raw is None:
        return ParsedNumber(0.0, False)

    cleaned = _STRIP_RE.sub("", str(raw))
    if not cleaned:
        return ParsedNumber(0.0, False)

    value = parse_leading_float(cleaned)
    if value is None:
        return ParsedNumber(0.0, False)
    return ParsedNumber(value, True)


def parse_numeric(raw: Optional[str]) -> float:
    """Convert a raw cell into a float, falling back to 0.0.

    Examples:
        "Rp 1,234.56" → 1234.56
        "$ 99"        → 99.0
        "" / None     → 0.0
        "abc"         → 0.0
    """
    return parse_numeric_checked(raw).value


def format_number(value: float) -> str:
    """Render a float the way it is shown in anomaly reports.

    Integral values drop the trailing '.0' ('1500' rather than '1500.0').
    """
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties going towards +infinity.

    Scores are rounded with this convention rather than Python's banker's
    rounding, so 72.5 becomes 73.
    """
    return int(math.floor(value + 0.5))
