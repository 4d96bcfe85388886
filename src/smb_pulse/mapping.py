# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Column mapping utilities for SMB Pulse.

A column mapping tells the engine which CSV columns hold the semantic fields
it knows about:

- revenue  (required): gross value of the transaction,
- profit   (optional): observed profit of the transaction,
- region   (optional): grouping key for the regional breakdown,
- category (optional): grouping key for the category breakdown,
- quantity (optional): units sold (carried, not aggregated),
- date     (optional): transaction date (carried, not aggregated).

The mapping is a fixed-shape record rather than a free dictionary, so only
recognized semantic fields can ever be addressed.

This module exposes:
- ColumnMapping:       the mapping record and its dict conversions,
- auto_detect_mapping: a keyword-based guess from CSV headers, used to
                       pre-fill the mapping step.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields
from typing import Any, Optional

from .errors import MissingRevenueMappingError

# Keyword patterns used by auto-detection, English and Indonesian. Order
# matters: the first pattern found in any header wins.
REVENUE_PATTERNS: tuple[str, ...] = (
    "sales",
    "revenue",
    "omset",
    "penjualan",
    "total",
    "amount",
    "price",
)
PROFIT_PATTERNS: tuple[str, ...] = ("profit", "laba", "keuntungan", "margin", "net")
REGION_PATTERNS: tuple[str, ...] = (
    "region",
    "wilayah",
    "area",
    "location",
    "lokasi",
    "kota",
    "city",
)
CATEGORY_PATTERNS: tuple[str, ...] = (
    "category",
    "kategori",
    "type",
    "jenis",
    "product",
    "produk",
)


@dataclass(frozen=True)
class ColumnMapping:
    """Mapping from semantic fields to CSV column names.

    Attributes:
        revenue: Column holding the transaction revenue (required).
        profit: Column holding the observed profit, if any.
        region: Column used for the regional breakdown, if any.
        category: Column used for the category breakdown, if any.
        quantity: Column holding quantities, if any.
        date: Column holding transaction dates, if any.
    """

    revenue: str
    profit: Optional[str] = None
    region: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ColumnMapping":
        """Build a mapping from a JSON-like dictionary.

        Empty strings are treated as "not mapped".

        Raises:
            MissingRevenueMappingError: if 'revenue' is missing or blank.
            ValueError: if the dictionary contains unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown column mapping field(s): {', '.join(unknown)}. "
                f"Expected a subset of: {', '.join(sorted(known))}."
            )

        revenue = data.get("revenue")
        if revenue is None or not str(revenue).strip():
            raise MissingRevenueMappingError()

        def _optional(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None or not str(value).strip():
                return None
            return str(value)

        return cls(
            revenue=str(revenue),
            profit=_optional("profit"),
            region=_optional("region"),
            category=_optional("category"),
            quantity=_optional("quantity"),
            date=_optional("date"),
        )

    def to_dict(self) -> dict[str, str]:
        """Return the mapped fields only, as a plain dictionary."""
        out: dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value:
                out[f.name] = value
        return out

    def mapped_columns(self) -> list[str]:
        """Columns checked for missing values: revenue, profit, region, category."""
        candidates = (self.revenue, self.profit, self.region, self.category)
        return [c for c in candidates if c]


def _first_match(
    headers: Sequence[str], lower_headers: Sequence[str], patterns: Sequence[str]
) -> Optional[str]:
    for pattern in patterns:
        for header, lower in zip(headers, lower_headers):
            if pattern in lower:
                return header
    return None


def auto_detect_mapping(headers: Sequence[str]) -> dict[str, str]:
    """Guess a column mapping from CSV headers.

    Each semantic field takes the first header containing one of its keyword
    patterns, patterns being tried in order. The result only contains the
    fields that were detected and may lack 'revenue'; it is a suggestion to
    be confirmed by the user, not a ColumnMapping.

    Examples:
        ["Tanggal", "Omset", "Laba", "Kota"] →
            {"revenue": "Omset", "profit": "Laba", "region": "Kota"}
    """
    lower_headers = [h.lower() for h in headers]
    detected: dict[str, str] = {}

    for key, patterns in (
        ("revenue", REVENUE_PATTERNS),
        ("profit", PROFIT_PATTERNS),
        ("region", REGION_PATTERNS),
        ("category", CATEGORY_PATTERNS),
    ):
        header = _first_match(headers, lower_headers, patterns)
        if header is not None:
            detected[key] = header

    return detected
