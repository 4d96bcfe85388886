# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Validation pipeline run before the metrics engine.

The engine itself only rejects structurally broken calls (no rows, no
revenue column). This module performs the fuller pre-flight checks that the
upload flow runs first, and reports problems as a ``ValidationResult``:

- errors:   blocking problems; ``is_valid`` is False when any exist,
- warnings: non-blocking remarks with an optional suggestion.

Checks
------
validate_structure(headers, mapping)
    Headers present, at least two columns, mapped columns exist.

validate_numeric_fields(rows, mapping)
    Share of empty / unparseable, negative and zero revenue cells.

validate_data_quality(rows, headers)
    Row count, duplicate headers, mostly empty columns.

validate_all(rows, headers, mapping)
    All of the above, combined.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from .mapping import ColumnMapping
from .models import Row
from .numeric import parse_leading_float

# Thresholds
HIGH_INVALID_RATE_PCT = 50.0
MANY_ZERO_VALUES_RATIO = 0.1
SMALL_DATASET_ROWS = 10
MOSTLY_EMPTY_COLUMN_PCT = 80.0

# Revenue cells are read strictly here: anything but digits, dot and minus
# is dropped before parsing.
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation error or warning."""

    code: str
    message: str
    field: Optional[str] = None
    row: Optional[int] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.row is not None:
            out["row"] = self.row
        if self.suggestion is not None:
            out["suggestion"] = self.suggestion
        return out


@dataclass
class ValidationResult:
    """Outcome of one or several validation steps."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Return a new result holding the issues of both results."""
        return ValidationResult(
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )

    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]

    def warning_codes(self) -> list[str]:
        return [w.code for w in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def _parse_revenue(value: Any) -> Optional[float]:
    return parse_leading_float(_NON_NUMERIC_RE.sub("", str(value)))


def validate_structure(
    headers: Sequence[str], mapping: ColumnMapping
) -> ValidationResult:
    """Check that the CSV has headers and that mapped columns exist."""
    result = ValidationResult()

    if not headers:
        result.errors.append(
            ValidationIssue(code="NO_HEADERS", message="CSV file has no headers")
        )
        return result

    if len(headers) < 2:
        result.errors.append(
            ValidationIssue(
                code="INSUFFICIENT_COLUMNS",
                message="CSV must have at least 2 columns",
            )
        )

    if not mapping.revenue:
        result.errors.append(
            ValidationIssue(
                code="NO_REVENUE_MAPPING", message="Revenue column must be mapped"
            )
        )
    elif mapping.revenue not in headers:
        result.errors.append(
            ValidationIssue(
                code="REVENUE_COLUMN_MISSING",
                message=f'Revenue column "{mapping.revenue}" not found in CSV',
                field=mapping.revenue,
            )
        )

    if mapping.profit and mapping.profit not in headers:
        result.errors.append(
            ValidationIssue(
                code="PROFIT_COLUMN_MISSING",
                message=f'Profit column "{mapping.profit}" not found in CSV',
                field=mapping.profit,
            )
        )

    if mapping.region and mapping.region not in headers:
        result.warnings.append(
            ValidationIssue(
                code="REGION_COLUMN_MISSING",
                message=f'Region column "{mapping.region}" not found',
                field=mapping.region,
                suggestion="Regional analysis will be skipped",
            )
        )

    if mapping.category and mapping.category not in headers:
        result.warnings.append(
            ValidationIssue(
                code="CATEGORY_COLUMN_MISSING",
                message=f'Category column "{mapping.category}" not found',
                field=mapping.category,
                suggestion="Category analysis will be skipped",
            )
        )

    if not mapping.profit:
        result.warnings.append(
            ValidationIssue(
                code="NO_PROFIT_COLUMN",
                message="No profit column mapped",
                suggestion=(
                    "Profit will be estimated using industry averages "
                    "(less accurate)"
                ),
            )
        )

    return result


def validate_numeric_fields(
    rows: Sequence[Row], mapping: ColumnMapping
) -> ValidationResult:
    """Check the revenue column for empty, negative and zero values."""
    result = ValidationResult()
    if not rows:
        return result

    invalid_count = 0
    negative_count = 0
    zero_count = 0

    for row in rows:
        raw = row.get(mapping.revenue)
        if raw is None or str(raw).strip() == "":
            invalid_count += 1
            continue

        revenue = _parse_revenue(raw)
        if revenue is None:
            invalid_count += 1
        elif revenue < 0:
            negative_count += 1
        elif revenue == 0:
            zero_count += 1

    total = len(rows)
    invalid_pct = invalid_count / total * 100

    if invalid_pct > HIGH_INVALID_RATE_PCT:
        result.errors.append(
            ValidationIssue(
                code="HIGH_INVALID_RATE",
                message=(
                    f"{invalid_pct:.1f}% of revenue values are invalid or empty"
                ),
                field=mapping.revenue,
            )
        )
    elif invalid_count > 0:
        result.warnings.append(
            ValidationIssue(
                code="SOME_INVALID_VALUES",
                message=f"{invalid_count} rows have invalid revenue values",
                field=mapping.revenue,
                suggestion="These rows will be treated as zero revenue",
            )
        )

    if negative_count > 0:
        result.warnings.append(
            ValidationIssue(
                code="NEGATIVE_VALUES",
                message=(
                    f"{negative_count} rows have negative revenue "
                    "(returns/refunds?)"
                ),
                field=mapping.revenue,
                suggestion="Consider if these should be excluded from analysis",
            )
        )

    if zero_count > total * MANY_ZERO_VALUES_RATIO:
        result.warnings.append(
            ValidationIssue(
                code="MANY_ZERO_VALUES",
                message=(
                    f"{zero_count} rows have zero revenue "
                    f"({zero_count / total * 100:.1f}%)"
                ),
                field=mapping.revenue,
                suggestion="This may indicate data quality issues",
            )
        )

    return result


def validate_data_quality(
    rows: Sequence[Row], headers: Sequence[str]
) -> ValidationResult:
    """Check row count, duplicate headers and mostly empty columns."""
    result = ValidationResult()

    if not rows:
        result.errors.append(
            ValidationIssue(code="NO_DATA", message="CSV file contains no data rows")
        )
        return result

    if len(rows) < SMALL_DATASET_ROWS:
        result.warnings.append(
            ValidationIssue(
                code="SMALL_DATASET",
                message=(
                    f"Only {len(rows)} rows - analysis may not be "
                    "statistically significant"
                ),
                suggestion="Consider using more data for reliable insights",
            )
        )

    if len(set(headers)) != len(headers):
        result.warnings.append(
            ValidationIssue(
                code="DUPLICATE_HEADERS",
                message="CSV contains duplicate column names",
                suggestion="This may cause mapping issues",
            )
        )

    for header in dict.fromkeys(headers):
        non_empty = sum(
            1 for r in rows if r.get(header) and str(r.get(header)).strip() != ""
        )
        empty_pct = (len(rows) - non_empty) / len(rows) * 100
        if empty_pct > MOSTLY_EMPTY_COLUMN_PCT:
            result.warnings.append(
                ValidationIssue(
                    code="MOSTLY_EMPTY_COLUMN",
                    message=f'Column "{header}" is {empty_pct:.0f}% empty',
                    field=header,
                    suggestion="Consider if this column is needed for analysis",
                )
            )

    return result


def validate_all(
    rows: Sequence[Row], headers: Sequence[str], mapping: ColumnMapping
) -> ValidationResult:
    """Run the full validation pipeline.

    The metrics engine must only be invoked when ``is_valid`` is True.
    """
    return (
        validate_structure(headers, mapping)
        .merge(validate_numeric_fields(rows, mapping))
        .merge(validate_data_quality(rows, headers))
    )
