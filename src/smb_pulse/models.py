# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Result structures produced by the SMB Pulse engine.

All structures are frozen dataclasses created fresh for every calculation;
nothing is cached or mutated after creation.

Each structure provides ``to_dict()`` returning the JSON payload consumed by
the web front-end, PDF export and the narrative generator. Payload keys use
camelCase (``totalRevenue``, ``validRows``...) while Python attributes use
snake_case.

Structures
----------
- Severity:      low / medium / high level of an anomaly.
- Anomaly:       one flagged row-level irregularity.
- DataQuality:   valid / invalid row counts and the 0–100 quality score.
- GroupMetrics:  aggregates of one region or category bucket.
- DataMetrics:   the complete calculation result.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

Row = Mapping[str, str]

# Bucket receiving rows whose grouping cell is blank or missing.
UNKNOWN_GROUP = "Unknown"


class Severity(str, Enum):
    """Severity level attached to an anomaly."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Anomaly:
    """
    A flagged row-level irregularity.

    Attributes:
        row: 1-based index of the row in the uploaded file (header excluded).
        field: Column name the anomaly refers to.
        value: Offending value, rendered as text.
        issue: Human-readable description.
        severity: Severity level.
    """

    row: int
    field: str
    value: str
    issue: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "field": self.field,
            "value": self.value,
            "issue": self.issue,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class DataQuality:
    """
    Data quality summary.

    Invariant: ``valid_rows + invalid_rows`` equals the number of rows.
    """

    valid_rows: int
    invalid_rows: int
    missing_values: int
    quality_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "missingValues": self.missing_values,
            "qualityScore": self.quality_score,
        }


@dataclass(frozen=True)
class GroupMetrics:
    """Aggregates for one region or category bucket."""

    count: int
    total_revenue: float
    total_profit: float
    avg_transaction: float
    profit_margin: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "totalRevenue": self.total_revenue,
            "totalProfit": self.total_profit,
            "avgTransaction": self.avg_transaction,
            "profitMargin": self.profit_margin,
        }


@dataclass(frozen=True)
class DataMetrics:
    """
    Complete result of a metrics calculation.

    Attributes
    ----------
    total_revenue, total_profit :
        Sums over all rows. Profit is observed when a profit column is
        mapped, estimated from the sector cost model otherwise.
    transaction_count, avg_transaction_value :
        Number of rows and mean revenue per row.
    profit_margin :
        ``total_profit / total_revenue * 100`` (0 without revenue).
    gross_profit, estimated_monthly_cogs, estimated_monthly_opex, net_margin :
        Modeled cost structure, always derived from the sector COGS ratio and
        the OpEx ratio, even when real profit is known.
    by_region, by_category :
        Group breakdowns keyed by cell value, empty when not mapped.
    confidence :
        0–100 trust score.
    data_quality :
        Row validity summary.
    anomalies :
        Flagged irregularities in detection order.
    """

    total_revenue: float
    total_profit: float
    transaction_count: int
    avg_transaction_value: float
    profit_margin: float
    gross_profit: float
    estimated_monthly_cogs: float
    estimated_monthly_opex: float
    net_margin: float
    by_region: dict[str, GroupMetrics]
    by_category: dict[str, GroupMetrics]
    confidence: int
    data_quality: DataQuality
    anomalies: tuple[Anomaly, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRevenue": self.total_revenue,
            "totalProfit": self.total_profit,
            "transactionCount": self.transaction_count,
            "avgTransactionValue": self.avg_transaction_value,
            "profitMargin": self.profit_margin,
            "grossProfit": self.gross_profit,
            "estimatedMonthlyCOGS": self.estimated_monthly_cogs,
            "estimatedMonthlyOpEx": self.estimated_monthly_opex,
            "netMargin": self.net_margin,
            "byRegion": {k: v.to_dict() for k, v in self.by_region.items()},
            "byCategory": {k: v.to_dict() for k, v in self.by_category.items()},
            "confidence": self.confidence,
            "dataQuality": self.data_quality.to_dict(),
            "anomalies": [a.to_dict() for a in self.anomalies],
        }
