# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Pulse.

This module transforms engine results into pandas DataFrames ready for
console display (``DataFrame.to_string``) or CSV export. It only shapes
data: no metric is computed here.

The main views are:

- summary:     one line per headline metric (metric, value),
- groups:      one line per region / category bucket,
- anomalies:   one line per flagged anomaly, in detection order,
- validation:  one line per validation error or warning.
"""

from collections.abc import Mapping, Sequence

import pandas as pd

from .models import Anomaly, DataMetrics, GroupMetrics
from .validation import ValidationResult

SUMMARY_LABELS: tuple[tuple[str, str], ...] = (
    ("total_revenue", "Total revenue"),
    ("total_profit", "Total profit"),
    ("transaction_count", "Transactions"),
    ("avg_transaction_value", "Average transaction"),
    ("profit_margin", "Profit margin (%)"),
    ("gross_profit", "Gross profit (modeled)"),
    ("estimated_monthly_cogs", "Estimated COGS"),
    ("estimated_monthly_opex", "Estimated OpEx"),
    ("net_margin", "Net margin (modeled, %)"),
    ("confidence", "Confidence"),
)


def summary_to_dataframe(metrics: DataMetrics, decimals: int = 2) -> pd.DataFrame:
    """Return headline metrics as a two-column (metric, value) DataFrame.

    Data quality figures are appended after the headline metrics.
    """
    records = [
        {"metric": label, "value": round(float(getattr(metrics, attr)), decimals)}
        for attr, label in SUMMARY_LABELS
    ]
    quality = metrics.data_quality
    records.extend(
        [
            {"metric": "Valid rows", "value": float(quality.valid_rows)},
            {"metric": "Invalid rows", "value": float(quality.invalid_rows)},
            {"metric": "Missing values", "value": float(quality.missing_values)},
            {"metric": "Quality score", "value": float(quality.quality_score)},
            {"metric": "Anomalies", "value": float(len(metrics.anomalies))},
        ]
    )
    return pd.DataFrame(records, columns=["metric", "value"])


def groups_to_dataframe(
    groups: Mapping[str, GroupMetrics], decimals: int = 2
) -> pd.DataFrame:
    """Return group breakdowns, one row per key, sorted by revenue (desc).

    The sort is stable, so keys with equal revenue keep their first-seen
    order.
    """
    columns = [
        "group",
        "count",
        "total_revenue",
        "total_profit",
        "avg_transaction",
        "profit_margin",
    ]
    if not groups:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        [
            {
                "group": key,
                "count": g.count,
                "total_revenue": g.total_revenue,
                "total_profit": g.total_profit,
                "avg_transaction": g.avg_transaction,
                "profit_margin": g.profit_margin,
            }
            for key, g in groups.items()
        ],
        columns=columns,
    )
    df = df.sort_values("total_revenue", ascending=False, kind="stable")
    df = df.reset_index(drop=True)
    numeric_cols = ["total_revenue", "total_profit", "avg_transaction", "profit_margin"]
    df[numeric_cols] = df[numeric_cols].round(decimals)
    return df


def anomalies_to_dataframe(anomalies: Sequence[Anomaly]) -> pd.DataFrame:
    """Return anomalies in detection order."""
    columns = ["row", "field", "value", "issue", "severity"]
    return pd.DataFrame([a.to_dict() for a in anomalies], columns=columns)


def validation_to_dataframe(result: ValidationResult) -> pd.DataFrame:
    """Return validation issues, errors first, then warnings."""
    columns = ["level", "code", "message", "field", "suggestion"]
    records = [
        {
            "level": level,
            "code": issue.code,
            "message": issue.message,
            "field": issue.field or "",
            "suggestion": issue.suggestion or "",
        }
        for level, issues in (("error", result.errors), ("warning", result.warnings))
        for issue in issues
    ]
    return pd.DataFrame(records, columns=columns)
