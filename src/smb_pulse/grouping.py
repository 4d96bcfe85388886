# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Group breakdowns (by region, by category, or any other column).

Rows are partitioned by the raw text of the grouping column. Blank or
missing cells go to the "Unknown" bucket, so the counts of all buckets add
up to the number of rows. Buckets keep the order in which their key first
appears in the file.
"""

from collections.abc import Sequence
from typing import Optional

from .estimators import GroupProfitEstimator, ProfitEstimator
from .mapping import ColumnMapping
from .models import UNKNOWN_GROUP, GroupMetrics, Row
from .numeric import parse_numeric


def group_key(row: Row, field_name: str) -> str:
    value = row.get(field_name)
    if value is None or str(value).strip() == "":
        return UNKNOWN_GROUP
    return str(value)


def group_by_field(
    rows: Sequence[Row],
    field_name: str,
    mapping: ColumnMapping,
    estimator: Optional[ProfitEstimator] = None,
) -> dict[str, GroupMetrics]:
    """Aggregate revenue and profit per value of ``field_name``.

    Args:
        rows: Raw rows.
        field_name: Column used as grouping key.
        mapping: Column mapping (revenue, and profit when observed).
        estimator: Strategy used for group profit when no profit column is
            mapped. Defaults to the flat 17% GroupProfitEstimator.

    Returns:
        Dictionary {group key -> GroupMetrics}.
    """
    estimator = estimator or GroupProfitEstimator()

    buckets: dict[str, list[Row]] = {}
    for row in rows:
        buckets.setdefault(group_key(row, field_name), []).append(row)

    result: dict[str, GroupMetrics] = {}
    for key, group_rows in buckets.items():
        total_revenue = sum(parse_numeric(r.get(mapping.revenue)) for r in group_rows)
        if mapping.profit:
            total_profit = sum(parse_numeric(r.get(mapping.profit)) for r in group_rows)
        else:
            total_profit = estimator.estimate_profit(total_revenue)

        result[key] = GroupMetrics(
            count=len(group_rows),
            total_revenue=total_revenue,
            total_profit=total_profit,
            avg_transaction=total_revenue / len(group_rows),
            profit_margin=(
                total_profit / total_revenue * 100 if total_revenue > 0 else 0.0
            ),
        )

    return result
