# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Row-level anomaly detection.

Four independent checks run on every row, in this order:

1. revenue is zero or negative                     (high)
2. revenue lies outside mean ± 3 standard deviations (medium)
3. profit exceeds revenue                           (high, profit mapped)
4. profit margin below -50%                         (medium, profit mapped)

Mean and population standard deviation are computed over strictly positive
revenues only. A row may carry several anomalies; none suppresses another.
The output order is the detection order (row by row, check by check), not
the severity order.
"""

import math
from collections.abc import Sequence
from typing import Optional

from .mapping import ColumnMapping
from .models import Anomaly, Row, Severity
from .numeric import format_number, parse_numeric

ISSUE_NON_POSITIVE_REVENUE = "Revenue is zero or negative"
ISSUE_OUTLIER = "Outlier: significantly different from average"
ISSUE_PROFIT_EXCEEDS_REVENUE = "Profit exceeds revenue (impossible)"
ISSUE_NEGATIVE_MARGIN = "Extremely negative profit margin"

OUTLIER_STD_FACTOR = 3.0
NEGATIVE_MARGIN_THRESHOLD = -0.5


def revenue_stats(revenues: Sequence[float]) -> Optional[tuple[float, float]]:
    """Return (mean, population std) of the positive revenues.

    Returns None when there is no positive revenue, in which case the
    outlier check is skipped.
    """
    positives = [r for r in revenues if r > 0]
    if not positives:
        return None
    mean = sum(positives) / len(positives)
    variance = sum((r - mean) ** 2 for r in positives) / len(positives)
    return mean, math.sqrt(variance)


def detect_anomalies(rows: Sequence[Row], mapping: ColumnMapping) -> list[Anomaly]:
    """Scan rows for logically or statistically invalid records.

    Args:
        rows: Raw rows in file order.
        mapping: Column mapping; 'profit' enables checks 3 and 4.

    Returns:
        Anomalies in detection order. Row numbers are 1-based.
    """
    revenues = [parse_numeric(row.get(mapping.revenue)) for row in rows]
    stats = revenue_stats(revenues)

    anomalies: list[Anomaly] = []
    for index, (row, revenue) in enumerate(zip(rows, revenues), start=1):
        profit = parse_numeric(row.get(mapping.profit)) if mapping.profit else None

        if revenue <= 0:
            raw = row.get(mapping.revenue)
            shown = str(raw) if raw is not None else ""
            anomalies.append(
                Anomaly(
                    row=index,
                    field=mapping.revenue,
                    value=shown if shown.strip() else "empty",
                    issue=ISSUE_NON_POSITIVE_REVENUE,
                    severity=Severity.HIGH,
                )
            )

        if stats is not None:
            mean, std = stats
            spread = OUTLIER_STD_FACTOR * std
            if revenue > mean + spread or revenue < mean - spread:
                anomalies.append(
                    Anomaly(
                        row=index,
                        field=mapping.revenue,
                        value=format_number(revenue),
                        issue=ISSUE_OUTLIER,
                        severity=Severity.MEDIUM,
                    )
                )

        if profit is None:
            continue

        if profit > revenue:
            anomalies.append(
                Anomaly(
                    row=index,
                    field=mapping.profit,
                    value=format_number(profit),
                    issue=ISSUE_PROFIT_EXCEEDS_REVENUE,
                    severity=Severity.HIGH,
                )
            )

        if revenue > 0 and profit / revenue < NEGATIVE_MARGIN_THRESHOLD:
            anomalies.append(
                Anomaly(
                    row=index,
                    field=mapping.profit,
                    value=f"{profit / revenue * 100:.1f}%",
                    issue=ISSUE_NEGATIVE_MARGIN,
                    severity=Severity.MEDIUM,
                )
            )

    return anomalies


def summarize_anomalies(anomalies: Sequence[Anomaly]) -> dict[Severity, int]:
    """Count anomalies per severity. Every level is present in the result."""
    counts = {severity: 0 for severity in Severity}
    for anomaly in anomalies:
        counts[anomaly.severity] += 1
    return counts
