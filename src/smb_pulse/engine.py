# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core metrics engine for SMB Pulse.

This module provides ``calculate_metrics()``, the single entry point that
turns raw uploaded rows and a column mapping into a ``DataMetrics`` result.

The engine orchestrates four responsibilities:

1. Totals
   ------
   Total revenue, transaction count and average transaction value, summed
   in row order.

2. Profit
   ------
   - observed: when the mapping names a profit column, total profit is the
     sum of that column;
   - estimated: otherwise, total profit is modeled by
     ``SectorCOGSProfitEstimator`` (sector COGS ratio + fixed OpEx ratio).

   The modeled cost structure (estimated COGS, estimated OpEx, gross
   profit, net margin) is always computed from the sector model, even when
   profit is observed. It represents what a textbook cost structure would
   look like and coexists with the real figures in the same result.

3. Breakdowns
   ----------
   ``by_region`` and ``by_category`` come from ``grouping.group_by_field``
   when the matching mapping field is set, and are empty otherwise.

4. Trust
   -----
   Anomalies (anomalies.py) and data quality (quality.py) are computed
   independently, then combined into the confidence score.

Notes
-----
The engine is a pure function: no I/O, no shared mutable state, no caching.
Calling it twice with the same input gives the same output. Structural
precondition failures (empty dataset, no revenue column) raise
``MetricsError`` subclasses before any computation; irregular data never
raises and is reported through anomalies and scores instead.
"""

import logging
from collections.abc import Sequence
from typing import Any, Optional

from .anomalies import detect_anomalies
from .config import (
    DEFAULT_CONFIDENCE_WEIGHTS,
    DEFAULT_COST_MODEL,
    DEFAULT_SECTOR,
    ConfidenceWeights,
    CostModel,
)
from .errors import EmptyDatasetError, MetricsError, MissingRevenueMappingError
from .estimators import GroupProfitEstimator, SectorCOGSProfitEstimator
from .grouping import group_by_field
from .mapping import ColumnMapping
from .models import DataMetrics, Row
from .numeric import parse_numeric
from .quality import assess_data_quality, calculate_confidence

__all__ = [
    "EmptyDatasetError",
    "MetricsError",
    "MissingRevenueMappingError",
    "calculate_metrics",
    "metrics_to_business_profile",
]

logger = logging.getLogger(__name__)


def _check_preconditions(rows: Sequence[Row], mapping: ColumnMapping) -> None:
    if len(rows) == 0:
        raise EmptyDatasetError()
    if mapping is None or not mapping.revenue or not mapping.revenue.strip():
        raise MissingRevenueMappingError()


def calculate_metrics(
    rows: Sequence[Row],
    mapping: ColumnMapping,
    sector: Optional[str] = DEFAULT_SECTOR,
    cost_model: CostModel = DEFAULT_COST_MODEL,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
) -> DataMetrics:
    """Compute business metrics, data quality and anomalies for a dataset.

    Args:
        rows: Raw rows (column name -> cell text), in file order. Must not
            be empty.
        mapping: Column mapping; ``mapping.revenue`` is required.
        sector: Business sector used to pick the COGS ratio. Unknown names
            fall back to the 'default' ratio.
        cost_model: COGS / OpEx / group margin ratios.
        weights: Confidence scorer deductions.

    Returns:
        A DataMetrics instance.

    Raises:
        EmptyDatasetError: if ``rows`` is empty.
        MissingRevenueMappingError: if the mapping has no revenue column.
    """
    _check_preconditions(rows, mapping)

    sector_model = SectorCOGSProfitEstimator(sector=sector, cost_model=cost_model)

    # 1) Totals
    total_revenue = sum(parse_numeric(row.get(mapping.revenue)) for row in rows)
    transaction_count = len(rows)
    avg_transaction_value = total_revenue / transaction_count

    # 2) Profit: observed when mapped, sector-modeled otherwise
    if mapping.profit:
        total_profit = sum(parse_numeric(row.get(mapping.profit)) for row in rows)
    else:
        total_profit = sector_model.estimate_profit(total_revenue)

    profit_margin = total_profit / total_revenue * 100 if total_revenue > 0 else 0.0

    # Modeled cost structure, independent of observed profit
    estimated_cogs = sector_model.cogs(total_revenue)
    estimated_opex = sector_model.opex(total_revenue)
    gross_profit = total_revenue - estimated_cogs
    if total_revenue != 0:
        net_margin = (
            (total_revenue - estimated_cogs - estimated_opex) / total_revenue * 100
        )
    else:
        net_margin = 0.0

    # 3) Breakdowns
    group_estimator = GroupProfitEstimator(margin=cost_model.group_profit_margin)
    by_region = (
        group_by_field(rows, mapping.region, mapping, group_estimator)
        if mapping.region
        else {}
    )
    by_category = (
        group_by_field(rows, mapping.category, mapping, group_estimator)
        if mapping.category
        else {}
    )

    # 4) Trust: anomalies and quality first, confidence depends on both
    anomalies = detect_anomalies(rows, mapping)
    data_quality = assess_data_quality(rows, mapping)
    confidence = calculate_confidence(rows, mapping, anomalies, data_quality, weights)

    logger.debug(
        "Computed metrics for %d rows (sector=%s, profit=%s): "
        "%d anomalies, quality=%d, confidence=%d",
        transaction_count,
        sector_model.sector,
        "observed" if mapping.profit else "estimated",
        len(anomalies),
        data_quality.quality_score,
        confidence,
    )

    return DataMetrics(
        total_revenue=total_revenue,
        total_profit=total_profit,
        transaction_count=transaction_count,
        avg_transaction_value=avg_transaction_value,
        profit_margin=profit_margin,
        gross_profit=gross_profit,
        estimated_monthly_cogs=estimated_cogs,
        estimated_monthly_opex=estimated_opex,
        net_margin=net_margin,
        by_region=by_region,
        by_category=by_category,
        confidence=confidence,
        data_quality=data_quality,
        anomalies=tuple(anomalies),
    )


def metrics_to_business_profile(metrics: DataMetrics, name: str) -> dict[str, Any]:
    """Build the compact business profile shown on dashboards.

    The profile reuses the modeled cost structure: estimated COGS stands for
    the monthly outflow and gross profit for the cash reserve.
    """
    return {
        "name": name,
        "sector": "Dataset CSV",
        "monthly_revenue": metrics.total_revenue,
        "monthly_debt": metrics.estimated_monthly_cogs,
        "cash_reserve": metrics.gross_profit,
        "isManual": False,
        "metrics": {
            "profitMargin": metrics.profit_margin,
            "netMargin": metrics.net_margin,
            "transactionCount": metrics.transaction_count,
            "avgTransaction": metrics.avg_transaction_value,
            "confidence": metrics.confidence,
            "dataQuality": metrics.data_quality.quality_score,
        },
    }
