# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Data quality assessment and confidence scoring.

Data quality
------------
A row is valid when its normalized revenue is strictly positive. Missing
values are counted per cell: every blank cell of a mapped column (revenue,
profit, region, category) adds one, so a row can add several.

    quality_score = round(valid_rows / total_rows * 100)

Confidence
----------
Starting from 100, the scorer subtracts:

- (100 - quality_score) * quality_factor,
- a fixed amount per high / medium / low anomaly (low weighs 0 by default),
- a penalty when the dataset is small, and an additional one when it is
  very small (the two stack),
- a penalty when profit is estimated rather than observed.

The result is rounded and clamped to [0, 100]. Weights come from
``ConfidenceWeights`` (see config.py).
"""

from collections.abc import Sequence

from .anomalies import summarize_anomalies
from .config import DEFAULT_CONFIDENCE_WEIGHTS, ConfidenceWeights
from .mapping import ColumnMapping
from .models import Anomaly, DataQuality, Row, Severity
from .numeric import parse_numeric, round_half_up


def _is_blank(value) -> bool:
    return value is None or str(value).strip() == ""


def assess_data_quality(rows: Sequence[Row], mapping: ColumnMapping) -> DataQuality:
    """Count valid/invalid rows and missing mapped cells.

    The caller guarantees at least one row (the engine rejects empty
    datasets before reaching this point).
    """
    columns = mapping.mapped_columns()
    valid_rows = 0
    invalid_rows = 0
    missing_values = 0

    for row in rows:
        revenue = row.get(mapping.revenue)
        if not _is_blank(revenue) and parse_numeric(revenue) > 0:
            valid_rows += 1
        else:
            invalid_rows += 1

        missing_values += sum(1 for column in columns if _is_blank(row.get(column)))

    quality_score = round_half_up(valid_rows / len(rows) * 100)

    return DataQuality(
        valid_rows=valid_rows,
        invalid_rows=invalid_rows,
        missing_values=missing_values,
        quality_score=quality_score,
    )


def calculate_confidence(
    rows: Sequence[Row],
    mapping: ColumnMapping,
    anomalies: Sequence[Anomaly],
    data_quality: DataQuality,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
) -> int:
    """Combine quality, anomalies, dataset size and mapping into 0–100."""
    confidence = 100.0

    # Low quality score
    confidence -= (100 - data_quality.quality_score) * weights.quality_factor

    # Anomaly load
    counts = summarize_anomalies(anomalies)
    confidence -= counts[Severity.HIGH] * weights.high_penalty
    confidence -= counts[Severity.MEDIUM] * weights.medium_penalty
    confidence -= counts[Severity.LOW] * weights.low_penalty

    # Small datasets
    if len(rows) < weights.small_dataset_rows:
        confidence -= weights.small_dataset_penalty
    if len(rows) < weights.tiny_dataset_rows:
        confidence -= weights.tiny_dataset_penalty

    # Estimated profit
    if not mapping.profit:
        confidence -= weights.missing_profit_penalty

    return max(0, min(100, round_half_up(confidence)))
