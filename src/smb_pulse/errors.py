# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Structural errors raised by the metrics engine.

Only broken call contracts are errors: an empty dataset or a mapping without
a revenue column. Messy data (unparseable cells, zero revenue, impossible
profits) is reported through anomalies and quality scores instead.
"""


class MetricsError(ValueError):
    """Base class for precondition failures of the metrics engine."""


class EmptyDatasetError(MetricsError):
    """Raised when a calculation is requested on zero rows."""

    def __init__(self, message: str = "No data rows provided.") -> None:
        super().__init__(message)


class MissingRevenueMappingError(MetricsError):
    """Raised when the column mapping does not name a revenue column."""

    def __init__(
        self, message: str = "Column mapping with a revenue field is required."
    ) -> None:
        super().__init__(message)
