# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Pulse
---------

A Python-based metrics and data-quality engine for Small and Medium-sized
Businesses (SMBs). Merchants upload a CSV export of their transactions, map
columns to semantic fields (revenue, profit, region, category) and receive
aggregated business metrics, a confidence score and a list of flagged
anomalies.

Main capabilities:
- tolerant numeric normalization of raw CSV cells (currency markers,
  thousands separators),
- aggregated revenue / profit / margin metrics,
- profit estimation from sector COGS ratios when no profit column exists,
- per-region and per-category breakdowns,
- row-level anomaly detection (logical and statistical),
- data quality and confidence scoring,
- a validation pipeline to run before any computation,
- a deterministic fallback narrative for the AI insights collaborator,
- a command-line interface with table, JSON and CSV output.

SMB Pulse separates computation (engine), configuration (TOML), and
presentation (CLI), making it usable from scripts, HTTP handlers or the
command line.


Version: 0.2.0

Usage:
    python -m smb_pulse.cli --help
"""

__all__ = ["engine", "mapping", "models", "quality", "views", "io"]

__version__ = "0.2.0"
