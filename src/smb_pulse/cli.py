# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Pulse.

This module wires together the main building blocks of SMB Pulse:

- application configuration (cost model, confidence weights, display),
- CSV reading,
- column mapping (explicit or auto-detected),
- validation pipeline,
- metrics engine,
- fallback narrative,
- view helpers (tabular rendering, JSON and CSV output).

The CLI is intentionally thin: it does not implement any metric itself.


Commands
--------

analyze CSV
    Validate the file, compute metrics and render them.

        python -m smb_pulse.cli analyze data/input/transactions_sample.csv \\
            --revenue Sales --profit Profit --region Region --sector Retail

    Columns can be mapped explicitly (--revenue, --profit, --region,
    --category, --quantity, --date) or guessed from the headers with
    --auto-map (explicit options win over guesses).

    --insights appends the local narrative (summary, insights, risk level,
    recommendations).

validate CSV
    Run the validation pipeline only. Exit status 1 when the file is not
    valid.

detect-mapping CSV
    Print the column mapping guessed from the headers.


Configuration
-------------

By default, the CLI reads ``smb_pulse_config.toml`` in the current working
directory when it exists, and uses built-in defaults otherwise. Use
``--config PATH`` to point to another file.


Display modes
-------------

``--display-mode`` overrides ``display.mode`` from the configuration:

- ``table``: console tables (pandas.DataFrame.to_string),
- ``json``:  the full JSON payload on stdout,
- ``csv``:   CSV files written to ``--output`` (default: data/output),
- ``both``:  console tables and CSV files.


Errors
------

Structural problems (no data rows, no revenue column, failed validation)
are reported on stderr with exit status 1. Irregular data is not an error:
it is reported through anomalies and the confidence score.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .config import DISPLAY_MODES, AppConfig, load_app_config
from .engine import MetricsError, calculate_metrics, metrics_to_business_profile
from .insights import NarrativeContext, generate_narrative
from .io import read_transactions
from .mapping import ColumnMapping, auto_detect_mapping
from .validation import validate_all
from .views import (
    anomalies_to_dataframe,
    groups_to_dataframe,
    summary_to_dataframe,
    validation_to_dataframe,
)

MAPPING_FIELDS: tuple[str, ...] = (
    "revenue",
    "profit",
    "region",
    "category",
    "quantity",
    "date",
)


def _add_mapping_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the CSV path and column mapping options to a subcommand."""
    parser.add_argument("csv_path", metavar="CSV", help="Transactions CSV file.")
    for name in MAPPING_FIELDS:
        parser.add_argument(
            f"--{name}",
            dest=name,
            metavar="COLUMN",
            help=f"Column holding the {name}"
            + (" (required unless --auto-map)." if name == "revenue" else "."),
        )
    parser.add_argument(
        "--auto-map",
        dest="auto_map",
        action="store_true",
        help=(
            "Guess unmapped columns from the CSV headers. Explicit column "
            "options take precedence."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_pulse.cli",
        description=(
            "SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs. "
            "Reads a transactions CSV, validates it, computes revenue and "
            "profit metrics, flags anomalies and scores data confidence."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_pulse and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            "'smb_pulse_config.toml' in the current directory is used when "
            "present."
        ),
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    # analyze
    analyze = subparsers.add_parser(
        "analyze", help="Validate a CSV file and compute its metrics."
    )
    _add_mapping_arguments(analyze)
    analyze.add_argument(
        "--sector",
        help=(
            "Business sector used for the COGS ratio (e.g. Retail, Kuliner). "
            "Unknown sectors use the default ratio."
        ),
    )
    analyze.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help="Override the display.mode setting from the configuration file.",
    )
    analyze.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory for CSV files when display mode includes 'csv'. "
            "If omitted, 'data/output' is used."
        ),
    )
    analyze.add_argument(
        "--skip-validation",
        dest="skip_validation",
        action="store_true",
        help="Compute metrics even if the validation pipeline reports errors.",
    )
    analyze.add_argument(
        "--insights",
        action="store_true",
        help="Append the narrative insights to the output.",
    )

    # validate
    validate = subparsers.add_parser(
        "validate", help="Run the validation pipeline on a CSV file."
    )
    _add_mapping_arguments(validate)

    # detect-mapping
    detect = subparsers.add_parser(
        "detect-mapping", help="Guess the column mapping from CSV headers."
    )
    detect.add_argument("csv_path", metavar="CSV", help="Transactions CSV file.")

    return ap


def _resolve_mapping(args: argparse.Namespace, headers: list[str]) -> ColumnMapping:
    """Build the ColumnMapping from explicit options and optional guesses."""
    raw: dict[str, Any] = {}
    if getattr(args, "auto_map", False):
        raw.update(auto_detect_mapping(headers))
    for name in MAPPING_FIELDS:
        value = getattr(args, name, None)
        if value:
            raw[name] = value
    return ColumnMapping.from_dict(raw)


def _print_table(title: str, df) -> None:
    print()
    print(f"=== {title} ===")
    if df.empty:
        print("(none)")
    else:
        print(df.to_string(index=False))


def _handle_detect_mapping(args: argparse.Namespace) -> int:
    headers, _ = read_transactions(args.csv_path)
    detected = auto_detect_mapping(headers)
    if not detected:
        print("No column could be matched to a known field.")
        return 0
    for key, header in detected.items():
        print(f"{key:<10} {header}")
    if "revenue" not in detected:
        print("Warning: no revenue column detected; map it with --revenue.")
    return 0


def _handle_validate(args: argparse.Namespace) -> int:
    headers, rows = read_transactions(args.csv_path)
    mapping = _resolve_mapping(args, headers)
    result = validate_all(rows, headers, mapping)

    _print_table("Validation", validation_to_dataframe(result))
    print()
    print("Valid." if result.is_valid else "Not valid.")
    return 0 if result.is_valid else 1


def _handle_analyze(args: argparse.Namespace, config: AppConfig) -> int:
    csv_path = Path(args.csv_path)
    headers, rows = read_transactions(csv_path)
    mapping = _resolve_mapping(args, headers)

    # 1) Validation
    validation = validate_all(rows, headers, mapping)
    if not validation.is_valid and not args.skip_validation:
        messages = ", ".join(e.message for e in validation.errors)
        print(f"Validation failed: {messages}", file=sys.stderr)
        return 1

    # 2) Metrics
    sector = args.sector or config.default_sector
    metrics = calculate_metrics(
        rows,
        mapping,
        sector=sector,
        cost_model=config.cost_model,
        weights=config.weights,
    )

    # 3) Optional narrative, layered on top of the computed metrics
    narrative = None
    if args.insights:
        narrative = generate_narrative(
            metrics,
            NarrativeContext(
                file_name=csv_path.name, sector=sector, row_count=len(rows)
            ),
        )

    display_mode = args.display_mode or config.display_mode
    decimals = config.decimals

    # 4) JSON payload
    if display_mode == "json":
        payload: dict[str, Any] = {
            "success": True,
            "metrics": metrics.to_dict(),
            "businessProfile": metrics_to_business_profile(metrics, csv_path.name),
            "validation": validation.to_dict(),
        }
        if narrative is not None:
            payload["insights"] = narrative.to_dict()
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    summary_df = summary_to_dataframe(metrics, decimals=decimals)
    region_df = groups_to_dataframe(metrics.by_region, decimals=decimals)
    category_df = groups_to_dataframe(metrics.by_category, decimals=decimals)
    anomalies_df = anomalies_to_dataframe(metrics.anomalies)

    # 5) Console tables
    if display_mode in {"table", "both"}:
        print(f"Analyzed {len(rows)} rows from {csv_path} (sector: {sector})")
        if validation.warnings:
            _print_table("Validation warnings", validation_to_dataframe(validation))
        _print_table("Summary", summary_df)
        if mapping.region:
            _print_table(f"By region ({mapping.region})", region_df)
        if mapping.category:
            _print_table(f"By category ({mapping.category})", category_df)
        _print_table("Anomalies", anomalies_df)

        if narrative is not None:
            print()
            print("=== Insights ===")
            print(narrative.summary)
            print(f"Risk level: {narrative.risk_assessment.level}")
            for insight in narrative.insights:
                print(f"- [{insight.category}] {insight.title}: {insight.description}")
            for recommendation in narrative.recommendations:
                print(f"* {recommendation}")

    # 6) CSV files
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        outputs = [("summary", summary_df), ("anomalies", anomalies_df)]
        if mapping.region:
            outputs.append(("by_region", region_df))
        if mapping.category:
            outputs.append(("by_category", category_df))

        for name, df in outputs:
            path = output_dir / f"{name}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the SMB Pulse CLI.

    Parses command-line arguments, loads the configuration and dispatches
    to the requested command. Returns the process exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_pulse version {__version__}")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "detect-mapping":
            return _handle_detect_mapping(args)
        if args.command == "validate":
            return _handle_validate(args)

        config = load_app_config(args.config_path)
        return _handle_analyze(args, config)
    except (FileNotFoundError, MetricsError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
