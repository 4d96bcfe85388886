# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Pulse.

This module reads an uploaded transactions CSV into the raw row structure
consumed by the engine: an ordered list of ``{column name -> cell text}``
dictionaries plus the list of headers.

Every cell is kept as text. Numeric normalization (currency markers,
thousands separators) is the engine's job, not the reader's, so values such
as ``"Rp 1,250,000"`` or ``"007"`` reach the engine untouched. Empty cells
become empty strings rather than NaN.

Header names are stripped of surrounding whitespace. The file order of rows
is preserved; it drives the 1-based row numbers of anomalies.
"""

import os
from typing import Union

import pandas as pd


def read_transactions(
    path: Union[str, "os.PathLike[str]"],
) -> tuple[list[str], list[dict[str, str]]]:
    """
    Read a transactions CSV file.

    Parameters
    ----------
    path:
        Path to the CSV file.

    Returns
    -------
    tuple[list[str], list[dict[str, str]]]
        The header names and the rows, each row mapping every header to its
        cell text.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file cannot be parsed as CSV or has no header row.
    """
    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=False,
        )
    except FileNotFoundError:
        raise
    except pd.errors.EmptyDataError as exc:
        raise ValueError(f"CSV file is empty: {path}") from exc
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse CSV file: {path}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    headers = list(df.columns)
    if not headers:
        raise ValueError(f"CSV file has no header row: {path}")

    rows = [
        {h: ("" if v is None else str(v)) for h, v in zip(headers, values)}
        for values in df.itertuples(index=False, name=None)
    ]
    return headers, rows

