# SMB Pulse - Transaction Metrics & Anomaly Engine for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Pulse.

This module is responsible for:
- defining the immutable cost model (sector COGS ratios, OpEx ratio, flat
  group margin) and confidence weights used by the engine,
- loading the application configuration from a TOML file,
- exposing typed dataclasses used by the rest of the application.

The built-in defaults are process-wide and never mutated. The engine takes
them as injectable parameters, so tests and alternative setups can pass
their own instances instead.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

import tomllib  # Python 3.11+

DEFAULT_SECTOR = "default"

# Industry COGS ratios per business sector.
DEFAULT_COGS_RATIOS: Mapping[str, float] = MappingProxyType(
    {
        "Electronics": 0.55,
        "Accessories": 0.40,
        "Office": 0.45,
        "Kuliner": 0.35,
        "Jasa": 0.20,
        "Retail": 0.50,
        DEFAULT_SECTOR: 0.47,
    }
)

# 8% fulfillment + 2.9% payment processing.
DEFAULT_OPEX_RATIO = 0.109

# Flat margin used for group-level profit when no profit column is mapped.
DEFAULT_GROUP_PROFIT_MARGIN = 0.17

DISPLAY_MODES: tuple[str, ...] = ("table", "json", "csv", "both")


@dataclass(frozen=True)
class CostModel:
    """
    Textbook cost structure used to model COGS and OpEx.

    Attributes:
        cogs_ratios: Sector name -> COGS / revenue ratio. Must contain the
            'default' key used for unknown sectors.
        opex_ratio: Operating expenses / revenue, identical for all sectors.
        group_profit_margin: Flat profit / revenue ratio used for region and
            category breakdowns when profit is not observed.
    """

    cogs_ratios: Mapping[str, float] = field(
        default_factory=lambda: DEFAULT_COGS_RATIOS
    )
    opex_ratio: float = DEFAULT_OPEX_RATIO
    group_profit_margin: float = DEFAULT_GROUP_PROFIT_MARGIN

    def __post_init__(self) -> None:
        if DEFAULT_SECTOR not in self.cogs_ratios:
            raise ValueError(
                f"Cost model COGS ratios must define a '{DEFAULT_SECTOR}' entry."
            )
        # Freeze caller-provided dicts as well.
        if not isinstance(self.cogs_ratios, MappingProxyType):
            object.__setattr__(
                self, "cogs_ratios", MappingProxyType(dict(self.cogs_ratios))
            )

    def cogs_ratio(self, sector: Optional[str]) -> float:
        """Return the COGS ratio for a sector, falling back to 'default'.

        A zero ratio configured for a sector also falls back to the default.
        """
        ratio = self.cogs_ratios.get(sector or DEFAULT_SECTOR)
        if not ratio:
            return self.cogs_ratios[DEFAULT_SECTOR]
        return ratio

    @property
    def sectors(self) -> list[str]:
        return [s for s in self.cogs_ratios if s != DEFAULT_SECTOR]


@dataclass(frozen=True)
class ConfidenceWeights:
    """
    Deductions applied by the confidence scorer, starting from 100.

    Attributes:
        quality_factor: Multiplier applied to (100 - quality score).
        high_penalty / medium_penalty / low_penalty: Per-anomaly deductions.
        small_dataset_rows / small_dataset_penalty: Deduction when the
            dataset has fewer rows than the threshold.
        tiny_dataset_rows / tiny_dataset_penalty: Additional deduction when
            the dataset has fewer rows than this second threshold.
        missing_profit_penalty: Deduction when profit is estimated.
    """

    quality_factor: float = 0.5
    high_penalty: float = 5.0
    medium_penalty: float = 2.0
    low_penalty: float = 0.0
    small_dataset_rows: int = 100
    small_dataset_penalty: float = 10.0
    tiny_dataset_rows: int = 50
    tiny_dataset_penalty: float = 15.0
    missing_profit_penalty: float = 15.0


DEFAULT_COST_MODEL = CostModel()
DEFAULT_CONFIDENCE_WEIGHTS = ConfidenceWeights()


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Pulse.

    This aggregates:
    - the default business sector used when none is given,
    - the cost model and confidence weights injected into the engine,
    - display options for the CLI.
    """

    default_sector: str = DEFAULT_SECTOR
    currency: str = "IDR"
    cost_model: CostModel = field(default_factory=lambda: DEFAULT_COST_MODEL)
    weights: ConfidenceWeights = field(
        default_factory=lambda: DEFAULT_CONFIDENCE_WEIGHTS
    )
    display_mode: str = "table"
    decimals: int = 2


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Config section [{key}] must be a table.")
    return value


def _as_ratio(value: Any, name: str) -> float:
    try:
        ratio = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for '{name}': expected a number.") from exc
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"Invalid value for '{name}': expected a ratio in [0, 1].")
    return ratio


def _parse_cost_model(raw: Mapping[str, Any]) -> CostModel:
    """
    Build the cost model from the [cost_model] section.

    Sector ratios listed under [cost_model.cogs_ratios] are merged over the
    built-in table, so a config only needs to list the sectors it changes.
    """
    section = _section(raw, "cost_model")
    if not section:
        return DEFAULT_COST_MODEL

    ratios_section = section.get("cogs_ratios") or {}
    if not isinstance(ratios_section, Mapping):
        raise ValueError("Config section [cost_model.cogs_ratios] must be a table.")

    cogs_ratios = dict(DEFAULT_COGS_RATIOS)
    for sector, value in ratios_section.items():
        cogs_ratios[str(sector)] = _as_ratio(
            value, f"cost_model.cogs_ratios.{sector}"
        )

    opex_ratio = _as_ratio(
        section.get("opex_ratio", DEFAULT_OPEX_RATIO), "cost_model.opex_ratio"
    )
    group_margin = _as_ratio(
        section.get("group_profit_margin", DEFAULT_GROUP_PROFIT_MARGIN),
        "cost_model.group_profit_margin",
    )

    return CostModel(
        cogs_ratios=cogs_ratios,
        opex_ratio=opex_ratio,
        group_profit_margin=group_margin,
    )


def _parse_weights(raw: Mapping[str, Any]) -> ConfidenceWeights:
    """Build confidence weights from the [confidence] section."""
    section = _section(raw, "confidence")
    if not section:
        return DEFAULT_CONFIDENCE_WEIGHTS

    defaults = DEFAULT_CONFIDENCE_WEIGHTS
    values: dict[str, Any] = {}
    for name in (
        "quality_factor",
        "high_penalty",
        "medium_penalty",
        "low_penalty",
        "small_dataset_penalty",
        "tiny_dataset_penalty",
        "missing_profit_penalty",
    ):
        try:
            values[name] = float(section.get(name, getattr(defaults, name)))
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Invalid value for 'confidence.{name}': expected a number."
            ) from exc

    for name in ("small_dataset_rows", "tiny_dataset_rows"):
        try:
            values[name] = int(section.get(name, getattr(defaults, name)))
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Invalid value for 'confidence.{name}': expected an integer."
            ) from exc

    return ConfidenceWeights(**values)


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Pulse application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [analysis]
        default_sector, currency.

    [cost_model]
        opex_ratio, group_profit_margin and a [cost_model.cogs_ratios]
        sub-table (sector -> ratio) merged over the built-in ratios.

    [confidence]
        Deductions used by the confidence scorer.

    [display]
        mode ("table", "json", "csv" or "both") and decimals.

    All sections are optional. When ``config_path`` is None and the default
    file 'smb_pulse_config.toml' does not exist in the current directory,
    the built-in defaults are returned. An explicit path that does not exist
    raises FileNotFoundError.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path("smb_pulse_config.toml").resolve()
        if not config_file.is_file():
            return AppConfig()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)

    # 1) Analysis section
    analysis_section = _section(raw, "analysis")
    default_sector = str(analysis_section.get("default_sector") or DEFAULT_SECTOR)
    currency = str(analysis_section.get("currency") or "IDR")

    # 2) Cost model and confidence weights
    cost_model = _parse_cost_model(raw)
    weights = _parse_weights(raw)

    # 3) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid value for 'display.mode': {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    return AppConfig(
        default_sector=default_sector,
        currency=currency,
        cost_model=cost_model,
        weights=weights,
        display_mode=display_mode,
        decimals=decimals,
    )
