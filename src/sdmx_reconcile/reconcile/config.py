"""Reconciliation configuration constants.

This module centralizes the column conventions, frequency ranks and unit-conflict
severity rules used by the reconciliation functions, plus a small YAML-backed
settings object for applications that keep their defaults in a file.

Severity Levels:
    - "error": Blocking conflicts; values cannot be made comparable automatically
    - "warning": Conflicts that can be resolved automatically (scaling or conversion)
    - "none": Informational only
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

import yaml

from sdmx_reconcile.core.enums import Aggregation, Frequency, JoinType, coerce_enum
from sdmx_reconcile.units.exchange import (
    BASE_CURRENCY,
    ExchangeRateTable,
    default_exchange_rates,
)

logger = logging.getLogger(__name__)

# ============================================================================
# COLUMN CONVENTIONS
# ============================================================================

DEFAULT_TIME_COL = "TIME_PERIOD"
DEFAULT_FREQ_COL = "FREQ"
DEFAULT_VALUE_COL = "OBS_VALUE"
DEFAULT_SOURCE_COL = "DATAFLOW"
UNIT_MEASURE_COL = "UNIT_MEASURE"
UNIT_MULT_COL = "UNIT_MULT"

# SDMX-CSV metadata columns; never used as join keys
SDMX_METADATA_COLS: FrozenSet[str] = frozenset(
    {
        "OBS_VALUE",
        "UNIT_MEASURE",
        "UNIT_MULT",
        "OBS_STATUS",
        "DECIMALS",
        "DATAFLOW",
        "STRUCTURE",
        "STRUCTURE_ID",
        "STRUCTURE_NAME",
        "ACTION",
        "OBS_CONF",
        "CONF_STATUS",
        "BASE_PER",
        "TIME_FORMAT",
    }
)

# Columns never used as grouping keys when aggregating to a coarser frequency
NON_GROUP_COLS: FrozenSet[str] = frozenset(
    {"OBS_STATUS", "DECIMALS", "DATAFLOW", "STRUCTURE", "UNIT_MULT", "OBS_VALUE"}
)


# ============================================================================
# FREQUENCY RANKS
# ============================================================================
# Observations per year; lower rank = coarser frequency

FREQ_RANK: Dict[str, int] = {
    Frequency.ANNUAL.value: 1,
    Frequency.SEMI_ANNUAL.value: 2,
    Frequency.QUARTERLY.value: 4,
    Frequency.MONTHLY.value: 12,
    Frequency.WEEKLY.value: 52,
    Frequency.BUSINESS_DAILY.value: 260,
    Frequency.DAILY.value: 365,
}


# ============================================================================
# SEVERITY RULES
# ============================================================================
# Format: {conflict_kind: severity}

UNIT_CONFLICT_SEVERITY: Dict[str, str] = {
    # Different currencies with a resolvable exchange rate
    "currency_convertible": "warning",
    # Different currencies, no rate available
    "currency_no_rate": "error",
    # Same physical dimension (KG vs T)
    "unit_convertible": "warning",
    # Different dimensions or unknown codes (KG vs L)
    "unit_incompatible": "error",
    # Scale mismatch; resolved by normalizing UNIT_MULT
    "unit_mult": "warning",
}


def get_severity(kind: str) -> str:
    """Get severity level for a unit conflict kind.

    Args:
        kind: Conflict kind (e.g., "currency_no_rate").

    Returns:
        Severity level: "error" or "warning".

    Raises:
        ValueError: If kind is unknown.

    Examples:
        >>> get_severity("unit_mult")
        'warning'
        >>> get_severity("unit_incompatible")
        'error'
    """
    if kind not in UNIT_CONFLICT_SEVERITY:
        raise ValueError(
            f"Unknown conflict kind: {kind}. Valid kinds: {', '.join(sorted(UNIT_CONFLICT_SEVERITY))}"
        )
    return UNIT_CONFLICT_SEVERITY[kind]


# ============================================================================
# SETTINGS
# ============================================================================


@dataclass(frozen=True)
class RateOverride:
    """One ``from -> to`` exchange rate supplied in configuration."""

    from_currency: str
    to_currency: str
    rate: float

    def __post_init__(self) -> None:
        if not self.rate > 0:
            raise ValueError(
                f"Exchange rate must be positive: {self.from_currency}->{self.to_currency} = {self.rate}"
            )


@dataclass(frozen=True)
class ReconcileSettings:
    """Defaults for ``sdmx_join`` / ``sdmx_combine`` / ``align_frequencies``.

    Examples:
        >>> settings = load_settings(Path("config/reconcile.yaml"))
        >>> result = sdmx_join(df_a, df_b, **settings.join_kwargs())
    """

    join_type: JoinType = JoinType.INNER
    validate_units: bool = True
    harmonize: bool = True
    suffix_a: str = "_a"
    suffix_b: str = "_b"
    aggregation: Aggregation = Aggregation.SUM
    source_col: str = DEFAULT_SOURCE_COL
    use_default_rates: bool = False
    exchange_rates: List[RateOverride] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "join_type", coerce_enum(JoinType, self.join_type, "join type"))
        object.__setattr__(
            self, "aggregation", coerce_enum(Aggregation, self.aggregation, "aggregation")
        )
        if self.suffix_a == self.suffix_b:
            raise ValueError(f"suffix_a and suffix_b must differ, both are '{self.suffix_a}'")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReconcileSettings":
        """Build settings from a mapping (the ``reconcile:`` section of a YAML file)."""
        if not isinstance(data, dict):
            raise ValueError(f"Reconcile settings must be a mapping, got {type(data).__name__}")
        known = {
            "join_type",
            "validate_units",
            "harmonize",
            "suffix_a",
            "suffix_b",
            "aggregation",
            "source_col",
            "use_default_rates",
            "exchange_rates",
        }
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown reconcile settings: {', '.join(unknown)}")
        kwargs: Dict[str, Any] = {k: v for k, v in data.items() if k != "exchange_rates"}
        for flag in ("validate_units", "harmonize", "use_default_rates"):
            if flag in kwargs and not isinstance(kwargs[flag], bool):
                raise ValueError(f"Setting '{flag}' must be true or false, got {kwargs[flag]!r}")
        kwargs["exchange_rates"] = _parse_rate_entries(data.get("exchange_rates") or [])
        return cls(**kwargs)

    def build_exchange_rates(self) -> Optional[ExchangeRateTable]:
        """Return the configured rate table, or None when no rates are configured.

        Overrides are applied on top of the default seed rates when
        ``use_default_rates`` is set.
        """
        if not self.use_default_rates and not self.exchange_rates:
            return None
        table = default_exchange_rates() if self.use_default_rates else ExchangeRateTable()
        for override in self.exchange_rates:
            table.add_rate(override.from_currency, override.to_currency, override.rate)
        return table

    def join_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``sdmx_join``."""
        return {
            "join_type": self.join_type,
            "validate_units": self.validate_units,
            "harmonize": self.harmonize,
            "exchange_rates": self.build_exchange_rates(),
            "suffix_a": self.suffix_a,
            "suffix_b": self.suffix_b,
        }

    def combine_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``sdmx_combine``."""
        return {
            "source_col": self.source_col,
            "validate_units": self.validate_units,
            "harmonize": self.harmonize,
            "exchange_rates": self.build_exchange_rates(),
        }


def _parse_rate_entries(entries: Any) -> List[RateOverride]:
    if not isinstance(entries, list):
        raise ValueError("Exchange rates must be a list of {from, to, rate} entries")
    overrides: List[RateOverride] = []
    for item in entries:
        if not isinstance(item, dict) or not {"from", "to", "rate"} <= set(item):
            raise ValueError(f"Exchange rate entry must have 'from', 'to' and 'rate': {item!r}")
        try:
            rate = float(item["rate"])
        except (TypeError, ValueError):
            raise ValueError(f"Exchange rate is not a number: {item!r}") from None
        overrides.append(
            RateOverride(
                from_currency=str(item["from"]).upper(),
                to_currency=str(item["to"]).upper(),
                rate=rate,
            )
        )
    return overrides


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def load_settings(path: Union[str, Path]) -> ReconcileSettings:
    """Load ``ReconcileSettings`` from the ``reconcile:`` section of a YAML file.

    A file without a ``reconcile:`` section yields the default settings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the section has the wrong structure or invalid values.
    """
    data = _read_yaml(path)
    section = data.get("reconcile") or {}
    settings = ReconcileSettings.from_dict(section)
    logger.debug("Loaded reconcile settings from %s: %s", path, settings)
    return settings


def load_exchange_rates(path: Union[str, Path]) -> ExchangeRateTable:
    """Load an ``ExchangeRateTable`` from YAML.

    Expected structure::

        reference_date: "2025"
        source: "Central bank annual averages"
        rates:
          - {from: USD, to: FJD, rate: 2.299}

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If ``rates`` is missing or malformed.
    """
    data = _read_yaml(path)
    if "rates" not in data:
        raise ValueError(f"Exchange rate file has no 'rates' list: {path}")
    table = ExchangeRateTable(
        reference_date=str(data.get("reference_date") or ""),
        source=str(data.get("source") or ""),
    )
    for override in _parse_rate_entries(data["rates"]):
        table.add_rate(override.from_currency, override.to_currency, override.rate)
    logger.debug("Loaded %d exchange rate pairs from %s", len(table), path)
    return table


__all__ = [
    "BASE_CURRENCY",
    "DEFAULT_TIME_COL",
    "DEFAULT_FREQ_COL",
    "DEFAULT_VALUE_COL",
    "DEFAULT_SOURCE_COL",
    "UNIT_MEASURE_COL",
    "UNIT_MULT_COL",
    "SDMX_METADATA_COLS",
    "NON_GROUP_COLS",
    "FREQ_RANK",
    "UNIT_CONFLICT_SEVERITY",
    "get_severity",
    "RateOverride",
    "ReconcileSettings",
    "load_settings",
    "load_exchange_rates",
]
