"""Unit conflict detection between two observation tables.

Unit pairs are collected in one of two modes:

- grouped: when join keys are given and at least one exists in both tables, only
  unit pairs whose key tuples actually co-occur are compared;
- all-pairs: otherwise every distinct unit of A is compared with every distinct
  unit of B. This can flag pairs that would never meet in a join (e.g. a mass
  indicator against a count indicator) and is kept as a cheap global check.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Set, Tuple

import pandas as pd

from sdmx_reconcile.core.utils import is_missing
from sdmx_reconcile.units.catalog import (
    are_units_convertible,
    conversion_factor,
    is_currency,
    parse_unit_mult,
    unit_multiplier,
)
from sdmx_reconcile.units.exchange import ExchangeRateTable

from .config import UNIT_MEASURE_COL, UNIT_MULT_COL, get_severity
from .models import UnitConflict, UnitConflictReport

logger = logging.getLogger(__name__)

_UNIT_A = "_unit_a"
_UNIT_B = "_unit_b"


def _unit_key(value: Any, unit_col: str) -> Optional[str]:
    """String form of a unit value used for comparison; None when missing."""
    if is_missing(value):
        return None
    if unit_col == UNIT_MULT_COL:
        return str(parse_unit_mult(value))
    return str(value).strip()


def _unit_series(df: pd.DataFrame, unit_col: str) -> pd.Series:
    return df[unit_col].map(lambda v: _unit_key(v, unit_col))


def _collect_all_pairs(
    df_a: pd.DataFrame, df_b: pd.DataFrame, unit_col: str
) -> Set[Tuple[str, str]]:
    vals_a = _unit_series(df_a, unit_col).dropna().unique()
    vals_b = _unit_series(df_b, unit_col).dropna().unique()
    return {(ua, ub) for ua in vals_a for ub in vals_b if ua != ub}


def _collect_grouped_pairs(
    df_a: pd.DataFrame, df_b: pd.DataFrame, unit_col: str, join_keys: List[str]
) -> Set[Tuple[str, str]]:
    # Keys compared as strings so 2020 and "2020" meet
    summary_a = df_a[join_keys].astype(str).assign(**{_UNIT_A: _unit_series(df_a, unit_col)})
    summary_b = df_b[join_keys].astype(str).assign(**{_UNIT_B: _unit_series(df_b, unit_col)})
    summary_a = summary_a.dropna(subset=[_UNIT_A]).drop_duplicates()
    summary_b = summary_b.dropna(subset=[_UNIT_B]).drop_duplicates()

    joined = summary_a.merge(summary_b, on=join_keys, how="inner")
    mismatched = joined.loc[joined[_UNIT_A] != joined[_UNIT_B], [_UNIT_A, _UNIT_B]]
    return {(str(ua), str(ub)) for ua, ub in mismatched.drop_duplicates().itertuples(index=False)}


def collect_unit_pairs(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    unit_col: str,
    join_keys: Optional[Sequence[str]] = None,
) -> List[Tuple[str, str]]:
    """Return the sorted distinct mismatched ``(unit_a, unit_b)`` pairs for ``unit_col``.

    Join keys missing from either table are ignored; if none remain the
    all-pairs mode is used.
    """
    usable = [k for k in (join_keys or []) if k in df_a.columns and k in df_b.columns]
    if usable:
        logger.debug("Collecting %s pairs grouped by %s", unit_col, usable)
        pairs = _collect_grouped_pairs(df_a, df_b, unit_col, usable)
    else:
        logger.debug("Collecting %s pairs across all values (no usable join keys)", unit_col)
        pairs = _collect_all_pairs(df_a, df_b, unit_col)
    return sorted(pairs)


def classify_unit_pair(
    unit_a: str, unit_b: str, exchange_rates: Optional[ExchangeRateTable] = None
) -> UnitConflict:
    """Classify one mismatched UNIT_MEASURE pair.

    - Either side a currency: convertible (warning) only if ``exchange_rates``
      resolves a rate, otherwise blocking (error).
    - Same physical dimension: convertible (warning) with the conversion factor.
    - Anything else, including unknown codes: incompatible (error).
    """
    if is_currency(unit_a) or is_currency(unit_b):
        has_rate = exchange_rates is not None and exchange_rates.has_rate(unit_a, unit_b)
        kind = "currency_convertible" if has_rate else "currency_no_rate"
        reason = "convertible via exchange rates" if has_rate else "no exchange rate available"
        return UnitConflict(
            dimension=UNIT_MEASURE_COL,
            value_a=unit_a,
            value_b=unit_b,
            is_convertible=has_rate,
            conversion_factor=None,
            severity=get_severity(kind),
            description=f"Currency mismatch {unit_a} vs {unit_b}: {reason}",
            involves_currency=True,
        )
    if are_units_convertible(unit_a, unit_b):
        factor = conversion_factor(unit_a, unit_b)
        return UnitConflict(
            dimension=UNIT_MEASURE_COL,
            value_a=unit_a,
            value_b=unit_b,
            is_convertible=True,
            conversion_factor=factor,
            severity=get_severity("unit_convertible"),
            description=f"Unit mismatch {unit_a} vs {unit_b}: auto-convertible (factor={factor})",
        )
    return UnitConflict(
        dimension=UNIT_MEASURE_COL,
        value_a=unit_a,
        value_b=unit_b,
        is_convertible=False,
        conversion_factor=None,
        severity=get_severity("unit_incompatible"),
        description=f"Incompatible units {unit_a} vs {unit_b}: different dimensions",
    )


def _mult_conflict(mult_a: str, mult_b: str) -> UnitConflict:
    return UnitConflict(
        dimension=UNIT_MULT_COL,
        value_a=mult_a,
        value_b=mult_b,
        is_convertible=True,
        conversion_factor=unit_multiplier(mult_a) / unit_multiplier(mult_b),
        severity=get_severity("unit_mult"),
        description=f"UNIT_MULT mismatch {mult_a} vs {mult_b}: auto-resolvable by normalizing",
    )


def detect_unit_conflicts(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    join_keys: Optional[Sequence[str]] = None,
    exchange_rates: Optional[ExchangeRateTable] = None,
) -> UnitConflictReport:
    """Detect UNIT_MEASURE and UNIT_MULT conflicts between two tables.

    A column is only checked when present in both tables. Conflicts never raise;
    inspect ``has_blocking_conflicts`` on the returned report.

    Args:
        df_a: First observation table.
        df_b: Second observation table.
        join_keys: Columns the tables will be joined on; enables grouped comparison.
        exchange_rates: Rates used to decide whether currency pairs are resolvable.

    Returns:
        UnitConflictReport with UNIT_MEASURE conflicts first, then UNIT_MULT
        conflicts, each sorted by value pair.

    Raises:
        ValueError: If a UNIT_MULT value is not an integer exponent.

    Examples:
        >>> report = detect_unit_conflicts(trade_df, gdp_df, join_keys=["GEO_PICT", "TIME_PERIOD"])
        >>> report.summary
        'Found 1 unit conflict(s): 0 auto-resolvable, 1 require manual intervention'
    """
    conflicts: List[UnitConflict] = []

    if UNIT_MEASURE_COL in df_a.columns and UNIT_MEASURE_COL in df_b.columns:
        for unit_a, unit_b in collect_unit_pairs(df_a, df_b, UNIT_MEASURE_COL, join_keys):
            conflicts.append(classify_unit_pair(unit_a, unit_b, exchange_rates))

    if UNIT_MULT_COL in df_a.columns and UNIT_MULT_COL in df_b.columns:
        for mult_a, mult_b in collect_unit_pairs(df_a, df_b, UNIT_MULT_COL, join_keys):
            conflicts.append(_mult_conflict(mult_a, mult_b))

    report = UnitConflictReport.from_conflicts(conflicts)
    logger.debug(report.summary)
    return report


__all__ = [
    "collect_unit_pairs",
    "classify_unit_pair",
    "detect_unit_conflicts",
]
