"""Unit harmonization for observation tables.

Two steps, always in this order:

1. UNIT_MULT normalization: OBS_VALUE is multiplied by 10**UNIT_MULT and UNIT_MULT
   is reset to 0. Rows with a missing value or a missing multiplier are untouched.
2. Optional conversion to ``target_unit``: a deterministic physical conversion is
   tried first, then a currency conversion through the exchange-rate table. Rows
   that cannot be converted keep their value and unit.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from sdmx_reconcile.core.utils import is_missing
from sdmx_reconcile.units.catalog import conversion_factor, parse_unit_mult
from sdmx_reconcile.units.exchange import ExchangeRateTable

from .config import DEFAULT_VALUE_COL, UNIT_MEASURE_COL, UNIT_MULT_COL

logger = logging.getLogger(__name__)


def _widen_values(df: pd.DataFrame, column: str, values: pd.Series) -> None:
    """Make ``column`` able to hold floats before scaled values are written back.

    Columns whose every present cell parses as a number become float64; otherwise
    the column becomes object so unparseable cells keep their original value.
    """
    if pd.api.types.is_float_dtype(df[column]):
        return
    if (df[column].isna() | values.notna()).all():
        df[column] = values
    else:
        df[column] = df[column].astype(object)


def _numeric_values(df: pd.DataFrame, value_col: str) -> pd.Series:
    # Non-numeric entries become NaN and are left untouched
    return pd.to_numeric(df[value_col], errors="coerce").astype(float)


def _apply_unit_mult(df: pd.DataFrame, value_col: str) -> int:
    exponents = df[UNIT_MULT_COL].map(
        lambda m: np.nan if is_missing(m) else float(parse_unit_mult(m))
    ).astype(float)
    values = _numeric_values(df, value_col)
    mask = exponents.notna() & (exponents != 0) & values.notna()
    if not mask.any():
        return 0
    _widen_values(df, value_col, values)
    df.loc[mask, value_col] = values[mask] * np.power(10.0, exponents[mask])
    zero = "0" if isinstance(df[UNIT_MULT_COL].dtype, pd.StringDtype) else 0
    df.loc[mask, UNIT_MULT_COL] = zero
    return int(mask.sum())


def _convert_to_target(
    df: pd.DataFrame,
    value_col: str,
    target_unit: str,
    exchange_rates: Optional[ExchangeRateTable],
) -> int:
    units = df[UNIT_MEASURE_COL].map(lambda u: None if is_missing(u) else str(u))
    values = _numeric_values(df, value_col)
    converted = 0
    for unit in units.dropna().unique():
        if unit == target_unit:
            continue
        factor = conversion_factor(unit, target_unit)
        if factor is None and exchange_rates is not None:
            factor = exchange_rates.get_rate(unit, target_unit)
        if factor is None:
            continue
        mask = (units == unit) & values.notna()
        if not mask.any():
            continue
        _widen_values(df, value_col, values)
        df.loc[mask, value_col] = values[mask] * factor
        df.loc[mask, UNIT_MEASURE_COL] = target_unit
        converted += int(mask.sum())
    return converted


def normalize_units(
    df: pd.DataFrame,
    target_unit: Optional[str] = None,
    exchange_rates: Optional[ExchangeRateTable] = None,
    value_col: str = DEFAULT_VALUE_COL,
) -> pd.DataFrame:
    """Normalize UNIT_MULT and optionally convert to ``target_unit``, in place.

    Not safe to call concurrently on the same DataFrame.

    Args:
        df: Observation table; mutated and returned.
        target_unit: UNIT_MEASURE code to convert values to, if any.
        exchange_rates: Rates for currency conversion to ``target_unit``.
        value_col: Observation value column.

    Returns:
        The same DataFrame object.

    Raises:
        ValueError: If a UNIT_MULT value is not an integer exponent.

    Examples:
        >>> df = pd.DataFrame({"OBS_VALUE": [1.0], "UNIT_MULT": [3]})
        >>> normalize_units(df)["OBS_VALUE"].tolist()
        [1000.0]
    """
    if value_col not in df.columns or df.empty:
        return df

    if UNIT_MULT_COL in df.columns:
        scaled = _apply_unit_mult(df, value_col)
        if scaled:
            logger.debug("Applied UNIT_MULT to %d rows", scaled)

    if target_unit is not None and UNIT_MEASURE_COL in df.columns:
        converted = _convert_to_target(df, value_col, target_unit, exchange_rates)
        if converted:
            logger.debug("Converted %d rows to %s", converted, target_unit)

    return df


def harmonize_units(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    target_unit: Optional[str] = None,
    exchange_rates: Optional[ExchangeRateTable] = None,
    value_col: str = DEFAULT_VALUE_COL,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Copy both tables and normalize them; the inputs are not modified.

    Examples:
        >>> norm_a, norm_b = harmonize_units(trade_df, gdp_df, target_unit="USD",
        ...                                  exchange_rates=default_exchange_rates())
    """
    copy_a = df_a.copy()
    copy_b = df_b.copy()
    normalize_units(copy_a, target_unit=target_unit, exchange_rates=exchange_rates, value_col=value_col)
    normalize_units(copy_b, target_unit=target_unit, exchange_rates=exchange_rates, value_col=value_col)
    return copy_a, copy_b


__all__ = ["normalize_units", "harmonize_units"]
