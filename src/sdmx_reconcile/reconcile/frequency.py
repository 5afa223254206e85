"""Frequency alignment for observation tables.

Aggregates the higher-frequency table of a pair (e.g. quarterly) down to the
frequency of the other (e.g. annual) so the two can be joined on TIME_PERIOD.

Target periods are derived by extracting the leading 4-digit year of each time
period, whatever the target frequency. Sub-annual targets (monthly to quarterly)
therefore collapse to annual periods; this is a known limitation.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from sdmx_reconcile.core.enums import Aggregation, AlignmentMethod, Frequency, coerce_enum
from sdmx_reconcile.core.utils import is_missing

from .config import (
    DEFAULT_FREQ_COL,
    DEFAULT_TIME_COL,
    DEFAULT_VALUE_COL,
    FREQ_RANK,
    NON_GROUP_COLS,
)
from .models import FrequencyAlignment

logger = logging.getLogger(__name__)

_TARGET_PERIOD = "_target_period"

# Checked in order; first match wins
_PERIOD_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"^\d{4}$"), Frequency.ANNUAL.value),
    (re.compile(r"^\d{4}-?Q[1-4]$"), Frequency.QUARTERLY.value),
    (re.compile(r"^\d{4}-\d{2}$"), Frequency.MONTHLY.value),
    (re.compile(r"^\d{4}M\d{2}$"), Frequency.MONTHLY.value),
    (re.compile(r"^\d{4}-?W\d{2}$"), Frequency.WEEKLY.value),
    (re.compile(r"^\d{4}-\d{2}-\d{2}$"), Frequency.DAILY.value),
]
_YEAR = re.compile(r"^(\d{4})")


def infer_frequency_from_period(period: str) -> str:
    """Infer an SDMX FREQ code from the shape of one time period string.

    Examples:
        >>> infer_frequency_from_period("2020-Q1")
        'Q'
        >>> infer_frequency_from_period("2020M03")
        'M'
        >>> infer_frequency_from_period("FY2020")
        'A'
    """
    text = str(period).strip()
    for pattern, freq in _PERIOD_PATTERNS:
        if pattern.match(text):
            return freq
    return Frequency.ANNUAL.value


def detect_frequency(
    df: pd.DataFrame,
    freq_col: str = DEFAULT_FREQ_COL,
    time_col: str = DEFAULT_TIME_COL,
) -> str:
    """Detect the frequency of an observation table.

    Uses the frequency column when present (its most common value if it holds
    several), otherwise infers from the first time period. Defaults to annual.
    """
    if freq_col in df.columns:
        counts = df[freq_col].dropna().astype(str).value_counts()
        if not counts.empty:
            return str(counts.index[0])
    if time_col in df.columns:
        periods = df[time_col].dropna()
        if not periods.empty:
            return infer_frequency_from_period(str(periods.iloc[0]))
    return Frequency.ANNUAL.value


def _rank(freq: str) -> int:
    return FREQ_RANK.get(freq, 1)


def _is_text_column(series: pd.Series) -> bool:
    dtype = series.dtype
    return (
        pd.api.types.is_object_dtype(dtype)
        or isinstance(dtype, pd.StringDtype)
        or isinstance(dtype, pd.CategoricalDtype)
    )


def auto_group_columns(
    df: pd.DataFrame,
    time_col: str = DEFAULT_TIME_COL,
    freq_col: str = DEFAULT_FREQ_COL,
    value_col: str = DEFAULT_VALUE_COL,
) -> List[str]:
    """Text columns other than time, frequency, value and observation metadata."""
    exclude = set(NON_GROUP_COLS) | {time_col, freq_col, value_col}
    return [c for c in df.columns if c not in exclude and _is_text_column(df[c])]


def _target_period(period) -> Optional[str]:
    if is_missing(period):
        return None
    text = str(period)
    m = _YEAR.match(text)
    return m.group(1) if m else text


def _aggregate_to_frequency(
    df: pd.DataFrame,
    target_freq: str,
    time_col: str,
    freq_col: str,
    value_col: str,
    aggregation: Aggregation,
    group_cols: Sequence[str],
) -> pd.DataFrame:
    work = df.copy()
    work[_TARGET_PERIOD] = work[time_col].map(_target_period)
    work[value_col] = pd.to_numeric(work[value_col], errors="coerce")

    keys = [c for c in group_cols if c in work.columns and c not in (time_col, value_col)]
    keys.append(_TARGET_PERIOD)

    aggregated = (
        work.groupby(keys, dropna=False, sort=True)[value_col]
        .agg(aggregation.value)
        .reset_index()
        .rename(columns={_TARGET_PERIOD: time_col})
    )
    if freq_col in df.columns:
        aggregated[freq_col] = target_freq
    return aggregated


def align_frequencies(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    time_col: str = DEFAULT_TIME_COL,
    freq_col: str = DEFAULT_FREQ_COL,
    value_col: str = DEFAULT_VALUE_COL,
    target_freq: Optional[Union[str, Frequency]] = None,
    aggregation: Union[str, Aggregation] = Aggregation.SUM,
    group_cols: Optional[Sequence[str]] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame, FrequencyAlignment]:
    """Bring two tables to a common frequency.

    The finer table is aggregated per group and target period; a table already at
    or coarser than the target is returned as an unmodified copy. Aggregated
    tables keep only the group columns, the time column, the value column and
    (when present in the input) the frequency column.

    Args:
        df_a: First observation table.
        df_b: Second observation table.
        time_col: Time period column.
        freq_col: Frequency column.
        value_col: Observation value column.
        target_freq: Force this target frequency instead of the coarser detected one.
        aggregation: One of sum, mean, last, first, max, min; missing values skipped.
        group_cols: Columns to group by; auto-detected per table when None.

    Returns:
        ``(aligned_a, aligned_b, alignment)``.

    Raises:
        ValueError: If ``aggregation`` or ``target_freq`` is unknown.

    Examples:
        >>> aligned_a, aligned_b, info = align_frequencies(quarterly_df, annual_df)
        >>> info.source_freq, info.target_freq, info.method.value
        ('Q', 'A', 'aggregate')
    """
    agg = coerce_enum(Aggregation, aggregation, "aggregation function")

    freq_a = detect_frequency(df_a, freq_col, time_col)
    freq_b = detect_frequency(df_b, freq_col, time_col)
    logger.debug("Detected frequencies: A=%s, B=%s", freq_a, freq_b)

    if target_freq is None:
        target = freq_a if _rank(freq_a) <= _rank(freq_b) else freq_b
    else:
        target = coerce_enum(Frequency, target_freq, "frequency").value
    rank_target = _rank(target)

    aligned: List[pd.DataFrame] = []
    for df, freq in ((df_a, freq_a), (df_b, freq_b)):
        if _rank(freq) > rank_target and time_col in df.columns and value_col in df.columns:
            cols = (
                list(group_cols)
                if group_cols is not None
                else auto_group_columns(df, time_col, freq_col, value_col)
            )
            aligned.append(
                _aggregate_to_frequency(df, target, time_col, freq_col, value_col, agg, cols)
            )
            logger.debug(
                "Aggregated %d %s rows to %d %s rows", len(df), freq, len(aligned[-1]), target
            )
        else:
            aligned.append(df.copy())

    source_freq = freq_a if _rank(freq_a) > _rank(freq_b) else freq_b
    method = (
        AlignmentMethod.NONE
        if freq_a == freq_b == target
        else AlignmentMethod.AGGREGATE
    )
    alignment = FrequencyAlignment(
        source_freq=source_freq, target_freq=target, method=method, aggregation=agg
    )
    return aligned[0], aligned[1], alignment


__all__ = [
    "infer_frequency_from_period",
    "detect_frequency",
    "auto_group_columns",
    "align_frequencies",
]
