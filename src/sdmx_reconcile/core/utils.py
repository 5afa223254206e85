"""Core utility functions for SDMX observation tables.

This module provides shared utilities used across the project.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd

# Dimensions reported by summarize_observations when present
SUMMARY_DIMENSIONS = ["FREQ", "INDICATOR", "GEO_PICT", "REF_AREA", "CURRENCY", "SUBJECT"]


def unique_strings(values: Iterable[Any]) -> List[str]:
    """Return distinct non-missing values as strings, in first-seen order.

    Examples:
        >>> unique_strings(["KG", None, "T", "KG"])
        ['KG', 'T']
    """
    out: Dict[str, None] = {}
    for v in values:
        if is_missing(v):
            continue
        out[str(v)] = None
    return list(out)


def is_missing(value: Any) -> bool:
    """True for None, NaN and pandas NA/NaT scalars."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Type-coerce and tidy a raw SDMX-CSV DataFrame.

    - OBS_VALUE is coerced to float; blanks and unparseable values become NaN
    - TIME_PERIOD is cast to string (years read as integers become "2020")
    - UNIT_MULT is coerced to a nullable integer
    - Rows where every column is missing are dropped

    Args:
        df: Raw observation table.

    Returns:
        A cleaned copy; the input is not modified.
    """
    if df.empty:
        return df.copy()

    cleaned = df.copy()

    if "OBS_VALUE" in cleaned.columns:
        cleaned["OBS_VALUE"] = pd.to_numeric(cleaned["OBS_VALUE"], errors="coerce").astype(float)

    if "TIME_PERIOD" in cleaned.columns:
        cleaned["TIME_PERIOD"] = cleaned["TIME_PERIOD"].map(
            lambda p: p if is_missing(p) else str(p)
        )

    if "UNIT_MULT" in cleaned.columns:
        cleaned["UNIT_MULT"] = pd.to_numeric(cleaned["UNIT_MULT"], errors="coerce").astype("Int64")

    cleaned = cleaned.dropna(how="all").reset_index(drop=True)
    return cleaned


def summarize_observations(df: pd.DataFrame) -> Dict[str, Any]:
    """Quick summary statistics for an observation table.

    Returns:
        Dict with ``total_observations`` and, when the columns exist,
        ``time_range`` (first, last), ``obs_stats`` (count/min/max/mean) and the
        sorted distinct values of common dimensions under lower-cased keys.

    Examples:
        >>> summary = summarize_observations(df)
        >>> summary["total_observations"]
        120
    """
    if df.empty:
        return {"total_observations": 0}

    summary: Dict[str, Any] = {"total_observations": int(len(df))}

    if "TIME_PERIOD" in df.columns:
        periods = sorted(unique_strings(df["TIME_PERIOD"]))
        if periods:
            summary["time_range"] = (periods[0], periods[-1])

    if "OBS_VALUE" in df.columns:
        valid = pd.to_numeric(df["OBS_VALUE"], errors="coerce").dropna()
        if not valid.empty:
            summary["obs_stats"] = {
                "count": int(valid.count()),
                "min": float(valid.min()),
                "max": float(valid.max()),
                "mean": round(float(valid.mean()), 2),
            }

    for dim in SUMMARY_DIMENSIONS:
        if dim in df.columns:
            values = sorted(unique_strings(df[dim]))
            if values:
                summary[dim.lower()] = values

    return summary


__all__ = [
    "SUMMARY_DIMENSIONS",
    "unique_strings",
    "is_missing",
    "clean_observations",
    "summarize_observations",
]
