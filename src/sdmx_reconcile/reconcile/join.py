"""Unit-aware horizontal join of two SDMX observation tables."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

import pandas as pd

from sdmx_reconcile.core.enums import JoinType, coerce_enum
from sdmx_reconcile.core.schemas import DataflowSchema
from sdmx_reconcile.units.exchange import ExchangeRateTable

from .config import DEFAULT_TIME_COL, SDMX_METADATA_COLS
from .conflicts import detect_unit_conflicts
from .harmonize import harmonize_units
from .models import JoinResult, UnitConflictReport
from .schema_compare import compare_schemas

logger = logging.getLogger(__name__)

AUTO = "auto"
CROSS_JOIN_WARNING = "No common join columns detected; returning cross join"


def detect_join_columns(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    schema_a: Optional[DataflowSchema] = None,
    schema_b: Optional[DataflowSchema] = None,
) -> List[str]:
    """Detect usable join columns between two observation tables.

    Candidates are the common columns minus SDMX metadata columns, sorted by name.
    With both schemas supplied, columns recommended by ``compare_schemas`` move to
    the front. A candidate is kept only if the two tables share at least one value
    in it.

    Examples:
        >>> detect_join_columns(trade_df, population_df)
        ['GEO_PICT', 'TIME_PERIOD']
    """
    common = set(df_a.columns) & set(df_b.columns)
    candidates = sorted(str(c) for c in common - SDMX_METADATA_COLS)

    if schema_a is not None and schema_b is not None:
        recommended = set(compare_schemas(schema_a, schema_b).recommended_join_dims)
        candidates = [c for c in candidates if c in recommended] + [
            c for c in candidates if c not in recommended
        ]

    valid: List[str] = []
    for col in candidates:
        vals_a = set(df_a[col].dropna().unique())
        vals_b = set(df_b[col].dropna().unique())
        if vals_a & vals_b:
            valid.append(col)
        else:
            logger.debug("Dropping join candidate %s: no shared values", col)
    logger.debug("Detected join columns: %s", valid)
    return valid


def _unique_name(name: str, taken: Set[str]) -> str:
    candidate = name
    n = 1
    while candidate in taken:
        candidate = f"{name}_{n}"
        n += 1
    return candidate


def _suffix_renames(
    columns: Iterable[str], conflicting: Iterable[str], suffix: str
) -> Dict[str, str]:
    taken = set(columns)
    renames: Dict[str, str] = {}
    for col in sorted(conflicting):
        new_name = _unique_name(f"{col}{suffix}", taken)
        taken.add(new_name)
        renames[col] = new_name
    return renames


def _time_overlap_warning(
    df_a: pd.DataFrame, df_b: pd.DataFrame, time_col: str = DEFAULT_TIME_COL
) -> Optional[str]:
    if time_col not in df_a.columns or time_col not in df_b.columns:
        return None
    periods_a = sorted({str(p) for p in df_a[time_col].dropna()})
    periods_b = sorted({str(p) for p in df_b[time_col].dropna()})
    if not periods_a or not periods_b:
        return None
    shared = set(periods_a) & set(periods_b)
    if not shared:
        return (
            f"No overlapping time periods: A=[{periods_a[0]}..{periods_a[-1]}], "
            f"B=[{periods_b[0]}..{periods_b[-1]}]"
        )
    only_a = len(set(periods_a) - shared)
    only_b = len(set(periods_b) - shared)
    if only_a or only_b:
        return (
            f"Partial time overlap: {len(shared)} shared periods, "
            f"{only_a} only in A, {only_b} only in B"
        )
    return None


def sdmx_join(
    df_a: pd.DataFrame,
    df_b: pd.DataFrame,
    on: Union[str, Sequence[str]] = AUTO,
    join_type: Union[str, JoinType] = JoinType.INNER,
    validate_units: bool = True,
    harmonize: bool = True,
    exchange_rates: Optional[ExchangeRateTable] = None,
    schema_a: Optional[DataflowSchema] = None,
    schema_b: Optional[DataflowSchema] = None,
    suffix_a: str = "_a",
    suffix_b: str = "_b",
) -> JoinResult:
    """Join two SDMX observation tables with unit validation and harmonization.

    Steps, in order:

    1. Resolve join columns (``on="auto"`` uses ``detect_join_columns``).
    2. Detect unit conflicts on those columns when ``validate_units`` is set.
       Conflicts are reported as warnings; they never stop the join.
    3. Normalize UNIT_MULT on copies of both tables when ``harmonize`` is set.
    4. Suffix non-key columns present in both tables (``OBS_VALUE_a``, ``OBS_VALUE_b``).
    5. Join; an empty key list produces a cross join, flagged by
       ``metadata["cross_join"]``. Explicit keys missing from either table are
       dropped with a warning.
    6. Warn about missing or partial TIME_PERIOD overlap when it is a key.

    Args:
        df_a: Left table.
        df_b: Right table.
        on: "auto" or explicit column names.
        join_type: inner, outer, left or right.
        validate_units: Run unit conflict detection first.
        harmonize: Normalize UNIT_MULT before joining.
        exchange_rates: Rates used when judging currency conflicts.
        schema_a: Schema of ``df_a``; with ``schema_b`` prioritizes recommended keys.
        schema_b: Schema of ``df_b``.
        suffix_a: Suffix for clashing columns from ``df_a``.
        suffix_b: Suffix for clashing columns from ``df_b``.

    Returns:
        JoinResult with the joined data, keys, unit report, warnings and metadata.

    Raises:
        ValueError: If ``join_type`` is unknown or the suffixes are equal.

    Examples:
        >>> result = sdmx_join(trade_df, pop_df, join_type="inner")
        >>> result.join_columns
        ['GEO_PICT', 'TIME_PERIOD']
        >>> result = sdmx_join(trade_df, gdp_df, on=["GEO_PICT", "TIME_PERIOD"],
        ...                    exchange_rates=default_exchange_rates())
    """
    how = coerce_enum(JoinType, join_type, "join type")
    if suffix_a == suffix_b:
        raise ValueError(f"suffix_a and suffix_b must differ, both are '{suffix_a}'")

    warnings: List[str] = []
    if isinstance(on, str) and on == AUTO:
        join_cols = detect_join_columns(df_a, df_b, schema_a=schema_a, schema_b=schema_b)
        if not join_cols:
            warnings.append(CROSS_JOIN_WARNING)
            logger.warning(CROSS_JOIN_WARNING)
    else:
        requested = [on] if isinstance(on, str) else list(on)
        missing = [c for c in requested if c not in df_a.columns or c not in df_b.columns]
        join_cols = [c for c in requested if c not in missing]
        if missing:
            message = f"Join columns missing from input tables, ignored: {', '.join(missing)}"
            warnings.append(message)
            logger.warning(message)
            if not join_cols:
                warnings.append(CROSS_JOIN_WARNING)
                logger.warning(CROSS_JOIN_WARNING)

    unit_report: Optional[UnitConflictReport] = None
    if validate_units:
        unit_report = detect_unit_conflicts(
            df_a, df_b, join_keys=join_cols, exchange_rates=exchange_rates
        )
        if unit_report.has_blocking_conflicts:
            warnings.append(f"Blocking unit conflicts detected: {unit_report.summary}")
            logger.warning("Blocking unit conflicts detected: %s", unit_report.summary)
        warnings.extend(c.description for c in unit_report.conflicts)

    if harmonize:
        work_a, work_b = harmonize_units(df_a, df_b, exchange_rates=exchange_rates)
    else:
        work_a, work_b = df_a.copy(), df_b.copy()

    conflicting = (set(work_a.columns) & set(work_b.columns)) - set(join_cols)
    rename_a = _suffix_renames(work_a.columns, conflicting, suffix_a)
    rename_b = _suffix_renames(work_b.columns, conflicting, suffix_b)
    work_a = work_a.rename(columns=rename_a)
    work_b = work_b.rename(columns=rename_b)

    if join_cols:
        joined = work_a.merge(work_b, on=join_cols, how=how.value, suffixes=(suffix_a, suffix_b))
    else:
        joined = work_a.merge(work_b, how="cross", suffixes=(suffix_a, suffix_b))

    if DEFAULT_TIME_COL in join_cols:
        overlap_warning = _time_overlap_warning(df_a, df_b)
        if overlap_warning is not None:
            warnings.append(overlap_warning)
            logger.warning(overlap_warning)

    metadata = {
        "renamed_columns_a": rename_a,
        "renamed_columns_b": rename_b,
        "rows_a": len(df_a),
        "rows_b": len(df_b),
        "rows_joined": len(joined),
        "cross_join": not join_cols,
    }
    logger.info(
        "Joined %d x %d rows on %s (%s): %d rows",
        len(df_a),
        len(df_b),
        join_cols or "(cross)",
        how.value,
        len(joined),
    )
    return JoinResult(
        data=joined,
        join_columns=join_cols,
        join_type=how,
        n_rows=len(joined),
        unit_report=unit_report,
        warnings=warnings,
        metadata=metadata,
    )


__all__ = ["AUTO", "CROSS_JOIN_WARNING", "detect_join_columns", "sdmx_join"]
