"""Vertical stacking of observation tables from different dataflows.

Stacking avoids the row explosion of a horizontal join when each table carries
its own indicator or commodity dimension: rows are concatenated with a
provenance column and columns missing on one side are filled with nulls.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from sdmx_reconcile.units.exchange import ExchangeRateTable

from .config import DEFAULT_SOURCE_COL, DEFAULT_VALUE_COL, SDMX_METADATA_COLS
from .conflicts import detect_unit_conflicts
from .harmonize import normalize_units
from .models import CombineResult, UnitConflictReport

logger = logging.getLogger(__name__)


def _default_labels(n: int) -> List[str]:
    return [f"DF_{i}" for i in range(1, n + 1)]


def sdmx_combine(
    tables: Sequence[pd.DataFrame],
    sources: Optional[Sequence[str]] = None,
    source_col: str = DEFAULT_SOURCE_COL,
    harmonize: bool = True,
    validate_units: bool = True,
    exchange_rates: Optional[ExchangeRateTable] = None,
) -> CombineResult:
    """Stack observation tables vertically with a provenance column.

    Tables are reduced left to right. For each table after the first, unit
    conflicts against the rows stacked so far are detected without join keys
    (all-pairs) and reported as warnings only; stacking always succeeds.

    Args:
        tables: Two or more observation tables (a single table is allowed).
        sources: Provenance label per table; ``DF_1, DF_2, ...`` when omitted.
        source_col: Name of the provenance column to add.
        harmonize: Normalize UNIT_MULT into OBS_VALUE before stacking.
        validate_units: Run informational unit conflict detection.
        exchange_rates: Rates used when judging currency conflicts.

    Returns:
        CombineResult with the stacked data, labels, per-step unit reports,
        warnings and metadata (rows_per_source, rows_combined, columns_added).

    Raises:
        ValueError: If ``tables`` is empty, ``sources`` has the wrong length, or
            ``source_col`` already exists in an input table.

    Examples:
        >>> result = sdmx_combine([trade_df, pop_df], sources=["Trade", "Population"])
        >>> result.sources
        ['Trade', 'Population']
    """
    tables = list(tables)
    if not tables:
        raise ValueError("sdmx_combine requires at least one table")
    if sources is None:
        labels = _default_labels(len(tables))
    else:
        labels = [str(s) for s in sources]
        if len(labels) != len(tables):
            raise ValueError(
                f"sources has {len(labels)} labels but {len(tables)} tables were given"
            )
    for label, df in zip(labels, tables):
        if source_col in df.columns:
            raise ValueError(f"Provenance column '{source_col}' already exists in table '{label}'")

    warnings: List[str] = []
    unit_reports: List[UnitConflictReport] = []

    tagged: List[pd.DataFrame] = []
    for label, df in zip(labels, tables):
        work = df.copy()
        if harmonize:
            normalize_units(work)
        work[source_col] = label
        tagged.append(work)

    combined = tagged[0]
    # Units are compared before harmonization so UNIT_MULT differences are reported
    stacked_raw = tables[0]
    for label, df, work in zip(labels[1:], tables[1:], tagged[1:]):
        if validate_units:
            report = detect_unit_conflicts(stacked_raw, df, exchange_rates=exchange_rates)
            unit_reports.append(report)
            warnings.extend(f"Stacking {label}: {c.description}" for c in report.conflicts)
            stacked_raw = pd.concat([stacked_raw, df], ignore_index=True, sort=False)
        combined = pd.concat([combined, work], ignore_index=True, sort=False)

    columns_added = sorted(
        str(c)
        for c in combined.columns
        if c != source_col and not all(c in df.columns for df in tables)
    )
    metadata: Dict[str, object] = {
        "rows_per_source": {label: len(df) for label, df in zip(labels, tables)},
        "rows_combined": len(combined),
        "columns_added": columns_added,
    }
    logger.info("Combined %d tables into %d rows", len(tables), len(combined))
    return CombineResult(
        data=combined,
        source_col=source_col,
        sources=labels,
        unit_reports=unit_reports,
        warnings=warnings,
        metadata=metadata,
    )


def pivot_sdmx_wide(
    df: pd.DataFrame,
    indicator_col: str,
    value_col: str = DEFAULT_VALUE_COL,
    index_cols: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Spread the distinct values of ``indicator_col`` into columns of ``value_col``.

    Args:
        df: Long observation table.
        indicator_col: Column whose values become new column names.
        value_col: Column providing the cell values.
        index_cols: Row-key columns; defaults to every column except the
            indicator, the value and SDMX metadata columns.

    Returns:
        Wide DataFrame with the index columns first.

    Raises:
        ValueError: If a column is missing, no index columns remain, or an
            (index, indicator) combination occurs more than once.

    Examples:
        >>> wide = pivot_sdmx_wide(df, indicator_col="INDICATOR")
        >>> list(wide.columns)
        ['GEO_PICT', 'GDP', 'POP']
    """
    for col in (indicator_col, value_col):
        if col not in df.columns:
            raise ValueError(f"Column '{col}' not found in table")
    if index_cols is None:
        index_cols = [
            c
            for c in df.columns
            if c not in (indicator_col, value_col) and c not in SDMX_METADATA_COLS
        ]
    index_cols = list(index_cols)
    if not index_cols:
        raise ValueError("pivot_sdmx_wide needs at least one index column")

    wide = df.pivot(index=index_cols, columns=indicator_col, values=value_col).reset_index()
    wide.columns.name = None
    return wide


__all__ = ["sdmx_combine", "pivot_sdmx_wide"]
