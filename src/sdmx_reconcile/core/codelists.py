"""Helpers over codelist tables.

A codelist table is the long-format DataFrame produced by the SDMX-ML codelist
extractor, with at least ``codelist_id`` and ``code_id`` columns (usually also
``lang``, ``name``, ``parent_code_id`` and ``order``).
"""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from .schemas import DataflowSchema, get_codelist_columns

CODELIST_ID_COL = "codelist_id"
CODE_ID_COL = "code_id"


def _check_columns(codelists: pd.DataFrame) -> None:
    missing = [c for c in (CODELIST_ID_COL, CODE_ID_COL) if c not in codelists.columns]
    if missing:
        raise ValueError(f"Codelist table is missing columns: {', '.join(missing)}")


def codelist_ids(codelists: pd.DataFrame) -> List[str]:
    """Return the sorted distinct codelist ids in a codelist table."""
    _check_columns(codelists)
    return sorted(str(v) for v in codelists[CODELIST_ID_COL].dropna().unique())


def get_codelist_codes(codelists: pd.DataFrame, codelist_id: str) -> List[str]:
    """Return the distinct codes of one codelist, in table order.

    Returns an empty list when the codelist is not present. Codes repeated across
    languages are reported once.
    """
    _check_columns(codelists)
    subset = codelists.loc[codelists[CODELIST_ID_COL] == codelist_id, CODE_ID_COL].dropna()
    return list(dict.fromkeys(str(v) for v in subset))


def map_codelist_to_dimension(
    schema: DataflowSchema, codelists: pd.DataFrame
) -> Dict[str, List[str]]:
    """Map each codelist-backed column of ``schema`` to its allowed codes.

    Columns whose codelist is absent from ``codelists`` map to an empty list.
    """
    return {
        column: get_codelist_codes(codelists, cl_id)
        for column, cl_id in get_codelist_columns(schema).items()
    }


__all__ = [
    "CODELIST_ID_COL",
    "CODE_ID_COL",
    "codelist_ids",
    "get_codelist_codes",
    "map_codelist_to_dimension",
]
