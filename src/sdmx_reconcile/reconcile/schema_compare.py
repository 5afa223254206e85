"""Dataflow schema comparison and codelist overlap.

``compare_schemas`` finds which dimensions two dataflows have in common and
suggests join columns. Dimensions with the same id but different codelists are
reported as *compatible candidates* only; whether their codes actually overlap is
a separate check with ``codelist_overlap`` / ``codelist_overlap_from_tables``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set

import pandas as pd

from sdmx_reconcile.core.codelists import get_codelist_codes
from sdmx_reconcile.core.schemas import DataflowSchema, Dimension

from .models import (
    COMPATIBLE_DIMENSION_COLUMNS,
    SHARED_DIMENSION_COLUMNS,
    CodelistOverlap,
    SchemaComparison,
)

logger = logging.getLogger(__name__)

TIME_OVERLAP_NOTE = "Time range comparison requires availability constraint data"


def codelist_overlap(codes_a: Iterable[str], codes_b: Iterable[str]) -> CodelistOverlap:
    """Compute set overlap between two collections of codes.

    Args:
        codes_a: Codes of the first codelist (duplicates ignored).
        codes_b: Codes of the second codelist.

    Returns:
        CodelistOverlap with sorted code lists and overlap ratios.

    Examples:
        >>> overlap = codelist_overlap(["FJ", "TV", "WS"], ["FJ", "TV", "PG"])
        >>> overlap.intersection
        ['FJ', 'TV']
        >>> overlap.overlap_ratio
        0.5
    """
    set_a = {str(c) for c in codes_a}
    set_b = {str(c) for c in codes_b}
    inter = set_a & set_b
    union_size = len(set_a | set_b)
    return CodelistOverlap(
        intersection=sorted(inter),
        only_a=sorted(set_a - set_b),
        only_b=sorted(set_b - set_a),
        overlap_ratio=len(inter) / union_size if union_size else 0.0,
        a_coverage=len(inter) / len(set_a) if set_a else 0.0,
        b_coverage=len(inter) / len(set_b) if set_b else 0.0,
    )


def codelist_overlap_from_tables(
    codelists_a: pd.DataFrame,
    codelists_b: pd.DataFrame,
    codelist_id_a: str,
    codelist_id_b: Optional[str] = None,
) -> CodelistOverlap:
    """Compute overlap between two codelists held in codelist tables.

    Args:
        codelists_a: Codelist table for dataflow A (``codelist_id``, ``code_id`` columns).
        codelists_b: Codelist table for dataflow B.
        codelist_id_a: Codelist to read from ``codelists_a``.
        codelist_id_b: Codelist to read from ``codelists_b``; defaults to ``codelist_id_a``.

    Returns:
        CodelistOverlap; a codelist missing from its table counts as empty.
    """
    codes_a = get_codelist_codes(codelists_a, codelist_id_a)
    codes_b = get_codelist_codes(codelists_b, codelist_id_b or codelist_id_a)
    return codelist_overlap(codes_a, codes_b)


def _codelist_dim_map(dimensions: List[Dimension]) -> Dict[str, List[Dimension]]:
    result: Dict[str, List[Dimension]] = {}
    for dim in sorted(dimensions, key=lambda d: d.position):
        if dim.codelist_id is None:
            continue
        result.setdefault(dim.codelist_id, []).append(dim)
    return result


def _info_dict(schema: DataflowSchema) -> Dict[str, Any]:
    info = schema.dataflow_info
    return {"id": info.id, "agency": info.agency, "version": info.version, "name": info.name}


def _time_overlap(
    schema_a: DataflowSchema, schema_b: DataflowSchema
) -> Optional[Dict[str, Any]]:
    td_a = schema_a.time_dimension
    td_b = schema_b.time_dimension
    if td_a is None or td_b is None:
        return None
    return {
        "dim_id_a": td_a.dimension_id,
        "dim_id_b": td_b.dimension_id,
        "same_id": td_a.dimension_id == td_b.dimension_id,
        "note": TIME_OVERLAP_NOTE,
    }


def compare_schemas(schema_a: DataflowSchema, schema_b: DataflowSchema) -> SchemaComparison:
    """Compare two dataflow schemas.

    Shared dimensions reference the same codelist (every A dimension is paired with
    every B dimension using that codelist). Compatible dimensions share an id but
    reference different codelists. Two dimensions with the same id and no codelist
    on either side are treated as shared.

    The joinability score is the number of dimension ids taking part in a shared
    or compatible pair divided by the number of distinct dimension ids across both
    schemas (0.0 when neither schema has dimensions).

    Args:
        schema_a: First dataflow schema.
        schema_b: Second dataflow schema.

    Returns:
        SchemaComparison with recommended join dimensions ordered exact matches
        first, then compatible ids, then the common time dimension.

    Examples:
        >>> comparison = compare_schemas(trade_schema, population_schema)
        >>> comparison.recommended_join_dims
        ['GEO_PICT', 'TIME_PERIOD']
    """
    cl_to_dims_a = _codelist_dim_map(schema_a.dimensions)
    cl_to_dims_b = _codelist_dim_map(schema_b.dimensions)
    dim_ids_a = set(schema_a.dimension_ids)
    dim_ids_b = set(schema_b.dimension_ids)

    shared_rows: List[Dict[str, Any]] = []
    for cl_id in sorted(set(cl_to_dims_a) & set(cl_to_dims_b)):
        for dim_a in cl_to_dims_a[cl_id]:
            for dim_b in cl_to_dims_b[cl_id]:
                shared_rows.append(
                    {
                        "codelist_id": cl_id,
                        "dim_id_a": dim_a.dimension_id,
                        "dim_id_b": dim_b.dimension_id,
                        "concept_a": dim_a.concept_id,
                        "concept_b": dim_b.concept_id,
                    }
                )
    shared_ids: Set[str] = {r["dim_id_a"] for r in shared_rows} | {r["dim_id_b"] for r in shared_rows}

    compatible_rows: List[Dict[str, Any]] = []
    for dim_a in sorted(schema_a.dimensions, key=lambda d: d.position):
        dim_id = dim_a.dimension_id
        if dim_id not in dim_ids_b or dim_id in shared_ids:
            continue
        dim_b = schema_b.get_dimension(dim_id)
        if dim_a.codelist_id == dim_b.codelist_id:
            # Same id, no codelist on either side
            shared_rows.append(
                {
                    "codelist_id": None,
                    "dim_id_a": dim_id,
                    "dim_id_b": dim_id,
                    "concept_a": dim_a.concept_id,
                    "concept_b": dim_b.concept_id,
                }
            )
            shared_ids.add(dim_id)
            continue
        compatible_rows.append(
            {
                "dimension_id": dim_id,
                "codelist_a": dim_a.codelist_id or "",
                "codelist_b": dim_b.codelist_id or "",
                "concept_a": dim_a.concept_id,
                "concept_b": dim_b.concept_id,
            }
        )

    used_a = {r["dim_id_a"] for r in shared_rows} | {r["dimension_id"] for r in compatible_rows}
    used_b = {r["dim_id_b"] for r in shared_rows} | {r["dimension_id"] for r in compatible_rows}
    unique_a = sorted(dim_ids_a - used_a)
    unique_b = sorted(dim_ids_b - used_b)

    shared_attrs = sorted(set(schema_a.attribute_ids) & set(schema_b.attribute_ids))
    time_overlap = _time_overlap(schema_a, schema_b)

    recommended: List[str] = [r["dim_id_a"] for r in shared_rows if r["dim_id_a"] == r["dim_id_b"]]
    recommended.extend(r["dimension_id"] for r in compatible_rows)
    if time_overlap is not None and time_overlap["same_id"]:
        recommended.append(time_overlap["dim_id_a"])
    recommended = list(dict.fromkeys(recommended))

    total_dims = len(dim_ids_a | dim_ids_b)
    matched = shared_ids | {r["dimension_id"] for r in compatible_rows}
    joinability = len(matched) / total_dims if total_dims else 0.0

    logger.debug(
        "Compared %s vs %s: %d shared, %d compatible, joinability %.2f",
        schema_a.dataflow_info.id,
        schema_b.dataflow_info.id,
        len(shared_rows),
        len(compatible_rows),
        joinability,
    )

    return SchemaComparison(
        schema_a_info=_info_dict(schema_a),
        schema_b_info=_info_dict(schema_b),
        shared_dimensions=pd.DataFrame(shared_rows, columns=SHARED_DIMENSION_COLUMNS),
        compatible_dimensions=pd.DataFrame(compatible_rows, columns=COMPATIBLE_DIMENSION_COLUMNS),
        unique_to_a=unique_a,
        unique_to_b=unique_b,
        shared_attributes=shared_attrs,
        time_overlap=time_overlap,
        joinability_score=joinability,
        recommended_join_dims=recommended,
    )


__all__ = [
    "TIME_OVERLAP_NOTE",
    "codelist_overlap",
    "codelist_overlap_from_tables",
    "compare_schemas",
]
