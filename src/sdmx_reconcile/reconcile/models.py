"""Reconciliation data models.

This module defines the result structures returned by the reconciliation functions:
- UnitConflict / UnitConflictReport: Unit mismatches between two observation tables
- CodelistOverlap: Set overlap between two codelists
- SchemaComparison: Structural comparison of two dataflow schemas
- FrequencyAlignment: How two tables were brought to a common frequency
- JoinResult / CombineResult: Output of horizontal joins and vertical stacking
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from sdmx_reconcile.core.enums import Aggregation, AlignmentMethod, JoinType

from .config import UNIT_MEASURE_COL, UNIT_MULT_COL

_CONFLICT_DIMENSIONS = (UNIT_MEASURE_COL, UNIT_MULT_COL)
_SEVERITIES = ("none", "warning", "error")


@dataclass(frozen=True)
class UnitConflict:
    """A unit mismatch between two tables.

    Attributes:
        dimension: Column where the mismatch occurs ("UNIT_MEASURE" or "UNIT_MULT").
        value_a: Unit value in table A.
        value_b: Unit value in table B.
        is_convertible: True if the mismatch can be resolved automatically.
        conversion_factor: Multiplicative factor turning A values into B units, if known.
        severity: "none", "warning" or "error".
        description: Human-readable explanation.
        involves_currency: True if either side is a currency code.

    Examples:
        >>> UnitConflict(
        ...     dimension="UNIT_MEASURE",
        ...     value_a="KG",
        ...     value_b="T",
        ...     is_convertible=True,
        ...     conversion_factor=0.001,
        ...     severity="warning",
        ...     description="Unit mismatch KG vs T: auto-convertible (factor=0.001)",
        ... )
    """

    dimension: str
    value_a: str
    value_b: str
    is_convertible: bool
    conversion_factor: Optional[float]
    severity: str  # "none" | "warning" | "error"
    description: str
    involves_currency: bool = False

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if self.severity not in _SEVERITIES:
            raise ValueError(
                f"Invalid severity: {self.severity}. Must be 'none', 'warning' or 'error'."
            )
        if self.dimension not in _CONFLICT_DIMENSIONS:
            raise ValueError(
                f"Invalid conflict dimension: {self.dimension}. Must be UNIT_MEASURE or UNIT_MULT."
            )

    @property
    def is_blocking(self) -> bool:
        return self.severity == "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": self.dimension,
            "value_a": self.value_a,
            "value_b": self.value_b,
            "is_convertible": self.is_convertible,
            "conversion_factor": self.conversion_factor,
            "severity": self.severity,
            "description": self.description,
        }


@dataclass
class UnitConflictReport:
    """All unit conflicts found between two tables.

    Build with ``UnitConflictReport.from_conflicts`` so the categorized lists and
    counters stay consistent with ``conflicts``.

    Examples:
        >>> report = detect_unit_conflicts(df_a, df_b, join_keys=["GEO_PICT"])
        >>> report.has_blocking_conflicts
        False
        >>> report.summary
        'Found 1 unit conflict(s): 1 auto-resolvable, 0 require manual intervention'
    """

    conflicts: List[UnitConflict] = field(default_factory=list)
    unit_measure_conflicts: List[UnitConflict] = field(default_factory=list)
    unit_mult_conflicts: List[UnitConflict] = field(default_factory=list)
    currency_conflicts: List[UnitConflict] = field(default_factory=list)
    has_blocking_conflicts: bool = False
    auto_resolvable_count: int = 0
    summary: str = "No unit conflicts detected"

    @classmethod
    def from_conflicts(cls, conflicts: List[UnitConflict]) -> "UnitConflictReport":
        conflicts = list(conflicts)
        measure = [c for c in conflicts if c.dimension == UNIT_MEASURE_COL]
        mult = [c for c in conflicts if c.dimension == UNIT_MULT_COL]
        currency = [c for c in measure if c.involves_currency]
        auto = sum(1 for c in conflicts if c.is_convertible)
        if conflicts:
            summary = (
                f"Found {len(conflicts)} unit conflict(s): {auto} auto-resolvable, "
                f"{len(conflicts) - auto} require manual intervention"
            )
        else:
            summary = "No unit conflicts detected"
        return cls(
            conflicts=conflicts,
            unit_measure_conflicts=measure,
            unit_mult_conflicts=mult,
            currency_conflicts=currency,
            has_blocking_conflicts=any(c.is_blocking for c in conflicts),
            auto_resolvable_count=auto,
            summary=summary,
        )

    def __len__(self) -> int:
        return len(self.conflicts)

    def get_blocking_conflicts(self) -> List[UnitConflict]:
        return [c for c in self.conflicts if c.is_blocking]

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form, suitable for JSON serialization."""
        return {
            "summary": self.summary,
            "has_blocking_conflicts": self.has_blocking_conflicts,
            "auto_resolvable_count": self.auto_resolvable_count,
            "total_conflicts": len(self.conflicts),
            "unit_measure_conflicts": len(self.unit_measure_conflicts),
            "unit_mult_conflicts": len(self.unit_mult_conflicts),
            "currency_conflicts": len(self.currency_conflicts),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }

    def to_markdown(self) -> str:
        """Render the report as a Markdown section.

        Returns:
            Markdown with a summary and one table row per conflict.
        """
        lines = [
            "## Unit Conflicts",
            "",
            f"**Summary:** {self.summary}",
            "",
        ]
        if not self.conflicts:
            return "\n".join(lines)

        lines.append(
            f"- **Blocking:** {'yes ❌' if self.has_blocking_conflicts else 'no ✅'}"
        )
        lines.append(f"- **Auto-resolvable:** {self.auto_resolvable_count}")
        lines.append("")
        lines.append("| Column | A | B | Convertible | Factor | Severity | Description |")
        lines.append("|---|---|---|---|---|---|---|")
        for c in self.conflicts:
            factor = "" if c.conversion_factor is None else f"{c.conversion_factor:g}"
            lines.append(
                f"| {c.dimension} | {c.value_a} | {c.value_b} | "
                f"{'yes' if c.is_convertible else 'no'} | {factor} | {c.severity} | "
                f"{c.description} |"
            )
        lines.append("")
        return "\n".join(lines)


@dataclass(frozen=True)
class CodelistOverlap:
    """Set overlap between two lists of codes.

    All ratios are 0.0 when their denominator is empty.

    Attributes:
        intersection: Codes present in both lists (sorted).
        only_a: Codes only in A (sorted).
        only_b: Codes only in B (sorted).
        overlap_ratio: |A ∩ B| / |A ∪ B|.
        a_coverage: |A ∩ B| / |A|.
        b_coverage: |A ∩ B| / |B|.
    """

    intersection: List[str]
    only_a: List[str]
    only_b: List[str]
    overlap_ratio: float
    a_coverage: float
    b_coverage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intersection": list(self.intersection),
            "only_a": list(self.only_a),
            "only_b": list(self.only_b),
            "overlap_ratio": self.overlap_ratio,
            "a_coverage": self.a_coverage,
            "b_coverage": self.b_coverage,
        }


SHARED_DIMENSION_COLUMNS = ["codelist_id", "dim_id_a", "dim_id_b", "concept_a", "concept_b"]
COMPATIBLE_DIMENSION_COLUMNS = [
    "dimension_id",
    "codelist_a",
    "codelist_b",
    "concept_a",
    "concept_b",
]


@dataclass(frozen=True)
class SchemaComparison:
    """Structural comparison of two dataflow schemas.

    Attributes:
        schema_a_info: Dataflow identity of schema A.
        schema_b_info: Dataflow identity of schema B.
        shared_dimensions: One row per dimension pair sharing a codelist
            (columns: codelist_id, dim_id_a, dim_id_b, concept_a, concept_b).
        compatible_dimensions: Same dimension id, different codelist; candidates
            only, code overlap is not checked (columns: dimension_id, codelist_a,
            codelist_b, concept_a, concept_b).
        unique_to_a: Dimension ids only in schema A (sorted).
        unique_to_b: Dimension ids only in schema B (sorted).
        shared_attributes: Attribute ids present in both schemas (sorted).
        time_overlap: Time dimension match info, or None if either schema lacks one.
        joinability_score: Fraction of dimension ids that are shared or compatible.
        recommended_join_dims: Suggested join columns, exact matches first.
    """

    schema_a_info: Dict[str, Any]
    schema_b_info: Dict[str, Any]
    shared_dimensions: pd.DataFrame
    compatible_dimensions: pd.DataFrame
    unique_to_a: List[str]
    unique_to_b: List[str]
    shared_attributes: List[str]
    time_overlap: Optional[Dict[str, Any]]
    joinability_score: float
    recommended_join_dims: List[str]

    def summary(self) -> str:
        """One-paragraph text summary of the comparison."""
        a_id = self.schema_a_info.get("id", "A")
        b_id = self.schema_b_info.get("id", "B")
        return (
            f"Schema comparison {a_id} vs {b_id}:\n"
            f"  Shared dimensions: {len(self.shared_dimensions)}\n"
            f"  Compatible dimensions: {len(self.compatible_dimensions)}\n"
            f"  Unique: {len(self.unique_to_a)} in {a_id}, {len(self.unique_to_b)} in {b_id}\n"
            f"  Joinability: {self.joinability_score:.2f}\n"
            f"  Recommended join: {', '.join(self.recommended_join_dims) or '(none)'}"
        )


@dataclass(frozen=True)
class FrequencyAlignment:
    """Frequency alignment applied to a pair of tables.

    Attributes:
        source_freq: The finer of the two detected frequencies.
        target_freq: Frequency both tables were brought to.
        method: ``AlignmentMethod.NONE`` if both were already at target.
        aggregation: Aggregation used when collapsing finer periods.
    """

    source_freq: str
    target_freq: str
    method: AlignmentMethod
    aggregation: Aggregation


@dataclass(frozen=True)
class JoinResult:
    """Result of ``sdmx_join``.

    Attributes:
        data: Joined table.
        join_columns: Key columns used (empty for a cross join).
        join_type: Structural join performed.
        n_rows: Row count of ``data``.
        unit_report: Unit conflict report, or None when validation was skipped.
        warnings: Human-readable warnings, in the order they were raised.
        metadata: rows_a, rows_b, rows_joined, renamed_columns_a, renamed_columns_b.
    """

    data: pd.DataFrame
    join_columns: List[str]
    join_type: JoinType
    n_rows: int
    unit_report: Optional[UnitConflictReport]
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CombineResult:
    """Result of ``sdmx_combine``.

    Attributes:
        data: Stacked table with a provenance column.
        source_col: Name of the provenance column.
        sources: Provenance label of each input table, in input order.
        unit_reports: One report per successive stacked pair when validation ran.
        warnings: Human-readable warnings, in the order they were raised.
        metadata: rows_per_source, rows_combined, columns_added.
    """

    data: pd.DataFrame
    source_col: str
    sources: List[str]
    unit_reports: List[UnitConflictReport] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_rows(self) -> int:
        return len(self.data)


__all__ = [
    "UnitConflict",
    "UnitConflictReport",
    "CodelistOverlap",
    "SHARED_DIMENSION_COLUMNS",
    "COMPATIBLE_DIMENSION_COLUMNS",
    "SchemaComparison",
    "FrequencyAlignment",
    "JoinResult",
    "CombineResult",
]
