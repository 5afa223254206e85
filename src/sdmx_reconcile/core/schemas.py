"""Dataflow schema model for SDMX structural metadata.

A ``DataflowSchema`` is produced by an SDMX-ML metadata extractor and consumed by
schema comparison, join-key detection and column helpers. Field names follow the
extractor's wire format so that any conforming mapping can be loaded with
``DataflowSchema.from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

MANDATORY = "Mandatory"
CONDITIONAL = "Conditional"


@dataclass(frozen=True)
class Dimension:
    """A key dimension of a dataflow.

    Attributes:
        dimension_id: Dimension identifier (e.g., "GEO_PICT").
        position: 1-based position defining canonical key ordering.
        codelist_id: Referenced codelist, or None for non-enumerated dimensions.
        concept_id: Referenced concept, if any.
        data_type: Text format type for non-enumerated dimensions.
    """

    dimension_id: str
    position: int
    codelist_id: Optional[str] = None
    concept_id: Optional[str] = None
    data_type: Optional[str] = None


@dataclass(frozen=True)
class TimeDimension:
    """The distinguished time dimension (usually TIME_PERIOD)."""

    dimension_id: str
    codelist_id: Optional[str] = None
    concept_id: Optional[str] = None


@dataclass(frozen=True)
class Attribute:
    """A dataflow attribute with its assignment status."""

    attribute_id: str
    assignment_status: str = CONDITIONAL
    codelist_id: Optional[str] = None
    concept_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.assignment_status not in (MANDATORY, CONDITIONAL):
            raise ValueError(
                f"Invalid assignment_status: {self.assignment_status}. "
                f"Must be '{MANDATORY}' or '{CONDITIONAL}'."
            )

    @property
    def is_mandatory(self) -> bool:
        return self.assignment_status == MANDATORY


@dataclass(frozen=True)
class Measure:
    """Primary measure (observation-value column)."""

    measure_id: str
    concept_id: Optional[str] = None


@dataclass(frozen=True)
class DataflowInfo:
    """Dataflow identity metadata."""

    id: str
    agency: str = ""
    version: str = ""
    name: Optional[str] = None


@dataclass
class DataflowSchema:
    """Complete schema information for an SDMX dataflow.

    Attributes:
        dataflow_info: Agency, id, version and name of the dataflow.
        dimensions: Key dimensions (excluding the time dimension).
        attributes: Dataflow attributes.
        measures: Primary measure(s); SDMX 2.1 dataflows carry exactly one.
        time_dimension: Time dimension information, if the dataflow has one.

    Examples:
        >>> schema = DataflowSchema.from_dict({
        ...     "dataflow_info": {"id": "DF_TRADE", "agency": "SPC", "version": "1.0"},
        ...     "dimensions": [{"dimension_id": "GEO_PICT", "position": 1,
        ...                     "codelist_id": "CL_COM_GEO_PICT"}],
        ...     "attributes": [],
        ...     "measures": [{"measure_id": "OBS_VALUE"}],
        ...     "time_dimension": {"dimension_id": "TIME_PERIOD"},
        ... })
        >>> get_dimension_order(schema)
        ['GEO_PICT', 'TIME_PERIOD']
    """

    dataflow_info: DataflowInfo
    dimensions: List[Dimension] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    measures: List[Measure] = field(default_factory=list)
    time_dimension: Optional[TimeDimension] = None

    def __post_init__(self) -> None:
        positions = [d.position for d in self.dimensions]
        if len(positions) != len(set(positions)):
            raise ValueError(
                f"Duplicate dimension positions in dataflow '{self.dataflow_info.id}': "
                f"{sorted(positions)}"
            )

    @property
    def dimension_ids(self) -> List[str]:
        return [d.dimension_id for d in self.dimensions]

    @property
    def attribute_ids(self) -> List[str]:
        return [a.attribute_id for a in self.attributes]

    def get_dimension(self, dimension_id: str) -> Optional[Dimension]:
        for dim in self.dimensions:
            if dim.dimension_id == dimension_id:
                return dim
        return None

    def dimensions_frame(self) -> pd.DataFrame:
        """Return dimensions as a DataFrame sorted by position."""
        columns = ["dimension_id", "position", "codelist_id", "concept_id", "data_type"]
        rows = [
            {
                "dimension_id": d.dimension_id,
                "position": d.position,
                "codelist_id": d.codelist_id,
                "concept_id": d.concept_id,
                "data_type": d.data_type,
            }
            for d in sorted(self.dimensions, key=lambda d: d.position)
        ]
        return pd.DataFrame(rows, columns=columns)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataflowSchema":
        """Build a schema from the extractor's mapping representation.

        Raises:
            ValueError: If a mandatory key is missing or positions collide.
        """
        info = data.get("dataflow_info")
        if not isinstance(info, Mapping) or not info.get("id"):
            raise ValueError("Schema mapping requires 'dataflow_info' with an 'id'")

        try:
            dimensions = [
                Dimension(
                    dimension_id=str(d["dimension_id"]),
                    position=int(d["position"]),
                    codelist_id=_optional_str(d.get("codelist_id")),
                    concept_id=_optional_str(d.get("concept_id")),
                    data_type=_optional_str(d.get("data_type")),
                )
                for d in data.get("dimensions", []) or []
            ]
            attributes = [
                Attribute(
                    attribute_id=str(a["attribute_id"]),
                    assignment_status=str(a.get("assignment_status") or CONDITIONAL),
                    codelist_id=_optional_str(a.get("codelist_id")),
                    concept_id=_optional_str(a.get("concept_id")),
                )
                for a in data.get("attributes", []) or []
            ]
            measures = [
                Measure(
                    measure_id=str(m["measure_id"]),
                    concept_id=_optional_str(m.get("concept_id")),
                )
                for m in data.get("measures", []) or []
            ]
        except KeyError as e:
            raise ValueError(f"Schema mapping is missing required key: {e.args[0]}") from e

        time_dimension = None
        td = data.get("time_dimension")
        if td:
            if "dimension_id" not in td:
                raise ValueError("Schema mapping is missing required key: dimension_id")
            time_dimension = TimeDimension(
                dimension_id=str(td["dimension_id"]),
                codelist_id=_optional_str(td.get("codelist_id")),
                concept_id=_optional_str(td.get("concept_id")),
            )

        return cls(
            dataflow_info=DataflowInfo(
                id=str(info["id"]),
                agency=str(info.get("agency", "")),
                version=str(info.get("version", "")),
                name=_optional_str(info.get("name")),
            ),
            dimensions=dimensions,
            attributes=attributes,
            measures=measures,
            time_dimension=time_dimension,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the mapping representation accepted by ``from_dict``."""
        return {
            "dataflow_info": {
                "id": self.dataflow_info.id,
                "agency": self.dataflow_info.agency,
                "version": self.dataflow_info.version,
                "name": self.dataflow_info.name,
            },
            "dimensions": [
                {
                    "dimension_id": d.dimension_id,
                    "position": d.position,
                    "codelist_id": d.codelist_id,
                    "concept_id": d.concept_id,
                    "data_type": d.data_type,
                }
                for d in self.dimensions
            ],
            "attributes": [
                {
                    "attribute_id": a.attribute_id,
                    "assignment_status": a.assignment_status,
                    "codelist_id": a.codelist_id,
                    "concept_id": a.concept_id,
                }
                for a in self.attributes
            ],
            "measures": [
                {"measure_id": m.measure_id, "concept_id": m.concept_id} for m in self.measures
            ],
            "time_dimension": (
                {
                    "dimension_id": self.time_dimension.dimension_id,
                    "codelist_id": self.time_dimension.codelist_id,
                    "concept_id": self.time_dimension.concept_id,
                }
                if self.time_dimension is not None
                else None
            ),
        }


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    text = str(value)
    return text if text else None


def get_query_key_order(schema: DataflowSchema) -> List[str]:
    """Return regular dimension ids sorted by position.

    The time dimension is excluded: SDMX REST queries filter time with
    startPeriod/endPeriod rather than a key position.
    """
    return [d.dimension_id for d in sorted(schema.dimensions, key=lambda d: d.position)]


def get_dimension_order(schema: DataflowSchema) -> List[str]:
    """Return dimension ids sorted by position with the time dimension appended last.

    Used as the canonical key ordering for joins.
    """
    order = get_query_key_order(schema)
    if schema.time_dimension is not None and schema.time_dimension.dimension_id not in order:
        order.append(schema.time_dimension.dimension_id)
    return order


def get_required_columns(schema: DataflowSchema) -> List[str]:
    """Return SDMX-CSV columns that must be present for this dataflow.

    Includes all dimensions, the time dimension, the primary measure(s) and
    mandatory attributes.
    """
    required = get_query_key_order(schema)
    if schema.time_dimension is not None:
        required.append(schema.time_dimension.dimension_id)
    required.extend(m.measure_id for m in schema.measures)
    required.extend(a.attribute_id for a in schema.attributes if a.is_mandatory)
    return required


def get_optional_columns(schema: DataflowSchema) -> List[str]:
    """Return conditional attribute columns."""
    return [a.attribute_id for a in schema.attributes if not a.is_mandatory]


def get_codelist_columns(schema: DataflowSchema) -> Dict[str, str]:
    """Map each codelist-backed dimension/attribute column to its codelist id."""
    columns: Dict[str, str] = {}
    for dim in schema.dimensions:
        if dim.codelist_id:
            columns[dim.dimension_id] = dim.codelist_id
    if schema.time_dimension is not None and schema.time_dimension.codelist_id:
        columns[schema.time_dimension.dimension_id] = schema.time_dimension.codelist_id
    for attr in schema.attributes:
        if attr.codelist_id:
            columns[attr.attribute_id] = attr.codelist_id
    return columns


__all__ = [
    "MANDATORY",
    "CONDITIONAL",
    "Dimension",
    "TimeDimension",
    "Attribute",
    "Measure",
    "DataflowInfo",
    "DataflowSchema",
    "get_query_key_order",
    "get_dimension_order",
    "get_required_columns",
    "get_optional_columns",
    "get_codelist_columns",
]
