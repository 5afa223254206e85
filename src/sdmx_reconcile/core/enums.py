"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar, Union

_E = TypeVar("_E", bound=Enum)


class UnitCategory(str, Enum):
    """Broad category of an SDMX UNIT_MEASURE code."""

    MASS = "mass"
    VOLUME = "volume"
    AREA = "area"
    ENERGY = "energy"
    CURRENCY = "currency"
    DIMENSIONLESS = "dimensionless"
    OTHER = "other"


class JoinType(str, Enum):
    """Structural join performed by ``sdmx_join``."""

    INNER = "inner"
    OUTER = "outer"
    LEFT = "left"
    RIGHT = "right"


class Aggregation(str, Enum):
    """Aggregation applied when collapsing a finer frequency to a coarser one."""

    SUM = "sum"
    MEAN = "mean"
    LAST = "last"
    FIRST = "first"
    MAX = "max"
    MIN = "min"


class AlignmentMethod(str, Enum):
    """How two tables were brought to a common frequency."""

    NONE = "none"
    AGGREGATE = "aggregate"


class Frequency(str, Enum):
    """SDMX FREQ codes.

    Values are the single-letter codes used in SDMX-CSV ``FREQ`` columns.
    """

    ANNUAL = "A"
    SEMI_ANNUAL = "S"
    QUARTERLY = "Q"
    MONTHLY = "M"
    WEEKLY = "W"
    BUSINESS_DAILY = "B"
    DAILY = "D"


def coerce_enum(enum_cls: Type[_E], value: Union[str, _E], label: str) -> _E:
    """Convert a string or enum member to ``enum_cls``.

    Raises:
        ValueError: If ``value`` is not a member value of ``enum_cls``.

    Examples:
        >>> coerce_enum(JoinType, "outer", "join type")
        <JoinType.OUTER: 'outer'>
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower() if enum_cls is not Frequency else str(value).upper())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Unknown {label}: {value}. Valid: {valid}") from None


__all__ = [
    "UnitCategory",
    "JoinType",
    "Aggregation",
    "AlignmentMethod",
    "Frequency",
    "coerce_enum",
]
