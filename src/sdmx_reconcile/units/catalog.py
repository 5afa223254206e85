"""SDMX unit catalog.

Maps SDMX UNIT_MEASURE codes to a physical dimension and a ratio to the canonical
base unit of that dimension (kg, m^3, m^2, J), so deterministic conversions such
as KG -> T or L -> BBL can be computed from the ratios alone.

Currencies share a "currency" dimension with a 1:1 bookkeeping ratio to USD so that
compound-unit algebra (USD/kg vs USD/T) stays consistent. Cross-currency conversion
is never derived from those ratios: it must go through an ``ExchangeRateTable``.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from sdmx_reconcile.core.enums import UnitCategory
from sdmx_reconcile.core.utils import is_missing

logger = logging.getLogger(__name__)

# Physical dimension tags
MASS = "mass"
VOLUME = "length^3"
AREA = "length^2"
ENERGY = "mass*length^2/time^2"
CURRENCY = "currency"
DIMENSIONLESS = "dimensionless"


@dataclass(frozen=True)
class UnitSpec:
    """Definition of one SDMX unit code.

    Attributes:
        code: SDMX UNIT_MEASURE code (e.g., "KG", "T", "USD").
        dimension: Physical dimension tag; codes sharing a tag are interconvertible.
        ratio: Size of one unit expressed in the canonical base unit of its dimension.
        category: Broad unit category.
        description: Human-readable description.
    """

    code: str
    dimension: str
    ratio: float
    category: UnitCategory
    description: str

    def __post_init__(self) -> None:
        if not (self.ratio > 0 and math.isfinite(self.ratio)):
            raise ValueError(f"Unit '{self.code}' must have a positive finite ratio, got {self.ratio}")

    @property
    def is_currency(self) -> bool:
        return self.category == UnitCategory.CURRENCY


# Units defined directly in terms of the canonical base units
_STANDARD_UNITS: List[UnitSpec] = [
    # Mass (base: kg)
    UnitSpec("KG", MASS, 1.0, UnitCategory.MASS, "Kilogram"),
    UnitSpec("G", MASS, 1e-3, UnitCategory.MASS, "Gram"),
    UnitSpec("LB", MASS, 0.45359237, UnitCategory.MASS, "Pound"),
    # Volume (base: m^3)
    UnitSpec("M3", VOLUME, 1.0, UnitCategory.VOLUME, "Cubic metre"),
    UnitSpec("L", VOLUME, 1e-3, UnitCategory.VOLUME, "Litre"),
    UnitSpec("ML", VOLUME, 1e-6, UnitCategory.VOLUME, "Millilitre"),
    # Area (base: m^2)
    UnitSpec("KM2", AREA, 1e6, UnitCategory.AREA, "Square kilometre"),
    # Energy (base: J)
    UnitSpec("KWH", ENERGY, 3.6e6, UnitCategory.ENERGY, "Kilowatt-hour"),
    UnitSpec("MWH", ENERGY, 3.6e9, UnitCategory.ENERGY, "Megawatt-hour"),
    UnitSpec("GJ", ENERGY, 1e9, UnitCategory.ENERGY, "Gigajoule"),
    # Dimensionless / index
    UnitSpec("PT", DIMENSIONLESS, 1.0, UnitCategory.DIMENSIONLESS, "Percentage point"),
    UnitSpec("PC", DIMENSIONLESS, 1.0, UnitCategory.DIMENSIONLESS, "Percentage"),
    UnitSpec("NUM", DIMENSIONLESS, 1.0, UnitCategory.DIMENSIONLESS, "Number (count)"),
    UnitSpec("IDX", DIMENSIONLESS, 1.0, UnitCategory.DIMENSIONLESS, "Index"),
    UnitSpec("PS", DIMENSIONLESS, 1.0, UnitCategory.DIMENSIONLESS, "Persons"),
]

# SDMX-specific units: tonne, barrel, hectare
_CUSTOM_UNITS: List[UnitSpec] = [
    UnitSpec("T", MASS, 1000.0, UnitCategory.MASS, "Metric tonne"),
    UnitSpec("MT", MASS, 1000.0, UnitCategory.MASS, "Metric tonne (alternative code)"),
    UnitSpec("BBL", VOLUME, 0.158987, UnitCategory.VOLUME, "Barrel (oil)"),
    UnitSpec("HA", AREA, 1e4, UnitCategory.AREA, "Hectare"),
]

# (code, description); all 1:1 to USD for bookkeeping only
_CURRENCIES = [
    ("USD", "US Dollar"),
    ("EUR", "Euro"),
    ("FJD", "Fiji Dollar"),
    ("AUD", "Australian Dollar"),
    ("NZD", "New Zealand Dollar"),
    ("GBP", "British Pound"),
    ("JPY", "Japanese Yen"),
    ("PGK", "Papua New Guinea Kina"),
    ("SBD", "Solomon Islands Dollar"),
    ("TOP", "Tongan Paanga"),
    ("VUV", "Vanuatu Vatu"),
    ("WST", "Samoan Tala"),
    ("XPF", "CFP Franc"),
    ("CNY", "Chinese Yuan"),
    ("INR", "Indian Rupee"),
    ("KRW", "South Korean Won"),
]


class UnitCatalog:
    """Registry of SDMX unit codes.

    The process-wide catalog is created once by ``UnitCatalog.default()``; later
    calls return the same instance. ``units`` is a read-only view.

    Examples:
        >>> catalog = UnitCatalog.default()
        >>> catalog.lookup("kg").description
        'Kilogram'
        >>> catalog.conversion_factor("KG", "T")
        0.001
    """

    _default: Optional["UnitCatalog"] = None
    _default_lock = threading.Lock()

    def __init__(self) -> None:
        self._units: Dict[str, UnitSpec] = {}
        self.units: Mapping[str, UnitSpec] = MappingProxyType(self._units)

    @classmethod
    def default(cls) -> "UnitCatalog":
        """Return the process-wide catalog, building it on first use."""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    catalog = cls()
                    _register_builtin_units(catalog)
                    cls._default = catalog
        return cls._default

    def register(self, spec: UnitSpec) -> None:
        """Register a unit definition.

        Re-registering an identical definition is a no-op.

        Raises:
            ValueError: If the code is already registered with a different definition.
        """
        code = spec.code.upper()
        if code != spec.code:
            spec = UnitSpec(code, spec.dimension, spec.ratio, spec.category, spec.description)
        existing = self._units.get(code)
        if existing is not None:
            if existing == spec:
                return
            raise ValueError(f"Unit '{code}' is already registered with a different definition")
        self._units[code] = spec

    def lookup(self, code: Any) -> Optional[UnitSpec]:
        """Return the spec for ``code`` (case-insensitive), or None if unknown."""
        if is_missing(code):
            return None
        return self._units.get(str(code).strip().upper())

    def is_currency(self, code: Any) -> bool:
        spec = self.lookup(code)
        return spec is not None and spec.is_currency

    def are_convertible(self, code_a: Any, code_b: Any) -> bool:
        """Whether two codes convert deterministically (no exchange rate involved).

        Unknown codes are never convertible. A currency is only convertible to
        itself; different currencies require an exchange-rate table.
        """
        spec_a = self.lookup(code_a)
        spec_b = self.lookup(code_b)
        if spec_a is None or spec_b is None:
            return False
        if spec_a.is_currency or spec_b.is_currency:
            return spec_a.code == spec_b.code
        return spec_a.dimension == spec_b.dimension

    def conversion_factor(self, from_code: Any, to_code: Any) -> Optional[float]:
        """Factor turning a quantity in ``from_code`` into ``to_code``.

        Returns 1.0 for identical codes, None when not convertible.
        """
        if from_code == to_code:
            return 1.0
        if not self.are_convertible(from_code, to_code):
            return None
        spec_from = self.lookup(from_code)
        spec_to = self.lookup(to_code)
        return spec_from.ratio / spec_to.ratio


def _register_builtin_units(catalog: UnitCatalog) -> None:
    for spec in _STANDARD_UNITS:
        catalog.register(spec)
    for spec in _CUSTOM_UNITS:
        catalog.register(spec)
    for code, description in _CURRENCIES:
        catalog.register(UnitSpec(code, CURRENCY, 1.0, UnitCategory.CURRENCY, description))
    logger.debug("Registered %d SDMX unit codes", len(catalog.units))


SDMX_UNIT_MAP: Mapping[str, UnitSpec] = UnitCatalog.default().units


def lookup_unit(code: Any) -> Optional[UnitSpec]:
    """Look up an SDMX UNIT_MEASURE code; None if unknown.

    Examples:
        >>> lookup_unit("KG").category
        <UnitCategory.MASS: 'mass'>
        >>> lookup_unit("UNKNOWN") is None
        True
    """
    return UnitCatalog.default().lookup(code)


def is_currency(code: Any) -> bool:
    return UnitCatalog.default().is_currency(code)


def are_units_convertible(code_a: Any, code_b: Any) -> bool:
    """Check whether two SDMX unit codes are deterministically convertible.

    Examples:
        >>> are_units_convertible("KG", "T")
        True
        >>> are_units_convertible("KG", "L")
        False
        >>> are_units_convertible("USD", "EUR")
        False
    """
    return UnitCatalog.default().are_convertible(code_a, code_b)


def conversion_factor(from_code: Any, to_code: Any) -> Optional[float]:
    """Return the deterministic conversion factor between two SDMX unit codes.

    Examples:
        >>> conversion_factor("KG", "T")
        0.001
        >>> conversion_factor("T", "KG")
        1000.0
        >>> conversion_factor("USD", "EUR") is None
        True
    """
    return UnitCatalog.default().conversion_factor(from_code, to_code)


def unit_multiplier(mult_code: Any) -> float:
    """Convert an SDMX UNIT_MULT exponent to its numeric multiplier (10**exponent).

    Accepts integers, integral floats and numeric strings. Missing values
    (None, NaN, pandas NA) mean exponent 0.

    Raises:
        ValueError: If the value is not an integral exponent.

    Examples:
        >>> unit_multiplier(3)
        1000.0
        >>> unit_multiplier("6")
        1000000.0
        >>> unit_multiplier(None)
        1.0
    """
    if is_missing(mult_code):
        return 1.0
    return 10.0 ** parse_unit_mult(mult_code)


def parse_unit_mult(mult_code: Any) -> int:
    """Parse a UNIT_MULT value to an integer exponent; missing values give 0."""
    if is_missing(mult_code):
        return 0
    if isinstance(mult_code, str):
        text = mult_code.strip()
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ValueError(f"Invalid UNIT_MULT value: {mult_code!r}") from None
    else:
        try:
            number = float(mult_code)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid UNIT_MULT value: {mult_code!r}") from None
    if not number.is_integer():
        raise ValueError(f"UNIT_MULT must be an integer exponent, got {mult_code!r}")
    return int(number)


__all__ = [
    "MASS",
    "VOLUME",
    "AREA",
    "ENERGY",
    "CURRENCY",
    "DIMENSIONLESS",
    "UnitSpec",
    "UnitCatalog",
    "SDMX_UNIT_MAP",
    "lookup_unit",
    "is_currency",
    "are_units_convertible",
    "conversion_factor",
    "unit_multiplier",
    "parse_unit_mult",
]
