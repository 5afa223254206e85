"""SDMX unit catalog and currency exchange rates."""

from .catalog import (
    SDMX_UNIT_MAP,
    UnitCatalog,
    UnitSpec,
    are_units_convertible,
    conversion_factor,
    is_currency,
    lookup_unit,
    unit_multiplier,
)
from .exchange import ExchangeRateTable, convert_currency, default_exchange_rates

__all__ = [
    "SDMX_UNIT_MAP",
    "UnitCatalog",
    "UnitSpec",
    "are_units_convertible",
    "conversion_factor",
    "is_currency",
    "lookup_unit",
    "unit_multiplier",
    "ExchangeRateTable",
    "convert_currency",
    "default_exchange_rates",
]
