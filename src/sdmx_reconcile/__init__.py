"""SDMX Reconcile: cross-dataflow reconciliation of SDMX observation tables.

Compares dataflow schemas, detects and resolves unit conflicts, aligns
frequencies and joins or stacks observation tables with full diagnostics.
Schema and codelist extraction, HTTP fetching and CSV I/O happen upstream;
this package works on in-memory schemas and pandas DataFrames.
"""

__all__ = [
    "__version__",
    "DataflowSchema",
    "ExchangeRateTable",
    "default_exchange_rates",
    "compare_schemas",
    "detect_unit_conflicts",
    "normalize_units",
    "harmonize_units",
    "align_frequencies",
    "sdmx_join",
    "sdmx_combine",
    "pivot_sdmx_wide",
]

__version__ = "0.3.0"

from .core.schemas import DataflowSchema  # noqa: E402
from .reconcile import (  # noqa: E402
    align_frequencies,
    compare_schemas,
    detect_unit_conflicts,
    harmonize_units,
    normalize_units,
    pivot_sdmx_wide,
    sdmx_combine,
    sdmx_join,
)
from .units import ExchangeRateTable, default_exchange_rates  # noqa: E402
