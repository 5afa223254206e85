"""Cross-dataflow reconciliation: schema comparison, unit conflicts and harmonization,
frequency alignment, joins and vertical stacking."""

from .combine import pivot_sdmx_wide, sdmx_combine
from .config import ReconcileSettings, load_exchange_rates, load_settings
from .conflicts import detect_unit_conflicts
from .frequency import align_frequencies, detect_frequency, infer_frequency_from_period
from .harmonize import harmonize_units, normalize_units
from .join import detect_join_columns, sdmx_join
from .models import (
    CodelistOverlap,
    CombineResult,
    FrequencyAlignment,
    JoinResult,
    SchemaComparison,
    UnitConflict,
    UnitConflictReport,
)
from .schema_compare import codelist_overlap, codelist_overlap_from_tables, compare_schemas

__all__ = [
    "CodelistOverlap",
    "CombineResult",
    "FrequencyAlignment",
    "JoinResult",
    "ReconcileSettings",
    "SchemaComparison",
    "UnitConflict",
    "UnitConflictReport",
    "align_frequencies",
    "codelist_overlap",
    "codelist_overlap_from_tables",
    "compare_schemas",
    "detect_frequency",
    "detect_join_columns",
    "detect_unit_conflicts",
    "harmonize_units",
    "infer_frequency_from_period",
    "load_exchange_rates",
    "load_settings",
    "normalize_units",
    "pivot_sdmx_wide",
    "sdmx_combine",
    "sdmx_join",
]
