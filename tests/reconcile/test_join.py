"""Tests for the unit-aware horizontal join."""

import pandas as pd
import pytest

from sdmx_reconcile.core.enums import JoinType
from sdmx_reconcile.reconcile.join import CROSS_JOIN_WARNING, detect_join_columns, sdmx_join
from sdmx_reconcile.units.exchange import default_exchange_rates


@pytest.fixture
def fj_usd():
    """Fiji trade value in USD."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ"],
            "TIME_PERIOD": ["2020"],
            "OBS_VALUE": [100.0],
            "UNIT_MEASURE": ["USD"],
            "UNIT_MULT": [0],
        }
    )


@pytest.fixture
def fj_fjd():
    """The same value in Fiji dollars."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ"],
            "TIME_PERIOD": ["2020"],
            "OBS_VALUE": [229.9],
            "UNIT_MEASURE": ["FJD"],
            "UNIT_MULT": [0],
        }
    )


def test_inner_join_on_detected_keys(trade_df, population_df):
    """Test the inner join of two tables overlapping on FJ and TV."""
    result = sdmx_join(trade_df, population_df, validate_units=False)

    assert result.join_columns == ["GEO_PICT", "TIME_PERIOD"]
    assert result.join_type == JoinType.INNER
    assert result.n_rows == 2
    assert sorted(result.data["GEO_PICT"]) == ["FJ", "TV"]
    assert {"OBS_VALUE_a", "OBS_VALUE_b", "UNIT_MEASURE_a", "UNIT_MEASURE_b"} <= set(result.data.columns)
    assert "OBS_VALUE" not in result.data.columns
    assert result.unit_report is None
    assert result.warnings == []
    assert result.metadata["rows_a"] == 3
    assert result.metadata["rows_b"] == 3
    assert result.metadata["rows_joined"] == 2
    assert result.metadata["cross_join"] is False
    assert result.metadata["renamed_columns_a"]["OBS_VALUE"] == "OBS_VALUE_a"
    assert result.metadata["renamed_columns_b"]["UNIT_MULT"] == "UNIT_MULT_b"


def test_outer_join_keeps_unmatched_rows():
    """Test that an outer join keeps rows from both sides."""
    df_a = pd.DataFrame({"GEO_PICT": ["FJ", "TV"], "TIME_PERIOD": ["2020", "2020"], "OBS_VALUE": [100.0, 200.0]})
    df_b = pd.DataFrame({"GEO_PICT": ["FJ", "PG"], "TIME_PERIOD": ["2020", "2020"], "OBS_VALUE": [50.0, 70.0]})

    result = sdmx_join(df_a, df_b, join_type="outer")

    assert result.join_type == JoinType.OUTER
    assert result.n_rows == 3
    assert sorted(result.data["GEO_PICT"]) == ["FJ", "PG", "TV"]


@pytest.mark.parametrize(
    "join_type, expected_rows",
    [("inner", 2), ("outer", 4), ("left", 3), ("right", 3)],
    ids=["inner", "outer", "left", "right"],
)
def test_join_types(trade_df, population_df, join_type, expected_rows):
    """Test row counts for each join type."""
    result = sdmx_join(trade_df, population_df, join_type=join_type, validate_units=False)
    assert result.n_rows == expected_rows


def test_incompatible_units_warn_but_join(trade_df, population_df):
    """Test that blocking conflicts are reported as warnings without stopping the join."""
    result = sdmx_join(trade_df, population_df)

    assert result.n_rows == 2
    assert result.unit_report.has_blocking_conflicts
    assert result.warnings[0].startswith("Blocking unit conflicts detected: Found 1 unit conflict(s)")
    assert "Currency mismatch USD vs NUM: no exchange rate available" in result.warnings


def test_currency_join_with_rates(fj_usd, fj_fjd):  # pylint: disable=redefined-outer-name
    """Test that an exchange-rate table makes a currency mismatch non-blocking."""
    result = sdmx_join(fj_usd, fj_fjd, exchange_rates=default_exchange_rates())

    assert not result.unit_report.has_blocking_conflicts
    assert result.unit_report.auto_resolvable_count > 0
    assert result.warnings == ["Currency mismatch USD vs FJD: convertible via exchange rates"]
    assert result.data["OBS_VALUE_a"].tolist() == [100.0]
    assert result.data["OBS_VALUE_b"].tolist() == [229.9]


def test_currency_join_without_rates(fj_usd, fj_fjd):  # pylint: disable=redefined-outer-name
    """Test that a currency mismatch without rates is blocking."""
    result = sdmx_join(fj_usd, fj_fjd)
    assert result.unit_report.has_blocking_conflicts


def test_unit_mult_harmonized_before_join(fj_usd):  # pylint: disable=redefined-outer-name
    """Test that UNIT_MULT is normalized on copies before joining."""
    scaled = fj_usd.assign(OBS_VALUE=[1.0], UNIT_MULT=[3])

    result = sdmx_join(scaled, fj_usd)

    assert result.data["OBS_VALUE_a"].tolist() == [1000.0]
    assert result.data["UNIT_MULT_a"].tolist() == [0]
    assert result.warnings == ["UNIT_MULT mismatch 3 vs 0: auto-resolvable by normalizing"]
    assert scaled["OBS_VALUE"].tolist() == [1.0]


def test_harmonize_disabled(fj_usd):  # pylint: disable=redefined-outer-name
    """Test that values are joined as-is when harmonization is off."""
    scaled = fj_usd.assign(OBS_VALUE=[1.0], UNIT_MULT=[3])
    result = sdmx_join(scaled, fj_usd, harmonize=False)
    assert result.data["OBS_VALUE_a"].tolist() == [1.0]


def test_explicit_join_column(trade_df, population_df):
    """Test joining on an explicit single column."""
    result = sdmx_join(trade_df, population_df, on="GEO_PICT", validate_units=False)

    assert result.join_columns == ["GEO_PICT"]
    assert {"TIME_PERIOD_a", "TIME_PERIOD_b"} <= set(result.data.columns)


def test_explicit_join_column_missing(trade_df, population_df):
    """Test that an explicit key absent from a table is dropped with a warning."""
    result = sdmx_join(trade_df, population_df, on=["GEO_PICT", "INDICATOR"], validate_units=False)

    assert result.join_columns == ["GEO_PICT"]
    assert result.n_rows == 2
    assert result.warnings == ["Join columns missing from input tables, ignored: INDICATOR"]
    assert result.metadata["cross_join"] is False


def test_all_explicit_join_columns_missing():
    """Test the cross join fallback when no explicit key exists on both sides."""
    df_a = pd.DataFrame({"GEO": ["FJ", "TV"], "OBS_VALUE": [1.0, 2.0]})
    df_b = pd.DataFrame({"REF_AREA": ["FJ"], "OBS_VALUE": [3.0]})

    result = sdmx_join(df_a, df_b, on=["GEO"], join_type="inner")

    assert result.join_columns == []
    assert result.n_rows == 2
    assert result.join_type == JoinType.INNER
    assert result.metadata["cross_join"] is True
    assert result.warnings == [
        "Join columns missing from input tables, ignored: GEO",
        CROSS_JOIN_WARNING,
    ]


def test_cross_join_when_no_common_keys():
    """Test the cross join fallback and its warning."""
    df_a = pd.DataFrame({"INDICATOR": ["X", "Y"], "OBS_VALUE": [1.0, 2.0]})
    df_b = pd.DataFrame({"COMMODITY": ["C1", "C2", "C3"], "OBS_VALUE": [3.0, 4.0, 5.0]})

    result = sdmx_join(df_a, df_b)

    assert result.join_columns == []
    assert result.n_rows == 6
    assert result.warnings == [CROSS_JOIN_WARNING]
    assert result.metadata["cross_join"] is True


def test_time_overlap_warnings():
    """Test warnings for missing and partial TIME_PERIOD overlap."""
    df_a = pd.DataFrame({"GEO_PICT": ["FJ", "FJ"], "TIME_PERIOD": ["2020", "2021"], "OBS_VALUE": [1.0, 2.0]})
    df_b = pd.DataFrame({"GEO_PICT": ["FJ"], "TIME_PERIOD": ["2025"], "OBS_VALUE": [3.0]})

    result = sdmx_join(df_a, df_b, on=["GEO_PICT", "TIME_PERIOD"], join_type="outer")
    assert result.warnings == ["No overlapping time periods: A=[2020..2021], B=[2025..2025]"]

    partial = sdmx_join(df_a, df_a.iloc[[0]], on=["GEO_PICT", "TIME_PERIOD"])
    assert partial.warnings == ["Partial time overlap: 1 shared periods, 1 only in A, 0 only in B"]


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"join_type": "sideways"}, "Unknown join type: sideways"),
        ({"suffix_a": "_x", "suffix_b": "_x"}, "must differ"),
    ],
    ids=["join_type", "suffixes"],
)
def test_invalid_options_rejected(trade_df, population_df, kwargs, message):
    """Test that invalid join options fail fast."""
    with pytest.raises(ValueError, match=message):
        sdmx_join(trade_df, population_df, **kwargs)


def test_suffix_collision_gets_unique_name(trade_df, population_df):
    """Test that a suffixed name already taken gets a numeric suffix."""
    trade_df["OBS_VALUE_a"] = "note"

    result = sdmx_join(trade_df, population_df, validate_units=False)

    assert result.metadata["renamed_columns_a"]["OBS_VALUE"] == "OBS_VALUE_a_1"
    assert {"OBS_VALUE_a", "OBS_VALUE_a_1", "OBS_VALUE_b"} <= set(result.data.columns)


def test_detect_join_columns_requires_shared_values(trade_df, population_df):
    """Test that common columns without shared values are dropped."""
    df_a = trade_df.assign(SEX="F")
    df_b = population_df.assign(SEX="M")
    assert detect_join_columns(df_a, df_b) == ["GEO_PICT", "TIME_PERIOD"]


def test_detect_join_columns_schema_priority(trade_schema, population_schema):
    """Test that schema-recommended columns come first."""
    df_a = pd.DataFrame({"COUNTRY_LABEL": ["Fiji"], "GEO_PICT": ["FJ"], "TIME_PERIOD": ["2020"]})
    df_b = df_a.copy()

    assert detect_join_columns(df_a, df_b) == ["COUNTRY_LABEL", "GEO_PICT", "TIME_PERIOD"]
    assert detect_join_columns(df_a, df_b, trade_schema, population_schema) == [
        "GEO_PICT",
        "TIME_PERIOD",
        "COUNTRY_LABEL",
    ]


def test_string_typed_values_harmonized_before_join(fj_usd):
    """Test that string-typed OBS_VALUE columns are scaled during the join."""
    df_a = fj_usd.copy()
    df_a["OBS_VALUE"] = pd.array(["1.5"], dtype="string")
    df_a["UNIT_MULT"] = [3]

    result = sdmx_join(df_a, fj_usd, validate_units=False)

    assert result.n_rows == 1
    assert result.data["OBS_VALUE_a"].tolist() == [1500.0]
    assert result.data["OBS_VALUE_b"].tolist() == [100.0]
    assert result.data["UNIT_MULT_a"].tolist() == [0]
