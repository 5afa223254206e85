"""Tests for unit conflict detection.

Covers the classification rules for UNIT_MEASURE pairs (physical, currency,
incompatible), UNIT_MULT scale mismatches, and the grouped versus all-pairs
collection modes.
"""

import pandas as pd
import pytest

from sdmx_reconcile.reconcile.conflicts import (
    classify_unit_pair,
    collect_unit_pairs,
    detect_unit_conflicts,
)
from sdmx_reconcile.reconcile.models import UnitConflict, UnitConflictReport
from sdmx_reconcile.units.exchange import default_exchange_rates


def make_obs(geo, units, mults=None, time="2020"):
    data = {
        "GEO_PICT": list(geo),
        "TIME_PERIOD": [time] * len(geo),
        "OBS_VALUE": [1.0] * len(geo),
        "UNIT_MEASURE": list(units),
    }
    if mults is not None:
        data["UNIT_MULT"] = list(mults)
    return pd.DataFrame(data)


@pytest.fixture
def usd_df():
    """One USD observation for Fiji."""
    return make_obs(["FJ"], ["USD"], [0])


@pytest.fixture
def fjd_df():
    """The same observation expressed in Fiji dollars."""
    return make_obs(["FJ"], ["FJD"], [0]).assign(OBS_VALUE=[229.9])


def test_no_conflicts(trade_df):
    """Test that identical units produce an empty report."""
    report = detect_unit_conflicts(trade_df, trade_df.copy(), join_keys=["GEO_PICT"])

    assert len(report) == 0
    assert not report.has_blocking_conflicts
    assert report.summary == "No unit conflicts detected"


def test_physical_units_convertible():
    """Test that KG vs T is a warning with the conversion factor."""
    report = detect_unit_conflicts(make_obs(["FJ"], ["KG"]), make_obs(["FJ"], ["T"]), ["GEO_PICT"])

    conflict = report.conflicts[0]
    assert conflict.severity == "warning"
    assert conflict.is_convertible
    assert conflict.conversion_factor == pytest.approx(0.001)
    assert conflict.description == "Unit mismatch KG vs T: auto-convertible (factor=0.001)"
    assert not report.has_blocking_conflicts
    assert report.auto_resolvable_count == 1
    assert report.unit_measure_conflicts == [conflict]


@pytest.mark.parametrize(
    "unit_a, unit_b",
    [("KG", "L"), ("KG", "XYZ"), ("NUM", "KWH")],
    ids=["mass_vs_volume", "unknown_code", "count_vs_energy"],
)
def test_incompatible_units_block(unit_a, unit_b):
    """Test that units of different dimensions are blocking errors."""
    conflict = classify_unit_pair(unit_a, unit_b)

    assert conflict.severity == "error"
    assert conflict.is_blocking
    assert not conflict.is_convertible
    assert conflict.conversion_factor is None
    assert conflict.description == f"Incompatible units {unit_a} vs {unit_b}: different dimensions"


def test_currency_with_rates(usd_df, fjd_df):  # pylint: disable=redefined-outer-name
    """Test that a resolvable currency pair is not blocking."""
    report = detect_unit_conflicts(
        usd_df, fjd_df, join_keys=["GEO_PICT", "TIME_PERIOD"], exchange_rates=default_exchange_rates()
    )

    assert not report.has_blocking_conflicts
    assert report.auto_resolvable_count > 0
    conflict = report.currency_conflicts[0]
    assert conflict.involves_currency
    assert conflict.conversion_factor is None
    assert conflict.description == "Currency mismatch USD vs FJD: convertible via exchange rates"


def test_currency_without_rates(usd_df, fjd_df):  # pylint: disable=redefined-outer-name
    """Test that a currency pair with no rate table is blocking."""
    report = detect_unit_conflicts(usd_df, fjd_df, join_keys=["GEO_PICT", "TIME_PERIOD"])

    assert report.has_blocking_conflicts
    assert report.get_blocking_conflicts()[0].description == (
        "Currency mismatch USD vs FJD: no exchange rate available"
    )
    assert report.summary == (
        "Found 1 unit conflict(s): 0 auto-resolvable, 1 require manual intervention"
    )


def test_currency_against_physical_unit():
    """Test that currency vs a non-currency unit never resolves, even with rates."""
    conflict = classify_unit_pair("USD", "NUM", default_exchange_rates())
    assert conflict.severity == "error"
    assert conflict.involves_currency


def test_unit_mult_mismatch():
    """Test that a scale mismatch is auto-resolvable with the multiplier ratio."""
    report = detect_unit_conflicts(
        make_obs(["FJ"], ["USD"], [3]), make_obs(["FJ"], ["USD"], [0]), join_keys=["GEO_PICT"]
    )

    assert len(report.unit_mult_conflicts) == 1
    conflict = report.unit_mult_conflicts[0]
    assert (conflict.value_a, conflict.value_b) == ("3", "0")
    assert conflict.conversion_factor == pytest.approx(1000.0)
    assert conflict.severity == "warning"
    assert conflict.description == "UNIT_MULT mismatch 3 vs 0: auto-resolvable by normalizing"


def test_unit_mult_representations_match():
    """Test that 3, "3" and 3.0 are the same exponent."""
    report = detect_unit_conflicts(
        make_obs(["FJ", "TV"], ["USD", "USD"], [3, 3.0]),
        make_obs(["FJ", "TV"], ["USD", "USD"], ["3", "3"]),
        join_keys=["GEO_PICT"],
    )
    assert len(report) == 0


def test_invalid_unit_mult_raises():
    """Test that a non-integral UNIT_MULT raises ValueError."""
    with pytest.raises(ValueError, match="UNIT_MULT"):
        detect_unit_conflicts(
            make_obs(["FJ"], ["USD"], ["millions"]), make_obs(["FJ"], ["USD"], [0])
        )


def test_measure_conflicts_reported_before_mult():
    """Test conflict ordering: UNIT_MEASURE first, then UNIT_MULT."""
    report = detect_unit_conflicts(
        make_obs(["FJ"], ["KG"], [3]), make_obs(["FJ"], ["T"], [0]), join_keys=["GEO_PICT"]
    )
    assert [c.dimension for c in report.conflicts] == ["UNIT_MEASURE", "UNIT_MULT"]


def test_column_missing_on_one_side_is_skipped():
    """Test that a unit column is only compared when both tables have it."""
    df_b = make_obs(["FJ"], ["T"]).drop(columns=["UNIT_MEASURE"])
    report = detect_unit_conflicts(make_obs(["FJ"], ["KG"], [0]), df_b)
    assert len(report) == 0


def test_grouped_pairs_subset_of_all_pairs():
    """Test that grouped collection only compares rows whose keys co-occur."""
    df_a = make_obs(["FJ", "TV"], ["KG", "NUM"])
    df_b = make_obs(["FJ", "TV"], ["T", "NUM"])

    grouped = collect_unit_pairs(df_a, df_b, "UNIT_MEASURE", ["GEO_PICT"])
    all_pairs = collect_unit_pairs(df_a, df_b, "UNIT_MEASURE")

    assert grouped == [("KG", "T")]
    assert all_pairs == [("KG", "NUM"), ("KG", "T"), ("NUM", "T")]
    assert set(grouped) <= set(all_pairs)


def test_unusable_join_keys_fall_back_to_all_pairs():
    """Test that keys missing from a table are ignored."""
    df_a = make_obs(["FJ"], ["KG"])
    df_b = make_obs(["TV"], ["T"])

    assert collect_unit_pairs(df_a, df_b, "UNIT_MEASURE", ["COMMODITY"]) == [("KG", "T")]
    assert collect_unit_pairs(df_a, df_b, "UNIT_MEASURE", ["GEO_PICT"]) == []


def test_grouped_keys_compare_as_strings():
    """Test that integer and string time periods still meet."""
    df_a = make_obs(["FJ"], ["KG"]).assign(TIME_PERIOD=[2020])
    df_b = make_obs(["FJ"], ["T"])

    pairs = collect_unit_pairs(df_a, df_b, "UNIT_MEASURE", ["GEO_PICT", "TIME_PERIOD"])
    assert pairs == [("KG", "T")]


def test_missing_units_ignored():
    """Test that rows without a unit do not create conflicts."""
    df_a = make_obs(["FJ", "TV"], ["KG", None])
    df_b = make_obs(["FJ", "TV"], ["KG", "T"])
    assert collect_unit_pairs(df_a, df_b, "UNIT_MEASURE", ["GEO_PICT"]) == []


def test_report_serialization():
    """Test dict and Markdown renderings of a report."""
    report = detect_unit_conflicts(
        make_obs(["FJ"], ["KG"], [3]), make_obs(["FJ"], ["L"], [0]), join_keys=["GEO_PICT"]
    )

    data = report.to_dict()
    assert data["total_conflicts"] == 2
    assert data["has_blocking_conflicts"] is True
    assert data["unit_measure_conflicts"] == 1
    assert data["unit_mult_conflicts"] == 1
    assert data["conflicts"][0]["severity"] == "error"

    markdown = report.to_markdown()
    assert markdown.startswith("## Unit Conflicts")
    assert "| UNIT_MULT | 3 | 0 | yes | 1000 | warning |" in markdown


def test_empty_report_markdown():
    """Test the Markdown of a report without conflicts."""
    markdown = UnitConflictReport.from_conflicts([]).to_markdown()
    assert "No unit conflicts detected" in markdown
    assert "|" not in markdown


@pytest.mark.parametrize(
    "field, value, message",
    [("severity", "fatal", "Invalid severity"), ("dimension", "OBS_STATUS", "Invalid conflict dimension")],
    ids=["severity", "dimension"],
)
def test_unit_conflict_validation(field, value, message):
    """Test that UnitConflict rejects unknown severities and columns."""
    kwargs = {
        "dimension": "UNIT_MEASURE",
        "value_a": "KG",
        "value_b": "T",
        "is_convertible": True,
        "conversion_factor": 0.001,
        "severity": "warning",
        "description": "",
    }
    kwargs[field] = value
    with pytest.raises(ValueError, match=message):
        UnitConflict(**kwargs)
