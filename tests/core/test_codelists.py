"""Tests for codelist table helpers."""

import pandas as pd
import pytest

from sdmx_reconcile.core.codelists import (
    codelist_ids,
    get_codelist_codes,
    map_codelist_to_dimension,
)


@pytest.fixture
def codelists():
    """Long-format codelist table with two languages for CL_GEO_PICT."""
    return pd.DataFrame(
        {
            "codelist_id": ["CL_GEO_PICT", "CL_GEO_PICT", "CL_GEO_PICT", "CL_FREQ", "CL_FREQ"],
            "code_id": ["FJ", "TV", "FJ", "A", "Q"],
            "lang": ["en", "en", "fr", "en", "en"],
            "name": ["Fiji", "Tuvalu", "Fidji", "Annual", "Quarterly"],
        }
    )


def test_codelist_ids(codelists):  # pylint: disable=redefined-outer-name
    """Test that distinct codelist ids are returned sorted."""
    assert codelist_ids(codelists) == ["CL_FREQ", "CL_GEO_PICT"]


def test_get_codelist_codes_deduplicates_languages(codelists):  # pylint: disable=redefined-outer-name
    """Test that codes repeated across languages are returned once, in table order."""
    assert get_codelist_codes(codelists, "CL_GEO_PICT") == ["FJ", "TV"]


def test_get_codelist_codes_unknown_codelist(codelists):  # pylint: disable=redefined-outer-name
    """Test that an absent codelist yields an empty list."""
    assert get_codelist_codes(codelists, "CL_MISSING") == []


def test_missing_columns_rejected():
    """Test that a table without codelist_id/code_id raises ValueError."""
    with pytest.raises(ValueError, match="missing columns: code_id"):
        get_codelist_codes(pd.DataFrame({"codelist_id": ["CL_FREQ"]}), "CL_FREQ")


def test_map_codelist_to_dimension(codelists, schema_factory):  # pylint: disable=redefined-outer-name
    """Test mapping schema columns to their allowed codes."""
    schema = schema_factory(
        "DF_X", [("FREQ", "CL_FREQ"), ("GEO_PICT", "CL_GEO_PICT"), ("SEX", "CL_SEX")]
    )

    assert map_codelist_to_dimension(schema, codelists) == {
        "FREQ": ["A", "Q"],
        "GEO_PICT": ["FJ", "TV"],
        "SEX": [],
    }
