"""Shared pytest fixtures for SDMX reconciliation tests."""

import pandas as pd
import pytest

from sdmx_reconcile.core.schemas import DataflowSchema


def make_schema(
    dataflow_id,
    dimensions,
    attributes=(),
    time_dimension="TIME_PERIOD",
):
    """Build a DataflowSchema from ``(dimension_id, codelist_id)`` pairs.

    Positions follow list order starting at 1; attributes are
    ``(attribute_id, assignment_status)`` pairs.
    """
    data = {
        "dataflow_info": {"id": dataflow_id, "agency": "SPC", "version": "1.0"},
        "dimensions": [
            {"dimension_id": dim_id, "position": i, "codelist_id": cl_id}
            for i, (dim_id, cl_id) in enumerate(dimensions, start=1)
        ],
        "attributes": [
            {"attribute_id": attr_id, "assignment_status": status}
            for attr_id, status in attributes
        ],
        "measures": [{"measure_id": "OBS_VALUE"}],
        "time_dimension": {"dimension_id": time_dimension} if time_dimension else None,
    }
    return DataflowSchema.from_dict(data)


@pytest.fixture
def trade_df():
    """Trade values in USD for three Pacific countries."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ", "TV", "WS"],
            "TIME_PERIOD": ["2020", "2020", "2020"],
            "OBS_VALUE": [100.0, 200.0, 300.0],
            "UNIT_MEASURE": ["USD", "USD", "USD"],
            "UNIT_MULT": [0, 0, 0],
        }
    )


@pytest.fixture
def population_df():
    """Population counts overlapping trade_df on FJ and TV."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ", "TV", "PG"],
            "TIME_PERIOD": ["2020", "2020", "2020"],
            "OBS_VALUE": [50.0, 60.0, 70.0],
            "UNIT_MEASURE": ["NUM", "NUM", "NUM"],
            "UNIT_MULT": [0, 0, 0],
        }
    )


@pytest.fixture
def quarterly_df():
    """Four quarters of one entity, values 10..40."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ", "FJ", "FJ", "FJ"],
            "FREQ": ["Q", "Q", "Q", "Q"],
            "TIME_PERIOD": ["2020-Q1", "2020-Q2", "2020-Q3", "2020-Q4"],
            "OBS_VALUE": [10.0, 20.0, 30.0, 40.0],
        }
    )


@pytest.fixture
def annual_df():
    """One annual observation for the same entity as quarterly_df."""
    return pd.DataFrame(
        {
            "GEO_PICT": ["FJ"],
            "FREQ": ["A"],
            "TIME_PERIOD": ["2020"],
            "OBS_VALUE": [500.0],
        }
    )


@pytest.fixture
def trade_schema():
    """Trade dataflow: FREQ, GEO_PICT, INDICATOR, COMMODITY."""
    return make_schema(
        "DF_TRADE",
        [
            ("FREQ", "CL_FREQ"),
            ("GEO_PICT", "CL_GEO_PICT"),
            ("INDICATOR", "CL_TRADE_INDICATOR"),
            ("COMMODITY", "CL_COMMODITY"),
        ],
        attributes=[("UNIT_MEASURE", "Mandatory"), ("UNIT_MULT", "Conditional")],
    )


@pytest.fixture
def population_schema():
    """Population dataflow: FREQ, GEO_PICT, INDICATOR (own codelist), SEX, AGE."""
    return make_schema(
        "DF_POP",
        [
            ("FREQ", "CL_FREQ"),
            ("GEO_PICT", "CL_GEO_PICT"),
            ("INDICATOR", "CL_POP_INDICATOR"),
            ("SEX", "CL_SEX"),
            ("AGE", "CL_AGE"),
        ],
        attributes=[("UNIT_MEASURE", "Mandatory"), ("OBS_STATUS", "Conditional")],
    )


@pytest.fixture
def schema_factory():
    """The ``make_schema`` builder, for tests that need custom schemas."""
    return make_schema
