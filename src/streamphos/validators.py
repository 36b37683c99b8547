from __future__ import annotations
import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema, Check

from .config import FRACTIONS, HYDRO_PERIODS
from .exceptions import SchemaError
from .sentinels import Sentinel

schema_sites = DataFrameSchema({
    "site": Column(str, Check.str_matches(r"^[A-Z]+\d+$"), nullable=False, coerce=True),
    "lat": Column(float, Check.in_range(-90, 90), nullable=False),
    "long": Column(float, Check.in_range(-180, 180), nullable=False),
})

schema_numeric_long = DataFrameSchema({
    "site": Column(str, nullable=False, coerce=True),
    "hydro": Column(None, Check.isin(HYDRO_PERIODS), nullable=True, required=False),
    "fraction": Column(None, Check.isin(FRACTIONS), nullable=False),
    "value": Column(float, nullable=False),
})

schema_sentinel_long = DataFrameSchema({
    "site": Column(str, nullable=False, coerce=True),
    "fraction": Column(None, Check.isin(FRACTIONS), nullable=False, required=False),
    "sentinel": Column(None, Check.isin([s.value for s in Sentinel]), nullable=False),
})


def _validate(schema: DataFrameSchema, df: pd.DataFrame, name: str) -> pd.DataFrame:
    try:
        return schema.validate(df, lazy=True)
    except pa.errors.SchemaErrors as err:
        cases = err.failure_cases
        cols = sorted({str(c) for c in cases["column"].dropna()}) if "column" in cases else []
        raise SchemaError(cols, source=name, detail=f"{len(cases)} failing check(s)") from err


def validate_sites(df: pd.DataFrame) -> pd.DataFrame:
    return _validate(schema_sites, df, "sites")


def validate_numeric_long(df: pd.DataFrame) -> pd.DataFrame:
    """Every ``value`` is a real float and every fraction label is known."""
    return _validate(schema_numeric_long, df, "numeric fraction table")


def validate_sentinel_long(df: pd.DataFrame) -> pd.DataFrame:
    return _validate(schema_sentinel_long, df, "sentinel table")
