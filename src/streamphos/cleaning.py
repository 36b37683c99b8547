from __future__ import annotations
import logging

import pandas as pd

from .config import EXCLUDED_SITE, STREAM_NAMES
from .exceptions import SchemaError

logger = logging.getLogger(__name__)


def normalize_columns(df: pd.DataFrame, lower: bool = True) -> pd.DataFrame:
    """
    Normalize column names by stripping whitespace, replacing spaces with underscores,
    and removing special characters.

    Args:
        df: Input DataFrame
        lower: Also lower-case the names

    Returns:
        DataFrame with normalized column names
    """
    df = df.copy()
    cols = (
        df.columns
        .astype(str)
        .str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.replace(r"[^0-9A-Za-z_]", "", regex=True)
    )
    df.columns = cols.str.lower() if lower else cols
    return df


def harmonize_ids(df: pd.DataFrame, id_col="site") -> pd.DataFrame:
    """
    Standardize ID column values by converting to uppercase strings and stripping whitespace.

    Args:
        df: Input DataFrame
        id_col: Name of the ID column to harmonize (default: "site")

    Returns:
        DataFrame with standardized ID column

    Raises:
        SchemaError: if any id is blank or missing
    """
    df = df.copy()
    if id_col in df.columns:
        ids = df[id_col]
        df[id_col] = ids.where(ids.isna(), ids.astype(str).str.strip().str.upper())
        blank = df[id_col].isna() | (df[id_col] == "")
        if blank.any():
            raise SchemaError([id_col], detail=f"{int(blank.sum())} blank id(s)")
    return df


def drop_site(df: pd.DataFrame, site: str = EXCLUDED_SITE, id_col: str = "site") -> pd.DataFrame:
    """
    Remove every row belonging to ``site``.

    Pure and idempotent: filtering an already filtered table returns an equal table.

    Raises:
        SchemaError: if ``id_col`` is not a column of df
    """
    if id_col not in df.columns:
        raise SchemaError([id_col], detail="site id column not found")
    keep = df[id_col] != site
    n_removed = int((~keep).sum())
    if n_removed:
        logger.debug("Removed %d row(s) for site %s", n_removed, site)
    return df.loc[keep].reset_index(drop=True)


def add_stream_group(df: pd.DataFrame, id_col: str = "site") -> pd.DataFrame:
    """
    Derive the stream group from the first letter of the site id.

    Fills ``stream`` when the column is absent and adds ``stream_name``
    (letters without a known name keep the letter).
    """
    if id_col not in df.columns:
        raise SchemaError([id_col], detail="site id column not found")
    df = df.copy()
    letters = df[id_col].astype(str).str[0]
    if "stream" not in df.columns:
        df["stream"] = letters
    df["stream_name"] = df["stream"].map(lambda s: STREAM_NAMES.get(s, s))
    return df


def drop_duplicates_on_keys(df: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """
    Remove duplicate rows based on specified key columns.

    Args:
        df: Input DataFrame
        keys: List of column names to use for duplicate detection

    Returns:
        DataFrame with duplicates removed
    """
    # Handles single key or multiple keys
    return df.drop_duplicates(subset=keys[0] if len(keys) == 1 else keys)


def attach_coordinates(df: pd.DataFrame, sites: pd.DataFrame, id_col: str = "site") -> pd.DataFrame:
    """Left-join site lat/long onto a site-keyed table (row order preserved)."""
    missing = [c for c in (id_col, "lat", "long") if c not in sites.columns]
    if missing:
        raise SchemaError(missing, source="sites", detail="coordinate columns not found")
    coords = drop_duplicates_on_keys(sites[[id_col, "lat", "long"]], [id_col])
    out = df.merge(coords, on=id_col, how="left", validate="many_to_one")
    unplaced = sorted(out.loc[out["lat"].isna(), id_col].unique())
    if unplaced:
        logger.warning("No coordinates for site(s): %s", ", ".join(unplaced))
    return out
