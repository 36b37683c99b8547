import pandas as pd
import pytest

from streamphos.config import FRACTIONS
from streamphos.exceptions import SchemaError
from streamphos.reshape import gather_fractions
from streamphos.sentinels import Sentinel


def test_gather_five_rows_per_input_row(wide):
    long = gather_fractions(wide)
    assert len(long) == 5 * len(wide)
    assert list(long.columns) == ["site", "hydro", "fraction", "value"]
    assert set(long["fraction"]) == set(FRACTIONS)
    # fraction-major, in fixed column order
    assert list(long["fraction"].drop_duplicates()) == FRACTIONS


def test_gather_passes_sentinels_through(wide):
    long = gather_fractions(wide)
    sc01 = long[long["site"] == "SC01"].set_index("fraction")["value"]
    assert sc01["TDP"] is Sentinel.NO_ACCESS
    assert sc01["TP"] is Sentinel.DRY
    # sentinel status is per fraction
    mc04 = long[long["site"] == "MC04"].set_index("fraction")["value"]
    assert mc04["TDP"] is Sentinel.LOST
    assert mc04["TP"] == pytest.approx(0.2)


def test_gather_uses_names_not_positions(wide):
    shuffled = wide[["dop", "site", "drp", "tp", "hydro", "tdp", "pp"]]
    a = gather_fractions(wide).sort_values(["site", "fraction"]).reset_index(drop=True)
    b = gather_fractions(shuffled, id_cols=["site", "hydro"]).sort_values(["site", "fraction"]).reset_index(drop=True)
    assert a["value"].tolist() == b["value"].tolist()


def test_gather_missing_fraction_column(wide):
    with pytest.raises(SchemaError):
        gather_fractions(wide.drop(columns=["drp"]))


def test_gather_explicit_id_cols():
    df = pd.DataFrame({"site": ["MC01"], "note": ["x"], "tp": [1.0], "pp": [0.5],
                       "tdp": [0.5], "drp": [0.3], "dop": [0.2]})
    long = gather_fractions(df, id_cols=["site"])
    assert list(long.columns) == ["site", "fraction", "value"]
