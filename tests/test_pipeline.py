import pandas as pd
import pytest

from streamphos.config import FRACTIONS
from streamphos.exceptions import SchemaError
from streamphos.ingest import read_conc, read_sites
from streamphos.pipeline import (
    build_flow_tables, build_fraction_tables, make_means_tables, make_synoptic_tables,
    means_from_samples, prepare_sample_table,
)
from streamphos.sentinels import Sentinel, is_number
from streamphos.validators import validate_numeric_long, validate_sites


def test_end_to_end_excludes_mc04(conc_csv):
    raw = read_conc(conc_csv)
    assert "MC04" in set(raw["site"])
    tables = build_fraction_tables(raw)
    kept = len(raw) - 1
    assert len(tables.wide) == kept
    for frame in (tables.wide, tables.numeric, tables.sentinel):
        assert "MC04" not in set(frame["site"])
    assert len(tables.numeric) + len(tables.sentinel) == 5 * kept


def test_numeric_output_is_all_float(conc_csv):
    tables = build_fraction_tables(read_conc(conc_csv))
    assert tables.numeric["value"].map(lambda v: isinstance(v, float)).all()
    assert all(is_number(float(v)) for v in tables.numeric["value"])
    assert set(tables.numeric["fraction"]) <= set(FRACTIONS)


def test_sentinel_table_tags_each_fraction(conc_csv):
    tables = build_fraction_tables(read_conc(conc_csv))
    sent = tables.sentinel
    counts = sent["sentinel"].value_counts().to_dict()
    assert counts == {"dry": 5, "no_access": 5, "lost": 1}
    lost = sent[sent["sentinel"] == "lost"]
    assert list(lost["site"]) == ["SC02"] and list(lost["fraction"]) == ["PP"]


def test_tables_sorted_in_display_order(conc_csv):
    tables = build_fraction_tables(read_conc(conc_csv))
    mc01 = tables.numeric[tables.numeric["site"] == "MC01"]
    assert list(mc01["hydro"].drop_duplicates()) == ["Rise", "Peak"]
    assert list(mc01["fraction"][:5]) == FRACTIONS


def test_flow_tables(flow_csv):
    from streamphos.ingest import read_flow
    tables = build_flow_tables(read_flow(flow_csv))
    assert list(tables.sentinel["site"]) == ["SC02"]
    assert tables.numeric["ls"].dtype == "float64"
    assert "MC04" not in set(tables.wide["site"])


def test_synoptic_tables_from_files(flow_csv, conc_csv, tmp_path):
    load_csv = tmp_path / "load.csv"
    load_csv.write_text(conc_csv.read_text().replace("dry", "no_access"))
    tables = make_synoptic_tables(flow_csv, conc_csv, load_csv)
    assert len(tables.load.numeric) == len(tables.conc.numeric)
    assert set(tables.load.sentinel["sentinel"]) == {"no_access", "lost"}


def test_means_tables(means_csv, historic_csv, tmp_path):
    flowmeans = tmp_path / "flowmeans.csv"
    flowmeans.write_text("site,stream,hydro,cfs,ls\nMC01,M,Rise,1.0,28.3\nSC01,S,Base,dry,dry\n")
    tables = make_means_tables(flowmeans, means_csv, means_csv, historic_csv)
    assert list(tables.flow.sentinel["site"]) == ["SC01"]
    assert set(tables.conc.sentinel["sentinel"]) == {"dry"}
    assert len(tables.historic) == 3


def test_means_from_samples_matches_policy(conc_csv):
    means = means_from_samples(read_conc(conc_csv)).set_index(["site", "hydro"])
    assert ("MC04", "Rise") not in means.index
    assert means.loc[("SC01", "Rise"), "tp"] is Sentinel.DRY
    assert means.loc[("SC02", "Rise"), "tp"] == pytest.approx(0.08)
    assert means.loc[("SC02", "Rise"), "pp"] is Sentinel.LOST


def test_prepare_sample_table_is_idempotent(conc_csv):
    once = prepare_sample_table(read_conc(conc_csv))
    twice = prepare_sample_table(once)
    pd.testing.assert_frame_equal(once, twice)


def test_validators_flag_bad_tables(sites_csv):
    assert len(validate_sites(read_sites(sites_csv))) == 4
    bad = pd.DataFrame({"site": ["MC01"], "fraction": ["TKN"], "value": [1.0]})
    with pytest.raises(SchemaError):
        validate_numeric_long(bad)


def test_synoptic_figures_and_interim_tables(flow_csv, conc_csv, sites_csv, basemap, tmp_path):
    from streamphos.data_io import load_interim
    from streamphos.pipeline import save_tables, synoptic_figures

    load_csv = tmp_path / "load.csv"
    load_csv.write_text(conc_csv.read_text().replace("dry", "no_access"))
    tables = make_synoptic_tables(flow_csv, conc_csv, load_csv)
    sites = validate_sites(read_sites(sites_csv))

    paths = synoptic_figures(tables, basemap, sites, tmp_path / "figures")
    # two sampling dates, one flow and one TP map each
    assert len(paths) == 4
    assert all(p.exists() for p in paths)

    saved = save_tables("synoptic", {"conc": tables.conc}, tmp_path / "interim")
    assert len(saved) == 3
    back = load_interim("synoptic_conc_sentinel.parquet", tmp_path / "interim")
    assert set(back["sentinel"]) == {"dry", "no_access", "lost"}
    assert (back["value"].map(lambda v: isinstance(v, Sentinel))).all()


@pytest.fixture
def flowmeans_csv(tmp_path):
    path = tmp_path / "flowmeans.csv"
    path.write_text("site,stream,hydro,cfs,ls\nMC01,M,Rise,1.0,28.3\nMC01,M,Peak,3.5,99.1\nSC01,S,Base,dry,dry\n")
    return path


def test_means_figures(flowmeans_csv, means_csv, historic_csv, sites_csv, basemap, tmp_path):
    from streamphos.pipeline import means_figures

    tables = make_means_tables(flowmeans_csv, means_csv, means_csv, historic_csv)
    sites = validate_sites(read_sites(sites_csv))
    paths = means_figures(tables, basemap, sites, tmp_path / "figures")
    # 3 period maps + fraction bars for conc and load, flow bars, hydrograph
    assert len(paths) == 10
    assert all(p.exists() for p in paths)
    assert {p.parent.name for p in paths} == {"means"}


def test_run_renders_other_section_then_reraises(
    monkeypatch, caplog, flow_csv, conc_csv, flowmeans_csv, means_csv, historic_csv, sites_csv, shapefiles, tmp_path
):
    import logging
    from streamphos import basemap as basemap_mod, data_io, ingest
    from streamphos.exceptions import MissingFileError
    from streamphos.pipeline import run

    b_path, streams = shapefiles
    monkeypatch.setattr(ingest, "RAW_FLOW_CSV", flow_csv)
    monkeypatch.setattr(ingest, "RAW_CONC_CSV", conc_csv)
    monkeypatch.setattr(ingest, "RAW_LOAD_CSV", tmp_path / "missing_load.csv")
    monkeypatch.setattr(ingest, "RAW_HISTORIC_CSV", historic_csv)
    monkeypatch.setattr(ingest, "RAW_SITES_CSV", sites_csv)
    monkeypatch.setitem(ingest._MEANS_FILES, "flow", flowmeans_csv)
    monkeypatch.setitem(ingest._MEANS_FILES, "conc", means_csv)
    monkeypatch.setitem(ingest._MEANS_FILES, "load", means_csv)
    monkeypatch.setattr(basemap_mod, "BASEMAP_CACHE", tmp_path / "interim" / "basemap.pkl")
    monkeypatch.setattr(basemap_mod, "BOUNDARY_SHP", b_path)
    monkeypatch.setattr(basemap_mod, "STREAM_SHPS", streams)
    monkeypatch.setattr(data_io, "INTERIM", tmp_path / "interim")

    out = tmp_path / "figures"
    with caplog.at_level(logging.ERROR, logger="streamphos"):
        with pytest.raises(MissingFileError):
            run(out)

    assert "Section synoptic aborted" in caplog.text
    means = sorted((out / "means").glob("*.png"))
    assert len(means) == 10
    assert not (out / "synoptic").exists()
    assert (tmp_path / "interim" / "means_conc_numeric.parquet").exists()
