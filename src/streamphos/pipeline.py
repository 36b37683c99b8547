from __future__ import annotations
import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from .aggregate import mean_by_period
from .basemap import Basemap, load_or_build_basemap
from .charts import bubble_map, flow_bars, fraction_bars, hydrograph, save_figure
from .cleaning import add_stream_group, attach_coordinates, drop_site
from .data_io import save_interim
from .config import (
    EXCLUDED_SITE, FIGURES, HYDRO_PERIODS,
    FLOW_SENTINELS, CONC_SENTINELS, LOAD_SENTINELS, MEANS_SENTINELS,
)
from .exceptions import StreamPhosError
from .ingest import read_conc, read_flow, read_historic, read_load, read_means, read_sites
from .ordering import order_categories, sort_ordered
from .reshape import gather_fractions
from .sentinels import split_sentinels
from .validators import validate_numeric_long, validate_sentinel_long, validate_sites

logger = logging.getLogger(__name__)


@dataclass
class SplitTables:
    """One source table in the three shapes the charts use."""
    wide: pd.DataFrame      # filtered, sentinel cells intact
    numeric: pd.DataFrame   # numeric readings only, value is float64
    sentinel: pd.DataFrame  # sentinel readings only, tagged by ``sentinel``


@dataclass
class SynopticTables:
    flow: SplitTables
    conc: SplitTables
    load: SplitTables


@dataclass
class MeansTables:
    flow: SplitTables
    conc: SplitTables
    load: SplitTables
    historic: pd.DataFrame


# ---- Table building ----

def prepare_sample_table(df: pd.DataFrame, excluded_site: str = EXCLUDED_SITE) -> pd.DataFrame:
    """Drop the discontinued site and derive the stream group."""
    return add_stream_group(drop_site(df, excluded_site))


def _ordered(df: pd.DataFrame) -> pd.DataFrame:
    if "hydro" in df.columns or "fraction" in df.columns:
        df = sort_ordered(order_categories(df), by=("site", "date", "hydro", "fraction"))
    return df


def build_fraction_tables(
    df: pd.DataFrame,
    sentinels: Iterable = CONC_SENTINELS,
    excluded_site: str = EXCLUDED_SITE,
) -> SplitTables:
    """
    Filter, gather the five fractions and split numeric readings from sentinels.

    The excluded site is always removed before reshaping.
    """
    wide = prepare_sample_table(df, excluded_site)
    long = gather_fractions(wide)
    numeric, sentinel = split_sentinels(long, "value", sentinels)
    numeric = validate_numeric_long(_ordered(numeric))
    sentinel = validate_sentinel_long(_ordered(sentinel))
    logger.info("Fraction tables: %d wide rows -> %d numeric + %d sentinel readings",
                len(wide), len(numeric), len(sentinel))
    return SplitTables(wide=wide, numeric=numeric, sentinel=sentinel)


def build_flow_tables(
    df: pd.DataFrame,
    sentinels: Iterable = FLOW_SENTINELS,
    value_col: str = "ls",
    excluded_site: str = EXCLUDED_SITE,
) -> SplitTables:
    wide = prepare_sample_table(df, excluded_site)
    numeric, sentinel = split_sentinels(wide, value_col, sentinels)
    return SplitTables(wide=wide, numeric=_ordered(numeric), sentinel=_ordered(sentinel))


def make_synoptic_tables(
    flow_path: str | None = None,
    conc_path: str | None = None,
    load_path: str | None = None,
) -> SynopticTables:
    """Per-date tables for the synoptic sampling section."""
    return SynopticTables(
        flow=build_flow_tables(read_flow(flow_path)),
        conc=build_fraction_tables(read_conc(conc_path), CONC_SENTINELS),
        load=build_fraction_tables(read_load(load_path), LOAD_SENTINELS),
    )


def means_from_samples(df: pd.DataFrame, excluded_site: str = EXCLUDED_SITE) -> pd.DataFrame:
    """Per (site, hydro) means of a per-event table; all-sentinel groups stay sentinels."""
    return mean_by_period(prepare_sample_table(df, excluded_site))


def make_means_tables(
    flowmeans_path: str | None = None,
    concmeans_path: str | None = None,
    loadmeans_path: str | None = None,
    historic_path: str | None = None,
) -> MeansTables:
    """Period-mean tables and the historic record for the means section."""
    return MeansTables(
        flow=build_flow_tables(read_means("flow", flowmeans_path), MEANS_SENTINELS),
        conc=build_fraction_tables(read_means("conc", concmeans_path), MEANS_SENTINELS),
        load=build_fraction_tables(read_means("load", loadmeans_path), MEANS_SENTINELS),
        historic=read_historic(historic_path),
    )


def save_tables(section: str, splits: dict, directory: Path | None = None) -> List[Path]:
    """Write every table of a section to the interim directory as parquet."""
    paths = []
    for name, split in splits.items():
        for shape in ("wide", "numeric", "sentinel"):
            paths.append(save_interim(getattr(split, shape), f"{section}_{name}_{shape}.parquet", directory))
    return paths


# ---- Figures ----

def _located(split: SplitTables, sites: pd.DataFrame):
    return attach_coordinates(split.numeric, sites), attach_coordinates(split.sentinel, sites)


def synoptic_figures(
    tables: SynopticTables,
    basemap: Basemap,
    sites: pd.DataFrame,
    directory: Path | None = None,
    fraction: str = "TP",
) -> List[Path]:
    """One flow map and one concentration map per sampling date."""
    directory = Path(directory or FIGURES) / "synoptic"
    paths = []
    flow_num, flow_sent = _located(tables.flow, sites)
    conc_num, conc_sent = _located(tables.conc, sites)
    conc_num = conc_num[conc_num["fraction"] == fraction]
    conc_sent = conc_sent[conc_sent["fraction"] == fraction]

    for date in sorted(tables.flow.wide["date"].dropna().unique()):
        day = pd.Timestamp(date)
        tag = day.strftime("%Y-%m-%d")
        fig, _ = bubble_map(basemap, flow_num[flow_num["date"] == day], flow_sent[flow_sent["date"] == day],
                            value_col="ls", units="L/s", title=f"Streamflow {tag}")
        paths.append(save_figure(fig, f"flow_{tag}.png", directory))
        fig, _ = bubble_map(basemap, conc_num[conc_num["date"] == day], conc_sent[conc_sent["date"] == day],
                            units="mg/L", title=f"{fraction} concentration {tag}")
        paths.append(save_figure(fig, f"conc_{fraction.lower()}_{tag}.png", directory))
    return paths


def means_figures(
    tables: MeansTables,
    basemap: Basemap,
    sites: pd.DataFrame,
    directory: Path | None = None,
    fraction: str = "TP",
) -> List[Path]:
    """Period-mean maps, fraction and flow bar charts and the historic hydrograph."""
    directory = Path(directory or FIGURES) / "means"
    paths = []
    for name, split, units in (("conc", tables.conc, "mg/L"), ("load", tables.load, "mg/s")):
        num, sent = _located(split, sites)
        for period in HYDRO_PERIODS:
            n = num[(num["hydro"] == period) & (num["fraction"] == fraction)]
            s = sent[(sent["hydro"] == period) & (sent["fraction"] == fraction)]
            fig, _ = bubble_map(basemap, n, s, units=units, title=f"Mean {fraction} {name}, {period}")
            paths.append(save_figure(fig, f"{name}_{fraction.lower()}_{period.lower()}.png", directory))
        fig, _ = fraction_bars(split.numeric, units=units, title=f"Mean phosphorus {name} by fraction")
        paths.append(save_figure(fig, f"{name}_fractions.png", directory))

    fig, _ = flow_bars(tables.flow.numeric, title="Mean streamflow by hydrologic period")
    paths.append(save_figure(fig, "flow_means.png", directory))
    fig, _ = hydrograph(tables.historic, title="Historic discharge and TP")
    paths.append(save_figure(fig, "hydrograph.png", directory))
    return paths


# ---- Entry point ----

def setup_logging(output_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """Configure console logging for the package, plus a log file when output_dir is given."""
    pkg_logger = logging.getLogger("streamphos")
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.handlers.clear()

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter('%(levelname)-8s | %(message)s'))
    pkg_logger.addHandler(ch)

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(output_dir / "streamphos.log", mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)-8s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        pkg_logger.addHandler(fh)
    return pkg_logger


def run(directory: Path | None = None, refresh_basemap: bool = False) -> dict[str, List[Path]]:
    """
    Build every table and render both sections.

    The sections are independent: a failure in one is logged and the other
    still renders, then the first error is re-raised.
    """
    directory = Path(directory or FIGURES)
    basemap = load_or_build_basemap(refresh=refresh_basemap)
    sites = validate_sites(read_sites())

    def synoptic():
        tables = make_synoptic_tables()
        save_tables("synoptic", {"flow": tables.flow, "conc": tables.conc, "load": tables.load})
        return synoptic_figures(tables, basemap, sites, directory)

    def means():
        tables = make_means_tables()
        save_tables("means", {"flow": tables.flow, "conc": tables.conc, "load": tables.load})
        return means_figures(tables, basemap, sites, directory)

    sections = {"synoptic": synoptic, "means": means}
    rendered: dict[str, List[Path]] = {}
    errors: list[StreamPhosError] = []
    for name, section in sections.items():
        try:
            rendered[name] = section()
            logger.info("Section %s: %d figure(s)", name, len(rendered[name]))
        except StreamPhosError as err:
            logger.error("Section %s aborted: %s", name, err)
            errors.append(err)
    if errors:
        raise errors[0]
    return rendered


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Build the sampling tables and render every figure.")
    parser.add_argument("--output", type=Path, default=FIGURES, help="Directory for figures and the log file.")
    parser.add_argument("--refresh-basemap", action="store_true", help="Rebuild the basemap from the shapefiles.")
    args = parser.parse_args(argv)

    setup_logging(args.output)
    logger.info("=" * 60)
    logger.info("STREAM PHOSPHORUS SAMPLING FIGURES")
    logger.info("=" * 60)
    paths = run(args.output, refresh_basemap=args.refresh_basemap)
    logger.info("Saved %d figure(s) to %s", sum(len(p) for p in paths.values()), args.output)


if __name__ == "__main__":
    main()
