"""
Simple usage example for the synoptic sampling tables.

Loads the concentration table, builds the numeric and sentinel fraction
tables, and prints a per-site summary of TP readings.
"""

import logging

from streamphos.ingest import read_conc
from streamphos.pipeline import build_fraction_tables, means_from_samples, setup_logging
from streamphos.config import RAW_CONC_CSV


def simple_usage_example():
    """Build the fraction tables from data/raw/conc.csv and summarize TP."""
    setup_logging(level=logging.INFO)

    if not RAW_CONC_CSV.exists():
        print(f"Error: Data file not found at {RAW_CONC_CSV}")
        return

    tables = build_fraction_tables(read_conc())
    tp = tables.numeric[tables.numeric["fraction"] == "TP"]
    print(tp.groupby(["site", "hydro_ord"], observed=True)["value"].mean().unstack())

    print("\nReadings replaced by a sentinel:")
    print(tables.sentinel.groupby(["sentinel", "fraction_ord"], observed=True).size().unstack(fill_value=0))

    print("\nPeriod means (sentinel groups stay sentinels):")
    print(means_from_samples(tables.wide).head())


if __name__ == "__main__":
    simple_usage_example()
