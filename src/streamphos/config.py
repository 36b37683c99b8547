from __future__ import annotations
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
RAW = DATA / "raw"
GIS = DATA / "gis"
INTERIM = DATA / "interim"
FIGURES = ROOT / "figures"

# raw CSV filenames (adjust to yours)
RAW_FLOW_CSV = RAW / "flow.csv"
RAW_CONC_CSV = RAW / "conc.csv"
RAW_LOAD_CSV = RAW / "load.csv"
RAW_FLOWMEANS_CSV = RAW / "flowmeans.csv"
RAW_CONCMEANS_CSV = RAW / "concmeans.csv"
RAW_LOADMEANS_CSV = RAW / "loadmeans.csv"
RAW_HISTORIC_CSV = RAW / "historic.csv"
RAW_SITES_CSV = RAW / "sites.csv"

# shapefiles, WGS84 lat/long
BOUNDARY_SHP = GIS / "boundary.shp"
STREAM_SHPS = {
    "Main Creek": GIS / "main_creek.shp",
    "Spring Creek": GIS / "spring_creek.shp",
    "North Fork": GIS / "north_fork.shp",
    "South Fork": GIS / "south_fork.shp",
}
BASEMAP_CACHE = INTERIM / "basemap.pkl"
WGS84 = "EPSG:4326"

# site discontinued after the first season
EXCLUDED_SITE = "MC04"

# CSV column -> display label, in display order
FRACTION_COLUMNS = {
    "tp": "TP",
    "pp": "PP",
    "tdp": "TDP",
    "drp": "DRP",
    "dop": "DOP",
}
FRACTIONS = list(FRACTION_COLUMNS.values())
HYDRO_PERIODS = ["Rise", "Peak", "Base"]

STREAM_NAMES = {"M": "Main Creek", "S": "Spring Creek"}

# sentinel tokens accepted per table
FLOW_SENTINELS = ("no_access",)
CONC_SENTINELS = ("dry", "no_access", "lost")
LOAD_SENTINELS = ("no_access", "lost")
MEANS_SENTINELS = ("dry",)

# columns per table
SAMPLE_KEYS = ["id", "site", "stream", "date", "hydro"]
FLOW_COLUMNS = SAMPLE_KEYS + ["cfs", "ls"]
FRACTION_TABLE_COLUMNS = FLOW_COLUMNS + list(FRACTION_COLUMNS)
MEANS_KEYS = ["site", "hydro"]
MEASUREMENT_COLUMNS = ["cfs", "ls"] + list(FRACTION_COLUMNS)
HISTORIC_COLUMNS = ["DATE", "CFS", "TP"]
SITE_COLUMNS = ["site", "lat", "long"]

# historic TP readings at or above this (mg/L) are instrument faults
HISTORIC_TP_LIMIT = 1.0
