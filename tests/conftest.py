import matplotlib
matplotlib.use("Agg")

import pandas as pd
import pytest

CONC_CSV = """id,site,stream,date,hydro,cfs,ls,tp,pp,tdp,drp,dop
1,MC01,M,2019-05-01,Rise,1.2,34.0,0.10,0.06,0.04,0.03,0.01
2,MC04,M,2019-05-01,Rise,0.8,22.7,0.20,0.12,0.08,0.05,0.03
3,SC01,S,2019-05-01,Rise,dry,dry,dry,dry,dry,dry,dry
4,SC02,S,2019-05-01,Rise,0.5,14.2,0.08,lost,0.05,0.02,0.03
5,MC01,M,2019-06-10,Peak,4.0,113.3,0.30,0.20,0.10,0.06,0.04
6,SC02,S,2019-06-10,Peak,no_access,no_access,no_access,no_access,no_access,no_access,no_access
"""

FLOW_CSV = """id,site,stream,date,hydro,cfs,ls
1,MC01,M,2019-05-01,Rise,1.2,34.0
2,MC04,M,2019-05-01,Rise,0.8,22.7
3,SC02,S,2019-05-01,Rise,no_access,no_access
4,MC01,M,2019-06-10,Peak,4.0,113.3
"""

MEANS_CSV = """site,stream,hydro,cfs,ls,tp,pp,tdp,drp,dop
MC01,M,Rise,1.0,28.3,0.10,0.06,0.04,0.03,0.01
MC01,M,Peak,3.5,99.1,0.25,0.15,0.10,0.06,0.04
SC01,S,Base,dry,dry,dry,dry,dry,dry,dry
"""

HISTORIC_CSV = """DATE,CFS,TP
2018-04-01,10.0,0.05
2018-04-02,12.5,
2018-04-03,30.0,1.7
2018-04-04,25.0,0.12
"""

SITES_CSV = """site,lat,long
MC01,44.10,-111.20
MC04,44.12,-111.18
SC01,44.05,-111.25
SC02,44.07,-111.22
"""


def _write(path, text):
    path.write_text(text)
    return path


@pytest.fixture
def conc_csv(tmp_path):
    return _write(tmp_path / "conc.csv", CONC_CSV)


@pytest.fixture
def flow_csv(tmp_path):
    return _write(tmp_path / "flow.csv", FLOW_CSV)


@pytest.fixture
def means_csv(tmp_path):
    return _write(tmp_path / "concmeans.csv", MEANS_CSV)


@pytest.fixture
def historic_csv(tmp_path):
    return _write(tmp_path / "historic.csv", HISTORIC_CSV)


@pytest.fixture
def sites_csv(tmp_path):
    return _write(tmp_path / "sites.csv", SITES_CSV)


@pytest.fixture
def wide():
    """Small in-memory wide table with one sentinel per kind."""
    from streamphos.sentinels import Sentinel
    return pd.DataFrame({
        "site": ["MC01", "MC04", "SC01"],
        "hydro": ["Peak", "Rise", "Base"],
        "tp": [0.1, 0.2, Sentinel.DRY],
        "pp": [0.06, 0.12, Sentinel.DRY],
        "tdp": [0.04, Sentinel.LOST, Sentinel.NO_ACCESS],
        "drp": [0.03, 0.05, Sentinel.DRY],
        "dop": [0.01, 0.03, Sentinel.DRY],
    })


@pytest.fixture
def shapefiles(tmp_path):
    import geopandas as gpd
    from shapely.geometry import LineString, Polygon

    boundary = gpd.GeoDataFrame(
        {"name": ["watershed"]},
        geometry=[Polygon([(-111.3, 44.0), (-111.1, 44.0), (-111.1, 44.2), (-111.3, 44.2)])],
        crs="EPSG:4326",
    )
    stream = gpd.GeoDataFrame(
        {"name": ["main"]},
        geometry=[LineString([(-111.25, 44.02), (-111.2, 44.1), (-111.15, 44.18)])],
        crs="EPSG:4326",
    )
    b_path = tmp_path / "boundary.shp"
    s_path = tmp_path / "main_creek.shp"
    boundary.to_file(b_path)
    stream.to_file(s_path)
    return b_path, {"Main Creek": s_path}


@pytest.fixture
def basemap(shapefiles):
    from streamphos.basemap import build_basemap
    b_path, streams = shapefiles
    return build_basemap(b_path, streams)
