"""
Watershed basemap: boundary polygon plus stream paths, WGS84 lat/long.

The basemap is a derived rendering artifact. It is pickled after the first
build so later runs skip shapefile parsing; deleting the cache (or passing
``refresh=True``) always rebuilds it.
"""
from __future__ import annotations
import logging
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import geopandas as gpd

from .config import BASEMAP_CACHE, BOUNDARY_SHP, STREAM_SHPS, WGS84
from .exceptions import MissingFileError

logger = logging.getLogger(__name__)


@dataclass
class Basemap:
    boundary: gpd.GeoDataFrame
    streams: Dict[str, gpd.GeoDataFrame] = field(default_factory=dict)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(minx, miny, maxx, maxy) of the boundary."""
        return tuple(float(v) for v in self.boundary.total_bounds)


def read_layer(path: str | Path) -> gpd.GeoDataFrame:
    """Read one shapefile layer and make sure it is in WGS84."""
    path = Path(path)
    if not path.exists():
        raise MissingFileError(path)
    gdf = gpd.read_file(path)
    if gdf.crs is None:
        logger.warning("%s has no CRS, assuming %s", path.name, WGS84)
        gdf = gdf.set_crs(WGS84)
    elif gdf.crs.to_epsg() != 4326:
        gdf = gdf.to_crs(WGS84)
    return gdf


def build_basemap(
    boundary_path: str | Path | None = None,
    stream_paths: Optional[Mapping[str, str | Path]] = None,
) -> Basemap:
    boundary = read_layer(boundary_path or BOUNDARY_SHP)
    streams = {name: read_layer(p) for name, p in (STREAM_SHPS if stream_paths is None else stream_paths).items()}
    logger.info("Built basemap: boundary + %d stream layer(s)", len(streams))
    return Basemap(boundary=boundary, streams=streams)


def load_or_build_basemap(
    cache: str | Path | None = None,
    boundary_path: str | Path | None = None,
    stream_paths: Optional[Mapping[str, str | Path]] = None,
    refresh: bool = False,
) -> Basemap:
    """Return the cached basemap, building (and caching) it when absent or on refresh."""
    cache = Path(cache or BASEMAP_CACHE)
    if cache.exists() and not refresh:
        try:
            with cache.open("rb") as fh:
                basemap = pickle.load(fh)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as err:
            logger.warning("Unreadable basemap cache %s (%s), rebuilding", cache, err)
        else:
            if isinstance(basemap, Basemap):
                logger.debug("Loaded cached basemap from %s", cache)
                return basemap
            logger.warning("Basemap cache %s holds %s, rebuilding", cache, type(basemap).__name__)

    basemap = build_basemap(boundary_path, stream_paths)
    cache.parent.mkdir(parents=True, exist_ok=True)
    with cache.open("wb") as fh:
        pickle.dump(basemap, fh)
    return basemap


def draw_basemap(ax, basemap: Basemap, *, boundary_color="#6b7280", stream_color="#3b82f6"):
    """Draw the boundary outline and stream paths onto a matplotlib Axes."""
    basemap.boundary.boundary.plot(ax=ax, color=boundary_color, linewidth=1.0, zorder=1)
    for gdf in basemap.streams.values():
        gdf.plot(ax=ax, color=stream_color, linewidth=1.2, zorder=2)
    minx, miny, maxx, maxy = basemap.bounds
    pad_x = (maxx - minx) * 0.05
    pad_y = (maxy - miny) * 0.05
    ax.set_xlim(minx - pad_x, maxx + pad_x)
    ax.set_ylim(miny - pad_y, maxy + pad_y)
    ax.set_aspect("equal")
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    return ax
