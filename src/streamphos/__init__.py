from .sentinels import Sentinel, split_sentinels, parse_cell
from .ingest import read_table, read_flow, read_conc, read_load, read_means, read_historic, read_sites
from .cleaning import drop_site, add_stream_group, attach_coordinates
from .reshape import gather_fractions
from .ordering import order_categories, sort_ordered
from .aggregate import mean_by_period
from .exceptions import StreamPhosError, ParseError, MissingFileError, SchemaError

__all__ = [
    "Sentinel",
    "split_sentinels",
    "parse_cell",
    "read_table",
    "read_flow",
    "read_conc",
    "read_load",
    "read_means",
    "read_historic",
    "read_sites",
    "drop_site",
    "add_stream_group",
    "attach_coordinates",
    "gather_fractions",
    "order_categories",
    "sort_ordered",
    "mean_by_period",
    "StreamPhosError",
    "ParseError",
    "MissingFileError",
    "SchemaError",
]

__version__ = "0.1.0"
