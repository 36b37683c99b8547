"""
Static charts for the sampling tables.

- bubble_map: basemap with numeric bubbles and a separate sentinel marker layer
- fraction_bars: phosphorus fractions per site, one panel per hydrologic period
- flow_bars: streamflow per site and period
- hydrograph: historic discharge with TP readings on a second axis

Every renderer accepts an optional Axes and returns (fig, ax) like the other
plotting helpers in this package.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .basemap import Basemap, draw_basemap
from .config import FIGURES, FRACTIONS, HYDRO_PERIODS
from .exceptions import SchemaError

SENTINEL_STYLE = {
    "dry": {"marker": "x", "color": "#b45309", "label": "Dry"},
    "no_access": {"marker": "^", "color": "#6b7280", "label": "No access"},
    "lost": {"marker": "s", "color": "#7c3aed", "label": "Lost"},
}
FRACTION_COLORS = {
    "TP": "#1f2937",
    "PP": "#92400e",
    "TDP": "#2563eb",
    "DRP": "#10b981",
    "DOP": "#a855f7",
}


def _require(df: pd.DataFrame, cols: Sequence[str], name: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise SchemaError(missing, source=name)


def _new_axes(ax, figsize):
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
        return fig, ax, True
    return ax.figure, ax, False


def bubble_sizes(values: pd.Series, max_size: float = 400.0, min_size: float = 15.0) -> np.ndarray:
    """Marker areas proportional to value, scaled so the largest value gets ``max_size``."""
    v = values.to_numpy(dtype=float)
    if v.size == 0:
        return v
    top = np.nanmax(v)
    if not np.isfinite(top) or top <= 0:
        return np.full(v.shape, min_size)
    return np.clip(v / top * max_size, min_size, None)


def bubble_map(
    basemap: Basemap,
    numeric: pd.DataFrame,
    sentinel: Optional[pd.DataFrame] = None,
    *,
    value_col: str = "value",
    units: str = "",
    title: Optional[str] = None,
    ax=None,
    max_size: float = 400.0,
):
    """
    Bubbles sized by ``value_col`` at site coordinates, over the basemap.

    Sentinel rows are drawn as their own marker layer (one legend entry per
    sentinel kind) so a dry or unreachable site never shows up as a zero bubble.
    Both tables need ``lat`` and ``long`` columns.
    """
    _require(numeric, ["lat", "long", value_col], "numeric table")
    fig, ax, created = _new_axes(ax, (7, 6))
    draw_basemap(ax, basemap)

    ax.scatter(
        numeric["long"], numeric["lat"],
        s=bubble_sizes(numeric[value_col], max_size=max_size),
        color="#ef4444", alpha=0.6, edgecolor="#7f1d1d", linewidth=0.6, zorder=3,
        label=f"{value_col} {units}".strip(),
    )

    if sentinel is not None and len(sentinel):
        _require(sentinel, ["lat", "long", "sentinel"], "sentinel table")
        for token, rows in sentinel.groupby("sentinel", sort=False):
            style = SENTINEL_STYLE.get(token, {"marker": "o", "color": "black", "label": token})
            ax.scatter(rows["long"], rows["lat"], marker=style["marker"], color=style["color"],
                       s=50, zorder=4, label=style["label"])

    if title:
        ax.set_title(title)
    ax.legend(loc="lower left", fontsize=8, frameon=False)
    if created:
        fig.tight_layout()
    return fig, ax


def fraction_bars(
    numeric_long: pd.DataFrame,
    *,
    units: str = "mg/L",
    title: Optional[str] = None,
    fractions: Sequence[str] = FRACTIONS,
):
    """
    Grouped bars of fraction value per site, one panel per hydrologic period.

    Panels and bar groups follow the fixed Rise, Peak, Base and
    TP, PP, TDP, DRP, DOP orders. Repeated (site, hydro, fraction) rows are averaged.
    """
    _require(numeric_long, ["site", "hydro", "fraction", "value"], "numeric fraction table")
    periods = [p for p in HYDRO_PERIODS if p in set(numeric_long["hydro"])]
    fig, axes = plt.subplots(1, max(len(periods), 1), figsize=(4.5 * max(len(periods), 1), 4),
                             sharey=True, squeeze=False)
    axes = axes[0]
    width = 0.8 / len(fractions)

    for ax, period in zip(axes, periods):
        sub = numeric_long[numeric_long["hydro"] == period]
        table = sub.pivot_table(index="site", columns="fraction", values="value", aggfunc="mean")
        table = table.reindex(columns=list(fractions)).sort_index()
        x = np.arange(len(table.index))
        for i, frac in enumerate(fractions):
            ax.bar(x + (i - (len(fractions) - 1) / 2) * width, table[frac].fillna(0.0), width,
                   color=FRACTION_COLORS.get(frac), label=frac)
        ax.set_xticks(x)
        ax.set_xticklabels(table.index, rotation=90, fontsize=8)
        ax.set_title(period)
    axes[0].set_ylabel(f"Phosphorus ({units})")
    axes[-1].legend(fontsize=8, frameon=False)
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    return fig, axes


def flow_bars(flow: pd.DataFrame, *, value_col: str = "ls", title: Optional[str] = None, ax=None):
    """Bars of streamflow per site, side by side for each hydrologic period."""
    _require(flow, ["site", "hydro", value_col], "flow table")
    fig, ax, created = _new_axes(ax, (9, 4))
    table = flow.pivot_table(index="site", columns="hydro", values=value_col, aggfunc="mean")
    periods = [p for p in HYDRO_PERIODS if p in table.columns]
    table = table.reindex(columns=periods).sort_index()
    x = np.arange(len(table.index))
    width = 0.8 / max(len(periods), 1)
    for i, period in enumerate(periods):
        ax.bar(x + (i - (len(periods) - 1) / 2) * width, table[period].fillna(0.0), width, label=period)
    ax.set_xticks(x)
    ax.set_xticklabels(table.index, rotation=90, fontsize=8)
    ax.set_ylabel("Streamflow (L/s)")
    ax.legend(frameon=False)
    if title:
        ax.set_title(title)
    if created:
        fig.tight_layout()
    return fig, ax


def hydrograph(historic: pd.DataFrame, *, title: Optional[str] = None, ax=None):
    """Daily discharge (CFS) as a line with TP readings as points on a twin axis."""
    _require(historic, ["DATE", "CFS", "TP"], "historic table")
    fig, ax, created = _new_axes(ax, (10, 4))
    ax.plot(historic["DATE"], historic["CFS"], color="#2563eb", linewidth=1.0, label="Discharge")
    ax.set_ylabel("Discharge (cfs)")
    ax.set_xlabel("Date")

    tp = historic.dropna(subset=["TP"])
    ax2 = ax.twinx()
    ax2.scatter(tp["DATE"], tp["TP"], color="#ef4444", s=12, label="TP")
    ax2.set_ylabel("TP (mg/L)")

    if title:
        ax.set_title(title)
    if created:
        fig.autofmt_xdate()
        fig.tight_layout()
    return fig, ax


def save_figure(fig, name: str, directory: Path | None = None, dpi: int = 200) -> Path:
    directory = Path(directory or FIGURES)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path
