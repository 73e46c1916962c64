# -*- coding: utf-8 -*-
"""Scatter + OLS trend charts for the commute reports."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.ticker import FuncFormatter, MaxNLocator
from scipy import stats

from .selection import winter_day_label

DARK_BLUE = "#003366"
TREND_COLOR = "#B22222"
SEASON_AXIS = "winter_doy"

sns.set_theme(style="whitegrid", context="notebook")
plt.rcParams["figure.dpi"] = 120
plt.rcParams["savefig.dpi"] = 300
plt.rcParams["axes.titleweight"] = "bold"


def save_fig(fig, name: str, fig_dir: Path, formats=("png", "pdf")) -> Path:
    """Save a figure as PNG + PDF into fig_dir; returns the PNG path."""
    fig_dir = Path(fig_dir)
    fig_dir.mkdir(parents=True, exist_ok=True)
    for fmt in formats:
        fig.savefig(fig_dir / f"{name}.{fmt}", bbox_inches="tight")
    return fig_dir / f"{name}.{formats[0]}"


def _date_axis(axis) -> None:
    axis.set_major_formatter(FuncFormatter(lambda v, _pos: winter_day_label(v)))


def scatter_with_trend(ax, data: pd.DataFrame, x: str, y: str, hue: Optional[str] = None,
                       xlabel: str = "", ylabel: str = "", title: str = "",
                       add_fit: bool = True, cmap: str = "viridis") -> Tuple[float, float]:
    """Scatter `y` against `x` with an OLS trend line and no confidence band.

    A numeric `hue` is drawn on a colour map with a colour bar; a
    categorical one gets one colour per level. Returns Pearson (r, p),
    NaN when there are too few distinct points.
    """
    cols = [x, y] + ([hue] if hue else [])
    clean = data.reindex(columns=cols).dropna()
    x_vals = pd.to_numeric(clean[x], errors="coerce").astype(float)
    y_vals = pd.to_numeric(clean[y], errors="coerce").astype(float)

    ax.set_xlabel(xlabel or x)
    ax.set_ylabel(ylabel or y)
    ax.xaxis.set_major_locator(MaxNLocator(nbins=10))
    ax.yaxis.set_major_locator(MaxNLocator(nbins=10))
    if x == SEASON_AXIS:
        _date_axis(ax.xaxis)
    ax.grid(alpha=0.25)

    if clean.empty:
        ax.text(0.5, 0.5, "no data", transform=ax.transAxes, ha="center", va="center",
                color="gray")
        ax.set_title(title)
        return np.nan, np.nan

    if hue is None:
        ax.scatter(x_vals, y_vals, alpha=0.7, s=24, color=DARK_BLUE)
    elif pd.api.types.is_numeric_dtype(clean[hue]):
        points = ax.scatter(x_vals, y_vals, c=clean[hue].astype(float), cmap=cmap,
                            alpha=0.8, s=24)
        cbar = ax.figure.colorbar(points, ax=ax)
        cbar.set_label(hue)
        if hue == SEASON_AXIS:
            _date_axis(cbar.ax.yaxis)
    else:
        sns.scatterplot(x=x_vals, y=y_vals, hue=clean[hue].astype(str), ax=ax,
                        alpha=0.8, s=30, legend=True)
        ax.set_xlabel(xlabel or x)
        ax.set_ylabel(ylabel or y)

    r, pval = np.nan, np.nan
    if x_vals.nunique() > 1 and y_vals.nunique() > 1 and len(clean) > 2:
        r, pval = stats.pearsonr(x_vals, y_vals)

    if add_fit and x_vals.nunique() > 1:
        z = np.polyfit(x_vals, y_vals, 1)
        p_line = np.poly1d(z)
        x_range = np.linspace(x_vals.min(), x_vals.max(), 100)
        ax.plot(x_range, p_line(x_range), linewidth=2, color=TREND_COLOR)

    if np.isfinite(r):
        ax.set_title(f"{title}\n(r={r:.3f}, p={pval:.2e})" if title else f"r={r:.3f}, p={pval:.2e}",
                     fontsize=11)
    else:
        ax.set_title(title)
    return float(r), float(pval)


def plot_scatter(data: pd.DataFrame, x: str, y: str, hue: Optional[str] = None,
                 xlabel: str = "", ylabel: str = "", title: str = "",
                 figsize=(8, 5)):
    """One-panel figure around scatter_with_trend. Returns (fig, r, p)."""
    fig, ax = plt.subplots(figsize=figsize)
    r, pval = scatter_with_trend(ax, data, x, y, hue=hue, xlabel=xlabel,
                                 ylabel=ylabel, title=title)
    fig.tight_layout()
    return fig, r, pval
