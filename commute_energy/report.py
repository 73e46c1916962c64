# -*- coding: utf-8 -*-
"""
Narrative report assembly
=========================
Collects prose, tables, figures and model summaries in order and writes
them as one Markdown document next to the figure/table folders. Rendering
that document to PDF/HTML is left to whatever tool the reader prefers.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .errors import InsufficientDataError
from .plots import DARK_BLUE, save_fig
from .regression import RegressionSummary, format_summary


def banner(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def describe_correlation(r: float, x: str, y: str) -> str:
    """One sentence on the sign and strength of a Pearson r between x and y."""
    if not np.isfinite(r):
        return f"There are too few distinct points to tell how {y} moves with {x}."
    if r == 0:
        return f"{y.capitalize()} shows no linear relation to {x} (r = 0.00)."
    strength = "strongly" if abs(r) >= 0.7 else "moderately" if abs(r) >= 0.3 else "weakly"
    trend = "rises" if r > 0 else "falls"
    return f"{y.capitalize()} {trend} {strength} as {x} rises (r = {r:.2f})."


def save_table(df_in: pd.DataFrame, name: str, table_dir: Path, max_rows: int = 35,
               max_cols: int = 12, fontsize: int = 9) -> Path:
    """
    Save a dataframe as:
      - CSV (full table)
      - PNG snapshot (head, readable) for quick inclusion as an image
    """
    table_dir = Path(table_dir)
    table_dir.mkdir(parents=True, exist_ok=True)
    df_in.to_csv(table_dir / f"{name}.csv", index=True)

    df_show = df_in.head(max_rows).iloc[:, :max_cols].copy()
    for c in df_show.columns:
        if pd.api.types.is_numeric_dtype(df_show[c]):
            df_show[c] = df_show[c].map(lambda x: "" if pd.isna(x) else f"{x:.3f}")
    df_show = df_show.reset_index()

    fig, ax = plt.subplots(figsize=(max(6, 0.9 * df_show.shape[1]), max(1.5, 0.35 * (df_show.shape[0] + 1))))
    ax.axis("off")
    if not df_show.empty:
        tbl = ax.table(cellText=df_show.values, colLabels=[str(c) for c in df_show.columns],
                       loc="center", cellLoc="center")
        tbl.auto_set_font_size(False)
        tbl.set_fontsize(fontsize)
        tbl.scale(1, 1.2)
        for (row, col), cell in tbl.get_celld().items():
            if row == 0:
                cell.set_facecolor(DARK_BLUE)
                cell.set_text_props(color="white", weight="bold")
            else:
                cell.set_facecolor("#F7F7F7" if row % 2 == 0 else "white")
    fig.tight_layout()
    fig.savefig(table_dir / f"{name}.png", bbox_inches="tight")
    plt.close(fig)
    return table_dir / f"{name}.csv"


class ReportWriter:
    """Ordered Markdown document with figures/ and tables/ beside it."""

    def __init__(self, out_dir, title: str):
        self.out_dir = Path(out_dir)
        self.fig_dir = self.out_dir / "figures"
        self.table_dir = self.out_dir / "tables"
        self.title = title
        self._parts: List[str] = [f"# {title}\n"]

    def heading(self, text: str, level: int = 2) -> None:
        self._parts.append(f"{'#' * level} {text}\n")

    def text(self, prose: str) -> None:
        self._parts.append(prose.strip() + "\n")

    def table(self, df: pd.DataFrame, name: str, caption: str = "") -> None:
        save_table(df, name, self.table_dir)
        if caption:
            self._parts.append(f"*{caption}*\n")
        body = df.to_string() if not df.empty else "(no rows)"
        self._parts.append(f"```\n{body}\n```\n")

    def figure(self, fig, name: str, caption: str = "") -> Path:
        png = save_fig(fig, name, self.fig_dir)
        plt.close(fig)
        rel = png.relative_to(self.out_dir).as_posix()
        self._parts.append(f"![{caption or name}]({rel})\n")
        print(f"  ✅ Figure → {png}")
        return png

    def regression(self, summary: RegressionSummary) -> None:
        self._parts.append(f"```\n{format_summary(summary)}\n```\n")

    def insufficient(self, err: InsufficientDataError) -> None:
        self._parts.append(
            f"> **Model not fitted: insufficient data.** `{err.formula}` needs at least "
            f"{err.required} observations; only {err.n_obs} were available.\n"
        )

    def render(self) -> str:
        return "\n".join(self._parts)

    def write(self, name: str = "report.md") -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / name
        path.write_text(self.render(), encoding="utf-8")
        print(f"  ✅ Report → {path}")
        return path
