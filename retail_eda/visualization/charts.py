"""
Chart Rendering

Descriptive charts for the exploratory report:
- Bar charts for discrete and logical columns (top-N levels, the rest
  lumped into "other", long labels truncated)
- Histograms for continuous columns (with mean and median lines) and
  datetime columns
- Sheet-faceted variants of both
- Missing-value bar chart and missing-pattern heatmap
- Spend time series and spend distribution

Charts are output only. They are saved when an output directory is
configured and always closed afterwards.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import matplotlib.dates as mdates
import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
import structlog
from matplotlib.colors import ListedColormap
from matplotlib.figure import Figure

from retail_eda.config import get_settings
from retail_eda.quality.profiler import combination_matrix
from retail_eda.transformation.classifiers import ColumnClassification, ColumnType

logger = structlog.get_logger(__name__)
settings = get_settings()

NA_LABEL = "NA"
OTHER_LABEL = "other"
MAX_PATTERNS = 30

# Plot order of the column buckets
BUCKET_ORDER = [
    ColumnType.LOGICAL,
    ColumnType.CONTINUOUS,
    ColumnType.DISCRETE,
    ColumnType.DATETIME,
]


def truncate_label(label: str, max_length: int) -> str:
    """Cut labels longer than max_length and mark them with '...'"""
    label = str(label)
    if len(label) <= max_length:
        return label
    if max_length <= 3:
        return label[:max_length]
    return label[: max_length - 3] + "..."


def lump_categories(
    series: pl.Series,
    top_n: int,
    other_label: str = OTHER_LABEL,
) -> pl.DataFrame:
    """
    Frequency table of the top_n most common levels.

    Levels beyond top_n are summed into a single other_label row. Missing
    values count as their own NA level.

    Returns:
        DataFrame with level and count, most frequent first
    """
    values = series.cast(pl.String).fill_null(NA_LABEL)
    counts = (
        values.to_frame("level")
        .group_by("level", maintain_order=True)
        .agg(pl.len().alias("count"))
        .sort("count", descending=True, maintain_order=True)
    )
    if counts.height <= top_n:
        return counts

    top = counts.head(top_n)
    other = pl.DataFrame(
        {"level": [other_label], "count": [counts["count"].slice(top_n).sum()]},
        schema=top.schema,
    )
    return pl.concat([top, other])


def _numeric_values(series: pl.Series) -> Tuple[np.ndarray, bool]:
    """Plottable values and whether they are matplotlib date numbers"""
    series = series.drop_nulls()
    base = series.dtype.base_type()

    if base in (pl.Date, pl.Datetime):
        return mdates.date2num(series.to_numpy()), True
    if base == pl.Time:
        # hours since midnight
        return series.cast(pl.Int64).to_numpy() / 3.6e12, False

    values = series.cast(pl.Float64).to_numpy()
    return values[np.isfinite(values)], False


@dataclass
class ChartOutput:
    """A rendered chart"""
    name: str
    title: str
    path: Optional[Path] = None


class ChartRenderer:
    """
    Renders the report's charts.

    Example:
        renderer = ChartRenderer(output_dir="reports/figures")
        charts = renderer.render_all(df, plot_classification)
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        max_categories: Optional[int] = None,
        histogram_bins: Optional[int] = None,
        label_max_length: Optional[int] = None,
        sheet_column: Optional[str] = None,
        dpi: Optional[int] = None,
        show: bool = False,
    ):
        exploration = settings.exploration
        self.output_dir = Path(output_dir) if output_dir else None
        self.max_categories = max_categories if max_categories is not None else exploration.max_categories
        self.histogram_bins = histogram_bins if histogram_bins is not None else exploration.histogram_bins
        self.label_max_length = label_max_length if label_max_length is not None else exploration.label_max_length
        self.sheet_column = sheet_column if sheet_column is not None else exploration.sheet_column
        self.dpi = dpi if dpi is not None else exploration.figure_dpi
        self.show = show

        if self.output_dir is not None:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        sns.set_theme(style="whitegrid")

    def _finish(self, fig: Figure, name: str, title: str) -> ChartOutput:
        """Save, optionally show, and close a figure"""
        fig.suptitle(title)
        fig.tight_layout()

        path = None
        if self.output_dir is not None:
            path = self.output_dir / f"{name}.png"
            fig.savefig(path, dpi=self.dpi, bbox_inches="tight", facecolor="white")
            logger.debug("Chart saved", chart=name, path=str(path))

        if self.show:
            plt.show()
        plt.close(fig)

        return ChartOutput(name=name, title=title, path=path)

    def _facets(self, df: pl.DataFrame, facet: bool) -> List[Tuple[Optional[str], pl.DataFrame]]:
        """(sheet, rows) pairs; a single unfaceted pair when not faceting"""
        if not facet:
            return [(None, df)]
        sheets = df.get_column(self.sheet_column).drop_nulls().unique(maintain_order=True).to_list()
        if not sheets:
            return [(None, df)]
        return [(sheet, df.filter(pl.col(self.sheet_column) == sheet)) for sheet in sheets]

    def can_facet(self, df: pl.DataFrame, column: str) -> bool:
        return self.sheet_column in df.columns and column != self.sheet_column

    def _subplots(self, panels: int) -> Tuple[Figure, np.ndarray]:
        return plt.subplots(1, panels, figsize=(6 * panels, 5), squeeze=False)

    def bar_chart(self, df: pl.DataFrame, column: str, facet: bool = False) -> ChartOutput:
        """Level counts for a discrete or logical column"""
        facets = self._facets(df, facet)
        fig, axes = self._subplots(len(facets))

        for ax, (sheet, rows) in zip(axes[0], facets):
            counts = lump_categories(rows.get_column(column), self.max_categories)
            labels = [truncate_label(level, self.label_max_length) for level in counts["level"]]
            positions = np.arange(counts.height)

            ax.barh(positions, counts["count"].to_numpy(), color=sns.color_palette()[0])
            ax.set_yticks(positions)
            ax.set_yticklabels(labels)
            ax.invert_yaxis()
            ax.set_xlabel("rows")
            if sheet is not None:
                ax.set_title(str(sheet))

        suffix = "_by_sheet" if facet else ""
        title = f"Frequency of {column}" + (f" by {self.sheet_column}" if facet else "")
        return self._finish(fig, f"bar_{column}{suffix}", title)

    def histogram(self, df: pl.DataFrame, column: str, facet: bool = False) -> ChartOutput:
        """Distribution of a continuous or datetime column"""
        facets = self._facets(df, facet)
        fig, axes = self._subplots(len(facets))

        for ax, (sheet, rows) in zip(axes[0], facets):
            values, is_date = _numeric_values(rows.get_column(column))
            if values.size == 0:
                ax.text(0.5, 0.5, "no data", ha="center", va="center", transform=ax.transAxes)
                continue

            ax.hist(values, bins=self.histogram_bins, color=sns.color_palette()[0])
            if is_date:
                ax.xaxis_date()
                fig.autofmt_xdate()
            else:
                mean, median = float(np.mean(values)), float(np.median(values))
                ax.axvline(mean, color="tab:red", linestyle="--", label=f"mean {mean:,.2f}")
                ax.axvline(median, color="tab:green", linestyle="-", label=f"median {median:,.2f}")
                ax.legend()
            ax.set_xlabel(column)
            ax.set_ylabel("rows")
            if sheet is not None:
                ax.set_title(str(sheet))

        suffix = "_by_sheet" if facet else ""
        title = f"Distribution of {column}" + (f" by {self.sheet_column}" if facet else "")
        return self._finish(fig, f"hist_{column}{suffix}", title)

    def render_column(
        self,
        df: pl.DataFrame,
        column: str,
        column_type: ColumnType,
        facet: bool = False,
    ) -> Optional[ChartOutput]:
        """Chart for one column according to its bucket"""
        if facet and not self.can_facet(df, column):
            return None
        if column_type in (ColumnType.DISCRETE, ColumnType.LOGICAL):
            return self.bar_chart(df, column, facet)
        if column_type in (ColumnType.CONTINUOUS, ColumnType.DATETIME):
            return self.histogram(df, column, facet)
        return None

    def render_all(
        self,
        df: pl.DataFrame,
        classification: ColumnClassification,
        facets: Sequence[bool] = (False, True),
    ) -> List[ChartOutput]:
        """One chart per column per bucket, unconditioned and by sheet"""
        charts = []
        for facet in facets:
            for column_type in BUCKET_ORDER:
                for column in classification.columns(column_type):
                    chart = self.render_column(df, column, column_type, facet)
                    if chart is not None:
                        charts.append(chart)

        logger.info("Column charts rendered", charts=len(charts))
        return charts

    def missing_bar(self, summary: pl.DataFrame) -> ChartOutput:
        """Missing proportion per column"""
        fig, axes = self._subplots(1)
        ax = axes[0][0]
        positions = np.arange(summary.height)
        ax.barh(positions, summary["missing_proportion"].to_numpy(), color=sns.color_palette()[3])
        ax.set_yticks(positions)
        ax.set_yticklabels([truncate_label(c, self.label_max_length) for c in summary["column"]])
        ax.invert_yaxis()
        ax.set_xlim(0, 1)
        ax.set_xlabel("proportion missing")
        return self._finish(fig, "missing_by_column", "Missing values by column")

    def missing_heatmap(self, patterns: pl.DataFrame) -> ChartOutput:
        """Combination-frequency matrix of missingness signatures"""
        matrix, columns, row_labels = combination_matrix(patterns.head(MAX_PATTERNS))
        fig, ax = plt.subplots(figsize=(max(6, 0.5 * len(columns) + 3), max(3, 0.35 * len(row_labels) + 2)))

        if matrix.size:
            sns.heatmap(
                matrix,
                ax=ax,
                cbar=False,
                cmap=ListedColormap(["#dddddd", "#c0392b"]),
                vmin=0,
                vmax=1,
                linewidths=0.5,
                xticklabels=[truncate_label(c, self.label_max_length) for c in columns],
                yticklabels=row_labels,
            )
        ax.set_xlabel("column (red = missing)")
        ax.set_ylabel("rows with pattern")
        return self._finish(fig, "missing_patterns", "Missing value combinations")

    def spend_timeseries(self, timeseries: pl.DataFrame) -> ChartOutput:
        """One line per time series granularity"""
        series_names = timeseries.get_column("series").unique(maintain_order=True).to_list()
        fig, axes = plt.subplots(len(series_names) or 1, 1, figsize=(10, 3.5 * max(1, len(series_names))), squeeze=False)

        for ax, name in zip(axes[:, 0], series_names):
            rows = timeseries.filter(pl.col("series") == name).sort("date")
            ax.plot(rows["date"].to_numpy(), rows["total_spend"].to_numpy(), marker="." if rows.height < 60 else None)
            ax.set_title(name)
            ax.set_ylabel("total spend")

        return self._finish(fig, "spend_timeseries", "Spend over time")

    def spend_distribution(self, values: Iterable[float], name: str = "customer_amount") -> ChartOutput:
        """Log-scaled histogram of positive spend values"""
        x = np.asarray(list(values), dtype=float)
        x = x[np.isfinite(x) & (x > 0)]

        fig, axes = self._subplots(1)
        ax = axes[0][0]
        if x.size:
            bins = (
                np.logspace(np.log10(x.min()), np.log10(x.max()), self.histogram_bins)
                if x.min() < x.max() else self.histogram_bins
            )
            ax.hist(x, bins=bins, color=sns.color_palette()[2])
            ax.set_xscale("log")
            ax.axvline(float(np.median(x)), color="tab:green", label=f"median {np.median(x):,.2f}")
            ax.axvline(float(np.mean(x)), color="tab:red", linestyle="--", label=f"mean {np.mean(x):,.2f}")
            ax.legend()
        ax.set_xlabel(f"{name} (log scale)")
        ax.set_ylabel("count")
        return self._finish(fig, f"distribution_{name}", f"Distribution of {name}")
