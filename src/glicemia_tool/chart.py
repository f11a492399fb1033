"""Gráfico de evolução da glicemia rasterizado em PNG (matplotlib/Agg).

A geometria é calculada por ``chart_layout`` em coordenadas de pixel
(origem no canto superior esquerdo) e só depois desenhada, para que a
política de escala e espaçamento possa ser testada sem renderizar.
"""

from __future__ import annotations

import base64
import io
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from glicemia_tool.model import Limits, Reading

logger = logging.getLogger(__name__)

ATTENTION_VALUE = 140
GRID_INTERVALS = 5
MAX_X_LABELS = 5
DPI = 100

_BACKGROUND = "#ffffff"
_GRID_COLOR = "#e5e7eb"
_MUTED_TEXT = "#6b7280"
_AXIS_COLOR = "#374151"
_SERIES_COLOR = "#0f766e"
_NORMAL_COLOR = "#22c55e"
_ATTENTION_COLOR = "#f59e0b"
_POST_MEAL_COLOR = "#ef4444"


@dataclass(frozen=True)
class ReferenceLine:
    """Horizontal threshold drawn across the plot."""

    value: float
    color: str
    label: str


@dataclass(frozen=True)
class ChartOptions:
    """Raster size and padding of the chart."""

    width: int = 800
    height: int = 400
    padding: int = 60


@dataclass(frozen=True)
class ChartLayout:
    """Pixel geometry of one chart rendering."""

    width: int
    height: int
    padding: int
    max_value: float
    points: list[tuple[float, float]]
    grid: list[tuple[float, float]]
    references: list[tuple[ReferenceLine, float]]
    x_labels: list[tuple[float, str]]

    @property
    def min_value(self) -> float:
        """Lower bound of the vertical domain (always 0)."""
        return 0.0


def default_references(limits: Limits) -> list[ReferenceLine]:
    """Reference lines for a limits snapshot, deduplicated by value."""
    candidates = [
        ReferenceLine(
            limits.fasting_min,
            _NORMAL_COLOR,
            f"Mín. Normal ({_fmt(limits.fasting_min)})",
        ),
        ReferenceLine(
            limits.fasting_max,
            _NORMAL_COLOR,
            f"Máx. Normal ({_fmt(limits.fasting_max)})",
        ),
        ReferenceLine(ATTENTION_VALUE, _ATTENTION_COLOR, f"Atenção ({ATTENTION_VALUE})"),
        ReferenceLine(
            limits.post_meal_max,
            _POST_MEAL_COLOR,
            f"Máx. Pós-refeição ({_fmt(limits.post_meal_max)})",
        ),
    ]
    seen: set[float] = set()
    out: list[ReferenceLine] = []
    for ref in candidates:
        if ref.value in seen:
            continue
        seen.add(ref.value)
        out.append(ref)
    return out


def x_label_indices(count: int) -> list[int]:
    """Indices that get a date label: first, last and evenly stepped ones."""
    if count <= 0:
        return []
    step = math.ceil((count - 1) / (MAX_X_LABELS - 1)) or 1
    return [
        i for i in range(count) if i == 0 or i == count - 1 or i % step == 0
    ]


def chart_layout(
    readings: Sequence[Reading],
    references: Sequence[ReferenceLine],
    options: ChartOptions = ChartOptions(),
) -> ChartLayout:
    """Compute chart geometry.

    Points are spaced evenly by index, not by elapsed time. The vertical
    domain is [0, max(observed max, 140)].

    Args:
        readings: Readings in any order; re-sorted by (date, time).
        references: Threshold lines; those outside the domain are dropped.
        options: Raster size and padding.

    Returns:
        The layout in pixel coordinates.
    """
    ordered = sorted(readings, key=lambda r: r.sort_key)
    width, height = options.width, options.height
    # Padding capped at a quarter of each side.
    pad = min(options.padding, width // 4, height // 4)
    plot_w = width - pad * 2
    plot_h = height - pad * 2
    max_value = float(max([r.value for r in ordered] + [ATTENTION_VALUE]))

    def to_y(value: float) -> float:
        return pad + plot_h - (value / max_value) * plot_h

    def to_x(index: int) -> float:
        return pad + (plot_w / (len(ordered) - 1 or 1)) * index

    points = [(to_x(i), to_y(r.value)) for i, r in enumerate(ordered)]
    grid = [
        (pad + (plot_h / GRID_INTERVALS) * i, max_value - (max_value / GRID_INTERVALS) * i)
        for i in range(GRID_INTERVALS + 1)
    ]
    visible: list[tuple[ReferenceLine, float]] = []
    for ref in references:
        if 0 <= ref.value <= max_value:
            visible.append((ref, to_y(ref.value)))
    x_labels = [
        (to_x(i), ordered[i].date.strftime("%d/%m")) for i in x_label_indices(len(ordered))
    ]
    return ChartLayout(
        width=width,
        height=height,
        padding=pad,
        max_value=max_value,
        points=points,
        grid=grid,
        references=visible,
        x_labels=x_labels,
    )


def render_chart_png(
    readings: Sequence[Reading],
    limits: Limits | None = None,
    options: ChartOptions = ChartOptions(),
    references: Sequence[ReferenceLine] | None = None,
) -> bytes:
    """Render the glucose chart as PNG bytes.

    Returns b"" when no drawing surface can be obtained (non-positive size
    or a backend failure), so callers can fall back to another view.
    """
    if options.width <= 0 or options.height <= 0:
        logger.warning(
            "Chart surface unavailable: invalid size %sx%s",
            options.width,
            options.height,
        )
        return b""
    refs = (
        list(references)
        if references is not None
        else default_references(limits or Limits())
    )
    layout = chart_layout(readings, refs, options)
    try:
        return _draw(layout)
    except (RuntimeError, ValueError, OSError):
        logger.exception("Chart rendering failed")
        return b""


def chart_data_uri(png: bytes) -> str:
    """Inline ``data:`` URI for a PNG, or "" when there is no image."""
    if not png:
        return ""
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _pt(px: float) -> float:
    """Pixels to points at the chart DPI."""
    return px * 72 / DPI


def _draw(layout: ChartLayout) -> bytes:
    from matplotlib.backends.backend_agg import FigureCanvasAgg
    from matplotlib.figure import Figure

    width, height, pad = layout.width, layout.height, layout.padding
    fig = Figure(figsize=(width / DPI, height / DPI), dpi=DPI, facecolor=_BACKGROUND)
    FigureCanvasAgg(fig)
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_axis_off()

    for y, value in layout.grid:
        ax.plot([pad, width - pad], [y, y], color=_GRID_COLOR, linewidth=_pt(1))
        ax.text(
            pad - 10,
            y,
            str(round(value)),
            color=_MUTED_TEXT,
            fontsize=_pt(12),
            ha="right",
            va="center",
        )

    for ref, y in layout.references:
        ax.plot(
            [pad, width - pad],
            [y, y],
            color=ref.color,
            linewidth=_pt(2),
            linestyle=(0, (5, 5)),
        )
        ax.text(pad + 5, y - 5, ref.label, color=ref.color, fontsize=_pt(10), va="bottom")

    if layout.points:
        xs = [x for x, _ in layout.points]
        ys = [y for _, y in layout.points]
        ax.plot(xs, ys, color=_SERIES_COLOR, linewidth=_pt(3), zorder=3)
        ax.plot(
            xs,
            ys,
            linestyle="none",
            marker="o",
            markersize=_pt(8),
            color=_SERIES_COLOR,
            zorder=4,
        )
        for x, label in layout.x_labels:
            ax.text(
                x,
                height - pad + 15,
                label,
                color=_MUTED_TEXT,
                fontsize=_pt(10),
                ha="center",
                va="center",
            )

    ax.plot(
        [pad, pad, width - pad],
        [pad, height - pad, height - pad],
        color=_AXIS_COLOR,
        linewidth=_pt(2),
    )
    ax.text(pad / 2, pad - 20, "mg/dL", color=_AXIS_COLOR, fontsize=_pt(14), ha="center")
    ax.text(
        width / 2,
        height - pad / 3,
        "Período",
        color=_AXIS_COLOR,
        fontsize=_pt(14),
        ha="center",
        va="center",
    )

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=DPI, facecolor=_BACKGROUND)
    return buf.getvalue()


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
