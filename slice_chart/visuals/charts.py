"""Chart surface backed by matplotlib.

``ChartSurface`` draws the filtered series as a bar or pie chart, asks the
pure overlay functions in ``geometry`` where each image and value label
belongs, and draws those instructions on top. Element geometry is read back
from the matplotlib patches and converted to surface pixels (origin top-left,
y down) before it reaches the overlay functions.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Iterable
from dataclasses import dataclass
from io import BytesIO

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.image import AxesImage
from matplotlib.patches import Rectangle, Wedge
from PIL import Image

from ..core.enums import ChartType
from ..core.logging_config import get_logger
from ..core.models import ChartOptions, Entry, Slice, format_value
from .geometry import (
    EMPTY_COLOR,
    EMPTY_LABEL,
    BarElement,
    BarOverlay,
    Point,
    Rect,
    ValueLabel,
    WedgeElement,
    WedgeOverlay,
    compute_bar_overlay_geometry,
    compute_wedge_overlay_geometry,
)
from .images import ImageCache
from .projector import image_sources, project

# Use non-interactive backend for server environments
matplotlib.use("Agg")

logger = get_logger(__name__)

BAR_WIDTH = 0.72
BAR_HEADROOM = 20
TICK_FONT_SIZE = 12


@dataclass(frozen=True)
class RasterFrame:
    """Pixels captured from the surface, flattened onto opaque white."""

    image: Image.Image
    scale: float
    series: tuple[Slice, ...] = ()

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


class ChartSurface:
    """A live bar or pie chart with image and value overlays."""

    def __init__(
        self,
        chart_type: ChartType | str,
        image_cache: ImageCache,
        options: ChartOptions | None = None,
        width: int = 800,
        height: int = 500,
        dpi: int = 100,
    ):
        """Initialize the surface.

        Args:
            chart_type: ``bar`` or ``pie``
            image_cache: Cache supplying overlay images; the surface redraws
                whenever one of its images settles
            options: Font size and border settings
            width: Surface width in pixels
            height: Surface height in pixels
            dpi: Pixels per inch of the on-screen surface
        """
        self.chart_type = ChartType(chart_type)
        self.image_cache = image_cache
        self.options = options or ChartOptions()
        self.figure, self.ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.series: list[Slice] = []
        self.overlays: list[BarOverlay | WedgeOverlay] = []
        self.load_task: asyncio.Task[None] | None = None
        self._entries: list[Entry] = []
        self._visible: list[str] = []
        image_cache.add_listener(self._on_image_settled)

    def render(self, entries: Iterable[Entry], visible: Iterable[str]) -> None:
        """Draw the chart now and start loading its images.

        Elements whose images are not cached yet are drawn color-only; each
        image that settles later triggers a redraw. Loading only starts when an
        event loop is running.
        """
        self._entries = list(entries)
        self._visible = list(visible)
        self.redraw()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, deferring image loads")
            return
        self.load_task = loop.create_task(self.image_cache.ensure_loaded(self.image_sources()))

    @property
    def entries(self) -> list[Entry]:
        """Entries of the last ``render`` call."""
        return list(self._entries)

    @property
    def visible(self) -> list[str]:
        return list(self._visible)

    def image_sources(self) -> dict[str, str | None]:
        return image_sources(self._entries, self._visible)

    def redraw(self) -> None:
        """Rebuild the whole frame from the current entries and cache state."""
        self.series = project(self._entries, self._visible)
        self.ax.clear()
        if self.chart_type is ChartType.BAR:
            self.overlays = self._draw_bar()
        else:
            self.overlays = self._draw_pie()

    def _on_image_settled(self, label: str) -> None:
        if any(s.label == label for s in self.series):
            self.redraw()

    # -- bar -----------------------------------------------------------------

    def _draw_bar(self) -> list[BarOverlay]:
        ax = self.ax
        series = self.series
        values = [s.value for s in series]
        colors = [s.color for s in series]
        x = np.arange(len(series))

        patches: list[Rectangle] = []
        if series:
            patches = ax.bar(
                x,
                values,
                BAR_WIDTH,
                color=colors,
                edgecolor=colors if self.options.show_border else "none",
                linewidth=self._border_width(),
                zorder=2,
            ).patches
        ax.set_xticks(x)
        ax.set_xticklabels(
            [s.label for s in series],
            fontweight="bold",
            fontsize=self._px_to_pt(TICK_FONT_SIZE),
        )
        ax.tick_params(axis="y", labelsize=self._px_to_pt(TICK_FONT_SIZE))
        ax.set_ylim(min([0, *values]), max([0, *values]) + BAR_HEADROOM)
        if not series:
            ax.set_xlim(-0.5, 0.5)
        ax.grid(axis="y", color="black", alpha=0.1)
        ax.set_axisbelow(True)
        for side in ("top", "right"):
            ax.spines[side].set_visible(False)
        self._freeze_layout()

        overlays = []
        for patch, item in zip(patches, series, strict=True):
            cached = self.image_cache.get(item.label)
            overlay = compute_bar_overlay_geometry(
                self._bar_element(patch),
                cached.size if cached else None,
                item.value,
            )
            if overlay.image is not None and cached is not None:
                self._draw_image(cached.image, overlay.image, self._rect_patch(overlay.clip))
            self._draw_label(overlay.label)
            overlays.append(overlay)
        return overlays

    def _bar_element(self, patch: Rectangle) -> BarElement:
        x0, y0 = patch.get_x(), patch.get_y()
        w, h = patch.get_width(), patch.get_height()
        left = self._to_surface(x0, y0)
        right = self._to_surface(x0 + w, y0)
        top = self._to_surface(x0 + w / 2, y0 + h)
        return BarElement(
            center_x=top.x,
            value_y=top.y,
            base_y=left.y,
            width=abs(right.x - left.x),
        )

    # -- pie -----------------------------------------------------------------

    def _draw_pie(self) -> list[WedgeOverlay]:
        ax = self.ax
        series = self.series
        magnitudes = [abs(s.value) for s in series]

        if not series or sum(magnitudes) == 0:
            ax.pie(
                [1],
                colors=[EMPTY_COLOR],
                startangle=90,
                counterclock=False,
                labeldistance=None,
                wedgeprops={"linewidth": 0},
            )
            self._freeze_layout()
            center = self._plot_center()
            if not series:
                self._draw_label(ValueLabel(EMPTY_LABEL, center), color="#999999", bold=False)
            elif len(series) == 1:
                self._draw_label(ValueLabel(format_value(series[0].value), center))
            return []

        ax.pie(
            magnitudes,
            colors=[s.color for s in series],
            startangle=90,
            counterclock=False,
            labeldistance=None,
            wedgeprops={"linewidth": self._border_width()},
        )
        wedges = [p for p in ax.patches if isinstance(p, Wedge)]
        for patch, item in zip(wedges, series, strict=True):
            patch.set_edgecolor(item.color if self.options.show_border else "none")
        self._freeze_layout()
        plot_center = self._plot_center()

        overlays = []
        for patch, item in zip(wedges, series, strict=True):
            cached = self.image_cache.get(item.label)
            overlay = compute_wedge_overlay_geometry(
                self._wedge_element(patch),
                cached.size if cached else None,
                item.value,
                series_length=len(series),
                plot_center=plot_center,
            )
            if overlay.image is not None and cached is not None:
                self._draw_image(cached.image, overlay.image, self._sector_patch(overlay.clip))
            if overlay.label is not None:
                self._draw_label(overlay.label)
            overlays.append(overlay)
        return overlays

    def _wedge_element(self, patch: Wedge) -> WedgeElement:
        cx, cy = patch.center
        center = self._to_surface(cx, cy)
        edge = self._to_surface(cx + patch.r, cy)
        # matplotlib angles run counter-clockwise with y up; surface angles run
        # clockwise with y down, so the sweep is mirrored.
        return WedgeElement(
            center_x=center.x,
            center_y=center.y,
            outer_radius=abs(edge.x - center.x),
            start_angle=-math.radians(patch.theta2),
            end_angle=-math.radians(patch.theta1),
        )

    def _plot_center(self) -> Point:
        bbox = self.ax.bbox
        return Point(
            float((bbox.x0 + bbox.x1) / 2),
            float(self._surface_height - (bbox.y0 + bbox.y1) / 2),
        )

    # -- drawing helpers -----------------------------------------------------

    def _freeze_layout(self) -> None:
        """Settle axes position and limits so pixel conversions stay valid."""
        self.figure.canvas.draw()
        self.ax.set_autoscale_on(False)

    def _draw_image(
        self, image: Image.Image, dest: Rect, clip: Rectangle | Wedge
    ) -> None:
        left, bottom = self._to_data(Point(dest.x, dest.bottom))
        right, top = self._to_data(Point(dest.right, dest.y))
        artist = AxesImage(self.ax, origin="upper", extent=(left, right, bottom, top), zorder=3)
        artist.set_data(np.asarray(image))
        artist.set_clip_path(clip)
        self.ax.add_image(artist)

    def _draw_label(self, label: ValueLabel, color: str = "black", bold: bool = True) -> None:
        x, y = self._to_data(label.anchor)
        self.ax.text(
            x,
            y,
            label.text,
            ha="center",
            va="center",
            fontsize=self._px_to_pt(self.options.value_font_size),
            fontweight="bold" if bold else "normal",
            color=color,
            zorder=4,
        )

    def _rect_patch(self, rect: Rect) -> Rectangle:
        x0, y0 = self._to_data(Point(rect.x, rect.bottom))
        x1, y1 = self._to_data(Point(rect.right, rect.y))
        return Rectangle((x0, y0), x1 - x0, y1 - y0, transform=self.ax.transData)

    def _sector_patch(self, sector: WedgeElement) -> Wedge:
        cx, cy = self._to_data(sector.center)
        ex, _ = self._to_data(Point(sector.center_x + sector.outer_radius, sector.center_y))
        return Wedge(
            (cx, cy),
            abs(ex - cx),
            -math.degrees(sector.end_angle),
            -math.degrees(sector.start_angle),
            transform=self.ax.transData,
        )

    def _border_width(self) -> float:
        if not self.options.show_border:
            return 0
        return self._px_to_pt(self.options.border_thickness)

    def _px_to_pt(self, px: float) -> float:
        return px * 72 / self.figure.dpi

    @property
    def _surface_height(self) -> float:
        return self.figure.bbox.height

    def _to_surface(self, x: float, y: float) -> Point:
        dx, dy = self.ax.transData.transform((x, y))
        return Point(float(dx), float(self._surface_height - dy))

    def _to_data(self, point: Point) -> tuple[float, float]:
        x, y = self.ax.transData.inverted().transform((point.x, self._surface_height - point.y))
        return float(x), float(y)

    # -- capture -------------------------------------------------------------

    def rasterize(self, scale: float) -> RasterFrame:
        """Capture the current frame at ``scale`` times the surface resolution.

        Runs synchronously, so the capture reflects exactly the series and
        cache state of the last redraw.
        """
        buffer = BytesIO()
        self.figure.savefig(buffer, format="png", dpi=self.figure.dpi * scale, facecolor="white")
        buffer.seek(0)
        with Image.open(buffer) as captured:
            captured.load()
            rgba = captured.convert("RGBA")
        buffer.close()

        flattened = Image.new("RGB", rgba.size, "white")
        flattened.paste(rgba, mask=rgba.getchannel("A"))
        logger.debug(
            "Surface rasterized",
            extra={"width": flattened.width, "height": flattened.height, "scale": scale},
        )
        return RasterFrame(image=flattened, scale=scale, series=tuple(self.series))

    def to_svg(self) -> str:
        """Current frame as standalone SVG markup with images inlined."""
        buffer = BytesIO()
        self.figure.savefig(buffer, format="svg", facecolor="white")
        markup = buffer.getvalue().decode("utf-8")
        buffer.close()
        start = markup.find("<svg")
        return markup[start:] if start != -1 else markup

    def close(self) -> None:
        self.image_cache.remove_listener(self._on_image_settled)
        plt.close(self.figure)
