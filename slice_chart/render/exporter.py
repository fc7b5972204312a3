"""Export orchestration.

``ChartExporter.export`` runs ``idle -> awaiting_images -> rasterizing ->
writing -> idle``. CSV skips the first two steps because it never touches
the drawn surface. The rasterizing step redraws and captures the surface
without yielding to the event loop, so one export always sees a single
consistent frame even if images or entries change while it is in flight.
PDF conversion of that frame runs in the loop's default executor.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

from PIL import Image

from ..core.enums import ExportFormat, ExportState
from ..core.errors import UnsupportedFormatError
from ..core.logging_config import get_logger
from ..core.models import Entry
from ..visuals.charts import ChartSurface, RasterFrame
from .renderer import ReportRenderer
from .writers import write_csv, write_raster

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExportResult:
    format: ExportFormat
    filename: str
    media_type: str
    content: bytes


def resolve_format(fmt: ExportFormat | str) -> ExportFormat:
    """Parse a format name.

    Raises:
        UnsupportedFormatError: If ``fmt`` names no supported target
    """
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).strip().lower())
    except ValueError:
        supported = ", ".join(f.value for f in ExportFormat)
        raise UnsupportedFormatError(
            f"Unsupported export format {fmt!r}. Supported: {supported}"
        ) from None


class ChartExporter:
    """Export a live chart surface to one of the supported formats."""

    def __init__(
        self,
        surface: ChartSurface,
        renderer: ReportRenderer | None = None,
        export_scale: float = 3,
        pdf_scale: float = 2,
    ):
        """Initialize the exporter.

        Args:
            surface: Chart surface to capture
            renderer: Jinja2 renderer for HTML and PDF documents
            export_scale: Upscale multiplier for PNG/JPEG/WEBP captures
            pdf_scale: Upscale multiplier for the capture embedded in PDFs
        """
        self.surface = surface
        self.renderer = renderer or ReportRenderer()
        self.export_scale = export_scale
        self.pdf_scale = pdf_scale
        self.state = ExportState.IDLE

    def _transition(self, state: ExportState) -> None:
        logger.debug("Export state change", extra={"from": self.state.value, "to": state.value})
        self.state = state

    async def export(self, fmt: ExportFormat | str, entries: Iterable[Entry]) -> ExportResult:
        """Produce the export bytes for ``fmt``.

        ``entries`` is the caller's full entry list; CSV rows and the PDF
        table include hidden entries. Image failures never fail an export.

        Raises:
            UnsupportedFormatError: If ``fmt`` is not a supported format
        """
        export_format = resolve_format(fmt)
        entries = list(entries)

        try:
            if export_format is ExportFormat.CSV:
                self._transition(ExportState.WRITING)
                content = write_csv(entries).encode("utf-8")
            else:
                self._transition(ExportState.AWAITING_IMAGES)
                await self.surface.image_cache.ensure_loaded(self.surface.image_sources())

                self._transition(ExportState.RASTERIZING)
                self.surface.redraw()
                if export_format.needs_raster:
                    scale = self.pdf_scale if export_format is ExportFormat.PDF else self.export_scale
                    frame = self._capture(scale)
                    self._transition(ExportState.WRITING)
                    if export_format is ExportFormat.PDF:
                        loop = asyncio.get_running_loop()
                        content = await loop.run_in_executor(
                            None, self.renderer.render_pdf, frame, entries
                        )
                    else:
                        content = write_raster(frame, export_format)
                else:
                    markup = self.surface.to_svg()
                    self._transition(ExportState.WRITING)
                    content = self.renderer.render_snapshot_html(
                        markup,
                        self.surface.chart_type,
                        self.surface.entries,
                        self.surface.visible,
                    ).encode("utf-8")
        finally:
            self._transition(ExportState.IDLE)

        logger.info(
            "Export complete",
            extra={
                "format": export_format.value,
                "bytes": len(content),
                "visible": len(self.surface.series),
            },
        )
        return ExportResult(
            format=export_format,
            filename=export_format.default_filename,
            media_type=export_format.media_type,
            content=content,
        )

    def _capture(self, scale: float) -> RasterFrame:
        """Rasterize the surface; a failed capture degrades to a blank white frame."""
        try:
            return self.surface.rasterize(scale)
        except Exception as e:
            logger.error(
                f"Rasterization failed, exporting a blank frame: {e}",
                extra={"error_type": type(e).__name__},
                exc_info=True,
            )
            bbox = self.surface.figure.bbox
            size = (max(1, round(bbox.width * scale)), max(1, round(bbox.height * scale)))
            return RasterFrame(image=Image.new("RGB", size, "white"), scale=scale)
