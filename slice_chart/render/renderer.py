from __future__ import annotations

import base64
from collections.abc import Iterable, Sequence
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from .. import __version__
from ..core.enums import ChartType
from ..core.logging_config import get_logger
from ..core.models import Entry, format_value
from .pdf import PDFExporter

if TYPE_CHECKING:
    from ..visuals.charts import RasterFrame

logger = get_logger(__name__)

CSS_PX_PER_INCH = 96
MM_PER_INCH = 25.4


def _px_to_mm(px: float) -> float:
    return round(px * MM_PER_INCH / CSS_PX_PER_INCH, 3)


class ReportRenderer:
    """Renders the HTML snapshot and the PDF document using Jinja2 templates."""

    def __init__(self, templates_dir: Path | None = None):
        if templates_dir is None:
            templates_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=lambda name: name is not None and name.endswith(".html.j2"),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _render(self, template_name: str, **context: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**context, version=__version__)
        except TemplateNotFound as e:
            logger.error("Template not found", extra={"error": str(e)})
            raise RuntimeError(
                f"Template not found: {e}. "
                f"Ensure slice_chart/render/templates/{template_name} exists."
            ) from e
        except Exception as e:
            logger.error(f"Failed to render {template_name}", extra={"error": str(e)})
            raise RuntimeError(f"Failed to render {template_name}: {e}") from e

    def render_snapshot_html(
        self,
        svg_markup: str,
        chart_type: ChartType | str,
        entries: Iterable[Entry],
        visible: Sequence[str],
    ) -> str:
        """Render a standalone HTML document around the chart's SVG markup.

        The document carries the label toggle strip and inline styles only;
        it needs no scripts or external stylesheets.
        """
        members = set(visible)
        toggles = [
            {"label": e.label, "color": e.color, "active": e.label in members}
            for e in entries
        ]
        logger.debug("Rendering HTML snapshot", extra={"toggles": len(toggles)})
        return self._render(
            "chart_snapshot.html.j2",
            chart_title=f"{ChartType(chart_type).value.upper()} Chart",
            toggles=toggles,
            chart_markup=svg_markup,
        )

    def render_pdf_html(self, frame: RasterFrame, entries: Iterable[Entry]) -> str:
        """Render the print document: the captured chart above the data table.

        The page is sized to the capture's aspect ratio, converted from CSS
        pixels at the capture's scale to millimetres.
        """
        buffer = BytesIO()
        frame.image.save(buffer, format="PNG")
        chart_png = base64.b64encode(buffer.getvalue()).decode("utf-8")
        buffer.close()

        rows = [
            {
                "label": e.label,
                "value": format_value(e.value),
                "color": e.color,
                "image": e.image_caption,
            }
            for e in entries
        ]
        return self._render(
            "chart_report.html.j2",
            page_width_mm=_px_to_mm(frame.width / frame.scale),
            page_height_mm=_px_to_mm(frame.height / frame.scale),
            chart_png=chart_png,
            rows=rows,
        )

    def render_pdf(
        self, frame: RasterFrame, entries: Iterable[Entry], timeout_seconds: float = 60
    ) -> bytes:
        """Render the PDF export.

        Raises:
            RuntimeError: If WeasyPrint is unavailable or the conversion fails
        """
        exporter = PDFExporter()
        if not exporter.is_available():
            raise RuntimeError(
                "PDF export requires WeasyPrint and its system libraries (pango)."
            )
        html_content = self.render_pdf_html(frame, entries)
        return exporter.html_to_pdf(html_content, timeout_seconds=timeout_seconds)
