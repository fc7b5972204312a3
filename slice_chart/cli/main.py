from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from .. import __version__
from ..core.config import get_settings
from ..core.entries import load_entries
from ..core.enums import ChartType, ExportFormat
from ..core.errors import DuplicateLabelError, InvalidEntryError
from ..core.logging_config import get_logger, setup_logging
from ..core.models import ChartOptions
from ..render.exporter import ChartExporter
from ..render.writers import write_export
from ..visuals.charts import ChartSurface
from ..visuals.images import ImageCache
from . import output as cli_output

app = typer.Typer(help="slicechart CLI")

logger = get_logger(__name__)


@app.callback()
def callback(
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    """Configure global CLI options."""
    setup_logging(json_output=json_logs, log_level=log_level)
    logger.debug("CLI initialized", extra={"json_logs": json_logs, "log_level": log_level})


@app.command()
def version() -> None:
    """Print version."""
    typer.echo(__version__)


@app.command("export")
def export_chart(
    data_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML file with the entries to chart"),  # noqa: B008
    chart_type: ChartType = typer.Option(ChartType.BAR, "--chart-type", case_sensitive=False, help="bar or pie"),  # noqa: B008
    fmt: ExportFormat = typer.Option(  # noqa: B008
        ExportFormat.PNG,
        "--format",
        case_sensitive=False,
        help="png, jpeg, webp, pdf, csv or html",
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None,
        "--output",
        help="Output file or directory (default: the configured output directory)",
    ),
    hide: list[str] | None = typer.Option(  # noqa: B008
        None, "--hide", help="Label to leave out of the chart; repeatable"
    ),
    font_size: int | None = typer.Option(None, "--font-size", min=8, max=40, help="Value label font size in pixels"),  # noqa: B008
    no_border: bool = typer.Option(False, "--no-border", help="Draw elements without borders"),  # noqa: B008
    border_thickness: float | None = typer.Option(  # noqa: B008
        None, "--border-thickness", min=0, max=10, help="Border thickness in pixels"
    ),
) -> None:
    """Render the chart for DATA_FILE and export it.

    Settings not given on the command line come from SLICECHART_* environment
    variables or a .env file in the working directory.
    """
    settings = get_settings()

    try:
        entries, visible = load_entries(data_file)
    except (InvalidEntryError, DuplicateLabelError) as e:
        cli_output.error(f"Invalid data file {data_file}: {e}")
        raise typer.Exit(code=1) from e

    if hide:
        unknown = [lbl for lbl in hide if lbl not in {e.label for e in entries}]
        for lbl in unknown:
            cli_output.warning(f"--hide {lbl!r} matches no entry")
        visible = [lbl for lbl in visible if lbl not in hide]

    if not visible:
        cli_output.info("No visible entries, exporting an empty chart")

    options = ChartOptions(
        value_font_size=font_size if font_size is not None else settings.value_font_size,
        show_border=settings.show_border and not no_border,
        border_thickness=(
            border_thickness if border_thickness is not None else settings.border_thickness
        ),
    )

    async def _run() -> Path:
        cache = ImageCache(timeout=settings.image_timeout)
        surface = ChartSurface(
            chart_type,
            cache,
            options,
            width=settings.surface_width,
            height=settings.surface_height,
            dpi=settings.surface_dpi,
        )
        try:
            surface.render(entries, visible)
            exporter = ChartExporter(
                surface,
                export_scale=settings.export_scale,
                pdf_scale=settings.pdf_scale,
            )
            result = await exporter.export(fmt, entries)
        finally:
            surface.close()
        return write_export(output or Path(settings.output_dir) / fmt.default_filename, result)

    try:
        path = asyncio.run(_run())
    except RuntimeError as e:
        logger.exception("Export failed", extra={"format": fmt.value})
        cli_output.error(f"Export failed: {e}")
        raise typer.Exit(code=1) from e
    except OSError as e:
        cli_output.error(f"Could not write export: {e}")
        raise typer.Exit(code=1) from e

    cli_output.success(f"Exported {fmt.value.upper()} to {path}")


if __name__ == "__main__":
    app()
