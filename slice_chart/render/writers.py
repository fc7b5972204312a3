"""Format writers for exports that need no templating."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.enums import ExportFormat
from ..core.errors import UnsupportedFormatError
from ..core.logging_config import get_logger
from ..core.models import Entry, format_value

if TYPE_CHECKING:
    from ..visuals.charts import RasterFrame
    from .exporter import ExportResult

logger = get_logger(__name__)

_PILLOW_FORMATS = {
    ExportFormat.PNG: ("PNG", {"optimize": True}),
    ExportFormat.JPEG: ("JPEG", {"quality": 95}),
    ExportFormat.WEBP: ("WEBP", {"quality": 100}),
}


def write_csv(entries: Iterable[Entry]) -> str:
    """Serialize every entry, hidden ones included, as ``Label,Value`` rows.

    Rows are newline-joined with no trailing newline. Labels containing a
    comma or quote are quoted; values are always bare numbers.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Label", "Value"])
    for entry in entries:
        writer.writerow([entry.label, format_value(entry.value)])
    return buffer.getvalue().rstrip("\n")


def write_raster(frame: RasterFrame, fmt: ExportFormat) -> bytes:
    """Encode a captured frame as PNG, JPEG or WEBP."""
    if fmt not in _PILLOW_FORMATS:
        raise UnsupportedFormatError(f"{fmt.value} is not a raster image format")
    pillow_format, params = _PILLOW_FORMATS[fmt]
    buffer = io.BytesIO()
    frame.image.save(buffer, format=pillow_format, **params)
    return buffer.getvalue()


def write_export(path: str | Path, result: ExportResult) -> Path:
    """Write an export result to ``path``; a directory gets the default filename.

    Raises:
        OSError: If file writing fails
    """
    p = Path(path)
    if p.is_dir():
        p = p / result.filename
    p.parent.mkdir(parents=True, exist_ok=True)

    try:
        p.write_bytes(result.content)
        logger.info(f"Export written to {p}", extra={"size": len(result.content)})
    except OSError as e:
        logger.error(f"Failed to write export to {p}", extra={"error": str(e)}, exc_info=True)
        raise
    return p
