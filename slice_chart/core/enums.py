from __future__ import annotations

from enum import Enum


class ChartType(str, Enum):
    BAR = "bar"
    PIE = "pie"


class ImageStatus(str, Enum):
    PENDING = "pending"
    LOADED = "loaded"
    ABSENT = "absent"
    FAILED = "failed"


class ExportState(str, Enum):
    IDLE = "idle"
    AWAITING_IMAGES = "awaiting_images"
    RASTERIZING = "rasterizing"
    WRITING = "writing"


class ExportFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    PDF = "pdf"
    CSV = "csv"
    HTML = "html"

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @property
    def extension(self) -> str:
        return "jpg" if self is ExportFormat.JPEG else self.value

    @property
    def is_image(self) -> bool:
        return self in (ExportFormat.PNG, ExportFormat.JPEG, ExportFormat.WEBP)

    @property
    def needs_raster(self) -> bool:
        """Whether the export captures the drawn surface as pixels."""
        return self.is_image or self is ExportFormat.PDF

    @property
    def default_filename(self) -> str:
        if self.is_image:
            return f"chart-highres.{self.extension}"
        if self is ExportFormat.CSV:
            return "chart-data.csv"
        return f"chart.{self.extension}"


_MEDIA_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
    ExportFormat.WEBP: "image/webp",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.CSV: "text/csv",
    ExportFormat.HTML: "text/html",
}
