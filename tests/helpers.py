"""Test helpers shared across modules."""

from __future__ import annotations

from io import BytesIO

from PIL import Image

from slice_chart.core.errors import ImageLoadError


def make_png(width: int, height: int, color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class CountingFetcher:
    """Serves images from a dict and records every fetched source."""

    def __init__(self, images: dict[str, bytes]):
        self.images = images
        self.calls: list[str] = []

    def __call__(self, source: str) -> bytes:
        self.calls.append(source)
        if source not in self.images:
            raise ImageLoadError(f"404 {source}")
        return self.images[source]
