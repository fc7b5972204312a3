from __future__ import annotations

import base64
import math
from dataclasses import dataclass

FALLBACK_COLOR = "#888888"


@dataclass(frozen=True)
class ChartOptions:
    """Presentation settings applied uniformly to every visible element."""

    value_font_size: int = 14
    show_border: bool = True
    border_thickness: float = 1


@dataclass(frozen=True)
class Entry:
    label: str
    value: float
    color: str = FALLBACK_COLOR
    image_url: str | None = None
    image_blob: bytes | None = None

    @property
    def image_source(self) -> str | None:
        """Authoritative image source; a local blob wins over the URL."""
        if self.image_blob:
            encoded = base64.b64encode(self.image_blob).decode("ascii")
            return f"data:application/octet-stream;base64,{encoded}"
        return self.image_url or None

    @property
    def image_caption(self) -> str:
        if self.image_blob:
            return "local image"
        return self.image_url or ""


@dataclass(frozen=True)
class Slice:
    """One drawn element of the filtered series."""

    label: str
    value: float
    color: str


def format_value(value: float) -> str:
    """Render a value the way it is shown on the chart and in exports.

    Integral floats drop the fractional part, so 60.0 renders as "60".
    """
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)
