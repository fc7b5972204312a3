"""Chart drawing and overlay composition.

- ``projector``: the filtered series drawn for a visibility set
- ``geometry``: pure image-fit and value-label placement for bars and wedges
- ``images``: asynchronous, memoized image loading
- ``charts``: the matplotlib-backed chart surface that ties them together
"""

from __future__ import annotations

from .charts import ChartSurface, RasterFrame
from .images import ImageCache
from .projector import project

__all__ = ["ChartSurface", "ImageCache", "RasterFrame", "project"]
