"""Exception hierarchy for slicechart."""


class SliceChartError(Exception):
    """Base exception for slicechart errors."""
    pass


class InvalidEntryError(SliceChartError):
    """Entry rejected at the edit boundary (empty label, bad value or color)."""
    pass


class DuplicateLabelError(SliceChartError):
    """An entry with the same label already exists."""
    pass


class UnsupportedFormatError(SliceChartError, ValueError):
    """Requested export format is not one of the supported targets."""
    pass


class ImageLoadError(SliceChartError):
    """An image source could not be fetched or decoded.

    Raised inside the image cache loader only; the cache records the label as
    failed and the chart draws it without an image.
    """
    pass
