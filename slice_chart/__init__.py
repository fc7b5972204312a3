"""slicechart: bar and pie charts with image overlays and multi-format export."""

__version__ = "0.1.0"
