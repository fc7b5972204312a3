"""Export pipeline: format writers, Jinja2 documents, PDF conversion and orchestration.

Usage:
    from slice_chart.render import ChartExporter

    exporter = ChartExporter(surface)
    result = await exporter.export("pdf", entries)
    write_export("out/chart.pdf", result)
"""

from __future__ import annotations

from .exporter import ChartExporter, ExportResult
from .writers import write_export

__all__ = ["ChartExporter", "ExportResult", "write_export"]
