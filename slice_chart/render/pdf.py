"""PDF conversion for chart exports.

The PDF export is an HTML document (the captured chart followed by the data
table) converted with WeasyPrint. This module wraps the conversion with a
timeout and reports missing system libraries clearly.

System Dependencies:
    WeasyPrint requires system libraries:
    - macOS: brew install pango libffi
    - Ubuntu: apt-get install libpango-1.0-0 libpangoft2-1.0-0
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from ..core.logging_config import get_logger

logger = get_logger(__name__)


class PDFTimeoutError(Exception):
    """Raised when PDF conversion exceeds its time budget."""

    pass


def _run_with_timeout(func: Callable[[], Any], timeout_seconds: float) -> Any:
    """Run ``func`` on a daemon thread and wait at most ``timeout_seconds``.

    Raises:
        PDFTimeoutError: If the call has not returned in time
    """
    result: list[Any] = []
    errors: list[Exception] = []

    def target() -> None:
        try:
            result.append(func())
        except Exception as e:
            errors.append(e)

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    thread.join(timeout=timeout_seconds)

    if thread.is_alive():
        raise PDFTimeoutError(f"PDF conversion exceeded {timeout_seconds}s")
    if errors:
        raise errors[0]
    return result[0] if result else None


class PDFExporter:
    """Convert HTML documents to PDF bytes using WeasyPrint."""

    def __init__(self) -> None:
        self._weasyprint_available = self._check_weasyprint()

    def _check_weasyprint(self) -> bool:
        """Return True if WeasyPrint imports and its system libraries load."""
        try:
            import weasyprint  # type: ignore  # noqa: F401

            return True
        except ImportError as e:
            logger.error(
                "WeasyPrint not installed. Install with: pip install weasyprint",
                extra={"error": str(e)},
            )
            return False
        except OSError as e:
            logger.error(
                "WeasyPrint system dependencies missing. "
                "On macOS: brew install pango libffi. "
                "On Ubuntu: apt-get install libpango-1.0-0 libpangoft2-1.0-0",
                extra={"error": str(e)},
            )
            return False

    def is_available(self) -> bool:
        return self._weasyprint_available

    def html_to_pdf(self, html_content: str, timeout_seconds: float = 60) -> bytes:
        """Convert an HTML document to PDF.

        Args:
            html_content: Complete HTML document; images must be inlined
            timeout_seconds: Maximum time allowed for the conversion

        Returns:
            PDF content as bytes

        Raises:
            RuntimeError: If WeasyPrint is unavailable, conversion fails or times out
        """
        if not self._weasyprint_available:
            raise RuntimeError(
                "WeasyPrint is not available. Install its system dependencies "
                "and reinstall weasyprint to enable PDF export."
            )

        from weasyprint import HTML

        def _generate() -> bytes:
            return HTML(string=html_content).write_pdf()

        try:
            pdf_bytes: bytes = _run_with_timeout(_generate, timeout_seconds)
        except PDFTimeoutError as e:
            logger.error(
                f"PDF conversion exceeded {timeout_seconds}s timeout",
                extra={"html_size": len(html_content)},
            )
            raise RuntimeError(f"PDF conversion timed out after {timeout_seconds}s") from e
        except Exception as e:
            logger.error(
                "Failed to convert HTML to PDF",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise RuntimeError(f"PDF conversion failed: {e}") from e

        logger.info(
            "PDF generated",
            extra={"pdf_size": len(pdf_bytes), "html_size": len(html_content)},
        )
        return pdf_bytes
