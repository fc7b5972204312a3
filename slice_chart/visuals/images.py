"""Asynchronous, memoized image loading for chart overlays.

The cache is keyed by (label, source). Changing the source configured for a
label replaces that label's entry and triggers a new fetch; re-requesting an
unchanged mapping never fetches again. Failures are recorded per label and
never abort a batch.

All cache state is touched on the event loop thread only. Fetching and
decoding run in the loop's default executor so the loop keeps drawing while
images download.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from ..core.enums import ImageStatus
from ..core.errors import ImageLoadError
from ..core.logging_config import get_logger

logger = get_logger(__name__)

Fetcher = Callable[[str], bytes]
Listener = Callable[[str], None]


@dataclass(frozen=True)
class CachedImage:
    label: str
    source: str | None
    status: ImageStatus
    image: Image.Image | None = None

    @property
    def size(self) -> tuple[int, int] | None:
        """Intrinsic (width, height) of a loaded image."""
        return self.image.size if self.image is not None else None


def _decode_data_uri(source: str) -> bytes:
    header, sep, payload = source.partition(",")
    if not sep:
        raise ImageLoadError("Malformed data URI")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return unquote_to_bytes(payload)
    except binascii.Error as e:
        raise ImageLoadError(f"Malformed base64 payload: {e}") from e


def fetch_image_bytes(source: str, timeout: float = 15.0) -> bytes:
    """Fetch raw image bytes from an http(s) URL, a data URI or a local path.

    Remote requests carry no credentials or cookies so the result never
    depends on the caller's session.

    Raises:
        ImageLoadError: If the source cannot be read
    """
    if source.startswith("data:"):
        return _decode_data_uri(source)

    parsed = urlparse(source)
    if parsed.scheme in ("http", "https"):
        try:
            resp = requests.get(source, timeout=timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise ImageLoadError(f"Request failed: {e}") from e
        if resp.status_code != 200:
            raise ImageLoadError(f"HTTP {resp.status_code} fetching image")
        return resp.content

    path = Path(unquote_to_bytes(parsed.path).decode() if parsed.scheme == "file" else source)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Cannot read {path}: {e}") from e


def decode_image(data: bytes) -> Image.Image:
    """Decode image bytes into a fully loaded RGBA Pillow image."""
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageLoadError(f"Cannot decode image: {e}") from e


class ImageCache:
    """Per-label image cache with a "wait for all" join for exports."""

    def __init__(self, fetcher: Fetcher | None = None, timeout: float = 15.0):
        """Initialize the cache.

        Args:
            fetcher: Callable returning raw bytes for a source. Defaults to
                ``fetch_image_bytes`` with ``timeout``.
            timeout: Network timeout in seconds for the default fetcher
        """
        self._fetcher = fetcher or (lambda source: fetch_image_bytes(source, timeout))
        self._entries: dict[str, CachedImage] = {}
        self._tasks: dict[tuple[str, str], asyncio.Task[None]] = {}
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        """Register a callback invoked with the label whenever an image settles."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get(self, label: str) -> CachedImage | None:
        """Return the loaded image for ``label``, or None if it is not drawable yet."""
        entry = self._entries.get(label)
        if entry is None or entry.status is not ImageStatus.LOADED:
            return None
        return entry

    def state(self, label: str) -> CachedImage | None:
        return self._entries.get(label)

    async def ensure_loaded(self, sources: Mapping[str, str | None]) -> None:
        """Load every referenced image; resolve once each one has loaded or failed.

        Never raises because of an individual image. Labels mapped to no source
        are recorded as absent.
        """
        pending: list[asyncio.Task[None]] = []
        for label, source in sources.items():
            if not source:
                self._entries[label] = CachedImage(label, None, ImageStatus.ABSENT)
                continue

            current = self._entries.get(label)
            if current is not None and current.source == source:
                if current.status in (ImageStatus.LOADED, ImageStatus.FAILED):
                    continue

            if current is None or current.source != source:
                if current is not None:
                    logger.debug("Image source changed", extra={"label": label})
                # An earlier fetch for this source may still be in flight
                self._entries[label] = CachedImage(label, source, ImageStatus.PENDING)

            key = (label, source)
            task = self._tasks.get(key)
            if task is None:
                task = asyncio.ensure_future(self._load(label, source))
                self._tasks[key] = task
            pending.append(task)

        if pending:
            await asyncio.gather(*pending)

    async def _load(self, label: str, source: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            image = await loop.run_in_executor(None, self._fetch_and_decode, source)
        except ImageLoadError as e:
            logger.warning(
                f"Image for '{label}' failed to load: {e}",
                extra={"label": label},
            )
            result = CachedImage(label, source, ImageStatus.FAILED)
        except Exception as e:
            logger.warning(
                f"Unexpected error loading image for '{label}': {e}",
                extra={"label": label, "error_type": type(e).__name__},
                exc_info=True,
            )
            result = CachedImage(label, source, ImageStatus.FAILED)
        else:
            result = CachedImage(label, source, ImageStatus.LOADED, image)
            logger.debug(
                "Image loaded",
                extra={"label": label, "width": image.width, "height": image.height},
            )
        finally:
            self._tasks.pop((label, source), None)

        current = self._entries.get(label)
        if current is None or current.source != source:
            # The label was pointed at another source while this one was in flight
            return
        self._entries[label] = result
        for listener in list(self._listeners):
            try:
                listener(label)
            except Exception as e:
                logger.warning(
                    f"Image listener failed for '{label}': {e}",
                    extra={"label": label},
                    exc_info=True,
                )

    def _fetch_and_decode(self, source: str) -> Image.Image:
        return decode_image(self._fetcher(source))
