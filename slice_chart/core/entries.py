"""Edit boundary for the caller-owned entry list.

Every function here validates first and returns new lists, so a rejected edit
leaves the caller's ``entries`` and ``visible`` exactly as they were.
"""

from __future__ import annotations

import math
import numbers
from pathlib import Path
from typing import Any

import yaml
from matplotlib.colors import is_color_like

from .errors import DuplicateLabelError, InvalidEntryError
from .logging_config import get_logger
from .models import FALLBACK_COLOR, Entry

logger = get_logger(__name__)

DEFAULT_ENTRIES: tuple[Entry, ...] = (
    Entry(label="Apples", value=60, color="#FF6384"),
    Entry(label="Bananas", value=100, color="#FFCE56"),
    Entry(label="Cherries", value=50, color="#4BC0C0"),
)


def _coerce_value(value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidEntryError("Value must be a number")
    if isinstance(value, numbers.Real):
        number = value
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            raise InvalidEntryError("Value must be a number") from None
        if number.is_integer() and "." not in value and "e" not in value.lower():
            number = int(number)
    else:
        raise InvalidEntryError("Value must be a number")
    if not math.isfinite(number):
        raise InvalidEntryError("Value must be finite")
    return number


def make_entry(
    label: Any,
    value: Any,
    color: str | None = None,
    image_url: str | None = None,
    image_blob: bytes | None = None,
) -> Entry:
    """Validate raw editor input and build an Entry.

    Raises:
        InvalidEntryError: If the label is empty, the value is not a finite number,
            or the color cannot be parsed.
    """
    safe_label = str(label if label is not None else "").strip()
    if not safe_label:
        raise InvalidEntryError("Label is required")

    number = _coerce_value(value)

    color = (color or "").strip() or FALLBACK_COLOR
    if not is_color_like(color):
        raise InvalidEntryError(f"Unrecognized color {color!r} for {safe_label!r}")

    url = (image_url or "").strip() or None
    if image_blob:
        # A local image replaces any configured URL
        url = None

    return Entry(
        label=safe_label,
        value=number,
        color=color,
        image_url=url,
        image_blob=image_blob or None,
    )


def _index_of(entries: list[Entry], label: str) -> int:
    for i, entry in enumerate(entries):
        if entry.label == label:
            return i
    return -1


def add_entry(
    entries: list[Entry], visible: list[str], entry: Entry
) -> tuple[list[Entry], list[str]]:
    """Append a new entry and make it visible."""
    if _index_of(entries, entry.label) != -1:
        raise DuplicateLabelError(f"Label already exists: {entry.label}")

    new_visible = list(visible)
    if entry.label not in new_visible:
        new_visible.append(entry.label)
    return [*entries, entry], new_visible


def update_entry(
    entries: list[Entry], visible: list[str], old_label: str, entry: Entry
) -> tuple[list[Entry], list[str]]:
    """Replace the entry labelled ``old_label`` in place.

    A rename carries the old label's visibility over to the new label.
    """
    index = _index_of(entries, old_label)
    if index == -1:
        raise InvalidEntryError(f"No entry labelled {old_label!r}")
    if entry.label != old_label and _index_of(entries, entry.label) != -1:
        raise DuplicateLabelError(f"Label already exists: {entry.label}")

    new_entries = list(entries)
    new_entries[index] = entry

    if entry.label == old_label:
        return new_entries, list(visible)
    new_visible = [entry.label if lbl == old_label else lbl for lbl in visible]
    logger.debug("Renamed entry", extra={"old_label": old_label, "new_label": entry.label})
    return new_entries, new_visible


def delete_entry(
    entries: list[Entry], visible: list[str], label: str
) -> tuple[list[Entry], list[str]]:
    return (
        [e for e in entries if e.label != label],
        [lbl for lbl in visible if lbl != label],
    )


def toggle_label(visible: list[str], label: str) -> list[str]:
    if label in visible:
        return [lbl for lbl in visible if lbl != label]
    return [*visible, label]


def load_entries(path: str | Path) -> tuple[list[Entry], list[str]]:
    """Load entries and the visibility list from a YAML data file.

    Expected layout::

        entries:
          - label: Apples
            value: 60
            color: "#FF6384"
            image: https://example.com/apple.png
          - label: Bananas
            value: 100
            image_file: images/banana.png
        visible: [Apples]   # optional, defaults to every entry

    Relative ``image_file`` paths resolve against the data file's directory.

    Raises:
        InvalidEntryError: On malformed rows or unreadable image files
        DuplicateLabelError: If two rows share a label
    """
    cfg_path = Path(path)
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InvalidEntryError(f"Malformed YAML in {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidEntryError(f"{cfg_path} must contain a mapping with an 'entries' list")

    rows = data.get("entries") or []
    if not isinstance(rows, list):
        raise InvalidEntryError("'entries' must be a list")

    entries: list[Entry] = []
    visible: list[str] = []
    for row in rows:
        if not isinstance(row, dict):
            raise InvalidEntryError(f"Entry rows must be mappings, got {row!r}")
        blob = None
        image_file = row.get("image_file")
        if image_file:
            image_path = Path(image_file)
            if not image_path.is_absolute():
                image_path = cfg_path.parent / image_path
            try:
                blob = image_path.read_bytes()
            except OSError as e:
                raise InvalidEntryError(f"Cannot read image file {image_path}: {e}") from e
        entry = make_entry(
            row.get("label"),
            row.get("value"),
            color=row.get("color"),
            image_url=row.get("image"),
            image_blob=blob,
        )
        entries, visible = add_entry(entries, visible, entry)

    if "visible" in data and data["visible"] is not None:
        visible = [str(lbl) for lbl in data["visible"]]

    logger.info(
        "Loaded entries",
        extra={"path": str(cfg_path), "entries": len(entries), "visible": len(visible)},
    )
    return entries, visible
