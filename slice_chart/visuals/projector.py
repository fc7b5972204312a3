"""Derive the filtered series actually drawn from the entry list and visibility set."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from ..core.models import FALLBACK_COLOR, Entry, Slice


def project(entries: Iterable[Entry], visible: Collection[str]) -> list[Slice]:
    """Return the visible entries as slices, in original entry order.

    Values and colors are copied into new ``Slice`` objects so a frame being
    drawn is unaffected by later edits to the caller's list.
    """
    members = set(visible)
    return [
        Slice(label=e.label, value=e.value, color=e.color or FALLBACK_COLOR)
        for e in entries
        if e.label in members
    ]


def image_sources(entries: Iterable[Entry], visible: Collection[str]) -> dict[str, str | None]:
    """Map each visible label to its image source, index-aligned with ``project``."""
    members = set(visible)
    return {e.label: e.image_source for e in entries if e.label in members}
