"""Tests for the visible-series projector."""

from __future__ import annotations

from dataclasses import replace

from slice_chart.core.models import FALLBACK_COLOR, Entry, Slice
from slice_chart.visuals.projector import image_sources, project


def _entries() -> list[Entry]:
    return [
        Entry(label="Apples", value=60, color="#FF6384"),
        Entry(label="Bananas", value=100, color="#FFCE56", image_url="https://img.test/b.png"),
        Entry(label="Cherries", value=50, color="#4BC0C0"),
        Entry(label="Dates", value=-5, color=""),
    ]


def test_project_preserves_entry_order() -> None:
    """Visibility order never changes the drawn order."""
    series = project(_entries(), ["Cherries", "Apples"])
    assert [s.label for s in series] == ["Apples", "Cherries"]


def test_project_length_matches_members() -> None:
    entries = _entries()
    visible = {"Bananas", "Dates", "Missing"}
    series = project(entries, visible)
    assert len(series) == len([e for e in entries if e.label in visible])


def test_project_ignores_labels_without_entries() -> None:
    assert project(_entries(), ["Nope"]) == []


def test_project_empty_visibility() -> None:
    assert project(_entries(), []) == []


def test_project_copies_values_and_colors() -> None:
    entries = _entries()
    series = project(entries, ["Apples", "Dates"])
    assert series[0] == Slice(label="Apples", value=60, color="#FF6384")
    # Missing colors fall back to gray
    assert series[1].color == FALLBACK_COLOR

    entries[0] = replace(entries[0], value=999)
    assert series[0].value == 60


def test_image_sources_aligned_with_projection() -> None:
    entries = _entries()
    visible = ["Bananas", "Apples"]
    sources = image_sources(entries, visible)
    assert list(sources) == [s.label for s in project(entries, visible)]
    assert sources == {"Apples": None, "Bananas": "https://img.test/b.png"}


def test_image_sources_prefers_local_blob() -> None:
    entry = Entry(label="Figs", value=1, image_url="https://img.test/f.png", image_blob=b"\x89PNG")
    source = image_sources([entry], ["Figs"])["Figs"]
    assert source is not None
    assert source.startswith("data:")
