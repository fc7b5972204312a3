"""Tests for entry validation, editing and the YAML data file."""

from __future__ import annotations

from pathlib import Path

import pytest

from slice_chart.core.entries import (
    DEFAULT_ENTRIES,
    add_entry,
    delete_entry,
    load_entries,
    make_entry,
    toggle_label,
    update_entry,
)
from slice_chart.core.errors import DuplicateLabelError, InvalidEntryError
from slice_chart.core.models import FALLBACK_COLOR, Entry, format_value


class TestMakeEntry:
    def test_trims_label_and_defaults_color(self) -> None:
        entry = make_entry("  Apples ", "60")
        assert entry.label == "Apples"
        assert entry.value == 60
        assert isinstance(entry.value, int)
        assert entry.color == FALLBACK_COLOR

    def test_float_strings_stay_float(self) -> None:
        assert make_entry("A", "2.5").value == 2.5

    @pytest.mark.parametrize("label", ["", "   ", None])
    def test_rejects_empty_label(self, label: str | None) -> None:
        with pytest.raises(InvalidEntryError, match="Label is required"):
            make_entry(label, 1)

    @pytest.mark.parametrize("value", ["abc", "", None, True, float("nan"), float("inf"), "inf"])
    def test_rejects_non_numeric_values(self, value: object) -> None:
        with pytest.raises(InvalidEntryError):
            make_entry("A", value)

    def test_rejects_unparseable_color(self) -> None:
        with pytest.raises(InvalidEntryError, match="Unrecognized color"):
            make_entry("A", 1, color="not-a-color")

    def test_blob_replaces_url(self) -> None:
        entry = make_entry("A", 1, image_url="https://img.test/a.png", image_blob=b"raw")
        assert entry.image_url is None
        assert entry.image_source == "data:application/octet-stream;base64,cmF3"
        assert entry.image_caption == "local image"

    def test_blank_url_is_no_image(self) -> None:
        entry = make_entry("A", 1, image_url="   ")
        assert entry.image_source is None
        assert entry.image_caption == ""


class TestEditing:
    @pytest.fixture
    def state(self) -> tuple[list[Entry], list[str]]:
        return list(DEFAULT_ENTRIES), ["Apples", "Cherries"]

    def test_add_makes_entry_visible(self, state) -> None:
        entries, visible = state
        new_entries, new_visible = add_entry(entries, visible, make_entry("Dates", 5))
        assert [e.label for e in new_entries][-1] == "Dates"
        assert new_visible == ["Apples", "Cherries", "Dates"]
        assert len(entries) == 3

    def test_add_rejects_duplicate_and_leaves_state(self, state) -> None:
        entries, visible = state
        with pytest.raises(DuplicateLabelError):
            add_entry(entries, visible, make_entry("Apples", 1))
        assert entries == list(DEFAULT_ENTRIES)
        assert visible == ["Apples", "Cherries"]

    def test_update_in_place(self, state) -> None:
        entries, visible = state
        new_entries, new_visible = update_entry(entries, visible, "Bananas", make_entry("Bananas", 7))
        assert [e.label for e in new_entries] == ["Apples", "Bananas", "Cherries"]
        assert new_entries[1].value == 7
        assert new_visible == visible

    def test_rename_carries_visibility(self, state) -> None:
        entries, visible = state
        new_entries, new_visible = update_entry(entries, visible, "Apples", make_entry("Apricots", 60))
        assert new_entries[0].label == "Apricots"
        assert new_visible == ["Apricots", "Cherries"]

    def test_rename_of_hidden_entry_stays_hidden(self, state) -> None:
        entries, visible = state
        _, new_visible = update_entry(entries, visible, "Bananas", make_entry("Plantains", 1))
        assert new_visible == ["Apples", "Cherries"]

    def test_rename_onto_existing_label_is_rejected(self, state) -> None:
        entries, visible = state
        with pytest.raises(DuplicateLabelError):
            update_entry(entries, visible, "Apples", make_entry("Cherries", 1))

    def test_update_unknown_label(self, state) -> None:
        entries, visible = state
        with pytest.raises(InvalidEntryError, match="No entry labelled"):
            update_entry(entries, visible, "Kiwi", make_entry("Kiwi", 1))

    def test_delete_removes_from_both_lists(self, state) -> None:
        entries, visible = state
        new_entries, new_visible = delete_entry(entries, visible, "Apples")
        assert [e.label for e in new_entries] == ["Bananas", "Cherries"]
        assert new_visible == ["Cherries"]

    def test_toggle(self) -> None:
        assert toggle_label(["A", "B"], "A") == ["B"]
        assert toggle_label(["B"], "A") == ["B", "A"]


class TestLoadEntries:
    def test_loads_rows_and_visibility(self, tmp_path: Path) -> None:
        (tmp_path / "img").mkdir()
        (tmp_path / "img" / "b.png").write_bytes(b"png-bytes")
        data = tmp_path / "entries.yaml"
        data.write_text(
            "entries:\n"
            "  - label: Apples\n"
            "    value: 60\n"
            "    color: '#FF6384'\n"
            "    image: https://img.test/a.png\n"
            "  - label: Bananas\n"
            "    value: 100\n"
            "    image_file: img/b.png\n"
            "visible: [Bananas]\n",
            encoding="utf-8",
        )

        entries, visible = load_entries(data)

        assert [e.label for e in entries] == ["Apples", "Bananas"]
        assert entries[0].image_url == "https://img.test/a.png"
        assert entries[1].image_blob == b"png-bytes"
        assert entries[1].color == FALLBACK_COLOR
        assert visible == ["Bananas"]

    def test_every_entry_visible_by_default(self, tmp_path: Path) -> None:
        data = tmp_path / "entries.yaml"
        data.write_text("entries:\n  - {label: A, value: 1}\n  - {label: B, value: 2}\n")
        _, visible = load_entries(data)
        assert visible == ["A", "B"]

    def test_duplicate_rows(self, tmp_path: Path) -> None:
        data = tmp_path / "entries.yaml"
        data.write_text("entries:\n  - {label: A, value: 1}\n  - {label: A, value: 2}\n")
        with pytest.raises(DuplicateLabelError):
            load_entries(data)

    def test_missing_image_file(self, tmp_path: Path) -> None:
        data = tmp_path / "entries.yaml"
        data.write_text("entries:\n  - {label: A, value: 1, image_file: nope.png}\n")
        with pytest.raises(InvalidEntryError, match="Cannot read image file"):
            load_entries(data)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        data = tmp_path / "entries.yaml"
        data.write_text("entries: [unclosed\n")
        with pytest.raises(InvalidEntryError, match="Malformed YAML"):
            load_entries(data)

    def test_entries_must_be_a_list(self, tmp_path: Path) -> None:
        data = tmp_path / "entries.yaml"
        data.write_text("entries: {label: A}\n")
        with pytest.raises(InvalidEntryError, match="must be a list"):
            load_entries(data)


@pytest.mark.parametrize(
    "value,expected",
    [(60, "60"), (60.0, "60"), (2.5, "2.5"), (-12, "-12"), (0.1, "0.1")],
)
def test_format_value(value: float, expected: str) -> None:
    assert format_value(value) == expected
