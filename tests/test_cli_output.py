"""Tests for CLI output formatting utilities."""

from __future__ import annotations

import pytest

from slice_chart.cli import output


def test_success_with_prefix(capsys: pytest.CaptureFixture[str]) -> None:
    """Success messages carry a checkmark by default."""
    output.success("Exported chart")
    captured = capsys.readouterr()
    assert "✅ Exported chart" in captured.out


def test_success_without_prefix(capsys: pytest.CaptureFixture[str]) -> None:
    output.success("Exported chart", prefix=False)
    captured = capsys.readouterr()
    assert "✅" not in captured.out
    assert "Exported chart" in captured.out


def test_error_writes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Errors go to stderr unless told otherwise."""
    output.error("Export failed")
    captured = capsys.readouterr()
    assert "❌ Export failed" in captured.err
    assert captured.out == ""


def test_error_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    output.error("Export failed", err=False)
    captured = capsys.readouterr()
    assert "❌ Export failed" in captured.out


def test_info_and_warning(capsys: pytest.CaptureFixture[str]) -> None:
    output.info("Info message")
    output.warning("Warning message", prefix=False)
    captured = capsys.readouterr()
    assert "ℹ️" in captured.out
    assert "Info message" in captured.out
    assert "⚠️" not in captured.out
    assert "Warning message" in captured.out
