"""Shared fixtures for slicechart tests."""

from __future__ import annotations

import pytest

from slice_chart.core.models import Entry
from slice_chart.visuals.images import ImageCache

from .helpers import CountingFetcher, make_png


@pytest.fixture
def fetcher() -> CountingFetcher:
    return CountingFetcher(
        {
            "https://img.test/wide.png": make_png(80, 40),
            "https://img.test/tall.png": make_png(20, 60, "blue"),
        }
    )


@pytest.fixture
def cache(fetcher: CountingFetcher) -> ImageCache:
    return ImageCache(fetcher=fetcher)


@pytest.fixture
def fruit_entries() -> list[Entry]:
    return [
        Entry(label="Apples", value=60, color="#FF6384", image_url="https://img.test/wide.png"),
        Entry(label="Bananas", value=100, color="#FFCE56"),
        Entry(label="Cherries", value=50, color="#4BC0C0", image_url="https://img.test/tall.png"),
    ]
