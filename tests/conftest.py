"""Shared fixtures: snapshot directories and provider settings."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from redlist_explorer.config import Settings

from tests.factories import WriteSnapshot, WriteTable


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def write_snapshot(data_dir: Path) -> WriteSnapshot:
    """Write ``redlist-*.json`` in the exported format."""

    def _write(
        file_name: str,
        species: list[dict[str, Any]],
        fetched_at: str = "2025-06-01T00:00:00Z",
    ) -> Path:
        by_category: dict[str, int] = {}
        for s in species:
            by_category[s["category"]] = by_category.get(s["category"], 0) + 1
        payload = {
            "species": species,
            "metadata": {
                "totalSpecies": len(species),
                "fetchedAt": fetched_at,
                "pagesProcessed": 1,
                "byCategory": by_category,
            },
        }
        path = data_dir / file_name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_table(data_dir: Path) -> WriteTable:
    """Write a ``gbif-*.csv`` occurrence table."""

    def _write(file_name: str, text: str) -> Path:
        path = data_dir / file_name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def api_key() -> Iterator[Settings]:
    """Configure a Red List API key for the duration of a test."""
    settings = Settings(red_list_api_key="test-key")
    with patch("redlist_explorer.services.redlist.get_settings", return_value=settings):
        yield settings


@pytest.fixture
def no_api_key() -> Iterator[Settings]:
    settings = Settings(red_list_api_key=None)
    with patch("redlist_explorer.services.redlist.get_settings", return_value=settings):
        yield settings
