"""Pytest configuration and shared fixtures.

Every fixture works under ``tmp_path``; nothing touches the real user-data
directory.  Settings are read from ``STAGEPILOT_*`` environment variables,
so the cached :func:`~stagepilot.config.get_settings` is cleared around
every test.
"""
from __future__ import annotations

import json
import pathlib
from collections.abc import Callable, Iterator

import pytest

from stagepilot.config import get_settings
from stagepilot.contracts.json_types import JSONObject, JSONValue
from stagepilot.storage.layout import StorageLayout
from stagepilot.storage.library import LibraryRepository
from stagepilot.storage.project_index import ProjectIndex
from stagepilot.storage.project_store import ProjectStore


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Settings are cached per process; isolate env changes between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def user_data_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "user_data"


@pytest.fixture
def layout(user_data_dir: pathlib.Path) -> StorageLayout:
    """An initialised storage layout."""
    layout = StorageLayout(user_data_dir)
    layout.ensure()
    return layout


@pytest.fixture
def store(layout: StorageLayout) -> ProjectStore:
    return ProjectStore(layout, ProjectIndex())


@pytest.fixture
def library(layout: StorageLayout, store: ProjectStore) -> LibraryRepository:
    return LibraryRepository(layout, store)


@pytest.fixture
def data_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Source-record root with an empty ``bands/`` directory."""
    root = tmp_path / "data"
    (root / "bands").mkdir(parents=True)
    return root


@pytest.fixture
def write_band(data_dir: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Write ``bands/<file>.json``; the file name defaults to the band id."""

    def _write(record: JSONObject, file_name: str | None = None) -> pathlib.Path:
        name = file_name or f"{record['id']}.json"
        path = data_dir / "bands" / name
        path.write_text(json.dumps(record), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_musician(data_dir: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Write ``musicians/<role>/<id>.json`` with first/last name and optional monitor preset."""

    def _write(
        role: str,
        musician_id: str,
        first_name: str,
        last_name: str,
        monitor_ref: str | None = None,
    ) -> pathlib.Path:
        role_dir = data_dir / "musicians" / role
        role_dir.mkdir(parents=True, exist_ok=True)
        record: dict[str, JSONValue] = {
            "id": musician_id,
            "firstName": first_name,
            "lastName": last_name,
        }
        if monitor_ref is not None:
            record["presets"] = [
                {"kind": "vocal_mic", "ref": "sm58"},
                {"kind": "monitor", "ref": monitor_ref},
            ]
        path = role_dir / f"{musician_id}.json"
        path.write_text(json.dumps(record), encoding="utf-8")
        return path

    return _write
