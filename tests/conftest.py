"""Shared fixtures: isolated settings, databases and app instances per test."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from csvquery.config import LoaderSettings, QuerySettings, Settings
from csvquery.core import CsvLoader, Database, SchemaInspector
from csvquery.main import create_app


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(text: str, name: str = "orders.csv") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_settings(tmp_path):
    """Settings pointed at tmp_path, with startup auto-load off unless asked for."""

    def _make(
        csv_path: Path | None = None,
        auto_init: bool = False,
        query_timeout: float | None = None,
        **loader_overrides,
    ) -> Settings:
        loader = LoaderSettings(
            csv_path=str(csv_path or tmp_path / "orders.csv"),
            auto_init=auto_init,
            **loader_overrides,
        )
        return Settings(
            static_dir=str(tmp_path / "static"),
            loader=loader,
            query=QuerySettings(timeout_seconds=query_timeout),
        )

    return _make


@pytest.fixture
def make_client(make_settings):
    """TestClient over a fresh app (no lifespan, so no auto-load)."""

    def _make(**kwargs) -> TestClient:
        return TestClient(create_app(make_settings(**kwargs)))

    return _make


@pytest.fixture
def database():
    db = Database()
    yield db
    db.close()


@pytest.fixture
def loader(database):
    return CsvLoader(database)


@pytest.fixture
def inspector(database):
    return SchemaInspector(database)
