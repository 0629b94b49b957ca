"""Tests for the configuration store repositories.

This module covers:
- InMemoryConfigurationRepository lookups and loading from a JSON snapshot.
- PostgresConfigurationRepository document conversion and queries, with the
  database connection monkeypatched.
- get_configuration_repository backend selection.

All tests are self-contained and do not require a running database.
"""

from __future__ import annotations

import json
import pathlib
import uuid
from typing import Any

import pytest

from viewer_api.core import config
from viewer_api.db import database
from viewer_api.db import models as db_models


def test_in_memory_repository_lookups(
    repo: database.InMemoryConfigurationRepository,
) -> None:
    """Test finding every kind of entity in the in-memory repository."""
    app = repo.find_application(1)
    assert app is not None
    assert repo.find_application_by_name("default") == app
    assert repo.find_application_by_name("other") is None
    assert repo.find_application(2) is None

    service = repo.find_service("openbasiskaart")
    assert service is not None
    assert service.protocol == db_models.GeoServiceProtocol.WMTS
    assert repo.find_service("does-not-exist") is None

    search_index = repo.find_search_index(1)
    assert search_index is not None
    assert search_index.name == "begroeidterreindeel"

    feature_source = repo.find_feature_source(1)
    assert feature_source is not None
    assert feature_source.find_feature_type("begroeidterreindeel") is not None


def test_in_memory_repository_upload_category(
    repo: database.InMemoryConfigurationRepository,
    legend_upload_id: uuid.UUID,
) -> None:
    """Test that uploads are only found in their own category."""
    upload = repo.find_upload(legend_upload_id, "legend")
    assert upload is not None
    assert upload.filename == "legend.png"
    assert repo.find_upload(legend_upload_id, "tileset3d-style") is None


def test_in_memory_repository_from_file(tmp_path: pathlib.Path) -> None:
    """Test loading a JSON configuration snapshot file."""
    snapshot = {
        "applications": [{"id": 5, "name": "viewer", "crs": "EPSG:3857"}],
        "services": [
            {
                "id": "osm",
                "protocol": "xyz",
                "url": "https://tile.openstreetmap.org/{z}/{x}/{y}.png",
                "settings": {"xyzCrs": "EPSG:3857"},
                "layers": [{"id": "0", "name": "xyz", "root": True}],
            }
        ],
        "searchIndexes": [{"id": 2, "name": "addresses"}],
    }
    path = tmp_path / "configuration.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")

    repo = database.InMemoryConfigurationRepository.from_file(path)

    app = repo.find_application_by_name("viewer")
    assert app is not None
    assert app.id == 5
    service = repo.find_service("osm")
    assert service is not None
    assert service.settings.xyz_crs == "EPSG:3857"
    assert repo.find_search_index(2) == db_models.SearchIndex(id=2, name="addresses")


def test_postgres_repository_from_document() -> None:
    """Test converting jsonb values and json strings to models."""
    document = {"id": 3, "name": "app", "crs": "EPSG:28992"}
    from_dict = database.PostgresConfigurationRepository._from_document(
        document, db_models.Application
    )
    from_str = database.PostgresConfigurationRepository._from_document(
        json.dumps(document), db_models.Application
    )
    assert from_dict == from_str
    assert from_dict.name == "app"


class FakeCursor:
    """Cursor returning a fixed row and recording the executed queries."""

    def __init__(self, row: tuple[Any, ...] | None, executed: list[Any]) -> None:
        self.row = row
        self.executed = executed

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def execute(self, sql: str, params: tuple[Any, ...]) -> None:
        self.executed.append((sql, params))

    def fetchone(self) -> tuple[Any, ...] | None:
        return self.row


class FakeConnection:
    def __init__(self, row: tuple[Any, ...] | None, executed: list[Any]) -> None:
        self.row = row
        self.executed = executed

    def __enter__(self) -> FakeConnection:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.row, self.executed)


def _patch_connect(
    monkeypatch: pytest.MonkeyPatch, row: tuple[Any, ...] | None
) -> list[Any]:
    executed: list[Any] = []
    monkeypatch.setattr(
        database.psycopg2,
        "connect",
        lambda _dsn: FakeConnection(row, executed),
    )
    return executed


def test_postgres_repository_find_service(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that a service document is selected by id and parsed."""
    executed = _patch_connect(
        monkeypatch,
        ({"id": "wms", "protocol": "wms", "layers": [{"id": "0", "name": "a"}]},),
    )
    repo = database.PostgresConfigurationRepository(config.Settings())

    service = repo.find_service("wms")

    assert service is not None
    assert service.find_layer("a") is not None
    assert executed == [(repo.SERVICE_SQL, ("wms",))]


def test_postgres_repository_find_upload(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that uploads are selected by id and category."""
    upload_id = uuid.uuid4()
    executed = _patch_connect(monkeypatch, (str(upload_id), "legend", "l.png"))
    repo = database.PostgresConfigurationRepository(config.Settings())

    upload = repo.find_upload(upload_id, "legend")

    assert upload == db_models.Upload(id=upload_id, category="legend", filename="l.png")
    assert executed == [(repo.UPLOAD_SQL, (str(upload_id), "legend"))]


def test_postgres_repository_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that missing rows give None."""
    _patch_connect(monkeypatch, None)
    repo = database.PostgresConfigurationRepository(config.Settings())
    assert repo.find_application_by_name("missing") is None
    assert repo.find_search_index(1) is None


def test_get_configuration_repository_postgres() -> None:
    """Test that PostgreSQL is used when no snapshot file is configured."""
    settings = config.Settings(configuration_file=None)
    repo = database.get_configuration_repository(settings)
    assert isinstance(repo, database.PostgresConfigurationRepository)


def test_get_configuration_repository_file(tmp_path: pathlib.Path) -> None:
    """Test that a configured snapshot file is served from memory."""
    path = tmp_path / "configuration.json"
    path.write_text("{}", encoding="utf-8")
    settings = config.Settings(configuration_file=path)
    repo = database.get_configuration_repository(settings)
    assert isinstance(repo, database.InMemoryConfigurationRepository)
    assert repo.find_application(1) is None
