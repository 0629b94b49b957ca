"""Configuration store repositories.

The map resolver reads applications, geo services and the reference
entities it needs through :class:`ConfigurationRepositoryProtocol`. The store
is read-only: configuration is edited elsewhere, this service only projects
it into viewer responses.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Protocol

import psycopg2
import psycopg2.extensions
import pydantic

from viewer_api.db import models as db_models

if TYPE_CHECKING:
    import pathlib

    from viewer_api.core import config

logger = logging.getLogger(__name__)


class ConfigurationRepositoryProtocol(Protocol):
    """Protocol interface for looking up configuration entities.

    Implementations return fully materialized snapshot models; nothing is
    loaded lazily after a lookup returns.
    """

    def find_application(self, app_id: int) -> db_models.Application | None: ...

    def find_application_by_name(
        self, name: str
    ) -> db_models.Application | None: ...

    def find_service(self, service_id: str) -> db_models.GeoService | None: ...

    def find_search_index(
        self, search_index_id: int
    ) -> db_models.SearchIndex | None: ...

    def find_upload(
        self, upload_id: uuid.UUID, category: str
    ) -> db_models.Upload | None: ...

    def find_feature_source(
        self, feature_source_id: int
    ) -> db_models.FeatureSource | None: ...


class InMemoryConfigurationRepository(ConfigurationRepositoryProtocol):
    """Dictionary backed store for tests and local development.

    Can be populated entity by entity with the ``add_*`` methods or loaded
    from a JSON snapshot file with :meth:`from_file`.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory repository."""
        self._applications: dict[int, db_models.Application] = {}
        self._services: dict[str, db_models.GeoService] = {}
        self._search_indexes: dict[int, db_models.SearchIndex] = {}
        self._uploads: dict[tuple[uuid.UUID, str], db_models.Upload] = {}
        self._feature_sources: dict[int, db_models.FeatureSource] = {}

    @classmethod
    def from_snapshot(
        cls, snapshot: db_models.ConfigurationSnapshot
    ) -> InMemoryConfigurationRepository:
        """Create a repository holding every entity of a snapshot."""
        repo = cls()
        for app in snapshot.applications:
            repo.add_application(app)
        for service in snapshot.services:
            repo.add_service(service)
        for search_index in snapshot.search_indexes:
            repo.add_search_index(search_index)
        for upload in snapshot.uploads:
            repo.add_upload(upload)
        for feature_source in snapshot.feature_sources:
            repo.add_feature_source(feature_source)
        return repo

    @classmethod
    def from_file(cls, path: pathlib.Path) -> InMemoryConfigurationRepository:
        """Load a JSON configuration snapshot file.

        Args:
            path: File with ``applications``, ``services``,
                ``searchIndexes``, ``uploads`` and ``featureSources`` arrays.

        Returns:
            Repository holding the parsed entities.

        Raises:
            pydantic.ValidationError: If the document is not a valid snapshot.
        """
        snapshot = db_models.ConfigurationSnapshot.model_validate_json(
            path.read_text(encoding="utf-8")
        )
        logger.info(
            "Loaded configuration snapshot %s with %d applications and %d services",
            path,
            len(snapshot.applications),
            len(snapshot.services),
        )
        return cls.from_snapshot(snapshot)

    def add_application(
        self, app: db_models.Application
    ) -> db_models.Application:
        self._applications[app.id] = app
        return app

    def add_service(self, service: db_models.GeoService) -> db_models.GeoService:
        self._services[service.id] = service
        return service

    def add_search_index(
        self, search_index: db_models.SearchIndex
    ) -> db_models.SearchIndex:
        self._search_indexes[search_index.id] = search_index
        return search_index

    def add_upload(self, upload: db_models.Upload) -> db_models.Upload:
        self._uploads[(upload.id, upload.category)] = upload
        return upload

    def add_feature_source(
        self, feature_source: db_models.FeatureSource
    ) -> db_models.FeatureSource:
        self._feature_sources[feature_source.id] = feature_source
        return feature_source

    def find_application(self, app_id: int) -> db_models.Application | None:
        return self._applications.get(app_id)

    def find_application_by_name(self, name: str) -> db_models.Application | None:
        return next(
            (app for app in self._applications.values() if app.name == name),
            None,
        )

    def find_service(self, service_id: str) -> db_models.GeoService | None:
        return self._services.get(service_id)

    def find_search_index(
        self, search_index_id: int
    ) -> db_models.SearchIndex | None:
        return self._search_indexes.get(search_index_id)

    def find_upload(
        self, upload_id: uuid.UUID, category: str
    ) -> db_models.Upload | None:
        return self._uploads.get((upload_id, category))

    def find_feature_source(
        self, feature_source_id: int
    ) -> db_models.FeatureSource | None:
        return self._feature_sources.get(feature_source_id)


class PostgresConfigurationRepository(ConfigurationRepositoryProtocol):
    """PostgreSQL-backed configuration store.

    Entities are stored as JSON documents (``jsonb``) next to their lookup
    keys. Only ``SELECT`` statements are issued; the schema is owned by the
    administration side of the system.
    """

    APPLICATION_BY_ID_SQL = "SELECT document FROM application WHERE id = %s"
    APPLICATION_BY_NAME_SQL = "SELECT document FROM application WHERE name = %s"
    SERVICE_SQL = "SELECT document FROM geo_service WHERE id = %s"
    SEARCH_INDEX_SQL = "SELECT id, name FROM search_index WHERE id = %s"
    UPLOAD_SQL = (
        "SELECT id, category, filename FROM upload WHERE id = %s AND category = %s"
    )
    FEATURE_SOURCE_SQL = "SELECT document FROM feature_source WHERE id = %s"

    def __init__(self, settings: config.Settings) -> None:
        """Initialize repository with database settings.

        Args:
            settings: Application settings containing database connection URL.
        """
        self.settings = settings

    def _connection(self) -> psycopg2.extensions.connection:
        """Create a new database connection.

        Returns:
            psycopg2 connection object.
        """
        return psycopg2.connect(self.settings.database_url)

    def _fetch_one(
        self, sql: str, params: tuple[object, ...]
    ) -> tuple[object, ...] | None:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchone()

    def _fetch_document[M: pydantic.BaseModel](
        self, sql: str, params: tuple[object, ...], model: type[M]
    ) -> M | None:
        row = self._fetch_one(sql, params)
        if row is None:
            return None
        return self._from_document(row[0], model)

    @staticmethod
    def _from_document[M: pydantic.BaseModel](
        document: object, model: type[M]
    ) -> M:
        """Convert a ``jsonb`` column value to a snapshot model.

        psycopg2 decodes ``jsonb`` to Python objects, ``json``/``text``
        columns arrive as strings.
        """
        if isinstance(document, str | bytes):
            document = json.loads(document)
        return model.model_validate(document)

    def find_application(self, app_id: int) -> db_models.Application | None:
        return self._fetch_document(
            self.APPLICATION_BY_ID_SQL, (app_id,), db_models.Application
        )

    def find_application_by_name(self, name: str) -> db_models.Application | None:
        return self._fetch_document(
            self.APPLICATION_BY_NAME_SQL, (name,), db_models.Application
        )

    def find_service(self, service_id: str) -> db_models.GeoService | None:
        return self._fetch_document(
            self.SERVICE_SQL, (service_id,), db_models.GeoService
        )

    def find_search_index(
        self, search_index_id: int
    ) -> db_models.SearchIndex | None:
        row = self._fetch_one(self.SEARCH_INDEX_SQL, (search_index_id,))
        if row is None:
            return None
        return db_models.SearchIndex(id=int(row[0]), name=str(row[1]))

    def find_upload(
        self, upload_id: uuid.UUID, category: str
    ) -> db_models.Upload | None:
        row = self._fetch_one(self.UPLOAD_SQL, (str(upload_id), category))
        if row is None:
            return None
        return db_models.Upload(
            id=uuid.UUID(str(row[0])),
            category=str(row[1]),
            filename=str(row[2]),
        )

    def find_feature_source(
        self, feature_source_id: int
    ) -> db_models.FeatureSource | None:
        return self._fetch_document(
            self.FEATURE_SOURCE_SQL, (feature_source_id,), db_models.FeatureSource
        )


def get_configuration_repository(
    settings: config.Settings,
) -> ConfigurationRepositoryProtocol:
    """Factory function to create a configuration repository.

    Args:
        settings: Application settings.

    Returns:
        InMemoryConfigurationRepository loaded from
        ``settings.configuration_file`` when set, PostgresConfigurationRepository
        otherwise.
    """
    if settings.configuration_file is not None:
        return InMemoryConfigurationRepository.from_file(settings.configuration_file)
    return PostgresConfigurationRepository(settings)
