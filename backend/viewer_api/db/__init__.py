"""Configuration store models and repositories.

The configuration of applications, geo services and the entities they refer
to is read through :class:`viewer_api.db.database.ConfigurationRepositoryProtocol`,
backed by PostgreSQL in production or an in-memory snapshot in tests.

Example:
    Use in a service or FastAPI dependency:
        >>> from viewer_api.db import database
        >>> repo = database.get_configuration_repository(settings)
"""
