"""Logging setup for the viewer API."""

import logging.config

LOGGER_NAME = "viewer_api"


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler for the ``viewer_api`` loggers.

    Other loggers (uvicorn, psycopg2) are left alone. Records still
    propagate to the root logger.

    Args:
        level: Level name such as ``"INFO"`` or ``"DEBUG"``.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                LOGGER_NAME: {
                    "handlers": ["console"],
                    "level": level.upper(),
                    "propagate": True,
                },
            },
        }
    )
