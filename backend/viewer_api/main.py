"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that sets up
logging and CORS middleware, includes the map API router, and exposes a
health check endpoint for monitoring.

Example:
    The application can be run with uvicorn:
        $ uvicorn viewer_api.main:app --reload

    Or imported and used programmatically:
        >>> from viewer_api.main import app
        >>> # Use app in ASGI server
"""

import fastapi
from fastapi.middleware import cors

from viewer_api.api import map as map_api
from viewer_api.core import config, log


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Configures logging, includes the map router and adds a health check
    endpoint. CORS origins are configured from settings, allowing
    cross-origin requests from the viewer.

    Returns:
        Configured FastAPI application instance ready for ASGI server.
    """
    settings = config.get_settings()
    log.configure_logging(settings.log_level)
    app = fastapi.FastAPI(title="Map Viewer API", version="0.1.0")

    app.include_router(map_api.router)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
