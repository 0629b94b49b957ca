"""Map configuration endpoint of viewer applications.

The viewer requests the map of an application when it starts. The response
depends on the user: layers of services and service layers the user may not
see are left out.

Example:
    Get the map of the ``default`` application:
        >>> response = client.get("/api/app/default/map")
        >>> response.json()["crs"]["code"]
        'EPSG:28992'
"""

import logging

import fastapi

from viewer_api.core import config, security
from viewer_api.db import database
from viewer_api.services import authorization, map_response, projection, viewer_models

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/app", tags=["map"])


def _get_repo(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> database.ConfigurationRepositoryProtocol:
    """Resolve the configuration repository dependency.

    Args:
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        ConfigurationRepositoryProtocol implementation
            (PostgresConfigurationRepository in production).
    """
    return database.get_configuration_repository(settings)


@router.get(
    "/{viewer_name}/map",
    response_model=viewer_models.MapResponse,
    response_model_by_alias=True,
)
def get_map(
    viewer_name: str,
    repo: database.ConfigurationRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
    context: security.AuthorizationContext = fastapi.Depends(  # noqa: B008
        security.get_authorization_context
    ),
) -> viewer_models.MapResponse:
    """Return the map configuration of an application.

    Args:
        viewer_name: Name of the application.
        repo: Configuration repository (injected via FastAPI Depends).
        context: The requesting user (injected via FastAPI Depends).

    Returns:
        The map response for the requesting user.

    Raises:
        HTTPException: 404 if the application does not exist, 401 or 403 if
            the user may not view it, 500 if its CRS is invalid.
    """
    application = repo.find_application_by_name(viewer_name)
    if application is None:
        raise fastapi.HTTPException(status_code=404, detail="Application not found")

    if not authorization.may_view_application(application, context):
        if context.authenticated:
            raise fastapi.HTTPException(status_code=403, detail="Forbidden")
        raise fastapi.HTTPException(status_code=401, detail="Unauthorized")

    oracle = authorization.RuleAuthorizationOracle(context, application)
    try:
        return map_response.ApplicationHelper(repo).to_map_response(application, oracle)
    except projection.InvalidProjectionError as e:
        logger.error("Cannot resolve map of app %s: %s", application.name, e)
        raise fastapi.HTTPException(status_code=500, detail=str(e)) from e
