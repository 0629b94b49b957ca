"""Assembly of the map response of an application.

The map response tells the viewer everything it needs to show the map of an
application: the CRS and extents, the three layer trees, the resolved app
layers and the services they come from.

Example:
    Resolve the map of an application for an anonymous user:
        >>> from viewer_api.core import security
        >>> from viewer_api.services import authorization, map_response
        >>> app = repo.find_application_by_name("default")
        >>> oracle = authorization.RuleAuthorizationOracle(
        ...     security.AuthorizationContext.anonymous(), app
        ... )
        >>> response = map_response.ApplicationHelper(repo).to_map_response(
        ...     app, oracle
        ... )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from viewer_api.services import (
    capabilities,
    layer_tree,
    projection,
    uploads,
    viewer_models,
)

if TYPE_CHECKING:
    from viewer_api.db import database
    from viewer_api.db import models as db_models
    from viewer_api.services import authorization, legend

logger = logging.getLogger(__name__)


class ApplicationHelper:
    """Turns stored applications into map responses.

    The helper never modifies the configuration and keeps no state between
    calls: resolving the same application twice gives equal responses.

    Args:
        repository: Configuration store.
        legend_finder: Finds legend URLs in the capabilities styles.
    """

    def __init__(
        self,
        repository: database.ConfigurationRepositoryProtocol,
        legend_finder: legend.LegendFinder = capabilities.find_legend_uri_from_styles,
    ) -> None:
        self.repository = repository
        self.upload_helper = uploads.UploadHelper(repository)
        self.legend_finder = legend_finder

    def to_map_response(
        self,
        application: db_models.Application,
        oracle: authorization.AuthorizationOracle,
    ) -> viewer_models.MapResponse:
        """Resolve the map response of an application.

        Args:
            application: The application to resolve.
            oracle: Decides which services and layers the user may see.

        Returns:
            The map response. Layers the user may not see, and layers
            referring to missing services or layers, are left out.

        Raises:
            InvalidProjectionError: If the CRS of the application cannot be
                decoded.
        """
        crs = projection.decode_crs(application.crs)
        max_extent = application.max_extent or crs.bounds
        initial_extent = application.initial_extent or max_extent

        builder = layer_tree.LayerTreeBuilder(
            application,
            self.repository,
            oracle,
            upload_helper=self.upload_helper,
            legend_finder=self.legend_finder,
        )
        content = application.content_root
        base_layer_tree_nodes = builder.build_forest(content.base_layer_nodes)
        layer_tree_nodes = builder.build_forest(content.layer_nodes)
        terrain_layer_tree_nodes = builder.build_forest(content.terrain_layer_nodes)

        logger.debug(
            "Resolved %d app layers of %d services for app %s",
            len(builder.app_layers),
            len(builder.services),
            application.name,
        )

        return viewer_models.MapResponse(
            crs=crs,
            max_extent=max_extent,
            initial_extent=initial_extent,
            base_layer_tree_nodes=base_layer_tree_nodes,
            layer_tree_nodes=layer_tree_nodes,
            terrain_layer_tree_nodes=terrain_layer_tree_nodes,
            app_layers=builder.app_layers,
            services=builder.services,
        )
