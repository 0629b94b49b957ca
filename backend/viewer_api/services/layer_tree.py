"""Resolution of application layer trees into viewer layers.

An application has three layer tree forests: base layers, overlay layers and
terrain layers. Each node of a forest is visited once. Level nodes are copied
to the output as they are; layer nodes are resolved against their geo
service, with the settings of the three tiers cascaded, and left out when the
service or layer is missing or the user may not see them. Afterwards each
forest is pruned so no level node refers to a left-out layer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from viewer_api.db import models as db_models
from viewer_api.services import (
    capabilities,
    crs_availability,
    feature_types,
    legend,
    proxy_urls,
    settings_cascade,
    tree_pruner,
    uploads,
    viewer_models,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from viewer_api.db import database
    from viewer_api.services import authorization

logger = logging.getLogger(__name__)


class LayerTreeBuilder:
    """Builds the layer trees and app layers of one application.

    A builder is used for a single map response. The app layers and services
    of all forests are collected in :attr:`app_layers` and :attr:`services`,
    services only once in the order they are first used.

    Args:
        application: The application to resolve.
        repository: Configuration store for services and reference entities.
        oracle: Decides which services and layers the user may see.
        upload_helper: Resolves uploaded images to URLs.
        legend_finder: Finds legend URLs in the capabilities styles.
    """

    def __init__(
        self,
        application: db_models.Application,
        repository: database.ConfigurationRepositoryProtocol,
        oracle: authorization.AuthorizationOracle,
        upload_helper: uploads.UploadHelper | None = None,
        legend_finder: legend.LegendFinder = capabilities.find_legend_uri_from_styles,
    ) -> None:
        self.application = application
        self.repository = repository
        self.oracle = oracle
        self.upload_helper = upload_helper or uploads.UploadHelper(repository)
        self.legend_finder = legend_finder
        self.app_layers: list[viewer_models.AppLayer] = []
        self._services: dict[str, viewer_models.ViewerService] = {}

    @property
    def services(self) -> list[viewer_models.ViewerService]:
        return list(self._services.values())

    def build_forest(
        self, nodes: Iterable[db_models.AppTreeNode]
    ) -> list[viewer_models.LayerTreeNode]:
        """Resolve all nodes of one forest and prune the result.

        Args:
            nodes: The nodes of the forest in document order.

        Returns:
            The pruned layer tree nodes of the forest.
        """
        tree_nodes: list[viewer_models.LayerTreeNode] = []
        valid_layer_ids: set[str] = set()

        for node in nodes:
            match node:
                case db_models.AppTreeLevelNode():
                    tree_nodes.append(
                        viewer_models.LayerTreeNode(
                            id=node.id,
                            app_layer_id=None,
                            name=node.title,
                            description=node.description,
                            root=node.root,
                            children_ids=list(node.children_ids),
                        )
                    )
                case db_models.AppTreeLayerNode():
                    if self._add_app_layer(node):
                        valid_layer_ids.add(node.id)
                        tree_nodes.append(
                            viewer_models.LayerTreeNode(
                                id=node.id,
                                app_layer_id=node.id,
                                name=node.layer_name,
                                description=node.description,
                                root=False,
                                children_ids=[],
                            )
                        )

        return tree_pruner.clean_layer_tree_nodes(valid_layer_ids, tree_nodes)

    def _add_app_layer(self, node: db_models.AppTreeLayerNode) -> bool:
        """Resolve a layer node, return whether it was added."""
        service = self.repository.find_service(node.service_id)
        if service is None:
            logger.warning(
                'App %s references layer "%s" of missing service %s',
                self.application.id,
                node.layer_name,
                node.service_id,
            )
            return False

        if not self.oracle.may_view_service(service):
            logger.debug("Service %s not visible for app layer %s", service.id, node.id)
            return False

        if self.oracle.must_deny_secured_proxy(service):
            logger.debug(
                "Secured proxied service %s not allowed in public app %s",
                service.id,
                self.application.id,
            )
            return False

        service_layer = service.find_layer(node.layer_name)
        if service_layer is None:
            logger.warning(
                'App %s references layer "%s" not in capabilities of service %s',
                self.application.id,
                node.layer_name,
                service.id,
            )
            return False

        if not self.oracle.may_view_layer(service, service_layer):
            logger.debug("Layer %s of service %s not visible", node.layer_name, service.id)
            return False

        self.app_layers.append(self._to_app_layer(node, service, service_layer))
        if service.id not in self._services:
            self._services[service.id] = capabilities.to_viewer_service(service)
        return True

    def _to_app_layer(
        self,
        node: db_models.AppTreeLayerNode,
        service: db_models.GeoService,
        service_layer: db_models.GeoServiceLayer,
    ) -> viewer_models.AppLayer:
        app_layer_settings = self.application.app_layer_settings(node.id)
        settings = settings_cascade.cascade(
            app_layer_settings,
            service.layer_settings(node.layer_name),
            service.settings.default_layer_settings,
            settings_cascade.null_if_blank(service_layer.title) or node.layer_name,
        )

        url = None
        legend_proxy_url = None
        if service.settings.use_proxy:
            url = proxy_urls.build_proxy_url(
                proxy_urls.VIEWER_KIND_APP,
                self.application.name,
                node.id,
                service.protocol,
            )
            legend_proxy_url = proxy_urls.build_legend_proxy_url(
                proxy_urls.VIEWER_KIND_APP, self.application.name, node.id
            )

        resolved_legend = legend.resolve_legend(
            service,
            service_layer,
            settings,
            upload_helper=self.upload_helper,
            legend_finder=self.legend_finder,
            legend_proxy_url=legend_proxy_url,
        )

        search_index = None
        if settings.search_index_id is not None:
            index = self.repository.find_search_index(settings.search_index_id)
            if index is not None:
                search_index = viewer_models.LayerSearchIndex(id=index.id, name=index.name)

        feature_type = feature_types.find_feature_type_for_layer(
            service, service_layer, self.repository
        )

        tileset3d_style_url = None
        if service.protocol == db_models.GeoServiceProtocol.TILES3D:
            tileset3d_style_url = self.upload_helper.get_url_for_image(
                settings.tileset3d_style_id, uploads.CATEGORY_TILESET_3D_STYLE
            )

        return viewer_models.AppLayer(
            id=node.id,
            service_id=service.id,
            layer_name=node.layer_name,
            title=settings.title,
            description=settings.description,
            attribution=settings.attribution,
            tiling_disabled=settings.tiling_disabled,
            tiling_gutter=settings.tiling_gutter,
            hi_dpi_disabled=settings.hi_dpi_disabled,
            hi_dpi_mode=settings.hi_dpi_mode,
            hi_dpi_substitute_layer=settings.hi_dpi_substitute_layer,
            min_zoom=settings.min_zoom,
            max_zoom=settings.max_zoom,
            tile_size=settings.tile_size,
            tile_grid_extent=settings.tile_grid_extent,
            min_scale=service_layer.min_scale,
            max_scale=service_layer.max_scale,
            opacity=settings.opacity,
            auto_refresh_in_seconds=settings.auto_refresh_in_seconds,
            search_index=search_index,
            legend_image_url=resolved_legend.url,
            legend_type=resolved_legend.legend_type,
            visible=node.visible,
            web_mercator_available=crs_availability.is_web_mercator_available(
                service, service_layer, settings.hi_dpi_substitute_layer
            ),
            url=url,
            editable=feature_types.is_editable(app_layer_settings, feature_type),
            has_attributes=feature_type is not None,
            hidden_functionality=settings.hidden_functionality,
            tileset3d_style_url=tileset3d_style_url,
        )
