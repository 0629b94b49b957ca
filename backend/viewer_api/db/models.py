"""Read-only configuration snapshot models.

This module defines the persisted configuration entities the map resolver
works on: applications with their layer tree forests, geo services with their
capabilities layer hierarchy, the three tiers of layer settings, and the
reference entities (search indexes, uploads, feature sources) consulted
through collaborators. All models are immutable pydantic models parsed from
JSON documents that use camelCase keys.

Example:
    Parse an application document:
        >>> from viewer_api.db.models import Application
        >>> app = Application.model_validate({
        ...     "id": 1,
        ...     "name": "default",
        ...     "crs": "EPSG:28992",
        ...     "contentRoot": {
        ...         "baseLayerNodes": [
        ...             {
        ...                 "objectType": "AppTreeLayerNode",
        ...                 "id": "lyr:openbasiskaart:osm",
        ...                 "serviceId": "openbasiskaart",
        ...                 "layerName": "osm",
        ...                 "visible": True,
        ...             }
        ...         ]
        ...     },
        ... })
        >>> app.content_root.base_layer_nodes[0].layer_name
        'osm'
"""

from __future__ import annotations

import enum
import uuid
from typing import Annotated, Any, Literal

import pydantic
from pydantic import alias_generators


class _Snapshot(pydantic.BaseModel):
    """Base for configuration documents: camelCase keys, immutable."""

    model_config = pydantic.ConfigDict(
        alias_generator=alias_generators.to_camel,
        populate_by_name=True,
        frozen=True,
    )


class GeoServiceProtocol(enum.StrEnum):
    WMS = "wms"
    WMTS = "wmts"
    WFS = "wfs"
    XYZ = "xyz"
    TILES3D = "tiles3d"
    QUANTIZEDMESH = "quantizedmesh"
    # Only used as the proxy path for legend requests
    LEGEND = "legend"


class TileLayerHiDpiMode(enum.StrEnum):
    SHOW_NEXT_ZOOM_LEVEL = "showNextZoomLevel"
    SUBSTITUTE_LAYER_SHOW_NEXT_ZOOM_LEVEL = "substituteLayerShowNextZoomLevel"
    SUBSTITUTE_LAYER_TILE_PIXEL_RATIO_ONLY = "substituteLayerTilePixelRatioOnly"


class ServerType(enum.StrEnum):
    AUTO = "auto"
    GENERIC = "generic"
    GEOSERVER = "geoserver"
    MAPSERVER = "mapserver"


class AuthorizationRuleDecision(enum.StrEnum):
    ALLOW = "allow"
    DENY = "deny"


class Bounds(_Snapshot):
    """Extent in the coordinates of ``crs`` (minx, miny, maxx, maxy)."""

    crs: str | None = None
    minx: float
    miny: float
    maxx: float
    maxy: float


class AuthorizationRule(_Snapshot):
    """Access decisions for one group, keyed by access type (``read``)."""

    group_name: str
    decisions: dict[str, AuthorizationRuleDecision] = {}


class AppLayerSettings(_Snapshot):
    """Settings an application may override for one of its layers.

    Only the app-overridable subset of the layer settings vocabulary is
    modelled. Keys for service-only settings in an application document are
    ignored, so they can never take effect at this tier.
    """

    title: str | None = None
    description: str | None = None
    attribution: str | None = None
    opacity: int | None = None
    auto_refresh_in_seconds: int | None = None
    editable: bool | None = None
    hidden_functionality: list[str] = []
    search_index_id: int | None = None
    tileset3d_style_id: str | None = None


class GeoServiceDefaultLayerSettings(_Snapshot):
    """Service-wide defaults for all layers of a geo service.

    ``hi_dpi_substitute_layer`` may be stored here but a default substitute
    layer name is meaningless, so it is never used.
    """

    title: str | None = None
    description: str | None = None
    attribution: str | None = None
    tiling_disabled: bool | None = None
    tiling_gutter: int | None = None
    hi_dpi_disabled: bool | None = None
    hi_dpi_mode: TileLayerHiDpiMode | None = None
    hi_dpi_substitute_layer: str | None = None
    min_zoom: int | None = None
    max_zoom: int | None = None
    tile_size: int | None = None
    tile_grid_extent: Bounds | None = None


class FeatureTypeRef(_Snapshot):
    feature_source_id: int
    feature_type_name: str


class GeoServiceLayerSettings(GeoServiceDefaultLayerSettings):
    """Settings for a single named layer of a geo service."""

    legend_image_id: str | None = None
    feature_type: FeatureTypeRef | None = None
    authorization_rules: list[AuthorizationRule] | None = None


class GeoServiceSettings(_Snapshot):
    default_layer_settings: GeoServiceDefaultLayerSettings | None = None
    layer_settings: dict[str, GeoServiceLayerSettings] = {}
    use_proxy: bool = False
    xyz_crs: str | None = None
    server_type: ServerType = ServerType.AUTO


class ServiceAuthentication(_Snapshot):
    method: Literal["password"] = "password"
    username: str | None = None
    password: str | None = pydantic.Field(default=None, repr=False)


class WMSStyle(_Snapshot):
    name: str | None = None
    title: str | None = None
    legend_url: str | None = pydantic.Field(default=None, alias="legendURL")


class GeoServiceLayer(_Snapshot):
    """A layer from the capabilities of a geo service.

    Layers form a tree per service through ``children`` (layer ids). The
    parent of a layer is looked up through the owning service, see
    :meth:`GeoService.parent_layer`.
    """

    id: str
    name: str | None = None
    title: str | None = None
    root: bool = False
    crs: frozenset[str] = frozenset()
    min_scale: float | None = None
    max_scale: float | None = None
    styles: list[WMSStyle] = []
    children: list[str] = []


class GeoService(_Snapshot):
    """A registered geo service with its settings and capabilities layers.

    Attributes:
        id: Unique identifier referenced by layer tree nodes.
        title: Display title.
        url: Upstream service URL.
        protocol: Service protocol.
        authentication: Credentials required by the upstream service, if any.
        authorization_rules: Rules deciding who may view the service.
        settings: Default and per-layer settings, proxy and XYZ options.
        layers: Capabilities layers in document order.
        capabilities: Capabilities document text, passed to the viewer for
            WMTS services only.
    """

    id: str
    title: str | None = None
    url: str | None = None
    protocol: GeoServiceProtocol
    authentication: ServiceAuthentication | None = None
    authorization_rules: list[AuthorizationRule] = []
    settings: GeoServiceSettings = GeoServiceSettings()
    layers: list[GeoServiceLayer] = []
    capabilities: str | None = None

    _layers_by_name: dict[str, GeoServiceLayer] = pydantic.PrivateAttr(
        default_factory=dict
    )
    _layers_by_id: dict[str, GeoServiceLayer] = pydantic.PrivateAttr(
        default_factory=dict
    )
    _parent_ids: dict[str, str] = pydantic.PrivateAttr(default_factory=dict)

    def model_post_init(self, context: Any, /) -> None:
        for layer in self.layers:
            self._layers_by_id.setdefault(layer.id, layer)
            if layer.name is not None:
                self._layers_by_name.setdefault(layer.name, layer)
            for child_id in layer.children:
                self._parent_ids.setdefault(child_id, layer.id)

    def find_layer(self, name: str) -> GeoServiceLayer | None:
        """Return the first layer with the given name, if any."""
        return self._layers_by_name.get(name)

    def find_layer_by_id(self, layer_id: str) -> GeoServiceLayer | None:
        return self._layers_by_id.get(layer_id)

    def parent_layer(self, layer_id: str) -> GeoServiceLayer | None:
        """Return the layer that lists ``layer_id`` as a child, if any."""
        parent_id = self._parent_ids.get(layer_id)
        if parent_id is None:
            return None
        return self._layers_by_id.get(parent_id)

    def layer_settings(self, layer_name: str) -> GeoServiceLayerSettings | None:
        return self.settings.layer_settings.get(layer_name)


class AppTreeLevelNode(_Snapshot):
    """Grouping node of an application layer tree."""

    object_type: Literal["AppTreeLevelNode"] = "AppTreeLevelNode"
    id: str
    title: str | None = None
    description: str | None = None
    root: bool = False
    children_ids: list[str] = []


class AppTreeLayerNode(_Snapshot):
    """Leaf node referencing a layer of a geo service."""

    object_type: Literal["AppTreeLayerNode"] = "AppTreeLayerNode"
    id: str
    service_id: str
    layer_name: str
    visible: bool = False
    description: str | None = None


AppTreeNode = Annotated[
    AppTreeLevelNode | AppTreeLayerNode,
    pydantic.Field(discriminator="object_type"),
]


class AppContent(_Snapshot):
    """The three layer tree forests of an application.

    Each forest is a flat list of nodes; level nodes refer to other nodes of
    the same forest by id.
    """

    base_layer_nodes: list[AppTreeNode] = []
    layer_nodes: list[AppTreeNode] = []
    terrain_layer_nodes: list[AppTreeNode] = []


class AppSettings(_Snapshot):
    layer_settings: dict[str, AppLayerSettings] = {}


class Application(_Snapshot):
    id: int
    name: str
    title: str | None = None
    crs: str | None = None
    content_root: AppContent = AppContent()
    settings: AppSettings = AppSettings()
    authorization_rules: list[AuthorizationRule] = []
    max_extent: Bounds | None = None
    initial_extent: Bounds | None = None

    def app_layer_settings(self, app_layer_id: str) -> AppLayerSettings:
        """Return the settings for an app layer, empty settings if not set."""
        return self.settings.layer_settings.get(app_layer_id) or AppLayerSettings()


class SearchIndex(_Snapshot):
    id: int
    name: str


class Upload(_Snapshot):
    id: uuid.UUID
    category: str
    filename: str


class FeatureType(_Snapshot):
    name: str
    title: str | None = None
    writeable: bool = False


class FeatureSource(_Snapshot):
    id: int
    title: str | None = None
    feature_types: list[FeatureType] = []

    def find_feature_type(self, name: str) -> FeatureType | None:
        return next((ft for ft in self.feature_types if ft.name == name), None)


class ConfigurationSnapshot(_Snapshot):
    """All configuration entities, as loaded from a JSON snapshot file."""

    applications: list[Application] = []
    services: list[GeoService] = []
    search_indexes: list[SearchIndex] = []
    uploads: list[Upload] = []
    feature_sources: list[FeatureSource] = []
