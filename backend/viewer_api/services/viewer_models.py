"""Records of the map response served to the viewer.

These are created fresh for every request and serialized to JSON with
camelCase keys; they are never stored.
"""

from __future__ import annotations

import enum

import pydantic
from pydantic import alias_generators

from viewer_api.db import models as db_models


class _ViewerModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        alias_generator=alias_generators.to_camel,
        populate_by_name=True,
    )


class LegendType(enum.StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"


class CoordinateReferenceSystem(_ViewerModel):
    """A decoded CRS.

    Attributes:
        code: CRS code as configured, e.g. ``EPSG:28992``.
        definition: WKT definition.
        bounds: Area of use in CRS coordinates, if known.
        unit: Unit of the first axis (``m``, ``deg``...).
    """

    code: str
    definition: str
    bounds: db_models.Bounds | None = None
    unit: str | None = None


class LayerSearchIndex(_ViewerModel):
    id: int
    name: str


class ViewerService(_ViewerModel):
    id: str
    title: str | None = None
    url: str | None = None
    protocol: db_models.GeoServiceProtocol
    server_type: db_models.ServerType
    capabilities: str | None = None


class AppLayer(_ViewerModel):
    """A resolved layer of the application, with all settings cascaded."""

    id: str
    service_id: str
    layer_name: str
    title: str
    description: str | None = None
    attribution: str | None = None
    tiling_disabled: bool = True
    tiling_gutter: int = 0
    hi_dpi_disabled: bool = True
    hi_dpi_mode: db_models.TileLayerHiDpiMode | None = None
    hi_dpi_substitute_layer: str | None = None
    min_zoom: int | None = None
    max_zoom: int | None = None
    tile_size: int | None = None
    tile_grid_extent: db_models.Bounds | None = None
    min_scale: float | None = None
    max_scale: float | None = None
    opacity: int | None = None
    auto_refresh_in_seconds: int | None = None
    search_index: LayerSearchIndex | None = None
    legend_image_url: str | None = None
    legend_type: LegendType = LegendType.STATIC
    visible: bool = False
    web_mercator_available: bool = False
    url: str | None = None
    editable: bool = False
    has_attributes: bool = False
    hidden_functionality: list[str] = []
    tileset3d_style_url: str | None = None


class LayerTreeNode(_ViewerModel):
    """A node of a layer tree; ``app_layer_id`` is None for level nodes."""

    id: str
    app_layer_id: str | None = None
    name: str | None = None
    description: str | None = None
    root: bool = False
    children_ids: list[str] = []

    @property
    def is_level(self) -> bool:
        return self.app_layer_id is None


class MapResponse(_ViewerModel):
    crs: CoordinateReferenceSystem
    max_extent: db_models.Bounds | None = None
    initial_extent: db_models.Bounds | None = None
    base_layer_tree_nodes: list[LayerTreeNode] = []
    layer_tree_nodes: list[LayerTreeNode] = []
    terrain_layer_tree_nodes: list[LayerTreeNode] = []
    app_layers: list[AppLayer] = []
    services: list[ViewerService] = []
