"""Projection availability of service layers.

A viewer can show a layer in another projection than the application CRS
when the service can render it in that projection. For WMS and WMTS this is
decided by the CRS list of the layer or one of its ancestors in the
capabilities; XYZ services have a single configured tile grid CRS.
"""

from __future__ import annotations

from viewer_api.db import models as db_models

WEB_MERCATOR_CRS = "EPSG:3857"


def is_available_in(
    target_crs: str,
    service: db_models.GeoService,
    layer: db_models.GeoServiceLayer,
    hi_dpi_substitute_layer: str | None = None,
    allow_substitute_indirection: bool = True,
) -> bool:
    """Check whether a service layer can be shown in ``target_crs``.

    When a hiDPI substitute layer is configured, it must be available too:
    the viewer may request the substitute instead of the layer itself. The
    substitute is checked without following its own substitute, so at most
    one hop is taken.

    Args:
        target_crs: CRS code such as ``"EPSG:3857"``.
        service: The service owning ``layer``.
        layer: The layer to check.
        hi_dpi_substitute_layer: Name of the configured substitute layer.
        allow_substitute_indirection: Whether to check the substitute layer.

    Returns:
        True if the layer (and its substitute) support ``target_crs``.
    """
    if service.protocol == db_models.GeoServiceProtocol.XYZ:
        return service.settings.xyz_crs == target_crs
    if service.protocol in (
        db_models.GeoServiceProtocol.TILES3D,
        db_models.GeoServiceProtocol.QUANTIZEDMESH,
    ):
        return False

    if hi_dpi_substitute_layer is not None and allow_substitute_indirection:
        substitute = service.find_layer(hi_dpi_substitute_layer)
        if substitute is not None and not is_available_in(
            target_crs, service, substitute, None, allow_substitute_indirection=False
        ):
            return False

    visited: set[str] = set()
    current: db_models.GeoServiceLayer | None = layer
    while current is not None and current.id not in visited:
        if target_crs in current.crs:
            return True
        if current.root:
            break
        visited.add(current.id)
        current = service.parent_layer(current.id)
    return False


def is_web_mercator_available(
    service: db_models.GeoService,
    layer: db_models.GeoServiceLayer,
    hi_dpi_substitute_layer: str | None,
) -> bool:
    return is_available_in(WEB_MERCATOR_CRS, service, layer, hi_dpi_substitute_layer)
