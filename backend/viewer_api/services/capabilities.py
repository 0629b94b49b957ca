"""Lookups in the stored capabilities of geo services.

Capabilities are fetched and parsed when a service is registered; this
module only reads what was stored.
"""

from __future__ import annotations

import urllib.parse

from viewer_api.db import models as db_models
from viewer_api.services import viewer_models


def find_legend_uri_from_styles(
    service: db_models.GeoService, layer: db_models.GeoServiceLayer
) -> str | None:
    """Return the legend URL of the first style of the layer that has one.

    There is no notion of a selected style yet, so the first style with a
    legend URL wins. The URL may be a GetLegendGraphic request or a static
    image.
    """
    return next(
        (style.legend_url for style in layer.styles if style.legend_url),
        None,
    )


def get_wms_request(url: str | None) -> str | None:
    """Return the value of the ``REQUEST`` query parameter of a WMS URL.

    Parameter names are matched case-insensitively, as WMS servers do.
    """
    if not url:
        return None
    query = urllib.parse.urlsplit(url).query
    for name, value in urllib.parse.parse_qsl(query, keep_blank_values=True):
        if name.lower() == "request":
            return value
    return None


def guess_server_type_from_url(url: str | None) -> db_models.ServerType:
    if not url:
        return db_models.ServerType.GENERIC
    lowered = url.lower()
    if "/geoserver/" in lowered:
        return db_models.ServerType.GEOSERVER
    if "/mapserver" in lowered or "/cgi-bin/mapserv" in lowered:
        return db_models.ServerType.MAPSERVER
    return db_models.ServerType.GENERIC


def to_viewer_service(service: db_models.GeoService) -> viewer_models.ViewerService:
    """Build the service record sent to the viewer.

    The viewer needs the WMTS capabilities to read the tile matrix sets; it
    does not use capabilities of other protocols.
    """
    server_type = service.settings.server_type
    if server_type == db_models.ServerType.AUTO:
        server_type = guess_server_type_from_url(service.url)

    return viewer_models.ViewerService(
        id=service.id,
        title=service.title,
        url=service.url,
        protocol=service.protocol,
        server_type=server_type,
        capabilities=(
            service.capabilities
            if service.protocol == db_models.GeoServiceProtocol.WMTS
            else None
        ),
    )
