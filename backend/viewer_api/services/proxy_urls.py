"""Paths of the geo service proxy endpoints.

Layers of services with ``useProxy`` enabled are requested by the viewer
through the proxy of this API instead of directly from the upstream service:

    /api/{viewerKind}/{viewerName}/layer/{appLayerId}/proxy/{protocol}

Example:
    >>> build_proxy_url("app", "default", "lyr:snapshot-geoserver:postgis", "wms")
    '/api/app/default/layer/lyr:snapshot-geoserver:postgis/proxy/wms'
"""

from __future__ import annotations

import urllib.parse

from viewer_api.db import models as db_models

VIEWER_KIND_APP = "app"
TILES3D_DESCRIPTION_PATH = "tiles3dDescription"

# Characters allowed unencoded in a URI path segment besides unreserved ones
_PATH_SEGMENT_SAFE = "!$&'()*+,;=:@"


def _segment(value: str) -> str:
    return urllib.parse.quote(value, safe=_PATH_SEGMENT_SAFE)


def _base_proxy_url(viewer_kind: str, viewer_name: str, app_layer_id: str) -> str:
    return (
        f"/api/{_segment(viewer_kind)}/{_segment(viewer_name)}"
        f"/layer/{_segment(app_layer_id)}/proxy"
    )


def build_proxy_url(
    viewer_kind: str,
    viewer_name: str,
    app_layer_id: str,
    protocol: db_models.GeoServiceProtocol,
) -> str:
    """Return the proxy path for requests to the service of an app layer.

    For 3D tiles the path points at the tileset description, which refers to
    the tiles relative to itself.
    """
    url = f"{_base_proxy_url(viewer_kind, viewer_name, app_layer_id)}/{protocol.value}"
    if protocol == db_models.GeoServiceProtocol.TILES3D:
        return f"{url}/{TILES3D_DESCRIPTION_PATH}"
    return url


def build_legend_proxy_url(
    viewer_kind: str, viewer_name: str, app_layer_id: str
) -> str:
    """Return the proxy path for the legend image of an app layer."""
    base = _base_proxy_url(viewer_kind, viewer_name, app_layer_id)
    return f"{base}/{db_models.GeoServiceProtocol.LEGEND.value}"
