"""Legend resolution for app layers.

The legend of a layer is, in order of preference:

1. an image uploaded by an admin (``legendImageId`` in the service layer
   settings), always static;
2. the legend URL from the layer styles in the capabilities, dynamic when it
   is a WMS GetLegendGraphic request and static otherwise.

For proxied services the style legend URL is replaced by the legend proxy
path of the app layer; the proxy looks up the upstream URL itself.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Protocol

from viewer_api.services import capabilities, uploads, viewer_models

if TYPE_CHECKING:
    from viewer_api.db import models as db_models
    from viewer_api.services import settings_cascade


class LegendFinder(Protocol):
    def __call__(
        self, service: db_models.GeoService, layer: db_models.GeoServiceLayer
    ) -> str | None: ...


@dataclasses.dataclass(frozen=True)
class Legend:
    url: str | None
    legend_type: viewer_models.LegendType


NO_LEGEND = Legend(url=None, legend_type=viewer_models.LegendType.STATIC)


def legend_type_for_url(url: str) -> viewer_models.LegendType:
    """Classify a legend URL as dynamic (GetLegendGraphic) or static."""
    if (capabilities.get_wms_request(url) or "").lower() == "getlegendgraphic":
        return viewer_models.LegendType.DYNAMIC
    return viewer_models.LegendType.STATIC


def resolve_legend(
    service: db_models.GeoService,
    layer: db_models.GeoServiceLayer,
    settings: settings_cascade.CascadedLayerSettings,
    *,
    upload_helper: uploads.UploadHelper,
    legend_finder: LegendFinder = capabilities.find_legend_uri_from_styles,
    legend_proxy_url: str | None = None,
) -> Legend:
    """Determine the legend image URL and legend type of an app layer.

    Args:
        service: Service owning the layer.
        layer: The service layer.
        settings: Cascaded settings of the app layer.
        upload_helper: Resolves uploaded legend images to URLs.
        legend_finder: Finds a legend URL in the layer styles.
        legend_proxy_url: Legend proxy path of the app layer; required when
            the service is proxied.

    Returns:
        The legend URL (None if there is no legend) and its type.
    """
    if settings.legend_image_id is not None:
        return Legend(
            url=upload_helper.get_url_for_image(
                settings.legend_image_id, uploads.CATEGORY_LEGEND
            ),
            legend_type=viewer_models.LegendType.STATIC,
        )

    legend_url = legend_finder(service, layer)
    if legend_url is None:
        return NO_LEGEND

    # Classify on the upstream URL, the proxy path has no request parameter
    legend_type = legend_type_for_url(legend_url)
    if service.settings.use_proxy:
        if legend_proxy_url is None:
            raise ValueError(
                f"Legend proxy URL required for proxied service {service.id}"
            )
        legend_url = legend_proxy_url
    return Legend(url=legend_url, legend_type=legend_type)
