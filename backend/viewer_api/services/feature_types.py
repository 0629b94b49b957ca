"""Feature types linked to service layers.

A WMS layer can be linked to a feature type of a feature source (a JDBC
table or WFS feature type) in its service layer settings. The viewer uses
the link to show attributes and, for writeable feature types, to edit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from viewer_api.db import database
    from viewer_api.db import models as db_models


def find_feature_type_for_layer(
    service: db_models.GeoService,
    layer: db_models.GeoServiceLayer,
    repository: database.ConfigurationRepositoryProtocol,
) -> db_models.FeatureType | None:
    """Return the feature type linked to a service layer, if any.

    Args:
        service: Service owning the layer.
        layer: The service layer.
        repository: Configuration store to look the feature source up in.

    Returns:
        The linked feature type, or None when no link is configured or the
        linked feature source or feature type does not exist.
    """
    if layer.name is None:
        return None
    layer_settings = service.layer_settings(layer.name)
    if layer_settings is None or layer_settings.feature_type is None:
        return None

    ref = layer_settings.feature_type
    feature_source = repository.find_feature_source(ref.feature_source_id)
    if feature_source is None:
        return None
    return feature_source.find_feature_type(ref.feature_type_name)


def is_editable(
    app_layer_settings: db_models.AppLayerSettings,
    feature_type: db_models.FeatureType | None,
) -> bool:
    """Whether the app layer may be edited in the viewer.

    Editing must be enabled for the app layer and the feature type must be
    writeable. Whether the user is logged in is checked by the viewer.
    """
    if feature_type is None or not feature_type.writeable:
        return False
    return app_layer_settings.editable is True
