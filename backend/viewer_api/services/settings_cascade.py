"""Layer settings cascade.

Layer settings can be configured at three tiers: per app layer
(:class:`~viewer_api.db.models.AppLayerSettings`), per service layer
(:class:`~viewer_api.db.models.GeoServiceLayerSettings`) and as service-wide
defaults (:class:`~viewer_api.db.models.GeoServiceDefaultLayerSettings`).
Which tiers are consulted, and in which order, depends on the field:

- ``title``, ``description`` and ``attribution`` can be overridden per app
  layer: app layer, then service layer, then service default, then a built-in
  fallback. An empty or whitespace-only string counts as not set, except that
  a whitespace-only app layer value clears the field: the service tiers are
  skipped and the built-in fallback is used.
- Tiling and hiDPI fields can only be set per service layer or as service
  default. The app layer settings are never consulted for these.
- ``hi_dpi_substitute_layer`` and ``legend_image_id`` only come from the
  service layer settings. A default substitute layer wouldn't make sense.
- Opacity, auto refresh, editing and the other viewer behaviour fields only
  exist per app layer.

Example:
    Resolve a single field:
        >>> from viewer_api.db import models as db_models
        >>> from viewer_api.services import settings_cascade
        >>> settings_cascade.resolve(
        ...     "title",
        ...     db_models.AppLayerSettings(title=""),
        ...     db_models.GeoServiceLayerSettings(title="A"),
        ...     None,
        ... )
        'A'
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from viewer_api.db import models as db_models

if TYPE_CHECKING:
    from collections.abc import Sequence

APP_OVERRIDABLE_FIELDS = ("title", "description", "attribution")

# Service-only fields with their hard-coded defaults
SERVICE_FIELD_DEFAULTS: dict[str, Any] = {
    "tiling_disabled": True,
    "tiling_gutter": 0,
    "hi_dpi_disabled": True,
    "hi_dpi_mode": None,
    "min_zoom": None,
    "max_zoom": None,
    "tile_size": None,
    "tile_grid_extent": None,
}

SERVICE_LAYER_ONLY_FIELDS = ("hi_dpi_substitute_layer", "legend_image_id")

APP_ONLY_FIELDS = (
    "opacity",
    "auto_refresh_in_seconds",
    "editable",
    "hidden_functionality",
    "search_index_id",
    "tileset3d_style_id",
)

_EMPTY_APP_SETTINGS = db_models.AppLayerSettings()
_EMPTY_LAYER_SETTINGS = db_models.GeoServiceLayerSettings()
_EMPTY_DEFAULT_SETTINGS = db_models.GeoServiceDefaultLayerSettings()


def null_if_blank(value: str | None) -> str | None:
    """Return None for None, empty and whitespace-only strings."""
    if value is None or not value.strip():
        return None
    return value


def merge_strings(
    sources: Sequence[str | None],
    fallback: str | None = None,
) -> str | None:
    """Return the first set string from sources ordered by precedence.

    Args:
        sources: Candidate values, highest precedence first. The first source
            is the clearing tier: a whitespace-only value there stops the
            lookup and returns ``fallback``.
        fallback: Value used when no source is set.

    Returns:
        The first non-blank source value, or ``fallback``.
    """
    for index, value in enumerate(sources):
        if value is None or value == "":
            continue
        if not value.strip():
            if index == 0:
                return fallback
            continue
        return value
    return fallback


def merge_values(sources: Sequence[Any], default: Any = None) -> Any:
    """Return the first source that is not None, or ``default``."""
    return next((value for value in sources if value is not None), default)


def resolve(
    field: str,
    app_settings: db_models.AppLayerSettings | None,
    layer_settings: db_models.GeoServiceLayerSettings | None,
    default_settings: db_models.GeoServiceDefaultLayerSettings | None,
    fallback: str | None = None,
) -> Any:
    """Resolve the effective value of one layer settings field.

    Args:
        field: Settings field name (snake_case).
        app_settings: App layer settings, None if not configured.
        layer_settings: Service layer settings, None if not configured.
        default_settings: Service default layer settings, None if not
            configured.
        fallback: Built-in fallback for the app-overridable string fields.

    Returns:
        The effective value following the precedence rules of the field.

    Raises:
        KeyError: If ``field`` is not a layer settings field.
    """
    app_settings = app_settings or _EMPTY_APP_SETTINGS
    layer_settings = layer_settings or _EMPTY_LAYER_SETTINGS
    default_settings = default_settings or _EMPTY_DEFAULT_SETTINGS

    if field in APP_OVERRIDABLE_FIELDS:
        return merge_strings(
            [
                getattr(app_settings, field),
                getattr(layer_settings, field),
                getattr(default_settings, field),
            ],
            fallback,
        )
    if field in SERVICE_FIELD_DEFAULTS:
        return merge_values(
            [getattr(layer_settings, field), getattr(default_settings, field)],
            SERVICE_FIELD_DEFAULTS[field],
        )
    if field in SERVICE_LAYER_ONLY_FIELDS:
        return getattr(layer_settings, field)
    if field in APP_ONLY_FIELDS:
        return getattr(app_settings, field)
    raise KeyError(field)


@dataclasses.dataclass(frozen=True)
class CascadedLayerSettings:
    """Effective settings of one app layer after the cascade."""

    title: str | None
    description: str | None
    attribution: str | None
    tiling_disabled: bool
    tiling_gutter: int
    hi_dpi_disabled: bool
    hi_dpi_mode: db_models.TileLayerHiDpiMode | None
    hi_dpi_substitute_layer: str | None
    min_zoom: int | None
    max_zoom: int | None
    tile_size: int | None
    tile_grid_extent: db_models.Bounds | None
    legend_image_id: str | None
    opacity: int | None
    auto_refresh_in_seconds: int | None
    editable: bool | None
    hidden_functionality: list[str]
    search_index_id: int | None
    tileset3d_style_id: str | None


def cascade(
    app_settings: db_models.AppLayerSettings | None,
    layer_settings: db_models.GeoServiceLayerSettings | None,
    default_settings: db_models.GeoServiceDefaultLayerSettings | None,
    fallback_title: str,
) -> CascadedLayerSettings:
    """Resolve every layer settings field.

    Args:
        app_settings: App layer settings, None if not configured.
        layer_settings: Service layer settings, None if not configured.
        default_settings: Service default layer settings, None if not
            configured.
        fallback_title: Title used when no tier sets one, normally the
            capabilities title or the layer name.

    Returns:
        The effective settings. ``title`` is never None.
    """
    values = {
        field.name: resolve(
            field.name,
            app_settings,
            layer_settings,
            default_settings,
            fallback_title if field.name == "title" else None,
        )
        for field in dataclasses.fields(CascadedLayerSettings)
    }
    values["hidden_functionality"] = list(values["hidden_functionality"])
    return CascadedLayerSettings(**values)
