"""Decoding of application CRS codes with pyproj."""

from __future__ import annotations

import pyproj
import pyproj.exceptions

from viewer_api.db import models as db_models
from viewer_api.services import viewer_models

_UNIT_ABBREVIATIONS = {
    "metre": "m",
    "meter": "m",
    "degree": "deg",
    "US survey foot": "ft",
    "foot": "ft",
}


class ConfigurationError(Exception):
    """The stored configuration is corrupt or cannot be used."""


class InvalidProjectionError(ConfigurationError):
    """The CRS code of an application cannot be decoded."""

    def __init__(self, code: str | None) -> None:
        super().__init__(f"Invalid CRS: {code}")
        self.code = code


def _crs_bounds(crs: pyproj.CRS, code: str) -> db_models.Bounds | None:
    """Return the area of use of ``crs`` in its own coordinates."""
    area = crs.area_of_use
    if area is None:
        return None
    transformer = pyproj.Transformer.from_crs("EPSG:4326", crs, always_xy=True)
    minx, miny, maxx, maxy = transformer.transform_bounds(
        area.west, area.south, area.east, area.north
    )
    return db_models.Bounds(crs=code, minx=minx, miny=miny, maxx=maxx, maxy=maxy)


def decode_crs(code: str | None) -> viewer_models.CoordinateReferenceSystem:
    """Decode a CRS code such as ``EPSG:28992``.

    Args:
        code: The CRS code configured for an application.

    Returns:
        The CRS with its WKT definition, bounds and unit.

    Raises:
        InvalidProjectionError: If the code is missing or unknown.
    """
    if not code:
        raise InvalidProjectionError(code)
    try:
        crs = pyproj.CRS.from_user_input(code)
    except pyproj.exceptions.CRSError as e:
        raise InvalidProjectionError(code) from e

    unit = None
    if crs.axis_info:
        unit_name = crs.axis_info[0].unit_name
        unit = _UNIT_ABBREVIATIONS.get(unit_name, unit_name)

    return viewer_models.CoordinateReferenceSystem(
        code=code,
        definition=crs.to_wkt(),
        bounds=_crs_bounds(crs, code),
        unit=unit,
    )
