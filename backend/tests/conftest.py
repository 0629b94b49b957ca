"""Shared fixtures: a small configuration with two services and one app.

The configuration mirrors a typical setup: an Openbasiskaart WMTS base layer
with a hiDPI substitute layer, and a GeoServer WMS overlay layer linked to a
writeable feature type. The ``default`` application also references a
service that does not exist, which must be left out of the map.
"""

from __future__ import annotations

import uuid

import pytest

from viewer_api.core import config
from viewer_api.db import database
from viewer_api.db import models as db_models

LEGEND_UPLOAD_ID = uuid.UUID("3b7cb1a4-3dba-4d4b-9f41-2c7d8f1a0b11")

GETLEGENDGRAPHIC_URL = (
    "https://snapshot.tailormap.nl/geoserver/wms?language=dut&version=1.1.0"
    "&request=GetLegendGraphic&format=image%2Fpng"
    "&layer=postgis%3Abegroeidterreindeel"
)

_ANONYMOUS_READ = [{"groupName": "anonymous", "decisions": {"read": "allow"}}]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    config.get_settings.cache_clear()


@pytest.fixture
def legend_upload_id() -> uuid.UUID:
    return LEGEND_UPLOAD_ID


@pytest.fixture
def openbasiskaart() -> db_models.GeoService:
    return db_models.GeoService.model_validate(
        {
            "id": "openbasiskaart",
            "title": "Openbasiskaart",
            "url": "https://www.openbasiskaart.nl/mapcache/wmts",
            "protocol": "wmts",
            "authorizationRules": _ANONYMOUS_READ,
            "capabilities": "<Capabilities/>",
            "settings": {
                "defaultLayerSettings": {
                    "attribution": "© OpenStreetMap contributors",
                    "hiDpiDisabled": False,
                },
                "layerSettings": {
                    "osm": {
                        "title": "Openbasiskaart",
                        "hiDpiMode": "substituteLayerShowNextZoomLevel",
                        "hiDpiSubstituteLayer": "osm-hq",
                    },
                },
            },
            "layers": [
                {
                    "id": "0",
                    "root": True,
                    "title": "Openbasiskaart",
                    "children": ["1", "2"],
                },
                {
                    "id": "1",
                    "name": "osm",
                    "title": "OSM",
                    "crs": ["EPSG:28992", "EPSG:3857"],
                },
                {
                    "id": "2",
                    "name": "osm-hq",
                    "title": "OSM HQ",
                    "crs": ["EPSG:28992", "EPSG:3857"],
                },
            ],
        }
    )


@pytest.fixture
def geoserver() -> db_models.GeoService:
    return db_models.GeoService.model_validate(
        {
            "id": "snapshot-geoserver",
            "title": "Test GeoServer",
            "url": "https://snapshot.tailormap.nl/geoserver/wms",
            "protocol": "wms",
            "authorizationRules": _ANONYMOUS_READ,
            "settings": {
                "layerSettings": {
                    "postgis:begroeidterreindeel": {
                        "description": "Begroeid terreindeel",
                        "featureType": {
                            "featureSourceId": 1,
                            "featureTypeName": "begroeidterreindeel",
                        },
                    },
                },
            },
            "layers": [
                {
                    "id": "0",
                    "root": True,
                    "title": "GeoServer Web Map Service",
                    "crs": ["EPSG:28992", "EPSG:3857"],
                    "children": ["1", "2"],
                },
                {
                    "id": "1",
                    "name": "postgis:begroeidterreindeel",
                    "title": "begroeidterreindeel",
                    "minScale": 1.0,
                    "maxScale": 50000.0,
                    "styles": [
                        {
                            "name": "default",
                            "title": "Default",
                            "legendURL": GETLEGENDGRAPHIC_URL,
                        }
                    ],
                },
                {
                    "id": "2",
                    "name": "postgis:bak",
                    "title": "bak",
                    "crs": ["EPSG:28992"],
                },
            ],
        }
    )


@pytest.fixture
def application() -> db_models.Application:
    return db_models.Application.model_validate(
        {
            "id": 1,
            "name": "default",
            "title": "Tailormap demo",
            "crs": "EPSG:28992",
            "authorizationRules": _ANONYMOUS_READ,
            "contentRoot": {
                "baseLayerNodes": [
                    {
                        "objectType": "AppTreeLevelNode",
                        "id": "root-base-layers",
                        "title": "Base layers",
                        "root": True,
                        "childrenIds": ["lyr:openbasiskaart:osm"],
                    },
                    {
                        "objectType": "AppTreeLayerNode",
                        "id": "lyr:openbasiskaart:osm",
                        "serviceId": "openbasiskaart",
                        "layerName": "osm",
                        "visible": True,
                    },
                ],
                "layerNodes": [
                    {
                        "objectType": "AppTreeLevelNode",
                        "id": "root",
                        "title": "Layers",
                        "root": True,
                        "childrenIds": [
                            "lyr:snapshot-geoserver:postgis:begroeidterreindeel",
                            "lvl:missing",
                        ],
                    },
                    {
                        "objectType": "AppTreeLayerNode",
                        "id": "lyr:snapshot-geoserver:postgis:begroeidterreindeel",
                        "serviceId": "snapshot-geoserver",
                        "layerName": "postgis:begroeidterreindeel",
                        "visible": True,
                    },
                    {
                        "objectType": "AppTreeLevelNode",
                        "id": "lvl:missing",
                        "title": "Missing",
                        "childrenIds": ["lyr:missing:x"],
                    },
                    {
                        "objectType": "AppTreeLayerNode",
                        "id": "lyr:missing:x",
                        "serviceId": "does-not-exist",
                        "layerName": "x",
                    },
                ],
            },
            "settings": {
                "layerSettings": {
                    "lyr:openbasiskaart:osm": {"attribution": "OSM"},
                },
            },
        }
    )


@pytest.fixture
def repo(
    application: db_models.Application,
    openbasiskaart: db_models.GeoService,
    geoserver: db_models.GeoService,
) -> database.InMemoryConfigurationRepository:
    repo = database.InMemoryConfigurationRepository()
    repo.add_application(application)
    repo.add_service(openbasiskaart)
    repo.add_service(geoserver)
    repo.add_search_index(db_models.SearchIndex(id=1, name="begroeidterreindeel"))
    repo.add_upload(
        db_models.Upload(
            id=LEGEND_UPLOAD_ID, category="legend", filename="legend.png"
        )
    )
    repo.add_feature_source(
        db_models.FeatureSource(
            id=1,
            title="PostGIS",
            feature_types=[
                db_models.FeatureType(name="begroeidterreindeel", writeable=True),
                db_models.FeatureType(name="bak", writeable=False),
            ],
        )
    )
    return repo
