"""
Shared test fixtures.

Sample payloads mirror what ArcGIS Server returns from a MapServer
(``parentLayerId``/``subLayerIds``) and from its ``/layers`` endpoint
(``parentLayer``/``subLayers`` objects).
"""

import pytest

SERVICE_URL = "https://example.com/arcgis/rest/services/Region/Parks/MapServer"


@pytest.fixture(autouse=True)
def default_settings():
    """Use default settings regardless of any config file on disk."""
    from esri_rest_viewer.core.config import ViewerSettings, reset_settings, set_settings

    set_settings(ViewerSettings())
    yield
    reset_settings()


@pytest.fixture
def service_url():
    return SERVICE_URL


@pytest.fixture
def map_service_layers():
    """Layers array of a MapServer response: two group layers, one nested."""
    return [
        {"id": 0, "name": "Facilities", "parentLayerId": -1, "defaultVisibility": True,
         "subLayerIds": [1, 2], "minScale": 0, "maxScale": 0},
        {"id": 1, "name": "Restrooms", "parentLayerId": 0, "defaultVisibility": True,
         "subLayerIds": None, "minScale": 10000, "maxScale": 0},
        {"id": 2, "name": "Trails", "parentLayerId": 0, "defaultVisibility": False,
         "subLayerIds": [4, 3], "minScale": 0, "maxScale": 0},
        {"id": 3, "name": "Paved", "parentLayerId": 2, "defaultVisibility": True,
         "subLayerIds": None, "minScale": 0, "maxScale": 0},
        {"id": 4, "name": "Unpaved", "parentLayerId": 2, "defaultVisibility": True,
         "subLayerIds": None, "minScale": 0, "maxScale": 0},
        {"id": 5, "name": "Boundaries", "parentLayerId": -1, "defaultVisibility": True,
         "subLayerIds": None, "minScale": 0, "maxScale": 0},
    ]


@pytest.fixture
def layers_endpoint_layers():
    """The same hierarchy as returned by /MapServer/layers."""
    return [
        {"id": 0, "name": "Facilities", "type": "Group Layer", "parentLayer": None,
         "subLayers": [{"id": 1, "name": "Restrooms"}, {"id": 2, "name": "Trails"}]},
        {"id": 1, "name": "Restrooms", "type": "Feature Layer",
         "parentLayer": {"id": 0, "name": "Facilities"}, "subLayers": []},
        {"id": 2, "name": "Trails", "type": "Group Layer",
         "parentLayer": {"id": 0, "name": "Facilities"},
         "subLayers": [{"id": 4, "name": "Unpaved"}, {"id": 3, "name": "Paved"}]},
        {"id": 3, "name": "Paved", "type": "Feature Layer",
         "parentLayer": {"id": 2, "name": "Trails"}, "subLayers": []},
        {"id": 4, "name": "Unpaved", "type": "Feature Layer",
         "parentLayer": {"id": 2, "name": "Trails"}, "subLayers": []},
        {"id": 5, "name": "Boundaries", "type": "Feature Layer", "parentLayer": None,
         "subLayers": []},
    ]


@pytest.fixture
def map_service_info(map_service_layers):
    """A MapServer JSON response."""
    return {
        "currentVersion": 10.91,
        "serviceDescription": "Regional parks",
        "mapName": "Parks",
        "capabilities": "Map,Query,Data",
        "supportedQueryFormats": "JSON, geoJSON, PBF",
        "layers": map_service_layers,
        "tables": [],
        "spatialReference": {"wkid": 102100, "latestWkid": 3857},
        "documentInfo": {"Title": "Parks", "Keywords": "parks,trails"},
    }


@pytest.fixture
def fake_fetch(monkeypatch):
    """Replace the upstream fetch with a dict of canned responses keyed by URL."""
    from esri_rest_viewer.core.errors import ServiceRequestError
    from esri_rest_viewer.web import client

    responses = {}
    calls = []

    def _fetch(url):
        calls.append(url)
        if url not in responses:
            raise ServiceRequestError(url, "HTTP 404 Not Found", code=404)
        return responses[url]

    monkeypatch.setattr(client, "fetch_json", _fetch)
    _fetch.responses = responses
    _fetch.calls = calls
    return _fetch
