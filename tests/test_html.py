"""Tests for HTML rendering."""

from urllib.parse import quote

from esri_rest_viewer.core.layers import build_layer_tree
from esri_rest_viewer.core.urls import parse_url
from esri_rest_viewer.web.html import (
    build_breadcrumbs,
    render_layer_list,
    render_query_form,
    render_resource,
    render_service_links,
    render_start_page,
    wrap_url,
)
from esri_rest_viewer.web.server_info import normalize_server_info

BASE = "http://viewer.test"
ROOT = "https://example.com/arcgis/rest/services"


class TestWrapUrl:
    def test_wrap_url(self):
        target = f"{ROOT}/Parks/MapServer/1"
        assert wrap_url(target, BASE) == f"{BASE}/?url={quote(target, safe='')}"


class TestBreadcrumbs:

    def test_service_crumbs(self):
        crumbs = build_breadcrumbs(parse_url(f"{ROOT}/Region/Parks/MapServer"), BASE)
        assert [label for label, _ in crumbs] == ["Home", "Region", "Parks (MapServer)"]
        assert crumbs[0][1] == wrap_url(ROOT, BASE)
        assert crumbs[-1][1] is None

    def test_tool_crumbs(self):
        crumbs = build_breadcrumbs(parse_url(f"{ROOT}/Tools/GPServer/Buffer"), BASE)
        assert [label for label, _ in crumbs] == ["Home", "Tools (GPServer)", "Buffer"]

    def test_layer_crumbs_with_ancestors(self, map_service_layers):
        parts = parse_url(f"{ROOT}/Region/Parks/MapServer/3")
        tree = build_layer_tree(map_service_layers, service_url=parts.service)
        crumbs = build_breadcrumbs(parts, BASE, tree.get_ancestor_chain(3))
        assert [label for label, _ in crumbs] == [
            "Home", "Region", "Parks (MapServer)",
            "Facilities (0)", "Trails (2)", "Paved (3)",
        ]
        assert crumbs[3][1] == wrap_url(f"{parts.service}/0", BASE)
        assert crumbs[-1][1] is None

    def test_layer_crumbs_without_ancestors(self):
        crumbs = build_breadcrumbs(parse_url(f"{ROOT}/Parks/MapServer/3"), BASE)
        assert [label for label, _ in crumbs] == ["Home", "Parks (MapServer)", "3"]


class TestLayerList:

    def test_nested_list_order(self, map_service_layers, service_url):
        tree = build_layer_tree(map_service_layers, service_url=service_url)
        html = render_layer_list(tree, BASE)
        order = [html.index(f"{name} (") for name in
                 ("Facilities", "Restrooms", "Trails", "Unpaved", "Paved", "Boundaries")]
        assert order == sorted(order)
        assert html.count("<ul") == 3
        assert 'data-default-visibility="false"' in html

    def test_links_wrapped(self, map_service_layers, service_url):
        tree = build_layer_tree(map_service_layers, service_url=service_url)
        html = render_layer_list(tree, BASE)
        href = wrap_url(f"{service_url}/4", BASE).replace("&", "&amp;")
        assert href in html

    def test_escapes_names(self):
        tree = build_layer_tree([{"id": 0, "name": "<script>", "parentLayerId": -1}])
        html = render_layer_list(tree, BASE)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html


class TestRenderResource:

    def test_service_page(self, map_service_info, service_url):
        parts = parse_url(service_url)
        info = normalize_server_info(map_service_info, service_url)
        tree = build_layer_tree(info["layers"], service_url=parts.service)
        html = render_resource(BASE, service_url, parts, info, tree)
        assert "<h2>Layers</h2>" in html
        assert "<h2>Resources</h2>" in html
        assert f'href="{service_url}/info/thumbnail" target="_blank"' in html
        assert "<dt>layers</dt>" not in html
        assert "<dt>capabilities</dt>" in html
        assert 'href="https://epsg.io/3857"' in html
        assert "<title>Parks</title>" in html

    def test_folder_page_links(self):
        url = f"{ROOT}/Region"
        info = normalize_server_info(
            {"folders": [], "services": [{"name": "Region/Parks", "type": "MapServer"}]},
            url,
        )
        html = render_resource(BASE, url, parse_url(url), info)
        href = wrap_url(f"{ROOT}/Region/Parks/MapServer", BASE)
        assert f'href="{href}"' in html
        assert "<h2>Resources</h2>" not in html

    def test_gp_task_links(self):
        url = f"{ROOT}/Tools/GPServer"
        info = {"tasks": ["Buffer", "Clip"], "executionType": "esriExecutionTypeSynchronous"}
        html = render_resource(BASE, url, parse_url(url), info)
        assert wrap_url(f"{url}/Clip", BASE) in html
        assert "<h2>Resources</h2>" not in html

    def test_fields_table(self):
        url = f"{ROOT}/Parks/MapServer/1"
        info = {
            "name": "Restrooms",
            "fields": [
                {"name": "OBJECTID", "type": "esriFieldTypeOID", "alias": "OBJECTID"},
                {"name": "NAME", "type": "esriFieldTypeString", "alias": "Name", "length": 50},
            ],
        }
        html = render_resource(BASE, url, parse_url(url), info)
        assert "<th>length</th>" in html
        assert "<td>esriFieldTypeString</td>" in html

    def test_null_and_bool_values(self):
        info = {"hasZ": False, "description": None}
        html = render_resource(BASE, ROOT, parse_url(ROOT), info)
        assert "<dt>hasZ</dt><dd>false</dd>" in html
        assert "<dt>description</dt><dd>null</dd>" in html


class TestForms:

    def test_start_page_prefilled(self):
        html = render_start_page(BASE, f"{ROOT}/Parks/MapServer")
        assert f'value="{ROOT}/Parks/MapServer"' in html

    def test_query_form(self):
        url = f"{ROOT}/Parks/MapServer/3/query"
        html = render_query_form(BASE, url, parse_url(url))
        assert f'action="{url}"' in html
        assert 'name="returnGeometry"' in html
        assert '<option value="" selected>(unset)</option>' in html
        assert 'type="reset"' in html
        # The layer crumb links back to the layer page
        assert wrap_url(f"{ROOT}/Parks/MapServer/3", BASE).replace("&", "&amp;") in html
        assert "<li><b>Query</b></li>" in html

    def test_service_links(self):
        html = render_service_links(f"{ROOT}/Parks/MapServer", BASE)
        for path in ("legend", "layers", "info/iteminfo", "info/metadata", "info/thumbnail"):
            assert f">{path}</a>" in html
