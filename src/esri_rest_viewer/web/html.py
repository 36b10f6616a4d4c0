"""
HTML rendering for ArcGIS REST resources.

Produces pages in the look of the ArcGIS REST Services Directory, with
breadcrumb navigation built from the parsed URL hierarchy, a nested
layer list built from the layer tree and a generic property listing
for everything else in the response.

Every link to another REST resource is wrapped so it opens in the
viewer again (``/?url=...``), except endpoints that do not speak JSON.
"""

import re
from html import escape
from typing import Any, Optional
from urllib.parse import urlencode

from esri_rest_viewer.core.layers import LayerNode, LayerTree
from esri_rest_viewer.core.models import ParsedUrl

_CSS = """\
body { font-family: "Lucida Sans Unicode","Lucida Grande",Verdana,Arial,Helvetica,sans-serif;
       font-size: 0.8em; color: #333; margin: 0; padding: 0; background: #fff; }
header { background: #e8e8e8; border-bottom: 1px solid #aaa; padding: 6px 12px; }
header h1 { font-size: 1.1em; margin: 0 0 6px 0; font-weight: bold; }
header form input[name=url] { width: 60%; }
nav.breadcrumbs ol { list-style: none; margin: 6px 0 0 0; padding: 0; }
nav.breadcrumbs li { display: inline; }
nav.breadcrumbs li + li:before { content: " > "; color: #777; }
#main { padding: 12px; }
h2 { font-size: 1.05em; margin: 16px 0 8px 0; border-bottom: 1px solid #ddd;
     padding-bottom: 4px; }
a { color: #0066cc; text-decoration: none; }
a:hover { text-decoration: underline; }
ul { margin: 4px 0 4px 20px; padding: 0; }
li { margin: 2px 0; }
li[data-default-visibility=false] > a { color: #888; }
dl { margin: 4px 0; }
dt { font-weight: bold; color: #555; }
dd { margin: 0 0 4px 16px; }
table { border-collapse: collapse; margin: 8px 0; }
th { background: #e8e8e8; border: 1px solid #ccc; padding: 4px 8px; text-align: left; }
td { border: 1px solid #ccc; padding: 4px 8px; vertical-align: top; }
.error { color: #a00; font-weight: bold; }
"""

# Array properties shown as tables rather than lists
_TABLE_KEY_RE = re.compile(
    r"fields|layers|tables|codedValues|lods|indexes|relationships"
    r"|symbolLayers|subLayers|(?:sub)?types"
)
_WKID_KEY_RE = re.compile(r"(?:latest)?[Ww]kid")
_HEX_RE = re.compile(r"[0-9a-f]+", re.IGNORECASE)

# Service sub-resources that return JSON and open in the viewer
_WRAPPED_SERVICE_LINKS = ("legend", "layers", "info/iteminfo")
# Service sub-resources that only return HTML/images
_DIRECT_SERVICE_LINKS = ("info/metadata", "info/thumbnail")


def wrap_url(target: str, base_url: str) -> str:
    """Link that opens ``target`` in this viewer."""
    return f"{base_url}/?{urlencode({'url': target})}"


def _page(
    title: str,
    breadcrumbs: list[tuple[str, Optional[str]]],
    body: str,
    base_url: str,
    current_url: str = "",
) -> str:
    """Wrap body HTML in the page shell with the URL form and breadcrumbs."""
    crumbs_html = ""
    for label, href in breadcrumbs:
        if href:
            crumbs_html += f'<li><a href="{escape(href)}">{escape(label)}</a></li>'
        else:
            crumbs_html += f"<li><b>{escape(label)}</b></li>"
    nav = f'<nav class="breadcrumbs"><ol>{crumbs_html}</ol></nav>' if crumbs_html else ""

    return f"""\
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{escape(title)}</title>
<style>{_CSS}</style></head>
<body>
<header><h1>ArcGIS REST Viewer</h1>
<form action="{escape(base_url)}/" method="get">
<input name="url" type="url" value="{escape(current_url)}" placeholder="https://example.com/arcgis/rest/services">
<input type="submit" value="View"></form>
{nav}</header>
<div id="main">{body}</div>
</body></html>"""


def build_breadcrumbs(
    parts: ParsedUrl,
    base_url: str,
    layer_chain: Optional[list[LayerNode]] = None,
) -> list[tuple[str, Optional[str]]]:
    """
    (label, href) pairs for each level of the URL, root first.

    When the layer's ancestor chain is known, every ancestor layer gets its
    own crumb. The last crumb (the current page) has no link.
    """
    crumbs: list[tuple[str, Optional[str]]] = []
    for part, url in parts.links():
        segment = url.rsplit("/", 1)[-1]
        if part == "root":
            crumbs.append(("Home", url))
        elif part == "folder":
            crumbs.append((segment, url))
        elif part == "service":
            name = url.rsplit("/", 2)[-2]
            crumbs.append((f"{name} ({segment})", url))
        elif part == "layer" and layer_chain:
            for node in layer_chain:
                crumbs.append((f"{node.name} ({node.id})", node.url or f"{parts.service}/{node.id}"))
        else:
            crumbs.append((segment, url))

    labelled = [(label, wrap_url(url, base_url)) for label, url in crumbs]
    if labelled:
        labelled[-1] = (labelled[-1][0], None)
    return labelled


def render_layer_list(tree: LayerTree, base_url: str) -> str:
    """Nested list of layers, top-level layers in service order."""

    def _item(node: LayerNode) -> str:
        href = wrap_url(node.url, base_url) if node.url else None
        label = escape(f"{node.name} ({node.id})")
        link = f'<a href="{escape(href)}">{label}</a>' if href else label
        visibility = "true" if node.default_visibility else "false"
        html = f'<li data-default-visibility="{visibility}">{link}'
        if node.children:
            html += "<ul>" + "".join(_item(child) for child in node.children) + "</ul>"
        return html + "</li>"

    return '<ul class="layer-list">' + "".join(_item(r) for r in tree.roots) + "</ul>"


def render_service_links(service_url: str, base_url: str) -> str:
    """Links to a map/feature service's sub-resources."""
    items = []
    for path in _WRAPPED_SERVICE_LINKS:
        href = wrap_url(f"{service_url}/{path}", base_url)
        items.append(f'<li><a href="{escape(href)}">{escape(path)}</a></li>')
    for path in _DIRECT_SERVICE_LINKS:
        href = f"{service_url}/{path}"
        items.append(
            f'<li><a href="{escape(href)}" target="_blank">{escape(path)}</a></li>'
        )
    return '<ul class="service-links">' + "".join(items) + "</ul>"


def render_task_links(service_url: str, tasks: list, base_url: str) -> str:
    """Links to the tools of a geoprocessing service."""
    items = []
    for task in tasks:
        href = wrap_url(f"{service_url}/{task}", base_url)
        items.append(f'<li><a href="{escape(href)}">{escape(str(task))}</a></li>')
    return '<ul class="tasks">' + "".join(items) + "</ul>"


class _ValueRenderer:
    """Render decoded JSON values as HTML, keyed by property name."""

    def __init__(self, base_url: str, service_url: Optional[str]):
        self.base_url = base_url
        self.service_url = service_url

    def render(self, value: Any, key: Optional[str] = None) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if key and isinstance(value, str):
            if key.lower().endswith("url") and value and not _HEX_RE.fullmatch(value):
                return f'<a href="{escape(value)}">{escape(value)}</a>'
        if key and _WKID_KEY_RE.fullmatch(key) and isinstance(value, int):
            return (
                f'<a href="https://epsg.io/{value}" target="epsg">{value}</a>'
            )
        if isinstance(value, list):
            return self._render_list(value, key)
        if isinstance(value, dict):
            return self.render_properties(value)
        return escape(str(value))

    def render_properties(self, obj: dict, skip: tuple[str, ...] = ()) -> str:
        html = "<dl>"
        for key, value in obj.items():
            if key in skip:
                continue
            html += f"<dt>{escape(key)}</dt><dd>{self.render(value, key)}</dd>"
        return html + "</dl>"

    def _render_list(self, items: list, key: Optional[str]) -> str:
        if key in ("folders", "services"):
            return self._render_links(items)
        if key == "tasks" and self.service_url:
            return render_task_links(self.service_url, items, self.base_url)
        if key and _TABLE_KEY_RE.fullmatch(key) and items and all(
            isinstance(i, dict) for i in items
        ):
            return self._render_table(items)
        return "<ul>" + "".join(f"<li>{self.render(i)}</li>" for i in items) + "</ul>"

    def _render_links(self, items: list) -> str:
        html = "<ul>"
        for item in items:
            if isinstance(item, dict) and item.get("url"):
                href = wrap_url(item["url"], self.base_url)
                html += f'<li><a href="{escape(href)}">{escape(str(item.get("name", "")))}</a></li>'
            else:
                html += f"<li>{self.render(item)}</li>"
        return html + "</ul>"

    def _render_table(self, rows: list[dict]) -> str:
        columns: list[str] = []
        for row in rows:
            for name in row:
                if name not in columns:
                    columns.append(name)

        html = "<table><tr>" + "".join(f"<th>{escape(c)}</th>" for c in columns) + "</tr>"
        for row in rows:
            html += "<tr>"
            for column in columns:
                value = row.get(column)
                if column == "name" and "id" in row and self.service_url:
                    href = wrap_url(f"{self.service_url}/{row['id']}", self.base_url)
                    cell = f'<a href="{escape(href)}">{escape(str(value))}</a>'
                elif column not in row:
                    cell = ""
                else:
                    cell = self.render(value, column)
                html += f"<td>{cell}</td>"
            html += "</tr>"
        return html + "</table>"


def render_resource(
    base_url: str,
    url: str,
    parts: ParsedUrl,
    info: dict,
    tree: Optional[LayerTree] = None,
    layer_chain: Optional[list[LayerNode]] = None,
) -> str:
    """Render a server, folder, service, layer or tool response."""
    renderer = _ValueRenderer(base_url, parts.service)
    body = ""

    service_type = parts.service_type
    at_service_level = parts.layer is None and parts.tool is None
    if at_service_level and service_type is not None and service_type.has_layers:
        body += "<h2>Resources</h2>" + render_service_links(parts.service, base_url)

    skip: tuple[str, ...] = ()
    if tree is not None and len(tree):
        body += "<h2>Layers</h2>" + render_layer_list(tree, base_url)
        skip = ("layers",)

    body += "<h2>Properties</h2>" + renderer.render_properties(info, skip=skip)

    title = info.get("name") or info.get("mapName") or info.get("serviceDescription") or url
    return _page(
        str(title),
        build_breadcrumbs(parts, base_url, layer_chain),
        body,
        base_url,
        current_url=url,
    )


def render_start_page(base_url: str, default_url: Optional[str] = None) -> str:
    """Landing page: just the URL form."""
    body = "<p>Enter the URL of an ArcGIS Server, folder, service or layer.</p>"
    return _page("ArcGIS REST Viewer", [], body, base_url, current_url=default_url or "")


def render_query_form(base_url: str, query_url: str, parts: ParsedUrl) -> str:
    """Query form for a map/feature service layer.

    The form submits straight to the service. Boolean parameters start
    unset so only the ones the user picks are sent.
    """

    def _bool_select(name: str) -> str:
        return (
            f'<select name="{name}"><option value="" selected>(unset)</option>'
            '<option value="true">true</option>'
            '<option value="false">false</option></select>'
        )

    body = f"""\
<form action="{escape(query_url)}" method="get" class="query-form">
<h2>Query</h2>
<table>
<tr><td><b>Where</b></td><td><input name="where" value="1=1" size="60"></td></tr>
<tr><td><b>Object IDs</b></td><td><input name="objectIds" value="" size="60"></td></tr>
<tr><td><b>Time</b></td><td><input name="time" value="" size="60"></td></tr>
<tr><td><b>Input Geometry</b></td><td><textarea name="geometry" rows="3" cols="58"></textarea></td></tr>
<tr><td><b>Geometry Type</b></td>
    <td><select name="geometryType">
    <option value="esriGeometryEnvelope" selected>Envelope</option>
    <option value="esriGeometryPoint">Point</option>
    <option value="esriGeometryMultipoint">Multipoint</option>
    <option value="esriGeometryPolyline">Polyline</option>
    <option value="esriGeometryPolygon">Polygon</option>
    </select></td></tr>
<tr><td><b>Input Spatial Reference</b></td><td><input name="inSR" value="" size="10"></td></tr>
<tr><td><b>Spatial Relationship</b></td>
    <td><select name="spatialRel">
    <option value="esriSpatialRelIntersects" selected>Intersects</option>
    <option value="esriSpatialRelContains">Contains</option>
    <option value="esriSpatialRelCrosses">Crosses</option>
    <option value="esriSpatialRelEnvelopeIntersects">Envelope Intersects</option>
    <option value="esriSpatialRelOverlaps">Overlaps</option>
    <option value="esriSpatialRelTouches">Touches</option>
    <option value="esriSpatialRelWithin">Within</option>
    </select></td></tr>
<tr><td><b>Out Fields</b></td><td><input name="outFields" value="*" size="60"></td></tr>
<tr><td><b>Return Geometry</b></td><td>{_bool_select("returnGeometry")}</td></tr>
<tr><td><b>Return IDs Only</b></td><td>{_bool_select("returnIdsOnly")}</td></tr>
<tr><td><b>Return Count Only</b></td><td>{_bool_select("returnCountOnly")}</td></tr>
<tr><td><b>Output Spatial Reference</b></td><td><input name="outSR" value="" size="10"></td></tr>
<tr><td><b>Order By Fields</b></td><td><input name="orderByFields" value="" size="60"></td></tr>
<tr><td><b>Result Offset</b></td><td><input name="resultOffset" value="" size="10"></td></tr>
<tr><td><b>Result Record Count</b></td><td><input name="resultRecordCount" value="" size="10"></td></tr>
<tr><td><b>Format</b></td>
    <td><select name="f"><option value="html" selected>HTML</option>
    <option value="json">JSON</option>
    <option value="geojson">GeoJSON</option>
    <option value="pbf">PBF</option>
    </select></td></tr>
<tr><td></td><td><input type="reset" value="Reset"> <input type="submit" value="Query (GET)"></td></tr>
</table>
</form>"""

    crumbs = build_breadcrumbs(parts, base_url)
    if crumbs:
        # The layer is a parent of the query page, so keep its link.
        label = crumbs[-1][0]
        crumbs[-1] = (label, wrap_url(parts.layer or parts.root, base_url))
    crumbs.append(("Query", None))
    return _page("Query", crumbs, body, base_url, current_url=query_url)


def render_error(base_url: str, url: str, message: str) -> str:
    body = f'<p class="error">{escape(message)}</p>'
    return _page("Error", [], body, base_url, current_url=url)
