"""
Viewer routes.

``GET /?url=<ArcGIS REST URL>`` fetches the resource as JSON and renders
it as HTML, or returns the parsed structure with ``f=json``.
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from esri_rest_viewer.core.config import get_settings
from esri_rest_viewer.core.errors import ServiceRequestError
from esri_rest_viewer.core.layers import LayerNode, LayerTree, build_layer_tree
from esri_rest_viewer.core.models import ParsedUrl
from esri_rest_viewer.core.urls import is_layer_query_url, parse_url

from .. import client
from ..html import render_query_form, render_resource, render_start_page
from ..server_info import normalize_server_info

logger = logging.getLogger(__name__)
router = APIRouter()


def base_url(request: Request) -> str:
    """Derive the public base URL from the request.

    Behind a reverse proxy, use X-Forwarded-Host and X-Forwarded-Proto
    to reconstruct the external URL.
    """
    host = request.headers.get("x-forwarded-host") or request.headers.get("host", "localhost")
    proto = request.headers.get("x-forwarded-proto", request.url.scheme)
    root = request.scope.get("root_path", "")
    return f"{proto}://{host}{root}"


def wants_json(f: Optional[str]) -> bool:
    return f in ("json", "pjson")


def _layer_tree(info: dict, url: str, parts: ParsedUrl) -> Optional[LayerTree]:
    """Tree for responses that list layer descriptors.

    Only a map/feature service itself and its ``/layers`` resource list
    layer descriptors. Other resources (``/legend``, ...) reuse the
    ``layers`` key for something else and render as plain tables.
    """
    service_type = parts.service_type
    if service_type is None or not service_type.has_layers:
        return None
    resource = re.split(r"[?#]", url.strip(), maxsplit=1)[0].rstrip("/").lower()
    if resource not in (parts.service.lower(), parts.service.lower() + "/layers"):
        return None
    layers = info.get("layers")
    if not isinstance(layers, list):
        return None
    return build_layer_tree(layers, service_url=parts.service)


def _layer_chain(parts: ParsedUrl) -> Optional[list[LayerNode]]:
    """Ancestor layers of a layer page, from the owning service's layer list.

    The chain only decorates breadcrumbs, so an unreachable service is
    logged and skipped.
    """
    if parts.layer_id is None:
        return None
    try:
        service_info = client.fetch_json(parts.service)
    except ServiceRequestError as e:
        logger.warning("Cannot load layer list for breadcrumbs: %s", e)
        return None
    tree = _layer_tree(service_info, parts.service, parts)
    if tree is None or parts.layer_id not in tree:
        return None
    return tree.get_ancestor_chain(parts.layer_id)


@router.get("/")
def view(request: Request, url: Optional[str] = None, f: Optional[str] = None):
    """Render any ArcGIS server, folder, service, layer or tool URL."""
    base = base_url(request)
    if not url:
        return HTMLResponse(render_start_page(base, get_settings().default_url))

    parts = parse_url(url)

    if is_layer_query_url(url):
        if wants_json(f):
            return {"url": url, "parts": parts.model_dump(), "query": True}
        return HTMLResponse(render_query_form(base, url, parts))

    info = normalize_server_info(client.fetch_json(url), url)
    tree = _layer_tree(info, url, parts)

    if wants_json(f):
        return {
            "url": url,
            "parts": parts.model_dump(),
            "layers": tree.to_dict() if tree is not None else None,
            "info": info,
        }

    return HTMLResponse(
        render_resource(base, url, parts, info, tree, _layer_chain(parts))
    )
