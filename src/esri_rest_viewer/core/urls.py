"""
ArcGIS REST resource URL grammar.

Classifies a URL into the service root -> folder -> service -> layer
(or service -> GP tool) hierarchy and recovers the URL of every level.

The grammar is an ordered tuple of named rules evaluated after the
service-root anchor has been found. Map/feature services are tried
before geoprocessing services so a numbered layer is never read as a
tool name. When no rule matches, the result holds only the root.
"""

import logging
import re
from typing import NamedTuple, Optional

from .errors import MalformedUrlError
from .models import ParsedUrl, ServiceType

logger = logging.getLogger(__name__)

EXPECTED_FORMAT = (
    "<scheme>://<host>/arcgis/rest[/services[/<folder>]/<name>"
    "/<MapServer|FeatureServer|GPServer>[/<layer id or tool name>]]"
)

_ANCHOR_RE = re.compile(
    r"^(?P<prefix>.+?/arcgis/rest)(?P<services>/services)?(?=/|$)",
    re.IGNORECASE,
)
_LAYER_ID_RE = re.compile(r"[0-9]+")
_ANY_SERVICE_RE = re.compile(r"\w+Server", re.IGNORECASE)
_LAYER_QUERY_RE = re.compile(
    r"/(?:Map|Feature)Server/[0-9]+/query$", re.IGNORECASE
)


class GrammarMatch(NamedTuple):
    """Result of one successful grammar rule."""

    rule: str
    service_path: tuple[str, ...]  # [folder,] name, type
    layer: Optional[str] = None
    tool: Optional[str] = None


def _strip_url(url: str) -> str:
    """Drop query string, fragment and trailing slashes."""
    return re.split(r"[?#]", url.strip(), maxsplit=1)[0].rstrip("/")


def _locate_service(
    segments: list[str], allowed: tuple[ServiceType, ...]
) -> Optional[int]:
    """Index of the service-type segment: 1 without a folder, 2 with one."""
    for index in (1, 2):
        if index < len(segments):
            if ServiceType.from_segment(segments[index]) in allowed:
                return index
    return None


def _match_layer_service(segments: list[str]) -> Optional[GrammarMatch]:
    """``[folder/]name/(MapServer|FeatureServer)[/<layer id>]``"""
    index = _locate_service(segments, (ServiceType.MAP, ServiceType.FEATURE))
    if index is None:
        return None
    layer = None
    if index + 1 < len(segments) and _LAYER_ID_RE.fullmatch(segments[index + 1]):
        layer = segments[index + 1]
    return GrammarMatch("map_feature", tuple(segments[: index + 1]), layer=layer)


def _match_gp_tool(segments: list[str]) -> Optional[GrammarMatch]:
    """``[folder/]name/GPServer[/<tool name>]``"""
    index = _locate_service(segments, (ServiceType.GP,))
    if index is None:
        return None
    tool = segments[index + 1] if index + 1 < len(segments) else None
    return GrammarMatch("geoprocessing", tuple(segments[: index + 1]), tool=tool)


GRAMMAR_RULES = (
    ("map_feature", _match_layer_service),
    ("geoprocessing", _match_gp_tool),
)


def _find_root(url: str) -> tuple[str, bool, str]:
    """Return (root url, whether /services was present, remaining path)."""
    stripped = _strip_url(url)
    match = _ANCHOR_RE.match(stripped)
    if not match:
        raise MalformedUrlError(url, EXPECTED_FORMAT)
    if match.group("services"):
        return match.group(0), True, stripped[match.end():]
    # The only repair: add the missing "services" segment.
    return match.group("prefix") + "/services", False, stripped[match.end():]


def parse_url(url: str) -> ParsedUrl:
    """
    Parse an ArcGIS REST URL into its root/folder/service/layer/tool URLs.

    Raises MalformedUrlError if the URL has no ``/arcgis/rest`` anchor.
    """
    root, has_services, rest = _find_root(url)
    if not has_services:
        return ParsedUrl(root=root)

    segments = [s for s in rest.split("/") if s]
    for name, rule in GRAMMAR_RULES:
        match = rule(segments)
        if match is None:
            continue
        logger.debug("URL %s matched grammar rule %s", url, name)
        service = "/".join((root,) + match.service_path)
        folder = None
        if len(match.service_path) == 3:
            folder = f"{root}/{match.service_path[0]}"
        return ParsedUrl(
            root=root,
            folder=folder,
            service=service,
            layer=f"{service}/{match.layer}" if match.layer else None,
            tool=f"{service}/{match.tool}" if match.tool else None,
        )

    return ParsedUrl(root=root)


def get_server_root(url: str) -> str:
    """The ``.../arcgis/rest/services`` URL for any server resource URL."""
    return _find_root(url)[0]


def get_service_url(url: str) -> str:
    """
    The service URL containing ``url``; raises if there is none.

    Unlike ``parse_url`` this accepts any ``*Server`` type
    (ImageServer, GeometryServer, ...), not only the ones the grammar
    resolves further.
    """
    root, has_services, rest = _find_root(url)
    if has_services:
        segments = [s for s in rest.split("/") if s]
        for index in (1, 2):
            if index < len(segments) and _ANY_SERVICE_RE.fullmatch(segments[index]):
                return "/".join([root] + segments[: index + 1])
    raise MalformedUrlError(url, EXPECTED_FORMAT)


def is_layer_query_url(url: str) -> bool:
    """True for ``.../(Map|Feature)Server/<id>/query`` URLs."""
    return bool(_LAYER_QUERY_RE.search(_strip_url(url)))
