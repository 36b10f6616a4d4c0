"""Viewer core: URL grammar and layer hierarchy, no I/O."""

from .errors import (
    CorruptStructureError,
    DanglingReferenceError,
    DuplicateIdError,
    HierarchyMismatchError,
    InvalidLayerError,
    LayerGraphError,
    MalformedUrlError,
    NotFoundError,
    RestViewerError,
    ServiceRequestError,
)
from .layers import LayerNode, LayerTree, build_layer_tree
from .models import NO_PARENT, LayerDescriptor, ParsedUrl, ServiceType
from .urls import get_server_root, get_service_url, is_layer_query_url, parse_url

__all__ = [
    "CorruptStructureError",
    "DanglingReferenceError",
    "DuplicateIdError",
    "HierarchyMismatchError",
    "InvalidLayerError",
    "LayerGraphError",
    "MalformedUrlError",
    "NotFoundError",
    "RestViewerError",
    "ServiceRequestError",
    "LayerNode",
    "LayerTree",
    "build_layer_tree",
    "NO_PARENT",
    "LayerDescriptor",
    "ParsedUrl",
    "ServiceType",
    "get_server_root",
    "get_service_url",
    "is_layer_query_url",
    "parse_url",
]
