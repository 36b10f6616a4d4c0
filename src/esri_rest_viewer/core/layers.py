"""
Rebuild the layer hierarchy of a map/feature service.

A service describes its layers as a flat list in which every layer
points at its parent and children by integer id. The builder allocates
every node first, keyed by id, and only then resolves references as
lookups into that table. Any reference to a missing id is an error:
a partial tree would misrepresent the service.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Optional, Union

from pydantic import ValidationError

from .errors import (
    CorruptStructureError,
    DanglingReferenceError,
    DuplicateIdError,
    HierarchyMismatchError,
    InvalidLayerError,
    NotFoundError,
)
from .models import NO_PARENT, LayerDescriptor

logger = logging.getLogger(__name__)


class LayerNode:
    """A layer descriptor with its parent and children resolved."""

    def __init__(self, descriptor: LayerDescriptor, service_url: Optional[str] = None):
        self.descriptor = descriptor
        self.url = f"{service_url}/{descriptor.id}" if service_url else None
        self._parent: Optional["LayerNode"] = None
        self._children: tuple["LayerNode", ...] = ()

    @property
    def id(self) -> int:
        return self.descriptor.id

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def parent_id(self) -> int:
        return self.descriptor.parent_id

    @property
    def sub_layer_ids(self) -> Optional[tuple[int, ...]]:
        return self.descriptor.sub_layer_ids

    @property
    def default_visibility(self) -> bool:
        return self.descriptor.default_visibility

    @property
    def min_scale(self) -> float:
        return self.descriptor.min_scale

    @property
    def max_scale(self) -> float:
        return self.descriptor.max_scale

    @property
    def parent(self) -> Optional["LayerNode"]:
        return self._parent

    @property
    def children(self) -> tuple["LayerNode", ...]:
        return self._children

    @property
    def is_root(self) -> bool:
        return self.parent_id == NO_PARENT

    def to_dict(self, _seen: Optional[set[int]] = None) -> dict:
        """Nested, JSON-serializable form of this node and its descendants."""
        seen = set() if _seen is None else _seen
        if self.id in seen:
            raise CorruptStructureError(self.id)
        seen.add(self.id)
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "parentLayerId": self.parent_id,
            "defaultVisibility": self.default_visibility,
            "minScale": self.min_scale,
            "maxScale": self.max_scale,
            "subLayers": [child.to_dict(seen) for child in self._children],
        }

    def __repr__(self) -> str:
        return f"LayerNode(id={self.id!r}, name={self.name!r})"


class LayerTree:
    """Read-only lookups over a built layer forest."""

    def __init__(self, nodes: dict[int, LayerNode], roots: list[LayerNode]):
        self.nodes = MappingProxyType(dict(nodes))
        self.roots = tuple(roots)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self.nodes

    def get_node(self, layer_id: int) -> LayerNode:
        try:
            return self.nodes[layer_id]
        except KeyError:
            raise NotFoundError(layer_id) from None

    def get_roots(self) -> tuple[LayerNode, ...]:
        return self.roots

    def get_children(self, layer_id: int) -> tuple[LayerNode, ...]:
        return self.get_node(layer_id).children

    def get_parent(self, layer_id: int) -> Optional[LayerNode]:
        return self.get_node(layer_id).parent

    def get_ancestor_chain(self, layer_id: int) -> list[LayerNode]:
        """Nodes from the top-level layer down to ``layer_id``, inclusive."""
        node = self.get_node(layer_id)
        chain = []
        while node is not None:
            if len(chain) >= len(self.nodes):
                raise CorruptStructureError(node.id)
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def walk(self) -> Iterator[LayerNode]:
        """Pre-order traversal of the forest, roots in service order."""
        seen: set[int] = set()
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            if node.id in seen:
                raise CorruptStructureError(node.id)
            seen.add(node.id)
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> list[dict]:
        seen: set[int] = set()
        return [root.to_dict(seen) for root in self.roots]


def build_layer_tree(
    descriptors: Iterable[Union[LayerDescriptor, dict]],
    service_url: Optional[str] = None,
) -> LayerTree:
    """
    Build a layer forest from a service's flat ``layers`` list.

    ``service_url`` is only used to give each node a ``url``.

    Raises InvalidLayerError for an entry that cannot be read,
    DuplicateIdError when two descriptors share an id,
    DanglingReferenceError when a parent or sublayer id is not defined,
    and HierarchyMismatchError when a sublayer listing disagrees with
    the sublayer's parent reference.
    """
    # Pass 1: materialize every node before resolving any reference.
    nodes: dict[int, LayerNode] = {}
    for raw in descriptors:
        if isinstance(raw, LayerDescriptor):
            descriptor = raw
        else:
            try:
                descriptor = LayerDescriptor.model_validate(raw)
            except ValidationError as e:
                layer_id = raw.get("id") if isinstance(raw, dict) else raw
                detail = "; ".join(
                    f"{'.'.join(str(loc) for loc in err['loc']) or 'entry'}: {err['msg']}"
                    for err in e.errors()
                )
                raise InvalidLayerError(layer_id, detail) from e
        if descriptor.id in nodes:
            raise DuplicateIdError(descriptor.id)
        nodes[descriptor.id] = LayerNode(descriptor, service_url)

    # Parent links. Roots keep the service's ordering.
    roots = []
    for node in nodes.values():
        if node.parent_id == NO_PARENT:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is None:
            raise DanglingReferenceError(node.parent_id, referenced_by=node.id)
        node._parent = parent

    # Pass 2: children come only from subLayerIds, in the order given.
    # A listed child must point back at the layer listing it, once.
    claimed: set[int] = set()
    for node in nodes.values():
        if not node.sub_layer_ids:
            continue
        children = []
        for child_id in node.sub_layer_ids:
            child = nodes.get(child_id)
            if child is None:
                raise DanglingReferenceError(child_id, referenced_by=node.id)
            if child.is_root:
                raise HierarchyMismatchError(child_id, node.id, "is a top-level layer")
            if child.parent_id != node.id:
                raise HierarchyMismatchError(
                    child_id, node.id, f"its parent is layer {child.parent_id}"
                )
            if child_id in claimed:
                raise HierarchyMismatchError(
                    child_id, node.id, "is already listed as a sublayer"
                )
            claimed.add(child_id)
            children.append(child)
        node._children = tuple(children)

    logger.debug("Built layer tree: %d layers, %d top-level", len(nodes), len(roots))
    return LayerTree(nodes, roots)
