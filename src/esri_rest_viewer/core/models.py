"""
Pydantic models shared by the URL grammar, the layer tree builder and
the web layer.

These are plain value objects: they carry no behavior beyond
normalizing the raw REST payload and a few derived read-only helpers.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, model_validator

# parentLayerId value ArcGIS uses for top-level layers
NO_PARENT = -1


class ServiceType(str, Enum):
    """Service types the URL grammar understands."""

    MAP = "MapServer"
    FEATURE = "FeatureServer"
    GP = "GPServer"

    @classmethod
    def from_segment(cls, segment: str) -> Optional["ServiceType"]:
        """Match a URL path segment case-insensitively, or return None."""
        lowered = segment.lower()
        for member in cls:
            if member.value.lower() == lowered:
                return member
        return None

    @property
    def has_layers(self) -> bool:
        return self in (ServiceType.MAP, ServiceType.FEATURE)


class ParsedUrl(BaseModel):
    """The hierarchy of REST resource URLs recovered from one input URL."""

    model_config = {"frozen": True}

    root: str
    folder: Optional[str] = None
    service: Optional[str] = None
    layer: Optional[str] = None
    tool: Optional[str] = None

    @model_validator(mode="after")
    def _check_levels(self) -> "ParsedUrl":
        if self.layer is not None and self.tool is not None:
            raise ValueError("layer and tool are mutually exclusive")
        if self.service is None and (self.layer or self.tool):
            raise ValueError("layer and tool require a service")
        if self.folder is not None and not self.folder.startswith(self.root + "/"):
            raise ValueError(f"folder {self.folder} is not under {self.root}")
        parent = self.folder or self.root
        if self.service is not None and not self.service.startswith(parent + "/"):
            raise ValueError(f"service {self.service} is not under {parent}")
        for child in (self.layer, self.tool):
            if child is not None and not child.startswith(self.service + "/"):
                raise ValueError(f"{child} is not under {self.service}")
        return self

    @property
    def service_type(self) -> Optional[ServiceType]:
        if self.service is None:
            return None
        return ServiceType.from_segment(self.service.rsplit("/", 1)[-1])

    @property
    def layer_id(self) -> Optional[int]:
        if self.layer is None:
            return None
        return int(self.layer.rsplit("/", 1)[-1])

    def links(self) -> list[tuple[str, str]]:
        """(part name, url) for every level present, root first."""
        parts = [
            ("root", self.root),
            ("folder", self.folder),
            ("service", self.service),
            ("layer", self.layer),
            ("tool", self.tool),
        ]
        return [(name, url) for name, url in parts if url is not None]


def _reference_id(value: Any) -> Any:
    """Sublayer/parent references are either ints or ``{"id": ...}`` objects.

    An object without an ``id`` is passed through unchanged so that field
    validation rejects it instead of reading it as "no parent".
    """
    if isinstance(value, dict):
        return value.get("id", value)
    return value


class LayerDescriptor(BaseModel):
    """One entry of a map/feature service ``layers`` array.

    Accepts both shapes ArcGIS returns:

    - ``/MapServer``: ``parentLayerId`` (-1 for none) and ``subLayerIds``
      as a list of ints or null.
    - ``/MapServer/layers``: ``parentLayer`` as ``{"id", "name"}`` or null,
      and ``subLayers`` as a list of ``{"id", "name"}`` objects.
    """

    model_config = {"frozen": True}

    id: int
    name: str = ""
    parent_id: int = NO_PARENT
    sub_layer_ids: Optional[tuple[int, ...]] = None
    default_visibility: bool = True
    min_scale: float = 0
    max_scale: float = 0

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "parent_id" in data:
            return data

        parent_id = NO_PARENT
        for key in ("parentLayerId", "parentId", "parentLayer"):
            if key in data:
                value = _reference_id(data[key])
                parent_id = NO_PARENT if value is None else value
                break

        sub_ids = data.get("subLayerIds")
        if sub_ids is None:
            sub_ids = data.get("subLayers")
        if sub_ids is not None:
            sub_ids = [_reference_id(item) for item in sub_ids]

        normalized = {
            "id": data.get("id"),
            "name": data.get("name", ""),
            "parent_id": parent_id,
            "sub_layer_ids": sub_ids,
        }
        for src, dest in (
            ("defaultVisibility", "default_visibility"),
            ("minScale", "min_scale"),
            ("maxScale", "max_scale"),
        ):
            if data.get(src) is not None:
                normalized[dest] = data[src]
        return normalized
