"""
Exception taxonomy for the viewer core.

Nothing here is retried: the core does no network I/O, so every error
identifies a defect in the input (a URL or a service payload) or in the
caller (an id that was never in the tree).
"""


class RestViewerError(Exception):
    """Base class for all viewer errors."""


class MalformedUrlError(RestViewerError, ValueError):
    """The URL has no recognizable ``/arcgis/rest`` service-root anchor."""

    def __init__(self, url: str, expected: str):
        self.url = url
        self.expected = expected
        super().__init__(
            f"Unexpected URL format. {url} does not match {expected}"
        )


class LayerGraphError(RestViewerError, ValueError):
    """The layer list returned by a service is internally inconsistent."""


class DanglingReferenceError(LayerGraphError):
    """A parent or sublayer reference names a layer id that is not present."""

    def __init__(self, layer_id: int, referenced_by: int | None = None):
        self.layer_id = layer_id
        self.referenced_by = referenced_by
        msg = f"Layer {layer_id} is referenced but not defined"
        if referenced_by is not None:
            msg += f" (referenced by layer {referenced_by})"
        super().__init__(msg)


class DuplicateIdError(LayerGraphError):
    def __init__(self, layer_id: int):
        self.layer_id = layer_id
        super().__init__(f"Layer id {layer_id} is defined more than once")


class CorruptStructureError(LayerGraphError):
    """A cycle was found while walking a built layer tree."""

    def __init__(self, layer_id: int):
        self.layer_id = layer_id
        super().__init__(f"Cycle detected in layer tree at layer {layer_id}")


class NotFoundError(RestViewerError, LookupError):
    def __init__(self, layer_id: int):
        self.layer_id = layer_id
        super().__init__(f"Layer {layer_id} not found")


class ServiceRequestError(RestViewerError):
    """Fetching a REST resource failed or the server returned an error body."""

    def __init__(self, url: str, message: str, code: int | None = None):
        self.url = url
        self.code = code
        super().__init__(f"{message} ({url})")


class InvalidLayerError(LayerGraphError):
    """A layer entry is missing its id or holds an unreadable reference."""

    def __init__(self, layer_id, detail: str):
        self.layer_id = layer_id
        super().__init__(f"Invalid layer entry {layer_id!r}: {detail}")


class HierarchyMismatchError(LayerGraphError):
    """A sublayer listing disagrees with the sublayer's own parent reference."""

    def __init__(self, layer_id: int, referenced_by: int, reason: str):
        self.layer_id = layer_id
        self.referenced_by = referenced_by
        super().__init__(
            f"Layer {layer_id} listed as a sublayer of layer {referenced_by} but {reason}"
        )
