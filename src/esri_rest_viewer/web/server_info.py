"""
Normalize ArcGIS REST JSON responses for display.

Applied to every nested object of a server, folder, service or layer
response before rendering:

- comma separated capability/format/keyword strings become lists
- folder names and service entries gain absolute ``url`` links
- epoch-millisecond dates become ISO 8601 strings
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Union

from esri_rest_viewer.core.urls import get_server_root

logger = logging.getLogger(__name__)

_LIST_KEY_RE = re.compile(
    r"supported\w+Format\w*|\w*Keywords|capabilities", re.IGNORECASE
)
_LIST_SPLIT_RE = re.compile(r"[,\s]+")


def epoch_ms_to_iso(value: int) -> Union[str, int]:
    """Convert epoch milliseconds to ISO 8601 UTC; leave out-of-range values."""
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        logger.warning("Date value out of range: %s", value)
        return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _revive_value(key: str, value: Any, root: str) -> Any:
    if isinstance(value, str) and _LIST_KEY_RE.fullmatch(key):
        if not value:
            return value
        return [part for part in _LIST_SPLIT_RE.split(value) if part]

    if key == "folders" and isinstance(value, list):
        return [
            {"name": name, "url": f"{root}/{name}"} if isinstance(name, str) else name
            for name in value
        ]

    if key == "services" and isinstance(value, list):
        services = []
        for svc in value:
            if isinstance(svc, dict) and "name" in svc and "type" in svc:
                svc = {**svc, "url": svc.get("url") or f"{root}/{svc['name']}/{svc['type']}"}
            services.append(svc)
        return services

    if key == "timeExtent" and isinstance(value, list):
        return [epoch_ms_to_iso(t) if _is_int(t) else t for t in value]

    if "Date" in key and _is_int(value):
        return epoch_ms_to_iso(value)

    return value


def _revive(value: Any, root: str) -> Any:
    """Apply the key-based conversions bottom-up, like a JSON reviver."""
    if isinstance(value, list):
        return [_revive(item, root) for item in value]
    if isinstance(value, dict):
        return {
            key: _revive_value(key, _revive(item, root), root)
            for key, item in value.items()
        }
    return value


def normalize_server_info(data: Union[str, bytes, dict], url: str) -> dict:
    """
    Normalize a REST response body fetched from ``url``.

    ``data`` may be the raw JSON text or an already decoded dict.
    """
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    return _revive(data, get_server_root(url))
