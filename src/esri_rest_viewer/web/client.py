"""
Fetch JSON from an ArcGIS REST endpoint.

ArcGIS reports most failures as HTTP 200 with an ``{"error": {...}}``
body, so both transport errors and error bodies raise
ServiceRequestError.
"""

import json
import logging
import urllib.error
import urllib.request
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from esri_rest_viewer.core.config import get_settings
from esri_rest_viewer.core.errors import ServiceRequestError

logger = logging.getLogger(__name__)


def json_url(url: str) -> str:
    """Return ``url`` with ``f=json`` set in its query string."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k != "f"]
    query.append(("f", "json"))
    return urlunsplit(parts._replace(query=urlencode(query)))


def fetch_json(url: str) -> dict:
    """GET ``url`` as JSON. Raises ServiceRequestError on any failure."""
    settings = get_settings()
    request_url = json_url(url)
    req = urllib.request.Request(
        request_url, headers={"User-Agent": settings.user_agent}
    )
    logger.info("Fetching %s", request_url)
    try:
        with urllib.request.urlopen(req, timeout=settings.request_timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        logger.warning("HTTP %d from %s", e.code, request_url)
        raise ServiceRequestError(url, f"HTTP {e.code} {e.reason}", code=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        logger.warning("Request to %s failed: %s", request_url, e)
        raise ServiceRequestError(url, f"Request failed: {e}") from e

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ServiceRequestError(url, "Response is not valid JSON") from e

    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error = data["error"]
        message = error.get("message") or "Service returned an error"
        details = error.get("details") or []
        if details:
            message += ": " + "; ".join(str(d) for d in details)
        raise ServiceRequestError(url, message, code=error.get("code"))

    if not isinstance(data, dict):
        raise ServiceRequestError(url, "Response is not a JSON object")
    return data
