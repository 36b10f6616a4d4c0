"""
Viewer settings.

Reads YAML from the file named by the REST_VIEWER_CONFIG env var
(default config/viewer.yml). A missing file means all defaults.

Supports ${ENV_VAR} interpolation in YAML string values.
"""

import os
import re
from typing import Optional

import yaml
from pydantic import BaseModel

_settings = None

_ENV_RE = re.compile(r"\$\{(\w+)\}")


class ViewerSettings(BaseModel):
    request_timeout: float = 10.0  # seconds, upstream fetches
    user_agent: str = "esri-rest-viewer"
    default_url: Optional[str] = None  # pre-fills the start form
    log_level: str = "INFO"
    slow_request_seconds: float = 1.0


def _resolve_env_vars(value):
    """Replace ${VAR} placeholders with environment variable values."""
    if isinstance(value, str):
        return _ENV_RE.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)), value
        )
    return value


def load_settings(config_path: str) -> ViewerSettings:
    if not os.path.exists(config_path):
        return ViewerSettings()
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}
    viewer_config = {
        k: _resolve_env_vars(v) for k, v in config.get("viewer", {}).items()
    }
    return ViewerSettings(**viewer_config)


def get_settings() -> ViewerSettings:
    """Singleton settings instance."""
    global _settings
    if _settings is None:
        config_path = os.environ.get("REST_VIEWER_CONFIG", "config/viewer.yml")
        _settings = load_settings(config_path)
    return _settings


def set_settings(settings: ViewerSettings):
    """Override the settings instance (used for testing)."""
    global _settings
    _settings = settings


def reset_settings():
    """Reset the singleton settings (used for testing)."""
    global _settings
    _settings = None
