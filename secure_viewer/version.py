"""Version metadata for the secure viewer."""
from __future__ import annotations

import os
from typing import Optional

from packaging.version import InvalidVersion, Version

__version__ = "0.3.0"

DEV_MODE_ENV_VAR = "SECURE_VIEWER_DEV_MODE"


def _env_override() -> Optional[bool]:
    value = os.getenv(DEV_MODE_ENV_VAR)
    if value is None:
        return None
    token = value.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return None


def is_dev_build(version: Optional[str] = None) -> bool:
    """Return True when running a development build or when dev mode is forced via env."""
    forced = _env_override()
    if forced is not None:
        return forced
    raw = (version or __version__).strip()
    if raw.endswith("-dev"):
        return True
    try:
        parsed = Version(raw)
    except InvalidVersion:
        return False
    return parsed.is_devrelease or parsed.is_prerelease
