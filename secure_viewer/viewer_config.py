"""Configuration helpers for the secure viewer."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

SETTINGS_ENV_VAR = "SECURE_VIEWER_SETTINGS"
SETTINGS_FILE_NAME = "viewer_settings.json"


@dataclass(frozen=True)
class ViewerSettings:
    """Timing and presentation values for one viewing surface."""

    readiness_tick_ms: int = 200
    readiness_min_step: float = 1.0
    readiness_max_step: float = 15.0
    watermark_interval_ms: int = 45_000
    watermark_transition_ms: int = 5_000
    pulse_ms: int = 2_000
    devtools_threshold_px: int = 160
    alert_window_title: str = "SECURITY ALERT"
    log_retention: int = 5
    audit_capacity: int = 256


def resolve_settings_path(cli_path: Optional[str]) -> Path:
    if cli_path:
        return Path(cli_path).expanduser().resolve()
    env_override = os.getenv(SETTINGS_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    return (Path.cwd() / SETTINGS_FILE_NAME).resolve()


def _int(value: Any, fallback: int, *, minimum: int) -> int:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, numeric)


def _float(value: Any, fallback: float, *, minimum: float) -> float:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, numeric)


def settings_from_mapping(data: Dict[str, Any]) -> ViewerSettings:
    defaults = ViewerSettings()
    min_step = _float(data.get("readiness_min_step"), defaults.readiness_min_step, minimum=0.1)
    max_step = _float(data.get("readiness_max_step"), defaults.readiness_max_step, minimum=min_step)
    title = data.get("alert_window_title")
    if not isinstance(title, str) or not title.strip():
        title = defaults.alert_window_title
    return ViewerSettings(
        readiness_tick_ms=_int(data.get("readiness_tick_ms"), defaults.readiness_tick_ms, minimum=10),
        readiness_min_step=min_step,
        readiness_max_step=max_step,
        watermark_interval_ms=_int(data.get("watermark_interval_ms"), defaults.watermark_interval_ms, minimum=1_000),
        watermark_transition_ms=_int(data.get("watermark_transition_ms"), defaults.watermark_transition_ms, minimum=0),
        pulse_ms=_int(data.get("pulse_ms"), defaults.pulse_ms, minimum=100),
        devtools_threshold_px=_int(data.get("devtools_threshold_px"), defaults.devtools_threshold_px, minimum=0),
        alert_window_title=title.strip(),
        log_retention=_int(data.get("log_retention"), defaults.log_retention, minimum=1),
        audit_capacity=_int(data.get("audit_capacity"), defaults.audit_capacity, minimum=1),
    )


def load_viewer_settings(settings_path: Path) -> ViewerSettings:
    """Read viewer_settings.json if it exists; fall back to defaults on any problem."""
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return ViewerSettings()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return ViewerSettings()
    if not isinstance(data, dict):
        return ViewerSettings()
    return settings_from_mapping(data)
