from __future__ import annotations

import json
from pathlib import Path

from secure_viewer.viewer_config import (
    SETTINGS_ENV_VAR,
    ViewerSettings,
    load_viewer_settings,
    resolve_settings_path,
)


def test_missing_file_returns_defaults(tmp_path: Path) -> None:
    assert load_viewer_settings(tmp_path / "absent.json") == ViewerSettings()


def test_malformed_json_returns_defaults(tmp_path: Path) -> None:
    path = tmp_path / "viewer_settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_viewer_settings(path) == ViewerSettings()


def test_non_object_returns_defaults(tmp_path: Path) -> None:
    path = tmp_path / "viewer_settings.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_viewer_settings(path) == ViewerSettings()


def test_values_are_read_and_clamped(tmp_path: Path) -> None:
    path = tmp_path / "viewer_settings.json"
    path.write_text(
        json.dumps(
            {
                "readiness_tick_ms": 5,
                "readiness_min_step": 2,
                "readiness_max_step": 1,
                "watermark_interval_ms": "30000",
                "watermark_transition_ms": -4,
                "pulse_ms": 1500,
                "devtools_threshold_px": 200,
                "alert_window_title": "  Hidden  ",
                "log_retention": 0,
                "audit_capacity": 10,
            }
        ),
        encoding="utf-8",
    )
    settings = load_viewer_settings(path)
    assert settings.readiness_tick_ms == 10
    assert settings.readiness_min_step == 2.0
    assert settings.readiness_max_step == 2.0
    assert settings.watermark_interval_ms == 30_000
    assert settings.watermark_transition_ms == 0
    assert settings.pulse_ms == 1500
    assert settings.devtools_threshold_px == 200
    assert settings.alert_window_title == "Hidden"
    assert settings.log_retention == 1
    assert settings.audit_capacity == 10


def test_invalid_types_fall_back_per_field(tmp_path: Path) -> None:
    path = tmp_path / "viewer_settings.json"
    path.write_text(
        json.dumps({"pulse_ms": "soon", "devtools_threshold_px": True, "alert_window_title": 7, "watermark_interval_ms": 60000}),
        encoding="utf-8",
    )
    settings = load_viewer_settings(path)
    defaults = ViewerSettings()
    assert settings.pulse_ms == defaults.pulse_ms
    assert settings.devtools_threshold_px == defaults.devtools_threshold_px
    assert settings.alert_window_title == defaults.alert_window_title
    assert settings.watermark_interval_ms == 60_000


def test_resolve_settings_path_prefers_cli_then_env(tmp_path: Path, monkeypatch) -> None:
    cli = tmp_path / "cli.json"
    env = tmp_path / "env.json"
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(env))
    assert resolve_settings_path(str(cli)) == cli.resolve()
    assert resolve_settings_path(None) == env.resolve()
    monkeypatch.delenv(SETTINGS_ENV_VAR)
    monkeypatch.chdir(tmp_path)
    assert resolve_settings_path(None) == (tmp_path / "viewer_settings.json").resolve()
