from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from secure_viewer.version import is_dev_build

ROOT_LOGGER_NAME = "SecureViewer"
LOG_FILE_NAME = "secure-viewer.log"
PROPAGATE_ENV_VAR = "SECURE_VIEWER_PROPAGATE_LOGS"
LOG_DIR_ENV_VAR = "SECURE_VIEWER_LOG_DIR"
_MAX_LOG_BYTES = 512 * 1024


class _ReleaseLogLevelFilter(logging.Filter):
    """Promote debug logs to INFO in release builds so diagnostics stay visible."""

    def __init__(self, release_mode: bool) -> None:
        super().__init__()
        self._release_mode = release_mode

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - logging shim
        if self._release_mode and record.levelno == logging.DEBUG:
            record.levelno = logging.INFO
            record.levelname = "INFO"
        return True


def get_logger(suffix: Optional[str] = None) -> logging.Logger:
    """Return a logger under the SecureViewer namespace."""
    name = ROOT_LOGGER_NAME if not suffix else f"{ROOT_LOGGER_NAME}.{suffix}"
    return logging.getLogger(name)


def resolve_logs_dir(base_path: Path, log_dir_name: str = "SecureViewer") -> Path:
    """
    Resolve the directory to store viewer logs.

    Strategy:
    - Use SECURE_VIEWER_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    The package directory is avoided so logs never land inside an install tree.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home / "secure-viewer" / "logs")
    candidates.append(cache_home / "secure-viewer" / "logs")
    candidates.append(Path.cwd() / "logs")

    resolved_base = base_path.resolve()
    for base in candidates:
        target = base / log_dir_name
        if resolved_base in target.resolve().parents:
            continue
        try:
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = _MAX_LOG_BYTES,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO


def configure_viewer_logging(base_path: Path, *, retention: int = 5) -> logging.Logger:
    """Attach the rotating file handler and release filter to the root viewer logger.

    Falls back to a stream handler when the log file cannot be opened.
    """
    debug_enabled = is_dev_build()
    logger = get_logger()
    logger.setLevel(resolve_log_level(debug_enabled))
    logger.propagate = os.environ.get(PROPAGATE_ENV_VAR, "").lower() in {"1", "true", "yes", "on"}
    for existing in list(logger.filters):
        if isinstance(existing, _ReleaseLogLevelFilter):
            logger.removeFilter(existing)
    logger.addFilter(_ReleaseLogLevelFilter(release_mode=not debug_enabled))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    logs_dir = resolve_logs_dir(base_path)
    try:
        handler = build_rotating_file_handler(logs_dir, LOG_FILE_NAME, retention=retention, formatter=formatter)
    except OSError as exc:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)
        logger.warning("Failed to initialise file logging in %s: %s", logs_dir, exc)
        return logger

    logger.addHandler(handler)
    logger.debug(
        "Viewer logging initialised: dir=%s retention=%d max_bytes=%d",
        logs_dir,
        retention,
        _MAX_LOG_BYTES,
    )
    return logger
