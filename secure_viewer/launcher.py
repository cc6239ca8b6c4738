from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import QApplication

from secure_viewer.identity import ViewerIdentity, ViewerIdentityError
from secure_viewer.logging_utils import configure_viewer_logging
from secure_viewer.version import DEV_MODE_ENV_VAR, __version__, is_dev_build
from secure_viewer.viewer_config import load_viewer_settings, resolve_settings_path
from secure_viewer.viewer_widget import SecureViewerWidget

PACKAGE_DIR = Path(__file__).resolve().parent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Secure lesson viewer")
    parser.add_argument("--viewer-id", required=True, help="Account id supplied by the session service")
    parser.add_argument("--display-name", required=True, help="Viewer display name shown in the watermark")
    parser.add_argument("--student-number", help="Student number shown in the watermark")
    parser.add_argument("--media", required=True, help="Opaque media handle from the content service")
    parser.add_argument("--title", default="Lesson", help="Lesson title")
    parser.add_argument("--settings", help="Path to viewer_settings.json")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings_path = resolve_settings_path(args.settings)
    settings = load_viewer_settings(settings_path)
    logger = configure_viewer_logging(PACKAGE_DIR, retention=settings.log_retention)
    if not is_dev_build():
        logger.debug("Release mode; export %s=1 for debug logging.", DEV_MODE_ENV_VAR)

    try:
        identity = ViewerIdentity(
            id=args.viewer_id,
            display_name=args.display_name,
            student_number=args.student_number or None,
        )
    except ViewerIdentityError as exc:
        logger.error("Refusing to start viewer: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logger.info("Starting secure viewer %s (pid=%s)", __version__, os.getpid())
    logger.debug("Loaded settings from %s: %s", settings_path, settings)

    app = QApplication(sys.argv[:1])
    window = SecureViewerWidget(identity, args.media, args.title, settings=settings)
    window.resize(1280, 720)
    window.show()

    exit_code = app.exec()
    window.unmount()
    logger.info("Secure viewer exiting with code %s", exit_code)
    return int(exit_code)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
