"""
Instafilter - Main Entry Point

This module provides the main entry point for the application.
"""

import argparse
import logging
import sys
from pathlib import Path

from instafilter.core.settings import CONFIG_PATH, LOG_LEVELS, load_settings

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="instafilter",
        description="Pick a photo, apply a filter and save it to your photo library.",
    )
    parser.add_argument(
        "image",
        nargs="?",
        type=Path,
        help="Photo to open on startup",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help=f"Settings file (default: {CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: from settings)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Instafilter.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    # Ensure we're running Python 3.11+
    if sys.version_info < (3, 11):
        print("Error: Instafilter requires Python 3.11 or later")
        return 1

    args = build_parser().parse_args(argv)

    settings = load_settings(args.config)
    setup_logging(args.log_level or settings.log_level)

    # Import Qt here to avoid import overhead if just parsing arguments
    from PySide6.QtWidgets import QApplication

    from instafilter.ui.main_window import MainWindow

    # Create application instance
    app = QApplication(sys.argv[:1])
    app.setApplicationName("Instafilter")
    app.setApplicationVersion("0.1.0")
    app.setOrganizationName("Instafilter")

    window = MainWindow(settings, config_path=args.config)
    window.show()

    if args.image is not None:
        window.load_path(args.image)

    logger.debug("Entering event loop")
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
