"""
Settings - Persisted application configuration.

Settings are stored as JSON under ~/.config/instafilter/settings.json and
control the initial filter and slider values, how sliders map onto filter
inputs, and where saved images go.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from instafilter.core.parameters import ParameterKind, ParameterMode, ParameterSet, clamp
from instafilter.filters.filter_registry import DEFAULT_FILTER_ID, get_filter

logger = logging.getLogger(__name__)


CONFIG_PATH = Path.home() / ".config" / "instafilter" / "settings.json"
DEFAULT_LIBRARY_DIR = Path.home() / "Pictures" / "Instafilter"

OUTPUT_FORMATS = ("png", "jpeg", "webp")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AppSettings:
    """
    Application settings.

    These settings are loaded once at startup and saved when the
    window closes.
    """
    # Engine defaults
    default_filter: str = DEFAULT_FILTER_ID
    intensity: float = 0.5
    radius: float = 100.0
    scale: float = 5.0
    parameter_mode: ParameterMode = ParameterMode.INDEPENDENT

    # Output settings
    library_dir: Path = field(default_factory=lambda: DEFAULT_LIBRARY_DIR)
    output_format: str = "png"
    output_quality: int = 95

    # Diagnostics
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.intensity = clamp(ParameterKind.INTENSITY, self.intensity)
        self.radius = clamp(ParameterKind.RADIUS, self.radius)
        self.scale = clamp(ParameterKind.SCALE, self.scale)

        if not isinstance(self.default_filter, str) or get_filter(self.default_filter) is None:
            logger.warning("Unknown default filter %r, using %s", self.default_filter, DEFAULT_FILTER_ID)
            self.default_filter = DEFAULT_FILTER_ID

        output_format = str(self.output_format).lower()
        if output_format not in OUTPUT_FORMATS:
            logger.warning("Unsupported output format %r, using png", self.output_format)
            output_format = "png"
        self.output_format = output_format

        log_level = str(self.log_level).upper()
        if log_level not in LOG_LEVELS:
            logger.warning("Unknown log level %r, using INFO", self.log_level)
            log_level = "INFO"
        self.log_level = log_level

        self.library_dir = Path(self.library_dir).expanduser()

    def initial_parameters(self) -> ParameterSet:
        """Slider values a new session starts with."""
        return ParameterSet.create(
            intensity=self.intensity,
            radius=self.radius,
            scale=self.scale,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "default_filter": self.default_filter,
            "intensity": self.intensity,
            "radius": self.radius,
            "scale": self.scale,
            "parameter_mode": self.parameter_mode.value,
            "library_dir": str(self.library_dir),
            "output_format": self.output_format,
            "output_quality": self.output_quality,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        """Create settings from dictionary."""
        try:
            mode = ParameterMode(data.get("parameter_mode", "independent"))
        except ValueError:
            logger.warning("Unknown parameter mode %r", data.get("parameter_mode"))
            mode = ParameterMode.INDEPENDENT

        return cls(
            default_filter=data.get("default_filter", DEFAULT_FILTER_ID),
            intensity=float(data.get("intensity", 0.5)),
            radius=float(data.get("radius", 100.0)),
            scale=float(data.get("scale", 5.0)),
            parameter_mode=mode,
            library_dir=Path(data["library_dir"]) if data.get("library_dir") else DEFAULT_LIBRARY_DIR,
            output_format=data.get("output_format", "png"),
            output_quality=int(data.get("output_quality", 95)),
            log_level=data.get("log_level", "INFO"),
        )


def load_settings(path: Path | None = None) -> AppSettings:
    """
    Load settings from disk.

    A missing file gives the defaults. An unreadable or malformed file is
    logged and also gives the defaults, so a bad config never prevents the
    application from starting.
    """
    if path is None:
        path = CONFIG_PATH

    if not path.exists():
        return AppSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings must be a JSON object")
        return AppSettings.from_dict(data)
    except (OSError, ValueError, TypeError, AttributeError) as e:
        logger.warning("Failed to load settings from %s: %s", path, e)
        return AppSettings()


def save_settings(settings: AppSettings, path: Path | None = None) -> Path:
    """Save settings to disk, creating the config directory if needed."""
    if path is None:
        path = CONFIG_PATH

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)

    return path
