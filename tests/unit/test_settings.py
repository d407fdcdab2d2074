"""
Tests for persisted application settings.
"""

import json
import logging
from pathlib import Path

import pytest

from instafilter.core.parameters import ParameterMode, ParameterSet
from instafilter.core.settings import AppSettings, load_settings, save_settings


class TestAppSettings:
    """Tests for the settings dataclass."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.default_filter == "sepia_tone"
        assert settings.parameter_mode is ParameterMode.INDEPENDENT
        assert settings.output_format == "png"
        assert settings.initial_parameters() == ParameterSet()

    def test_slider_values_are_clamped(self):
        settings = AppSettings(intensity=4.0, radius=-10.0, scale=50.0)
        assert settings.intensity == 1.0
        assert settings.radius == 0.0
        assert settings.scale == 10.0

    def test_unknown_filter_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = AppSettings(default_filter="posterize")
        assert settings.default_filter == "sepia_tone"
        assert "posterize" in caplog.text

    def test_unknown_output_format_falls_back(self):
        assert AppSettings(output_format="tiff").output_format == "png"
        assert AppSettings(output_format="JPEG").output_format == "jpeg"

    def test_log_level_normalised(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"
        assert AppSettings(log_level="chatty").log_level == "INFO"

    def test_library_dir_expands_user(self):
        settings = AppSettings(library_dir=Path("~/photos"))
        assert "~" not in str(settings.library_dir)

    def test_dict_round_trip(self, tmp_path):
        settings = AppSettings(
            default_filter="vignette",
            intensity=0.8,
            radius=42.0,
            parameter_mode=ParameterMode.LINKED,
            library_dir=tmp_path,
            output_format="webp",
        )
        restored = AppSettings.from_dict(settings.to_dict())
        assert restored == settings

    def test_from_dict_unknown_mode(self):
        settings = AppSettings.from_dict({"parameter_mode": "sideways"})
        assert settings.parameter_mode is ParameterMode.INDEPENDENT


class TestLoadSave:
    """Tests for reading and writing the settings file."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "missing.json") == AppSettings()

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        settings = AppSettings(default_filter="pixellate", scale=2.0, library_dir=tmp_path)

        assert save_settings(settings, path) == path
        assert json.loads(path.read_text())["default_filter"] == "pixellate"
        assert load_settings(path) == settings

    def test_corrupt_file_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING):
            assert load_settings(path) == AppSettings()
        assert "Failed to load settings" in caplog.text

    @pytest.mark.parametrize(
        "data",
        [
            {"log_level": None},
            {"log_level": 10},
            {"output_format": None},
            {"output_format": 5},
            {"default_filter": ["edges"]},
        ],
    )
    def test_wrong_value_types_give_defaults(self, tmp_path, data):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(data))

        settings = load_settings(path)

        assert settings.log_level == "INFO"
        assert settings.output_format == "png"
        assert settings.default_filter == "sepia_tone"

    def test_nan_slider_value_gives_default(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"radius": NaN, "intensity": 0.7}')

        settings = load_settings(path)

        assert settings.radius == 100.0
        assert settings.intensity == 0.7

    def test_non_object_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]")
        assert load_settings(path) == AppSettings()
