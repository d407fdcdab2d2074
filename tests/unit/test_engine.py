"""
Tests for the filter engine.
"""

import numpy as np
import pytest
from PIL import Image
from unittest.mock import MagicMock

from instafilter.core.data_types import ImageData
from instafilter.core.engine import EngineState, FilterEngine, apply_filter_to_file
from instafilter.core.errors import FilterRenderError, NoOutputError, NothingToSaveError
from instafilter.core.parameters import ParameterKind, ParameterMode, ParameterSet, clamp
from instafilter.core.settings import AppSettings
from instafilter.filters.filter_registry import get_filter, list_filters
from instafilter.filters.pillow_runner import PillowRunner


class RecordingRunner(PillowRunner):
    """PillowRunner that remembers every configure/render call."""

    def __init__(self):
        super().__init__()
        self.configure_calls: list[tuple[str, dict[str, float]]] = []
        self.render_calls: list[str] = []

    def configure(self, filter_id, values):
        self.configure_calls.append((filter_id, dict(values)))
        super().configure(filter_id, values)

    def render(self, filter_id, image):
        self.render_calls.append(filter_id)
        return super().render(filter_id, image)


class FailingRunner(RecordingRunner):
    """Runner whose renders fail once `failing` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def render(self, filter_id, image):
        if self.failing:
            self.render_calls.append(filter_id)
            raise FilterRenderError(f"{filter_id}: filter produced no output")
        return super().render(filter_id, image)


class TestInitialState:
    """A new engine is empty with Sepia Tone selected."""

    def test_defaults(self):
        engine = FilterEngine()
        assert engine.state_name == "empty"
        assert engine.current_filter.name == "Sepia Tone"
        assert engine.parameters == ParameterSet()
        assert engine.source_image is None
        assert engine.output_image is None

    def test_from_settings(self):
        settings = AppSettings(default_filter="vignette", intensity=0.9, parameter_mode=ParameterMode.LINKED)
        engine = FilterEngine.from_settings(settings)
        assert engine.current_filter.id == "vignette"
        assert engine.parameters.intensity == 0.9
        assert engine.mode is ParameterMode.LINKED


class TestLoadImage:
    """Tests for load_image."""

    def test_load_renders_output(self, photo):
        engine = FilterEngine()
        assert engine.load_image(photo) is None
        assert engine.state_name == "loaded"
        assert engine.output_image is not None
        assert engine.output_image.size == photo.size

    def test_load_none_is_noop(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.load_image(photo)
        before = engine.state
        calls = len(runner.render_calls)

        assert engine.load_image(None) is None

        after = engine.state
        assert len(runner.render_calls) == calls
        assert after.current_filter == before.current_filter
        assert after.parameters == before.parameters
        assert np.array_equal(after.source_image.pixels, before.source_image.pixels)
        assert np.array_equal(after.output_image.pixels, before.output_image.pixels)

    def test_load_none_on_empty_engine(self):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.load_image(None)
        assert engine.state_name == "empty"
        assert runner.render_calls == []

    def test_load_keeps_filter_and_parameters(self, photo):
        engine = FilterEngine()
        engine.select_filter("gaussian_blur")
        engine.update_parameter(ParameterKind.RADIUS, 12)
        engine.load_image(photo)
        assert engine.current_filter.id == "gaussian_blur"
        assert engine.parameters.radius == 12

    def test_engine_owns_source_buffer(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        photo.pixels[:] = 0.0
        assert engine.source_image.pixels.max() > 0.0

    def test_new_image_replaces_source(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        other = ImageData.empty(10, 20)
        engine.load_image(other)
        assert engine.source_image.size == (10, 20)
        assert engine.output_image.size == (10, 20)


class TestSelectFilter:
    """Tests for select_filter."""

    def test_without_image_stores_selection_only(self):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        assert engine.select_filter("pixellate") is None
        assert engine.current_filter.id == "pixellate"
        assert runner.render_calls == []
        assert engine.output_image is None

    def test_with_image_recomputes(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.load_image(photo)
        engine.select_filter(get_filter("edges"))
        assert runner.render_calls[-1] == "edges"
        assert engine.output_image.metadata.filter_id == "edges"

    def test_does_not_mutate_parameters(self):
        engine = FilterEngine()
        engine.update_parameter(ParameterKind.INTENSITY, 0.8)
        engine.select_filter("Sepia Tone")
        engine.select_filter("Gaussian Blur")
        engine.select_filter("Sepia Tone")
        assert engine.parameters.intensity == 0.8

    def test_unknown_filter_raises(self):
        engine = FilterEngine()
        with pytest.raises(KeyError):
            engine.select_filter("Posterize")
        assert engine.current_filter.name == "Sepia Tone"


class TestUpdateParameter:
    """Tests for update_parameter."""

    def test_clamps_to_domain(self):
        engine = FilterEngine()
        engine.update_parameter(ParameterKind.RADIUS, 500)
        engine.update_parameter(ParameterKind.SCALE, -3)
        engine.update_parameter("intensity", 1.7)
        assert engine.parameters.radius == 200.0
        assert engine.parameters.scale == 0.0
        assert engine.parameters.intensity == 1.0

    def test_nan_keeps_configuration_in_domain(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner, initial_filter="gaussian_blur")
        engine.load_image(photo)
        assert engine.update_parameter(ParameterKind.RADIUS, float("nan")) is None

        radius = runner.configuration("gaussian_blur")["radius"]
        assert 0.0 <= radius <= 200.0
        assert engine.parameters.radius == 100.0

    def test_unknown_kind_raises(self):
        engine = FilterEngine()
        with pytest.raises(ValueError):
            engine.update_parameter("angle", 1.0)

    def test_empty_engine_does_not_render(self):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.update_parameter(ParameterKind.INTENSITY, 0.9)
        assert runner.render_calls == []
        assert engine.output_image is None

    def test_empty_then_load_scenario(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.update_parameter(ParameterKind.INTENSITY, 0.9)
        assert engine.output_image is None

        engine.load_image(photo)
        assert engine.output_image is not None
        assert runner.configuration("sepia_tone")["intensity"] == 0.9

    def test_gaussian_blur_radius_scenario(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        engine.load_image(photo)
        engine.select_filter("Gaussian Blur")
        engine.update_parameter(ParameterKind.RADIUS, 150)

        assert runner.configuration("gaussian_blur") == {"radius": 150.0}
        assert runner.configure_calls[-1] == ("gaussian_blur", {"radius": 150.0})


class TestRenderConfiguration:
    """Only supported kinds reach the render capability."""

    @pytest.mark.parametrize("descriptor", list_filters(), ids=lambda d: d.id)
    def test_unsupported_keys_stay_at_default(self, photo, descriptor):
        runner = RecordingRunner()
        engine = FilterEngine(runner, initial_filter=descriptor)
        engine.load_image(photo)

        engine.update_parameter(ParameterKind.INTENSITY, 0.3)
        engine.update_parameter(ParameterKind.RADIUS, 7)
        engine.update_parameter(ParameterKind.SCALE, 2)

        config = runner.configuration(descriptor.id)
        for kind in ParameterKind:
            if not descriptor.supports(kind):
                assert kind.key not in config
        for _, values in runner.configure_calls:
            assert set(values) == {k.key for k in descriptor.supported_parameters}

    @pytest.mark.parametrize("descriptor", list_filters(), ids=lambda d: d.id)
    @pytest.mark.parametrize(
        "kind, value",
        [
            (ParameterKind.INTENSITY, 0.7),
            (ParameterKind.INTENSITY, 3.0),
            (ParameterKind.RADIUS, 150.0),
            (ParameterKind.RADIUS, -5.0),
            (ParameterKind.SCALE, 4.0),
            (ParameterKind.SCALE, 25.0),
        ],
    )
    def test_supported_key_equals_clamped_value(self, photo, descriptor, kind, value):
        runner = RecordingRunner()
        engine = FilterEngine(runner, initial_filter=descriptor)
        engine.load_image(photo)
        engine.update_parameter(kind, value)

        config = runner.configuration(descriptor.id)
        if descriptor.supports(kind):
            assert config[kind.key] == clamp(kind, value)
        else:
            assert kind.key not in config

    def test_render_configuration_lists_supported_kinds(self):
        engine = FilterEngine(initial_filter="unsharp_mask", parameters=ParameterSet.create(intensity=0.2, radius=3))
        assert engine.render_configuration() == {"intensity": 0.2, "radius": 3.0}

    def test_linked_mode_derives_radius_and_scale(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner, mode=ParameterMode.LINKED)
        engine.update_parameter(ParameterKind.INTENSITY, 0.5)
        engine.update_parameter(ParameterKind.RADIUS, 10)
        engine.select_filter("gaussian_blur")
        assert engine.render_configuration() == {"radius": 100.0}

        engine.select_filter("pixellate")
        assert engine.render_configuration() == {"scale": 5.0}

        # Stored slider values are untouched
        assert engine.parameters.radius == 10.0

    def test_set_mode_recomputes(self, photo):
        runner = RecordingRunner()
        engine = FilterEngine(runner, initial_filter="gaussian_blur")
        engine.load_image(photo)
        engine.update_parameter(ParameterKind.INTENSITY, 0.1)
        engine.set_mode(ParameterMode.LINKED)
        assert runner.configuration("gaussian_blur") == {"radius": pytest.approx(20.0)}


class TestRecompute:
    """Tests for recompute and failure handling."""

    def test_recompute_without_image_is_noop(self):
        runner = RecordingRunner()
        engine = FilterEngine(runner)
        assert engine.recompute() is None
        assert runner.render_calls == []
        assert runner.configure_calls == []

    @pytest.mark.parametrize("descriptor", list_filters(), ids=lambda d: d.id)
    def test_recompute_is_idempotent(self, photo, descriptor):
        engine = FilterEngine(initial_filter=descriptor)
        engine.load_image(photo)
        engine.recompute()
        first = engine.output_image.pixels.copy()
        engine.recompute()
        assert np.array_equal(engine.output_image.pixels, first)

    def test_failure_keeps_previous_output(self, photo):
        runner = FailingRunner()
        engine = FilterEngine(runner)
        engine.load_image(photo)
        previous = engine.output_image.pixels.copy()

        runner.failing = True
        error = engine.select_filter("edges")

        assert isinstance(error, NoOutputError)
        assert error.filter_id == "edges"
        assert engine.state_name == "loaded"
        assert engine.current_filter.id == "edges"
        assert np.array_equal(engine.output_image.pixels, previous)

    def test_failure_on_first_render_leaves_no_output(self, photo):
        runner = FailingRunner()
        runner.failing = True
        engine = FilterEngine(runner)
        error = engine.load_image(photo)
        assert isinstance(error, NoOutputError)
        assert engine.state_name == "loaded"
        assert engine.output_image is None

    def test_recovers_after_failure(self, photo):
        runner = FailingRunner()
        engine = FilterEngine(runner)
        runner.failing = True
        engine.load_image(photo)
        runner.failing = False
        assert engine.recompute() is None
        assert engine.output_image is not None

    def test_stale_render_is_not_committed(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        current = engine.output_image.pixels.copy()
        # A render tagged with an older generation must be discarded
        assert engine._commit(0, ImageData.empty(4, 4)) is False
        assert np.array_equal(engine.output_image.pixels, current)


class TestReadOnlyAccess:
    """Callers only ever see read-only images."""

    def test_output_is_read_only(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        output = engine.output_image
        assert not output.is_writable
        with pytest.raises(ValueError):
            output.pixels[0, 0, 0] = 1.0

    def test_source_is_read_only(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        assert not engine.source_image.is_writable

    def test_state_snapshot(self, photo):
        engine = FilterEngine()
        engine.load_image(photo)
        snapshot = engine.state
        assert isinstance(snapshot, EngineState)
        assert snapshot.name == "loaded"
        assert not snapshot.output_image.is_writable


class TestSaveOutput:
    """Tests for save_output."""

    def test_nothing_to_save(self):
        sink = MagicMock()
        engine = FilterEngine()
        error = engine.save_output(sink)
        assert isinstance(error, NothingToSaveError)
        sink.write_to_library.assert_not_called()

    def test_nothing_to_save_after_failed_first_render(self, photo):
        runner = FailingRunner()
        runner.failing = True
        sink = MagicMock()
        engine = FilterEngine(runner)
        engine.load_image(photo)
        assert isinstance(engine.save_output(sink), NothingToSaveError)
        sink.write_to_library.assert_not_called()

    def test_hands_output_to_sink(self, photo):
        sink = MagicMock()
        engine = FilterEngine()
        engine.load_image(photo)
        assert engine.save_output(sink) is None
        sink.write_to_library.assert_called_once()
        saved = sink.write_to_library.call_args.args[0]
        assert not saved.is_writable
        assert np.array_equal(saved.pixels, engine.output_image.pixels)


class TestApplyFilterToFile:
    """Tests for the file-to-file helper."""

    def test_writes_filtered_file(self, photo, tmp_path):
        source = tmp_path / "in.png"
        photo.to_pil().save(source)
        destination = tmp_path / "out" / "blurred.png"

        result = apply_filter_to_file(source, destination, "Gaussian Blur", {"radius": 3})

        assert result == destination
        assert destination.exists()
        written = ImageData.from_file(destination)
        assert written.size == photo.size

    def test_unknown_filter_raises(self, photo, tmp_path):
        source = tmp_path / "in.png"
        photo.to_pil().save(source)
        with pytest.raises(KeyError):
            apply_filter_to_file(source, tmp_path / "out.png", "Posterize")

    def test_failed_render_raises_no_output(self, photo, tmp_path):
        source = tmp_path / "in.png"
        photo.to_pil().save(source)
        runner = FailingRunner()
        runner.failing = True
        destination = tmp_path / "out.png"

        with pytest.raises(NoOutputError):
            apply_filter_to_file(source, destination, "edges", runner=runner)
        assert not destination.exists()

    def test_jpeg_destination_drops_alpha(self, tmp_path):
        pixels = np.full((8, 8, 4), 0.5, dtype=np.float32)
        source = tmp_path / "in.png"
        ImageData.from_numpy(pixels).to_pil().save(source)

        destination = apply_filter_to_file(source, tmp_path / "out.jpg", "sepia_tone")

        with Image.open(destination) as written:
            assert written.format == "JPEG"
            assert written.mode == "RGB"
