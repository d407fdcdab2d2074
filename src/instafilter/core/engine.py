"""
Filter Engine - Holds the editing session and recomputes the output image.

The engine owns the source image, the selected filter, the slider values
and the rendered output. The UI calls it on three kinds of events (image
loaded, filter changed, parameter changed); each call recomputes the
output synchronously.

Render failures are returned, not raised: every public operation returns
a RenderError or None, and a failed recompute keeps the previous output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, TYPE_CHECKING

from instafilter.core.data_types import ImageData
from instafilter.core.errors import (
    FilterRenderError,
    NoOutputError,
    NothingToSaveError,
    RenderError,
)
from instafilter.core.parameters import ParameterKind, ParameterMode, ParameterSet
from instafilter.filters.filter_registry import (
    FilterDescriptor,
    default_filter,
    resolve_filter,
)
from instafilter.filters.pillow_runner import PillowRunner
from instafilter.io.image_saver import write_image

if TYPE_CHECKING:
    from instafilter.core.settings import AppSettings

logger = logging.getLogger(__name__)


class RenderCapability(Protocol):
    """The filter execution primitive the engine drives."""

    def configure(self, filter_id: str, values: dict[str, float]) -> None: ...

    def render(self, filter_id: str, image: ImageData) -> ImageData: ...


class ImageSink(Protocol):
    """Persists a finished image outside the process."""

    def write_to_library(self, image: ImageData) -> Any: ...


@dataclass
class EngineState:
    """
    Everything the engine owns for one editing session.

    output_image is present only while a source image is present and the
    last recompute succeeded (or an earlier one did and a later one failed).
    """
    current_filter: FilterDescriptor = field(default_factory=default_filter)
    parameters: ParameterSet = field(default_factory=ParameterSet)
    source_image: ImageData | None = None
    output_image: ImageData | None = None

    @property
    def name(self) -> str:
        """Session state: 'empty' until a source image is loaded."""
        return "empty" if self.source_image is None else "loaded"

    def snapshot(self) -> EngineState:
        """A shallow copy; images are shared but exposed read-only."""
        return EngineState(
            current_filter=self.current_filter,
            parameters=self.parameters,
            source_image=self.source_image.read_only() if self.source_image else None,
            output_image=self.output_image.read_only() if self.output_image else None,
        )


class FilterEngine:
    """
    Applies the selected filter to the loaded photo.

    Usage:
        engine = FilterEngine()
        engine.load_image(ImageData.from_file("photo.jpg"))
        engine.select_filter("gaussian_blur")
        error = engine.update_parameter(ParameterKind.RADIUS, 150)
        if error is None:
            display(engine.output_image)
    """

    def __init__(
        self,
        runner: RenderCapability | None = None,
        *,
        initial_filter: FilterDescriptor | str | None = None,
        parameters: ParameterSet | None = None,
        mode: ParameterMode = ParameterMode.INDEPENDENT,
    ):
        self._runner: RenderCapability = runner if runner is not None else PillowRunner()
        self._mode = mode
        self._state = EngineState(
            current_filter=resolve_filter(initial_filter) if initial_filter else default_filter(),
            parameters=parameters if parameters is not None else ParameterSet(),
        )
        # Incremented per recompute; only the latest render may be committed
        self._generation = 0

    @classmethod
    def from_settings(
        cls,
        settings: "AppSettings",
        runner: RenderCapability | None = None,
    ) -> FilterEngine:
        """Create an engine with the initial filter and sliders from settings."""
        return cls(
            runner,
            initial_filter=settings.default_filter,
            parameters=settings.initial_parameters(),
            mode=settings.parameter_mode,
        )

    # --- Read accessors ---

    @property
    def state(self) -> EngineState:
        return self._state.snapshot()

    @property
    def state_name(self) -> str:
        return self._state.name

    @property
    def current_filter(self) -> FilterDescriptor:
        return self._state.current_filter

    @property
    def parameters(self) -> ParameterSet:
        return self._state.parameters

    @property
    def mode(self) -> ParameterMode:
        return self._mode

    @property
    def source_image(self) -> ImageData | None:
        image = self._state.source_image
        return image.read_only() if image is not None else None

    @property
    def output_image(self) -> ImageData | None:
        image = self._state.output_image
        return image.read_only() if image is not None else None

    @property
    def has_output(self) -> bool:
        return self._state.output_image is not None

    # --- Events ---

    def load_image(self, image: ImageData | None) -> RenderError | None:
        """
        Use a new source image.

        None means the user cancelled the picker; nothing changes.
        """
        if image is None:
            logger.debug("No image supplied, keeping current state")
            return None

        # The engine owns its buffers exclusively
        self._state.source_image = image.copy()
        logger.info("Loaded source image %dx%d", image.width, image.height)
        return self.recompute()

    def select_filter(self, descriptor: FilterDescriptor | str) -> RenderError | None:
        """
        Make a registered filter current.

        Slider values are kept. The output is recomputed only once an
        image is loaded.

        Raises:
            KeyError: If the filter is not registered
        """
        self._state.current_filter = resolve_filter(descriptor)
        logger.debug("Selected filter %s", self._state.current_filter.id)
        return self.recompute()

    def update_parameter(self, kind: ParameterKind | str, value: float) -> RenderError | None:
        """
        Store a slider value (clamped to its domain) and recompute.

        Raises:
            ValueError: If kind is not a known parameter kind
        """
        kind = ParameterKind.parse(kind)
        self._state.parameters = self._state.parameters.with_value(kind, value)
        return self.recompute()

    def set_mode(self, mode: ParameterMode) -> RenderError | None:
        """Switch between independent and linked sliders."""
        self._mode = mode
        return self.recompute()

    # --- Rendering ---

    def render_configuration(self) -> dict[str, float]:
        """
        Configuration values pushed to the current filter.

        Only the kinds the filter supports appear, keyed by their
        canonical configuration key.
        """
        resolved = self._state.parameters.resolve(self._mode)
        return {
            kind.key: resolved.get(kind)
            for kind in self._state.current_filter.ordered_parameters
        }

    def recompute(self) -> RenderError | None:
        """
        Re-render the output from the source image, filter and sliders.

        Returns:
            NoOutputError if rendering failed (the previous output is kept),
            otherwise None
        """
        source = self._state.source_image
        if source is None:
            return None

        self._generation += 1
        generation = self._generation
        descriptor = self._state.current_filter

        try:
            self._runner.configure(descriptor.id, self.render_configuration())
            rendered = self._runner.render(descriptor.id, source)
        except FilterRenderError as e:
            logger.warning("Could not apply %s: %s", descriptor.name, e)
            return NoOutputError(descriptor.id, str(e))

        if rendered is None:
            logger.warning("Could not apply %s: no image returned", descriptor.name)
            return NoOutputError(descriptor.id)

        self._commit(generation, rendered)
        return None

    def _commit(self, generation: int, image: ImageData) -> bool:
        """Replace the output unless a newer recompute has started."""
        if generation != self._generation:
            logger.debug("Discarding stale render %d (latest %d)", generation, self._generation)
            return False
        self._state.output_image = image
        return True

    # --- Saving ---

    def save_output(self, sink: ImageSink) -> RenderError | None:
        """
        Hand the rendered output to an image sink.

        Returns:
            NothingToSaveError if nothing has been rendered yet (the sink
            is not called), otherwise None. Sink failures are reported by
            the sink's own error handler.
        """
        output = self._state.output_image
        if output is None:
            logger.info("Save requested without an output image")
            return NothingToSaveError()

        sink.write_to_library(output.read_only())
        return None


def apply_filter_to_file(
    source: str | Path,
    destination: str | Path,
    filter_id: str,
    parameters: ParameterSet | dict[str, float] | None = None,
    *,
    mode: ParameterMode = ParameterMode.INDEPENDENT,
    runner: RenderCapability | None = None,
) -> Path:
    """
    Filter an image file and write the result.

    Args:
        source: Input image path
        destination: Output image path (format taken from the suffix)
        filter_id: Registered filter ID or display name
        parameters: Slider values; missing kinds use the UI defaults
        mode: Independent or linked sliders
        runner: Render capability (a new PillowRunner by default)

    Returns:
        The destination path

    Raises:
        KeyError: If the filter is unknown
        RenderError: If the filter produced no output
    """
    if isinstance(parameters, dict):
        parameters = ParameterSet.create(**parameters)

    engine = FilterEngine(runner, initial_filter=filter_id, parameters=parameters, mode=mode)
    error = engine.load_image(ImageData.from_file(source))
    if error is not None:
        raise error

    output = engine.output_image
    if output is None:
        raise NoOutputError(engine.current_filter.id)

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    return write_image(output, destination)
