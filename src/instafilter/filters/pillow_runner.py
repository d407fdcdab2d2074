"""
Pillow Runner - Render capability for the built-in filters.

This module provides the PillowRunner class which handles:
- Keeping a configuration (key -> value) per filter, starting at defaults
- Converting between ImageData and PIL images
- Executing a filter against a source image
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

import numpy as np
from PIL import Image, ImageFilter

from instafilter.core.errors import FilterRenderError

if TYPE_CHECKING:
    from instafilter.core.data_types import ImageData

logger = logging.getLogger(__name__)


# Standard sepia tone matrix (rows produce R, G, B)
_SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ],
    dtype=np.float32,
)

# Seed for the crystallize cell layout; a fixed seed keeps renders reproducible
_CRYSTALLIZE_SEED = 0x1F17E5


FilterFunction = Callable[[Image.Image, dict[str, float]], Image.Image]


@dataclass(frozen=True)
class FilterImplementation:
    """A filter function and the configuration keys it declares."""
    apply: FilterFunction
    defaults: dict[str, float]


def _as_float_array(image: Image.Image) -> np.ndarray:
    return np.asarray(image, dtype=np.float32) / 255.0


def _from_float_array(arr: np.ndarray) -> Image.Image:
    arr = (np.clip(arr, 0.0, 1.0) * 255.0).round().astype(np.uint8)
    return Image.fromarray(arr)


def _sepia_tone(image: Image.Image, config: dict[str, float]) -> Image.Image:
    intensity = config["intensity"]
    arr = _as_float_array(image)
    sepia = np.clip(arr @ _SEPIA_MATRIX.T, 0.0, 1.0)
    return _from_float_array(arr + (sepia - arr) * intensity)


def _gaussian_blur(image: Image.Image, config: dict[str, float]) -> Image.Image:
    radius = config["radius"]
    if radius <= 0:
        return image.copy()
    return image.filter(ImageFilter.GaussianBlur(radius=radius))


def _pixellate(image: Image.Image, config: dict[str, float]) -> Image.Image:
    block = int(round(config["scale"]))
    if block <= 1:
        return image.copy()
    # reduce() averages each block, including partial blocks on the edges
    small = image.reduce(block)
    large = small.resize((small.width * block, small.height * block), Image.Resampling.NEAREST)
    return large.crop((0, 0, image.width, image.height))


def _edges(image: Image.Image, config: dict[str, float]) -> Image.Image:
    gain = config["intensity"] * 10.0
    edges = _as_float_array(image.filter(ImageFilter.FIND_EDGES))
    return _from_float_array(edges * gain)


def _unsharp_mask(image: Image.Image, config: dict[str, float]) -> Image.Image:
    radius = config["radius"]
    percent = int(round(config["intensity"] * 200))
    if radius <= 0 or percent <= 0:
        return image.copy()
    return image.filter(ImageFilter.UnsharpMask(radius=radius, percent=percent, threshold=0))


def _vignette(image: Image.Image, config: dict[str, float]) -> Image.Image:
    intensity = config["intensity"]
    # Radius is a percentage of the half diagonal at which darkening peaks
    reach = config["radius"] / 100.0
    arr = _as_float_array(image)
    h, w = arr.shape[:2]

    yy, xx = np.ogrid[:h, :w]
    cx = (w - 1) / 2.0
    cy = (h - 1) / 2.0
    half_diagonal = np.sqrt(cx ** 2 + cy ** 2) or 1.0
    dist = np.sqrt((xx - cx) ** 2 + (yy - cy) ** 2) / half_diagonal

    if reach <= 0:
        falloff = (dist > 0).astype(np.float32)
    else:
        t = np.clip(dist / reach, 0.0, 1.0)
        falloff = t * t * (3.0 - 2.0 * t)

    factor = 1.0 - intensity * falloff
    return _from_float_array(arr * factor[..., np.newaxis])


def _crystallize(image: Image.Image, config: dict[str, float]) -> Image.Image:
    cell = float(config["radius"])
    if cell < 1.0:
        return image.copy()

    arr = _as_float_array(image)
    h, w = arr.shape[:2]
    ny = int(np.ceil(h / cell))
    nx = int(np.ceil(w / cell))

    # One jittered seed point per grid cell
    rng = np.random.default_rng(_CRYSTALLIZE_SEED)
    seed_x = np.minimum((np.arange(nx)[np.newaxis, :] + rng.random((ny, nx))) * cell, w - 1)
    seed_y = np.minimum((np.arange(ny)[:, np.newaxis] + rng.random((ny, nx))) * cell, h - 1)
    colors = arr[seed_y.astype(np.int64), seed_x.astype(np.int64)]

    ys = np.arange(h, dtype=np.float32)[:, np.newaxis]
    xs = np.arange(w, dtype=np.float32)[np.newaxis, :]
    cell_y = np.minimum((ys // cell).astype(np.int64), ny - 1)
    cell_x = np.minimum((xs // cell).astype(np.int64), nx - 1)

    best = np.full((h, w), np.inf, dtype=np.float32)
    best_y = np.zeros((h, w), dtype=np.int64)
    best_x = np.zeros((h, w), dtype=np.int64)

    # The nearest seed lies in the pixel's own cell or one of its neighbours
    for dy in (-1, 0, 1):
        row = cell_y + dy
        row_valid = (row >= 0) & (row < ny)
        row = np.clip(row, 0, ny - 1)
        for dx in (-1, 0, 1):
            col = cell_x + dx
            col_valid = (col >= 0) & (col < nx)
            col = np.clip(col, 0, nx - 1)

            dist = (xs - seed_x[row, col]) ** 2 + (ys - seed_y[row, col]) ** 2
            dist = np.where(row_valid & col_valid, dist, np.inf)
            closer = dist < best
            best = np.where(closer, dist, best)
            best_y = np.where(closer, row, best_y)
            best_x = np.where(closer, col, best_x)

    return _from_float_array(colors[best_y, best_x])


BUILTIN_FILTERS: dict[str, FilterImplementation] = {
    "crystallize": FilterImplementation(_crystallize, {"radius": 20.0}),
    "edges": FilterImplementation(_edges, {"intensity": 1.0}),
    "gaussian_blur": FilterImplementation(_gaussian_blur, {"radius": 10.0}),
    "pixellate": FilterImplementation(_pixellate, {"scale": 8.0}),
    "sepia_tone": FilterImplementation(_sepia_tone, {"intensity": 1.0}),
    "unsharp_mask": FilterImplementation(_unsharp_mask, {"intensity": 0.5, "radius": 2.5}),
    "vignette": FilterImplementation(_vignette, {"intensity": 0.0, "radius": 100.0}),
}


class PillowRunner:
    """
    Render capability backed by Pillow and numpy.

    Usage:
        runner = PillowRunner()
        runner.configure("gaussian_blur", {"radius": 4.0})
        result = runner.render("gaussian_blur", image_data)
    """

    def __init__(self, filters: dict[str, FilterImplementation] | None = None):
        self._filters = dict(filters if filters is not None else BUILTIN_FILTERS)
        self._configs: dict[str, dict[str, float]] = {}

    def _implementation(self, filter_id: str) -> FilterImplementation:
        try:
            return self._filters[filter_id]
        except KeyError:
            raise KeyError(f"Unknown filter: {filter_id}") from None

    def declared_keys(self, filter_id: str) -> frozenset[str]:
        """Configuration keys the filter accepts."""
        return frozenset(self._implementation(filter_id).defaults)

    def defaults(self, filter_id: str) -> dict[str, float]:
        return dict(self._implementation(filter_id).defaults)

    def configuration(self, filter_id: str) -> dict[str, float]:
        """Current configuration of a filter (a copy)."""
        config = self._configs.get(filter_id)
        if config is None:
            return self.defaults(filter_id)
        return dict(config)

    def configure(self, filter_id: str, values: dict[str, float]) -> None:
        """
        Set configuration values for a filter.

        Keys not given keep their current value.

        Raises:
            KeyError: If the filter is unknown
            ValueError: If a key is not declared by the filter
        """
        declared = self.declared_keys(filter_id)
        unknown = set(values) - declared
        if unknown:
            raise ValueError(
                f"Filter '{filter_id}' does not declare keys: {', '.join(sorted(unknown))}"
            )

        config = self._configs.setdefault(filter_id, self.defaults(filter_id))
        for key, value in values.items():
            config[key] = float(value)

    def reset(self, filter_id: str | None = None) -> None:
        """Return one filter (or all filters) to its default configuration."""
        if filter_id is None:
            self._configs.clear()
        else:
            self._configs.pop(filter_id, None)

    def render(self, filter_id: str, image: "ImageData") -> "ImageData":
        """
        Apply a filter to an image using its current configuration.

        Args:
            filter_id: Registered filter identifier
            image: Input image as ImageData

        Returns:
            Filtered image as ImageData, same size as the input

        Raises:
            KeyError: If the filter is unknown
            FilterRenderError: If the filter produced no output
        """
        implementation = self._implementation(filter_id)
        config = self.configuration(filter_id)

        if image.width == 0 or image.height == 0:
            raise FilterRenderError(f"{filter_id}: input image has an empty extent")

        logger.debug("Rendering %s with %s", filter_id, config)

        try:
            rgb, alpha = self._to_pil(image)
            result = implementation.apply(rgb, config)
        except (ValueError, OSError, MemoryError) as e:
            raise FilterRenderError(f"{filter_id}: {e}") from e

        if result is None or result.size != rgb.size:
            raise FilterRenderError(f"{filter_id}: filter produced no output")

        return self._from_pil(result, alpha, image, filter_id)

    def _to_pil(self, image: "ImageData") -> tuple[Image.Image, np.ndarray | None]:
        """Split ImageData into an RGB PIL image and its alpha channel."""
        arr = image.to_numpy(np.uint8)
        alpha = None
        if arr.shape[2] == 4:
            alpha = image.pixels[:, :, 3:4].copy()
        elif arr.shape[2] != 3:
            raise FilterRenderError(f"Unsupported channel count: {arr.shape[2]}")
        return Image.fromarray(np.ascontiguousarray(arr[:, :, :3])), alpha

    def _from_pil(
        self,
        result: Image.Image,
        alpha: np.ndarray | None,
        source: "ImageData",
        filter_id: str,
    ) -> "ImageData":
        """Convert a filtered RGB PIL image back to ImageData."""
        from instafilter.core.data_types import ImageData

        arr = np.asarray(result.convert("RGB"), dtype=np.float32) / 255.0
        if alpha is not None:
            arr = np.concatenate([arr, alpha], axis=-1)

        meta = source.metadata.copy()
        meta.filter_id = filter_id
        return ImageData(pixels=arr, metadata=meta)
