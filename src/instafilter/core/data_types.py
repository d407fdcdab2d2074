"""
Data Types - Image container used by the filter engine.

This module defines the image buffer that flows between the image
source, the filter engine, the render capability and the image sink:
- ImageMetadata: Where an image came from and how it was produced
- ImageData: Container for pixels and metadata
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass
class ImageMetadata:
    """Metadata associated with an image."""

    # Source information
    source_path: Path | None = None

    # Filter that produced this image (None for a source image)
    filter_id: str | None = None

    # Image properties
    original_width: int | None = None
    original_height: int | None = None
    color_space: str = "sRGB"

    # Custom metadata
    custom: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> ImageMetadata:
        """Create a shallow copy of this metadata."""
        return ImageMetadata(
            source_path=self.source_path,
            filter_id=self.filter_id,
            original_width=self.original_width,
            original_height=self.original_height,
            color_space=self.color_space,
            custom=self.custom.copy(),
        )


@dataclass
class ImageData:
    """
    Container for an image buffer.

    Internally stores pixels as a numpy array in HWC format with
    float32 values in range [0, 1].

    Attributes:
        pixels: numpy array of shape (H, W, C) with float32 values [0, 1]
        metadata: Optional metadata about the image
    """
    pixels: NDArray[np.float32]
    metadata: ImageMetadata = field(default_factory=ImageMetadata)

    @classmethod
    def from_numpy(
        cls,
        array: NDArray,
        metadata: ImageMetadata | None = None
    ) -> ImageData:
        """
        Create ImageData from a numpy array.

        Handles various input formats:
        - uint8 [0, 255] -> float32 [0, 1]
        - float64 -> float32
        - HW (grayscale) -> HWC
        """
        arr = np.array(array, copy=True)

        # Convert to float32 if needed
        if arr.dtype == np.uint8:
            arr = arr.astype(np.float32) / 255.0
        elif arr.dtype != np.float32:
            arr = arr.astype(np.float32)

        # Ensure HWC format
        if arr.ndim == 2:
            # Grayscale -> RGB
            arr = np.stack([arr, arr, arr], axis=-1)
        elif arr.ndim != 3:
            raise ValueError(f"Expected an HW or HWC array, got shape {arr.shape}")

        return cls(pixels=arr, metadata=metadata or ImageMetadata())

    @classmethod
    def from_pil(cls, image, metadata: ImageMetadata | None = None) -> ImageData:
        """Create ImageData from a PIL Image."""
        from PIL import Image

        if not isinstance(image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        # Convert to RGB/RGBA
        if image.mode == "L":
            image = image.convert("RGB")
        elif image.mode == "LA" or (image.mode == "P" and "transparency" in image.info):
            image = image.convert("RGBA")
        elif image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGB")

        arr = np.array(image, dtype=np.float32) / 255.0

        meta = metadata or ImageMetadata()
        if meta.original_width is None:
            meta.original_width = image.width
            meta.original_height = image.height

        return cls(pixels=arr, metadata=meta)

    @classmethod
    def from_file(cls, path: str | Path, metadata: ImageMetadata | None = None) -> ImageData:
        """
        Create ImageData by loading an image from a file.

        Args:
            path: Path to the image file
            metadata: Optional metadata (source_path will be set automatically)

        Returns:
            ImageData with the loaded image
        """
        from PIL import Image, ImageOps

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")

        with Image.open(path) as image:
            # Photos from phones carry their orientation in EXIF
            image = ImageOps.exif_transpose(image)
            image.load()

        meta = metadata or ImageMetadata()
        meta.source_path = path

        return cls.from_pil(image, meta)

    @classmethod
    def empty(cls, width: int, height: int, channels: int = 3) -> ImageData:
        """Create an empty (black) image of the given size."""
        arr = np.zeros((height, width, channels), dtype=np.float32)
        return cls(pixels=arr)

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        """Number of color channels (3 for RGB, 4 for RGBA)."""
        return self.pixels.shape[2] if self.pixels.ndim == 3 else 1

    @property
    def size(self) -> tuple[int, int]:
        """Image size as (width, height)."""
        return (self.width, self.height)

    @property
    def has_alpha(self) -> bool:
        """Check if image has an alpha channel."""
        return self.channels == 4

    @property
    def is_writable(self) -> bool:
        return bool(self.pixels.flags.writeable)

    def to_numpy(self, dtype: np.dtype = np.float32) -> NDArray:
        """
        Convert to numpy array.

        Args:
            dtype: Output dtype (float32, uint8, etc.)

        Returns:
            Array in HWC format
        """
        if dtype == np.uint8:
            return (self.pixels * 255).round().clip(0, 255).astype(np.uint8)
        return self.pixels.astype(dtype)

    def to_pil(self):
        """Convert to PIL Image."""
        from PIL import Image

        arr = self.to_numpy(np.uint8)
        if self.channels not in (3, 4):
            raise ValueError(f"Cannot convert {self.channels}-channel image to PIL")
        # uint8 HxWx3 maps to RGB and HxWx4 to RGBA
        return Image.fromarray(np.ascontiguousarray(arr))

    def read_only(self) -> ImageData:
        """
        Return a view of this image whose pixel array cannot be written.

        The view shares memory with this image, so it is cheap to hand
        out for display; writing to it raises ValueError.
        """
        view = self.pixels.view()
        view.setflags(write=False)
        return ImageData(pixels=view, metadata=self.metadata.copy())

    def copy(self) -> ImageData:
        """Create a copy of this image."""
        return ImageData(
            pixels=self.pixels.copy(),
            metadata=self.metadata.copy(),
        )
