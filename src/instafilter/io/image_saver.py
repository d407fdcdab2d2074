"""
Image Saver - Writes finished images to the photo library.

The photo library is a directory on disk. Results are reported through
success and error handlers rather than exceptions, so the UI can show a
message whichever way the save goes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from PIL import Image

from instafilter.core.data_types import ImageData
from instafilter.core.errors import SaveError

logger = logging.getLogger(__name__)


_SUFFIXES = {"png": ".png", "jpeg": ".jpg", "webp": ".webp"}

# Pillow formats that take a quality setting
_LOSSY_FORMATS = ("JPEG", "WEBP")


def write_image(
    image: ImageData,
    path: str | Path,
    output_format: str | None = None,
    quality: int = 95,
) -> Path:
    """
    Encode an image to a file.

    Args:
        image: Image to write
        path: Destination file
        output_format: Format name; when omitted it is taken from the suffix
        quality: Quality for lossy formats

    Returns:
        The path written

    Raises:
        OSError: If the file cannot be written
        ValueError: If the format is unknown
    """
    path = Path(path)
    if output_format is None:
        output_format = Image.registered_extensions().get(path.suffix.lower(), "PNG")
    output_format = output_format.upper()

    pil_image = image.to_pil()
    # JPEG has no alpha channel
    if output_format == "JPEG" and pil_image.mode != "RGB":
        pil_image = pil_image.convert("RGB")

    if output_format in _LOSSY_FORMATS:
        pil_image.save(path, format=output_format, quality=quality)
    else:
        pil_image.save(path, format=output_format)
    return path


class ImageSaver:
    """
    Saves images into a photo library directory.

    Usage:
        saver = ImageSaver(library_dir)
        saver.success_handler = lambda path: print(f"Saved {path}")
        saver.error_handler = lambda error: print(f"Oops: {error}")
        saver.write_to_library(image)
    """

    def __init__(
        self,
        library_dir: Path,
        *,
        output_format: str = "png",
        quality: int = 95,
    ):
        if output_format not in _SUFFIXES:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.library_dir = Path(library_dir)
        self.output_format = output_format
        self.quality = quality
        self.success_handler: Callable[[Path], None] | None = None
        self.error_handler: Callable[[SaveError], None] | None = None

    def write_to_library(self, image: ImageData) -> Path | None:
        """
        Save an image under a new, timestamped file name.

        Returns:
            The path written, or None if the save failed
        """
        try:
            path = self._write(image)
        except SaveError as e:
            logger.error("Save failed: %s", e)
            if self.error_handler:
                self.error_handler(e)
            return None

        logger.info("Saved image to %s", path)
        if self.success_handler:
            self.success_handler(path)
        return path

    def _write(self, image: ImageData) -> Path:
        try:
            self.library_dir.mkdir(parents=True, exist_ok=True)
            path = write_image(
                image,
                self._next_path(),
                output_format=self.output_format,
                quality=self.quality,
            )
        except (OSError, ValueError) as e:
            raise SaveError(f"Could not save image to {self.library_dir}: {e}") from e
        return path

    def _next_path(self) -> Path:
        """A file name in the library that does not exist yet."""
        stem = datetime.now().strftime("instafilter_%Y%m%d_%H%M%S")
        suffix = _SUFFIXES[self.output_format]
        path = self.library_dir / f"{stem}{suffix}"
        counter = 1
        while path.exists():
            path = self.library_dir / f"{stem}_{counter}{suffix}"
            counter += 1
        return path
