"""
Image Source - Supplies a decoded photo to the engine.

The picker UI hands over a file path, or nothing when the user cancels.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from instafilter.core.data_types import ImageData
from instafilter.core.errors import ImageLoadError

logger = logging.getLogger(__name__)


# File dialog filter for the formats Pillow can open
IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tif *.tiff *.webp);;All Files (*)"


def pick_image(path: str | Path | None) -> ImageData | None:
    """
    Decode the picked image.

    Args:
        path: Selected file, or None/empty if the picker was cancelled

    Returns:
        The decoded image, or None for a cancelled pick

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    if not path:
        return None

    path = Path(path)
    try:
        image = ImageData.from_file(path)
    except FileNotFoundError as e:
        raise ImageLoadError(str(e)) from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageLoadError(f"Could not read image {path.name}: {e}") from e

    logger.info("Picked %s (%dx%d)", path.name, image.width, image.height)
    return image
