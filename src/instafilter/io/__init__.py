"""
IO module - Image source and photo library sink.
"""

from instafilter.io.image_saver import ImageSaver, write_image
from instafilter.io.image_source import IMAGE_FILE_FILTER, pick_image

__all__ = [
    "IMAGE_FILE_FILTER",
    "ImageSaver",
    "write_image",
    "pick_image",
]
