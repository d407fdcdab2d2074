"""
Errors raised and returned by Instafilter.

Render failures are returned by the filter engine as values rather than
raised, so callers can show them as a dismissible message. Errors from the
image source and the render capability are raised where they happen and
converted at the engine boundary.
"""

from __future__ import annotations


class InstafilterError(Exception):
    """Base class for all Instafilter errors."""

    # Heading used when the error is shown to the user
    title = "Something went wrong"


class RenderError(InstafilterError):
    """A recompute or save request could not produce a result."""
    title = "Could not apply filter"


class NoOutputError(RenderError):
    """The render capability produced nothing for the current configuration."""

    def __init__(self, filter_id: str, reason: str = ""):
        self.filter_id = filter_id
        self.reason = reason
        message = f"Filter '{filter_id}' produced no output"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NothingToSaveError(RenderError):
    """A save was attempted before any output image was rendered."""
    title = "Nothing to save"

    def __init__(self, message: str = "There is no filtered image to save yet"):
        super().__init__(message)


class FilterRenderError(InstafilterError):
    """Error during filter execution inside the render capability."""
    title = "Could not apply filter"


class SaveError(InstafilterError):
    """The image sink could not persist an image."""
    title = "Could not save picture"


class ImageLoadError(InstafilterError):
    """The image source could not decode the selected file."""
    title = "Could not open picture"
