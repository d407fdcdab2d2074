"""
Core module - Image data, parameters, errors and the filter engine.

This module provides the fundamental building blocks for Instafilter:
- Data Types: The image buffer shared by every component
- Parameters: Slider kinds, domains and values
- Errors: Render, save and load failures

The engine and settings live in instafilter.core.engine and
instafilter.core.settings; they depend on the filter registry and are
imported from there directly.
"""

from instafilter.core.data_types import (
    ImageData,
    ImageMetadata,
)

from instafilter.core.errors import (
    FilterRenderError,
    ImageLoadError,
    InstafilterError,
    NoOutputError,
    NothingToSaveError,
    RenderError,
    SaveError,
)

from instafilter.core.parameters import (
    DOMAINS,
    ParameterDomain,
    ParameterKind,
    ParameterMode,
    ParameterSet,
    clamp,
    domain,
)


__all__ = [
    # data_types.py
    "ImageData",
    "ImageMetadata",
    # errors.py
    "FilterRenderError",
    "ImageLoadError",
    "InstafilterError",
    "NoOutputError",
    "NothingToSaveError",
    "RenderError",
    "SaveError",
    # parameters.py
    "DOMAINS",
    "ParameterDomain",
    "ParameterKind",
    "ParameterMode",
    "ParameterSet",
    "clamp",
    "domain",
]
