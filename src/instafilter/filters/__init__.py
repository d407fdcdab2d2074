"""
Filters module - Filter registry and render capability.

This package provides the fixed list of selectable filters and the
Pillow-based runner that executes them.
"""

from instafilter.filters.filter_registry import (
    FilterDescriptor,
    default_filter,
    find_filter_by_name,
    get_filter,
    get_filter_registry,
    list_filters,
    resolve_filter,
)
from instafilter.filters.pillow_runner import PillowRunner

__all__ = [
    "FilterDescriptor",
    "PillowRunner",
    "default_filter",
    "find_filter_by_name",
    "get_filter",
    "get_filter_registry",
    "list_filters",
    "resolve_filter",
]
