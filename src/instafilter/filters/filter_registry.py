"""
Filter Registry - The fixed, ordered list of selectable filters.

This module defines the FilterDescriptor dataclass describing a filter
and the parameter kinds it honors, along with the registry of built-in
filters in menu order.
"""

from __future__ import annotations

from dataclasses import dataclass

from instafilter.core.parameters import ParameterKind


@dataclass(frozen=True)
class FilterDescriptor:
    """
    Specification of a selectable filter.

    Attributes:
        id: Unique filter identifier (also the render capability handle)
        name: Display name
        supported_parameters: Parameter kinds the filter accepts
        description: Filter description
    """
    id: str
    name: str
    supported_parameters: frozenset[ParameterKind]
    description: str = ""

    def supports(self, kind: ParameterKind) -> bool:
        return kind in self.supported_parameters

    @property
    def ordered_parameters(self) -> list[ParameterKind]:
        """Supported kinds in ParameterKind declaration order."""
        return [kind for kind in ParameterKind if kind in self.supported_parameters]


# Registration order is menu order
_FILTERS: dict[str, FilterDescriptor] = {}

DEFAULT_FILTER_ID = "sepia_tone"


def _register(
    id: str,
    name: str,
    supported: set[ParameterKind],
    description: str = "",
) -> FilterDescriptor:
    """Register a filter descriptor."""
    descriptor = FilterDescriptor(
        id=id,
        name=name,
        supported_parameters=frozenset(supported),
        description=description,
    )
    _FILTERS[descriptor.id] = descriptor
    return descriptor


def get_filter_registry() -> dict[str, FilterDescriptor]:
    """Get the complete filter registry, in menu order."""
    return _FILTERS.copy()


def list_filters() -> list[FilterDescriptor]:
    """Get all filters in menu order."""
    return list(_FILTERS.values())


def get_filter(filter_id: str) -> FilterDescriptor | None:
    """Get a specific filter by ID."""
    return _FILTERS.get(filter_id)


def find_filter_by_name(name: str) -> FilterDescriptor | None:
    """Get a filter by its display name (case-insensitive)."""
    wanted = name.strip().casefold()
    for descriptor in _FILTERS.values():
        if descriptor.name.casefold() == wanted:
            return descriptor
    return None


def resolve_filter(value: FilterDescriptor | str) -> FilterDescriptor:
    """
    Resolve a descriptor, filter ID or display name to a registered filter.

    Raises:
        KeyError: If no registered filter matches
    """
    if isinstance(value, FilterDescriptor):
        registered = _FILTERS.get(value.id)
        if registered != value:
            raise KeyError(f"Filter is not registered: {value.id}")
        return registered

    descriptor = get_filter(value) or find_filter_by_name(value)
    if descriptor is None:
        raise KeyError(f"Unknown filter: {value}")
    return descriptor


def default_filter() -> FilterDescriptor:
    """The filter selected when a session starts."""
    return _FILTERS[DEFAULT_FILTER_ID]


_register(
    "crystallize",
    "Crystalize",
    {ParameterKind.RADIUS},
    description="Polygon-shaped color blocks from the source pixels",
)

_register(
    "edges",
    "Edges",
    {ParameterKind.INTENSITY},
    description="Highlight edges with color",
)

_register(
    "gaussian_blur",
    "Gaussian Blur",
    {ParameterKind.RADIUS},
    description="Standard Gaussian blur",
)

_register(
    "pixellate",
    "Pixellate",
    {ParameterKind.SCALE},
    description="Enlarged square pixels",
)

_register(
    DEFAULT_FILTER_ID,
    "Sepia Tone",
    {ParameterKind.INTENSITY},
    description="Warm brown antique tint",
)

_register(
    "unsharp_mask",
    "Unsharp Mask",
    {ParameterKind.INTENSITY, ParameterKind.RADIUS},
    description="Unsharp mask sharpening",
)

_register(
    "vignette",
    "Vignette",
    {ParameterKind.INTENSITY, ParameterKind.RADIUS},
    description="Darken the image towards its edges",
)
