"""
Parameters - The adjustable sliders shared by every filter.

Three parameter kinds exist (intensity, radius, scale). Each has a fixed
domain; values outside it are clamped rather than rejected so that the
sliders stay well-behaved. A filter only receives the kinds it declares
support for.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum


class ParameterKind(Enum):
    """UI-level tunables that may or may not apply to a given filter."""
    INTENSITY = "intensity"
    RADIUS = "radius"
    SCALE = "scale"

    @property
    def key(self) -> str:
        """Canonical render configuration key for this kind."""
        return self.value

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: ParameterKind | str) -> ParameterKind:
        """Accept either a kind or its (case-insensitive) key."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown parameter kind: {value!r}") from None


class ParameterMode(Enum):
    """How slider values are turned into filter inputs."""
    INDEPENDENT = "independent"  # One slider per kind
    LINKED = "linked"            # Intensity drives radius and scale


@dataclass(frozen=True)
class ParameterDomain:
    """Closed interval of valid values for one parameter kind."""
    minimum: float
    maximum: float
    default: float

    def clamp(self, value: float) -> float:
        """Clamp into the interval. NaN maps to the default."""
        value = float(value)
        if math.isnan(value):
            return self.default
        return min(max(value, self.minimum), self.maximum)

    @property
    def span(self) -> float:
        return self.maximum - self.minimum


DOMAINS: dict[ParameterKind, ParameterDomain] = {
    ParameterKind.INTENSITY: ParameterDomain(0.0, 1.0, 0.5),
    ParameterKind.RADIUS: ParameterDomain(0.0, 200.0, 100.0),
    ParameterKind.SCALE: ParameterDomain(0.0, 10.0, 5.0),
}


def domain(kind: ParameterKind) -> ParameterDomain:
    """Get the domain of a parameter kind."""
    return DOMAINS[kind]


def clamp(kind: ParameterKind, value: float) -> float:
    """Clamp a value into the domain of the given kind."""
    return DOMAINS[kind].clamp(value)


@dataclass(frozen=True)
class ParameterSet:
    """
    Current values of the three sliders.

    Instances are immutable; use with_value() to derive an updated set.
    The values are independent of the selected filter and persist across
    filter changes.
    """
    intensity: float = DOMAINS[ParameterKind.INTENSITY].default
    radius: float = DOMAINS[ParameterKind.RADIUS].default
    scale: float = DOMAINS[ParameterKind.SCALE].default

    @classmethod
    def create(
        cls,
        *,
        intensity: float | None = None,
        radius: float | None = None,
        scale: float | None = None,
    ) -> ParameterSet:
        """Create a parameter set, clamping every given value."""
        params = cls()
        for kind, value in (
            (ParameterKind.INTENSITY, intensity),
            (ParameterKind.RADIUS, radius),
            (ParameterKind.SCALE, scale),
        ):
            if value is not None:
                params = params.with_value(kind, value)
        return params

    def get(self, kind: ParameterKind) -> float:
        return getattr(self, kind.key)

    def with_value(self, kind: ParameterKind, value: float) -> ParameterSet:
        """Return a copy with `kind` set to `value` clamped to its domain."""
        return replace(self, **{kind.key: clamp(kind, value)})

    def linked(self) -> ParameterSet:
        """
        Derive radius and scale from intensity.

        Intensity is mapped linearly onto the radius and scale domains
        (intensity * 200, intensity * 10).
        """
        fraction = self.intensity / DOMAINS[ParameterKind.INTENSITY].span
        return replace(
            self,
            radius=clamp(ParameterKind.RADIUS, fraction * DOMAINS[ParameterKind.RADIUS].span),
            scale=clamp(ParameterKind.SCALE, fraction * DOMAINS[ParameterKind.SCALE].span),
        )

    def resolve(self, mode: ParameterMode) -> ParameterSet:
        """Values that should reach the filter under the given mode."""
        if mode is ParameterMode.LINKED:
            return self.linked()
        return self

    def to_dict(self) -> dict[str, float]:
        return {kind.key: self.get(kind) for kind in ParameterKind}
