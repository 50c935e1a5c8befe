"""Coloring methods for painting mosaics.

A coloring method maps a query position to an sRGB color. Every method is
queried with the pixel position and the representative point of the cell that
owns the pixel; gradients blend the two according to their ``smoothness``:

- ``PER_CELL`` (0.0): the whole cell takes the color at its representative point
- ``PER_PIXEL`` (1.0): the gradient runs continuously across cell boundaries

Available methods:
- Solid: one fixed color
- LinearGradient: projection onto a start -> end axis
- RadialGradient: distance from a (possibly off-center) focus circle to an outer circle
- ConicGradient: sweep angle around a center
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Sequence, Tuple

import numpy as np
from matplotlib.colors import to_rgb
from skimage import color as skcolor

from .exceptions import InvalidGradientError
from .geometry import Point

PER_CELL = 0.0
PER_PIXEL = 1.0

RGB = Tuple[float, float, float]


class ColorSpace(str, Enum):
    """Space in which gradient stops are interpolated."""

    SRGB = "srgb"
    LINEAR = "linear"  # CIE XYZ, a linear map of linear-light RGB
    LAB = "lab"
    HSV = "hsv"


def _identity(arr: np.ndarray) -> np.ndarray:
    return arr


_CONVERTERS: Dict[ColorSpace, Tuple[Callable, Callable]] = {
    ColorSpace.SRGB: (_identity, _identity),
    ColorSpace.LINEAR: (skcolor.rgb2xyz, skcolor.xyz2rgb),
    ColorSpace.LAB: (skcolor.rgb2lab, skcolor.lab2rgb),
    ColorSpace.HSV: (skcolor.rgb2hsv, skcolor.hsv2rgb),
}


def _convert(colors: np.ndarray, fn: Callable) -> np.ndarray:
    # skimage expects image-shaped input; treat the rows as a 1 x N image
    arr = np.asarray(colors, dtype=np.float64).reshape(1, -1, 3)
    return np.asarray(fn(arr), dtype=np.float64).reshape(-1, 3)


def parse_color(value: Any) -> RGB:
    """Parse a color into an sRGB triple in [0, 1].

    Args:
        value: A color name or hex string understood by matplotlib, or a
            numeric RGB(A) sequence. Sequences with any channel above 1 are
            read as 8-bit channels.

    Returns:
        (r, g, b) floats in [0, 1]

    Raises:
        ValueError: If the value is not a recognizable color
    """
    if isinstance(value, str):
        return tuple(float(c) for c in to_rgb(value))

    arr = np.asarray(value, dtype=np.float64).ravel()
    if arr.shape not in ((3,), (4,)):
        raise ValueError(f"Expected an RGB or RGBA color, got {value!r}")
    if np.any(arr > 1.0):
        arr = arr / 255.0
    return tuple(float(c) for c in to_rgb(tuple(arr)))


@dataclass(frozen=True, eq=False)
class GradientStops:
    """Ordered (position, color) stops with interpolation in a color space.

    Positions must be finite, inside [0, 1] and strictly increasing. Sampling
    outside the first/last stop returns the first/last color.
    """

    stops: Sequence[Tuple[float, Any]]
    space: ColorSpace = ColorSpace.SRGB

    def __post_init__(self) -> None:
        pairs = list(self.stops)
        if len(pairs) < 2:
            raise InvalidGradientError(f"need at least 2 stops, got {len(pairs)}")

        try:
            space = ColorSpace(self.space)
        except ValueError as e:
            raise InvalidGradientError(f"unknown color space {self.space!r}") from e

        try:
            positions = np.array([float(p) for p, _ in pairs], dtype=np.float64)
            colors = np.array([parse_color(c) for _, c in pairs], dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidGradientError(f"malformed stop: {e}") from e

        if not np.all(np.isfinite(positions)):
            raise InvalidGradientError("stop positions must be finite")
        if positions[0] < 0.0 or positions[-1] > 1.0:
            raise InvalidGradientError("stop positions must lie in [0, 1]")
        if np.any(np.diff(positions) <= 0.0):
            raise InvalidGradientError("stop positions must be strictly increasing")

        object.__setattr__(self, "stops", tuple((float(p), tuple(c)) for p, c in zip(positions, colors)))
        object.__setattr__(self, "space", space)
        object.__setattr__(self, "_positions", positions)
        object.__setattr__(self, "_native", _convert(colors, _CONVERTERS[space][0]))

    @classmethod
    def evenly_spaced(cls, colors: Sequence[Any], space: ColorSpace = ColorSpace.SRGB) -> "GradientStops":
        colors = list(colors)
        if len(colors) < 2:
            raise InvalidGradientError(f"need at least 2 colors, got {len(colors)}")
        positions = np.linspace(0.0, 1.0, len(colors))
        return cls(list(zip(positions, colors)), space)

    def sample(self, t) -> np.ndarray:
        """(N,) parameters -> (N,3) sRGB colors."""
        t = np.asarray(t, dtype=np.float64).ravel()
        native = np.column_stack(
            [np.interp(t, self._positions, self._native[:, c]) for c in range(3)]
        )
        rgb = _convert(native, _CONVERTERS[self.space][1])
        return np.clip(rgb, 0.0, 1.0)


def _as_stops(value) -> GradientStops:
    if isinstance(value, GradientStops):
        return value
    return GradientStops(value)


def _check_smoothness(smoothness: float) -> float:
    s = float(smoothness)
    if not (0.0 <= s <= 1.0):
        raise InvalidGradientError(f"smoothness must lie in [0, 1], got {smoothness}")
    return s


def _check_repeat(repeat: int) -> int:
    if int(repeat) != repeat or repeat < 1:
        raise InvalidGradientError(f"repeat must be a positive integer, got {repeat}")
    return int(repeat)


def _as_points(points) -> np.ndarray:
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


class ColoringMethod(ABC):
    """Base of the coloring variants; ``kind`` tags the variant."""

    kind: ClassVar[str]

    @abstractmethod
    def colors_at(self, points, key_points=None) -> np.ndarray:
        """(N,2) pixel positions and (N,2) representative points -> (N,3) sRGB."""


class _Gradient(ColoringMethod):
    stops: GradientStops
    smoothness: float

    def query_points(self, points, key_points=None) -> np.ndarray:
        P = _as_points(points)
        if key_points is None or self.smoothness == PER_PIXEL:
            return P
        K = _as_points(key_points)
        return K + (P - K) * self.smoothness

    @abstractmethod
    def parameter(self, points: np.ndarray) -> np.ndarray:
        """(N,2) query points -> (N,) gradient parameter; stops clamp it to [0, 1]."""

    def colors_at(self, points, key_points=None) -> np.ndarray:
        return self.stops.sample(self.parameter(self.query_points(points, key_points)))


@dataclass(frozen=True, eq=False)
class Solid(ColoringMethod):
    color: Any
    kind: ClassVar[str] = "solid"

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", parse_color(self.color))

    def colors_at(self, points, key_points=None) -> np.ndarray:
        n = len(_as_points(points))
        return np.tile(np.asarray(self.color, dtype=np.float64), (n, 1))


@dataclass(frozen=True, eq=False)
class LinearGradient(_Gradient):
    stops: GradientStops
    start: Point
    end: Point
    smoothness: float = PER_PIXEL
    kind: ClassVar[str] = "linear"

    def __post_init__(self) -> None:
        object.__setattr__(self, "stops", _as_stops(self.stops))
        object.__setattr__(self, "start", Point.of(self.start))
        object.__setattr__(self, "end", Point.of(self.end))
        object.__setattr__(self, "smoothness", _check_smoothness(self.smoothness))
        if self.start == self.end:
            raise InvalidGradientError("start and end points coincide")

    def parameter(self, points: np.ndarray) -> np.ndarray:
        direction = (self.end - self.start).to_array()
        return (points - self.start.to_array()) @ direction / float(direction @ direction)


@dataclass(frozen=True, eq=False)
class RadialGradient(_Gradient):
    """Gradient between a focus circle and an outer circle.

    With the focus at the center this is a plain concentric gradient,
    ``t = (distance - focus_radius) / (radius - focus_radius)``. An off-center
    focus shifts the highlight; the outer radius is grown to keep the focus
    circle inside the outer one.
    """

    stops: GradientStops
    center: Point
    radius: float
    focus: Point | None = None
    focus_radius: float = 0.0
    repeat: int = 1
    smoothness: float = PER_PIXEL
    kind: ClassVar[str] = "radial"

    def __post_init__(self) -> None:
        object.__setattr__(self, "stops", _as_stops(self.stops))
        object.__setattr__(self, "center", Point.of(self.center))
        focus = self.center if self.focus is None else Point.of(self.focus)
        object.__setattr__(self, "focus", focus)
        object.__setattr__(self, "smoothness", _check_smoothness(self.smoothness))
        object.__setattr__(self, "repeat", _check_repeat(self.repeat))

        radius, focus_radius = float(self.radius), float(self.focus_radius)
        if not (math.isfinite(radius) and math.isfinite(focus_radius)) or focus_radius < 0.0:
            raise InvalidGradientError("radii must be finite and non-negative")
        if radius <= focus_radius:
            raise InvalidGradientError(f"outer radius {radius} must exceed inner radius {focus_radius}")
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "focus_radius", focus_radius)

        direction = self.center - focus
        spread = radius - focus_radius
        if direction.length() > 0.0:
            spread = max(spread, direction.length() + 1.0)
        object.__setattr__(self, "_direction", direction.to_array())
        object.__setattr__(self, "_spread", spread)

    def parameter(self, points: np.ndarray) -> np.ndarray:
        d, spread, r0 = self._direction, self._spread, self.focus_radius
        pv = points - self.focus.to_array()
        alpha = float(d @ d) - spread * spread
        beta = pv @ d + r0 * spread
        gamma = (pv * pv).sum(axis=1) - r0 * r0
        disc = np.maximum(beta * beta - alpha * gamma, 0.0)
        t = (beta - np.sqrt(disc)) / alpha
        if self.repeat > 1:
            # rings repeat inside the outer circle; beyond it the last stop holds
            c = np.clip(t, 0.0, 1.0)
            t = np.where(c >= 1.0, 1.0, np.mod(c * self.repeat, 1.0))
        return t


@dataclass(frozen=True, eq=False)
class ConicGradient(_Gradient):
    stops: GradientStops
    center: Point
    angle: float = 0.0
    repeat: int = 1
    smoothness: float = PER_PIXEL
    kind: ClassVar[str] = "conic"

    def __post_init__(self) -> None:
        object.__setattr__(self, "stops", _as_stops(self.stops))
        object.__setattr__(self, "center", Point.of(self.center))
        object.__setattr__(self, "angle", float(self.angle))
        object.__setattr__(self, "smoothness", _check_smoothness(self.smoothness))
        object.__setattr__(self, "repeat", _check_repeat(self.repeat))

    def parameter(self, points: np.ndarray) -> np.ndarray:
        v = points - self.center.to_array()
        theta = np.mod(np.arctan2(v[:, 1], v[:, 0]), 2.0 * math.pi)
        theta = np.mod((theta - self.angle) * self.repeat, 2.0 * math.pi)
        t = theta / (2.0 * math.pi)
        return np.where(t >= 1.0, 0.0, t)


COLORING_METHODS = {
    cls.kind: cls for cls in (Solid, LinearGradient, RadialGradient, ConicGradient)
}


def as_coloring_method(value) -> ColoringMethod:
    """A coloring method as-is; anything else is read as a solid color."""
    if isinstance(value, ColoringMethod):
        return value
    return Solid(value)


def color_at(method, point, key_point=None) -> np.ndarray:
    """Color of one query point, (3,) sRGB floats."""
    key = None if key_point is None else Point.of(key_point).to_array()
    return as_coloring_method(method).colors_at(Point.of(point).to_array(), key)[0]
