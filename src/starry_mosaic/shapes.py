from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

import numpy as np

from .exceptions import InvalidShapeError
from .geometry import Point, Transformation, dedup_points, intersect_segments

logger = logging.getLogger(__name__)

# Inner ring radius of a polygonal star, relative to the outer ring.
STAR_INNER_RADIUS_RATIO = 0.5

MIN_VERTEX_COUNT = 3


class ShapeKind(str, Enum):
    REGULAR_POLYGON = "regular_polygon"
    POLYGONAL_STAR = "polygonal_star"
    GRID = "grid"


@dataclass(frozen=True)
class ShapeDescriptor:
    """
    Declarative shape: a shape family plus its placement.
    vertex_count is used by polygons and stars, rows/columns by grids.
    """
    kind: ShapeKind
    vertex_count: int = 8
    center: Point = field(default_factory=lambda: Point(0.0, 0.0))
    rotation: float = 0.0
    scale: Tuple[float, float] = (1.0, 1.0)
    shear: Tuple[float, float] = (0.0, 0.0)
    rows: int = 4
    columns: int = 4

    def __post_init__(self):
        try:
            kind = ShapeKind(self.kind)
        except ValueError as e:
            raise InvalidShapeError(f"unknown shape kind {self.kind!r}") from e
        object.__setattr__(self, "kind", kind)
        try:
            center = Point.of(self.center)
        except (TypeError, ValueError) as e:
            raise InvalidShapeError(f"center must be an (x, y) pair, got {self.center!r}") from e
        if not (math.isfinite(center.x) and math.isfinite(center.y)):
            raise InvalidShapeError(f"center must be finite, got ({center.x}, {center.y})")
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "vertex_count", int(self.vertex_count))
        object.__setattr__(self, "rows", int(self.rows))
        object.__setattr__(self, "columns", int(self.columns))

        if kind in (ShapeKind.REGULAR_POLYGON, ShapeKind.POLYGONAL_STAR):
            if self.vertex_count < MIN_VERTEX_COUNT:
                raise InvalidShapeError(
                    f"{kind.value} needs at least {MIN_VERTEX_COUNT} vertices, got {self.vertex_count}"
                )
        if kind == ShapeKind.GRID and (self.rows < 1 or self.columns < 1):
            raise InvalidShapeError(f"grid needs at least 1 row and 1 column, got {self.rows}x{self.columns}")

        sx, sy = map(float, self.scale)
        if not (math.isfinite(sx) and math.isfinite(sy)) or sx <= 0 or sy <= 0:
            raise InvalidShapeError(f"scale factors must be finite and > 0, got {self.scale}")
        object.__setattr__(self, "scale", (sx, sy))

        hx, hy = map(float, self.shear)
        if not (math.isfinite(hx) and math.isfinite(hy)):
            raise InvalidShapeError(f"shear factors must be finite, got {self.shear}")
        object.__setattr__(self, "shear", (hx, hy))

        if not math.isfinite(float(self.rotation)):
            raise InvalidShapeError(f"rotation must be finite, got {self.rotation}")

    @property
    def transformation(self) -> Transformation:
        return Transformation(
            translation=self.center,
            rotation=float(self.rotation),
            scale=self.scale,
            shear=self.shear,
        )


def _unit_ring(count: int, radius: float = 1.0, offset: float = 0.0) -> np.ndarray:
    angles = 2.0 * math.pi * np.arange(count) / count + offset
    return radius * np.column_stack([np.cos(angles), np.sin(angles)])


def _grid_border(rows: int, columns: int) -> np.ndarray:
    pts = [(-1.0, -1.0), (-1.0, 1.0), (1.0, -1.0), (1.0, 1.0)]
    for r in range(1, rows):
        y = -1.0 + 2.0 * r / rows
        pts += [(-1.0, y), (1.0, y)]
    for c in range(1, columns):
        x = -1.0 + 2.0 * c / columns
        pts += [(x, -1.0), (x, 1.0)]
    return np.asarray(pts, dtype=np.float64)


def _local_points(descriptor: ShapeDescriptor) -> np.ndarray:
    n = descriptor.vertex_count
    if descriptor.kind == ShapeKind.REGULAR_POLYGON:
        return _unit_ring(n)
    if descriptor.kind == ShapeKind.POLYGONAL_STAR:
        outer = _unit_ring(n)
        inner = _unit_ring(n, STAR_INNER_RADIUS_RATIO, math.pi / n)
        pts = np.empty((2 * n, 2), dtype=np.float64)
        pts[0::2] = outer
        pts[1::2] = inner
        return pts
    return _grid_border(descriptor.rows, descriptor.columns)


def generate(descriptor: ShapeDescriptor) -> np.ndarray:
    """
    Seed points of a shape, in image coordinates.
    Regular polygon: n points; polygonal star: 2n points alternating outer/inner ring.
    """
    pts = descriptor.transformation.apply(_local_points(descriptor))
    pts.setflags(write=False)
    return pts


def connect_points(descriptor: ShapeDescriptor, points: np.ndarray) -> np.ndarray:
    """
    Line segments drawing the shape, (M,2,2).
    points must be the output of generate(descriptor).
    """
    P = np.asarray(points, dtype=np.float64)
    pairs = []

    if descriptor.kind == ShapeKind.REGULAR_POLYGON:
        n = len(P)
        pairs = [(a, b) for a in range(n) for b in range(a + 1, n)]

    elif descriptor.kind == ShapeKind.POLYGONAL_STAR:
        n = len(P) // 2
        outer = lambda k: 2 * (k % n)
        inner = lambda k: 2 * (k % n) + 1
        for a in range(n):
            pairs.append((outer(a), outer(a + 2)))
        for a in range(n):
            for b in range(a + 2, a + n - 2):
                pairs.append((outer(a), inner(b)))

    else:
        # rows then columns, two border points per line
        pairs = [(k, k + 1) for k in range(4, len(P), 2)]

    if not pairs:
        return np.zeros((0, 2, 2), dtype=np.float64)
    idx = np.asarray(pairs, dtype=np.int64)
    return np.stack([P[idx[:, 0]], P[idx[:, 1]]], axis=1)


def key_points(descriptor: ShapeDescriptor, with_intersections: bool = True) -> np.ndarray:
    """
    Seeds for the partition builder: the shape's points, then (optionally) every
    crossing of its segments. Near-duplicates are removed, earlier points win.
    """
    base = generate(descriptor)
    if not with_intersections:
        return base

    crossings = intersect_segments(connect_points(descriptor, base))
    pts = dedup_points(np.vstack([base, crossings]))
    logger.debug(
        "Key points generated: shape=%s base=%d crossings=%d total=%d",
        descriptor.kind.value,
        len(base),
        len(crossings),
        len(pts),
    )
    pts.setflags(write=False)
    return pts
