from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
from scipy.spatial import cKDTree

# Seeds closer than this (in pixels) are treated as one seed.
SEED_EPSILON = 1e-6


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    @classmethod
    def of(cls, value) -> "Point":
        """Coerce a Point, an (x, y) pair or a length-2 array into a Point."""
        if isinstance(value, Point):
            return value
        x, y = value
        return cls(float(x), float(y))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y], dtype=np.float64)

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> Point:
        return Point(-self.x, -self.y)

    def dot(self, other: Point) -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: Point) -> float:
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_to(self, other: Point) -> float:
        return (other - self).length()

    def interpolate(self, other: Point, factor: float) -> Point:
        factor = min(max(factor, 0.0), 1.0)
        return Point(self.x + (other.x - self.x) * factor, self.y + (other.y - self.y) * factor)

    def translate(self, offset: Point) -> Point:
        return self + offset

    def rotate(self, angle: float, pivot: Point | None = None) -> Point:
        if pivot is not None:
            return (self - pivot).rotate(angle) + pivot
        s, c = math.sin(angle), math.cos(angle)
        return Point(self.x * c - self.y * s, self.x * s + self.y * c)

    def scale(self, sx: float, sy: float) -> Point:
        return Point(self.x * sx, self.y * sy)

    def shear(self, hx: float, hy: float) -> Point:
        return Point(self.x + hx * self.y, self.y + hy * self.x)


def rotate_points(points: np.ndarray, angle: float) -> np.ndarray:
    s, c = math.sin(angle), math.cos(angle)
    return np.column_stack([
        points[:, 0] * c - points[:, 1] * s,
        points[:, 0] * s + points[:, 1] * c,
    ])


def shear_points(points: np.ndarray, hx: float, hy: float) -> np.ndarray:
    return np.column_stack([
        points[:, 0] + hx * points[:, 1],
        points[:, 1] + hy * points[:, 0],
    ])


@dataclass(frozen=True)
class Transformation:
    """
    Placement of a shape in image space.
    Local shape coordinates are sheared, rotated, scaled and then translated.
    """
    translation: Point = field(default_factory=lambda: Point(0.0, 0.0))
    rotation: float = 0.0
    scale: Tuple[float, float] = (1.0, 1.0)
    shear: Tuple[float, float] = (0.0, 0.0)

    def apply(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        hx, hy = self.shear
        if hx or hy:
            pts = shear_points(pts, hx, hy)
        pts = rotate_points(pts, self.rotation)
        pts = pts * np.asarray(self.scale, dtype=np.float64)
        return pts + self.translation.to_array()

    def apply_point(self, point: Point) -> Point:
        hx, hy = self.shear
        sx, sy = self.scale
        return Point.of(point).shear(hx, hy).rotate(self.rotation).scale(sx, sy).translate(self.translation)


def intersect_segments(segments: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """
    Proper intersections of every pair of segments.
    segments: (M,2,2) -> (K,2); touching endpoints and parallel pairs are ignored.
    """
    S = np.asarray(segments, dtype=np.float64).reshape(-1, 2, 2)
    if len(S) < 2:
        return np.zeros((0, 2), dtype=np.float64)

    i, j = np.triu_indices(len(S), k=1)
    p, r = S[i, 0], S[i, 1] - S[i, 0]
    q, s = S[j, 0], S[j, 1] - S[j, 0]

    denom = r[:, 0] * s[:, 1] - r[:, 1] * s[:, 0]
    qp = q - p
    ok = np.abs(denom) > eps
    safe = np.where(ok, denom, 1.0)
    t = (qp[:, 0] * s[:, 1] - qp[:, 1] * s[:, 0]) / safe
    u = (qp[:, 0] * r[:, 1] - qp[:, 1] * r[:, 0]) / safe

    mask = ok & (t > eps) & (t < 1.0 - eps) & (u > eps) & (u < 1.0 - eps)
    return p[mask] + t[mask, None] * r[mask]


def dedup_points(points: np.ndarray, eps: float = SEED_EPSILON) -> np.ndarray:
    """
    Drop points closer than eps to an earlier kept point.
    Order of the kept points is preserved.
    """
    P = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(P) < 2:
        return P.copy()

    drop = np.zeros(len(P), dtype=bool)
    for a, b in sorted(cKDTree(P).query_pairs(eps)):
        if not drop[a]:
            drop[b] = True
    return P[~drop]


def is_collinear(points: np.ndarray, rel_tol: float = 1e-9) -> bool:
    P = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(P) < 3:
        return True
    sv = np.linalg.svd(P - P.mean(axis=0), compute_uv=False)
    return bool(sv[0] == 0.0 or sv[-1] <= rel_tol * sv[0])
