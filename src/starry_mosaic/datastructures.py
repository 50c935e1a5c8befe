from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import numpy as np
from typing import Callable, List, Tuple


class PartitionKind(str, Enum):
    VORONOI = "voronoi"    # "star" mosaics
    DELAUNAY = "delaunay"  # "polygon" mosaics


@dataclass(frozen=True)
class MosaicEdge:
    v0: int
    v1: int
    cells: Tuple[int, ...]  # 1 or 2 cell indices


@dataclass(frozen=True)
class MosaicCell:
    index: int
    site: np.ndarray     # (2,) representative point
    polygon: np.ndarray  # (N,2), empty if the cell misses the image
    neighbors: Tuple[int, ...]
    radius: float = 0.0  # farthest boundary vertex from site

    def __post_init__(self):
        site = np.array(self.site, dtype=np.float64).reshape(2)
        polygon = np.array(self.polygon, dtype=np.float64).reshape(-1, 2)
        site.setflags(write=False)
        polygon.setflags(write=False)
        object.__setattr__(self, "site", site)
        object.__setattr__(self, "polygon", polygon)
        object.__setattr__(self, "neighbors", tuple(int(k) for k in self.neighbors))
        object.__setattr__(self, "radius", float(self.radius))


@dataclass
class Partition:
    kind: PartitionKind
    seeds: np.ndarray      # (S,2) deduplicated seeds
    vertices: np.ndarray   # (M,2) welded boundary vertices
    cells: List[MosaicCell]
    edges: List[MosaicEdge]
    locator: Callable[[np.ndarray], np.ndarray] = field(repr=False, compare=False)

    def __post_init__(self):
        self.sites = np.array([c.site for c in self.cells], dtype=np.float64).reshape(-1, 2)
        self.radii = np.array([c.radius for c in self.cells], dtype=np.float64)
        self.sites.setflags(write=False)
        self.radii.setflags(write=False)

    def cell_count(self) -> int:
        return len(self.cells)

    def edge_count(self) -> int:
        return len(self.edges)

    def locate(self, points: np.ndarray) -> np.ndarray:
        """(N,2) -> (N,) index of the owning cell."""
        return self.locator(np.asarray(points, dtype=np.float64).reshape(-1, 2))
