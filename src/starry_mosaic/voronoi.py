import logging
import numpy as np
from scipy.spatial import Delaunay, QhullError, Voronoi, cKDTree
from shapely.geometry import Polygon, box
from collections import defaultdict

from .datastructures import MosaicCell, MosaicEdge, Partition, PartitionKind
from .exceptions import DegenerateGeometryError
from .geometry import dedup_points, is_collinear

logger = logging.getLogger(__name__)

# Nearest-seed candidates fetched from the KD-tree per query point.
LOCATOR_CANDIDATES = 8


def _squared_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    d = a - b
    return (d * d).sum(axis=-1)


class NearestSiteLocator:
    """
    Nearest representative point; exact ties resolve to the lowest index.
    """

    def __init__(self, sites: np.ndarray, candidates: int = LOCATOR_CANDIDATES):
        self.sites = np.asarray(sites, dtype=np.float64)
        self.tree = cKDTree(self.sites)
        self.k = max(1, min(int(candidates), len(self.sites)))

    def __call__(self, points: np.ndarray) -> np.ndarray:
        P = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(P) == 0:
            return np.zeros(0, dtype=np.int64)

        _, idx = self.tree.query(P, k=self.k)
        idx = np.asarray(idx, dtype=np.int64).reshape(len(P), self.k)
        d2 = _squared_distances(self.sites[idx], P[:, None, :])
        best = d2.min(axis=1)
        tied = d2 == best[:, None]
        owner = np.where(tied, idx, np.iinfo(np.int64).max).min(axis=1)

        if self.k < len(self.sites):
            # every candidate ties: more equidistant sites may exist beyond the candidate set
            crowded = np.flatnonzero(tied.all(axis=1))
            if len(crowded):
                full = _squared_distances(self.sites[None, :, :], P[crowded, None, :])
                owner[crowded] = np.argmin(full, axis=1)

        return owner


class TriangleLocator:
    """
    Triangle containing the point; points outside the triangulation go to the
    nearest centroid.
    """

    def __init__(self, triangulation: Delaunay, centroids: np.ndarray):
        self.triangulation = triangulation
        self.fallback = NearestSiteLocator(centroids)

    def __call__(self, points: np.ndarray) -> np.ndarray:
        P = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        owner = np.asarray(self.triangulation.find_simplex(P), dtype=np.int64)
        outside = np.flatnonzero(owner < 0)
        if len(outside):
            owner[outside] = self.fallback(P[outside])
        return owner


def _make_reflections_2d(points: np.ndarray, bounds, include_diagonals: bool = True) -> np.ndarray:
    """
    Create mirrored ghost points around a bounding box to make Voronoi regions finite.

    bounds: (minx, miny, maxx, maxy)
    """
    minx, miny, maxx, maxy = map(float, bounds)

    # reflect x and y around min/max
    fx = [
        lambda x: x,
        lambda x: 2 * minx - x,
        lambda x: 2 * maxx - x,
    ]
    fy = [
        lambda y: y,
        lambda y: 2 * miny - y,
        lambda y: 2 * maxy - y,
    ]

    ghosts = []
    for ix, fxi in enumerate(fx):
        for iy, fyi in enumerate(fy):
            if ix == 0 and iy == 0:
                continue
            if not include_diagonals:
                # only axis reflections (skip diagonal combinations)
                if ix != 0 and iy != 0:
                    continue

            g = np.column_stack([
                fxi(points[:, 0]),
                fyi(points[:, 1])
            ])
            ghosts.append(g)

    return np.vstack(ghosts) if ghosts else np.zeros((0, 2), dtype=np.float64)


def _reflection_bounds(seeds: np.ndarray, width: float, height: float):
    """Box strictly enclosing the image and every seed."""
    minx = min(0.0, float(seeds[:, 0].min()))
    miny = min(0.0, float(seeds[:, 1].min()))
    maxx = max(width, float(seeds[:, 0].max()))
    maxy = max(height, float(seeds[:, 1].max()))
    margin = max(maxx - minx, maxy - miny)
    return minx - margin, miny - margin, maxx + margin, maxy + margin


class _VertexWelder:
    def __init__(self, decimals: int):
        self.decimals = decimals
        self.vertices = []
        self.index = {}

    def __call__(self, pt2) -> int:
        key = (round(float(pt2[0]), self.decimals), round(float(pt2[1]), self.decimals))
        if key not in self.index:
            self.index[key] = len(self.vertices)
            self.vertices.append([key[0], key[1]])
        return self.index[key]

    def array(self) -> np.ndarray:
        if not self.vertices:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array(self.vertices, dtype=np.float64)


def _neighbor_map(edges):
    """cell id -> sorted ids of the cells sharing an edge with it"""
    neighbors = defaultdict(set)
    for e in edges:
        if len(e.cells) == 2:
            c0, c1 = e.cells
            neighbors[c0].add(c1)
            neighbors[c1].add(c0)
    return {cid: tuple(sorted(nbs)) for cid, nbs in neighbors.items()}


def _farthest(site: np.ndarray, polygon: np.ndarray) -> float:
    if len(polygon) == 0:
        return 0.0
    return float(np.sqrt(_squared_distances(polygon, site[None, :]).max()))


def compute_voronoi_partition(
    seeds: np.ndarray,
    width: float,
    height: float,
    *,
    reflection_diagonals: bool = True,
    weld_decimals: int = 6,
) -> Partition:
    """
    Voronoi cells of the seeds clipped to [0,width]x[0,height].

    - SciPy Voronoi produces infinite regions for hull points; mirrored ghost
      seeds around a box enclosing image and seeds make every seed region finite.
    - One cell per seed, in seed order; the representative point is the seed.
    """
    seeds = np.asarray(seeds, dtype=np.float64)
    frame = box(0.0, 0.0, float(width), float(height))

    n_orig = len(seeds)
    ghosts = _make_reflections_2d(
        seeds, _reflection_bounds(seeds, width, height), include_diagonals=reflection_diagonals
    )
    try:
        vor = Voronoi(np.vstack([seeds, ghosts]))
    except QhullError as e:
        raise DegenerateGeometryError(f"Voronoi construction failed: {e}", n_orig) from e

    weld = _VertexWelder(weld_decimals)
    polygons = []
    edge_map = defaultdict(set)  # (va,vb) -> {cell_ids...}

    # ghosts come after the seeds; only seed regions become cells
    for i in range(n_orig):
        region = vor.regions[vor.point_region[i]]
        coords = np.zeros((0, 2), dtype=np.float64)

        # with reflections, regions should be finite; still guard:
        if -1 not in region and len(region) >= 3:
            clipped = Polygon(vor.vertices[region]).intersection(frame)
            if not clipped.is_empty and clipped.geom_type == "Polygon":
                coords = np.array(clipped.exterior.coords[:-1], dtype=np.float64)

        if len(coords) >= 3:
            vidx = [weld(p) for p in coords]
            # edges for topology
            for a, b in zip(vidx, vidx[1:] + [vidx[0]]):
                edge_map[tuple(sorted((a, b)))].add(i)
        else:
            coords = np.zeros((0, 2), dtype=np.float64)
        polygons.append(coords)

    edges = [MosaicEdge(a, b, tuple(sorted(cs))) for (a, b), cs in edge_map.items()]
    neighbors = _neighbor_map(edges)
    cells = [
        MosaicCell(
            index=i,
            site=seeds[i],
            polygon=coords,
            neighbors=neighbors.get(i, ()),
            radius=_farthest(seeds[i], coords),
        )
        for i, coords in enumerate(polygons)
    ]

    return Partition(
        kind=PartitionKind.VORONOI,
        seeds=seeds,
        vertices=weld.array(),
        cells=cells,
        edges=edges,
        locator=NearestSiteLocator(seeds),
    )


def compute_delaunay_partition(
    seeds: np.ndarray,
    width: float,
    height: float,
    *,
    include_corners: bool = True,
) -> Partition:
    """
    Delaunay triangles of the seeds (plus the image corners when include_corners).
    One cell per triangle in Qhull's simplex order; the representative point is the centroid.
    """
    seeds = np.asarray(seeds, dtype=np.float64)
    points = seeds
    if include_corners:
        corners = np.array(
            [[0.0, 0.0], [width, 0.0], [width, height], [0.0, height]], dtype=np.float64
        )
        points = dedup_points(np.vstack([seeds, corners]))

    try:
        tri = Delaunay(points)
    except QhullError as e:
        raise DegenerateGeometryError(f"Delaunay triangulation failed: {e}", len(seeds)) from e

    simplices = np.asarray(tri.simplices, dtype=np.int64)
    corners_xy = points[simplices]           # (T,3,2)
    centroids = corners_xy.mean(axis=1)      # (T,2)

    cells = []
    edge_map = defaultdict(set)
    for t, simplex in enumerate(simplices):
        a, b, c = (int(v) for v in simplex)
        for u, v in ((a, b), (b, c), (c, a)):
            edge_map[tuple(sorted((u, v)))].add(t)
        cells.append(
            MosaicCell(
                index=t,
                site=centroids[t],
                polygon=corners_xy[t],
                neighbors=sorted(int(k) for k in tri.neighbors[t] if k >= 0),
                radius=_farthest(centroids[t], corners_xy[t]),
            )
        )

    edges = [MosaicEdge(a, b, tuple(sorted(cs))) for (a, b), cs in edge_map.items()]

    return Partition(
        kind=PartitionKind.DELAUNAY,
        seeds=points,
        vertices=points.copy(),
        cells=cells,
        edges=edges,
        locator=TriangleLocator(tri, centroids),
    )


def build_partition(
    seeds: np.ndarray,
    width: int,
    height: int,
    kind: PartitionKind = PartitionKind.VORONOI,
    *,
    include_corners: bool = True,
) -> Partition:
    """
    Deduplicate seeds, reject degenerate input and delegate to the Voronoi or
    Delaunay construction.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")

    seeds = np.asarray(seeds, dtype=np.float64)
    if seeds.ndim != 2 or seeds.shape[1] != 2:
        raise ValueError("seeds must be (N,2)")
    if not np.all(np.isfinite(seeds)):
        raise DegenerateGeometryError("seed points must be finite", len(seeds))

    unique = dedup_points(seeds)
    if len(unique) < 3:
        raise DegenerateGeometryError(
            f"need at least 3 distinct seed points, got {len(unique)}", len(unique)
        )
    if is_collinear(unique):
        raise DegenerateGeometryError("seed points are collinear", len(unique))

    kind = PartitionKind(kind)
    if kind == PartitionKind.VORONOI:
        partition = compute_voronoi_partition(unique, width, height)
    else:
        partition = compute_delaunay_partition(unique, width, height, include_corners=include_corners)

    logger.debug(
        "Partition built: kind=%s seeds=%d unique=%d cells=%d edges=%d",
        kind.value,
        len(seeds),
        len(unique),
        partition.cell_count(),
        partition.edge_count(),
    )
    return partition
