from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

import numpy as np

from .coloring import as_coloring_method
from .datastructures import Partition, PartitionKind
from .shapes import ShapeDescriptor

if TYPE_CHECKING:
    from .config import MosaicSettings

logger = logging.getLogger(__name__)

# Rows rendered per band; bands are the unit of work for parallel drawing.
BAND_ROWS = 64


def pixel_centers(width: int, y0: int, y1: int) -> np.ndarray:
    """Centers (x+0.5, y+0.5) of the pixels in rows [y0, y1), row-major."""
    xs = np.arange(width, dtype=np.float64) + 0.5
    ys = np.arange(y0, y1, dtype=np.float64) + 0.5
    gx, gy = np.meshgrid(xs, ys)
    return np.column_stack([gx.ravel(), gy.ravel()])


def to_uint8(colors: np.ndarray) -> np.ndarray:
    return np.round(np.clip(colors, 0.0, 1.0) * 255.0).astype(np.uint8)


def shade(colors: np.ndarray, distances: np.ndarray, radii: np.ndarray, strength: float) -> np.ndarray:
    """Lighten towards white by strength * (1 - d/r)^2."""
    r = np.where(radii > 0.0, radii, 1.0)
    lightness = np.clip(1.0 - distances / r, 0.0, 1.0) ** 2 * strength
    return colors + (1.0 - colors) * lightness[:, None]


@dataclass(frozen=True)
class Mosaic:
    """
    A built mosaic: a partition of the image rectangle plus the shape it came from.
    Never mutated; draw() may be called any number of times.
    """
    partition: Partition
    image_width: int
    image_height: int
    shape: ShapeDescriptor
    # private copy taken at build time
    settings: Optional["MosaicSettings"] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(f"Image size must be positive, got {self.image_width}x{self.image_height}")

    @property
    def kind(self) -> PartitionKind:
        return self.partition.kind

    @property
    def image_size(self) -> Tuple[int, int]:
        return self.image_width, self.image_height

    def _bands(self) -> List[Tuple[int, int]]:
        h = self.image_height
        return [(y0, min(y0 + BAND_ROWS, h)) for y0 in range(0, h, BAND_ROWS)]

    def label_map(self) -> np.ndarray:
        """(H,W) index of the cell owning each pixel."""
        w, h = self.image_size
        labels = np.empty((h, w), dtype=np.int64)
        for y0, y1 in self._bands():
            labels[y0:y1] = self.partition.locate(pixel_centers(w, y0, y1)).reshape(y1 - y0, w)
        return labels

    def cell_coverage(self) -> np.ndarray:
        """Pixel count per cell; sums to width * height."""
        return np.bincount(self.label_map().ravel(), minlength=self.partition.cell_count())

    def _render_band(self, method, shading: float, y0: int, y1: int, out: np.ndarray) -> None:
        w = self.image_width
        pts = pixel_centers(w, y0, y1)
        owner = self.partition.locate(pts)
        sites = self.partition.sites[owner]
        colors = method.colors_at(pts, sites)
        if shading > 0.0:
            dist = np.sqrt(((pts - sites) ** 2).sum(axis=1))
            colors = shade(colors, dist, self.partition.radii[owner], shading)
        out[y0:y1] = to_uint8(colors).reshape(y1 - y0, w, 3)

    def draw(self, coloring_method: Any, *, shading: float = 0.0, workers: int | None = None) -> np.ndarray:
        """
        Paint the mosaic.

        coloring_method: a ColoringMethod, or any color accepted by parse_color.
        shading: 0..1, strength of the per-cell lightening towards white.
        workers: render row bands on this many threads; the result does not depend on it.

        Returns a (height, width, 3) uint8 sRGB buffer.
        """
        method = as_coloring_method(coloring_method)
        shading = float(shading)
        if not (0.0 <= shading <= 1.0):
            raise ValueError(f"shading must lie in [0, 1], got {shading}")

        out = np.empty((self.image_height, self.image_width, 3), dtype=np.uint8)
        bands = self._bands()
        t0 = time.perf_counter()

        if workers is not None and workers > 1 and len(bands) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [pool.submit(self._render_band, method, shading, y0, y1, out) for y0, y1 in bands]
                for f in futures:
                    f.result()
        else:
            for y0, y1 in bands:
                self._render_band(method, shading, y0, y1, out)

        logger.debug(
            "Mosaic drawn: coloring=%s size=%dx%d cells=%d bands=%d workers=%d duration_ms=%.2f",
            method.kind,
            self.image_width,
            self.image_height,
            self.partition.cell_count(),
            len(bands),
            workers or 1,
            (time.perf_counter() - t0) * 1000.0,
        )
        return out

    def rebuild(self, kind: PartitionKind) -> "Mosaic":
        """Same shape and image, other partition kind."""
        from .builder import build_mosaic
        from .config import MosaicSettings

        settings = self.settings
        if settings is None:
            settings = MosaicSettings.from_shape(self.shape, self.image_width, self.image_height)
        return build_mosaic(settings.with_kind(kind))
