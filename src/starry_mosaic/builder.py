"""Assemble validated settings into a Mosaic.

build_mosaic is the single construction entry point: the shape descriptor is
validated before any geometry work, then seeds are generated and partitioned.
"""

import logging
import time

from .config import MosaicSettings
from .geometry import Point
from .mosaic import Mosaic
from .shapes import ShapeDescriptor, key_points
from .voronoi import build_partition

logger = logging.getLogger(__name__)


def shape_descriptor(settings: MosaicSettings) -> ShapeDescriptor:
    """Resolve defaults (center, scale) and validate the shape.

    Raises:
        InvalidShapeError: If the shape parameters are invalid
    """
    width, height = settings.image.width, settings.image.height
    shape = settings.shape

    center = shape.center if shape.center is not None else (width / 2.0, height / 2.0)
    scale = shape.scale
    if scale is None:
        half = min(width, height) / 2.0
        scale = (half, half)

    return ShapeDescriptor(
        kind=shape.kind,
        vertex_count=shape.vertex_count,
        center=Point.of(center),
        rotation=shape.rotation,
        scale=scale,
        shear=shape.shear,
        rows=shape.rows,
        columns=shape.columns,
    )


def build_mosaic(settings: MosaicSettings | None = None) -> Mosaic:
    """Build a mosaic from settings.

    Args:
        settings: Mosaic settings (defaults if None)

    Returns:
        Immutable Mosaic ready to draw

    Raises:
        InvalidShapeError: If the shape parameters are invalid
        DegenerateGeometryError: If the seeds cannot form a partition
    """
    settings = settings or MosaicSettings()
    start = time.perf_counter()

    descriptor = shape_descriptor(settings)
    seeds = key_points(descriptor, with_intersections=settings.shape.with_intersections)
    partition = build_partition(
        seeds,
        settings.image.width,
        settings.image.height,
        settings.kind.partition_kind,
        include_corners=settings.include_corners,
    )

    mosaic = Mosaic(
        partition=partition,
        image_width=settings.image.width,
        image_height=settings.image.height,
        shape=descriptor,
        settings=settings.model_copy(deep=True),
    )
    logger.info(
        "Mosaic built: kind=%s shape=%s seeds=%d cells=%d duration_ms=%.2f",
        settings.kind.value,
        descriptor.kind.value,
        len(seeds),
        partition.cell_count(),
        (time.perf_counter() - start) * 1000.0,
    )
    return mosaic
