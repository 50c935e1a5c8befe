__version__ = "0.4.0"

from .exceptions import MosaicError, InvalidShapeError, DegenerateGeometryError, InvalidGradientError, ImageSaveError
from .geometry import Point, Transformation
from .shapes import ShapeKind, ShapeDescriptor, generate, connect_points, key_points
from .datastructures import PartitionKind, Partition, MosaicCell, MosaicEdge
from .voronoi import build_partition, compute_voronoi_partition, compute_delaunay_partition
from .coloring import (
    PER_CELL,
    PER_PIXEL,
    ColorSpace,
    GradientStops,
    ColoringMethod,
    Solid,
    LinearGradient,
    RadialGradient,
    ConicGradient,
    color_at,
    parse_color,
)
from .mosaic import Mosaic
from .config import MosaicKind, MosaicSettings, get_default_settings
from .builder import build_mosaic
from .io import to_image, save_image, encode_png

__all__ = [
    "__version__",
    "MosaicError",
    "InvalidShapeError",
    "DegenerateGeometryError",
    "InvalidGradientError",
    "ImageSaveError",
    "Point",
    "Transformation",
    "ShapeKind",
    "ShapeDescriptor",
    "generate",
    "connect_points",
    "key_points",
    "PartitionKind",
    "Partition",
    "MosaicCell",
    "MosaicEdge",
    "build_partition",
    "compute_voronoi_partition",
    "compute_delaunay_partition",
    "PER_CELL",
    "PER_PIXEL",
    "ColorSpace",
    "GradientStops",
    "ColoringMethod",
    "Solid",
    "LinearGradient",
    "RadialGradient",
    "ConicGradient",
    "color_at",
    "parse_color",
    "Mosaic",
    "MosaicKind",
    "MosaicSettings",
    "get_default_settings",
    "build_mosaic",
    "to_image",
    "save_image",
    "encode_png",
]
