"""Configuration settings for starry_mosaic.

Settings are pydantic models. Field constraints cover types and ranges;
shape semantics (minimum vertex count and the like) are checked when the
shape descriptor is created so callers see InvalidShapeError.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .datastructures import PartitionKind
from .shapes import ShapeDescriptor, ShapeKind


class MosaicKind(str, Enum):
    """Mosaic family."""

    STAR = "star"        # Voronoi cells
    POLYGON = "polygon"  # Delaunay triangles

    @property
    def partition_kind(self) -> PartitionKind:
        return PartitionKind.VORONOI if self is MosaicKind.STAR else PartitionKind.DELAUNAY

    @classmethod
    def of(cls, value) -> "MosaicKind":
        if isinstance(value, PartitionKind):
            return cls.STAR if value is PartitionKind.VORONOI else cls.POLYGON
        return cls(value)


class ImageConfig(BaseModel):
    """Size of the produced image in pixels."""

    width: int = Field(default=640, gt=0, description="Image width")
    height: int = Field(default=640, gt=0, description="Image height")


class ShapeConfig(BaseModel):
    """Shape family and placement."""

    kind: ShapeKind = Field(default=ShapeKind.REGULAR_POLYGON, description="Shape family")
    vertex_count: int = Field(default=8, description="Vertices of a polygon or star")
    rows: int = Field(default=4, description="Grid rows")
    columns: int = Field(default=4, description="Grid columns")
    center: tuple[float, float] | None = Field(
        default=None,
        description="Shape center in pixels (None = image center)",
    )
    rotation: float = Field(default=0.0, description="Rotation in radians")
    scale: tuple[float, float] | None = Field(
        default=None,
        description="Horizontal and vertical scale in pixels (None = half the shorter image side)",
    )
    shear: tuple[float, float] = Field(default=(0.0, 0.0), description="Horizontal and vertical shear")
    with_intersections: bool = Field(
        default=True,
        description="Add crossings of the shape's segments to the seed points",
    )

    @field_validator("scale", mode="before")
    @classmethod
    def _uniform_scale(cls, value):
        if isinstance(value, (int, float)):
            return (value, value)
        return value


class RenderConfig(BaseModel):
    """Drawing options."""

    shading: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Strength of per-cell lightening towards white",
    )
    workers: int | None = Field(
        default=None,
        ge=1,
        description="Threads used to draw (None = single-threaded)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class MosaicSettings(BaseModel):
    """Main settings: everything needed to build and draw one mosaic."""

    image: ImageConfig = Field(default_factory=ImageConfig)
    shape: ShapeConfig = Field(default_factory=ShapeConfig)
    kind: MosaicKind = Field(default=MosaicKind.STAR, description="Mosaic family")
    include_corners: bool = Field(
        default=True,
        description="Add the image corners to polygon mosaics so triangles cover the image",
    )
    render: RenderConfig = Field(default_factory=RenderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def with_kind(self, kind) -> "MosaicSettings":
        return self.model_copy(update={"kind": MosaicKind.of(kind)})

    @classmethod
    def from_shape(cls, shape: ShapeDescriptor, width: int, height: int) -> "MosaicSettings":
        return cls(
            image=ImageConfig(width=width, height=height),
            shape=ShapeConfig(
                kind=shape.kind,
                vertex_count=shape.vertex_count,
                rows=shape.rows,
                columns=shape.columns,
                center=(shape.center.x, shape.center.y),
                rotation=shape.rotation,
                scale=shape.scale,
                shear=shape.shear,
            ),
        )


def get_default_settings() -> MosaicSettings:
    """Get default settings."""
    return MosaicSettings()
