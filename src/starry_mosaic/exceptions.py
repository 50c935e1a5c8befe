"""Exception hierarchy for starry_mosaic."""


class MosaicError(Exception):
    """Base exception for all starry_mosaic errors."""

    pass


class InvalidShapeError(MosaicError, ValueError):
    """Shape parameters violate the shape's invariants."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid shape: {reason}")


class DegenerateGeometryError(MosaicError, ValueError):
    """Seed points cannot form a planar partition."""

    def __init__(self, reason: str, seed_count: int | None = None) -> None:
        self.reason = reason
        self.seed_count = seed_count
        super().__init__(f"Degenerate geometry: {reason}")


class InvalidGradientError(MosaicError, ValueError):
    """Malformed gradient stops or degenerate gradient geometry."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid gradient: {reason}")


class ImageSaveError(MosaicError):
    """Error encoding or writing a mosaic image."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save image '{path}': {reason}")
