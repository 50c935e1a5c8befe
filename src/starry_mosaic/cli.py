"""Command-line interface: render one mosaic to an image file."""

import time
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console

from . import __version__
from .builder import build_mosaic
from .coloring import (
    COLORING_METHODS,
    ColorSpace,
    ConicGradient,
    GradientStops,
    LinearGradient,
    RadialGradient,
    Solid,
)
from .config import ImageConfig, LoggingConfig, MosaicKind, MosaicSettings, RenderConfig, ShapeConfig
from .exceptions import ImageSaveError, MosaicError
from .io import save_image
from .log import configure_logging
from .shapes import ShapeKind

console = Console()

SYM_STEP = "▸"
SYM_OK = "✓"
SYM_ERR = "✗"

app = typer.Typer(
    name="starry-mosaic",
    help="Render star and polygon mosaics seeded by geometric shapes.",
    add_completion=False,
    no_args_is_help=True,
)


def print_error(message: str, details: str | None = None) -> None:
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]starry-mosaic[/bold blue] v{__version__}")
        raise typer.Exit()


def _parse_choice(enum_cls, value: str, option: str):
    try:
        return enum_cls(value.lower())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        print_error(f"Invalid {option}: {value}", details=f"Valid values: {valid}")
        raise typer.Exit(code=1)


def make_coloring(
    coloring: str,
    colors: list[str],
    width: int,
    height: int,
    center: tuple[float, float],
    space: ColorSpace = ColorSpace.SRGB,
    smoothness: float = 1.0,
    repeat: int = 1,
):
    """Coloring method for the CLI: gradients span the whole image.

    Raises:
        InvalidGradientError: If the colors do not form a valid gradient
    """
    if coloring == "solid":
        return Solid(colors[0])

    stops = GradientStops.evenly_spaced(colors, space)
    if coloring == "linear":
        return LinearGradient(stops, (0.0, 0.0), (float(width), float(height)), smoothness=smoothness)
    if coloring == "radial":
        return RadialGradient(stops, center, max(width, height) / 2.0, repeat=repeat, smoothness=smoothness)
    return ConicGradient(stops, center, repeat=repeat, smoothness=smoothness)


@app.command()
def render(
    output: Annotated[
        Path,
        typer.Argument(help="Output image path (format from extension, e.g. .png)", show_default=False),
    ],
    kind: Annotated[str, typer.Option("--kind", "-k", help="Mosaic kind (star|polygon)")] = "star",
    shape: Annotated[
        str,
        typer.Option("--shape", "-s", help="Seed shape (regular_polygon|polygonal_star|grid)"),
    ] = "regular_polygon",
    vertices: Annotated[int, typer.Option("--vertices", "-n", help="Vertices of a polygon or star")] = 8,
    rows: Annotated[int, typer.Option("--rows", help="Grid rows")] = 4,
    columns: Annotated[int, typer.Option("--columns", help="Grid columns")] = 4,
    width: Annotated[int, typer.Option("--width", "-W", help="Image width in pixels", min=1)] = 640,
    height: Annotated[int, typer.Option("--height", "-H", help="Image height in pixels", min=1)] = 640,
    center_x: Annotated[float | None, typer.Option("--center-x", help="Shape center x (default: image center)")] = None,
    center_y: Annotated[float | None, typer.Option("--center-y", help="Shape center y (default: image center)")] = None,
    rotation: Annotated[float, typer.Option("--rotation", "-r", help="Shape rotation in radians")] = 0.0,
    scale: Annotated[
        float | None,
        typer.Option("--scale", help="Shape radius in pixels (default: half the shorter side)"),
    ] = None,
    coloring: Annotated[
        str,
        typer.Option("--coloring", "-c", help="Coloring method (solid|linear|radial|conic)"),
    ] = "linear",
    colors: Annotated[
        str,
        typer.Option("--colors", help="Comma-separated colors (names or hex)"),
    ] = "#1d3557,#e63946,#f1faee",
    space: Annotated[str, typer.Option("--space", help="Interpolation space (srgb|linear|lab|hsv)")] = "srgb",
    smoothness: Annotated[
        float,
        typer.Option("--smoothness", help="0 = one color per cell, 1 = continuous gradient", min=0.0, max=1.0),
    ] = 1.0,
    repeat: Annotated[int, typer.Option("--repeat", help="Gradient repetitions (radial, conic)", min=1)] = 1,
    shading: Annotated[
        float,
        typer.Option("--shading", help="Per-cell lightening strength", min=0.0, max=1.0),
    ] = 0.0,
    workers: Annotated[int | None, typer.Option("--workers", "-j", help="Drawing threads", min=1)] = None,
    log_file: Annotated[Path | None, typer.Option("--log-file", help="Write detailed logs to file")] = None,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)"),
    ] = "WARNING",
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Render a mosaic.

    Example:
        starry-mosaic star.png --shape polygonal_star -n 7 --coloring conic
    """
    mosaic_kind = _parse_choice(MosaicKind, kind, "kind")
    shape_kind = _parse_choice(ShapeKind, shape, "shape")
    color_space = _parse_choice(ColorSpace, space, "color space")
    coloring = coloring.lower()
    if coloring not in COLORING_METHODS:
        print_error(f"Invalid coloring: {coloring}", details=f"Valid values: {', '.join(COLORING_METHODS)}")
        raise typer.Exit(code=1)

    color_list = [c.strip() for c in colors.split(",") if c.strip()]
    if not color_list:
        print_error("No colors given", details="Pass --colors, e.g. --colors 'navy,gold'")
        raise typer.Exit(code=1)

    center = None
    if center_x is not None or center_y is not None:
        center = (
            center_x if center_x is not None else width / 2.0,
            center_y if center_y is not None else height / 2.0,
        )

    try:
        settings = MosaicSettings(
            image=ImageConfig(width=width, height=height),
            shape=ShapeConfig(
                kind=shape_kind,
                vertex_count=vertices,
                rows=rows,
                columns=columns,
                center=center,
                rotation=rotation,
                scale=scale,
            ),
            kind=mosaic_kind,
            render=RenderConfig(shading=shading, workers=workers),
            logging=LoggingConfig(log_file=log_file, log_level=log_level),
        )
    except ValidationError as e:
        print_error("Invalid settings", details=str(e))
        raise typer.Exit(code=1)

    logger = configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
    )

    try:
        start = time.perf_counter()
        console.print(f"\n{SYM_STEP} Building {mosaic_kind.value} mosaic from {shape_kind.value}")
        mosaic = build_mosaic(settings)

        method = make_coloring(
            coloring,
            color_list,
            width,
            height,
            center or (width / 2.0, height / 2.0),
            space=color_space,
            smoothness=smoothness,
            repeat=repeat,
        )
        console.print(f"{SYM_STEP} Drawing {width}x{height} with {method.kind} coloring")
        buffer = mosaic.draw(method, shading=settings.render.shading, workers=settings.render.workers)
        save_image(buffer, output)

        elapsed = time.perf_counter() - start
        logger.info("Render finished", output=str(output), cells=mosaic.partition.cell_count(), seconds=elapsed)
        console.print(
            f"\n[bold green]{SYM_OK}[/bold green] Saved [bold]{output}[/bold] "
            f"({mosaic.partition.cell_count()} cells, {elapsed:.2f}s)"
        )
    except ImageSaveError as e:
        print_error(f"Could not save image: {e.reason}")
        raise typer.Exit(code=1)
    except MosaicError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
