import dataclasses

import numpy as np
import pytest

from starry_mosaic.builder import build_mosaic
from starry_mosaic.coloring import ConicGradient, LinearGradient, RadialGradient, Solid
from starry_mosaic.config import ImageConfig, MosaicKind, MosaicSettings, ShapeConfig
from starry_mosaic.datastructures import PartitionKind
from starry_mosaic.exceptions import InvalidShapeError
from starry_mosaic.geometry import Point
from starry_mosaic.mosaic import BAND_ROWS, Mosaic
from starry_mosaic.shapes import ShapeDescriptor, ShapeKind, key_points
from starry_mosaic.voronoi import build_partition


def _pentagon_settings(kind=MosaicKind.STAR, width=100, height=100):
    return MosaicSettings(
        image=ImageConfig(width=width, height=height),
        shape=ShapeConfig(
            kind=ShapeKind.REGULAR_POLYGON,
            vertex_count=5,
            center=(50.0, 50.0),
            scale=(20.0, 20.0),
            rotation=0.0,
        ),
        kind=kind,
    )


def test_red_pentagon_every_pixel_is_red():
    mosaic = build_mosaic(_pentagon_settings())
    buf = mosaic.draw(Solid("red"))

    assert buf.shape == (100, 100, 3)
    assert buf.dtype == np.uint8
    assert np.all(buf[..., 0] == 255)
    assert np.all(buf[..., 1:] == 0)


@pytest.mark.parametrize("kind", list(MosaicKind))
@pytest.mark.parametrize("size", [(100, 100), (130, 70), (1, 1), (7, 200)])
def test_every_pixel_owned_by_exactly_one_cell(kind, size):
    w, h = size
    mosaic = build_mosaic(_pentagon_settings(kind, w, h))

    labels = mosaic.label_map()
    assert labels.shape == (h, w)
    assert labels.min() >= 0
    assert labels.max() < mosaic.partition.cell_count()
    assert mosaic.cell_coverage().sum() == w * h


def test_draw_is_deterministic():
    mosaic = build_mosaic(_pentagon_settings())
    method = ConicGradient([(0.0, "navy"), (0.5, "gold"), (1.0, "navy")], center=(50.0, 50.0), smoothness=0.0)

    a = mosaic.draw(method)
    b = mosaic.draw(method)
    c = build_mosaic(_pentagon_settings()).draw(method)

    assert a.tobytes() == b.tobytes() == c.tobytes()


def test_worker_count_does_not_change_output():
    settings = _pentagon_settings(width=90, height=3 * BAND_ROWS + 5)
    mosaic = build_mosaic(settings)
    method = RadialGradient([(0.0, "white"), (1.0, "teal")], center=(45.0, 90.0), radius=80.0)

    single = mosaic.draw(method, shading=0.3)
    threaded = mosaic.draw(method, shading=0.3, workers=4)
    assert np.array_equal(single, threaded)


def test_per_cell_coloring_is_flat_inside_each_cell():
    mosaic = build_mosaic(_pentagon_settings(MosaicKind.POLYGON))
    method = LinearGradient([(0.0, "black"), (1.0, "white")], start=(0.0, 0.0), end=(100.0, 100.0), smoothness=0.0)

    buf = mosaic.draw(method)
    labels = mosaic.label_map()
    for cell in range(mosaic.partition.cell_count()):
        colors = buf[labels == cell]
        if len(colors):
            assert np.all(colors == colors[0])


def test_shading_lightens_towards_the_site():
    mosaic = build_mosaic(_pentagon_settings())
    plain = mosaic.draw("black").astype(int)
    shaded = mosaic.draw("black", shading=1.0).astype(int)

    assert np.all(shaded >= plain)
    assert shaded.max() > 0
    with pytest.raises(ValueError):
        mosaic.draw("black", shading=1.5)


def test_rebuild_switches_partition_kind():
    star = build_mosaic(_pentagon_settings())
    assert star.kind == PartitionKind.VORONOI

    poly = star.rebuild(PartitionKind.DELAUNAY)
    assert poly.kind == PartitionKind.DELAUNAY
    assert poly.image_size == star.image_size
    assert poly.shape == star.shape
    assert poly.rebuild(PartitionKind.VORONOI).partition.cell_count() == star.partition.cell_count()


def test_rebuild_without_settings():
    shape = ShapeDescriptor(ShapeKind.POLYGONAL_STAR, vertex_count=6, center=Point(40.0, 30.0), scale=(25.0, 25.0))
    partition = build_partition(key_points(shape), 80, 60)
    mosaic = Mosaic(partition, 80, 60, shape)

    rebuilt = mosaic.rebuild(PartitionKind.DELAUNAY)
    assert rebuilt.kind == PartitionKind.DELAUNAY
    assert rebuilt.shape == shape


def test_two_vertices_fail_before_partitioning(monkeypatch):
    def _boom(*args, **kwargs):
        raise AssertionError("partition builder must not run")

    monkeypatch.setattr("starry_mosaic.builder.build_partition", _boom)
    settings = _pentagon_settings()
    settings.shape.vertex_count = 2

    with pytest.raises(InvalidShapeError):
        build_mosaic(settings)


def test_editing_settings_after_build_does_not_change_the_mosaic():
    settings = _pentagon_settings()
    mosaic = build_mosaic(settings)

    settings.shape.vertex_count = 9
    settings.image.width = 300
    settings.kind = MosaicKind.POLYGON

    assert mosaic.settings is not settings
    assert mosaic.settings.shape.vertex_count == 5
    rebuilt = mosaic.rebuild(PartitionKind.VORONOI)
    assert rebuilt.shape == mosaic.shape
    assert rebuilt.image_size == (100, 100)
    assert rebuilt.partition.cell_count() == mosaic.partition.cell_count()


@pytest.mark.parametrize("kind", list(MosaicKind))
def test_cells_are_frozen(kind):
    mosaic = build_mosaic(_pentagon_settings(kind))
    cell = mosaic.partition.cells[0]

    with pytest.raises(ValueError):
        cell.site[0] = -1.0
    with pytest.raises(ValueError):
        cell.polygon[0, 0] = -1.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        cell.neighbors = ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cell.radius = 0.0
    assert isinstance(cell.neighbors, tuple)
