import math

import numpy as np
import pytest

from starry_mosaic.coloring import (
    COLORING_METHODS,
    PER_CELL,
    PER_PIXEL,
    ColorSpace,
    ColoringMethod,
    ConicGradient,
    GradientStops,
    LinearGradient,
    RadialGradient,
    Solid,
    _Gradient,
    color_at,
    parse_color,
)
from starry_mosaic.exceptions import InvalidGradientError

RED = (1.0, 0.0, 0.0)
BLUE = (0.0, 0.0, 1.0)
BW = [(0.0, "black"), (1.0, "white")]


def test_parse_color():
    assert parse_color("red") == RED
    assert parse_color("#0000ff") == BLUE
    assert parse_color((255, 128, 0)) == pytest.approx((1.0, 128 / 255, 0.0))
    assert parse_color((0.5, 0.5, 0.5, 1.0)) == (0.5, 0.5, 0.5)
    with pytest.raises(ValueError):
        parse_color("not-a-color")
    with pytest.raises(ValueError):
        parse_color((1.0, 2.0))


@pytest.mark.parametrize("stops", [
    [(0.0, "red")],
    [],
    [(0.0, "red"), (0.0, "blue")],
    [(0.5, "red"), (0.2, "blue")],
    [(-0.1, "red"), (1.0, "blue")],
    [(0.0, "red"), (float("nan"), "blue")],
    [(0.0, "red"), (1.0, "no-such-color")],
])
def test_invalid_stops(stops):
    with pytest.raises(InvalidGradientError):
        GradientStops(stops)


def test_stops_sample_clamps_outside_range():
    stops = GradientStops([(0.25, "red"), (0.75, "blue")])
    out = stops.sample([0.0, 0.25, 0.5, 0.75, 1.0])

    assert np.allclose(out[0], RED)
    assert np.allclose(out[1], RED)
    assert np.allclose(out[2], [0.5, 0.0, 0.5])
    assert np.allclose(out[3], BLUE)
    assert np.allclose(out[4], BLUE)


def test_evenly_spaced_stops():
    stops = GradientStops.evenly_spaced(["red", "lime", "blue"])
    assert [p for p, _ in stops.stops] == [0.0, 0.5, 1.0]
    with pytest.raises(InvalidGradientError):
        GradientStops.evenly_spaced(["red"])


@pytest.mark.parametrize("space", list(ColorSpace))
def test_every_color_space_reproduces_stops(space):
    stops = GradientStops([(0.0, "red"), (1.0, "blue")], space)
    out = stops.sample([0.0, 1.0])

    assert np.allclose(out[0], RED, atol=1e-6)
    assert np.allclose(out[1], BLUE, atol=1e-6)
    assert np.all((out >= 0.0) & (out <= 1.0))


def test_lab_interpolation_differs_from_srgb():
    srgb = GradientStops(BW).sample([0.5])[0]
    lab = GradientStops(BW, ColorSpace.LAB).sample([0.5])[0]

    assert np.allclose(srgb, 0.5)
    # L* = 50 is darker than the sRGB mid-point
    assert lab[0] < 0.49
    assert np.allclose(lab, lab[0], atol=1e-3)


def test_linear_gradient_monotonic_and_exact_at_stops():
    g = LinearGradient(BW, start=(0.0, 0.0), end=(100.0, 0.0))
    xs = np.linspace(-10.0, 110.0, 121)
    pts = np.column_stack([xs, np.full_like(xs, 7.0)])
    grey = g.colors_at(pts)[:, 0]

    assert np.all(np.diff(grey) >= 0.0)
    assert np.array_equal(color_at(g, (0.0, 3.0)), [0.0, 0.0, 0.0])
    assert np.array_equal(color_at(g, (100.0, -3.0)), [1.0, 1.0, 1.0])
    assert np.array_equal(color_at(g, (-50.0, 0.0)), [0.0, 0.0, 0.0])


def test_linear_gradient_validation():
    with pytest.raises(InvalidGradientError):
        LinearGradient([(0.0, "red")], start=(0.0, 0.0), end=(1.0, 0.0))
    with pytest.raises(InvalidGradientError):
        LinearGradient(BW, start=(5.0, 5.0), end=(5.0, 5.0))
    with pytest.raises(InvalidGradientError):
        LinearGradient(BW, start=(0.0, 0.0), end=(1.0, 0.0), smoothness=1.5)


def test_linear_gradient_smoothness():
    g_cell = LinearGradient(BW, start=(0.0, 0.0), end=(100.0, 0.0), smoothness=PER_CELL)
    g_pixel = LinearGradient(BW, start=(0.0, 0.0), end=(100.0, 0.0), smoothness=PER_PIXEL)
    g_half = LinearGradient(BW, start=(0.0, 0.0), end=(100.0, 0.0), smoothness=0.5)

    pixel, key = (80.0, 0.0), (40.0, 0.0)
    assert np.allclose(color_at(g_cell, pixel, key), 0.4)
    assert np.allclose(color_at(g_pixel, pixel, key), 0.8)
    assert np.allclose(color_at(g_half, pixel, key), 0.6)
    # without a key point every method is per-pixel
    assert np.allclose(color_at(g_cell, pixel), 0.8)


def test_radial_gradient_concentric_reduction():
    g = RadialGradient(BW, center=(50.0, 50.0), radius=40.0, focus_radius=10.0)

    for d in (10.0, 20.0, 35.0, 50.0):
        for angle in (0.0, 1.0, 2.5, 4.0):
            p = (50.0 + d * math.cos(angle), 50.0 + d * math.sin(angle))
            expected = min(max((d - 10.0) / 30.0, 0.0), 1.0)
            assert np.allclose(color_at(g, p), expected)

    assert np.allclose(color_at(g, (50.0, 50.0)), 0.0)


def test_radial_gradient_off_center_focus():
    g = RadialGradient(BW, center=(50.0, 50.0), radius=40.0, focus=(40.0, 50.0))

    # the focus point starts the gradient; the outer circle ends it
    assert np.allclose(color_at(g, (40.0, 50.0)), 0.0)
    assert np.allclose(color_at(g, (90.0, 50.0)), 1.0)
    # towards the focus side the ramp is steeper
    near = color_at(g, (30.0, 50.0))[0]
    far = color_at(g, (50.0, 50.0))[0]
    assert near > far


def test_radial_gradient_validation():
    with pytest.raises(InvalidGradientError):
        RadialGradient(BW, center=(0.0, 0.0), radius=10.0, focus_radius=10.0)
    with pytest.raises(InvalidGradientError):
        RadialGradient(BW, center=(0.0, 0.0), radius=5.0, focus_radius=10.0)
    with pytest.raises(InvalidGradientError):
        RadialGradient(BW, center=(0.0, 0.0), radius=10.0, repeat=0)


def test_radial_gradient_repeat_wraps():
    g = RadialGradient(BW, center=(0.0, 0.0), radius=100.0, repeat=4)

    assert np.allclose(color_at(g, (12.5, 0.0)), 0.5)
    assert np.allclose(color_at(g, (25.0, 0.0)), 0.0)
    assert np.allclose(color_at(g, (37.5, 0.0)), 0.5)


@pytest.mark.parametrize("repeat", [1, 2, 4])
def test_radial_gradient_keeps_last_stop_outside_outer_circle(repeat):
    g = RadialGradient(BW, center=(0.0, 0.0), radius=100.0, repeat=repeat)

    assert np.allclose(color_at(g, (100.0, 0.0)), 1.0)
    assert np.allclose(color_at(g, (150.0, 0.0)), 1.0)
    assert np.allclose(color_at(g, (0.0, -250.0)), 1.0)
    assert np.allclose(color_at(g, (0.0, 0.0)), 0.0)


def test_coloring_base_classes_are_abstract():
    with pytest.raises(TypeError):
        ColoringMethod()
    with pytest.raises(TypeError):
        _Gradient()


def test_coloring_registry_is_keyed_by_kind():
    assert set(COLORING_METHODS) == {"solid", "linear", "radial", "conic"}
    for kind, cls in COLORING_METHODS.items():
        assert cls.kind == kind
        assert issubclass(cls, ColoringMethod)


def test_conic_gradient_angles():
    g = ConicGradient(BW, center=(100.0, 100.0), angle=math.pi / 4)

    assert np.allclose(color_at(g, (150.0, 150.0)), 0.0)
    assert np.allclose(color_at(g, (100.0, 150.0)), 0.125)
    assert np.allclose(color_at(g, (50.0, 150.0)), 0.25)
    assert np.allclose(color_at(g, (150.0, 100.0)), 0.875)


def test_conic_gradient_repeat():
    g = ConicGradient(BW, center=(0.0, 0.0), repeat=2)

    assert np.allclose(color_at(g, (0.0, 10.0)), 0.5)
    assert np.allclose(color_at(g, (-10.0, 0.0)), 0.0)
    with pytest.raises(InvalidGradientError):
        ConicGradient(BW, center=(0.0, 0.0), repeat=1.5)


def test_solid_ignores_position():
    s = Solid("red")
    out = s.colors_at(np.array([[0.0, 0.0], [100.0, 5.0]]), np.array([[1.0, 1.0], [2.0, 2.0]]))

    assert out.shape == (2, 3)
    assert np.array_equal(out, [RED, RED])
    assert np.array_equal(color_at("blue", (3.0, 4.0)), BLUE)
