"""
Unit tests for fractal variants, the viewport and the reference engine
"""

import numpy as np
import pytest

from mandelbrot_gen.core.fractal_types import (
    BurningShip, FractalRegistry, JuliaParameters, JULIA_PRESETS, Mandelbar, MandelbrotSet, Multibrot,
)
from mandelbrot_gen.core.math_functions import (
    EscapeTimeEngine, Viewport, derive_pixel_height, in_main_cardioid, in_period2_bulb,
)


def test_origin_reaches_cap_through_cardioid():
    engine = EscapeTimeEngine(MandelbrotSet(), max_iter=128)

    assert in_main_cardioid(0.0, 0.0)
    assert engine.iterate(0.0, 0.0) == (128, 0.0, 0.0)


def test_far_point_escapes_immediately():
    n, zr, zi = EscapeTimeEngine(MandelbrotSet()).iterate(2.0, 2.0)

    assert n == 0
    assert (zr, zi) == (2.0, 10.0)


def test_escape_is_strictly_outside_radius():
    """|z| == r does not escape: c = -2 stays on 2 forever"""
    assert EscapeTimeEngine(MandelbrotSet(), max_iter=50).iterate(-2.0, 0.0).n == 50


def test_period2_bulb():
    assert in_period2_bulb(-1.0, 0.0)
    assert not in_main_cardioid(-1.0, 0.0)
    assert EscapeTimeEngine(MandelbrotSet(), max_iter=1000).iterate(-1.0, 0.1).n == 1000


def test_interior_test_only_for_plain_mandelbrot():
    assert EscapeTimeEngine(MandelbrotSet()).use_interior_test
    assert not EscapeTimeEngine(MandelbrotSet(), julia=JuliaParameters(0.0, 0.0)).use_interior_test
    assert not EscapeTimeEngine(Mandelbar()).use_interior_test
    assert not EscapeTimeEngine(BurningShip()).use_interior_test
    assert not EscapeTimeEngine(Multibrot(3)).use_interior_test


def test_julia_adds_fixed_constant():
    engine = EscapeTimeEngine(MandelbrotSet(), max_iter=128, julia=JuliaParameters(10.0, 0.0))

    assert engine.iterate(0.0, 0.0) == (0, 10.0, 0.0)


def test_multibrot_origin_is_in_set():
    assert EscapeTimeEngine(Multibrot(3), max_iter=64).iterate(0.0, 0.0).n == 64


def test_multibrot_cubes():
    # z = 1: 1^3 + 1 = 2 stays, 2^3 + 1 = 9 escapes
    assert EscapeTimeEngine(Multibrot(3)).iterate(1.0, 0.0) == (1, 9.0, 0.0)


def test_variant_transforms():
    assert MandelbrotSet().transform(-1.0, 2.0) == (-1.0, 2.0)
    assert Mandelbar().transform(1.0, 2.0) == (1.0, -2.0)
    assert BurningShip().transform(-1.0, 2.0) == (1.0, -2.0)
    assert BurningShip().transform(1.0, -3.0) == (1.0, -3.0)


def test_one_step_per_variant():
    """The transform is applied before squaring"""
    point = (-0.5, 0.5)

    assert EscapeTimeEngine(Mandelbar(), max_iter=1).iterate(*point) == (1, -0.5, 1.0)
    assert EscapeTimeEngine(BurningShip(), max_iter=1).iterate(*point) == (1, -0.5, 0.0)


def test_selector_mapping():
    assert isinstance(FractalRegistry.from_selector(0), MandelbrotSet)
    assert isinstance(FractalRegistry.from_selector(1), Mandelbar)
    assert isinstance(FractalRegistry.from_selector(2), BurningShip)
    fractal = FractalRegistry.from_selector(5)
    assert isinstance(fractal, Multibrot)
    assert fractal.power == 5
    assert fractal.selector == 5


def test_negative_selector_rejected():
    with pytest.raises(ValueError):
        FractalRegistry.from_selector(-1)


@pytest.mark.parametrize('value, expected_type, power', [
    (0, MandelbrotSet, 2),
    ('2', BurningShip, 2),
    ('tricorn', Mandelbar, 2),
    ('Burning-Ship', BurningShip, 2),
    ('multibrot', Multibrot, 3),
    ('multibrot:4', Multibrot, 4),
])
def test_registry_resolve(value, expected_type, power):
    fractal = FractalRegistry.resolve(value)

    assert isinstance(fractal, expected_type)
    assert fractal.power == power


@pytest.mark.parametrize('value', ['julia', 'multibrot:2', 'mandelbrot:3', 'multibrot:x'])
def test_registry_resolve_rejects(value):
    with pytest.raises(ValueError):
        FractalRegistry.resolve(value)


def test_julia_presets():
    assert JULIA_PRESETS['dragon'].to_tuple() == (-0.75, 0.1)
    assert JULIA_PRESETS['airplane'].c == complex(-1.25, 0.0)


@pytest.mark.parametrize('w, h, width, expected', [
    (4.0, 4.0, 4, 4),
    (4.0, 3.0, 640, 480),
    (3.0, 2.0, 5, 3),
    (4.0, 1.0, 2, 1),
    (4.0, 2.0, 3, 2),
])
def test_pixel_height_rounds_half_up(w, h, width, expected):
    assert derive_pixel_height(w, h, width) == expected


def test_viewport_axes():
    viewport = Viewport((0.0, 0.0), (4.0, 4.0), 4)

    assert viewport.shape == (4, 4)
    assert viewport.real_axis().tolist() == [-2.0, -1.0, 0.0, 1.0]
    # top row first
    assert viewport.imag_axis().tolist() == [1.0, 0.0, -1.0, -2.0]
    assert viewport.pixel_to_complex(2, 2) == (0.0, 0.0)


def test_iterate_grid_matches_points():
    engine = EscapeTimeEngine(BurningShip(), max_iter=40)
    viewport = Viewport((-0.5, -0.5), (3.0, 3.0), 7)
    result = engine.iterate_grid(viewport.real_axis(), viewport.imag_axis())

    assert result.shape == (7, 7)
    assert result.iterations.dtype == np.int64
    real_axis, imag_axis = viewport.real_axis(), viewport.imag_axis()
    for row in range(7):
        for col in range(7):
            assert result.point(row, col) == engine.iterate(float(real_axis[col]), float(imag_axis[row]))
    assert np.array_equal(result.escaped, result.iterations < 40)
