import math

import numpy as np
import pytest

from option_engines.exceptions import ConfigurationError
from option_engines.numerics.log_grid import (
    GridLimits,
    build_log_grid,
    safe_grid_points,
    set_grid_limits,
)


def test_five_point_grid_between_50_and_200():
    grid, dx = build_log_grid(50.0, 200.0, 5)

    np.testing.assert_allclose(grid, [50.0, 70.71, 100.0, 141.42, 200.0], atol=5e-3)
    assert dx == pytest.approx(math.log(4.0) / 4.0)


def test_grid_ratios_are_constant():
    grid, dx = build_log_grid(41.0, 243.0, 101)

    ratios = grid[1:] / grid[:-1]
    np.testing.assert_allclose(ratios, math.exp(dx), rtol=1e-13)
    assert grid[0] == 41.0
    assert grid[-1] == pytest.approx(243.0, rel=1e-12)


def test_grid_writes_into_buffer():
    buf = np.zeros(7)
    grid, _ = build_log_grid(80.0, 125.0, 7, out=buf)

    assert grid is buf
    with pytest.raises(ValueError):
        build_log_grid(80.0, 125.0, 7, out=np.zeros(6))


def test_grid_rejects_degenerate_inputs():
    with pytest.raises(ConfigurationError):
        build_log_grid(50.0, 200.0, 1)
    with pytest.raises(ValueError):
        build_log_grid(200.0, 50.0, 5)


def test_limits_are_centered_on_underlying():
    lim = set_grid_limits(100.0, 100.0, 0.2, 1.0)

    factor = math.exp(4.0 * (1.0 + 0.02 / 0.2) * 0.2)
    assert lim.s_min == pytest.approx(100.0 / factor)
    assert lim.s_max == pytest.approx(100.0 * factor)
    assert lim.s_min * lim.s_max == pytest.approx(100.0**2)


@pytest.mark.parametrize(
    "underlying, strike",
    [(100.0, 200.0), (100.0, 50.0), (100.0, 101.0)],
)
def test_strike_kept_inside_safety_zone(underlying, strike):
    lim = set_grid_limits(underlying, strike, 0.05, 0.25)

    assert lim.s_min <= strike / 1.1 * (1 + 1e-12)
    assert lim.s_max >= strike * 1.1 * (1 - 1e-12)
    assert lim.s_min * lim.s_max == pytest.approx(underlying**2)


def test_far_strike_stretches_upper_limit():
    lim = set_grid_limits(100.0, 200.0, 0.05, 0.25)

    assert lim.s_max == pytest.approx(220.0)
    assert lim.s_min == pytest.approx(100.0 / 2.2)


def test_tiny_volatility_still_gives_a_finite_range():
    lim = set_grid_limits(100.0, 100.0, 0.0005, 0.1)

    assert 0.0 < lim.s_min < 100.0 < lim.s_max
    assert math.isfinite(lim.log_width)


def test_grid_limits_validation():
    with pytest.raises(ValueError):
        GridLimits(2.0, 1.0)
    with pytest.raises(ValueError):
        set_grid_limits(-1.0, 100.0, 0.2, 1.0)


@pytest.mark.parametrize(
    "requested, T, expected",
    [(10, 0.5, 100), (10, 1.0, 100), (10, 3.0, 200), (300, 3.0, 300), (150, 0.25, 150)],
)
def test_safe_grid_points(requested, T, expected):
    assert safe_grid_points(requested, T) == expected
