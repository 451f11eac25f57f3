# src/option_engines/numerics/log_grid.py
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigurationError

__all__ = [
    "MIN_GRID_POINTS",
    "GRID_POINTS_PER_YEAR",
    "SAFETY_ZONE_FACTOR",
    "GridLimits",
    "set_grid_limits",
    "safe_grid_points",
    "build_log_grid",
]

MIN_GRID_POINTS = 100
GRID_POINTS_PER_YEAR = 50
SAFETY_ZONE_FACTOR = 1.1


@dataclass(frozen=True, slots=True)
class GridLimits:
    s_min: float
    s_max: float

    def __post_init__(self) -> None:
        if not (0.0 < self.s_min < self.s_max):
            raise ValueError("Need 0 < s_min < s_max")

    @property
    def log_width(self) -> float:
        return math.log(self.s_max) - math.log(self.s_min)


def set_grid_limits(
    underlying: float,
    strike: float,
    volatility: float,
    residual_time: float,
) -> GridLimits:
    """Price range of the lattice.

    The half-width in log space is ``4 * prefactor * sigma * sqrt(T)`` around
    the underlying, where ``prefactor = 1 + 0.02 / (sigma * sqrt(T))`` widens
    the range at small volatilities. The range is then stretched so that the
    strike sits at least 10% inside either edge, keeping the underlying at the
    geometric center (``s_min * s_max == underlying**2``).
    """
    if underlying <= 0.0 or strike <= 0.0:
        raise ValueError("underlying and strike must be positive")
    if volatility <= 0.0 or residual_time <= 0.0:
        raise ValueError("volatility and residual_time must be positive")

    vol_sqrt_time = volatility * math.sqrt(residual_time)
    prefactor = 1.0 + 0.02 / vol_sqrt_time
    min_max_factor = math.exp(4.0 * prefactor * vol_sqrt_time)

    s_min = underlying / min_max_factor
    s_max = underlying * min_max_factor

    if s_min > strike / SAFETY_ZONE_FACTOR:
        s_min = strike / SAFETY_ZONE_FACTOR
        s_max = underlying / (s_min / underlying)
    if s_max < strike * SAFETY_ZONE_FACTOR:
        s_max = strike * SAFETY_ZONE_FACTOR
        s_min = underlying / (s_max / underlying)

    return GridLimits(s_min=s_min, s_max=s_max)


def safe_grid_points(grid_points: int, residual_time: float) -> int:
    """Grid size with a floor that grows with maturity."""
    floor = MIN_GRID_POINTS
    if residual_time > 1.0:
        floor = int(MIN_GRID_POINTS + (residual_time - 1.0) * GRID_POINTS_PER_YEAR)
    return max(int(grid_points), floor)


def build_log_grid(
    s_min: float,
    s_max: float,
    grid_points: int,
    *,
    out: NDArray[np.floating] | None = None,
) -> tuple[NDArray[np.floating], float]:
    """Log-uniform grid on ``[s_min, s_max]``.

    Returns ``(grid, log_spacing)``. Each node is the previous one times
    ``exp(log_spacing)``, so consecutive ratios are identical.
    """
    if grid_points < 2:
        raise ConfigurationError("grid_points must be >= 2")
    if not (0.0 < s_min < s_max):
        raise ValueError("Need 0 < s_min < s_max")

    log_spacing = (math.log(s_max) - math.log(s_min)) / (grid_points - 1)
    edx = math.exp(log_spacing)

    if out is None:
        out = np.empty(grid_points, dtype=float)
    elif out.shape != (grid_points,):
        raise ValueError(f"out must have shape {(grid_points,)} got {out.shape}")

    out[0] = s_min
    for j in range(1, grid_points):
        out[j] = out[j - 1] * edx
    return out, log_spacing
