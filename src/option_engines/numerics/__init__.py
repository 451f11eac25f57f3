# src/option_engines/numerics/__init__.py
"""
Numerical building blocks (advanced API).

Top-level package `option_engines` exposes the pricing engines.
This subpackage exposes the grids, operators, generators and accumulators
they are assembled from.
"""

from .brownian_bridge import BrownianBridge
from .center import (
    first_derivative_at_center,
    second_derivative_at_center,
    value_at_center,
)
from .log_grid import GridLimits, build_log_grid, safe_grid_points, set_grid_limits
from .operators import BoundaryCondition, BoundaryKind, BSMOperator, Side
from .sequences import (
    PseudoRandomSequence,
    RandomSequencePolicy,
    SobolSequence,
    make_sequence_generator,
)
from .statistics import SampleAccumulator, StatisticsPolicy
from .time_grid import TimeGrid
from .time_steppers import rollback, theta_step
from .tridiag import (
    Tridiag,
    solve_tridiag_scipy,
    solve_tridiag_thomas,
    tridiag_mv,
    tridiag_to_dense,
)

__all__ = [
    # Grids
    "GridLimits",
    "set_grid_limits",
    "safe_grid_points",
    "build_log_grid",
    "TimeGrid",
    # Operators / stepping
    "BoundaryCondition",
    "BoundaryKind",
    "Side",
    "BSMOperator",
    "theta_step",
    "rollback",
    "value_at_center",
    "first_derivative_at_center",
    "second_derivative_at_center",
    # Tridiagonal
    "Tridiag",
    "solve_tridiag_thomas",
    "solve_tridiag_scipy",
    "tridiag_mv",
    "tridiag_to_dense",
    # Monte Carlo primitives
    "RandomSequencePolicy",
    "PseudoRandomSequence",
    "SobolSequence",
    "make_sequence_generator",
    "BrownianBridge",
    "StatisticsPolicy",
    "SampleAccumulator",
]
