# src/option_engines/numerics/time_steppers.py
from __future__ import annotations

from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from .operators import BSMOperator
from .tridiag import Tridiag, solve_tridiag_thomas

__all__ = ["theta_step", "rollback"]

SolveFn = Callable[[Tridiag, NDArray[np.floating]], NDArray[np.floating]]


def theta_step(
    op: BSMOperator,
    u_n: NDArray[np.floating],
    *,
    dt: float,
    theta: float = 0.5,
    solve_tridiag: SolveFn = solve_tridiag_thomas,
) -> NDArray[np.floating]:
    """
    One theta-scheme step of ``u_tau = L u`` on the full grid:

        (I - theta dt L) u^{n+1} = (I + (1 - theta) dt L) u^n

    Boundary conditions are applied to the explicit result, then written into
    the edge rows of the implicit system before it is solved.
    """
    if dt <= 0.0:
        raise ValueError("dt must be > 0")
    if not (0.0 <= theta <= 1.0):
        raise ValueError("theta must be in [0, 1]")

    N = op.size
    u = np.asarray(u_n, dtype=float)
    if u.shape != (N,):
        raise ValueError(f"u_n must have shape {(N,)} got {u.shape}")

    if theta != 1.0:
        rhs = op.L.identity_plus((1.0 - theta) * dt).mv(u)
        for bc, side in op.boundaries():
            bc.apply_after_applying(rhs, side)
    else:
        rhs = u.copy()

    if theta == 0.0:
        return rhs

    A = op.L.identity_plus(-theta * dt)
    for bc, side in op.boundaries():
        A = bc.apply_before_solving(A, rhs, side)

    u_np1 = solve_tridiag(A, rhs)
    if u_np1.shape != (N,):
        raise ValueError(f"solve_tridiag must return shape {(N,)} got {u_np1.shape}")
    return u_np1


def rollback(
    op: BSMOperator,
    u_maturity: NDArray[np.floating],
    *,
    residual_time: float,
    time_steps: int,
    theta: float = 0.5,
) -> NDArray[np.floating]:
    """March the payoff from maturity back to today in ``time_steps`` equal steps."""
    if residual_time <= 0.0:
        raise ValueError("residual_time must be > 0")
    if time_steps <= 0:
        raise ValueError("time_steps must be > 0")

    dt = residual_time / time_steps
    u = np.asarray(u_maturity, dtype=float).copy()
    for _ in range(time_steps):
        u = theta_step(op, u, dt=dt, theta=theta)
    return u
