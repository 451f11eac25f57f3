"""Black-Scholes differential operator on a log-uniform price grid.

In ``x = ln S`` and time-to-maturity ``tau`` the Black-Scholes equation reads

    u_tau = 0.5 sigma^2 u_xx + (r - q - 0.5 sigma^2) u_x - r u

which has constant coefficients, so on a uniform ``x`` grid the discrete
operator is a tridiagonal matrix with one value per diagonal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigurationError
from .tridiag import Tridiag


class BoundaryKind(str, Enum):
    NEUMANN = "neumann"  # fixes u[1] - u[0] (lower) or u[-1] - u[-2] (upper)
    DIRICHLET = "dirichlet"  # fixes u[0] or u[-1]


class Side(str, Enum):
    LOWER = "lower"
    UPPER = "upper"


@dataclass(frozen=True, slots=True)
class BoundaryCondition:
    """Condition imposed on one edge of the grid.

    For Neumann conditions ``value`` is the first difference across the edge
    (not divided by the spacing), matching how it is read off the payoff.
    """

    kind: BoundaryKind
    value: float

    @classmethod
    def neumann(cls, value: float) -> BoundaryCondition:
        return cls(kind=BoundaryKind.NEUMANN, value=float(value))

    @classmethod
    def dirichlet(cls, value: float) -> BoundaryCondition:
        return cls(kind=BoundaryKind.DIRICHLET, value=float(value))

    def apply_after_applying(self, u: NDArray[np.floating], side: Side) -> None:
        """Overwrite the edge node of ``u`` in place."""
        match (self.kind, side):
            case (BoundaryKind.NEUMANN, Side.LOWER):
                u[0] = u[1] - self.value
            case (BoundaryKind.NEUMANN, Side.UPPER):
                u[-1] = u[-2] + self.value
            case (BoundaryKind.DIRICHLET, Side.LOWER):
                u[0] = self.value
            case (BoundaryKind.DIRICHLET, Side.UPPER):
                u[-1] = self.value

    def apply_before_solving(
        self, A: Tridiag, rhs: NDArray[np.floating], side: Side
    ) -> Tridiag:
        """Return ``A`` with its edge row replaced; sets the edge entry of ``rhs``."""
        match (self.kind, side):
            case (BoundaryKind.NEUMANN, Side.LOWER):
                A = A.with_first_row(-1.0, 1.0)
                rhs[0] = self.value
            case (BoundaryKind.NEUMANN, Side.UPPER):
                A = A.with_last_row(-1.0, 1.0)
                rhs[-1] = self.value
            case (BoundaryKind.DIRICHLET, Side.LOWER):
                A = A.with_first_row(1.0, 0.0)
                rhs[0] = self.value
            case (BoundaryKind.DIRICHLET, Side.UPPER):
                A = A.with_last_row(0.0, 1.0)
                rhs[-1] = self.value
        return A


@dataclass(frozen=True, slots=True)
class BSMOperator:
    """Discrete Black-Scholes operator plus its two boundary conditions."""

    L: Tridiag
    log_spacing: float
    risk_free_rate: float
    dividend_yield: float
    volatility: float
    lower_bc: BoundaryCondition | None = None
    upper_bc: BoundaryCondition | None = None

    @classmethod
    def build(
        cls,
        grid_points: int,
        log_spacing: float,
        risk_free_rate: float,
        dividend_yield: float,
        volatility: float,
    ) -> BSMOperator:
        if grid_points < 3:
            raise ConfigurationError("Need at least 3 grid points for the operator")
        if log_spacing <= 0.0:
            raise ValueError("log_spacing must be > 0")

        sigma2 = volatility * volatility
        nu = risk_free_rate - dividend_yield - 0.5 * sigma2
        dx = log_spacing

        pd = 0.5 * sigma2 / (dx * dx) - 0.5 * nu / dx
        pm = -sigma2 / (dx * dx) - risk_free_rate
        pu = 0.5 * sigma2 / (dx * dx) + 0.5 * nu / dx

        L = Tridiag(
            lower=np.full(grid_points - 1, pd, dtype=float),
            diag=np.full(grid_points, pm, dtype=float),
            upper=np.full(grid_points - 1, pu, dtype=float),
        )
        return cls(
            L=L,
            log_spacing=float(log_spacing),
            risk_free_rate=float(risk_free_rate),
            dividend_yield=float(dividend_yield),
            volatility=float(volatility),
        )

    @property
    def size(self) -> int:
        return self.L.check()

    def with_boundaries(
        self, lower: BoundaryCondition, upper: BoundaryCondition
    ) -> BSMOperator:
        return replace(self, lower_bc=lower, upper_bc=upper)

    def boundaries(self) -> tuple[tuple[BoundaryCondition, Side], ...]:
        out: list[tuple[BoundaryCondition, Side]] = []
        if self.lower_bc is not None:
            out.append((self.lower_bc, Side.LOWER))
        if self.upper_bc is not None:
            out.append((self.upper_bc, Side.UPPER))
        return tuple(out)


def neumann_from_payoff(
    initial_prices: NDArray[np.floating],
) -> tuple[BoundaryCondition, BoundaryCondition]:
    """Neumann conditions carrying the payoff's edge slopes into the solution."""
    u = np.asarray(initial_prices, dtype=float)
    if u.shape[0] < 2:
        raise ValueError("Need at least 2 initial prices")
    lower = BoundaryCondition.neumann(u[1] - u[0])
    upper = BoundaryCondition.neumann(u[-1] - u[-2])
    return lower, upper
