"""Finite-difference pricer for plain-vanilla options under Black-Scholes.

The option is priced on a log-uniform price lattice centred on the
underlying. One calculation pass runs

    grid limits -> grid -> payoff -> operator + Neumann BCs -> time stepping

and reads value, delta and gamma off the central node. Theta follows from
the Black-Scholes equation. All four results are cached together and
recomputed only after a parameter setter (or an observed object) invalidates
them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..config import FDConfig
from ..exceptions import ConfigurationError
from ..numerics.center import (
    first_derivative_at_center,
    second_derivative_at_center,
    value_at_center,
)
from ..numerics.log_grid import (
    MIN_GRID_POINTS,
    GridLimits,
    build_log_grid,
    safe_grid_points,
    set_grid_limits,
)
from ..numerics.operators import BSMOperator, neumann_from_payoff
from ..numerics.time_steppers import rollback
from ..observable import LazyObject
from ..payoffs import initial_condition
from ..types import OptionType

logger = logging.getLogger(__name__)

MIN_VOLATILITY = 0.0005
MAX_VOLATILITY = 3.0
VOL_BUMP = 1.0e-4  # relative
RATE_BUMP = 1.0e-4  # absolute


@dataclass(frozen=True, slots=True)
class FDResults:
    value: float
    delta: float
    gamma: float
    theta: float


class FDVanillaOption(LazyObject):
    """
    Lazily evaluated finite-difference price and Greeks of a vanilla option.

    Parameters
    ----------
    kind : OptionType
        Call, put or straddle.
    underlying : float
        Spot price. Must be positive.
    strike : float
        Strike. Must be positive.
    dividend_yield : float
        Continuous dividend yield ``q``.
    risk_free_rate : float
        Continuously-compounded rate ``r``.
    residual_time : float
        Time to maturity in years. Must be positive.
    volatility : float
        Black-Scholes volatility, within ``[0.0005, 3.0]``.
    grid_points : int, optional
        Lattice size. When omitted, :func:`safe_grid_points` picks one from
        the maturity. Must be at least 4.
    cfg : FDConfig, optional
        Time-stepping settings.

    Notes
    -----
    Instances are not thread-safe: the grid buffers are reused across passes.
    """

    def __init__(
        self,
        kind: OptionType,
        underlying: float,
        strike: float,
        dividend_yield: float,
        risk_free_rate: float,
        residual_time: float,
        volatility: float,
        grid_points: int | None = None,
        *,
        cfg: FDConfig | None = None,
    ) -> None:
        super().__init__()
        _check_market_inputs(underlying, strike, residual_time, volatility)

        self._kind = kind
        self._underlying = float(underlying)
        self._strike = float(strike)
        self._dividend_yield = float(dividend_yield)
        self._risk_free_rate = float(risk_free_rate)
        self._residual_time = float(residual_time)
        self._volatility = float(volatility)
        self.cfg = cfg if cfg is not None else FDConfig()

        if grid_points is None:
            grid_points = safe_grid_points(MIN_GRID_POINTS, self._residual_time)
        self._allocate(grid_points)

        self._limits: GridLimits | None = None
        self._log_spacing: float | None = None
        self._operator: BSMOperator | None = None
        self._prices: NDArray[np.floating] | None = None
        self._results: FDResults | None = None
        self._vega: float | None = None
        self._rho: float | None = None

    def _allocate(self, grid_points: int) -> None:
        if grid_points < 4:
            raise ConfigurationError(f"grid_points must be >= 4, got {grid_points}")
        self._grid_points = int(grid_points)
        self._grid = np.empty(self._grid_points, dtype=float)
        self._initial_prices = np.empty(self._grid_points, dtype=float)

    # --- parameters -------------------------------------------------------

    @property
    def kind(self) -> OptionType:
        return self._kind

    @kind.setter
    def kind(self, value: OptionType) -> None:
        self._kind = value
        self.update()

    @property
    def underlying(self) -> float:
        return self._underlying

    @underlying.setter
    def underlying(self, value: float) -> None:
        _check_market_inputs(value, self._strike, self._residual_time, self._volatility)
        self._underlying = float(value)
        self.update()

    @property
    def strike(self) -> float:
        return self._strike

    @strike.setter
    def strike(self, value: float) -> None:
        _check_market_inputs(
            self._underlying, value, self._residual_time, self._volatility
        )
        self._strike = float(value)
        self.update()

    @property
    def dividend_yield(self) -> float:
        return self._dividend_yield

    @dividend_yield.setter
    def dividend_yield(self, value: float) -> None:
        self._dividend_yield = float(value)
        self.update()

    @property
    def risk_free_rate(self) -> float:
        return self._risk_free_rate

    @risk_free_rate.setter
    def risk_free_rate(self, value: float) -> None:
        self._risk_free_rate = float(value)
        self.update()

    @property
    def residual_time(self) -> float:
        return self._residual_time

    @residual_time.setter
    def residual_time(self, value: float) -> None:
        _check_market_inputs(self._underlying, self._strike, value, self._volatility)
        self._residual_time = float(value)
        self.update()

    @property
    def volatility(self) -> float:
        return self._volatility

    @volatility.setter
    def volatility(self, value: float) -> None:
        _check_market_inputs(
            self._underlying, self._strike, self._residual_time, value
        )
        self._volatility = float(value)
        self.update()

    @property
    def grid_points(self) -> int:
        return self._grid_points

    @grid_points.setter
    def grid_points(self, value: int) -> None:
        if int(value) != self._grid_points:
            self._allocate(int(value))
        self.update()

    # --- pipeline ---------------------------------------------------------

    @property
    def limits(self) -> GridLimits | None:
        return self._limits

    @property
    def grid(self) -> NDArray[np.floating]:
        return self._grid

    @property
    def grid_log_spacing(self) -> float | None:
        return self._log_spacing

    @property
    def initial_prices(self) -> NDArray[np.floating]:
        return self._initial_prices

    @property
    def operator(self) -> BSMOperator | None:
        return self._operator

    def set_grid_limits(self) -> GridLimits:
        self._limits = set_grid_limits(
            self._underlying, self._strike, self._volatility, self._residual_time
        )
        return self._limits

    def initialize_grid(self, limits: GridLimits | None = None) -> NDArray[np.floating]:
        """Fill the grid buffer between ``limits`` (default: the stored limits)."""
        if limits is not None:
            self._limits = limits
        if self._limits is None:
            raise ValueError("grid limits are not set")
        _, self._log_spacing = build_log_grid(
            self._limits.s_min,
            self._limits.s_max,
            self._grid_points,
            out=self._grid,
        )
        return self._grid

    def initialize_initial_condition(self) -> NDArray[np.floating]:
        initial_condition(self._kind, self._grid, strike=self._strike, out=self._initial_prices)
        return self._initial_prices

    def initialize_operator(self) -> BSMOperator:
        if self._log_spacing is None:
            raise ValueError("grid is not initialized")
        lower, upper = neumann_from_payoff(self._initial_prices)
        self._operator = BSMOperator.build(
            self._grid_points,
            self._log_spacing,
            self._risk_free_rate,
            self._dividend_yield,
            self._volatility,
        ).with_boundaries(lower, upper)
        return self._operator

    def perform_calculations(self) -> None:
        logger.debug(
            "FD pass: %s S=%g K=%g T=%g sigma=%g N=%d steps=%d",
            getattr(self._kind, "value", self._kind),
            self._underlying,
            self._strike,
            self._residual_time,
            self._volatility,
            self._grid_points,
            self.cfg.time_steps,
        )
        self.set_grid_limits()
        self.initialize_grid()
        self.initialize_initial_condition()
        op = self.initialize_operator()

        prices = rollback(
            op,
            self._initial_prices,
            residual_time=self._residual_time,
            time_steps=self.cfg.time_steps,
            theta=self.cfg.theta,
        )

        value = value_at_center(prices)
        delta = first_derivative_at_center(prices, self._grid)
        gamma = second_derivative_at_center(prices, self._grid)
        s = self._underlying
        sigma = self._volatility
        theta = (
            self._risk_free_rate * value
            - (self._risk_free_rate - self._dividend_yield) * s * delta
            - 0.5 * sigma * sigma * s * s * gamma
        )

        self._prices = prices
        self._results = FDResults(value=value, delta=delta, gamma=gamma, theta=theta)

    def update(self) -> None:
        self._vega = None
        self._rho = None
        super().update()

    # --- results ----------------------------------------------------------

    @property
    def results(self) -> FDResults:
        self.calculate()
        assert self._results is not None
        return self._results

    def value(self) -> float:
        return self.results.value

    def delta(self) -> float:
        return self.results.delta

    def gamma(self) -> float:
        return self.results.gamma

    def theta(self) -> float:
        return self.results.theta

    @property
    def prices(self) -> NDArray[np.floating]:
        """Option values on :attr:`grid` today."""
        self.calculate()
        assert self._prices is not None
        return self._prices

    def vega(self) -> float:
        """Bump-and-reprice sensitivity to volatility."""
        if self._vega is None or not self.is_calculated:
            base = self.value()
            d_vol = self._volatility * VOL_BUMP
            if self._volatility + d_vol > MAX_VOLATILITY:
                d_vol = -d_vol
            bumped = self._bumped(volatility=self._volatility + d_vol)
            self._vega = (bumped.value() - base) / d_vol
        return self._vega

    def rho(self) -> float:
        """Bump-and-reprice sensitivity to the risk-free rate."""
        if self._rho is None or not self.is_calculated:
            base = self.value()
            bumped = self._bumped(risk_free_rate=self._risk_free_rate + RATE_BUMP)
            self._rho = (bumped.value() - base) / RATE_BUMP
        return self._rho

    def _bumped(self, **changes: float) -> FDVanillaOption:
        params = {
            "underlying": self._underlying,
            "strike": self._strike,
            "dividend_yield": self._dividend_yield,
            "risk_free_rate": self._risk_free_rate,
            "residual_time": self._residual_time,
            "volatility": self._volatility,
        }
        params.update(changes)
        return FDVanillaOption(
            self._kind, grid_points=self._grid_points, cfg=self.cfg, **params
        )

    def __repr__(self) -> str:
        return (
            f"FDVanillaOption(kind={self._kind!r}, underlying={self._underlying:g}, "
            f"strike={self._strike:g}, grid_points={self._grid_points})"
        )


def _check_market_inputs(
    underlying: float, strike: float, residual_time: float, volatility: float
) -> None:
    if underlying <= 0.0:
        raise ValueError("underlying must be positive")
    if strike <= 0.0:
        raise ValueError("strike must be positive")
    if residual_time <= 0.0:
        raise ValueError("residual_time must be positive")
    if not (MIN_VOLATILITY <= volatility <= MAX_VOLATILITY):
        raise ValueError(
            f"volatility must be in [{MIN_VOLATILITY}, {MAX_VOLATILITY}], got {volatility}"
        )
