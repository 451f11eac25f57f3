from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from ...config import MCConfig
from ...models.processes import StochasticProcess
from ...numerics.sequences import make_sequence_generator
from ...numerics.time_grid import TimeGrid
from ...observable import LazyObject
from ...payoffs import make_vanilla_payoff
from ...types import ForwardOptionSpec, OptionType
from .path_generator import Path, PathGenerator
from .simulation import McSimulation, MCResults, PathPricer, Seed, SimulationState

logger = logging.getLogger(__name__)

__all__ = [
    "ForwardEuropeanPathPricer",
    "ForwardPerformancePathPricer",
    "MCForwardVanillaEngine",
]


class ForwardEuropeanPathPricer:
    """Pays ``payoff(S(t2); K = moneyness * S(t1)) * discount``."""

    def __init__(
        self,
        kind: OptionType,
        moneyness: float,
        reset_time: float,
        discount: float,
    ) -> None:
        make_vanilla_payoff(kind, K=moneyness)  # reject unknown kinds now
        self.kind = kind
        self.moneyness = float(moneyness)
        self.reset_time = float(reset_time)
        self.discount = float(discount)

    def __call__(self, path: Path) -> NDArray[np.floating]:
        s_reset = path.at(self.reset_time)
        payoff = make_vanilla_payoff(self.kind, K=self.moneyness * s_reset)
        return payoff(path.terminal()) * self.discount


class ForwardPerformancePathPricer:
    """Pays ``payoff(S(t2) / S(t1); K = moneyness) * discount``."""

    def __init__(
        self,
        kind: OptionType,
        moneyness: float,
        reset_time: float,
        discount: float,
    ) -> None:
        self._payoff = make_vanilla_payoff(kind, K=moneyness)
        self.kind = kind
        self.moneyness = float(moneyness)
        self.reset_time = float(reset_time)
        self.discount = float(discount)

    def __call__(self, path: Path) -> NDArray[np.floating]:
        performance = path.terminal() / path.at(self.reset_time)
        return self._payoff(performance) * self.discount


class MCForwardVanillaEngine(LazyObject):
    """
    Monte Carlo engine for forward-starting (strike-reset) vanilla options.

    Parameters
    ----------
    process
        Underlying dynamics. The engine subscribes to it, so changing a
        process parameter drops the cached result.
    cfg
        Time stepping, sequence generator and convergence settings.
    performance
        Price the performance variant (payoff on the return ``S(t2)/S(t1)``)
        instead of the plain forward-start option.

    Notes
    -----
    :attr:`state` follows ``UNCONFIGURED -> TIME_GRID_BUILT -> SAMPLING ->
    CONVERGED | EXHAUSTED -> REPORTED`` during each :meth:`calculate`.
    """

    def __init__(
        self,
        process: StochasticProcess,
        cfg: MCConfig,
        *,
        performance: bool = False,
    ) -> None:
        super().__init__()
        self.process = process
        self.cfg = cfg
        self.performance = performance
        self.process.register_observer(self.update)

        self._option: ForwardOptionSpec | None = None
        self._results: MCResults | None = None
        self._state = SimulationState.UNCONFIGURED

    @property
    def state(self) -> SimulationState:
        return self._state

    def time_grid(self, option: ForwardOptionSpec) -> TimeGrid:
        """Grid on ``[0, t2]`` containing the reset and exercise times."""
        t1 = self.process.time(option.reset_date)
        t2 = self.process.time(option.last_exercise_date)
        if self.cfg.time_steps is not None:
            steps = self.cfg.time_steps
        else:
            assert self.cfg.time_steps_per_year is not None
            steps = int(self.cfg.time_steps_per_year * t2)
        return TimeGrid.from_mandatory_times([t1, t2], max(steps, 1))

    def path_generator(
        self,
        option: ForwardOptionSpec,
        seed: Seed | None = None,
        *,
        time_grid: TimeGrid | None = None,
    ) -> PathGenerator:
        grid = time_grid if time_grid is not None else self.time_grid(option)
        dimension = self.process.factors * grid.steps
        generator = make_sequence_generator(
            self.cfg.random.rng_type,
            dimension,
            self.cfg.random.seed if seed is None else seed,
        )
        return PathGenerator(self.process, grid, generator, self.cfg.brownian_bridge)

    def path_pricer(self, option: ForwardOptionSpec) -> PathPricer:
        t1 = self.process.time(option.reset_date)
        t2 = self.process.time(option.last_exercise_date)
        pricer_cls = (
            ForwardPerformancePathPricer
            if self.performance
            else ForwardEuropeanPathPricer
        )
        return pricer_cls(option.kind, option.moneyness, t1, self.process.discount(t2))

    def perform_calculations(self) -> None:
        option = self._option
        assert option is not None
        self._state = SimulationState.UNCONFIGURED

        pricer = self.path_pricer(option)
        grid = self.time_grid(option)
        self._state = SimulationState.TIME_GRID_BUILT
        logger.debug("MC forward engine: %r", grid)

        simulation = McSimulation(
            lambda seed: self.path_generator(option, seed, time_grid=grid),
            pricer,
            self.cfg,
            allows_error_estimate=self.cfg.random.allows_error_estimate,
        )
        self._state = SimulationState.SAMPLING
        self._results = simulation.run()
        self._state = SimulationState.REPORTED

    def calculate(self, option: ForwardOptionSpec | None = None) -> MCResults:
        """Price ``option`` (default: the last one priced), reusing cached results."""
        if option is not None and option != self._option:
            self._option = option
            self.invalidate()
        if self._option is None:
            raise ValueError("no option to price")
        super().calculate()
        assert self._results is not None
        return self._results

    def value(self, option: ForwardOptionSpec | None = None) -> float:
        return self.calculate(option).value

    def error_estimate(self, option: ForwardOptionSpec | None = None) -> float | None:
        return self.calculate(option).error_estimate
