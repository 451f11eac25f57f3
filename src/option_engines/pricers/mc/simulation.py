"""Monte Carlo sampling loop.

:class:`MonteCarloModel` draws paths from one stream, prices them and feeds a
:class:`~option_engines.numerics.statistics.SampleAccumulator`.
:class:`McSimulation` drives one or more models until the configured sample
count or tolerance is reached.

With ``n_workers > 1`` each batch is split across independent streams whose
seeds come from ``numpy.random.SeedSequence(seed).spawn(n_workers)``. The
streams run in a thread pool and their accumulators are merged in stream
order, so results depend on the seed and worker count only.
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeAlias

import numpy as np
from numpy.typing import NDArray

from ...config import MCConfig
from ...exceptions import ToleranceNotReachedWarning
from ...numerics.statistics import SampleAccumulator
from .path_generator import Path, PathGenerationPolicy

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MIN_SAMPLES",
    "MCResults",
    "McSimulation",
    "MonteCarloModel",
    "PathPricer",
    "SimulationState",
]

DEFAULT_MIN_SAMPLES = 1023
BATCH_GROWTH_DAMPING = 0.8

Seed: TypeAlias = int | np.random.SeedSequence
PathGeneratorFactory: TypeAlias = Callable[[Seed], PathGenerationPolicy]


class SimulationState(str, Enum):
    UNCONFIGURED = "unconfigured"
    TIME_GRID_BUILT = "time_grid_built"
    SAMPLING = "sampling"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    REPORTED = "reported"


class PathPricer(Protocol):
    def __call__(self, path: Path) -> NDArray[np.floating]:  # pragma: no cover
        ...


@dataclass(frozen=True, slots=True)
class MCResults:
    """
    Outcome of one Monte Carlo run.

    Attributes
    ----------
    value
        Sample mean of the discounted payoffs.
    error_estimate
        Standard error of ``value``. ``None`` for low-discrepancy sequences
        and for single-sample runs.
    samples
        Number of accumulated samples (antithetic pairs count once).
    state
        ``CONVERGED`` or ``EXHAUSTED``.
    """

    value: float
    error_estimate: float | None
    samples: int
    state: SimulationState

    @property
    def converged(self) -> bool:
        return self.state is SimulationState.CONVERGED


class MonteCarloModel:
    """One sampling stream: path generator, path pricer and accumulator."""

    def __init__(
        self,
        path_generator: PathGenerationPolicy,
        path_pricer: PathPricer,
        *,
        antithetic: bool = False,
        batch_size: int = 8192,
        statistics: SampleAccumulator | None = None,
    ) -> None:
        self.path_generator = path_generator
        self.path_pricer = path_pricer
        self.antithetic = antithetic
        self.batch_size = int(batch_size)
        self.statistics = statistics if statistics is not None else SampleAccumulator()

    def sample(self, n: int) -> NDArray[np.floating]:
        """Draw ``n`` samples; antithetic pairs are averaged into one."""
        values = np.asarray(self.path_pricer(self.path_generator.next(n)), dtype=float)
        if self.antithetic:
            mirrored = np.asarray(
                self.path_pricer(self.path_generator.antithetic()), dtype=float
            )
            values = 0.5 * (values + mirrored)
        return values

    def add_samples(self, n: int) -> SampleAccumulator:
        """Add ``n`` samples in blocks of at most ``batch_size``.

        Returns an accumulator holding only the new samples.
        """
        added = SampleAccumulator()
        remaining = int(n)
        while remaining > 0:
            k = min(remaining, self.batch_size)
            added.add(self.sample(k))
            remaining -= k
        self.statistics = self.statistics.merge(added)
        return added


class McSimulation:
    """
    Sample-size and tolerance control around one or more :class:`MonteCarloModel`.

    Parameters
    ----------
    path_generator_factory
        Builds a path generator from a seed. Called once per stream.
    path_pricer
        Maps a :class:`Path` block to discounted payoffs.
    cfg
        Sampling configuration.
    allows_error_estimate
        Whether the sequence generator supports a standard-error estimate.
    """

    def __init__(
        self,
        path_generator_factory: PathGeneratorFactory,
        path_pricer: PathPricer,
        cfg: MCConfig,
        *,
        allows_error_estimate: bool = True,
    ) -> None:
        self.cfg = cfg
        self.allows_error_estimate = allows_error_estimate
        self.state = SimulationState.TIME_GRID_BUILT

        seed = cfg.random.seed
        if cfg.n_workers == 1:
            seeds: list[Seed] = [seed]
        else:
            seeds = list(np.random.SeedSequence(seed).spawn(cfg.n_workers))

        self.models = [
            MonteCarloModel(
                path_generator_factory(s),
                path_pricer,
                antithetic=cfg.antithetic,
                batch_size=cfg.batch_size,
            )
            for s in seeds
        ]
        self.statistics = SampleAccumulator()

    @property
    def samples(self) -> int:
        return self.statistics.samples

    def add_samples(self, n: int) -> None:
        """Split ``n`` samples across the streams and merge in stream order."""
        w = len(self.models)
        shares = [n // w + (1 if i < n % w else 0) for i in range(w)]
        logger.debug("MC batch: %d samples over %d stream(s)", n, w)

        if w == 1:
            parts = [self.models[0].add_samples(shares[0])]
        else:
            with ThreadPoolExecutor(max_workers=w) as ex:
                futures = [
                    ex.submit(model.add_samples, k)
                    for model, k in zip(self.models, shares)
                    if k > 0
                ]
                parts = [f.result() for f in futures]

        for part in parts:
            self.statistics = self.statistics.merge(part)

    def _error(self) -> float:
        return self.statistics.error_estimate()

    def value_with_samples(self, samples: int) -> float:
        self.state = SimulationState.SAMPLING
        missing = samples - self.samples
        if missing < 0:
            raise ValueError(
                f"number of samples already taken ({self.samples}) "
                f"exceeds the requested number ({samples})"
            )
        if missing > 0:
            self.add_samples(missing)
        self.state = SimulationState.CONVERGED
        return self.statistics.mean()

    def value(
        self,
        tolerance: float,
        max_samples: int | None = None,
        min_samples: int = DEFAULT_MIN_SAMPLES,
    ) -> float:
        """Sample until the standard error is at most ``tolerance``.

        Stops early at ``max_samples`` with a :class:`ToleranceNotReachedWarning`.
        """
        self.state = SimulationState.SAMPLING
        cap = math.inf if max_samples is None else max_samples
        min_samples = max(int(min_samples), 2)
        if cap < min_samples:
            min_samples = int(cap)

        if self.samples < min_samples:
            self.add_samples(min_samples - self.samples)

        error = self._error()
        while error > tolerance:
            n = self.samples
            order = (error / tolerance) ** 2
            next_batch = max(int(n * order * BATCH_GROWTH_DAMPING - n), min_samples)
            next_batch = int(min(next_batch, cap - n))
            if next_batch <= 0:
                self.state = SimulationState.EXHAUSTED
                logger.info(
                    "MC stopped at max_samples=%d with error %.3g > tolerance %.3g",
                    n,
                    error,
                    tolerance,
                )
                warnings.warn(
                    f"max number of samples ({n}) reached before the required "
                    f"tolerance ({tolerance:g}); error estimate is {error:g}",
                    ToleranceNotReachedWarning,
                    stacklevel=2,
                )
                return self.statistics.mean()
            self.add_samples(next_batch)
            error = self._error()
            logger.debug("MC samples=%d error=%.6g", self.samples, error)

        self.state = SimulationState.CONVERGED
        return self.statistics.mean()

    def run(self) -> MCResults:
        cfg = self.cfg
        if cfg.required_tolerance is not None:
            min_samples = (
                cfg.required_samples
                if cfg.required_samples is not None
                else DEFAULT_MIN_SAMPLES
            )
            mean = self.value(cfg.required_tolerance, cfg.max_samples, min_samples)
        else:
            assert cfg.required_samples is not None
            mean = self.value_with_samples(cfg.required_samples)

        error: float | None = None
        if self.allows_error_estimate and self.samples > 1:
            error = self._error()

        logger.info(
            "MC done: value=%.6g error=%s samples=%d state=%s",
            mean,
            "n/a" if error is None else f"{error:.3g}",
            self.samples,
            self.state.value,
        )
        return MCResults(
            value=float(mean),
            error_estimate=error,
            samples=self.samples,
            state=self.state,
        )
