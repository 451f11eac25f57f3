from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .exceptions import ConfigurationError

RngType = Literal["pcg64", "mt19937", "sobol"]

PSEUDO_RANDOM_RNGS: frozenset[str] = frozenset({"pcg64", "mt19937"})
LOW_DISCREPANCY_RNGS: frozenset[str] = frozenset({"sobol"})


@dataclass(frozen=True, slots=True)
class FDConfig:
    """Time-stepping settings for the finite-difference engine.

    ``theta=0.5`` is Crank-Nicolson, ``1.0`` fully implicit.
    """

    time_steps: int = 100
    theta: float = 0.5

    def __post_init__(self) -> None:
        if self.time_steps <= 0:
            raise ConfigurationError("time_steps must be > 0")
        if not (0.0 <= self.theta <= 1.0):
            raise ConfigurationError("theta must be in [0, 1]")


@dataclass(frozen=True, slots=True)
class RandomConfig:
    seed: int = 0
    rng_type: RngType = "pcg64"

    def __post_init__(self) -> None:
        if self.rng_type not in PSEUDO_RANDOM_RNGS | LOW_DISCREPANCY_RNGS:
            raise ConfigurationError(f"Unknown rng_type: {self.rng_type!r}")
        if self.seed < 0:
            raise ConfigurationError("seed must be >= 0")

    @property
    def allows_error_estimate(self) -> bool:
        return self.rng_type in PSEUDO_RANDOM_RNGS


@dataclass(frozen=True, slots=True)
class MCConfig:
    """Sampling configuration for Monte Carlo engines.

    Parameters
    ----------
    time_steps, time_steps_per_year
        Exactly one must be given. ``time_steps`` fixes the number of
        simulation intervals; ``time_steps_per_year`` scales it with the
        horizon.
    brownian_bridge
        Build each path terminal-first with a Brownian bridge.
    antithetic
        Pair every path with its mirror (negated driving normals); the pair
        average is accumulated as one sample.
    required_samples
        Number of samples to draw when no tolerance is given, and the
        minimum sample count otherwise.
    required_tolerance
        Target standard error. Needs a pseudo-random generator.
    max_samples
        Hard cap on the sample count. Reaching it is not an error.
    random
        Seed and generator kind.
    n_workers
        Number of independent sampling streams per batch.
    batch_size
        Largest number of paths simulated in one vectorized block.
    """

    time_steps: int | None = None
    time_steps_per_year: int | None = None
    brownian_bridge: bool = False
    antithetic: bool = False
    required_samples: int | None = None
    required_tolerance: float | None = None
    max_samples: int | None = None
    random: RandomConfig = field(default_factory=RandomConfig)
    n_workers: int = 1
    batch_size: int = 8192

    def __post_init__(self) -> None:
        if self.time_steps is None and self.time_steps_per_year is None:
            raise ConfigurationError("no time steps provided")
        if self.time_steps is not None and self.time_steps_per_year is not None:
            raise ConfigurationError(
                "both time steps and time steps per year were provided"
            )
        if self.time_steps is not None and self.time_steps <= 0:
            raise ConfigurationError(
                f"time_steps must be positive, {self.time_steps} not allowed"
            )
        if self.time_steps_per_year is not None and self.time_steps_per_year <= 0:
            raise ConfigurationError(
                "time_steps_per_year must be positive, "
                f"{self.time_steps_per_year} not allowed"
            )

        if self.required_samples is None and self.required_tolerance is None:
            raise ConfigurationError("neither tolerance nor number of samples set")
        if self.required_samples is not None and self.required_samples <= 0:
            raise ConfigurationError("required_samples must be > 0")
        if self.required_tolerance is not None:
            if self.required_tolerance <= 0.0:
                raise ConfigurationError("required_tolerance must be > 0")
            if not self.random.allows_error_estimate:
                raise ConfigurationError(
                    "chosen random generator policy does not allow an error estimate"
                )
        if self.max_samples is not None:
            if self.max_samples <= 0:
                raise ConfigurationError("max_samples must be > 0")
            if (
                self.required_samples is not None
                and self.max_samples < self.required_samples
            ):
                raise ConfigurationError("max_samples must be >= required_samples")
            if self.required_tolerance is not None and self.max_samples < 2:
                raise ConfigurationError(
                    "max_samples must be >= 2 when a tolerance is required"
                )

        if self.n_workers <= 0:
            raise ConfigurationError("n_workers must be > 0")
        if self.batch_size <= 0:
            raise ConfigurationError("batch_size must be > 0")
