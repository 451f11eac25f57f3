from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from ...exceptions import ConfigurationError
from ...models.processes import StochasticProcess
from ...numerics.brownian_bridge import BrownianBridge
from ...numerics.sequences import RandomSequencePolicy
from ...numerics.time_grid import TimeGrid

__all__ = ["Path", "PathGenerationPolicy", "PathGenerator"]


@dataclass(frozen=True, slots=True)
class Path:
    """
    A block of simulated paths.

    Attributes
    ----------
    time_grid
        Times the process was sampled at.
    values
        Process values with shape ``(n_paths, steps + 1, size)``;
        ``values[:, 0, :]`` holds the initial values.
    """

    time_grid: TimeGrid
    values: NDArray[np.floating]

    @property
    def n_paths(self) -> int:
        return int(self.values.shape[0])

    def at(self, t: float, component: int = 0) -> NDArray[np.floating]:
        """Values of ``component`` at grid time ``t``, shape ``(n_paths,)``."""
        return self.values[:, self.time_grid.index(t), component]

    def terminal(self, component: int = 0) -> NDArray[np.floating]:
        return self.values[:, -1, component]


@runtime_checkable
class PathGenerationPolicy(Protocol):
    @property
    def time_grid(self) -> TimeGrid:  # pragma: no cover
        ...

    def next(self, n: int) -> Path:  # pragma: no cover
        ...

    def antithetic(self) -> Path:  # pragma: no cover
        ...


class PathGenerator:
    """
    Turns Gaussian sequences into process paths over a time grid.

    Each draw of the sequence generator has ``factors * steps`` coordinates,
    laid out factor by factor. When ``brownian_bridge`` is set the coordinates
    of every factor are passed through a :class:`BrownianBridge` first.

    The normals of the last draw are kept so :meth:`antithetic` can replay
    the mirrored paths.
    """

    def __init__(
        self,
        process: StochasticProcess,
        time_grid: TimeGrid,
        generator: RandomSequencePolicy,
        brownian_bridge: bool = False,
    ) -> None:
        factors = int(process.factors)
        steps = time_grid.steps
        if generator.dimension != factors * steps:
            raise ConfigurationError(
                f"dimension ({generator.dimension}) is not equal to "
                f"({factors} * {steps}) the number of factors "
                "times the number of time steps"
            )
        self._process = process
        self._time_grid = time_grid
        self._generator = generator
        self._factors = factors
        self._bridge = BrownianBridge(time_grid) if brownian_bridge else None
        self._last: NDArray[np.floating] | None = None

    @property
    def time_grid(self) -> TimeGrid:
        return self._time_grid

    @property
    def dimension(self) -> int:
        return self._generator.dimension

    @property
    def generator(self) -> RandomSequencePolicy:
        return self._generator

    @property
    def brownian_bridge(self) -> bool:
        return self._bridge is not None

    def next(self, n: int) -> Path:
        if n <= 0:
            raise ValueError("n must be positive")
        z = self._generator.next_sequence(n)
        self._last = z
        return self._build(z)

    def antithetic(self) -> Path:
        """Paths driven by the negated normals of the last :meth:`next` call."""
        if self._last is None:
            raise RuntimeError("antithetic() called before next()")
        return self._build(-self._last)

    def _build(self, z: NDArray[np.floating]) -> Path:
        n = z.shape[0]
        steps = self._time_grid.steps
        dw = z.reshape(n, self._factors, steps)
        if self._bridge is not None:
            dw = np.stack(
                [self._bridge.transform(dw[:, f, :]) for f in range(self._factors)],
                axis=1,
            )
        # (n, steps, factors)
        dw = np.transpose(dw, (0, 2, 1))

        times = self._time_grid.times
        dt = self._time_grid.dt
        x0 = np.asarray(self._process.initial_values(), dtype=float)
        size = x0.shape[0]

        values = np.empty((n, steps + 1, size), dtype=float)
        values[:, 0, :] = x0
        x = np.broadcast_to(x0, (n, size))
        for i in range(steps):
            x = self._process.evolve(float(times[i]), x, float(dt[i]), dw[:, i, :])
            values[:, i + 1, :] = x
        return Path(self._time_grid, values)
