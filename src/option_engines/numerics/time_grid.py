# src/option_engines/numerics/time_grid.py
from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence

import numpy as np
from numpy.typing import NDArray

__all__ = ["TimeGrid", "apportion_steps"]


def apportion_steps(lengths: Sequence[float], steps: int) -> list[int]:
    """Split ``steps`` intervals across segments proportionally to ``lengths``.

    Every segment gets at least one interval. When ``steps`` is at least the
    number of segments the counts sum to exactly ``steps`` (largest remainder,
    ties to the earlier segment); otherwise each segment gets one.
    """
    n = len(lengths)
    if n == 0:
        return []
    if steps <= n:
        return [1] * n

    total = float(sum(lengths))
    ideal = [steps * length / total for length in lengths]
    counts = [max(1, math.floor(x)) for x in ideal]

    surplus = steps - sum(counts)
    if surplus > 0:
        order = sorted(range(n), key=lambda i: (-(ideal[i] - counts[i]), i))
        for i in order[:surplus]:
            counts[i] += 1
    elif surplus < 0:
        # only possible after the max(1, .) floor; take from the most over-served
        while surplus < 0:
            candidates = [i for i in range(n) if counts[i] > 1]
            i = min(candidates, key=lambda k: (ideal[k] - counts[k], -k))
            counts[i] -= 1
            surplus += 1
    return counts


class TimeGrid:
    """Strictly increasing time points starting at 0.

    Mandatory times are stored as exact grid elements: each segment between
    two consecutive mandatory times is filled with :func:`numpy.linspace`,
    whose endpoints are the segment bounds themselves.
    """

    __slots__ = ("_times", "_mandatory")

    def __init__(
        self,
        times: Iterable[float],
        mandatory_times: Iterable[float] = (),
    ) -> None:
        t = np.asarray(list(times), dtype=float)
        if t.ndim != 1 or t.shape[0] < 2:
            raise ValueError("A time grid needs at least two points")
        if t[0] != 0.0:
            raise ValueError("A time grid must start at 0")
        if not np.all(np.diff(t) > 0.0):
            raise ValueError("time grid must be strictly increasing")
        self._times = t
        self._times.setflags(write=False)
        self._mandatory = tuple(sorted({float(m) for m in mandatory_times}))

    @classmethod
    def uniform(cls, end: float, steps: int) -> TimeGrid:
        if end <= 0.0:
            raise ValueError("end must be > 0")
        if steps <= 0:
            raise ValueError("steps must be > 0")
        return cls(np.linspace(0.0, end, steps + 1), mandatory_times=(end,))

    @classmethod
    def from_mandatory_times(
        cls, mandatory_times: Iterable[float], steps: int
    ) -> TimeGrid:
        """Grid on ``[0, max(mandatory_times)]`` hitting every mandatory time.

        Zero mandatory times coincide with the grid origin and add no segment.
        """
        mandatory = sorted({float(m) for m in mandatory_times})
        if not mandatory:
            raise ValueError("At least one mandatory time is required")
        if mandatory[0] < 0.0:
            raise ValueError("negative times not allowed")
        if mandatory[-1] <= 0.0:
            raise ValueError("The last mandatory time must be > 0")
        if steps <= 0:
            raise ValueError("steps must be > 0")

        knots = [0.0] + [m for m in mandatory if m > 0.0]
        lengths = [b - a for a, b in zip(knots[:-1], knots[1:])]
        counts = apportion_steps(lengths, steps)

        pieces = [np.array([0.0])]
        for (a, b), k in zip(zip(knots[:-1], knots[1:]), counts):
            pieces.append(np.linspace(a, b, k + 1)[1:])
        return cls(np.concatenate(pieces), mandatory_times=mandatory)

    @property
    def times(self) -> NDArray[np.floating]:
        return self._times

    @property
    def mandatory_times(self) -> tuple[float, ...]:
        return self._mandatory

    @property
    def dt(self) -> NDArray[np.floating]:
        return np.diff(self._times)

    @property
    def steps(self) -> int:
        return int(self._times.shape[0]) - 1

    @property
    def front(self) -> float:
        return float(self._times[0])

    @property
    def back(self) -> float:
        return float(self._times[-1])

    def index(self, t: float) -> int:
        """Position of ``t`` on the grid; ``t`` must be a grid point."""
        i = int(np.searchsorted(self._times, t))
        if i < len(self._times) and math.isclose(
            self._times[i], t, rel_tol=1e-12, abs_tol=1e-14
        ):
            return i
        if i > 0 and math.isclose(self._times[i - 1], t, rel_tol=1e-12, abs_tol=1e-14):
            return i - 1
        raise ValueError(f"time {t} is not on the grid")

    def closest_index(self, t: float) -> int:
        return int(np.argmin(np.abs(self._times - t)))

    def __len__(self) -> int:
        return int(self._times.shape[0])

    def __iter__(self) -> Iterator[float]:
        return iter(float(x) for x in self._times)

    def __getitem__(self, i: int) -> float:
        return float(self._times[i])

    def __repr__(self) -> str:
        return f"TimeGrid(steps={self.steps}, back={self.back:g})"
