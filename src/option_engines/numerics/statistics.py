# src/option_engines/numerics/statistics.py
from __future__ import annotations

import math
from typing import Protocol, Self, runtime_checkable

import numpy as np
from numpy.typing import ArrayLike

__all__ = ["StatisticsPolicy", "SampleAccumulator"]


@runtime_checkable
class StatisticsPolicy(Protocol):
    @property
    def samples(self) -> int:  # pragma: no cover
        ...

    def add(self, values: ArrayLike) -> None:  # pragma: no cover
        ...

    def mean(self) -> float:  # pragma: no cover
        ...

    def error_estimate(self) -> float:  # pragma: no cover
        ...

    def merge(self, other: Self) -> Self:  # pragma: no cover
        ...


class SampleAccumulator:
    """Running count, mean and sum of squared deviations.

    Batches are folded in with the pairwise update of Chan, Golub and LeVeque,
    which is also what :meth:`merge` uses, so accumulating a stream in one
    pass or in independent pieces gives the same statistics up to rounding.
    """

    __slots__ = ("_n", "_mean", "_m2", "_min", "_max")

    def __init__(self) -> None:
        self._n = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._min = math.inf
        self._max = -math.inf

    @classmethod
    def from_values(cls, values: ArrayLike) -> SampleAccumulator:
        acc = cls()
        acc.add(values)
        return acc

    @property
    def samples(self) -> int:
        return self._n

    def _combine(self, n_b: int, mean_b: float, m2_b: float) -> None:
        n_a = self._n
        n = n_a + n_b
        delta = mean_b - self._mean
        self._mean += delta * n_b / n
        self._m2 += m2_b + delta * delta * n_a * n_b / n
        self._n = n

    def add(self, values: ArrayLike) -> None:
        x = np.asarray(values, dtype=float).ravel()
        if x.size == 0:
            return
        if not np.all(np.isfinite(x)):
            raise ValueError("samples must be finite")
        mean_b = float(x.mean())
        m2_b = float(np.sum((x - mean_b) ** 2))
        self._combine(int(x.size), mean_b, m2_b)
        self._min = min(self._min, float(x.min()))
        self._max = max(self._max, float(x.max()))

    def merge(self, other: SampleAccumulator) -> SampleAccumulator:
        """Return a new accumulator holding the samples of both."""
        out = SampleAccumulator()
        for acc in (self, other):
            if acc._n:
                out._combine(acc._n, acc._mean, acc._m2)
                out._min = min(out._min, acc._min)
                out._max = max(out._max, acc._max)
        return out

    def mean(self) -> float:
        if self._n == 0:
            raise ValueError("no samples accumulated")
        return self._mean

    def variance(self) -> float:
        if self._n < 2:
            raise ValueError("need at least two samples")
        return self._m2 / (self._n - 1)

    def standard_deviation(self) -> float:
        return math.sqrt(self.variance())

    def error_estimate(self) -> float:
        """Standard error of the mean."""
        return math.sqrt(self.variance() / self._n)

    def min(self) -> float:
        if self._n == 0:
            raise ValueError("no samples accumulated")
        return self._min

    def max(self) -> float:
        if self._n == 0:
            raise ValueError("no samples accumulated")
        return self._max

    def reset(self) -> None:
        self.__init__()

    def __repr__(self) -> str:
        return f"SampleAccumulator(samples={self._n}, mean={self._mean:.6g})"
