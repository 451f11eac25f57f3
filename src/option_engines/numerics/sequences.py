"""Gaussian sequence generators used to drive path simulation.

Every generator returns blocks of shape ``(n, dimension)`` of standard normal
draws and advertises through ``allows_error_estimate`` whether the sample
standard error is a meaningful accuracy measure for it. Pseudo-random
streams do; low-discrepancy (Sobol) points are not independent, so they do
not.
"""

from __future__ import annotations

import warnings
from typing import ClassVar, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from ..config import RngType
from ..exceptions import ConfigurationError

__all__ = [
    "RandomSequencePolicy",
    "PseudoRandomSequence",
    "SobolSequence",
    "make_sequence_generator",
]


@runtime_checkable
class RandomSequencePolicy(Protocol):
    allows_error_estimate: ClassVar[bool]

    @property
    def dimension(self) -> int:  # pragma: no cover
        ...

    def next_sequence(self, n: int) -> NDArray[np.floating]:  # pragma: no cover
        ...


class PseudoRandomSequence:
    """Independent standard normals from a NumPy bit generator."""

    allows_error_estimate: ClassVar[bool] = True

    def __init__(self, dimension: int, seed: int, rng_type: RngType = "pcg64") -> None:
        if dimension <= 0:
            raise ConfigurationError("dimension must be > 0")
        match rng_type:
            case "pcg64":
                bit_gen: np.random.BitGenerator = np.random.PCG64(seed)
            case "mt19937":
                bit_gen = np.random.MT19937(seed)
            case _:
                raise ConfigurationError(f"{rng_type!r} is not a pseudo-random rng")
        self._dimension = int(dimension)
        self._rng = np.random.Generator(bit_gen)
        self.rng_type = rng_type

    @property
    def dimension(self) -> int:
        return self._dimension

    def next_sequence(self, n: int) -> NDArray[np.floating]:
        return self._rng.standard_normal((int(n), self._dimension))


class SobolSequence:
    """Scrambled Sobol points mapped to normals by the inverse CDF."""

    allows_error_estimate: ClassVar[bool] = False

    def __init__(self, dimension: int, seed: int) -> None:
        from scipy.stats import qmc

        if dimension <= 0:
            raise ConfigurationError("dimension must be > 0")
        self._dimension = int(dimension)
        self._engine = qmc.Sobol(
            d=self._dimension, scramble=True, rng=np.random.default_rng(seed)
        )
        self.rng_type = "sobol"

    @property
    def dimension(self) -> int:
        return self._dimension

    def next_sequence(self, n: int) -> NDArray[np.floating]:
        from scipy.special import ndtri

        with warnings.catch_warnings():
            # batches are sized by the convergence loop, not by powers of two
            warnings.filterwarnings("ignore", message=".*balance properties.*")
            u = self._engine.random(int(n))
        eps = np.finfo(float).eps
        u = 0.5 + (1.0 - eps) * (u - 0.5)
        return np.asarray(ndtri(u), dtype=float)


def make_sequence_generator(
    rng_type: RngType, dimension: int, seed: int
) -> PseudoRandomSequence | SobolSequence:
    if rng_type == "sobol":
        return SobolSequence(dimension, seed)
    return PseudoRandomSequence(dimension, seed, rng_type)
