"""Brownian-bridge path construction.

The first input variate fixes the Brownian motion at the last grid time, the
second at (roughly) the middle, and so on by bisection. With low-discrepancy
inputs this puts the best-distributed coordinates on the largest-scale path
features.

:meth:`BrownianBridge.transform` returns normalized increments
``(W(t_i) - W(t_{i-1})) / sqrt(t_i - t_{i-1})``, so the output is a drop-in
replacement for independent standard normals in a step-by-step scheme.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .time_grid import TimeGrid


class BrownianBridge:
    """Bridge construction over the non-zero times of a grid."""

    __slots__ = (
        "_size",
        "_t",
        "_sqrtdt",
        "_bridge_index",
        "_left_index",
        "_right_index",
        "_left_weight",
        "_right_weight",
        "_std_dev",
    )

    def __init__(self, times: TimeGrid | NDArray[np.floating]) -> None:
        if isinstance(times, TimeGrid):
            t = np.asarray(times.times[1:], dtype=float)
        else:
            t = np.asarray(times, dtype=float)
        if t.ndim != 1 or t.shape[0] == 0:
            raise ValueError("Need at least one time")
        if t[0] <= 0.0 or not np.all(np.diff(t) > 0.0):
            raise ValueError("times must be positive and strictly increasing")

        size = int(t.shape[0])
        self._size = size
        self._t = t
        self._sqrtdt = np.sqrt(np.diff(np.concatenate(([0.0], t))))

        self._bridge_index = np.zeros(size, dtype=int)
        self._left_index = np.zeros(size, dtype=int)
        self._right_index = np.zeros(size, dtype=int)
        self._left_weight = np.zeros(size, dtype=float)
        self._right_weight = np.zeros(size, dtype=float)
        self._std_dev = np.zeros(size, dtype=float)
        self._initialize()

    def _initialize(self) -> None:
        size, t = self._size, self._t

        # filled[k] marks time index k as already constructed
        filled = np.zeros(size, dtype=bool)
        filled[size - 1] = True
        self._bridge_index[0] = size - 1
        self._std_dev[0] = np.sqrt(t[size - 1])

        j = 0
        for i in range(1, size):
            while filled[j]:
                j += 1
            k = j
            while not filled[k]:
                k += 1
            # j..k-1 are free, k is the next constructed point
            l = j + ((k - 1 - j) >> 1)
            filled[l] = True
            self._bridge_index[i] = l
            self._left_index[i] = j
            self._right_index[i] = k
            if j != 0:
                span = t[k] - t[j - 1]
                self._left_weight[i] = (t[k] - t[l]) / span
                self._right_weight[i] = (t[l] - t[j - 1]) / span
                self._std_dev[i] = np.sqrt((t[l] - t[j - 1]) * (t[k] - t[l]) / span)
            else:
                self._left_weight[i] = (t[k] - t[l]) / t[k]
                self._right_weight[i] = t[l] / t[k]
                self._std_dev[i] = np.sqrt(t[l] * (t[k] - t[l]) / t[k])
            j = k + 1
            if j >= size:
                j = 0

    @property
    def size(self) -> int:
        return self._size

    def transform(self, z: NDArray[np.floating]) -> NDArray[np.floating]:
        """Map standard normals ``(n, size)`` to normalized increments ``(n, size)``."""
        z = np.asarray(z, dtype=float)
        squeeze = z.ndim == 1
        if squeeze:
            z = z[None, :]
        if z.shape[-1] != self._size:
            raise ValueError(f"last axis must have length {self._size} got {z.shape[-1]}")

        w = np.empty_like(z)
        w[:, self._size - 1] = self._std_dev[0] * z[:, 0]
        for i in range(1, self._size):
            j = self._left_index[i]
            k = self._right_index[i]
            l = self._bridge_index[i]
            if j != 0:
                w[:, l] = (
                    self._left_weight[i] * w[:, j - 1]
                    + self._right_weight[i] * w[:, k]
                    + self._std_dev[i] * z[:, i]
                )
            else:
                w[:, l] = self._right_weight[i] * w[:, k] + self._std_dev[i] * z[:, i]

        out = np.empty_like(w)
        out[:, 1:] = np.diff(w, axis=1) / self._sqrtdt[1:]
        out[:, 0] = w[:, 0] / self._sqrtdt[0]
        return out[0] if squeeze else out
