"""Read value and derivatives off a grid at its central node.

The FD engine keeps the underlying at the geometric center of the grid, so
the center of the array is where today's spot lives.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def _check(a: NDArray[np.floating], g: NDArray[np.floating] | None, need: int) -> int:
    n = int(np.asarray(a).shape[0])
    if n < need:
        raise ValueError(f"Need at least {need} points, got {n}")
    if g is not None and np.asarray(g).shape != (n,):
        raise ValueError("values and grid must have the same shape")
    return n


def value_at_center(a: NDArray[np.floating]) -> float:
    n = _check(a, None, 1)
    jmid = n // 2
    if n % 2 == 1:
        return float(a[jmid])
    return float(0.5 * (a[jmid] + a[jmid - 1]))


def first_derivative_at_center(
    a: NDArray[np.floating], g: NDArray[np.floating]
) -> float:
    n = _check(a, g, 3)
    jmid = n // 2
    if n % 2 == 1:
        return float((a[jmid + 1] - a[jmid - 1]) / (g[jmid + 1] - g[jmid - 1]))
    return float((a[jmid] - a[jmid - 1]) / (g[jmid] - g[jmid - 1]))


def second_derivative_at_center(
    a: NDArray[np.floating], g: NDArray[np.floating]
) -> float:
    n = _check(a, g, 4)
    jmid = n // 2
    if n % 2 == 1:
        delta_plus = (a[jmid + 1] - a[jmid]) / (g[jmid + 1] - g[jmid])
        delta_minus = (a[jmid] - a[jmid - 1]) / (g[jmid] - g[jmid - 1])
        ds = 0.5 * (g[jmid + 1] - g[jmid - 1])
        return float((delta_plus - delta_minus) / ds)
    delta_plus = (a[jmid + 1] - a[jmid - 1]) / (g[jmid + 1] - g[jmid - 1])
    delta_minus = (a[jmid] - a[jmid - 2]) / (g[jmid] - g[jmid - 2])
    return float((delta_plus - delta_minus) / (g[jmid] - g[jmid - 1]))
