from __future__ import annotations

from collections.abc import Callable

import numpy as np

from .exceptions import ConfigurationError
from .types import OptionType


def call_payoff(ST: np.ndarray, *, K: float) -> np.ndarray:
    return np.maximum(ST - K, 0.0)


def put_payoff(ST: np.ndarray, *, K: float) -> np.ndarray:
    return np.maximum(K - ST, 0.0)


def straddle_payoff(ST: np.ndarray, *, K: float) -> np.ndarray:
    return np.abs(K - ST)


def make_vanilla_payoff(
    kind: OptionType, *, K: float | np.ndarray
) -> Callable[[np.ndarray], np.ndarray]:
    """Return a vectorized payoff ``ST -> payoff(ST)`` for ``kind``.

    ``K`` may be an array broadcastable against ``ST`` (used by forward-start
    pricers whose strike is fixed path by path).
    """
    match kind:
        case OptionType.CALL:

            def payoff(ST: np.ndarray) -> np.ndarray:
                return call_payoff(ST, K=K)

        case OptionType.PUT:

            def payoff(ST: np.ndarray) -> np.ndarray:
                return put_payoff(ST, K=K)

        case OptionType.STRADDLE:

            def payoff(ST: np.ndarray) -> np.ndarray:
                return straddle_payoff(ST, K=K)

        case _:
            raise ConfigurationError(f"invalid option type: {kind!r}")

    return payoff


def initial_condition(
    kind: OptionType,
    grid: np.ndarray,
    *,
    strike: float,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Payoff at maturity on every grid node.

    Writes into ``out`` when given so callers can reuse a buffer.
    """
    values = make_vanilla_payoff(kind, K=strike)(np.asarray(grid, dtype=float))
    if out is None:
        return np.asarray(values, dtype=float)
    if out.shape != values.shape:
        raise ValueError(f"out must have shape {values.shape} got {out.shape}")
    out[:] = values
    return out
