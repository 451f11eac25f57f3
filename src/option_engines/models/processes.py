from __future__ import annotations

import math
from collections.abc import Callable
from datetime import date
from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from ..observable import Observable
from ..typing import Callback

DayCounter = Callable[[date, date], float]


def act365_fixed(start: date, end: date) -> float:
    """Year fraction ``days / 365``."""
    return (end - start).days / 365.0


@runtime_checkable
class StochasticProcess(Protocol):
    """What the Monte Carlo engines need from a process.

    ``size`` is the dimension of the state, ``factors`` the number of
    driving Brownian motions per step.
    """

    @property
    def size(self) -> int:  # pragma: no cover
        ...

    @property
    def factors(self) -> int:  # pragma: no cover
        ...

    def initial_values(self) -> NDArray[np.floating]:  # pragma: no cover
        ...

    def time(self, d: date) -> float:  # pragma: no cover
        ...

    def evolve(
        self,
        t0: float,
        x0: NDArray[np.floating],
        dt: float,
        dw: NDArray[np.floating],
    ) -> NDArray[np.floating]:  # pragma: no cover
        ...

    def discount(self, t: float) -> float:  # pragma: no cover
        ...

    def register_observer(self, callback: Callback) -> Callback:  # pragma: no cover
        ...

    def unregister_observer(self, callback: Callback) -> None:  # pragma: no cover
        ...


class BlackScholesProcess(Observable):
    """
    Geometric Brownian motion under the risk-neutral measure:

        dS_t = (r - q) S_t dt + sigma S_t dW_t

    with flat rate ``r``, dividend yield ``q`` and volatility ``sigma``.

    Parameters
    ----------
    spot
        Underlying level on ``reference_date``. Must be positive.
    rate
        Continuously-compounded risk-free rate.
    dividend_yield
        Continuous dividend yield.
    volatility
        Annualized volatility. Must be positive.
    reference_date
        Date mapped to ``t = 0``.
    day_counter
        Year-fraction function used by :meth:`time`. Defaults to ACT/365F.

    Notes
    -----
    Setting any parameter notifies observers, so engines priced off this
    process drop their cached results.
    """

    def __init__(
        self,
        spot: float,
        rate: float,
        dividend_yield: float,
        volatility: float,
        reference_date: date,
        *,
        day_counter: DayCounter = act365_fixed,
    ) -> None:
        super().__init__()
        if spot <= 0.0:
            raise ValueError("spot must be positive")
        if volatility <= 0.0:
            raise ValueError("volatility must be positive")
        self._spot = float(spot)
        self._rate = float(rate)
        self._dividend_yield = float(dividend_yield)
        self._volatility = float(volatility)
        self._reference_date = reference_date
        self._day_counter = day_counter

    # --- parameters -------------------------------------------------------

    @property
    def spot(self) -> float:
        return self._spot

    @spot.setter
    def spot(self, value: float) -> None:
        if value <= 0.0:
            raise ValueError("spot must be positive")
        self._spot = float(value)
        self.notify_observers()

    @property
    def rate(self) -> float:
        return self._rate

    @rate.setter
    def rate(self, value: float) -> None:
        self._rate = float(value)
        self.notify_observers()

    @property
    def dividend_yield(self) -> float:
        return self._dividend_yield

    @dividend_yield.setter
    def dividend_yield(self, value: float) -> None:
        self._dividend_yield = float(value)
        self.notify_observers()

    @property
    def volatility(self) -> float:
        return self._volatility

    @volatility.setter
    def volatility(self, value: float) -> None:
        if value <= 0.0:
            raise ValueError("volatility must be positive")
        self._volatility = float(value)
        self.notify_observers()

    @property
    def reference_date(self) -> date:
        return self._reference_date

    @reference_date.setter
    def reference_date(self, value: date) -> None:
        self._reference_date = value
        self.notify_observers()

    # --- process interface ------------------------------------------------

    @property
    def size(self) -> int:
        return 1

    @property
    def factors(self) -> int:
        return 1

    def initial_values(self) -> NDArray[np.floating]:
        return np.array([self._spot], dtype=float)

    def time(self, d: date) -> float:
        return self._day_counter(self._reference_date, d)

    def evolve(
        self,
        t0: float,
        x0: NDArray[np.floating],
        dt: float,
        dw: NDArray[np.floating],
    ) -> NDArray[np.floating]:
        """Exact lognormal step from ``t0`` to ``t0 + dt``.

        ``x0`` has shape ``(n, 1)``, ``dw`` shape ``(n, 1)`` of standard normals.
        """
        mu = self._rate - self._dividend_yield
        sigma = self._volatility
        drift = (mu - 0.5 * sigma * sigma) * dt
        return x0 * np.exp(drift + sigma * math.sqrt(dt) * dw)

    def discount(self, t: float) -> float:
        return math.exp(-self._rate * t)

    def __repr__(self) -> str:
        return (
            f"BlackScholesProcess(spot={self._spot:g}, rate={self._rate:g}, "
            f"dividend_yield={self._dividend_yield:g}, volatility={self._volatility:g})"
        )
