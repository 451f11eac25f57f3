"""Pytest helpers for the option_engines library."""

from __future__ import annotations

import math
from datetime import date

import numpy as np
import pytest
from scipy.stats import norm

from option_engines.models.processes import BlackScholesProcess
from option_engines.types import ForwardOptionSpec, OptionType


def _bs_unit(kind: OptionType, S, K, r, q, sigma, T) -> float:
    vst = sigma * math.sqrt(T)
    d1 = (math.log(S / K) + (r - q + 0.5 * sigma * sigma) * T) / vst
    d2 = d1 - vst
    call = S * math.exp(-q * T) * norm.cdf(d1) - K * math.exp(-r * T) * norm.cdf(d2)
    put = K * math.exp(-r * T) * norm.cdf(-d2) - S * math.exp(-q * T) * norm.cdf(-d1)
    match kind:
        case OptionType.CALL:
            return float(call)
        case OptionType.PUT:
            return float(put)
        case OptionType.STRADDLE:
            return float(call + put)
    raise ValueError(kind)


@pytest.fixture
def bs_price():
    """Closed-form Black-Scholes price with continuous dividend yield."""
    return _bs_unit


@pytest.fixture
def bs_call_greeks():
    """Closed-form delta, gamma, theta (calendar), vega and rho of a call."""

    def _greeks(S, K, r, q, sigma, T) -> dict[str, float]:
        vst = sigma * math.sqrt(T)
        d1 = (math.log(S / K) + (r - q + 0.5 * sigma * sigma) * T) / vst
        d2 = d1 - vst
        dq = math.exp(-q * T)
        dr = math.exp(-r * T)
        return {
            "delta": float(dq * norm.cdf(d1)),
            "gamma": float(dq * norm.pdf(d1) / (S * vst)),
            "theta": float(
                -S * dq * norm.pdf(d1) * sigma / (2.0 * math.sqrt(T))
                - r * K * dr * norm.cdf(d2)
                + q * S * dq * norm.cdf(d1)
            ),
            "vega": float(S * dq * norm.pdf(d1) * math.sqrt(T)),
            "rho": float(K * T * dr * norm.cdf(d2)),
        }

    return _greeks


@pytest.fixture
def forward_start_price():
    """Closed form of a forward-start option under flat Black-Scholes.

    ``performance=False`` pays ``payoff(S(t2); m S(t1))``, ``True`` pays
    ``payoff(S(t2)/S(t1); m)``.
    """

    def _price(kind, S0, m, r, q, sigma, t1, t2, *, performance=False) -> float:
        unit = _bs_unit(kind, 1.0, m, r, q, sigma, t2 - t1)
        if performance:
            return math.exp(-r * t1) * unit
        return S0 * math.exp(-q * t1) * unit

    return _price


@pytest.fixture
def reference_date() -> date:
    return date(2025, 1, 1)


@pytest.fixture
def process(reference_date) -> BlackScholesProcess:
    return BlackScholesProcess(
        spot=100.0,
        rate=0.05,
        dividend_yield=0.02,
        volatility=0.2,
        reference_date=reference_date,
    )


@pytest.fixture
def forward_call() -> ForwardOptionSpec:
    # 90 and 365 days after the reference date
    return ForwardOptionSpec(
        kind=OptionType.CALL,
        moneyness=1.0,
        reset_date=date(2025, 4, 1),
        exercise_dates=(date(2026, 1, 1),),
    )


@pytest.fixture
def rng():
    """Seeded RNG factory."""

    def _rng(seed: int) -> np.random.Generator:
        return np.random.default_rng(seed)

    return _rng
