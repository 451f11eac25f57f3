from datetime import date

import numpy as np
import pytest

from option_engines.models.processes import BlackScholesProcess, StochasticProcess
from option_engines.observable import LazyObject, Observable


class Counter(LazyObject):
    def __init__(self) -> None:
        super().__init__()
        self.result = None

    def perform_calculations(self) -> None:
        self.result = self.recalculation_count + 1


def test_register_is_idempotent_and_unregister_removes():
    obs = Observable()
    calls = []

    def cb():
        calls.append(1)

    assert obs.register_observer(cb) is cb
    obs.register_observer(cb)
    assert obs.observer_count == 1

    obs.notify_observers()
    obs.unregister_observer(cb)
    obs.notify_observers()
    assert calls == [1]

    with pytest.raises(ValueError, match="not registered"):
        obs.unregister_observer(cb)


def test_callback_may_unregister_itself():
    obs = Observable()
    seen = []

    def once():
        seen.append(1)
        obs.unregister_observer(once)

    obs.register_observer(once)
    obs.notify_observers()
    obs.notify_observers()
    assert seen == [1]


def test_lazy_object_calculates_once():
    lazy = Counter()

    lazy.calculate()
    lazy.calculate()
    assert lazy.recalculation_count == 1
    assert lazy.result == 1

    lazy.recalculate()
    assert lazy.recalculation_count == 2


def test_invalidate_is_silent():
    lazy = Counter()
    calls = []
    lazy.register_observer(lambda: calls.append(1))
    lazy.calculate()

    lazy.invalidate()

    assert not lazy.is_calculated
    assert calls == []
    lazy.calculate()
    assert lazy.recalculation_count == 2


def test_invalidation_propagates_through_chain():
    upstream = Counter()
    downstream = Counter()
    upstream.register_observer(downstream.update)
    upstream.calculate()
    downstream.calculate()

    upstream.update()

    assert not upstream.is_calculated
    assert not downstream.is_calculated


def test_black_scholes_process_notifies_on_change():
    p = BlackScholesProcess(100.0, 0.05, 0.0, 0.2, date(2025, 1, 1))
    lazy = Counter()
    p.register_observer(lazy.update)
    lazy.calculate()

    p.volatility = 0.3
    assert not lazy.is_calculated
    assert isinstance(p, StochasticProcess)


def test_black_scholes_process_dynamics():
    p = BlackScholesProcess(100.0, 0.05, 0.01, 0.2, date(2025, 1, 1))

    assert p.time(date(2026, 1, 1)) == 1.0
    assert p.discount(2.0) == pytest.approx(np.exp(-0.1))
    np.testing.assert_array_equal(p.initial_values(), [100.0])

    x = p.evolve(0.0, np.full((2, 1), 100.0), 0.5, np.zeros((2, 1)))
    np.testing.assert_allclose(x, 100.0 * np.exp((0.04 - 0.02) * 0.5))


def test_black_scholes_process_validation():
    with pytest.raises(ValueError):
        BlackScholesProcess(0.0, 0.05, 0.0, 0.2, date(2025, 1, 1))
    p = BlackScholesProcess(100.0, 0.05, 0.0, 0.2, date(2025, 1, 1))
    with pytest.raises(ValueError):
        p.volatility = -0.1
