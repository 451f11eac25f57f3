import numpy as np
import pytest

from option_engines.config import FDConfig
from option_engines.exceptions import ConfigurationError
from option_engines.numerics.log_grid import GridLimits
from option_engines.numerics.operators import BoundaryKind
from option_engines.pricers.fd_engine import FDVanillaOption
from option_engines.types import OptionType

S, K, R, Q, SIGMA, T = 100.0, 100.0, 0.05, 0.02, 0.2, 1.0


def make_option(kind=OptionType.CALL, grid_points=201, **kw) -> FDVanillaOption:
    params = dict(
        underlying=S,
        strike=K,
        dividend_yield=Q,
        risk_free_rate=R,
        residual_time=T,
        volatility=SIGMA,
    )
    params.update(kw)
    return FDVanillaOption(kind, grid_points=grid_points, **params)


@pytest.mark.parametrize("kind", list(OptionType))
def test_value_matches_black_scholes(bs_price, kind):
    opt = make_option(kind)

    assert opt.value() == pytest.approx(bs_price(kind, S, K, R, Q, SIGMA, T), abs=2e-2)


def test_call_greeks_match_black_scholes(bs_call_greeks):
    opt = make_option(OptionType.CALL)
    ref = bs_call_greeks(S, K, R, Q, SIGMA, T)

    assert opt.delta() == pytest.approx(ref["delta"], abs=2e-3)
    assert opt.gamma() == pytest.approx(ref["gamma"], abs=1e-3)
    assert opt.theta() == pytest.approx(ref["theta"], abs=0.1)
    assert opt.vega() == pytest.approx(ref["vega"], rel=2e-2)
    assert opt.rho() == pytest.approx(ref["rho"], rel=2e-2)


def test_even_grid_uses_midpoint_rules(bs_price):
    opt = make_option(OptionType.PUT, grid_points=200, strike=95.0)

    assert opt.value() == pytest.approx(
        bs_price(OptionType.PUT, S, 95.0, R, Q, SIGMA, T), abs=3e-2
    )


def test_default_grid_points_follow_maturity():
    assert make_option(grid_points=None).grid_points == 100
    assert make_option(grid_points=None, residual_time=3.0).grid_points == 200


def test_pipeline_on_manual_five_point_grid():
    opt = make_option(OptionType.CALL, grid_points=5)

    grid = opt.initialize_grid(GridLimits(50.0, 200.0))
    payoff = opt.initialize_initial_condition()
    op = opt.initialize_operator()

    np.testing.assert_allclose(grid, [50.0, 70.71, 100.0, 141.42, 200.0], atol=5e-3)
    np.testing.assert_allclose(payoff, [0.0, 0.0, 0.0, 41.42, 100.0], atol=5e-3)
    assert op.lower_bc.kind is BoundaryKind.NEUMANN
    assert op.lower_bc.value == 0.0
    assert op.upper_bc.value == pytest.approx(100.0 - 41.4214, abs=1e-3)


def test_results_are_cached_until_invalidated():
    opt = make_option()

    v1 = opt.value()
    d1 = opt.delta()
    assert opt.value() == v1
    assert opt.gamma() == opt.gamma()
    assert opt.recalculation_count == 1
    assert d1 == opt.delta()

    opt.volatility = 0.25
    assert not opt.is_calculated
    assert opt.value() > v1
    assert opt.recalculation_count == 2


def test_setters_notify_subscribers():
    opt = make_option()
    calls = []
    opt.register_observer(lambda: calls.append("changed"))

    opt.underlying = 105.0
    opt.strike = 95.0
    opt.risk_free_rate = 0.03

    assert calls == ["changed"] * 3


def test_buffers_are_reused_between_passes():
    opt = make_option()
    grid_buf = opt.grid

    opt.value()
    opt.underlying = 110.0
    opt.value()
    assert opt.grid is grid_buf

    opt.grid_points = 151
    assert opt.grid.shape == (151,)
    assert opt.prices.shape == (151,)


def test_prices_are_today_values_on_grid():
    opt = make_option(OptionType.CALL)

    prices = opt.prices
    assert prices.shape == opt.grid.shape
    # call values are non-decreasing in the spot
    assert np.all(np.diff(prices) >= -1e-6)
    assert prices[-1] - prices[-2] == pytest.approx(opt.operator.upper_bc.value, abs=1e-8)


def test_fully_implicit_scheme_is_close_to_crank_nicolson():
    cn = make_option().value()
    implicit = make_option(cfg=FDConfig(time_steps=400, theta=1.0)).value()

    assert implicit == pytest.approx(cn, abs=3e-2)


@pytest.mark.parametrize(
    "field, value",
    [("underlying", 0.0), ("strike", -1.0), ("residual_time", 0.0), ("volatility", 3.5)],
)
def test_out_of_domain_inputs(field, value):
    with pytest.raises(ValueError):
        make_option(**{field: value})


def test_volatility_bounds_are_inclusive():
    make_option(volatility=0.0005)
    make_option(volatility=3.0)


def test_vega_at_maximum_volatility_bumps_downward(bs_call_greeks):
    opt = make_option(volatility=3.0, grid_points=401)
    ref = bs_call_greeks(S, K, R, Q, 3.0, T)

    vega = opt.vega()
    assert opt.volatility == 3.0
    assert vega > 0.0
    assert vega == pytest.approx(ref["vega"], rel=0.1)


def test_too_few_grid_points():
    with pytest.raises(ConfigurationError, match="grid_points"):
        make_option(grid_points=3)


def test_failed_pass_leaves_cache_invalid():
    opt = make_option(kind="digital")

    with pytest.raises(ConfigurationError):
        opt.value()
    assert not opt.is_calculated
    assert opt.recalculation_count == 0

    opt.kind = OptionType.PUT
    assert opt.value() > 0.0
