# tests/test_tridiag_solvers.py
import numpy as np
import pytest

from option_engines.numerics.operators import BSMOperator, neumann_from_payoff
from option_engines.numerics.time_steppers import theta_step
from option_engines.numerics.tridiag import (
    Tridiag,
    solve_tridiag_scipy,
    solve_tridiag_thomas,
    tridiag_mv,
    tridiag_to_dense,
)


def make_diag_dominant_tridiag(
    rng: np.random.Generator, M: int, scale: float = 1.0
) -> Tridiag:
    """Create a random *strictly diagonally dominant* tridiagonal system."""
    if M == 1:
        diag = np.array([1.0 + abs(rng.normal())], dtype=float) * scale
        return Tridiag(lower=np.array([]), diag=diag, upper=np.array([]))

    lower = rng.normal(size=M - 1) * scale
    upper = rng.normal(size=M - 1) * scale

    diag = (1.0 + np.abs(rng.normal(size=M))) * scale
    diag[0] += np.abs(upper[0])
    diag[-1] += np.abs(lower[-1])
    if M > 2:
        diag[1:-1] += np.abs(lower[:-1]) + np.abs(upper[1:])

    return Tridiag(lower=lower, diag=diag, upper=upper)


@pytest.mark.parametrize("M", [1, 2, 3, 10, 50, 200])
def test_thomas_matches_scipy_on_diag_dominant_random(M: int) -> None:
    rng = np.random.default_rng(12345 + M)
    A = make_diag_dominant_tridiag(rng, M)
    rhs = rng.normal(size=M)

    np.testing.assert_allclose(
        solve_tridiag_thomas(A, rhs),
        solve_tridiag_scipy(A, rhs),
        rtol=1e-10,
        atol=1e-12,
    )


@pytest.mark.parametrize("M", [1, 2, 10, 80])
def test_solutions_match_dense_solve(M: int) -> None:
    rng = np.random.default_rng(777 + M)
    A = make_diag_dominant_tridiag(rng, M, scale=2.0)
    rhs = rng.normal(size=M)

    x_dense = np.linalg.solve(tridiag_to_dense(A), rhs)

    np.testing.assert_allclose(solve_tridiag_thomas(A, rhs), x_dense, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(solve_tridiag_scipy(A, rhs), x_dense, rtol=1e-10, atol=1e-12)


@pytest.mark.parametrize("M", [2, 5, 30])
def test_inputs_not_modified(M: int) -> None:
    rng = np.random.default_rng(999 + M)
    A = make_diag_dominant_tridiag(rng, M)
    rhs = rng.normal(size=M)

    lower0, diag0, upper0, rhs0 = A.lower.copy(), A.diag.copy(), A.upper.copy(), rhs.copy()

    for solve in (solve_tridiag_thomas, solve_tridiag_scipy):
        _ = solve(A, rhs)
        np.testing.assert_array_equal(A.lower, lower0)
        np.testing.assert_array_equal(A.diag, diag0)
        np.testing.assert_array_equal(A.upper, upper0)
        np.testing.assert_array_equal(rhs, rhs0)


def test_shape_errors() -> None:
    rng = np.random.default_rng(0)
    A = make_diag_dominant_tridiag(rng, 5)
    rhs = rng.normal(size=5)

    A_bad_lower = Tridiag(lower=A.lower[:-1], diag=A.diag, upper=A.upper)
    with pytest.raises(ValueError):
        solve_tridiag_thomas(A_bad_lower, rhs)
    with pytest.raises(ValueError):
        solve_tridiag_thomas(A, rhs[:-1])
    with pytest.raises(ValueError):
        solve_tridiag_scipy(A_bad_lower, rhs)
    with pytest.raises(ValueError):
        solve_tridiag_scipy(A, rhs[:-1])


@pytest.mark.parametrize("M", [1, 2, 10, 50])
def test_tridiag_mv_matches_dense(M: int) -> None:
    rng = np.random.default_rng(2024 + M)
    A = make_diag_dominant_tridiag(rng, M)
    u = rng.normal(size=M)

    y = tridiag_mv(Bl=A.lower, Bd=A.diag, Bu=A.upper, u=u)

    np.testing.assert_allclose(y, tridiag_to_dense(A) @ u, rtol=1e-12, atol=1e-12)
    np.testing.assert_allclose(A.mv(u), y)


def test_boundary_row_replacement_leaves_original_untouched() -> None:
    A = Tridiag(lower=np.full(3, 1.0), diag=np.full(4, -2.0), upper=np.full(3, 1.0))

    B = A.with_first_row(-1.0, 1.0).with_last_row(-1.0, 1.0)
    dense = tridiag_to_dense(B)

    np.testing.assert_array_equal(dense[0], [-1.0, 1.0, 0.0, 0.0])
    np.testing.assert_array_equal(dense[-1], [0.0, 0.0, -1.0, 1.0])
    np.testing.assert_array_equal(A.diag, np.full(4, -2.0))


@pytest.mark.parametrize("N", [5, 20, 80])
def test_cn_step_thomas_matches_scipy(N: int) -> None:
    """One Crank-Nicolson step with Neumann edges, solved both ways."""
    grid = 50.0 * np.exp(np.linspace(0.0, np.log(4.0), N))
    u0 = np.maximum(grid - 100.0, 0.0)
    lower, upper = neumann_from_payoff(u0)
    op = BSMOperator.build(N, np.log(4.0) / (N - 1), 0.05, 0.01, 0.25).with_boundaries(
        lower, upper
    )

    u_thomas = theta_step(op, u0, dt=0.01, theta=0.5, solve_tridiag=solve_tridiag_thomas)
    u_scipy = theta_step(op, u0, dt=0.01, theta=0.5, solve_tridiag=solve_tridiag_scipy)

    np.testing.assert_allclose(u_thomas, u_scipy, rtol=1e-10, atol=1e-12)
