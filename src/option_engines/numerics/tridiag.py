# src/option_engines/numerics/tridiag.py
from __future__ import annotations

from dataclasses import dataclass
from typing import cast

import numpy as np
from numpy.typing import NDArray

__all__ = [
    "Tridiag",
    "tridiag_mv",
    "solve_tridiag_thomas",
    "solve_tridiag_scipy",
    "tridiag_to_dense",
]


@dataclass(frozen=True, slots=True)
class Tridiag:
    """Tridiagonal matrix of size M stored by its three diagonals.

      y[0]   = diag[0]*u[0] + upper[0]*u[1]
      y[j]   = lower[j-1]*u[j-1] + diag[j]*u[j] + upper[j]*u[j+1]
      y[M-1] = lower[M-2]*u[M-2] + diag[M-1]*u[M-1]
    """

    lower: NDArray[np.floating]  # (M-1,)
    diag: NDArray[np.floating]  # (M,)
    upper: NDArray[np.floating]  # (M-1,)

    def check(self) -> int:
        """Validate internal shapes and return M (system size)."""
        diag = np.asarray(self.diag)
        if diag.ndim != 1:
            raise ValueError("diag must be 1D")

        M = int(diag.shape[0])
        lower = np.asarray(self.lower)
        upper = np.asarray(self.upper)

        if M == 0:
            if lower.shape != (0,) or upper.shape != (0,):
                raise ValueError("For M==0, lower/upper must be empty (shape (0,))")
            return 0

        if lower.shape != (M - 1,) or upper.shape != (M - 1,):
            raise ValueError(f"lower/upper must have shape {(M - 1,)}")
        return M

    @property
    def size(self) -> int:
        return self.check()

    def mv(self, u: NDArray[np.floating]) -> NDArray[np.floating]:
        M = self.check()
        u = np.asarray(u)
        if u.shape != (M,):
            raise ValueError(f"u must have shape {(M,)} got {u.shape}")
        return tridiag_mv(Bl=self.lower, Bd=self.diag, Bu=self.upper, u=u)

    def with_first_row(self, diag0: float, upper0: float) -> Tridiag:
        """Copy with row 0 replaced by ``[diag0, upper0, 0, ...]``."""
        if self.check() < 2:
            raise ValueError("Need M >= 2 to replace a boundary row")
        diag = np.array(self.diag, dtype=float)
        upper = np.array(self.upper, dtype=float)
        diag[0] = diag0
        upper[0] = upper0
        return Tridiag(lower=np.array(self.lower, dtype=float), diag=diag, upper=upper)

    def with_last_row(self, lower_last: float, diag_last: float) -> Tridiag:
        """Copy with row M-1 replaced by ``[..., 0, lower_last, diag_last]``."""
        if self.check() < 2:
            raise ValueError("Need M >= 2 to replace a boundary row")
        diag = np.array(self.diag, dtype=float)
        lower = np.array(self.lower, dtype=float)
        diag[-1] = diag_last
        lower[-1] = lower_last
        return Tridiag(lower=lower, diag=diag, upper=np.array(self.upper, dtype=float))

    def identity_plus(self, scale: float) -> Tridiag:
        """Return ``I + scale * self``."""
        self.check()
        return Tridiag(
            lower=scale * np.asarray(self.lower, dtype=float),
            diag=1.0 + scale * np.asarray(self.diag, dtype=float),
            upper=scale * np.asarray(self.upper, dtype=float),
        )


def tridiag_mv(
    Bl: NDArray[np.floating],  # (M-1,) or (0,) if M==0
    Bd: NDArray[np.floating],  # (M,)
    Bu: NDArray[np.floating],  # (M-1,) or (0,) if M==0
    u: NDArray[np.floating],  # (M,)
) -> NDArray[np.floating]:
    """Compute y = T u where T is tridiagonal with diagonals (Bl, Bd, Bu)."""
    Bd = np.asarray(Bd)
    Bl = np.asarray(Bl)
    Bu = np.asarray(Bu)
    u = np.asarray(u)

    if Bd.ndim != 1:
        raise ValueError("Bd must be 1D")

    M = int(Bd.shape[0])
    if u.shape != (M,):
        raise ValueError(f"u must have shape {(M,)} got {u.shape}")

    if M == 0:
        return cast(NDArray[np.floating], Bd * u)

    if Bl.shape != (M - 1,) or Bu.shape != (M - 1,):
        raise ValueError(f"Bl,Bu must have shape {(M - 1,)} got {Bl.shape}, {Bu.shape}")

    y = Bd * u
    y[1:] += Bl * u[:-1]
    y[:-1] += Bu * u[1:]
    return cast(NDArray[np.floating], y)


def solve_tridiag_thomas(
    A: Tridiag,
    rhs: NDArray[np.floating],
) -> NDArray[np.floating]:
    """
    Solve A x = rhs for tridiagonal A.

    Notes:
    - Thomas algorithm without pivoting; fine for the diagonally dominant
      systems produced by implicit and Crank-Nicolson steps.
    - Raises np.linalg.LinAlgError on (near-)zero pivots.
    """
    M = A.check()

    rhs = np.asarray(rhs)
    if rhs.shape != (M,):
        raise ValueError(f"rhs must have shape {(M,)} got {rhs.shape}")

    dtype = np.result_type(A.lower, A.diag, A.upper, rhs, np.float64)
    lower = np.asarray(A.lower).astype(dtype)
    diag = np.asarray(A.diag).astype(dtype)
    upper = np.asarray(A.upper).astype(dtype)
    d = rhs.astype(dtype)

    if M == 0:
        return d

    tol = 100.0 * np.finfo(dtype).eps

    if M == 1:
        if abs(diag[0]) < tol:
            raise np.linalg.LinAlgError("Near-zero pivot at row 0")
        return cast(NDArray[np.floating], d / diag[0])

    # Forward sweep (modified upper and rhs)
    denom = diag[0]
    if abs(denom) < tol:
        raise np.linalg.LinAlgError("Near-zero pivot at row 0")
    upper[0] = upper[0] / denom
    d[0] = d[0] / denom

    for i in range(1, M - 1):
        denom = diag[i] - lower[i - 1] * upper[i - 1]
        if abs(denom) < tol:
            raise np.linalg.LinAlgError(f"Near-zero pivot at row {i}")
        upper[i] = upper[i] / denom
        d[i] = (d[i] - lower[i - 1] * d[i - 1]) / denom

    denom = diag[M - 1] - lower[M - 2] * upper[M - 2]
    if abs(denom) < tol:
        raise np.linalg.LinAlgError(f"Near-zero pivot at row {M - 1}")
    d[M - 1] = (d[M - 1] - lower[M - 2] * d[M - 2]) / denom

    # Back substitution
    x = np.empty(M, dtype=dtype)
    x[M - 1] = d[M - 1]
    for i in range(M - 2, -1, -1):
        x[i] = d[i] - upper[i] * x[i + 1]
    return x


def solve_tridiag_scipy(
    A: Tridiag,
    rhs: NDArray[np.floating],
) -> NDArray[np.floating]:
    """Solve A x = rhs with SciPy's banded solver. SciPy is imported lazily."""
    from scipy.linalg import solve_banded

    M = A.check()
    rhs = np.asarray(rhs)
    if rhs.shape != (M,):
        raise ValueError(f"rhs must have shape {(M,)} got {rhs.shape}")

    if M == 0:
        return cast(NDArray[np.floating], rhs.copy())

    ab = np.zeros((3, M), dtype=np.result_type(A.lower, A.diag, A.upper, rhs))
    ab[0, 1:] = np.asarray(A.upper)
    ab[1, :] = np.asarray(A.diag)
    ab[2, :-1] = np.asarray(A.lower)

    res = solve_banded((1, 1), ab, rhs)
    # scipy stubs often return Any; cast back to an NDArray
    return cast(NDArray[np.floating], np.asarray(res))


def tridiag_to_dense(A: Tridiag) -> NDArray[np.floating]:
    M = A.check()
    dense = np.zeros((M, M), dtype=np.result_type(A.lower, A.diag, A.upper))
    dense[np.arange(M), np.arange(M)] = A.diag
    dense[np.arange(1, M), np.arange(M - 1)] = A.lower
    dense[np.arange(M - 1), np.arange(1, M)] = A.upper
    return dense
