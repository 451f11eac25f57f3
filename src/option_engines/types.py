from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class OptionType(str, Enum):
    """Option contract type.

    A closed set of plain-vanilla payoff shapes.

    Attributes
    ----------
    CALL : str
        Call option ("call"), pays ``max(S - K, 0)``.
    PUT : str
        Put option ("put"), pays ``max(K - S, 0)``.
    STRADDLE : str
        Straddle ("straddle"), pays ``|K - S|``.
    """

    CALL = "call"
    PUT = "put"
    STRADDLE = "straddle"


@dataclass(frozen=True, slots=True)
class ForwardOptionSpec:
    """Specification of a forward-starting (strike-reset) vanilla option.

    The strike is fixed on ``reset_date`` as ``moneyness * S(reset_date)`` and
    the option pays its vanilla payoff on the last exercise date.

    Parameters
    ----------
    kind : OptionType
        Payoff shape.
    moneyness : float
        Strike as a fraction of the underlying level at reset.
    reset_date : date
        Date on which the strike is fixed.
    exercise_dates : tuple[date, ...]
        Exercise schedule. Only the last date is used by European engines.

    Notes
    -----
    Dates are mapped to times by the stochastic process, so no day-count
    convention is attached to the option itself.
    """

    kind: OptionType
    moneyness: float
    reset_date: date
    exercise_dates: tuple[date, ...]

    def __post_init__(self) -> None:
        if self.moneyness <= 0.0:
            raise ValueError("moneyness must be positive")
        if not self.exercise_dates:
            raise ValueError("exercise_dates must not be empty")
        if self.last_exercise_date < self.reset_date:
            raise ValueError("last exercise date must not precede the reset date")

    @property
    def last_exercise_date(self) -> date:
        return max(self.exercise_dates)
