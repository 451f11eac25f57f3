class ConfigurationError(ValueError):
    """Raised when an engine is configured inconsistently.

    This is a programming error rather than a market-data problem: the
    offending instance cannot be used and retrying with the same arguments
    fails again.

    Notes
    -----
    Typical causes are:

    - both (or neither) of ``time_steps`` / ``time_steps_per_year`` given
    - a zero or negative step count
    - an option type the payoff builder does not know
    - a convergence tolerance combined with a low-discrepancy sequence
    """


class ToleranceNotReachedWarning(RuntimeWarning):
    """Emitted when a Monte Carlo run stops at ``max_samples`` before the
    requested tolerance was met. The reported value is the best estimate
    obtained so far."""
