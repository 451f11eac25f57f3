from .processes import BlackScholesProcess, StochasticProcess, act365_fixed

__all__ = ["BlackScholesProcess", "StochasticProcess", "act365_fixed"]
