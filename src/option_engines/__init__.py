"""
option_engines

Numerical option pricing engines: a finite-difference solver for vanilla
options and a Monte Carlo engine for forward-starting options.

    from option_engines import FDVanillaOption, OptionType
"""

from .config import FDConfig, MCConfig, RandomConfig
from .exceptions import ConfigurationError, ToleranceNotReachedWarning
from .models.processes import BlackScholesProcess, StochasticProcess
from .observable import LazyObject, Observable
from .pricers.fd_engine import FDResults, FDVanillaOption
from .pricers.mc import MCForwardVanillaEngine, MCResults, SimulationState
from .types import ForwardOptionSpec, OptionType

__all__ = [
    # Types
    "OptionType",
    "ForwardOptionSpec",
    # Config / errors
    "FDConfig",
    "MCConfig",
    "RandomConfig",
    "ConfigurationError",
    "ToleranceNotReachedWarning",
    # Models
    "BlackScholesProcess",
    "StochasticProcess",
    # Engines
    "FDVanillaOption",
    "FDResults",
    "MCForwardVanillaEngine",
    "MCResults",
    "SimulationState",
    # Lazy evaluation
    "Observable",
    "LazyObject",
]
