from .forward_engine import (
    ForwardEuropeanPathPricer,
    ForwardPerformancePathPricer,
    MCForwardVanillaEngine,
)
from .path_generator import Path, PathGenerationPolicy, PathGenerator
from .simulation import MCResults, McSimulation, MonteCarloModel, SimulationState

__all__ = [
    "MCForwardVanillaEngine",
    "ForwardEuropeanPathPricer",
    "ForwardPerformancePathPricer",
    "Path",
    "PathGenerationPolicy",
    "PathGenerator",
    "MCResults",
    "McSimulation",
    "MonteCarloModel",
    "SimulationState",
]
