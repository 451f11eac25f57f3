from .fd_engine import FDResults, FDVanillaOption
from .mc import MCForwardVanillaEngine, MCResults, SimulationState

__all__ = [
    "FDResults",
    "FDVanillaOption",
    "MCForwardVanillaEngine",
    "MCResults",
    "SimulationState",
]
