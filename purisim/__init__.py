"""
purisim - Entanglement Purification Simulator

Density-matrix simulation of BBPSSW-style entanglement purification, with
an analytic average-case engine and a sampled Monte Carlo engine.
"""

from purisim.core.types import EngineConfig, EngineType, NoiseChannelType, SimulationParameters
from purisim.runtime.controller import SimulationController
from purisim.runtime.engine import PurificationEngine, create_engine

__version__ = "0.1.0"
__all__ = [
    "EngineConfig",
    "EngineType",
    "NoiseChannelType",
    "SimulationParameters",
    "PurificationEngine",
    "SimulationController",
    "create_engine",
]
