"""Protocol runtime: initial states, twirling, strategies and the engine."""

from purisim.runtime.controller import SimulationController
from purisim.runtime.engine import PurificationEngine, create_engine
from purisim.runtime.protocol import PROTOCOL_GRAPH
from purisim.runtime.states import create_noisy_epr, create_noisy_epr_with_channel
from purisim.runtime.strategies import (
    AverageStrategy,
    MonteCarloStrategy,
    PurificationStrategy,
    bilateral_cnot_average,
    prepare_pairs_for_cnot,
)
from purisim.runtime.twirling import PAULI_TWIRL_SEQUENCES, get_pauli_twirl_operator, pauli_twirl

__all__ = [
    "SimulationController",
    "PurificationEngine",
    "create_engine",
    "PROTOCOL_GRAPH",
    "create_noisy_epr",
    "create_noisy_epr_with_channel",
    "AverageStrategy",
    "MonteCarloStrategy",
    "PurificationStrategy",
    "bilateral_cnot_average",
    "prepare_pairs_for_cnot",
    "PAULI_TWIRL_SEQUENCES",
    "get_pauli_twirl_operator",
    "pauli_twirl",
]
