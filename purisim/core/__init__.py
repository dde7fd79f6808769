"""Core data structures: complex algebra, density matrices, gates and channels."""

from purisim.core.complex import ComplexNumber
from purisim.core.matrix import Matrix, tensor_all
from purisim.core.density_matrix import DensityMatrix
from purisim.core.gates import (
    apply_cnot,
    apply_gate,
    apply_pauli,
    cnot_matrix,
    embed_single_qubit,
    pauli_matrix,
    pauli_operator,
    rx,
    ry,
    rz,
)
from purisim.core.channels import NoiseChannel, NoiseLibrary, apply_kraus
from purisim.core.types import (
    Basis,
    EngineConfig,
    EngineType,
    NoiseChannelType,
    PurificationStep,
    QubitPair,
    SimulationParameters,
    SimulationState,
)

__all__ = [
    "ComplexNumber",
    "Matrix",
    "tensor_all",
    "DensityMatrix",
    "apply_cnot",
    "apply_gate",
    "apply_pauli",
    "cnot_matrix",
    "embed_single_qubit",
    "pauli_matrix",
    "pauli_operator",
    "rx",
    "ry",
    "rz",
    "NoiseChannel",
    "NoiseLibrary",
    "apply_kraus",
    "Basis",
    "EngineConfig",
    "EngineType",
    "NoiseChannelType",
    "PurificationStep",
    "QubitPair",
    "SimulationParameters",
    "SimulationState",
]
