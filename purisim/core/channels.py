"""
Single-qubit noise channels (CPTP maps) acting on one qubit of a register.

Each channel is a Kraus sum ρ → Σ K ρ K† with the local operators lifted
onto the target qubit; parameter 0 leaves the state unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
from scipy.linalg import expm, logm
from scipy.stats import unitary_group

from purisim.core.density_matrix import DensityMatrix
from purisim.core.gates import PAULI_I, PAULI_X, PAULI_Y, PAULI_Z, embed_single_qubit
from purisim.core.matrix import Matrix
from purisim.core.types import NoiseChannelType
from purisim.errors import DimensionMismatch
from purisim.utils.indexing import bit_position
from purisim.utils.rng import RandomSource, as_generator


def _check_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")


def apply_kraus(rho: DensityMatrix, kraus_ops: Sequence[Matrix]) -> DensityMatrix:
    """ρ' = Σ_k K_k ρ K_k†"""
    result = np.zeros((rho.dim, rho.dim), dtype=np.complex128)
    for K in kraus_ops:
        if K.shape != (rho.dim, rho.dim):
            raise DimensionMismatch(f"Kraus operator {K.rows}x{K.cols} does not match state dim {rho.dim}")
        result += K.data @ rho.data @ K.data.conj().T
    return DensityMatrix(result)


def _lift(local_ops: Sequence[np.ndarray], rho: DensityMatrix, qubit: int) -> List[Matrix]:
    bit_position(qubit, rho.num_qubits)
    return [embed_single_qubit(Matrix(op), rho.num_qubits, qubit) for op in local_ops]


def depolarizing_kraus(p: float) -> List[np.ndarray]:
    """Fully depolarizing at p = 0.75."""
    _check_probability("p", p)
    f = np.sqrt(p / 3)
    return [np.sqrt(1 - p) * PAULI_I, f * PAULI_X, f * PAULI_Y, f * PAULI_Z]


def dephasing_kraus(p: float) -> List[np.ndarray]:
    _check_probability("p", p)
    return [np.sqrt(1 - p / 2) * PAULI_I, np.sqrt(p / 2) * PAULI_Z]


def amplitude_damping_kraus(gamma: float) -> List[np.ndarray]:
    _check_probability("gamma", gamma)
    K0 = np.array([[1, 0], [0, np.sqrt(1 - gamma)]], dtype=np.complex128)
    K1 = np.array([[0, np.sqrt(gamma)], [0, 0]], dtype=np.complex128)
    return [K0, K1]


def apply_depolarizing(rho: DensityMatrix, qubit: int, p: float) -> DensityMatrix:
    return apply_kraus(rho, _lift(depolarizing_kraus(p), rho, qubit))


def apply_dephasing(rho: DensityMatrix, qubit: int, p: float) -> DensityMatrix:
    return apply_kraus(rho, _lift(dephasing_kraus(p), rho, qubit))


def apply_amplitude_damping(rho: DensityMatrix, qubit: int, gamma: float) -> DensityMatrix:
    return apply_kraus(rho, _lift(amplitude_damping_kraus(gamma), rho, qubit))


def fractional_unitary(U: np.ndarray, strength: float) -> np.ndarray:
    """U^t = exp(t · log U); t = 0 gives I, t = 1 gives U."""
    return expm(strength * logm(U))


def apply_uniform_noise(
    rho: DensityMatrix,
    qubit: int,
    noise_strength: float,
    rng: Optional[RandomSource] = None
) -> DensityMatrix:
    """
    Rotate ``qubit`` by a fraction of a Haar-random unitary.

    Args:
        rho: State to perturb
        qubit: Target qubit index
        noise_strength: 0 applies the identity, 1 the full random unitary
        rng: Random source for the unitary draw
    """
    _check_probability("Noise strength", noise_strength)
    bit_position(qubit, rho.num_qubits)
    if noise_strength == 0:
        return rho
    local_u = unitary_group.rvs(2, random_state=as_generator(rng))
    fractional = fractional_unitary(local_u, noise_strength)
    U = embed_single_qubit(Matrix(fractional), rho.num_qubits, qubit)
    return DensityMatrix(U.data @ rho.data @ U.data.conj().T)


@dataclass
class NoiseChannel(ABC):
    """Base class for noise channels (CPTP maps)."""
    name: str

    @abstractmethod
    def apply(
        self,
        rho: DensityMatrix,
        qubit: int,
        strength: float,
        rng: Optional[RandomSource] = None
    ) -> DensityMatrix:
        """Apply the channel to ``qubit`` of ``rho``."""


@dataclass
class DepolarizingChannel(NoiseChannel):
    """ρ → (1-p)ρ + p/3 (XρX + YρY + ZρZ)"""
    name: str = "depolarizing"

    def apply(self, rho, qubit, strength, rng=None):
        return apply_depolarizing(rho, qubit, strength)


@dataclass
class DephasingChannel(NoiseChannel):
    """ρ → (1-p/2)ρ + p/2 ZρZ"""
    name: str = "dephasing"

    def apply(self, rho, qubit, strength, rng=None):
        return apply_dephasing(rho, qubit, strength)


@dataclass
class AmplitudeDampingChannel(NoiseChannel):
    """
    Amplitude damping channel (T1 decay).

    Models energy relaxation to |0⟩ state.
    """
    name: str = "amplitude-damping"

    def apply(self, rho, qubit, strength, rng=None):
        return apply_amplitude_damping(rho, qubit, strength)


@dataclass
class UniformNoiseChannel(NoiseChannel):
    """Fractional Haar-random unitary on one qubit."""
    name: str = "uniform-noise"

    def apply(self, rho, qubit, strength, rng=None):
        return apply_uniform_noise(rho, qubit, strength, rng)


class NoiseLibrary:
    """Library of noise channels."""

    DEPOLARIZING = DepolarizingChannel()
    DEPHASING = DephasingChannel()
    AMPLITUDE_DAMPING = AmplitudeDampingChannel()
    UNIFORM = UniformNoiseChannel()

    @classmethod
    def get_channel(cls, name: Union[str, NoiseChannelType]) -> NoiseChannel:
        """Get a noise channel by name or enum member."""
        if isinstance(name, NoiseChannelType):
            name = name.value
        key = name.lower().replace("_", "-")
        channel_map: Dict[str, NoiseChannel] = {
            "depolarizing": cls.DEPOLARIZING,
            "dephasing": cls.DEPHASING,
            "amplitude-damping": cls.AMPLITUDE_DAMPING,
            "uniform-noise": cls.UNIFORM,
            "uniform": cls.UNIFORM,
            "t1": cls.AMPLITUDE_DAMPING,
            "t2": cls.DEPHASING,
        }

        if key not in channel_map:
            raise ValueError(f"Unknown noise channel: {name}")

        return channel_map[key]
