"""
Bell-basis utilities.

The Bell basis is ordered Φ+, Φ−, Ψ+, Ψ− (indices 0..3). A 2-qubit density
matrix in the Bell basis carries the fidelity with each Bell state on its
diagonal.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

from purisim.core.density_matrix import DensityMatrix
from purisim.errors import InvalidDensityMatrix


class BellState(IntEnum):
    PHI_PLUS = 0
    PHI_MINUS = 1
    PSI_PLUS = 2
    PSI_MINUS = 3


_S = 1 / np.sqrt(2)

# Row k is ⟨B_k| expressed in the computational basis
BELL_BASIS_CHANGE = np.array([
    [_S, 0, 0, _S],
    [_S, 0, 0, -_S],
    [0, _S, _S, 0],
    [0, _S, -_S, 0],
], dtype=np.complex128)

# Swaps basis indices 0 (Φ+) and 3 (Ψ−)
_EXCHANGE = np.eye(4, dtype=np.complex128)[[3, 1, 2, 0]]


def _require_two_qubits(rho: DensityMatrix) -> None:
    if rho.dim != 4:
        raise InvalidDensityMatrix(f"Bell-basis operations need a 2-qubit state, got dim {rho.dim}")


def to_bell_basis(rho: DensityMatrix) -> DensityMatrix:
    """ρ_B = B ρ B†"""
    _require_two_qubits(rho)
    B = BELL_BASIS_CHANGE
    return DensityMatrix(B @ rho.data @ B.conj().T, normalize=False)


def to_computational_basis(rho_bell: DensityMatrix) -> DensityMatrix:
    """Inverse of :func:`to_bell_basis`."""
    _require_two_qubits(rho_bell)
    B = BELL_BASIS_CHANGE
    return DensityMatrix(B.conj().T @ rho_bell.data @ B, normalize=False)


def fidelity_from_bell_basis_matrix(rho_bell: DensityMatrix, state: BellState = BellState.PHI_PLUS) -> float:
    """Diagonal entry of the Bell-basis matrix for ``state``."""
    _require_two_qubits(rho_bell)
    idx = int(state)
    return float(np.clip(np.real(rho_bell.data[idx, idx]), 0.0, 1.0))


def fidelity_from_computational_basis_matrix(rho: DensityMatrix, state: BellState = BellState.PHI_PLUS) -> float:
    """⟨B|ρ|B⟩ for a computational-basis ρ, clamped to [0, 1]."""
    _require_two_qubits(rho)
    bra = BELL_BASIS_CHANGE[int(state)]
    value = np.real(bra @ rho.data @ bra.conj())
    return float(np.clip(value, 0.0, 1.0))


def werner_state(fidelity: float, state: BellState = BellState.PHI_PLUS) -> DensityMatrix:
    """Bell-basis Werner state: F on ``state``, (1-F)/3 on the others."""
    if not 0.0 <= fidelity <= 1.0:
        raise ValueError(f"Fidelity must be in [0, 1], got {fidelity}")
    diag = np.full(4, (1 - fidelity) / 3)
    diag[int(state)] = fidelity
    return DensityMatrix.diagonal(diag)


def depolarize(rho_bell: DensityMatrix) -> DensityMatrix:
    """
    Project a Bell-basis state onto Werner form around Ψ−.

    Keeps F = ρ[3][3], replaces the other diagonal entries with (1-F)/3 and
    drops every coherence. The result is rebuilt from F alone, so any
    weight outside the diagonal of the input is discarded.
    """
    _require_two_qubits(rho_bell)
    f = float(np.clip(np.real(rho_bell.data[3, 3]), 0.0, 1.0))
    return werner_state(f, BellState.PSI_MINUS)


def exchange_psi_minus_phi_plus(rho_bell: DensityMatrix) -> DensityMatrix:
    """Relabel the Φ+ and Ψ− components of a Bell-basis state."""
    _require_two_qubits(rho_bell)
    return DensityMatrix(_EXCHANGE @ rho_bell.data @ _EXCHANGE.T, normalize=False)
