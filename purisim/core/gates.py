"""
Gate library for purisim.

Single-qubit Paulis and rotations, n-qubit embeddings, CNOT construction
and unitary application to density matrices. Qubit 0 is the leftmost
tensor factor (most significant bit).
"""

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from purisim.core.density_matrix import DensityMatrix, num_qubits_for_dim
from purisim.core.matrix import Matrix, tensor_all
from purisim.errors import DimensionMismatch
from purisim.utils.indexing import bit_position, flip_bit, qubit_bit


# Common gate matrices
PAULI_I = np.array([[1, 0], [0, 1]], dtype=np.complex128)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=np.complex128)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=np.complex128)

_PAULIS: Dict[str, np.ndarray] = {"I": PAULI_I, "X": PAULI_X, "Y": PAULI_Y, "Z": PAULI_Z}


def pauli_matrix(label: str) -> Matrix:
    """Single-qubit Pauli I, X, Y or Z."""
    key = label.upper()
    if key not in _PAULIS:
        raise ValueError(f"Unknown Pauli operator: {label}")
    return Matrix(_PAULIS[key])


def rx(theta: float) -> Matrix:
    """Rotation around X-axis: Rx(θ) = exp(-iθX/2)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return Matrix(np.array([[c, -1j * s], [-1j * s, c]], dtype=np.complex128))


def ry(theta: float) -> Matrix:
    """Rotation around Y-axis: Ry(θ) = exp(-iθY/2)"""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return Matrix(np.array([[c, -s], [s, c]], dtype=np.complex128))


def rz(theta: float) -> Matrix:
    """Rotation around Z-axis: Rz(θ) = exp(-iθZ/2)"""
    return Matrix(np.array([
        [np.exp(-1j * theta / 2), 0],
        [0, np.exp(1j * theta / 2)]
    ], dtype=np.complex128))


ROTATIONS = {"x": rx, "y": ry, "z": rz}


def embed_single_qubit(op: Matrix, num_qubits: int, qubit: int) -> Matrix:
    """Lift a 2x2 operator onto ``qubit`` of an n-qubit register."""
    if op.shape != (2, 2):
        raise DimensionMismatch(f"Expected a 2x2 operator, got {op.rows}x{op.cols}")
    bit_position(qubit, num_qubits)
    identity = Matrix.identity(2)
    return tensor_all(op if q == qubit else identity for q in range(num_qubits))


def pauli_operator(num_qubits: int, targets: Sequence[int], paulis: Sequence[str]) -> Matrix:
    """
    Build the 2^n x 2^n operator with ``paulis[i]`` on ``targets[i]``.

    Qubits not named get the identity. Factors are composed in qubit order.
    """
    if len(targets) != len(paulis):
        raise ValueError("Targets and Pauli lists must have the same length")
    if num_qubits < 1:
        raise ValueError(f"Need at least one qubit, got {num_qubits}")
    assignment = {}
    for q, p in zip(targets, paulis):
        bit_position(q, num_qubits)
        assignment[q] = p
    return tensor_all(pauli_matrix(assignment.get(q, "I")) for q in range(num_qubits))


def cnot_matrix(num_qubits: int, control: int, target: int) -> Matrix:
    """
    n-qubit CNOT flipping ``target`` whenever ``control`` is 1.

    Control and target may sit anywhere in the register.
    """
    if control == target:
        raise ValueError("Control and target must be different qubits")
    bit_position(control, num_qubits)
    bit_position(target, num_qubits)
    dim = 2 ** num_qubits
    U = np.zeros((dim, dim), dtype=np.complex128)
    for i in range(dim):
        j = flip_bit(i, target, num_qubits) if qubit_bit(i, control, num_qubits) else i
        U[j, i] = 1.0
    return Matrix(U)


def apply_gate(rho: DensityMatrix, U: Matrix) -> DensityMatrix:
    """ρ' = U ρ U†"""
    if U.shape != (rho.dim, rho.dim):
        raise DimensionMismatch(
            f"Gate of shape {U.rows}x{U.cols} does not act on a {rho.dim}-dimensional state"
        )
    return DensityMatrix(U.multiply(rho.matrix).multiply(U.dagger()))


def apply_pauli(rho: DensityMatrix, targets: Sequence[int], paulis: Sequence[str]) -> DensityMatrix:
    n = num_qubits_for_dim(rho.dim)
    return apply_gate(rho, pauli_operator(n, targets, paulis))


def apply_cnot(rho: DensityMatrix, control: int, target: int) -> DensityMatrix:
    n = num_qubits_for_dim(rho.dim)
    return apply_gate(rho, cnot_matrix(n, control, target))


def apply_single_qubit_gate(rho: DensityMatrix, op: Matrix, qubit: int) -> DensityMatrix:
    return apply_gate(rho, embed_single_qubit(op, rho.num_qubits, qubit))
