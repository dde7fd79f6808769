"""
Validation utilities for purisim.

Compares purisim's density-matrix primitives against Qiskit's exact
``quantum_info`` implementations. Qiskit orders qubits little-endian, so
purisim qubit q of an n-qubit register is Qiskit qubit n-1-q; the matrix
entries themselves line up index for index.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
from qiskit import QuantumCircuit
from qiskit.quantum_info import DensityMatrix as QiskitDensityMatrix
from qiskit.quantum_info import Operator, Statevector, partial_trace as qiskit_partial_trace, state_fidelity

from purisim.core.density_matrix import DensityMatrix
from purisim.core.gates import apply_cnot, cnot_matrix
from purisim.core.matrix import Matrix
from purisim.observables.bell import BELL_BASIS_CHANGE, BellState, fidelity_from_computational_basis_matrix
from purisim.observables.partial_trace import partial_trace


@dataclass
class ValidationResult:
    """Result of validating purisim against Qiskit."""
    checks: List[str]
    purisim_values: Dict[str, Any]
    exact_values: Dict[str, Any]
    errors: Dict[str, float]
    max_error: float
    mean_error: float
    passed: bool
    threshold: float


def _qiskit_qubit(qubit: int, num_qubits: int) -> int:
    return num_qubits - 1 - qubit


def reference_partial_trace(rho: DensityMatrix, trace_out: Sequence[int]) -> np.ndarray:
    """Partial trace computed by Qiskit."""
    n = rho.num_qubits
    qargs = [_qiskit_qubit(q, n) for q in trace_out]
    return np.asarray(qiskit_partial_trace(QiskitDensityMatrix(np.array(rho.data)), qargs).data)


def reference_cnot(num_qubits: int, control: int, target: int) -> np.ndarray:
    """CNOT unitary built from a Qiskit circuit."""
    qc = QuantumCircuit(num_qubits)
    qc.cx(_qiskit_qubit(control, num_qubits), _qiskit_qubit(target, num_qubits))
    return Operator(qc).data


def reference_apply_gate(rho: DensityMatrix, U: Matrix) -> np.ndarray:
    """U ρ U† evolved by Qiskit."""
    evolved = QiskitDensityMatrix(np.array(rho.data)).evolve(Operator(np.array(U.data)))
    return np.asarray(evolved.data)


def reference_bell_fidelity(rho: DensityMatrix, state: BellState) -> float:
    """⟨B|ρ|B⟩ computed by Qiskit."""
    bell = Statevector(BELL_BASIS_CHANGE[int(state)].conj())
    return float(state_fidelity(bell, QiskitDensityMatrix(np.array(rho.data)), validate=False))


def validate_against_exact(
    rho: DensityMatrix,
    threshold: float = 1e-8,
    verbose: bool = False
) -> ValidationResult:
    """
    Cross-check the primitives the protocol relies on for one pair state.

    Checks, for a 2-qubit computational-basis ``rho``: the reduced state of
    each qubit, the fidelity with each Bell state, the 4-qubit bilateral
    CNOT on ``rho ⊗ rho`` and the reduction of that joint state back to the
    control pair.

    Args:
        rho: 2-qubit density matrix in the computational basis
        threshold: Maximum allowed absolute error
        verbose: Print a comparison table

    Returns:
        ValidationResult with per-check errors
    """
    if rho.num_qubits != 2:
        raise ValueError(f"validate_against_exact expects a 2-qubit state, got {rho.num_qubits}")

    purisim_values: Dict[str, Any] = {}
    exact_values: Dict[str, Any] = {}

    for q in range(2):
        key = f"reduced_q{q}"
        purisim_values[key] = np.asarray(partial_trace(rho, [1 - q]).data)
        exact_values[key] = reference_partial_trace(rho, [1 - q])

    for state in BellState:
        key = f"fidelity_{state.name.lower()}"
        purisim_values[key] = fidelity_from_computational_basis_matrix(rho, state)
        exact_values[key] = reference_bell_fidelity(rho, state)

    joint = DensityMatrix.tensor(rho, rho)
    bilateral = apply_cnot(apply_cnot(joint, 0, 2), 1, 3)
    exact_u = reference_cnot(4, 1, 3) @ reference_cnot(4, 0, 2)
    purisim_values["bilateral_cnot"] = np.asarray(bilateral.data)
    exact_values["bilateral_cnot"] = reference_apply_gate(joint, Matrix(exact_u))
    purisim_values["cnot_unitary"] = np.asarray(cnot_matrix(4, 1, 3).multiply(cnot_matrix(4, 0, 2)).data)
    exact_values["cnot_unitary"] = exact_u

    purisim_values["control_after_cnot"] = np.asarray(partial_trace(bilateral, [2, 3]).data)
    exact_values["control_after_cnot"] = reference_partial_trace(bilateral, [2, 3])

    errors = {
        key: float(np.max(np.abs(np.asarray(purisim_values[key]) - np.asarray(exact_values[key]))))
        for key in purisim_values
    }
    checks = list(errors)
    max_error = max(errors.values()) if errors else 0.0
    mean_error = float(np.mean(list(errors.values()))) if errors else 0.0
    passed = max_error <= threshold

    if verbose:
        print(f"\n{'Check':<22} {'Error':<12}")
        print("-" * 34)
        for key in checks:
            print(f"{key:<22} {errors[key]:<12.3e}")
        print("-" * 34)
        print(f"Max error: {max_error:.3e}, Mean error: {mean_error:.3e}")
        print(f"Result: {'PASSED' if passed else 'FAILED'}")

    return ValidationResult(
        checks=checks,
        purisim_values=purisim_values,
        exact_values=exact_values,
        errors=errors,
        max_error=max_error,
        mean_error=mean_error,
        passed=passed,
        threshold=threshold,
    )


def validate_cnot_conventions(max_qubits: int = 4, threshold: float = 1e-12) -> bool:
    """True when every CNOT placement up to ``max_qubits`` matches Qiskit."""
    for n in range(2, max_qubits + 1):
        for control, target in itertools.permutations(range(n), 2):
            diff = np.abs(cnot_matrix(n, control, target).data - reference_cnot(n, control, target))
            if np.max(diff) > threshold:
                return False
    return True
