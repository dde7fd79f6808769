"""Measurement, reduction and Bell-basis readout of density matrices."""

from purisim.observables.bell import (
    BELL_BASIS_CHANGE,
    BellState,
    depolarize,
    exchange_psi_minus_phi_plus,
    fidelity_from_bell_basis_matrix,
    fidelity_from_computational_basis_matrix,
    to_bell_basis,
    to_computational_basis,
    werner_state,
)
from purisim.observables.measurement import (
    MeasurementResult,
    measure_qubit,
    outcome_probabilities,
    project_qubit,
)
from purisim.observables.partial_trace import partial_trace

__all__ = [
    "BELL_BASIS_CHANGE",
    "BellState",
    "depolarize",
    "exchange_psi_minus_phi_plus",
    "fidelity_from_bell_basis_matrix",
    "fidelity_from_computational_basis_matrix",
    "to_bell_basis",
    "to_computational_basis",
    "werner_state",
    "MeasurementResult",
    "measure_qubit",
    "outcome_probabilities",
    "project_qubit",
    "partial_trace",
]
