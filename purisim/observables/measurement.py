"""
Projective single-qubit measurement with state collapse.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from purisim.core.density_matrix import DensityMatrix
from purisim.errors import MeasurementDegenerate
from purisim.utils.indexing import qubit_bit
from purisim.utils.rng import RandomSource, uniform


DEGENERATE_PROBABILITY = 1e-12


@dataclass(frozen=True)
class MeasurementResult:
    """Outcome of measuring one qubit in the computational basis."""
    outcome: int
    probability: float
    post_state: DensityMatrix


def _outcome_mask(rho: DensityMatrix, qubit: int) -> np.ndarray:
    """Boolean vector: True where ``qubit`` is 1 in the basis index."""
    n = rho.num_qubits
    return np.array([qubit_bit(i, qubit, n) == 1 for i in range(rho.dim)])


def outcome_probabilities(rho: DensityMatrix, qubit: int) -> Tuple[float, float]:
    """(p0, p1) for ``qubit``, with p0 clamped to [0, 1]."""
    ones = _outcome_mask(rho, qubit)
    diag = np.real(np.diag(rho.data))
    p0 = float(np.clip(diag[~ones].sum(), 0.0, 1.0))
    return p0, 1.0 - p0


def project_qubit(rho: DensityMatrix, qubit: int, outcome: int) -> Tuple[float, DensityMatrix]:
    """
    Collapse ``qubit`` onto ``outcome``.

    Returns:
        (probability of the outcome, renormalized post-measurement state)

    Raises:
        MeasurementDegenerate: if the outcome has (numerically) zero probability
    """
    if outcome not in (0, 1):
        raise ValueError(f"Outcome must be 0 or 1, got {outcome}")
    p0, p1 = outcome_probabilities(rho, qubit)
    probability = p0 if outcome == 0 else p1
    if probability < DEGENERATE_PROBABILITY:
        raise MeasurementDegenerate(
            f"Outcome {outcome} on qubit {qubit} has probability {probability:.3e}"
        )
    keep = _outcome_mask(rho, qubit) == bool(outcome)
    collapsed = np.where(np.outer(keep, keep), rho.data, 0.0) / probability
    return probability, DensityMatrix(collapsed, normalize=False)


def measure_qubit(
    rho: DensityMatrix,
    qubit: int,
    rng: Optional[RandomSource] = None
) -> MeasurementResult:
    """
    Measure ``qubit`` in the computational basis.

    One uniform draw r decides the outcome: 0 if r < p0, else 1.

    Args:
        rho: State to measure
        qubit: Qubit index (qubit 0 is the most significant bit)
        rng: Random source; a fresh generator is used when omitted

    Returns:
        MeasurementResult with outcome, its probability and the collapsed state
    """
    p0, _ = outcome_probabilities(rho, qubit)
    outcome = 0 if uniform(rng) < p0 else 1
    probability, post_state = project_qubit(rho, qubit, outcome)
    return MeasurementResult(outcome=outcome, probability=probability, post_state=post_state)
