"""
Random bilateral Pauli twirling of 2-qubit states.

Each sequence is a product of π/2 rotations; the same local unitary U is
applied to both qubits (U ⊗ U). Averaged over all twelve sequences the map
sends any 2-qubit state to Werner form; the Monte Carlo engine applies a
single sampled sequence per pair.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from purisim.core.density_matrix import DensityMatrix
from purisim.core.gates import ROTATIONS, apply_gate
from purisim.core.matrix import Matrix
from purisim.utils.rng import RandomSource, uniform


PAULI_TWIRL_SEQUENCES: Tuple[Tuple[str, ...], ...] = (
    (),
    ("x", "x"),
    ("y", "y"),
    ("z", "z"),
    ("x", "y"),
    ("y", "z"),
    ("z", "x"),
    ("y", "x"),
    ("x", "y", "x", "y"),
    ("y", "z", "y", "z"),
    ("z", "x", "z", "x"),
    ("y", "x", "y", "x"),
)


def get_pauli_twirl_operator(sequence: Sequence[str]) -> Matrix:
    """
    Bilateral operator U ⊗ U for a rotation sequence.

    Rotations are applied in sequence order, so the first axis acts first.
    """
    U = Matrix.identity(2)
    for axis in sequence:
        if axis not in ROTATIONS:
            raise ValueError(f"Unknown rotation axis: {axis}")
        U = ROTATIONS[axis](math.pi / 2).multiply(U)
    return U.tensor(U)


def sample_twirl_index(rng: Optional[RandomSource] = None) -> int:
    index = int(uniform(rng) * len(PAULI_TWIRL_SEQUENCES))
    return min(index, len(PAULI_TWIRL_SEQUENCES) - 1)


def pauli_twirl(rho: DensityMatrix, rng: Optional[RandomSource] = None) -> DensityMatrix:
    """Apply one uniformly chosen bilateral twirl to a 2-qubit state."""
    sequence = PAULI_TWIRL_SEQUENCES[sample_twirl_index(rng)]
    return apply_gate(rho, get_pauli_twirl_operator(sequence))
