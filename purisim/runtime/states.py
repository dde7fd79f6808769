"""Preparation of the initial noisy EPR pairs."""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from purisim.core.channels import NoiseLibrary
from purisim.core.density_matrix import DensityMatrix
from purisim.core.types import Basis, NoiseChannelType
from purisim.observables.bell import to_bell_basis
from purisim.utils.rng import RandomSource, make_rng

# Qubit held by the receiving party; noise acts on it in transit
TRANSMITTED_QUBIT = 1

COHERENCE_SCALE = 0.1


def create_noisy_epr(noise_parameter: float, rng: Optional[RandomSource] = None) -> DensityMatrix:
    """
    Closed-form noisy EPR pair in the Bell basis.

    The diagonal is (p/3, p/3, p/3, 1-p) around Ψ−. Off-diagonal entries are
    small random coherences of magnitude at most ``0.05 * p``, mirrored so
    the matrix stays Hermitian.
    """
    if not 0.0 <= noise_parameter <= 1.0:
        raise ValueError(f"noise_parameter must be in [0, 1], got {noise_parameter}")
    rng = make_rng(rng)
    p = noise_parameter
    data = np.diag(np.array([p / 3, p / 3, p / 3, 1 - p], dtype=np.complex128))
    for i in range(4):
        for j in range(i + 1, 4):
            re = p * (rng.random() - 0.5) * COHERENCE_SCALE
            im = p * (rng.random() - 0.5) * COHERENCE_SCALE
            data[i, j] = complex(re, im)
            data[j, i] = complex(re, -im)
    return DensityMatrix(data)


def create_noisy_epr_with_channel(
    noise_parameter: float,
    channel: Union[str, NoiseChannelType] = NoiseChannelType.AMPLITUDE_DAMPING,
    rng: Optional[RandomSource] = None,
    basis: Basis = Basis.BELL,
) -> DensityMatrix:
    """
    Send half of a |Ψ−⟩ pair through a noise channel.

    Args:
        noise_parameter: Channel strength in [0, 1]
        channel: Channel name or enum member
        rng: Random source (used by the uniform-noise channel)
        basis: Basis of the returned matrix

    Returns:
        2-qubit density matrix in the requested basis
    """
    noisy = NoiseLibrary.get_channel(channel).apply(
        DensityMatrix.bell_psi_minus(), TRANSMITTED_QUBIT, noise_parameter, rng
    )
    if basis is Basis.BELL:
        return to_bell_basis(noisy)
    return noisy
