"""Partial trace over a subset of qubits."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from purisim.core.density_matrix import DensityMatrix


def partial_trace(rho: DensityMatrix, trace_out: Iterable[int]) -> DensityMatrix:
    """
    Reduce ``rho`` by summing out the qubits in ``trace_out``.

    The kept qubits retain their relative order. Tracing out every qubit
    yields the 1x1 matrix [[Tr ρ]].

    Args:
        rho: n-qubit density matrix
        trace_out: Qubit indices to remove (qubit 0 is the leftmost factor)

    Returns:
        Reduced density matrix on the remaining qubits
    """
    n = rho.num_qubits
    removed = sorted(set(trace_out))
    for q in removed:
        if not 0 <= q < n:
            raise ValueError(f"Qubit index {q} out of range for {n}-qubit system")
    kept = [q for q in range(n) if q not in removed]

    # Axes 0..n-1 index rows, n..2n-1 index columns
    tensor = rho.data.reshape([2] * (2 * n))
    row_axes = kept + removed
    col_axes = [n + q for q in kept] + [n + q for q in removed]
    tensor = np.transpose(tensor, row_axes + col_axes)

    d_keep, d_out = 2 ** len(kept), 2 ** len(removed)
    tensor = tensor.reshape(d_keep, d_out, d_keep, d_out)
    reduced = np.einsum("ikjk->ij", tensor)
    return DensityMatrix(reduced, normalize=False)
