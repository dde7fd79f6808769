"""Density matrix representation with quantum-state invariants."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from purisim.core.complex import ComplexNumber, Number
from purisim.core.matrix import ArrayLike, Matrix
from purisim.errors import DimensionMismatch, InvalidDensityMatrix


def num_qubits_for_dim(dim: int) -> int:
    """Return k such that dim == 2**k, or raise InvalidDensityMatrix."""
    if dim < 1 or dim & (dim - 1):
        raise InvalidDensityMatrix(f"Dimension must be a power of 2, got {dim}")
    return dim.bit_length() - 1


class DensityMatrix:
    """
    Joint state of k qubits as a 2^k × 2^k trace-one matrix.

    Wraps an immutable :class:`Matrix`. Construction normalizes by the real
    part of the trace; Hermiticity is checked by :meth:`validate` but never
    corrected.
    """

    __slots__ = ("_matrix", "_num_qubits")

    def __init__(self, data: ArrayLike, normalize: bool = True):
        try:
            if isinstance(data, DensityMatrix):
                data = data.matrix
            matrix = data if isinstance(data, Matrix) else Matrix(data)
        except DimensionMismatch as exc:
            raise InvalidDensityMatrix(str(exc)) from exc
        if not matrix.is_square:
            raise InvalidDensityMatrix(f"DensityMatrix must be square, got {matrix.rows}x{matrix.cols}")
        self._num_qubits = num_qubits_for_dim(matrix.rows)
        if normalize:
            tr = matrix.trace().re
            if abs(tr) < 1e-15:
                raise InvalidDensityMatrix("Cannot normalize a matrix with zero trace")
            if not math.isclose(tr, 1.0, rel_tol=0, abs_tol=1e-15):
                matrix = matrix.scale(1.0 / tr)
        self._matrix = matrix

    @classmethod
    def from_state_vector(cls, vec: Sequence[Number]) -> DensityMatrix:
        """Pure state |ψ⟩⟨ψ|."""
        psi = np.array([complex(ComplexNumber.coerce(v)) for v in vec], dtype=np.complex128)
        num_qubits_for_dim(len(psi))
        return cls(np.outer(psi, psi.conj()))

    @classmethod
    def bell_phi_plus(cls) -> DensityMatrix:
        """|Φ+⟩ = (|00⟩ + |11⟩)/√2"""
        s = 1 / math.sqrt(2)
        return cls.from_state_vector([s, 0, 0, s])

    @classmethod
    def bell_phi_minus(cls) -> DensityMatrix:
        """|Φ-⟩ = (|00⟩ - |11⟩)/√2"""
        s = 1 / math.sqrt(2)
        return cls.from_state_vector([s, 0, 0, -s])

    @classmethod
    def bell_psi_plus(cls) -> DensityMatrix:
        """|Ψ+⟩ = (|01⟩ + |10⟩)/√2"""
        s = 1 / math.sqrt(2)
        return cls.from_state_vector([0, s, s, 0])

    @classmethod
    def bell_psi_minus(cls) -> DensityMatrix:
        """|Ψ-⟩ = (|01⟩ - |10⟩)/√2"""
        s = 1 / math.sqrt(2)
        return cls.from_state_vector([0, s, -s, 0])

    @classmethod
    def maximally_mixed(cls, num_qubits: int) -> DensityMatrix:
        dim = 2 ** num_qubits
        return cls(np.eye(dim, dtype=np.complex128) / dim)

    @classmethod
    def diagonal(cls, values: Sequence[float]) -> DensityMatrix:
        return cls(np.diag(np.asarray(values, dtype=np.complex128)))

    @staticmethod
    def tensor(a: DensityMatrix, b: DensityMatrix) -> DensityMatrix:
        """Joint state a ⊗ b (qubits of a first)."""
        return DensityMatrix(a.matrix.tensor(b.matrix))

    @property
    def matrix(self) -> Matrix:
        return self._matrix

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the entries."""
        return self._matrix.data

    @property
    def dim(self) -> int:
        return self._matrix.rows

    @property
    def rows(self) -> int:
        return self._matrix.rows

    @property
    def cols(self) -> int:
        return self._matrix.cols

    @property
    def num_qubits(self) -> int:
        return self._num_qubits

    def get(self, i: int, j: int) -> ComplexNumber:
        return self._matrix.get(i, j)

    def trace(self) -> ComplexNumber:
        return self._matrix.trace()

    def diagonal_probabilities(self) -> np.ndarray:
        return np.real(np.diag(self.data)).copy()

    @property
    def purity(self) -> float:
        return float(np.real(np.trace(self.data @ self.data)))

    def check(self, epsilon: float = 1e-8) -> Tuple[bool, Optional[str]]:
        tr = self.trace()
        if abs(tr.re - 1) > epsilon or abs(tr.im) > epsilon:
            return False, f"Trace = {tr.re:.6f}{tr.im:+.6f}j"
        if not self._matrix.is_hermitian(atol=epsilon):
            return False, "Not Hermitian"
        return True, None

    def validate(self, epsilon: float = 1e-8) -> bool:
        """True when trace ≈ 1 and the matrix is Hermitian within epsilon."""
        return self.check(epsilon)[0]

    def require_valid(self, epsilon: float = 1e-8) -> DensityMatrix:
        ok, reason = self.check(epsilon)
        if not ok:
            raise InvalidDensityMatrix(reason)
        return self

    def allclose(self, other, atol: float = 1e-8) -> bool:
        other_matrix = other.matrix if isinstance(other, DensityMatrix) else other
        return self._matrix.allclose(other_matrix, atol=atol)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DensityMatrix):
            return NotImplemented
        return self._matrix == other._matrix

    __hash__ = None

    def __repr__(self) -> str:
        return f"DensityMatrix(qubits={self.num_qubits}, purity={self.purity:.4f})"
