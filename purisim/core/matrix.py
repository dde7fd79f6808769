"""Generic complex matrix backed by a numpy array."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple, Union

import numpy as np

from purisim.core.complex import ComplexNumber, Number
from purisim.errors import DimensionMismatch


ArrayLike = Union[np.ndarray, Sequence[Sequence[Number]], "Matrix"]


def _to_array(data: ArrayLike) -> np.ndarray:
    if isinstance(data, Matrix):
        return data.data.copy()
    if isinstance(data, np.ndarray):
        arr = np.array(data, dtype=np.complex128)
    else:
        rows = [[complex(v) for v in row] for row in data]
        if not rows or not rows[0]:
            raise DimensionMismatch("Matrix cannot have zero dimensions")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise DimensionMismatch("All rows must have the same length")
        arr = np.array(rows, dtype=np.complex128)
    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DimensionMismatch(f"Matrix must be a non-empty 2D array, got shape {arr.shape}")
    return arr


class Matrix:
    """
    Complex ``rows × cols`` matrix.

    Instances are immutable: the backing array is read-only and every
    operation returns a new Matrix.
    """

    __slots__ = ("_data",)

    def __init__(self, data: ArrayLike):
        arr = _to_array(data)
        arr.flags.writeable = False
        self._data = arr

    @classmethod
    def zeros(cls, rows: int, cols: int) -> Matrix:
        return cls(np.zeros((rows, cols), dtype=np.complex128))

    @classmethod
    def identity(cls, size: int) -> Matrix:
        return cls(np.eye(size, dtype=np.complex128))

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def is_square(self) -> bool:
        return self.rows == self.cols

    def get(self, i: int, j: int) -> ComplexNumber:
        return ComplexNumber.coerce(self._data[i, j])

    def with_entry(self, i: int, j: int, value: Number) -> Matrix:
        """Return a copy with entry (i, j) replaced."""
        arr = self._data.copy()
        arr[i, j] = complex(ComplexNumber.coerce(value))
        return Matrix(arr)

    def to_array(self) -> np.ndarray:
        """Writable copy of the underlying data."""
        return self._data.copy()

    def to_list(self) -> list:
        return [[self.get(i, j) for j in range(self.cols)] for i in range(self.rows)]

    def _require_square(self, op: str) -> None:
        if not self.is_square:
            raise DimensionMismatch(f"{op} requires a square matrix, got {self.rows}x{self.cols}")

    def add(self, other: Matrix) -> Matrix:
        if self.shape != other.shape:
            raise DimensionMismatch(f"Cannot add {self.shape} and {other.shape} matrices")
        return Matrix(self._data + other._data)

    def scale(self, s: Number) -> Matrix:
        return Matrix(self._data * complex(ComplexNumber.coerce(s)))

    def multiply(self, other: Matrix) -> Matrix:
        if self.cols != other.rows:
            raise DimensionMismatch(
                f"Cannot multiply {self.rows}x{self.cols} by {other.rows}x{other.cols}"
            )
        return Matrix(self._data @ other._data)

    def tensor(self, other: Matrix) -> Matrix:
        """Kronecker product; (i1, i2) maps to i1·other.rows + i2."""
        return Matrix(np.kron(self._data, other._data))

    def dagger(self) -> Matrix:
        return Matrix(self._data.conj().T)

    def trace(self) -> ComplexNumber:
        self._require_square("trace")
        return ComplexNumber.coerce(np.trace(self._data))

    def is_hermitian(self, atol: float = 1e-8) -> bool:
        return self.is_square and np.allclose(self._data, self._data.conj().T, atol=atol, rtol=0)

    def is_unitary(self, atol: float = 1e-8) -> bool:
        if not self.is_square:
            return False
        return np.allclose(self._data @ self._data.conj().T, np.eye(self.rows), atol=atol, rtol=0)

    def allclose(self, other: Union[Matrix, np.ndarray], atol: float = 1e-8) -> bool:
        other_data = other.data if isinstance(other, Matrix) else np.asarray(other)
        return self.shape == other_data.shape and np.allclose(self._data, other_data, atol=atol, rtol=0)

    __matmul__ = multiply

    def __eq__(self, other) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self._data, other._data)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix({self.rows}x{self.cols})"


def tensor_all(matrices: Iterable[Matrix]) -> Matrix:
    """Kronecker product of a sequence of matrices, left to right."""
    result = None
    for m in matrices:
        result = m if result is None else result.tensor(m)
    if result is None:
        raise DimensionMismatch("tensor_all needs at least one matrix")
    return result
