"""
Basis-index helpers.

Qubit 0 is the most significant bit of a basis index, so the index of
|q0 q1 ... q(n-1)⟩ reads as the bitstring "q0 q1 ... q(n-1)".
"""

from __future__ import annotations

from typing import Iterable


def bit_position(qubit: int, num_qubits: int) -> int:
    """Shift amount of ``qubit`` inside an n-qubit basis index."""
    if not 0 <= qubit < num_qubits:
        raise ValueError(f"Qubit index {qubit} out of range for {num_qubits}-qubit system")
    return num_qubits - 1 - qubit


def qubit_bit(index: int, qubit: int, num_qubits: int) -> int:
    """Value (0/1) of ``qubit`` in basis state ``index``."""
    return (index >> bit_position(qubit, num_qubits)) & 1


def flip_bit(index: int, qubit: int, num_qubits: int) -> int:
    return index ^ (1 << bit_position(qubit, num_qubits))


def bitstring_to_index(bitstring: str) -> int:
    """'011' -> 3 (leftmost character is qubit 0)."""
    if any(c not in "01" for c in bitstring):
        raise ValueError(f"Invalid bitstring: {bitstring!r}")
    return int(bitstring, 2) if bitstring else 0


def index_to_bitstring(index: int, num_bits: int) -> str:
    return format(index, f"0{num_bits}b") if num_bits else ""


def kept_index(index: int, keep: Iterable[int], num_qubits: int) -> int:
    """Compress ``index`` to the sub-register formed by ``keep`` (in order)."""
    out = 0
    for q in keep:
        out = (out << 1) | qubit_bit(index, q, num_qubits)
    return out

