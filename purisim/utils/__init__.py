"""Utility modules for purisim."""

from purisim.utils.indexing import bitstring_to_index, index_to_bitstring, qubit_bit

__all__ = ["bitstring_to_index", "index_to_bitstring", "qubit_bit"]
