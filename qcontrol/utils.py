"""
Utility functions.

This module provides helper functions for:
- Quantum state comparison (accounting for global phase)
- Packing classical integers into the 64-bit words the ALU calls take
- Building and reading the byte tables used by lookup operations
"""

import numpy as np
from typing import Iterable, List, Sequence, Union

WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1


# =============================================================================
# Quantum state utilities
# =============================================================================

def allclose_up_to_global_phase(v, w, atol: float = 1e-9) -> bool:
    """
    Check if two quantum states are equal up to a global phase.

    Args:
        v: First quantum state (array-like)
        w: Second quantum state (array-like)
        atol: Absolute tolerance for comparison

    Returns:
        True if states are equal up to global phase
    """
    v = np.asarray(v).reshape(-1)
    w = np.asarray(w).reshape(-1)

    # Find a stable pivot amplitude in w
    idx = np.argmax(np.abs(w))
    if np.abs(w[idx]) < atol:
        return np.allclose(v, w, atol=atol)

    phase = v[idx] / w[idx]
    return np.allclose(v, phase * w, atol=atol)


def state_fidelity(v, w) -> float:
    """
    Compute the fidelity |⟨v|w⟩|² between two pure quantum states.
    """
    v = np.asarray(v).reshape(-1)
    w = np.asarray(w).reshape(-1)
    return float(np.abs(np.vdot(v, w)) ** 2)


# =============================================================================
# Binary utilities
# =============================================================================

def int_to_bits(x: int, n: int) -> List[int]:
    """
    Convert integer to list of bits (LSB first).

    Args:
        x: Integer to convert
        n: Number of bits

    Returns:
        List of n bits, LSB first
    """
    return [(x >> i) & 1 for i in range(n)]


def bits_to_int(bits: Iterable[int]) -> int:
    """
    Convert list of bits (LSB first) to integer.
    """
    result = 0
    for i, bit in enumerate(bits):
        result |= (int(bit) & 1) << i
    return result


def int_to_words(x: Union[int, Sequence[int]]) -> List[int]:
    """
    Split a non-negative integer into 64-bit words, low word first.

    A sequence is taken to already be a word list and is returned as a list.
    Zero becomes a single zero word.

    Args:
        x: Integer (or word list) to convert

    Returns:
        List of words, least significant first
    """
    if not isinstance(x, (int, np.integer)):
        words = [int(w) for w in x]
        if any(w < 0 or w > WORD_MASK for w in words):
            raise ValueError("Words must fit in 64 unsigned bits")
        return words

    x = int(x)
    if x < 0:
        raise ValueError("Classical ALU operands must be non-negative")
    words = []
    while True:
        words.append(x & WORD_MASK)
        x >>= WORD_BITS
        if not x:
            return words


def words_to_int(words: Iterable[int]) -> int:
    """Reassemble 64-bit words (low word first) into an integer."""
    result = 0
    for i, word in enumerate(words):
        result |= (int(word) & WORD_MASK) << (WORD_BITS * i)
    return result


# =============================================================================
# Lookup tables
# =============================================================================

def bytes_per_value(value_bits: int) -> int:
    """Number of bytes each table entry occupies for a value register."""
    return (value_bits + 7) // 8


def pack_table(values: Iterable[int], value_bits: int) -> bytes:
    """
    Encode a lookup table, one little-endian entry per index.

    Args:
        values: Table entries in index order
        value_bits: Width of the value register the table is loaded into

    Returns:
        Byte string suitable for lda/adc/sbc/hash
    """
    width = bytes_per_value(value_bits)
    mask = (1 << value_bits) - 1
    return b"".join((int(v) & mask).to_bytes(width, "little") for v in values)


def unpack_table(table: Sequence[int], index_bits: int, value_bits: int) -> List[int]:
    """
    Decode the first 2**index_bits entries of a packed lookup table.

    Raises:
        IndexError: if the table is too short for the index register
    """
    width = bytes_per_value(value_bits)
    count = 2 ** index_bits
    raw = bytes(bytearray(table))
    if len(raw) < width * count:
        raise IndexError(f"Table holds {len(raw)} bytes, needs {width * count}")
    mask = (1 << value_bits) - 1
    return [
        int.from_bytes(raw[i * width:(i + 1) * width], "little") & mask
        for i in range(count)
    ]
