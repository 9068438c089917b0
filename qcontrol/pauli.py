"""
Pauli basis enumeration.

The integer values are the ones the engine expects on the wire, so Z and Y
are not in alphabetical order.
"""

from enum import IntEnum


class Pauli(IntEnum):
    """Single-qubit Pauli basis, as passed to rotation and measurement calls."""

    PauliI = 0
    PauliX = 1
    PauliZ = 2
    PauliY = 3
