"""
Gate matrices and the 2x2 operator type.

This module contains the matrices the reference engine applies (Pauli,
Hadamard, phase, rotation, general U and two-qubit exchange gates) and
:class:`Mtrx`, the fixed-size operator type used to pass arbitrary
single-qubit gates across the engine boundary.

Two-qubit matrices are indexed so that the first qubit argument is the least
significant bit of the row/column index, matching the engine's qubit order.
"""

import numpy as np
from typing import Iterable, Iterator, Sequence, Union

from .errors import ShapeMismatch
from .pauli import Pauli

# =============================================================================
# Single-qubit gates
# =============================================================================

X_gate = np.array([[0, 1],      # Pauli X gate (NOT gate)
                   [1, 0]], dtype=complex)

Y_gate = np.array([[ 0, -1j],   # Pauli Y gate
                   [1j,   0]], dtype=complex)

Z_gate = np.array([[1,  0],     # Pauli Z gate = P(π) = S²
                   [0, -1]], dtype=complex)

H_gate = np.array([[1,  1],     # Hadamard gate
                   [1, -1]], dtype=complex) * np.sqrt(1/2)

S_gate = np.array([[1,  0],     # Phase gate = P(π/2) = T²
                   [0, 1j]], dtype=complex)

AdjS_gate = np.array([[1,   0],  # S† = P(-π/2)
                      [0, -1j]], dtype=complex)

T_gate = np.array([[1,                 0],   # T gate = P(π/4)
                   [0, np.exp(np.pi / -4j)]], dtype=complex)

AdjT_gate = np.array([[1,                  0],   # T† gate = P(-π/4)
                      [0, np.exp(np.pi / 4j)]], dtype=complex)

I_gate = np.eye(2, dtype=complex)

PAULI_MATRICES = {
    Pauli.PauliI: I_gate,
    Pauli.PauliX: X_gate,
    Pauli.PauliY: Y_gate,
    Pauli.PauliZ: Z_gate,
}


def U_gate(theta: float, phi: float, lam: float) -> np.ndarray:
    """General single-qubit unitary U(θ, φ, λ)."""
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c,                    -np.exp(1j * lam) * s],
                     [np.exp(1j * phi) * s,  np.exp(1j * (phi + lam)) * c]])


def R_gate(basis: int, phi: float) -> np.ndarray:
    """Rotation exp(-iφ/2 σ) about a Pauli axis."""
    sigma = PAULI_MATRICES[Pauli(basis)]
    return np.cos(phi / 2) * I_gate - 1j * np.sin(phi / 2) * sigma


# =============================================================================
# Two-qubit gates
# =============================================================================

SWAP_gate = np.array([[1, 0, 0, 0],   # Swap gate
                      [0, 0, 1, 0],
                      [0, 1, 0, 0],
                      [0, 0, 0, 1]], dtype=complex)

ISWAP_gate = np.array([[1,  0,  0, 0],   # iSWAP: |01⟩ -> i|10⟩
                       [0,  0, 1j, 0],
                       [0, 1j,  0, 0],
                       [0,  0,  0, 1]], dtype=complex)

AdjISWAP_gate = ISWAP_gate.conj().T


def FSim_gate(theta: float, phi: float) -> np.ndarray:
    """Fermionic simulation gate fSim(θ, φ)."""
    c, s = np.cos(theta), -1j * np.sin(theta)
    return np.array([[1, 0, 0,                 0],
                     [0, c, s,                 0],
                     [0, s, c,                 0],
                     [0, 0, 0, np.exp(-1j * phi)]])


def QFT_matrix(n: int, inverse: bool = False) -> np.ndarray:
    """
    Dense Fourier transform over an n-qubit register.

    |j⟩ → (1/√N) Σₖ exp(±2πijk/N) |k⟩, with the register value read
    little-endian from the qubit list.
    """
    dim = 2 ** n
    sign = -1 if inverse else 1
    j = np.arange(dim)
    return np.exp(sign * 2j * np.pi * np.outer(j, j) / dim) / np.sqrt(dim)


# =============================================================================
# Operator type passed across the engine boundary
# =============================================================================

class Mtrx:
    """
    A 2x2 complex operator in row-major order.

    The engine takes single-qubit operators as exactly eight doubles,
    ``(re00, im00, re01, im01, re10, im10, re11, im11)``. Iteration over a
    Mtrx yields its four complex entries in that row-major order.
    """

    __slots__ = ("_entries",)

    def __init__(self, m00: complex, m01: complex, m10: complex, m11: complex):
        self._entries = (complex(m00), complex(m01), complex(m10), complex(m11))

    @classmethod
    def from_array(cls, matrix) -> "Mtrx":
        """Build from any 2x2 array-like."""
        matrix = np.asarray(matrix, dtype=complex)
        if matrix.shape != (2, 2):
            raise ShapeMismatch(f"Operator matrix must be 2x2, got shape {matrix.shape}")
        return cls(matrix[0, 0], matrix[0, 1], matrix[1, 0], matrix[1, 1])

    @classmethod
    def from_doubles(cls, values: Sequence[float]) -> "Mtrx":
        """Build from eight interleaved (re, im) doubles."""
        values = list(values)
        if len(values) != 8:
            raise ShapeMismatch(f"Operator needs exactly 8 doubles, got {len(values)}")
        return cls(*(complex(values[i], values[i + 1]) for i in range(0, 8, 2)))

    @classmethod
    def coerce(cls, m: Union["Mtrx", Sequence[float], np.ndarray]) -> "Mtrx":
        """Accept a Mtrx, a 2x2 array or a flat list of 8 doubles."""
        if isinstance(m, cls):
            return m
        if np.ndim(m) == 2:
            return cls.from_array(m)
        return cls.from_doubles(m)

    def __iter__(self) -> Iterator[complex]:
        return iter(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Mtrx):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self):
        return hash(self._entries)

    def __repr__(self):
        return "Mtrx(%s)" % ", ".join(repr(e) for e in self._entries)

    def to_doubles(self) -> list:
        """Row-major interleaved real/imaginary parts."""
        out = []
        for entry in self._entries:
            out.extend((entry.real, entry.imag))
        return out

    def to_array(self) -> np.ndarray:
        return np.array(self._entries, dtype=complex).reshape(2, 2)


def matrices_from_doubles(values: Iterable[float]) -> np.ndarray:
    """Unpack 8·k interleaved doubles into an array of k 2x2 complex matrices."""
    flat = np.asarray(list(values), dtype=float)
    return (flat[0::2] + 1j * flat[1::2]).reshape(-1, 2, 2)
