"""
Argument marshaling for engine calls.

Python values are converted to the ctypes buffers the engine entry points
take: qubit ids and 64-bit words as ``c_ulonglong`` arrays, Pauli bases as
``c_int``, outcomes as ``c_bool``, lookup tables as ``c_ubyte`` and kets as
``c_float``. The check functions enforce the length relations the engine
relies on but cannot verify itself; they raise
:class:`~qcontrol.errors.ShapeMismatch`, which simulator operations turn into
an ``Err`` before the engine is called.
"""

import ctypes
import numpy as np
from typing import Iterable, List, Sequence, Union

from .errors import ShapeMismatch
from .gates import Mtrx
from .pauli import Pauli
from .utils import int_to_words

Words = Union[int, Sequence[int]]


# =============================================================================
# Buffers
# =============================================================================

def uint_array(values: Iterable[int]):
    values = [int(v) for v in values]
    if any(v < 0 for v in values):
        raise ShapeMismatch("Qubit ids and words must be non-negative")
    return (ctypes.c_ulonglong * len(values))(*values)


def double_array(values: Iterable[float]):
    values = [float(v) for v in values]
    return (ctypes.c_double * len(values))(*values)


def pauli(basis) -> int:
    try:
        return int(Pauli(basis))
    except ValueError as exc:
        raise ShapeMismatch(str(exc)) from None


def pauli_array(bases: Iterable[int]):
    values = [pauli(b) for b in bases]
    return (ctypes.c_int * len(values))(*values)


def bool_array(values: Iterable[bool]):
    values = [bool(v) for v in values]
    return (ctypes.c_bool * len(values))(*values)


def byte_array(table: Union[bytes, bytearray, Sequence[int]]):
    data = bytes(bytearray(table))
    return (ctypes.c_ubyte * len(data)).from_buffer_copy(data)


def float_array(values: Iterable[float]):
    values = [float(v) for v in values]
    return (ctypes.c_float * len(values))(*values)


def output_array(count: int):
    """Zeroed ``c_ulonglong`` buffer for the engine to fill."""
    if count < 0:
        raise ShapeMismatch("Buffer length must be non-negative")
    return (ctypes.c_ulonglong * count)()


def words(value: Words) -> List[int]:
    """Split a classical operand into 64-bit words, low word first."""
    try:
        return int_to_words(value)
    except (TypeError, ValueError) as exc:
        raise ShapeMismatch(str(exc)) from None


def mtrx_doubles(m) -> ctypes.Array:
    """Eight doubles for a Mtrx, 2x2 array or flat list of 8 numbers."""
    return double_array(Mtrx.coerce(m).to_doubles())


def multiplex_doubles(ms, control_count: int) -> ctypes.Array:
    """
    Doubles for one operator per control permutation.

    ``ms`` is either a sequence of 2**control_count operators (anything
    :meth:`Mtrx.coerce` accepts) or a flat list of 8 * 2**control_count
    doubles.
    """
    expected = 1 << control_count
    ms = list(ms)
    if all(isinstance(v, (int, float, np.integer, np.floating)) for v in ms):
        values = [float(v) for v in ms]
        if len(values) != 8 * expected:
            raise ShapeMismatch(f"Expected {8 * expected} doubles for {control_count} controls, got {len(values)}")
        return double_array(values)
    ops = [Mtrx.coerce(m) for m in ms]
    if len(ops) != expected:
        raise ShapeMismatch(f"Expected {expected} operators for {control_count} controls, got {len(ops)}")
    values = []
    for op in ops:
        values.extend(op.to_doubles())
    return double_array(values)


# =============================================================================
# Shape checks
# =============================================================================

def check_same_length(what: str, first: Sequence, second: Sequence):
    if len(first) != len(second):
        raise ShapeMismatch(f"{what}: lengths {len(first)} and {len(second)} differ")


def check_table(table: Sequence, index_count: int, value_count: int):
    """A lookup table must hold 2**index_count entries of value_count bits."""
    if 8 * len(table) < (1 << index_count) * value_count:
        raise ShapeMismatch(
            f"Table of {len(table)} bytes is too small for {index_count} index "
            f"and {value_count} value qubits"
        )
