"""
Register arithmetic and boolean logic for the reference engine.

Every operation here is a classical map over computational basis states,
applied through :meth:`StateVector.remap`. Register values are read
little-endian from the listed positions. Controlled variants act only where
every control qubit is |1⟩ and leave the other basis states untouched.

Multiplication and modular operations follow the engine's precondition that
the carry/result register starts at zero: basis states violating it are
dropped and the state renormalized.
"""

import numpy as np
from typing import Callable, List, Sequence

from .statevector import EngineFault, StateVector


def _checked_disjoint(*groups: Sequence[int]):
    seen: List[int] = []
    for group in groups:
        seen.extend(group)
    if len(seen) != len(set(seen)):
        raise EngineFault("Registers must not overlap")


def _apply(sv: StateVector, fn: Callable[[int], int], inputs: Sequence[int],
           outputs: Sequence[int], controls: Sequence[int] = (),
           domain: Callable[[np.ndarray, np.ndarray], np.ndarray] = None):
    """
    Rewrite the ``outputs`` register as ``fn`` of the ``inputs`` register.

    Args:
        sv: State to modify
        fn: Map from the combined input value to the combined output value
        inputs: Positions read (first = LSB)
        outputs: Positions written (first = LSB)
        controls: Positions that must all be |1⟩ for the map to apply
        domain: Optional predicate (idx, input value) selecting basis states
                the map is defined on; other active states are dropped
    """
    idx = sv.indices()
    active = sv.control_mask(idx, controls)
    values = sv.read_register(idx, inputs)
    mapped = np.array([fn(int(v)) for v in values[active]], dtype=np.int64)

    dest = idx.copy()
    dest[active] = sv.write_register(idx[active], outputs, mapped)

    keep = None
    if domain is not None:
        keep = ~active | domain(idx, values)
    if len(np.unique(dest if keep is None else dest[keep])) != (idx.size if keep is None else int(keep.sum())):
        raise EngineFault("Operation is not reversible on this input")
    sv.remap(dest, keep)


# =============================================================================
# Addition and subtraction
# =============================================================================

def add(sv: StateVector, value: int, targets: Sequence[int], controls: Sequence[int] = ()):
    """|x⟩ → |x + value mod 2^n⟩."""
    _checked_disjoint(targets, controls)
    modulus = 1 << len(targets)
    _apply(sv, lambda x: (x + value) % modulus, targets, targets, controls)


def add_signed(sv: StateVector, value: int, overflow: int, targets: Sequence[int]):
    """
    Two's-complement addition with an overflow flag.

    The sum wraps like :func:`add`. Basis states where signed overflow occurs
    and the overflow qubit is |1⟩ pick up a phase of -1.
    """
    _checked_disjoint(targets, [overflow])
    n = len(targets)
    if n == 0:
        return
    modulus = 1 << n
    sign_bit = 1 << (n - 1)
    value %= modulus

    idx = sv.indices()
    x = sv.read_register(idx, targets)
    total = (x + value) % modulus
    # Overflow: operands share a sign that the result does not.
    same_sign = ((x ^ value) & sign_bit) == 0
    flipped = ((x ^ total) & sign_bit) != 0
    flag = ((idx >> overflow) & 1) == 1
    phase = np.where(same_sign & flipped & flag, -1.0, 1.0)

    sv.amps = sv.amps * phase
    sv.remap(sv.write_register(idx, targets, total))


# =============================================================================
# Multiplication and division with a carry register
# =============================================================================

def mul(sv: StateVector, value: int, targets: Sequence[int], carry: Sequence[int],
        controls: Sequence[int] = ()):
    """
    |x⟩|0⟩ → |x·value mod 2^n⟩|x·value >> n⟩.

    The product's high half lands in the carry register.
    """
    _checked_disjoint(targets, carry, controls)
    n = len(targets)
    if value == 0 or value >= (1 << n):
        raise EngineFault("Multiplier must be in [1, 2^n)")
    both = list(targets) + list(carry)
    _apply(sv, lambda v: v * value, both, both, controls,
           domain=lambda idx, v: (v >> n) == 0)


def div(sv: StateVector, value: int, targets: Sequence[int], carry: Sequence[int],
        controls: Sequence[int] = ()):
    """Inverse of :func:`mul`: states not in its image are dropped."""
    _checked_disjoint(targets, carry, controls)
    n = len(targets)
    if value == 0 or value >= (1 << n):
        raise EngineFault("Divisor must be in [1, 2^n)")
    both = list(targets) + list(carry)
    _apply(sv, lambda v: v // value, both, both, controls,
           domain=lambda idx, v: ((v % value) == 0) & ((v // value) < (1 << n)))


# =============================================================================
# Modular arithmetic into a result register
# =============================================================================

def _check_modulus(modulus: int, width: int):
    if modulus < 1 or modulus > (1 << width):
        raise EngineFault("Modulus must fit the result register")


def mul_mod(sv: StateVector, value: int, modulus: int, targets: Sequence[int],
            result: Sequence[int], controls: Sequence[int] = ()):
    """|x⟩|0⟩ → |x⟩|x·value mod N⟩."""
    _checked_disjoint(targets, result, controls)
    _check_modulus(modulus, len(result))
    n = len(targets)
    both = list(targets) + list(result)
    _apply(sv, lambda v: (v & ((1 << n) - 1)) | ((((v & ((1 << n) - 1)) * value) % modulus) << n),
           both, both, controls, domain=lambda idx, v: (v >> n) == 0)


def div_mod(sv: StateVector, value: int, modulus: int, targets: Sequence[int],
            result: Sequence[int], controls: Sequence[int] = ()):
    """Inverse of :func:`mul_mod`: clears a result register holding x·value mod N."""
    _checked_disjoint(targets, result, controls)
    _check_modulus(modulus, len(result))
    n = len(targets)
    low = (1 << n) - 1
    both = list(targets) + list(result)
    _apply(sv, lambda v: v & low, both, both, controls,
           domain=lambda idx, v: (v >> n) == (((v & low) * value) % modulus))


def pow_mod(sv: StateVector, base: int, modulus: int, targets: Sequence[int],
            result: Sequence[int], controls: Sequence[int] = ()):
    """|x⟩|0⟩ → |x⟩|base^x mod N⟩."""
    _checked_disjoint(targets, result, controls)
    _check_modulus(modulus, len(result))
    n = len(targets)
    low = (1 << n) - 1
    both = list(targets) + list(result)
    _apply(sv, lambda v: (v & low) | (pow(base, v & low, modulus) << n),
           both, both, controls, domain=lambda idx, v: (v >> n) == 0)


# =============================================================================
# Table lookups
# =============================================================================

def load(sv: StateVector, index: Sequence[int], value: Sequence[int], table: List[int]):
    """Reset the value register, then load table[index] into it."""
    _checked_disjoint(index, value)
    for p in value:
        sv.set_bit(p, False)
    n_idx = len(index)
    regs = list(index) + list(value)
    _apply(sv, lambda v: v | (table[v & ((1 << n_idx) - 1)] << n_idx), regs, regs,
           domain=lambda idx, v: (v >> n_idx) == 0)


def add_with_carry(sv: StateVector, carry: int, index: Sequence[int], value: Sequence[int],
                   table: List[int], subtract: bool = False):
    """
    value ± table[index] with a carry qubit.

    The carry qubit is measured to obtain carry-in (for subtraction a |0⟩
    carry means borrow) and then holds the carry-out (for subtraction, |1⟩
    when no borrow occurred).
    """
    _checked_disjoint(index, value, [carry])
    carry_in = sv.measure(carry)
    n_idx, n_val = len(index), len(value)
    width = 1 << n_val
    regs = list(index) + list(value) + [carry]

    def fn(v):
        i = v & ((1 << n_idx) - 1)
        x = (v >> n_idx) & (width - 1)
        if subtract:
            total = width + x - table[i] - (0 if carry_in else 1)
        else:
            total = x + table[i] + (1 if carry_in else 0)
        out = total & (width - 1)
        carry_out = 1 if total >= width else 0
        return i | (out << n_idx) | (carry_out << (n_idx + n_val))

    _apply(sv, fn, regs, regs,
           domain=lambda idx, v: ((v >> (n_idx + n_val)) & 1) == int(carry_in))


def hash_register(sv: StateVector, targets: Sequence[int], table: List[int]):
    """|x⟩ → |table[x]⟩; the table must be a permutation."""
    if sorted(table) != list(range(len(table))):
        raise EngineFault("Hash table must be a permutation of the register values")
    _apply(sv, lambda x: table[x], targets, targets)


# =============================================================================
# Boolean logic
# =============================================================================

BOOLEAN_OPS = {
    "AND": lambda a, b: a & b,
    "OR": lambda a, b: a | b,
    "XOR": lambda a, b: a ^ b,
    "NAND": lambda a, b: 1 - (a & b),
    "NOR": lambda a, b: 1 - (a | b),
    "XNOR": lambda a, b: 1 - (a ^ b),
}


def boolean_gate(sv: StateVector, op: str, in1: int, in2: int, out: int):
    """Reset ``out`` and write op(in1, in2) into it."""
    if out in (in1, in2):
        raise EngineFault("Output qubit must differ from the inputs")
    fn = BOOLEAN_OPS[op]
    sv.set_bit(out, False)
    _apply(sv, lambda v: (v & 3) | (fn(v & 1, (v >> 1) & 1) << 2),
           [in1, in2, out], [in1, in2, out],
           domain=lambda idx, v: ((v >> 2) & 1) == 0)


def classical_boolean_gate(sv: StateVector, op: str, ci: bool, qin: int, out: int):
    """
    Write op(ci, qin) into ``out``.

    When ``out`` is ``qin`` the function is applied in place: identity is a
    no-op, negation is an X gate and a constant forces the qubit.
    """
    fn = BOOLEAN_OPS[op]
    ci = int(bool(ci))
    if out == qin:
        zero, one = fn(ci, 0), fn(ci, 1)
        if (zero, one) == (0, 1):
            return
        if (zero, one) == (1, 0):
            sv.remap(sv.indices() ^ (1 << out))
            return
        sv.set_bit(out, bool(zero))
        return
    sv.set_bit(out, False)
    _apply(sv, lambda v: (v & 1) | (fn(ci, v & 1) << 1), [qin, out], [qin, out],
           domain=lambda idx, v: ((v >> 1) & 1) == 0)
