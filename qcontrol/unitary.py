"""
Gate and measurement operations.

Single-qubit gates take a qubit id. Controlled variants take the control ids
first; ``mc*`` gates fire when every control is |1⟩, ``mac*`` gates when
every control is |0⟩, and :meth:`UnitaryOps.ucmtrx` on an arbitrary control
pattern. Angles are in radians.
"""

from typing import Sequence

from . import marshal
from .pauli import Pauli
from .result import Result
from .session import operation


class UnitaryOps:
    """Gates, rotations and measurement for :class:`~qcontrol.simulator.Simulator`."""

    def _single(self, entry: str, q: int) -> Result:
        return self._invoke(entry, int(q))

    def _controlled(self, entry: str, c: Sequence[int], q: int) -> Result:
        return self._invoke(entry, len(c), marshal.uint_array(c), int(q))

    # =========================================================================
    # Single-qubit gates
    # =========================================================================

    @operation
    def x(self, q: int) -> Result:
        """Pauli X (NOT)."""
        return self._single("X", q)

    @operation
    def y(self, q: int) -> Result:
        return self._single("Y", q)

    @operation
    def z(self, q: int) -> Result:
        return self._single("Z", q)

    @operation
    def h(self, q: int) -> Result:
        """Hadamard."""
        return self._single("H", q)

    @operation
    def s(self, q: int) -> Result:
        return self._single("S", q)

    @operation
    def t(self, q: int) -> Result:
        return self._single("T", q)

    @operation
    def adjs(self, q: int) -> Result:
        """Inverse of S."""
        return self._single("AdjS", q)

    @operation
    def adjt(self, q: int) -> Result:
        """Inverse of T."""
        return self._single("AdjT", q)

    @operation
    def u(self, q: int, th: float, ph: float, la: float) -> Result:
        """
        General single-qubit gate U(θ, φ, λ).

        Args:
            q: Target qubit
            th: θ
            ph: φ
            la: λ
        """
        return self._invoke("U", int(q), float(th), float(ph), float(la))

    @operation
    def mtrx(self, m, q: int) -> Result:
        """
        Apply an arbitrary 2x2 operator.

        Args:
            m: Mtrx, 2x2 array, or 8 doubles (re, im) in row-major order
            q: Target qubit
        """
        return self._invoke("Mtrx", marshal.mtrx_doubles(m), int(q))

    @operation
    def mx(self, q: Sequence[int]) -> Result:
        """X on every listed qubit."""
        return self._invoke("MX", len(q), marshal.uint_array(q))

    @operation
    def my(self, q: Sequence[int]) -> Result:
        return self._invoke("MY", len(q), marshal.uint_array(q))

    @operation
    def mz(self, q: Sequence[int]) -> Result:
        return self._invoke("MZ", len(q), marshal.uint_array(q))

    @operation
    def r(self, b: Pauli, ph: float, q: int) -> Result:
        """Rotation exp(-iφ/2 σ_b) about Pauli axis ``b``."""
        return self._invoke("R", marshal.pauli(b), float(ph), int(q))

    @operation
    def exp(self, b: Sequence[Pauli], ph: float, q: Sequence[int]) -> Result:
        """
        exp(iφ P) for the Pauli string ``P`` = b[0] ⊗ b[1] ⊗ ... on ``q``.

        Returns Err(ShapeMismatch) if ``b`` and ``q`` differ in length.
        """
        marshal.check_same_length("exp bases vs qubits", b, q)
        return self._invoke("Exp", len(b), marshal.pauli_array(b), float(ph), marshal.uint_array(q))

    # =========================================================================
    # Controlled gates
    # =========================================================================

    @operation
    def mcx(self, c: Sequence[int], q: int) -> Result:
        """X on ``q`` if all of ``c`` are |1⟩."""
        return self._controlled("MCX", c, q)

    @operation
    def mcy(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCY", c, q)

    @operation
    def mcz(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCZ", c, q)

    @operation
    def mch(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCH", c, q)

    @operation
    def mcs(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCS", c, q)

    @operation
    def mct(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCT", c, q)

    @operation
    def mcadjs(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCAdjS", c, q)

    @operation
    def mcadjt(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MCAdjT", c, q)

    @operation
    def mcu(self, c: Sequence[int], q: int, th: float, ph: float, la: float) -> Result:
        return self._invoke("MCU", len(c), marshal.uint_array(c), int(q), float(th), float(ph), float(la))

    @operation
    def mcmtrx(self, c: Sequence[int], m, q: int) -> Result:
        return self._invoke("MCMtrx", len(c), marshal.uint_array(c), marshal.mtrx_doubles(m), int(q))

    @operation
    def macx(self, c: Sequence[int], q: int) -> Result:
        """X on ``q`` if all of ``c`` are |0⟩."""
        return self._controlled("MACX", c, q)

    @operation
    def macy(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACY", c, q)

    @operation
    def macz(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACZ", c, q)

    @operation
    def mach(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACH", c, q)

    @operation
    def macs(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACS", c, q)

    @operation
    def mact(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACT", c, q)

    @operation
    def macadjs(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACAdjS", c, q)

    @operation
    def macadjt(self, c: Sequence[int], q: int) -> Result:
        return self._controlled("MACAdjT", c, q)

    @operation
    def macu(self, c: Sequence[int], q: int, th: float, ph: float, la: float) -> Result:
        return self._invoke("MACU", len(c), marshal.uint_array(c), int(q), float(th), float(ph), float(la))

    @operation
    def macmtrx(self, c: Sequence[int], m, q: int) -> Result:
        return self._invoke("MACMtrx", len(c), marshal.uint_array(c), marshal.mtrx_doubles(m), int(q))

    @operation
    def ucmtrx(self, c: Sequence[int], m, q: int, p: int) -> Result:
        """
        Apply ``m`` to ``q`` when the controls match the bit pattern ``p``.

        Bit i of ``p`` is the required value of ``c[i]``.
        """
        return self._invoke("UCMtrx", len(c), marshal.uint_array(c), marshal.mtrx_doubles(m), int(q), int(p))

    @operation
    def multiplex1_mtrx(self, c: Sequence[int], q: int, m) -> Result:
        """
        Uniformly controlled gate: operator ``m[k]`` acts on ``q`` when the
        controls read k.

        Args:
            c: Control qubits (c[0] is the least significant bit of k)
            q: Target qubit
            m: 2**len(c) operators, or 8 * 2**len(c) doubles
        """
        return self._invoke("Multiplex1Mtrx", len(c), marshal.uint_array(c), int(q),
                            marshal.multiplex_doubles(m, len(c)))

    @operation
    def mcr(self, b: Pauli, ph: float, c: Sequence[int], q: int) -> Result:
        return self._invoke("MCR", marshal.pauli(b), float(ph), len(c), marshal.uint_array(c), int(q))

    @operation
    def mcexp(self, b: Sequence[Pauli], ph: float, c: Sequence[int], q: Sequence[int]) -> Result:
        """Controlled :meth:`exp`."""
        marshal.check_same_length("mcexp bases vs qubits", b, q)
        return self._invoke("MCExp", len(b), marshal.pauli_array(b), float(ph),
                            len(c), marshal.uint_array(c), marshal.uint_array(q))

    # =========================================================================
    # Two-qubit gates
    # =========================================================================

    @operation
    def swap(self, qi1: int, qi2: int) -> Result:
        return self._invoke("SWAP", int(qi1), int(qi2))

    @operation
    def iswap(self, qi1: int, qi2: int) -> Result:
        return self._invoke("ISWAP", int(qi1), int(qi2))

    @operation
    def adjiswap(self, qi1: int, qi2: int) -> Result:
        return self._invoke("AdjISWAP", int(qi1), int(qi2))

    @operation
    def fsim(self, th: float, ph: float, qi1: int, qi2: int) -> Result:
        """Fermionic simulation gate."""
        return self._invoke("FSim", float(th), float(ph), int(qi1), int(qi2))

    @operation
    def cswap(self, c: Sequence[int], qi1: int, qi2: int) -> Result:
        """Fredkin gate with any number of controls."""
        return self._invoke("CSWAP", len(c), marshal.uint_array(c), int(qi1), int(qi2))

    @operation
    def acswap(self, c: Sequence[int], qi1: int, qi2: int) -> Result:
        return self._invoke("ACSWAP", len(c), marshal.uint_array(c), int(qi1), int(qi2))

    @operation
    def qft(self, qs: Sequence[int]) -> Result:
        """Quantum Fourier transform over the register ``qs`` (qs[0] = LSB)."""
        return self._invoke("QFT", len(qs), marshal.uint_array(qs))

    @operation
    def iqft(self, qs: Sequence[int]) -> Result:
        return self._invoke("IQFT", len(qs), marshal.uint_array(qs))

    # =========================================================================
    # Measurement
    # =========================================================================

    @operation
    def m(self, q: int) -> Result:
        """Measure one qubit in the Z basis; Ok(bool)."""
        return self._invoke("M", int(q), convert=bool)

    @operation
    def force_m(self, q: int, r: bool) -> Result:
        """
        Collapse ``q`` to the outcome ``r``.

        Returns Err(EngineError) if ``r`` has zero probability.
        """
        return self._invoke("ForceM", int(q), bool(r), convert=bool)

    @operation
    def m_all(self) -> Result:
        """Measure every qubit; Ok(permutation as int)."""
        return self._invoke("MAll", convert=int)

    @operation
    def measure_pauli(self, b: Sequence[Pauli], q: Sequence[int]) -> Result:
        """
        Measure the parity of the Pauli string ``b`` on ``q``.

        Returns:
            Ok(True) for eigenvalue -1, Ok(False) for +1
        """
        marshal.check_same_length("measure bases vs qubits", b, q)
        return self._invoke("Measure", len(b), marshal.pauli_array(b), marshal.uint_array(q), convert=bool)

    @operation
    def measure_shots(self, q: Sequence[int], s: int) -> Result:
        """
        Sample the register ``q`` ``s`` times without collapsing the state.

        Returns:
            Ok(list of register values, q[0] as the least significant bit)
        """
        shots = int(s)
        out = marshal.output_array(shots)
        result = self._invoke("MeasureShots", len(q), marshal.uint_array(q), shots, out)
        return result.map(lambda _: [int(v) for v in out])

    @operation
    def reset_all(self) -> Result:
        """Return every qubit to |0⟩."""
        return self._invoke("ResetAll")
