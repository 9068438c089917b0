"""
Register arithmetic, table lookups and boolean logic.

Classical operands (``a``, the modulus ``m``) are non-negative integers or
lists of 64-bit words, low word first. Quantum registers are lists of qubit
ids read little-endian.

Multiplication, division and the modular operations take a second register
(``o``) of the same width: the carry for ``mul``/``div``, the result for the
modular forms. Modular operands and moduli must use the same number of words.
"""

from typing import Sequence, Tuple, Union

from . import marshal
from .result import Result
from .session import operation

Classical = Union[int, Sequence[int]]


def _operands(a: Classical, m: Classical) -> Tuple[list, list]:
    a_words, m_words = marshal.words(a), marshal.words(m)
    if isinstance(a, int) and isinstance(m, int):
        width = max(len(a_words), len(m_words))
        a_words += [0] * (width - len(a_words))
        m_words += [0] * (width - len(m_words))
    marshal.check_same_length("operand vs modulus words", a_words, m_words)
    return a_words, m_words


class ArithmeticOps:
    """ALU operations for :class:`~qcontrol.simulator.Simulator`."""

    # =========================================================================
    # Addition
    # =========================================================================

    def _add_like(self, entry: str, a: Classical, q: Sequence[int]) -> Result:
        aw = marshal.words(a)
        return self._invoke(entry, len(aw), marshal.uint_array(aw), len(q), marshal.uint_array(q))

    @operation
    def add(self, a: Classical, q: Sequence[int]) -> Result:
        """|x⟩ → |x + a mod 2^n⟩ on register ``q``."""
        return self._add_like("ADD", a, q)

    @operation
    def sub(self, a: Classical, q: Sequence[int]) -> Result:
        return self._add_like("SUB", a, q)

    @operation
    def adds(self, a: Classical, s: int, q: Sequence[int]) -> Result:
        """
        Signed addition with overflow flag ``s``.

        Where signed overflow occurs and ``s`` is |1⟩ the amplitude's phase is
        flipped.
        """
        aw = marshal.words(a)
        return self._invoke("ADDS", len(aw), marshal.uint_array(aw), int(s), len(q), marshal.uint_array(q))

    @operation
    def subs(self, a: Classical, s: int, q: Sequence[int]) -> Result:
        aw = marshal.words(a)
        return self._invoke("SUBS", len(aw), marshal.uint_array(aw), int(s), len(q), marshal.uint_array(q))

    def _mc_add_like(self, entry: str, a: Classical, c: Sequence[int], q: Sequence[int]) -> Result:
        aw = marshal.words(a)
        return self._invoke(entry, len(aw), marshal.uint_array(aw), len(c), marshal.uint_array(c),
                            len(q), marshal.uint_array(q))

    @operation
    def mcadd(self, a: Classical, c: Sequence[int], q: Sequence[int]) -> Result:
        return self._mc_add_like("MCADD", a, c, q)

    @operation
    def mcsub(self, a: Classical, c: Sequence[int], q: Sequence[int]) -> Result:
        return self._mc_add_like("MCSUB", a, c, q)

    # =========================================================================
    # Multiplication and division
    # =========================================================================

    def _mul_like(self, entry: str, a: Classical, q: Sequence[int], o: Sequence[int],
                  c: Sequence[int] = None) -> Result:
        marshal.check_same_length(f"{entry} register vs carry", q, o)
        aw = marshal.words(a)
        controls = () if c is None else (len(c), marshal.uint_array(c))
        return self._invoke(entry, len(aw), marshal.uint_array(aw), *controls,
                            len(q), marshal.uint_array(q), marshal.uint_array(o))

    def _mod_like(self, entry: str, a: Classical, m: Classical, q: Sequence[int], o: Sequence[int],
                  c: Sequence[int] = None) -> Result:
        marshal.check_same_length(f"{entry} register vs result", q, o)
        aw, mw = _operands(a, m)
        controls = () if c is None else (len(c), marshal.uint_array(c))
        return self._invoke(entry, len(aw), marshal.uint_array(aw), *controls, marshal.uint_array(mw),
                            len(q), marshal.uint_array(q), marshal.uint_array(o))

    @operation
    def mul(self, a: Classical, q: Sequence[int], o: Sequence[int]) -> Result:
        """
        Multiply register ``q`` by ``a``; the high half of the product goes to ``o``.

        Args:
            a: Classical multiplier
            q: Register to multiply
            o: Carry register, same length as ``q`` and expected to hold zero
        """
        return self._mul_like("MUL", a, q, o)

    @operation
    def div(self, a: Classical, q: Sequence[int], o: Sequence[int]) -> Result:
        """Inverse of :meth:`mul`."""
        return self._mul_like("DIV", a, q, o)

    @operation
    def muln(self, a: Classical, m: Classical, q: Sequence[int], o: Sequence[int]) -> Result:
        """|x⟩|0⟩ → |x⟩|x·a mod m⟩."""
        return self._mod_like("MULN", a, m, q, o)

    @operation
    def divn(self, a: Classical, m: Classical, q: Sequence[int], o: Sequence[int]) -> Result:
        return self._mod_like("DIVN", a, m, q, o)

    @operation
    def pown(self, a: Classical, m: Classical, q: Sequence[int], o: Sequence[int]) -> Result:
        """|x⟩|0⟩ → |x⟩|a^x mod m⟩."""
        return self._mod_like("POWN", a, m, q, o)

    @operation
    def mcmul(self, a: Classical, c: Sequence[int], q: Sequence[int], o: Sequence[int]) -> Result:
        return self._mul_like("MCMUL", a, q, o, c)

    @operation
    def mcdiv(self, a: Classical, c: Sequence[int], q: Sequence[int], o: Sequence[int]) -> Result:
        return self._mul_like("MCDIV", a, q, o, c)

    @operation
    def mcmuln(self, a: Classical, c: Sequence[int], m: Classical, q: Sequence[int],
               o: Sequence[int]) -> Result:
        return self._mod_like("MCMULN", a, m, q, o, c)

    @operation
    def mcdivn(self, a: Classical, c: Sequence[int], m: Classical, q: Sequence[int],
               o: Sequence[int]) -> Result:
        return self._mod_like("MCDIVN", a, m, q, o, c)

    @operation
    def mcpown(self, a: Classical, c: Sequence[int], m: Classical, q: Sequence[int],
               o: Sequence[int]) -> Result:
        return self._mod_like("MCPOWN", a, m, q, o, c)

    # =========================================================================
    # Table lookups
    # =========================================================================

    @operation
    def lda(self, qi: Sequence[int], qv: Sequence[int], t) -> Result:
        """
        Load ``t[index]`` into the value register.

        Args:
            qi: Index register
            qv: Value register
            t: Byte table, one little-endian entry per index value
               (see :func:`qcontrol.utils.pack_table`)
        """
        marshal.check_table(t, len(qi), len(qv))
        return self._invoke("LDA", len(qi), marshal.uint_array(qi), len(qv), marshal.uint_array(qv),
                            marshal.byte_array(t))

    @operation
    def adc(self, s: int, qi: Sequence[int], qv: Sequence[int], t) -> Result:
        """Add ``t[index]`` to the value register with carry qubit ``s``."""
        marshal.check_table(t, len(qi), len(qv))
        return self._invoke("ADC", int(s), len(qi), marshal.uint_array(qi), len(qv),
                            marshal.uint_array(qv), marshal.byte_array(t))

    @operation
    def sbc(self, s: int, qi: Sequence[int], qv: Sequence[int], t) -> Result:
        """Subtract ``t[index]`` from the value register with borrow qubit ``s``."""
        marshal.check_table(t, len(qi), len(qv))
        return self._invoke("SBC", int(s), len(qi), marshal.uint_array(qi), len(qv),
                            marshal.uint_array(qv), marshal.byte_array(t))

    @operation
    def hash(self, q: Sequence[int], t) -> Result:
        """Replace the register value x with t[x]; ``t`` must be a permutation."""
        marshal.check_table(t, len(q), 1)
        return self._invoke("Hash", len(q), marshal.uint_array(q), marshal.byte_array(t))

    # =========================================================================
    # Boolean logic
    # =========================================================================

    def _logic(self, entry: str, qi1: int, qi2: int, qo: int) -> Result:
        return self._invoke(entry, int(qi1), int(qi2), int(qo))

    def _classical_logic(self, entry: str, ci: bool, qi: int, qo: int) -> Result:
        return self._invoke(entry, bool(ci), int(qi), int(qo))

    @operation
    def qand(self, qi1: int, qi2: int, qo: int) -> Result:
        """qo ← qi1 AND qi2."""
        return self._logic("AND", qi1, qi2, qo)

    @operation
    def qor(self, qi1: int, qi2: int, qo: int) -> Result:
        return self._logic("OR", qi1, qi2, qo)

    @operation
    def qxor(self, qi1: int, qi2: int, qo: int) -> Result:
        return self._logic("XOR", qi1, qi2, qo)

    @operation
    def qnand(self, qi1: int, qi2: int, qo: int) -> Result:
        return self._logic("NAND", qi1, qi2, qo)

    @operation
    def qnor(self, qi1: int, qi2: int, qo: int) -> Result:
        return self._logic("NOR", qi1, qi2, qo)

    @operation
    def qxnor(self, qi1: int, qi2: int, qo: int) -> Result:
        return self._logic("XNOR", qi1, qi2, qo)

    @operation
    def cland(self, ci: bool, qi: int, qo: int) -> Result:
        """qo ← ci AND qi, with ``ci`` a classical bit."""
        return self._classical_logic("CLAND", ci, qi, qo)

    @operation
    def clor(self, ci: bool, qi: int, qo: int) -> Result:
        return self._classical_logic("CLOR", ci, qi, qo)

    @operation
    def clxor(self, ci: bool, qi: int, qo: int) -> Result:
        return self._classical_logic("CLXOR", ci, qi, qo)

    @operation
    def clnand(self, ci: bool, qi: int, qo: int) -> Result:
        return self._classical_logic("CLNAND", ci, qi, qo)

    @operation
    def clnor(self, ci: bool, qi: int, qo: int) -> Result:
        return self._classical_logic("CLNOR", ci, qi, qo)

    @operation
    def clxnor(self, ci: bool, qi: int, qo: int) -> Result:
        return self._classical_logic("CLXNOR", ci, qi, qo)
