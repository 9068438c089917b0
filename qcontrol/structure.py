"""
Structural operations and state introspection.

Composition moves the state of another session into this one under new qubit
ids; decomposition splits a separable subsystem off into a new session. The
remaining methods read probabilities and expectation values, tune the
engine's approximation settings, and move the full ket in and out.
"""

import numpy as np
from typing import Sequence

from . import marshal
from .engine import INVALID_SID
from .errors import EngineError, ShapeMismatch
from .pauli import Pauli
from .result import Err, Result
from .session import Session, operation


class StructureOps:
    """Composition, allocation and introspection for :class:`~qcontrol.simulator.Simulator`."""

    # =========================================================================
    # Composition
    # =========================================================================

    @operation
    def compose(self, other: Session, q: Sequence[int]) -> Result:
        """
        Append ``other``'s qubits to this session.

        ``other`` keeps its own handle and state; its qubits appear here with
        the ids in ``q`` (one per qubit of ``other``, in order).

        Args:
            other: Another LIVE session on the same engine
            q: New qubit ids

        Returns:
            Ok(None), Err(ShapeMismatch) if ``other`` is not usable or ``q``
            has the wrong length, Err(EngineError) from the engine
        """
        if not isinstance(other, Session) or not other.is_live:
            raise ShapeMismatch("compose needs a live session to read from")
        if other is self:
            raise ShapeMismatch("compose needs a second session, not this one")
        if other.engine is not self._engine:
            raise ShapeMismatch("compose needs sessions issued by the same engine")
        count = other.num_qubits()
        if count.is_err:
            return count
        if count.value != len(q):
            raise ShapeMismatch(f"compose: {len(q)} ids for {count.value} qubits")
        return self._invoke("Compose", other.sid, marshal.uint_array(q))

    @operation
    def decompose(self, q: Sequence[int]) -> Result:
        """
        Split the separable subsystem ``q`` off into a new session.

        The new session's qubits are numbered 0..len(q)-1 in the order given.
        If the engine reports an error any handle it returned is destroyed.

        Returns:
            Ok(new session of the same type) or Err(EngineError)
        """
        sid = self._engine.Decompose(self._sid, len(q), marshal.uint_array(q))
        code = self._engine.get_error(self._sid)
        if code:
            if sid != INVALID_SID:
                self._engine.destroy(sid)
            return Err(EngineError("Decompose", self._sid, code))
        return type(self)._adopt(self._engine, "Decompose", sid)

    @operation
    def dispose(self, q: Sequence[int]) -> Result:
        """Discard the separable subsystem ``q``."""
        return self._invoke("Dispose", len(q), marshal.uint_array(q))

    @operation
    def allocate_qubit(self, qid: int) -> Result:
        """Add a new qubit in |0⟩ under id ``qid``."""
        return self._invoke("allocateQubit", int(qid))

    @operation
    def release(self, q: int) -> Result:
        """
        Remove qubit ``q``.

        Returns:
            Ok(True) if the qubit was already |0⟩, Ok(False) if it had to be
            measured first
        """
        return self._invoke("release", int(q), convert=bool)

    @operation
    def num_qubits(self) -> Result:
        return self._invoke("num_qubits", convert=int)

    # =========================================================================
    # Probabilities
    # =========================================================================

    @operation
    def prob(self, q: int) -> Result:
        """Probability that ``q`` measures |1⟩."""
        return self._invoke("Prob", int(q), convert=float)

    @operation
    def prob_perm(self, q: Sequence[int], c: Sequence[bool]) -> Result:
        """Probability that the qubits ``q`` read the bit values ``c``."""
        marshal.check_same_length("prob_perm qubits vs outcomes", q, c)
        return self._invoke("PermutationProb", len(q), marshal.uint_array(q), marshal.bool_array(c),
                            convert=float)

    @operation
    def permutation_expectation(self, q: Sequence[int]) -> Result:
        """Expectation of the register value of ``q`` (q[0] = LSB)."""
        return self._invoke("PermutationExpectation", len(q), marshal.uint_array(q), convert=float)

    @operation
    def joint_ensemble_probability(self, b: Sequence[Pauli], q: Sequence[int]) -> Result:
        """Probability that measuring the Pauli string ``b`` on ``q`` gives odd parity."""
        marshal.check_same_length("joint ensemble bases vs qubits", b, q)
        return self._invoke("JointEnsembleProbability", len(b), marshal.pauli_array(b),
                            marshal.uint_array(q), convert=float)

    @operation
    def phase_parity(self, la: float, q: Sequence[int]) -> Result:
        """Phase e^{iλ/2} on odd parity of ``q`` and e^{-iλ/2} on even parity."""
        return self._invoke("PhaseParity", float(la), len(q), marshal.uint_array(q))

    # =========================================================================
    # Separability and approximation
    # =========================================================================

    @operation
    def try_separate_1qb(self, qi1: int) -> Result:
        return self._invoke("TrySeparate1Qb", int(qi1), convert=bool)

    @operation
    def try_separate_2qb(self, qi1: int, qi2: int) -> Result:
        return self._invoke("TrySeparate2Qb", int(qi1), int(qi2), convert=bool)

    @operation
    def try_separate_tolerance(self, qs: Sequence[int], t: float) -> Result:
        """Whether ``qs`` can be separated within tolerance ``t``."""
        return self._invoke("TrySeparateTol", len(qs), marshal.uint_array(qs), float(t), convert=bool)

    @operation
    def get_unitary_fidelity(self) -> Result:
        """Fidelity estimate accumulated by rounding since the last reset."""
        return self._invoke("GetUnitaryFidelity", convert=float)

    @operation
    def reset_unitary_fidelity(self) -> Result:
        return self._invoke("ResetUnitaryFidelity")

    @operation
    def set_sdrp(self, sdrp: float) -> Result:
        """Set the rounding threshold; 0 disables rounding."""
        return self._invoke("SetSdrp", float(sdrp))

    @operation
    def set_reactive_separate(self, irs: bool) -> Result:
        return self._invoke("SetReactiveSeparate", bool(irs))

    @operation
    def set_t_injection(self, iti: bool) -> Result:
        return self._invoke("SetTInjection", bool(iti))

    # =========================================================================
    # Ket access
    # =========================================================================

    @operation
    def out_ket(self) -> Result:
        """
        Copy out the state vector.

        Returns:
            Ok(complex ndarray of length 2**num_qubits), single precision
        """
        count = self.num_qubits()
        if count.is_err:
            return count
        buffer = marshal.float_array([0.0] * (2 << count.value))
        result = self._invoke("OutKet", buffer)
        flat = np.array(buffer[:], dtype=np.float64)
        return result.map(lambda _: flat[0::2] + 1j * flat[1::2])

    @operation
    def in_ket(self, ket) -> Result:
        """
        Overwrite the state vector.

        Args:
            ket: 2**num_qubits complex amplitudes, or 2 * 2**num_qubits
                 interleaved (re, im) floats

        Returns:
            Ok(None), or Err(ShapeMismatch) if ``ket`` has the wrong length
        """
        count = self.num_qubits()
        if count.is_err:
            return count
        ket = np.asarray(ket).reshape(-1)
        if np.iscomplexobj(ket):
            flat = np.empty(2 * ket.size)
            flat[0::2] = ket.real
            flat[1::2] = ket.imag
        else:
            flat = ket.astype(float)
        if flat.size != 2 << count.value:
            raise ShapeMismatch(f"in_ket needs {2 << count.value} floats, got {flat.size}")
        return self._invoke("InKet", marshal.float_array(flat))
