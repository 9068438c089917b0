"""
In-process reference engine.

ReferenceEngine implements the flat entry-point surface of the Qrack P/Invoke
library on top of dense numpy state vectors. Every entry point takes the
same arguments, in the same order, as its native counterpart: a handle, then
counts and array buffers (ctypes arrays or plain sequences), then scalars.
Failures never raise out of an entry point; they are recorded in the
per-handle error register and read back with :meth:`get_error`.

Handles are small integers reused lowest-first once destroyed. The engine
refuses to build more than ``max_qubits`` qubits in one instance or to hold
more than ``max_sessions`` live instances; in both cases a handle is still
issued with a nonzero error register, so the caller must destroy it.
"""

import functools
import logging
import numpy as np
from typing import Dict, List, Optional

from . import alu
from .statevector import EngineFault, StateVector
from .. import gates
from ..pauli import Pauli
from ..utils import unpack_table, words_to_int

logger = logging.getLogger(__name__)

INVALID_SID = (1 << 64) - 1


def _ints(n, buffer) -> List[int]:
    return [int(buffer[i]) for i in range(int(n))]


def _entry(default=None, mutates=False):
    """
    Wrap an entry point with the error-register protocol.

    The register for the handle (first argument) is cleared before the call
    and set to 1 if the body raises; ``default`` is returned in that case.
    Mutating calls prune the state afterwards when rounding is enabled.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, sid, *args):
            sid = int(sid)
            self._errors[sid] = 0
            try:
                result = fn(self, sid, *args)
                if mutates:
                    self._sim(sid).prune()
                return result
            except Exception as exc:
                logger.debug("%s(sid=%d) failed: %s", fn.__name__, sid, exc)
                self._errors[sid] = 1
                return default
        return wrapper
    return decorator


class ReferenceEngine:
    """
    Dense state-vector implementation of the engine entry points.

    Args:
        max_qubits: Largest instance the engine will allocate
        max_sessions: Number of handles that can be live at once
        seed: Seed for the shared random generator
        separability_tolerance: Impurity accepted when splitting subsystems
    """

    def __init__(self, max_qubits: int = 24, max_sessions: int = 4096,
                 seed: Optional[int] = None, separability_tolerance: float = 1e-9):
        self.max_qubits = max_qubits
        self.max_sessions = max_sessions
        self.separability_tolerance = separability_tolerance
        self._rng = np.random.default_rng(seed)
        self._simulators: Dict[int, Optional[StateVector]] = {}
        self._errors: Dict[int, int] = {}

    @classmethod
    def from_config(cls, config) -> "ReferenceEngine":
        return cls(
            max_qubits=config.max_qubits,
            max_sessions=config.max_sessions,
            seed=config.seed,
            separability_tolerance=config.separability_tolerance,
        )

    # =========================================================================
    # Handle table and error register
    # =========================================================================

    def live_handles(self) -> List[int]:
        """Handles issued and not yet destroyed."""
        return sorted(self._simulators)

    def _sim(self, sid: int) -> StateVector:
        sim = self._simulators.get(sid)
        if sim is None:
            raise EngineFault(f"No live simulator for sid {sid}")
        return sim

    def _mint(self, sim: Optional[StateVector]) -> int:
        for sid in range(self.max_sessions):
            if sid not in self._simulators:
                self._simulators[sid] = sim
                self._errors[sid] = 0 if sim is not None else 1
                return sid
        logger.debug("Handle space of %d exhausted", self.max_sessions)
        self._errors[INVALID_SID] = 1
        return INVALID_SID

    def _build(self, qubit_count: int) -> int:
        qubit_count = int(qubit_count)
        if qubit_count > self.max_qubits:
            logger.debug("Refusing %d qubits (max %d)", qubit_count, self.max_qubits)
            return self._mint(None)
        return self._mint(StateVector(qubit_count, self._rng))

    def get_error(self, sid) -> int:
        return self._errors.get(int(sid), 0)

    def init_count_type(self, q, tn, md, sd, sh, bdt, pg, zxf, hy, oc, hp) -> int:
        return self._build(q)

    def init_count(self, q, hp) -> int:
        return self._build(q)

    def init_count_pager(self, q, hp) -> int:
        return self._build(q)

    def init_clone(self, sid) -> int:
        sim = self._simulators.get(int(sid))
        return self._mint(sim.copy() if sim is not None else None)

    def destroy(self, sid):
        sid = int(sid)
        if sid in self._simulators:
            del self._simulators[sid]
            self._errors.pop(sid, None)
        else:
            self._errors[sid] = 1

    @_entry()
    def seed(self, sid, s):
        self._sim(sid).rng = np.random.default_rng(int(s))

    @_entry()
    def set_concurrency(self, sid, p):
        self._sim(sid).concurrency = int(p)

    # =========================================================================
    # Probabilities and state access
    # =========================================================================

    @_entry(default=0.0)
    def Prob(self, sid, q) -> float:
        sim = self._sim(sid)
        return sim.prob(sim.position(q))

    @_entry(default=0.0)
    def PermutationProb(self, sid, n, q, c) -> float:
        sim = self._sim(sid)
        positions = sim.positions(_ints(n, q))
        perm = sum(1 << i for i in range(int(n)) if c[i])
        return float(sim.register_distribution(positions)[perm])

    @_entry(default=0.0)
    def PermutationExpectation(self, sid, n, q) -> float:
        sim = self._sim(sid)
        dist = sim.register_distribution(sim.positions(_ints(n, q)))
        return float(np.dot(np.arange(dist.size), dist))

    @_entry(mutates=True)
    def InKet(self, sid, ket):
        sim = self._sim(sid)
        flat = np.array([float(ket[i]) for i in range(2 * sim.amps.size)])
        amps = flat[0::2] + 1j * flat[1::2]
        norm = np.linalg.norm(amps)
        if norm == 0:
            raise EngineFault("Cannot load a zero ket")
        sim.amps = amps / norm

    @_entry()
    def OutKet(self, sid, ket):
        sim = self._sim(sid)
        for i, amp in enumerate(sim.amps):
            ket[2 * i] = amp.real
            ket[2 * i + 1] = amp.imag

    @_entry(mutates=True)
    def PhaseParity(self, sid, lam, n, q):
        sim = self._sim(sid)
        odd = sim.parity_mask(sim.positions(_ints(n, q)))
        sim.amps = sim.amps * np.where(odd, np.exp(0.5j * lam), np.exp(-0.5j * lam))

    @_entry(default=0.0)
    def JointEnsembleProbability(self, sid, n, b, q) -> float:
        sim = self._sim(sid)
        bases = _ints(n, b)
        positions = sim.positions(_ints(n, q))
        probe = sim.copy()
        probe.to_z_basis(bases, positions)
        odd = probe.parity_mask([p for p, basis in zip(positions, bases) if basis != Pauli.PauliI])
        return float(np.sum(probe.probabilities()[odd]))

    @_entry()
    def ResetAll(self, sid):
        sim = self._sim(sid)
        sim.amps = np.zeros_like(sim.amps)
        sim.amps[0] = 1.0

    @_entry()
    def allocateQubit(self, sid, qid):
        sim = self._sim(sid)
        if sim.num_qubits + 1 > self.max_qubits:
            raise EngineFault("Qubit limit reached")
        sim.compose(np.array([1.0, 0.0], dtype=complex), [int(qid)])

    @_entry(default=False)
    def release(self, sid, q) -> bool:
        sim = self._sim(sid)
        position = sim.position(q)
        clean = sim.prob(position) < 0.01
        if not clean:
            sim.measure(position)
        sim.extract([position], tolerance=1.0)
        return clean

    @_entry(default=0)
    def num_qubits(self, sid) -> int:
        return self._sim(sid).num_qubits

    # =========================================================================
    # Single-qubit gates
    # =========================================================================

    def _gate(self, sid, matrix, targets, controls=(), perm=None):
        sim = self._sim(sid)
        sim.apply_gate(matrix, sim.positions(targets), sim.positions(controls), perm)

    @_entry(mutates=True)
    def X(self, sid, q):
        self._gate(sid, gates.X_gate, [q])

    @_entry(mutates=True)
    def Y(self, sid, q):
        self._gate(sid, gates.Y_gate, [q])

    @_entry(mutates=True)
    def Z(self, sid, q):
        self._gate(sid, gates.Z_gate, [q])

    @_entry(mutates=True)
    def H(self, sid, q):
        self._gate(sid, gates.H_gate, [q])

    @_entry(mutates=True)
    def S(self, sid, q):
        self._gate(sid, gates.S_gate, [q])

    @_entry(mutates=True)
    def T(self, sid, q):
        self._gate(sid, gates.T_gate, [q])

    @_entry(mutates=True)
    def AdjS(self, sid, q):
        self._gate(sid, gates.AdjS_gate, [q])

    @_entry(mutates=True)
    def AdjT(self, sid, q):
        self._gate(sid, gates.AdjT_gate, [q])

    @_entry(mutates=True)
    def U(self, sid, q, theta, phi, lam):
        self._gate(sid, gates.U_gate(theta, phi, lam), [q])

    @_entry(mutates=True)
    def Mtrx(self, sid, m, q):
        self._gate(sid, gates.matrices_from_doubles(m[i] for i in range(8))[0], [q])

    # =========================================================================
    # Controlled gates
    # =========================================================================

    def _controlled(self, sid, matrix, n, c, q, anti=False):
        controls = _ints(n, c)
        self._gate(sid, matrix, [q], controls, 0 if anti else None)

    @_entry(mutates=True)
    def MCX(self, sid, n, c, q):
        self._controlled(sid, gates.X_gate, n, c, q)

    @_entry(mutates=True)
    def MCY(self, sid, n, c, q):
        self._controlled(sid, gates.Y_gate, n, c, q)

    @_entry(mutates=True)
    def MCZ(self, sid, n, c, q):
        self._controlled(sid, gates.Z_gate, n, c, q)

    @_entry(mutates=True)
    def MCH(self, sid, n, c, q):
        self._controlled(sid, gates.H_gate, n, c, q)

    @_entry(mutates=True)
    def MCS(self, sid, n, c, q):
        self._controlled(sid, gates.S_gate, n, c, q)

    @_entry(mutates=True)
    def MCT(self, sid, n, c, q):
        self._controlled(sid, gates.T_gate, n, c, q)

    @_entry(mutates=True)
    def MCAdjS(self, sid, n, c, q):
        self._controlled(sid, gates.AdjS_gate, n, c, q)

    @_entry(mutates=True)
    def MCAdjT(self, sid, n, c, q):
        self._controlled(sid, gates.AdjT_gate, n, c, q)

    @_entry(mutates=True)
    def MCU(self, sid, n, c, q, theta, phi, lam):
        self._controlled(sid, gates.U_gate(theta, phi, lam), n, c, q)

    @_entry(mutates=True)
    def MCMtrx(self, sid, n, c, m, q):
        self._controlled(sid, gates.matrices_from_doubles(m[i] for i in range(8))[0], n, c, q)

    @_entry(mutates=True)
    def MACX(self, sid, n, c, q):
        self._controlled(sid, gates.X_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACY(self, sid, n, c, q):
        self._controlled(sid, gates.Y_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACZ(self, sid, n, c, q):
        self._controlled(sid, gates.Z_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACH(self, sid, n, c, q):
        self._controlled(sid, gates.H_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACS(self, sid, n, c, q):
        self._controlled(sid, gates.S_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACT(self, sid, n, c, q):
        self._controlled(sid, gates.T_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACAdjS(self, sid, n, c, q):
        self._controlled(sid, gates.AdjS_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACAdjT(self, sid, n, c, q):
        self._controlled(sid, gates.AdjT_gate, n, c, q, anti=True)

    @_entry(mutates=True)
    def MACU(self, sid, n, c, q, theta, phi, lam):
        self._controlled(sid, gates.U_gate(theta, phi, lam), n, c, q, anti=True)

    @_entry(mutates=True)
    def MACMtrx(self, sid, n, c, m, q):
        self._controlled(sid, gates.matrices_from_doubles(m[i] for i in range(8))[0], n, c, q, anti=True)

    @_entry(mutates=True)
    def UCMtrx(self, sid, n, c, m, q, p):
        matrix = gates.matrices_from_doubles(m[i] for i in range(8))[0]
        self._gate(sid, matrix, [q], _ints(n, c), int(p))

    @_entry(mutates=True)
    def Multiplex1Mtrx(self, sid, n, c, q, m):
        controls = _ints(n, c)
        blocks = gates.matrices_from_doubles(m[i] for i in range(8 << len(controls)))
        for perm, matrix in enumerate(blocks):
            self._gate(sid, matrix, [q], controls, perm)

    @_entry(mutates=True)
    def MX(self, sid, n, q):
        for t in _ints(n, q):
            self._gate(sid, gates.X_gate, [t])

    @_entry(mutates=True)
    def MY(self, sid, n, q):
        for t in _ints(n, q):
            self._gate(sid, gates.Y_gate, [t])

    @_entry(mutates=True)
    def MZ(self, sid, n, q):
        for t in _ints(n, q):
            self._gate(sid, gates.Z_gate, [t])

    @_entry(mutates=True)
    def R(self, sid, b, phi, q):
        self._gate(sid, gates.R_gate(int(b), phi), [q])

    @_entry(mutates=True)
    def MCR(self, sid, b, phi, n, c, q):
        self._controlled(sid, gates.R_gate(int(b), phi), n, c, q)

    def _exp(self, sid, bases, phi, controls, targets):
        sim = self._sim(sid)
        positions = sim.positions(targets)
        control_positions = sim.positions(controls)
        if set(positions) & set(control_positions):
            raise EngineFault("A qubit cannot be both control and target")
        flipped = sim.copy()
        flipped.apply_paulis(bases, positions)
        rotated = np.cos(phi) * sim.amps + 1j * np.sin(phi) * flipped.amps
        active = sim.control_mask(sim.indices(), control_positions)
        sim.amps = np.where(active, rotated, sim.amps)

    @_entry(mutates=True)
    def Exp(self, sid, n, b, phi, q):
        self._exp(sid, _ints(n, b), phi, [], _ints(n, q))

    @_entry(mutates=True)
    def MCExp(self, sid, n, b, phi, nc, cs, q):
        self._exp(sid, _ints(n, b), phi, _ints(nc, cs), _ints(n, q))

    # =========================================================================
    # Measurement
    # =========================================================================

    @_entry(default=0)
    def M(self, sid, q) -> int:
        sim = self._sim(sid)
        return int(sim.measure(sim.position(q)))

    @_entry(default=0)
    def ForceM(self, sid, q, r) -> int:
        sim = self._sim(sid)
        return int(sim.measure(sim.position(q), forced=bool(r)))

    @_entry(default=0)
    def MAll(self, sid) -> int:
        return self._sim(sid).measure_all()

    @_entry(default=0)
    def Measure(self, sid, n, b, q) -> int:
        sim = self._sim(sid)
        bases = _ints(n, b)
        positions = sim.positions(_ints(n, q))
        sim.to_z_basis(bases, positions)
        odd = sim.parity_mask([p for p, basis in zip(positions, bases) if basis != Pauli.PauliI])
        p_odd = float(np.sum(sim.probabilities()[odd]))
        result = bool(sim.rng.random() < p_odd)
        sim.project(odd if result else ~odd)
        sim.to_z_basis(bases, positions, revert=True)
        return int(result)

    @_entry()
    def MeasureShots(self, sid, n, q, s, m):
        sim = self._sim(sid)
        samples = sim.sample(sim.positions(_ints(n, q)), int(s))
        for i, value in enumerate(samples):
            m[i] = int(value)

    # =========================================================================
    # Two-qubit gates
    # =========================================================================

    @_entry(mutates=True)
    def SWAP(self, sid, qi1, qi2):
        self._gate(sid, gates.SWAP_gate, [qi1, qi2])

    @_entry(mutates=True)
    def ISWAP(self, sid, qi1, qi2):
        self._gate(sid, gates.ISWAP_gate, [qi1, qi2])

    @_entry(mutates=True)
    def AdjISWAP(self, sid, qi1, qi2):
        self._gate(sid, gates.AdjISWAP_gate, [qi1, qi2])

    @_entry(mutates=True)
    def FSim(self, sid, theta, phi, qi1, qi2):
        self._gate(sid, gates.FSim_gate(theta, phi), [qi1, qi2])

    @_entry(mutates=True)
    def CSWAP(self, sid, n, c, qi1, qi2):
        self._gate(sid, gates.SWAP_gate, [qi1, qi2], _ints(n, c))

    @_entry(mutates=True)
    def ACSWAP(self, sid, n, c, qi1, qi2):
        self._gate(sid, gates.SWAP_gate, [qi1, qi2], _ints(n, c), 0)

    # =========================================================================
    # Structure
    # =========================================================================

    @_entry(mutates=True)
    def Compose(self, sid1, sid2, q):
        target = self._sim(sid1)
        source = self._sim(int(sid2))
        if target.num_qubits + source.num_qubits > self.max_qubits:
            raise EngineFault("Qubit limit reached")
        target.compose(source.amps.copy(), _ints(source.num_qubits, q))

    @_entry(default=INVALID_SID)
    def Decompose(self, sid, n, q) -> int:
        sim = self._sim(sid)
        if len(self._simulators) >= self.max_sessions:
            raise EngineFault("Handle space exhausted")
        positions = sim.positions(_ints(n, q))
        amps = sim.extract(positions, self.separability_tolerance)
        part = StateVector(len(positions), sim.rng)
        part.amps = amps
        return self._mint(part)

    @_entry()
    def Dispose(self, sid, n, q):
        sim = self._sim(sid)
        sim.extract(sim.positions(_ints(n, q)), self.separability_tolerance)

    # =========================================================================
    # Boolean logic
    # =========================================================================

    def _logic(self, sid, op, qi1, qi2, qo):
        sim = self._sim(sid)
        a, b, out = sim.positions([qi1, qi2]) + [sim.position(qo)]
        alu.boolean_gate(sim, op, a, b, out)

    def _classical_logic(self, sid, op, ci, qi, qo):
        sim = self._sim(sid)
        alu.classical_boolean_gate(sim, op, bool(ci), sim.position(qi), sim.position(qo))

    @_entry(mutates=True)
    def AND(self, sid, qi1, qi2, qo):
        self._logic(sid, "AND", qi1, qi2, qo)

    @_entry(mutates=True)
    def OR(self, sid, qi1, qi2, qo):
        self._logic(sid, "OR", qi1, qi2, qo)

    @_entry(mutates=True)
    def XOR(self, sid, qi1, qi2, qo):
        self._logic(sid, "XOR", qi1, qi2, qo)

    @_entry(mutates=True)
    def NAND(self, sid, qi1, qi2, qo):
        self._logic(sid, "NAND", qi1, qi2, qo)

    @_entry(mutates=True)
    def NOR(self, sid, qi1, qi2, qo):
        self._logic(sid, "NOR", qi1, qi2, qo)

    @_entry(mutates=True)
    def XNOR(self, sid, qi1, qi2, qo):
        self._logic(sid, "XNOR", qi1, qi2, qo)

    @_entry(mutates=True)
    def CLAND(self, sid, ci, qi, qo):
        self._classical_logic(sid, "AND", ci, qi, qo)

    @_entry(mutates=True)
    def CLOR(self, sid, ci, qi, qo):
        self._classical_logic(sid, "OR", ci, qi, qo)

    @_entry(mutates=True)
    def CLXOR(self, sid, ci, qi, qo):
        self._classical_logic(sid, "XOR", ci, qi, qo)

    @_entry(mutates=True)
    def CLNAND(self, sid, ci, qi, qo):
        self._classical_logic(sid, "NAND", ci, qi, qo)

    @_entry(mutates=True)
    def CLNOR(self, sid, ci, qi, qo):
        self._classical_logic(sid, "NOR", ci, qi, qo)

    @_entry(mutates=True)
    def CLXNOR(self, sid, ci, qi, qo):
        self._classical_logic(sid, "XNOR", ci, qi, qo)

    # =========================================================================
    # Fourier transform
    # =========================================================================

    @_entry(mutates=True)
    def QFT(self, sid, n, c):
        qubits = _ints(n, c)
        self._gate(sid, gates.QFT_matrix(len(qubits)), qubits)

    @_entry(mutates=True)
    def IQFT(self, sid, n, c):
        qubits = _ints(n, c)
        self._gate(sid, gates.QFT_matrix(len(qubits), inverse=True), qubits)

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _arith(self, sid, fn, *registers, controls=()):
        sim = self._sim(sid)
        fn(sim, *[sim.positions(r) for r in registers], controls=sim.positions(controls))

    @_entry(mutates=True)
    def ADD(self, sid, na, a, n, q):
        value = words_to_int(_ints(na, a))
        self._arith(sid, lambda sim, t, controls: alu.add(sim, value, t, controls), _ints(n, q))

    @_entry(mutates=True)
    def SUB(self, sid, na, a, n, q):
        value = -words_to_int(_ints(na, a))
        self._arith(sid, lambda sim, t, controls: alu.add(sim, value, t, controls), _ints(n, q))

    @_entry(mutates=True)
    def ADDS(self, sid, na, a, s, n, q):
        sim = self._sim(sid)
        alu.add_signed(sim, words_to_int(_ints(na, a)), sim.position(s), sim.positions(_ints(n, q)))

    @_entry(mutates=True)
    def SUBS(self, sid, na, a, s, n, q):
        sim = self._sim(sid)
        alu.add_signed(sim, -words_to_int(_ints(na, a)), sim.position(s), sim.positions(_ints(n, q)))

    @_entry(mutates=True)
    def MCADD(self, sid, na, a, nc, c, nq, q):
        value = words_to_int(_ints(na, a))
        self._arith(sid, lambda sim, t, controls: alu.add(sim, value, t, controls),
                    _ints(nq, q), controls=_ints(nc, c))

    @_entry(mutates=True)
    def MCSUB(self, sid, na, a, nc, c, nq, q):
        value = -words_to_int(_ints(na, a))
        self._arith(sid, lambda sim, t, controls: alu.add(sim, value, t, controls),
                    _ints(nq, q), controls=_ints(nc, c))

    def _carry_op(self, sid, fn, na, a, n, q, o, controls=()):
        value = words_to_int(_ints(na, a))
        self._arith(sid, lambda sim, t, r, controls: fn(sim, value, t, r, controls),
                    _ints(n, q), _ints(n, o), controls=controls)

    def _mod_op(self, sid, fn, na, a, m, n, q, o, controls=()):
        value = words_to_int(_ints(na, a))
        modulus = words_to_int(_ints(na, m))
        self._arith(sid, lambda sim, t, r, controls: fn(sim, value, modulus, t, r, controls),
                    _ints(n, q), _ints(n, o), controls=controls)

    @_entry(mutates=True)
    def MUL(self, sid, na, a, n, q, o):
        self._carry_op(sid, alu.mul, na, a, n, q, o)

    @_entry(mutates=True)
    def DIV(self, sid, na, a, n, q, o):
        self._carry_op(sid, alu.div, na, a, n, q, o)

    @_entry(mutates=True)
    def MULN(self, sid, na, a, m, n, q, o):
        self._mod_op(sid, alu.mul_mod, na, a, m, n, q, o)

    @_entry(mutates=True)
    def DIVN(self, sid, na, a, m, n, q, o):
        self._mod_op(sid, alu.div_mod, na, a, m, n, q, o)

    @_entry(mutates=True)
    def POWN(self, sid, na, a, m, n, q, o):
        self._mod_op(sid, alu.pow_mod, na, a, m, n, q, o)

    @_entry(mutates=True)
    def MCMUL(self, sid, na, a, nc, c, n, q, o):
        self._carry_op(sid, alu.mul, na, a, n, q, o, controls=_ints(nc, c))

    @_entry(mutates=True)
    def MCDIV(self, sid, na, a, nc, c, n, q, o):
        self._carry_op(sid, alu.div, na, a, n, q, o, controls=_ints(nc, c))

    @_entry(mutates=True)
    def MCMULN(self, sid, na, a, nc, c, m, n, q, o):
        self._mod_op(sid, alu.mul_mod, na, a, m, n, q, o, controls=_ints(nc, c))

    @_entry(mutates=True)
    def MCDIVN(self, sid, na, a, nc, c, m, n, q, o):
        self._mod_op(sid, alu.div_mod, na, a, m, n, q, o, controls=_ints(nc, c))

    @_entry(mutates=True)
    def MCPOWN(self, sid, na, a, nc, c, m, n, q, o):
        self._mod_op(sid, alu.pow_mod, na, a, m, n, q, o, controls=_ints(nc, c))

    # =========================================================================
    # Table lookups
    # =========================================================================

    @_entry(mutates=True)
    def LDA(self, sid, ni, qi, nv, qv, t):
        sim = self._sim(sid)
        table = unpack_table(t, int(ni), int(nv))
        alu.load(sim, sim.positions(_ints(ni, qi)), sim.positions(_ints(nv, qv)), table)

    @_entry(mutates=True)
    def ADC(self, sid, s, ni, qi, nv, qv, t):
        sim = self._sim(sid)
        table = unpack_table(t, int(ni), int(nv))
        alu.add_with_carry(sim, sim.position(s), sim.positions(_ints(ni, qi)),
                           sim.positions(_ints(nv, qv)), table)

    @_entry(mutates=True)
    def SBC(self, sid, s, ni, qi, nv, qv, t):
        sim = self._sim(sid)
        table = unpack_table(t, int(ni), int(nv))
        alu.add_with_carry(sim, sim.position(s), sim.positions(_ints(ni, qi)),
                           sim.positions(_ints(nv, qv)), table, subtract=True)

    @_entry(mutates=True)
    def Hash(self, sid, n, q, t):
        sim = self._sim(sid)
        table = unpack_table(t, int(n), int(n))
        alu.hash_register(sim, sim.positions(_ints(n, q)), table)

    # =========================================================================
    # Separability and approximation
    # =========================================================================

    @_entry(default=False)
    def TrySeparate1Qb(self, sid, qi1) -> bool:
        sim = self._sim(sid)
        return sim.impurity([sim.position(qi1)]) <= self.separability_tolerance

    @_entry(default=False)
    def TrySeparate2Qb(self, sid, qi1, qi2) -> bool:
        sim = self._sim(sid)
        return sim.impurity(sim.positions([qi1, qi2])) <= self.separability_tolerance

    @_entry(default=False)
    def TrySeparateTol(self, sid, n, q, tol) -> bool:
        sim = self._sim(sid)
        return sim.impurity(sim.positions(_ints(n, q))) <= float(tol)

    @_entry(default=0.0)
    def GetUnitaryFidelity(self, sid) -> float:
        return self._sim(sid).fidelity

    @_entry()
    def ResetUnitaryFidelity(self, sid):
        self._sim(sid).fidelity = 1.0

    @_entry()
    def SetSdrp(self, sid, sdrp):
        sdrp = float(sdrp)
        if not 0.0 <= sdrp <= 1.0:
            raise EngineFault("Rounding parameter must be in [0, 1]")
        self._sim(sid).sdrp = sdrp

    @_entry()
    def SetReactiveSeparate(self, sid, irs):
        self._sim(sid).reactive_separate = bool(irs)

    @_entry()
    def SetTInjection(self, sid, iti):
        self._sim(sid).t_injection = bool(iti)
