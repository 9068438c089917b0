"""
Dense state-vector storage for the reference engine.

A StateVector holds the amplitudes of one simulator instance as a flat numpy
array of length 2**n. The qubit at position k is bit k of the basis index;
viewed as an n-dimensional tensor of shape (2, ..., 2), position k lives on
axis n - 1 - k.

Qubits are referenced by id. Ids are arbitrary non-negative integers handed
out by the caller; ``ids[k]`` is the id of the qubit at position k. Gates
work on positions, so callers translate ids with :meth:`positions` first.
"""

import numpy as np
from typing import List, Optional, Sequence, Tuple

from ..gates import H_gate, S_gate, AdjS_gate, PAULI_MATRICES
from ..pauli import Pauli

NORM_EPSILON = 1e-12


class EngineFault(Exception):
    """An engine call could not be carried out; it surfaces as a nonzero error register."""


class StateVector:
    """
    Amplitudes and qubit-id bookkeeping for one simulator instance.

    Attributes:
        amps: Flat complex amplitude vector of length 2**n
        ids: Qubit id at each position, position 0 being the least significant bit
        rng: Random generator used for measurement
        sdrp: Rounding threshold; amplitudes with probability below it are pruned
        fidelity: Product of the norms retained by pruning
    """

    def __init__(self, qubit_count: int, rng: np.random.Generator):
        self.amps = np.zeros(2 ** qubit_count, dtype=complex)
        self.amps[0] = 1.0
        self.ids: List[int] = list(range(qubit_count))
        self.rng = rng
        self.sdrp = 0.0
        self.fidelity = 1.0
        self.reactive_separate = True
        self.t_injection = True
        self.concurrency = 1

    def copy(self) -> "StateVector":
        other = StateVector.__new__(StateVector)
        other.__dict__.update(self.__dict__)
        other.amps = self.amps.copy()
        other.ids = list(self.ids)
        return other

    @property
    def num_qubits(self) -> int:
        return len(self.ids)

    # =========================================================================
    # Qubit addressing
    # =========================================================================

    def positions(self, qids: Sequence[int]) -> List[int]:
        """
        Translate qubit ids to positions.

        Raises:
            EngineFault: if an id is unknown or repeated
        """
        qids = [int(q) for q in qids]
        if len(qids) != len(set(qids)):
            raise EngineFault("The same qubit cannot occur twice as an argument")
        try:
            return [self.ids.index(q) for q in qids]
        except ValueError:
            raise EngineFault(f"Unknown qubit id in {qids}") from None

    def position(self, qid: int) -> int:
        return self.positions([qid])[0]

    def _axis(self, position: int) -> int:
        return self.num_qubits - 1 - position

    def indices(self) -> np.ndarray:
        return np.arange(self.amps.size, dtype=np.int64)

    @staticmethod
    def read_register(idx: np.ndarray, positions: Sequence[int]) -> np.ndarray:
        """Value of the register formed by ``positions`` (first = LSB) for each basis index."""
        value = np.zeros_like(idx)
        for j, p in enumerate(positions):
            value |= ((idx >> p) & 1) << j
        return value

    @staticmethod
    def write_register(idx: np.ndarray, positions: Sequence[int], values: np.ndarray) -> np.ndarray:
        """Basis indices with the register at ``positions`` replaced by ``values``."""
        out = idx.copy()
        for j, p in enumerate(positions):
            out &= ~(1 << p)
            out |= ((values >> j) & 1) << p
        return out

    def control_mask(self, idx: np.ndarray, controls: Sequence[int], perm: Optional[int] = None) -> np.ndarray:
        """Boolean mask of basis states where control bit i equals bit i of ``perm`` (all ones by default)."""
        if perm is None:
            perm = (1 << len(controls)) - 1
        mask = np.ones(idx.shape, dtype=bool)
        for i, c in enumerate(controls):
            mask &= ((idx >> c) & 1) == ((perm >> i) & 1)
        return mask

    # =========================================================================
    # Gate application
    # =========================================================================

    def apply_gate(self, gate: np.ndarray, targets: Sequence[int],
                   controls: Sequence[int] = (), perm: Optional[int] = None):
        """
        Apply a gate to the target positions, conditioned on the controls.

        Args:
            gate: 2^k x 2^k matrix; bit j of its row/column index is targets[j]
            targets: Target positions
            controls: Control positions
            perm: Required control values, bit i for controls[i]; all ones if None
        """
        targets = list(targets)
        controls = list(controls)
        if set(targets) & set(controls):
            raise EngineFault("A qubit cannot be both control and target")
        if len(set(controls)) != len(controls):
            raise EngineFault("The same qubit cannot occur twice as a control")
        k = len(targets)
        gate = np.asarray(gate, dtype=complex)
        if gate.shape != (2 ** k, 2 ** k):
            raise EngineFault(f"Gate shape {gate.shape} does not match {k} targets")

        n = self.num_qubits
        if perm is None:
            perm = (1 << len(controls)) - 1

        psi = self.amps.reshape((2,) * n)
        index = [slice(None)] * n
        control_axes = set()
        for i, c in enumerate(controls):
            index[self._axis(c)] = (perm >> i) & 1
            control_axes.add(self._axis(c))
        sub = psi[tuple(index)]

        remaining = [ax for ax in range(n) if ax not in control_axes]
        src = [remaining.index(self._axis(t)) for t in reversed(targets)]
        view = np.moveaxis(sub, src, list(range(k)))
        tensor = gate.reshape((2,) * (2 * k))
        view[...] = np.tensordot(tensor, view, axes=(list(range(k, 2 * k)), list(range(k))))

    def apply_paulis(self, bases: Sequence[int], targets: Sequence[int]):
        for basis, t in zip(bases, targets):
            if Pauli(basis) != Pauli.PauliI:
                self.apply_gate(PAULI_MATRICES[Pauli(basis)], [t])

    def to_z_basis(self, bases: Sequence[int], targets: Sequence[int], revert: bool = False):
        """Rotate X/Y measurement bases onto Z (or back when ``revert``)."""
        for basis, t in zip(bases, targets):
            basis = Pauli(basis)
            if basis == Pauli.PauliX:
                self.apply_gate(H_gate, [t])
            elif basis == Pauli.PauliY:
                if revert:
                    self.apply_gate(H_gate, [t])
                    self.apply_gate(S_gate, [t])
                else:
                    self.apply_gate(AdjS_gate, [t])
                    self.apply_gate(H_gate, [t])

    def remap(self, dest: np.ndarray, keep: Optional[np.ndarray] = None):
        """
        Move the amplitude at basis index i to ``dest[i]``.

        Indices outside ``keep`` are dropped and the state renormalized.
        ``dest`` restricted to the kept indices must be injective.
        """
        new = np.zeros_like(self.amps)
        if keep is None:
            new[dest] = self.amps
        else:
            new[dest[keep]] = self.amps[keep]
        norm = np.linalg.norm(new)
        if norm < NORM_EPSILON:
            raise EngineFault("Operation left no amplitude in its domain")
        self.amps = new / norm

    # =========================================================================
    # Probabilities and measurement
    # =========================================================================

    def probabilities(self) -> np.ndarray:
        return np.abs(self.amps) ** 2

    def prob(self, position: int) -> float:
        """Probability of measuring |1⟩ at ``position``."""
        ones = ((self.indices() >> position) & 1) == 1
        return float(np.sum(self.probabilities()[ones]))

    def project(self, mask: np.ndarray):
        """Keep only the amplitudes selected by ``mask`` and renormalize."""
        self.amps = np.where(mask, self.amps, 0)
        norm = np.linalg.norm(self.amps)
        if norm < NORM_EPSILON:
            raise EngineFault("Projection onto a zero-probability outcome")
        self.amps /= norm

    def measure(self, position: int, forced: Optional[bool] = None) -> bool:
        """
        Collapse one qubit.

        Args:
            position: Position to measure
            forced: Outcome to collapse to; sampled from the state if None

        Returns:
            The outcome
        """
        p1 = self.prob(position)
        if forced is None:
            result = bool(self.rng.random() < p1)
        else:
            result = bool(forced)
            if (p1 if result else 1.0 - p1) < NORM_EPSILON:
                raise EngineFault("Forced measurement result has zero probability")
        self.project(((self.indices() >> position) & 1) == int(result))
        return result

    def set_bit(self, position: int, value: bool):
        """Measure a qubit and flip it if it did not land on ``value``."""
        if self.measure(position) != bool(value):
            idx = self.indices()
            self.remap(idx ^ (1 << position))

    def measure_all(self) -> int:
        probs = self.probabilities()
        outcome = int(self.rng.choice(probs.size, p=probs / probs.sum()))
        self.amps = np.zeros_like(self.amps)
        self.amps[outcome] = 1.0
        return outcome

    def register_distribution(self, positions: Sequence[int]) -> np.ndarray:
        values = self.read_register(self.indices(), positions)
        dist = np.bincount(values, weights=self.probabilities(), minlength=2 ** len(positions))
        return dist / dist.sum()

    def sample(self, positions: Sequence[int], shots: int) -> np.ndarray:
        """Sample register values without collapsing the state."""
        dist = self.register_distribution(positions)
        return self.rng.choice(dist.size, size=shots, p=dist)

    def parity_mask(self, positions: Sequence[int]) -> np.ndarray:
        idx = self.indices()
        parity = np.zeros(idx.shape, dtype=np.int64)
        for p in positions:
            parity ^= (idx >> p) & 1
        return parity == 1

    # =========================================================================
    # Subsystems
    # =========================================================================

    def _split(self, positions: Sequence[int]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """SVD of the state viewed as a (subsystem x rest) matrix."""
        n = self.num_qubits
        k = len(positions)
        psi = self.amps.reshape((2,) * n)
        src = [self._axis(p) for p in reversed(positions)]
        moved = np.moveaxis(psi, src, list(range(k)))
        matrix = moved.reshape(2 ** k, -1)
        return np.linalg.svd(matrix, full_matrices=False)

    def impurity(self, positions: Sequence[int]) -> float:
        """1 - Tr(ρ²) of the reduced state on ``positions``; zero when separable."""
        if not positions or len(positions) == self.num_qubits:
            return 0.0
        s = self._split(positions)[1]
        return float(max(0.0, 1.0 - np.sum(s ** 4)))

    def extract(self, positions: Sequence[int], tolerance: float) -> np.ndarray:
        """
        Remove a separable subsystem and return its amplitudes.

        The returned vector uses positions[0] as its least significant bit.
        The remaining qubits keep their relative order and ids.

        Raises:
            EngineFault: if the subsystem is entangled beyond ``tolerance``
        """
        positions = list(positions)
        if len(positions) == self.num_qubits:
            sub = self.amps.reshape((2,) * self.num_qubits)
            src = [self._axis(p) for p in reversed(positions)]
            sub = np.moveaxis(sub, src, list(range(len(positions)))).reshape(-1).copy()
            self.amps = np.ones(1, dtype=complex)
            self.ids = []
            return sub

        u, s, vh = self._split(positions)
        if 1.0 - np.sum(s ** 4) > tolerance:
            raise EngineFault("Subsystem is not separable")
        sub = u[:, 0]
        rest = s[0] * vh[0]
        rest = rest / np.linalg.norm(rest)
        self.ids = [self.ids[p] for p in range(self.num_qubits) if p not in positions]
        self.amps = np.ascontiguousarray(rest)
        return np.ascontiguousarray(sub / np.linalg.norm(sub))

    def compose(self, amps: np.ndarray, new_ids: Sequence[int]):
        """Append another register's state above the existing qubits."""
        new_ids = [int(q) for q in new_ids]
        if len(set(new_ids)) != len(new_ids) or set(new_ids) & set(self.ids):
            raise EngineFault("Composed qubit ids must be new and distinct")
        if 2 ** len(new_ids) != amps.size:
            raise EngineFault("Qubit id list does not match the composed state")
        self.amps = np.kron(amps, self.amps)
        self.ids.extend(new_ids)

    # =========================================================================
    # Approximate simulation
    # =========================================================================

    def prune(self):
        """Drop amplitudes below the rounding threshold, tracking lost norm."""
        if self.sdrp <= 0:
            return
        probs = self.probabilities()
        small = (probs < self.sdrp) & (probs > 0)
        if not small.any():
            return
        retained = 1.0 - float(np.sum(probs[small]))
        if retained < NORM_EPSILON:
            return
        self.amps = np.where(small, 0, self.amps) / np.sqrt(retained)
        self.fidelity *= retained
