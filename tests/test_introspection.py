"""Tests for probabilities, separability, approximation settings and ket access."""

import numpy as np
import pytest

from qcontrol import EngineError, Pauli, ShapeMismatch, Simulator


def bell(sim, a=0, b=1):
    sim.h(a)
    sim.mcx([a], b)


class TestProbabilities:
    """Tests for prob, prob_perm, permutation_expectation and friends."""

    def test_prob(self):
        with Simulator(1) as sim:
            assert sim.prob(0).unwrap() == pytest.approx(0.0)
            sim.h(0)
            assert sim.prob(0).unwrap() == pytest.approx(0.5)

    def test_prob_perm(self):
        with Simulator(2) as sim:
            sim.x(0)
            assert sim.prob_perm([0, 1], [True, False]).unwrap() == pytest.approx(1.0)
            assert sim.prob_perm([0, 1], [False, False]).unwrap() == pytest.approx(0.0)

    def test_permutation_expectation(self):
        with Simulator(2) as sim:
            sim.x(1)
            assert sim.permutation_expectation([0, 1]).unwrap() == pytest.approx(2.0)
            assert sim.permutation_expectation([1, 0]).unwrap() == pytest.approx(1.0)

    def test_permutation_expectation_of_superposition(self):
        with Simulator(2) as sim:
            sim.h(0)
            sim.h(1)
            assert sim.permutation_expectation([0, 1]).unwrap() == pytest.approx(1.5)

    @pytest.mark.parametrize("prep,basis,expected", [
        ([], Pauli.PauliZ, 0.0),
        (["x"], Pauli.PauliZ, 1.0),
        (["h"], Pauli.PauliX, 0.0),
        (["h"], Pauli.PauliZ, 0.5),
    ], ids=["z+", "z-", "x+", "x-on-z"])
    def test_joint_ensemble_probability(self, prep, basis, expected):
        with Simulator(1) as sim:
            for gate in prep:
                getattr(sim, gate)(0)
            assert sim.joint_ensemble_probability([basis], [0]).unwrap() == pytest.approx(expected)

    def test_joint_ensemble_does_not_disturb_state(self):
        with Simulator(2) as sim:
            bell(sim)
            before = sim.out_ket().unwrap()
            assert sim.joint_ensemble_probability([Pauli.PauliX, Pauli.PauliX], [0, 1]).unwrap() == pytest.approx(0.0)
            assert np.allclose(sim.out_ket().unwrap(), before, atol=1e-6)

    def test_phase_parity_acts_like_z_on_one_qubit(self):
        with Simulator(1) as sim:
            sim.h(0)
            sim.phase_parity(np.pi, [0])
            sim.h(0)
            assert sim.prob(0).unwrap() == pytest.approx(1.0)


class TestSeparability:
    """Tests for try_separate_*."""

    def test_product_state_is_separable(self):
        with Simulator(2) as sim:
            sim.h(0)
            assert sim.try_separate_1qb(0).unwrap() is True

    def test_bell_pair_is_not_separable(self):
        with Simulator(2) as sim:
            bell(sim)
            assert sim.try_separate_1qb(0).unwrap() is False

    def test_bell_pair_separates_from_spectator(self):
        with Simulator(3) as sim:
            bell(sim)
            sim.h(2)
            assert sim.try_separate_2qb(0, 1).unwrap() is True

    def test_tolerance(self):
        """A Bell half has impurity 1/2."""
        with Simulator(2) as sim:
            bell(sim)
            assert sim.try_separate_tolerance([0], 0.6).unwrap() is True
            assert sim.try_separate_tolerance([0], 0.1).unwrap() is False


class TestApproximation:
    """Tests for rounding and fidelity tracking."""

    def test_fidelity_starts_at_one(self):
        with Simulator(1) as sim:
            assert sim.get_unitary_fidelity().unwrap() == pytest.approx(1.0)

    def test_rounding_lowers_fidelity(self):
        with Simulator(1) as sim:
            assert sim.set_sdrp(0.3).is_ok
            sim.u(0, 0.2, 0.0, 0.0)
            fidelity = sim.get_unitary_fidelity().unwrap()
            assert fidelity == pytest.approx(np.cos(0.1) ** 2)
            assert sim.prob(0).unwrap() == pytest.approx(0.0)
            sim.reset_unitary_fidelity()
            assert sim.get_unitary_fidelity().unwrap() == pytest.approx(1.0)

    def test_zero_sdrp_is_exact(self):
        with Simulator(1) as sim:
            sim.set_sdrp(0.0)
            sim.u(0, 0.2, 0.0, 0.0)
            assert sim.get_unitary_fidelity().unwrap() == pytest.approx(1.0)

    def test_out_of_range_sdrp_is_engine_error(self):
        with Simulator(1) as sim:
            assert isinstance(sim.set_sdrp(2.0).error, EngineError)

    def test_flags(self):
        with Simulator(1) as sim:
            assert sim.set_reactive_separate(False).is_ok
            assert sim.set_t_injection(False).is_ok


class TestKetAccess:
    """Tests for out_ket/in_ket."""

    def test_out_ket_of_bell_pair(self):
        with Simulator(2) as sim:
            bell(sim)
            expected = np.array([1, 0, 0, 1]) / np.sqrt(2)
            assert np.allclose(sim.out_ket().unwrap(), expected, atol=1e-6)

    def test_in_ket_complex(self):
        with Simulator(1) as sim:
            assert sim.in_ket(np.array([0, 1j])).is_ok
            assert sim.prob(0).unwrap() == pytest.approx(1.0)

    def test_in_ket_interleaved_floats(self):
        with Simulator(1) as sim:
            sim.in_ket([0.0, 0.0, 1.0, 0.0])
            assert sim.prob(0).unwrap() == pytest.approx(1.0)

    def test_in_ket_is_normalized(self):
        with Simulator(1) as sim:
            sim.in_ket(np.array([1, 1], dtype=complex))
            assert sim.prob(0).unwrap() == pytest.approx(0.5)

    def test_in_ket_wrong_length(self):
        with Simulator(2) as sim:
            result = sim.in_ket(np.array([1, 0], dtype=complex))
            assert isinstance(result.error, ShapeMismatch)

    def test_num_qubits(self):
        with Simulator(3) as sim:
            assert sim.num_qubits().unwrap() == 3
