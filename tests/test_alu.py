"""Tests for register arithmetic."""

import numpy as np
import pytest

from qcontrol import EngineError, Simulator


def load(sim, value, qubits):
    """Write a classical value into a register of fresh qubits."""
    for i, q in enumerate(qubits):
        if (value >> i) & 1:
            sim.x(q)


class TestAddition:
    """Tests for add/sub and their controlled forms."""

    @pytest.mark.parametrize("start,a,expected", [
        (1, 3, 4),
        (5, 0, 5),
        (7, 1, 0),
        (6, 5, 3),
    ], ids=["simple", "zero", "wrap", "wrap-large"])
    def test_add(self, start, a, expected):
        with Simulator(3) as sim:
            load(sim, start, [0, 1, 2])
            assert sim.add(a, [0, 1, 2]).is_ok
            assert sim.m_all().unwrap() == expected

    def test_sub(self):
        with Simulator(3) as sim:
            load(sim, 5, [0, 1, 2])
            sim.sub(2, [0, 1, 2])
            assert sim.m_all().unwrap() == 3

    def test_sub_borrows(self):
        with Simulator(3) as sim:
            sim.sub(1, [0, 1, 2])
            assert sim.m_all().unwrap() == 7

    def test_add_accepts_word_list(self):
        with Simulator(2) as sim:
            sim.add([2], [0, 1])
            assert sim.m_all().unwrap() == 2

    def test_add_on_subregister(self):
        with Simulator(4) as sim:
            sim.x(0)
            sim.add(1, [2, 3])
            assert sim.m_all().unwrap() == 0b0101

    def test_add_on_superposition(self):
        with Simulator(2) as sim:
            sim.h(0)
            sim.add(2, [0, 1])
            assert sim.prob_perm([0, 1], [False, True]).unwrap() == pytest.approx(0.5)
            assert sim.prob_perm([0, 1], [True, True]).unwrap() == pytest.approx(0.5)

    def test_mcadd_respects_control(self):
        with Simulator(3) as sim:
            sim.mcadd(1, [2], [0, 1])
            assert sim.m_all().unwrap() == 0
            sim.x(2)
            sim.mcadd(1, [2], [0, 1])
            assert sim.m_all().unwrap() == 0b101

    def test_mcsub(self):
        with Simulator(3) as sim:
            sim.x(2)
            sim.mcsub(1, [2], [0, 1])
            assert sim.m_all().unwrap() == 0b111


class TestSignedAddition:
    """Tests for adds/subs overflow handling."""

    def test_overflow_flips_phase_when_flag_set(self):
        """1 + 1 overflows a 2-bit signed register."""
        with Simulator(3) as sim:
            sim.x(0)
            sim.h(2)
            sim.adds(1, 2, [0, 1])
            expected = np.zeros(8, dtype=complex)
            expected[0b010] = 1 / np.sqrt(2)
            expected[0b110] = -1 / np.sqrt(2)
            assert np.allclose(sim.out_ket().unwrap(), expected, atol=1e-6)

    def test_no_overflow_keeps_phase(self):
        with Simulator(3) as sim:
            sim.h(2)
            sim.adds(1, 2, [0, 1])
            expected = np.zeros(8, dtype=complex)
            expected[0b001] = 1 / np.sqrt(2)
            expected[0b101] = 1 / np.sqrt(2)
            assert np.allclose(sim.out_ket().unwrap(), expected, atol=1e-6)

    def test_subs_value(self):
        with Simulator(4) as sim:
            load(sim, 3, [0, 1, 2])
            sim.subs(1, 3, [0, 1, 2])
            assert sim.m_all().unwrap() == 2


class TestMultiplication:
    """Tests for mul/div with a carry register."""

    def test_mul_carries_high_half(self):
        """3 · 3 = 9 = 0b001 with carry 0b001."""
        with Simulator(6) as sim:
            load(sim, 3, [0, 1, 2])
            sim.mul(3, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 1 | (1 << 3)

    def test_div_undoes_mul(self):
        with Simulator(6) as sim:
            load(sim, 3, [0, 1, 2])
            sim.mul(3, [0, 1, 2], [3, 4, 5])
            sim.div(3, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 3

    def test_mcmul_control_clear(self):
        with Simulator(5) as sim:
            load(sim, 3, [0, 1])
            sim.mcmul(2, [4], [0, 1], [2, 3])
            assert sim.m_all().unwrap() == 3

    def test_mcmul_control_set(self):
        with Simulator(5) as sim:
            load(sim, 3, [0, 1])
            sim.x(4)
            sim.mcmul(2, [4], [0, 1], [2, 3])
            assert sim.m_all().unwrap() == 0b10 | (0b01 << 2) | (1 << 4)

    def test_mcdiv_undoes_mcmul(self):
        with Simulator(5) as sim:
            load(sim, 3, [0, 1])
            sim.x(4)
            sim.mcmul(2, [4], [0, 1], [2, 3])
            sim.mcdiv(2, [4], [0, 1], [2, 3])
            assert sim.m_all().unwrap() == 3 | (1 << 4)

    def test_zero_multiplier_is_engine_error(self):
        with Simulator(4) as sim:
            result = sim.mul(0, [0, 1], [2, 3])
            assert isinstance(result.error, EngineError)


class TestModularArithmetic:
    """Tests for muln/divn/pown."""

    def test_muln(self):
        """3 · 2 mod 5 = 1."""
        with Simulator(6) as sim:
            load(sim, 3, [0, 1, 2])
            sim.muln(2, 5, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 3 | (1 << 3)

    def test_divn_clears_result(self):
        with Simulator(6) as sim:
            load(sim, 3, [0, 1, 2])
            sim.muln(2, 5, [0, 1, 2], [3, 4, 5])
            sim.divn(2, 5, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 3

    def test_pown(self):
        """2^2 mod 7 = 4."""
        with Simulator(6) as sim:
            load(sim, 2, [0, 1, 2])
            sim.pown(2, 7, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 2 | (4 << 3)

    def test_pown_over_superposition(self):
        """Modular exponentiation entangles the exponent with the result."""
        with Simulator(4) as sim:
            sim.h(0)
            sim.h(1)
            sim.pown(2, 3, [0, 1], [2, 3])
            for x in range(4):
                result = pow(2, x, 3)
                bits = [bool((x >> i) & 1) for i in range(2)] + [bool((result >> i) & 1) for i in range(2)]
                assert sim.prob_perm([0, 1, 2, 3], bits).unwrap() == pytest.approx(0.25)

    def test_mcpown_control_clear(self):
        with Simulator(7) as sim:
            load(sim, 2, [0, 1, 2])
            sim.mcpown(2, [6], 7, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 2

    def test_mcmuln_and_mcdivn(self):
        with Simulator(7) as sim:
            load(sim, 3, [0, 1, 2])
            sim.x(6)
            sim.mcmuln(2, [6], 5, [0, 1, 2], [3, 4, 5])
            assert sim.prob_perm([3, 4, 5], [True, False, False]).unwrap() == pytest.approx(1.0)
            sim.mcdivn(2, [6], 5, [0, 1, 2], [3, 4, 5])
            assert sim.m_all().unwrap() == 3 | (1 << 6)

    def test_modulus_too_large_is_engine_error(self):
        with Simulator(4) as sim:
            result = sim.muln(1, 9, [0, 1], [2, 3])
            assert isinstance(result.error, EngineError)
