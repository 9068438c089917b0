"""Tests for compose, decompose, dispose and qubit allocation."""

import pytest

from qcontrol import EngineError, ShapeMismatch, Simulator


class TestCompose:
    """Tests for compose()."""

    def test_compose_appends_qubits(self):
        with Simulator(1) as a, Simulator(1) as b:
            b.x(0)
            assert a.compose(b, [1]).is_ok
            assert a.num_qubits().unwrap() == 2
            assert a.prob(1).unwrap() == pytest.approx(1.0)
            assert a.prob(0).unwrap() == pytest.approx(0.0)

    def test_compose_leaves_other_untouched(self, engine):
        with Simulator(1) as a, Simulator(1) as b:
            b.x(0)
            a.compose(b, [5])
            assert b.is_live
            assert b.num_qubits().unwrap() == 1
            assert b.prob(0).unwrap() == pytest.approx(1.0)
            assert sorted(engine.live_handles()) == sorted([a.sid, b.sid])

    def test_composed_qubits_use_given_ids(self):
        with Simulator(1) as a, Simulator(2) as b:
            b.x(1)
            a.compose(b, [7, 3])
            assert a.prob(3).unwrap() == pytest.approx(1.0)
            assert a.prob(7).unwrap() == pytest.approx(0.0)

    def test_compose_wrong_id_count(self):
        with Simulator(1) as a, Simulator(2) as b:
            result = a.compose(b, [1])
            assert isinstance(result.error, ShapeMismatch)

    def test_compose_id_collision_is_engine_error(self):
        with Simulator(1) as a, Simulator(1) as b:
            result = a.compose(b, [0])
            assert isinstance(result.error, EngineError)

    def test_compose_with_entangled_other(self):
        with Simulator(1) as a, Simulator(2) as b:
            b.h(0)
            b.mcx([0], 1)
            a.x(0)
            a.compose(b, [1, 2])
            assert a.prob_perm([1, 2], [True, True]).unwrap() == pytest.approx(0.5)
            assert a.prob(0).unwrap() == pytest.approx(1.0)


class TestDecompose:
    """Tests for decompose() and dispose()."""

    def test_decompose_separable_qubit(self, engine):
        with Simulator(3) as sim:
            sim.x(2)
            result = sim.decompose([2])
            assert result.is_ok
            with result.unwrap() as part:
                assert isinstance(part, Simulator)
                assert part.num_qubits().unwrap() == 1
                assert part.prob(0).unwrap() == pytest.approx(1.0)
                assert sim.num_qubits().unwrap() == 2
                assert len(engine.live_handles()) == 2

    def test_decompose_renumbers_in_requested_order(self):
        with Simulator(3) as sim:
            sim.x(1)
            with sim.decompose([2, 1]).unwrap() as part:
                assert part.prob(0).unwrap() == pytest.approx(0.0)
                assert part.prob(1).unwrap() == pytest.approx(1.0)

    def test_decompose_keeps_remaining_ids(self):
        with Simulator(3) as sim:
            sim.x(2)
            with sim.decompose([1]).unwrap():
                assert sim.prob(2).unwrap() == pytest.approx(1.0)
                assert sim.prob(0).unwrap() == pytest.approx(0.0)

    def test_decompose_entangled_fails_without_new_handle(self, engine):
        with Simulator(2) as sim:
            sim.h(0)
            sim.mcx([0], 1)
            result = sim.decompose([0])
            assert isinstance(result.error, EngineError)
            assert result.error.entry == "Decompose"
            assert engine.live_handles() == [sim.sid]

    def test_decompose_then_compose_round_trip(self):
        with Simulator(2) as sim:
            sim.h(1)
            before = sim.prob(1).unwrap()
            with sim.decompose([1]).unwrap() as part:
                sim.compose(part, [1])
            assert sim.prob(1).unwrap() == pytest.approx(before)

    def test_compose_then_decompose_restores_other(self):
        """Splitting composed qubits back off reproduces the other session."""
        with Simulator(1) as a, Simulator(2) as b:
            a.h(0)
            b.x(1)
            b.u(0, 1.0, 0.2, 0.3)
            expected = [b.prob(i).unwrap() for i in range(2)]
            assert a.compose(b, [7, 3]).is_ok
            with a.decompose([7, 3]).unwrap() as part:
                assert part.num_qubits().unwrap() == 2
                for i in range(2):
                    assert part.prob(i).unwrap() == pytest.approx(expected[i])
            assert a.num_qubits().unwrap() == 1
            assert a.prob(0).unwrap() == pytest.approx(0.5)

    def test_dispose_separable(self):
        with Simulator(3) as sim:
            sim.h(2)
            assert sim.dispose([2]).is_ok
            assert sim.num_qubits().unwrap() == 2

    def test_dispose_entangled_is_engine_error(self):
        with Simulator(2) as sim:
            sim.h(0)
            sim.mcx([0], 1)
            assert sim.dispose([1]).is_err
            assert sim.num_qubits().unwrap() == 2


class TestAllocation:
    """Tests for allocate_qubit() and release()."""

    def test_allocate_adds_zero_qubit(self):
        with Simulator(1) as sim:
            assert sim.allocate_qubit(5).is_ok
            assert sim.num_qubits().unwrap() == 2
            assert sim.prob(5).unwrap() == pytest.approx(0.0)
            sim.x(5)
            assert sim.prob(5).unwrap() == pytest.approx(1.0)

    def test_allocate_existing_id_is_engine_error(self):
        with Simulator(2) as sim:
            assert sim.allocate_qubit(1).is_err

    def test_release_zero_qubit(self):
        with Simulator(2) as sim:
            assert sim.release(1).unwrap() is True
            assert sim.num_qubits().unwrap() == 1

    def test_release_excited_qubit(self):
        with Simulator(2) as sim:
            sim.x(1)
            assert sim.release(1).unwrap() is False
            assert sim.num_qubits().unwrap() == 1

    def test_release_keeps_partner_state(self):
        with Simulator(2) as sim:
            sim.x(0)
            sim.release(1)
            assert sim.prob(0).unwrap() == pytest.approx(1.0)

    def test_release_unknown_qubit(self):
        with Simulator(1) as sim:
            assert sim.release(4).is_err
