"""Tests for the error-propagation protocol and the result type."""

import pytest

from qcontrol import (
    EngineError, EngineLoadError, Err, Ok, Pauli, QControlError,
    SessionClosedError, ShapeMismatch, Simulator,
)


class TestResult:
    """Tests for Ok/Err."""

    def test_ok_accessors(self):
        result = Ok(3)
        assert result.is_ok and not result.is_err
        assert result.unwrap() == 3
        assert result.unwrap_or(0) == 3
        assert result.map(lambda v: v + 1) == Ok(4)

    def test_err_accessors(self):
        error = EngineError("X", 0, 1)
        result = Err(error)
        assert result.is_err and not result.is_ok
        assert result.unwrap_or(7) == 7
        assert result.map(lambda v: v + 1) is result
        with pytest.raises(EngineError):
            result.unwrap()


class TestHierarchy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("cls,builtin", [
        (ShapeMismatch, ValueError),
        (SessionClosedError, RuntimeError),
        (EngineLoadError, OSError),
    ], ids=["shape", "closed", "load"])
    def test_errors_are_also_builtins(self, cls, builtin):
        assert issubclass(cls, QControlError)
        assert issubclass(cls, builtin)

    def test_engine_error_records_call(self):
        error = EngineError("MCX", sid=4, code=2)
        assert (error.entry, error.sid, error.code) == ("MCX", 4, 2)
        assert "MCX" in str(error)


class TestEngineErrors:
    """Nonzero error registers become Err(EngineError)."""

    def test_failed_call_returns_err(self, sim):
        result = sim.m(7)
        assert result.is_err
        assert isinstance(result.error, EngineError)
        assert result.error.entry == "M"
        assert result.error.sid == sim.sid
        assert result.error.code != 0

    def test_register_reflects_latest_call(self, sim):
        """A failure does not poison later successful calls."""
        assert sim.x(9).is_err
        assert sim.x(0).is_ok
        assert sim.get_error() == 0

    def test_forced_impossible_outcome(self, sim):
        result = sim.force_m(0, True)
        assert result.is_err

    def test_value_returning_call_on_error_discards_value(self, sim):
        result = sim.prob(42)
        assert result.is_err
        assert result.unwrap_or(None) is None

    def test_successful_call_never_reports_failure(self, sim):
        for op in (lambda: sim.h(0), lambda: sim.mcx([0], 1), lambda: sim.prob(1)):
            assert op().is_ok


SHAPE_CASES = [
    ("exp", lambda s: s.exp([Pauli.PauliX], 0.1, [0, 1])),
    ("mcexp", lambda s: s.mcexp([Pauli.PauliX, Pauli.PauliZ], 0.1, [2], [0])),
    ("measure_pauli", lambda s: s.measure_pauli([Pauli.PauliZ], [0, 1])),
    ("joint_ensemble", lambda s: s.joint_ensemble_probability([], [0])),
    ("prob_perm", lambda s: s.prob_perm([0, 1], [True])),
    ("mul", lambda s: s.mul(3, [0], [1, 2])),
    ("mcdiv", lambda s: s.mcdiv(3, [2], [0], [])),
    ("muln_words", lambda s: s.muln([2], [5, 1], [0], [1])),
    ("pown_registers", lambda s: s.pown(2, 5, [0, 1], [2])),
    ("lda_table", lambda s: s.lda([0, 1], [2], b"")),
    ("adc_table", lambda s: s.adc(2, [0], [1], b"")),
    ("hash_table", lambda s: s.hash([0, 1, 2], b"")),
    ("mtrx", lambda s: s.mtrx([0.0] * 7, 0)),
    ("ucmtrx", lambda s: s.ucmtrx([0], [[1, 0, 0], [0, 1, 0]], 1, 1)),
    ("multiplex", lambda s: s.multiplex1_mtrx([0], 1, [0.0] * 8)),
    ("pauli_value", lambda s: s.r(9, 0.1, 0)),
    ("negative_operand", lambda s: s.add(-1, [0, 1])),
    ("in_ket", lambda s: s.in_ket([1.0, 0.0])),
    ("compose_self", lambda s: s.compose(s, [3, 4, 5])),
]


class TestShapeMismatch:
    """Local precondition failures are reported without calling the engine."""

    @pytest.mark.parametrize("name,call", SHAPE_CASES, ids=[c[0] for c in SHAPE_CASES])
    def test_mismatch_is_err(self, sim, engine, monkeypatch, name, call):
        calls = []
        for entry in ("Exp", "MCExp", "Measure", "JointEnsembleProbability", "PermutationProb",
                      "MUL", "MCDIV", "MULN", "POWN", "LDA", "ADC", "Hash", "Mtrx", "UCMtrx",
                      "Multiplex1Mtrx", "R", "ADD", "InKet", "Compose"):
            monkeypatch.setattr(engine, entry, lambda *args, _e=entry: calls.append(_e))
        result = call(sim)
        assert result.is_err
        assert isinstance(result.error, ShapeMismatch)
        assert calls == []

    def test_compose_with_closed_session(self, sim):
        other = Simulator(1)
        other.close()
        result = sim.compose(other, [3])
        assert isinstance(result.error, ShapeMismatch)

    def test_compose_with_non_session(self, sim):
        result = sim.compose("not a session", [3])
        assert isinstance(result.error, ShapeMismatch)
