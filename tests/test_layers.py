"""Tests for layer descriptors and constructor selection."""

import dataclasses
import itertools

import pytest

from qcontrol import Layers, ReferenceEngine, Simulator
from qcontrol.layers import constructor_call

CONSTRUCTORS = ("init_count", "init_count_pager", "init_count_type")


class RecordingEngine(ReferenceEngine):
    """Reference engine that remembers which constructor was called."""

    def __init__(self):
        super().__init__(max_qubits=4, max_sessions=8, seed=0)
        self.calls = []

    def init_count_type(self, *args):
        self.calls.append(("init_count_type", args))
        return super().init_count_type(*args)

    def init_count(self, *args):
        self.calls.append(("init_count", args))
        return super().init_count(*args)

    def init_count_pager(self, *args):
        self.calls.append(("init_count_pager", args))
        return super().init_count_pager(*args)


def all_layers():
    for flags in itertools.product([False, True], repeat=len(Layers.names())):
        yield Layers(**dict(zip(Layers.names(), flags)))


class TestLayers:
    """Tests for the Layers descriptor."""

    def test_defaults_are_optimal(self):
        assert Layers().is_optimal_stack()

    def test_names(self):
        assert Layers.names() == (
            "tensor_network", "schmidt_decompose_multi", "schmidt_decompose",
            "stabilizer_hybrid", "binary_decision_tree", "paged",
            "cpu_gpu_hybrid", "opencl", "host_pointer",
        )

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Layers().paged = False

    @pytest.mark.parametrize("name", [
        "tensor_network", "schmidt_decompose", "stabilizer_hybrid",
        "paged", "cpu_gpu_hybrid", "opencl",
    ])
    def test_dropping_a_layer_leaves_optimal_stack(self, name):
        assert not dataclasses.replace(Layers(), **{name: False}).is_optimal_stack()

    def test_binary_decision_tree_leaves_optimal_stack(self):
        assert not Layers(binary_decision_tree=True).is_optimal_stack()


class TestConstructorSelection:
    """Every combination reaches exactly one constructor."""

    def test_every_combination_has_a_constructor(self):
        seen = set()
        for layers in all_layers():
            entry, args = constructor_call(3, layers)
            assert entry in CONSTRUCTORS
            assert args[0] == 3
            seen.add(entry)
        assert seen == set(CONSTRUCTORS)

    def test_fast_paths_only_for_optimal_stack(self):
        for layers in all_layers():
            entry, args = constructor_call(2, layers)
            if layers.is_optimal_stack():
                expected = "init_count" if layers.schmidt_decompose_multi else "init_count_pager"
                assert entry == expected
                assert args == (2, layers.host_pointer)
            else:
                assert entry == "init_count_type"
                assert len(args) == 11

    def test_zx_fusion_never_requested(self):
        for layers in all_layers():
            entry, args = constructor_call(1, layers)
            if entry == "init_count_type":
                assert args[7] is False

    def test_flags_pass_through_in_order(self):
        layers = Layers(binary_decision_tree=True, host_pointer=True)
        entry, args = constructor_call(5, layers)
        assert entry == "init_count_type"
        assert args == (5, True, True, True, True, True, True, False, True, True, True)


class TestCreateLayers:
    """Tests for Simulator.create_layers()."""

    def test_default_uses_init_count(self):
        engine = RecordingEngine()
        with Simulator.create_layers(2, engine=engine).unwrap() as sim:
            assert sim.engine is engine
        assert [name for name, _ in engine.calls] == ["init_count"]

    def test_without_multi_schmidt_uses_pager(self):
        engine = RecordingEngine()
        with Simulator.create_layers(2, engine=engine, schmidt_decompose_multi=False).unwrap():
            pass
        assert [name for name, _ in engine.calls] == ["init_count_pager"]

    def test_binary_decision_tree_uses_typed_constructor(self):
        engine = RecordingEngine()
        layers = Layers(binary_decision_tree=True)
        with Simulator.create_layers(2, layers, engine=engine).unwrap() as sim:
            assert sim.num_qubits().unwrap() == 2
        name, args = engine.calls[0]
        assert name == "init_count_type"
        assert args[5] is True
        assert args[7] is False

    def test_every_combination_builds_a_usable_session(self):
        for layers in all_layers():
            engine = RecordingEngine()
            result = Simulator.create_layers(2, layers, engine=engine)
            assert result.is_ok, layers
            sim = result.unwrap()
            assert sim.num_qubits().is_ok
            sim.close()
            sim.close()
            assert engine.live_handles() == []
            assert len(engine.calls) == 1

    def test_every_combination_fails_cleanly(self, monkeypatch):
        """An oversized request is destroyed exactly once for every stack."""
        for layers in all_layers():
            engine = RecordingEngine()
            destroyed = []
            real_destroy = engine.destroy

            def destroy(sid, _real=real_destroy, _seen=destroyed):
                _seen.append(sid)
                _real(sid)

            monkeypatch.setattr(engine, "destroy", destroy)
            result = Simulator.create_layers(5, layers, engine=engine)
            assert result.is_err
            assert len(destroyed) == 1
            assert engine.get_error(destroyed[0]) == 0
            assert engine.live_handles() == []
            assert len(engine.calls) == 1

    def test_layers_and_flags_together(self):
        with pytest.raises(TypeError):
            Simulator.create_layers(2, Layers(), paged=False)

    def test_unknown_flag(self):
        with pytest.raises(TypeError):
            Simulator.create_layers(2, zx_fusion=True)

    def test_constructor_uses_layers(self):
        engine = RecordingEngine()
        with Simulator(1, Layers(opencl=False), engine=engine):
            pass
        assert engine.calls[0][0] == "init_count_type"
        assert engine.live_handles() == []
