"""
Construction modes.

:class:`Layers` records which simulation layers the engine should stack for a
new session. :func:`construct` maps a descriptor to exactly one constructor
entry point:

* the full default stack (tensor network, Schmidt decomposition, stabilizer
  hybrid, paging, CPU/GPU hybrid and OpenCL, without binary decision trees)
  uses the engine's optimal constructors, ``init_count`` when multi-qubit
  Schmidt decomposition is on and ``init_count_pager`` otherwise;
* every other combination goes to ``init_count_type`` with the flags passed
  through individually. ZX-calculus fusion is never requested.
"""

from dataclasses import dataclass, fields
from typing import Tuple


@dataclass(frozen=True)
class Layers:
    """Which simulation layers to enable. Defaults match the engine's optimal stack."""

    tensor_network: bool = True
    schmidt_decompose_multi: bool = True
    schmidt_decompose: bool = True
    stabilizer_hybrid: bool = True
    binary_decision_tree: bool = False
    paged: bool = True
    cpu_gpu_hybrid: bool = True
    opencl: bool = True
    host_pointer: bool = False

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def is_optimal_stack(self) -> bool:
        return (
            self.tensor_network
            and self.schmidt_decompose
            and self.stabilizer_hybrid
            and not self.binary_decision_tree
            and self.paged
            and self.cpu_gpu_hybrid
            and self.opencl
        )


def constructor_call(qubit_count: int, layers: Layers) -> Tuple[str, tuple]:
    """
    Choose the constructor entry point and its arguments.

    Args:
        qubit_count: Number of qubits to allocate
        layers: Requested layer stack

    Returns:
        (entry point name, arguments)
    """
    n = int(qubit_count)
    if layers.is_optimal_stack():
        if layers.schmidt_decompose_multi:
            return "init_count", (n, layers.host_pointer)
        return "init_count_pager", (n, layers.host_pointer)
    return "init_count_type", (
        n,
        layers.tensor_network,
        layers.schmidt_decompose_multi,
        layers.schmidt_decompose,
        layers.stabilizer_hybrid,
        layers.binary_decision_tree,
        layers.paged,
        False,
        layers.cpu_gpu_hybrid,
        layers.opencl,
        layers.host_pointer,
    )


def construct(engine, qubit_count: int, layers: Layers) -> Tuple[str, int]:
    """Call the chosen constructor; returns (entry point name, new handle)."""
    entry, args = constructor_call(qubit_count, layers)
    return entry, getattr(engine, entry)(*args)
