"""
The public simulator session.

:class:`Simulator` combines the session lifecycle with every operation
family. Construct one with the factories, which return a Result::

    >>> result = Simulator.create(2)
    >>> sim = result.unwrap()

or with the convenience constructor, which raises the construction error::

    >>> with Simulator(2) as sim:
    ...     sim.h(0)
    ...     sim.mcx([0], 1)
    ...     sim.m_all()
"""

import logging
from typing import Optional

from .arithmetic import ArithmeticOps
from .engine import get_engine
from .errors import ShapeMismatch
from .layers import Layers, construct
from .result import Err, Result
from .session import Session, operation
from .structure import StructureOps
from .unitary import UnitaryOps

logger = logging.getLogger(__name__)


class Simulator(UnitaryOps, ArithmeticOps, StructureOps, Session):
    """
    A quantum simulator session owning one engine handle.

    Every operation returns :class:`~qcontrol.result.Ok` or
    :class:`~qcontrol.result.Err`; none raises for engine failures. The handle
    is destroyed by :meth:`close`, on leaving a ``with`` block, or when the
    object is garbage collected, whichever comes first.

    Args:
        qubit_count: Number of qubits, ids 0..qubit_count-1
        layers: Layer stack; the engine's optimal stack if None

    Raises:
        EngineError: if the engine could not build the session
        ShapeMismatch: if qubit_count is negative
    """

    def __init__(self, qubit_count: int, layers: Optional[Layers] = None, engine=None):
        built = type(self).create_layers(qubit_count, layers, engine=engine).unwrap()
        self._take_over(built)

    @classmethod
    def create(cls, qubit_count: int, engine=None) -> Result:
        """Build a session with the engine's default constructor."""
        if int(qubit_count) < 0:
            return Err(ShapeMismatch("qubit_count must be non-negative"))
        if engine is None:
            engine = get_engine()
        sid = engine.init_count(int(qubit_count), False)
        return cls._adopt(engine, "init_count", sid)

    @classmethod
    def create_layers(cls, qubit_count: int, layers: Optional[Layers] = None, engine=None,
                      **flags) -> Result:
        """
        Build a session with an explicit layer stack.

        Args:
            qubit_count: Number of qubits
            layers: Layer descriptor; individual flags may be given as keywords
                    instead (e.g. ``binary_decision_tree=True``)
            engine: Engine to use; the active engine if None

        Returns:
            Ok(Simulator) or Err(EngineError)
        """
        if int(qubit_count) < 0:
            return Err(ShapeMismatch("qubit_count must be non-negative"))
        if layers is None:
            layers = Layers(**flags)
        elif flags:
            raise TypeError("Pass either a Layers instance or keyword flags, not both")
        if engine is None:
            engine = get_engine()
        entry, sid = construct(engine, qubit_count, layers)
        return cls._adopt(engine, entry, sid)

    @operation
    def clone(self) -> Result:
        """
        Copy this session into a new, independently owned one.

        Returns:
            Ok(Simulator) or Err(EngineError); a failed clone's handle is destroyed
        """
        sid = self._engine.init_clone(self._sid)
        return type(self)._adopt(self._engine, "init_clone", sid)
