"""
QControl - A handle-based control plane for quantum simulation engines.

This package drives a state-vector simulation engine through opaque session
handles and a flat set of entry points, checking the engine's error register
after every call and reporting the outcome as a Result value.

Modules:
    simulator  - Simulator, the session object carrying every operation
    session    - Handle ownership, lifecycle and the engine call protocol
    layers     - Construction modes and constructor dispatch
    unitary    - Gates, rotations and measurement
    arithmetic - Register arithmetic, table lookups and boolean logic
    structure  - Compose/decompose, allocation and introspection
    engine     - Engine registry, reference (numpy) and native (ctypes) engines
    gates      - Gate matrices and the Mtrx operator type
    config     - Environment-driven configuration
    errors     - Exception hierarchy
    result     - Ok/Err result values

Quick Start:
    >>> from qcontrol import *
    >>> sim = Simulator(2)
    >>> sim.h(0)
    Ok(value=None)
    >>> sim.mcx([0], 1)
    Ok(value=None)
    >>> sim.m_all().unwrap()  # 0 or 3 with 50% probability each
    >>> sim.close()
"""

# Session and operations
from .simulator import Simulator
from .session import Session, SessionState
from .layers import Layers

# Values
from .gates import Mtrx
from .pauli import Pauli
from .result import Err, Ok, Result

# Errors
from .errors import (
    QControlError,
    EngineError,
    ShapeMismatch,
    SessionClosedError,
    EngineLoadError,
)

# Configuration and engines
from .config import Config, get_config, set_config, reset_config, load_config
from .engine import (
    NativeEngine,
    ReferenceEngine,
    get_engine,
    set_engine,
    reset_engine,
)

# Utilities
from .utils import (
    allclose_up_to_global_phase,
    state_fidelity,
    int_to_bits,
    bits_to_int,
    int_to_words,
    words_to_int,
    pack_table,
)

__version__ = "0.1.0"
__all__ = [
    # Session
    "Simulator",
    "Session",
    "SessionState",
    "Layers",
    # Values
    "Mtrx",
    "Pauli",
    "Ok",
    "Err",
    "Result",
    # Errors
    "QControlError",
    "EngineError",
    "ShapeMismatch",
    "SessionClosedError",
    "EngineLoadError",
    # Configuration
    "Config",
    "get_config",
    "set_config",
    "reset_config",
    "load_config",
    # Engines
    "NativeEngine",
    "ReferenceEngine",
    "get_engine",
    "set_engine",
    "reset_engine",
    # Utils
    "allclose_up_to_global_phase",
    "state_fidelity",
    "int_to_bits",
    "bits_to_int",
    "int_to_words",
    "words_to_int",
    "pack_table",
]
