"""
Engine boundary.

An engine exposes the flat entry points of the Qrack P/Invoke library:
functions named as in the native API that take a session handle, counts,
array buffers and scalars, and report failure only through the per-handle
error register read by ``get_error(sid)``.

Engines:
    reference - ReferenceEngine, dense numpy state vectors in process
    native    - NativeEngine, ctypes binding to libqrack_pinvoke

The active engine is chosen by :attr:`qcontrol.config.Config.engine` and built
once by :func:`get_engine`. Tests inject their own with :func:`set_engine`.
"""

import logging
from typing import Any, Optional

from ..config import get_config
from .native import ENTRY_POINTS, NativeEngine
from .reference import INVALID_SID, ReferenceEngine

logger = logging.getLogger(__name__)

_engine: Optional[Any] = None


def build_engine(config=None):
    """Construct the engine named by ``config`` (the active one by default)."""
    if config is None:
        config = get_config()
    if config.engine == "native":
        return NativeEngine.from_config(config)
    return ReferenceEngine.from_config(config)


def get_engine():
    """Return the active engine, building it on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine()
        logger.debug("Using %s", type(_engine).__name__)
    return _engine


def set_engine(engine):
    """Install ``engine`` as the active engine."""
    global _engine
    _engine = engine


def reset_engine():
    """Drop the active engine; the next get_engine() rebuilds it from config."""
    global _engine
    _engine = None


__all__ = [
    "ENTRY_POINTS",
    "INVALID_SID",
    "NativeEngine",
    "ReferenceEngine",
    "build_engine",
    "get_engine",
    "reset_engine",
    "set_engine",
]
