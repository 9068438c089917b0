"""
Exception hierarchy.

All errors defined by qcontrol inherit from :class:`QControlError`, allowing a
single catch-all handler for library errors.

Hierarchy
---------
::

    QControlError
    ├── EngineError         engine error register was nonzero after a call
    ├── ShapeMismatch       argument shapes rejected before calling the engine
    ├── SessionClosedError  operation on a session that is not live
    └── EngineLoadError     native engine library could not be loaded

``EngineError`` and ``ShapeMismatch`` are not raised by simulator operations:
they are carried inside an :class:`~qcontrol.result.Err` and only raised when
the caller unwraps the result. ``SessionClosedError`` and ``EngineLoadError``
signal programming or configuration mistakes and are raised directly.
"""

from typing import Optional


class QControlError(Exception):
    """Base class for all qcontrol errors."""


class EngineError(QControlError):
    """
    The engine reported a failure through its error register.

    The native cause is opaque; only the entry point, the handle and the raw
    register value are recorded.

    Attributes:
        entry: Name of the engine entry point that was called
        sid: Handle the register was read from
        code: Raw nonzero register value
    """

    def __init__(self, entry: str, sid: Optional[int] = None, code: int = 1):
        self.entry = entry
        self.sid = sid
        self.code = code
        super().__init__(f"engine call {entry} failed (sid={sid}, error={code})")


class ShapeMismatch(QControlError, ValueError):
    """Argument lengths or buffer sizes violate the engine's preconditions."""


class SessionClosedError(QControlError, RuntimeError):
    """A simulator session was used after it was destroyed."""


class EngineLoadError(QControlError, OSError):
    """The native engine shared library could not be located or loaded."""
