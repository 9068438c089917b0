"""
Session handles and the engine call protocol.

A :class:`Session` owns exactly one engine handle from construction until
:meth:`Session.close`. Every operation goes through :meth:`Session._invoke`:
call one entry point with the handle first, read the handle's error register,
then return ``Ok(value)`` or ``Err(EngineError)``. Operations decorated with
:func:`operation` additionally turn local shape failures into ``Err`` before
the engine is reached.

Lifecycle::

    CONSTRUCTING --(engine returned a handle)--> LIVE --(close)--> DESTROYED

Using a session that is not LIVE raises :class:`SessionClosedError`.
"""

import functools
import logging
from enum import Enum
from typing import Any, Callable, Optional

from .engine import INVALID_SID
from .errors import EngineError, SessionClosedError, ShapeMismatch
from .result import Err, Ok, Result

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CONSTRUCTING = "constructing"
    LIVE = "live"
    DESTROYED = "destroyed"


def operation(method: Callable) -> Callable:
    """
    Mark a session method as an engine operation.

    The session must be LIVE. A ShapeMismatch raised while validating or
    marshaling arguments is returned as ``Err`` without calling the engine.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._require_live()
        try:
            return method(self, *args, **kwargs)
        except ShapeMismatch as exc:
            logger.debug("%s rejected on sid %d: %s", method.__name__, self._sid, exc)
            return Err(exc)
    return wrapper


class Session:
    """
    Owner of one engine handle.

    Sessions are not built directly; subclasses obtain handles through the
    constructor entry points and pass them to :meth:`_adopt`.
    """

    _engine: Any = None
    _sid: Optional[int] = None
    _state: SessionState = SessionState.DESTROYED

    @classmethod
    def _adopt(cls, engine, entry: str, sid: int) -> Result:
        """
        Take ownership of a freshly minted handle.

        The session becomes LIVE unconditionally so that a failed construction
        can still be cleaned up: if the handle's error register is nonzero the
        handle is destroyed and ``Err`` returned. ``INVALID_SID`` was never
        issued by the engine and is not destroyed.
        """
        session = cls.__new__(cls)
        session._engine = engine
        session._state = SessionState.CONSTRUCTING
        session._sid = int(sid)
        session._state = SessionState.LIVE

        code = engine.get_error(session._sid)
        if code:
            logger.debug("%s returned sid %d with error %d; destroying", entry, session._sid, code)
            if session._sid == INVALID_SID:
                session._state = SessionState.DESTROYED
            else:
                session.close()
            return Err(EngineError(entry, session._sid, code))
        logger.debug("Created session sid=%d via %s", session._sid, entry)
        return Ok(session)

    def _take_over(self, other: "Session"):
        """Move ``other``'s handle into this object, leaving ``other`` DESTROYED."""
        self._engine = other._engine
        self._sid = other._sid
        self._state = other._state
        other._state = SessionState.DESTROYED

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def sid(self) -> int:
        """The engine handle. Opaque; only meaningful to the engine."""
        return self._sid

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_live(self) -> bool:
        return self._state is SessionState.LIVE

    @property
    def engine(self):
        return self._engine

    def _require_live(self):
        if self._state is not SessionState.LIVE:
            raise SessionClosedError(f"Session sid={self._sid} is {self._state.value}")

    # =========================================================================
    # Engine call protocol
    # =========================================================================

    def _invoke(self, entry: str, *args, convert: Optional[Callable] = None) -> Result:
        """
        Call one engine entry point and check the error register.

        Args:
            entry: Entry point name
            *args: Marshaled arguments following the handle
            convert: Applied to the raw return value on success

        Returns:
            Ok(converted value), or Err(EngineError) if the register is nonzero
        """
        self._require_live()
        value = getattr(self._engine, entry)(self._sid, *args)
        code = self._engine.get_error(self._sid)
        if code:
            logger.debug("%s failed on sid %d with error %d", entry, self._sid, code)
            return Err(EngineError(entry, self._sid, code))
        if convert is not None:
            value = convert(value)
        return Ok(value)

    def get_error(self) -> int:
        """Raw value of this session's error register."""
        self._require_live()
        return self._engine.get_error(self._sid)

    def check_error(self) -> Result:
        """Ok(None) if the error register is clear, otherwise Err(EngineError)."""
        code = self.get_error()
        if code:
            return Err(EngineError("get_error", self._sid, code))
        return Ok(None)

    @operation
    def seed(self, s: int) -> Result:
        """Seed this session's random number generator."""
        return self._invoke("seed", int(s))

    @operation
    def set_concurrency(self, p: int) -> Result:
        """Set the number of CPU threads the engine may use for this session."""
        return self._invoke("set_concurrency", int(p))

    # =========================================================================
    # Teardown
    # =========================================================================

    def close(self):
        """Destroy the handle. Safe to call more than once."""
        if self._state is not SessionState.LIVE:
            return
        self._state = SessionState.DESTROYED
        self._engine.destroy(self._sid)
        logger.debug("Destroyed session sid=%d", self._sid)

    def __enter__(self):
        self._require_live()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __del__(self):
        if self._state is SessionState.LIVE:
            logger.debug("Session sid=%d was not closed; destroying in finalizer", self._sid)
            self.close()

    def __repr__(self):
        return f"{type(self).__name__}(sid={self._sid}, state={self._state.value})"

