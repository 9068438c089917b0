"""
Configuration management.

Settings are read from the environment once and cached. Tests and embedding
applications can replace the active configuration explicitly.

Environment variables
---------------------
QCONTROL_ENGINE
    ``reference`` (default) for the in-process numpy engine, or ``native``
    for the Qrack shared library.
QCONTROL_LIBRARY_PATH
    Path to the native library. ``QRACK_SHARED_LIB_PATH`` is honored when
    this is unset.
QCONTROL_MAX_QUBITS
    Largest session the reference engine will build (default 24).
QCONTROL_MAX_SESSIONS
    Number of live handles the reference engine can issue (default 4096).
QCONTROL_SEED
    Seed for the reference engine's random number generator.
QCONTROL_SEPARABILITY_TOLERANCE
    Purity tolerance used when splitting subsystems (default 1e-9).

Custom configuration
--------------------
>>> from qcontrol.config import Config, set_config
>>> set_config(Config(seed=1234, max_qubits=12))

Resetting
---------
>>> from qcontrol.config import reset_config
>>> reset_config()  # next get_config() reloads from environment
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

ENGINES = ("reference", "native")


@dataclass(frozen=True)
class Config:
    """Active qcontrol settings."""

    engine: str = "reference"
    library_path: Optional[str] = None
    max_qubits: int = 24
    max_sessions: int = 4096
    seed: Optional[int] = None
    separability_tolerance: float = 1e-9

    def __post_init__(self):
        if self.engine not in ENGINES:
            raise ValueError(f"Unknown engine {self.engine!r}; expected one of {ENGINES}")
        if self.max_qubits < 0:
            raise ValueError("max_qubits must be non-negative")
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        if self.separability_tolerance < 0:
            raise ValueError("separability_tolerance must be non-negative")


_config: Optional[Config] = None


def _int_var(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build a configuration from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ``

    Returns:
        A new Config; the cached configuration is not touched
    """
    if env is None:
        env = os.environ

    tolerance = env.get("QCONTROL_SEPARABILITY_TOLERANCE", "").strip()
    try:
        tolerance_value = float(tolerance) if tolerance else Config.separability_tolerance
    except ValueError:
        raise ValueError(
            f"QCONTROL_SEPARABILITY_TOLERANCE must be a number, got {tolerance!r}"
        ) from None

    library_path = env.get("QCONTROL_LIBRARY_PATH") or env.get("QRACK_SHARED_LIB_PATH")

    return Config(
        engine=env.get("QCONTROL_ENGINE", "reference").strip().lower() or "reference",
        library_path=library_path or None,
        max_qubits=_int_var(env, "QCONTROL_MAX_QUBITS", Config.max_qubits),
        max_sessions=_int_var(env, "QCONTROL_MAX_SESSIONS", Config.max_sessions),
        seed=_int_var(env, "QCONTROL_SEED", None),
        separability_tolerance=tolerance_value,
    )


def get_config() -> Config:
    """Return the active configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
        logger.debug("Loaded configuration %s", _config)
    return _config


def set_config(config: Config):
    """Replace the active configuration."""
    global _config
    _config = config


def reset_config():
    """Forget the active configuration; the next get_config() reloads it."""
    global _config
    _config = None
