import pytest

from qcontrol import (
    Config, ReferenceEngine, Simulator,
    reset_config, reset_engine, set_config, set_engine,
)

MAX_QUBITS = 10
MAX_SESSIONS = 64


@pytest.fixture(autouse=True)
def engine():
    """A fresh, seeded reference engine installed as the active engine."""
    config = Config(seed=1234, max_qubits=MAX_QUBITS, max_sessions=MAX_SESSIONS)
    set_config(config)
    fresh = ReferenceEngine.from_config(config)
    set_engine(fresh)
    yield fresh
    reset_engine()
    reset_config()


@pytest.fixture
def sim(engine):
    """A three-qubit simulator in |000⟩."""
    session = Simulator(3)
    yield session
    session.close()
