import pytest

from fish.logic.cards import create_rng
from fish.session.history import InMemoryGameHistory
from fish.session.manager import SessionManager


@pytest.fixture
def history():
    return InMemoryGameHistory()


@pytest.fixture
async def manager(history):
    manager = SessionManager(history=history, rng=create_rng(7))
    yield manager
    manager.shutdown()
