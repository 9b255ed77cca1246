"""
Shared fixtures: the reference move table and handles around fake backends.
"""

import chess
import pytest

from policy_engine.engine.handle import EngineHandle
from policy_engine.policy.move_index import MoveIndexTable
from tests.fakes import FakeBackend


@pytest.fixture(scope="session")
def move_table():
    """Reference move index table (built once)."""
    return MoveIndexTable.reference()


@pytest.fixture
def make_handle(move_table):
    """Factory for handles around a FakeBackend."""

    def _make(**kwargs):
        return EngineHandle(FakeBackend(**kwargs), move_table)

    return _make


@pytest.fixture
def start_board():
    return chess.Board()
