"""
Tests for policy-to-move selection.

Tests cover:
    - Softmax restricted to legal moves
    - Sentinel scoring of moves without a policy slot
    - Mirrored lookup for Black to move
    - Deterministic and exploring selection
    - Malformed policy vectors
"""

import chess
import numpy as np
import pytest

from policy_engine.errors import InferenceFailure
from policy_engine.policy.move_index import MoveIndexTable
from policy_engine.policy.selector import SENTINEL_LOGIT, PolicySelector, softmax
from tests.fakes import favor


@pytest.fixture
def selector(move_table):
    return PolicySelector(move_table, rng=np.random.default_rng(0))


def legal(board):
    return list(board.legal_moves)


class TestSoftmax:
    """Numerically stable softmax."""

    def test_sums_to_one(self):
        probs = softmax(np.array([1.0, 2.0, 3.0]))
        assert probs.sum() == pytest.approx(1.0)
        assert probs.dtype == np.float64

    def test_large_values(self):
        probs = softmax(np.array([1000.0, 1000.0]))
        np.testing.assert_allclose(probs, [0.5, 0.5])

    def test_order_preserved(self):
        probs = softmax(np.array([0.5, -2.0, 3.0]))
        assert probs[2] > probs[0] > probs[1]


class TestRank:
    """Scoring and ranking legal moves."""

    def test_probabilities_over_legal_moves(self, selector, move_table, start_board):
        ranked = selector.rank(legal(start_board), favor(move_table, {"e2e4": 3.0}), False)

        assert len(ranked) == 20
        assert sum(s.probability for s in ranked) == pytest.approx(1.0)
        assert ranked[0].move == chess.Move.from_uci("e2e4")
        assert ranked[0].logit == pytest.approx(3.0)

    def test_illegal_slots_do_not_dilute(self, selector, move_table, start_board):
        # A huge logit on an illegal move must not change legal probabilities
        policy = favor(move_table, {"e2e4": 2.0, "e7e5": 50.0})
        ranked = selector.rank(legal(start_board), policy, False)

        assert sum(s.probability for s in ranked) == pytest.approx(1.0)
        assert ranked[0].move.uci() == "e2e4"

    def test_sorted_descending(self, selector, move_table, start_board):
        policy = favor(move_table, {"e2e4": 3.0, "d2d4": 2.0, "g1f3": 1.0})
        ranked = selector.rank(legal(start_board), policy, False)

        probs = [s.probability for s in ranked]
        assert probs == sorted(probs, reverse=True)
        assert [s.move.uci() for s in ranked[:3]] == ["e2e4", "d2d4", "g1f3"]

    def test_ties_keep_legal_order(self, selector, move_table, start_board):
        moves = legal(start_board)
        policy = np.zeros(len(move_table), dtype=np.float32)
        ranked = selector.rank(moves, policy, False)

        assert [s.move for s in ranked] == moves

    def test_mirrored_scoring(self, selector, move_table):
        board = chess.Board()
        board.push_san("e4")
        # Black's e7e5 is stored under White's e2e4
        policy = favor(move_table, {"e2e4": 4.0})
        ranked = selector.rank(legal(board), policy, True)

        assert ranked[0].move == chess.Move.from_uci("e7e5")
        assert ranked[0].index == move_table.move_to_index["e2e4"]

    def test_sentinel_for_missing_slots(self, start_board):
        table = MoveIndexTable({"e2e4": 0, "d2d4": 1})
        selector = PolicySelector(table)
        ranked = selector.rank(legal(start_board), np.array([-3.0, -4.0]), False)

        found = [s for s in ranked if s.index is not None]
        missing = [s for s in ranked if s.index is None]

        assert len(found) == 2
        assert len(missing) == 18
        assert all(s.logit == SENTINEL_LOGIT for s in missing)
        assert min(s.probability for s in found) > max(s.probability for s in missing)
        assert ranked[0].move.uci() == "e2e4"

    def test_wrong_length(self, selector, start_board):
        with pytest.raises(InferenceFailure):
            selector.rank(legal(start_board), np.zeros(100), False)

    def test_non_finite_logits(self, selector, move_table, start_board):
        policy = favor(move_table, {"e2e4": np.nan})

        with pytest.raises(InferenceFailure):
            selector.rank(legal(start_board), policy, False)

    def test_accepts_batched_output(self, selector, move_table, start_board):
        policy = favor(move_table, {"d2d4": 3.0})[np.newaxis]
        ranked = selector.rank(legal(start_board), policy, False)

        assert ranked[0].move.uci() == "d2d4"


class TestSelect:
    """Choosing one move."""

    def test_no_legal_moves(self, selector, move_table):
        policy = np.zeros(len(move_table), dtype=np.float32)

        assert selector.select([], policy, False) is None
        assert selector.select_scored([], policy, False, skill_epsilon=1.0) is None

    def test_deterministic_without_exploration(self, selector, move_table, start_board):
        policy = favor(move_table, {"e2e4": 3.0, "d2d4": 2.9})
        picks = {selector.select(legal(start_board), policy, False).uci() for _ in range(20)}

        assert picks == {"e2e4"}

    def test_exploration_stays_in_top_k(self, selector, move_table, start_board):
        policy = favor(move_table, {"e2e4": 3.0, "d2d4": 2.0, "g1f3": 1.0})
        picks = [
            selector.select(legal(start_board), policy, False, skill_epsilon=1.0).uci()
            for _ in range(200)
        ]

        assert set(picks) == {"e2e4", "d2d4", "g1f3"}

    def test_top_k_one_never_strays(self, move_table, start_board):
        selector = PolicySelector(move_table, top_k=1, rng=np.random.default_rng(1))
        policy = favor(move_table, {"e2e4": 3.0, "d2d4": 2.0})
        picks = {
            selector.select(legal(start_board), policy, False, skill_epsilon=1.0).uci()
            for _ in range(50)
        }

        assert picks == {"e2e4"}

    def test_top_k_larger_than_legal_set(self, move_table):
        board = chess.Board("7k/8/8/8/8/8/8/K7 w - - 0 1")
        selector = PolicySelector(move_table, top_k=10, rng=np.random.default_rng(2))
        policy = np.zeros(len(move_table), dtype=np.float32)

        for _ in range(20):
            move = selector.select(legal(board), policy, False, skill_epsilon=1.0)
            assert move in board.legal_moves

    def test_select_scored_keeps_probability(self, selector, move_table, start_board):
        policy = favor(move_table, {"e2e4": 3.0})
        scored = selector.select_scored(legal(start_board), policy, False)

        assert scored.move.uci() == "e2e4"
        assert 0.0 < scored.probability <= 1.0

    def test_seeded_exploration_is_reproducible(self, move_table, start_board):
        policy = favor(move_table, {"e2e4": 3.0, "d2d4": 2.0, "g1f3": 1.0})
        runs = []
        for _ in range(2):
            selector = PolicySelector(move_table, rng=np.random.default_rng(42))
            runs.append([
                selector.select(legal(start_board), policy, False, skill_epsilon=0.5)
                for _ in range(30)
            ])

        assert runs[0] == runs[1]

    def test_invalid_top_k(self, move_table):
        with pytest.raises(ValueError):
            PolicySelector(move_table, top_k=0)
