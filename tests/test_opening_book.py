"""
Tests for the fixed two-move opening book.
"""

import chess
import numpy as np
import pytest

from policy_engine.opening.book import (
    BOOK_REPLIES,
    FIXED_OPENINGS,
    OpeningBook,
    OpeningLine,
    get_override_move,
)

SICILIAN = FIXED_OPENINGS[0]


class TestCatalog:
    """The built-in opening lines."""

    def test_ten_lines(self):
        assert len(FIXED_OPENINGS) == 10
        assert len({line.name for line in FIXED_OPENINGS}) == 10

    @pytest.mark.parametrize("line", FIXED_OPENINGS, ids=lambda line: line.name)
    @pytest.mark.parametrize("first_move", ["e2e4", "d2d4", "c2c4"])
    def test_lines_playable_for_black(self, line, first_move):
        board = chess.Board()
        board.push_uci(first_move)
        board.push_uci(line.first)
        board.push_uci("g1f3")

        assert chess.Move.from_uci(line.second) in board.legal_moves


class TestGetOverrideMove:
    """Stateless book lookup."""

    def test_first_and_second(self):
        assert get_override_move(0, SICILIAN) == chess.Move.from_uci("c7c5")
        assert get_override_move(1, SICILIAN) == chess.Move.from_uci("d7d6")

    @pytest.mark.parametrize("reply_count", [2, 3, 10])
    def test_silent_after_two_replies(self, reply_count):
        assert get_override_move(reply_count, SICILIAN) is None

    def test_no_line(self):
        assert get_override_move(0, None) is None

    def test_mirrored_for_white(self):
        assert get_override_move(0, SICILIAN, chess.WHITE) == chess.Move.from_uci("c2c4")
        assert get_override_move(1, SICILIAN, chess.WHITE) == chess.Move.from_uci("d2d3")

    def test_negative_reply_count(self):
        with pytest.raises(ValueError):
            get_override_move(-1, SICILIAN)


class TestOpeningBook:
    """Per-game line selection."""

    @pytest.fixture
    def book(self):
        return OpeningBook(rng=np.random.default_rng(3))

    def test_no_line_until_consulted(self, book):
        assert book.line is None

    def test_both_replies_from_same_line(self, book):
        first = book.override_move(0)
        line = book.line
        second = book.override_move(1)

        assert line is not None
        assert book.line is line
        assert first == chess.Move.from_uci(line.first)
        assert second == chess.Move.from_uci(line.second)

    def test_silent_from_third_reply(self, book):
        book.override_move(0)
        line = book.line

        assert book.override_move(BOOK_REPLIES) is None
        assert book.line is line

    def test_third_reply_does_not_choose_line(self, book):
        assert book.override_move(2) is None
        assert book.line is None

    def test_reset_forgets_line(self, book):
        book.override_move(0)
        book.reset()

        assert book.line is None

    def test_every_line_can_be_chosen(self):
        rng = np.random.default_rng(11)
        chosen = {OpeningBook(rng=rng).choose_line().name for _ in range(500)}

        assert chosen == {line.name for line in FIXED_OPENINGS}

    def test_white_book(self):
        book = OpeningBook(color=chess.WHITE, catalog=[SICILIAN])

        assert book.override_move(0) == chess.Move.from_uci("c2c4")
        assert book.override_move(1) == chess.Move.from_uci("d2d3")

    def test_custom_catalog(self):
        line = OpeningLine("Test", "a7a6", "h7h6")
        book = OpeningBook(catalog=[line])

        assert book.override_move(0) == chess.Move.from_uci("a7a6")
        assert line.moves == ("a7a6", "h7h6")

    def test_empty_catalog(self):
        with pytest.raises(ValueError):
            OpeningBook(catalog=[])
