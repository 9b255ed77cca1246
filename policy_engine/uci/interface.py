"""
UCI Protocol Implementation

This module implements the Universal Chess Interface (UCI) protocol so the
policy engine can be played from any chess GUI. The engine plays whichever
side is to move when it receives 'go'.

UCI Commands Supported:
    - uci: Identify engine and list options
    - isready: Synchronization check
    - ucinewgame: Start new game (new opening line)
    - setoption: UCI_Elo, OpponentElo, OwnBook
    - position: Set board position
    - go: Choose a move
    - stop: Wait for the pending move
    - quit: Shutdown engine

Threading:
    - Main thread: Listen for UCI commands
    - Move thread: Run inference and selection on a board copy
    - Communication: generation counter; a move chosen for a game that was
      replaced by 'ucinewgame' is dropped. A 'go' for the new game waits
      for the old move thread instead of being ignored
"""

import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional

import chess

from policy_engine.engine.config import EngineConfig
from policy_engine.engine.handle import EngineHandle
from policy_engine.engine.session import MoveEngine
from policy_engine.errors import EncodingDefect
from policy_engine.opening.book import OpeningBook

MIN_UCI_ELO = 1000
MAX_UCI_ELO = 2100


def setup_logger(debug=True):
    """
    Setup file-based logger for UCI debugging.

    stdout carries the protocol, so logs go to ~/.policy_engine/engine.log.

    Args:
        debug: If True, log at DEBUG level; otherwise INFO level

    Returns:
        Configured logger instance
    """
    log_dir = Path.home() / ".policy_engine"
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "engine.log"

    logger = logging.getLogger("policy_engine")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    logger.handlers.clear()

    handler = logging.FileHandler(log_file, mode='w')
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


class UCIEngine:
    """
    UCI-compliant front-end for the policy engine.

    Attributes:
        board: Current chess position
        handle: Shared EngineHandle
        config: Engine settings (ratings, book, selection)
        engine: MoveEngine for the current game
        book: Opening book for the current game
        generation: Bumped by 'ucinewgame'
        search_thread: Background thread choosing a move
        search_generation: Game the current move thread is choosing for

    Methods:
        run: Main UCI command loop
        handle_uci / handle_isready / handle_ucinewgame / handle_setoption
        handle_position / handle_go / handle_stop / handle_quit
    """

    def __init__(self, handle: EngineHandle, config: Optional[EngineConfig] = None, debug=True):
        """
        Initialize UCI engine.

        Args:
            handle: Loaded model and move table
            config: Engine settings (default: EngineConfig())
            debug: Enable debug logging (default: True)
        """
        self.board = chess.Board()
        self.handle = handle
        self.config = config if config is not None else EngineConfig()
        self.engine = MoveEngine(handle, self.config)
        self.book: Optional[OpeningBook] = None
        self.generation = 0

        self.searching = False
        self.search_thread: Optional[threading.Thread] = None
        self.search_generation = 0

        self.name = "PolicyEngine"
        self.version = "0.1.0"

        self.logger = setup_logger(debug=debug)
        self.logger.info("=== PolicyEngine Started ===")
        self.logger.info(f"Log file: {Path.home() / '.policy_engine' / 'engine.log'}")

    def run(self):
        """
        Main UCI command loop.

        Listens for UCI commands on stdin and responds on stdout.
        Runs until 'quit' command is received.
        """
        while True:
            try:
                command = input().strip()

                if not command:
                    continue

                self.logger.debug(f">>> {command}")

                tokens = command.split()
                cmd = tokens[0].lower()

                if cmd == "uci":
                    self.handle_uci()

                elif cmd == "isready":
                    self.handle_isready()

                elif cmd == "ucinewgame":
                    self.handle_ucinewgame()

                elif cmd == "setoption":
                    self.handle_setoption(tokens)

                elif cmd == "position":
                    self.handle_position(tokens)

                elif cmd == "go":
                    self.handle_go(tokens)

                elif cmd == "stop":
                    self.handle_stop()

                elif cmd == "quit":
                    self.handle_quit()
                    break

                else:
                    # Unknown command - the UCI protocol says to ignore it
                    self.logger.debug(f"Unknown command ignored: {command}")

            except EOFError:
                self.logger.info("EOF received, shutting down")
                break
            except Exception as e:
                self.logger.error(f"Command error: {e}", exc_info=True)
                print(f"# Error: {e}", file=sys.stderr)

    def _send(self, line: str):
        print(line)
        sys.stdout.flush()
        self.logger.debug(f"<<< {line}")

    def handle_uci(self):
        """
        Handle 'uci' command - identify engine and its options.

        Response:
            id name PolicyEngine 0.1.0
            id author ...
            option ...
            uciok
        """
        self.logger.info("Handling: uci")

        self._send(f"id name {self.name} {self.version}")
        self._send("id author PolicyEngine developers")
        self._send(
            f"option name UCI_Elo type spin default {self.config.engine_elo} "
            f"min {MIN_UCI_ELO} max {MAX_UCI_ELO}"
        )
        self._send(
            f"option name OpponentElo type spin default {self.config.opponent_elo} "
            f"min {MIN_UCI_ELO} max {MAX_UCI_ELO}"
        )
        self._send(
            f"option name OwnBook type check default {str(self.config.use_opening_book).lower()}"
        )
        self._send("uciok")

    def handle_isready(self):
        """
        Handle 'isready' command - synchronization.

        Response:
            readyok
        """
        self.logger.info("Handling: isready")
        self._send("readyok")

    def handle_ucinewgame(self):
        """Handle 'ucinewgame' command - reset board and opening line."""
        self.logger.info("Handling: ucinewgame - resetting board and opening book")

        self.board = chess.Board()
        self.book = None
        self.generation += 1

    def handle_setoption(self, tokens):
        """
        Handle 'setoption name <id> value <x>'.

        Args:
            tokens: Command tokens (e.g., ['setoption', 'name', 'UCI_Elo', 'value', '1300'])
        """
        try:
            name_index = tokens.index("name")
            value_index = tokens.index("value")
        except ValueError:
            self.logger.warning(f"Malformed setoption: {' '.join(tokens)}")
            return

        name = " ".join(tokens[name_index + 1:value_index]).lower()
        value = " ".join(tokens[value_index + 1:])

        try:
            if name == "uci_elo":
                self.config = replace(self.config, engine_elo=int(value))
            elif name == "opponentelo":
                self.config = replace(self.config, opponent_elo=int(value))
            elif name == "ownbook":
                self.config = replace(self.config, use_opening_book=value.lower() == "true")
            else:
                self.logger.debug(f"Unknown option ignored: {name}")
                return
        except ValueError as e:
            self.logger.error(f"Invalid value for {name}: {value} - {e}")
            print(f"# Invalid value for {name}: {value}", file=sys.stderr)
            return

        self.engine = MoveEngine(self.handle, self.config, rng=self.engine.rng)
        self.logger.info(f"Option set: {name} = {value}")

    def handle_position(self, tokens):
        """
        Handle 'position' command - set board position.

        Formats:
            position startpos
            position startpos moves e2e4 e7e5
            position fen <FEN string>
            position fen <FEN string> moves e2e4

        Args:
            tokens: Command tokens (e.g., ['position', 'startpos', 'moves', 'e2e4'])
        """
        self.logger.info(f"Handling: position {' '.join(tokens[1:])}")

        if len(tokens) < 2:
            self.logger.warning("Position command with insufficient arguments")
            return

        if tokens[1] == "startpos":
            board = chess.Board()
            move_index = 2
        elif tokens[1] == "fen":
            try:
                moves_index = tokens.index("moves")
                fen = " ".join(tokens[2:moves_index])
                move_index = moves_index
            except ValueError:
                fen = " ".join(tokens[2:])
                move_index = len(tokens)

            try:
                board = chess.Board(fen)
                self.logger.debug(f"Set position from FEN: {fen}")
            except ValueError as e:
                self.logger.error(f"Invalid FEN: {e}")
                print(f"# Invalid FEN: {e}", file=sys.stderr)
                return
        else:
            self.logger.warning(f"Unknown position type: {tokens[1]}")
            return

        if move_index < len(tokens) and tokens[move_index] == "moves":
            for move_str in tokens[move_index + 1:]:
                try:
                    move = chess.Move.from_uci(move_str)
                except ValueError as e:
                    self.logger.error(f"Invalid move format: {move_str} - {e}")
                    print(f"# Invalid move format: {move_str} - {e}", file=sys.stderr)
                    break

                if move not in board.legal_moves:
                    self.logger.error(f"Illegal move: {move_str}")
                    print(f"# Illegal move: {move_str}", file=sys.stderr)
                    break
                board.push(move)

        self.board = board
        self.logger.info(f"Position updated: {self.board.fen()}")

    def _reply_count(self, board: chess.Board) -> Optional[int]:
        """Moves already played by the side to move, None if not from startpos."""
        if board.root().fen() != chess.STARTING_FEN:
            return None
        return len(board.move_stack) // 2

    def _book_for(self, board: chess.Board) -> Optional[OpeningBook]:
        if not self.config.use_opening_book or self._reply_count(board) is None:
            return None
        if self.book is None:
            self.book = OpeningBook(color=board.turn, rng=self.engine.rng)
        # The book only knows the side it was created for
        return self.book if self.book.color == board.turn else None

    def handle_go(self, tokens):
        """
        Handle 'go' command - choose a move in the background.

        Time controls and depth are accepted and ignored: the policy
        network answers in a single inference.

        Args:
            tokens: Command tokens (e.g., ['go', 'wtime', '300000'])
        """
        self.logger.info(f"Handling: go {' '.join(tokens[1:])}")

        previous = None
        if self.search_thread and self.search_thread.is_alive():
            if self.search_generation == self.generation:
                self.logger.warning("go received while a move is pending, ignored")
                return
            # The pending move belongs to a replaced game and will be dropped
            previous = self.search_thread

        board_copy = self.board.copy()
        reply_count = self._reply_count(board_copy) or 0
        book = self._book_for(board_copy)

        self.searching = True
        self.search_thread = threading.Thread(
            target=self._search_thread,
            args=(board_copy, reply_count, book, self.generation, previous),
        )
        self.search_generation = self.generation
        self.search_thread.start()

    def _search_thread(self, board: chess.Board, reply_count: int,
                       book: Optional[OpeningBook], generation: int,
                       previous: Optional[threading.Thread] = None):
        """
        Background thread choosing a move.

        Output:
            info string <source> <probability>
            bestmove <move>
        """
        try:
            if previous is not None:
                self.logger.debug("Waiting for the replaced game's move thread")
                previous.join()

            decision = self.engine.choose_move(board, reply_count, book)

            if generation != self.generation:
                self.logger.info("Game replaced while choosing, dropping result")
                return

            if decision is None:
                self.logger.info("No legal moves, sending null move")
                self._send("bestmove 0000")
                return

            info = f"info string source {decision.source.value}"
            if decision.probability is not None:
                info += f" probability {decision.probability:.4f}"
            self._send(info)
            self._send(f"bestmove {decision.move.uci()}")

        except EncodingDefect as e:
            self.logger.error(f"Cannot encode position: {e}", exc_info=True)
            print(f"# Cannot encode position: {e}", file=sys.stderr)
            self._send("bestmove 0000")

        finally:
            if self.search_thread is threading.current_thread():
                self.searching = False
            self.logger.debug("Move thread finished")

    def handle_stop(self):
        """
        Handle 'stop' command - wait for the pending move.

        Selection is a single inference and cannot be interrupted; the
        pending bestmove is sent as soon as it is ready.
        """
        self.logger.info("Handling: stop")

        if self.search_thread and self.search_thread.is_alive():
            self.logger.debug("Waiting for move thread to finish (timeout=5.0s)")
            self.search_thread.join(timeout=5.0)
            if self.search_thread.is_alive():
                self.logger.warning("Move thread did not finish within timeout")

    def handle_quit(self):
        """Handle 'quit' command - shutdown engine."""
        self.logger.info("Handling: quit - shutting down engine")

        if self.search_thread and self.search_thread.is_alive():
            self.logger.debug("Waiting for move thread to complete before quitting")
            self.search_thread.join()

        self.logger.info("=== PolicyEngine Stopped ===")
