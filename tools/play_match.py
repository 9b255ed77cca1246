#!/usr/bin/env python3
"""
Play the policy engine against a random mover.

Smoke-tests a model end to end (book, encoding, inference, selection,
fallback) and reports results from the random player's side.

Usage:
    # Untrained small PolicyNet, 20 games
    python tools/play_match.py --games 20

    # Exported model at a given difficulty
    python tools/play_match.py --model models/maia_rapid.onnx \\
        --moves models/all_moves.json --difficulty adept
"""

import argparse
import logging
import random
import sys
from collections import Counter
from pathlib import Path

import chess
from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from policy_engine.engine import EngineConfig, EngineHandle, GameSession, MoveSource
from policy_engine.inference import TorchBackend, create_model
from policy_engine.skill import DIFFICULTIES

MAX_PLIES = 400


def play_game(session: GameSession, rng: random.Random) -> Counter:
    """Play one game to the end; returns engine move sources."""
    sources = Counter()

    while not session.is_over() and len(session.board.move_stack) < MAX_PLIES:
        if session.board.turn == session.engine_color:
            decision = session.play_engine_move()
            sources[decision.source] += 1
        else:
            move = rng.choice(list(session.board.legal_moves))
            session.push_player_move(move)

    return sources


def main():
    parser = argparse.ArgumentParser(
        description="Play the policy engine against a random mover",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--model", type=Path, default=None,
                        help="Policy network (.onnx or .pt); untrained small net if omitted")
    parser.add_argument("--moves", type=Path, default=None, help="Move index JSON")
    parser.add_argument("--difficulty", choices=sorted(DIFFICULTIES), default="master")
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument("--engine-white", action="store_true", help="Engine plays White")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    config = EngineConfig.for_difficulty(
        args.difficulty,
        model_path=args.model,
        move_index_path=args.moves,
        engine_color=chess.WHITE if args.engine_white else chess.BLACK,
        random_seed=args.seed,
    )

    if args.model is None:
        handle = EngineHandle(TorchBackend(create_model("small")))
    else:
        handle = EngineHandle.from_config(config)

    print(config)

    rng = random.Random(args.seed)
    outcomes = Counter()
    sources = Counter()

    for _ in tqdm(range(args.games), desc="Games", unit="game"):
        session = GameSession(handle, config)
        sources.update(play_game(session, rng))
        result = session.result()
        outcomes[result.outcome.value if result else "unfinished"] += 1

    print("=" * 60)
    print(f"Random player vs engine ({config.engine_elo} Elo), {args.games} games")
    for outcome in ("win", "loss", "draw", "unfinished"):
        print(f"  {outcome:<11} {outcomes[outcome]}")
    print("Engine moves by source:")
    for source in MoveSource:
        print(f"  {source.value:<11} {sources[source]}")
    print("=" * 60)


if __name__ == "__main__":
    main()
