"""
UCI Protocol Interface

This module implements the Universal Chess Interface (UCI) protocol,
which lets the policy engine play from chess GUIs like Arena, Cute Chess
and En-croissant.

Protocol Flow:
    GUI -> "uci"
    Engine -> "id name PolicyEngine 0.1.0"
    Engine -> "option name UCI_Elo type spin default 1500 min 1000 max 2100"
    Engine -> "uciok"
    GUI -> "setoption name UCI_Elo value 1300"
    GUI -> "isready"
    Engine -> "readyok"
    GUI -> "position startpos moves e2e4"
    GUI -> "go wtime 300000 btime 300000"
    Engine -> "info string source book"
    Engine -> "bestmove c7c5"

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from policy_engine.uci.interface import UCIEngine

__all__ = ['UCIEngine']
