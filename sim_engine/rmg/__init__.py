"""
FAIRSPIN - Commit-Reveal Outcome Engines

Deterministic seed → outcome derivations matching the casino contract.
The same revealed 32-byte seed always yields the same outcome, so a client
can show a result immediately and anyone can re-check it later.

Usage:
    from sim_engine.rmg import compute_outcome
    outcome = compute_outcome("Roulette", seed_bytes)
    outcome.to_dict()  # {"gameType": "Roulette", "result": 0, "color": "green", ...}
"""

from config.game_schema import GameType
from sim_engine.rmg.base import (
    FairnessError, InvalidSeed, Outcome, UnsupportedGameType,
)
from sim_engine.rmg.roulette import RouletteEngine
from sim_engine.rmg.plinko import PlinkoEngine
from sim_engine.rmg.mines import MinesEngine
from sim_engine.rmg.wheel import WheelEngine

GAME_ENGINES = {
    GameType.ROULETTE: RouletteEngine,
    GameType.PLINKO: PlinkoEngine,
    GameType.MINES: MinesEngine,
    GameType.WHEEL: WheelEngine,
}

GAME_TYPES = [g.value for g in GAME_ENGINES]


def get_game_engine(game_type):
    """Get the outcome engine for a game tag (case-insensitive)."""
    key = GameType.lookup(game_type)
    if key is None:
        raise UnsupportedGameType(game_type, GAME_TYPES)
    return GAME_ENGINES[key]()


def compute_outcome(game_type, seed, params=None) -> Outcome:
    """Derive the outcome of one round from its revealed seed."""
    return get_game_engine(game_type).derive(seed, params)


__all__ = [
    "GAME_ENGINES", "GAME_TYPES", "GameType", "Outcome",
    "FairnessError", "InvalidSeed", "UnsupportedGameType",
    "compute_outcome", "get_game_engine",
]
