"""
FAIRSPIN - Base Outcome Engine

Abstract base for the commit-reveal outcome engines. Every engine maps a
32-byte revealed seed plus its game parameters to an immutable Outcome,
using only the seed bytes as entropy.
"""

import logging
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from config.game_schema import GameType, parse_params
from config.settings import FairnessConfig

logger = logging.getLogger("fairspin.rmg")


# ═══════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════

class FairnessError(Exception):
    """Base class for outcome and commit-reveal errors."""


class UnsupportedGameType(FairnessError, ValueError):
    """Raised when a game tag doesn't name one of the supported engines."""

    def __init__(self, game_type, available=None):
        self.game_type = game_type
        self.available = list(available or [])
        msg = f"Unknown game type: {game_type}"
        if self.available:
            msg += f". Available: {self.available}"
        super().__init__(msg)


class InvalidSeed(FairnessError, ValueError):
    """Raised when a seed or secret isn't valid hex / the right length."""


# ═══════════════════════════════════════════════════════════════
# Seed helpers
# ═══════════════════════════════════════════════════════════════

def normalize_seed(seed) -> bytes:
    """Accept 32 raw bytes or a 64-char hex string, return bytes."""
    if isinstance(seed, str):
        text = seed.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        try:
            seed = bytes.fromhex(text)
        except ValueError as e:
            raise InvalidSeed(f"Seed is not valid hex: {e}") from e
    elif isinstance(seed, (bytearray, memoryview)):
        seed = bytes(seed)
    if not isinstance(seed, bytes):
        raise InvalidSeed(f"Seed must be bytes or hex str, got {type(seed).__name__}")
    if len(seed) != FairnessConfig.SEED_BYTES:
        raise InvalidSeed(
            f"Seed must be {FairnessConfig.SEED_BYTES} bytes, got {len(seed)}"
        )
    return seed


def seed_number(seed: bytes) -> int:
    """First 4 seed bytes as an unsigned big-endian int."""
    return int.from_bytes(seed[:4], "big")


# ═══════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Outcome:
    """Result of one round. Subclasses add the game-specific values."""
    game_type: str
    multiplier: float
    outcome: str            # Human-readable summary

    def to_dict(self) -> dict:
        return {
            "gameType": self.game_type,
            "multiplier": self.multiplier,
            "outcome": self.outcome,
        }


@dataclass(frozen=True)
class Settlement:
    """A player's bet resolved against an outcome. Replaces the outcome
    multiplier when computing the payout."""
    bet_type: str
    bet_value: Optional[str]
    win: bool
    multiplier: float

    def to_dict(self) -> dict:
        return {
            "betType": self.bet_type,
            "betValue": self.bet_value,
            "win": self.win,
            "multiplier": self.multiplier,
        }


@dataclass
class SimResult:
    """Monte Carlo summary of an engine's multiplier distribution."""
    game_type: str
    rounds: int
    avg_multiplier: float
    max_multiplier_hit: float
    std_error: float
    distribution: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "game_type": self.game_type,
            "rounds": self.rounds,
            "avg_multiplier": round(self.avg_multiplier, 4),
            "max_multiplier_hit": round(self.max_multiplier_hit, 2),
            "std_error": round(self.std_error, 6),
            "distribution": self.distribution,
        }


def _bucket(mult: float) -> str:
    if mult < 1:
        return "<1x"
    elif mult < 2:
        return "1-2x"
    elif mult < 5:
        return "2-5x"
    elif mult < 10:
        return "5-10x"
    elif mult < 50:
        return "10-50x"
    elif mult < 100:
        return "50-100x"
    return "100x+"


# ═══════════════════════════════════════════════════════════════
# Engine base
# ═══════════════════════════════════════════════════════════════

class BaseRMGEngine(ABC):
    """Abstract base for all seed-to-outcome engines."""

    game_type: GameType
    display_name: str = "Base Game"

    @abstractmethod
    def compute(self, seed: bytes, params) -> Outcome:
        """Derive the outcome from a normalized seed and parsed params."""
        ...

    def parse_params(self, params=None):
        return parse_params(self.game_type, params)

    def derive(self, seed, params=None) -> Outcome:
        """Public entry point: validate the seed, default the params, compute."""
        seed = normalize_seed(seed)
        parsed = self.parse_params(params)
        outcome = self.compute(seed, parsed)
        logger.debug("%s seed=%s… → %s", self.game_type.value,
                     seed[:4].hex(), outcome.outcome)
        return outcome

    def settle(self, outcome: Outcome, params) -> Optional[Settlement]:
        """Resolve a bet carried in params. None means pay the outcome multiplier."""
        return None

    def simulate(self, params=None, rounds: int = None, seed: int = None) -> SimResult:
        """Run a Monte Carlo pass over reproducible pseudo-random seeds.

        A bet in params (see settle) is applied, so the average reflects
        what that bet returns.

        The seeds come from random.Random, so this estimates the payout
        distribution only; it is never a source of live round seeds.
        """
        rounds = rounds or FairnessConfig.SIM_ROUNDS
        seed = FairnessConfig.SIM_SEED if seed is None else seed
        rng = random.Random(seed)
        parsed = self.parse_params(params)

        total = 0.0
        total_sq = 0.0
        max_mult = 0.0
        buckets = {}

        for _ in range(rounds):
            outcome = self.compute(rng.randbytes(FairnessConfig.SEED_BYTES), parsed)
            settlement = self.settle(outcome, parsed)
            mult = settlement.multiplier if settlement else outcome.multiplier
            total += mult
            total_sq += mult * mult
            if mult > max_mult:
                max_mult = mult
            b = _bucket(mult)
            buckets[b] = buckets.get(b, 0) + 1

        avg = total / rounds
        variance = max(0.0, total_sq / rounds - avg * avg)
        std_err = math.sqrt(variance / rounds)

        return SimResult(
            game_type=self.game_type.value,
            rounds=rounds,
            avg_multiplier=avg,
            max_multiplier_hit=max_mult,
            std_error=std_err,
            distribution={k: round(v / rounds, 4) for k, v in sorted(buckets.items())},
        )

    def get_metadata(self) -> dict:
        """Return game type metadata for the CLI/API."""
        return {
            "game_type": self.game_type.value,
            "display_name": self.display_name,
            "default_params": self.parse_params().to_wire(),
        }
