"""Roulette — single-zero wheel, 37 pockets taken from the seed number."""
from dataclasses import dataclass
from typing import Optional

from config.game_schema import GameType
from sim_engine.rmg.base import BaseRMGEngine, Outcome, Settlement, seed_number

POCKETS = 37
GREEN_MULTIPLIER = 35.0     # 35:1 plus stake
COLOR_MULTIPLIER = 2.0

# Settled bets: straight pays 35:1 plus stake, even-money bets 1:1 plus stake
STRAIGHT_PAYOUT = 36.0
EVEN_MONEY_PAYOUT = 2.0


@dataclass(frozen=True)
class RouletteOutcome(Outcome):
    result: int
    color: str

    def to_dict(self) -> dict:
        return {**super().to_dict(), "result": self.result, "color": self.color}


def pocket_color(result: int) -> str:
    """0 is green, even pockets black, odd pockets red."""
    if result == 0:
        return "green"
    return "black" if result % 2 == 0 else "red"


def bet_wins(result: int, color: str, bet_type: str, bet_value: Optional[str]) -> tuple:
    """Return (win, multiplier) for one bet. Zero loses every even-money bet."""
    if bet_type in ("number", "straight"):
        try:
            won = bet_value is not None and int(bet_value) == result
        except ValueError:
            won = False
        return won, STRAIGHT_PAYOUT if won else 0.0

    if result == 0:
        return False, 0.0
    if bet_type == "color":
        won = bet_value == color
    elif bet_type == "odd_even":
        won = bet_value == ("even" if result % 2 == 0 else "odd")
    elif bet_type == "high_low":
        won = bet_value == ("high" if result >= 19 else "low")
    else:
        won = False
    return won, EVEN_MONEY_PAYOUT if won else 0.0


class RouletteEngine(BaseRMGEngine):
    game_type = GameType.ROULETTE
    display_name = "Roulette"

    def compute(self, seed: bytes, params) -> RouletteOutcome:
        result = seed_number(seed) % POCKETS
        color = pocket_color(result)
        return RouletteOutcome(
            game_type=self.game_type.value,
            multiplier=GREEN_MULTIPLIER if color == "green" else COLOR_MULTIPLIER,
            outcome=f"Landed on {result} ({color})",
            result=result,
            color=color,
        )

    def settle(self, outcome: RouletteOutcome, params) -> Optional[Settlement]:
        """Resolve betType/betValue against the landed pocket.

        Unknown bet types lose. Colour bets use the pocket colour reported
        in the outcome.
        """
        if not getattr(params, "bet_type", None):
            return None
        won, multiplier = bet_wins(outcome.result, outcome.color,
                                   params.bet_type, params.bet_value)
        return Settlement(
            bet_type=params.bet_type,
            bet_value=params.bet_value,
            win=won,
            multiplier=multiplier,
        )
