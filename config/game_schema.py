"""
FAIRSPIN - Game Parameter Schema

Per-round parameters for each game type. The wire format is camelCase
(`totalCells`, `numMines`) as sent by the browser client and recorded
alongside on-chain bets; snake_case names are accepted too.

Parameters are deliberately lenient: a missing, non-numeric or non-positive
value falls back to the field default instead of raising, so any recorded
round can always be replayed. Oversized board shapes clamp to the caps in
FairnessConfig.

Usage:
    from config.game_schema import GameType, parse_params
    params = parse_params(GameType.PLINKO, {"rows": "12"})
    params.rows  # 12
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from config.settings import FairnessConfig


# ═══════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════

class GameType(str, Enum):
    ROULETTE = "Roulette"
    PLINKO = "Plinko"
    MINES = "Mines"
    WHEEL = "Wheel"

    @classmethod
    def lookup(cls, tag) -> Optional["GameType"]:
        """Case-insensitive tag lookup. Returns None for unknown tags."""
        if isinstance(tag, cls):
            return tag
        if not isinstance(tag, str):
            return None
        wanted = tag.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


# ═══════════════════════════════════════════════════════════════
# Lenient coercion
# ═══════════════════════════════════════════════════════════════

def _coerce_int(value: Any) -> Optional[int]:
    """Best-effort int conversion; None when the value isn't a whole number."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class _LenientParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def _bounded(v, default: int, cap: int, floor: int = 1) -> int:
    """Whole numbers below `floor` take the default; above `cap` clamp to it."""
    n = _coerce_int(v)
    if n is None or n < floor:
        return default
    return min(n, cap)


def _bet_text(v) -> Optional[str]:
    if v is None or isinstance(v, (dict, list)):
        return None
    text = str(v).strip().lower()
    return text or None


# ═══════════════════════════════════════════════════════════════
# Per-game parameters
# ═══════════════════════════════════════════════════════════════

class RouletteParams(_LenientParams):
    """European single-zero wheel. The bet fields are optional.

    With no `betType` the round pays the pocket multiplier; with one it is
    settled as number/straight, color, odd_even or high_low.
    """
    bet_type: Optional[str] = Field(None, alias="betType")
    bet_value: Optional[str] = Field(None, alias="betValue")

    @field_validator("bet_type", "bet_value", mode="before")
    @classmethod
    def normalize_bet(cls, v):
        return _bet_text(v)


class PlinkoParams(_LenientParams):
    rows: int = 10

    @field_validator("rows", mode="before")
    @classmethod
    def default_bad_rows(cls, v):
        return _bounded(v, 10, FairnessConfig.MAX_PLINKO_ROWS)


class MinesParams(_LenientParams):
    total_cells: int = Field(25, alias="totalCells")
    num_mines: int = Field(5, alias="numMines")
    revealed: int = 0               # Safe cells uncovered before cash-out

    @field_validator("total_cells", "num_mines", mode="before")
    @classmethod
    def default_bad_counts(cls, v, info: ValidationInfo):
        return _bounded(v, cls.model_fields[info.field_name].default,
                        FairnessConfig.MAX_MINES_CELLS)

    @field_validator("revealed", mode="before")
    @classmethod
    def default_bad_revealed(cls, v):
        return _bounded(v, 0, FairnessConfig.MAX_MINES_CELLS, floor=0)


class WheelParams(_LenientParams):
    segments: int = 8

    @field_validator("segments", mode="before")
    @classmethod
    def default_bad_segments(cls, v):
        return _bounded(v, 8, FairnessConfig.MAX_WHEEL_SEGMENTS)


PARAM_MODELS = {
    GameType.ROULETTE: RouletteParams,
    GameType.PLINKO: PlinkoParams,
    GameType.MINES: MinesParams,
    GameType.WHEEL: WheelParams,
}


def parse_params(game_type: GameType, params=None) -> _LenientParams:
    """Build the params model for a game from a dict, a model or None."""
    model = PARAM_MODELS[game_type]
    if isinstance(params, model):
        return params
    if isinstance(params, BaseModel):
        params = params.model_dump(by_alias=True)
    if not isinstance(params, dict):
        params = {}
    return model.model_validate(params)
