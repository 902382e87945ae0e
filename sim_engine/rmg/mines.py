"""Mines — hash-indexed draws without replacement from the cell list."""
import hashlib
from dataclasses import dataclass
from typing import Optional

from config.game_schema import GameType
from config.settings import FairnessConfig
from sim_engine.rmg.base import BaseRMGEngine, Outcome

MINE_BONUS = 0.2            # Flat multiplier step per mine


@dataclass(frozen=True)
class MinesOutcome(Outcome):
    mine_positions: tuple   # In draw order
    total_cells: int
    num_mines: int
    safe_cells: int
    cashout_multiplier: Optional[float] = None

    def to_dict(self) -> dict:
        d = {
            **super().to_dict(),
            "minePositions": list(self.mine_positions),
            "totalCells": self.total_cells,
            "numMines": self.num_mines,
            "safeCells": self.safe_cells,
        }
        if self.cashout_multiplier is not None:
            d["cashoutMultiplier"] = self.cashout_multiplier
        return d


class MinesEngine(BaseRMGEngine):
    game_type = GameType.MINES
    display_name = "Mines"

    @staticmethod
    def place_mines(seed: bytes, total_cells: int, num_mines: int) -> list:
        """Draw mine i at H(seed || byte(i))[:4] mod len(available)."""
        available = list(range(total_cells))
        mines = []
        for i in range(num_mines):
            if not available:
                break
            digest = hashlib.new(FairnessConfig.MINES_INDEX_HASH,
                                 seed + bytes([i & 0xFF])).digest()
            idx = int.from_bytes(digest[:4], "big") % len(available)
            mines.append(available.pop(idx))
        return mines

    @staticmethod
    def flat_multiplier(num_mines: int) -> float:
        return round(1 + MINE_BONUS * num_mines, 2)

    @staticmethod
    def cashout_multiplier(total_cells: int, num_mines: int, revealed: int) -> float:
        """Fair odds of surviving `revealed` picks: prod (total-i)/(safe-i).

        Returns 0.0 once the reveal count reaches past the safe cells.
        """
        safe = total_cells - num_mines
        if revealed > safe or safe <= 0:
            return 0.0
        mult = 1.0
        for i in range(revealed):
            mult *= (total_cells - i) / (safe - i)
        return round(mult, 2)

    def compute(self, seed: bytes, params) -> MinesOutcome:
        total = params.total_cells
        requested = params.num_mines
        mines = self.place_mines(seed, total, requested)
        cashout = None
        summary = f"{len(mines)} mines placed"
        if params.revealed > 0:
            cashout = self.cashout_multiplier(total, len(mines), params.revealed)
            summary += f", {params.revealed} safe cells revealed"
        return MinesOutcome(
            game_type=self.game_type.value,
            multiplier=self.flat_multiplier(requested),
            outcome=summary,
            mine_positions=tuple(mines),
            total_cells=total,
            num_mines=requested,
            safe_cells=total - len(mines),
            cashout_multiplier=cashout,
        )
