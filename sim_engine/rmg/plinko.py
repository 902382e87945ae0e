"""Plinko — one seed bit per row decides left/right from the board centre."""
from dataclasses import dataclass

from config.game_schema import GameType
from sim_engine.rmg.base import BaseRMGEngine, Outcome

# Indexed by distance from the centre slot, capped at the last entry
PLINKO_MULTIPLIERS = [1.0, 1.2, 1.5, 2.0, 5.0, 10.0, 25.0, 50.0, 100.0]


@dataclass(frozen=True)
class PlinkoOutcome(Outcome):
    final_position: int
    path: str
    rows: int

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "finalPosition": self.final_position,
            "path": self.path,
            "rows": self.rows,
        }


class PlinkoEngine(BaseRMGEngine):
    game_type = GameType.PLINKO
    display_name = "Plinko"

    @staticmethod
    def walk(seed: bytes, rows: int) -> tuple:
        """Return (final_position, path). Bit i%8 of byte (i//8) wraps the seed."""
        position = rows // 2
        path = []
        for i in range(rows):
            byte = seed[(i // 8) % len(seed)]
            go_right = (byte >> (i % 8)) & 1
            if go_right:
                position = min(position + 1, rows)
            else:
                position = max(position - 1, 0)
            path.append("R" if go_right else "L")
        return position, "".join(path)

    def compute(self, seed: bytes, params) -> PlinkoOutcome:
        rows = params.rows
        position, path = self.walk(seed, rows)
        distance = abs(position - rows // 2)
        multiplier = PLINKO_MULTIPLIERS[min(distance, len(PLINKO_MULTIPLIERS) - 1)]
        return PlinkoOutcome(
            game_type=self.game_type.value,
            multiplier=multiplier,
            outcome=f"Ball landed at position {position} ({multiplier}x)",
            final_position=position,
            path=path,
            rows=rows,
        )
