"""Wheel Spin — seed number modulo the segment count."""
from dataclasses import dataclass

from config.game_schema import GameType
from sim_engine.rmg.base import BaseRMGEngine, Outcome, seed_number

WHEEL_MULTIPLIERS = [1.0, 1.5, 2.0, 0.5, 3.0, 1.0, 5.0, 0.5]


@dataclass(frozen=True)
class WheelOutcome(Outcome):
    segment: int
    segments: int

    def to_dict(self) -> dict:
        return {**super().to_dict(), "segment": self.segment, "segments": self.segments}


class WheelEngine(BaseRMGEngine):
    game_type = GameType.WHEEL
    display_name = "Wheel Spin"

    def compute(self, seed: bytes, params) -> WheelOutcome:
        segment = seed_number(seed) % params.segments
        multiplier = WHEEL_MULTIPLIERS[segment % len(WHEEL_MULTIPLIERS)]
        return WheelOutcome(
            game_type=self.game_type.value,
            multiplier=multiplier,
            outcome=f"Wheel stopped at segment {segment} ({multiplier}x)",
            segment=segment,
            segments=params.segments,
        )
