#!/usr/bin/env python3
"""
FAIRSPIN — Unit Test Suite

Run: python tests.py
     python tests.py -v          # verbose
     python tests.py TestPlinko  # run specific class

Test categories:
  TestDispatch        — Game tag lookup, unsupported tags, seed validation
  TestRoulette        — Pocket range, colours, multipliers
  TestPlinko          — Path walk, board bounds, ladder lookup
  TestMines           — Unique draws, exhaustion, multipliers
  TestWheel           — Segment range, ladder lookup
  TestParams          — Lenient defaulting, camelCase/snake_case
  TestRouletteBets    — number, color, odd_even, high_low settlement
  TestShapeCaps       — Board size clamping, mines summaries
  TestSimulation      — Monte Carlo summary
"""

import random
import sys
import unittest
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.game_schema import GameType, MinesParams, PlinkoParams, WheelParams
from config.settings import FairnessConfig
from sim_engine.rmg import GAME_TYPES, compute_outcome, get_game_engine
from sim_engine.rmg.base import InvalidSeed, UnsupportedGameType, seed_number
from sim_engine.rmg.mines import MinesEngine
from sim_engine.rmg.plinko import PLINKO_MULTIPLIERS
from sim_engine.rmg.roulette import EVEN_MONEY_PAYOUT, STRAIGHT_PAYOUT, bet_wins
from sim_engine.rmg.wheel import WHEEL_MULTIPLIERS


def seed_with_prefix(prefix: bytes, fill: int = 0) -> bytes:
    return prefix + bytes([fill]) * (32 - len(prefix))


def random_seeds(n: int, salt: int = 7):
    rng = random.Random(salt)
    return [rng.randbytes(32) for _ in range(n)]


# ============================================================
# Dispatch
# ============================================================

class TestDispatch(unittest.TestCase):

    def test_supported_tags(self):
        self.assertEqual(GAME_TYPES, ["Roulette", "Plinko", "Mines", "Wheel"])

    def test_tag_lookup_is_case_insensitive(self):
        for tag in ("roulette", "ROULETTE", " Roulette ", GameType.ROULETTE):
            self.assertEqual(get_game_engine(tag).game_type, GameType.ROULETTE)

    def test_unsupported_game_type(self):
        with self.assertRaises(UnsupportedGameType) as ctx:
            compute_outcome("Baccarat", bytes(32))
        self.assertEqual(ctx.exception.game_type, "Baccarat")
        self.assertIn("Baccarat", str(ctx.exception))

    def test_unsupported_is_value_error(self):
        """Callers catching ValueError keep working."""
        with self.assertRaises(ValueError):
            get_game_engine("crash")
        with self.assertRaises(UnsupportedGameType):
            get_game_engine(None)

    def test_seed_accepts_hex_and_bytes(self):
        seed = random_seeds(1)[0]
        for game in GAME_TYPES:
            a = compute_outcome(game, seed)
            b = compute_outcome(game, seed.hex())
            c = compute_outcome(game, "0x" + seed.hex().upper())
            self.assertEqual(a, b)
            self.assertEqual(a, c)

    def test_seed_length_enforced(self):
        with self.assertRaises(InvalidSeed):
            compute_outcome("Wheel", bytes(31))
        with self.assertRaises(InvalidSeed):
            compute_outcome("Wheel", "zz" * 32)
        with self.assertRaises(InvalidSeed):
            compute_outcome("Wheel", 12345)

    def test_determinism(self):
        for seed in random_seeds(20):
            for game in GAME_TYPES:
                first = compute_outcome(game, seed).to_dict()
                second = compute_outcome(game, seed).to_dict()
                self.assertEqual(first, second)

    def test_seed_number_big_endian(self):
        self.assertEqual(seed_number(seed_with_prefix(b"\x00\x00\x01\x00")), 256)
        self.assertEqual(seed_number(seed_with_prefix(b"\xff\xff\xff\xff")), 0xFFFFFFFF)

    def test_outcomes_are_frozen(self):
        out = compute_outcome("Roulette", bytes(32))
        with self.assertRaises(Exception):
            out.multiplier = 100


# ============================================================
# Roulette
# ============================================================

class TestRoulette(unittest.TestCase):

    def test_seed_37_lands_green(self):
        out = compute_outcome("Roulette", seed_with_prefix(b"\x00\x00\x00\x25"))
        self.assertEqual(out.result, 0)
        self.assertEqual(out.color, "green")
        self.assertEqual(out.multiplier, 35)
        self.assertEqual(out.outcome, "Landed on 0 (green)")

    def test_even_black_odd_red(self):
        even = compute_outcome("Roulette", seed_with_prefix(b"\x00\x00\x00\x02"))
        odd = compute_outcome("Roulette", seed_with_prefix(b"\x00\x00\x00\x03"))
        self.assertEqual((even.result, even.color, even.multiplier), (2, "black", 2))
        self.assertEqual((odd.result, odd.color, odd.multiplier), (3, "red", 2))

    def test_domain(self):
        for seed in random_seeds(300):
            out = compute_outcome("Roulette", seed)
            self.assertTrue(0 <= out.result < 37)
            self.assertEqual(out.color == "green", out.result == 0)
            self.assertEqual(out.multiplier == 35, out.color == "green")
            if out.color != "green":
                self.assertEqual(out.multiplier, 2)

    def test_wire_shape(self):
        d = compute_outcome("Roulette", bytes(32)).to_dict()
        self.assertEqual(set(d), {"gameType", "multiplier", "outcome", "result", "color"})
        self.assertEqual(d["gameType"], "Roulette")


# ============================================================
# Plinko
# ============================================================

class TestPlinko(unittest.TestCase):

    def test_all_zero_seed_goes_left(self):
        out = compute_outcome("Plinko", bytes(32))
        self.assertEqual(out.path, "L" * 10)
        self.assertEqual(out.final_position, 0)
        self.assertEqual(out.multiplier, 10.0)      # distance 5

    def test_all_ones_seed_goes_right_and_clamps(self):
        out = compute_outcome("Plinko", b"\xff" * 32)
        self.assertEqual(out.path, "R" * 10)
        self.assertEqual(out.final_position, 10)
        self.assertEqual(out.multiplier, 10.0)

    def test_alternating_bits_stay_centred(self):
        seed = seed_with_prefix(b"\x55\x01")
        out = compute_outcome("Plinko", seed)
        self.assertEqual(out.path, "RLRLRLRLRL")
        self.assertEqual(out.final_position, 5)
        self.assertEqual(out.multiplier, 1.0)

    def test_low_bit_first(self):
        out = compute_outcome("Plinko", seed_with_prefix(b"\x01"), {"rows": 4})
        self.assertEqual(out.path, "RLLL")
        self.assertEqual(out.final_position, 0)
        self.assertEqual(out.multiplier, 1.5)       # distance 2

    def test_bounds_and_path_length(self):
        for rows in (1, 7, 10, 16, 40, 300):
            for seed in random_seeds(25, salt=rows):
                out = compute_outcome("Plinko", seed, {"rows": rows})
                self.assertEqual(len(out.path), rows)
                self.assertTrue(0 <= out.final_position <= rows)
                self.assertIn(out.multiplier, PLINKO_MULTIPLIERS)

    def test_walk_never_leaves_board(self):
        for seed in random_seeds(50):
            rows = 12
            position = rows // 2
            _, path = get_game_engine("Plinko").walk(seed, rows)
            for step in path:
                position = min(position + 1, rows) if step == "R" else max(position - 1, 0)
                self.assertTrue(0 <= position <= rows)

    def test_far_distance_caps_at_last_ladder_entry(self):
        out = compute_outcome("Plinko", bytes(32), {"rows": 40})
        self.assertEqual(out.final_position, 0)
        self.assertEqual(out.multiplier, 100.0)


# ============================================================
# Mines
# ============================================================

class TestMines(unittest.TestCase):

    def test_default_board(self):
        out = compute_outcome("Mines", random_seeds(1)[0])
        self.assertEqual(len(out.mine_positions), 5)
        self.assertEqual(len(set(out.mine_positions)), 5)
        self.assertEqual(out.total_cells, 25)
        self.assertEqual(out.safe_cells, 20)
        self.assertEqual(out.multiplier, 2.0)
        self.assertIsNone(out.cashout_multiplier)

    def test_uniqueness_and_range(self):
        for total, mines in ((25, 1), (25, 24), (9, 3), (36, 10), (5, 9)):
            for seed in random_seeds(20, salt=total * 100 + mines):
                out = compute_outcome("Mines", seed, {"totalCells": total, "numMines": mines})
                self.assertEqual(len(out.mine_positions), min(mines, total))
                self.assertEqual(len(set(out.mine_positions)), len(out.mine_positions))
                self.assertTrue(all(0 <= p < total for p in out.mine_positions))

    def test_more_mines_than_cells_fills_board(self):
        out = compute_outcome("Mines", random_seeds(1)[0], {"totalCells": 4, "numMines": 10})
        self.assertEqual(sorted(out.mine_positions), [0, 1, 2, 3])
        self.assertEqual(out.safe_cells, 0)

    def test_single_cell(self):
        out = compute_outcome("Mines", b"\xab" * 32, {"totalCells": 1, "numMines": 1})
        self.assertEqual(out.mine_positions, (0,))

    def test_flat_multiplier(self):
        self.assertEqual(MinesEngine.flat_multiplier(5), 2.0)
        self.assertEqual(MinesEngine.flat_multiplier(3), 1.6)
        self.assertEqual(MinesEngine.flat_multiplier(24), 5.8)

    def test_cashout_multiplier(self):
        self.assertEqual(MinesEngine.cashout_multiplier(25, 5, 0), 1.0)
        self.assertEqual(MinesEngine.cashout_multiplier(25, 5, 1), 1.25)
        self.assertEqual(MinesEngine.cashout_multiplier(25, 5, 2), 1.58)
        self.assertEqual(MinesEngine.cashout_multiplier(25, 5, 21), 0.0)
        self.assertEqual(MinesEngine.cashout_multiplier(4, 4, 1), 0.0)

    def test_revealed_reports_cashout_alongside_flat(self):
        out = compute_outcome("Mines", bytes(32), {"numMines": 5, "revealed": 1})
        self.assertEqual(out.multiplier, 2.0)
        self.assertEqual(out.cashout_multiplier, 1.25)
        self.assertEqual(out.to_dict()["cashoutMultiplier"], 1.25)

    def test_seed_change_moves_mines(self):
        seeds = random_seeds(10)
        boards = {compute_outcome("Mines", s).mine_positions for s in seeds}
        self.assertGreater(len(boards), 1)


# ============================================================
# Wheel
# ============================================================

class TestWheel(unittest.TestCase):

    def test_seed_10_lands_segment_2(self):
        out = compute_outcome("Wheel", seed_with_prefix(b"\x00\x00\x00\x0a"), {"segments": 8})
        self.assertEqual(out.segment, 2)
        self.assertEqual(out.multiplier, 2)

    def test_domain(self):
        for segments in (1, 3, 8, 20, 54):
            for seed in random_seeds(30, salt=segments):
                out = compute_outcome("Wheel", seed, {"segments": segments})
                self.assertTrue(0 <= out.segment < segments)
                self.assertEqual(out.multiplier, WHEEL_MULTIPLIERS[out.segment % 8])

    def test_ladder_wraps_past_eight_segments(self):
        out = compute_outcome("Wheel", seed_with_prefix(b"\x00\x00\x00\x0e"), {"segments": 20})
        self.assertEqual(out.segment, 14)
        self.assertEqual(out.multiplier, WHEEL_MULTIPLIERS[6])


# ============================================================
# Params
# ============================================================

class TestParams(unittest.TestCase):

    def test_plinko_defaults(self):
        self.assertEqual(PlinkoParams().rows, 10)
        for bad in (None, 0, -3, "abc", 2.5, True, [1]):
            self.assertEqual(PlinkoParams(rows=bad).rows, 10, bad)
        self.assertEqual(PlinkoParams(rows="12").rows, 12)
        self.assertEqual(PlinkoParams(rows=14.0).rows, 14)

    def test_mines_aliases(self):
        camel = MinesParams.model_validate({"totalCells": 16, "numMines": 3})
        snake = MinesParams.model_validate({"total_cells": 16, "num_mines": 3})
        self.assertEqual(camel, snake)
        self.assertEqual(camel.to_wire(), {"totalCells": 16, "numMines": 3, "revealed": 0})

    def test_mines_bad_values_default(self):
        p = MinesParams.model_validate({"totalCells": "lots", "numMines": 0, "revealed": -1})
        self.assertEqual((p.total_cells, p.num_mines, p.revealed), (25, 5, 0))

    def test_wheel_zero_segments_defaults(self):
        self.assertEqual(WheelParams(segments=0).segments, 8)

    def test_bet_keys_leave_outcome_unchanged(self):
        plain = compute_outcome("Roulette", bytes(32))
        with_bet = compute_outcome("Roulette", bytes(32), {"betType": "color", "betValue": "red"})
        self.assertEqual(plain, with_bet)
        self.assertEqual(with_bet.multiplier, 35)

    def test_non_dict_params_default(self):
        out = compute_outcome("Plinko", bytes(32), "rows=12")
        self.assertEqual(out.rows, 10)

    def test_metadata(self):
        meta = get_game_engine("Mines").get_metadata()
        self.assertEqual(meta["game_type"], "Mines")
        self.assertEqual(meta["default_params"], {"totalCells": 25, "numMines": 5, "revealed": 0})


# ============================================================
# Roulette bet settlement
# ============================================================

class TestRouletteBets(unittest.TestCase):
    """Settlement of betType/betValue against the landed pocket."""

    def settle(self, pocket: int, bet_type, bet_value):
        engine = get_game_engine("Roulette")
        params = engine.parse_params({"betType": bet_type, "betValue": bet_value})
        outcome = engine.derive(seed_with_prefix(bytes([0, 0, 0, pocket])), params)
        self.assertEqual(outcome.result, pocket)
        return engine.settle(outcome, params)

    def test_no_bet_means_no_settlement(self):
        engine = get_game_engine("Roulette")
        params = engine.parse_params({})
        self.assertIsNone(engine.settle(engine.derive(bytes(32), params), params))

    def test_number_bet(self):
        win = self.settle(17, "number", "17")
        self.assertTrue(win.win)
        self.assertEqual(win.multiplier, STRAIGHT_PAYOUT)
        loss = self.settle(18, "number", 17)
        self.assertFalse(loss.win)
        self.assertEqual(loss.multiplier, 0.0)
        self.assertTrue(self.settle(0, "straight", "0").win)
        self.assertFalse(self.settle(5, "number", "five").win)

    def test_color_bet(self):
        self.assertEqual(self.settle(3, "color", "red").multiplier, EVEN_MONEY_PAYOUT)
        self.assertEqual(self.settle(20, "color", "BLACK").multiplier, EVEN_MONEY_PAYOUT)
        self.assertFalse(self.settle(3, "color", "black").win)
        self.assertFalse(self.settle(0, "color", "green").win)

    def test_odd_even_bet(self):
        self.assertTrue(self.settle(3, "odd_even", "odd").win)
        self.assertTrue(self.settle(20, "odd_even", "even").win)
        self.assertFalse(self.settle(20, "odd_even", "odd").win)
        self.assertFalse(self.settle(0, "odd_even", "even").win)

    def test_high_low_bet(self):
        self.assertTrue(self.settle(19, "high_low", "high").win)
        self.assertTrue(self.settle(18, "high_low", "low").win)
        self.assertFalse(self.settle(36, "high_low", "low").win)
        self.assertFalse(self.settle(0, "high_low", "low").win)

    def test_unknown_bet_type_loses(self):
        s = self.settle(7, "split", "7-8")
        self.assertFalse(s.win)
        self.assertEqual(s.multiplier, 0.0)

    def test_bet_wins_helper(self):
        self.assertEqual(bet_wins(17, "red", "number", "17"), (True, 36.0))
        self.assertEqual(bet_wins(17, "red", "number", None), (False, 0.0))

    def test_settlement_wire_shape(self):
        self.assertEqual(self.settle(17, "Number", " 17 ").to_dict(), {
            "betType": "number", "betValue": "17", "win": True, "multiplier": 36.0,
        })

    def test_settled_simulation_has_house_edge(self):
        result = get_game_engine("Roulette").simulate(
            {"betType": "number", "betValue": "17"}, rounds=3000, seed=3)
        self.assertLess(result.avg_multiplier, 2.0)
        self.assertIn("<1x", result.distribution)
        self.assertTrue(set(result.distribution) <= {"<1x", "10-50x"})


# ============================================================
# Shape caps & summaries
# ============================================================

class TestShapeCaps(unittest.TestCase):

    def test_oversized_shapes_clamp(self):
        self.assertEqual(PlinkoParams(rows=10 ** 9).rows, FairnessConfig.MAX_PLINKO_ROWS)
        p = MinesParams.model_validate({"totalCells": 10 ** 9, "numMines": 10 ** 9, "revealed": 10 ** 9})
        self.assertEqual(p.total_cells, FairnessConfig.MAX_MINES_CELLS)
        self.assertEqual(p.num_mines, FairnessConfig.MAX_MINES_CELLS)
        self.assertEqual(p.revealed, FairnessConfig.MAX_MINES_CELLS)
        self.assertEqual(WheelParams(segments=10 ** 12).segments, 2 ** 32)

    def test_huge_plinko_request_stays_bounded(self):
        out = compute_outcome("Plinko", bytes(32), {"rows": "1000000000"})
        self.assertEqual(out.rows, FairnessConfig.MAX_PLINKO_ROWS)
        self.assertEqual(len(out.path), FairnessConfig.MAX_PLINKO_ROWS)

    def test_huge_mines_request_stays_bounded(self):
        out = compute_outcome("Mines", bytes(32), {"totalCells": 10 ** 9, "numMines": 3})
        self.assertEqual(out.total_cells, FairnessConfig.MAX_MINES_CELLS)
        self.assertEqual(len(out.mine_positions), 3)

    def test_mines_summary_counts_placed_mines(self):
        out = compute_outcome("Mines", bytes(32), {"totalCells": 4, "numMines": 10})
        self.assertEqual(out.outcome, "4 mines placed")
        self.assertEqual(out.num_mines, 10)

    def test_mines_summary_includes_revealed(self):
        out = compute_outcome("Mines", bytes(32), {"numMines": 5, "revealed": 2})
        self.assertEqual(out.outcome, "5 mines placed, 2 safe cells revealed")


# ============================================================
# Simulation
# ============================================================

class TestSimulation(unittest.TestCase):

    def test_roulette_simulation(self):
        result = get_game_engine("Roulette").simulate(rounds=500, seed=1)
        self.assertEqual(result.rounds, 500)
        self.assertTrue(2.0 <= result.avg_multiplier <= 35.0)
        self.assertTrue(set(result.distribution) <= {"2-5x", "10-50x"})
        self.assertAlmostEqual(sum(result.distribution.values()), 1.0, places=2)

    def test_simulation_is_reproducible(self):
        engine = get_game_engine("Plinko")
        a = engine.simulate({"rows": 12}, rounds=200, seed=9).to_dict()
        b = engine.simulate({"rows": 12}, rounds=200, seed=9).to_dict()
        self.assertEqual(a, b)


if __name__ == "__main__":
    unittest.main()
