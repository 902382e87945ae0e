#!/usr/bin/env python3
"""
Tests for commit-reveal rounds and the CLI

Validates:
1.  commit_hash is SHA3-256 of the seed and verifies case-insensitively
2.  A one-byte change in the seed changes the commit
3.  combine_secrets is symmetric and rejects bad hex
4.  play_round records seed, commit, params, outcome and payout
5.  verify_round passes untouched records (also after a JSON round trip)
6.  verify_round flags tampered outcome, commit and payout
6b. Roulette bets settle and are replayed; malformed fields are mismatches
7.  session_audit_log aggregates rounds
8.  CLI outcome/commit/verify/play exit codes and output
"""

import hashlib
import io
import json
import sys
import tempfile
from contextlib import redirect_stdout
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from sim_engine.rmg import compute_outcome
from sim_engine.rmg.base import InvalidSeed, UnsupportedGameType
from tools import fair_cli
from tools.fair_rng import (
    FairRoundEngine, combine_secrets, commit_hash, generate_seed, verify_commit,
)

GREEN_SEED = bytes.fromhex("00000025") + bytes(28)
POCKET_17_SEED = bytes.fromhex("00000011") + bytes(28)


def _run_cli(*argv):
    buf = io.StringIO()
    with redirect_stdout(buf):
        code = fair_cli.main(list(argv))
    return code, buf.getvalue()


# ============================================================
# Commitments
# ============================================================

def test_generate_seed_is_32_random_bytes():
    a, b = generate_seed(), generate_seed()
    assert len(a) == 32 and len(b) == 32
    assert a != b


def test_commit_hash_is_sha3_256():
    seed = generate_seed()
    assert commit_hash(seed) == hashlib.sha3_256(seed).hexdigest()
    assert commit_hash(seed.hex()) == commit_hash(seed)


def test_verify_commit_round_trip():
    seed = generate_seed()
    commit = commit_hash(seed)
    assert verify_commit(seed, commit)
    assert verify_commit(seed, commit.upper())
    assert not verify_commit(seed, hashlib.sha256(seed).hexdigest())
    assert not verify_commit(b"short", commit)
    assert not verify_commit(seed, None)


def test_single_byte_change_breaks_commit():
    seed = bytearray(generate_seed())
    commit = commit_hash(bytes(seed))
    seed[17] ^= 0x01
    assert not verify_commit(bytes(seed), commit)


def test_combine_secrets():
    player = "11" * 32
    house = "f0" * 32
    combined = combine_secrets(player, house)
    assert len(combined) == 32
    assert combined == combine_secrets(house, player)
    expected = hashlib.sha256(bytes([0x11 ^ 0xF0]) * 32).digest()
    assert combined == expected


def test_combine_secrets_pads_shorter_secret():
    assert combine_secrets("ab", "ab00") == hashlib.sha256(b"\x00\x00").digest()


def test_combine_secrets_bad_hex():
    try:
        combine_secrets("not-hex", "00")
    except InvalidSeed as e:
        assert "player" in str(e)
    else:
        raise AssertionError("expected InvalidSeed")


# ============================================================
# Rounds
# ============================================================

def test_play_round_records_everything():
    engine = FairRoundEngine()
    session = engine.new_session(player_id="alice")
    rnd = engine.play_round(session, "roulette", bet_amount=2, seed=GREEN_SEED)

    assert rnd.game_type == "Roulette"
    assert rnd.commit_hash == hashlib.sha3_256(GREEN_SEED).hexdigest()
    assert rnd.outcome.result == 0
    assert rnd.payout == 70.0
    assert rnd.round_index == 0
    assert session.rounds == [rnd]


def test_play_round_uses_fresh_seed_each_time():
    engine = FairRoundEngine()
    session = engine.new_session()
    a = engine.play_round(session, "Wheel", bet_amount=1)
    b = engine.play_round(session, "Wheel", bet_amount=1)
    assert a.seed != b.seed
    assert a.commit_hash != b.commit_hash
    assert [r.round_index for r in session.rounds] == [0, 1]


def test_play_round_records_defaulted_params():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Plinko", 1.0, params={"rows": "oops"})
    assert rnd.params == {"rows": 10}
    assert len(rnd.outcome.path) == 10


def test_play_round_unsupported_game():
    engine = FairRoundEngine()
    session = engine.new_session()
    try:
        engine.play_round(session, "Baccarat", 1.0)
    except UnsupportedGameType:
        pass
    else:
        raise AssertionError("expected UnsupportedGameType")
    assert session.rounds == []


def test_verify_round_passes_after_json_round_trip():
    engine = FairRoundEngine()
    session = engine.new_session()
    for game, params in (("Roulette", {}), ("Plinko", {"rows": 14}),
                         ("Mines", {"numMines": 7, "revealed": 2}), ("Wheel", {"segments": 12})):
        rnd = engine.play_round(session, game, 3.5, params=params)
        record = json.loads(rnd.to_audit_json())
        report = engine.verify_round(record)
        assert report.ok, report.mismatches
        assert report.recomputed == rnd.outcome.to_dict()
        assert engine.verify_round(rnd).ok


def test_verify_round_flags_tampered_outcome():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Roulette", 1.0, seed=GREEN_SEED)
    record = rnd.verification_data()
    record["outcome"]["result"] = 17
    report = engine.verify_round(record)
    assert not report.ok
    assert report.commit_ok
    assert "outcome.result" in report.mismatches


def test_verify_round_flags_bad_commit_and_payout():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Wheel", 4.0)
    record = rnd.verification_data()
    record["commit_hash"] = "00" * 32
    record["payout"] = record["payout"] + 1
    report = engine.verify_round(record)
    assert not report.commit_ok
    assert not report.payout_ok
    assert report.outcome_ok
    assert report.mismatches == ["commit_hash", "payout"]


def test_verify_round_matches_direct_derivation():
    seed = generate_seed()
    record = {
        "game_type": "Mines",
        "seed": seed.hex(),
        "commit_hash": commit_hash(seed),
        "params": {"totalCells": 16, "numMines": 4},
        "outcome": compute_outcome("Mines", seed, {"totalCells": 16, "numMines": 4}).to_dict(),
    }
    assert FairRoundEngine().verify_round(record).ok


def test_number_bet_settles_win_and_loss():
    engine = FairRoundEngine()
    session = engine.new_session()
    bet = {"betType": "number", "betValue": "17"}
    hit = engine.play_round(session, "Roulette", 1.0, params=bet, seed=POCKET_17_SEED)
    assert hit.outcome.result == 17
    assert hit.settlement.win
    assert hit.payout == 36.0

    miss = engine.play_round(session, "Roulette", 1.0, params=bet, seed=GREEN_SEED)
    assert not miss.settlement.win
    assert miss.settlement.multiplier == 0.0
    assert miss.payout == 0.0
    assert miss.outcome.multiplier == 35
    assert miss.verification_data()["settlement"] == {
        "betType": "number", "betValue": "17", "win": False, "multiplier": 0.0,
    }


def test_number_bet_loses_most_rounds():
    engine = FairRoundEngine()
    session = engine.new_session()
    params = {"betType": "number", "betValue": "17"}
    rounds = [engine.play_round(session, "Roulette", 1.0, params=params) for _ in range(500)]
    losses = [r for r in rounds if not r.settlement.win]
    assert len(losses) > 400
    assert {r.payout for r in rounds} <= {0.0, 36.0}
    assert session.total_paid < session.total_wagered * 3


def test_color_bet_loses_on_zero():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Roulette", 5.0,
                            params={"betType": "color", "betValue": "red"}, seed=GREEN_SEED)
    assert rnd.payout == 0.0
    assert rnd.params == {"betType": "color", "betValue": "red"}


def test_verify_round_replays_settlement():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Roulette", 2.0,
                            params={"betType": "odd_even", "betValue": "odd"}, seed=POCKET_17_SEED)
    record = json.loads(rnd.to_audit_json())
    report = engine.verify_round(record)
    assert report.ok, report.mismatches
    assert report.settlement == {"betType": "odd_even", "betValue": "odd", "win": True, "multiplier": 2.0}

    record["settlement"]["win"] = False
    report = engine.verify_round(record)
    assert not report.settlement_ok
    assert report.mismatches == ["settlement"]

    record.pop("settlement")
    assert "settlement" in engine.verify_round(record).mismatches


def test_verify_round_catches_payout_ignoring_the_bet():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Roulette", 1.0,
                            params={"betType": "number", "betValue": "5"}, seed=GREEN_SEED)
    record = rnd.verification_data()
    record["payout"] = 35.0
    report = engine.verify_round(record)
    assert report.mismatches == ["payout"]


def test_verify_round_reports_malformed_fields():
    engine = FairRoundEngine()
    rnd = engine.play_round(engine.new_session(), "Wheel", 1.0)

    record = rnd.verification_data()
    record["outcome"] = "tampered"
    report = engine.verify_round(record)
    assert not report.outcome_ok
    assert report.mismatches == ["outcome"]

    for key, value in (("payout", None), ("payout", "lots"), ("bet_amount", "abc"),
                       ("bet_amount", None), ("bet_amount", [1])):
        record = rnd.verification_data()
        record[key] = value
        report = engine.verify_round(record)
        assert not report.payout_ok, (key, value)
        assert report.mismatches == ["payout"]

    record = rnd.verification_data()
    del record["bet_amount"]
    assert engine.verify_round(record).mismatches == ["payout"]


def test_verify_round_rejects_non_object_record():
    try:
        FairRoundEngine().verify_round(["not", "a", "record"])
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")


def test_session_audit_log():
    engine = FairRoundEngine()
    session = engine.new_session(player_id="bob")
    engine.play_round(session, "Roulette", 2.0, seed=GREEN_SEED)
    engine.play_round(session, "Wheel", 1.0)
    log = engine.session_audit_log(session)
    assert log["player_id"] == "bob"
    assert log["total_rounds"] == 2
    assert log["total_wagered"] == 3.0
    assert log["total_paid"] >= 70.0
    json.dumps(log)


# ============================================================
# CLI
# ============================================================

def test_cli_outcome_json():
    code, out = _run_cli("outcome", "roulette", "--seed", GREEN_SEED.hex(), "--json")
    assert code == 0
    data = json.loads(out)
    assert data["result"] == 0
    assert data["color"] == "green"
    assert data["multiplier"] == 35


def test_cli_outcome_with_params():
    seed = bytes.fromhex("0000000a") + bytes(28)
    code, out = _run_cli("outcome", "Wheel", "--seed", seed.hex(), "--param", "segments=8", "--json")
    assert code == 0
    assert json.loads(out)["segment"] == 2


def test_cli_commit():
    code, out = _run_cli("commit", "--seed", GREEN_SEED.hex())
    assert code == 0
    assert out.strip() == hashlib.sha3_256(GREEN_SEED).hexdigest()


def test_cli_unsupported_game_exits_2():
    code, out = _run_cli("outcome", "Baccarat", "--seed", GREEN_SEED.hex())
    assert code == 2
    assert "Baccarat" in out


def test_cli_bad_seed_and_param_exit_2():
    assert _run_cli("commit", "--seed", "abc")[0] == 2
    assert _run_cli("outcome", "Plinko", "--seed", GREEN_SEED.hex(), "--param", "rows")[0] == 2


def test_cli_play_then_verify():
    code, out = _run_cli("play", "mines", "--bet", "2", "--param", "numMines=3", "--json")
    assert code == 0
    record = json.loads(out)
    assert record["params"]["numMines"] == 3

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "round.json"
        path.write_text(json.dumps(record))
        assert _run_cli("verify", str(path))[0] == 0

        record["outcome"]["minePositions"] = list(reversed(record["outcome"]["minePositions"]))
        record["outcome"]["multiplier"] = 99
        path.write_text(json.dumps(record))
        code, out = _run_cli("verify", str(path), "--json")
        assert code == 1
        assert "outcome.multiplier" in json.loads(out)["mismatches"]


def test_cli_play_with_bet():
    code, out = _run_cli("play", "roulette", "--bet", "5", "--seed", POCKET_17_SEED.hex(),
                         "--param", "betType=number", "--param", "betValue=17", "--json")
    assert code == 0
    record = json.loads(out)
    assert record["settlement"]["win"] is True
    assert record["payout"] == 180.0


def test_cli_verify_malformed_record_exits_1():
    rnd = FairRoundEngine().play_round(FairRoundEngine().new_session(), "Plinko", 1.0)
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "round.json"
        for key, value, mismatch in (("outcome", "tampered", "outcome"),
                                     ("payout", None, "payout"),
                                     ("bet_amount", "abc", "payout")):
            record = rnd.verification_data()
            record[key] = value
            path.write_text(json.dumps(record))
            code, out = _run_cli("verify", str(path), "--json")
            assert code == 1, (key, value)
            assert mismatch in json.loads(out)["mismatches"]


def test_cli_verify_non_object_exits_2():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "round.json"
        path.write_text("[1, 2, 3]")
        code, out = _run_cli("verify", str(path))
        assert code == 2
        assert "JSON object" in out


def test_cli_verify_missing_file_exits_2():
    assert _run_cli("verify", "/nonexistent/round.json")[0] == 2


def test_cli_simulate_json():
    code, out = _run_cli("simulate", "wheel", "--rounds", "300", "--json")
    assert code == 0
    data = json.loads(out)
    assert data["rounds"] == 300
    assert data["max_multiplier_hit"] <= 5.0


if __name__ == "__main__":
    tests = [(name, fn) for name, fn in list(globals().items())
             if name.startswith("test_") and callable(fn)]
    failed = 0
    for name, fn in tests:
        try:
            fn()
            print(f"  ✅ {name}")
        except Exception as e:
            failed += 1
            print(f"  ❌ {name}: {e}")
    print(f"\n{len(tests) - failed}/{len(tests)} passed")
    sys.exit(1 if failed else 0)
