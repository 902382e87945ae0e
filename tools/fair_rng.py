"""
FAIRSPIN - Commit-Reveal Rounds

Seed generation, commitments and round audit trails around the outcome
engines in sim_engine.rmg.

Architecture:
    seed        = 32 bytes from os.urandom (or combine_secrets(player, house))
    commit_hash = SHA3-256(seed), published before the bet is placed
    outcome     = compute_outcome(game_type, seed, params)
    payout      = bet_amount * outcome.multiplier, or the settled
                  multiplier when params carry a bet (roulette betType)
    After the round the seed is revealed; anyone can check
    SHA3-256(seed) == commit_hash and recompute the outcome.

Usage:
    from tools.fair_rng import FairRoundEngine

    engine = FairRoundEngine()
    session = engine.new_session(player_id="alice")
    rnd = engine.play_round(session, "Plinko", bet_amount=2.5, params={"rows": 12})
    print(rnd.commit_hash, rnd.outcome.to_dict(), rnd.payout)

    report = engine.verify_round(rnd.verification_data())
    assert report.ok
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from config.settings import FairnessConfig
from sim_engine.rmg import get_game_engine
from sim_engine.rmg.base import InvalidSeed, Outcome, Settlement, normalize_seed

logger = logging.getLogger("fairspin.rng")


# ═══════════════════════════════════════════════════════════════
# Seeds & commitments
# ═══════════════════════════════════════════════════════════════

def generate_seed() -> bytes:
    """Fresh 32-byte seed from the OS CSPRNG. Never reuse across rounds."""
    return os.urandom(FairnessConfig.SEED_BYTES)


def commit_hash(seed) -> str:
    """SHA3-256 of the seed as lowercase hex."""
    seed = normalize_seed(seed)
    return hashlib.new(FairnessConfig.COMMIT_HASH, seed).hexdigest()


def verify_commit(seed, expected_hash: str) -> bool:
    """Check a revealed seed against the commitment published before the bet."""
    try:
        computed = commit_hash(seed)
    except InvalidSeed:
        return False
    if not isinstance(expected_hash, str):
        return False
    return hmac.compare_digest(computed, expected_hash.strip().lower())


def _decode_secret(secret_hex: str, label: str) -> bytes:
    try:
        return bytes.fromhex(secret_hex.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidSeed(f"Invalid {label} secret hex: {e}") from e


def combine_secrets(player_secret_hex: str, house_secret_hex: str) -> bytes:
    """Two-party seed: SHA-256 of the XOR of both secrets.

    The shorter secret is zero-padded, so neither side can pick the final
    seed without knowing the other's secret.
    """
    player = _decode_secret(player_secret_hex, "player")
    house = _decode_secret(house_secret_hex, "house")
    size = max(len(player), len(house))
    player = player.ljust(size, b"\x00")
    house = house.ljust(size, b"\x00")
    combined = bytes(p ^ h for p, h in zip(player, house))
    return hashlib.new(FairnessConfig.COMBINE_HASH, combined).digest()


# ═══════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════

@dataclass
class GameSession:
    """A player's sequence of rounds. Lives only in memory."""
    session_id: str
    player_id: Optional[str] = None
    created_at: float = 0
    rounds: list = field(default_factory=list)

    def __post_init__(self):
        if not self.created_at:
            self.created_at = time.time()

    @property
    def total_wagered(self) -> float:
        return sum(r.bet_amount for r in self.rounds)

    @property
    def total_paid(self) -> float:
        return sum(r.payout for r in self.rounds)


@dataclass
class GameRound:
    """Result of a single round with the data needed to audit it."""
    session_id: str
    round_index: int
    game_type: str
    seed: bytes
    commit_hash: str
    params: dict
    outcome: Outcome
    bet_amount: float
    payout: float
    settlement: Optional[Settlement] = None
    timestamp: float = 0

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = time.time()

    def verification_data(self) -> dict:
        """JSON-safe record for independent verification."""
        return {
            "session_id": self.session_id,
            "round_index": self.round_index,
            "game_type": self.game_type,
            "seed": self.seed.hex(),
            "commit_hash": self.commit_hash,
            "params": self.params,
            "outcome": self.outcome.to_dict(),
            "bet_amount": self.bet_amount,
            "payout": self.payout,
            "settlement": self.settlement.to_dict() if self.settlement else None,
            "timestamp": self.timestamp,
            "verification_steps": [
                "1. Check: SHA3-256(seed) == commit_hash",
                "2. seedNumber = first 4 bytes of seed, big-endian",
                "3. Recompute the outcome with the game's derivation and params",
                "4. Settle betType/betValue from params against the outcome, if present",
                "5. payout = bet_amount * (settlement or outcome).multiplier",
            ],
        }

    def to_audit_json(self) -> str:
        return json.dumps(self.verification_data(), indent=2)


@dataclass
class VerificationReport:
    """Outcome of replaying a recorded round."""
    commit_ok: bool
    outcome_ok: bool
    payout_ok: bool
    settlement_ok: bool = True
    mismatches: list = field(default_factory=list)
    recomputed: dict = field(default_factory=dict)
    settlement: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.commit_ok and self.outcome_ok and self.settlement_ok and self.payout_ok

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "commit_ok": self.commit_ok,
            "outcome_ok": self.outcome_ok,
            "payout_ok": self.payout_ok,
            "settlement_ok": self.settlement_ok,
            "mismatches": self.mismatches,
            "recomputed": self.recomputed,
            "settlement": self.settlement,
        }


def compute_payout(bet_amount: float, outcome: Outcome,
                   settlement: Optional[Settlement] = None) -> float:
    """A settled bet pays its own multiplier; otherwise the outcome's."""
    return bet_amount * (settlement.multiplier if settlement else outcome.multiplier)


# ═══════════════════════════════════════════════════════════════
# Round engine
# ═══════════════════════════════════════════════════════════════

class FairRoundEngine:
    """Runs commit-reveal rounds and replays them for verification."""

    def new_session(self, player_id: str = None) -> GameSession:
        return GameSession(session_id=uuid.uuid4().hex[:16], player_id=player_id)

    def play_round(self, session: GameSession, game_type, bet_amount: float = None,
                   params: dict = None, seed=None) -> GameRound:
        """Commit to a seed, derive the outcome and record the round.

        Pass `seed` only when it was produced elsewhere (e.g. by
        combine_secrets); by default a fresh one is drawn per round.
        """
        engine = get_game_engine(game_type)
        seed = generate_seed() if seed is None else normalize_seed(seed)
        commitment = commit_hash(seed)
        parsed = engine.parse_params(params)
        outcome = engine.derive(seed, parsed)
        settlement = engine.settle(outcome, parsed)
        bet = FairnessConfig.DEFAULT_BET if bet_amount is None else float(bet_amount)

        rnd = GameRound(
            session_id=session.session_id,
            round_index=len(session.rounds),
            game_type=engine.game_type.value,
            seed=seed,
            commit_hash=commitment,
            params=parsed.to_wire(),
            outcome=outcome,
            bet_amount=bet,
            payout=compute_payout(bet, outcome, settlement),
            settlement=settlement,
        )
        session.rounds.append(rnd)
        logger.info("Round %s#%d %s commit=%s… %s payout=%.4f",
                    session.session_id, rnd.round_index, rnd.game_type,
                    commitment[:16], outcome.outcome, rnd.payout)
        return rnd

    def verify_round(self, record) -> VerificationReport:
        """Replay a round from its audit record (dict or GameRound).

        Raises UnsupportedGameType / InvalidSeed when the record can't be
        replayed at all. Malformed outcome, settlement or payout fields are
        reported as mismatches.
        """
        if isinstance(record, GameRound):
            record = record.verification_data()
        if not isinstance(record, dict):
            raise ValueError("Audit record must be a JSON object")

        game_type = record.get("game_type")
        engine = get_game_engine(game_type)
        seed = normalize_seed(record.get("seed", ""))

        mismatches = []
        commit_ok = verify_commit(seed, record.get("commit_hash"))
        if not commit_ok:
            mismatches.append("commit_hash")

        parsed = engine.parse_params(record.get("params"))
        outcome = engine.derive(seed, parsed)
        recomputed = outcome.to_dict()
        recorded = record.get("outcome")
        if not isinstance(recorded, dict):
            mismatches.append("outcome")
        else:
            for key, value in recomputed.items():
                if recorded.get(key) != value:
                    mismatches.append(f"outcome.{key}")
        outcome_ok = not any(m == "outcome" or m.startswith("outcome.") for m in mismatches)

        settlement = engine.settle(outcome, parsed)
        expected_settlement = settlement.to_dict() if settlement else None
        settlement_ok = record.get("settlement") == expected_settlement
        if not settlement_ok:
            mismatches.append("settlement")

        payout_ok = True
        if "payout" in record or "bet_amount" in record:
            try:
                expected = compute_payout(float(record["bet_amount"]), outcome, settlement)
                payout_ok = abs(float(record["payout"]) - expected) < 1e-9
            except (KeyError, TypeError, ValueError):
                payout_ok = False
            if not payout_ok:
                mismatches.append("payout")

        report = VerificationReport(
            commit_ok=commit_ok,
            outcome_ok=outcome_ok,
            payout_ok=payout_ok,
            settlement_ok=settlement_ok,
            mismatches=mismatches,
            recomputed=recomputed,
            settlement=expected_settlement,
        )
        if not report.ok:
            logger.warning("Verification failed for %s round %s: %s",
                           game_type, record.get("round_index"), mismatches)
        return report

    def session_audit_log(self, session: GameSession) -> dict:
        """Full audit log for a session."""
        return {
            "session_id": session.session_id,
            "player_id": session.player_id,
            "created_at": session.created_at,
            "total_rounds": len(session.rounds),
            "total_wagered": session.total_wagered,
            "total_paid": session.total_paid,
            "rounds": [r.verification_data() for r in session.rounds],
            "verification_instructions": {
                "step_1": "For each round: SHA3-256(seed) == commit_hash",
                "step_2": "Recompute the outcome from seed + params and compare",
                "step_3": "Settle any recorded bet, then check payout == bet_amount * multiplier",
            },
        }
