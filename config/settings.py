"""
FAIRSPIN - Configuration

Environment-driven settings for the outcome engines, the round engine and
the CLI. Values are read once at import time (after .env is loaded).

Hash algorithms are fixed per purpose so every verifier derives the same
bytes as the on-chain contract:
  - commit hash        SHA3-256(seed)
  - mines index hash   SHA-256(seed || byte(i))
  - secret combination SHA-256(player XOR house)
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class FairnessConfig:

    # --- Seeds ---
    SEED_BYTES = 32

    # --- Hash algorithms (hashlib names) ---
    COMMIT_HASH = "sha3_256"
    MINES_INDEX_HASH = "sha256"
    COMBINE_HASH = "sha256"

    # --- Runtime ---
    LOG_LEVEL = os.getenv("FAIRSPIN_LOG_LEVEL", "INFO").upper()
    SIM_ROUNDS = _env_int("FAIRSPIN_SIM_ROUNDS", 10_000)
    SIM_SEED = _env_int("FAIRSPIN_SIM_SEED", 42)
    DEFAULT_BET = _env_float("FAIRSPIN_DEFAULT_BET", 1.0)

    # --- Board shape caps (larger requests clamp; fixed so replays agree) ---
    MAX_PLINKO_ROWS = 1024
    MAX_MINES_CELLS = 1024
    MAX_WHEEL_SEGMENTS = 2 ** 32
