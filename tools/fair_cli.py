#!/usr/bin/env python3
"""
FAIRSPIN - Provably Fair CLI

Usage:
    python -m tools.fair_cli play roulette --bet 5 --param betType=color --param betValue=red
    python -m tools.fair_cli play plinko --param rows=12 --json > round.json
    python -m tools.fair_cli outcome wheel --seed 0000000a…
    python -m tools.fair_cli commit --seed <64 hex chars>
    python -m tools.fair_cli verify round.json
    python -m tools.fair_cli simulate mines --param numMines=3 --rounds 50000
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config.settings import FairnessConfig
from sim_engine.rmg import GAME_TYPES, get_game_engine
from sim_engine.rmg.base import FairnessError
from tools.fair_rng import FairRoundEngine, commit_hash

logger = logging.getLogger("fairspin.cli")
console = Console()

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_USAGE = 2


def parse_param_pairs(pairs) -> dict:
    """Turn ["rows=12", "numMines=3"] into a params dict (values stay strings)."""
    params = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        params[key.strip()] = value.strip()
    return params


def _outcome_table(data: dict) -> Table:
    table = Table(show_header=False, box=None)
    for key, value in data.items():
        table.add_row(f"[cyan]{key}[/cyan]", str(value))
    return table


def cmd_play(args) -> int:
    engine = FairRoundEngine()
    session = engine.new_session()
    rnd = engine.play_round(session, args.game_type, bet_amount=args.bet,
                            params=parse_param_pairs(args.param), seed=args.seed)
    data = rnd.verification_data()
    if args.json:
        print(json.dumps(data, indent=2))
        return EXIT_OK
    console.print(Panel(
        f"Commit: {rnd.commit_hash}\n"
        f"Seed:   {rnd.seed.hex()}\n"
        f"Bet: {rnd.bet_amount}  Payout: {rnd.payout}",
        title=f"{rnd.game_type} round", border_style="cyan",
    ))
    console.print(_outcome_table(rnd.outcome.to_dict()))
    if rnd.settlement:
        verdict = "[green]WIN[/green]" if rnd.settlement.win else "[red]LOSS[/red]"
        console.print(f"Bet {escape(rnd.settlement.bet_type)}:{escape(str(rnd.settlement.bet_value))} "
                      f"→ {verdict} ({rnd.settlement.multiplier}x)")
    return EXIT_OK


def cmd_outcome(args) -> int:
    outcome = get_game_engine(args.game_type).derive(args.seed, parse_param_pairs(args.param))
    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        console.print(_outcome_table(outcome.to_dict()))
    return EXIT_OK


def cmd_commit(args) -> int:
    print(commit_hash(args.seed))
    return EXIT_OK


def cmd_verify(args) -> int:
    record = json.loads(Path(args.audit_file).read_text())
    report = FairRoundEngine().verify_round(record)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    elif report.ok:
        console.print("[green]✅ Round verified: commit, outcome and payout match[/green]")
    else:
        console.print(f"[red]❌ Verification failed: {', '.join(report.mismatches)}[/red]")
    return EXIT_OK if report.ok else EXIT_MISMATCH


def cmd_simulate(args) -> int:
    engine = get_game_engine(args.game_type)
    result = engine.simulate(parse_param_pairs(args.param), rounds=args.rounds)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return EXIT_OK
    console.print(f"[cyan]Simulated {result.rounds:,} {result.game_type} rounds[/cyan]")
    console.print(f"   Avg multiplier: {result.avg_multiplier:.4f} "
                  f"(±{1.96 * result.std_error:.4f})")
    console.print(f"   Max multiplier hit: {result.max_multiplier_hit}x")
    console.print(_outcome_table(result.distribution))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Provably fair commit-reveal outcomes")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_game(p):
        p.add_argument("game_type", help=f"One of {GAME_TYPES}")
        p.add_argument("--param", action="append", default=[], metavar="KEY=VALUE")

    p = sub.add_parser("play", help="Play one round with a fresh committed seed")
    add_game(p)
    p.add_argument("--bet", type=float, default=FairnessConfig.DEFAULT_BET)
    p.add_argument("--seed", type=str, default=None, help="Use this seed (hex) instead of a fresh one")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_play)

    p = sub.add_parser("outcome", help="Derive an outcome from a known seed")
    add_game(p)
    p.add_argument("--seed", type=str, required=True)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_outcome)

    p = sub.add_parser("commit", help="Print the SHA3-256 commitment of a seed")
    p.add_argument("--seed", type=str, required=True)
    p.set_defaults(func=cmd_commit)

    p = sub.add_parser("verify", help="Replay a saved round audit record")
    p.add_argument("audit_file", type=str)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("simulate", help="Monte Carlo the multiplier distribution")
    add_game(p)
    p.add_argument("--rounds", type=int, default=FairnessConfig.SIM_ROUNDS)
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_simulate)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else FairnessConfig.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger.debug("Running %s", args.command)
    try:
        return args.func(args)
    except (FairnessError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        return EXIT_USAGE
    except OSError as e:
        console.print(f"[red]❌ Could not read input: {escape(str(e))}[/red]")
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
