"""SYMEXEC CLI: command-line interface for the symbolic execution core.

Commands:
  symexec replay <trace.json>                  Replay a trace, print every state
  symexec deps <trace.json> --point P --sym V  Dependencies of symbol V at P
  symexec ranges <trace.json> --point P        Per-conjunction ranges at P
  symexec smt <trace.json> [--point P]         Z3 encoding of path conditions
  symexec version                              Print the version
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from symexec import __version__
from symexec.analysis import find_dependencies, get_all_ranges
from symexec.config import RevisitPolicy, SymexecConfig, load_config
from symexec.errors import AnalysisError
from symexec.session import ExplorationSession
from symexec.smt import SmtEncoder
from symexec.trace import load_trace, replay


def _configure(args: argparse.Namespace) -> SymexecConfig:
    config = load_config(getattr(args, "config", None))
    if getattr(args, "policy", None):
        config.revisit_policy = RevisitPolicy(args.policy)
    if getattr(args, "format", None):
        config.format = args.format

    level = "DEBUG" if getattr(args, "verbose", False) else config.log_level
    logging.basicConfig(level=getattr(logging, level, logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")
    return config


def _run(args: argparse.Namespace) -> Optional[ExplorationSession]:
    """Load config and trace, replay it. Prints errors and returns None on failure."""
    if not os.path.exists(args.trace):
        print(json.dumps({"error": f"File not found: {args.trace}"}))
        return None

    config = _configure(args)
    try:
        trace = load_trace(args.trace)
        return replay(trace, ExplorationSession(config))
    except AnalysisError as e:
        print(e.to_json())
        return None


def _state_or_error(session: ExplorationSession, point: str):
    state = session.store.get(point)
    if state is None:
        print(json.dumps({"error": f"No state stored at point: {point}"}))
    return state


def cmd_replay(args: argparse.Namespace) -> int:
    """Replay a trace and dump the state store."""
    session = _run(args)
    if session is None:
        return 1

    if session.config.format == "json":
        states: Dict[str, Any] = {}
        for point, state in session.store.items():
            states[str(point)] = {
                "path_condition": str(state.pc),
                "conjunctions": [str(c) for c in state.pc],
                "visits": session.store.visits(point),
                "terminal": state.is_terminal(session.exit_points),
            }
        print(json.dumps({
            "states": states,
            "pending": [str(s.point) for s in session.worklist],
            "pool": session.pool.stats(),
        }, indent=2))
        return 0

    for point, state in session.store.items():
        print(f"<{point}> {state.pc}")
    pending = ", ".join(str(s.point) for s in session.worklist) or "none"
    print(f"pending: {pending}")
    return 0


def cmd_deps(args: argparse.Namespace) -> int:
    """Print the symbols a symbol depends on at a program point."""
    session = _run(args)
    if session is None:
        return 1
    state = _state_or_error(session, args.point)
    if state is None:
        return 1

    try:
        sym = session.symbol(args.sym)
    except AnalysisError as e:
        print(e.to_json())
        return 1

    deps = sorted(find_dependencies(sym, state))
    print(json.dumps({
        "point": args.point,
        "symbol": str(sym),
        "dependencies": [{"version": d.version, "name": str(d)} for d in deps],
    }, indent=2))
    return 0


def cmd_ranges(args: argparse.Namespace) -> int:
    """Print the per-conjunction ranges at a program point."""
    session = _run(args)
    if session is None:
        return 1
    state = _state_or_error(session, args.point)
    if state is None:
        return 1

    result: List[Dict[str, str]] = []
    for ranges in get_all_ranges(state):
        result.append({str(sym): str(r) for sym, r in sorted(ranges.items())})
    print(json.dumps({"point": args.point, "ranges": result}, indent=2))
    return 0


def cmd_smt(args: argparse.Namespace) -> int:
    """Print the Z3 encoding of stored path conditions as s-expressions."""
    session = _run(args)
    if session is None:
        return 1

    encoder = SmtEncoder()
    points = [args.point] if args.point else [str(p) for p in session.store.points()]
    for point in points:
        state = _state_or_error(session, point)
        if state is None:
            return 1
        try:
            formula = encoder.path_condition(state.pc)
        except AnalysisError as e:
            print(e.to_json())
            return 1
        print(f"; {point}")
        print(formula.sexpr())
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    print(f"symexec {__version__}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="symexec",
        description="SYMEXEC: DNF path conditions for static symbolic execution",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_trace_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("trace", help="Operation trace (.json)")
        p.add_argument("--config", help="Path to a .symexecrc.json file")
        p.add_argument("--policy", choices=[policy.value for policy in RevisitPolicy],
                       help="Override the revisit policy")
        p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # replay
    p_replay = subparsers.add_parser("replay", help="Replay a trace and print every state")
    add_trace_args(p_replay)
    p_replay.add_argument("--format", choices=["text", "json"], help="Output format")
    p_replay.set_defaults(func=cmd_replay)

    # deps
    p_deps = subparsers.add_parser("deps", help="Dependencies of a symbol at a point")
    add_trace_args(p_deps)
    p_deps.add_argument("--point", required=True, help="Program point")
    p_deps.add_argument("--sym", required=True, type=int, help="Symbol version")
    p_deps.set_defaults(func=cmd_deps)

    # ranges
    p_ranges = subparsers.add_parser("ranges", help="Per-conjunction ranges at a point")
    add_trace_args(p_ranges)
    p_ranges.add_argument("--point", required=True, help="Program point")
    p_ranges.set_defaults(func=cmd_ranges)

    # smt
    p_smt = subparsers.add_parser("smt", help="Z3 encoding of stored path conditions")
    add_trace_args(p_smt)
    p_smt.add_argument("--point", help="Only this program point")
    p_smt.set_defaults(func=cmd_smt)

    # version
    p_version = subparsers.add_parser("version", help="Print the version")
    p_version.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
