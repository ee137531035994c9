"""
Johnson CLI - Command-line interface for the engine.

Usage:
    johnson validate <contract_file>                Validate contract rows
    johnson preview <contract_file> --select a,b    Show pools for a selection
    johnson execute <contract_file> --select a,b    Resolve a contract run

Contract, damage table and balancing files may be .json or .csv.
"""

import argparse
import json
import logging
import random
import sys

from .config import BalancingConfig, DEFAULT_DAMAGE_TABLE_ROWS, parse_balancing_rows
from .contract_schema import (
    ContractValidationError,
    DamageTableError,
    RunnerArchetype,
    check_damage_table,
    load_contract,
    parse_damage_table,
    read_rows,
    validate_contract,
)
from .engine_core.state import Runner
from .session import HiringError, SelectionError, SessionManager


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Johnson - Contract tree engine",
        prog="johnson",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a contract file")
    validate_parser.add_argument("contract_file", help="Path to contract file")
    validate_parser.add_argument("--damage-table", help="Also check a damage table file")
    validate_parser.add_argument("--balancing", help="Balancing file (Parameter,Value)")

    # Preview command
    preview_parser = subparsers.add_parser("preview", help="Show pools for a selection")
    _add_run_arguments(preview_parser)

    # Execute command
    execute_parser = subparsers.add_parser("execute", help="Resolve a contract run")
    _add_run_arguments(execute_parser)
    execute_parser.add_argument("--seed", type=int, help="Seed for reproducible rolls")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        cmd_validate(args)
    elif args.command == "preview":
        cmd_preview(args)
    elif args.command == "execute":
        cmd_execute(args)
    else:
        parser.print_help()
        sys.exit(1)


def _add_run_arguments(subparser):
    subparser.add_argument("contract_file", help="Path to contract file")
    subparser.add_argument("--select", default="", help="Comma-separated node ids, in order")
    subparser.add_argument("--runners", help="JSON file with the runners to hire")
    subparser.add_argument("--damage-table", help="Damage table file")
    subparser.add_argument("--balancing", help="Balancing file (Parameter,Value)")


def _fail(message):
    print(f"Error: {message}")
    sys.exit(1)


def _read(path):
    try:
        return read_rows(path)
    except FileNotFoundError:
        _fail(f"File not found: {path}")
    except (ValueError, json.JSONDecodeError) as e:
        _fail(f"{path}: {e}")


def _load_config(args):
    config = BalancingConfig()
    if args.balancing:
        config = parse_balancing_rows(_read(args.balancing), base=config)
    return BalancingConfig.from_env(config)


def _load_damage_table(args, config):
    rows = _read(args.damage_table) if args.damage_table else DEFAULT_DAMAGE_TABLE_ROWS
    try:
        table = parse_damage_table(rows)
    except ValueError as e:
        _fail(f"Damage table: {e}")
    return table, check_damage_table(table, config.max_damage_roll_value)


def _load_runners(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        _fail(f"File not found: {path}")

    runners = []
    for i, item in enumerate(data):
        runners.append(Runner(
            runner_id=str(item.get("runner_id", f"runner_{i + 1}")),
            name=item.get("name", f"Runner {i + 1}"),
            archetype=RunnerArchetype.parse(item["archetype"]),
            face=int(item.get("face", 0)),
            muscle=int(item.get("muscle", 0)),
            hacker=int(item.get("hacker", 0)),
            ninja=int(item.get("ninja", 0)),
        ))
    return runners


def cmd_validate(args):
    """Validate a contract file."""
    print(f"Validating: {args.contract_file}")
    result = validate_contract(_read(args.contract_file))
    errors = list(result.errors)

    if args.damage_table:
        config = _load_config(args)
        _, table_errors = _load_damage_table(args, config)
        errors.extend(table_errors)

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if errors:
        print("\nErrors:")
        for e in errors:
            print(f"  - {e}")
        sys.exit(1)

    print("Contract is valid")


def _plan(args):
    """Load everything, hire the crew and select nodes in order."""
    config = _load_config(args)
    damage_table, table_errors = _load_damage_table(args, config)
    if table_errors:
        _fail("; ".join(table_errors))

    try:
        contract = load_contract(_read(args.contract_file), contract_id=args.contract_file)
    except ContractValidationError as e:
        for error in e.errors:
            print(f"  - {error}")
        _fail(str(e))

    manager = SessionManager(config)
    session = manager.create_session(contract, damage_table=damage_table)

    if args.runners:
        for runner in _load_runners(args.runners):
            try:
                session.hire(runner)
            except HiringError as e:
                _fail(f"Cannot hire {runner.name}: {e}")

    for node_id in [n.strip() for n in args.select.split(",") if n.strip()]:
        try:
            session.select(node_id)
        except SelectionError as e:
            _fail(str(e))
    return session


def _print_pools(result):
    pools = result.display_pools()
    print("Pools:")
    for stat, value in pools.as_dict().items():
        print(f"  {stat:<7} {value:g}")
    print(f"Prevented: {result.prevention.damage_prevented:g} damage, "
          f"{result.prevention.risk_prevented:g} risk")
    print(f"Unprevented: {result.unprevented_damage} damage, {result.unprevented_risk} risk")
    for diagnostic in result.diagnostics:
        print(f"  ! {diagnostic}")


def cmd_preview(args):
    """Show pools for a selection."""
    session = _plan(args)
    print(f"Selected: {', '.join(session.selection.as_list()) or '(none)'}")
    _print_pools(session.preview())
    print(f"Available: {', '.join(sorted(session.available())) or '(none)'}")


def cmd_execute(args):
    """Resolve a contract run."""
    session = _plan(args)
    _print_pools(session.preview())

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        outcome = session.execute(
            rng=rng,
            observer=lambda r: print(f"  Roll {r.roll_number}: {r.raw_roll} - {r.description}"),
        )
    except DamageTableError as e:
        _fail(str(e))

    print(f"\nFinal reward: ${outcome.final_reward}")
    print(f"Risk applied: {outcome.risk_applied}")
    for runner in session.runners.values():
        print(f"  {runner.name}: {runner.runner_state.value}, level {runner.level}")
    print(f"Player money: ${session.ledger.money:g}")


if __name__ == "__main__":
    main()
