#!/usr/bin/env python3
"""Entry point for junosconf."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure src/ is on sys.path for local imports when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from junosconf.core.config import ClientConfigError, load_client_config  # noqa: E402
from junosconf.core.logging import setup_logging  # noqa: E402
from junosconf.junos.client import JunosClient  # noqa: E402
from junosconf.junos.errors import CommitError, JunosError  # noqa: E402
from junosconf.resources.base import read_resource, read_set_relative  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""

    parser = argparse.ArgumentParser(
        description=(
            "Junos configuration client. Reads device facts and configuration "
            "and applies set/delete statements inside a locked transaction."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=ROOT_DIR / "config" / "local.yml",
        help="Path to local.yml (junos and logging sections)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging for troubleshooting. Overrides config/local.yml logging.level.",
    )

    subcommands = parser.add_subparsers(dest="command", title="commands")

    subcommands.add_parser("facts", help="Print the device facts gathered at session start")

    show_parser = subcommands.add_parser("show", help="Print a configuration section as relative set lines")
    show_parser.add_argument("path", help="Configuration path, e.g. 'protocols lldp'")

    apply_parser = subcommands.add_parser("apply", help="Load set/delete lines from a file and commit them")
    apply_parser.add_argument("file", type=Path, help="File with one set/delete statement per line")
    apply_parser.add_argument("--message", default="junosconf apply", help="Commit log message")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logger = setup_logging(args.config, cli_level=logging.DEBUG if args.debug else None)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        client = JunosClient(load_client_config(args.config, logger=logger))
    except ClientConfigError:
        logger.exception("Failed to load client configuration.", extra={"device": "-"})
        return 1

    log_extra = {"device": client.config.host}
    try:
        if args.command == "facts":
            return _run_facts(client)
        if args.command == "show":
            return _run_show(client, args.path)
        if args.command == "apply":
            return _run_apply(client, args.file, args.message, logger)
    except CommitError as exc:
        for warning in exc.warnings:
            logger.warning("commit warning: %s", warning, extra=log_extra)
        logger.error("commit failed: %s", exc, extra=log_extra)
        return 1
    except JunosError:
        logger.exception("Operation failed.", extra=log_extra)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


def _run_facts(client: JunosClient) -> int:
    facts = read_resource(client, lambda session: session.facts)
    print(f"hostname: {facts.host_name}")
    print(f"model: {facts.hardware_model}")
    print(f"os: {facts.os_name} {facts.os_version}")
    print(f"serial: {facts.serial_number}")
    print(f"cluster-node: {facts.cluster_node}")
    return 0


def _run_show(client: JunosClient, config_path: str) -> int:
    lines = read_resource(client, lambda session: read_set_relative(session, config_path))
    if lines is None:
        print(f"# {config_path}: not configured", file=sys.stderr)
        return 3
    for line in lines:
        print(line)
    return 0


def _run_apply(client: JunosClient, path: Path, message: str, logger: logging.Logger) -> int:
    lines = [
        line.strip()
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if not lines:
        logger.info("Nothing to apply in %s", path, extra={"device": client.config.host})
        return 0

    warnings = client.apply_config_set(lines, message)
    for warning in warnings:
        logger.warning("commit warning: %s", warning, extra={"device": client.config.host})
    logger.info("Commit completed lines=%d", len(lines), extra={"device": client.config.host})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
