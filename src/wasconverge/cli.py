#!/usr/bin/env python3
"""Command line entry point.

Usage:
    wasconverge apply DESIRED.yaml [--inventory TOPOLOGY] [--dry-run] [--audit-log PATH]
    wasconverge preview DESIRED.yaml [--inventory TOPOLOGY]

Environment variables:
    WSADMIN_PASSWORD            Default wsadmin password
    WASCONVERGE_LOG_LEVEL       Console log level (default: INFO)
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from .config.inventory import TopologyInventory
from .reconcile_engine import ReconcileEngine
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def load_document(path: Path) -> dict:
    """Load a desired state YAML document."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wasconverge",
        description="Converge WebSphere cell configuration on a desired state",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Show what would change
    wasconverge preview desired/security.yaml

    # Generate scripts without running them
    wasconverge apply desired/security.yaml --dry-run

    # Apply against a specific topology
    wasconverge apply desired/security.yaml --inventory /etc/wasconverge/topology.yaml

Environment:
    WSADMIN_PASSWORD            wsadmin credentials
    WASCONVERGE_SSH_PASSWORD    SSH credentials for remote profiles
""",
    )
    parser.add_argument(
        "command",
        choices=["apply", "preview"],
        help="apply converges the resources, preview only lists pending changes",
    )
    parser.add_argument(
        "document",
        type=Path,
        help="Desired state YAML document",
    )
    parser.add_argument(
        "--inventory",
        type=str,
        default=None,
        help="Topology file (default: searched in ./configs, ., ~/.config/wasconverge, /etc/wasconverge)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate scripts without running them",
    )
    parser.add_argument(
        "--audit-log",
        type=str,
        default=None,
        help="Append one JSON line per executed script to this file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run report as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else None)

    if not args.document.exists():
        logger.error(f"Desired state document not found: {args.document}")
        return 1

    try:
        inventory = TopologyInventory(args.inventory)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    try:
        config = load_document(args.document)
    except yaml.YAMLError as e:
        logger.error(f"Cannot parse {args.document}: {e}")
        return 1

    engine = ReconcileEngine(inventory, audit_log_path=args.audit_log)

    try:
        if args.command == "preview":
            print(engine.preview(config))
            return 0

        report = engine.apply_config(config, dry_run=args.dry_run)
    finally:
        inventory.close_all()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        if report.error:
            print(f"ERROR: {report.error}")
        for result in report.results:
            status = "OK  " if result.success else "FAIL"
            detail = result.error or "; ".join(result.changes_made) or "in sync"
            print(f"{status} {result.kind:20s} {result.name:40s} {detail}")

    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
