"""CLI entry point for tscompat."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tscompat.exceptions import CompatError

if TYPE_CHECKING:
    from tscompat.config.settings import Settings
    from tscompat.core.engine import CompatEngine


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``tscompat`` command."""
    parser = argparse.ArgumentParser(
        prog="tscompat",
        description="tscompat — version-aware Typesense synonyms, overrides and presets",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Typesense host (overrides config)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Typesense port (overrides config)",
    )
    parser.add_argument(
        "--protocol",
        type=str,
        choices=["http", "https"],
        default=None,
        help="Connection protocol (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tscompat {_get_version()}",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("server-info", help="Show the detected server version and feature support")

    synonym = commands.add_parser("synonym", help="Manage collection synonyms").add_subparsers(
        dest="action", required=True
    )
    upsert = synonym.add_parser("upsert", help="Create or replace a synonym")
    _add_item_args(upsert)
    upsert.add_argument("--root", type=str, default=None, help="Root word for one-way synonyms")
    upsert.add_argument(
        "--synonyms",
        type=str,
        required=True,
        help="Comma-separated list of synonyms",
    )
    _add_item_args(synonym.add_parser("get", help="Show a synonym"))
    _add_item_args(synonym.add_parser("delete", help="Delete a synonym"))

    override = commands.add_parser("override", help="Manage collection overrides").add_subparsers(
        dest="action", required=True
    )
    _add_item_args(override.add_parser("get", help="Show an override"))
    _add_item_args(override.add_parser("delete", help="Delete an override"))

    return parser


def _add_item_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--collection", type=str, required=True, help="Collection name")
    parser.add_argument("--id", type=str, required=True, help="Item ID")


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    from tscompat.config.settings import Settings
    from tscompat.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides; assignment runs the field validators
    try:
        if args.host:
            settings.host = args.host
        if args.port is not None:
            settings.port = args.port
        if args.protocol:
            settings.protocol = args.protocol
    except ValidationError as e:
        print(f"Error: Invalid option: {e.errors()[0]['msg']}", file=sys.stderr)
        sys.exit(1)
    if args.log_level:
        settings.observability.log_level = args.log_level

    setup_logging(settings.observability)

    try:
        result = asyncio.run(_run(settings, args))
    except CompatError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))


async def _run(settings: Settings, args: argparse.Namespace) -> Any:
    from tscompat.core.engine import CompatEngine

    async with CompatEngine(settings) as engine:
        return await _dispatch(engine, args)


async def _dispatch(engine: CompatEngine, args: argparse.Namespace) -> Any:
    from tscompat.models.synonym import Synonym

    if args.command == "server-info":
        return engine.server_info()

    service = engine.synonyms if args.command == "synonym" else engine.overrides
    if args.action == "get":
        item = await service.get(args.collection, args.id)
        return item.model_dump(exclude_none=True) if item else None
    if args.action == "delete":
        await service.delete(args.collection, args.id)
        return {"deleted": args.id, "collection": args.collection}

    synonym = Synonym(
        id=args.id,
        root=args.root,
        synonyms=[s.strip() for s in args.synonyms.split(",") if s.strip()],
    )
    saved = await engine.synonyms.upsert(args.collection, synonym)
    return saved.model_dump(exclude_none=True)


def _get_version() -> str:
    """Get the package version."""
    from tscompat import __version__

    return __version__


if __name__ == "__main__":
    main()
