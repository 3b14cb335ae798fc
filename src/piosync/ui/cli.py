from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from piosync.adapters.pio import PioBackend
from piosync.app import open_session
from piosync.common import configure_logging
from piosync.config import ConfigurationError, get_backend_config
from piosync.domain.model.enums import ResourceTag

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from piosync.config import BackendConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect the resources held by a PIO backend")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("uuids", help="List every resource id and its resource type")

    show = subparsers.add_parser("show", help="Show the sub-trees of one resource type")
    show.add_argument(
        "tag",
        type=str,
        help=f"Resource type, e.g. {ResourceTag.DEVICE_IMPLANT}",
    )
    show.add_argument(
        "--values",
        action="store_true",
        help="Also log every populated path with its value",
    )

    return parser.parse_args(list(argv))


async def _list_uuids(config: BackendConfig) -> None:
    async with PioBackend(config) as backend:
        session = await open_session(backend=backend)
        entries = sorted(session.registry.snapshot().items(), key=lambda entry: entry[1])
        for entity_id, tag in entries:
            log.info("%s %s", tag, entity_id)
        log.info(f"{len(entries)} resources")
        await session.close()


async def _show(config: BackendConfig, tag: str, *, values: bool) -> None:
    async with PioBackend(config) as backend:
        session = await open_session(backend=backend)
        nodes = await session.fetch_sub_trees(tag)
        for node in nodes:
            log.info(node.absolute_path)
            if values:
                for path, value in node.walk():
                    log.info(f"  {path} = {value} ({value.data_type})")
        if tag in session.handlers:
            for finding in session.handlers.read(tag, nodes):
                log.info(finding.model_dump_json(by_alias=True, exclude_none=True))
        log.info(f"{len(nodes)} {tag} sub-trees")
        await session.close()


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        config = get_backend_config()
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)

    try:
        if parsed_args.command == "uuids":
            asyncio.run(_list_uuids(config))
        elif parsed_args.command == "show":
            asyncio.run(_show(config, parsed_args.tag, values=parsed_args.values))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
