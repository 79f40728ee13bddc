#!/usr/bin/env python3
"""
cli.py - Entry point for slskarr
Search slskd for album releases, grab them, and watch the download queue.
"""

import argparse
import asyncio
import sys
import time
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

import slskarr as pkg
from . import logger
from .config import SlskarrConfig, load_config
from .exceptions import SlskarrError
from .slskd.client import SlskdClient
from .slskd.download_client import SlskdDownloadClient
from .slskd.identity import parse_release_guid
from .slskd.indexer import SlskdIndexer
from .slskd.searches import SearchOrchestrator
from .slskd.types import QueueItem, ReleaseCandidate
from .verification import verify_connection

console = Console()
_CLI_SESSION_START_MONOTONIC = time.monotonic()


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _reset_cli_session_timer() -> None:
    global _CLI_SESSION_START_MONOTONIC
    _CLI_SESSION_START_MONOTONIC = time.monotonic()


def _format_elapsed_runtime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3_600:
        return f"{seconds / 60:.1f}m"
    if seconds < 86_400:
        return f"{seconds / 3_600:.1f}h"
    return f"{seconds / 86_400:.1f}d"


def _ui_goodbye_with_elapsed() -> None:
    elapsed = max(0.0, time.monotonic() - _CLI_SESSION_START_MONOTONIC)
    _ui_info(f"Goodbye! Elapsed {_format_elapsed_runtime(elapsed)}")


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def _format_remaining(remaining: Optional[timedelta]) -> str:
    if remaining is None:
        return "-"
    total = int(remaining.total_seconds())
    hours, rest = divmod(total, 3_600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes:02d}m"
    return f"{minutes}m{seconds:02d}s"


def _render_releases(releases: List[ReleaseCandidate]) -> Table:
    table = Table(title="slskd Releases")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Codec", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("User", style="yellow", no_wrap=True)
    table.add_column("GUID", no_wrap=True)
    table.add_column("Search", no_wrap=True)
    for idx, release in enumerate(releases, 1):
        table.add_row(
            str(idx),
            escape(release.title),
            release.codec,
            _format_size(release.size),
            escape(release.username),
            release.guid,
            release.search_id,
        )
    return table


def _render_queue(items: List[QueueItem]) -> Table:
    table = Table(title="slskd Download Queue")
    table.add_column("Download ID", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Status", style="bold", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Left", justify="right", no_wrap=True)
    table.add_column("ETA", justify="right", no_wrap=True)
    table.add_column("Output", style="yellow")
    for item in items:
        table.add_row(
            item.download_id,
            escape(item.title),
            item.status.value,
            _format_size(item.total_size),
            _format_size(item.remaining_size),
            _format_remaining(item.remaining_time),
            escape(item.output_path),
        )
    return table


async def run_search(config: SlskarrConfig, artist: str, album: str) -> int:
    async with SlskdClient(config.slskd) as client:
        searches = SearchOrchestrator(client, config.search, config.polling)
        releases = await SlskdIndexer(searches).search_album(artist, album)
    if not releases:
        _ui_warn(f"No releases found for '{artist} - {album}'")
        return 1
    console.print(_render_releases(releases))
    return 0


async def run_download(config: SlskarrConfig, guid: str, search_id: str, username: str) -> int:
    correlation_id = parse_release_guid(guid)
    async with SlskdClient(config.slskd) as client:
        searches = SearchOrchestrator(client, config.search, config.polling)
        await SlskdDownloadClient(searches).downloads.start_download(search_id, username, correlation_id)
    _ui_info(f"Queued release {correlation_id} from {username}")
    return 0


async def run_queue(config: SlskarrConfig) -> int:
    async with SlskdClient(config.slskd) as client:
        searches = SearchOrchestrator(client, config.search, config.polling)
        items = await SlskdDownloadClient(searches).get_items(include_unattributed=True)
    if not items:
        _ui_info("The download queue is empty")
        return 0
    console.print(_render_queue(items))
    return 0


async def run_remove(config: SlskarrConfig, download_id: str) -> int:
    async with SlskdClient(config.slskd) as client:
        searches = SearchOrchestrator(client, config.search, config.polling)
        removed = await SlskdDownloadClient(searches).remove_item(download_id)
    if not removed:
        _ui_warn(f"No transfers found for {download_id}")
        return 1
    _ui_info(f"Removed {removed} file(s) for {download_id}")
    return 0


async def run_clear_searches(config: SlskarrConfig) -> int:
    async with SlskdClient(config.slskd) as client:
        deleted = await SearchOrchestrator(client, config.search, config.polling).delete_all_searches()
    _ui_info(f"Deleted {deleted} search(es)")
    return 0


def resolve_config_path(args_config: Optional[str]) -> Path:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p
    return Path.cwd() / "config.toml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slskarr",
        description=f"slskarr v{pkg.__version__} - album search and downloads through slskd",
    )
    parser.add_argument("-c", "--config", metavar="PATH", help="Path to config.toml (file or directory)")
    parser.add_argument("-d", "--debug", action="store_true", help="Debug mode with API calls and JSON responses")
    parser.add_argument("--log-file", metavar="PATH", help="Mirror all output to this file")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("verify", help="Verify the slskd connection and API key")

    search = commands.add_parser("search", help="Search for an album")
    search.add_argument("artist")
    search.add_argument("album")

    download = commands.add_parser("download", help="Queue a release found by 'search'")
    download.add_argument("guid", help="Release GUID (Slskd-<hash>)")
    download.add_argument("--search-id", required=True)
    download.add_argument("--username", required=True)

    commands.add_parser("queue", help="Show the download queue")

    remove = commands.add_parser("remove", help="Cancel and remove a release's transfers")
    remove.add_argument("download_id")

    commands.add_parser("clear-searches", help="Delete every search held by slskd")
    return parser


def _dispatch(args: argparse.Namespace, config: SlskarrConfig) -> int:
    if args.command == "verify":
        return 0 if asyncio.run(verify_connection(config)) else 1
    if args.command == "search":
        return asyncio.run(run_search(config, args.artist, args.album))
    if args.command == "download":
        return asyncio.run(run_download(config, args.guid, args.search_id, args.username))
    if args.command == "queue":
        return asyncio.run(run_queue(config))
    if args.command == "remove":
        return asyncio.run(run_remove(config, args.download_id))
    return asyncio.run(run_clear_searches(config))


def main(argv: Optional[List[str]] = None):
    """Entry point"""
    _reset_cli_session_timer()
    args = build_parser().parse_args(argv)
    log_file = Path(args.log_file).expanduser() if args.log_file else None

    with logger.SlskarrLogger(log_file=log_file, debug=args.debug) as session_log:
        logger.set_logger(session_log)
        try:
            config = load_config(resolve_config_path(args.config))
            status = _dispatch(args, config)
        except KeyboardInterrupt:
            _ui_goodbye_with_elapsed()
            status = 0
        except SlskarrError as e:
            cause = f" ({e.__cause__})" if e.__cause__ else ""
            _ui_error(f"{e}{cause}")
            status = 1
        except asyncio.TimeoutError:
            _ui_error("Timed out waiting for slskd (see [polling] search_wait_timeout)")
            status = 1
        except ValueError as e:
            _ui_error(f"Unexpected response from slskd: {e}")
            status = 1
    sys.exit(status)


if __name__ == "__main__":
    main()
