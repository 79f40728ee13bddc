"""
verification.py - slskd connection and API key verification for slskarr
"""

from typing import Awaitable, Callable, List, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import SlskarrConfig
from .exceptions import AuthenticationError, DownloadClientError
from .slskd.client import SlskdClient

console = Console()

CheckResult = Tuple[str, bool, str]


def _invalid_key_msg(detail: str) -> str:
    """Generate standardized invalid API key message"""
    return f"Invalid API key - {detail}"


async def check_api_key(client: SlskdClient) -> CheckResult:
    """Probe /application with the configured key"""
    try:
        await client.authenticate()
    except AuthenticationError as e:
        return "API key", False, _invalid_key_msg(str(e))
    except DownloadClientError as e:
        return "API key", False, f"{e} ({e.__cause__ or 'no detail'})"
    return "API key", True, f"Accepted by {client.base_url}"


async def check_options(client: SlskdClient) -> CheckResult:
    """Read the daemon's download folders"""
    try:
        options = await client.get_options()
    except DownloadClientError as e:
        return "Options", False, f"{e} ({e.__cause__ or 'no detail'})"
    if not options.downloads_directory:
        return "Options", False, "No downloads directory reported"
    return "Options", True, f"Downloads: {options.downloads_directory}"


CHECKS: List[Callable[[SlskdClient], Awaitable[CheckResult]]] = [check_api_key, check_options]


async def verify_connection(config: SlskarrConfig) -> bool:
    """Run every check against the configured daemon and print a summary table"""
    console.print("[cyan][INFO][/cyan] Verifying slskd connection...")

    async with SlskdClient(config.slskd) as client:
        results = [await check(client) for check in CHECKS]

    table = Table(title="slskd Verification Results")
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status", style="bold", no_wrap=True)
    table.add_column("Details", style="yellow")

    for name, status, details in results:
        status_str = "[green]✓ Valid[/green]" if status else "[red]✗ Invalid[/red]"
        table.add_row(name, status_str, escape(details.strip()[:100]))

    console.print(table)
    return all(status for _, status, _ in results)
