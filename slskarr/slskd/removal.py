"""Cancel and purge every transfer that belongs to one release."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple

from slskarr import logger
from slskarr.config import PollingConfig
from slskarr.slskd.client import SlskdClient
from slskarr.slskd.identity import compute_correlation_id
from slskarr.slskd.paths import group_path
from slskarr.slskd.types import TransferFile

Sleep = Callable[[float], Awaitable[None]]


class RemovalCoordinator:
    """
    The daemon refuses to delete a transfer that is still running, so unfinished
    files are cancelled first, polled until terminal, and only then removed.
    """

    def __init__(
        self,
        client: SlskdClient,
        polling: Optional[PollingConfig] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.client = client
        self.polling = polling or PollingConfig()
        self._sleep = sleep or asyncio.sleep

    async def remove(self, correlation_id: str) -> int:
        """Remove every file of the release from the daemon; returns how many were removed."""
        targets: List[Tuple[str, TransferFile]] = []
        for entry in await self.client.get_downloads():
            for directory in entry.directories:
                key = group_path(directory.directory, is_directory=True)
                if compute_correlation_id(key) != correlation_id:
                    continue
                targets.extend((entry.username, file) for file in directory.files)

        if not targets:
            logger.debug(f"No transfers found for release {correlation_id}")
            return 0

        # Every branch runs to completion before the first failure is re-raised.
        results = await asyncio.gather(
            *(self._remove_file(username, file) for username, file in targets),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                f"Failed to remove {len(failures)} of {len(targets)} file(s) for release {correlation_id}"
            )
            raise failures[0]
        logger.debug(f"Removed {len(targets)} file(s) for release {correlation_id}")
        return len(targets)

    async def _remove_file(self, username: str, file: TransferFile) -> None:
        if not file.state.is_terminal:
            await self.client.cancel_download(username, file.id, remove=False)
            await self._wait_until_terminal(username, file.id)
        await self.client.cancel_download(username, file.id, remove=True)

    async def _wait_until_terminal(self, username: str, file_id: str) -> TransferFile:
        interval = self.polling.transfer_interval
        while True:
            transfer = await self.client.get_download(username, file_id)
            if transfer.state.is_terminal:
                return transfer
            logger.get_logger().poll_wait(f"transfer {file_id}", transfer.state.value, interval)
            await self._sleep(interval)
