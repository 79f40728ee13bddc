"""Lifecycle of remote searches: create, poll until terminal, fetch, delete."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from slskarr import logger
from slskarr.config import PollingConfig, SearchSettings
from slskarr.exceptions import DownloadClientError
from slskarr.slskd.client import SlskdClient
from slskarr.slskd.types import SearchEntry, SearchRequest, SearchResponse, SlskdState

Sleep = Callable[[float], Awaitable[None]]


class SearchOrchestrator:
    """
    Owns remote search entries from creation to deletion.

    The daemon drives every state transition; this class only observes them. Waiting
    is bounded by the daemon's own search timeout, and optionally by a local timeout
    so a daemon that never finishes cannot block the caller forever.
    """

    def __init__(
        self,
        client: SlskdClient,
        settings: Optional[SearchSettings] = None,
        polling: Optional[PollingConfig] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.client = client
        self.settings = settings or SearchSettings()
        self.polling = polling or PollingConfig()
        self._sleep = sleep or asyncio.sleep

    async def create_search(self, query: str, settings: Optional[SearchSettings] = None) -> str:
        """Submit a search and return its id."""
        request = SearchRequest.build(query, settings or self.settings)
        entry = await self.client.create_search(request)
        logger.debug(f"Created search {entry.id} for '{query}'")
        return entry.id

    async def wait_for_completion(self, search_id: str, timeout: Optional[float] = None) -> SearchEntry:
        """
        Poll the search (with responses) until it reaches a terminal state.

        ``timeout`` overrides the configured local bound; pass ``0`` to rely on the
        daemon's timeout alone. When the wait is cancelled or times out the search is
        deleted before the cancellation propagates.
        """
        bound = self.polling.search_wait_timeout if timeout is None else timeout
        try:
            if bound:
                return await asyncio.wait_for(self._poll(search_id), bound)
            return await self._poll(search_id)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            logger.warning(f"Stopped waiting for search {search_id}; deleting it")
            await self.delete_search(search_id)
            raise

    async def _poll(self, search_id: str) -> SearchEntry:
        interval = self.polling.search_interval
        while True:
            entry = await self.client.get_search(search_id, include_responses=True)
            if entry.state >= SlskdState.COMPLETED_SUCCEEDED:
                logger.debug(
                    f"Search {search_id} finished as '{entry.state.value}' "
                    f"with {entry.response_count} responses"
                )
                return entry
            logger.get_logger().poll_wait(f"search {search_id}", entry.state.value, interval)
            await self._sleep(interval)

    async def get_responses(self, search_id: str) -> List[SearchResponse]:
        return await self.client.get_search_responses(search_id)

    async def list_searches(self) -> List[SearchEntry]:
        return await self.client.list_searches()

    async def delete_search(self, search_id: str) -> bool:
        """Best-effort delete; failures are logged and reported as ``False``."""
        try:
            await self.client.delete_search(search_id)
        except DownloadClientError as exc:
            cause = exc.__cause__ or exc
            logger.warning(f"Could not delete search {search_id}: {cause}")
            return False
        return True

    async def delete_all_searches(self) -> int:
        """Delete every search the daemon still holds; returns how many were removed."""
        deleted = 0
        for entry in await self.list_searches():
            if await self.delete_search(entry.id):
                deleted += 1
        return deleted
