"""Download-client side of the bridge: grab, queue, remove, status."""

from __future__ import annotations

from typing import List, Optional

from slskarr.exceptions import DownloadClientError
from slskarr.slskd.downloads import DownloadOrchestrator
from slskarr.slskd.identity import parse_release_guid
from slskarr.slskd.protocols import HistoryService
from slskarr.slskd.queue import QueueReconciler
from slskarr.slskd.removal import RemovalCoordinator
from slskarr.slskd.searches import SearchOrchestrator
from slskarr.slskd.types import DownloadClientInfo, QueueItem, ReleaseCandidate

LOCALHOST_NAMES = {"127.0.0.1", "localhost"}


class SlskdDownloadClient:
    def __init__(
        self,
        searches: SearchOrchestrator,
        history: Optional[HistoryService] = None,
        removal: Optional[RemovalCoordinator] = None,
    ) -> None:
        self.searches = searches
        self.client = searches.client
        self.downloads = DownloadOrchestrator(searches)
        self.queue = QueueReconciler(self.client, history)
        self.removal = removal or RemovalCoordinator(self.client, searches.polling)

    async def download(self, release: ReleaseCandidate) -> str:
        """Queue a release's files and return its download id."""
        correlation_id = parse_release_guid(release.guid)
        await self.downloads.start_download(release.search_id, release.username, correlation_id)
        return correlation_id

    async def get_items(self, include_unattributed: bool = False) -> List[QueueItem]:
        return await self.queue.snapshot(include_unattributed=include_unattributed)

    async def remove_item(self, download_id: str) -> int:
        return await self.removal.remove(download_id)

    async def get_status(self) -> DownloadClientInfo:
        options = await self.client.get_options()
        return DownloadClientInfo(
            is_localhost=self.client.settings.host in LOCALHOST_NAMES,
            output_root_folders=[options.downloads_directory] if options.downloads_directory else [],
        )

    async def test(self) -> Optional[str]:
        try:
            await self.client.authenticate()
        except DownloadClientError:
            return "Could not authenticate to Slskd. Invalid API key?"
        return None
