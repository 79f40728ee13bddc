"""Start a download for a release chosen from a previous search."""

from __future__ import annotations

from slskarr import logger
from slskarr.exceptions import DownloadClientError, ProtocolMismatchError
from slskarr.slskd.identity import compute_correlation_id
from slskarr.slskd.parser import group_response_files
from slskarr.slskd.quality import select_media_files
from slskarr.slskd.searches import SearchOrchestrator


class DownloadOrchestrator:
    """
    Re-resolves a release's files from the search it came from and queues them.

    The peer's listing is fetched again and re-grouped, so a peer that reorganised
    its share between search and download can no longer be resolved.
    """

    def __init__(self, searches: SearchOrchestrator) -> None:
        self.searches = searches

    async def start_download(self, search_id: str, username: str, correlation_id: str) -> bool:
        responses = await self.searches.get_responses(search_id)

        user_response = next((r for r in responses if r.username == username), None)
        if user_response is None:
            raise ProtocolMismatchError(f"User not found: '{username}' is no longer in search {search_id}.")

        files = next(
            (
                group
                for directory, group in group_response_files(user_response.files).items()
                if compute_correlation_id(directory) == correlation_id
            ),
            None,
        )
        if files is None:
            raise ProtocolMismatchError(f"Unable to resolve files for release {correlation_id}.")

        media = select_media_files(files)
        if not media:
            raise ProtocolMismatchError(f"No valid media files for release {correlation_id}.")

        started = await self.searches.client.enqueue_downloads(username, [item.file for item in media])
        if not started:
            raise DownloadClientError(f"Error adding release {correlation_id} to Slskd.")

        logger.debug(f"Downloading {len(media)} file(s) of release {correlation_id} from {username}")
        await self.searches.delete_search(search_id)
        return True
