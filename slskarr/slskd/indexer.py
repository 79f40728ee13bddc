"""Indexer side of the bridge: album search to release list."""

from __future__ import annotations

import asyncio
from typing import List, Optional

from slskarr import logger
from slskarr.exceptions import DownloadClientError
from slskarr.slskd.parser import ReleaseParser
from slskarr.slskd.protocols import AlbumService, ArtistService
from slskarr.slskd.query_tiers import build_album_queries
from slskarr.slskd.searches import SearchOrchestrator
from slskarr.slskd.types import ReleaseCandidate


class SlskdIndexer:
    """Runs the query tiers in order and returns the first tier's releases."""

    def __init__(
        self,
        searches: SearchOrchestrator,
        artist_service: Optional[ArtistService] = None,
        album_service: Optional[AlbumService] = None,
    ) -> None:
        self.searches = searches
        self.parser = ReleaseParser(searches)
        self.artist_service = artist_service
        self.album_service = album_service

    async def search_album(self, artist_name: str, album_title: str) -> List[ReleaseCandidate]:
        await self.searches.client.authenticate()

        aliases: List[str] = []
        known_album: Optional[str] = None
        metadata_aliases: List[str] = []
        if self.artist_service is not None:
            artist = await self.artist_service.find_by_name(artist_name)
            if artist is not None:
                metadata_aliases = list(artist.aliases)
                aliases = [artist.name, *metadata_aliases]
                if self.album_service is not None:
                    album = await self.album_service.find_by_title(artist.id, album_title)
                    known_album = album.title if album is not None else None

        queries = build_album_queries(artist_name, album_title, metadata_aliases)
        for index, query in enumerate(queries, 1):
            logger.info(f"[Tier {index} of {len(queries)}] Searching slskd for '{query.text}'")
            search_id = await self.searches.create_search(query.text)
            try:
                releases = await self.parser.parse(search_id, artist_name, album_title, aliases, known_album)
            except asyncio.TimeoutError:
                logger.warning(f"[Tier {index} of {len(queries)}] Search {search_id} timed out; trying the next query")
                continue
            if releases:
                logger.info(f"[Tier {index} of {len(queries)}] Found {len(releases)} release(s)")
                return releases
        logger.info(f"No releases found for '{artist_name} - {album_title}'")
        return []

    async def test(self) -> Optional[str]:
        try:
            await self.searches.client.authenticate()
        except DownloadClientError as exc:
            return f"Could not authenticate to Slskd. Invalid API key? ({exc})"
        return None
