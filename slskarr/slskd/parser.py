"""Turn a completed search into release candidates."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence

from slskarr import logger
from slskarr.slskd.identity import build_release_guid, compute_correlation_id
from slskarr.slskd.paths import group_path
from slskarr.slskd.quality import FileQuality, MediaFile, has_media_metadata, select_media_files
from slskarr.slskd.searches import SearchOrchestrator
from slskarr.slskd.types import ReleaseCandidate, ResponseFile, SearchResponse, SlskdState


def normalize_text(text: str) -> str:
    """Lower-case, turn anything but letters, digits and whitespace into spaces, squeeze."""
    text = text.lower()
    text = re.sub(r"[^\w\s]|_", " ", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def build_release_pattern(artist_aliases: Sequence[str], album_title: str) -> re.Pattern[str]:
    """Artist alias followed, anywhere later, by the album title."""
    aliases = [re.escape(alias) for alias in (normalize_text(a) for a in artist_aliases) if alias]
    album = re.escape(normalize_text(album_title))
    if not aliases:
        return re.compile(rf"\b({album})\b", re.IGNORECASE)
    return re.compile(rf"\b({'|'.join(aliases)})\b.*\b({album})\b", re.IGNORECASE)


def matches_release(path: str, artist_aliases: Sequence[str], album_title: str) -> bool:
    return build_release_pattern(artist_aliases, album_title).search(normalize_text(path)) is not None


def group_response_files(files: Iterable[ResponseFile]) -> Dict[str, List[ResponseFile]]:
    """Bucket a peer's files by release directory, keeping first-seen order."""
    groups: Dict[str, List[ResponseFile]] = {}
    for file in files:
        groups.setdefault(group_path(file.filename, is_directory=False), []).append(file)
    return groups


def uniform_quality(media: Sequence[MediaFile]) -> Optional[FileQuality]:
    """The single quality shared by every media file, or ``None`` when mixed or empty."""
    qualities = {item.quality for item in media}
    if len(qualities) != 1:
        return None
    return next(iter(qualities))


class ReleaseParser:
    """Builds one candidate per uniformly encoded directory across all peer responses."""

    def __init__(self, searches: SearchOrchestrator) -> None:
        self.searches = searches

    async def parse(
        self,
        search_id: str,
        artist_name: str,
        album_title: str,
        artist_aliases: Sequence[str] = (),
        album: Optional[str] = None,
    ) -> List[ReleaseCandidate]:
        """
        Wait for ``search_id`` and return its candidates, largest first.

        ``album`` is the library's known album title; when given, directories must
        mention one of ``artist_aliases`` followed by that title. The search is
        deleted when it failed or produced nothing.
        """
        entry = await self.searches.wait_for_completion(search_id)

        if entry.state > SlskdState.COMPLETED_TIMED_OUT:
            logger.warning(f"Search {search_id} ended as '{entry.state.value}'; discarding it")
            await self.searches.delete_search(search_id)
            return []

        releases: List[ReleaseCandidate] = []
        for response in entry.responses:
            if response.file_count == 0:
                continue
            releases.extend(
                self._parse_response(search_id, response, artist_name, album_title, artist_aliases, album)
            )

        logger.debug(
            f"Search {search_id}: {len(releases)} release(s) from {len(entry.responses)} response(s)"
        )
        if not releases:
            await self.searches.delete_search(search_id)

        releases.sort(key=lambda release: release.size, reverse=True)
        return releases

    def _parse_response(
        self,
        search_id: str,
        response: SearchResponse,
        artist_name: str,
        album_title: str,
        artist_aliases: Sequence[str],
        album: Optional[str],
    ) -> List[ReleaseCandidate]:
        releases: List[ReleaseCandidate] = []
        for directory, files in group_response_files(response.files).items():
            if not directory.strip():
                continue
            if album is not None and not matches_release(directory, artist_aliases, album):
                continue

            # Size covers every file with audio metadata, recognised codec or not.
            candidates = [file for file in files if has_media_metadata(file)]
            media = select_media_files(candidates)
            quality = uniform_quality(media)
            if quality is None:
                continue

            correlation_id = compute_correlation_id(directory)
            container = quality.quality.value
            releases.append(
                ReleaseCandidate(
                    guid=build_release_guid(correlation_id),
                    correlation_id=correlation_id,
                    search_id=search_id,
                    username=response.username,
                    title=f"{artist_name} - {album_title} [{container}] [WEB]",
                    artist=artist_name,
                    album=album_title,
                    codec=quality.codec.value,
                    container=container,
                    size=sum(file.size for file in candidates),
                    files=[item.file for item in media],
                )
            )
        return releases
