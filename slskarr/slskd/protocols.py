"""Protocol definitions for the host services the bridge consumes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class ArtistInfo:
    id: int
    name: str
    aliases: Sequence[str] = field(default_factory=tuple)


@dataclass(frozen=True)
class AlbumInfo:
    id: int
    title: str


class HistoryService(Protocol):
    """Maps a previously grabbed download id back to its release title."""

    async def find_by_download_id(self, download_id: str) -> Optional[str]:
        ...


class ArtistService(Protocol):
    async def find_by_name(self, name: str) -> Optional[ArtistInfo]:
        ...


class AlbumService(Protocol):
    async def find_by_title(self, artist_id: int, title: str) -> Optional[AlbumInfo]:
        ...
