"""Ordered search query tiers for an album search."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


class SearchType(Enum):
    ARTIST_AND_ALBUM = "artist_and_album"
    ALBUM_ONLY = "album_only"
    ARTIST_ONLY = "artist_only"
    ALIAS_ONLY = "alias_only"
    ALIAS_AND_ALBUM = "alias_and_album"


@dataclass(frozen=True)
class SearchQuery:
    search_type: SearchType
    text: str


def build_query_text(search_type: SearchType, artist: str, album: str = "", alias: str = "") -> str:
    if search_type is SearchType.ARTIST_ONLY:
        text = artist
    elif search_type is SearchType.ALBUM_ONLY:
        text = album
    elif search_type is SearchType.ALIAS_ONLY:
        text = alias
    elif search_type is SearchType.ARTIST_AND_ALBUM:
        text = f"{artist} {album}"
    else:
        text = f"{alias} {album}"
    text = text.strip()
    if not text:
        raise ValueError("The search query is empty.")
    return text


def build_album_queries(artist: str, album: str, aliases: Sequence[str] = ()) -> List[SearchQuery]:
    """
    Tiers, broadest match last: artist + album, album, artist, each alias alone,
    then each alias + album. Directory matching happens when results are parsed,
    so the loose tiers stay useful.
    """
    plan: List[tuple[SearchType, str]] = [
        (SearchType.ARTIST_AND_ALBUM, ""),
        (SearchType.ALBUM_ONLY, ""),
        (SearchType.ARTIST_ONLY, ""),
    ]
    plan.extend((SearchType.ALIAS_ONLY, alias) for alias in aliases)
    plan.extend((SearchType.ALIAS_AND_ALBUM, alias) for alias in aliases)
    return [
        SearchQuery(search_type, build_query_text(search_type, artist, album, alias))
        for search_type, alias in plan
    ]
