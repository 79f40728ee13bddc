from __future__ import annotations

import pytest

from slskarr.exceptions import DownloadClientError, ProtocolMismatchError
from slskarr.slskd import downloads as downloads_module
from slskarr.slskd.downloads import DownloadOrchestrator
from slskarr.slskd.identity import compute_correlation_id
from slskarr.slskd.types import ResponseFile, SearchResponse

RELEASE_ID = compute_correlation_id("Music\\Artist\\Album")


class _FakeLog:
    def debug(self, _msg: str) -> None:
        return None


class _FakeClient:
    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.enqueued: list[tuple[str, list[ResponseFile]]] = []

    async def enqueue_downloads(self, username: str, files) -> bool:
        self.enqueued.append((username, list(files)))
        return self.accept


class _FakeSearches:
    def __init__(self, responses: list[SearchResponse], client: _FakeClient) -> None:
        self.client = client
        self._responses = responses
        self.deleted: list[str] = []

    async def get_responses(self, search_id: str) -> list[SearchResponse]:
        return self._responses

    async def delete_search(self, search_id: str) -> bool:
        self.deleted.append(search_id)
        return True


def _peer_files() -> list[ResponseFile]:
    return [
        ResponseFile(filename="Music\\Artist\\Album\\01.flac", size=10, bit_depth=16, length=100),
        ResponseFile(filename="Music\\Artist\\Album\\02.flac", size=20, bit_depth=16, length=100),
        ResponseFile(filename="Music\\Artist\\Album\\folder.jpg", size=5),
        ResponseFile(filename="Music\\Artist\\Other\\01.flac", size=30, bit_depth=16, length=100),
    ]


@pytest.fixture(autouse=True)
def _quiet_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(downloads_module.logger, "get_logger", lambda: _FakeLog())


@pytest.mark.asyncio
async def test_start_download_enqueues_media_files_and_deletes_search() -> None:
    client = _FakeClient()
    searches = _FakeSearches([SearchResponse(username="peer", files=_peer_files(), file_count=4)], client)

    assert await DownloadOrchestrator(searches).start_download("s1", "peer", RELEASE_ID) is True

    username, files = client.enqueued[0]
    assert username == "peer"
    assert [file.filename for file in files] == [
        "Music\\Artist\\Album\\01.flac",
        "Music\\Artist\\Album\\02.flac",
    ]
    assert searches.deleted == ["s1"]


@pytest.mark.asyncio
async def test_unknown_user_is_a_protocol_mismatch() -> None:
    searches = _FakeSearches([SearchResponse(username="peer", files=_peer_files())], _FakeClient())

    with pytest.raises(ProtocolMismatchError, match="User not found"):
        await DownloadOrchestrator(searches).start_download("s1", "someone-else", RELEASE_ID)
    assert searches.deleted == []


@pytest.mark.asyncio
async def test_unresolvable_release_is_a_protocol_mismatch() -> None:
    searches = _FakeSearches([SearchResponse(username="peer", files=_peer_files())], _FakeClient())

    with pytest.raises(ProtocolMismatchError, match="Unable to resolve files"):
        await DownloadOrchestrator(searches).start_download("s1", "peer", compute_correlation_id("Elsewhere"))


@pytest.mark.asyncio
async def test_release_without_media_files_is_a_protocol_mismatch() -> None:
    files = [ResponseFile(filename="Music\\Artist\\Album\\scan.png", size=5)]
    client = _FakeClient()
    searches = _FakeSearches([SearchResponse(username="peer", files=files)], client)

    with pytest.raises(ProtocolMismatchError, match="No valid media files"):
        await DownloadOrchestrator(searches).start_download("s1", "peer", RELEASE_ID)
    assert client.enqueued == []


@pytest.mark.asyncio
async def test_rejected_enqueue_raises_and_keeps_search() -> None:
    searches = _FakeSearches([SearchResponse(username="peer", files=_peer_files())], _FakeClient(accept=False))

    with pytest.raises(DownloadClientError, match="Error adding release"):
        await DownloadOrchestrator(searches).start_download("s1", "peer", RELEASE_ID)
    assert searches.deleted == []
