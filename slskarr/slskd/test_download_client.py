from __future__ import annotations

import pytest

from slskarr.config import SlskdConfig
from slskarr.exceptions import AuthenticationError, ProtocolMismatchError
from slskarr.slskd.download_client import SlskdDownloadClient
from slskarr.slskd.identity import build_release_guid
from slskarr.slskd.types import ReleaseCandidate, SlskdOptions


class _FakeClient:
    def __init__(self, host: str = "localhost", valid_key: bool = True, downloads_root: str = "/downloads") -> None:
        self.settings = SlskdConfig(host=host, api_key="secret")
        self.valid_key = valid_key
        self.downloads_root = downloads_root

    async def authenticate(self) -> None:
        if not self.valid_key:
            raise AuthenticationError("The API key is wrong (HTTP 401).")

    async def get_options(self) -> SlskdOptions:
        return SlskdOptions(downloads_directory=self.downloads_root, incomplete_directory="")


class _FakeSearches:
    def __init__(self, client: _FakeClient) -> None:
        self.client = client
        self.polling = None


class _FakeRemoval:
    def __init__(self) -> None:
        self.removed: list[str] = []

    async def remove(self, correlation_id: str) -> int:
        self.removed.append(correlation_id)
        return 4


class _FakeDownloads:
    def __init__(self) -> None:
        self.started: list[tuple[str, str, str]] = []

    async def start_download(self, search_id: str, username: str, correlation_id: str) -> bool:
        self.started.append((search_id, username, correlation_id))
        return True


def _release(guid: str) -> ReleaseCandidate:
    return ReleaseCandidate(
        guid=guid,
        correlation_id="",
        search_id="s1",
        username="peer",
        title="Artist - Album [FLAC] [WEB]",
        artist="Artist",
        album="Album",
        codec="FLAC",
        container="FLAC",
        size=10,
    )


@pytest.mark.asyncio
async def test_download_returns_correlation_id_from_guid() -> None:
    download_client = SlskdDownloadClient(_FakeSearches(_FakeClient()), removal=_FakeRemoval())
    downloads = _FakeDownloads()
    download_client.downloads = downloads
    correlation_id = "cb5f0f877e5af12b0185145aba17f546"

    assert await download_client.download(_release(build_release_guid(correlation_id))) == correlation_id
    assert downloads.started == [("s1", "peer", correlation_id)]


@pytest.mark.asyncio
async def test_download_rejects_foreign_guid() -> None:
    download_client = SlskdDownloadClient(_FakeSearches(_FakeClient()), removal=_FakeRemoval())
    download_client.downloads = _FakeDownloads()

    with pytest.raises(ProtocolMismatchError):
        await download_client.download(_release("Torrent-1234"))
    assert download_client.downloads.started == []


@pytest.mark.asyncio
async def test_remove_item_delegates_to_removal() -> None:
    removal = _FakeRemoval()
    download_client = SlskdDownloadClient(_FakeSearches(_FakeClient()), removal=removal)

    assert await download_client.remove_item("abc") == 4
    assert removal.removed == ["abc"]


@pytest.mark.asyncio
async def test_status_reports_locality_and_output_root() -> None:
    local = SlskdDownloadClient(_FakeSearches(_FakeClient()), removal=_FakeRemoval())
    remote = SlskdDownloadClient(
        _FakeSearches(_FakeClient(host="nas.lan", downloads_root="")), removal=_FakeRemoval()
    )

    local_status = await local.get_status()
    remote_status = await remote.get_status()

    assert local_status.is_localhost is True
    assert local_status.output_root_folders == ["/downloads"]
    assert remote_status.is_localhost is False
    assert remote_status.output_root_folders == []


@pytest.mark.asyncio
async def test_connection_test_message() -> None:
    good = SlskdDownloadClient(_FakeSearches(_FakeClient()), removal=_FakeRemoval())
    bad = SlskdDownloadClient(_FakeSearches(_FakeClient(valid_key=False)), removal=_FakeRemoval())

    assert await good.test() is None
    assert await bad.test() == "Could not authenticate to Slskd. Invalid API key?"
