from __future__ import annotations

import asyncio

import pytest

from slskarr.config import PollingConfig, SearchSettings
from slskarr.exceptions import DownloadClientError
from slskarr.slskd import searches as searches_module
from slskarr.slskd.searches import SearchOrchestrator
from slskarr.slskd.types import SearchEntry, SlskdState


class _FakeLog:
    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.polls: list[tuple[str, str, float]] = []

    def debug(self, _msg: str) -> None:
        return None

    def warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def poll_wait(self, what: str, state: str, seconds: float) -> None:
        self.polls.append((what, state, seconds))


class _FakeClient:
    def __init__(self, states: list[SlskdState] | None = None) -> None:
        self._states = states or [SlskdState.COMPLETED_SUCCEEDED]
        self.fetches = 0
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.fail_delete_for: set[str] = set()
        self.existing: list[str] = []

    async def create_search(self, request):
        self.created.append(request.to_payload())
        return SearchEntry(id=request.id, search_text=request.search_text, state=SlskdState.REQUESTED)

    async def get_search(self, search_id: str, include_responses: bool = True):
        state = self._states[min(self.fetches, len(self._states) - 1)]
        self.fetches += 1
        return SearchEntry(id=search_id, search_text="q", state=state)

    async def delete_search(self, search_id: str) -> None:
        if search_id in self.fail_delete_for:
            raise DownloadClientError("Failed to connect to Slskd, check your settings.")
        self.deleted.append(search_id)

    async def list_searches(self):
        return [SearchEntry(id=search_id, search_text="q", state=SlskdState.COMPLETED_SUCCEEDED) for search_id in self.existing]


async def _no_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def fake_log(monkeypatch: pytest.MonkeyPatch) -> _FakeLog:
    log = _FakeLog()
    monkeypatch.setattr(searches_module.logger, "get_logger", lambda: log)
    return log


@pytest.mark.asyncio
async def test_create_search_submits_configured_settings(fake_log: _FakeLog) -> None:
    client = _FakeClient()
    orchestrator = SearchOrchestrator(client, SearchSettings(response_limit=12), sleep=_no_sleep)

    search_id = await orchestrator.create_search("artist album")

    assert client.created[0]["id"] == search_id
    assert client.created[0]["searchText"] == "artist album"
    assert client.created[0]["responseLimit"] == 12


@pytest.mark.asyncio
async def test_wait_polls_until_terminal_state(fake_log: _FakeLog) -> None:
    client = _FakeClient(
        [
            SlskdState.REQUESTED,
            SlskdState.IN_PROGRESS,
            SlskdState.IN_PROGRESS,
            SlskdState.COMPLETED_SUCCEEDED,
        ]
    )
    orchestrator = SearchOrchestrator(client, polling=PollingConfig(search_interval=0.25), sleep=_no_sleep)

    entry = await orchestrator.wait_for_completion("s1")

    assert entry.state is SlskdState.COMPLETED_SUCCEEDED
    assert client.fetches == 4
    assert [poll[1] for poll in fake_log.polls] == ["Requested", "InProgress", "InProgress"]
    assert all(poll[2] == 0.25 for poll in fake_log.polls)
    assert client.deleted == []


@pytest.mark.asyncio
async def test_wait_returns_failed_terminal_states_too(fake_log: _FakeLog) -> None:
    client = _FakeClient([SlskdState.COMPLETED_ERRORED])
    orchestrator = SearchOrchestrator(client, sleep=_no_sleep)

    entry = await orchestrator.wait_for_completion("s1", timeout=0)

    assert entry.state is SlskdState.COMPLETED_ERRORED
    assert client.fetches == 1


@pytest.mark.asyncio
async def test_cancelled_wait_deletes_the_search(fake_log: _FakeLog) -> None:
    client = _FakeClient([SlskdState.IN_PROGRESS])

    async def _cancelled_sleep(_delay: float) -> None:
        raise asyncio.CancelledError()

    orchestrator = SearchOrchestrator(client, sleep=_cancelled_sleep)

    with pytest.raises(asyncio.CancelledError):
        await orchestrator.wait_for_completion("s1", timeout=0)

    assert client.deleted == ["s1"]
    assert fake_log.warnings


@pytest.mark.asyncio
async def test_local_timeout_deletes_the_search(fake_log: _FakeLog) -> None:
    client = _FakeClient([SlskdState.IN_PROGRESS])
    orchestrator = SearchOrchestrator(client, polling=PollingConfig(search_interval=5.0), sleep=asyncio.sleep)

    with pytest.raises(asyncio.TimeoutError):
        await orchestrator.wait_for_completion("s1", timeout=0.05)

    assert client.deleted == ["s1"]


@pytest.mark.asyncio
async def test_delete_search_logs_and_reports_failure(fake_log: _FakeLog) -> None:
    client = _FakeClient()
    client.fail_delete_for = {"gone"}
    orchestrator = SearchOrchestrator(client, sleep=_no_sleep)

    assert await orchestrator.delete_search("gone") is False
    assert await orchestrator.delete_search("s2") is True
    assert client.deleted == ["s2"]
    assert len(fake_log.warnings) == 1
    assert "gone" in fake_log.warnings[0]


@pytest.mark.asyncio
async def test_delete_all_searches_counts_successful_deletes(fake_log: _FakeLog) -> None:
    client = _FakeClient()
    client.existing = ["a", "b", "c"]
    client.fail_delete_for = {"b"}
    orchestrator = SearchOrchestrator(client, sleep=_no_sleep)

    assert await orchestrator.delete_all_searches() == 2
    assert client.deleted == ["a", "c"]
