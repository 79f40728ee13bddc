"""Typed async client for the slskd REST API."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import aiohttp

from slskarr import logger
from slskarr.__version__ import __version__
from slskarr.config import SlskdConfig
from slskarr.exceptions import AuthenticationError, DownloadClientError
from slskarr.slskd.resilience import expect_list_of_dicts
from slskarr.slskd.types import (
    ResponseFile,
    SearchEntry,
    SearchRequest,
    SearchResponse,
    SlskdOptions,
    TransferEntry,
    TransferFile,
)

DEFAULT_USER_AGENT = f"slskarr/{__version__}"
API_PREFIX = "/api/v0"
CONNECT_ERROR_MESSAGE = "Failed to connect to Slskd, check your settings."
INVALID_RESPONSE_MESSAGE = "Slskd returned a response that is not valid JSON."
RETRYABLE_HTTP_STATUSES = {429, 502, 503, 504}


class SlskdClient:
    """Thin typed wrapper over the daemon endpoints; one shared aiohttp session."""

    def __init__(self, settings: SlskdConfig):
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.api_url = f"{self.base_url}{API_PREFIX}"
        self.timeout = settings.timeout
        self._max_attempts = max(1, int(settings.max_attempts))
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def get_options(self) -> SlskdOptions:
        _, data = await self._request("GET", "/options")
        return SlskdOptions.from_payload(data)

    async def authenticate(self) -> None:
        """Probe ``/application``; anything but 200 means the API key was rejected."""
        status, _ = await self._request("GET", "/application", raise_for_status=False, parse_json=False)
        if status == 200:
            logger.debug("The API key is correct.")
            return
        raise AuthenticationError(f"The API key is wrong (HTTP {status}).")

    async def create_search(self, request: SearchRequest) -> SearchEntry:
        _, data = await self._request("POST", "/searches", json_body=request.to_payload())
        return SearchEntry.from_payload(data)

    async def get_search(self, search_id: str, include_responses: bool = True) -> SearchEntry:
        params = {"includeResponses": "true" if include_responses else "false"}
        _, data = await self._request("GET", f"/searches/{quote(search_id, safe='')}", params=params)
        return SearchEntry.from_payload(data)

    async def list_searches(self) -> List[SearchEntry]:
        _, data = await self._request("GET", "/searches")
        return [
            SearchEntry.from_payload(item, f"searches[{idx}]")
            for idx, item in enumerate(expect_list_of_dicts(data, "searches"))
        ]

    async def delete_search(self, search_id: str) -> None:
        await self._request("DELETE", f"/searches/{quote(search_id, safe='')}", parse_json=False)

    async def get_search_responses(self, search_id: str) -> List[SearchResponse]:
        _, data = await self._request("GET", f"/searches/{quote(search_id, safe='')}/responses")
        return [
            SearchResponse.from_payload(item, f"responses[{idx}]")
            for idx, item in enumerate(expect_list_of_dicts(data, "responses"))
        ]

    async def get_downloads(self) -> List[TransferEntry]:
        _, data = await self._request("GET", "/transfers/downloads/")
        return [
            TransferEntry.from_payload(item, f"downloads[{idx}]")
            for idx, item in enumerate(expect_list_of_dicts(data, "downloads"))
        ]

    async def enqueue_downloads(self, username: str, files: Sequence[ResponseFile]) -> bool:
        """Queue files from one peer; the daemon answers 201 when it accepted them."""
        body = [file.to_download_request() for file in files]
        status, _ = await self._request(
            "POST",
            f"/transfers/downloads/{quote(username, safe='')}",
            json_body=body,
            parse_json=False,
        )
        return status == 201

    async def get_download(self, username: str, file_id: str) -> TransferFile:
        _, data = await self._request(
            "GET", f"/transfers/downloads/{quote(username, safe='')}/{quote(file_id, safe='')}"
        )
        return TransferFile.from_payload(data)

    async def cancel_download(self, username: str, file_id: str, remove: bool = False) -> None:
        """Cancel a transfer; with ``remove`` the daemon also drops it from its list."""
        await self._request(
            "DELETE",
            f"/transfers/downloads/{quote(username, safe='')}/{quote(file_id, safe='')}",
            params={"remove": "true" if remove else "false"},
            parse_json=False,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        parse_json: bool = True,
        raise_for_status: bool = True,
    ) -> tuple[int, Any]:
        url = f"{self.api_url}{path}"
        log = logger.get_logger()
        log.api_request(method, url, params, json_body)
        # Only idempotent reads are retried.
        max_attempts = self._max_attempts if method == "GET" else 1
        request_start = time.monotonic()
        session = await self._ensure_session()

        for attempt in range(1, max_attempts + 1):
            try:
                async with session.request(method, url, params=params, json=json_body) as response:
                    if response.status >= 400 and raise_for_status:
                        text = await response.text()
                        if attempt < max_attempts and response.status in RETRYABLE_HTTP_STATUSES:
                            delay = self._retry_delay_seconds(
                                attempt=attempt, retry_after=response.headers.get("Retry-After")
                            )
                            log.api_retry(method, url, attempt, max_attempts, delay)
                            await asyncio.sleep(delay)
                            continue
                        raise aiohttp.ClientResponseError(
                            request_info=response.request_info,
                            history=response.history,
                            status=response.status,
                            message=text,
                            headers=response.headers,
                        )
                    try:
                        data = await response.json(content_type=None) if parse_json else None
                    except ValueError as exc:
                        raise DownloadClientError(INVALID_RESPONSE_MESSAGE) from exc
                    log.api_response(response.status, data, (time.monotonic() - request_start) * 1000)
                    return response.status, data
            except aiohttp.ClientResponseError as exc:
                raise DownloadClientError(CONNECT_ERROR_MESSAGE) from exc
            except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
                if attempt < max_attempts:
                    delay = 2 ** attempt
                    log.api_retry(method, url, attempt, max_attempts, delay)
                    await asyncio.sleep(delay)
                    continue
                log.api_failed(method, url, max_attempts)
                raise DownloadClientError(CONNECT_ERROR_MESSAGE) from exc
        raise RuntimeError("Unreachable retry exit")

    @staticmethod
    def _retry_delay_seconds(*, attempt: int, retry_after: str | None) -> int:
        if retry_after:
            try:
                value = int(float(retry_after))
            except (TypeError, ValueError):
                value = 0
            if value > 0:
                return value
        return 2 ** attempt

    async def _ensure_session(self) -> aiohttp.ClientSession:
        session = self._session
        if session is not None and not session.closed:
            return session

        async with self._session_lock:
            session = self._session
            if session is None or session.closed:
                self._session = aiohttp.ClientSession(
                    headers=self._get_headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                )
            return self._session

    def _get_headers(self) -> Dict[str, str]:
        return {
            "X-API-Key": self.settings.api_key,
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "application/json",
        }

    async def close(self) -> None:
        """Close any open connections."""
        async with self._session_lock:
            session = self._session
            self._session = None
        if session is not None and not session.closed:
            await session.close()

    async def __aenter__(self) -> "SlskdClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
