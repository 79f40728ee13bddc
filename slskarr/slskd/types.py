"""Data structures mirroring the slskd REST payloads, plus the derived release and queue models."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from slskarr.config import SearchSettings
from slskarr.slskd.resilience import (
    expect_dict,
    float_or_zero,
    int_or_zero,
    optional_dict,
    optional_int,
    optional_list_of_dicts,
    optional_str,
    optional_timestamp,
)


class SlskdState(Enum):
    """Search and transfer state as reported by the daemon.

    Ordering comes from the explicit rank table below, never from declaration order.
    A state added to the daemon must be slotted into ``_STATE_RANKS`` deliberately:
    everything at or above ``COMPLETED_SUCCEEDED`` counts as terminal, and the release
    parser treats everything above ``COMPLETED_TIMED_OUT`` as a failed search.
    """

    NONE = "None"
    INITIALIZING = "Initializing"
    REQUESTED = "Requested"
    QUEUED_REMOTELY = "Queued, Remotely"
    QUEUED_LOCALLY = "Queued, Locally"
    IN_PROGRESS = "InProgress"
    COMPLETED_SUCCEEDED = "Completed, Succeeded"
    COMPLETED_CANCELLED = "Completed, Cancelled"
    COMPLETED_TIMED_OUT = "Completed, TimedOut"
    COMPLETED_RESPONSE_LIMIT_REACHED = "Completed, ResponseLimitReached"
    COMPLETED_FILE_LIMIT_REACHED = "Completed, FileLimitReached"
    COMPLETED_ERRORED = "Completed, Errored"
    COMPLETED_REJECTED = "Completed, Rejected"
    COMPLETED_ABORTED = "Completed, Aborted"

    @property
    def rank(self) -> int:
        return _STATE_RANKS[self]

    @property
    def is_terminal(self) -> bool:
        return self.rank >= _STATE_RANKS[SlskdState.COMPLETED_SUCCEEDED]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SlskdState):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, SlskdState):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, SlskdState):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, SlskdState):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def from_wire(cls, value: object) -> "SlskdState":
        """Map a wire value ("Completed, Succeeded", "completedsucceeded", ...) to a state."""
        if value is None:
            return cls.NONE
        key = _wire_key(str(value))
        state = _STATES_BY_KEY.get(key)
        if state is None:
            raise ValueError(f"Unknown slskd state {value!r}")
        return state


_STATE_RANKS: Dict[SlskdState, int] = {
    SlskdState.NONE: 0,
    SlskdState.INITIALIZING: 1,
    SlskdState.REQUESTED: 2,
    SlskdState.QUEUED_REMOTELY: 3,
    SlskdState.QUEUED_LOCALLY: 4,
    SlskdState.IN_PROGRESS: 5,
    SlskdState.COMPLETED_SUCCEEDED: 6,
    SlskdState.COMPLETED_CANCELLED: 7,
    SlskdState.COMPLETED_TIMED_OUT: 8,
    SlskdState.COMPLETED_RESPONSE_LIMIT_REACHED: 9,
    SlskdState.COMPLETED_FILE_LIMIT_REACHED: 10,
    SlskdState.COMPLETED_ERRORED: 11,
    SlskdState.COMPLETED_REJECTED: 12,
    SlskdState.COMPLETED_ABORTED: 13,
}


def _wire_key(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


_STATES_BY_KEY: Dict[str, SlskdState] = {_wire_key(state.value): state for state in SlskdState}


@dataclass(frozen=True)
class ResponseFile:
    """Single file offered by a peer in a search response."""

    filename: str
    size: int
    bit_rate: Optional[int] = None
    bit_depth: Optional[int] = None
    length: Optional[int] = None
    sample_rate: Optional[int] = None
    is_locked: bool = False
    is_variable_bit_rate: Optional[bool] = None
    extension: str = ""
    code: int = 0

    @classmethod
    def from_payload(cls, payload: object, context: str = "file") -> "ResponseFile":
        data = expect_dict(payload, context)
        vbr = data.get("isVariableBitRate")
        return cls(
            filename=optional_str(data, "filename"),
            size=int_or_zero(data, "size", context),
            bit_rate=optional_int(data, "bitRate", context),
            bit_depth=optional_int(data, "bitDepth", context),
            length=optional_int(data, "length", context),
            sample_rate=optional_int(data, "sampleRate", context),
            is_locked=bool(data.get("isLocked", False)),
            is_variable_bit_rate=None if vbr is None else bool(vbr),
            extension=optional_str(data, "extension"),
            code=int_or_zero(data, "code", context),
        )

    def to_download_request(self) -> Dict[str, Any]:
        """Body item for ``POST /transfers/downloads/{username}``."""
        return {"filename": self.filename, "size": self.size}


@dataclass(frozen=True)
class SearchResponse:
    """One peer's answer to a search."""

    username: str
    files: List[ResponseFile] = field(default_factory=list)
    file_count: int = 0
    locked_file_count: int = 0
    has_free_upload_slot: bool = False
    queue_length: int = 0
    upload_speed: int = 0
    token: int = 0

    @classmethod
    def from_payload(cls, payload: object, context: str = "response") -> "SearchResponse":
        data = expect_dict(payload, context)
        files = [
            ResponseFile.from_payload(item, f"{context}.files[{idx}]")
            for idx, item in enumerate(optional_list_of_dicts(data, "files", context))
        ]
        file_count = optional_int(data, "fileCount", context)
        return cls(
            username=optional_str(data, "username"),
            files=files,
            file_count=len(files) if file_count is None else file_count,
            locked_file_count=int_or_zero(data, "lockedFileCount", context),
            has_free_upload_slot=bool(data.get("hasFreeUploadSlot", False)),
            queue_length=int_or_zero(data, "queueLength", context),
            upload_speed=int_or_zero(data, "uploadSpeed", context),
            token=int_or_zero(data, "token", context),
        )


@dataclass(frozen=True)
class SearchEntry:
    """A remote search and, when requested, its responses."""

    id: str
    search_text: str
    state: SlskdState
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    file_count: int = 0
    locked_file_count: int = 0
    response_count: int = 0
    is_complete: bool = False
    token: int = 0
    responses: List[SearchResponse] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: object, context: str = "search") -> "SearchEntry":
        data = expect_dict(payload, context)
        responses = [
            SearchResponse.from_payload(item, f"{context}.responses[{idx}]")
            for idx, item in enumerate(optional_list_of_dicts(data, "responses", context))
        ]
        search_id = optional_str(data, "id")
        if not search_id:
            raise ValueError(f"{context} is missing its 'id'")
        return cls(
            id=search_id,
            search_text=optional_str(data, "searchText"),
            state=SlskdState.from_wire(data.get("state")),
            started_at=optional_timestamp(data, "startedAt"),
            ended_at=optional_timestamp(data, "endedAt"),
            file_count=int_or_zero(data, "fileCount", context),
            locked_file_count=int_or_zero(data, "lockedFileCount", context),
            response_count=int_or_zero(data, "responseCount", context),
            is_complete=bool(data.get("isComplete", False)),
            token=int_or_zero(data, "token", context),
            responses=responses,
        )


@dataclass(frozen=True)
class SearchRequest:
    """Body of ``POST /searches``."""

    search_text: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    file_limit: int = 10000
    filter_responses: bool = True
    maximum_peer_queue_length: int = 1000000
    minimum_peer_upload_speed: int = 0
    minimum_response_file_count: int = 1
    response_limit: int = 250
    search_timeout: int = 15000

    @classmethod
    def build(cls, search_text: str, settings: SearchSettings) -> "SearchRequest":
        return cls(
            search_text=search_text,
            file_limit=settings.file_limit,
            filter_responses=settings.filter_responses,
            maximum_peer_queue_length=settings.maximum_peer_queue_length,
            minimum_peer_upload_speed=settings.minimum_peer_upload_speed,
            minimum_response_file_count=settings.minimum_response_file_count,
            response_limit=settings.response_limit,
            search_timeout=settings.search_timeout,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileLimit": self.file_limit,
            "filterResponses": self.filter_responses,
            "maximumPeerQueueLength": self.maximum_peer_queue_length,
            "minimumPeerUploadSpeed": self.minimum_peer_upload_speed,
            "minimumResponseFileCount": self.minimum_response_file_count,
            "responseLimit": self.response_limit,
            "searchText": self.search_text,
            "searchTimeout": self.search_timeout,
        }


@dataclass(frozen=True)
class TransferFile:
    """Per-file transfer record from ``/transfers/downloads``."""

    id: str
    username: str
    filename: str
    state: SlskdState
    size: int = 0
    direction: str = ""
    start_offset: int = 0
    bytes_transferred: int = 0
    bytes_remaining: int = 0
    average_speed: float = 0.0
    percent_complete: float = 0.0
    requested_at: Optional[datetime] = None
    enqueued_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: object, context: str = "transfer") -> "TransferFile":
        data = expect_dict(payload, context)
        return cls(
            id=optional_str(data, "id"),
            username=optional_str(data, "username"),
            filename=optional_str(data, "filename"),
            state=SlskdState.from_wire(data.get("state")),
            size=int_or_zero(data, "size", context),
            direction=optional_str(data, "direction"),
            start_offset=int_or_zero(data, "startOffset", context),
            bytes_transferred=int_or_zero(data, "bytesTransferred", context),
            bytes_remaining=int_or_zero(data, "bytesRemaining", context),
            average_speed=float_or_zero(data, "averageSpeed", context),
            percent_complete=float_or_zero(data, "percentComplete", context),
            requested_at=optional_timestamp(data, "requestedAt"),
            enqueued_at=optional_timestamp(data, "enqueuedAt"),
            started_at=optional_timestamp(data, "startedAt"),
            ended_at=optional_timestamp(data, "endedAt"),
        )


@dataclass(frozen=True)
class TransferDirectory:
    directory: str
    files: List[TransferFile] = field(default_factory=list)
    file_count: int = 0

    @classmethod
    def from_payload(cls, payload: object, context: str = "directory") -> "TransferDirectory":
        data = expect_dict(payload, context)
        files = [
            TransferFile.from_payload(item, f"{context}.files[{idx}]")
            for idx, item in enumerate(optional_list_of_dicts(data, "files", context))
        ]
        file_count = optional_int(data, "fileCount", context)
        return cls(
            directory=optional_str(data, "directory"),
            files=files,
            file_count=len(files) if file_count is None else file_count,
        )


@dataclass(frozen=True)
class TransferEntry:
    """All downloads from one peer, split by remote directory."""

    username: str
    directories: List[TransferDirectory] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: object, context: str = "downloads") -> "TransferEntry":
        data = expect_dict(payload, context)
        return cls(
            username=optional_str(data, "username"),
            directories=[
                TransferDirectory.from_payload(item, f"{context}.directories[{idx}]")
                for idx, item in enumerate(optional_list_of_dicts(data, "directories", context))
            ],
        )


@dataclass(frozen=True)
class SlskdOptions:
    downloads_directory: str
    incomplete_directory: str

    @classmethod
    def from_payload(cls, payload: object, context: str = "options") -> "SlskdOptions":
        data = expect_dict(payload, context)
        directories = optional_dict(data, "directories", context)
        return cls(
            downloads_directory=optional_str(directories, "downloads"),
            incomplete_directory=optional_str(directories, "incomplete"),
        )


@dataclass(frozen=True)
class ReleaseCandidate:
    """A directory offered by one peer that looks like a uniformly encoded release."""

    guid: str
    correlation_id: str
    search_id: str
    username: str
    title: str
    artist: str
    album: str
    codec: str
    container: str
    size: int
    files: List[ResponseFile] = field(default_factory=list)


class DownloadItemStatus(Enum):
    QUEUED = "queued"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueItem:
    """One release directory in the daemon's download queue."""

    download_id: str
    title: str
    total_size: int
    remaining_size: int
    remaining_time: Optional[timedelta]
    status: DownloadItemStatus
    output_path: str
    category: str = "music"
    can_move_files: bool = True
    can_be_removed: bool = True


@dataclass(frozen=True)
class DownloadClientInfo:
    is_localhost: bool
    output_root_folders: List[str] = field(default_factory=list)
