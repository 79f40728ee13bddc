"""Rebuild the download queue view from the daemon's transfer list."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from slskarr import logger
from slskarr.slskd.client import SlskdClient
from slskarr.slskd.identity import compute_correlation_id
from slskarr.slskd.paths import directory_name, group_path, join_output_path
from slskarr.slskd.protocols import HistoryService
from slskarr.slskd.types import DownloadItemStatus, QueueItem, SlskdState, TransferFile

# Estimates beyond this are shown as unknown.
MAX_REMAINING_TIME = timedelta(days=2)


@dataclass
class _DirectoryGroup:
    directory: str
    files: List[TransferFile] = field(default_factory=list)


def file_status(file: TransferFile) -> DownloadItemStatus:
    if file.state < SlskdState.IN_PROGRESS:
        return DownloadItemStatus.QUEUED
    if file.state == SlskdState.IN_PROGRESS:
        return DownloadItemStatus.DOWNLOADING
    if file.state == SlskdState.COMPLETED_SUCCEEDED:
        return DownloadItemStatus.COMPLETED
    return DownloadItemStatus.FAILED


def aggregate_status(files: Sequence[TransferFile]) -> DownloadItemStatus:
    """Queued only when everything is queued; any failure wins over progress or completion."""
    statuses = [file_status(file) for file in files]
    if all(status is DownloadItemStatus.QUEUED for status in statuses):
        return DownloadItemStatus.QUEUED
    if any(status is DownloadItemStatus.FAILED for status in statuses):
        return DownloadItemStatus.FAILED
    if all(status is DownloadItemStatus.COMPLETED for status in statuses):
        return DownloadItemStatus.COMPLETED
    return DownloadItemStatus.DOWNLOADING


def average_speed(files: Sequence[TransferFile]) -> float:
    speeds = [file.average_speed for file in files if file.average_speed > 0]
    if not speeds:
        return 0.0
    return sum(speeds) / len(speeds)


def remaining_time(remaining_bytes: int, speed: float) -> Optional[timedelta]:
    if speed <= 0:
        return None
    estimate = timedelta(seconds=remaining_bytes / speed)
    if estimate >= MAX_REMAINING_TIME:
        return None
    return estimate


class QueueReconciler:
    """Groups every peer's transfers by release directory and attributes them via history."""

    def __init__(self, client: SlskdClient, history: Optional[HistoryService] = None) -> None:
        self.client = client
        self.history = history

    async def snapshot(self, include_unattributed: bool = False) -> List[QueueItem]:
        """
        Current queue, one item per release directory, in first-seen order.

        Groups the history service cannot attribute are dropped unless
        ``include_unattributed`` is set, in which case they are titled after
        their directory.
        """
        options = await self.client.get_options()
        entries = await self.client.get_downloads()

        groups: Dict[str, _DirectoryGroup] = {}
        for entry in entries:
            for directory in entry.directories:
                key = group_path(directory.directory, is_directory=True)
                group = groups.setdefault(key, _DirectoryGroup(directory=key))
                group.files.extend(directory.files)

        items: List[QueueItem] = []
        for key, group in groups.items():
            if not group.files:
                continue
            download_id = compute_correlation_id(key)
            title = await self._lookup_title(download_id)
            if title is None:
                if not include_unattributed:
                    logger.debug(f"Skipping unattributed download directory '{key}'")
                    continue
                title = directory_name(key)
            items.append(self._build_item(download_id, title, group, options.downloads_directory))
        return items

    async def _lookup_title(self, download_id: str) -> Optional[str]:
        if self.history is None:
            return None
        return await self.history.find_by_download_id(download_id)

    @staticmethod
    def _build_item(download_id: str, title: str, group: _DirectoryGroup, downloads_root: str) -> QueueItem:
        remaining_bytes = sum(file.bytes_remaining for file in group.files)
        return QueueItem(
            download_id=download_id,
            title=title,
            total_size=sum(file.size for file in group.files),
            remaining_size=remaining_bytes,
            remaining_time=remaining_time(remaining_bytes, average_speed(group.files)),
            status=aggregate_status(group.files),
            output_path=join_output_path(downloads_root, directory_name(group.directory)),
        )
