"""Grouping of peer file paths into release directories.

The daemon reports Windows-style paths regardless of the peer's platform, so every
result here is backslash-separated. Pure string transforms only.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath, PureWindowsPath

DISC_MARKER = re.compile(r"^(?:Disc|CD|Vinyl)\s*(\d+)$", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\\/]+")


def _segments(path: str) -> list[str]:
    return [segment for segment in _SEPARATORS.split(path.strip()) if segment]


def is_disc_marker(segment: str) -> bool:
    return DISC_MARKER.match(segment.strip()) is not None


def group_path(path: str, is_directory: bool) -> str:
    """
    Return the release directory a path belongs to.

    Files map to their parent directory, directories map to themselves. When that
    directory is a disc/volume folder ("CD2", "Disc 1", "Vinyl 3") its parent is
    returned instead so multi-disc releases collapse into one group.
    """
    segments = _segments(path)
    directory = segments if is_directory else segments[:-1]
    if directory and is_disc_marker(directory[-1]):
        directory = directory[:-1]
    leading = "\\" if path.strip().startswith(("\\", "/")) and directory else ""
    return leading + "\\".join(directory)


def directory_name(path: str) -> str:
    """Last segment of a remote path (the daemon names local download folders after it)."""
    segments = _segments(path)
    return segments[-1] if segments else ""


def file_extension(filename: str) -> str:
    """Extension of the final path segment without the dot, upper-cased."""
    name = directory_name(filename)
    _, dot, extension = name.rpartition(".")
    if not dot:
        return ""
    return extension.upper()


def join_output_path(root: str, name: str) -> str:
    """Join a daemon-side root folder with a release folder name, keeping the root's style."""
    if not root:
        return name
    if "\\" in root or re.match(r"^[A-Za-z]:", root):
        return str(PureWindowsPath(root) / name)
    return str(PurePosixPath(root) / name)
