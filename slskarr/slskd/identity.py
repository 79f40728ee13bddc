"""Stable identifiers for release directories."""

from __future__ import annotations

import hashlib
import re

from slskarr.exceptions import ProtocolMismatchError

RELEASE_GUID_TAG = "Slskd"
_GUID_PATTERN = re.compile(rf"^{RELEASE_GUID_TAG}-([0-9a-f]{{32}})$")


def compute_correlation_id(path: str) -> str:
    """MD5 hex digest of a grouped directory path; identical in every process."""
    return hashlib.md5(path.encode("utf-8")).hexdigest()


def build_release_guid(correlation_id: str) -> str:
    return f"{RELEASE_GUID_TAG}-{correlation_id}"


def parse_release_guid(guid: str) -> str:
    """Return the correlation id embedded in a release GUID."""
    match = _GUID_PATTERN.match((guid or "").strip())
    if match is None:
        raise ProtocolMismatchError(f"The provided guid doesn't appear to come from slskd: '{guid}'")
    return match.group(1)
