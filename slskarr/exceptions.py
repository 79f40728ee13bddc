"""
Custom exceptions raised by the slskd bridge.
"""


class SlskarrError(Exception):
    """Base exception for all application-specific errors."""


class DownloadClientError(SlskarrError):
    """Raised when the daemon cannot be reached or rejects a request."""


class AuthenticationError(DownloadClientError):
    """Raised when the daemon rejects the configured API key."""


class ProtocolMismatchError(DownloadClientError):
    """
    Raised when parse-time and download-time state disagree: a foreign release GUID,
    a peer that disappeared, or a directory that no longer resolves to media files.
    """
