"""Bridge between a music library manager and the slskd Soulseek daemon."""

from slskarr.__version__ import __version__

__all__ = ["__version__"]
