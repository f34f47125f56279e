"""
Add-on Tracker - resolves, locks and updates add-ons from web catalogs.

This package provides:
1. Resolvers that turn a provider tag and add-on name into a lock
2. Update detection by comparing fresh locks with recorded ones
3. Artifact download and extraction into the add-ons directory
"""

__version__ = "0.1.0"

# Main package imports for convenience
from .models import Addon, AddonLock, AddonResult, Outcome, UNKNOWN_VERSION
from .providers import Provider, get_lock, check_update
from .download import ArtifactDownloader
from .lockfile import LockStore
from .manager import AddonManager
from .logging_config import setup_logging

__all__ = [
    "Addon",
    "AddonLock",
    "AddonResult",
    "Outcome",
    "UNKNOWN_VERSION",
    "Provider",
    "get_lock",
    "check_update",
    "ArtifactDownloader",
    "LockStore",
    "AddonManager",
    "setup_logging",
]
