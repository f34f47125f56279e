"""
Provider identifiers and the common resolver interface.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import requests

from ..config import ACE_BASE_URL, CURSE_BASE_URL, TUKUI_BASE_URL
from ..error_handling import LayoutError, ParseError
from ..fetcher import PageFetcher
from ..models import Addon, AddonLock

logger = logging.getLogger(__name__)

_DISPOSITION_FILENAME = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


class Provider(str, Enum):
    """Catalogs the tracker knows how to resolve and download from."""
    CURSE = "curse"
    ACE = "ace"
    TUKUI = "tukui"

    @classmethod
    def parse(cls, tag: str) -> Optional["Provider"]:
        """Map a user-supplied tag to a provider, or None if it is not served."""
        try:
            return cls(tag)
        except ValueError:
            return None

    @property
    def base_url(self) -> str:
        return {
            Provider.CURSE: CURSE_BASE_URL,
            Provider.ACE: ACE_BASE_URL,
            Provider.TUKUI: TUKUI_BASE_URL,
        }[self]


class ProviderResolver(ABC):
    """Turns add-on references into locks and locates their artifacts."""

    def __init__(self, provider: Provider, fetcher: PageFetcher):
        self.provider = provider
        self.fetcher = fetcher

    @abstractmethod
    def resolve(self, addon: Addon, old_lock: Optional[AddonLock] = None) -> AddonLock:
        """Resolve the newest stable release of ``addon``."""

    @abstractmethod
    def open_artifact(self, addon: Addon, lock: AddonLock) -> Tuple[requests.Response, str]:
        """Open the download for ``lock``.

        Returns:
            The streaming response and the filename the provider gave it
        """

    def lock_name(self, addon: Addon) -> str:
        return f"{self.provider.value}/{addon.name}"


def require(element, description: str, url: str):
    """Return ``element`` or raise LayoutError naming what was missing."""
    if element is None:
        raise LayoutError(f"{description} not found on {url}")
    return element


def parse_utc_timestamp(value: str, fmt: str) -> int:
    """Parse a naive page date as UTC and return epoch seconds."""
    normalized = " ".join(value.split())
    try:
        parsed = datetime.strptime(normalized, fmt)
    except ValueError as e:
        raise ParseError(f"Could not parse date '{value}' with format '{fmt}'") from e
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def filename_from_url(url: str) -> str:
    """Last path segment of a (redirected) download URL."""
    return unquote(PurePosixPath(urlparse(url).path).name)


def filename_from_disposition(header: str) -> Optional[str]:
    """Extract the filename from a content-disposition header value."""
    match = _DISPOSITION_FILENAME.search(header)
    if not match:
        return None
    return PurePosixPath(unquote(match.group(1).strip())).name or None
