"""
Resolver for the Curse family of catalogs (CurseForge and WowAce).

Both sites render the same file-listing markup, so one resolver serves both;
only the base URL differs.
"""

import logging
from typing import Optional, Tuple

import requests

from ..config import CURSE_FILES_URL, CURSE_LATEST_URL
from ..error_handling import LayoutError, ParseError
from ..models import Addon, AddonLock
from .base import ProviderResolver, filename_from_url, require

logger = logging.getLogger(__name__)


class CurseResolver(ProviderResolver):
    """Resolves add-ons by their project slug, which is also their identity."""

    def resolve(self, addon: Addon, old_lock: Optional[AddonLock] = None) -> AddonLock:
        url = CURSE_FILES_URL.format(base=self.provider.base_url, name=addon.name)
        logger.info(f"Resolving {self.lock_name(addon)} from {url}")
        page = self.fetcher.get_page(url)

        items = page.select(".project-file-list-item")
        if not items:
            raise LayoutError(f"No file list items found on {url}")

        # alpha and beta files carry a different phase marker
        releases = [
            item for item in items
            if item.select_one(".project-file-release-type .release-phase") is not None
        ]
        if not releases:
            raise LayoutError(f"No release-phase files listed on {url}")

        # the listing is sorted by release type, not strictly by upload time
        version, timestamp = max(
            (self._parse_file_item(item, url) for item in releases),
            key=lambda entry: entry[1],
        )
        logger.info(f"Resolved {self.lock_name(addon)} to {version} ({timestamp})")

        return AddonLock(
            name=self.lock_name(addon),
            resolved=addon.name,
            version=version,
            timestamp=timestamp,
        )

    def _parse_file_item(self, item, url: str) -> Tuple[str, int]:
        link = require(
            item.select_one('.project-file-name [data-action="file-link"]'),
            "File link", url,
        )
        uploaded = require(
            item.select_one(".project-file-date-uploaded abbr"),
            "Upload date", url,
        )
        epoch = uploaded.get("data-epoch")
        if epoch is None:
            raise LayoutError(f"Upload date without data-epoch attribute on {url}")
        try:
            timestamp = int(epoch)
        except ValueError as e:
            raise ParseError(f"Invalid upload epoch '{epoch}' on {url}") from e
        if timestamp < 0:
            raise ParseError(f"Negative upload epoch '{epoch}' on {url}")
        return link.get_text(strip=True), timestamp

    def open_artifact(self, addon: Addon, lock: AddonLock) -> Tuple[requests.Response, str]:
        url = CURSE_LATEST_URL.format(base=self.provider.base_url, name=addon.name)
        response = self.fetcher.open_stream(url)
        return response, filename_from_url(response.url)
