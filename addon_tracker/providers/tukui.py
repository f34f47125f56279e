"""
Resolver for tukui.org.

The site has two unrelated layouts. The flagship UIs (ElvUI and Tukui) each
get a dedicated download page and are identified by name. Every other add-on
lives in the generic catalog, where the identity is a numeric id found by
searching once and then carried forward in the lock.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs, quote_plus, urljoin, urlparse

import requests

from ..config import (
    PACKAGE_EXTENSION,
    TUKUI_ADDON_DATE_FORMAT,
    TUKUI_ADDON_URL,
    TUKUI_BASE_URL,
    TUKUI_DOWNLOAD_URL,
    TUKUI_FLAGSHIP_ADDONS,
    TUKUI_FLAGSHIP_DATE_FORMAT,
    TUKUI_HOMEPAGE_URL,
    TUKUI_QUICK_DOWNLOAD_PREFIX,
    TUKUI_SEARCH_URL,
    TUKUI_UI_URL,
)
from ..error_handling import LayoutError
from ..models import UNKNOWN_VERSION, Addon, AddonLock
from .base import (
    ProviderResolver,
    filename_from_disposition,
    filename_from_url,
    parse_utc_timestamp,
    require,
)

logger = logging.getLogger(__name__)


def is_flagship(addon: Addon) -> bool:
    return addon.name in TUKUI_FLAGSHIP_ADDONS


class TukuiResolver(ProviderResolver):
    """Resolves tukui.org add-ons across both page layouts."""

    def resolve(self, addon: Addon, old_lock: Optional[AddonLock] = None) -> AddonLock:
        if is_flagship(addon):
            return self._resolve_flagship(addon)
        return self._resolve_catalog_addon(addon, old_lock)

    def _resolve_flagship(self, addon: Addon) -> AddonLock:
        url = TUKUI_UI_URL.format(name=addon.name)
        logger.info(f"Resolving {self.lock_name(addon)} from {url}")
        page = self.fetcher.get_page(url)

        # first marker is the version, second the release date
        markers = page.select("#version b.Premium")
        if len(markers) < 2:
            raise LayoutError(f"Expected version and date markers on {url}, found {len(markers)}")
        version = markers[0].get_text(strip=True)
        date = markers[1].get_text(strip=True)
        # the page only shows a date; pin it to midnight UTC
        timestamp = parse_utc_timestamp(f"{date} 00:00:00", TUKUI_FLAGSHIP_DATE_FORMAT)

        return AddonLock(
            name=self.lock_name(addon),
            resolved=addon.name,
            version=version,
            timestamp=timestamp,
        )

    def _resolve_catalog_addon(self, addon: Addon, old_lock: Optional[AddonLock]) -> AddonLock:
        # search results are not stable, so a known id is never looked up again
        if old_lock is not None:
            addon_id = old_lock.resolved
            logger.debug(f"Reusing id {addon_id} for {self.lock_name(addon)}")
        else:
            addon_id = self.search_addon_id(addon.name)

        url = TUKUI_ADDON_URL.format(id=addon_id)
        logger.info(f"Resolving {self.lock_name(addon)} (id {addon_id}) from {url}")
        page = self.fetcher.get_page(url)

        # version, date and time markers, in that order
        markers = page.select("#extras b.VIP")
        if len(markers) < 3:
            raise LayoutError(f"Expected version, date and time markers on {url}, found {len(markers)}")
        date = markers[1].get_text(strip=True)
        time_of_day = markers[2].get_text(strip=True)
        timestamp = parse_utc_timestamp(f"{date} {time_of_day}:00", TUKUI_ADDON_DATE_FORMAT)

        # TODO: read the version label once the catalog page exposes it; the first marker is not it
        logger.info(f"Version label not available for {self.lock_name(addon)}, recording '{UNKNOWN_VERSION}'")

        return AddonLock(
            name=self.lock_name(addon),
            resolved=addon_id,
            version=UNKNOWN_VERSION,
            timestamp=timestamp,
        )

    def search_addon_id(self, name: str) -> str:
        """Search the catalog by name and return the id of the first hit."""
        url = TUKUI_SEARCH_URL.format(term=quote_plus(name))
        logger.info(f"Searching tukui.org for '{name}'")
        page = self.fetcher.get_page(url)

        link = require(page.select_one(".addons.addons-list a[href]"), "Search result link", url)
        href = link["href"]
        ids = parse_qs(urlparse(href).query).get("id")
        if not ids or not ids[0]:
            raise LayoutError(f"Search result link '{href}' has no id parameter")
        logger.info(f"Found tukui.org id {ids[0]} for '{name}'")
        return ids[0]

    def open_artifact(self, addon: Addon, lock: AddonLock) -> Tuple[requests.Response, str]:
        if is_flagship(addon):
            url = self.quick_download_link(addon.name)
            response = self.fetcher.open_stream(url)
            return response, filename_from_url(response.url)

        url = TUKUI_DOWNLOAD_URL.format(id=lock.resolved)
        response = self.fetcher.open_stream(url)
        disposition = response.headers.get("content-disposition")
        filename = filename_from_disposition(disposition) if disposition else None
        if not filename:
            response.close()
            raise LayoutError(f"No filename in content-disposition header from {url}")
        return response, filename

    def quick_download_link(self, name: str) -> str:
        """Find the flagship archive link among the homepage anchors."""
        page = self.fetcher.get_page(TUKUI_HOMEPAGE_URL)
        prefix = TUKUI_QUICK_DOWNLOAD_PREFIX.format(name=name)
        for anchor in page.find_all("a", href=True):
            href = anchor["href"]
            if href.startswith(prefix) and href.endswith(PACKAGE_EXTENSION):
                return urljoin(TUKUI_BASE_URL, href)
        raise LayoutError(f"No quick download link for '{name}' on {TUKUI_HOMEPAGE_URL}")
