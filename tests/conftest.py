"""Shared fixtures: an in-memory fetcher and catalog page markup."""

import io
import zipfile
from typing import Dict, List, Optional

import pytest
from bs4 import BeautifulSoup
from requests.structures import CaseInsensitiveDict

from addon_tracker.cancellation import CancellationToken
from addon_tracker.error_handling import FetchError


class FakeResponse:
    """Stands in for a streamed ``requests.Response``."""

    def __init__(self, url: str, content: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def close(self):
        self.closed = True


class FakeFetcher:
    """Serves registered pages and downloads, recording every requested URL."""

    def __init__(self):
        self.pages: Dict[str, str] = {}
        self.downloads: Dict[str, FakeResponse] = {}
        self.requested: List[str] = []
        self.token = CancellationToken()

    def add_page(self, url: str, html: str) -> None:
        self.pages[url] = html

    def add_download(self, url: str, content: bytes, final_url: Optional[str] = None,
                     headers: Optional[Dict[str, str]] = None) -> None:
        self.downloads[url] = FakeResponse(final_url or url, content, headers)

    def get_text(self, url: str) -> str:
        self.token.raise_if_cancelled()
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(f"{url} returned HTTP 404")
        return self.pages[url]

    def get_page(self, url: str) -> BeautifulSoup:
        return BeautifulSoup(self.get_text(url), "html.parser")

    def open_stream(self, url: str) -> FakeResponse:
        self.token.raise_if_cancelled()
        self.requested.append(url)
        if url not in self.downloads:
            raise FetchError(f"{url} returned HTTP 404")
        return self.downloads[url]


def curse_file_item(version: str, epoch: Optional[int], phase: str = "release") -> str:
    """One row of a Curse file listing."""
    epoch_attr = f' data-epoch="{epoch}"' if epoch is not None else ""
    return f"""
    <tr class="project-file-list-item">
      <td class="project-file-release-type"><div class="{phase}-phase tip" title="{phase.title()}"></div></td>
      <td class="project-file-name">
        <div class="project-file-name-container">
          <a class="overflow-tip twitch-link" data-action="file-link" href="/projects/x/files/1">{version}</a>
        </div>
      </td>
      <td class="project-file-size">1.2 MB</td>
      <td class="project-file-date-uploaded"><abbr class="tip standard-date"{epoch_attr}>Mar 1, 2024</abbr></td>
    </tr>
    """


def curse_listing(*items: str) -> str:
    return f"""
    <html><body>
      <table class="listing listing-project-file project-file-listing">
        <tbody>{''.join(items)}</tbody>
      </table>
    </body></html>
    """


def tukui_flagship_page(version: str, date: str) -> str:
    return f"""
    <html><body>
      <div id="version">
        <h2>Current version</h2>
        The current version of ElvUI is <b class="Premium">{version}</b>
        and was updated on <b class="Premium">{date}</b>.
      </div>
    </body></html>
    """


def tukui_addon_page(version: str, date: str, time_of_day: str) -> str:
    return f"""
    <html><body>
      <div id="extras">
        <p>Version <b class="VIP">{version}</b></p>
        <p>Last update <b class="VIP">{date}</b> at <b class="VIP">{time_of_day}</b></p>
      </div>
    </body></html>
    """


def tukui_search_page(*ids: str) -> str:
    links = "".join(f'<a href="addons.php?id={addon_id}">Result {addon_id}</a>' for addon_id in ids)
    return f"""
    <html><body>
      <div class="addons addons-list">{links}</div>
    </body></html>
    """


def tukui_homepage(*hrefs: str) -> str:
    links = "".join(f'<a href="{href}">Download</a>' for href in hrefs)
    return f"<html><body><nav><a href=\"/forums/\">Forums</a></nav>{links}</body></html>"


def make_zip(files: Dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, text in files.items():
            archive.writestr(name, text)
    return buffer.getvalue()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def addon_zip():
    return make_zip({
        "DBM-Core/DBM-Core.toc": "## Title: DBM",
        "DBM-Core/DBM-Core.lua": "-- core",
    })
