"""
Artifact selection and download for resolved add-ons.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import requests

from .config import CHUNK_SIZE, DOWNLOADS_DIR, PACKAGE_EXTENSION
from .error_handling import FetchError, FilesystemError, UnknownProvider, UnsupportedArtifact, handle_errors
from .extract import extract_zip
from .fetcher import PageFetcher
from .models import Addon, AddonLock
from .providers import get_resolver

logger = logging.getLogger(__name__)


def is_package_filename(filename: str) -> bool:
    return filename.endswith(PACKAGE_EXTENSION)


class ArtifactDownloader:
    """
    Locates the artifact for a lock, saves it and hands it to extraction.
    """

    def __init__(self, fetcher: PageFetcher, temp_dir: Path = DOWNLOADS_DIR):
        """
        Initialize the downloader.

        Args:
            fetcher: Fetcher used for every request
            temp_dir: Working directory for downloaded archives
        """
        self.fetcher = fetcher
        self.temp_dir = Path(temp_dir)

    def fetch_artifact(self, addon: Addon, lock: AddonLock) -> Path:
        """
        Download the artifact for ``lock`` into the working directory.

        Returns:
            Path of the saved archive

        Raises:
            UnknownProvider: If the add-on's provider is not served
            UnsupportedArtifact: If the provider offered a non-package file
            FetchError, LayoutError: If the artifact could not be located
            FilesystemError: If the archive could not be written
        """
        resolver = get_resolver(addon, self.fetcher)
        response, filename = resolver.open_artifact(addon, lock)
        try:
            if not is_package_filename(filename):
                raise UnsupportedArtifact(f"{filename} is not a {PACKAGE_EXTENSION} file")
            return self._save(response, filename, self.working_dir(addon))
        finally:
            response.close()

    def select_artifact(self, addon: Addon, lock: AddonLock) -> Optional[Path]:
        """
        Download the artifact for ``lock``, skipping anything that is not a package.

        Returns:
            Path of the saved archive, or None if the provider is unknown or
            the candidate was rejected
        """
        try:
            return self.fetch_artifact(addon, lock)
        except (UnknownProvider, UnsupportedArtifact) as e:
            logger.warning(f"Skipping download of {addon.key}: {e}")
            return None

    def download_addon(self, addon: Addon, lock: AddonLock, addon_dir: Path) -> Optional[Path]:
        """
        Download the artifact for ``lock`` and extract it into ``addon_dir``.

        Returns:
            Path of the extracted archive, or None if it was skipped
        """
        archive = self.select_artifact(addon, lock)
        if archive is None:
            return None
        extract_zip(archive, addon_dir)
        return archive

    def working_dir(self, addon: Addon) -> Path:
        """Directory owned by ``addon`` inside the working directory."""
        return self.temp_dir / addon.provider / addon.name.replace("/", "_")

    def _save(self, response: requests.Response, filename: str, directory: Path) -> Path:
        """Stream ``response`` to a temporary file and move it onto ``filename``."""
        target = directory / Path(filename).name
        try:
            directory.mkdir(parents=True, exist_ok=True)
            handle = tempfile.NamedTemporaryFile(dir=directory, prefix=".", suffix=".part", delete=False)
        except OSError as e:
            raise FilesystemError(f"Could not create a download file in {directory}: {e}") from e

        tmp_path = Path(handle.name)
        try:
            with handle:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    self.fetcher.token.raise_if_cancelled()
                    if chunk:
                        handle.write(chunk)
            os.replace(tmp_path, target)
        except requests.exceptions.RequestException as e:
            tmp_path.unlink(missing_ok=True)
            raise FetchError(f"Download of {filename} interrupted: {e}") from e
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise FilesystemError(f"Could not write {target}: {e}") from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        size_mb = target.stat().st_size / (1024 * 1024)
        logger.info(f"Saved {target.name} ({size_mb:.2f}MB)")
        return target

    @handle_errors(default_return=0)
    def clear_working_dir(self) -> int:
        """Delete downloaded archives and leftover partial files. Returns the number removed."""
        if not self.temp_dir.exists():
            return 0
        removed = 0
        for path in list(self.temp_dir.rglob("*")):
            if path.is_file() and (is_package_filename(path.name) or path.suffix == ".part"):
                path.unlink()
                removed += 1
        logger.debug(f"Removed {removed} files from {self.temp_dir}")
        return removed
