"""
Batch operations over the add-ons in a manifest.

Every add-on runs its resolve, compare and download steps as an independent
unit on a bounded worker pool. Failures are isolated per add-on and the lock
store is only touched from the calling thread once all workers are done.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional

from .config import ADDONS_DIR, DOWNLOADS_DIR, MAX_WORKERS
from .download import ArtifactDownloader
from .error_handling import ParseError, UnknownProvider, isolate_addon
from .extract import extract_zip
from .fetcher import PageFetcher
from .lockfile import LockStore
from .models import Addon, AddonLock, AddonResult, Outcome
from .providers import Provider, check_update, get_lock

logger = logging.getLogger(__name__)

# Outcomes whose lock replaces the stored one
_RECORDED_OUTCOMES = (Outcome.RESOLVED, Outcome.INSTALLED, Outcome.UPDATED)


class AddonManager:
    """
    Locks, installs and updates a list of add-ons.
    """

    def __init__(self, lock_store: LockStore, fetcher: PageFetcher,
                 addons_dir: Path = ADDONS_DIR, temp_dir: Path = DOWNLOADS_DIR,
                 workers: int = MAX_WORKERS):
        """
        Initialize the manager.

        Args:
            lock_store: Store holding the recorded locks
            fetcher: Fetcher shared by all workers
            addons_dir: Install directory archives are extracted into
            temp_dir: Working directory for downloaded archives
            workers: Maximum number of add-ons processed concurrently
        """
        self.lock_store = lock_store
        self.fetcher = fetcher
        self.addons_dir = Path(addons_dir)
        self.downloader = ArtifactDownloader(fetcher, temp_dir)
        self.workers = max(1, workers)
        self._extract_lock = threading.Lock()

    def lock_all(self, addons: List[Addon]) -> List[AddonResult]:
        """Resolve every add-on and record the resulting locks."""
        return self._run(addons, self._lock_one, "Locking")

    def install_all(self, addons: List[Addon]) -> List[AddonResult]:
        """Install add-ons that have no lock yet."""
        return self._run(addons, self._install_one, "Installing")

    def update_all(self, addons: List[Addon]) -> List[AddonResult]:
        """Install missing add-ons and update the ones with newer releases."""
        return self._run(addons, self._update_one, "Updating")

    def _run(self, addons: List[Addon], step: Callable[[Addon, Optional[AddonLock]], AddonResult],
             action: str) -> List[AddonResult]:
        if not addons:
            logger.info("No add-ons in manifest; nothing to do.")
            return []

        # snapshot so workers never read the store while it changes
        known = {addon: self.lock_store.get(addon) for addon in addons}
        logger.info(f"{action} {len(addons)} add-ons with {self.workers} workers")

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            results = list(executor.map(
                lambda addon: isolate_addon(addon, step, addon, known[addon]),
                addons,
            ))

        recorded = 0
        for result in results:
            if result.outcome in _RECORDED_OUTCOMES and result.lock is not None:
                try:
                    self.lock_store.put(result.lock)
                except ParseError as e:
                    logger.error(f"Failed {result.addon.key}: {e}")
                    result.outcome = Outcome.FAILED
                    result.error_message = f"ParseError: {e}"
                    continue
                recorded += 1
        if recorded:
            self.lock_store.save()

        failed = sum(1 for r in results if r.outcome.is_failure)
        logger.info(f"{action} finished: {len(results) - failed} ok, {failed} failed")
        return results

    def _lock_one(self, addon: Addon, old_lock: Optional[AddonLock]) -> AddonResult:
        lock = get_lock(addon, self.fetcher, old_lock)
        if lock is None:
            return AddonResult(addon, Outcome.SKIPPED_UNKNOWN_PROVIDER,
                               error_message=f"unknown provider '{addon.provider}'")
        return AddonResult(addon, Outcome.RESOLVED, lock=lock)

    def _install_one(self, addon: Addon, old_lock: Optional[AddonLock]) -> AddonResult:
        if old_lock is not None:
            logger.debug(f"{addon.key} already installed at {old_lock.version}")
            return AddonResult(addon, Outcome.UP_TO_DATE, lock=old_lock)

        lock = get_lock(addon, self.fetcher)
        if lock is None:
            return AddonResult(addon, Outcome.SKIPPED_UNKNOWN_PROVIDER,
                               error_message=f"unknown provider '{addon.provider}'")
        path = self._download(addon, lock)
        return AddonResult(addon, Outcome.INSTALLED, lock=lock, path=path)

    def _update_one(self, addon: Addon, old_lock: Optional[AddonLock]) -> AddonResult:
        if old_lock is None:
            return self._install_one(addon, None)

        if Provider.parse(addon.provider) is None:
            raise UnknownProvider(f"unknown provider '{addon.provider}' for addon {addon.name}")

        has_update, new_lock = check_update(addon, old_lock, self.fetcher)
        if not has_update:
            return AddonResult(addon, Outcome.UP_TO_DATE, lock=old_lock)

        path = self._download(addon, new_lock)
        return AddonResult(addon, Outcome.UPDATED, lock=new_lock, path=path)

    def _download(self, addon: Addon, lock: AddonLock) -> Path:
        archive = self.downloader.fetch_artifact(addon, lock)
        # add-ons share one install directory
        with self._extract_lock:
            extract_zip(archive, self.addons_dir)
        return archive
