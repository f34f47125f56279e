"""
Main CLI entry point for the add-on tracker.
"""

import argparse
import logging
import signal
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ..cancellation import CancellationToken
from ..config import (
    ADDONS_DIR,
    LOCK_FILENAME,
    MANIFEST_FILENAME,
    MAX_WORKERS,
    PROJECT_ROOT,
    REQUEST_TIMEOUT,
    RUN_DEADLINE,
)
from ..error_handling import AddonError
from ..fetcher import PageFetcher
from ..lockfile import LockStore
from ..logging_config import setup_logging
from ..manager import AddonManager
from ..manifest import load_manifest, save_manifest
from ..models import Addon, AddonResult, Outcome
from ..providers import Provider

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    Outcome.RESOLVED: "✓ LOCKED",
    Outcome.INSTALLED: "✓ INSTALLED",
    Outcome.UPDATED: "✓ UPDATED",
    Outcome.UP_TO_DATE: "= UP TO DATE",
    Outcome.SKIPPED_UNSUPPORTED: "- SKIPPED",
    Outcome.SKIPPED_UNKNOWN_PROVIDER: "- SKIPPED",
    Outcome.FAILED: "✗ FAILED",
    Outcome.CANCELLED: "✗ CANCELLED",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="addon-tracker",
                                     description="Track, lock and update add-ons from web catalogs")
    parser.add_argument("--home", type=Path, default=None,
                        help="Directory holding the manifest and lock file (default: current directory)")
    parser.add_argument("--addons-dir", type=Path, default=None, help="Directory add-ons are installed into")
    parser.add_argument("--workers", type=int, default=MAX_WORKERS, help="Add-ons processed concurrently")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT, help="Per-request timeout in seconds")
    parser.add_argument("--deadline", type=float, default=RUN_DEADLINE, help="Overall run deadline in seconds")
    parser.add_argument("--log-file", type=str, default=None, help="Custom log file name or absolute path")
    parser.add_argument("--keep-downloads", action="store_true", help="Keep downloaded archives after extraction")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    add = subparsers.add_parser("add", help="Add an add-on to the manifest")
    add.add_argument("provider", help=f"Provider tag ({', '.join(p.value for p in Provider)})")
    add.add_argument("name", help="Add-on name as known to the provider")
    remove = subparsers.add_parser("remove", help="Remove an add-on from the manifest and lock file")
    remove.add_argument("name", help="Add-on name, or provider/name")
    subparsers.add_parser("list", help="List add-ons and their locked versions")
    subparsers.add_parser("lock", help="Resolve every add-on and write the lock file")
    subparsers.add_parser("install", help="Install add-ons that are not locked yet")
    subparsers.add_parser("update", help="Install missing add-ons and update outdated ones")
    return parser


def print_results(results: List[AddonResult]) -> None:
    """Print one line per add-on outcome."""
    print("\n" + "="*60)
    print("RESULTS")
    print("="*60)
    for result in results:
        print(f"{STATUS_LABELS[result.outcome]} | {result.addon.key} | {result.processing_time:.1f}s")
        if result.lock is not None and not result.outcome.is_failure:
            print(f"  └─ Version: {result.lock.version} ({format_timestamp(result.lock.timestamp)})")
        if result.error_message:
            print(f"  └─ {result.error_message}")
    print("="*60)


def format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def cmd_add(manifest_path: Path, provider: str, name: str) -> int:
    if Provider.parse(provider) is None:
        print(f"Unknown provider '{provider}'. Known providers: {', '.join(p.value for p in Provider)}")
        return 1
    addons = load_manifest(manifest_path)
    addon = Addon(provider=provider, name=name)
    if addon in addons:
        print(f"{addon.key} is already in the manifest")
        return 0
    addons.append(addon)
    save_manifest(manifest_path, addons)
    print(f"Added {addon.key}")
    return 0


def cmd_remove(manifest_path: Path, lock_store: LockStore, name: str) -> int:
    addons = load_manifest(manifest_path)
    removed = [a for a in addons if name in (a.name, a.key)]
    if not removed:
        print(f"{name} is not in the manifest")
        return 1
    save_manifest(manifest_path, [a for a in addons if a not in removed])
    for addon in removed:
        lock_store.remove(addon.key)
        print(f"Removed {addon.key}")
    lock_store.save()
    return 0


def cmd_list(manifest_path: Path, lock_store: LockStore) -> int:
    addons = load_manifest(manifest_path)
    if not addons:
        print("No add-ons in manifest.")
        return 0
    for addon in addons:
        lock = lock_store.get(addon)
        if lock is None:
            print(f"- {addon.key} (not locked)")
        else:
            print(f"- {addon.key} {lock.version} ({format_timestamp(lock.timestamp)})")
    print(f"\nTotal: {len(addons)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    home = (args.home or PROJECT_ROOT).expanduser()
    manifest_path = home / MANIFEST_FILENAME
    lock_store = LockStore(home / LOCK_FILENAME)
    addons_dir = args.addons_dir or (home / "AddOns" if args.home else ADDONS_DIR)
    cache_dir = home / "addon_tracker_cache"

    log_file = args.log_file or f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{args.command}.log"
    setup_logging(log_file, level=logging.DEBUG if args.verbose else logging.INFO, logs_dir=cache_dir / "logs")

    try:
        if args.command == "add":
            return cmd_add(manifest_path, args.provider, args.name)
        if args.command == "remove":
            return cmd_remove(manifest_path, lock_store, args.name)
        if args.command == "list":
            return cmd_list(manifest_path, lock_store)

        addons = load_manifest(manifest_path)
        token = CancellationToken(deadline=args.deadline)

        def cancel(signum, frame):
            print("\nInterrupted, cancelling remaining add-ons...")
            token.cancel()

        previous_handler = signal.signal(signal.SIGINT, cancel)
        try:
            with PageFetcher(timeout=args.timeout, token=token) as fetcher:
                manager = AddonManager(lock_store, fetcher, addons_dir=addons_dir,
                                       temp_dir=cache_dir / "downloads", workers=args.workers)
                if args.command == "lock":
                    results = manager.lock_all(addons)
                elif args.command == "install":
                    results = manager.install_all(addons)
                else:
                    results = manager.update_all(addons)
                if args.command != "lock" and not args.keep_downloads:
                    manager.downloader.clear_working_dir()
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        print_results(results)
        return 1 if any(r.outcome.is_failure for r in results) else 0

    except AddonError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nProcess interrupted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
