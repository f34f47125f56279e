"""
Provider resolvers and the dispatch layer in front of them.

``get_lock`` and ``check_update`` route an add-on to its resolver by provider
tag. Tags outside ``Provider`` are reported and yield no lock; every other
failure is raised as an ``AddonError`` subclass.
"""

import logging
from typing import Dict, Optional, Tuple, Type

from ..error_handling import UnknownProvider
from ..fetcher import PageFetcher
from ..models import Addon, AddonLock
from .base import Provider, ProviderResolver
from .curse import CurseResolver
from .tukui import TukuiResolver

logger = logging.getLogger(__name__)

RESOLVERS: Dict[Provider, Type[ProviderResolver]] = {
    Provider.CURSE: CurseResolver,
    Provider.ACE: CurseResolver,
    Provider.TUKUI: TukuiResolver,
}


def get_resolver(addon: Addon, fetcher: PageFetcher) -> ProviderResolver:
    """
    Build the resolver serving ``addon``.

    Raises:
        UnknownProvider: If the add-on's provider tag is not served
    """
    provider = Provider.parse(addon.provider)
    if provider is None:
        raise UnknownProvider(f"unknown provider '{addon.provider}' for addon {addon.name}")
    return RESOLVERS[provider](provider, fetcher)


def get_lock(addon: Addon, fetcher: PageFetcher, old_lock: Optional[AddonLock] = None) -> Optional[AddonLock]:
    """
    Resolve ``addon`` to a lock.

    Args:
        addon: Add-on to resolve
        fetcher: Fetcher used for every request
        old_lock: Previous lock, used to skip identity searches

    Returns:
        The new lock, or None when the provider is unknown
    """
    try:
        resolver = get_resolver(addon, fetcher)
    except UnknownProvider as e:
        logger.warning(f"Cannot lock: {e}")
        return None
    return resolver.resolve(addon, old_lock)


def is_newer(candidate: AddonLock, current: AddonLock) -> bool:
    return candidate.timestamp > current.timestamp


def check_update(addon: Addon, lock: AddonLock, fetcher: PageFetcher) -> Tuple[bool, Optional[AddonLock]]:
    """
    Re-resolve ``addon`` and compare it with its recorded lock.

    ``lock`` is passed to the resolver as the previous lock and is never
    modified; callers replace it with the returned lock.

    Returns:
        ``(True, new_lock)`` if the fresh release is strictly newer,
        otherwise ``(False, None)``
    """
    try:
        resolver = get_resolver(addon, fetcher)
    except UnknownProvider as e:
        logger.warning(f"Cannot check for update: {e}")
        return False, None

    new_lock = resolver.resolve(addon, lock)
    if is_newer(new_lock, lock):
        logger.info(f"Update available for {lock.name}: {lock.version} -> {new_lock.version}")
        return True, new_lock
    return False, None


__all__ = [
    "Provider",
    "ProviderResolver",
    "CurseResolver",
    "TukuiResolver",
    "RESOLVERS",
    "get_resolver",
    "get_lock",
    "check_update",
    "is_newer",
]
