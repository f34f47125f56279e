"""
Error types and error handling utilities for the add-on tracker.

Resolution and download code raise the exceptions below instead of returning
sentinels. The batch layer turns them into per-add-on results with
``isolate_addon`` so a single broken provider page never stops a run.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable

from .models import Addon, AddonResult, Outcome

logger = logging.getLogger(__name__)


class AddonError(Exception):
    """Base class for every error raised while processing an add-on."""


class FetchError(AddonError):
    """Network or transport failure, including non-2xx responses."""


class LayoutError(AddonError):
    """An element the resolver depends on is missing from the page."""


class ParseError(AddonError):
    """A timestamp, date or stored record could not be parsed."""


class FilesystemError(AddonError):
    """Writing or extracting an artifact failed."""


class UnsupportedArtifact(AddonError):
    """The candidate download is not a package archive."""


class UnknownProvider(AddonError):
    """The add-on names a provider tag this tool does not serve."""


class OperationCancelled(AddonError):
    """The run was cancelled or its deadline expired."""


def handle_errors(default_return: Any = None, log_error: bool = True):
    """
    Decorator for best-effort helpers whose failure should only be logged.

    Args:
        default_return: Value to return on error
        log_error: Whether to log the error
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (OSError, AddonError) as e:
                if log_error:
                    logger.warning(f"Error in {func.__name__}: {e}")
                return default_return
        return wrapper
    return decorator


def isolate_addon(addon: Addon, func: Callable[..., AddonResult], *args, **kwargs) -> AddonResult:
    """
    Run ``func`` for one add-on and convert tracker errors into a result.

    Only ``AddonError`` subclasses are converted; anything else is a bug and
    propagates.

    Args:
        addon: Add-on being processed
        func: Callable returning an AddonResult
        *args: Arguments for the callable
        **kwargs: Keyword arguments for the callable

    Returns:
        The callable's result, or a result describing the failure
    """
    start = time.monotonic()
    try:
        result = func(*args, **kwargs)
    except UnknownProvider as e:
        logger.warning(f"Skipping {addon.key}: {e}")
        result = AddonResult(addon, Outcome.SKIPPED_UNKNOWN_PROVIDER, error_message=str(e))
    except UnsupportedArtifact as e:
        logger.warning(f"Skipping {addon.key}: {e}")
        result = AddonResult(addon, Outcome.SKIPPED_UNSUPPORTED, error_message=str(e))
    except OperationCancelled as e:
        logger.warning(f"Cancelled {addon.key}: {e}")
        result = AddonResult(addon, Outcome.CANCELLED, error_message=str(e))
    except AddonError as e:
        logger.error(f"Failed {addon.key} ({type(e).__name__}): {e}")
        result = AddonResult(addon, Outcome.FAILED, error_message=f"{type(e).__name__}: {e}")
    result.processing_time = time.monotonic() - start
    return result
