"""Cooperative cancellation shared by every network call of a run.

Fetches check the token before doing any I/O, so a cancelled run stops at the
next request boundary instead of interrupting a thread mid-write.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from .error_handling import OperationCancelled


class CancellationToken:
    """Thread-safe cancellation token with an optional overall deadline.

    Examples:
        >>> token = CancellationToken(deadline=60)
        >>> token.raise_if_cancelled()
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        """Create a token.

        Args:
            deadline: Seconds from now after which the token counts as
                cancelled. ``None`` means no deadline.
        """
        self._event = threading.Event()
        self._expires_at = time.monotonic() + deadline if deadline is not None else None

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._event.set()

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def is_cancelled(self) -> bool:
        """Return True once cancelled explicitly or past the deadline."""
        return self._event.is_set() or self.expired()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled")
        if self.expired():
            raise OperationCancelled("Run deadline exceeded")
