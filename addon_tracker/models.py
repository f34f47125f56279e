"""
Shared data models for the add-on tracker.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

# Placeholder for releases whose version label cannot be read from the page
UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True)
class Addon:
    """An add-on as the user refers to it: provider tag plus catalog name."""
    provider: str
    name: str

    @property
    def key(self) -> str:
        return f"{self.provider}/{self.name}"


@dataclass(frozen=True)
class AddonLock:
    """Canonical resolution record for one add-on.

    ``timestamp`` is the only field used to decide whether an update exists;
    ``version`` is a display label and may be ``UNKNOWN_VERSION``.
    """
    name: str
    resolved: str
    version: str
    timestamp: int

    @property
    def has_known_version(self) -> bool:
        return self.version != UNKNOWN_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AddonLock":
        return cls(
            name=data["name"],
            resolved=data["resolved"],
            version=data["version"],
            timestamp=int(data["timestamp"]),
        )


class Outcome(str, Enum):
    RESOLVED = "resolved"
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"
    INSTALLED = "installed"
    SKIPPED_UNSUPPORTED = "skipped-unsupported"
    SKIPPED_UNKNOWN_PROVIDER = "skipped-unknown-provider"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_failure(self) -> bool:
        return self in (Outcome.FAILED, Outcome.CANCELLED)


@dataclass
class AddonResult:
    """Result of processing one add-on in a batch."""
    addon: Addon
    outcome: Outcome
    lock: Optional[AddonLock] = None
    path: Optional[Path] = None
    error_message: Optional[str] = None
    processing_time: float = 0.0
