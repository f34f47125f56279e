"""
Lock file persistence.

The lock file maps each add-on's lock name to its four lock fields. Entries
are validated on load and written back atomically, sorted by name.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .error_handling import FilesystemError, ParseError
from .models import Addon, AddonLock

logger = logging.getLogger(__name__)


class LockEntry(BaseModel):
    """Schema of one persisted lock."""
    name: str = Field(description="Lock name, '<provider>/<addon name>'")
    resolved: str = Field(description="Provider-internal identity")
    version: str = Field(description="Display version label")
    timestamp: int = Field(ge=0, description="Release time in epoch seconds")


class LockFile(BaseModel):
    locks: List[LockEntry] = Field(default_factory=list)


class LockStore:
    """
    Reads and writes ``addons.lock.json``.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._locks: Optional[Dict[str, AddonLock]] = None

    def load(self) -> Dict[str, AddonLock]:
        """
        Load the lock file, or start empty if it does not exist.

        Raises:
            ParseError: If the file is not a valid lock file
        """
        if self._locks is not None:
            return self._locks

        if not self.path.exists():
            logger.info(f"No lock file at {self.path}, starting empty")
            self._locks = {}
            return self._locks

        try:
            data = LockFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ParseError(f"Invalid lock file {self.path}: {e}") from e
        except OSError as e:
            raise FilesystemError(f"Could not read {self.path}: {e}") from e

        self._locks = {entry.name: AddonLock(**entry.model_dump()) for entry in data.locks}
        logger.debug(f"Loaded {len(self._locks)} locks from {self.path}")
        return self._locks

    def get(self, addon: Addon) -> Optional[AddonLock]:
        return self.load().get(addon.key)

    def put(self, lock: AddonLock) -> None:
        """
        Record ``lock``, replacing any previous lock with the same name.

        Raises:
            ParseError: If the lock would not survive a save and reload
        """
        try:
            LockEntry.model_validate(lock.to_dict())
        except ValidationError as e:
            raise ParseError(f"Refusing invalid lock {lock.name}: {e}") from e
        self.load()[lock.name] = lock

    def remove(self, name: str) -> bool:
        return self.load().pop(name, None) is not None

    def save(self) -> None:
        """
        Write all locks to disk.

        Raises:
            FilesystemError: If the file could not be written
        """
        locks = self.load()
        entries = []
        for name in sorted(locks):
            try:
                entries.append(LockEntry.model_validate(locks[name].to_dict()).model_dump())
            except ValidationError as e:
                logger.error(f"Not writing invalid lock {name}: {e}")
        payload = {"locks": entries}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise FilesystemError(f"Could not write {self.path}: {e}") from e
        logger.info(f"Wrote {len(entries)} locks to {self.path}")
