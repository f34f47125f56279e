"""
The add-on manifest: which add-ons the user wants installed.
"""

import json
import logging
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, ValidationError

from .error_handling import FilesystemError, ParseError
from .models import Addon

logger = logging.getLogger(__name__)


class ManifestEntry(BaseModel):
    provider: str = Field(min_length=1)
    name: str = Field(min_length=1)


class Manifest(BaseModel):
    addons: List[ManifestEntry] = Field(default_factory=list)


def load_manifest(path: Path) -> List[Addon]:
    """
    Load the manifest, keeping the first occurrence of duplicate entries.

    Args:
        path: Path to ``addons.json``

    Returns:
        Add-ons in manifest order; empty if the file does not exist

    Raises:
        ParseError: If the file is not a valid manifest
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"No manifest at {path}")
        return []

    try:
        manifest = Manifest.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise ParseError(f"Invalid manifest {path}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Could not read {path}: {e}") from e

    addons: List[Addon] = []
    for entry in manifest.addons:
        addon = Addon(provider=entry.provider, name=entry.name)
        if addon in addons:
            logger.debug(f"Ignoring duplicate manifest entry {addon.key}")
            continue
        addons.append(addon)
    return addons


def save_manifest(path: Path, addons: List[Addon]) -> None:
    """Write ``addons`` to the manifest at ``path``."""
    path = Path(path)
    payload = {"addons": [{"provider": a.provider, "name": a.name} for a in addons]}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Could not write {path}: {e}") from e
    logger.info(f"Saved {len(addons)} add-ons to {path}")
