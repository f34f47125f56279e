"""
Archive extraction into the add-ons directory.
"""

import logging
import zipfile
from pathlib import Path
from typing import List

from .error_handling import FilesystemError

logger = logging.getLogger(__name__)


def extract_zip(archive_path: Path, target_dir: Path) -> List[str]:
    """
    Extract a package archive into ``target_dir``.

    Args:
        archive_path: Path to the zip archive
        target_dir: Install directory; created if missing

    Returns:
        Names of the top-level folders the archive installed

    Raises:
        FilesystemError: If the archive is malformed, a member would land
            outside ``target_dir``, or writing fails
    """
    target_dir = Path(target_dir)
    root = target_dir.resolve()
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path) as archive:
            members = archive.namelist()
            for member in members:
                destination = (root / member).resolve()
                if destination != root and root not in destination.parents:
                    raise FilesystemError(f"Archive member '{member}' escapes {target_dir}")
            archive.extractall(root)
    except zipfile.BadZipFile as e:
        raise FilesystemError(f"Malformed archive {archive_path}: {e}") from e
    except OSError as e:
        raise FilesystemError(f"Could not extract {archive_path} into {target_dir}: {e}") from e

    folders = sorted({member.split("/", 1)[0] for member in members if member.strip("/")})
    logger.info(f"Extracted {Path(archive_path).name} into {target_dir}: {', '.join(folders)}")
    return folders
