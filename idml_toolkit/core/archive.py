from __future__ import annotations

"""Zip container helpers for IDML packages.

Extraction unpacks an ``.idml`` archive into a working directory; archiving
packs a working directory back into a new archive. Both operate on explicit
base directories and never change the process working directory.
"""

import logging
import os
import zipfile
from pathlib import Path
from typing import List, Tuple

from idml_toolkit.core.exceptions import ArchiveError, ExtractionError

logger = logging.getLogger(__name__)

__all__ = ["extract_archive", "create_archive", "MIMETYPE_FILENAME"]

MIMETYPE_FILENAME = "mimetype"


def extract_archive(archive_path: str | Path, dest_dir: str | Path) -> Path:
    """Unpack every entry of *archive_path* into *dest_dir*.

    *dest_dir* is created (with parents) when absent. Member paths are
    validated before anything is written.

    Args:
        archive_path: Path to the zip archive
        dest_dir: Directory to extract to

    Returns:
        The resolved destination directory

    Raises:
        ExtractionError: If the archive cannot be opened, holds unsafe member
            paths, or any entry cannot be written
    """
    archive_path = Path(archive_path)
    dest_dir = Path(dest_dir)
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            # Security check: validate paths before extraction
            for member in zip_ref.namelist():
                if os.path.isabs(member) or ".." in Path(member).parts:
                    raise ExtractionError(f"Unsafe path in archive: {member}", archive_path)

            zip_ref.extractall(dest_dir)
            logger.debug("Extracted %d entries from %s to %s",
                         len(zip_ref.namelist()), archive_path.name, dest_dir)

    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Invalid zip archive: {e}", archive_path, e) from e
    except OSError as e:
        raise ExtractionError(f"Failed to extract archive: {e}", archive_path, e) from e

    return dest_dir.resolve()


def _collect_entries(source_dir: Path, exclude: Path) -> Tuple[List[Path], List[Path]]:
    """Walk *source_dir* and return (files, empty directories) in sorted order."""
    files: List[Path] = []
    empty_dirs: List[Path] = []
    for current, dirnames, filenames in os.walk(source_dir):
        dirnames.sort()
        current_path = Path(current)
        entries = [current_path / name for name in sorted(filenames)]
        entries = [p for p in entries if p.resolve() != exclude]
        files.extend(entries)
        if not dirnames and not entries and current_path != source_dir:
            empty_dirs.append(current_path)
    return files, empty_dirs


def create_archive(source_dir: str | Path, dest_path: str | Path) -> Path:
    """Pack the contents of *source_dir* into a new zip archive at *dest_path*.

    Files are stored at their path relative to *source_dir*; empty
    directories become ``name/`` entries. A top-level ``mimetype`` file is
    written first and uncompressed. An existing *dest_path* is overwritten.

    Raises:
        ArchiveError: If the directory cannot be read or the archive written
    """
    source_dir = Path(source_dir).resolve()
    dest_path = Path(dest_path).resolve()
    if not source_dir.is_dir():
        raise ArchiveError("Source is not a directory", source_dir)

    try:
        files, empty_dirs = _collect_entries(source_dir, dest_path)
        mimetype = source_dir / MIMETYPE_FILENAME
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(dest_path, "w", compression=zipfile.ZIP_DEFLATED) as out:
            if mimetype in files:
                out.write(mimetype, MIMETYPE_FILENAME, compress_type=zipfile.ZIP_STORED)
            for file_path in files:
                if file_path == mimetype:
                    continue
                out.write(file_path, file_path.relative_to(source_dir).as_posix())
            for dir_path in empty_dirs:
                out.writestr(dir_path.relative_to(source_dir).as_posix() + "/", b"")

    except OSError as e:
        raise ArchiveError(f"Failed to write archive: {e}", dest_path, e) from e

    logger.info("Archive written: %s (%d files, %d empty directories)",
                dest_path, len(files), len(empty_dirs))
    return dest_path
