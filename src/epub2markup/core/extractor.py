"""Unpack book archives into a scoped temporary directory."""

import logging
import os
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from epub2markup.core.errors import ExtractionError

log = logging.getLogger(__name__)

TEMP_PREFIX = "epub2markup-"


def _check_members(archive: zipfile.ZipFile, destination: Path) -> None:
    """Refuse archives whose members would land outside ``destination``."""
    root = os.path.realpath(destination)
    for name in archive.namelist():
        target = os.path.realpath(os.path.join(root, name))
        if os.path.commonpath([root, target]) != root:
            raise ExtractionError(f"Unsafe path in archive: {name}")


@contextmanager
def extract_package(book_path: Path) -> Iterator[Path]:
    """Yield the root directory of the unpacked package.

    A directory is treated as an already unpacked package and yielded as is.
    Archives are extracted into a temporary directory that is removed on
    every exit path, including ``KeyboardInterrupt``.
    """
    if not book_path.exists():
        raise ExtractionError(f"File not found: {book_path}")

    if book_path.is_dir():
        yield book_path
        return

    with tempfile.TemporaryDirectory(prefix=TEMP_PREFIX) as tmp:
        destination = Path(tmp)
        try:
            with zipfile.ZipFile(book_path) as archive:
                _check_members(archive, destination)
                archive.extractall(destination)
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(f"Failed to unzip {book_path.name}: {e}") from e

        log.debug("Extracted %s to %s", book_path, destination)
        yield destination
