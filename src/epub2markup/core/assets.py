"""Relocate image references next to split output and copy the files."""

import logging
import os
import shutil
from itertools import count
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping
from urllib.parse import unquote

log = logging.getLogger(__name__)

IMAGES_DIRNAME = "images"


class AssetCollector:
    """Collects image copies requested while converting chapters.

    Each source file gets one destination of its own, so an image
    referenced from several chapters is copied once and two files never
    share a destination. Copies run in :meth:`copy_all` after every
    chapter has been converted.

    Args:
        package_root: Root of the unpacked package. Images resolving outside
            it are never copied.
        output_dir: Folder the split chapters are written to.
        content_root: Directory the mirrored image paths are taken relative
            to, usually the package document's directory. Defaults to
            ``package_root``.
    """

    def __init__(
        self,
        package_root: Path,
        output_dir: Path,
        content_root: Path | None = None,
    ):
        self.package_root = Path(os.path.abspath(package_root))
        self.content_root = Path(os.path.abspath(content_root or package_root))
        self.output_dir = output_dir
        self._pending: dict[Path, Path] = {}
        self._by_source: dict[Path, Path] = {}

    @property
    def images_dir(self) -> Path:
        return self.output_dir / IMAGES_DIRNAME

    @property
    def pending(self) -> Mapping[Path, Path]:
        """Destination -> source for every registered copy."""
        return MappingProxyType(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def _candidates(self, source: Path) -> Iterator[Path]:
        """Destinations for ``source``, most preferred first."""
        try:
            relative = source.relative_to(self.content_root)
        except ValueError:
            relative = source.relative_to(self.package_root)

        mirrored = Path(IMAGES_DIRNAME) / relative
        # images/cover.jpg stays images/cover.jpg rather than images/images/...
        if len(relative.parts) > 1 and relative.parts[0].lower() == IMAGES_DIRNAME:
            yield Path(IMAGES_DIRNAME, *relative.parts[1:])
        yield mirrored
        for n in count(2):
            yield mirrored.with_name(f"{mirrored.stem}-{n}{mirrored.suffix}")

    def _claim(self, source: Path) -> Path:
        target_rel = next(
            rel
            for rel in self._candidates(source)
            if self.output_dir / rel not in self._pending
        )
        log.debug(f"Image {source.name} -> {target_rel}")
        self._pending[self.output_dir / target_rel] = source
        self._by_source[source] = target_rel
        return target_rel

    def rewrite(self, src: str, base_dir: Path | None) -> str:
        """Map an image source to its location under ``images/``.

        Each source gets its own destination; the same source always maps to
        the same one. Sources that resolve outside the package root are
        returned unchanged.
        """
        path_part = unquote(src.split("#", 1)[0].split("?", 1)[0])
        if not path_part or "://" in src or src.startswith("data:"):
            return src

        base = Path(os.path.abspath(base_dir or self.content_root))
        source = Path(os.path.normpath(base / path_part))
        if not source.is_relative_to(self.package_root):
            log.debug(f"Image outside package, leaving as is: {src}")
            return src

        target_rel = self._by_source.get(source) or self._claim(source)
        return target_rel.as_posix()

    def copy_all(self) -> int:
        """Copy every registered image; failures are logged and skipped.

        Returns the number of files copied.
        """
        copied = 0
        for destination, source in self._pending.items():
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
                copied += 1
            except OSError as e:
                log.warning(f"Failed to copy image {source.name}: {e}")
        self.images_dir.mkdir(parents=True, exist_ok=True)
        return copied
