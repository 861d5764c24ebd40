"""Split the book's content files into ordered chapter slices."""

import logging
from collections import defaultdict
from pathlib import Path

from epub2markup.core.errors import EmptySpine, NoChaptersFound, NoHtmlContent
from epub2markup.core.navigation import find_anchor_position
from epub2markup.models.chapter import ChapterRecord
from epub2markup.models.package import PackageDocument, TOCEntry

log = logging.getLogger(__name__)

# Spine position multiplier for ordering keys; bounds chapters per file
ORDER_STRIDE = 10_000


def read_content(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def compute_ranges(positions: list[int | None], length: int) -> list[tuple[int, int]]:
    """Turn resolved anchor offsets into ``(start, end)`` slices, in input order.

    An unresolved offset takes the previous entry's offset, or the start of
    the file for the first entry. Slices are cut at the offsets sorted into
    document order, so every character from the first offset to ``length``
    belongs to exactly one slice whatever order the entries come in.
    """
    resolved: list[int] = []
    previous = 0
    for position in positions:
        previous = previous if position is None else position
        resolved.append(previous)

    # Ties keep input order, so an unresolved entry follows the one it copied
    order = sorted(range(len(resolved)), key=lambda idx: (resolved[idx], idx))
    ranges: list[tuple[int, int]] = [(0, 0)] * len(resolved)
    for rank, idx in enumerate(order):
        end = resolved[order[rank + 1]] if rank + 1 < len(order) else length
        ranges[idx] = (resolved[idx], end)
    return ranges


def _spine_index(package: PackageDocument) -> dict[Path, int]:
    return {
        package.resolve_href(item.href): idx
        for idx, item in enumerate(package.spine_items())
    }


def chapters_from_toc(
    package: PackageDocument, entries: list[TOCEntry]
) -> list[ChapterRecord]:
    """Build one chapter per top-level TOC entry.

    Entries pointing into the same file are sliced at their anchors in
    document order, so chapters sharing a file never overlap; the ordering
    key keeps their TOC order.
    """
    spine_index = _spine_index(package)
    groups: dict[Path, list[TOCEntry]] = defaultdict(list)
    for entry in entries:
        if entry.target is not None:
            groups[entry.target].append(entry)

    # Files the spine does not list go last, in order of first appearance
    extra_index = len(spine_index)
    file_order: dict[Path, int] = {}
    for target in groups:
        if target in spine_index:
            file_order[target] = spine_index[target]
        else:
            log.debug(f"TOC target not in spine: {target}")
            file_order[target] = extra_index
            extra_index += 1

    chapters: list[ChapterRecord] = []
    for target, group in groups.items():
        if not target.is_file():
            log.warning(f"Content file not found, skipping: {target.name}")
            continue

        html = read_content(target)
        positions = []
        for entry in group:
            position = find_anchor_position(html, entry.fragment)
            if position is None:
                log.warning(
                    f'Anchor "#{entry.fragment}" not found in {target.name}; '
                    f"keeping '{entry.label}' at the nearest known position"
                )
            positions.append(position)

        ranges = compute_ranges(positions, len(html))
        for idx, entry in enumerate(group):
            start, end = ranges[idx]
            chapters.append(
                ChapterRecord(
                    label=entry.label,
                    content=html[start:end],
                    start=start,
                    end=end,
                    order_key=file_order[target] * ORDER_STRIDE + idx,
                    source_path=target,
                    from_toc=True,
                )
            )

    return sorted(chapters, key=lambda c: c.order_key)


def chapters_from_spine(package: PackageDocument) -> list[ChapterRecord]:
    """Build one chapter per HTML-family spine item, labelled by file name."""
    chapters: list[ChapterRecord] = []
    for idx, idref in enumerate(package.spine):
        item = package.manifest.get(idref)
        if item is None or not item.is_html:
            continue
        path = package.resolve_href(item.href)
        if not path.is_file():
            log.warning(f"Content file not found, skipping: {item.href}")
            continue
        html = read_content(path)
        chapters.append(
            ChapterRecord(
                label=path.name,
                content=html,
                start=0,
                end=len(html),
                order_key=idx,
                source_path=path,
            )
        )
    return chapters


def segment_chapters(
    package: PackageDocument, toc_entries: list[TOCEntry]
) -> list[ChapterRecord]:
    """Produce the book's chapters sorted by ordering key.

    Navigation entries drive segmentation when they yield any chapter;
    otherwise every HTML spine item becomes its own chapter.

    Raises:
        EmptySpine: If the spine lists nothing.
        NoHtmlContent: If the spine lists no HTML-family item.
        NoChaptersFound: If neither mode produces a chapter.
    """
    if not package.spine:
        raise EmptySpine("OPF spine is empty or missing; nothing to convert.")
    if not package.spine_items():
        raise NoHtmlContent("No HTML content found in the spine; nothing to convert.")

    chapters: list[ChapterRecord] = []
    if toc_entries:
        chapters = chapters_from_toc(package, toc_entries)
        if not chapters:
            log.warning("Navigation document yielded no chapters; using spine order")

    if not chapters:
        chapters = chapters_from_spine(package)

    if not chapters:
        raise NoChaptersFound("No chapters could be derived from TOC or spine.")

    return chapters
