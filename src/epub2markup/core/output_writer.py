"""Assemble converted chapters into a single document or per-chapter files."""

import re
import sys
from pathlib import Path
from typing import Callable, Iterable

from epub2markup.models.chapter import ChapterRecord

CHAPTER_LABEL_MAX = 80
FOLDER_NAME_MAX = 120

_ILLEGAL_CHARS_RE = re.compile(r'[\\/:*?"<>|]+')


def _clean_name(text: str | None, limit: int) -> str:
    cleaned = _ILLEGAL_CHARS_RE.sub("", (text or "").strip())
    return re.sub(r"\s+", " ", cleaned)[:limit].strip()


def chapter_filename(label: str | None, index: int) -> str:
    """Build ``NN Title.md`` for the chapter at 1-based ``index``."""
    prefix = f"{index:02d}"
    title = _clean_name(label, CHAPTER_LABEL_MAX) or f"Chapter {prefix}"
    return f"{prefix} {title}.md"


def safe_folder_name(title: str | None) -> str | None:
    """Filesystem-safe folder name from a book title, or None if nothing is left."""
    return _clean_name(title, FOLDER_NAME_MAX) or None


def resolve_split_folder(
    input_path: Path,
    output_path: Path | None = None,
    book_title: str | None = None,
    ask_folder_name: Callable[[str], str | None] | None = None,
) -> Path:
    """Pick the folder for split output.

    Priority: the explicit output path's stem, the book title, a name
    supplied through ``ask_folder_name`` (offered the input's stem as a
    default), then the input's stem.
    """
    default = input_path.stem
    if output_path is not None:
        return output_path.parent / output_path.stem

    name = safe_folder_name(book_title)
    if name is None and ask_folder_name is not None:
        name = safe_folder_name(ask_folder_name(default))
    return Path(name or default)


def join_sections(
    chapters: Iterable[tuple[ChapterRecord, str]], with_headings: bool = True
) -> str:
    """Join converted chapters with blank lines, skipping empty ones.

    Chapters labelled from the navigation document are prefixed with a
    ``# label`` heading when ``with_headings`` is set.
    """
    sections = []
    for chapter, markup in chapters:
        if not markup:
            continue
        if with_headings and chapter.from_toc and chapter.label:
            sections.append(f"# {chapter.label}\n\n{markup}")
        else:
            sections.append(markup)
    return "\n\n".join(sections)


class OutputWriter:
    """Write converted markup to disk or stdout."""

    def __init__(self, output_dir: Path | None = None):
        """Initialize output writer.

        Args:
            output_dir: Folder for per-chapter files; created on first use.
                Not needed for single-file output.
        """
        self.output_dir = output_dir

    def write_single(self, text: str, output_path: Path | None = None) -> Path | None:
        """Write the joined document to ``output_path`` or stdout."""
        if output_path is None:
            sys.stdout.write(text)
            sys.stdout.flush()
            return None

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
        return output_path

    def write_chapter(self, label: str | None, index: int, body: str) -> Path:
        """Write one chapter, headed by its label, and return the file path."""
        if self.output_dir is None:
            raise ValueError("OutputWriter needs an output_dir for chapter files")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        title = label or f"Chapter {index}"
        filepath = self.output_dir / chapter_filename(label, index)
        filepath.write_text(f"# {title}\n\n{body}\n", encoding="utf-8")
        return filepath
