from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from epub2markup.core.errors import ExtractionError
from epub2markup.core.extractor import extract_package


def test_archive_is_extracted_and_removed(make_epub) -> None:
    epub = make_epub({"mimetype": "application/epub+zip", "OEBPS/a.xhtml": "<p>a</p>"})

    with extract_package(epub) as root:
        assert (root / "OEBPS" / "a.xhtml").read_text() == "<p>a</p>"
        extracted = root

    assert not extracted.exists()


def test_temporary_directory_is_removed_on_error(make_epub) -> None:
    epub = make_epub({"mimetype": "application/epub+zip"})
    extracted = None

    with pytest.raises(RuntimeError):
        with extract_package(epub) as root:
            extracted = root
            raise RuntimeError("boom")

    assert extracted is not None
    assert not extracted.exists()


def test_directory_is_used_in_place(tmp_path: Path) -> None:
    with extract_package(tmp_path) as root:
        assert root == tmp_path
    assert tmp_path.exists()


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError, match="File not found"):
        with extract_package(tmp_path / "nope.epub"):
            pass


def test_not_a_zip(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.epub"
    bogus.write_text("not a zip")
    with pytest.raises(ExtractionError, match="bogus.epub"):
        with extract_package(bogus):
            pass


def test_unsafe_member_is_refused(tmp_path: Path) -> None:
    epub = tmp_path / "evil.epub"
    with zipfile.ZipFile(epub, "w") as zf:
        zf.writestr("../evil.txt", "gotcha")

    with pytest.raises(ExtractionError, match="Unsafe path"):
        with extract_package(epub):
            pass
    assert not (tmp_path / "evil.txt").exists()
