from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Callable

import pytest

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

XHTML_MEDIA_TYPE = "application/xhtml+xml"


def build_opf(
    manifest: list[tuple[str, str, str, str]],
    spine: list[str],
    title: str | None = "Sample Book",
    authors: tuple[str, ...] = ("Sample Author",),
) -> str:
    """Render a package document. Manifest rows are (id, href, media type, properties)."""
    items = "\n".join(
        f'    <item id="{item_id}" href="{href}" media-type="{media_type}"'
        + (f' properties="{props}"' if props else "")
        + "/>"
        for item_id, href, media_type, props in manifest
    )
    itemrefs = "\n".join(f'    <itemref idref="{idref}"/>' for idref in spine)
    title_xml = f"    <dc:title>{title}</dc:title>\n" if title else ""
    creators = "".join(f"    <dc:creator>{name}</dc:creator>\n" for name in authors)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package version="3.0" unique-identifier="BookId" xmlns="http://www.idpf.org/2007/opf">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
{title_xml}{creators}    <dc:language>en</dc:language>
  </metadata>
  <manifest>
{items}
  </manifest>
  <spine>
{itemrefs}
  </spine>
</package>
"""


def xhtml(body: str, title: str = "Chapter") -> str:
    return f"""<?xml version="1.0" encoding="utf-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
  <head><title>{title}</title></head>
  <body>
{body}
  </body>
</html>
"""


def nav_document(links: list[tuple[str, str]], nested: list[tuple[str, str]] | None = None) -> str:
    """Navigation document with top-level ``links``; ``nested`` hangs under the last one."""
    items = []
    for idx, (href, label) in enumerate(links):
        sub = ""
        if nested and idx == len(links) - 1:
            sub_items = "".join(
                f'<li><a href="{h}">{lbl}</a></li>' for h, lbl in nested
            )
            sub = f"<ol>{sub_items}</ol>"
        items.append(f'<li><a href="{href}">{label}</a>{sub}</li>')
    body = f'<nav epub:type="toc" id="toc"><h1>Contents</h1><ol>{"".join(items)}</ol></nav>'
    return xhtml(body, title="Contents")


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


def package_files(
    opf: str, content: dict[str, str | bytes], opf_path: str = "OEBPS/content.opf"
) -> dict[str, str | bytes]:
    """Container + package document + files placed relative to the OPF directory."""
    opf_dir = opf_path.rsplit("/", 1)[0] + "/" if "/" in opf_path else ""
    files: dict[str, str | bytes] = {
        "mimetype": "application/epub+zip",
        "META-INF/container.xml": CONTAINER_XML.format(opf_path=opf_path),
        opf_path: opf,
    }
    for rel, data in content.items():
        files[opf_dir + rel] = data
    return files


@pytest.fixture
def make_book_dir(tmp_path: Path) -> Callable[..., Path]:
    """Create an unpacked package directory."""

    def factory(files: dict[str, str | bytes], name: str = "book") -> Path:
        return write_tree(tmp_path / name, files)

    return factory


@pytest.fixture
def make_epub(tmp_path: Path) -> Callable[..., Path]:
    """Create a zipped ``.epub`` archive."""

    def factory(files: dict[str, str | bytes], name: str = "sample.epub") -> Path:
        epub_path = tmp_path / name
        with zipfile.ZipFile(epub_path, "w") as zf:
            for rel, data in files.items():
                zf.writestr(rel, data)
        return epub_path

    return factory
