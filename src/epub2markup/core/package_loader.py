"""Load the container descriptor and package document of an unpacked book."""

import logging
from pathlib import Path
from urllib.parse import unquote

from bs4 import BeautifulSoup

from epub2markup.core.errors import MalformedPackage
from epub2markup.models.package import BookMetadata, ManifestItem, PackageDocument

log = logging.getLogger(__name__)

CONTAINER_PATH = Path("META-INF") / "container.xml"


def _read_xml(path: Path) -> BeautifulSoup:
    return BeautifulSoup(path.read_bytes(), "lxml-xml")


def find_package_path(root: Path) -> Path:
    """Return the package document path named by the container descriptor."""
    container = root / CONTAINER_PATH
    if not container.is_file():
        raise MalformedPackage("Invalid EPUB: missing META-INF/container.xml")

    soup = _read_xml(container)
    rootfile = soup.find("rootfile", attrs={"full-path": True})
    full_path = rootfile.get("full-path", "").strip() if rootfile else ""
    if not full_path:
        raise MalformedPackage(
            "Could not determine OPF package path from container.xml"
        )

    opf_path = root / unquote(full_path)
    if not opf_path.is_file():
        raise MalformedPackage(f"Package document not found: {full_path}")
    return opf_path


def parse_manifest(soup: BeautifulSoup) -> dict[str, ManifestItem]:
    """Parse manifest items in declaration order."""
    manifest: dict[str, ManifestItem] = {}
    for tag in soup.find_all("item"):
        item_id = tag.get("id")
        href = tag.get("href")
        if not item_id or not href:
            continue
        manifest[item_id] = ManifestItem(
            id=item_id,
            href=unquote(href),
            media_type=tag.get("media-type", ""),
            properties=tag.get("properties", ""),
        )
    return manifest


def parse_spine(soup: BeautifulSoup) -> list[str]:
    """Parse spine idrefs exactly as declared."""
    return [tag["idref"] for tag in soup.find_all("itemref") if tag.get("idref")]


def parse_metadata(soup: BeautifulSoup) -> BookMetadata:
    """Extract Dublin Core metadata."""
    metadata = soup.find("metadata") or soup

    def first_text(name: str) -> str | None:
        tag = metadata.find(name)
        if tag is None:
            return None
        return tag.get_text(strip=True) or None

    authors = [
        text
        for text in (tag.get_text(strip=True) for tag in metadata.find_all("creator"))
        if text
    ]
    return BookMetadata(
        title=first_text("title"),
        authors=authors,
        language=first_text("language"),
        publisher=first_text("publisher"),
    )


def load_package(root: Path) -> PackageDocument:
    """Parse the package rooted at ``root`` into manifest, spine and metadata.

    Raises:
        MalformedPackage: If the container descriptor or the package
            document cannot be found.
    """
    opf_path = find_package_path(root)
    soup = _read_xml(opf_path)

    manifest = parse_manifest(soup)
    spine = parse_spine(soup)

    warnings: list[str] = []
    for idref in spine:
        if idref not in manifest:
            message = f'Spine item "{idref}" not found in manifest; skipping.'
            log.warning(message)
            warnings.append(message)

    return PackageDocument(
        root=root,
        opf_path=opf_path,
        manifest=manifest,
        spine=spine,
        metadata=parse_metadata(soup),
        warnings=warnings,
    )
