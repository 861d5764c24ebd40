"""Data models for the unpacked package structure."""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


def resolve_relative(base_dir: Path, href: str) -> Path:
    """Join a package-relative href onto a directory and normalise it."""
    return Path(os.path.normpath(base_dir / href))


class ManifestItem(BaseModel):
    """Single manifest entry of the package document."""

    model_config = ConfigDict(frozen=True)

    id: str
    href: str
    media_type: str = ""
    properties: str = ""

    @property
    def property_tokens(self) -> frozenset[str]:
        return frozenset(self.properties.split())

    @property
    def is_html(self) -> bool:
        return "html" in self.media_type.lower()

    @property
    def is_nav(self) -> bool:
        return "nav" in self.property_tokens


class BookMetadata(BaseModel):
    """Book-level metadata."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    authors: list[str] = Field(default_factory=list)
    language: str | None = None
    publisher: str | None = None


class TOCEntry(BaseModel):
    """Single link of the navigation document."""

    model_config = ConfigDict(frozen=True)

    label: str
    href: str
    depth: int = 0
    target: Path | None = None
    fragment: str | None = None


class PackageDocument(BaseModel):
    """Manifest, spine and metadata of an unpacked package."""

    model_config = ConfigDict(frozen=True)

    root: Path
    opf_path: Path
    manifest: dict[str, ManifestItem] = Field(default_factory=dict)
    spine: list[str] = Field(default_factory=list)
    metadata: BookMetadata = Field(default_factory=BookMetadata)
    warnings: list[str] = Field(default_factory=list)

    @property
    def opf_dir(self) -> Path:
        return self.opf_path.parent

    def resolve_href(self, href: str) -> Path:
        """Resolve a manifest href against the package document directory."""
        return resolve_relative(self.opf_dir, href)

    def nav_item(self) -> ManifestItem | None:
        """Return the manifest item flagged as the navigation document."""
        for item in self.manifest.values():
            if item.is_nav:
                return item
        return None

    def spine_items(self) -> list[ManifestItem]:
        """HTML-family items in spine order, skipping unknown ids."""
        return [
            self.manifest[idref]
            for idref in self.spine
            if idref in self.manifest and self.manifest[idref].is_html
        ]
