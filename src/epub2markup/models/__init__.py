"""Data models."""

from epub2markup.models.chapter import ChapterRecord
from epub2markup.models.output import (
    ConvertConfig,
    ConvertResult,
    OutputMode,
)
from epub2markup.models.package import (
    BookMetadata,
    ManifestItem,
    PackageDocument,
    TOCEntry,
)

__all__ = [
    # Package models
    "ManifestItem",
    "BookMetadata",
    "TOCEntry",
    "PackageDocument",
    # Chapter models
    "ChapterRecord",
    # Output models
    "OutputMode",
    "ConvertConfig",
    "ConvertResult",
]
