"""Data models for segmented chapters."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ChapterRecord(BaseModel):
    """A resolved, ordered slice of a content file."""

    model_config = ConfigDict(frozen=True)

    label: str
    content: str
    order_key: int
    source_path: Path
    start: int = 0
    end: int = 0
    from_toc: bool = False

    @property
    def file_name(self) -> str:
        return self.source_path.name
