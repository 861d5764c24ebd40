"""Data models for conversion settings and results."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class OutputMode(str, Enum):
    """How converted chapters are written."""

    SINGLE = "single"
    SPLIT = "split"


class ConvertConfig(BaseModel):
    """Settings for a single conversion run.

    ``mode`` and ``include_images`` left as ``None`` are asked for
    interactively, or fall back to single-file output without images.
    """

    input_path: Path
    output_path: Path | None = None
    mode: OutputMode | None = None
    include_images: bool | None = None
    folder_name: str | None = None
    with_headings: bool = True
    quiet: bool = False


class ConvertResult(BaseModel):
    """Summary of a finished conversion."""

    mode: OutputMode
    chapters_total: int
    chapters_written: int
    output_location: Path | None = None  # None = stdout
    images_copied: int = 0
    warnings: list[str] = Field(default_factory=list)
