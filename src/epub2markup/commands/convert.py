"""Convert command implementation."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rich.console import Console
from rich.panel import Panel

from epub2markup.core.assets import AssetCollector
from epub2markup.core.extractor import extract_package
from epub2markup.core.markup import convert_html_to_markup
from epub2markup.core.navigation import load_toc
from epub2markup.core.output_writer import (
    OutputWriter,
    join_sections,
    resolve_split_folder,
    safe_folder_name,
)
from epub2markup.core.package_loader import load_package
from epub2markup.core.progress import NullProgressReporter, ProgressReporter
from epub2markup.core.prompts import DefaultPrompter, Prompter
from epub2markup.core.segmenter import segment_chapters
from epub2markup.models.output import ConvertConfig, ConvertResult, OutputMode

log = logging.getLogger(__name__)


class _WarningCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


@contextmanager
def collect_warnings() -> Iterator[list[str]]:
    """Gather warnings logged by the package while the block runs."""
    handler = _WarningCollector()
    package_logger = logging.getLogger("epub2markup")
    package_logger.addHandler(handler)
    try:
        yield handler.messages
    finally:
        package_logger.removeHandler(handler)


def choose_output(
    config: ConvertConfig, prompter: Prompter, total_chapters: int
) -> tuple[OutputMode, bool]:
    """Decide output mode and image inclusion, asking only what is unset."""
    mode = config.mode
    if mode is None:
        mode = prompter.choose(
            "Select output mode:",
            [
                ("Single file (default)", OutputMode.SINGLE),
                (f"Split into chapters ({total_chapters} parts)", OutputMode.SPLIT),
            ],
            default=OutputMode.SINGLE,
        )

    if mode is OutputMode.SINGLE:
        return mode, False

    include_images = config.include_images
    if include_images is None:
        include_images = prompter.confirm(
            "Include images in output folder?", default=False
        )
    return mode, include_images


def execute_convert(
    config: ConvertConfig,
    console: Console,
    prompter: Prompter | None = None,
    reporter: ProgressReporter | None = None,
) -> ConvertResult:
    """Execute the convert command.

    Raises:
        Epub2MarkupError: On any fatal package problem. Nothing is written
            in that case.
    """
    prompter = prompter or DefaultPrompter()
    reporter = reporter or NullProgressReporter()

    with collect_warnings() as warnings, extract_package(config.input_path) as root:
        package = load_package(root)
        toc_entries = load_toc(package)
        chapters = segment_chapters(package, toc_entries)
        log.info(f"Segmented {len(chapters)} chapter(s)")

        mode, include_images = choose_output(config, prompter, len(chapters))

        writer = OutputWriter()
        collector: AssetCollector | None = None
        if mode is OutputMode.SPLIT:
            if config.folder_name and safe_folder_name(config.folder_name):
                chapter_dir = Path(safe_folder_name(config.folder_name))
            else:
                chapter_dir = resolve_split_folder(
                    config.input_path,
                    output_path=config.output_path,
                    book_title=package.metadata.title,
                    ask_folder_name=lambda default: prompter.ask_text(
                        "Folder name for split output:", default
                    ),
                )
            writer = OutputWriter(chapter_dir)
            if include_images:
                collector = AssetCollector(root, chapter_dir, package.opf_dir)

        rewrite = collector.rewrite if collector is not None else None

        sections = []
        written = 0
        reporter.start(len(chapters))
        try:
            for index, chapter in enumerate(chapters, start=1):
                markup = convert_html_to_markup(
                    chapter.content,
                    rewrite_image_src=rewrite,
                    base_dir=chapter.source_path.parent,
                )
                if markup:
                    if mode is OutputMode.SPLIT:
                        writer.write_chapter(chapter.label, index, markup)
                    else:
                        sections.append((chapter, markup))
                    written += 1
                reporter.advance(f"Converting: {chapter.label[:40]}")
        finally:
            reporter.finish()

        images_copied = collector.copy_all() if collector is not None else 0

        if mode is OutputMode.SPLIT:
            location = writer.output_dir
        else:
            text = join_sections(sections, with_headings=config.with_headings)
            location = writer.write_single(text, config.output_path)

    result = ConvertResult(
        mode=mode,
        chapters_total=len(chapters),
        chapters_written=written,
        output_location=location,
        images_copied=images_copied,
        warnings=list(warnings),
    )

    if not config.quiet:
        summary_lines = [
            f"[green]Converted {result.chapters_written} of "
            f"{result.chapters_total} chapter(s)[/]",
            "",
            f"[dim]Output:[/] {location if location is not None else 'stdout'}",
        ]
        if collector is not None:
            summary_lines.append(f"[dim]Images copied:[/] {images_copied}")
        if result.warnings:
            summary_lines.append(f"[yellow]Warnings:[/] {len(result.warnings)}")
        console.print(
            Panel("\n".join(summary_lines), title="Complete", border_style="green")
        )

    return result
