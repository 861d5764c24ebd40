"""Info command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from epub2markup.core.extractor import extract_package
from epub2markup.core.navigation import load_toc
from epub2markup.core.package_loader import load_package
from epub2markup.core.segmenter import segment_chapters


def execute_info(book_path: Path, console: Console) -> None:
    """Display book metadata and the chapters a conversion would produce."""
    with extract_package(book_path) as root:
        package = load_package(root)
        toc_entries = load_toc(package)
        chapters = segment_chapters(package, toc_entries)

        metadata = package.metadata
        nav_item = package.nav_item()
        info_lines = [
            f"[bold]{metadata.title or book_path.stem}[/]",
            "",
            f"[dim]Author(s):[/] {', '.join(metadata.authors) or 'Unknown'}",
            f"[dim]Language:[/] {metadata.language or 'Unknown'}",
            f"[dim]Publisher:[/] {metadata.publisher or 'Unknown'}",
            f"[dim]Spine items:[/] {len(package.spine)}",
            f"[dim]Navigation:[/] {nav_item.href if nav_item else 'none (spine order)'}",
            f"[dim]Chapters:[/] {len(chapters)}",
        ]
        for warning in package.warnings:
            info_lines.append(f"[yellow]! {warning}[/]")

        console.print()
        console.print(
            Panel(
                "\n".join(info_lines),
                title="Book Information",
                border_style="green",
            )
        )

        console.print()
        table = Table(title="Chapters", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=4)
        table.add_column("Title", style="white")
        table.add_column("Source", style="dim")
        table.add_column("Chars", justify="right", style="green")

        for index, chapter in enumerate(chapters, start=1):
            table.add_row(
                str(index),
                chapter.label,
                chapter.file_name,
                f"{len(chapter.content):,}",
            )

        console.print(table)
        console.print()
