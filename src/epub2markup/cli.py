"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from epub2markup.core.errors import Epub2MarkupError
from epub2markup.core.progress import NullProgressReporter, RichProgressReporter
from epub2markup.core.prompts import make_prompter
from epub2markup.models.output import ConvertConfig, OutputMode

app = typer.Typer(
    name="epub2markup",
    help="Convert EPUB books into Markdown-ish text, whole or split by chapter.",
    add_completion=False,
)

# Primary output may go to stdout, so everything else goes to stderr
console = Console(stderr=True)

INTERRUPTED_EXIT_CODE = 130


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route log records through rich on stderr."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


BookArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file (or an already unpacked EPUB directory)",
        exists=True,
        file_okay=True,
        dir_okay=True,
        resolve_path=True,
    ),
]


@app.command()
def convert(
    book_path: BookArgument,
    output: Annotated[
        Optional[Path],
        typer.Argument(
            help="Output file (single mode) or folder name source (split mode). "
            "Defaults to stdout.",
        ),
    ] = None,
    split: Annotated[
        Optional[bool],
        typer.Option(
            "--split/--single",
            help="Write one file per chapter, or a single file (default: ask)",
        ),
    ] = None,
    images: Annotated[
        Optional[bool],
        typer.Option(
            "--images/--no-images",
            help="Copy referenced images next to split output (default: ask)",
        ),
    ] = None,
    folder: Annotated[
        Optional[str],
        typer.Option(
            "--folder",
            "-F",
            help="Folder name for split output (default: output name, book title, or input name)",
        ),
    ] = None,
    headings: Annotated[
        bool,
        typer.Option(
            "--headings/--no-headings",
            help="Prefix each chapter with its TOC label in single-file output",
        ),
    ] = True,
    assume_defaults: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Never prompt; unanswered choices use their defaults",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress progress output and warnings",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Convert an EPUB into Markdown-ish text."""
    setup_logging(verbose=verbose, quiet=quiet)

    mode = None
    if split is not None:
        mode = OutputMode.SPLIT if split else OutputMode.SINGLE

    config = ConvertConfig(
        input_path=book_path,
        output_path=output.resolve() if output is not None else None,
        mode=mode,
        include_images=images,
        folder_name=folder,
        with_headings=headings,
        quiet=quiet,
    )
    reporter = NullProgressReporter() if quiet else RichProgressReporter(console)

    try:
        from epub2markup.commands.convert import execute_convert

        execute_convert(
            config=config,
            console=console,
            prompter=make_prompter(assume_defaults),
            reporter=reporter,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        raise typer.Exit(INTERRUPTED_EXIT_CODE)
    except Epub2MarkupError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(
    book_path: BookArgument,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Display book metadata and the chapters a conversion would produce."""
    setup_logging(verbose=verbose)

    try:
        from epub2markup.commands.info import execute_info

        execute_info(book_path=book_path, console=console)
    except Epub2MarkupError as e:
        console.print(f"[red]Error reading file: {e}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
