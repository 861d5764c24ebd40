"""Progress reporting for the chapter conversion loop."""

import sys
from typing import Protocol

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskProgressColumn,
    TextColumn,
)
from rich.text import Text

try:
    import resource
except ImportError:  # pragma: no cover - not available on Windows
    resource = None  # type: ignore[assignment]

BAR_WIDTH = 20


def peak_memory_mb() -> float | None:
    """Peak resident set size of this process in MB, where the OS reports it."""
    if resource is None:
        return None
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return peak / divisor


class MemoryColumn(ProgressColumn):
    """Renders the process's peak memory usage."""

    def render(self, task: Task) -> Text:
        usage = peak_memory_mb()
        if usage is None:
            return Text("")
        return Text(f"rss {usage:.1f} MB", style="dim")


class ProgressReporter(Protocol):
    def start(self, total: int) -> None:
        ...

    def advance(self, description: str = "") -> None:
        ...

    def finish(self) -> None:
        ...


class NullProgressReporter:
    """Reports nothing."""

    def start(self, total: int) -> None:
        pass

    def advance(self, description: str = "") -> None:
        pass

    def finish(self) -> None:
        pass


class RichProgressReporter:
    """Progress bar with counters, percentage and memory, drawn on ``console``."""

    def __init__(self, console: Console):
        self.console = console
        self._progress: Progress | None = None
        self._task = None

    def start(self, total: int) -> None:
        self._progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=BAR_WIDTH),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            MemoryColumn(),
            console=self.console,
        )
        self._progress.start()
        self._task = self._progress.add_task("Converting...", total=total)

    def advance(self, description: str = "") -> None:
        if self._progress is None:
            return
        if description:
            self._progress.update(self._task, advance=1, description=description)
        else:
            self._progress.update(self._task, advance=1)

    def finish(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
