"""Interactive choices behind a small interface the converter depends on."""

import sys
from typing import Protocol, Sequence, TypeVar

import questionary
from questionary import Style

T = TypeVar("T")

PROMPT_STYLE = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "bold"),
    ("answer", "fg:cyan bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("selected", "fg:green"),
    ("instruction", "fg:gray"),
])


class Prompter(Protocol):
    """Source of answers for the converter's questions."""

    def choose(self, message: str, options: Sequence[tuple[str, T]], default: T) -> T:
        ...

    def confirm(self, message: str, default: bool = False) -> bool:
        ...

    def ask_text(self, message: str, default: str = "") -> str:
        ...


class DefaultPrompter:
    """Answers every question with its default, without any I/O."""

    def choose(self, message: str, options: Sequence[tuple[str, T]], default: T) -> T:
        return default

    def confirm(self, message: str, default: bool = False) -> bool:
        return default

    def ask_text(self, message: str, default: str = "") -> str:
        return default


class QuestionaryPrompter:
    """Asks on the terminal. Ctrl+C raises ``KeyboardInterrupt``."""

    def choose(self, message: str, options: Sequence[tuple[str, T]], default: T) -> T:
        choices = [questionary.Choice(title=title, value=value) for title, value in options]
        default_choice = next((c for c in choices if c.value == default), None)
        return questionary.select(
            message,
            choices=choices,
            default=default_choice,
            style=PROMPT_STYLE,
            instruction="(Use arrow keys, Enter to select)",
        ).unsafe_ask()

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(
            questionary.confirm(message, default=default, style=PROMPT_STYLE).unsafe_ask()
        )

    def ask_text(self, message: str, default: str = "") -> str:
        answer = questionary.text(message, default=default, style=PROMPT_STYLE).unsafe_ask()
        return (answer or "").strip() or default


def make_prompter(assume_defaults: bool = False) -> Prompter:
    """Interactive prompter when stdin is a terminal, defaults otherwise."""
    if assume_defaults or not sys.stdin.isatty():
        return DefaultPrompter()
    return QuestionaryPrompter()
