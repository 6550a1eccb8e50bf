"""Interactive prompts used to pick and confirm the release version."""

from __future__ import annotations

import typing as typ

from rich.console import Console
from rich.prompt import Confirm, Prompt

CUSTOM_CHOICE = "custom"


class Prompter(typ.Protocol):
    """Human-in-the-loop questions asked by the release command."""

    def select_release(self, choices: typ.Sequence[str]) -> str:
        """Return one entry of ``choices``."""

    def input_version(self, default: str) -> str:
        """Return a free-form version string, offering ``default``."""

    def confirm(self, message: str) -> bool:
        """Return ``True`` when the user accepts ``message``."""


class ConsolePrompter:
    """Ask questions on the terminal using :mod:`rich.prompt`."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = Console(stderr=True) if console is None else console

    def select_release(self, choices: typ.Sequence[str]) -> str:
        """Print numbered ``choices`` and return the selected entry."""
        if not choices:
            message = "select_release requires at least one choice"
            raise ValueError(message)
        self._console.print("Select release type")
        for index, choice in enumerate(choices, start=1):
            self._console.print(f"  {index}) {choice}")
        numbers = [str(index) for index in range(1, len(choices) + 1)]
        answer = Prompt.ask(
            "Choice",
            console=self._console,
            choices=numbers,
            default="1",
            show_choices=False,
        )
        return choices[int(answer) - 1]

    def input_version(self, default: str) -> str:
        """Ask for a custom version, defaulting to ``default``."""
        answer = Prompt.ask(
            "Input custom version", console=self._console, default=default
        )
        return answer.strip()

    def confirm(self, message: str) -> bool:
        """Ask a yes/no question that defaults to no."""
        return Confirm.ask(message, console=self._console, default=False)


__all__ = ["CUSTOM_CHOICE", "ConsolePrompter", "Prompter"]
