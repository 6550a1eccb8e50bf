"""Tests for :mod:`releaser.prompts`."""

from __future__ import annotations

import io
import typing as typ

import pytest
from rich.console import Console

from releaser import prompts


def _console(answers: str) -> tuple[Console, io.StringIO]:
    """Return a console that answers prompts from ``answers``, one per line."""
    output = io.StringIO()
    console = Console(file=output, force_terminal=False, width=80)
    pending = iter(answers.split("\n"))

    def _input(prompt: typ.Any = "", **_kwargs: object) -> str:
        console.print(prompt, end="")
        return next(pending)

    console.input = _input  # type: ignore[method-assign]
    return console, output


def test_select_release_returns_numbered_choice() -> None:
    """Choices are listed with numbers and selected by number."""
    console, output = _console("2")
    prompter = prompts.ConsolePrompter(console)

    choice = prompter.select_release(["patch (1.0.1)", "minor (1.1.0)", "custom"])

    assert choice == "minor (1.1.0)"
    rendered = output.getvalue()
    assert "1) patch (1.0.1)" in rendered
    assert "3) custom" in rendered


def test_select_release_defaults_to_first_choice() -> None:
    """An empty answer picks the first candidate."""
    console, _output = _console("")
    prompter = prompts.ConsolePrompter(console)

    assert prompter.select_release(["patch (1.0.1)", "custom"]) == "patch (1.0.1)"


def test_select_release_reprompts_on_out_of_range_answer() -> None:
    """Answers outside the numbered range are asked again."""
    console, _output = _console("9\n1")
    prompter = prompts.ConsolePrompter(console)

    assert prompter.select_release(["patch (1.0.1)", "custom"]) == "patch (1.0.1)"


def test_select_release_requires_choices() -> None:
    """An empty choice list is a programming error."""
    console, _output = _console("")

    with pytest.raises(ValueError, match="at least one choice"):
        prompts.ConsolePrompter(console).select_release([])


def test_input_version_offers_default() -> None:
    """Pressing enter keeps the current version."""
    console, _output = _console("")

    assert prompts.ConsolePrompter(console).input_version("1.0.0") == "1.0.0"


def test_input_version_strips_whitespace() -> None:
    """Typed versions are trimmed."""
    console, _output = _console("  2.0.0-rc.1 ")

    assert prompts.ConsolePrompter(console).input_version("1.0.0") == "2.0.0-rc.1"


@pytest.mark.parametrize(
    ("answer", "expected"),
    [("y", True), ("n", False), ("", False)],
)
def test_confirm_defaults_to_no(answer: str, expected: bool) -> None:  # noqa: FBT001
    """Confirmation needs an explicit yes."""
    console, output = _console(answer)

    assert prompts.ConsolePrompter(console).confirm("Releasing v1.0.1. Confirm?") is expected
    assert "Releasing v1.0.1. Confirm?" in output.getvalue()
