"""In-memory collaborators for release pipeline tests."""

from __future__ import annotations

import dataclasses as dc
import json
import typing as typ

from releaser.execution import CommandFailedError, CommandResult

if typ.TYPE_CHECKING:
    from pathlib import Path

type Response = CommandResult | BaseException


def failed_command(
    program: str,
    *args: str,
    stderr: str = "",
    stdout: str = "",
    exit_code: int = 1,
) -> CommandFailedError:
    """Return the error an executor raises for a failing command."""
    return CommandFailedError(
        CommandResult(
            program=program,
            args=args,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
        )
    )


@dc.dataclass(frozen=True, slots=True)
class RecordedCall:
    """A single command seen by :class:`RecordingExecutor`."""

    command: tuple[str, ...]
    cwd: Path | None
    capture: bool


class RecordingExecutor:
    """Executor double that records commands and replays canned responses."""

    def __init__(
        self,
        *,
        dry_run: bool = False,
        responses: typ.Mapping[tuple[str, ...], Response] | None = None,
    ) -> None:
        self.dry_run = dry_run
        self.calls: list[RecordedCall] = []
        self._responses = dict(responses or {})

    def run(
        self,
        program: str,
        args: typ.Sequence[str] = (),
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Record the command and return its canned response."""
        arguments = tuple(args)
        command = (program, *arguments)
        self.calls.append(RecordedCall(command=command, cwd=cwd, capture=capture))
        response = self._responses.get(command)
        if isinstance(response, BaseException):
            raise response
        if response is None:
            return CommandResult(program=program, args=arguments)
        return response

    @property
    def commands(self) -> list[tuple[str, ...]]:
        """Return the recorded command lines in order."""
        return [call.command for call in self.calls]


class ScriptedPrompter:
    """Prompter double that answers from a script and records questions."""

    def __init__(
        self,
        *,
        selection: str | typ.Callable[[typ.Sequence[str]], str] | None = None,
        custom_version: str = "",
        confirm: bool = True,
    ) -> None:
        self._selection = selection
        self._custom_version = custom_version
        self._confirm = confirm
        self.offered_choices: list[tuple[str, ...]] = []
        self.version_defaults: list[str] = []
        self.confirm_messages: list[str] = []

    def select_release(self, choices: typ.Sequence[str]) -> str:
        """Return the scripted selection among ``choices``."""
        self.offered_choices.append(tuple(choices))
        if callable(self._selection):
            return self._selection(choices)
        if self._selection is None:
            return choices[0]
        return self._selection

    def input_version(self, default: str) -> str:
        """Return the scripted custom version."""
        self.version_defaults.append(default)
        return self._custom_version

    def confirm(self, message: str) -> bool:
        """Return the scripted confirmation answer."""
        self.confirm_messages.append(message)
        return self._confirm


def write_package(
    package_dir: Path,
    *,
    name: str = "demo-package",
    version: str = "1.0.0",
    private: bool | None = None,
    extra: typ.Mapping[str, typ.Any] | None = None,
) -> Path:
    """Write a ``package.json`` into ``package_dir`` and return its path."""
    package_dir.mkdir(parents=True, exist_ok=True)
    document: dict[str, typ.Any] = {"name": name, "version": version}
    if private is not None:
        document["private"] = private
    if extra:
        document.update(extra)
    path = package_dir / "package.json"
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return path


__all__ = [
    "RecordedCall",
    "RecordingExecutor",
    "ScriptedPrompter",
    "failed_command",
    "write_package",
]
