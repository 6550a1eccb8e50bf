"""External command execution for the release pipeline.

Commands run through an :class:`Executor`. :class:`LiveExecutor` spawns real
processes and streams their output; :class:`DryRunExecutor` only logs what
would have run. The release command selects one implementation at start-up
via :func:`select_executor` and passes it to every step.
"""

from __future__ import annotations

import codecs
import dataclasses as dc
import logging
import re
import subprocess
import sys
import threading
import typing as typ
from pathlib import Path

from cuprum import Program

from releaser.utils.commands import RELEASER_CATALOGUE
from releaser.utils.process import format_command, log_command_invocation

if typ.TYPE_CHECKING:
    from cuprum import ProgramCatalogue

LOGGER = logging.getLogger("releaser.execution")

_ENV_REDACTION_TOKENS = (
    "TOKEN",
    "AUTH",
    "BEARER",
    "PASS",
    "CRED",
    "PASSPHRASE",
)
_THREAD_NAME_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")
_STREAM_CHUNK_SIZE = 4096


class CommandError(RuntimeError):
    """Raised when an external command cannot be started."""


class CommandFailedError(CommandError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        message = (
            f"Command failed with exit code {result.exit_code}: "
            f"{format_command(result.command)}"
        )
        if detail := (result.stderr or result.stdout).strip():
            message = f"{message}; {detail}"
        super().__init__(message)

    @property
    def stdout(self) -> str:
        """Return the captured standard output of the failed command."""
        return self.result.stdout

    @property
    def stderr(self) -> str:
        """Return the captured standard error of the failed command."""
        return self.result.stderr


@dc.dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a single external command."""

    program: str
    args: tuple[str, ...]
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def command(self) -> tuple[str, ...]:
        """Return the full command line as a tuple."""
        return (self.program, *self.args)

    @property
    def succeeded(self) -> bool:
        """Return ``True`` when the command exited with status zero."""
        return self.exit_code == 0


class Executor(typ.Protocol):
    """Capability used by release steps to run external programs."""

    dry_run: bool

    def run(
        self,
        program: str,
        args: typ.Sequence[str] = (),
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run ``program`` with ``args`` and return its result.

        ``capture`` keeps the output off the terminal; it is buffered on the
        returned :class:`CommandResult` either way.
        """


class LiveExecutor:
    """Run commands as child processes, blocking until each exits."""

    dry_run = False

    def __init__(
        self,
        *,
        catalogue: ProgramCatalogue | None = RELEASER_CATALOGUE,
        env: typ.Mapping[str, str] | None = None,
    ) -> None:
        self._catalogue = catalogue
        self._env = env

    def run(
        self,
        program: str,
        args: typ.Sequence[str] = (),
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Spawn ``program`` and raise :class:`CommandFailedError` on failure."""
        arguments = tuple(args)
        command = (program, *arguments)
        self._ensure_allowed(program)
        log_command_invocation(LOGGER, command, cwd)
        exit_code, stdout, stderr = _invoke_via_subprocess(
            program,
            arguments,
            cwd=cwd,
            env=self._env,
            echo=not capture,
        )
        result = CommandResult(
            program=program,
            args=arguments,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
        )
        if not result.succeeded:
            raise CommandFailedError(result)
        return result

    def _ensure_allowed(self, program: str) -> None:
        if self._catalogue is None:
            return
        if not self._catalogue.is_allowed(Program(program)):
            message = (
                f"Program {program!r} is not registered in the releaser "
                "command catalogue"
            )
            raise CommandError(message)


class DryRunExecutor:
    """Log commands instead of running them."""

    dry_run = True

    def __init__(self) -> None:
        self.invocations: list[tuple[tuple[str, ...], Path | None]] = []

    def run(
        self,
        program: str,
        args: typ.Sequence[str] = (),
        *,
        cwd: Path | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Record the invocation and return a synthetic success."""
        arguments = tuple(args)
        command = (program, *arguments)
        log_command_invocation(LOGGER, command, cwd, dry_run=True)
        self.invocations.append((command, cwd))
        return CommandResult(program=program, args=arguments)


def select_executor(*, dry_run: bool) -> Executor:
    """Return the executor implementation for the requested mode."""
    if dry_run:
        return DryRunExecutor()
    return LiveExecutor()


def _invoke_via_subprocess(
    program: str,
    args: tuple[str, ...],
    *,
    cwd: Path | None,
    env: typ.Mapping[str, str] | None,
    echo: bool = True,
) -> tuple[int, str, str]:
    """Spawn ``program`` with ``args`` while buffering its output streams.

    With ``echo`` the streams are also relayed to the parent's stdout/stderr
    as they arrive.
    """
    command = (program, *args)
    _log_subprocess_spawn(command, cwd)
    _log_subprocess_environment(env)
    normalised_env = _normalise_environment(env)
    try:
        process = subprocess.Popen(  # noqa: S603 - command list is fully controlled
            command,
            cwd=None if cwd is None else str(cwd),
            env=normalised_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError, OSError) as exc:
        message = f"Failed to execute {program!r}: {exc}"
        raise CommandError(message) from exc

    stdout_chunks: list[str] = []
    stderr_chunks: list[str] = []
    threads = [
        threading.Thread(
            target=_relay_stream,
            args=(process.stdout, sys.stdout if echo else None, stdout_chunks),
            name=_format_thread_name(program, "stdout"),
            daemon=True,
        ),
        threading.Thread(
            target=_relay_stream,
            args=(process.stderr, sys.stderr if echo else None, stderr_chunks),
            name=_format_thread_name(program, "stderr"),
            daemon=True,
        ),
    ]
    for thread in threads:
        thread.start()
    exit_code = process.wait()
    for thread in threads:
        thread.join()
    return exit_code, "".join(stdout_chunks), "".join(stderr_chunks)


def _normalise_environment(
    env: typ.Mapping[str, str] | None,
) -> dict[str, str] | None:
    """Return ``env`` with stringified values to satisfy ``subprocess``."""
    return None if env is None else {key: str(value) for key, value in env.items()}


def _relay_stream(
    source: typ.IO[bytes] | None,
    sink: typ.TextIO | None,
    buffer: list[str],
) -> None:
    """Forward ``source`` into ``sink`` while preserving the captured output."""
    if source is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    active_sink = sink
    try:
        while True:
            chunk = source.read(_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            if text:
                buffer.append(text)
                active_sink = _write_to_sink(active_sink, text)
        tail = decoder.decode(b"", final=True)
        if tail:
            buffer.append(tail)
            active_sink = _write_to_sink(active_sink, tail)
    finally:
        source.close()


def _write_to_sink(sink: typ.TextIO | None, payload: str) -> typ.TextIO | None:
    """Write ``payload`` to ``sink`` and swallow broken pipes."""
    if sink is None or not payload:
        return sink
    try:
        sink.write(payload)
        sink.flush()
    except BrokenPipeError:
        return None
    return sink


def _format_thread_name(program: str, stream: str) -> str:
    """Return a deterministic, filesystem-safe thread name suffix."""
    base = Path(program).name or program
    safe = _THREAD_NAME_PATTERN.sub("-", base).strip("-") or "command"
    return f"releaser-{safe}-{stream}"


def _log_subprocess_spawn(
    command: typ.Sequence[str], cwd: Path | None
) -> None:  # pragma: no cover - logging only
    rendered = format_command(command)
    if cwd is None:
        LOGGER.debug("Spawning subprocess: %s", rendered)
    else:
        LOGGER.debug("Spawning subprocess: %s (cwd=%s)", rendered, cwd)


def _log_subprocess_environment(env: typ.Mapping[str, str] | None) -> None:
    """Log redacted environment overrides for subprocess execution."""
    if not env:
        LOGGER.debug("Spawning subprocess with inherited environment")
        return
    redacted = _redact_environment(env)
    LOGGER.debug("Subprocess environment overrides: %s", redacted)


def _redact_environment(env: typ.Mapping[str, str]) -> dict[str, str]:
    """Return ``env`` with sensitive values replaced by placeholders."""
    redacted: dict[str, str] = {}
    for key, value in env.items():
        redacted[key] = "<redacted>" if _should_redact_env_key(key) else str(value)
    return dict(sorted(redacted.items()))


def _should_redact_env_key(key: str) -> bool:
    """Return True when ``key`` likely contains secret material."""
    upper_key = key.upper()
    return any(token in upper_key for token in _ENV_REDACTION_TOKENS)


__all__ = [
    "CommandError",
    "CommandFailedError",
    "CommandResult",
    "DryRunExecutor",
    "Executor",
    "LiveExecutor",
    "select_executor",
]
