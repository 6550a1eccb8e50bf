"""Unit tests for :mod:`releaser.utils.process`."""

from __future__ import annotations

import logging
import typing as typ

from releaser.utils import process

if typ.TYPE_CHECKING:
    from pathlib import Path

    import pytest

    LogCaptureFixture = pytest.LogCaptureFixture
else:  # pragma: no cover - typing helpers
    Path = typ.Any
    LogCaptureFixture = typ.Any


def test_format_command_renders_shell_representation() -> None:
    """Commands should be rendered using shell quoting rules."""
    rendered = process.format_command(("git", "commit", "-m", "release: v1.0.0"))

    assert rendered == "git commit -m 'release: v1.0.0'"


def test_format_command_warns_on_empty_command(
    caplog: LogCaptureFixture,
) -> None:
    """An empty command should emit a warning and return an empty string."""
    caplog.set_level(logging.WARNING, logger="releaser.utils.process")

    rendered = process.format_command(())

    assert rendered == ""
    assert "empty command sequence" in caplog.text


def test_log_command_invocation_includes_cwd(
    tmp_path: Path, caplog: LogCaptureFixture
) -> None:
    """``log_command_invocation`` should render the working directory."""
    logger = logging.getLogger("tests.utils.process")
    caplog.set_level(logging.INFO, logger="tests.utils.process")

    process.log_command_invocation(logger, ("npm", "run", "build"), tmp_path)

    assert f"Running external command: npm run build (cwd={tmp_path})" in (
        caplog.messages
    )


def test_log_command_invocation_omits_cwd_when_absent(
    caplog: LogCaptureFixture,
) -> None:
    """The working directory should be omitted when ``cwd`` is ``None``."""
    logger = logging.getLogger("tests.utils.process")
    caplog.set_level(logging.INFO, logger="tests.utils.process")

    process.log_command_invocation(logger, ("git", "push"), None)

    assert "Running external command: git push" in caplog.messages
    assert not any("(cwd=" in message for message in caplog.messages)


def test_log_command_invocation_marks_dry_runs(
    tmp_path: Path, caplog: LogCaptureFixture
) -> None:
    """Dry-run invocations carry the dry-run prefix instead."""
    logger = logging.getLogger("tests.utils.process")
    caplog.set_level(logging.INFO, logger="tests.utils.process")

    process.log_command_invocation(logger, ("git", "tag", "v1.0.0"), None, dry_run=True)
    process.log_command_invocation(
        logger, ("npm", "publish"), tmp_path, dry_run=True
    )

    assert caplog.messages == [
        "[dryrun] git tag v1.0.0",
        f"[dryrun] npm publish (cwd={tmp_path})",
    ]


def test_log_command_invocation_flags_empty_command(
    caplog: LogCaptureFixture,
) -> None:
    """Empty commands should log a warning and a placeholder message."""
    logger = logging.getLogger("tests.utils.process")
    caplog.set_level(logging.INFO)

    process.log_command_invocation(logger, (), None)

    assert any(
        record.levelno == logging.INFO
        and record.getMessage() == "Running external command: <empty command>"
        for record in caplog.records
    )
    assert any(
        record.levelno == logging.WARNING
        and "empty command sequence" in record.getMessage()
        for record in caplog.records
    )
