"""Process execution helpers for :mod:`releaser`."""

from __future__ import annotations

import logging
import shlex
import typing as typ

if typ.TYPE_CHECKING:
    from logging import Logger as LoggerType
    from pathlib import Path as PathType
else:  # pragma: no cover - type-only imports
    LoggerType = typ.Any
    PathType = typ.Any


_LOGGER = logging.getLogger(__name__)

DRY_RUN_PREFIX = "[dryrun]"


def format_command(command: typ.Sequence[str]) -> str:
    """Return a shell-style representation of ``command`` for logging."""
    if not command:
        _LOGGER.warning(
            "format_command received an empty command sequence; this is likely a bug."
        )
        return ""
    return shlex.join(command)


def log_command_invocation(
    logger: LoggerType,
    command: typ.Sequence[str],
    cwd: PathType | None,
    *,
    dry_run: bool = False,
) -> None:
    """Log ``command`` with optional ``cwd`` using ``logger``.

    Dry-run invocations are prefixed with :data:`DRY_RUN_PREFIX` so previews
    are easy to tell apart from commands that actually ran.
    """
    rendered = format_command(command) or "<empty command>"
    if dry_run:
        if cwd is None:
            logger.info("%s %s", DRY_RUN_PREFIX, rendered)
        else:
            logger.info("%s %s (cwd=%s)", DRY_RUN_PREFIX, rendered, cwd)
        return
    if cwd is None:
        logger.info("Running external command: %s", rendered)
    else:
        logger.info("Running external command: %s (cwd=%s)", rendered, cwd)


__all__ = ["DRY_RUN_PREFIX", "format_command", "log_command_invocation"]
