"""Command-line interface for :mod:`releaser`."""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from contextlib import contextmanager
from pathlib import Path

from cyclopts import App, Parameter

from . import __version__, commands, config
from .commands.publish import PublishFailedError
from .execution import CommandError
from .manifest import ManifestError
from .utils import normalise_project_root
from .versioning import InvalidVersionError

PROJECT_ROOT_ENV_VAR = "RELEASER_PROJECT_ROOT"
PROJECT_ROOT_REQUIRED_MESSAGE = "--project-root requires a value"
_PROJECT_ROOT_PARAMETER = Parameter(
    name="--project-root",
    env_var=PROJECT_ROOT_ENV_VAR,
    help="Directory containing package.json and releaser.toml.",
)
ProjectRootOption = typ.Annotated[Path, _PROJECT_ROOT_PARAMETER]

_TARGET_PARAMETER = Parameter(
    help=(
        "Target semantic version (e.g., 1.2.3). When omitted, choose from "
        "computed candidates interactively."
    ),
)
TargetArgument = typ.Annotated[str, _TARGET_PARAMETER]

_PREID_PARAMETER = Parameter(
    name="--preid",
    help="Pre-release identifier (alpha, beta, rc, ...) used for pre-* bumps.",
)
PreidOption = typ.Annotated[str, _PREID_PARAMETER]

_DRY_PARAMETER = Parameter(
    name="--dry",
    help="Log every step without changing files or running commands.",
)
DryFlag = typ.Annotated[bool, _DRY_PARAMETER]

_SKIP_TESTS_PARAMETER = Parameter(
    name=("--skip-tests", "--skipTests"),
    negative=(),
    help="Do not run the test scripts.",
)
SkipTestsFlag = typ.Annotated[bool, _SKIP_TESTS_PARAMETER]

_SKIP_BUILD_PARAMETER = Parameter(
    name=("--skip-build", "--skipBuild"),
    negative=(),
    help="Do not run the build scripts.",
)
SkipBuildFlag = typ.Annotated[bool, _SKIP_BUILD_PARAMETER]

_SKIP_CHANGELOG_PARAMETER = Parameter(
    name=("--skip-changelog", "--skipChangelog"),
    negative=(),
    help="Do not run the changelog script.",
)
SkipChangelogFlag = typ.Annotated[bool, _SKIP_CHANGELOG_PARAMETER]

_TAG_PARAMETER = Parameter(
    name="--tag",
    help="Distribution tag for npm publish; inferred from the version when unset.",
)
TagOption = typ.Annotated[str, _TAG_PARAMETER]

LOG_LEVEL_ENV_VAR = "RELEASER_LOG_LEVEL"
_DEFAULT_LOG_LEVEL = logging.INFO
_LOG_FORMAT = "%(levelname)s: %(message)s"
_RELEASER_HANDLER_NAME = "releaser-cli-handler"
_LOG_LEVEL_ALIASES: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_RELEASE_ERRORS: tuple[type[Exception], ...] = (
    InvalidVersionError,
    CommandError,
    ManifestError,
    PublishFailedError,
)

app = App(
    help="Bump, verify, publish, and tag an npm package release.",
    version=__version__,
)


def _validate_project_root_value(value: str) -> str:
    """Ensure ``value`` is usable as a project path."""
    if not value or value.startswith("-"):
        raise SystemExit(PROJECT_ROOT_REQUIRED_MESSAGE)
    return value


def _extract_project_root_override(
    tokens: typ.Sequence[str],
) -> tuple[str | None, list[str]]:
    """Split ``--project-root`` from CLI tokens.

    Both ``--project-root <path>`` and ``--project-root=<path>`` are accepted;
    the last occurrence wins. The configuration file is read from that root
    before Cyclopts parses the remaining tokens.
    """
    project_root: str | None = None
    remainder: list[str] = []
    index = 0
    while index < len(tokens):
        current_argument = tokens[index]
        if current_argument == "--project-root":
            try:
                candidate = tokens[index + 1]
            except IndexError as err:
                raise SystemExit(PROJECT_ROOT_REQUIRED_MESSAGE) from err
            project_root = _validate_project_root_value(candidate)
            index += 2
            continue
        if current_argument.startswith("--project-root="):
            candidate = current_argument.partition("=")[2]
            project_root = _validate_project_root_value(candidate)
            index += 1
            continue
        remainder.append(current_argument)
        index += 1
    return project_root, remainder


def _resolve_log_level(value: str | None) -> int:
    """Return the configured log level or :data:`_DEFAULT_LOG_LEVEL`."""
    if value is None:
        return _DEFAULT_LOG_LEVEL
    candidate = value.strip()
    if not candidate:
        return _DEFAULT_LOG_LEVEL
    level = _LOG_LEVEL_ALIASES.get(candidate.upper())
    if level is None:
        choices = ", ".join(sorted(_LOG_LEVEL_ALIASES))
        message = (
            f"Invalid {LOG_LEVEL_ENV_VAR} value {value!r}; expected one of: {choices}"
        )
        raise SystemExit(message)
    return level


def _configure_logging(stream: typ.TextIO | None = None) -> None:
    """Configure root logging so release steps are visible."""
    level = _resolve_log_level(os.environ.get(LOG_LEVEL_ENV_VAR))
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    handler = next(
        (
            existing
            for existing in root_logger.handlers
            if getattr(existing, "name", "") == _RELEASER_HANDLER_NAME
        ),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream)
        handler.name = _RELEASER_HANDLER_NAME
        root_logger.addHandler(handler)
    elif stream is not None:
        handler.stream = stream
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))


@contextmanager
def _project_root_env(value: Path) -> typ.Iterator[None]:
    """Temporarily set :data:`PROJECT_ROOT_ENV_VAR` to ``value``."""
    previous = os.environ.get(PROJECT_ROOT_ENV_VAR)
    os.environ[PROJECT_ROOT_ENV_VAR] = str(value)
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop(PROJECT_ROOT_ENV_VAR, None)
        else:
            os.environ[PROJECT_ROOT_ENV_VAR] = previous


def _dispatch_and_print(tokens: typ.Sequence[str]) -> int:
    """Execute the Cyclopts app and print command results."""
    try:
        result = app(tokens)
    except SystemExit as err:
        code = err.code
        if code is None:
            return 0
        if isinstance(code, int):
            return code
        print(code, file=sys.stderr)
        return 1
    if isinstance(result, int):
        return result
    if result is not None:
        print(result)
    return 0


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Entry point for ``python -m releaser``."""
    try:
        if argv is None:
            argv = sys.argv[1:]
        _configure_logging()
        root_override, remaining = _extract_project_root_override(list(argv))
        if root_override is None:
            root_override = os.environ.get(PROJECT_ROOT_ENV_VAR) or None
        project_root = normalise_project_root(root_override)
        try:
            configuration = config.load_configuration(project_root)
        except config.ConfigurationError as exc:
            print(f"Configuration error: {exc}", file=sys.stderr)
            return 1
        with (
            _project_root_env(project_root),
            config.use_configuration(configuration),
        ):
            try:
                return _dispatch_and_print(remaining)
            except _RELEASE_ERRORS as exc:
                print(f"Release failed: {exc}", file=sys.stderr)
                return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except Exception as exc:  # noqa: BLE001 - fallback guard for CLI entry point
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    """Console-script entry point."""
    raise SystemExit(main())


@app.default
def release(  # noqa: PLR0913 - one keyword per CLI flag
    target: TargetArgument | None = None,
    /,
    *,
    project_root: ProjectRootOption | None = None,
    preid: PreidOption | None = None,
    dry: DryFlag = False,
    skip_tests: SkipTestsFlag = False,
    skip_build: SkipBuildFlag = False,
    skip_changelog: SkipChangelogFlag = False,
    tag: TagOption | None = None,
) -> str:
    """Release the package, optionally at an explicit ``target`` version."""
    release_config = commands.release.ReleaseConfig(
        target_version=target,
        preid=preid,
        dry_run=dry,
        skip_tests=skip_tests,
        skip_build=skip_build,
        skip_changelog=skip_changelog,
        tag=tag,
    )
    outcome = commands.release.run(
        normalise_project_root(project_root),
        release_config,
        options=commands.release.ReleaseOptions(
            configuration=config.current_configuration(),
        ),
    )
    return commands.release.format_outcome(outcome)


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    run()
