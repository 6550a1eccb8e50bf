"""Semantic version parsing and increment rules.

Versions follow `Semantic Versioning 2.0.0 <https://semver.org>`_. Increments
follow the npm ``semver`` package, with two differences:

* ``major`` always moves to the next major version, even from a pre-release
  such as ``1.0.0-alpha.1`` (which becomes ``2.0.0``).
* ``prerelease`` with a new identifier never produces a lower version. When
  the identifier sorts below the current one (``1.0.0-beta.1`` with ``alpha``)
  the next patch is used instead (``1.0.1-alpha.0``).
"""

from __future__ import annotations

import dataclasses as dc
import functools
import re
import typing as typ

BumpKind = typ.Literal[
    "patch",
    "minor",
    "major",
    "prepatch",
    "preminor",
    "premajor",
    "prerelease",
]

PLAIN_INCREMENTS: typ.Final[tuple[BumpKind, ...]] = ("patch", "minor", "major")
PRE_INCREMENTS: typ.Final[tuple[BumpKind, ...]] = (
    "prepatch",
    "preminor",
    "premajor",
    "prerelease",
)

type Identifier = int | str

_NUMERIC = r"0|[1-9]\d*"
_PRERELEASE_IDENTIFIER = r"(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_PATTERN: typ.Final[re.Pattern[str]] = re.compile(
    rf"^(?P<major>{_NUMERIC})\.(?P<minor>{_NUMERIC})\.(?P<patch>{_NUMERIC})"
    rf"(?:-(?P<prerelease>{_PRERELEASE_IDENTIFIER}(?:\.{_PRERELEASE_IDENTIFIER})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_PREID_PATTERN: typ.Final[re.Pattern[str]] = re.compile(r"^[0-9A-Za-z-]+$")


class InvalidVersionError(ValueError):
    """Raised when a string is not a usable semantic version."""


@functools.total_ordering
@dc.dataclass(frozen=True, slots=True)
class Version:
    """Parsed semantic version.

    Ordering follows semver precedence: build metadata is ignored and a
    pre-release sorts below the matching release.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[Identifier, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text = f"{text}-{'.'.join(str(part) for part in self.prerelease)}"
        if self.build:
            text = f"{text}+{'.'.join(self.build)}"
        return text

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.precedence_key() < other.precedence_key()

    def precedence_key(self) -> tuple[typ.Any, ...]:
        """Return a tuple that sorts versions by semver precedence."""
        identifiers = tuple(
            (0, part, "") if isinstance(part, int) else (1, 0, part)
            for part in self.prerelease
        )
        is_release = 0 if self.prerelease else 1
        return (self.major, self.minor, self.patch, is_release, identifiers)

    @property
    def is_prerelease(self) -> bool:
        """Return ``True`` when the version carries a pre-release tag."""
        return bool(self.prerelease)

    def release(self) -> Version:
        """Return the version without pre-release or build metadata."""
        return Version(self.major, self.minor, self.patch)


def _coerce_identifier(token: str) -> Identifier:
    return int(token) if token.isdigit() else token


def parse_version(value: str) -> Version:
    """Parse ``value`` into a :class:`Version`.

    A single leading ``v`` (``v1.2.3``) is accepted and dropped.
    """
    candidate = value.strip()
    if candidate[:1] in {"v", "V"}:
        candidate = candidate[1:]
    match = _SEMVER_PATTERN.fullmatch(candidate)
    if match is None:
        message = (
            f"Invalid semantic version {value!r}; expected "
            "<major>.<minor>.<patch> with optional pre-release/build segments."
        )
        raise InvalidVersionError(message)
    prerelease = match.group("prerelease")
    build = match.group("build")
    return Version(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        prerelease=(
            tuple(_coerce_identifier(part) for part in prerelease.split("."))
            if prerelease
            else ()
        ),
        build=tuple(build.split(".")) if build else (),
    )


def is_valid_version(value: str) -> bool:
    """Return ``True`` when ``value`` parses as a semantic version."""
    try:
        parse_version(value)
    except InvalidVersionError:
        return False
    return True


def prerelease_identifier(value: str) -> str | None:
    """Return the leading textual pre-release identifier of ``value``."""
    version = parse_version(value)
    if version.prerelease and isinstance(version.prerelease[0], str):
        return version.prerelease[0]
    return None


def default_preid(current: str, explicit: str | None = None) -> str | None:
    """Return ``explicit`` or fall back to the identifier already on ``current``."""
    if explicit:
        return explicit
    return prerelease_identifier(current)


def _validate_preid(preid: str | None) -> None:
    if preid is None:
        return
    if not _PREID_PATTERN.fullmatch(preid) or preid.isdigit():
        message = (
            f"Invalid pre-release identifier {preid!r}; use letters, digits "
            "and hyphens, e.g. 'alpha'."
        )
        raise InvalidVersionError(message)


def _fresh_prerelease(preid: str | None) -> tuple[Identifier, ...]:
    return (0,) if preid is None else (preid, 0)


def _increment_last_numeric(
    prerelease: tuple[Identifier, ...],
) -> tuple[Identifier, ...]:
    parts = list(prerelease)
    for index in range(len(parts) - 1, -1, -1):
        part = parts[index]
        if isinstance(part, int):
            parts[index] = part + 1
            return tuple(parts)
    return (*parts, 0)


def _next_prerelease(version: Version, preid: str | None) -> Version:
    if not version.prerelease:
        return Version(
            version.major,
            version.minor,
            version.patch + 1,
            _fresh_prerelease(preid),
        )
    if preid is None:
        return dc.replace(
            version,
            prerelease=_increment_last_numeric(version.prerelease),
            build=(),
        )
    current = version.prerelease
    if current[0] == preid and len(current) > 1 and isinstance(current[1], int):
        return dc.replace(version, prerelease=(preid, current[1] + 1), build=())
    candidate = dc.replace(version, prerelease=(preid, 0), build=())
    if candidate > version:
        return candidate
    return Version(version.major, version.minor, version.patch + 1, (preid, 0))


def bump(version: Version, kind: BumpKind, preid: str | None = None) -> Version:
    """Return ``version`` incremented according to ``kind``."""
    _validate_preid(preid)
    match kind:
        case "major":
            return Version(version.major + 1, 0, 0)
        case "minor":
            if version.is_prerelease and version.patch == 0:
                return version.release()
            return Version(version.major, version.minor + 1, 0)
        case "patch":
            if version.is_prerelease:
                return version.release()
            return Version(version.major, version.minor, version.patch + 1)
        case "premajor":
            return Version(version.major + 1, 0, 0, _fresh_prerelease(preid))
        case "preminor":
            return Version(
                version.major, version.minor + 1, 0, _fresh_prerelease(preid)
            )
        case "prepatch":
            return Version(
                version.major,
                version.minor,
                version.patch + 1,
                _fresh_prerelease(preid),
            )
        case "prerelease":
            return _next_prerelease(version, preid)
        case _:
            message = f"Unknown bump kind: {kind!r}"
            raise InvalidVersionError(message)


def resolve(current: str, kind: BumpKind, preid: str | None = None) -> str:
    """Return the version string that follows ``current`` for ``kind``."""
    return str(bump(parse_version(current), kind, preid))


def version_increments(preid: str | None) -> tuple[BumpKind, ...]:
    """Return the bump kinds offered for selection.

    Pre-release kinds are only offered when a pre-release identifier is known.
    """
    if preid:
        return PLAIN_INCREMENTS + PRE_INCREMENTS
    return PLAIN_INCREMENTS


def describe_candidates(
    current: str, preid: str | None
) -> tuple[tuple[BumpKind, str], ...]:
    """Return ``(kind, next_version)`` pairs for every offered bump kind."""
    return tuple(
        (kind, resolve(current, kind, preid)) for kind in version_increments(preid)
    )


def validate_target(target: str, current: str) -> str:
    """Return the normalised ``target`` after checking it against ``current``.

    Re-releasing ``current`` is accepted so an interrupted release can be run
    again; moving backwards is not.
    """
    target_version = parse_version(target)
    if target_version < parse_version(current):
        message = (
            f"Target version {target_version} is lower than the current "
            f"version {current}."
        )
        raise InvalidVersionError(message)
    return str(target_version)


__all__ = [
    "PLAIN_INCREMENTS",
    "PRE_INCREMENTS",
    "BumpKind",
    "InvalidVersionError",
    "Version",
    "bump",
    "default_preid",
    "describe_candidates",
    "is_valid_version",
    "parse_version",
    "prerelease_identifier",
    "resolve",
    "validate_target",
    "version_increments",
]
