"""Configuration loading for :mod:`releaser`."""

from __future__ import annotations

import contextlib
import contextvars
import dataclasses as dc
import typing as typ
from collections import abc as cabc

from cyclopts.config import Toml

from releaser.utils import normalise_project_root

if typ.TYPE_CHECKING:  # pragma: no cover - type checking only
    from pathlib import Path

CONFIG_FILENAME = "releaser.toml"

PublishAccess = typ.Literal["public", "restricted"]

CONFIG_ROOT_TOML_KEYS: typ.Final[frozenset[str]] = frozenset(
    {"scripts", "publish", "git"}
)
SCRIPTS_TOML_KEYS: typ.Final[frozenset[str]] = frozenset(
    {"test", "build", "changelog"}
)
PUBLISH_TOML_KEYS: typ.Final[frozenset[str]] = frozenset({"packages", "access"})
GIT_TOML_KEYS: typ.Final[frozenset[str]] = frozenset({"remote"})


class ConfigurationError(RuntimeError):
    """Raised when the :mod:`releaser` configuration is invalid."""


class ConfigurationNotLoadedError(ConfigurationError):
    """Raised when code accesses the configuration before it is loaded."""


@dc.dataclass(frozen=True, slots=True)
class ScriptsConfig:
    """npm script names run by the test, build, and changelog steps."""

    test: tuple[str, ...] = ("test",)
    build: tuple[str, ...] = ("build", "build:types")
    changelog: tuple[str, ...] = ("changelog",)

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any] | None) -> ScriptsConfig:
        """Create a :class:`ScriptsConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _validate_mapping_keys(mapping, set(SCRIPTS_TOML_KEYS), "scripts")
        defaults = cls()
        return cls(
            test=_string_tuple(mapping.get("test"), "scripts.test", defaults.test),
            build=_string_tuple(mapping.get("build"), "scripts.build", defaults.build),
            changelog=_string_tuple(
                mapping.get("changelog"), "scripts.changelog", defaults.changelog
            ),
        )


@dc.dataclass(frozen=True, slots=True)
class PublishConfig:
    """Settings for the publish step."""

    packages: tuple[str, ...] = (".",)
    access: PublishAccess = "public"

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any] | None) -> PublishConfig:
        """Create a :class:`PublishConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _validate_mapping_keys(mapping, set(PUBLISH_TOML_KEYS), "publish")
        packages = _string_tuple(
            mapping.get("packages"), "publish.packages", cls().packages
        )
        if not packages:
            message = "publish.packages must list at least one package directory."
            raise ConfigurationError(message)
        return cls(packages=packages, access=_access(mapping.get("access")))


@dc.dataclass(frozen=True, slots=True)
class GitConfig:
    """Settings for the commit, tag, and push steps."""

    remote: str = "origin"

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any] | None) -> GitConfig:
        """Create a :class:`GitConfig` from a TOML table mapping."""
        if mapping is None:
            return cls()
        _validate_mapping_keys(mapping, set(GIT_TOML_KEYS), "git")
        remote = mapping.get("remote", cls().remote)
        if not isinstance(remote, str) or not remote.strip():
            message = "git.remote must be a non-empty string."
            raise ConfigurationError(message)
        return cls(remote=remote.strip())


@dc.dataclass(frozen=True, slots=True)
class ReleaserConfig:
    """Strongly-typed representation of ``releaser.toml``."""

    scripts: ScriptsConfig = dc.field(default_factory=ScriptsConfig)
    publish: PublishConfig = dc.field(default_factory=PublishConfig)
    git: GitConfig = dc.field(default_factory=GitConfig)

    @classmethod
    def from_mapping(cls, mapping: cabc.Mapping[str, typ.Any]) -> ReleaserConfig:
        """Create a :class:`ReleaserConfig` from a parsed configuration mapping."""
        _validate_mapping_keys(
            mapping, set(CONFIG_ROOT_TOML_KEYS), "configuration section"
        )
        return cls(
            scripts=ScriptsConfig.from_mapping(
                _optional_mapping(mapping.get("scripts"), "scripts")
            ),
            publish=PublishConfig.from_mapping(
                _optional_mapping(mapping.get("publish"), "publish")
            ),
            git=GitConfig.from_mapping(_optional_mapping(mapping.get("git"), "git")),
        )


_active_config: contextvars.ContextVar[ReleaserConfig] = contextvars.ContextVar(
    "releaser_active_config"
)


def _validate_mapping_keys(
    mapping: cabc.Mapping[str, typ.Any] | None,
    allowed_keys: set[str],
    context: str,
) -> None:
    """Validate that mapping contains only allowed keys.

    Args:
        mapping: The mapping to validate (may be None).
        allowed_keys: Set of permitted key names.
        context: Context for error message (e.g., "scripts", "publish").

    Raises:
        ConfigurationError: If mapping contains unknown keys.

    """
    if mapping is None:
        return
    unknown = set(mapping) - allowed_keys
    if unknown:
        joined = ", ".join(sorted(unknown))
        if context.endswith(" section"):
            message = f"Unknown {context}(s): {joined}."
        else:
            message = f"Unknown {context} option(s): {joined}."
        raise ConfigurationError(message)


def build_loader(project_root: Path) -> Toml:
    """Return a Cyclopts loader for ``releaser.toml`` in ``project_root``."""
    resolved = normalise_project_root(project_root)
    return Toml(
        path=resolved / CONFIG_FILENAME,
        must_exist=False,
        search_parents=False,
        allow_unknown=True,
        use_commands_as_keys=True,
    )


def load_from_loader(loader: Toml) -> ReleaserConfig:
    """Load and validate configuration using ``loader``."""
    try:
        raw = loader.config
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    if not isinstance(raw, cabc.Mapping):
        message = "Configuration root must be a TOML table."
        raise ConfigurationError(message)
    return ReleaserConfig.from_mapping(raw)


def load_configuration(project_root: Path) -> ReleaserConfig:
    """Load configuration for ``project_root`` using Cyclopts."""
    loader = build_loader(project_root)
    return load_from_loader(loader)


@contextlib.contextmanager
def use_configuration(configuration: ReleaserConfig) -> typ.Iterator[None]:
    """Set ``configuration`` as the active configuration for the current context."""
    token = _active_config.set(configuration)
    try:
        yield
    finally:
        _active_config.reset(token)


def current_configuration() -> ReleaserConfig:
    """Return the active configuration or raise if none has been set."""
    try:
        return _active_config.get()
    except LookupError as exc:
        message = "Configuration has not been loaded yet."
        raise ConfigurationNotLoadedError(message) from exc


def _validate_string_sequence(
    sequence: cabc.Sequence[typ.Any], field_name: str
) -> tuple[str, ...]:
    """Validate that ``sequence`` contains only strings and return them."""
    items: list[str] = []
    for index, entry in enumerate(sequence):
        if not isinstance(entry, str):
            message = (
                f"{field_name}[{index}] must be a string, got {type(entry).__name__}."
            )
            raise ConfigurationError(message)
        items.append(entry)
    return tuple(items)


def _string_tuple(
    value: object, field_name: str, default: tuple[str, ...] = ()
) -> tuple[str, ...]:
    """Return a tuple of strings derived from ``value``."""
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    if isinstance(value, cabc.Sequence) and not isinstance(value, str | bytes):
        return _validate_string_sequence(value, field_name)
    message = (
        f"{field_name} must be a string or a sequence of strings; "
        f"received {type(value).__name__}."
    )
    raise ConfigurationError(message)


def _access(value: object) -> PublishAccess:
    """Normalise the ``publish.access`` value."""
    if value is None:
        return "public"
    if value in {"public", "restricted"}:
        return typ.cast("PublishAccess", value)
    message = "publish.access must be 'public' or 'restricted'."
    raise ConfigurationError(message)


def _optional_mapping(
    value: object, field_name: str
) -> cabc.Mapping[str, typ.Any] | None:
    """Ensure ``value`` is a mapping if provided."""
    if value is None:
        return None
    if isinstance(value, cabc.Mapping):
        return typ.cast("cabc.Mapping[str, typ.Any]", value)
    message = f"{field_name} must be a TOML table; received {type(value).__name__}."
    raise ConfigurationError(message)
