"""Tests for ``releaser.config``."""

from __future__ import annotations

import typing as typ

import pytest

from releaser import config as config_module

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_load_configuration_parses_values(
    tmp_path: Path, write_config: typ.Callable[[str], Path]
) -> None:
    """Load a representative configuration document."""
    write_config(
        """
        [scripts]
        test = ["test:unit", "test:e2e"]
        build = "build"
        changelog = []

        [publish]
        packages = ["packages/core", "packages/cli"]
        access = "restricted"

        [git]
        remote = "upstream"
        """
    )

    configuration = config_module.load_configuration(tmp_path)

    assert configuration.scripts.test == ("test:unit", "test:e2e")
    assert configuration.scripts.build == ("build",)
    assert configuration.scripts.changelog == ()
    assert configuration.publish.packages == ("packages/core", "packages/cli")
    assert configuration.publish.access == "restricted"
    assert configuration.git.remote == "upstream"


def test_load_configuration_defaults_when_file_missing(tmp_path: Path) -> None:
    """A project without ``releaser.toml`` uses the npm defaults."""
    configuration = config_module.load_configuration(tmp_path)

    assert configuration == config_module.ReleaserConfig()
    assert configuration.scripts.test == ("test",)
    assert configuration.scripts.build == ("build", "build:types")
    assert configuration.scripts.changelog == ("changelog",)
    assert configuration.publish.packages == (".",)
    assert configuration.publish.access == "public"
    assert configuration.git.remote == "origin"


def test_partial_tables_keep_remaining_defaults(
    tmp_path: Path, write_config: typ.Callable[[str], Path]
) -> None:
    """Omitted keys fall back to their defaults."""
    write_config(
        """
        [scripts]
        build = ["compile"]
        """
    )

    configuration = config_module.load_configuration(tmp_path)

    assert configuration.scripts.build == ("compile",)
    assert configuration.scripts.test == ("test",)


@pytest.mark.parametrize(
    ("config_body", "fragment"),
    [
        pytest.param(
            """
            [deploy]
            target = "prod"
            """,
            "Unknown configuration section",
            id="unknown_section",
        ),
        pytest.param(
            """
            [scripts]
            lint = ["lint"]
            """,
            "Unknown scripts option",
            id="unknown_scripts_key",
        ),
        pytest.param(
            """
            [scripts]
            test = [1, 2]
            """,
            r"scripts\.test\[0\] must be a string",
            id="non_string_script",
        ),
        pytest.param(
            """
            [publish]
            access = "everyone"
            """,
            "publish.access",
            id="invalid_access",
        ),
        pytest.param(
            """
            [publish]
            packages = []
            """,
            "at least one package",
            id="empty_packages",
        ),
        pytest.param(
            """
            [git]
            remote = ""
            """,
            "git.remote",
            id="empty_remote",
        ),
        pytest.param(
            """
            scripts = "test"
            """,
            "scripts must be a TOML table",
            id="scalar_section",
        ),
    ],
)
def test_load_configuration_rejects_invalid_documents(
    tmp_path: Path,
    write_config: typ.Callable[[str], Path],
    config_body: str,
    fragment: str,
) -> None:
    """Invalid documents raise :class:`ConfigurationError`."""
    write_config(config_body)

    with pytest.raises(config_module.ConfigurationError, match=fragment):
        config_module.load_configuration(tmp_path)


def test_use_configuration_sets_and_resets_context() -> None:
    """The active configuration is scoped to the context manager."""
    configuration = config_module.ReleaserConfig(
        git=config_module.GitConfig(remote="mirror")
    )

    with config_module.use_configuration(configuration):
        assert config_module.current_configuration() is configuration

    with pytest.raises(config_module.ConfigurationNotLoadedError):
        config_module.current_configuration()
