"""Pytest configuration for the releaser test-suite."""

from __future__ import annotations

import os
import textwrap
import typing as typ
from pathlib import Path

import pytest

from tests.helpers.release_fakes import write_package


@pytest.fixture
def repo_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _restore_project_root_env() -> typ.Iterator[None]:
    """Ensure tests do not leak ``RELEASER_PROJECT_ROOT`` between runs."""
    from releaser.cli import PROJECT_ROOT_ENV_VAR

    original = os.environ.get(PROJECT_ROOT_ENV_VAR)
    try:
        yield
    finally:
        if original is None:
            os.environ.pop(PROJECT_ROOT_ENV_VAR, None)
        else:
            os.environ[PROJECT_ROOT_ENV_VAR] = original


@pytest.fixture
def write_config(tmp_path: Path) -> typ.Callable[[str], Path]:
    """Return a helper that writes ``releaser.toml`` into ``tmp_path``."""
    from releaser import config as config_module

    def _write(body: str) -> Path:
        config_path = tmp_path / config_module.CONFIG_FILENAME
        config_path.write_text(textwrap.dedent(body).lstrip())
        return config_path

    return _write


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    """Return ``tmp_path`` populated with a releasable ``package.json``."""
    write_package(tmp_path, name="demo-package", version="1.0.0")
    return tmp_path
