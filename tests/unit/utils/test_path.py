"""Unit tests for :mod:`releaser.utils.path`."""

from __future__ import annotations

import typing as typ

from releaser.utils import normalise_project_root, resolve_package_dir

if typ.TYPE_CHECKING:
    from pathlib import Path

    import pytest


def test_normalise_project_root_defaults_to_cwd(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Default project resolution uses the current working directory."""
    monkeypatch.chdir(tmp_path)

    assert normalise_project_root(None) == tmp_path.resolve()


def test_normalise_project_root_resolves_relative_paths(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Relative roots resolve against the working directory."""
    (tmp_path / "app").mkdir()
    monkeypatch.chdir(tmp_path)

    assert normalise_project_root("app") == (tmp_path / "app").resolve()


def test_resolve_package_dir_joins_relative_entries(tmp_path: Path) -> None:
    """Package entries are relative to the project root."""
    root = tmp_path.resolve()

    assert resolve_package_dir(root, ".") == root
    assert resolve_package_dir(root, "packages/core") == root / "packages" / "core"


def test_resolve_package_dir_keeps_absolute_entries(tmp_path: Path) -> None:
    """Absolute package entries are used as given."""
    elsewhere = (tmp_path / "elsewhere").resolve()

    assert resolve_package_dir(tmp_path / "root", str(elsewhere)) == elsewhere
