"""Path helpers for :mod:`releaser`."""

from __future__ import annotations

from pathlib import Path


def normalise_project_root(value: Path | str | None) -> Path:
    """Return ``value`` as an absolute, resolved project root.

    ``None`` selects the current working directory.
    """
    if value is None:
        return Path.cwd().resolve()
    return Path(value).expanduser().resolve()


def resolve_package_dir(project_root: Path, entry: str) -> Path:
    """Return the package directory ``entry`` resolved against ``project_root``."""
    candidate = Path(entry).expanduser()
    if not candidate.is_absolute():
        candidate = project_root / candidate
    return candidate.resolve(strict=False)


__all__ = ["normalise_project_root", "resolve_package_dir"]
