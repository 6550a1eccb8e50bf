"""Utility helpers for the :mod:`releaser` package."""

from __future__ import annotations

from .commands import GIT, NPM, RELEASER_CATALOGUE
from .path import normalise_project_root, resolve_package_dir

__all__ = [
    "GIT",
    "NPM",
    "RELEASER_CATALOGUE",
    "normalise_project_root",
    "resolve_package_dir",
]
