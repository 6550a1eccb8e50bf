"""Command implementations for :mod:`releaser`."""

from __future__ import annotations

from . import publish, release

__all__ = ["publish", "release"]
