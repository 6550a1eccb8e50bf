"""Module entry point for ``python -m releaser``."""

from __future__ import annotations

from releaser.cli import run

if __name__ == "__main__":  # pragma: no cover - convenience entry point
    run()
