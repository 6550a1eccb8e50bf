"""Unit tests for :mod:`releaser.utils`."""
