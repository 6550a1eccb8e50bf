"""Unit tests for :mod:`releaser.commands`."""
