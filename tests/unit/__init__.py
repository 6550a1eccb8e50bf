"""Unit tests for :mod:`releaser`."""
