"""Shared helpers for the releaser test-suite."""
