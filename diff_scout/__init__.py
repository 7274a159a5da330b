"""Lint findings gated to the lines a branch actually changed."""

__version__ = "0.1.0"
