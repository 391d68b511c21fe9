"""Command-line interface for runcoach."""

from runcoach.cli.main import cli, main

__all__ = ["cli", "main"]
