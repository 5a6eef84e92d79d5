"""Command-line interface."""

from smartlink.cli.main import app, main

__all__ = ["app", "main"]
