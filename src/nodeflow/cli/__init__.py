"""Command-line interface."""

from nodeflow.cli.app import app

__all__ = ["app"]
