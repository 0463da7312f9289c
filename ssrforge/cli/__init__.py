"""ssrforge command-line interface."""

from ssrforge.cli.app import app, main

__all__ = ["app", "main"]
