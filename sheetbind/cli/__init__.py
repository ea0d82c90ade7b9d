"""Command line interface (python -m sheetbind.cli)."""

from sheetbind.cli.app import main

__all__ = ["main"]
