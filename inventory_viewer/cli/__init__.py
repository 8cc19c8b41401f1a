"""Command line front end for the inventory viewer."""

from .app import main

__all__ = ["main"]
