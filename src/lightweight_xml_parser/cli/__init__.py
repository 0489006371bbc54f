"""Command-line interface for the lightweight XML parser."""

from .main import main

__all__ = ["main"]
