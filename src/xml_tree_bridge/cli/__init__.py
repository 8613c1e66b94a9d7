"""Command-line interface for converting between XML and JSON trees."""

from .main import main

__all__ = ["main"]
