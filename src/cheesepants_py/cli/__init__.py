"""Command line extensions for cheesepants-py."""

from cheesepants_py.cli.database import CheesePantsCLIPlugin

__all__ = ["CheesePantsCLIPlugin"]
