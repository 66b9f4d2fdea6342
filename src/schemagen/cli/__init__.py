"""schemagen CLI."""

from schemagen.cli.main import cli

__all__ = ["cli"]
