"""CLI command modules for projgen."""

from cli.commands.cache import cache_app

__all__ = ["cache_app"]
