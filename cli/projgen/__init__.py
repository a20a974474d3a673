"""projgen CLI.

Command-line interface for the template registry.
"""

__version__ = "0.1.0"

from cli.projgen.cli import app, main

__all__ = ["__version__", "app", "main"]
