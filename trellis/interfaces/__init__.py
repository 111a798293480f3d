"""Interfaces layer for Trellis.

This layer contains adapters for external interactions:
- CLI: Command-line interface using Typer

The interfaces layer is responsible for:
- Accepting user input and validating it
- Calling domain operations and application services
- Formatting output for the user
"""

from trellis.interfaces.cli import app

__all__ = ["app"]
