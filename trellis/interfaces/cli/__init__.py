"""CLI interface for Trellis using Typer.

Usage:
    trellis add --root work          # Add a root node
    trellis add "write report" work  # Add a child under alias/handle/date
    trellis check 3                  # Mark a task done
    trellis ls -r                    # Show the whole tree
    trellis bp save 2 weekly         # Save a subtree as a blueprint

The CLI is structured as:
- app: Main Typer application
- commands/: Command groups (node, blueprint)
- common.py: Shared utilities for CLI commands
- main.py: Entry point that runs the app
"""

from pathlib import Path
from typing import Optional

import typer

from trellis import __version__
from trellis.config import CONFIG_ENV, get_global_config
from trellis.interfaces.cli.commands import blueprint, node
from trellis.interfaces.cli.common import CliState
from trellis.logging_config import setup_logging

# Create the main Typer application
app = typer.Typer(
    name="trellis",
    help="Hierarchical task tracker backed by a local task graph",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"trellis version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Save file to use (or set TRELLIS_FILE env var)",
        envvar="TRELLIS_FILE",
    ),
    use_global: bool = typer.Option(
        False,
        "--global",
        "-g",
        help="Use the global save file even if a local one exists",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Config file to use (or set {CONFIG_ENV} env var)",
        envvar=CONFIG_ENV,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Trellis - hierarchical task tracking on a local task graph.

    Nodes can have several parents; a parent's completion is derived
    from its children. Nodes are addressed by handle, alias, or date.
    """
    settings = get_global_config(config)
    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = CliState(file=file, use_global=use_global, config=settings)


# =============================================================================
# Register Command Groups
# =============================================================================

# Graph commands live at the top level
app.registered_commands.extend(node.app.registered_commands)
app.add_typer(blueprint.app, name="bp")


__all__ = ["app"]
