"""Shared utilities for Trellis CLI commands.

This module provides common utilities used across CLI commands:
- Per-invocation state (save file, config) carried on the Typer context
- Loading and saving the graph document
- Identifier resolution with the assume-date switch
- Formatted output helpers (error, success, info) and tree rendering
"""

from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, TypeVar

import typer

from trellis.application import auto_clean
from trellis.config import TrellisConfig
from trellis.domain.graph import Graph, Node, TaskState
from trellis.domain.shared import Err, Result
from trellis.infrastructure.storage import (
    BlueprintRepository,
    GraphRepository,
    resolve_save_path,
)

T = TypeVar("T")

# Reusable assume-date option for identifier arguments
# Usage: def my_command(assume_date: bool = assume_date_option) -> None:
assume_date_option: bool = typer.Option(
    False,
    "--assume-date",
    "-D",
    help="Read identifiers as dates (accepts month names)",
)


@dataclass
class CliState:
    """Options given to the top-level command, shared with subcommands."""

    file: Path | None
    use_global: bool
    config: TrellisConfig


def get_state(ctx: typer.Context) -> CliState:
    """Fetch the state stored by the app callback.

    Falls back to defaults when a command is invoked without the callback
    (for example, when called directly from Python).
    """
    root = ctx.find_root()
    if isinstance(root.obj, CliState):
        return root.obj
    return CliState(file=None, use_global=False, config=TrellisConfig())


def save_path(state: CliState) -> Path:
    return resolve_save_path(state.file, Path.cwd(), Path.home(), state.use_global)


def graph_repository(ctx: typer.Context) -> GraphRepository:
    return GraphRepository(save_path(get_state(ctx)))


def blueprint_repository(ctx: typer.Context) -> BlueprintRepository:
    return BlueprintRepository(get_state(ctx).config.blueprints.store_dir())


def load_graph(ctx: typer.Context) -> tuple[GraphRepository, Graph]:
    """Load the graph document, exiting with an error message on failure."""
    repo = graph_repository(ctx)
    graph = exit_on_err(repo.load())
    return repo, graph


def commit_graph(ctx: typer.Context, repo: GraphRepository, graph: Graph) -> dict[int, int]:
    """Apply the auto-clean policy and save the graph.

    Returns:
        The old to new handle mapping when auto-clean renumbered the
        graph, else an empty dict. Callers reporting handles should map
        them through it with ``.get(handle, handle)``.
    """
    renumbered = auto_clean(graph, get_state(ctx).config)
    if renumbered is not None:
        print_info("Graph cleaned, handles were renumbered.")
    exit_on_err(repo.save(graph))
    return renumbered or {}


def exit_on_err(result: Result[T, object]) -> T:
    """Return the Ok value, or print the error and exit with status 1."""
    if isinstance(result, Err):
        fail(str(result.error))
    return result.value


def resolve_id(graph: Graph, token: str, assume_date: bool = False) -> int:
    """Resolve a user token to a handle, exiting on failure."""
    if assume_date:
        return exit_on_err(graph.resolve_date(token))
    return exit_on_err(graph.resolve(token))


def fail(msg: str) -> NoReturn:
    print_error(msg)
    raise typer.Exit(1)


def print_error(msg: str) -> None:
    """Print a formatted error message.

    Args:
        msg: Error message to display
    """
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.BLUE))


def print_warning(msg: str) -> None:
    typer.echo(typer.style(f"Warning: {msg}", fg=typer.colors.YELLOW), err=True)


def print_header(title: str) -> None:
    typer.echo(typer.style(title, bold=True))


# =============================================================================
# Node rendering
# =============================================================================

STATE_MARKS = {
    TaskState.NONE: "[ ]",
    TaskState.PARTIAL: "[~]",
    TaskState.DONE: "[x]",
}


def format_id(handle: int, alias: str | None = None) -> str:
    return f"{handle}:{alias}" if alias else str(handle)


def format_node(node: Node) -> str:
    """Render one node as ``<mark> <title> (<id>)``.

    Date nodes show their day, pseudo nodes a dash instead of a checkbox.
    """
    if node.is_date():
        mark = "[d]"
        title = f"{node.day.isoformat()} {node.title}".rstrip()
    elif node.is_pseudo():
        mark = " - "
        title = node.title
    else:
        mark = STATE_MARKS[node.state]
        title = node.title
    suffix = " (archived)" if node.metadata.archived else ""
    return f"{mark} {title} ({format_id(node.index, node.metadata.alias)}){suffix}"


def tree_indent(depth: int, shared: bool) -> str:
    """Indentation for a listing line; shared nodes get a dotted branch."""
    if depth == 0:
        return ""
    return " |  " * (depth - 1) + (" +.." if shared else " +--")


def print_listing(visits: list[tuple[Node, int]]) -> None:
    for node, depth in visits:
        typer.echo(f"{tree_indent(depth, len(node.metadata.parents) > 1)}{format_node(node)}")


def print_traversal(graph: Graph, starts: list[int], include_archived: bool, max_depth: int | None) -> None:
    """Traverse from ``starts`` and print the tree, exiting on a cycle."""
    print_listing(exit_on_err(graph.traverse(starts, include_archived, max_depth)))


__all__ = [
    "CliState",
    "assume_date_option",
    "get_state",
    "save_path",
    "graph_repository",
    "blueprint_repository",
    "load_graph",
    "commit_graph",
    "exit_on_err",
    "resolve_id",
    "fail",
    "print_error",
    "print_success",
    "print_info",
    "print_warning",
    "print_header",
    "format_id",
    "format_node",
    "tree_indent",
    "print_listing",
    "print_traversal",
]
