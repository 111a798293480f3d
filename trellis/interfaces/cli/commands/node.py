"""Graph editing and listing CLI commands.

These commands are registered directly on the top-level app, so they
read as ``trellis add``, ``trellis ls`` and so on. Every command that
changes the graph loads the document, applies the change, runs the
auto-clean policy, and saves.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from trellis.application import copy_node, copy_recursive, graph_stats, move_node, node_stats
from trellis.application.graph_service import NodeStats
from trellis.domain.document import decode_json, encode_json
from trellis.domain.graph import TaskState, format_date, parse_date
from trellis.domain.shared import Err
from trellis.interfaces.cli.common import (
    assume_date_option,
    commit_graph,
    exit_on_err,
    fail,
    format_id,
    format_node,
    graph_repository,
    load_graph,
    print_header,
    print_info,
    print_success,
    print_traversal,
    print_warning,
    resolve_id,
)

app = typer.Typer(help="Graph commands")


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


# =============================================================================
# Creating and removing nodes
# =============================================================================


@app.command("add")
def add(
    ctx: typer.Context,
    title: Optional[str] = typer.Argument(None, help="Node title"),
    parent: Optional[str] = typer.Argument(None, help="Parent ID, alias, or date"),
    root: bool = typer.Option(False, "--root", "-r", help="Add as a root node"),
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Add a date node for this day"),
    pseudo: bool = typer.Option(False, "--pseudo", "-p", help="Node does not count towards completion"),
    assume_date: bool = assume_date_option,
) -> None:
    """Add a node under a parent, as a root, or as a date node.

    Examples:
        trellis add "write report" work
        trellis add --root work
        trellis add --date tomorrow
    """
    if root and date is not None:
        fail("Node cannot be both date node and root node!")

    repo, graph = load_graph(ctx)

    if root:
        if title is None:
            fail("Adding a root node requires a title")
        handle = graph.insert_root(title, pseudo)
    elif date is not None:
        day = exit_on_err(parse_date(date))
        handle = exit_on_err(graph.insert_date(day, title or ""))
    else:
        if title is None or parent is None:
            fail("Adding a node requires a title and a parent ID (or --root/--date)")
        parent_id = resolve_id(graph, parent, assume_date)
        handle = exit_on_err(graph.insert_child(title, parent_id, pseudo))

    renumbered = commit_graph(ctx, repo, graph)
    print_success(f"Added node {renumbered.get(handle, handle)}")


@app.command("rm")
def remove(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="IDs of nodes to remove"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Also remove everything below"),
    assume_date: bool = assume_date_option,
) -> None:
    """Remove nodes (children become roots unless --recursive)."""
    repo, graph = load_graph(ctx)
    handles = [resolve_id(graph, token, assume_date) for token in ids]

    for handle in handles:
        # Already gone as part of an earlier recursive removal
        if not graph.is_live(handle):
            continue
        if recursive:
            exit_on_err(graph.remove_children_recursive(handle))
        else:
            exit_on_err(graph.remove(handle))

    commit_graph(ctx, repo, graph)
    print_success(f"Removed {', '.join(str(h) for h in handles)}")


# =============================================================================
# Edges and ordering
# =============================================================================


@app.command("link")
def link(
    ctx: typer.Context,
    parent: str = typer.Argument(..., help="Parent ID"),
    child: str = typer.Argument(..., help="Child ID"),
    assume_date: bool = assume_date_option,
) -> None:
    """Make CHILD a child of PARENT."""
    repo, graph = load_graph(ctx)
    parent_id = resolve_id(graph, parent, assume_date)
    child_id = resolve_id(graph, child, assume_date)
    exit_on_err(graph.link(parent_id, child_id))
    renumbered = commit_graph(ctx, repo, graph)
    print_success(f"Linked {renumbered.get(child_id, child_id)} under {renumbered.get(parent_id, parent_id)}")


@app.command("unlink")
def unlink(
    ctx: typer.Context,
    parent: str = typer.Argument(..., help="Parent ID"),
    child: str = typer.Argument(..., help="Child ID"),
    assume_date: bool = assume_date_option,
) -> None:
    """Remove the edge between PARENT and CHILD."""
    repo, graph = load_graph(ctx)
    parent_id = resolve_id(graph, parent, assume_date)
    child_id = resolve_id(graph, child, assume_date)
    exit_on_err(graph.unlink(parent_id, child_id))
    renumbered = commit_graph(ctx, repo, graph)
    print_success(f"Unlinked {renumbered.get(child_id, child_id)} from {renumbered.get(parent_id, parent_id)}")


@app.command("mv")
def move(
    ctx: typer.Context,
    nodes: list[str] = typer.Argument(..., help="Nodes to move, followed by the new parent"),
    assume_date: bool = assume_date_option,
) -> None:
    """Detach nodes from all their parents and put them under a new parent.

    The last argument is the new parent.
    """
    if len(nodes) < 2:
        fail("mv needs at least one node and a new parent")

    repo, graph = load_graph(ctx)
    parent_id = resolve_id(graph, nodes[-1], assume_date)
    moved = []
    for token in nodes[:-1]:
        handle = resolve_id(graph, token, assume_date)
        exit_on_err(move_node(graph, handle, parent_id))
        moved.append(handle)

    renumbered = commit_graph(ctx, repo, graph)
    for handle in moved:
        print_success(f"Moved {renumbered.get(handle, handle)} under {renumbered.get(parent_id, parent_id)}")


@app.command("cp")
def copy(
    ctx: typer.Context,
    nodes: list[str] = typer.Argument(..., help="Nodes to copy, followed by the target parent"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Copy everything below as well"),
    assume_date: bool = assume_date_option,
) -> None:
    """Copy nodes under a target parent.

    With --recursive, a target date that has no node yet is created and
    the children of each source are copied into it.
    """
    if len(nodes) < 2:
        fail("cp needs at least one source and a target")

    repo, graph = load_graph(ctx)
    sources = [resolve_id(graph, token, assume_date) for token in nodes[:-1]]

    target_token = nodes[-1]
    resolved = graph.resolve_date(target_token) if assume_date else graph.resolve(target_token)
    if isinstance(resolved, Err):
        day = parse_date(target_token)
        if isinstance(day, Err):
            fail(str(resolved.error))
        if not recursive:
            fail("Copying to a nonexistent date requires --recursive")
        target = exit_on_err(graph.insert_date(day.value))
        created = format_date(day.value)
        for source in sources:
            for child in graph.children_of(source):
                exit_on_err(copy_recursive(graph, child, target))
    else:
        target = resolved.value
        created = None
        for source in sources:
            if recursive:
                exit_on_err(copy_recursive(graph, source, target))
            else:
                exit_on_err(copy_node(graph, source, target))

    renumbered = commit_graph(ctx, repo, graph)
    target = renumbered.get(target, target)
    if created is not None:
        print_info(f"Created date node {target} for {created}")
    print_success(f"Copied {len(sources)} node(s) to {target}")


@app.command("ord")
def order(
    ctx: typer.Context,
    node: str = typer.Argument(..., help="Node to move within its parent"),
    direction: Direction = typer.Argument(..., help="up or down"),
    count: int = typer.Argument(1, min=1, help="Number of places to move"),
    parent: Optional[str] = typer.Option(None, "--parent", "-P", help="Parent to reorder in"),
    assume_date: bool = assume_date_option,
) -> None:
    """Move a node up or down among its siblings."""
    repo, graph = load_graph(ctx)
    handle = resolve_id(graph, node, assume_date)
    parents = graph.parents_of(handle)

    if parent is not None:
        parent_id = resolve_id(graph, parent, assume_date)
        if parent_id not in parents:
            fail(f"Index {parent_id} is not parent of {handle}!")
    elif not parents:
        fail(f"Node {handle} has no parent")
    else:
        parent_id = parents[0]
        if len(parents) > 1:
            print_info(f"Node has several parents, reordering under {parent_id}. Use --parent to pick another:")
            for other in parents:
                typer.echo(f"* {format_node(graph.node(other))}")

    delta = -count if direction is Direction.UP else count
    position = exit_on_err(graph.reorder_child(handle, parent_id, delta))
    renumbered = commit_graph(ctx, repo, graph)
    print_success(
        f"Node {renumbered.get(handle, handle)} is now at position {position} "
        f"under {renumbered.get(parent_id, parent_id)}"
    )


# =============================================================================
# Node fields
# =============================================================================


@app.command("set")
def set_state(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Node ID"),
    state: TaskState = typer.Argument(..., help="New state"),
    propagate: bool = typer.Option(True, "--propagate/--no-propagate", help="Apply to descendants too"),
    assume_date: bool = assume_date_option,
) -> None:
    """Set a task's completion state."""
    repo, graph = load_graph(ctx)
    handle = resolve_id(graph, id, assume_date)
    exit_on_err(graph.set_state(handle, state, propagate))
    commit_graph(ctx, repo, graph)


def _set_states(ctx: typer.Context, ids: list[str], state: TaskState, assume_date: bool) -> None:
    repo, graph = load_graph(ctx)
    for token in ids:
        exit_on_err(graph.set_state(resolve_id(graph, token, assume_date), state, True))
    commit_graph(ctx, repo, graph)


@app.command("check")
def check(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="Node IDs"),
    assume_date: bool = assume_date_option,
) -> None:
    """Mark tasks (and everything below them) done."""
    _set_states(ctx, ids, TaskState.DONE, assume_date)


@app.command("uncheck")
def uncheck(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="Node IDs"),
    assume_date: bool = assume_date_option,
) -> None:
    """Mark tasks (and everything below them) not done."""
    _set_states(ctx, ids, TaskState.NONE, assume_date)


def _set_archived(ctx: typer.Context, ids: list[str], archived: bool, assume_date: bool) -> None:
    repo, graph = load_graph(ctx)
    for token in ids:
        exit_on_err(graph.set_archived(resolve_id(graph, token, assume_date), archived))
    commit_graph(ctx, repo, graph)


@app.command("arc")
def archive(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="Node IDs"),
    assume_date: bool = assume_date_option,
) -> None:
    """Archive nodes (hidden from listings)."""
    _set_archived(ctx, ids, True, assume_date)


@app.command("unarc")
def unarchive(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="Node IDs"),
    assume_date: bool = assume_date_option,
) -> None:
    """Unarchive nodes."""
    _set_archived(ctx, ids, False, assume_date)


@app.command("alias")
def alias(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Node ID"),
    name: str = typer.Argument(..., help="Alias to give the node"),
    assume_date: bool = assume_date_option,
) -> None:
    """Give a node an alias."""
    repo, graph = load_graph(ctx)
    handle = resolve_id(graph, id, assume_date)
    if name.isdecimal():
        print_warning(f"Alias '{name}' is numeric; the token always resolves as a handle")
    exit_on_err(graph.set_alias(handle, name))
    renumbered = commit_graph(ctx, repo, graph)
    print_success(f"Node {format_id(renumbered.get(handle, handle), name)}")


@app.command("unalias")
def unalias(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="Node IDs"),
    assume_date: bool = assume_date_option,
) -> None:
    """Remove the alias of nodes."""
    repo, graph = load_graph(ctx)
    for token in ids:
        exit_on_err(graph.unset_alias(resolve_id(graph, token, assume_date)))
    commit_graph(ctx, repo, graph)


@app.command("aliases")
def aliases(ctx: typer.Context) -> None:
    """List all aliases."""
    _, graph = load_graph(ctx)
    print_header("Aliases")
    if not graph.aliases:
        typer.echo("No added alias.")
        return
    for name, handle in sorted(graph.aliases.items()):
        typer.echo(f" * {format_id(handle, name)} {graph.node(handle).title}")


@app.command("rename")
def rename(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Node ID"),
    title: str = typer.Argument(..., help="New title"),
    assume_date: bool = assume_date_option,
) -> None:
    """Change a node's title."""
    repo, graph = load_graph(ctx)
    exit_on_err(graph.rename(resolve_id(graph, id, assume_date), title))
    commit_graph(ctx, repo, graph)


# =============================================================================
# Listing
# =============================================================================


@app.command("ls")
def list_nodes(
    ctx: typer.Context,
    id: Optional[str] = typer.Argument(None, help="Node to list (default: all roots)"),
    depth: int = typer.Option(1, "--depth", "-d", min=0, help="Levels to show below the start"),
    recurse: bool = typer.Option(False, "--recurse", "-r", help="Show every level"),
    archived: bool = typer.Option(False, "--archived", "-a", help="Include archived nodes"),
    assume_date: bool = assume_date_option,
) -> None:
    """List the roots, or a node and its children, as a tree."""
    _, graph = load_graph(ctx)
    max_depth = None if recurse else depth

    if id is None:
        print_traversal(graph, list(graph.roots), archived, max_depth)
        return

    handle = resolve_id(graph, id, assume_date)
    # An explicitly named node is shown even when archived
    include = archived or graph.node(handle).metadata.archived
    print_traversal(graph, [handle], include, max_depth)


@app.command("lsd")
def list_dates(
    ctx: typer.Context,
    archived: bool = typer.Option(False, "--archived", "-a", help="Include archived nodes"),
) -> None:
    """List date nodes with their children, oldest first."""
    _, graph = load_graph(ctx)
    starts = [handle for _, handle in sorted(graph.dates.items())]
    print_traversal(graph, starts, archived, 1)


@app.command("lsa")
def list_archived(ctx: typer.Context) -> None:
    """List archived nodes with their children."""
    _, graph = load_graph(ctx)
    print_traversal(graph, list(graph.archived), True, 1)


def _print_stats(stats: NodeStats) -> None:
    typer.echo(f"Tasks:    {stats.total}")
    typer.echo(f"Done:     {stats.done}")
    typer.echo(f"Partial:  {stats.partial}")
    typer.echo(f"Not done: {stats.none}")
    if stats.pseudo:
        typer.echo(f"Pseudo:   {stats.pseudo}")
    if stats.dates:
        typer.echo(f"Dates:    {stats.dates}")
    typer.echo(f"Progress: {stats.progress_percent}%")


@app.command("stats")
def stats(
    ctx: typer.Context,
    id: Optional[str] = typer.Argument(None, help="Node to summarize (default: whole graph)"),
    assume_date: bool = assume_date_option,
) -> None:
    """Show completion statistics."""
    _, graph = load_graph(ctx)
    if id is None:
        print_header("Graph")
        _print_stats(graph_stats(graph))
        return

    handle = resolve_id(graph, id, assume_date)
    print_header(format_node(graph.node(handle)))
    _print_stats(exit_on_err(node_stats(graph, handle)))


# =============================================================================
# Maintenance and interchange
# =============================================================================


@app.command("clean")
def clean(ctx: typer.Context) -> None:
    """Drop removed nodes and renumber handles densely."""
    repo, graph = load_graph(ctx)
    before = len(graph)
    mapping = graph.clean()
    exit_on_err(repo.save(graph))
    print_success(f"Cleaned graph: {before - len(mapping)} slot(s) reclaimed")


@app.command("export")
def export(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout"),
) -> None:
    """Export the graph document as JSON."""
    _, graph = load_graph(ctx)
    text = encode_json(graph)
    if output is None:
        typer.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    print_success(f"Exported to {output}")


@app.command("import")
def import_(
    ctx: typer.Context,
    source: Optional[Path] = typer.Argument(None, help="JSON file (default: stdin)"),
) -> None:
    """Replace the graph with a JSON document."""
    if source is None:
        text = typer.get_text_stream("stdin").read()
    else:
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as e:
            fail(f"Cannot read {source}: {e}")

    graph = exit_on_err(decode_json(text))
    repo = graph_repository(ctx)
    commit_graph(ctx, repo, graph)
    print_success(f"Imported {graph.node_count()} node(s)")
