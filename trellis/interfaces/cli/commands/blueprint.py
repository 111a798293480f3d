"""Blueprint CLI commands.

Blueprints are reusable subtrees kept as YAML files in the blueprint
store directory (see the ``blueprints.store_path`` config key).
"""

from pathlib import Path
from typing import Optional

import typer

from trellis.domain.blueprint import extract_blueprint, graph_from_blueprint, import_blueprint
from trellis.infrastructure.storage import dump_blueprint
from trellis.interfaces.cli.common import (
    assume_date_option,
    blueprint_repository,
    commit_graph,
    exit_on_err,
    fail,
    load_graph,
    print_header,
    print_listing,
    print_success,
    resolve_id,
)

app = typer.Typer(help="Blueprint commands", no_args_is_help=True)


@app.command("save")
def save(
    ctx: typer.Context,
    id: str = typer.Argument(..., help="Root of the subtree to save"),
    name: str = typer.Argument(..., help="Blueprint name"),
    author: Optional[str] = typer.Option(None, "--author", help="Author recorded in the blueprint"),
    to_file: bool = typer.Option(False, "--to-file", help="Write <name>.yaml in the current directory"),
    preserve: bool = typer.Option(False, "--preserve", help="Keep the subtree in the graph"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing blueprint"),
    assume_date: bool = assume_date_option,
) -> None:
    """Save a subtree as a blueprint.

    The subtree is removed from the graph afterwards unless --preserve
    is given.
    """
    repo, graph = load_graph(ctx)
    handle = resolve_id(graph, id, assume_date)
    blueprint = exit_on_err(extract_blueprint(graph, handle, title=name, author=author))

    if to_file:
        path = Path.cwd() / f"{name}.yaml"
        if path.exists() and not overwrite:
            fail(f"Blueprint file already exists at {path}")
        try:
            path.write_text(dump_blueprint(blueprint), encoding="utf-8")
        except OSError as e:
            fail(f"Cannot write {path}: {e}")
    else:
        path = exit_on_err(blueprint_repository(ctx).save(name, blueprint, overwrite))
    print_success(f"Blueprint written to {path}")

    if not preserve:
        exit_on_err(graph.remove_children_recursive(handle))
        commit_graph(ctx, repo, graph)


@app.command("ins")
def insert(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Blueprint name or file path"),
    id: Optional[str] = typer.Argument(None, help="Parent to insert under"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Title for the inserted root"),
    root: bool = typer.Option(False, "--root", "-r", help="Insert as a new root"),
    assume_date: bool = assume_date_option,
) -> None:
    """Insert a blueprint under a node, or as a root with --root."""
    if not root and id is None:
        fail("Parent ID required (or use --root)")

    blueprint = exit_on_err(blueprint_repository(ctx).load(name))
    repo, graph = load_graph(ctx)
    parent = None if root else resolve_id(graph, id, assume_date)
    handle = exit_on_err(import_blueprint(graph, blueprint, parent, title))
    renumbered = commit_graph(ctx, repo, graph)
    print_success(f"Inserted blueprint '{name}' at node {renumbered.get(handle, handle)}")


@app.command("show")
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Blueprint name or file path"),
) -> None:
    """Show a blueprint as a tree."""
    blueprint = exit_on_err(blueprint_repository(ctx).load(name))
    graph = exit_on_err(graph_from_blueprint(blueprint))
    byline = f" by {blueprint.author}" if blueprint.author else ""
    print_header(f"Blueprint '{name}'{byline}")
    print_listing(exit_on_err(graph.traverse([0], include_archived=True)))


@app.command("ls")
def list_blueprints(ctx: typer.Context) -> None:
    """List stored blueprints."""
    names = exit_on_err(blueprint_repository(ctx).list_names())
    print_header("Blueprints")
    if not names:
        typer.echo("No saved blueprints.")
        return
    for name in names:
        typer.echo(f" * {name}")


@app.command("rm")
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Blueprint name"),
) -> None:
    """Delete a stored blueprint."""
    store = blueprint_repository(ctx)
    exit_on_err(store.delete(name))
    print_success(f"Deleted blueprint {store.path_for(name)}")


@app.command("export")
def export(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Blueprint name or file path"),
) -> None:
    """Print a blueprint's YAML."""
    blueprint = exit_on_err(blueprint_repository(ctx).load(name))
    typer.echo(dump_blueprint(blueprint), nl=False)
