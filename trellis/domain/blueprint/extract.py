"""Blueprint extraction and insertion.

``extract_blueprint`` copies everything reachable below a node into a
self-contained ``Blueprint`` whose positions start at 0 for the subtree
root. ``import_blueprint`` inserts such a copy back into a graph with
fresh handles and cleared completion state.
"""

import logging
from dataclasses import dataclass

from trellis.domain.blueprint.models import Blueprint
from trellis.domain.document.models import MetadataRecord, NodeRecord
from trellis.domain.graph.errors import GraphError
from trellis.domain.graph.graph import Graph, NodeRef
from trellis.domain.graph.models import Node, NodeMetadata, NodeType, PseudoData, TaskData, TaskState
from trellis.domain.graph.traversal import collect_reachable
from trellis.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmptyBlueprint(GraphError):
    title: str

    def __str__(self) -> str:
        return f"Blueprint has no nodes: '{self.title}'"


def blueprint_positions(graph: Graph, root: int) -> dict[int, int]:
    """Map each handle reachable from ``root`` to its pre-order position."""
    return {handle: position for position, handle in enumerate(collect_reachable(graph, root))}


def extract_blueprint(
    graph: Graph,
    root_id: NodeRef,
    title: str | None = None,
    author: str | None = None,
) -> Result[Blueprint, GraphError]:
    """Copy the subtree rooted at ``root_id`` into a blueprint.

    Nodes are numbered in pre-order (parent before children, children in
    order), each once. Edges leaving the subtree are dropped and the root
    has no parents. Aliases and archived flags are not carried over, and
    date nodes become plain task nodes.

    Args:
        graph: Source graph.
        root_id: Handle or token of the subtree root.
        title: Blueprint title. Defaults to the root node's title.
        author: Optional author name.

    Returns:
        Ok(Blueprint) or the resolver's error.
    """
    resolved = graph.resolve(root_id)
    if isinstance(resolved, Err):
        return resolved
    root = resolved.value

    positions = blueprint_positions(graph, root)
    records: list[NodeRecord] = []
    for handle, position in positions.items():
        node = graph.node(handle)
        node_type = NodeType.PSEUDO if node.is_pseudo() else NodeType.TASK
        state = None if node.is_pseudo() else (node.state or TaskState.NONE)
        parents = [] if position == 0 else [positions[p] for p in node.metadata.parents if p in positions]
        records.append(
            NodeRecord(
                title=node.title,
                type=node_type,
                state=state,
                metadata=MetadataRecord(
                    index=position,
                    parents=parents,
                    children=[positions[c] for c in node.metadata.children if c in positions],
                ),
            )
        )

    return Ok(
        Blueprint(
            title=graph.node(root).title if title is None else title,
            author=author,
            nodes=records,
        )
    )


def _fresh_node(record: NodeRecord) -> Node:
    """Instantiate a blueprint record with cleared state."""
    data = PseudoData() if record.type is NodeType.PSEUDO else TaskData(state=TaskState.NONE)
    return Node(
        title=record.title,
        data=data,
        metadata=NodeMetadata(
            index=record.metadata.index,
            parents=list(record.metadata.parents),
            children=list(record.metadata.children),
        ),
    )


def import_blueprint(
    graph: Graph,
    blueprint: Blueprint,
    target_parent: NodeRef | None = None,
    title: str | None = None,
) -> Result[int, GraphError]:
    """Insert a blueprint as a new subtree.

    Args:
        graph: Graph to insert into.
        blueprint: The blueprint to instantiate.
        target_parent: Handle or token of the parent, or None for a new root.
        title: Replacement title for the subtree root.

    Returns:
        Ok(handle of the new subtree root), Err(EmptyBlueprint), or the
        resolver's error.
    """
    if blueprint.is_empty():
        return Err(EmptyBlueprint(blueprint.title))

    nodes = [_fresh_node(record) for record in blueprint.nodes]
    if title is not None:
        nodes[0].title = title

    result = graph.insert_subtree(nodes, target_parent)
    if isinstance(result, Ok):
        logger.info(f"Inserted blueprint '{blueprint.title}' at node {result.value}")
    return result


def graph_from_blueprint(blueprint: Blueprint) -> Result[Graph, GraphError]:
    """Build a standalone graph holding only the blueprint (root is handle 0)."""
    graph = Graph()
    result = import_blueprint(graph, blueprint)
    if isinstance(result, Err):
        return result
    return Ok(graph)
