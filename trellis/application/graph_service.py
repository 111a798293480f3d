"""Graph application service.

Multi-step graph operations used by the command line: copying, moving,
statistics, and the auto-clean policy. Everything here works on an
in-memory graph; nothing performs I/O.
"""

import logging

from pydantic import BaseModel

from trellis.config import GraphConfig, TrellisConfig
from trellis.domain.graph import Graph, GraphError, NodeRef, TaskState, collect_reachable
from trellis.domain.shared import Err, Ok, Result, flat_map

logger = logging.getLogger(__name__)


class NodeStats(BaseModel):
    """Completion summary below a node (or over a whole graph).

    Only task nodes count towards ``total``; pseudo and date nodes are
    reported separately.
    """

    total: int = 0
    done: int = 0
    partial: int = 0
    none: int = 0
    pseudo: int = 0
    dates: int = 0

    @property
    def progress_percent(self) -> float:
        """Calculate completion percentage."""
        if self.total == 0:
            return 0.0
        return round(self.done / self.total * 100, 1)


def _count(graph: Graph, handles: list[int]) -> NodeStats:
    stats = NodeStats()
    for handle in handles:
        node = graph.node(handle)
        if node.is_pseudo():
            stats.pseudo += 1
        elif node.is_date():
            stats.dates += 1
        else:
            stats.total += 1
            if node.state is TaskState.DONE:
                stats.done += 1
            elif node.state is TaskState.PARTIAL:
                stats.partial += 1
            else:
                stats.none += 1
    return stats


def node_stats(graph: Graph, node_id: NodeRef) -> Result[NodeStats, GraphError]:
    """Count the nodes below ``node_id`` (the node itself excluded)."""
    resolved = graph.resolve(node_id)
    if isinstance(resolved, Err):
        return resolved
    root = resolved.value

    # Shared and cyclic descendants are counted once
    seen = {root}
    stack = list(reversed(graph.children_of(root)))
    below: list[int] = []
    while stack:
        handle = stack.pop()
        if handle in seen:
            continue
        seen.add(handle)
        below.append(handle)
        stack.extend(reversed(graph.children_of(handle)))
    return Ok(_count(graph, below))


def graph_stats(graph: Graph) -> NodeStats:
    """Count every live node in the graph."""
    return _count(graph, graph.handles())


def copy_node(graph: Graph, source_id: NodeRef, target_id: NodeRef) -> Result[int, GraphError]:
    """Insert a copy of a node (title, pseudo flag, state) under a target.

    Date nodes are copied as task nodes since a day can only be
    registered once.

    Returns:
        Ok(handle of the copy) or the resolver's error.
    """
    resolved = graph.resolve(source_id)
    if isinstance(resolved, Err):
        return resolved
    source = graph.node(resolved.value)

    inserted = graph.insert_child(source.title, target_id, pseudo=source.is_pseudo())
    if isinstance(inserted, Err):
        return inserted
    copy = inserted.value

    if source.is_task() and source.state is not TaskState.NONE:
        result = graph.set_state(copy, source.state, propagate=True)
        if isinstance(result, Err):
            return result
    return Ok(copy)


def copy_recursive(graph: Graph, source_id: NodeRef, target_id: NodeRef) -> Result[int, GraphError]:
    """Copy a node and everything below it under a target.

    Shared descendants are copied once and keep their shared shape;
    back edges of a cycle are reproduced inside the copy.

    Returns:
        Ok(handle of the copied root) or the resolver's error.
    """
    resolved = graph.resolve(source_id)
    if isinstance(resolved, Err):
        return resolved
    source = resolved.value

    target = graph.resolve(target_id)
    if isinstance(target, Err):
        return target

    # Snapshot the source shape so copies placed inside it are not copied again
    original_children = {h: graph.children_of(h) for h in collect_reachable(graph, source)}

    copy_root = copy_node(graph, source, target.value)
    if isinstance(copy_root, Err):
        return copy_root

    copies = {source: copy_root.value}
    # Each entry is a source parent whose children still need copying
    stack = [source]
    while stack:
        parent = stack.pop()
        for child in original_children[parent]:
            if child in copies:
                linked = graph.link(copies[parent], copies[child])
                if isinstance(linked, Err):
                    return linked
                continue
            copied = copy_node(graph, child, copies[parent])
            if isinstance(copied, Err):
                return copied
            copies[child] = copied.value
            stack.append(child)

    logger.debug(f"Copied {len(copies)} nodes from {source} under {target.value}")
    return Ok(copy_root.value)


def move_node(graph: Graph, node_id: NodeRef, new_parent_id: NodeRef) -> Result[None, GraphError]:
    """Detach a node from all its parents and link it under a new parent."""
    resolved = graph.resolve(node_id)
    if isinstance(resolved, Err):
        return resolved
    parent = graph.resolve(new_parent_id)
    if isinstance(parent, Err):
        return parent

    return flat_map(
        graph.clean_parents(resolved.value),
        lambda _: graph.link(parent.value, resolved.value),
    )


def should_auto_clean(graph: Graph, config: GraphConfig) -> bool:
    """Whether the tombstone share exceeds the configured threshold."""
    if not config.auto_clean or len(graph) == 0:
        return False
    share = graph.tombstone_count() / len(graph) * 100
    return share > config.auto_clean_threshold


def auto_clean(graph: Graph, config: TrellisConfig) -> dict[int, int] | None:
    """Run ``clean`` when the config asks for it.

    Returns:
        The old to new handle mapping when a clean ran, else None.
    """
    if not should_auto_clean(graph, config.graph):
        return None
    logger.info(f"Auto-cleaning graph with {graph.tombstone_count()} tombstones")
    return graph.clean()
