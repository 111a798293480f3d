"""Graph traversal.

All walks here use explicit stacks so very deep graphs cannot exhaust the
interpreter stack, and all of them survive cycles: ``traverse`` reports a
re-entry as ``CycleDetected``, ``collect_reachable`` visits every node once.
"""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from trellis.domain.graph.errors import CycleDetected, GraphError, InvalidHandle
from trellis.domain.graph.models import Node
from trellis.domain.shared.result import Err, Ok, Result

if TYPE_CHECKING:
    from trellis.domain.graph.graph import Graph


def traverse(
    graph: "Graph",
    start_handles: Iterable[int],
    include_archived: bool = False,
    max_depth: int | None = None,
) -> Result[list[tuple[Node, int]], GraphError]:
    """Walk the graph depth-first from each start handle.

    Start nodes are emitted at depth 0, their children at depth 1 and so
    on, in child order. A node shared by several parents is emitted once
    per path that reaches it.

    Args:
        graph: The graph to walk.
        start_handles: Handles to start from, in order.
        include_archived: Whether archived nodes (and everything below
            them) are emitted.
        max_depth: Deepest level to emit, or None for no limit.

    Returns:
        Ok(list of (node, depth)) or Err(InvalidHandle) for a bad start
        handle, Err(CycleDetected(start, reentered)) when a walk re-enters
        a node already on its current path.
    """
    visits: list[tuple[Node, int]] = []

    for start in list(start_handles):
        if not graph.is_live(start):
            return Err(InvalidHandle(start))
        root = graph.node(start)
        if root.metadata.archived and not include_archived:
            continue
        visits.append((root, 0))

        path = [start]
        on_path = {start}
        stack: list[Iterator[int]] = [iter(list(root.metadata.children))]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                on_path.discard(path.pop())
                continue

            depth = len(path)
            if max_depth is not None and depth > max_depth:
                continue
            if child in on_path:
                return Err(CycleDetected(start, child))

            node = graph.node(child)
            if node.metadata.archived and not include_archived:
                continue
            visits.append((node, depth))

            path.append(child)
            on_path.add(child)
            stack.append(iter(list(node.metadata.children)))

    return Ok(visits)


def collect_reachable(graph: "Graph", handle: int) -> list[int]:
    """Return ``handle`` and every node reachable below it, in pre-order.

    Children are visited in order; each node appears once even when it
    is shared or part of a cycle.
    """
    order: list[int] = []
    seen: set[int] = set()
    stack = [handle]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        order.append(current)
        stack.extend(reversed(graph.node(current).metadata.children))
    return order
