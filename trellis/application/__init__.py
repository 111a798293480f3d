"""Application service layer for Trellis.

Services orchestrate several graph operations without performing I/O.

Example usage:
    >>> from trellis.application import copy_recursive, graph_stats
    >>> from trellis.domain.shared import is_ok
    >>>
    >>> result = copy_recursive(graph, "weekly", "today")
    >>> if is_ok(result):
    ...     print(f"Copied to node {result.value}")
"""

from trellis.application.graph_service import (
    NodeStats,
    auto_clean,
    copy_node,
    copy_recursive,
    graph_stats,
    move_node,
    node_stats,
    should_auto_clean,
)

__all__ = [
    "NodeStats",
    "node_stats",
    "graph_stats",
    "copy_node",
    "copy_recursive",
    "move_node",
    "auto_clean",
    "should_auto_clean",
]
