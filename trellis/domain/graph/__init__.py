"""Graph domain - the task graph engine.

All exports are pure (no I/O). Mutating operations return Results.

Key Types:
    Graph - Node store plus root, archived, date, and alias indices
    Node - A task, date, or pseudo node
    NodeMetadata - Index, alias, archived flag, and edges of a node
    TaskState - Completion state of a task node
    NodeType - Type tag of a node

Functions:
    resolve - Turn a handle, date, or alias token into a handle
    traverse - Depth-first walk with cycle detection
    parse_date - Parse absolute, relative, and month-name dates

Errors:
    InvalidHandle, MalformedHandle, InvalidAlias, InvalidDate,
    MalformedDate, CycleDetected, NotTaskNode, NotAChild
"""

from .dates import format_date, parse_absolute, parse_date
from .errors import (
    CycleDetected,
    GraphError,
    InvalidAlias,
    InvalidDate,
    InvalidHandle,
    MalformedDate,
    MalformedHandle,
    NotAChild,
    NotTaskNode,
)
from .graph import Graph, NodeRef
from .models import (
    DateData,
    Node,
    NodeMetadata,
    NodeType,
    PseudoData,
    TaskData,
    TaskState,
)
from .resolver import resolve, resolve_date
from .traversal import collect_reachable, traverse

__all__ = [
    # Models
    "Graph",
    "NodeRef",
    "Node",
    "NodeMetadata",
    "NodeType",
    "TaskState",
    "TaskData",
    "DateData",
    "PseudoData",
    # Errors
    "GraphError",
    "InvalidHandle",
    "MalformedHandle",
    "InvalidAlias",
    "InvalidDate",
    "MalformedDate",
    "CycleDetected",
    "NotTaskNode",
    "NotAChild",
    # Functions
    "resolve",
    "resolve_date",
    "traverse",
    "collect_reachable",
    "format_date",
    "parse_absolute",
    "parse_date",
]
