"""Tolerant decoders for documents written by older releases.

Each known document version has its own decoder in ``DECODERS``. All of
them share the same repair rules: missing fields default to empty values,
node-local aliases are merged into the alias table (the node's own value
wins), and references to absent nodes are dropped.

Known shapes:

- v1 to v3: flat nodes with ``message`` and ``state``
  (``None | Partial | Complete | Pseudo``), no archived flag.
- v4: flat nodes with ``message``, ``type``, ``state``, ``archived``.
- v5: the current shape, read leniently.
"""

import datetime as dt
import logging
from collections.abc import Callable
from typing import Any

from trellis.domain.document.errors import ParseError
from trellis.domain.graph.dates import parse_absolute
from trellis.domain.graph.graph import Graph
from trellis.domain.graph.models import (
    DateData,
    Node,
    NodeMetadata,
    PseudoData,
    TaskData,
    TaskState,
)
from trellis.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

NodeBuilder = Callable[[dict[str, Any], dt.date | None], Node]

_STATES = {
    "none": TaskState.NONE,
    "partial": TaskState.PARTIAL,
    "complete": TaskState.DONE,
    "done": TaskState.DONE,
}


def decode_legacy(raw: dict[str, Any]) -> Result[Graph, ParseError]:
    """Decode a document with the decoder registered for its version.

    Args:
        raw: The parsed payload (a mapping with ``version`` and ``graph``).

    Returns:
        Ok(Graph) or Err(ParseError) when the version is missing or unknown
        or the payload cannot be repaired.
    """
    version = raw.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        return Err(ParseError("version field does not exist"))

    decoder = DECODERS.get(version)
    if decoder is None:
        return Err(ParseError(f"no decoder for document version {version}"))

    graph_doc = raw.get("graph") or {}
    if not isinstance(graph_doc, dict):
        return Err(ParseError("graph must be a mapping"))

    try:
        graph = decoder(graph_doc)
    except (TypeError, ValueError) as e:
        return Err(ParseError(f"version {version} document: {e}"))

    logger.info(f"Loaded version {version} document with {graph.node_count()} nodes")
    return Ok(graph)


# =============================================================================
# Field helpers
# =============================================================================


def _int(value: Any, what: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{what} must be a non-negative integer, got {value!r}")
    return value


def _int_list(value: Any, what: str) -> list[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list")
    return [_int(item, what) for item in value]


def _int_map(value: Any, what: str) -> dict[str, int]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping")
    return {str(key): _int(item, what) for key, item in value.items()}


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _metadata(fields: dict[str, Any]) -> NodeMetadata:
    alias = fields.get("alias")
    return NodeMetadata(
        archived=bool(fields.get("archived", False)),
        alias=None if alias is None else str(alias),
        parents=_int_list(fields.get("parents"), "parents"),
        children=_int_list(fields.get("children"), "children"),
    )


def _data(kind: str, state: str, day: dt.date | None) -> TaskData | DateData | PseudoData:
    """Pick the node variant, preferring the date table over declared tags."""
    if day is not None:
        return DateData(day=day)
    if kind == "pseudo" or state == "pseudo":
        return PseudoData()
    return TaskData(state=_STATES.get(state, TaskState.NONE))


# =============================================================================
# Per-version node builders
# =============================================================================


def _node_v3(entry: dict[str, Any], day: dt.date | None) -> Node:
    meta = _metadata(entry)
    meta.archived = False
    state = _text(entry.get("state")).lower()
    return Node(title=_text(entry.get("message")), data=_data("", state, day), metadata=meta)


def _node_v4(entry: dict[str, Any], day: dt.date | None) -> Node:
    kind = _text(entry.get("type")).lower()
    state = _text(entry.get("state")).lower()
    return Node(title=_text(entry.get("message")), data=_data(kind, state, day), metadata=_metadata(entry))


def _node_v5(entry: dict[str, Any], day: dt.date | None) -> Node:
    kind = _text(entry.get("type")).lower()
    state = _text(entry.get("state")).lower()
    if day is None and kind == "date" and entry.get("date") is not None:
        raw_day = entry["date"]
        if isinstance(raw_day, dt.date):
            day = raw_day
        else:
            parsed = parse_absolute(str(raw_day))
            if isinstance(parsed, Err):
                raise ValueError(str(parsed.error))
            day = parsed.value
    metadata = entry.get("metadata")
    fields = metadata if isinstance(metadata, dict) else entry
    return Node(title=_text(entry.get("title")), data=_data(kind, state, day), metadata=_metadata(fields))


# =============================================================================
# Assembly
# =============================================================================


def _assemble(graph_doc: dict[str, Any], build: NodeBuilder) -> Graph:
    """Build a graph from a legacy graph mapping and repair its indices."""
    roots = _int_list(graph_doc.get("roots"), "roots")
    archived = _int_list(graph_doc.get("archived"), "archived")
    dates = _int_map(graph_doc.get("dates"), "dates")
    aliases = _int_map(graph_doc.get("aliases"), "aliases")

    day_of: dict[int, dt.date] = {}
    for key, handle in dates.items():
        parsed = parse_absolute(key)
        if isinstance(parsed, Ok):
            day_of[handle] = parsed.value

    raw_nodes = graph_doc.get("nodes") or []
    if not isinstance(raw_nodes, list):
        raise ValueError("nodes must be a list")

    nodes: list[Node | None] = []
    for slot, entry in enumerate(raw_nodes):
        if entry is None:
            nodes.append(None)
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"node {slot} must be a mapping")
        node = build(entry, day_of.get(slot))
        node.metadata.index = slot
        nodes.append(node)

    live = {slot for slot, node in enumerate(nodes) if node is not None}

    # Node-local aliases win over the table
    for slot in sorted(live):
        alias = nodes[slot].metadata.alias
        if alias is not None:
            aliases[alias] = slot
    dropped = {alias: handle for alias, handle in aliases.items() if handle not in live}
    for alias, handle in dropped.items():
        logger.warning(f"Dropping alias '{alias}' to missing node {handle}")
        del aliases[alias]
    for slot in live:
        nodes[slot].metadata.alias = None
    for alias, handle in aliases.items():
        nodes[handle].metadata.alias = alias

    for slot in live:
        meta = nodes[slot].metadata
        meta.parents = [p for p in dict.fromkeys(meta.parents) if p in live]
        meta.children = [c for c in dict.fromkeys(meta.children) if c in live]
        if meta.archived and slot not in archived:
            archived.append(slot)

    date_table = {
        key: handle
        for key, handle in dates.items()
        if handle in live and nodes[handle].is_date()
    }
    return Graph.from_parts(
        nodes=nodes,
        roots=[h for h in dict.fromkeys(roots) if h in live and h not in day_of],
        archived=[h for h in dict.fromkeys(archived) if h in live],
        dates=date_table,
        aliases=aliases,
    )


def _decode_v3(graph_doc: dict[str, Any]) -> Graph:
    graph_doc = {**graph_doc, "archived": []}
    return _assemble(graph_doc, _node_v3)


def _decode_v4(graph_doc: dict[str, Any]) -> Graph:
    return _assemble(graph_doc, _node_v4)


def _decode_v5(graph_doc: dict[str, Any]) -> Graph:
    return _assemble(graph_doc, _node_v5)


DECODERS: dict[int, Callable[[dict[str, Any]], Graph]] = {
    1: _decode_v3,
    2: _decode_v3,
    3: _decode_v3,
    4: _decode_v4,
    5: _decode_v5,
}
