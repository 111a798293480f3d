"""Document codec.

The primary file encoding is YAML; JSON is the interchange encoding used
by export and import. Both carry the same document: ``{version, graph}``.

Decoding tries the strict current schema first and falls back to the
legacy decoders keyed by the declared version. A current document that
validates but points at missing nodes goes through the same fallback, which
drops those references.
"""

import json
import logging
from typing import Any, Literal

import yaml
from pydantic import ValidationError

from trellis.domain.document.compat import decode_legacy
from trellis.domain.document.errors import ParseError
from trellis.domain.document.models import VERSION, DocumentRecord, GraphRecord, NodeRecord
from trellis.domain.graph.graph import Graph
from trellis.domain.graph.models import Node
from trellis.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

Format = Literal["yaml", "json"]


def to_record(graph: Graph) -> DocumentRecord:
    """Wrap a graph in a current-version document record."""
    return DocumentRecord(
        version=VERSION,
        graph=GraphRecord(
            nodes=[None if node is None else NodeRecord.from_node(node) for node in graph.nodes],
            roots=list(graph.roots),
            archived=list(graph.archived),
            dates=dict(graph.dates),
            aliases=dict(graph.aliases),
        ),
    )


def from_record(record: DocumentRecord) -> Result[Graph, ParseError]:
    """Build a graph from a strictly validated record.

    Fails when any index in the record points outside the node list or
    at a tombstone.
    """
    nodes: list[Node | None] = [None if r is None else r.to_node() for r in record.graph.nodes]
    graph = Graph.from_parts(
        nodes=nodes,
        roots=list(record.graph.roots),
        archived=list(record.graph.archived),
        dates=dict(record.graph.dates),
        aliases=dict(record.graph.aliases),
    )
    problem = _dangling_reference(graph)
    if problem is not None:
        return Err(ParseError(problem))
    return Ok(graph)


def _dangling_reference(graph: Graph) -> str | None:
    for slot, node in enumerate(graph.nodes):
        if node is None:
            continue
        if node.metadata.index != slot:
            return f"node {slot} declares index {node.metadata.index}"
        for handle in node.metadata.parents + node.metadata.children:
            if not graph.is_live(handle):
                return f"node {slot} references missing node {handle}"
    indexed = list(graph.roots) + list(graph.archived)
    indexed += list(graph.dates.values()) + list(graph.aliases.values())
    for handle in indexed:
        if not graph.is_live(handle):
            return f"index references missing node {handle}"
    return None


def encode(graph: Graph, fmt: Format = "yaml") -> str:
    """Serialize a graph as a current-version document."""
    data = to_record(graph).model_dump(mode="json")
    if fmt == "json":
        return json.dumps(data, indent=2)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def decode(text: str, fmt: Format = "yaml") -> Result[Graph, ParseError]:
    """Parse a document into a graph.

    A payload with nothing but whitespace is a fresh, empty graph.

    Args:
        text: The raw file contents.
        fmt: ``"yaml"`` or ``"json"``.

    Returns:
        Ok(Graph) or Err(ParseError).
    """
    if not text.strip():
        return Ok(Graph())

    raw = _load(text, fmt)
    if isinstance(raw, Err):
        return raw
    data = raw.value
    if not isinstance(data, dict):
        return Err(ParseError("document must be a mapping"))

    try:
        record = DocumentRecord.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Strict decode failed, trying legacy decoders: {e.error_count()} errors")
        return decode_legacy(data)

    if record.version != VERSION:
        return decode_legacy(data)

    strict = from_record(record)
    if isinstance(strict, Err):
        logger.warning(f"Repairing document: {strict.error}")
        return decode_legacy(data)
    return strict


def _load(text: str, fmt: Format) -> Result[Any, ParseError]:
    try:
        if fmt == "json":
            return Ok(json.loads(text))
        return Ok(yaml.safe_load(text))
    except json.JSONDecodeError as e:
        return Err(ParseError(f"invalid JSON: {e}"))
    except yaml.YAMLError as e:
        return Err(ParseError(f"invalid YAML: {e}"))


def encode_json(graph: Graph) -> str:
    return encode(graph, "json")


def decode_json(text: str) -> Result[Graph, ParseError]:
    return decode(text, "json")
