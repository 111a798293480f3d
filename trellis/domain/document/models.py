"""Wire records for the persisted document.

These models describe the current on-disk shape exactly (unknown fields
are rejected), so a document written by an older release fails strict
validation and is handed to the legacy decoders instead.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, model_validator

from trellis.domain.graph.models import (
    DateData,
    Node,
    NodeMetadata,
    NodeType,
    PseudoData,
    TaskData,
    TaskState,
)

# Bump whenever the document or node shape changes
VERSION = 5


class MetadataRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    archived: bool = False
    index: int
    alias: str | None = None
    parents: list[int] = Field(default_factory=list)
    children: list[int] = Field(default_factory=list)


class NodeRecord(BaseModel):
    """Flat wire form of a node.

    ``state`` is only set for task nodes and ``date`` only for date nodes.
    """

    model_config = ConfigDict(extra="forbid")

    title: str
    type: NodeType
    state: TaskState | None = None
    date: dt.date | None = None
    metadata: MetadataRecord

    @model_validator(mode="after")
    def _check_variant(self) -> "NodeRecord":
        if self.type is not NodeType.TASK and self.state is not None:
            raise ValueError(f"{self.type.value} node cannot carry a state")
        if self.type is NodeType.DATE and self.date is None:
            raise ValueError("date node is missing its date")
        if self.type is not NodeType.DATE and self.date is not None:
            raise ValueError(f"{self.type.value} node cannot carry a date")
        return self

    @classmethod
    def from_node(cls, node: Node) -> "NodeRecord":
        meta = node.metadata
        return cls(
            title=node.title,
            type=node.type,
            state=node.state,
            date=node.day,
            metadata=MetadataRecord(
                archived=meta.archived,
                index=meta.index,
                alias=meta.alias,
                parents=list(meta.parents),
                children=list(meta.children),
            ),
        )

    def to_node(self) -> Node:
        if self.type is NodeType.DATE:
            data = DateData(day=self.date)
        elif self.type is NodeType.PSEUDO:
            data = PseudoData()
        else:
            data = TaskData(state=self.state or TaskState.NONE)
        return Node(
            title=self.title,
            data=data,
            metadata=NodeMetadata(**self.metadata.model_dump()),
        )


class GraphRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nodes: list[NodeRecord | None]
    roots: list[int]
    archived: list[int]
    dates: dict[str, int]
    aliases: dict[str, int]


class DocumentRecord(BaseModel):
    """Top level persisted document: ``{version, graph}``."""

    model_config = ConfigDict(extra="forbid")

    version: int
    graph: GraphRecord
