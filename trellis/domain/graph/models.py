"""Graph domain models.

Pure domain models for the task graph. Uses Pydantic so nodes can be
cloned, compared, and handed to the document codec without extra glue.

A node's content is a tagged variant: task nodes carry a completion
state, date nodes carry a calendar day, pseudo nodes carry nothing.
Combinations such as a date node with a partial state cannot be built.
"""

import datetime as dt
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TaskState(str, Enum):
    """Completion state of a task node."""

    NONE = "none"
    PARTIAL = "partial"
    DONE = "done"


class NodeType(str, Enum):
    """Type tag of a node."""

    TASK = "task"
    DATE = "date"
    # Does not count towards parent completion
    PSEUDO = "pseudo"


class TaskData(BaseModel):
    kind: Literal["task"] = "task"
    state: TaskState = TaskState.NONE


class DateData(BaseModel):
    kind: Literal["date"] = "date"
    day: dt.date


class PseudoData(BaseModel):
    kind: Literal["pseudo"] = "pseudo"


NodeData = Annotated[Union[TaskData, DateData, PseudoData], Field(discriminator="kind")]  # noqa: UP007


class NodeMetadata(BaseModel):
    """Graph bookkeeping stored on each node.

    ``index`` always equals the node's slot in the graph's node store.
    ``parents`` and ``children`` are ordered and free of duplicates.
    """

    archived: bool = False
    index: int = 0
    alias: str | None = None
    parents: list[int] = Field(default_factory=list)
    children: list[int] = Field(default_factory=list)


class Node(BaseModel):
    """A node in the task graph (task, date, or pseudo node)."""

    title: str
    data: NodeData = Field(default_factory=TaskData)
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)

    @classmethod
    def task(cls, title: str, index: int, state: TaskState = TaskState.NONE) -> "Node":
        return cls(title=title, data=TaskData(state=state), metadata=NodeMetadata(index=index))

    @classmethod
    def pseudo(cls, title: str, index: int) -> "Node":
        return cls(title=title, data=PseudoData(), metadata=NodeMetadata(index=index))

    @classmethod
    def date(cls, title: str, index: int, day: dt.date) -> "Node":
        return cls(title=title, data=DateData(day=day), metadata=NodeMetadata(index=index))

    @property
    def type(self) -> NodeType:
        return NodeType(self.data.kind)

    @property
    def state(self) -> TaskState | None:
        """Completion state, or None for date and pseudo nodes."""
        if isinstance(self.data, TaskData):
            return self.data.state
        return None

    @property
    def day(self) -> dt.date | None:
        if isinstance(self.data, DateData):
            return self.data.day
        return None

    @property
    def index(self) -> int:
        return self.metadata.index

    def is_task(self) -> bool:
        return isinstance(self.data, TaskData)

    def is_date(self) -> bool:
        return isinstance(self.data, DateData)

    def is_pseudo(self) -> bool:
        return isinstance(self.data, PseudoData)

    def remap(self, mapping: dict[int, int]) -> None:
        """Rewrite own index and edges through ``mapping``.

        Edges whose target is absent from the mapping are dropped. The
        node's own index must be present.
        """
        self.metadata.index = mapping[self.metadata.index]
        self.metadata.parents = [mapping[i] for i in self.metadata.parents if i in mapping]
        self.metadata.children = [mapping[i] for i in self.metadata.children if i in mapping]
