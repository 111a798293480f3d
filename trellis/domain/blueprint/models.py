"""Blueprint document model.

A blueprint is a portable copy of a subtree. Its nodes use the same wire
records as the main document, indexed by position, with the subtree root
at position 0.
"""

from pydantic import BaseModel, ConfigDict, Field

from trellis.domain.document.models import VERSION, NodeRecord


class Blueprint(BaseModel):
    """A re-indexed subtree ready to be inserted into any graph."""

    model_config = ConfigDict(extra="forbid")

    title: str = ""
    author: str | None = None
    version: int = VERSION
    nodes: list[NodeRecord] = Field(default_factory=list)

    @property
    def root(self) -> NodeRecord | None:
        return self.nodes[0] if self.nodes else None

    def is_empty(self) -> bool:
        return not self.nodes
