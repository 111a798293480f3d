"""Graph error values.

Errors are immutable value objects carried inside ``Err``. Each renders a
user-facing message through ``__str__`` so the command layer can print it
unchanged.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GraphError:
    """Base class for all graph operation errors."""

    def __str__(self) -> str:
        return self.__class__.__name__


@dataclass(frozen=True)
class InvalidHandle(GraphError):
    """Handle is out of range or points at a tombstoned slot."""

    handle: int

    def __str__(self) -> str:
        return f"Invalid handle: '{self.handle}'"


@dataclass(frozen=True)
class MalformedHandle(GraphError):
    """Token looks numeric but is not a valid non-negative handle."""

    token: str

    def __str__(self) -> str:
        return f"Malformed handle: '{self.token}'"


@dataclass(frozen=True)
class InvalidAlias(GraphError):
    alias: str

    def __str__(self) -> str:
        return f"Invalid alias: '{self.alias}'"


@dataclass(frozen=True)
class InvalidDate(GraphError):
    """Date is well formed but no date node is registered for it."""

    date: str

    def __str__(self) -> str:
        return f"Invalid date: '{self.date}'"


@dataclass(frozen=True)
class MalformedDate(GraphError):
    text: str

    def __str__(self) -> str:
        return f"Malformed date string: '{self.text}'"


@dataclass(frozen=True)
class CycleDetected(GraphError):
    """Traversal starting at ``start`` re-entered ``reentered``."""

    start: int
    reentered: int

    def __str__(self) -> str:
        return f"Graph looped back: {self.start}->...->{self.reentered}->{self.start}"


@dataclass(frozen=True)
class NotTaskNode(GraphError):
    """Only task nodes carry a completion state."""

    handle: int

    def __str__(self) -> str:
        return f"Node is not a task node: {self.handle}"


@dataclass(frozen=True)
class NotAChild(GraphError):
    parent: int
    child: int

    def __str__(self) -> str:
        return f"Node {self.child} is not a child of {self.parent}"
