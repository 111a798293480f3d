"""Infrastructure layer for Trellis.

Wraps file I/O with Result monads for explicit error handling.

Exports:
    Storage:
        - FileStorage: Low-level text file I/O
        - GraphRepository: Graph document persistence
        - BlueprintRepository: Named blueprint store
"""

from trellis.infrastructure.storage import (
    BlueprintRepository,
    FileStorage,
    GraphRepository,
)

__all__ = [
    "FileStorage",
    "GraphRepository",
    "BlueprintRepository",
]
