"""Storage infrastructure for Trellis.

Provides file persistence for graph documents and blueprints, using
Result monads for explicit error handling.
"""

from trellis.infrastructure.storage.errors import (
    BlueprintExists,
    BlueprintNotFound,
    StorageError,
)
from trellis.infrastructure.storage.file_storage import FileStorage
from trellis.infrastructure.storage.repositories import (
    SAVE_FILENAME,
    BlueprintRepository,
    GraphRepository,
    dump_blueprint,
    parse_blueprint,
    resolve_save_path,
)

__all__ = [
    "FileStorage",
    "GraphRepository",
    "BlueprintRepository",
    "resolve_save_path",
    "dump_blueprint",
    "parse_blueprint",
    "SAVE_FILENAME",
    "StorageError",
    "BlueprintExists",
    "BlueprintNotFound",
]
