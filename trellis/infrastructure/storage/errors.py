"""Storage error values."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StorageError:
    """A file could not be read or written."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"I/O error on {self.path}: {self.reason}"


@dataclass(frozen=True)
class BlueprintExists:
    path: Path

    def __str__(self) -> str:
        return f"Blueprint file already exists at {self.path}"


@dataclass(frozen=True)
class BlueprintNotFound:
    name: str

    def __str__(self) -> str:
        return f"Blueprint not found: '{self.name}'"
