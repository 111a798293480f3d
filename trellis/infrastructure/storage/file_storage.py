"""Text file storage with Result-based error handling.

Provides a thin wrapper around file I/O, returning Result types instead
of raising exceptions. Parsing is left to the callers.
"""

from pathlib import Path

from trellis.domain.shared.result import Err, Ok, Result
from trellis.infrastructure.storage.errors import StorageError


class FileStorage:
    """Low-level text file I/O with Result-based error handling.

    Example:
        storage = FileStorage()
        result = storage.read_text(Path(".trellis.yaml"))
        if isinstance(result, Ok):
            text = result.value
        else:
            print(f"Error: {result.error}")
    """

    def read_text(self, path: Path) -> Result[str, StorageError]:
        """Read a UTF-8 text file.

        Args:
            path: Path to the file to read.

        Returns:
            Ok(str) if successful, Err(StorageError) if failed.
        """
        try:
            if not path.exists():
                return Err(StorageError(path, "file not found"))
            return Ok(path.read_text(encoding="utf-8"))

        except PermissionError:
            return Err(StorageError(path, "permission denied"))
        except UnicodeDecodeError as e:
            return Err(StorageError(path, f"not UTF-8 text: {e}"))
        except OSError as e:
            return Err(StorageError(path, str(e)))

    def write_text(self, path: Path, text: str) -> Result[None, StorageError]:
        """Write a UTF-8 text file, creating parent directories.

        Args:
            path: Path to the file to write.
            text: Full file contents.

        Returns:
            Ok(None) if successful, Err(StorageError) if failed.
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
            return Ok(None)

        except PermissionError:
            return Err(StorageError(path, "permission denied"))
        except OSError as e:
            return Err(StorageError(path, str(e)))

    def delete(self, path: Path) -> Result[None, StorageError]:
        try:
            path.unlink()
            return Ok(None)
        except FileNotFoundError:
            return Err(StorageError(path, "file not found"))
        except OSError as e:
            return Err(StorageError(path, str(e)))
