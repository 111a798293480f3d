"""Repository implementations for graph documents and blueprints.

Repositories receive their file locations explicitly; picking the save
file or blueprint directory is the caller's job (see ``resolve_save_path``).
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from trellis.domain.blueprint.models import Blueprint
from trellis.domain.document import ParseError, decode, decode_json, encode, encode_json
from trellis.domain.graph.graph import Graph
from trellis.domain.shared.result import Err, Ok, Result
from trellis.infrastructure.storage.errors import BlueprintExists, BlueprintNotFound, StorageError
from trellis.infrastructure.storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

SAVE_FILENAME = ".trellis.yaml"
BLUEPRINT_SUFFIX = ".yaml"


def resolve_save_path(
    explicit: Path | None,
    cwd: Path,
    home: Path,
    use_global: bool = False,
) -> Path:
    """Pick the document file to work on.

    Resolution order:
    1. Explicit path (a directory means the save file inside it)
    2. Global file in ``home`` when ``use_global`` is set
    3. Local save file in ``cwd`` if it exists
    4. Global save file in ``home``

    Args:
        explicit: Path given on the command line or via TRELLIS_FILE.
        cwd: Current working directory.
        home: User home directory.
        use_global: Skip the local save file.

    Returns:
        Path of the document file (which may not exist yet).
    """
    if explicit is not None:
        return explicit / SAVE_FILENAME if explicit.is_dir() else explicit
    if not use_global and (cwd / SAVE_FILENAME).is_file():
        return cwd / SAVE_FILENAME
    return home / SAVE_FILENAME


class GraphRepository:
    """Repository for the graph document.

    Wraps the YAML save file with Result-based error handling. A missing
    or empty file loads as an empty graph.
    """

    def __init__(self, path: Path, storage: FileStorage | None = None) -> None:
        """Initialize the repository.

        Args:
            path: Document file to read and write.
            storage: FileStorage instance to use. Creates new one if not provided.
        """
        self.path = path
        self._storage = storage or FileStorage()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Result[Graph, StorageError | ParseError]:
        """Load the graph from the document file.

        Returns:
            Ok(Graph) if successful, Err(StorageError | ParseError) if failed.
        """
        if not self.path.exists():
            logger.debug(f"No document at {self.path}, starting empty")
            return Ok(Graph())

        result = self._storage.read_text(self.path)
        if isinstance(result, Err):
            return result
        return decode(result.value)

    def save(self, graph: Graph) -> Result[None, StorageError]:
        """Write the graph as a current-version YAML document."""
        return self._storage.write_text(self.path, encode(graph))

    def export_json(self, graph: Graph) -> str:
        return encode_json(graph)

    def import_json(self, text: str) -> Result[Graph, ParseError]:
        return decode_json(text)


class BlueprintRepository:
    """Repository for named blueprints.

    Each blueprint is one YAML file ``<name>.yaml`` in the store directory.
    """

    def __init__(self, store_dir: Path, storage: FileStorage | None = None) -> None:
        self.store_dir = store_dir
        self._storage = storage or FileStorage()

    def path_for(self, name: str) -> Path:
        return self.store_dir / f"{name}{BLUEPRINT_SUFFIX}"

    def list_names(self) -> Result[list[str], StorageError]:
        """List stored blueprint names, sorted."""
        if not self.store_dir.exists():
            return Ok([])
        try:
            return Ok(sorted(
                path.name[: -len(BLUEPRINT_SUFFIX)]
                for path in self.store_dir.iterdir()
                if path.is_file() and path.name.endswith(BLUEPRINT_SUFFIX)
            ))
        except OSError as e:
            return Err(StorageError(self.store_dir, str(e)))

    def load(self, name_or_path: str) -> Result[Blueprint, StorageError | ParseError | BlueprintNotFound]:
        """Load a blueprint by store name, or from a file path.

        The store is searched first, so a stored name shadows a file of
        the same name in the working directory.
        """
        path = self.path_for(name_or_path)
        if not path.is_file():
            path = Path(name_or_path).expanduser()
            if not path.is_file():
                return Err(BlueprintNotFound(name_or_path))

        result = self._storage.read_text(path)
        if isinstance(result, Err):
            return result
        return parse_blueprint(result.value)

    def save(
        self,
        name: str,
        blueprint: Blueprint,
        overwrite: bool = False,
    ) -> Result[Path, StorageError | BlueprintExists]:
        """Store a blueprint under ``name``.

        Returns:
            Ok(path written) or Err(BlueprintExists) when the name is taken
            and ``overwrite`` is not set.
        """
        path = self.path_for(name)
        if path.exists() and not overwrite:
            return Err(BlueprintExists(path))

        result = self._storage.write_text(path, dump_blueprint(blueprint))
        if isinstance(result, Err):
            return result
        logger.info(f"Saved blueprint '{name}' to {path}")
        return Ok(path)

    def delete(self, name: str) -> Result[None, StorageError | BlueprintNotFound]:
        path = self.path_for(name)
        if not path.is_file():
            return Err(BlueprintNotFound(name))
        return self._storage.delete(path)


def dump_blueprint(blueprint: Blueprint) -> str:
    """Render a blueprint as YAML."""
    return yaml.safe_dump(blueprint.model_dump(mode="json"), sort_keys=False, allow_unicode=True)


def parse_blueprint(text: str) -> Result[Blueprint, ParseError]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(ParseError(f"invalid YAML: {e}"))
    if not isinstance(data, dict):
        return Err(ParseError("blueprint must be a mapping"))
    try:
        return Ok(Blueprint.model_validate(data))
    except ValidationError as e:
        return Err(ParseError(f"invalid blueprint: {e.error_count()} errors"))
