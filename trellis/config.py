"""Global configuration storage for Trellis.

Stores user preferences in ~/.trellis/config.json (or the file named by
the TRELLIS_CONFIG environment variable).
"""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_ENV = "TRELLIS_CONFIG"


class GraphConfig(BaseModel):
    """Graph housekeeping preferences."""

    auto_clean: bool = False
    # Percentage of tombstoned slots that triggers a clean
    auto_clean_threshold: int = Field(default=50, ge=0, le=100)


class BlueprintConfig(BaseModel):
    store_path: str = "$HOME/.trellis_blueprints"

    def store_dir(self) -> Path:
        """Blueprint directory with ``$HOME`` and ``~`` expanded."""
        expanded = self.store_path.replace("$HOME", str(Path.home()))
        return Path(os.path.expandvars(expanded)).expanduser()


class TrellisConfig(BaseModel):
    graph: GraphConfig = Field(default_factory=GraphConfig)
    blueprints: BlueprintConfig = Field(default_factory=BlueprintConfig)
    log_level: str = "WARNING"


def get_config_dir() -> Path:
    """Get the Trellis config directory."""
    return Path.home() / ".trellis"


def get_config_path(explicit: Path | None = None) -> Path:
    """Pick the config file: explicit path, then $TRELLIS_CONFIG, then the default."""
    if explicit is not None:
        return explicit
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)
    return get_config_dir() / "config.json"


def get_global_config(path: Path | None = None) -> TrellisConfig:
    """Load the global configuration, falling back to defaults.

    A missing, unreadable, or invalid file yields the default config.
    """
    config_file = get_config_path(path)
    if config_file.exists():
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
            return TrellisConfig(**data)
        except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid config {config_file}: {e}")
    return TrellisConfig()


def save_global_config(config: TrellisConfig, path: Path | None = None) -> None:
    """Save the global configuration."""
    config_file = get_config_path(path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        json.dumps(config.model_dump(), indent=2),
        encoding="utf-8",
    )
