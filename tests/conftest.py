import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from trellis.domain.graph import Graph
from trellis.domain.shared import unwrap


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def graph() -> Graph:
    return Graph()


@pytest.fixture
def sample_graph() -> Graph:
    """
    root (1)                                    0
      child (1)                                 1
      child (2)                                 2
        child (1) of child (2)                  3
        child (2) of child (2)                  4
          child (1) of child (1) of child (2)   5
        child (3) of child (2)                  6
    """
    g = Graph()
    root = g.insert_root("root (1)")
    unwrap(g.insert_child("child (1)", root))
    target = unwrap(g.insert_child("child (2)", root))
    unwrap(g.insert_child("child (1) of child (2)", target))
    middle = unwrap(g.insert_child("child (2) of child (2)", target))
    unwrap(g.insert_child("child (1) of child (1) of child (2)", middle))
    unwrap(g.insert_child("child (3) of child (2)", target))
    return g


@pytest.fixture
def cli_env(tmp_path: Path):
    """
    Isolated save file, config file, and blueprint directory for CLI runs.
    Returns the argument prefix to put before every command.
    """
    blueprint_dir = tmp_path / "blueprints"
    config_file = tmp_path / "config.json"
    config_file.write_text(
        json.dumps({"blueprints": {"store_path": str(blueprint_dir)}}),
        encoding="utf-8",
    )
    save_file = tmp_path / "graph.yaml"
    return {
        "args": ["--file", str(save_file), "--config", str(config_file)],
        "save_file": save_file,
        "config_file": config_file,
        "blueprint_dir": blueprint_dir,
    }
