import json
import logging
from pathlib import Path

import pytest

from trellis.config import (
    CONFIG_ENV,
    BlueprintConfig,
    GraphConfig,
    TrellisConfig,
    get_config_path,
    get_global_config,
    save_global_config,
)
from trellis.logging_config import setup_logging


def test_defaults(tmp_path: Path):
    config = get_global_config(tmp_path / "missing.json")

    assert config == TrellisConfig()
    assert config.graph.auto_clean is False
    assert config.graph.auto_clean_threshold == 50
    assert config.log_level == "WARNING"


def test_save_and_load(tmp_path: Path):
    path = tmp_path / "nested" / "config.json"
    config = TrellisConfig(graph=GraphConfig(auto_clean=True, auto_clean_threshold=20))

    save_global_config(config, path)

    assert get_global_config(path) == config


def test_partial_file_keeps_other_defaults(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"graph": {"auto_clean": True}}), encoding="utf-8")

    config = get_global_config(path)

    assert config.graph.auto_clean is True
    assert config.graph.auto_clean_threshold == 50
    assert config.blueprints == BlueprintConfig()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"graph": {"auto_clean_threshold": 150}}),
        json.dumps(["a", "list"]),
    ],
)
def test_invalid_file_falls_back_to_defaults(tmp_path: Path, content: str):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")

    assert get_global_config(path) == TrellisConfig()


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "env.json"))

    assert get_config_path() == tmp_path / "env.json"
    assert get_config_path(tmp_path / "explicit.json") == tmp_path / "explicit.json"


def test_default_config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert get_config_path() == tmp_path / ".trellis" / "config.json"


def test_blueprint_store_dir_expands_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("HOME", str(tmp_path))

    assert BlueprintConfig().store_dir() == tmp_path / ".trellis_blueprints"
    assert BlueprintConfig(store_path="~/bp").store_dir() == tmp_path / "bp"


def test_setup_logging_adds_one_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers = []
    try:
        setup_logging("debug")
        setup_logging("INFO")

        assert len(root.handlers) == 1
        assert root.level == logging.INFO
        assert setup_logging("nonsense").level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
