import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from trellis import __version__
from trellis.domain.graph import Graph, TaskState
from trellis.domain.shared import unwrap
from trellis.infrastructure.storage import GraphRepository
from trellis.interfaces.cli import app


@pytest.fixture
def run(runner: CliRunner, cli_env):
    """Invoke the app against the isolated save file and config."""

    def _run(*args: str, input: str | None = None):
        return runner.invoke(app, [*cli_env["args"], *args], input=input)

    return _run


@pytest.fixture
def saved(cli_env):
    def _saved() -> Graph:
        return unwrap(GraphRepository(cli_env["save_file"]).load())

    return _saved


def enable_auto_clean(cli_env, threshold: int = 0) -> None:
    config = json.loads(cli_env["config_file"].read_text(encoding="utf-8"))
    config["graph"] = {"auto_clean": True, "auto_clean_threshold": threshold}
    cli_env["config_file"].write_text(json.dumps(config), encoding="utf-8")


@pytest.fixture
def work_tree(run):
    """work (0) with children a (1) and b (2)."""
    assert run("add", "--root", "work").exit_code == 0
    assert run("add", "a", "0").exit_code == 0
    assert run("add", "b", "0").exit_code == 0


def test_version(runner: CliRunner):
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"trellis version {__version__}" in result.output


class TestAdd:
    def test_add_root_and_child(self, run, saved):
        result = run("add", "--root", "work")
        assert result.exit_code == 0
        assert "Added node 0" in result.output

        result = run("add", "report", "0")
        assert result.exit_code == 0
        assert "Added node 1" in result.output

        graph = saved()
        assert graph.roots == [0]
        assert graph.children_of(0) == [1]

    def test_add_without_parent(self, run):
        result = run("add", "orphan")

        assert result.exit_code == 1
        assert "requires a title and a parent" in result.output

    def test_add_root_and_date_conflict(self, run):
        result = run("add", "--root", "--date", "today", "x")
        assert result.exit_code == 1

    def test_unknown_alias(self, run):
        run("add", "--root", "work")

        result = run("add", "x", "nope")

        assert result.exit_code == 1
        assert "Invalid alias: 'nope'" in result.output

    @pytest.mark.parametrize(
        ("token", "message"),
        [("9" * 5000, "Malformed handle"), ("99999999999-1-1", "Invalid alias")],
    )
    def test_oversized_tokens_fail_cleanly(self, run, token: str, message: str):
        run("add", "--root", "work")

        result = run("add", "x", token)

        assert result.exit_code == 1
        assert message in result.output

    def test_date_node_with_huge_year(self, run):
        result = run("add", "--date", "99999999999-1-1")

        assert result.exit_code == 1
        assert "Malformed date string" in result.output

    def test_add_pseudo(self, run, saved):
        run("add", "--root", "work")
        run("add", "--pseudo", "note", "0")

        assert saved().node(1).is_pseudo()

    def test_date_nodes(self, run, saved):
        assert run("add", "--date", "2024-05-01").exit_code == 0
        assert run("add", "prep", "2024-5-1").exit_code == 0

        result = run("lsd")

        assert result.exit_code == 0
        assert "[d] 2024-05-01 (0)" in result.output
        assert " +--[ ] prep (1)" in result.output
        assert saved().dates == {"2024-05-01": 0}

    def test_assume_date_accepts_month_names(self, run, saved):
        run("add", "--date", "march")

        result = run("add", "-D", "kickoff", "march")

        assert result.exit_code == 0
        assert saved().parents_of(1) == [0]


class TestEditing:
    def test_check_and_list(self, run, work_tree):
        assert run("check", "1").exit_code == 0

        result = run("ls")

        assert result.exit_code == 0
        assert "[~] work (0)" in result.output
        assert " +--[x] a (1)" in result.output
        assert " +--[ ] b (2)" in result.output

    def test_set_without_propagation(self, run, saved, work_tree):
        run("set", "0", "done", "--no-propagate")

        graph = saved()
        assert graph.node(0).state is TaskState.DONE
        assert graph.node(1).state is TaskState.NONE

    def test_uncheck(self, run, saved, work_tree):
        run("check", "0")
        run("uncheck", "2")

        assert saved().node(0).state is TaskState.PARTIAL

    def test_set_state_on_date_node(self, run):
        run("add", "--date", "2024-05-01")

        result = run("check", "2024-05-01")

        assert result.exit_code == 1
        assert "not a task node" in result.output

    def test_alias(self, run, saved, work_tree):
        result = run("alias", "0", "w")
        assert result.exit_code == 0
        assert "Node 0:w" in result.output

        run("add", "c", "w")
        assert saved().children_of(0) == [1, 2, 3]

        result = run("aliases")
        assert " * 0:w work" in result.output

        run("unalias", "w")
        assert saved().aliases == {}

    def test_numeric_alias_warns(self, run, saved, work_tree):
        result = run("alias", "1", "7")

        assert result.exit_code == 0
        assert "Warning: Alias '7' is numeric" in result.output
        assert saved().aliases == {"7": 1}

    def test_rename(self, run, saved, work_tree):
        run("rename", "1", "renamed")
        assert saved().node(1).title == "renamed"

    def test_archive(self, run, work_tree):
        run("arc", "1")

        assert "a (1)" not in run("ls").output
        assert "a (1) (archived)" in run("ls", "-a").output
        assert "a (1) (archived)" in run("lsa").output

        run("unarc", "1")
        assert "a (1)" in run("ls").output

    def test_link_unlink(self, run, saved, work_tree):
        run("link", "1", "2")
        graph = saved()
        assert graph.parents_of(2) == [0, 1]

        result = run("ls", "-r")
        assert " |   +..[ ] b (2)" in result.output

        run("unlink", "0", "2")
        assert saved().parents_of(2) == [1]

    def test_move(self, run, saved, work_tree):
        result = run("mv", "2", "1")

        assert result.exit_code == 0
        assert "Moved 2 under 1" in result.output
        assert saved().parents_of(2) == [1]

    def test_order(self, run, saved, work_tree):
        run("add", "c", "0")

        result = run("ord", "3", "up")

        assert "Node 3 is now at position 1 under 0" in result.output
        assert saved().children_of(0) == [1, 3, 2]

    def test_order_with_wrong_parent(self, run, work_tree):
        result = run("ord", "2", "up", "--parent", "1")
        assert result.exit_code == 1


class TestRemoveAndClean:
    def test_remove_promotes_children(self, run, saved, work_tree):
        result = run("rm", "0")

        assert result.exit_code == 0
        assert saved().roots == [1, 2]

    def test_remove_recursive_then_clean(self, run, saved, work_tree):
        run("add", "--root", "keep")
        run("rm", "-r", "0")

        result = run("clean")

        assert "Cleaned graph: 3 slot(s) reclaimed" in result.output
        graph = saved()
        assert len(graph) == 1
        assert graph.node(0).title == "keep"

    def test_auto_clean(self, run, saved, cli_env, work_tree):
        enable_auto_clean(cli_env)

        result = run("rm", "1")

        assert "Graph cleaned, handles were renumbered." in result.output
        assert saved().handles() == [0, 1]

    def test_added_handle_follows_auto_clean(self, run, saved, cli_env, work_tree):
        run("rm", "1")
        enable_auto_clean(cli_env)

        result = run("add", "c", "0")

        assert "Added node 2" in result.output
        assert saved().node(2).title == "c"

    def test_aliased_handle_follows_auto_clean(self, run, saved, cli_env, work_tree):
        run("rm", "1")
        enable_auto_clean(cli_env)

        result = run("alias", "2", "bee")

        assert "Node 1:bee" in result.output
        assert saved().aliases == {"bee": 1}


class TestCopy:
    def test_copy(self, run, saved, work_tree):
        run("check", "1")

        result = run("cp", "1", "2")

        assert result.exit_code == 0
        graph = saved()
        assert graph.children_of(2) == [3]
        assert graph.node(3).state is TaskState.DONE

    def test_copy_recursive_to_new_date(self, run, saved, work_tree):
        run("add", "sub", "1")

        result = run("cp", "-r", "0", "2024-05-01")

        assert result.exit_code == 0
        assert "Created date node 4 for 2024-05-01" in result.output
        graph = saved()
        assert graph.dates == {"2024-05-01": 4}
        assert [graph.node(h).title for h in graph.children_of(4)] == ["a", "b"]

    def test_copy_to_new_date_requires_recursive(self, run, work_tree):
        result = run("cp", "1", "2024-05-01")
        assert result.exit_code == 1


class TestStatsAndInterchange:
    def test_stats(self, run, work_tree):
        run("check", "1")

        result = run("stats")

        assert "Tasks:    3" in result.output
        assert "Done:     1" in result.output

        result = run("stats", "0")
        assert "Progress: 50.0%" in result.output

    def test_export_and_import(self, run, runner: CliRunner, cli_env, tmp_path: Path, work_tree):
        out = tmp_path / "export.json"
        assert run("export", "-o", str(out)).exit_code == 0

        other = tmp_path / "other.yaml"
        result = runner.invoke(
            app,
            ["--file", str(other), "--config", str(cli_env["config_file"]), "import", str(out)],
        )

        assert result.exit_code == 0
        assert "Imported 3 node(s)" in result.output
        assert unwrap(GraphRepository(other).load()) == unwrap(GraphRepository(cli_env["save_file"]).load())

    def test_import_from_stdin(self, run, saved, graph: Graph):
        graph.insert_root("from stdin")
        text = json.dumps(
            {
                "version": 5,
                "graph": {
                    "nodes": [
                        {
                            "title": "from stdin",
                            "type": "task",
                            "state": "none",
                            "date": None,
                            "metadata": {"archived": False, "index": 0, "alias": None, "parents": [], "children": []},
                        }
                    ],
                    "roots": [0],
                    "archived": [],
                    "dates": {},
                    "aliases": {},
                },
            }
        )

        result = run("import", input=text)

        assert result.exit_code == 0
        assert saved() == graph

    def test_export_to_stdout(self, run, work_tree):
        result = run("export")
        assert json.loads(result.output)["graph"]["roots"] == [0]

    def test_corrupt_save_file(self, run, cli_env):
        cli_env["save_file"].write_text("version: 99\ngraph: {}\n", encoding="utf-8")

        result = run("ls")

        assert result.exit_code == 1
        assert "Parse error" in result.output


class TestBlueprints:
    def test_save_show_insert_remove(self, run, saved, cli_env, work_tree):
        result = run("bp", "save", "0", "weekly", "--author", "ann")
        assert result.exit_code == 0
        assert (cli_env["blueprint_dir"] / "weekly.yaml").is_file()
        assert saved().node_count() == 0

        assert " * weekly" in run("bp", "ls").output

        result = run("bp", "show", "weekly")
        assert "Blueprint 'weekly' by ann" in result.output
        assert " +--[ ] a (1)" in result.output

        run("add", "--root", "home")
        result = run("bp", "ins", "weekly", "3")
        assert "Inserted blueprint 'weekly' at node 4" in result.output
        graph = saved()
        assert graph.children_of(3) == [4]
        assert [graph.node(h).title for h in graph.children_of(4)] == ["a", "b"]

        assert run("bp", "rm", "weekly").exit_code == 0
        assert "No saved blueprints." in run("bp", "ls").output

    def test_save_preserve_and_overwrite(self, run, saved, work_tree):
        assert run("bp", "save", "1", "single", "--preserve").exit_code == 0
        assert saved().node_count() == 3

        result = run("bp", "save", "1", "single", "--preserve")
        assert result.exit_code == 1
        assert "already exists" in result.output

        assert run("bp", "save", "1", "single", "--preserve", "--overwrite").exit_code == 0

    def test_insert_as_root_with_title(self, run, saved, work_tree):
        run("bp", "save", "0", "weekly", "--preserve")

        result = run("bp", "ins", "weekly", "--root", "--title", "week 2")

        assert result.exit_code == 0
        graph = saved()
        assert graph.roots == [0, 3]
        assert graph.node(3).title == "week 2"

    def test_insert_requires_parent_or_root(self, run, work_tree):
        run("bp", "save", "0", "weekly", "--preserve")
        assert run("bp", "ins", "weekly").exit_code == 1

    def test_missing_blueprint(self, run):
        result = run("bp", "show", "nothing")

        assert result.exit_code == 1
        assert "Blueprint not found: 'nothing'" in result.output

    def test_export(self, run, work_tree):
        run("bp", "save", "0", "weekly", "--preserve")

        result = run("bp", "export", "weekly")

        assert "title: weekly" in result.output
        assert "nodes:" in result.output
