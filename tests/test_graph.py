import datetime as dt

from trellis.domain.graph import (
    Graph,
    InvalidAlias,
    InvalidHandle,
    MalformedDate,
    NotAChild,
    TaskState,
)
from trellis.domain.shared import Err, Ok, unwrap

from tests.helpers import assert_edges_symmetric, assert_roots_consistent


class TestInsertion:
    def test_insert_root(self, graph: Graph):
        handle = graph.insert_root("work")

        assert handle == 0
        assert graph.roots == [0]
        node = graph.node(0)
        assert node.title == "work"
        assert node.state is TaskState.NONE
        assert node.index == 0

    def test_insert_pseudo_root(self, graph: Graph):
        handle = graph.insert_root("notes", pseudo=True)
        assert graph.node(handle).is_pseudo()
        assert graph.node(handle).state is None

    def test_insert_child_links_both_ways(self, graph: Graph):
        root = graph.insert_root("work")
        result = graph.insert_child("report", root)

        assert result == Ok(1)
        assert graph.children_of(root) == [1]
        assert graph.parents_of(1) == [root]
        assert graph.roots == [root]

    def test_insert_child_unknown_parent(self, graph: Graph):
        graph.insert_root("work")
        assert graph.insert_child("x", 5) == Err(InvalidHandle(5))
        assert graph.insert_child("x", "nope") == Err(InvalidAlias("nope"))
        assert len(graph) == 1

    def test_insert_child_by_alias(self, graph: Graph):
        root = graph.insert_root("work")
        graph.set_alias(root, "w")
        handle = unwrap(graph.insert_child("report", "w"))
        assert graph.parents_of(handle) == [root]

    def test_insert_date(self, graph: Graph):
        handle = unwrap(graph.insert_date(dt.date(2024, 5, 1), "may day"))

        assert graph.dates == {"2024-05-01": handle}
        assert graph.node(handle).day == dt.date(2024, 5, 1)
        assert graph.node(handle).state is None
        assert handle not in graph.roots

    def test_insert_date_from_string_and_duplicate(self, graph: Graph):
        first = unwrap(graph.insert_date("2024-5-1"))
        second = unwrap(graph.insert_date(dt.date(2024, 5, 1)))

        assert first == second
        assert graph.node_count() == 1

    def test_insert_date_malformed(self, graph: Graph):
        assert graph.insert_date("2024-02-30") == Err(MalformedDate("2024-02-30"))
        assert graph.insert_date("someday") == Err(MalformedDate("someday"))
        assert graph.insert_date("99999999999-1-1") == Err(MalformedDate("99999999999-1-1"))
        assert graph.node_count() == 0


class TestEdges:
    def test_link_removes_child_from_roots(self, graph: Graph):
        a = graph.insert_root("a")
        b = graph.insert_root("b")

        assert graph.link(a, b) == Ok(None)
        assert graph.roots == [a]
        assert graph.children_of(a) == [b]
        assert_edges_symmetric(graph)

    def test_link_existing_edge_is_noop(self, sample_graph: Graph):
        sample_graph.link(0, 1)
        assert sample_graph.children_of(0) == [1, 2]
        assert sample_graph.parents_of(1) == [0]

    def test_unlink_promotes_orphan_to_root(self, sample_graph: Graph):
        sample_graph.unlink(0, 2)

        assert 2 in sample_graph.roots
        assert sample_graph.children_of(0) == [1]
        assert_edges_symmetric(sample_graph)
        assert_roots_consistent(sample_graph)

    def test_unlink_missing_edge_is_noop(self, sample_graph: Graph):
        assert sample_graph.unlink(1, 2) == Ok(None)
        assert sample_graph.children_of(0) == [1, 2]

    def test_unlink_date_child_never_becomes_root(self, graph: Graph):
        root = graph.insert_root("work")
        day = unwrap(graph.insert_date("2024-05-01"))
        graph.link(root, day)
        graph.unlink(root, day)

        assert day not in graph.roots
        assert_roots_consistent(graph)

    def test_clean_parents(self, graph: Graph):
        a = graph.insert_root("a")
        b = graph.insert_root("b")
        c = unwrap(graph.insert_child("c", a))
        graph.link(b, c)

        graph.clean_parents(c)

        assert graph.parents_of(c) == []
        assert c in graph.roots
        assert graph.children_of(a) == []
        assert graph.children_of(b) == []

    def test_shared_child_stays_off_roots_until_last_parent_goes(self, graph: Graph):
        a = graph.insert_root("a")
        b = graph.insert_root("b")
        c = unwrap(graph.insert_child("c", a))
        graph.link(b, c)

        graph.unlink(a, c)
        assert c not in graph.roots
        graph.unlink(b, c)
        assert c in graph.roots


class TestRemoval:
    def test_remove_promotes_children(self, sample_graph: Graph):
        assert sample_graph.remove(2) == Ok(None)

        assert sample_graph.get(2) is None
        assert sample_graph.children_of(0) == [1]
        assert sample_graph.roots == [0, 3, 4, 6]
        assert sample_graph.tombstone_count() == 1
        assert_edges_symmetric(sample_graph)
        assert_roots_consistent(sample_graph)

    def test_remove_drops_indices(self, sample_graph: Graph):
        sample_graph.set_alias(1, "first")
        sample_graph.set_archived(1, True)

        sample_graph.remove(1)

        assert "first" not in sample_graph.aliases
        assert 1 not in sample_graph.archived

    def test_remove_date_node(self, graph: Graph):
        day = unwrap(graph.insert_date("2024-05-01"))
        graph.remove(day)
        assert graph.dates == {}

    def test_remove_tombstoned_handle_fails(self, sample_graph: Graph):
        sample_graph.remove(1)
        assert sample_graph.remove(1) == Err(InvalidHandle(1))

    def test_remove_children_recursive(self, sample_graph: Graph):
        assert sample_graph.remove_children_recursive(2) == Ok(None)

        assert sample_graph.handles() == [0, 1]
        assert sample_graph.roots == [0]
        assert sample_graph.children_of(0) == [1]
        assert_edges_symmetric(sample_graph)

    def test_remove_children_recursive_shared_node(self, graph: Graph):
        a = graph.insert_root("a")
        b = graph.insert_root("b")
        c = unwrap(graph.insert_child("c", a))
        graph.link(b, c)
        graph.set_state(c, TaskState.DONE)
        assert graph.node(b).state is TaskState.DONE

        graph.remove_children_recursive(a)

        assert graph.handles() == [b]
        assert graph.children_of(b) == []
        assert graph.node(b).state is TaskState.NONE
        assert graph.roots == [b]

    def test_remove_children_recursive_on_cycle(self, graph: Graph):
        a = graph.insert_root("a")
        b = unwrap(graph.insert_child("b", a))
        graph.link(b, a)

        assert graph.remove_children_recursive(a) == Ok(None)
        assert graph.node_count() == 0
        assert graph.roots == []


class TestFields:
    def test_rename(self, sample_graph: Graph):
        sample_graph.rename(1, "renamed")
        assert sample_graph.node(1).title == "renamed"

    def test_set_archived_keeps_list_in_sync(self, sample_graph: Graph):
        sample_graph.set_archived(3, True)
        sample_graph.set_archived(3, True)
        assert sample_graph.archived == [3]
        assert sample_graph.node(3).metadata.archived

        sample_graph.set_archived(3, False)
        assert sample_graph.archived == []
        assert not sample_graph.node(3).metadata.archived

    def test_set_alias_and_resolve(self, sample_graph: Graph):
        sample_graph.set_alias(4, "middle")

        assert sample_graph.aliases == {"middle": 4}
        assert sample_graph.node(4).metadata.alias == "middle"
        assert sample_graph.resolve("middle") == Ok(4)

    def test_set_alias_replaces_own_previous_alias(self, sample_graph: Graph):
        sample_graph.set_alias(4, "old")
        sample_graph.set_alias(4, "new")
        assert sample_graph.aliases == {"new": 4}

    def test_set_alias_does_not_clear_previous_owner(self, sample_graph: Graph):
        sample_graph.set_alias(1, "shared")
        sample_graph.set_alias(2, "shared")

        assert sample_graph.aliases == {"shared": 2}
        assert sample_graph.node(1).metadata.alias == "shared"

    def test_unset_alias(self, sample_graph: Graph):
        sample_graph.set_alias(1, "first")
        sample_graph.unset_alias(1)

        assert sample_graph.aliases == {}
        assert sample_graph.node(1).metadata.alias is None
        assert sample_graph.unset_alias(1) == Ok(None)

    def test_unset_alias_keeps_entry_owned_by_another_node(self, sample_graph: Graph):
        sample_graph.set_alias(1, "shared")
        sample_graph.set_alias(2, "shared")
        sample_graph.unset_alias(1)

        assert sample_graph.aliases == {"shared": 2}


class TestReorder:
    def test_move_up(self, sample_graph: Graph):
        assert sample_graph.reorder_child(6, 2, -1) == Ok(1)
        assert sample_graph.children_of(2) == [3, 6, 4]

    def test_clamped_to_bounds(self, sample_graph: Graph):
        assert sample_graph.reorder_child(3, 2, 10) == Ok(2)
        assert sample_graph.children_of(2) == [4, 6, 3]
        assert sample_graph.reorder_child(3, 2, -10) == Ok(0)
        assert sample_graph.children_of(2) == [3, 4, 6]

    def test_not_a_child(self, sample_graph: Graph):
        assert sample_graph.reorder_child(0, 1, 1) == Err(NotAChild(1, 0))


def test_edge_symmetry_after_mixed_operations(sample_graph: Graph):
    g = sample_graph
    g.link(1, 5)
    g.link(6, 4)
    g.unlink(2, 4)
    g.remove(4)
    day = unwrap(g.insert_date("2024-01-01"))
    g.link(day, 1)
    g.remove_children_recursive(6)
    g.clean()

    assert_edges_symmetric(g)
    assert_roots_consistent(g)
