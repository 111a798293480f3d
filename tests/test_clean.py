import copy

from trellis.domain.graph import Graph, Node
from trellis.domain.shared import unwrap

from tests.helpers import assert_edges_symmetric, assert_roots_consistent, titles


def test_clean_renumbers_densely(sample_graph: Graph):
    sample_graph.remove(2)

    mapping = sample_graph.clean()

    assert mapping == {0: 0, 1: 1, 3: 2, 4: 3, 5: 4, 6: 5}
    assert len(sample_graph) == 6
    assert sample_graph.tombstone_count() == 0
    assert [node.index for node in sample_graph.nodes] == list(range(6))
    assert sample_graph.roots == [0, 2, 3, 5]
    assert sample_graph.children_of(3) == [4]
    assert sample_graph.parents_of(4) == [3]
    assert_edges_symmetric(sample_graph)
    assert_roots_consistent(sample_graph)


def test_clean_remaps_indices(sample_graph: Graph):
    sample_graph.set_alias(6, "last")
    sample_graph.set_archived(5, True)
    day = unwrap(sample_graph.insert_date("2024-05-01"))
    sample_graph.remove(1)
    sample_graph.remove(3)

    mapping = sample_graph.clean()

    assert sample_graph.aliases == {"last": mapping[6]}
    assert sample_graph.archived == [mapping[5]]
    assert sample_graph.dates == {"2024-05-01": mapping[day]}
    assert titles(sample_graph, [mapping[6]]) == ["child (3) of child (2)"]


def test_clean_is_idempotent(sample_graph: Graph):
    sample_graph.set_alias(4, "mid")
    sample_graph.remove(1)
    sample_graph.clean()
    snapshot = copy.deepcopy(sample_graph)

    mapping = sample_graph.clean()

    assert mapping == {h: h for h in range(len(sample_graph))}
    assert sample_graph == snapshot


def test_clean_rebuilds_indices_from_nodes():
    nodes = [Node.task("a", 0), None, Node.task("c", 2)]
    nodes[2].metadata.alias = "c"
    g = Graph.from_parts(
        nodes=nodes,
        roots=[0, 1],
        archived=[1],
        dates={"2024-01-01": 1},
        aliases={"stale": 1},
    )

    g.clean()

    assert g.aliases == {"c": 1}
    assert g.archived == []
    assert g.dates == {}
    assert g.roots == [0, 1]


def test_clean_keeps_date_nodes_off_roots(graph: Graph):
    graph.insert_root("work")
    unwrap(graph.insert_date("2024-05-01"))

    graph.clean()

    assert graph.roots == [0]
    assert graph.dates == {"2024-05-01": 1}


def test_clean_on_empty_graph(graph: Graph):
    assert graph.clean() == {}
    assert graph == Graph()
