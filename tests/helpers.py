from trellis.domain.graph import Graph


def assert_edges_symmetric(g: Graph) -> None:
    """Every child edge has a matching parent edge and vice versa."""
    for handle in g.handles():
        node = g.node(handle)
        for child in node.metadata.children:
            assert handle in g.node(child).metadata.parents
        for parent in node.metadata.parents:
            assert handle in g.node(parent).metadata.children


def assert_roots_consistent(g: Graph) -> None:
    """Roots are exactly the parentless nodes not registered as dates."""
    date_handles = set(g.dates.values())
    expected = {h for h in g.handles() if not g.node(h).metadata.parents and h not in date_handles}
    assert set(g.roots) == expected


def titles(g: Graph, handles: list[int]) -> list[str]:
    return [g.node(h).title for h in handles]
