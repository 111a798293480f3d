"""The task graph.

``Graph`` owns the node store (a slot list where removed nodes leave a
``None`` tombstone) and the indices derived from it: root list, archived
list, date table, and alias table. All mutation goes through its methods,
which take either an integer handle or a user token and return a Result.

Completion state is derived: after any explicit state change or edge
change, parents are recomputed from their children all the way up.
Pseudo nodes never count towards a parent and are never overwritten.
"""

import datetime as dt
import logging

from trellis.domain.graph import resolver, traversal
from trellis.domain.graph.dates import format_date, parse_absolute
from trellis.domain.graph.errors import GraphError, NotAChild, NotTaskNode
from trellis.domain.graph.models import Node, TaskData, TaskState
from trellis.domain.shared.result import Err, Ok, Result

logger = logging.getLogger(__name__)

NodeRef = int | str


class Graph:
    """Densely addressed, multi-parent task graph.

    Handles are slot positions in the node store. They stay stable across
    every operation except ``clean``, which drops tombstones and renumbers
    the surviving nodes in their original order.

    Example:
        graph = Graph()
        work = graph.insert_root("work")
        report = unwrap(graph.insert_child("write report", work))
        graph.set_state(report, TaskState.DONE)
    """

    def __init__(self) -> None:
        self._nodes: list[Node | None] = []
        self._roots: list[int] = []
        self._archived: list[int] = []
        self._dates: dict[str, int] = {}
        self._aliases: dict[str, int] = {}

    @classmethod
    def from_parts(
        cls,
        nodes: list[Node | None],
        roots: list[int],
        archived: list[int],
        dates: dict[str, int],
        aliases: dict[str, int],
    ) -> "Graph":
        """Assemble a graph from already decoded parts (used by the codec)."""
        graph = cls()
        graph._nodes = nodes
        graph._roots = roots
        graph._archived = archived
        graph._dates = dates
        graph._aliases = aliases
        return graph

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return (
            self._nodes == other._nodes
            and self._roots == other._roots
            and self._archived == other._archived
            and self._dates == other._dates
            and self._aliases == other._aliases
        )

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count()}, roots={self._roots}, tombstones={self.tombstone_count()})"

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def nodes(self) -> list[Node | None]:
        """The slot list, tombstones included. Do not mutate."""
        return self._nodes

    @property
    def roots(self) -> list[int]:
        return self._roots

    @property
    def archived(self) -> list[int]:
        return self._archived

    @property
    def dates(self) -> dict[str, int]:
        return self._dates

    @property
    def aliases(self) -> dict[str, int]:
        return self._aliases

    def __len__(self) -> int:
        """Number of slots, tombstones included."""
        return len(self._nodes)

    def node_count(self) -> int:
        """Number of live nodes."""
        return sum(1 for node in self._nodes if node is not None)

    def tombstone_count(self) -> int:
        return len(self._nodes) - self.node_count()

    def handles(self) -> list[int]:
        """Live handles in slot order."""
        return [i for i, node in enumerate(self._nodes) if node is not None]

    def is_live(self, handle: int) -> bool:
        return 0 <= handle < len(self._nodes) and self._nodes[handle] is not None

    def get(self, handle: int) -> Node | None:
        if not 0 <= handle < len(self._nodes):
            return None
        return self._nodes[handle]

    def node(self, handle: int) -> Node:
        """Return the live node at ``handle``.

        Raises:
            RuntimeError: If the slot is out of range or tombstoned. Callers
                must only pass handles they obtained from ``resolve`` or
                from the graph itself.
        """
        node = self.get(handle)
        if node is None:
            raise RuntimeError(f"handle {handle} does not address a live node")
        return node

    def children_of(self, handle: int) -> list[int]:
        return list(self.node(handle).metadata.children)

    def parents_of(self, handle: int) -> list[int]:
        return list(self.node(handle).metadata.parents)

    def resolve(self, token: NodeRef, today: dt.date | None = None) -> Result[int, GraphError]:
        """Translate a handle, date, relative date, or alias into a handle."""
        return resolver.resolve(self, token, today)

    def resolve_date(self, token: str, today: dt.date | None = None) -> Result[int, GraphError]:
        """Resolve a token that must be interpreted as a date."""
        return resolver.resolve_date(self, token, today)

    def traverse(
        self,
        start_handles: list[int],
        include_archived: bool = False,
        max_depth: int | None = None,
    ) -> Result[list[tuple[Node, int]], GraphError]:
        return traversal.traverse(self, start_handles, include_archived, max_depth)

    # =========================================================================
    # Insertion
    # =========================================================================

    def insert_root(self, title: str, pseudo: bool = False) -> int:
        """Append a parentless node and register it as a root.

        Args:
            title: Node title.
            pseudo: Whether the node is a pseudo node.

        Returns:
            The handle of the new node.
        """
        handle = len(self._nodes)
        node = Node.pseudo(title, handle) if pseudo else Node.task(title, handle)
        self._nodes.append(node)
        self._roots.append(handle)
        logger.debug(f"Inserted root {handle}")
        return handle

    def insert_child(self, title: str, parent_id: NodeRef, pseudo: bool = False) -> Result[int, GraphError]:
        """Append a node as the last child of ``parent_id``.

        Unless the new node is a pseudo node, the parent and its ancestors
        are recomputed (a new unfinished child turns a done parent partial).

        Returns:
            Ok(handle) of the new node, or the resolver's error.
        """
        resolved = self.resolve(parent_id)
        if isinstance(resolved, Err):
            return resolved
        parent = resolved.value

        handle = len(self._nodes)
        node = Node.pseudo(title, handle) if pseudo else Node.task(title, handle)
        self._nodes.append(node)
        self._attach(parent, handle)
        if not pseudo:
            self._recompute_upward([parent])
        logger.debug(f"Inserted child {handle} under {parent}")
        return Ok(handle)

    def insert_date(self, day: dt.date | str, title: str = "") -> Result[int, GraphError]:
        """Create a date node and register it in the date table.

        If a node is already registered for the day, its handle is
        returned and nothing is created.

        Args:
            day: A date, or a string in ``digits-digits-digits`` form.
            title: Optional title for the date node.

        Returns:
            Ok(handle) or Err(MalformedDate).
        """
        if isinstance(day, str):
            parsed = parse_absolute(day)
            if isinstance(parsed, Err):
                return parsed
            day = parsed.value

        key = format_date(day)
        existing = self._dates.get(key)
        if existing is not None:
            return Ok(existing)

        handle = len(self._nodes)
        self._nodes.append(Node.date(title, handle, day))
        self._dates[key] = handle
        logger.debug(f"Inserted date node {handle} for {key}")
        return Ok(handle)

    def insert_subtree(self, nodes: list[Node], parent_id: NodeRef | None = None) -> Result[int, GraphError]:
        """Append a self-contained node list as a new subtree.

        ``nodes`` are addressed by position: their indices and edges refer
        to positions 0..n-1, and position 0 is the subtree root. Edges
        pointing outside the list are dropped. The root is attached under
        ``parent_id`` or, when None, registered as a new root.

        Returns:
            Ok(handle of the subtree root) or the resolver's error.
        """
        parent: int | None = None
        if parent_id is not None:
            resolved = self.resolve(parent_id)
            if isinstance(resolved, Err):
                return resolved
            parent = resolved.value

        base = len(self._nodes)
        mapping = {position: base + position for position in range(len(nodes))}
        for position, source in enumerate(nodes):
            node = source.model_copy(deep=True)
            node.metadata.index = position
            node.remap(mapping)
            if position == 0:
                node.metadata.parents = []
            else:
                node.metadata.children = [c for c in node.metadata.children if c != base]
            self._nodes.append(node)

        for handle in range(base + 1, len(self._nodes)):
            if not self.node(handle).metadata.parents:
                self._roots.append(handle)

        if parent is None:
            self._roots.append(base)
        else:
            self._attach(parent, base)
            if not self.node(base).is_pseudo():
                self._recompute_upward([parent])
        logger.debug(f"Inserted subtree of {len(nodes)} nodes at {base}")
        return Ok(base)

    # =========================================================================
    # Edges
    # =========================================================================

    def link(self, parent_id: NodeRef, child_id: NodeRef) -> Result[None, GraphError]:
        """Add a parent -> child edge and recompute the child's parents."""
        pair = self._resolve_pair(parent_id, child_id)
        if isinstance(pair, Err):
            return pair
        parent, child = pair.value

        if child in self.node(parent).metadata.children:
            return Ok(None)
        self._attach(parent, child)
        self._recompute_upward(self.parents_of(child))
        return Ok(None)

    def unlink(self, parent_id: NodeRef, child_id: NodeRef) -> Result[None, GraphError]:
        """Remove a parent -> child edge and recompute the former parents.

        A child left without parents becomes a root (date nodes excepted).
        """
        pair = self._resolve_pair(parent_id, child_id)
        if isinstance(pair, Err):
            return pair
        parent, child = pair.value

        if child not in self.node(parent).metadata.children:
            return Ok(None)
        former_parents = self.parents_of(child)
        self._detach(parent, child)
        self._recompute_upward(former_parents)
        return Ok(None)

    def clean_parents(self, target_id: NodeRef) -> Result[None, GraphError]:
        """Detach the target from every parent (used before a move)."""
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value

        former_parents = self.parents_of(target)
        for parent in former_parents:
            self._detach(parent, target)
        self._recompute_upward([p for p in former_parents if p != target])
        return Ok(None)

    def reorder_child(self, child_id: NodeRef, parent_id: NodeRef, delta: int) -> Result[int, GraphError]:
        """Move a child ``delta`` places within its parent's child list.

        Negative deltas move towards the front. The new position is clamped
        to the list bounds.

        Returns:
            Ok(new position) or Err(NotAChild).
        """
        pair = self._resolve_pair(parent_id, child_id)
        if isinstance(pair, Err):
            return pair
        parent, child = pair.value

        children = self.node(parent).metadata.children
        if child not in children:
            return Err(NotAChild(parent, child))
        position = children.index(child)
        new_position = max(0, min(len(children) - 1, position + delta))
        children.insert(new_position, children.pop(position))
        return Ok(new_position)

    # =========================================================================
    # Removal
    # =========================================================================

    def remove(self, target_id: NodeRef) -> Result[None, GraphError]:
        """Tombstone a single node.

        Children that lose their last parent are promoted to roots. The
        node's alias, date registration, and archived entry are dropped,
        and the former parents are recomputed.
        """
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value
        node = self.node(target)

        parents = list(node.metadata.parents)
        children = list(node.metadata.children)
        for parent in parents:
            if parent != target:
                self._detach(parent, target, promote=False)
        for child in children:
            if child != target:
                self._detach(target, child)

        self._forget(target)
        self._nodes[target] = None
        self._recompute_upward([p for p in parents if p != target])
        logger.debug(f"Removed node {target}")
        return Ok(None)

    def remove_children_recursive(self, target_id: NodeRef) -> Result[None, GraphError]:
        """Tombstone the target and everything reachable below it.

        Nodes shared with other parts of the graph are removed too; their
        surviving outside parents are recomputed.
        """
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value

        doomed = traversal.collect_reachable(self, target)
        doomed_set = set(doomed)
        outside_parents: list[int] = []
        for handle in doomed:
            for parent in self.parents_of(handle):
                if parent in doomed_set:
                    continue
                self._detach(parent, handle, promote=False)
                if parent not in outside_parents:
                    outside_parents.append(parent)

        for handle in doomed:
            self._forget(handle)
        for handle in doomed:
            self._nodes[handle] = None

        self._recompute_upward(outside_parents)
        logger.debug(f"Removed {len(doomed)} nodes under {target}")
        return Ok(None)

    # =========================================================================
    # Field mutation
    # =========================================================================

    def rename(self, target_id: NodeRef, title: str) -> Result[None, GraphError]:
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        self.node(resolved.value).title = title
        return Ok(None)

    def set_archived(self, target_id: NodeRef, archived: bool) -> Result[None, GraphError]:
        """Flag or unflag a node as archived, keeping the archived list in sync."""
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value

        self.node(target).metadata.archived = archived
        if archived and target not in self._archived:
            self._archived.append(target)
        elif not archived and target in self._archived:
            self._archived.remove(target)
        return Ok(None)

    def set_alias(self, target_id: NodeRef, alias: str) -> Result[None, GraphError]:
        """Give a node an alias.

        The alias table entry is overwritten without touching a previous
        owner of the same alias; that node keeps its local alias until the
        next ``clean``.
        """
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value
        node = self.node(target)

        owner = self._aliases.get(alias)
        if owner is not None and owner != target:
            logger.warning(f"Alias '{alias}' moved from node {owner} to node {target}")
        if alias.isdecimal():
            logger.warning(f"Alias '{alias}' is numeric and will resolve as a handle")

        previous = node.metadata.alias
        if previous is not None and previous != alias and self._aliases.get(previous) == target:
            del self._aliases[previous]
        node.metadata.alias = alias
        self._aliases[alias] = target
        return Ok(None)

    def unset_alias(self, target_id: NodeRef) -> Result[None, GraphError]:
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value
        node = self.node(target)

        alias = node.metadata.alias
        if alias is None:
            return Ok(None)
        if self._aliases.get(alias) == target:
            del self._aliases[alias]
        node.metadata.alias = None
        return Ok(None)

    # =========================================================================
    # State propagation
    # =========================================================================

    def set_state(self, target_id: NodeRef, state: TaskState, propagate: bool = True) -> Result[None, GraphError]:
        """Set a task node's state.

        With ``propagate``, every descendant takes the same state (pseudo
        subtrees are not entered, date nodes keep no state) and then every
        parent of a touched node is recomputed up to the top.

        Returns:
            Ok(None), the resolver's error, or Err(NotTaskNode) when the
            target is a date or pseudo node.
        """
        resolved = self.resolve(target_id)
        if isinstance(resolved, Err):
            return resolved
        target = resolved.value
        node = self.node(target)
        if not isinstance(node.data, TaskData):
            return Err(NotTaskNode(target))

        node.data.state = state
        if not propagate:
            return Ok(None)

        touched = self._propagate_down(target, state)
        seeds = self.parents_of(target)
        for handle in touched:
            seeds.extend(self.node(handle).metadata.parents)
        self._recompute_upward(seeds)
        return Ok(None)

    def _propagate_down(self, target: int, state: TaskState) -> list[int]:
        """Set every non-pseudo descendant to ``state``; return the touched handles."""
        touched: list[int] = []
        seen = {target}
        stack = list(reversed(self.node(target).metadata.children))
        while stack:
            handle = stack.pop()
            if handle in seen:
                continue
            seen.add(handle)
            node = self.node(handle)
            if node.is_pseudo():
                continue
            if isinstance(node.data, TaskData):
                node.data.state = state
            touched.append(handle)
            stack.extend(reversed(node.metadata.children))
        return touched

    def _aggregate(self, handle: int) -> TaskState:
        """Derive a node's state from its non-pseudo children."""
        counted = [self.node(c) for c in self.node(handle).metadata.children]
        counted = [child for child in counted if not child.is_pseudo()]
        done = sum(1 for child in counted if child.state is TaskState.DONE)

        if done > 0 and done == len(counted):
            return TaskState.DONE
        if any(child.state in (TaskState.DONE, TaskState.PARTIAL) for child in counted):
            return TaskState.PARTIAL
        return TaskState.NONE

    def _recompute_upward(self, seeds: list[int]) -> None:
        """Recompute ``seeds`` and their ancestors from their children.

        A node's parents are queued the first time it is reached and again
        whenever its state changes. Pseudo nodes stop the climb.
        """
        visited: set[int] = set()
        stack = list(reversed(seeds))
        while stack:
            handle = stack.pop()
            node = self.node(handle)
            if node.is_pseudo():
                continue

            changed = False
            if isinstance(node.data, TaskData):
                new_state = self._aggregate(handle)
                changed = new_state is not node.data.state
                node.data.state = new_state

            if handle in visited and not changed:
                continue
            visited.add(handle)
            stack.extend(reversed(node.metadata.parents))

    # =========================================================================
    # Compaction
    # =========================================================================

    def clean(self) -> dict[int, int]:
        """Resynchronize indices from node-local data and drop tombstones.

        The alias, date, and archived indices are rebuilt from the nodes
        themselves, dangling edges are dropped, roots are recomputed, and
        surviving nodes are renumbered densely in slot order. The graph is
        replaced in a single assignment once the new state is complete.

        Returns:
            Mapping from old handles to new handles for surviving nodes.
        """
        live: dict[int, Node] = {}
        for handle, node in enumerate(self._nodes):
            if node is not None:
                copy = node.model_copy(deep=True)
                copy.metadata.index = handle
                live[handle] = copy

        aliases: dict[str, int] = {}
        dates: dict[str, int] = {}
        archived: list[int] = []
        for handle, node in live.items():
            if node.metadata.alias is not None:
                aliases[node.metadata.alias] = handle
            if node.day is not None:
                dates[format_date(node.day)] = handle
            if node.metadata.archived:
                archived.append(handle)
            node.metadata.parents = [p for p in node.metadata.parents if p in live]
            node.metadata.children = [c for c in node.metadata.children if c in live]

        date_handles = set(dates.values())
        roots = [h for h, node in live.items() if not node.metadata.parents and h not in date_handles]

        mapping = {old: new for new, old in enumerate(live)}
        for node in live.values():
            node.remap(mapping)

        new_nodes: list[Node | None] = list(live.values())
        new_roots = [mapping[h] for h in roots]
        new_archived = [mapping[h] for h in archived]
        new_dates = {key: mapping[h] for key, h in dates.items()}
        new_aliases = {alias: mapping[h] for alias, h in aliases.items()}

        dropped = len(self._nodes) - len(new_nodes)
        self._nodes, self._roots, self._archived, self._dates, self._aliases = (
            new_nodes,
            new_roots,
            new_archived,
            new_dates,
            new_aliases,
        )
        logger.debug(f"Cleaned graph, dropped {dropped} tombstones")
        return mapping

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _resolve_pair(self, first: NodeRef, second: NodeRef) -> Result[tuple[int, int], GraphError]:
        resolved_first = self.resolve(first)
        if isinstance(resolved_first, Err):
            return resolved_first
        resolved_second = self.resolve(second)
        if isinstance(resolved_second, Err):
            return resolved_second
        return Ok((resolved_first.value, resolved_second.value))

    def _is_registered_date(self, handle: int) -> bool:
        day = self.node(handle).day
        return day is not None and self._dates.get(format_date(day)) == handle

    def _attach(self, parent: int, child: int) -> None:
        self.node(parent).metadata.children.append(child)
        self.node(child).metadata.parents.append(parent)
        if child in self._roots:
            self._roots.remove(child)

    def _detach(self, parent: int, child: int, promote: bool = True) -> None:
        """Drop the parent -> child edge on both ends.

        With ``promote``, a child left without parents becomes a root.
        """
        parent_meta = self.node(parent).metadata
        child_meta = self.node(child).metadata
        parent_meta.children = [c for c in parent_meta.children if c != child]
        child_meta.parents = [p for p in child_meta.parents if p != parent]
        if promote and not child_meta.parents and child not in self._roots and not self._is_registered_date(child):
            self._roots.append(child)

    def _forget(self, handle: int) -> None:
        """Remove a node from every derived index before it is tombstoned."""
        node = self.node(handle)
        if handle in self._roots:
            self._roots.remove(handle)
        if handle in self._archived:
            self._archived.remove(handle)
        alias = node.metadata.alias
        if alias is not None and self._aliases.get(alias) == handle:
            del self._aliases[alias]
        if self._is_registered_date(handle):
            del self._dates[format_date(node.day)]
