"""
Adjacency-list hierarchy traversal.

Replaces store-specific recursive queries (``WITH RECURSIVE``) for trees
such as departments: the parent → children map is built once and walked
breadth-first with an explicit queue, yielding nodes ordered by level and
then by an optional sort key within each level.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import HierarchyCycleError

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterable, Iterator

T = TypeVar("T")

logger = logging.getLogger("hr_criteria.hierarchy")


@dataclass(frozen=True)
class HierarchyNode(Generic[T]):
    """
    Attributes:
        row: The stored row.
        level: Depth below its root, roots are level 0.
        path: Ids from the root down to (and including) this node.
    """

    row: T
    level: int
    path: tuple[Any, ...]

    @property
    def node_id(self) -> Any:
        return self.path[-1]

    @property
    def parent_id(self) -> Any | None:
        return self.path[-2] if len(self.path) > 1 else None


def _children_map(
    rows: Iterable[T],
    id_of: Callable[[T], Hashable],
    parent_of: Callable[[T], Hashable | None],
) -> tuple[dict[Hashable, T], dict[Hashable | None, list[T]]]:
    by_id: dict[Hashable, T] = {}
    for row in rows:
        by_id[id_of(row)] = row
    children: dict[Hashable | None, list[T]] = defaultdict(list)
    for node_id, row in by_id.items():
        parent = parent_of(row)
        # Rows whose parent is unknown are treated as roots
        if parent is not None and parent not in by_id:
            logger.debug("Node %r references missing parent %r", node_id, parent)
            parent = None
        children[parent].append(row)
    return by_id, children


def walk_hierarchy(
    rows: Iterable[T],
    id_of: Callable[[T], Hashable],
    parent_of: Callable[[T], Hashable | None],
    *,
    sort_key: Callable[[T], Any] | None = None,
    max_depth: int | None = None,
) -> list[HierarchyNode[T]]:
    """
    Flatten a forest ordered by ``(level, sort_key)``.

    Raises:
        HierarchyCycleError: some rows are unreachable from any root
            because their parent chain loops.
    """
    by_id, children = _children_map(rows, id_of, parent_of)
    if sort_key is not None:
        for siblings in children.values():
            siblings.sort(key=sort_key)

    # Walk the whole forest: a row only the depth limit hides is fine, a
    # row no root reaches sits on a cycle
    ordered = list(_bfs(children[None], children, id_of, (), None))
    if len(ordered) != len(by_id):
        seen = {n.node_id for n in ordered}
        raise HierarchyCycleError(k for k in by_id if k not in seen)
    if max_depth is not None:
        ordered = [n for n in ordered if n.level <= max_depth]

    if sort_key is not None:
        # Children were enqueued per parent; order each level globally
        ordered.sort(key=lambda n: (n.level, sort_key(n.row)))
    return ordered


def descendants_of(
    rows: Iterable[T],
    root_id: Hashable,
    id_of: Callable[[T], Hashable],
    parent_of: Callable[[T], Hashable | None],
    *,
    include_root: bool = True,
    max_depth: int | None = None,
) -> list[HierarchyNode[T]]:
    """Subtree under *root_id*, breadth-first; empty if the id is unknown."""
    by_id, children = _children_map(rows, id_of, parent_of)
    root = by_id.get(root_id)
    if root is None:
        return []
    nodes = list(_bfs([root], children, id_of, (), max_depth, guard=True))
    return nodes if include_root else nodes[1:]


def _bfs(
    start: Iterable[T],
    children: dict[Hashable | None, list[T]],
    id_of: Callable[[T], Hashable],
    prefix: tuple[Any, ...],
    max_depth: int | None,
    *,
    guard: bool = False,
) -> Iterator[HierarchyNode[T]]:
    queue: deque[HierarchyNode[T]] = deque(
        HierarchyNode(row, len(prefix), (*prefix, id_of(row))) for row in start
    )
    visited: set[Hashable] = set()
    while queue:
        node = queue.popleft()
        if guard:
            if node.node_id in visited:
                raise HierarchyCycleError([node.node_id])
            visited.add(node.node_id)
        yield node
        if max_depth is not None and node.level >= max_depth:
            continue
        for child in children.get(node.node_id, ()):
            queue.append(
                HierarchyNode(child, node.level + 1, (*node.path, id_of(child)))
            )
