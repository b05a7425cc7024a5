"""
rally.engine.traversal — Batched Eager Loader
==============================================

Interprets a path of edge names (see :mod:`rally.engine.graph`) against
the database and returns a tree of :class:`Node` objects shaped exactly
like the path.

The walk is breadth-first.  After the root lookup, each path segment is
**one** ``SELECT … WHERE key IN (…)`` covering every parent on the
previous level, so a path of length *k* costs ``1 + k`` queries no matter
how wide the tree gets.

Filters are equality constraints keyed by edge name::

    resolve(session, User, 7, ["campaigns", "actions"],
            filters={"campaigns": {"id": 3}})

They narrow the children produced at that segment only; ancestors are
never dropped because a descendant segment came back empty.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from rally.database.models import Base
from rally.engine.graph import Cardinality, Edge, plan_path
from rally.errors import InvalidPath, NotFound

__all__ = ["Filters", "Node", "resolve", "resolve_all"]

logger = logging.getLogger(__name__)

Filters = Mapping[str, Mapping[str, Any]]


@dataclass(slots=True)
class Node:
    """One resolved row plus the children reached from it.

    ``link`` is the join row for many-to-many edges (e.g. the
    :class:`UserCampaign` that put a campaign under a user), else ``None``.
    ``children`` maps edge name to a list (``many``) or to a single
    node / ``None`` (``one``).
    """

    row: Base
    link: Base | None = None
    children: dict[str, list[Node] | Node | None] = field(default_factory=dict)

    def many(self, edge: str) -> list[Node]:
        value = self.children.get(edge)
        return value if isinstance(value, list) else []

    def one(self, edge: str) -> Node | None:
        value = self.children.get(edge)
        return value if isinstance(value, Node) else None

    def to_dict(self, render: Callable[[Base], dict]) -> dict:
        """Render the subtree, using *render* for each row."""
        out = render(self.row)
        if self.link is not None:
            out["membership"] = render(self.link)
        for name, child in self.children.items():
            if isinstance(child, list):
                out[name] = [c.to_dict(render) for c in child]
            elif child is None:
                out[name] = None
            else:
                out[name] = child.to_dict(render)
        return out


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
def _column_names(entity: type[Base]) -> set[str]:
    return set(inspect(entity).column_attrs.keys())


def _check_filters(edges: Sequence[Edge], filters: Filters) -> None:
    by_name = {e.name: e for e in edges}
    for edge_name, constraints in filters.items():
        edge = by_name.get(edge_name)
        if edge is None:
            raise InvalidPath(
                f"Filter on {edge_name!r}, which is not a segment of the path",
                details={"edge": edge_name, "path": [e.name for e in edges]},
            )
        unknown = set(constraints) - _column_names(edge.target)
        if unknown:
            raise InvalidPath(
                f"{edge.target.__name__} has no field(s) {sorted(unknown)}",
                details={"edge": edge_name, "fields": sorted(unknown)},
            )


# ---------------------------------------------------------------------------
# Level fetch
# ---------------------------------------------------------------------------
def _fetch_level(
    session: Session,
    edge: Edge,
    keys: set[Any],
    constraints: Mapping[str, Any],
) -> dict[Any, list[tuple[Base, Base | None]]]:
    """Fetch the children of every parent key in one query.

    Returns ``{parent_key: [(child_row, link_row_or_None), …]}``.
    """
    grouped: dict[Any, list[tuple[Base, Base | None]]] = defaultdict(list)
    if not keys:
        return grouped

    target = edge.target
    where = [getattr(target, col) == value for col, value in constraints.items()]

    if edge.is_many_to_many:
        through = edge.through
        stmt = (
            select(through, target)
            .join(target, getattr(target, "id") == getattr(through, edge.through_target_key))
            .where(getattr(through, edge.target_key).in_(keys), *where)
            .order_by(getattr(target, "id"))
        )
        for link, row in session.execute(stmt).all():
            grouped[getattr(link, edge.target_key)].append((row, link))
    else:
        stmt = (
            select(target)
            .where(getattr(target, edge.target_key).in_(keys), *where)
            .order_by(getattr(target, "id"))
        )
        for row in session.scalars(stmt).all():
            grouped[getattr(row, edge.target_key)].append((row, None))

    return grouped


def _expand(
    session: Session,
    level: list[Node],
    edges: Sequence[Edge],
    filters: Filters,
) -> None:
    for depth, edge in enumerate(edges, start=1):
        keys = {getattr(n.row, edge.source_key) for n in level}
        keys.discard(None)
        children = _fetch_level(session, edge, keys, filters.get(edge.name, {}))

        next_level: list[Node] = []
        for parent in level:
            found = [
                Node(row=row, link=link)
                for row, link in children.get(getattr(parent.row, edge.source_key), [])
            ]
            if edge.cardinality is Cardinality.ONE:
                parent.children[edge.name] = found[0] if found else None
            else:
                parent.children[edge.name] = found
            next_level.extend(found)

        logger.debug(
            "Level %d (%s): %d parents → %d children",
            depth, edge, len(level), len(next_level),
        )
        level = next_level


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def resolve(
    session: Session,
    root: type[Base],
    root_id: Any,
    path: Sequence[str] = (),
    filters: Filters | None = None,
) -> Node:
    """Load the *root* row with id *root_id* and everything under *path*.

    Raises :class:`NotFound` if the root row doesn't exist and
    :class:`InvalidPath` for unknown edges or filter fields.  Missing
    children are never an error: they come back as ``[]`` / ``None``.
    """
    filters = filters or {}
    edges = plan_path(root, path)
    _check_filters(edges, filters)

    row = session.get(root, root_id)
    if row is None:
        raise NotFound(root.__name__, root_id)

    node = Node(row=row)
    _expand(session, [node], edges, filters)
    return node


def resolve_all(
    session: Session,
    root: type[Base],
    path: Sequence[str] = (),
    filters: Filters | None = None,
) -> list[Node]:
    """Like :func:`resolve`, starting from every row of *root*."""
    filters = filters or {}
    edges = plan_path(root, path)
    _check_filters(edges, filters)

    rows = session.scalars(select(root).order_by(getattr(root, "id"))).all()
    nodes = [Node(row=row) for row in rows]
    _expand(session, nodes, edges, filters)
    return nodes
