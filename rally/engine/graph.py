"""
rally.engine.graph — Relationship Graph
========================================

The fixed set of named edges between entities.  The traversal engine and
the enrollment service both read from here, so "user.campaigns" means the
same join everywhere.

Edges::

    User.campaigns       → Campaign    many   (through user_campaigns, payload ``data``)
    Campaign.actions     → Action      many
    User.user_actions    → UserAction  many
    UserAction.action    → Action      one
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from rally.database.models import Action, Base, Campaign, User, UserAction, UserCampaign
from rally.errors import InvalidPath

__all__ = ["Cardinality", "Edge", "EDGES", "edges_of", "get_edge", "plan_path"]

logger = logging.getLogger(__name__)


class Cardinality(enum.StrEnum):
    ONE = "one"
    MANY = "many"


@dataclass(frozen=True, slots=True)
class Edge:
    """A named, typed link from ``source`` rows to ``target`` rows.

    Direct edges match ``source.<source_key>`` against
    ``target.<target_key>``.  Edges with a ``through`` entity match
    ``source.<source_key>`` against ``through.<target_key>`` and reach the
    target via ``through.<through_target_key> = target.id``; the join
    row's ``payload`` attribute travels with each child.
    """

    name: str
    source: type[Base]
    target: type[Base]
    cardinality: Cardinality
    source_key: str
    target_key: str
    through: type[Base] | None = None
    through_target_key: str | None = None
    payload: str | None = None

    @property
    def is_many_to_many(self) -> bool:
        return self.through is not None

    def __str__(self) -> str:
        return f"{self.source.__name__}.{self.name}"


EDGES: tuple[Edge, ...] = (
    Edge(
        name="campaigns",
        source=User,
        target=Campaign,
        cardinality=Cardinality.MANY,
        source_key="id",
        target_key="user_id",
        through=UserCampaign,
        through_target_key="campaign_id",
        payload="data",
    ),
    Edge(
        name="actions",
        source=Campaign,
        target=Action,
        cardinality=Cardinality.MANY,
        source_key="id",
        target_key="campaign_id",
    ),
    Edge(
        name="user_actions",
        source=User,
        target=UserAction,
        cardinality=Cardinality.MANY,
        source_key="id",
        target_key="user_id",
    ),
    Edge(
        name="action",
        source=UserAction,
        target=Action,
        cardinality=Cardinality.ONE,
        source_key="action_id",
        target_key="id",
    ),
)

_BY_SOURCE: dict[type[Base], dict[str, Edge]] = {}
for _edge in EDGES:
    _BY_SOURCE.setdefault(_edge.source, {})[_edge.name] = _edge


def edges_of(entity: type[Base]) -> tuple[Edge, ...]:
    """Return every outbound edge of *entity* (possibly none)."""
    return tuple(_BY_SOURCE.get(entity, {}).values())


def get_edge(entity: type[Base], name: str) -> Edge:
    """Look up the edge *name* leaving *entity*.

    Raises :class:`InvalidPath` if *entity* has no such edge.
    """
    edge = _BY_SOURCE.get(entity, {}).get(name)
    if edge is None:
        known = sorted(_BY_SOURCE.get(entity, {}))
        raise InvalidPath(
            f"{entity.__name__} has no edge {name!r}",
            details={"entity": entity.__name__, "edge": name, "known": known},
        )
    return edge


def plan_path(root: type[Base], path: Sequence[str]) -> list[Edge]:
    """Resolve *path* (edge names) from *root* into a list of edges.

    Each segment starts where the previous one ended, so
    ``plan_path(User, ["campaigns", "actions"])`` is valid while
    ``plan_path(User, ["actions"])`` raises :class:`InvalidPath`.
    """
    if isinstance(path, str):
        raise InvalidPath(f"Path must be a sequence of edge names, got {path!r}")

    edges: list[Edge] = []
    current = root
    for name in path:
        edge = get_edge(current, name)
        edges.append(edge)
        current = edge.target
    logger.debug(
        "Planned path %s: %s", root.__name__, " → ".join(str(e) for e in edges) or "(root)"
    )
    return edges
