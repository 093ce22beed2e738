"""
Group Graph

Directed graph of visibility groups built with NetworkX.

    Vertices : VisibilityGroup (keyed by name)
    Edges    : A -> B  iff  B is listed in A.visible_to_groups

Self-loops and cycles are legal policy (e.g. two mutually visible groups)
and are not rejected. Enumeration is sorted by group name so that generated
artifacts are reproducible across runs.

Usage:
    graph = GroupGraph.build(groups)
    api = graph.get_group("api")
    for source, target in graph.edges():
        ...
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

import networkx as nx

from visibility_policy.domain.models.errors import (
    DuplicateGroupError,
    GroupNotFoundError,
    UndefinedGroupReference,
)
from visibility_policy.domain.models.policy import VisibilityGroup

logger = logging.getLogger(__name__)


class GroupGraph:
    """
    Immutable, validated graph of visibility groups.

    Use :meth:`build` to construct; the constructor expects an already
    validated graph.
    """

    def __init__(self, graph: nx.DiGraph, groups: Dict[str, VisibilityGroup]) -> None:
        self._graph = nx.freeze(graph)
        self._groups = groups

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, groups: Iterable[VisibilityGroup]) -> "GroupGraph":
        """
        Validate the group definitions and build the graph.

        Raises:
            DuplicateGroupError: two groups share a name
            UndefinedGroupReference: a visible_to_groups entry names no group
        """
        by_name: Dict[str, VisibilityGroup] = {}
        for group in groups:
            existing = by_name.get(group.name)
            if existing is not None:
                raise DuplicateGroupError(group.name, existing.label, group.label)
            by_name[group.name] = group

        ordered = {name: by_name[name] for name in sorted(by_name)}

        G = nx.DiGraph()
        for name, group in ordered.items():
            G.add_node(name, group=group)

        for name, group in ordered.items():
            for ref in sorted(group.visible_to_groups):
                if ref not in ordered:
                    raise UndefinedGroupReference(name, ref)
                G.add_edge(name, ref)

        logger.debug(
            f"Built group graph with {G.number_of_nodes()} groups "
            f"and {G.number_of_edges()} visibility edges"
        )
        return cls(G, ordered)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_group(self, name: str) -> VisibilityGroup:
        if not name:
            raise ValueError("Group name must not be empty")
        try:
            return self._groups[name]
        except KeyError:
            raise GroupNotFoundError(name) from None

    def has_group(self, name: str) -> bool:
        return name in self._groups

    def __contains__(self, name: object) -> bool:
        return name in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def names(self) -> List[str]:
        return list(self._groups)

    def nodes(self) -> List[VisibilityGroup]:
        """All groups, sorted by name."""
        return list(self._groups.values())

    def edges(self) -> List[Tuple[VisibilityGroup, VisibilityGroup]]:
        """All (group, visible-to group) pairs, sorted by source then target name."""
        return [
            (self._groups[source], self._groups[target])
            for source, target in sorted(self._graph.edges())
        ]

    def visible_to(self, name: str) -> List[VisibilityGroup]:
        """Groups that may depend on members of ``name``."""
        self.get_group(name)
        return [self._groups[t] for t in sorted(self._graph.successors(name))]

    def visible_from(self, name: str) -> List[VisibilityGroup]:
        """Groups whose members ``name`` is allowed to depend on."""
        self.get_group(name)
        return [self._groups[s] for s in sorted(self._graph.predecessors(name))]

    def is_visible(self, group_name: str, dependent_group: str) -> bool:
        """True if members of ``dependent_group`` may depend on ``group_name``."""
        return self._graph.has_edge(group_name, dependent_group)

    def to_networkx(self) -> nx.DiGraph:
        """Mutable copy of the underlying graph for visualisation collaborators."""
        return nx.DiGraph(self._graph)
