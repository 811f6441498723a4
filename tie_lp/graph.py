"""Immutable undirected simple graphs for tie prediction.

This module provides a small wrapper around a frozen NetworkX graph to:
- build a simple graph from raw edge records, collapsing reverse and parallel
  duplicates and dropping self-loops
- answer neighbour, degree and adjacency queries with explicit errors for
  unknown nodes
- derive a new graph with a set of edges removed, leaving the source untouched

Edges are always reported in canonical orientation ``(min(u, v), max(u, v))``,
so node identifiers must be mutually orderable (all ints or all strings).
"""

from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Set, Tuple

import networkx as nx

from .errors import EdgeNotFound, UnknownNode

Edge = Tuple[Hashable, Hashable]

NEIGHBOR_MODES = ("all", "in", "out")
MISSING_EDGE_POLICIES = ("error", "ignore")


def canonical_edge(u: Hashable, v: Hashable) -> Edge:
    """Return ``(u, v)`` ordered so that ``(u, v)`` and ``(v, u)`` coincide."""
    return (u, v) if u <= v else (v, u)  # type: ignore[operator]


class GraphStore:
    """Read-only view over a simple undirected graph.

    Instances are never mutated after construction; ``remove_edges`` returns a
    new ``GraphStore``. The simplification counters describe what was dropped
    when the graph was built from raw records.
    """

    def __init__(
        self,
        g: nx.Graph,
        dropped_self_loops: int = 0,
        dropped_duplicates: int = 0,
    ) -> None:
        self._g = nx.freeze(g)
        self.dropped_self_loops = dropped_self_loops
        self.dropped_duplicates = dropped_duplicates

    @property
    def dropped_edges(self) -> int:
        """Total number of raw edge records removed by simplification."""
        return self.dropped_self_loops + self.dropped_duplicates

    @property
    def nx_graph(self) -> nx.Graph:
        """The underlying frozen NetworkX graph."""
        return self._g

    def has_node(self, node: Hashable) -> bool:
        return node in self._g

    def _require(self, node: Hashable) -> None:
        if node not in self._g:
            raise UnknownNode(node)

    def nodes(self) -> List[Hashable]:
        """Return all nodes in sorted order."""
        return sorted(self._g.nodes())

    def number_of_nodes(self) -> int:
        return self._g.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._g.number_of_edges()

    def neighbors(self, node: Hashable, mode: str = "all") -> FrozenSet[Hashable]:
        """Return the set of nodes adjacent to ``node``.

        The graph is undirected, so the ``in``, ``out`` and ``all`` modes all
        return the same set.

        Raises:
            UnknownNode: If ``node`` is not in the graph.
            ValueError: If ``mode`` is not a known neighbour mode.
        """
        if mode not in NEIGHBOR_MODES:
            raise ValueError(f"Unknown neighbour mode: {mode}")
        self._require(node)
        return frozenset(self._g.adj[node])

    def degree(self, node: Hashable) -> int:
        self._require(node)
        return int(self._g.degree(node))

    def are_adjacent(self, u: Hashable, v: Hashable) -> bool:
        self._require(u)
        self._require(v)
        return self._g.has_edge(u, v)

    def edges(self) -> List[Edge]:
        """Return every edge once, canonically oriented and sorted."""
        return sorted(canonical_edge(u, v) for u, v in self._g.edges())

    def remove_edges(
        self, edges: Iterable[Edge], missing: str = "error"
    ) -> "GraphStore":
        """Return a new graph without the given edges.

        Nodes are never removed, only edges, so every node of this graph is
        still present in the result.

        Args:
            edges: Pairs to remove, in either orientation.
            missing: ``"error"`` to raise on an absent edge, ``"ignore"`` to skip it.

        Returns:
            A new ``GraphStore``; this instance is left unchanged.

        Raises:
            EdgeNotFound: If an edge is absent and ``missing="error"``.
            ValueError: If ``missing`` is not a known policy.
        """
        if missing not in MISSING_EDGE_POLICIES:
            raise ValueError(f"Unknown missing-edge policy: {missing}")
        # copy() builds a fresh, unfrozen instance we are free to prune
        h = self._g.copy()
        for u, v in edges:
            if h.has_edge(u, v):
                h.remove_edge(u, v)
            elif missing == "error":
                raise EdgeNotFound((u, v))
        return GraphStore(h, self.dropped_self_loops, self.dropped_duplicates)


def build_graph(
    edges: Iterable[Edge], nodes: Optional[Iterable[Hashable]] = None
) -> GraphStore:
    """Construct a simple undirected graph from raw edge records.

    Args:
        edges: Pairs of node identifiers; direction, repeats and self-loops are allowed.
        nodes: Optional full node list; isolated nodes are retained. When given,
            every edge endpoint must be one of these nodes.

    Returns:
        A ``GraphStore`` whose counters record the dropped self-loops and duplicates.

    Raises:
        UnknownNode: If ``nodes`` is given and an edge references another node.
    """
    g = nx.Graph()
    known: Optional[Set[Hashable]] = None
    if nodes is not None:
        known = set(nodes)
        g.add_nodes_from(known)
    self_loops = 0
    duplicates = 0
    for u, v in edges:
        if known is not None:
            for node in (u, v):
                if node not in known:
                    raise UnknownNode(node)
        if u == v:
            self_loops += 1
            # Keep the node itself, only the loop is dropped
            g.add_node(u)
            continue
        if g.has_edge(u, v):
            duplicates += 1
            continue
        g.add_edge(u, v)
    return GraphStore(g, dropped_self_loops=self_loops, dropped_duplicates=duplicates)


def edge_set(graph: GraphStore) -> Set[Edge]:
    """Return a Python ``set`` of canonical edges for fast membership tests."""
    return set(graph.edges())


def degree_sequence(graph: GraphStore) -> Dict[Hashable, int]:
    """Map every node to its degree."""
    return {node: graph.degree(node) for node in graph.nodes()}
