"""Topological similarity heuristics for candidate node pairs.

Four scores are computed per pair against a reference graph:
- ``common_neighbors``: size of the shared neighbourhood
- ``jaccard``: shared over combined neighbourhood, 0 when both are empty
- ``adamic_adar``: sum of ``1 / ln(degree)`` over shared neighbours
- ``preferential_attachment``: product of the two degrees

Adamic-Adar is undefined for a shared neighbour of degree 1. Such a neighbour
can only occur when a pair is a node with itself, but the behaviour is still
fixed by the ``policy`` argument (exclude, clamp or error).
"""

from dataclasses import astuple, dataclass
from typing import Dict, FrozenSet, Hashable, Iterable, List

import math

import pandas as pd

from .errors import DegenerateDegree
from .graph import GraphStore
from .sampling import CandidateEdge

FEATURE_COLUMNS = ["common_neighbors", "jaccard", "adamic_adar", "pref_attachment"]

# Degenerate-degree policies for Adamic-Adar
EXCLUDE = "exclude"
CLAMP = "clamp"
ERROR = "error"
DEGENERATE_POLICIES = (EXCLUDE, CLAMP, ERROR)


@dataclass(frozen=True)
class HeuristicVector:
    common_neighbors: int
    jaccard: float
    adamic_adar: float
    pref_attachment: int


def _check_policy(policy: str) -> None:
    if policy not in DEGENERATE_POLICIES:
        raise ValueError(f"Unknown degenerate-degree policy: {policy}")


def common_neighbors(graph: GraphStore, u: Hashable, v: Hashable) -> int:
    return len(graph.neighbors(u) & graph.neighbors(v))


def jaccard(graph: GraphStore, u: Hashable, v: Hashable) -> float:
    nu, nv = graph.neighbors(u), graph.neighbors(v)
    union = len(nu | nv)
    # Two isolated nodes have zero similarity rather than 0/0
    return len(nu & nv) / union if union else 0.0


def adamic_adar(
    graph: GraphStore, u: Hashable, v: Hashable, policy: str = EXCLUDE
) -> float:
    _check_policy(policy)
    shared = graph.neighbors(u) & graph.neighbors(v)
    return _adamic_adar_sum((u, v), shared, graph.degree, policy)


def preferential_attachment(graph: GraphStore, u: Hashable, v: Hashable) -> int:
    return graph.degree(u) * graph.degree(v)


def _adamic_adar_sum(pair, shared, degree_of, policy: str) -> float:
    total = 0.0
    # Sorted so the floating point sum does not depend on set iteration order
    for w in sorted(shared):
        d = degree_of(w)
        if d < 2:
            if policy == EXCLUDE:
                continue
            if policy == ERROR:
                raise DegenerateDegree(pair, w)
            d = 2
        total += 1.0 / math.log(d)
    return total


class HeuristicEngine:
    """Batch evaluator that memoises neighbour sets and degrees per node.

    The reference graph is immutable, so one engine can be reused for any
    number of candidate batches on that graph.
    """

    def __init__(self, graph: GraphStore, policy: str = EXCLUDE) -> None:
        _check_policy(policy)
        self.graph = graph
        self.policy = policy
        self._neighbors: Dict[Hashable, FrozenSet[Hashable]] = {}
        self._degrees: Dict[Hashable, int] = {}

    def neighbors(self, node: Hashable) -> FrozenSet[Hashable]:
        if node not in self._neighbors:
            self._neighbors[node] = self.graph.neighbors(node)
        return self._neighbors[node]

    def degree(self, node: Hashable) -> int:
        if node not in self._degrees:
            self._degrees[node] = len(self.neighbors(node))
        return self._degrees[node]

    def vector(self, u: Hashable, v: Hashable) -> HeuristicVector:
        """Compute all four heuristics for one pair."""
        nu, nv = self.neighbors(u), self.neighbors(v)
        shared = nu & nv
        union = len(nu | nv)
        return HeuristicVector(
            common_neighbors=len(shared),
            jaccard=len(shared) / union if union else 0.0,
            adamic_adar=_adamic_adar_sum((u, v), shared, self.degree, self.policy),
            pref_attachment=self.degree(u) * self.degree(v),
        )

    def compute(self, candidates: Iterable[CandidateEdge]) -> List[HeuristicVector]:
        """One vector per candidate, in input order."""
        return [self.vector(c.source, c.target) for c in candidates]


def heuristic_frame(
    graph: GraphStore, candidates: List[CandidateEdge], policy: str = EXCLUDE
) -> pd.DataFrame:
    """Return the heuristics of ``candidates`` as a DataFrame with ``FEATURE_COLUMNS``."""
    vectors = HeuristicEngine(graph, policy).compute(candidates)
    return pd.DataFrame([astuple(vec) for vec in vectors], columns=FEATURE_COLUMNS)
