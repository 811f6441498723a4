"""Positive and negative edge sampling for tie prediction.

The positive class is a uniform sample of existing edges, removed from the
graph to form the reference graph. The negative class is drawn by rejection
sampling among high-degree nodes: pairs that are not adjacent in the original
graph and have not been drawn before. All randomness comes from the
``numpy.random.Generator`` passed in by the caller.
"""

from dataclasses import dataclass
from typing import Hashable, List, Set, Tuple

import math

import numpy as np

from .errors import SamplingExhausted
from .graph import Edge, GraphStore, canonical_edge

DEFAULT_POSITIVE_FRACTION = 0.10
DEFAULT_DEGREE_THRESHOLD = 15
DEFAULT_MAX_ATTEMPTS = 100_000


@dataclass(frozen=True)
class CandidateEdge:
    """A node pair with its class: 1 for a removed edge, 0 for a sampled non-edge."""

    source: Hashable
    target: Hashable
    label: int

    @property
    def pair(self) -> Edge:
        return canonical_edge(self.source, self.target)


@dataclass(frozen=True)
class SampledEdges:
    """Both candidate classes plus the graph with the positives removed."""

    positives: Tuple[CandidateEdge, ...]
    negatives: Tuple[CandidateEdge, ...]
    reference_graph: GraphStore

    def candidates(self) -> List[CandidateEdge]:
        """Positives followed by negatives; shuffling happens at split time."""
        return list(self.positives) + list(self.negatives)


def sample_positive_edges(
    graph: GraphStore,
    fraction: float,
    rng: np.random.Generator,
) -> List[CandidateEdge]:
    """Select ``floor(fraction * |E|)`` distinct edges uniformly at random.

    Args:
        graph: The original graph.
        fraction: Share of edges to hold out, strictly between 0 and 1.
        rng: Seeded random source.

    Returns:
        Label-1 candidates in draw order.

    Raises:
        ValueError: If ``fraction`` lies outside ``(0, 1)``.
    """
    if not 0.0 < fraction < 1.0:
        raise ValueError(f"positive_fraction must be in (0, 1), got {fraction}")
    all_edges = graph.edges()
    k = int(math.floor(fraction * len(all_edges)))
    picked = rng.choice(len(all_edges), size=k, replace=False)
    return [CandidateEdge(*all_edges[int(i)], label=1) for i in picked]


def eligible_nodes(graph: GraphStore, degree_threshold: int) -> List[Hashable]:
    """Nodes whose degree strictly exceeds ``degree_threshold``, in sorted order."""
    return [n for n in graph.nodes() if graph.degree(n) > degree_threshold]


def count_free_pairs(graph: GraphStore, pool: List[Hashable]) -> int:
    """Number of unordered non-adjacent pairs of distinct nodes within ``pool``."""
    k = len(pool)
    taken = graph.nx_graph.subgraph(pool).number_of_edges()
    return k * (k - 1) // 2 - taken


def sample_negative_edges(
    graph: GraphStore,
    count: int,
    degree_threshold: int,
    rng: np.random.Generator,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> List[CandidateEdge]:
    """Draw ``count`` distinct non-adjacent pairs among high-degree nodes.

    Each attempt draws two nodes uniformly, with replacement, from the nodes
    whose degree in ``graph`` exceeds ``degree_threshold``. The attempt is
    rejected if both draws are the same node, if the nodes are adjacent, or if
    the unordered pair was already accepted.

    Args:
        graph: The original graph, before any positive edges are removed.
        count: Number of negative pairs to collect.
        degree_threshold: Only nodes with degree greater than this are drawn.
        rng: Seeded random source.
        max_attempts: Upper bound on draws before giving up.

    Returns:
        Label-0 candidates in acceptance order.

    Raises:
        SamplingExhausted: If fewer than two nodes are eligible, if the eligible
            nodes do not have ``count`` free pairs, or if the attempt budget runs out.
        ValueError: If ``count`` is negative or ``max_attempts`` is not positive.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    pool = eligible_nodes(graph, degree_threshold)
    if len(pool) < 2:
        raise SamplingExhausted(
            f"only {len(pool)} node(s) exceed the degree threshold",
            degree_threshold,
            count,
        )
    # Fail fast instead of spending the whole budget on an impossible target
    if count_free_pairs(graph, pool) < count:
        raise SamplingExhausted(
            "not enough non-adjacent pairs among eligible nodes",
            degree_threshold,
            count,
        )

    seen: Set[Edge] = set()
    negatives: List[CandidateEdge] = []
    attempts = 0
    while len(negatives) < count:
        if attempts >= max_attempts:
            raise SamplingExhausted(
                "attempt budget exceeded",
                degree_threshold,
                count,
                collected=len(negatives),
                attempts=attempts,
            )
        attempts += 1
        i, j = rng.integers(0, len(pool), size=2)
        u, v = pool[int(i)], pool[int(j)]
        if u == v or graph.are_adjacent(u, v):
            continue
        key = canonical_edge(u, v)
        if key in seen:
            continue
        seen.add(key)
        negatives.append(CandidateEdge(u, v, label=0))
    return negatives


def sample_edges(
    graph: GraphStore,
    rng: np.random.Generator,
    fraction: float = DEFAULT_POSITIVE_FRACTION,
    degree_threshold: int = DEFAULT_DEGREE_THRESHOLD,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> SampledEdges:
    """Sample both classes and derive the reference graph.

    Positives are drawn first, then as many negatives, both from the same
    ``rng``. Negative sampling consults the original graph so a removed
    positive can never come back as a negative.
    """
    positives = sample_positive_edges(graph, fraction, rng)
    negatives = sample_negative_edges(
        graph, len(positives), degree_threshold, rng, max_attempts=max_attempts
    )
    reference = graph.remove_edges([p.pair for p in positives])
    return SampledEdges(
        positives=tuple(positives),
        negatives=tuple(negatives),
        reference_graph=reference,
    )
