"""Exception types raised by the tie prediction pipeline.

Every error carries the offending input (node id, edge pair or configuration
value) as attributes so callers can report precisely what went wrong. All of
them derive from ``TieLPError`` so the CLI can map them to a single exit code.
"""

from typing import Any, Hashable, Optional, Tuple


class TieLPError(Exception):
    """Base class for all pipeline errors."""


class UnknownNode(TieLPError, LookupError):
    """A graph query referenced a node that is not in the graph."""

    def __init__(self, node: Hashable) -> None:
        super().__init__(f"Unknown node: {node!r}")
        self.node = node


class EdgeNotFound(TieLPError, LookupError):
    """An edge scheduled for removal does not exist in the graph."""

    def __init__(self, edge: Tuple[Hashable, Hashable]) -> None:
        super().__init__(f"Edge not found: {edge!r}")
        self.edge = edge


class SamplingExhausted(TieLPError, RuntimeError):
    """Negative sampling could not collect the requested number of pairs.

    The failure is recoverable: retry with a lower degree threshold, a smaller
    target count or a larger attempt budget.
    """

    def __init__(
        self,
        reason: str,
        degree_threshold: int,
        target: int,
        collected: int = 0,
        attempts: int = 0,
    ) -> None:
        super().__init__(
            f"{reason} (degree_threshold={degree_threshold}, target={target}, "
            f"collected={collected}, attempts={attempts})"
        )
        self.reason = reason
        self.degree_threshold = degree_threshold
        self.target = target
        self.collected = collected
        self.attempts = attempts


class DegenerateDegree(TieLPError, ArithmeticError):
    """Adamic-Adar met a common neighbour of degree 1, where ln(1) = 0."""

    def __init__(self, pair: Tuple[Hashable, Hashable], neighbour: Hashable) -> None:
        super().__init__(
            f"Common neighbour {neighbour!r} of pair {pair!r} has degree 1; "
            "Adamic-Adar weight 1/ln(1) is undefined"
        )
        self.pair = pair
        self.neighbour = neighbour


class InvalidSplit(TieLPError, ValueError):
    """The train fraction or the dataset size cannot produce a non-empty split."""

    def __init__(self, message: str, train_fraction: float, size: int) -> None:
        super().__init__(f"{message} (train_fraction={train_fraction}, rows={size})")
        self.train_fraction = train_fraction
        self.size = size


class PipelineError(TieLPError):
    """Wraps the first failure of a pipeline run together with its stage."""

    def __init__(self, stage: str, cause: Exception, detail: Optional[Any] = None) -> None:
        super().__init__(f"Pipeline failed during '{stage}': {cause}")
        self.stage = stage
        self.cause = cause
        self.detail = detail
