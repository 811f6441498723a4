"""Tie prediction: topology heuristics for predicting ties in a communication graph.

This package provides:
- an immutable simple-graph store built from node and edge tables
- positive (removed edge) and negative (high-degree non-edge) sampling
- four similarity heuristics computed on the reference graph
- the labelled dataset and its seeded train/test split
- pluggable classifiers and confusion-matrix evaluation
- a pipeline and command line interface that tie everything together
"""

__all__ = [
    "errors",
    "graph",
    "io",
    "sampling",
    "features",
    "dataset",
    "models",
    "metrics",
    "eval",
    "train",
    "utils",
]
