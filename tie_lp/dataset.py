"""Labelled dataset assembly and the seeded train/test split.

The dataset is a flat ``pandas.DataFrame`` with one row per candidate pair:
``source``, ``target``, the heuristic columns and ``label``. It can be written
to CSV as-is.
"""

from dataclasses import astuple
from typing import Dict, List, Set, Tuple

import math

import numpy as np
import pandas as pd

from .errors import InvalidSplit
from .features import FEATURE_COLUMNS, HeuristicVector
from .graph import Edge
from .sampling import CandidateEdge

PAIR_COLUMNS = ["source", "target"]
LABEL_COLUMN = "label"
DATASET_COLUMNS = PAIR_COLUMNS + FEATURE_COLUMNS + [LABEL_COLUMN]


def build_dataset(
    candidates: List[CandidateEdge], vectors: List[HeuristicVector]
) -> pd.DataFrame:
    """Merge candidates and their heuristic vectors into one labelled table.

    Args:
        candidates: Positive and negative pairs, in the order rows should appear.
        vectors: Heuristic vectors aligned 1:1 with ``candidates``.

    Returns:
        A DataFrame with ``DATASET_COLUMNS``.

    Raises:
        ValueError: On a length mismatch or a repeated unordered pair.
    """
    if len(candidates) != len(vectors):
        raise ValueError(
            f"Got {len(candidates)} candidates but {len(vectors)} heuristic vectors"
        )
    seen: Set[Edge] = set()
    rows = []
    for cand, vec in zip(candidates, vectors):
        if cand.pair in seen:
            raise ValueError(f"Duplicate candidate pair: {cand.pair!r}")
        seen.add(cand.pair)
        rows.append((cand.source, cand.target, *astuple(vec), int(cand.label)))
    return pd.DataFrame(rows, columns=DATASET_COLUMNS)


def split_dataset(
    dataset: pd.DataFrame, rng: np.random.Generator, train_fraction: float = 0.8
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Partition rows into train and test sets via a random permutation.

    The first ``floor(train_fraction * N)`` permuted rows form the train set.
    The split is not stratified; row index labels are kept so callers can
    trace every row back to the dataset.

    Raises:
        InvalidSplit: If ``train_fraction`` is outside ``(0, 1)`` or either side
            would be empty.
    """
    n = len(dataset)
    if not 0.0 < train_fraction < 1.0:
        raise InvalidSplit("train_fraction must lie in (0, 1)", train_fraction, n)
    n_train = int(math.floor(train_fraction * n))
    if n_train == 0 or n_train == n:
        raise InvalidSplit("dataset too small for a non-empty split", train_fraction, n)
    order = rng.permutation(n)
    return dataset.iloc[order[:n_train]], dataset.iloc[order[n_train:]]


def features_and_labels(frame: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray]:
    """Extract the feature matrix and label vector of a dataset slice."""
    x = frame[FEATURE_COLUMNS].to_numpy(dtype=float)
    y = frame[LABEL_COLUMN].to_numpy(dtype=int)
    return x, y


def class_balance(frame: pd.DataFrame) -> Dict[str, int]:
    """Count rows per label, e.g. ``{"0": 7, "1": 9}``; both labels always present."""
    counts = frame[LABEL_COLUMN].value_counts()
    return {str(label): int(counts.get(label, 0)) for label in (0, 1)}
