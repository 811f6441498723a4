"""Evaluation of a classifier on the split heuristic dataset.

``evaluate`` fits any ``fit``/``predict_proba`` classifier on the train rows,
scores the test rows and tabulates the confusion matrix at the decision
threshold. The plotting helpers write ROC/PR curves and the degree histogram
of the input graph to disk for reporting.
"""

from dataclasses import dataclass, field
from typing import Dict

import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .dataset import features_and_labels
from .graph import GraphStore
from .metrics import (
    DEFAULT_THRESHOLD,
    ConfusionMatrix,
    compute_classification_metrics,
    confusion_matrix_at_threshold,
    curves,
)
from .models import Classifier


@dataclass
class EvaluationResult:
    confusion: ConfusionMatrix
    y_true: np.ndarray
    y_prob: np.ndarray
    ranking: Dict[str, float] = field(default_factory=dict)


def evaluate(
    classifier: Classifier,
    train: pd.DataFrame,
    test: pd.DataFrame,
    threshold: float = DEFAULT_THRESHOLD,
    scale: bool = True,
) -> EvaluationResult:
    """Fit ``classifier`` on ``train`` and score ``test``.

    Args:
        classifier: Any object implementing the ``Classifier`` contract.
        train: Train rows of the dataset.
        test: Test rows of the dataset.
        threshold: Probabilities strictly above this predict label 1.
        scale: Standardise features with statistics from the train rows only.

    Returns:
        The confusion matrix, the test labels and probabilities, and ranking metrics.
    """
    x_train, y_train = features_and_labels(train)
    x_test, y_test = features_and_labels(test)
    if scale:
        scaler = StandardScaler()
        x_train = scaler.fit_transform(x_train)
        x_test = scaler.transform(x_test)
    model = classifier.fit(x_train, y_train)
    y_prob = np.asarray(model.predict_proba(x_test), dtype=float)
    return EvaluationResult(
        confusion=confusion_matrix_at_threshold(y_test, y_prob, threshold),
        y_true=y_test,
        y_prob=y_prob,
        ranking=compute_classification_metrics(y_test, y_prob),
    )


def save_curves(
    y_true: np.ndarray, y_prob: np.ndarray, out_dir: str, dpi: int = 120
) -> None:
    """Save ROC and PR curve images as ``roc.png`` and ``pr.png`` in ``out_dir``."""
    os.makedirs(out_dir, exist_ok=True)
    (fpr, tpr), (prec, rec) = curves(y_true, y_prob)

    plt.figure()
    plt.plot(fpr, tpr)
    plt.xlabel("False Positive Rate")
    plt.ylabel("True Positive Rate")
    plt.title("ROC Curve")
    plt.savefig(os.path.join(out_dir, "roc.png"), dpi=dpi, bbox_inches="tight")
    plt.close()

    plt.figure()
    plt.plot(rec, prec)
    plt.xlabel("Recall")
    plt.ylabel("Precision")
    plt.title("PR Curve")
    plt.savefig(os.path.join(out_dir, "pr.png"), dpi=dpi, bbox_inches="tight")
    plt.close()


def plot_degree_histogram(graph: GraphStore, path: str, dpi: int = 120) -> None:
    """Write a histogram of node degrees, on a log count axis, to ``path``."""
    degrees = [graph.degree(n) for n in graph.nodes()]
    plt.figure()
    plt.hist(degrees, bins=max(1, min(50, len(set(degrees)))))
    plt.yscale("log")
    plt.xlabel("Degree")
    plt.ylabel("Number of nodes")
    plt.title("Degree distribution")
    plt.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close()
