"""Classification metrics for evaluating tie predictors.

Provides the thresholded confusion matrix with its derived ratios, plus
threshold-free ranking metrics and curve coordinates from scikit-learn.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from sklearn.metrics import (
    average_precision_score,
    brier_score_loss,
    precision_recall_curve,
    roc_auc_score,
    roc_curve,
)

DEFAULT_THRESHOLD = 0.5


def _ratio(num: int, den: int) -> Optional[float]:
    # None marks an undefined ratio (zero denominator)
    return num / den if den else None


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts of a thresholded binary prediction and the ratios derived from them.

    A ratio whose denominator is zero is undefined and returned as ``None``.
    """

    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    @property
    def accuracy(self) -> Optional[float]:
        return _ratio(self.tp + self.tn, self.total)

    @property
    def sensitivity(self) -> Optional[float]:
        """Recall on label 1."""
        return _ratio(self.tp, self.tp + self.fn)

    @property
    def specificity(self) -> Optional[float]:
        """Recall on label 0."""
        return _ratio(self.tn, self.tn + self.fp)

    @property
    def precision(self) -> Optional[float]:
        return _ratio(self.tp, self.tp + self.fp)

    def to_dict(self) -> Dict[str, Optional[float]]:
        """Flat mapping of counts and ratios, JSON-ready (undefined ratios become null)."""
        return {
            "tp": self.tp,
            "tn": self.tn,
            "fp": self.fp,
            "fn": self.fn,
            "accuracy": self.accuracy,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
            "precision": self.precision,
        }


def confusion_matrix_at_threshold(
    y_true: np.ndarray, y_prob: np.ndarray, threshold: float = DEFAULT_THRESHOLD
) -> ConfusionMatrix:
    """Tabulate predictions where ``label = 1`` iff ``probability > threshold``.

    Args:
        y_true: Binary ground-truth labels.
        y_prob: Predicted probabilities for label 1.
        threshold: Decision threshold; a probability equal to it predicts 0.

    Returns:
        The populated ``ConfusionMatrix``.

    Raises:
        ValueError: On a length mismatch, a non-binary label or a probability outside ``[0, 1]``.
    """
    y_true = np.asarray(y_true).astype(int)
    y_prob = np.asarray(y_prob, dtype=float)
    if y_true.shape != y_prob.shape:
        raise ValueError(
            f"Labels and probabilities differ in shape: {y_true.shape} vs {y_prob.shape}"
        )
    if not np.isin(y_true, (0, 1)).all():
        raise ValueError("Labels must be 0 or 1")
    if ((y_prob < 0.0) | (y_prob > 1.0) | np.isnan(y_prob)).any():
        raise ValueError("Probabilities must lie in [0, 1]")
    y_pred = (y_prob > threshold).astype(int)
    return ConfusionMatrix(
        tp=int(((y_pred == 1) & (y_true == 1)).sum()),
        tn=int(((y_pred == 0) & (y_true == 0)).sum()),
        fp=int(((y_pred == 1) & (y_true == 0)).sum()),
        fn=int(((y_pred == 0) & (y_true == 1)).sum()),
    )


def compute_classification_metrics(
    y_true: np.ndarray, y_prob: np.ndarray
) -> Dict[str, float]:
    """Compute threshold-free ranking metrics.

    Includes ROC-AUC, PR-AUC and the Brier score. With a single class present
    ROC-AUC falls back to 0.5 and PR-AUC to the positive rate.

    Args:
        y_true: Binary ground-truth labels.
        y_prob: Predicted probabilities for the positive class.

    Returns:
        A dictionary mapping metric names to floats.
    """
    two_classes = len(np.unique(y_true)) > 1
    return {
        "roc_auc": float(roc_auc_score(y_true, y_prob)) if two_classes else 0.5,
        "pr_auc": float(average_precision_score(y_true, y_prob))
        if two_classes
        else float(np.mean(y_true)),
        "brier": float(brier_score_loss(y_true, y_prob)),
    }


def curves(
    y_true: np.ndarray, y_prob: np.ndarray
) -> Tuple[Tuple[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]:
    """Compute coordinates for ROC and Precision–Recall curves.

    Returns:
        A tuple: ((fpr, tpr), (precision, recall)).
    """
    fpr, tpr, _ = roc_curve(y_true, y_prob)
    prec, rec, _ = precision_recall_curve(y_true, y_prob)
    return (fpr, tpr), (prec, rec)
