"""Unit tests for classifier evaluation and the reporting plots."""

import os

import numpy as np

from tie_lp.dataset import build_dataset, split_dataset
from tie_lp.eval import EvaluationResult, evaluate, plot_degree_histogram, save_curves
from tie_lp.features import HeuristicVector
from tie_lp.graph import build_graph
from tie_lp.models import LogRegModel
from tie_lp.sampling import CandidateEdge


class _ConstantModel:
    """Stub classifier that records its inputs and predicts a fixed probability."""

    def __init__(self, p):
        self.p = p
        self.fitted_shape = None

    def fit(self, x, y):
        self.fitted_shape = x.shape
        return self

    def predict_proba(self, x):
        return np.full(len(x), self.p)


def _separable_dataset(n=40):
    # Positives share many neighbours, negatives share none
    candidates, vectors = [], []
    for i in range(n):
        label = i % 2
        candidates.append(CandidateEdge(i, i + 1000, label))
        cn = 5 + i % 3 if label else 0
        vectors.append(HeuristicVector(cn, cn / 10, cn * 0.8, 10 + i % 4))
    return build_dataset(candidates, vectors)


def test_evaluate_uses_contract_and_tabulates():
    """A stub classifier is fitted on train rows and its test predictions tabulated."""
    frame = _separable_dataset()
    train, test = split_dataset(frame, np.random.default_rng(0))
    stub = _ConstantModel(0.9)
    result = evaluate(stub, train, test)
    assert isinstance(result, EvaluationResult)
    assert stub.fitted_shape == (len(train), 4)
    cm = result.confusion
    assert cm.total == len(test)
    # Everything predicted positive
    assert cm.tn == 0 and cm.fn == 0
    assert cm.tp == int(test["label"].sum())


def test_evaluate_logistic_regression_on_separable_data():
    """Logistic regression separates the toy classes perfectly."""
    frame = _separable_dataset()
    train, test = split_dataset(frame, np.random.default_rng(1))
    result = evaluate(LogRegModel(seed=0), train, test)
    assert result.confusion.accuracy == 1.0
    assert set(result.ranking) == {"roc_auc", "pr_auc", "brier"}
    assert ((result.y_prob >= 0) & (result.y_prob <= 1)).all()


def test_save_curves_writes_images(tmp_path):
    """ROC/PR images are written to the output folder."""
    y_true = np.array([0, 1, 1, 0], dtype=int)
    y_prob = np.array([0.1, 0.9, 0.8, 0.2], dtype=float)
    out_dir = (tmp_path / "curves").as_posix()
    save_curves(y_true, y_prob, out_dir, dpi=80)
    assert os.path.isfile(os.path.join(out_dir, "roc.png"))
    assert os.path.isfile(os.path.join(out_dir, "pr.png"))


def test_plot_degree_histogram_writes_image(tmp_path):
    """The degree histogram is saved to the given path."""
    g = build_graph([(0, 1), (1, 2), (2, 0), (2, 3)])
    path = tmp_path / "degrees.png"
    plot_degree_histogram(g, str(path), dpi=80)
    assert path.is_file()
