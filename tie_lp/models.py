"""Pluggable binary classifiers over heuristic features.

Every model follows the same narrow contract: ``fit(x, y)`` returns the fitted
model and ``predict_proba(x)`` returns the probability of label 1 per row. The
pipeline only depends on that contract, so any family can be swapped in.
"""

from typing import Any, Dict, Optional, Protocol

import numpy as np
import torch
from sklearn.linear_model import LogisticRegression, LogisticRegressionCV
from torch import nn


class Classifier(Protocol):
    def fit(self, x: np.ndarray, y: np.ndarray) -> "Classifier": ...

    def predict_proba(self, x: np.ndarray) -> np.ndarray: ...


class LogRegModel:
    """Thin wrapper around scikit-learn's LogisticRegression."""

    def __init__(self, seed: int = 0) -> None:
        self.clf = LogisticRegression(max_iter=1000, random_state=seed)

    def fit(self, x: np.ndarray, y: np.ndarray) -> "LogRegModel":
        """Fit the logistic regression model."""
        self.clf.fit(x, y)
        return self

    def predict_proba(self, x: np.ndarray) -> np.ndarray:
        """Predict probabilities for the positive class."""
        return self.clf.predict_proba(x)[:, 1]


class CVLogRegModel(LogRegModel):
    """Logistic regression with the regularisation strength chosen by k-fold CV."""

    def __init__(self, seed: int = 0, cv_folds: int = 5) -> None:
        self.clf = LogisticRegressionCV(
            cv=cv_folds, max_iter=1000, random_state=seed, scoring="roc_auc"
        )


class LinkClassifier(nn.Module):
    """A one-hidden-layer MLP for binary classification of pair features."""

    def __init__(self, in_dim: int, hidden_dim: int = 32) -> None:
        super().__init__()
        # Two linear layers with ReLU non-linearity in between; output is a single logit
        self.mlp = nn.Sequential(
            nn.Linear(in_dim, hidden_dim),
            nn.ReLU(),
            nn.Linear(hidden_dim, 1),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Compute logits for the given batch of features."""
        return self.mlp(x)


def train_classifier(
    model: nn.Module,
    X_train: np.ndarray,
    y_train: np.ndarray,
    epochs: int,
    lr: float,
    batch_size: int,
    device: str,
) -> nn.Module:
    """Train an MLP with Adam on binary cross-entropy.

    Args:
        model: The network to train.
        X_train: Training features of shape (N, D).
        y_train: Training labels of shape (N,).
        epochs: Number of passes over the training data.
        lr: Learning rate for Adam.
        batch_size: Mini-batch size.
        device: Device string (``\"cpu\"`` or ``\"cuda\"``).

    Returns:
        The trained model.
    """
    criterion = nn.BCEWithLogitsLoss()
    optimiser = torch.optim.Adam(model.parameters(), lr=lr)
    model.to(device)

    X_train_t = torch.tensor(X_train, dtype=torch.float32).to(device)
    y_train_t = torch.tensor(y_train, dtype=torch.float32).view(-1, 1).to(device)

    for _ in range(int(epochs)):
        model.train()
        # Shuffle indices for each epoch to avoid bias
        perm = torch.randperm(X_train_t.size(0))
        for i in range(0, X_train_t.size(0), int(batch_size)):
            idx = perm[i : i + int(batch_size)]
            optimiser.zero_grad()
            loss = criterion(model(X_train_t[idx]), y_train_t[idx])
            loss.backward()
            optimiser.step()
    model.eval()
    return model


class MLPModel:
    """Small PyTorch network behind the ``fit``/``predict_proba`` contract.

    Weight initialisation and batch shuffling run inside a forked torch RNG
    seeded with ``seed``, so fitting is reproducible and leaves the global
    generator untouched.
    """

    def __init__(
        self,
        seed: int = 0,
        hidden_dim: int = 32,
        epochs: int = 50,
        lr: float = 1e-2,
        batch_size: int = 64,
        device: str = "cpu",
    ) -> None:
        self.seed = seed
        self.hidden_dim = hidden_dim
        self.epochs = epochs
        self.lr = lr
        self.batch_size = batch_size
        self.device = device
        self.net: Optional[LinkClassifier] = None

    def fit(self, x: np.ndarray, y: np.ndarray) -> "MLPModel":
        with torch.random.fork_rng(devices=[]):
            torch.manual_seed(self.seed)
            net = LinkClassifier(in_dim=x.shape[1], hidden_dim=self.hidden_dim)
            self.net = train_classifier(  # type: ignore[assignment]
                net, x, y, self.epochs, self.lr, self.batch_size, self.device
            )
        return self

    def predict_proba(self, x: np.ndarray) -> np.ndarray:
        if self.net is None:
            raise ValueError("MLPModel must be fitted before predict_proba")
        with torch.no_grad():
            logits = self.net(torch.tensor(x, dtype=torch.float32).to(self.device))
            return torch.sigmoid(logits).cpu().numpy().flatten()


CLASSIFIERS = ("logreg", "logreg_cv", "mlp")


def make_classifier(
    name: str, seed: int, options: Optional[Dict[str, Any]] = None
) -> Classifier:
    """Build a classifier by name from its configuration options.

    Args:
        name: One of ``\"logreg\"``, ``\"logreg_cv\"`` or ``\"mlp\"``.
        seed: Random state handed to the model.
        options: Model-specific settings, e.g. ``cv_folds`` or MLP hyperparameters.

    Raises:
        ValueError: If ``name`` is not a known classifier.
    """
    options = dict(options or {})
    if name == "logreg":
        return LogRegModel(seed=seed)
    if name == "logreg_cv":
        return CVLogRegModel(seed=seed, cv_folds=int(options.get("cv_folds", 5)))
    if name == "mlp":
        return MLPModel(
            seed=seed,
            hidden_dim=int(options.get("hidden_dim", 32)),
            epochs=int(options.get("epochs", 50)),
            lr=float(options.get("lr", 1e-2)),
            batch_size=int(options.get("batch_size", 64)),
            device=str(options.get("device", "cpu")),
        )
    raise ValueError(f"Unknown classifier: {name}")
