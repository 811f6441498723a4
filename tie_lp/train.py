"""End-to-end tie prediction pipeline.

This module wires together graph loading, edge sampling, heuristic
computation, the train/test split, classifier fitting and evaluation.
``run_pipeline`` is the pure core: given a graph, a seed and settings it
returns the dataset and the confusion matrix. ``run`` adds loading from CSV
and writing run artefacts to disk, driven by a configuration mapping.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

import pandas as pd
import yaml

from .dataset import build_dataset, class_balance, split_dataset
from .errors import PipelineError, TieLPError
from .eval import EvaluationResult, evaluate, plot_degree_histogram, save_curves
from .features import EXCLUDE, HeuristicEngine
from .graph import GraphStore
from .io import graph_from_tables, load_tables
from .metrics import DEFAULT_THRESHOLD
from .models import Classifier, make_classifier
from .sampling import (
    DEFAULT_DEGREE_THRESHOLD,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POSITIVE_FRACTION,
    SampledEdges,
    sample_edges,
)
from .utils import (
    ensure_dir,
    make_rng,
    resolve_device,
    save_yaml_copy,
    time_stamp,
    write_json,
)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Re-raise the first failure of a stage as a ``PipelineError`` naming it."""
    try:
        yield
    except PipelineError:
        raise
    except (TieLPError, ValueError) as exc:
        raise PipelineError(name, exc) from exc


@dataclass
class PipelineResult:
    sampled: SampledEdges
    dataset: pd.DataFrame
    train: pd.DataFrame
    test: pd.DataFrame
    evaluation: EvaluationResult


def run_pipeline(
    graph: GraphStore,
    seed: int,
    classifier: Classifier,
    positive_fraction: float = DEFAULT_POSITIVE_FRACTION,
    degree_threshold: int = DEFAULT_DEGREE_THRESHOLD,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    degenerate_policy: str = EXCLUDE,
    train_fraction: float = 0.8,
    threshold: float = DEFAULT_THRESHOLD,
    progress: Optional[Callable[[str], None]] = None,
) -> PipelineResult:
    """Build the labelled heuristic dataset for ``graph`` and evaluate ``classifier`` on it.

    One generator seeded with ``seed`` feeds positive sampling, negative
    sampling and the split, in that order, so equal inputs give equal outputs.

    Args:
        progress: Optional callback receiving a message as each stage starts.

    Raises:
        PipelineError: Wrapping the first failure, with the stage it occurred in.
    """
    say = progress or (lambda message: None)
    rng = make_rng(seed)
    say(
        "sampling positive and negative pairs "
        f"(fraction={positive_fraction}, degree_threshold={degree_threshold})..."
    )
    with _stage("sample"):
        sampled = sample_edges(
            graph,
            rng,
            fraction=positive_fraction,
            degree_threshold=degree_threshold,
            max_attempts=max_attempts,
        )
    say("computing heuristics on the reference graph...")
    with _stage("heuristics"):
        candidates = sampled.candidates()
        # Scores must come from the reference graph, which no longer holds the positives
        engine = HeuristicEngine(sampled.reference_graph, degenerate_policy)
        dataset = build_dataset(candidates, engine.compute(candidates))
    say("splitting the dataset...")
    with _stage("split"):
        train, test = split_dataset(dataset, rng, train_fraction=train_fraction)
    say("fitting the classifier and tabulating the confusion matrix...")
    with _stage("evaluate"):
        evaluation = evaluate(classifier, train, test, threshold=threshold)
    return PipelineResult(
        sampled=sampled, dataset=dataset, train=train, test=test, evaluation=evaluation
    )


def _model_options(cfg: Dict[str, Any], device: str) -> Dict[str, Any]:
    model_cfg = cfg["model"]
    options: Dict[str, Any] = {"cv_folds": model_cfg.get("cv_folds", 5)}
    options.update(model_cfg.get("mlp", {}) or {})
    options["device"] = device
    return options


def run(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Execute a single run from a configuration mapping and return its metrics.

    The routine performs:
    1) loading the node and edge tables and building the simplified graph
    2) sampling removed edges and high-degree non-edges
    3) computing heuristics on the reference graph
    4) the seeded train/test split
    5) fitting the classifier and tabulating the confusion matrix
    6) writing the dataset, metrics, plots and config copy

    Args:
        cfg: Configuration dictionary (typically parsed from YAML).

    Returns:
        A dictionary of metrics and run metadata that is also written to disk.
    """
    seed = int(cfg["seed"])
    data_cfg = cfg["data"]
    sampling_cfg = cfg["sampling"]
    device = resolve_device(str(cfg.get("device", "cpu")))
    dpi = int(cfg.get("plots", {}).get("dpi", 120))

    print("Step 1/6: loading node and edge tables...", flush=True)
    with _stage("load"):
        nodes, edges = load_tables(
            data_cfg["dir"], data_cfg["nodes_csv"], data_cfg["edges_csv"]
        )
        graph = graph_from_tables(
            nodes,
            edges,
            node_id_column=data_cfg.get("node_id_column", "id"),
            source_column=data_cfg.get("source_column", "source"),
            target_column=data_cfg.get("target_column", "target"),
        )
    print(
        f"    {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges "
        f"({graph.dropped_self_loops} self-loops and "
        f"{graph.dropped_duplicates} duplicates dropped)",
        flush=True,
    )

    with _stage("evaluate"):
        classifier = make_classifier(
            str(cfg["model"]["name"]), seed, _model_options(cfg, device)
        )

    step = iter(range(2, 6))

    def progress(message: str) -> None:
        print(f"Step {next(step)}/6: {message}", flush=True)

    result = run_pipeline(
        graph,
        seed,
        classifier,
        positive_fraction=float(sampling_cfg["positive_fraction"]),
        degree_threshold=int(sampling_cfg["degree_threshold"]),
        max_attempts=int(sampling_cfg.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
        degenerate_policy=str(
            cfg.get("heuristics", {}).get("degenerate_policy", EXCLUDE)
        ),
        train_fraction=float(cfg["splits"]["train_fraction"]),
        threshold=float(cfg.get("evaluation", {}).get("threshold", DEFAULT_THRESHOLD)),
        progress=progress,
    )

    print("Step 6/6: saving artefacts...", flush=True)
    run_dir = os.path.join(cfg["artifacts_dir"], time_stamp())
    ensure_dir(run_dir)
    result.dataset.to_csv(os.path.join(run_dir, "dataset.csv"), index=False)
    plot_degree_histogram(graph, os.path.join(run_dir, "degree_histogram.png"), dpi)
    evaluation = result.evaluation
    if len(set(evaluation.y_true.tolist())) > 1:
        save_curves(
            evaluation.y_true, evaluation.y_prob, os.path.join(run_dir, "curves"), dpi
        )

    out = {
        "seed": seed,
        "model": str(cfg["model"]["name"]),
        "graph": {
            "nodes": graph.number_of_nodes(),
            "edges": graph.number_of_edges(),
            "dropped_self_loops": graph.dropped_self_loops,
            "dropped_duplicates": graph.dropped_duplicates,
        },
        "sampling": {
            "positives": len(result.sampled.positives),
            "negatives": len(result.sampled.negatives),
        },
        "class_balance": {
            "train": class_balance(result.train),
            "test": class_balance(result.test),
        },
        "test": {**evaluation.confusion.to_dict(), **evaluation.ranking},
    }
    write_json(os.path.join(run_dir, "metrics.json"), out)
    # Save config used (prefer provided text, else dump current cfg)
    cfg_text = cfg.get("_config_text")
    if isinstance(cfg_text, str) and cfg_text:
        save_yaml_copy(os.path.join(run_dir, "config_used.yaml"), cfg_text)
    else:
        save_yaml_copy(os.path.join(run_dir, "config_used.yaml"), yaml.safe_dump(cfg))
    print(f"Run complete. Artefacts are in: {run_dir}", flush=True)
    return out


def summarise(metrics: Dict[str, Any], stream: Optional[Any] = None) -> None:
    """Print the confusion matrix section of a metrics mapping."""
    test = metrics.get("test", {})
    lines = [
        f"TP={test.get('tp')} TN={test.get('tn')} FP={test.get('fp')} FN={test.get('fn')}"
    ]
    for name in ("accuracy", "sensitivity", "specificity", "precision"):
        value = test.get(name)
        lines.append(f"{name}: {'undefined' if value is None else f'{value:.4f}'}")
    for line in lines:
        print(line, file=stream)
