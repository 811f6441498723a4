"""Smoke tests for the public command line interface.

The CLI is implemented as a Python function that returns an exit code, which
keeps tests fast and avoids spawning subprocesses. These tests focus on basic
end-to-end behaviour using the quickstart config and tiny generated graphs.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from tie_lp import cli

REPOSITORY_ROOT = Path(__file__).resolve().parents[1]
QUICKSTART_CONFIG_PATH = REPOSITORY_ROOT / "configs" / "quickstart.yaml"


def _create_ring_dataset(dataset_directory: Path, size: int = 12) -> None:
    """Write a ring with chords where every node has degree 4."""

    dataset_directory.mkdir(parents=True, exist_ok=True)
    (dataset_directory / "nodes.csv").write_text(
        "id\n" + "".join(f"{i}\n" for i in range(size)), encoding="utf-8"
    )
    (dataset_directory / "edges.csv").write_text(
        "source,target\n"
        + "".join(f"{i},{(i + 1) % size}\n{i},{(i + 3) % size}\n" for i in range(size)),
        encoding="utf-8",
    )


def _config_payload(degree_threshold: int = 2) -> dict:
    return {
        "seed": 3,
        "artifacts_dir": "artifacts",
        "data": {"dir": "dataset", "nodes_csv": "nodes.csv", "edges_csv": "edges.csv"},
        "sampling": {"positive_fraction": 0.25, "degree_threshold": degree_threshold},
        "splits": {"train_fraction": 0.8},
        "model": {"name": "logreg"},
    }


def test_cli_train_and_evaluate_quickstart_config_produces_metrics(tmp_path, capsys):
    """Run the quickstart config through the CLI and assert a metrics file exists."""

    output_directory = tmp_path / "run_output"
    train_exit_code = cli.main(
        [
            "train",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--seed",
            "42",
            "--output-dir",
            str(output_directory),
        ]
    )
    assert train_exit_code == 0
    metrics_files = list(output_directory.rglob("metrics.json"))
    assert len(metrics_files) == 1

    evaluate_exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--output-dir",
            str(output_directory),
        ]
    )
    assert evaluate_exit_code == 0
    output_text = capsys.readouterr().out
    assert "Loaded metrics from:" in output_text
    assert "accuracy:" in output_text


def test_cli_evaluate_supports_explicit_run_directory(tmp_path, capsys):
    """Evaluate can read a specific run directory when metrics are present."""

    run_directory = tmp_path / "20200101-000000"
    run_directory.mkdir(parents=True, exist_ok=True)
    (run_directory / "metrics.json").write_text("{}", encoding="utf-8")

    evaluate_exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--run-dir",
            str(run_directory),
        ]
    )
    assert evaluate_exit_code == 0
    output_text = capsys.readouterr().out
    assert "accuracy" not in output_text


def test_cli_train_supports_json_config_and_relative_paths(tmp_path):
    """The CLI can load JSON config and resolve config-relative paths."""

    _create_ring_dataset(tmp_path / "dataset")
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(_config_payload()), encoding="utf-8")

    train_exit_code = cli.main(["train", "--config", str(config_path)])

    assert train_exit_code == 0
    metrics_files = list((tmp_path / "artifacts").rglob("metrics.json"))
    assert len(metrics_files) == 1
    metrics = json.loads(metrics_files[0].read_text(encoding="utf-8"))
    # 24 edges at 0.25 gives 6 positives and 6 negatives
    assert metrics["sampling"] == {"positives": 6, "negatives": 6}


def test_cli_reports_sampling_exhausted_with_error_code(tmp_path, capsys):
    """A degree threshold above every degree fails cleanly instead of looping."""

    _create_ring_dataset(tmp_path / "dataset")
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(_config_payload()), encoding="utf-8")

    exit_code = cli.main(
        ["train", "--config", str(config_path), "--degree-threshold", "10"]
    )
    assert exit_code == 2
    error_text = capsys.readouterr().err
    assert "'sample'" in error_text
    assert "degree_threshold=10" in error_text


def test_cli_degree_threshold_override_reaches_pipeline(tmp_path):
    """The --degree-threshold flag replaces the configured value."""

    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(_config_payload(15)), encoding="utf-8")

    captured_configurations: list[dict] = []
    with patch("tie_lp.train.run", side_effect=captured_configurations.append):
        exit_code = cli.main(
            ["train", "--config", str(config_path), "--degree-threshold", "4"]
        )

    assert exit_code == 0
    assert captured_configurations[0]["sampling"]["degree_threshold"] == 4
    assert captured_configurations[0]["data"]["dir"] == str(tmp_path / "dataset")


def test_cli_returns_error_code_for_missing_required_config_fields(tmp_path, capsys):
    """Missing required keys should produce a clear error and a non-zero code."""

    config_path = tmp_path / "broken.yaml"
    config_path.write_text("seed: 42\n", encoding="utf-8")

    exit_code = cli.main(["train", "--config", str(config_path)])
    assert exit_code == 2
    error_text = capsys.readouterr().err
    assert "Config is missing required field" in error_text


def test_cli_returns_error_code_for_unknown_config_extension(tmp_path, capsys):
    """Unknown config extensions should be rejected with a clear message."""

    config_path = tmp_path / "config.txt"
    config_path.write_text("{}", encoding="utf-8")
    exit_code = cli.main(["train", "--config", str(config_path)])
    assert exit_code == 2
    error_text = capsys.readouterr().err
    assert "Config file must end with" in error_text


def test_cli_returns_error_code_when_config_top_level_is_not_a_mapping(
    tmp_path, capsys
):
    """A config that parses to a list should be rejected with a clear error."""

    config_path = tmp_path / "config.yaml"
    config_path.write_text("- 1\n- 2\n", encoding="utf-8")
    exit_code = cli.main(["train", "--config", str(config_path)])
    assert exit_code == 2
    error_text = capsys.readouterr().err
    assert "top level" in error_text


def test_cli_evaluate_returns_error_code_when_no_runs_exist(tmp_path):
    """Evaluating without an existing run directory should fail with code 2."""

    exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--output-dir",
            str(tmp_path),
        ]
    )
    assert exit_code == 2


def test_cli_evaluate_returns_error_code_when_metrics_file_is_missing(tmp_path):
    """Evaluating a run directory without metrics.json should fail with code 2."""

    run_directory = tmp_path / "20200101-000000"
    run_directory.mkdir(parents=True, exist_ok=True)
    exit_code = cli.main(
        [
            "evaluate",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--run-dir",
            str(run_directory),
        ]
    )
    assert exit_code == 2


def test_cli_run_calls_train_then_evaluate(monkeypatch):
    """The run subcommand should execute train before evaluate."""

    call_order: list[str] = []

    def fake_train(_arguments):
        call_order.append("train")
        return 0

    def fake_evaluate(_arguments):
        call_order.append("evaluate")
        return 0

    monkeypatch.setattr(cli, "_command_train", fake_train)
    monkeypatch.setattr(cli, "_command_evaluate", fake_evaluate)

    exit_code = cli.main(["run", "--config", "configs/quickstart.yaml"])
    assert exit_code == 0
    assert call_order == ["train", "evaluate"]


def test_cli_run_returns_train_exit_code_without_running_evaluate(monkeypatch):
    """If training fails, run should return that code and stop."""

    monkeypatch.setattr(cli, "_command_train", lambda _arguments: 7)
    monkeypatch.setattr(cli, "_command_evaluate", object())

    exit_code = cli.main(["run", "--config", "configs/quickstart.yaml"])
    assert exit_code == 7


def test_cli_run_exposes_run_dir_attribute_to_evaluate(tmp_path, monkeypatch, capsys):
    """The run subcommand should not crash when evaluate reads arguments.run_dir."""

    output_directory = tmp_path / "run_output"
    run_directory = output_directory / "20200101-000000"
    run_directory.mkdir(parents=True, exist_ok=True)
    (run_directory / "metrics.json").write_text("{}", encoding="utf-8")

    # Skip the pipeline; evaluation reads metrics from disk.
    monkeypatch.setattr(cli.training_module, "run", lambda *_args, **_kwargs: None)

    exit_code = cli.main(
        [
            "run",
            "--config",
            str(QUICKSTART_CONFIG_PATH),
            "--output-dir",
            str(output_directory),
        ]
    )
    assert exit_code == 0
    assert "Loaded metrics from:" in capsys.readouterr().out


def test_cli_main_returns_one_when_parser_exits_without_code(monkeypatch):
    """The CLI should return code 1 if parsing exits without an explicit code."""

    class DummyParser:
        def parse_args(self, _argument_list):
            raise SystemExit()

    monkeypatch.setattr(cli, "_build_parser", lambda: DummyParser())
    exit_code = cli.main(["train", "--config", "configs/quickstart.yaml"])
    assert exit_code == 1


def test_cli_main_returns_zero_for_help():
    """The top-level help output should return exit code 0."""

    exit_code = cli.main(["--help"])
    assert exit_code == 0
