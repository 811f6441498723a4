"""Command line interface for the tie prediction pipeline.

This script defines the packaged `tie-lp` entry point and its subcommands.
It loads a YAML or JSON configuration file, applies a small set of command line
overrides (seed, degree threshold, output directory), and then calls the
pipeline in `tie_lp.train` to produce run artefacts on disk.

The `train` command runs the full pipeline end to end. The `evaluate` command
locates a completed run directory and reports the stored confusion matrix from
`metrics.json`. The `run` command is a convenience wrapper that executes train
followed by evaluate. Relative paths in the configuration are resolved relative
to the configuration file location so runs behave consistently across machines.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Callable

import yaml

from tie_lp import train as training_module
from tie_lp.errors import TieLPError


def _load_configuration(config_path: str) -> tuple[dict[str, Any], str]:
    """Load a configuration mapping from a YAML or JSON file.

    The raw configuration text is returned as well so it can be stored as a
    run artefact without losing comments or formatting from the input file.
    The function raises ``ValueError`` if the file does not parse to a mapping.
    """

    with open(config_path, "r", encoding="utf-8") as config_file:
        configuration_text = config_file.read()

    if config_path.endswith((".yaml", ".yml")):
        configuration = yaml.safe_load(configuration_text)
    elif config_path.endswith(".json"):
        configuration = json.loads(configuration_text)
    else:
        raise ValueError("Config file must end with .yaml, .yml, or .json.")

    if not isinstance(configuration, dict):
        raise ValueError("Config file must contain a mapping at the top level.")

    return configuration, configuration_text


def _get_required_mapping_value(configuration: dict[str, Any], dotted_key: str) -> Any:
    """Retrieve a nested configuration value using dotted key notation.

    A dotted key such as ``data.dir`` is interpreted as nested dictionaries.
    The function raises ``ValueError`` if any part of the path is missing.
    """

    value: Any = configuration
    for key_part in dotted_key.split("."):
        if not isinstance(value, dict) or key_part not in value:
            raise ValueError(f"Config is missing required field: {dotted_key}")
        value = value[key_part]
    return value


def _validate_training_configuration(configuration: dict[str, Any]) -> None:
    """Validate that the configuration contains the fields used by the pipeline."""

    required_keys = [
        "seed",
        "artifacts_dir",
        "data.dir",
        "data.nodes_csv",
        "data.edges_csv",
        "sampling.positive_fraction",
        "sampling.degree_threshold",
        "splits.train_fraction",
        "model.name",
    ]
    for required_key in required_keys:
        _get_required_mapping_value(configuration, required_key)


def _resolve_path_relative_to_directory(base_directory: str, path_value: str) -> str:
    """Resolve a path value relative to a base directory."""

    if os.path.isabs(path_value):
        return path_value
    return os.path.normpath(os.path.join(base_directory, path_value))


def _prepare_configuration_for_run(
    configuration: dict[str, Any],
    configuration_text: str,
    config_path: str,
    seed_override: int | None,
    degree_threshold_override: int | None,
    output_directory_override: str | None,
) -> dict[str, Any]:
    """Apply CLI overrides and path resolution to a loaded configuration.

    Only a small, explicit set of fields is modified (seed, degree threshold,
    output directory). Relative paths from the configuration are resolved so
    the pipeline receives usable paths.
    """

    # Store the original config text so the pipeline can persist it as-is.
    configuration["_config_text"] = configuration_text

    if seed_override is not None:
        configuration["seed"] = int(seed_override)
    if degree_threshold_override is not None:
        # A lower threshold is the usual remedy for SamplingExhausted.
        configuration["sampling"]["degree_threshold"] = int(degree_threshold_override)
    if output_directory_override is not None:
        configuration["artifacts_dir"] = os.path.abspath(output_directory_override)

    configuration_directory = os.path.dirname(os.path.abspath(config_path))
    configuration["artifacts_dir"] = _resolve_path_relative_to_directory(
        configuration_directory, str(configuration["artifacts_dir"])
    )
    configuration["data"]["dir"] = _resolve_path_relative_to_directory(
        configuration_directory, str(configuration["data"]["dir"])
    )

    return configuration


def _find_latest_run_directory(artifacts_directory: str) -> str:
    """Return the most recently created run directory under an artefacts folder.

    Only subdirectories that contain a ``metrics.json`` file are considered.
    Run directories are timestamp-named, so sorting the directory names
    lexicographically returns the most recent run last.
    """

    if not os.path.isdir(artifacts_directory):
        raise FileNotFoundError(
            f"Artefacts directory does not exist: {artifacts_directory}"
        )
    run_directories = []
    for candidate_directory_name in sorted(os.listdir(artifacts_directory)):
        candidate_directory_path = os.path.join(
            artifacts_directory, candidate_directory_name
        )
        candidate_metrics_path = os.path.join(candidate_directory_path, "metrics.json")
        if os.path.isdir(candidate_directory_path) and os.path.exists(
            candidate_metrics_path
        ):
            run_directories.append(candidate_directory_path)

    if not run_directories:
        raise FileNotFoundError(
            f"No run directories found under: {artifacts_directory}"
        )
    return run_directories[-1]


def _prepared_configuration(arguments: argparse.Namespace) -> dict[str, Any]:
    configuration, configuration_text = _load_configuration(arguments.config)
    _validate_training_configuration(configuration)
    return _prepare_configuration_for_run(
        configuration=configuration,
        configuration_text=configuration_text,
        config_path=arguments.config,
        seed_override=arguments.seed,
        degree_threshold_override=arguments.degree_threshold,
        output_directory_override=arguments.output_dir,
    )


def _command_train(arguments: argparse.Namespace) -> int:
    """Handle the ``train`` subcommand by running the pipeline end to end."""

    training_module.run(_prepared_configuration(arguments))
    return 0


def _command_evaluate(arguments: argparse.Namespace) -> int:
    """Handle the ``evaluate`` subcommand by reading stored run metrics.

    The latest run directory under the configured output folder is used unless
    ``--run-dir`` names one explicitly. The confusion matrix is printed without
    re-running any part of the pipeline.
    """

    prepared_configuration = _prepared_configuration(arguments)

    if arguments.run_dir is not None:
        run_directory = os.path.abspath(arguments.run_dir)
    else:
        run_directory = _find_latest_run_directory(
            str(prepared_configuration["artifacts_dir"])
        )

    metrics_path = os.path.join(run_directory, "metrics.json")
    if not os.path.exists(metrics_path):
        raise FileNotFoundError(f"Expected metrics file does not exist: {metrics_path}")

    with open(metrics_path, "r", encoding="utf-8") as metrics_file:
        metrics = json.load(metrics_file)
    print(f"Loaded metrics from: {metrics_path}")
    if "test" in metrics:
        training_module.summarise(metrics)
    return 0


def _command_run(arguments: argparse.Namespace) -> int:
    """Handle the ``run`` subcommand by running training followed by evaluation."""

    train_exit_code = _command_train(arguments)
    if train_exit_code != 0:
        return int(train_exit_code)
    return _command_evaluate(arguments)


def _build_parser() -> argparse.ArgumentParser:
    """Create the top-level argument parser with subcommands."""

    parser = argparse.ArgumentParser(prog="tie-lp")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_options(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--config",
            required=True,
            help="Path to a YAML or JSON configuration file.",
        )
        subparser.add_argument(
            "--seed",
            type=int,
            default=None,
            help="Optional random seed override.",
        )
        subparser.add_argument(
            "--degree-threshold",
            type=int,
            default=None,
            help="Optional override of the negative-sampling degree threshold.",
        )
        subparser.add_argument(
            "--output-dir",
            type=str,
            default=None,
            help="Optional output directory override for run artefacts.",
        )

    train_parser = subparsers.add_parser("train", help="Run the pipeline end-to-end.")
    add_common_options(train_parser)
    train_parser.set_defaults(handler=_command_train)

    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Report an existing run by reading stored metrics."
    )
    add_common_options(evaluate_parser)
    evaluate_parser.add_argument(
        "--run-dir",
        type=str,
        default=None,
        help="Optional explicit run directory to evaluate.",
    )
    evaluate_parser.set_defaults(handler=_command_evaluate)

    run_parser = subparsers.add_parser(
        "run", help="Convenience command that runs train then evaluate."
    )
    add_common_options(run_parser)
    # run reuses the evaluate handler, which reads this attribute
    run_parser.add_argument(
        "--run-dir",
        type=str,
        default=None,
        help="Optional explicit run directory to evaluate.",
    )
    run_parser.set_defaults(handler=_command_run)

    return parser


def main(argument_list: list[str] | None = None) -> int:
    """Entry point for the ``tie-lp`` console script.

    The function returns an integer exit code so it can be tested without
    spawning a subprocess. Configuration and pipeline errors return code 2,
    which matches the conventional behaviour of ``argparse`` for invalid input.
    """

    parser = _build_parser()
    try:
        arguments = parser.parse_args(argument_list)
    except SystemExit as system_exit_exception:
        return (
            int(system_exit_exception.code)
            if system_exit_exception.code is not None
            else 1
        )

    handler: Callable[[argparse.Namespace], int] = arguments.handler
    try:
        return int(handler(arguments))
    except (FileNotFoundError, ValueError, TieLPError) as exception:
        print(str(exception), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
