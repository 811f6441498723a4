"""Small utility functions for seeding, device selection and run artefacts.

These helpers are used across the pipeline to keep the core logic clean and
focused.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict

import numpy as np
import torch


def make_rng(seed: int) -> np.random.Generator:
    """Return the seeded generator that every random draw of a run comes from."""
    return np.random.default_rng(int(seed))


def resolve_device(device: str) -> str:
    """Return a torch device string from a simple policy string.

    Args:
        device: Either ``\"cpu\"``, ``\"cuda\"`` or ``\"auto\"`` for best available.
    """
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    return device


def time_stamp() -> str:
    """Return an ISO-like UTC timestamp for naming artefact directories."""
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


def ensure_dir(path: str) -> None:
    """Create a directory if it does not already exist."""
    os.makedirs(path, exist_ok=True)


def write_json(path: str, obj: Dict[str, Any]) -> None:
    """Write a mapping as JSON to ``path`` with stable formatting."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def save_yaml_copy(path: str, content: str) -> None:
    """Persist the YAML text used to configure a run."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
