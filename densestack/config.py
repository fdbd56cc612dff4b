"""Named presets and JSON/YAML configuration loading."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist": {
        "data": {"name": "matfile", "options": {"path": "mnist.mat", "num_classes": 10}},
        "model": {"widths": [784, 512, 10]},
        "train": {
            "train_ratio": 0.8,
            "epochs": 50,
            "batch_size": 50,
            "learning_rate": 0.09,
            "learning_rate_decay": 1.0,
            "seed": None,
            "run_dir": "runs/mnist",
            "enable_plots": False,
            "weights_out": "runs/mnist/weights.bin",
        },
    },
    "xor": {
        "data": {"name": "xor", "options": {"repeats": 100}},
        "model": {"widths": [2, 3, 2]},
        "train": {
            "train_ratio": 0.8,
            "epochs": 200,
            "batch_size": 4,
            "learning_rate": 0.1,
            "learning_rate_decay": 1.0,
            "seed": 0,
            "run_dir": "runs/xor",
            "enable_plots": False,
            "weights_out": None,
        },
    },
    "blobs-smoke": {
        "data": {
            "name": "blobs",
            "options": {"n_samples": 240, "n_features": 4, "n_classes": 3, "seed": 0},
        },
        "model": {"widths": [4, 16, 3]},
        "train": {
            "train_ratio": 0.75,
            "epochs": 20,
            "batch_size": 10,
            "learning_rate": 0.1,
            "learning_rate_decay": 0.5,
            "seed": 7,
            "run_dir": "runs/blobs-smoke",
            "enable_plots": False,
            "weights_out": None,
        },
    },
}


def presets() -> Dict[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    if name not in _PRESETS:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}")
    return deepcopy(dict(_PRESETS[name]))


def load_config(path: str | Path) -> dict:
    """Read a JSON or YAML configuration file."""

    path = Path(path)
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        import yaml

        return yaml.safe_load(text) or {}
    return json.loads(text)


def merge(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into a copy of ``base``."""

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge(dict(merged[key]), value)  # type: ignore[arg-type]
        else:
            merged[key] = value
    return merged


__all__ = ["load_config", "load_preset", "merge", "presets"]
