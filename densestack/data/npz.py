"""MNIST-style ``.npz`` archives (``x_train``/``y_train``/``x_test``/``y_test``)."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from .registry import DatasetSpec, register_dataset
from .utils import flatten_images, normalise_pixels, one_hot

_PARTS = ("x_train", "y_train", "x_test", "y_test")


def _load_archive(path: Path) -> tuple[np.ndarray, np.ndarray]:
    with np.load(path) as data:
        keys = {key.lower(): key for key in data.files}
        missing = [part for part in _PARTS if part not in keys]
        if missing:
            raise KeyError(f"{path} is missing arrays: {', '.join(missing)}")
        x = np.concatenate([data[keys["x_train"]], data[keys["x_test"]]], axis=0)
        y = np.concatenate([data[keys["y_train"]], data[keys["y_test"]]], axis=0)
    return x, y


@register_dataset("npz")
def build_npz(
    path: str | Path,
    num_classes: int = 10,
    max_items: int | None = None,
    **_: object,
) -> DatasetSpec:
    path = Path(path)
    images, labels = _load_archive(path)
    inputs = normalise_pixels(flatten_images(images))
    targets = one_hot(labels, num_classes)
    if max_items is not None:
        inputs, targets = inputs[:max_items], targets[:max_items]
    return DatasetSpec(
        name="npz",
        inputs=inputs,
        targets=targets,
        provenance={
            "type": "npz",
            "path": str(path),
            "num_classes": num_classes,
            "max_items": max_items,
        },
    )


__all__ = ["build_npz"]
