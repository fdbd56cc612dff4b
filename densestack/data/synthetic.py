"""Pure in-memory datasets for offline runs and tests."""

from __future__ import annotations

import numpy as np

from .registry import DatasetSpec, register_dataset
from .utils import one_hot

XOR_TABLE = (
    ((0.0, 0.0), (1.0, 0.0)),
    ((0.0, 1.0), (0.0, 1.0)),
    ((1.0, 0.0), (0.0, 1.0)),
    ((1.0, 1.0), (1.0, 0.0)),
)


@register_dataset("xor")
def build_xor(repeats: int = 1, **_: object) -> DatasetSpec:
    """The four XOR patterns, each repeated ``repeats`` times."""

    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}")
    inputs = np.array([x for x, _ in XOR_TABLE] * repeats, dtype=np.float64)
    targets = np.array([t for _, t in XOR_TABLE] * repeats, dtype=np.float64)
    return DatasetSpec(
        name="xor",
        inputs=inputs,
        targets=targets,
        provenance={"type": "synthetic", "repeats": repeats},
    )


@register_dataset("blobs")
def build_blobs(
    n_samples: int = 300,
    n_features: int = 2,
    n_classes: int = 3,
    spread: float = 0.4,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """Gaussian clusters around random centres, one cluster per class."""

    rng = np.random.default_rng(seed)
    centres = rng.uniform(-3.0, 3.0, size=(n_classes, n_features))
    labels = np.arange(n_samples) % n_classes
    rng.shuffle(labels)
    inputs = centres[labels] + spread * rng.standard_normal((n_samples, n_features))
    return DatasetSpec(
        name="blobs",
        inputs=inputs.astype(np.float64),
        targets=one_hot(labels, n_classes),
        provenance={
            "type": "synthetic",
            "n_samples": n_samples,
            "n_features": n_features,
            "n_classes": n_classes,
            "spread": spread,
            "seed": seed,
        },
    )


__all__ = ["XOR_TABLE", "build_blobs", "build_xor"]
