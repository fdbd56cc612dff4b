"""Utility helpers for dataset loaders."""

from __future__ import annotations

import numpy as np

from ..core.types import Array


def one_hot(labels: Array, num_classes: int) -> Array:
    """Encode integer class indices as ``float64`` one-hot rows."""

    labels = np.asarray(labels).reshape(-1).astype(np.int64)
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(
            f"Labels must lie in [0, {num_classes}), got range "
            f"[{labels.min()}, {labels.max()}]"
        )
    out = np.zeros((labels.size, num_classes), dtype=np.float64)
    out[np.arange(labels.size), labels] = 1.0
    return out


def normalise_pixels(images: Array) -> Array:
    """Scale 0-255 pixel data into ``[0, 1]``; already-scaled data is left alone."""

    images = np.asarray(images, dtype=np.float64)
    if images.size and images.max() > 1.0:
        images = images / 255.0
    return images


def flatten_images(images: Array) -> Array:
    images = np.asarray(images)
    return images.reshape(images.shape[0], -1)
