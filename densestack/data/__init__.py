"""Dataset providers for densestack."""

from . import matfile, npz, synthetic  # noqa: F401  (register factories)
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = ["DatasetSpec", "available_datasets", "get_dataset", "register_dataset"]
