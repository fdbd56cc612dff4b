"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, MutableMapping

import numpy as np

from ..core.types import Array


@dataclass(frozen=True)
class DatasetSpec:
    """An in-memory labelled dataset.

    Attributes
    ----------
    name:
        Registry identifier of the factory that produced the dataset.
    inputs:
        ``(n_samples, d_in)`` feature matrix, one sample per row.
    targets:
        ``(n_samples, n_classes)`` one-hot label matrix.
    provenance:
        Free-form metadata describing where the samples came from and how
        they were normalised.
    """

    name: str
    inputs: Array
    targets: Array
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.inputs.ndim != 2 or self.targets.ndim != 2:
            raise ValueError("DatasetSpec inputs and targets must be 2-D")
        if self.inputs.shape[0] != self.targets.shape[0]:
            raise ValueError(
                f"{self.inputs.shape[0]} inputs but {self.targets.shape[0]} targets"
            )

    @property
    def d_in(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def d_out(self) -> int:
        return int(self.targets.shape[1])

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    def as_lists(self) -> tuple[List[List[float]], List[List[float]]]:
        """Plain nested lists, as consumed by :meth:`Network.train`."""

        return self.inputs.tolist(), self.targets.tolist()


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {dataset!r}. Available datasets: {available}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if len(spec) == 0:
        raise ValueError(f"Dataset {spec.name!r} is empty")
    if not np.all(np.isfinite(spec.inputs)):
        raise ValueError(f"Dataset {spec.name!r} contains non-finite inputs")


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
