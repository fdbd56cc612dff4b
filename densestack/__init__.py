"""densestack public API."""

from .config import load_config, load_preset, presets
from .core import (
    ActivationKind,
    DenseStackError,
    DimensionMismatch,
    IOFailure,
    Layer,
    Matrix,
    ShapeMismatch,
)
from .core.types import TrainReport
from .data import DatasetSpec, get_dataset
from .persistence import read_weights, write_weights
from .training import Network, RunResult, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "ActivationKind",
    "DatasetSpec",
    "DenseStackError",
    "DimensionMismatch",
    "IOFailure",
    "Layer",
    "Matrix",
    "Network",
    "RunResult",
    "ShapeMismatch",
    "TrainReport",
    "get_dataset",
    "load_config",
    "load_preset",
    "presets",
    "read_weights",
    "run_pipeline",
    "write_weights",
]
