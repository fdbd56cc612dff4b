"""Core numerical primitives for densestack."""

from . import activations, errors, layer, matrix, types
from .activations import ActivationKind
from .errors import DenseStackError, DimensionMismatch, IOFailure, ShapeMismatch
from .layer import Layer
from .matrix import Matrix

__all__ = [
    "activations",
    "errors",
    "layer",
    "matrix",
    "types",
    "ActivationKind",
    "DenseStackError",
    "DimensionMismatch",
    "IOFailure",
    "Layer",
    "Matrix",
    "ShapeMismatch",
]
