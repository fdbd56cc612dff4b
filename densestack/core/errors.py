"""Exception hierarchy for densestack."""

from __future__ import annotations


class DenseStackError(Exception):
    """Base class for every error raised by densestack."""


class ShapeMismatch(DenseStackError, ValueError):
    """Operands (or training samples) do not have the required shape."""


class DimensionMismatch(ShapeMismatch):
    """Inner dimensions of a matrix product do not agree."""


class IOFailure(DenseStackError, OSError):
    """A weight file could not be written, read or understood."""


__all__ = ["DenseStackError", "ShapeMismatch", "DimensionMismatch", "IOFailure"]
