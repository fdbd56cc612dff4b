"""Dense 2-D matrix value type backing every layer computation.

A :class:`Matrix` is ``width`` columns by ``height`` rows stored as a single
row-major sequence, so cell ``(x, y)`` lives at offset ``y * width + x``.
Every operator allocates a fresh result and leaves its operands untouched;
the element-level work is handed to NumPy, which is free to vectorise it.
"""

from __future__ import annotations

from numbers import Real
from typing import Callable, Iterable, Sequence

import numpy as np

from .errors import DimensionMismatch, ShapeMismatch

Array = np.ndarray


def _as_vector(values: Iterable[float]) -> Array:
    if not isinstance(values, (np.ndarray, list, tuple)):
        values = list(values)
    return np.asarray(values, dtype=np.float64).reshape(-1)


class Matrix:
    """Fixed-shape grid of ``float64`` values with algebraic operators."""

    __slots__ = ("_width", "_height", "_values")

    def __init__(self, width: int, height: int, fill: float = 0.0) -> None:
        width = int(width)
        height = int(height)
        if width < 0 or height < 0:
            raise ValueError(f"Matrix dimensions must be non-negative, got {width}x{height}")
        self._width = width
        self._height = height
        self._values = np.full(width * height, fill, dtype=np.float64)

    # ------------------------------------------------------------------
    # Construction helpers

    @classmethod
    def _wrap(cls, grid: Array) -> "Matrix":
        height, width = grid.shape
        matrix = cls.__new__(cls)
        matrix._width = int(width)
        matrix._height = int(height)
        matrix._values = np.ascontiguousarray(grid, dtype=np.float64).reshape(-1).copy()
        return matrix

    @classmethod
    def from_array(cls, array: Array | Sequence[Sequence[float]]) -> "Matrix":
        """Build a matrix whose rows are the rows of a 2-D array."""

        grid = np.asarray(array, dtype=np.float64)
        if grid.ndim != 2:
            raise ShapeMismatch(f"Expected a 2-D array, got {grid.ndim} dimension(s)")
        return cls._wrap(grid)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[float]]) -> "Matrix":
        rows = [list(row) for row in rows]
        if not rows:
            return cls(0, 0)
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ShapeMismatch("All rows must have the same length")
        return cls.from_array(np.asarray(rows, dtype=np.float64).reshape(len(rows), width))

    @classmethod
    def from_flat(cls, width: int, height: int, values: Iterable[float]) -> "Matrix":
        """Build a matrix from values already in row-major storage order."""

        flat = _as_vector(values)
        if flat.size != width * height:
            raise ShapeMismatch(
                f"Expected {width * height} values for a {width}x{height} matrix, got {flat.size}"
            )
        return cls._wrap(flat.reshape(height, width))

    @classmethod
    def column(cls, values: Iterable[float]) -> "Matrix":
        """Build a ``1 x n`` column vector."""

        flat = _as_vector(values)
        return cls._wrap(flat.reshape(-1, 1))

    # ------------------------------------------------------------------
    # Accessors

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> tuple[int, int]:
        """``(height, width)``, matching :meth:`to_numpy`."""

        return self._height, self._width

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(
                f"Cell ({x}, {y}) is outside a {self._width}x{self._height} matrix"
            )
        return y * self._width + x

    def get(self, x: int, y: int) -> float:
        """Return the value at column ``x``, row ``y``."""

        return float(self._values[self._offset(x, y)])

    def set(self, x: int, y: int, value: float) -> None:
        self._values[self._offset(x, y)] = value

    def _grid(self) -> Array:
        return self._values.reshape(self._height, self._width)

    def to_numpy(self) -> Array:
        return self._grid().copy()

    def flat(self) -> Array:
        return self._values.copy()

    def copy(self) -> "Matrix":
        return Matrix._wrap(self._grid())

    # ------------------------------------------------------------------
    # Algebra

    def _require_same_shape(self, other: "Matrix", op: str) -> None:
        if not isinstance(other, Matrix):
            raise TypeError(f"{op} expects a Matrix, got {type(other).__name__}")
        if self.shape != other.shape:
            raise ShapeMismatch(
                f"{op} requires equal shapes, got {self._width}x{self._height} "
                f"and {other.width}x{other.height}"
            )

    def transpose(self) -> "Matrix":
        return Matrix._wrap(self._grid().T)

    @property
    def T(self) -> "Matrix":  # noqa: N802 - mirrors NumPy
        return self.transpose()

    def hadamard(self, other: "Matrix") -> "Matrix":
        """Elementwise product."""

        self._require_same_shape(other, "hadamard")
        return Matrix._wrap(self._grid() * other._grid())

    def apply(self, fn: Callable[[float], float]) -> "Matrix":
        """Return ``fn`` applied to every element.

        NumPy ufuncs and other array-aware callables are handed the whole
        grid at once. Anything else, or a callable whose result does not
        keep the grid's shape, is evaluated element by element.
        """

        grid = self._grid()
        try:
            result = np.asarray(fn(grid), dtype=np.float64)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            result = None
        if result is None or result.shape != grid.shape:
            result = np.vectorize(fn, otypes=[np.float64])(grid)
        return Matrix._wrap(result)

    def apply_columns(self, fn: Callable[[Array], Array]) -> "Matrix":
        """Return ``fn`` applied independently to every column."""

        if self._width == 0 or self._height == 0:
            return self.copy()
        return Matrix._wrap(np.apply_along_axis(fn, 0, self._grid()))

    def matmul(self, other: "Matrix") -> "Matrix":
        """Matrix product; ``self.width`` must equal ``other.height``."""

        if not isinstance(other, Matrix):
            raise TypeError(f"matmul expects a Matrix, got {type(other).__name__}")
        if self._width != other.height:
            raise DimensionMismatch(
                f"Cannot multiply {self._width}x{self._height} by "
                f"{other.width}x{other.height}: width {self._width} != height {other.height}"
            )
        return Matrix._wrap(self._grid() @ other._grid())

    def scale(self, factor: float) -> "Matrix":
        return Matrix._wrap(self._grid() * float(factor))

    def add_column(self, vector: "Matrix") -> "Matrix":
        """Add a ``1 x height`` column vector to every column."""

        if not isinstance(vector, Matrix):
            raise TypeError(f"add_column expects a Matrix, got {type(vector).__name__}")
        if vector.width != 1 or vector.height != self._height:
            raise ShapeMismatch(
                f"Cannot broadcast a {vector.width}x{vector.height} vector onto "
                f"{self._width}x{self._height} columns"
            )
        return Matrix._wrap(self._grid() + vector._grid())

    def row_mean(self) -> "Matrix":
        """Average every row across its columns, giving a ``1 x height`` vector."""

        if self._width == 0:
            return Matrix(1, self._height)
        return Matrix._wrap(self._grid().mean(axis=1, keepdims=True))

    def allclose(self, other: "Matrix", tol: float = 1e-9) -> bool:
        return self.shape == other.shape and bool(
            np.allclose(self._grid(), other._grid(), rtol=0.0, atol=tol)
        )

    def __add__(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "addition")
        return Matrix._wrap(self._grid() + other._grid())

    def __sub__(self, other: "Matrix") -> "Matrix":
        self._require_same_shape(other, "subtraction")
        return Matrix._wrap(self._grid() - other._grid())

    def __mul__(self, other: "Matrix | float") -> "Matrix":
        if isinstance(other, Matrix):
            return self.matmul(other)
        if isinstance(other, (Real, np.number)):
            return self.scale(float(other))
        return NotImplemented

    def __rmul__(self, other: float) -> "Matrix":
        if isinstance(other, (Real, np.number)):
            return self.scale(float(other))
        return NotImplemented

    def __matmul__(self, other: "Matrix") -> "Matrix":
        return self.matmul(other)

    def __truediv__(self, other: float) -> "Matrix":
        if not isinstance(other, (Real, np.number)):
            return NotImplemented
        with np.errstate(divide="ignore", invalid="ignore"):
            return Matrix._wrap(self._grid() / float(other))

    def __neg__(self) -> "Matrix":
        return self.scale(-1.0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._values, other._values))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Matrix(width={self._width}, height={self._height})"


__all__ = ["Matrix"]
