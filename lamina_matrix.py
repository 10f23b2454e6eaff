# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_matrix.py — Small dense complex matrices.

Storage is a contiguous complex128 array; element access hands out
immutable ComplexNumber values.  Shape rules:

    A @ B     requires A.columns == B.rows
    A ± B     requires A.shape == B.shape
    det, inv  2×2 only, inv additionally requires |det|² ≥ SINGULARITY_TOL

    inv([[a, b], [c, d]]) = [[ d/Δ, −b/Δ],
                             [−c/Δ,  a/Δ]],   Δ = ad − bc
"""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

import numpy as np
from numba import njit

from lamina_complex import (
    SINGULARITY_TOL,
    ComplexLike,
    ComplexNumber,
    format_complex,
)
from lamina_errors import (
    DimensionMismatchError,
    Result,
    SingularMatrixError,
    UnsupportedOperationError,
)

__all__ = ["ComplexMatrix", "COMPLEX_TYPE", "MIN_COLUMN_WIDTH"]

COMPLEX_TYPE = np.complex128
MIN_COLUMN_WIDTH: int = 12


@njit(cache=True)
def _matmul_kernel(a, b):
    rows, inner = a.shape
    cols = b.shape[1]
    out = np.zeros((rows, cols), dtype=np.complex128)
    for i in range(rows):
        for j in range(cols):
            acc = 0.0 + 0.0j
            for k in range(inner):
                acc += a[i, k] * b[k, j]
            out[i, j] = acc
    return out


class ComplexMatrix:
    """
    Rows × columns grid of complex entries.

    Parameters
    ----------
    grid : sequence of sequences
        Row-major values; every entry may be a ComplexNumber or any
        Python/NumPy number.  Rows must have equal, non-zero length.

    Use ``ComplexMatrix.zeros(r, c)`` and ``ComplexMatrix.identity(n)``
    for the other two construction modes.
    """
    __slots__ = ("_data",)

    def __init__(self, grid: Sequence[Sequence[ComplexLike]]) -> None:
        rows = [list(row) for row in grid]
        if not rows or not rows[0]:
            raise ValueError("ComplexMatrix needs at least one row and one column.")
        n_cols = len(rows[0])
        if any(len(row) != n_cols for row in rows):
            raise ValueError("ComplexMatrix rows must all have the same length.")

        data = np.empty((len(rows), n_cols), dtype=COMPLEX_TYPE)
        for i, row in enumerate(rows):
            for j, value in enumerate(row):
                data[i, j] = complex(ComplexNumber.coerce(value))
        self._data = data

    # -- alternate constructors --------------------------------------------
    @classmethod
    def _wrap(cls, data: np.ndarray) -> "ComplexMatrix":
        obj = cls.__new__(cls)
        obj._data = np.ascontiguousarray(data, dtype=COMPLEX_TYPE)
        return obj

    @classmethod
    def zeros(cls, rows: int, columns: int) -> "ComplexMatrix":
        if rows < 1 or columns < 1:
            raise ValueError(f"Invalid matrix shape ({rows}, {columns}).")
        return cls._wrap(np.zeros((rows, columns), dtype=COMPLEX_TYPE))

    @classmethod
    def identity(cls, size: int) -> "ComplexMatrix":
        if size < 1:
            raise ValueError(f"Invalid identity size {size}.")
        return cls._wrap(np.eye(size, dtype=COMPLEX_TYPE))

    # -- shape -------------------------------------------------------------
    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def columns(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.columns

    # -- element access ----------------------------------------------------
    def __getitem__(self, index: Tuple[int, int]) -> ComplexNumber:
        value = self._data[index]
        return ComplexNumber(value.real, value.imag)

    def __setitem__(self, index: Tuple[int, int], value: ComplexLike) -> None:
        self._data[index] = complex(ComplexNumber.coerce(value))

    def __iter__(self) -> Iterator[Tuple[ComplexNumber, ...]]:
        for i in range(self.rows):
            yield tuple(self[i, j] for j in range(self.columns))

    def to_array(self) -> np.ndarray:
        """Copy of the underlying complex128 array."""
        return self._data.copy()

    # -- algebra -----------------------------------------------------------
    def multiply(self, other: "ComplexMatrix") -> "ComplexMatrix":
        if self.columns != other.rows:
            raise DimensionMismatchError(
                f"Matrix dimensions do not allow multiplication: "
                f"{self.shape} @ {other.shape}"
            )
        return ComplexMatrix._wrap(_matmul_kernel(self._data, other._data))

    def __matmul__(self, other: "ComplexMatrix") -> "ComplexMatrix":
        if not isinstance(other, ComplexMatrix):
            return NotImplemented
        return self.multiply(other)

    def _check_same_shape(self, other: "ComplexMatrix", op: str) -> None:
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"Matrix dimensions must match for {op}: "
                f"{self.shape} vs {other.shape}"
            )

    def __add__(self, other: "ComplexMatrix") -> "ComplexMatrix":
        if not isinstance(other, ComplexMatrix):
            return NotImplemented
        self._check_same_shape(other, "addition")
        return ComplexMatrix._wrap(self._data + other._data)

    def __sub__(self, other: "ComplexMatrix") -> "ComplexMatrix":
        if not isinstance(other, ComplexMatrix):
            return NotImplemented
        self._check_same_shape(other, "subtraction")
        return ComplexMatrix._wrap(self._data - other._data)

    def __mul__(self, scalar: ComplexLike) -> "ComplexMatrix":
        """Scale every entry.  Use ``@`` for the matrix product."""
        if isinstance(scalar, ComplexMatrix):
            return NotImplemented
        try:
            factor = complex(ComplexNumber.coerce(scalar))
        except TypeError:
            return NotImplemented
        return ComplexMatrix._wrap(self._data * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "ComplexMatrix":
        return ComplexMatrix._wrap(-self._data)

    def transpose(self) -> "ComplexMatrix":
        return ComplexMatrix._wrap(self._data.T)

    # -- 2×2 specialisations -----------------------------------------------
    def _require_2x2(self, op: str) -> UnsupportedOperationError | None:
        if self.shape != (2, 2):
            return UnsupportedOperationError(
                f"{op} is only implemented for 2x2 matrices, got {self.shape}"
            )
        return None

    def try_determinant(self) -> Result[ComplexNumber]:
        err = self._require_2x2("Determinant calculation")
        if err is not None:
            return Result.failure(err)
        return Result.success(self[0, 0] * self[1, 1] - self[0, 1] * self[1, 0])

    def determinant(self) -> ComplexNumber:
        return self.try_determinant().unwrap()

    def try_inverse(self) -> Result["ComplexMatrix"]:
        err = self._require_2x2("Matrix inversion")
        if err is not None:
            return Result.failure(err)

        det = self.try_determinant().unwrap()
        if det.abs_squared() < SINGULARITY_TOL:
            return Result.failure(
                SingularMatrixError("Matrix is singular and cannot be inverted")
            )

        a, b = self[0, 0], self[0, 1]
        c, d = self[1, 0], self[1, 1]
        return Result.success(ComplexMatrix([
            [d / det, -(b / det)],
            [-(c / det), a / det],
        ]))

    def inverse(self) -> "ComplexMatrix":
        return self.try_inverse().unwrap()

    # -- comparison --------------------------------------------------------
    def is_close(self, other: "ComplexMatrix", tol: float = 1e-9) -> bool:
        if self.shape != other.shape:
            return False
        diff = self._data - other._data
        return bool(
            np.all(np.abs(diff.real) <= tol) and np.all(np.abs(diff.imag) <= tol)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComplexMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    # -- display -----------------------------------------------------------
    def to_formatted_string(self, title: str = "", decimals: int = 4) -> str:
        """
        Bracketed rows, each column right-aligned to its widest cell
        (at least MIN_COLUMN_WIDTH characters), cells separated by two spaces.
        """
        cells: List[List[str]] = [
            [format_complex(self[i, j], decimals) for j in range(self.columns)]
            for i in range(self.rows)
        ]
        widths = [
            max(MIN_COLUMN_WIDTH, max(len(cells[i][j]) for i in range(self.rows)))
            for j in range(self.columns)
        ]

        lines: List[str] = [title] if title else []
        for row in cells:
            body = "  ".join(cell.rjust(w) for cell, w in zip(row, widths))
            lines.append(f"[ {body} ]")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_formatted_string()

    def __repr__(self) -> str:
        return f"ComplexMatrix({self.rows}x{self.columns})"
