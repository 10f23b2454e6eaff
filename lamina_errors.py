# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_errors.py — Error taxonomy and the explicit Result type.

Every fallible arithmetic operation in Lamina has two spellings:
  - ``try_*`` returns a ``Result`` that the caller must inspect.
  - The plain form (operator, ``inverse()``, ``compute()``) unwraps that
    Result and lets the stored exception propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

__all__ = [
    "LaminaError",
    "DimensionMismatchError",
    "UnsupportedOperationError",
    "SingularMatrixError",
    "ComplexDivisionError",
    "EnergyConservationWarning",
    "Result",
]

T = TypeVar("T")


class LaminaError(Exception):
    """Base class for all errors raised by the calculation core."""


class DimensionMismatchError(LaminaError, ValueError):
    """Matrix operands have incompatible shapes for the requested operation."""


class UnsupportedOperationError(LaminaError, NotImplementedError):
    """Operation is only defined for 2×2 matrices."""


class SingularMatrixError(LaminaError, ArithmeticError):
    """Determinant magnitude is too small for a meaningful inverse."""


class ComplexDivisionError(LaminaError, ZeroDivisionError):
    """Complex division or reciprocal with a near-zero denominator."""


class EnergyConservationWarning(UserWarning):
    """R + T + A deviates from unity by more than the configured tolerance."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Success-or-error container.

    Exactly one of ``value`` / ``error`` is meaningful: ``error is None``
    marks a success.  ``unwrap()`` re-raises the stored exception, so code
    that prefers exceptions can opt back in at the call site.
    """
    value: Optional[T] = None
    error: Optional[LaminaError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LaminaError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return default if self.error is not None else self.value  # type: ignore[return-value]
