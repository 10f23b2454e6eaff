# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_complex.py — Immutable complex value type for the optics core.

Branch conventions:
─────────────────────────────────────────────────────
  cos(a+bi)  = cos(a)·cosh(b) − i·sin(a)·sinh(b)
  sin(a+bi)  = sin(a)·cosh(b) + i·cos(a)·sinh(b)
  exp(a+bi)  = eᵃ·(cos(b) + i·sin(b))
  sqrt(z)    = √|z| · (cos(φ/2) + i·sin(φ/2)),   φ = atan2(Im z, Re z)

  sqrt returns the principal root only (Re ≥ 0 for φ ∈ (−π, π]).  The
  Snell-law cosine in the engine relies on this choice; callers needing
  the other root must negate explicitly.

Singularities:
  Division and reciprocal refuse denominators with |z|² < SINGULARITY_TOL
  (real-scalar divisors: |d| < SINGULARITY_TOL).  The ``try_*`` methods
  return a failed Result, the operator forms raise ComplexDivisionError.

The scalar kernels are Numba-compiled on (re, im) float pairs so the
arithmetic stays identical whether it is driven from Python or from the
matrix kernels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from numba import njit

from lamina_errors import ComplexDivisionError, Result

__all__ = [
    "ComplexNumber",
    "ComplexLike",
    "SINGULARITY_TOL",
    "DISPLAY_TOL",
    "format_complex",
    "format_real",
]

# ═══════════════════════════════════════════════════════════════════════════════
# Constants
# ═══════════════════════════════════════════════════════════════════════════════
SINGULARITY_TOL: float = 1e-15
DISPLAY_TOL: float = 1e-10

ComplexLike = Union["ComplexNumber", int, float, complex, np.number]
_REAL_TYPES = (int, float, np.integer, np.floating)


# ═══════════════════════════════════════════════════════════════════════════════
# Scalar kernels
# ═══════════════════════════════════════════════════════════════════════════════

@njit(cache=True)
def _cmul(ar, ai, br, bi):
    return ar * br - ai * bi, ar * bi + ai * br


@njit(cache=True)
def _cdiv(ar, ai, br, bi):
    # Caller has already rejected |b|² < SINGULARITY_TOL
    den = br * br + bi * bi
    return (ar * br + ai * bi) / den, (ai * br - ar * bi) / den


@njit(cache=True)
def _ccos(a, b):
    return math.cos(a) * math.cosh(b), -math.sin(a) * math.sinh(b)


@njit(cache=True)
def _csin(a, b):
    return math.sin(a) * math.cosh(b), math.cos(a) * math.sinh(b)


@njit(cache=True)
def _cexp(a, b):
    scale = math.exp(a)
    return scale * math.cos(b), scale * math.sin(b)


@njit(cache=True)
def _csqrt(a, b):
    magnitude = math.sqrt(a * a + b * b)
    phase = math.atan2(b, a) / 2.0
    root = math.sqrt(magnitude)
    return root * math.cos(phase), root * math.sin(phase)


# ═══════════════════════════════════════════════════════════════════════════════
# Display helpers
# ═══════════════════════════════════════════════════════════════════════════════

def format_real(value: float, decimals: int = 6) -> str:
    return f"{value:.{decimals}f}"


def format_complex(z: "ComplexNumber", decimals: int = 4) -> str:
    """
    Render as ``R ± Ii``; values with |Im| < DISPLAY_TOL render as pure real.

    Display only.  Numeric decisions elsewhere use explicit epsilons.
    """
    if abs(z.imag) < DISPLAY_TOL:
        return f"{z.real:.{decimals}f}"
    sign = "+" if z.imag > 0 else "-"
    return f"{z.real:.{decimals}f} {sign} {abs(z.imag):.{decimals}f}i"


# ═══════════════════════════════════════════════════════════════════════════════
# ComplexNumber
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ComplexNumber:
    """
    Immutable complex number (real, imag) ∈ ℝ².

    Interoperates with Python ``int``/``float``/``complex`` and NumPy
    scalars on either side of the arithmetic operators.  Equality is
    exact; use ``is_close`` for tolerance comparisons.
    """
    real: float = 0.0
    imag: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "real", float(self.real))
        object.__setattr__(self, "imag", float(self.imag))

    # -- construction ------------------------------------------------------
    @classmethod
    def coerce(cls, value: ComplexLike) -> "ComplexNumber":
        """Convert a number of any supported kind to a ComplexNumber."""
        converted = _as_complex_number(value)
        if converted is None:
            raise TypeError(
                f"Cannot interpret {type(value).__name__} as a complex number"
            )
        return converted

    @classmethod
    def from_polar(cls, magnitude: float, phase: float) -> "ComplexNumber":
        return cls(magnitude * math.cos(phase), magnitude * math.sin(phase))

    # -- arithmetic --------------------------------------------------------
    def __add__(self, other: ComplexLike) -> "ComplexNumber":
        o = _as_complex_number(other)
        if o is None:
            return NotImplemented
        return ComplexNumber(self.real + o.real, self.imag + o.imag)

    __radd__ = __add__

    def __sub__(self, other: ComplexLike) -> "ComplexNumber":
        o = _as_complex_number(other)
        if o is None:
            return NotImplemented
        return ComplexNumber(self.real - o.real, self.imag - o.imag)

    def __rsub__(self, other: ComplexLike) -> "ComplexNumber":
        o = _as_complex_number(other)
        if o is None:
            return NotImplemented
        return ComplexNumber(o.real - self.real, o.imag - self.imag)

    def __mul__(self, other: ComplexLike) -> "ComplexNumber":
        o = _as_complex_number(other)
        if o is None:
            return NotImplemented
        return ComplexNumber(*_cmul(self.real, self.imag, o.real, o.imag))

    __rmul__ = __mul__

    def __truediv__(self, other: ComplexLike) -> "ComplexNumber":
        if _as_complex_number(other) is None:
            return NotImplemented
        return self.try_divide(other).unwrap()

    def __rtruediv__(self, other: ComplexLike) -> "ComplexNumber":
        o = _as_complex_number(other)
        if o is None:
            return NotImplemented
        return o.try_divide(self).unwrap()

    def __neg__(self) -> "ComplexNumber":
        return ComplexNumber(-self.real, -self.imag)

    def __pos__(self) -> "ComplexNumber":
        return self

    def __abs__(self) -> float:
        return self.magnitude()

    def __complex__(self) -> complex:
        return complex(self.real, self.imag)

    def try_divide(self, other: ComplexLike) -> Result["ComplexNumber"]:
        """Divide by a complex or real divisor without raising."""
        if isinstance(other, _REAL_TYPES):
            d = float(other)
            if abs(d) < SINGULARITY_TOL:
                return Result.failure(ComplexDivisionError("Division by zero"))
            return Result.success(ComplexNumber(self.real / d, self.imag / d))

        o = ComplexNumber.coerce(other)
        if o.abs_squared() < SINGULARITY_TOL:
            return Result.failure(
                ComplexDivisionError("Division by zero complex number")
            )
        return Result.success(
            ComplexNumber(*_cdiv(self.real, self.imag, o.real, o.imag))
        )

    def try_reciprocal(self) -> Result["ComplexNumber"]:
        den = self.abs_squared()
        if den < SINGULARITY_TOL:
            return Result.failure(
                ComplexDivisionError(
                    "Cannot compute reciprocal of zero complex number"
                )
            )
        return Result.success(ComplexNumber(self.real / den, -self.imag / den))

    def reciprocal(self) -> "ComplexNumber":
        return self.try_reciprocal().unwrap()

    # -- scalar properties -------------------------------------------------
    def abs_squared(self) -> float:
        return self.real * self.real + self.imag * self.imag

    def magnitude(self) -> float:
        return math.sqrt(self.abs_squared())

    def arg(self) -> float:
        return math.atan2(self.imag, self.real)

    def conjugate(self) -> "ComplexNumber":
        return ComplexNumber(self.real, -self.imag)

    # -- transcendental functions ------------------------------------------
    def cos(self) -> "ComplexNumber":
        return ComplexNumber(*_ccos(self.real, self.imag))

    def sin(self) -> "ComplexNumber":
        return ComplexNumber(*_csin(self.real, self.imag))

    def exp(self) -> "ComplexNumber":
        return ComplexNumber(*_cexp(self.real, self.imag))

    def sqrt(self) -> "ComplexNumber":
        """Principal square root (see module notes on the branch)."""
        return ComplexNumber(*_csqrt(self.real, self.imag))

    # -- comparison & display ----------------------------------------------
    def is_close(self, other: ComplexLike, tol: float = 1e-9) -> bool:
        o = ComplexNumber.coerce(other)
        return abs(self.real - o.real) <= tol and abs(self.imag - o.imag) <= tol

    def as_tuple(self) -> Tuple[float, float]:
        return self.real, self.imag

    def formatted(self, decimals: int = 4) -> str:
        return format_complex(self, decimals)

    def __str__(self) -> str:
        return format_complex(self, 6)

    def __format__(self, format_spec: str) -> str:
        if not format_spec:
            return str(self)
        if abs(self.imag) < DISPLAY_TOL:
            return format(self.real, format_spec)
        sign = "+" if self.imag > 0 else "-"
        return (
            f"{format(self.real, format_spec)} {sign} "
            f"{format(abs(self.imag), format_spec)}i"
        )


def _as_complex_number(value: object) -> Optional[ComplexNumber]:
    if isinstance(value, ComplexNumber):
        return value
    if isinstance(value, _REAL_TYPES):
        return ComplexNumber(float(value), 0.0)
    if isinstance(value, (complex, np.complexfloating)):
        c = complex(value)
        return ComplexNumber(c.real, c.imag)
    return None
