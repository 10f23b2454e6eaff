# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_result.py — Polarization tag and the immutable OpticalResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from lamina_complex import ComplexNumber

__all__ = ["Polarization", "OpticalResult"]


class Polarization(str, Enum):
    """S, P, or the unweighted S/P average (AVG)."""
    S = "S"
    P = "P"
    AVG = "AVG"

    @classmethod
    def parse(cls, value: Union["Polarization", str]) -> "Polarization":
        """Accept an enum member or a case-insensitive name ('s', 'p', 'avg', 'u')."""
        if isinstance(value, Polarization):
            return value
        key = str(value).strip().upper()
        if key == "U":
            key = "AVG"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"polarization must be 'S', 'P' or 'AVG', got {value!r}"
            ) from None

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: Dict[Polarization, str] = {
    Polarization.S: "S polarization",
    Polarization.P: "P polarization",
    Polarization.AVG: "AVG polarization (mean of S and P)",
}


@dataclass(frozen=True, slots=True)
class OpticalResult:
    """
    Outcome of one calculation call.

    Attributes
    ----------
    reflectance, transmittance, absorbance : float
        Power ratios, nominally in [0, 1].
    reflection_coefficient : ComplexNumber
        Amplitude r from the admittance method.
    transmission_coefficient : ComplexNumber
        Always zero for single-polarization results; the admittance path
        does not derive t.
    wavelength : float
        nm.
    incident_angle : float
        rad.
    energy_conserved : bool
        |R + T + A − 1| below the engine's conservation tolerance.
    polarization : Polarization
    s_result, p_result : OpticalResult | None
        Only set on AVG results; the sub-results themselves never nest.
    """
    reflectance: float
    transmittance: float
    absorbance: float
    reflection_coefficient: ComplexNumber
    transmission_coefficient: ComplexNumber
    wavelength: float
    incident_angle: float
    energy_conserved: bool
    polarization: Polarization = Polarization.S
    s_result: Optional["OpticalResult"] = None
    p_result: Optional["OpticalResult"] = None

    def __post_init__(self) -> None:
        for sub in (self.s_result, self.p_result):
            if sub is not None and (sub.s_result is not None or sub.p_result is not None):
                raise ValueError("AVG sub-results must not carry nested sub-results.")

    @property
    def total(self) -> float:
        return self.reflectance + self.transmittance + self.absorbance

    @property
    def is_avg(self) -> bool:
        return self.polarization is Polarization.AVG

    @property
    def polarization_description(self) -> str:
        return self.polarization.description

    def as_percentages(self) -> Dict[str, float]:
        return {
            "R": self.reflectance * 100.0,
            "T": self.transmittance * 100.0,
            "A": self.absorbance * 100.0,
        }

    def summary(self) -> str:
        """One-line status text, two decimals per quantity."""
        pct = self.as_percentages()
        return f"R: {pct['R']:.2f}%, T: {pct['T']:.2f}%, A: {pct['A']:.2f}%"
