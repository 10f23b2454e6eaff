# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_validation.py — Reference film systems and the validation suite.

Reference values (S polarization, normal incidence, air / film / BK7-like glass):

    Case                    N₁            d (nm)    R (%)      T (%)      A (%)
    ─────────────────────   ───────────   ───────   ────────   ────────   ────────
    Default parameters      2.385 − 0.1i   99.45    11.1475    70.3446    18.5079
    Standard validation     2.385 − 0.1i   57.65    31.4424    59.5727     8.9849
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, TYPE_CHECKING

from lamina_complex import ComplexNumber
from lamina_result import OpticalResult, Polarization
from lamina_trace import StepKind, traced_session, traced_step

if TYPE_CHECKING:
    from lamina_engine import ThinFilmCalculator

__all__ = [
    "FilmSystem",
    "ReferenceCase",
    "ValidationOutcome",
    "REFERENCE_SYSTEMS",
    "VALIDATION_CASES",
    "run_validation_suite",
]

Triple = Tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class FilmSystem:
    """
    Incident medium | single film | substrate.

    Attributes
    ----------
    n_film, k_film : float
        Film index N₁ = n_film − i·k_film.
    thickness, wavelength : float
        nm.
    angle_deg : float
        Incidence angle in degrees; the engine receives radians.
    """
    name: str
    n_incident: float
    n_film: float
    k_film: float
    thickness: float
    n_substrate: float
    wavelength: float
    angle_deg: float = 0.0

    @property
    def film_index(self) -> ComplexNumber:
        return ComplexNumber(self.n_film, -self.k_film)

    @property
    def angle_rad(self) -> float:
        return math.radians(self.angle_deg)

    def run(
        self,
        calculator: "ThinFilmCalculator",
        polarization: Polarization | str = Polarization.S,
    ) -> OpticalResult:
        return calculator.compute_with_polarization(
            self.n_incident,
            self.film_index,
            self.thickness,
            self.n_substrate,
            self.wavelength,
            self.angle_rad,
            polarization,
        )


REFERENCE_SYSTEMS: Dict[str, FilmSystem] = {
    system.name: system
    for system in (
        FilmSystem("default", 1.0, 2.385, 0.1, 99.45, 1.52, 550.0),
        FilmSystem("standard-validation", 1.0, 2.385, 0.1, 57.65, 1.52, 550.0),
        # Quarter-wave presets at 550 nm on glass
        FilmSystem("mgf2-antireflection", 1.0, 1.22, 0.0, 113.0, 1.52, 550.0),
        FilmSystem("tio2-high-index", 1.0, 2.40, 0.0, 229.2, 1.52, 550.0),
        FilmSystem("sio2-low-index", 1.0, 1.46, 0.0, 188.4, 1.52, 550.0),
    )
}


@dataclass(frozen=True, slots=True)
class ReferenceCase:
    """A film system plus the R, T, A it must reproduce (percent)."""
    name: str
    system: FilmSystem
    expected: Triple


VALIDATION_CASES: Tuple[ReferenceCase, ...] = (
    ReferenceCase("Default parameters", REFERENCE_SYSTEMS["default"],
                  (11.1475, 70.3446, 18.5079)),
    ReferenceCase("Standard validation", REFERENCE_SYSTEMS["standard-validation"],
                  (31.4424, 59.5727, 8.9849)),
)


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    name: str
    expected: Triple
    actual: Triple
    tolerance: float

    @property
    def errors(self) -> Triple:
        return tuple(abs(a - e) for a, e in zip(self.actual, self.expected))  # type: ignore[return-value]

    @property
    def max_error(self) -> float:
        return max(self.errors)

    @property
    def passed(self) -> bool:
        return all(err < self.tolerance for err in self.errors)


def run_validation_suite(
    calculator: "ThinFilmCalculator",
    cases: Sequence[ReferenceCase] = VALIDATION_CASES,
) -> List[ValidationOutcome]:
    """
    Recompute every reference case through ``calculator`` and compare
    against the stored percentages.  All cases share one trace session;
    each reference run nests under its own test-case step.
    """
    trace = calculator.trace
    tolerance = calculator.config.validation_tol_pct
    outcomes: List[ValidationOutcome] = []

    with traced_session(trace, "Thin-film calculator validation"):
        for case in cases:
            with traced_step(trace, f"Test case: {case.name}", StepKind.HEADER):
                result = case.system.run(calculator)
            pct = result.as_percentages()
            outcome = ValidationOutcome(
                name=case.name,
                expected=case.expected,
                actual=(pct["R"], pct["T"], pct["A"]),
                tolerance=tolerance,
            )
            outcomes.append(outcome)

            with traced_step(trace, f"Validation: {case.name}", StepKind.VALIDATION):
                for label, exp, act, err in zip(
                    "RTA", outcome.expected, outcome.actual, outcome.errors
                ):
                    trace.add_result(f"{label} expected", exp, unit="%")
                    trace.add_result(f"{label} calculated", act, unit="%")
                    trace.add_result(f"{label} error", err, unit="%")
                trace.add_result("Verdict", "PASS ✓" if outcome.passed else "FAIL ✗")

        with traced_step(trace, "Complex function check", StepKind.VALIDATION):
            z = ComplexNumber(1.0, 1.0)
            root = z.sqrt()
            trace.add_result("z", z)
            trace.add_result("sqrt(z)", root)
            trace.add_result("cos(z)", z.cos())
            trace.add_result("sin(z)", z.sin())
            trace.add_result("|sqrt(z)² − z|", abs(root * root - z))

    return outcomes
