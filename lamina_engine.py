# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_engine.py — Characteristic-matrix calculation of R, T, A.

Geometry:  incident medium (N₀) | film (N₁, thickness d) | substrate (Nₛ)
Index convention:  N = n − ik  (absorbing media have negative Im N).

Sign Conventions:
─────────────────────────────────────────────────────
  Snell (complex):  sin θⱼ = (N₀ / Nⱼ) · sin θ₀,   cos θⱼ = √(1 − sin² θⱼ)
                    principal branch of √, no forward-wave correction.

  Admittance:       η_s = N · cos θ        η_p = N / cos θ
                    normal incidence (|θ₀| < tol): η = N for all media.

  Phase thickness:  δ = 2π·d/λ · N₁ · cos θ₁

  Characteristic matrix:
        M = [[ cos δ,       i·sin δ / η₁ ],
             [ i·η₁·sin δ,  cos δ        ]]

        [B]       [ 1  ]
        [C] = M · [ ηₛ ]

  Direct formulas (D = η₀B + C):
        R = |η₀B − C|² / |D|²
        T = 4·Re(η₀)·Re(ηₛ) / |D|²
        A = 4·Re(η₀)·(Re(BC*) − Re(ηₛ)) / |D|²

  Admittance formulas (Y = C / B), canonical:
        r = (η₀ − Y) / (η₀ + Y),   R = |r|²
        T = Re(ηₛ)·(1 − R) / Re(BC*)
        A = 1 − R − T

Both formula sets are evaluated and their differences are traced.  They
are not guaranteed to agree for oblique or absorbing cases; the
admittance values are the ones returned.
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import Optional, Tuple, Union

from lamina_complex import ComplexLike, ComplexNumber
from lamina_config import DEFAULT_CONFIG, EngineConfig
from lamina_errors import EnergyConservationWarning, LaminaError, Result
from lamina_matrix import ComplexMatrix
from lamina_result import OpticalResult, Polarization
from lamina_trace import (
    NullTrace,
    StepKind,
    TraceSink,
    traced_session,
    traced_step,
)

__all__ = ["ThinFilmCalculator"]

logger = logging.getLogger(__name__)

TWO_PI: float = 2.0 * math.pi
IMAG_UNIT = ComplexNumber(0.0, 1.0)
ZERO = ComplexNumber(0.0, 0.0)

PolarizationLike = Union[Polarization, str]


class ThinFilmCalculator:
    """
    Single-film characteristic-matrix engine.

    Parameters
    ----------
    trace : TraceSink, optional
        Receives every intermediate quantity.  Defaults to NullTrace
        (headless).  Use one sink per calculation session.
    config : EngineConfig, optional
        Tolerances; defaults to DEFAULT_CONFIG.

    Examples
    --------
    >>> from lamina_trace import CalculationLogger
    >>> log = CalculationLogger()
    >>> calc = ThinFilmCalculator(log)
    >>> res = calc.compute_with_polarization(
    ...     1.0, 2.385 - 0.1j, 99.45, 1.52, 550.0, 0.0, "S")
    >>> round(res.reflectance * 100, 2)
    11.15
    """

    def __init__(
        self,
        trace: Optional[TraceSink] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.trace: TraceSink = trace if trace is not None else NullTrace()
        self.config: EngineConfig = config if config is not None else DEFAULT_CONFIG

    # -- public API --------------------------------------------------------
    def compute(
        self,
        n_incident: ComplexLike,
        n_film: ComplexLike,
        thickness: float,
        n_substrate: ComplexLike,
        wavelength: float,
        angle: float,
        polarization: PolarizationLike,
    ) -> OpticalResult:
        """
        Single-polarization calculation (S or P).

        Near-zero complex divisors raise ComplexDivisionError; nothing is
        retried.
        """
        pol = Polarization.parse(polarization)
        if pol is Polarization.AVG:
            raise ValueError(
                "compute() handles S or P only; use compute_with_polarization() for AVG"
            )
        args = self._coerce_inputs(n_incident, n_film, thickness, n_substrate,
                                   wavelength, angle)

        with traced_session(self.trace, f"Thin-film calculation ({pol.description})"):
            return self._compute_single(*args, pol)

    def compute_with_polarization(
        self,
        n_incident: ComplexLike,
        n_film: ComplexLike,
        thickness: float,
        n_substrate: ComplexLike,
        wavelength: float,
        angle: float,
        polarization: PolarizationLike,
    ) -> OpticalResult:
        """Dispatch on S, P or AVG (mean of independent S and P runs)."""
        pol = Polarization.parse(polarization)
        if pol is not Polarization.AVG:
            return self.compute(n_incident, n_film, thickness, n_substrate,
                                wavelength, angle, pol)

        args = self._coerce_inputs(n_incident, n_film, thickness, n_substrate,
                                   wavelength, angle)
        with traced_session(self.trace, pol.description):
            return self._compute_average(*args)

    def try_compute_with_polarization(
        self,
        n_incident: ComplexLike,
        n_film: ComplexLike,
        thickness: float,
        n_substrate: ComplexLike,
        wavelength: float,
        angle: float,
        polarization: PolarizationLike,
    ) -> Result[OpticalResult]:
        """Like compute_with_polarization, but arithmetic failures come back as a Result."""
        try:
            return Result.success(self.compute_with_polarization(
                n_incident, n_film, thickness, n_substrate,
                wavelength, angle, polarization,
            ))
        except LaminaError as exc:
            return Result.failure(exc)

    # -- internals ---------------------------------------------------------
    @staticmethod
    def _coerce_inputs(
        n_incident: ComplexLike,
        n_film: ComplexLike,
        thickness: float,
        n_substrate: ComplexLike,
        wavelength: float,
        angle: float,
    ) -> Tuple[ComplexNumber, ComplexNumber, float, ComplexNumber, float, float]:
        return (
            ComplexNumber.coerce(n_incident),
            ComplexNumber.coerce(n_film),
            float(thickness),
            ComplexNumber.coerce(n_substrate),
            float(wavelength),
            float(angle),
        )

    def _compute_single(
        self,
        n0: ComplexNumber,
        n1: ComplexNumber,
        thickness: float,
        ns: ComplexNumber,
        wavelength: float,
        angle: float,
        pol: Polarization,
    ) -> OpticalResult:
        trace = self.trace
        cfg = self.config
        logger.debug(
            "compute %s: N0=%s N1=%s d=%g nm Ns=%s lambda=%g nm theta=%g rad",
            pol.value, n0, n1, thickness, ns, wavelength, angle,
        )

        with traced_step(trace, "Input parameters", StepKind.INPUT_PARAMETERS):
            trace.add_result("Incident medium index", n0)
            trace.add_result("Film index", n1)
            trace.add_result("Film thickness", thickness, unit="nm")
            trace.add_result("Substrate index", ns)
            trace.add_result("Wavelength", wavelength, unit="nm")
            trace.add_result("Incidence angle", math.degrees(angle), unit="deg")
            trace.add_result("Polarization", pol.description)

        k0d = TWO_PI * thickness / wavelength

        # Step 1
        with traced_step(trace, "Step 1: Phase thickness", StepKind.PHASE_THICKNESS):
            delta = k0d * n1 * math.cos(angle)
            trace.add_result("Phase thickness δ", delta,
                             formula="δ = 2π·d/λ · N₁ · cos θ₀")

        # Step 2
        with traced_step(trace, "Step 2: Optical admittance", StepKind.OPTICAL_ADMITTANCE):
            if abs(angle) < cfg.normal_incidence_tol:
                eta0, eta1, etas = n0, n1, ns
            else:
                sin0 = math.sin(angle)
                cos0 = math.cos(angle)
                sin1 = (n0 / n1) * sin0
                sins = (n0 / ns) * sin0
                cos1 = (1.0 - sin1 * sin1).sqrt()
                coss = (1.0 - sins * sins).sqrt()
                trace.add_result("sin θ₁ (film)", sin1)
                trace.add_result("cos θ₁ (film)", cos1)
                trace.add_result("sin θₛ (substrate)", sins)
                trace.add_result("cos θₛ (substrate)", coss)

                if pol is Polarization.S:
                    eta0, eta1, etas = n0 * cos0, n1 * cos1, ns * coss
                else:
                    eta0, eta1, etas = n0 / cos0, n1 / cos1, ns / coss

                delta = k0d * n1 * cos1
                trace.add_result("Phase thickness δ (oblique)", delta,
                                 formula="δ = 2π·d/λ · N₁ · cos θ₁")

            trace.add_result("η₀ (incident medium)", eta0)
            trace.add_result("η₁ (film)", eta1)
            trace.add_result("ηₛ (substrate)", etas)

        # Step 3
        with traced_step(trace, "Step 3: Characteristic matrix",
                         StepKind.CHARACTERISTIC_MATRIX):
            cos_d = delta.cos()
            sin_d = delta.sin()
            trace.add_result("cos(δ)", cos_d)
            trace.add_result("sin(δ)", sin_d)

            char_matrix = ComplexMatrix([
                [cos_d, IMAG_UNIT * sin_d / eta1],
                [IMAG_UNIT * eta1 * sin_d, cos_d],
            ])
            trace.add_result("Characteristic matrix M", char_matrix)

        # Step 4
        with traced_step(trace, "Step 4: Boundary parameters",
                         StepKind.BOUNDARY_CONDITION):
            b_param = char_matrix[0, 0] + char_matrix[0, 1] * etas
            c_param = char_matrix[1, 0] + char_matrix[1, 1] * etas
            trace.add_result("B", b_param, formula="B = M₀₀ + M₀₁·ηₛ")
            trace.add_result("C", c_param, formula="C = M₁₀ + M₁₁·ηₛ")

        # Step 5
        with traced_step(trace, "Step 5: Direct-formula TRA", StepKind.TRA_CALCULATION):
            denom = eta0 * b_param + c_param
            denom_sq = denom.abs_squared()
            bc_conj = b_param * c_param.conjugate()
            num_r = eta0 * b_param - c_param

            trace.add_result("η₀B + C", denom)
            trace.add_result("(η₀B + C)*", denom.conjugate())
            trace.add_result("|η₀B + C|²", denom_sq)
            trace.add_result("BC*", bc_conj)
            trace.add_result("Re(BC*)", bc_conj.real)

            r_direct = num_r.abs_squared() / denom_sq
            trace.add_result("η₀B − C", num_r)
            trace.add_result("|η₀B − C|²", num_r.abs_squared())
            trace.add_result("R (direct)", r_direct, formula="R = |η₀B − C|² / |D|²")

            t_numerator = 4.0 * eta0.real * etas.real
            t_direct = t_numerator / denom_sq
            trace.add_result("4·Re(η₀)·Re(ηₛ)", t_numerator)
            trace.add_result("T (direct)", t_direct,
                             formula="T = 4·Re(η₀)·Re(ηₛ) / |D|²")

            a_numerator = 4.0 * eta0.real * (bc_conj.real - etas.real)
            a_direct = a_numerator / denom_sq
            trace.add_result("Re(BC*) − Re(ηₛ)", bc_conj.real - etas.real)
            trace.add_result("4·Re(η₀)·(Re(BC*) − Re(ηₛ))", a_numerator)
            trace.add_result("A (direct)", a_direct,
                             formula="A = 4·Re(η₀)·(Re(BC*) − Re(ηₛ)) / |D|²")

        # Step 6
        with traced_step(trace, "Step 6: Admittance-method verification",
                         StepKind.VALIDATION):
            y_admit = c_param / b_param
            r_coeff = (eta0 - y_admit) / (eta0 + y_admit)
            reflectance = r_coeff.abs_squared()
            # Evanescent substrate wave carries no flux
            if etas.real == 0.0:
                transmittance = 0.0
            else:
                transmittance = etas.real * (1.0 - reflectance) / bc_conj.real
            absorbance = 1.0 - reflectance - transmittance

            trace.add_result("Admittance Y = C/B", y_admit)
            trace.add_result("Reflection coefficient r", r_coeff,
                             formula="r = (η₀ − Y) / (η₀ + Y)")
            trace.add_result("R (admittance)", reflectance)
            trace.add_result("T (admittance)", transmittance,
                             formula="T = Re(ηₛ)·(1 − R) / Re(BC*)")
            trace.add_result("A (admittance)", absorbance, formula="A = 1 − R − T")

        with traced_step(trace, "Method comparison", StepKind.COMPARISON):
            diffs = (
                abs(r_direct - reflectance),
                abs(t_direct - transmittance),
                abs(a_direct - absorbance),
            )
            trace.add_result("R difference", diffs[0])
            trace.add_result("T difference", diffs[1])
            trace.add_result("A difference", diffs[2])
            logger.debug("direct vs admittance |dR|=%.3e |dT|=%.3e |dA|=%.3e", *diffs)

        conserved = self._finish(reflectance, transmittance, absorbance,
                                 f"{pol.value}-polarization")

        return OpticalResult(
            reflectance=reflectance,
            transmittance=transmittance,
            absorbance=absorbance,
            reflection_coefficient=r_coeff,
            transmission_coefficient=ZERO,
            wavelength=wavelength,
            incident_angle=angle,
            energy_conserved=conserved,
            polarization=pol,
        )

    def _compute_average(
        self,
        n0: ComplexNumber,
        n1: ComplexNumber,
        thickness: float,
        ns: ComplexNumber,
        wavelength: float,
        angle: float,
    ) -> OpticalResult:
        trace = self.trace
        args = (n0, n1, thickness, ns, wavelength, angle)

        with traced_step(trace, "Sub-calculation: S polarization", StepKind.HEADER):
            s_res = self._compute_single(*args, Polarization.S)
            trace.add_result("S reflectance", s_res.reflectance)
            trace.add_result("S transmittance", s_res.transmittance)
            trace.add_result("S absorbance", s_res.absorbance)

        with traced_step(trace, "Sub-calculation: P polarization", StepKind.HEADER):
            p_res = self._compute_single(*args, Polarization.P)
            trace.add_result("P reflectance", p_res.reflectance)
            trace.add_result("P transmittance", p_res.transmittance)
            trace.add_result("P absorbance", p_res.absorbance)

        with traced_step(trace, "AVG calculation: mean values", StepKind.HEADER):
            reflectance = (s_res.reflectance + p_res.reflectance) / 2.0
            transmittance = (s_res.transmittance + p_res.transmittance) / 2.0
            absorbance = (s_res.absorbance + p_res.absorbance) / 2.0
            r_coeff = (s_res.reflection_coefficient + p_res.reflection_coefficient) / 2.0
            t_coeff = (s_res.transmission_coefficient + p_res.transmission_coefficient) / 2.0

            trace.add_result("AVG reflectance", reflectance)
            trace.add_result("AVG transmittance", transmittance)
            trace.add_result("AVG absorbance", absorbance)
            trace.add_result("AVG reflection coefficient", r_coeff)

            conserved = self._finish(reflectance, transmittance, absorbance,
                                     "AVG-polarization")

        return OpticalResult(
            reflectance=reflectance,
            transmittance=transmittance,
            absorbance=absorbance,
            reflection_coefficient=r_coeff,
            transmission_coefficient=t_coeff,
            wavelength=wavelength,
            incident_angle=angle,
            energy_conserved=conserved,
            polarization=Polarization.AVG,
            s_result=s_res,
            p_result=p_res,
        )

    def _finish(
        self, reflectance: float, transmittance: float, absorbance: float, label: str
    ) -> bool:
        """Log the final figures and the conservation check; never raises."""
        total = reflectance + transmittance + absorbance
        conserved = abs(total - 1.0) < self.config.conservation_tol
        logger.debug(
            "%s finished: R=%.6f T=%.6f A=%.6f conserved=%s",
            label, reflectance, transmittance, absorbance, conserved,
        )

        with traced_step(self.trace, "Final results", StepKind.FINAL_RESULTS):
            self.trace.log_final_results(reflectance, transmittance, absorbance, conserved)
            self.trace.log_energy_conservation(conserved, total)

        if not conserved:
            logger.warning("%s result does not conserve energy: R+T+A = %.8f", label, total)
            if self.config.warn_on_nonconservation:
                warnings.warn(
                    f"{label} result does not conserve energy (R+T+A = {total:.8f})",
                    EnergyConservationWarning,
                    stacklevel=3,
                )
        return conserved


# ═══════════════════════════════════════════════════════════════════════════════
# Self-Test
# ═══════════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    from __about__ import __title__, __version__
    from lamina_trace import CalculationLogger
    from lamina_validation import run_validation_suite

    print("=" * 70)
    print(f"{__title__} {__version__} — Characteristic-Matrix Self-Test")
    print("=" * 70)

    log = CalculationLogger()
    outcomes = run_validation_suite(ThinFilmCalculator(log))
    print(log.full_log)

    for outcome in outcomes:
        status = "✓" if outcome.passed else "✗"
        print(f"  {outcome.name:<28} max error {outcome.max_error:.4f} pp  {status}")

    print("\n" + "=" * 70)
    print("All tests complete.")
