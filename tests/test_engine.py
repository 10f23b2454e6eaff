import logging
import math

import numpy as np
import pytest

from lamina_complex import ComplexNumber
from lamina_config import EngineConfig
from lamina_engine import ThinFilmCalculator
from lamina_errors import ComplexDivisionError, EnergyConservationWarning
from lamina_result import OpticalResult, Polarization

from .utils import ABSORBING_FILM, AIR, GLASS, WAVELENGTH


def bare_glass_reflectance():
    return ((AIR - GLASS) / (AIR + GLASS)) ** 2


class TestReferenceScenarios:
    @pytest.mark.parametrize(
        "thickness, expected",
        [
            (99.45, (11.1475, 70.3446, 18.5079)),
            (57.65, (31.4424, 59.5727, 8.9849)),
        ],
    )
    def test_absorbing_film_normal_incidence(self, headless, thickness, expected):
        res = headless.compute(AIR, ABSORBING_FILM, thickness, GLASS, WAVELENGTH, 0.0, "S")
        pct = res.as_percentages()
        np.testing.assert_allclose(
            (pct["R"], pct["T"], pct["A"]), expected, atol=0.01
        )
        assert res.energy_conserved
        assert res.polarization is Polarization.S
        assert res.transmission_coefficient == ComplexNumber(0, 0)

    def test_reflection_coefficient_matches_reflectance(self, headless):
        res = headless.compute(AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "S")
        assert res.reflection_coefficient.abs_squared() == pytest.approx(res.reflectance)


class TestPhysics:
    def test_zero_thickness_is_bare_substrate(self, headless):
        res = headless.compute(AIR, ABSORBING_FILM, 0.0, GLASS, WAVELENGTH, 0.0, "S")
        assert res.reflectance == pytest.approx(bare_glass_reflectance(), abs=1e-12)
        assert res.absorbance == pytest.approx(0.0, abs=1e-12)

    def test_half_wave_layer_is_absentee(self, headless):
        d = WAVELENGTH / (2 * 1.46)
        res = headless.compute(AIR, 1.46, d, GLASS, WAVELENGTH, 0.0, "S")
        assert res.reflectance == pytest.approx(bare_glass_reflectance(), abs=1e-9)

    def test_quarter_wave_antireflection(self, headless):
        d = WAVELENGTH / (4 * 1.22)
        res = headless.compute(AIR, 1.22, d, GLASS, WAVELENGTH, 0.0, "S")
        expected = ((AIR * GLASS - 1.22 ** 2) / (AIR * GLASS + 1.22 ** 2)) ** 2
        assert res.reflectance == pytest.approx(expected, abs=1e-9)
        assert res.reflectance < bare_glass_reflectance()

    @pytest.mark.parametrize("pol", ["S", "P"])
    @pytest.mark.parametrize("angle_deg", [15.0, 30.0, 60.0])
    def test_lossless_film_oblique_incidence(self, headless, pol, angle_deg):
        res = headless.compute(
            AIR, 1.46, 120.0, GLASS, WAVELENGTH, math.radians(angle_deg), pol
        )
        assert res.energy_conserved
        assert res.absorbance == pytest.approx(0.0, abs=1e-9)
        assert 0.0 <= res.reflectance <= 1.0

    @pytest.mark.parametrize("pol", ["S", "P"])
    def test_total_internal_reflection(self, headless, pol):
        # glass onto air beyond the critical angle: evanescent substrate wave
        res = headless.compute(1.52, 1.38, 100.0, 1.0, WAVELENGTH, math.radians(60.0), pol)
        assert res.reflectance == pytest.approx(1.0, abs=1e-9)
        assert res.transmittance == pytest.approx(0.0, abs=1e-9)
        assert res.absorbance == pytest.approx(0.0, abs=1e-9)
        assert res.energy_conserved

    @pytest.mark.parametrize("n_incident", [1.0, 1.25, 1.5])
    @pytest.mark.parametrize("n_substrate", [1.3, 1.65, 2.0])
    @pytest.mark.parametrize("angle_deg", [0.0, 45.0, 80.0])
    def test_lossless_sweep_conserves_energy(self, headless, n_incident, n_substrate, angle_deg):
        for pol in ("S", "P"):
            res = headless.compute(
                n_incident, 1.38, 100.0, n_substrate, WAVELENGTH,
                math.radians(angle_deg), pol,
            )
            assert res.energy_conserved
            assert res.total == pytest.approx(1.0, abs=1e-6)

    def test_s_and_p_agree_at_normal_incidence(self, headless):
        s = headless.compute(AIR, ABSORBING_FILM, 80.0, GLASS, WAVELENGTH, 0.0, "S")
        p = headless.compute(AIR, ABSORBING_FILM, 80.0, GLASS, WAVELENGTH, 0.0, "P")
        assert s.reflectance == p.reflectance
        assert s.transmittance == p.transmittance

    def test_s_and_p_differ_at_oblique_incidence(self, headless):
        angle = math.radians(45.0)
        s = headless.compute(AIR, 1.46, 120.0, GLASS, WAVELENGTH, angle, "S")
        p = headless.compute(AIR, 1.46, 120.0, GLASS, WAVELENGTH, angle, "P")
        assert s.reflectance != pytest.approx(p.reflectance, abs=1e-6)


class TestPolarizationDispatch:
    def test_avg_is_mean_of_s_and_p(self, headless):
        angle = math.radians(40.0)
        args = (AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, angle)
        avg = headless.compute_with_polarization(*args, Polarization.AVG)
        s = ThinFilmCalculator().compute(*args, "S")
        p = ThinFilmCalculator().compute(*args, "P")

        assert avg.is_avg
        assert avg.reflectance == (s.reflectance + p.reflectance) / 2.0
        assert avg.transmittance == (s.transmittance + p.transmittance) / 2.0
        assert avg.absorbance == (s.absorbance + p.absorbance) / 2.0
        assert avg.s_result == s
        assert avg.p_result == p
        assert avg.s_result.s_result is None
        assert avg.energy_conserved

    def test_lowercase_and_unpolarized_alias(self, headless):
        args = (AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0)
        assert headless.compute_with_polarization(*args, "p").polarization is Polarization.P
        assert headless.compute_with_polarization(*args, "u").polarization is Polarization.AVG

    def test_compute_rejects_avg(self, headless):
        with pytest.raises(ValueError, match="S or P"):
            headless.compute(AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "AVG")

    def test_compute_requires_polarization(self, headless):
        with pytest.raises(TypeError):
            headless.compute(AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0)

    def test_unknown_polarization(self, headless):
        with pytest.raises(ValueError, match="polarization"):
            headless.compute_with_polarization(
                AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "TE"
            )


class TestFailures:
    def test_grazing_p_polarization_raises(self, headless):
        with pytest.raises(ComplexDivisionError):
            headless.compute(AIR, 1.46, 100.0, GLASS, WAVELENGTH, math.pi / 2, "P")

    def test_try_compute_returns_failure(self, headless):
        outcome = headless.try_compute_with_polarization(
            AIR, 1.46, 100.0, GLASS, WAVELENGTH, math.pi / 2, "P"
        )
        assert not outcome.ok
        assert isinstance(outcome.error, ComplexDivisionError)
        with pytest.raises(ComplexDivisionError):
            outcome.unwrap()

    def test_try_compute_success(self, headless):
        outcome = headless.try_compute_with_polarization(
            AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "S"
        )
        assert outcome.ok
        assert isinstance(outcome.unwrap(), OpticalResult)


class TestConservationReporting:
    def test_non_finite_input_is_not_conserved(self, headless, caplog):
        with caplog.at_level(logging.WARNING, logger="lamina_engine"):
            res = headless.compute(AIR, 1.46, float("nan"), GLASS, WAVELENGTH, 0.0, "S")
        assert not res.energy_conserved
        assert "does not conserve energy" in caplog.text

    def test_warning_when_enabled(self):
        calc = ThinFilmCalculator(config=EngineConfig(warn_on_nonconservation=True))
        with pytest.warns(EnergyConservationWarning):
            calc.compute(AIR, 1.46, float("nan"), GLASS, WAVELENGTH, 0.0, "S")

    def test_no_warning_by_default(self, headless, recwarn):
        headless.compute(AIR, 1.46, float("nan"), GLASS, WAVELENGTH, 0.0, "S")
        assert not [w for w in recwarn if issubclass(w.category, EnergyConservationWarning)]


class TestResult:
    def test_summary_and_total(self, headless):
        res = headless.compute(AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "S")
        assert res.summary().startswith("R: 11.1")
        assert res.total == pytest.approx(1.0)
        assert res.polarization_description == "S polarization"

    def test_result_is_immutable(self, headless):
        res = headless.compute(AIR, ABSORBING_FILM, 99.45, GLASS, WAVELENGTH, 0.0, "S")
        with pytest.raises(AttributeError):
            res.reflectance = 0.5
