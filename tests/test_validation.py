import math

import pytest

from lamina_complex import ComplexNumber
from lamina_engine import ThinFilmCalculator
from lamina_result import Polarization
from lamina_trace import StepStatus
from lamina_validation import (
    REFERENCE_SYSTEMS,
    VALIDATION_CASES,
    FilmSystem,
    ReferenceCase,
    ValidationOutcome,
    run_validation_suite,
)


class TestFilmSystem:
    def test_film_index_sign_convention(self):
        system = REFERENCE_SYSTEMS["default"]
        assert system.film_index == ComplexNumber(2.385, -0.1)

    def test_angle_conversion(self):
        system = FilmSystem("tilted", 1.0, 1.46, 0.0, 100.0, 1.52, 550.0, angle_deg=30.0)
        assert system.angle_rad == pytest.approx(math.pi / 6)

    @pytest.mark.parametrize(
        "name", ["mgf2-antireflection", "tio2-high-index", "sio2-low-index"]
    )
    def test_lossless_presets_conserve_energy(self, headless, name):
        result = REFERENCE_SYSTEMS[name].run(headless, Polarization.AVG)
        assert result.energy_conserved
        assert result.absorbance == pytest.approx(0.0, abs=1e-9)

    def test_mgf2_preset_reduces_reflection(self, headless):
        coated = REFERENCE_SYSTEMS["mgf2-antireflection"].run(headless)
        assert coated.reflectance < ((1.0 - 1.52) / (1.0 + 1.52)) ** 2


class TestValidationOutcome:
    def test_errors_and_verdict(self):
        outcome = ValidationOutcome("x", (10.0, 80.0, 10.0), (10.005, 79.98, 10.0), 0.01)
        assert outcome.errors == pytest.approx((0.005, 0.02, 0.0))
        assert outcome.max_error == pytest.approx(0.02)
        assert not outcome.passed


class TestSuite:
    def test_reference_cases_pass(self, calculator):
        outcomes = run_validation_suite(calculator)
        assert [o.name for o in outcomes] == [c.name for c in VALIDATION_CASES]
        assert all(o.passed for o in outcomes)

    def test_single_session_tree(self, calculator, trace):
        run_validation_suite(calculator)
        assert len(trace.steps) == 1
        root = trace.root
        assert root.title == "Thin-film calculator validation"
        assert root.status is StepStatus.COMPLETED
        assert [c.title for c in root.children] == [
            "Test case: Default parameters",
            "Validation: Default parameters",
            "Test case: Standard validation",
            "Validation: Standard validation",
            "Complex function check",
        ]
        assert root.children[0].find("Step 3: Characteristic matrix") is not None

    def test_complex_function_check(self, calculator, trace):
        run_validation_suite(calculator)
        check = trace.root.find("Complex function check")
        residual = check.result("|sqrt(z)² − z|").value.payload
        assert residual < 1e-12

    def test_wrong_expectation_fails(self):
        case = ReferenceCase("Wrong", REFERENCE_SYSTEMS["default"], (50.0, 50.0, 0.0))
        (outcome,) = run_validation_suite(ThinFilmCalculator(), cases=[case])
        assert not outcome.passed
