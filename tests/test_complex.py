import math

import pytest

from lamina_complex import ComplexNumber, format_complex
from lamina_errors import ComplexDivisionError


class TestArithmetic:
    def test_multiplication(self):
        assert ComplexNumber(1, 2) * ComplexNumber(3, 4) == ComplexNumber(-5, 10)

    def test_division(self):
        q = ComplexNumber(1, 2) / ComplexNumber(3, 4)
        assert q.is_close(ComplexNumber(0.44, 0.08))

    def test_mixed_with_python_numbers(self):
        z = ComplexNumber(1, 1)
        assert 2 * z == ComplexNumber(2, 2)
        assert 1 - z == ComplexNumber(0, -1)
        assert z + 1j == ComplexNumber(1, 2)
        assert (2 / ComplexNumber(0, 1)).is_close(ComplexNumber(0, -2))

    def test_conjugate_and_abs_squared(self):
        z = ComplexNumber(3, -4)
        assert z.conjugate() == ComplexNumber(3, 4)
        assert z.abs_squared() == 25.0
        assert abs(z) == 5.0

    def test_coerce_rejects_strings(self):
        with pytest.raises(TypeError):
            ComplexNumber.coerce("1+2j")


class TestDivisionByZero:
    def test_complex_zero_divisor_raises(self):
        with pytest.raises(ComplexDivisionError, match="zero complex"):
            ComplexNumber(1, 1) / ComplexNumber(0, 0)

    def test_real_zero_divisor_raises(self):
        with pytest.raises(ComplexDivisionError, match="Division by zero"):
            ComplexNumber(1, 1) / 0.0

    def test_is_a_zero_division_error(self):
        with pytest.raises(ZeroDivisionError):
            ComplexNumber(1, 0) / 1e-20

    def test_try_divide_returns_failure(self):
        result = ComplexNumber(1, 0).try_divide(ComplexNumber(1e-9, 0))
        assert not result.ok
        assert isinstance(result.error, ComplexDivisionError)
        assert result.unwrap_or(ComplexNumber(7, 0)) == ComplexNumber(7, 0)

    def test_reciprocal(self):
        assert ComplexNumber(0, 2).reciprocal().is_close(ComplexNumber(0, -0.5))
        assert not ComplexNumber(0, 0).try_reciprocal().ok


class TestFunctions:
    @pytest.mark.parametrize(
        "z", [(4, 0), (-4, 0), (0, 1), (3, -4), (-2.5, 0.1), (1e-3, -7)]
    )
    def test_sqrt_squares_back(self, z):
        w = ComplexNumber(*z)
        root = w.sqrt()
        assert (root * root).is_close(w, tol=1e-9)

    def test_principal_sqrt(self):
        assert ComplexNumber(-4, 0).sqrt().is_close(ComplexNumber(0, 2))
        root = ComplexNumber(1, 1).sqrt()
        assert (root * root).is_close(ComplexNumber(1, 1))
        assert root.real > 0

    def test_cos_sin_identity(self):
        z = ComplexNumber(0.7, -0.3)
        total = z.cos() * z.cos() + z.sin() * z.sin()
        assert total.is_close(ComplexNumber(1, 0))

    def test_matches_cmath(self):
        import cmath
        z = complex(1.0, 1.0)
        w = ComplexNumber(1.0, 1.0)
        assert w.cos().is_close(cmath.cos(z))
        assert w.sin().is_close(cmath.sin(z))
        assert w.sqrt().is_close(cmath.sqrt(z))

    def test_euler(self):
        assert ComplexNumber(0, math.pi).exp().is_close(ComplexNumber(-1, 0))


class TestFormatting:
    def test_negative_imaginary(self):
        assert format_complex(ComplexNumber(1, -2)) == "1.0000 - 2.0000i"

    def test_positive_imaginary(self):
        assert format_complex(ComplexNumber(-0.5, 0.25), 2) == "-0.50 + 0.25i"

    def test_negligible_imaginary_prints_real(self):
        assert format_complex(ComplexNumber(3, 1e-12)) == "3.0000"

    def test_str_uses_six_decimals(self):
        assert str(ComplexNumber(1, 1)) == "1.000000 + 1.000000i"
