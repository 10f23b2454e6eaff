import pytest

from lamina_engine import ThinFilmCalculator
from lamina_trace import CalculationLogger


@pytest.fixture
def trace():
    return CalculationLogger()


@pytest.fixture
def calculator(trace):
    """Calculator that records into the ``trace`` fixture."""
    return ThinFilmCalculator(trace)


@pytest.fixture
def headless():
    return ThinFilmCalculator()
