"""Shared film-system constants for the test modules."""

AIR = 1.0
GLASS = 1.52
ABSORBING_FILM = complex(2.385, -0.1)
WAVELENGTH = 550.0
