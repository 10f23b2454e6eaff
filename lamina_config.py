# -*- coding: utf-8 -*-
"""
Lamina: Characteristic-matrix optics of a single thin film
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: lamina_config.py — Engine tolerances and behaviour switches.

Hybrid parameter API: a config can be built from a dict (config files),
from keyword arguments (interactive use), or both, with keywords winning.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

__all__ = ["EngineConfig", "DEFAULT_CONFIG"]


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """
    Attributes
    ----------
    normal_incidence_tol : float
        |angle| (rad) below which the film is treated as normally illuminated.
    conservation_tol : float
        |R + T + A − 1| below which energy is reported as conserved.
    validation_tol_pct : float
        Allowed error per quantity, in percentage points, for the
        validation suite.
    warn_on_nonconservation : bool
        Emit EnergyConservationWarning when the conservation flag is false.
    """
    normal_incidence_tol: float = 1e-10
    conservation_tol: float = 1e-6
    validation_tol_pct: float = 0.01
    warn_on_nonconservation: bool = False

    def __post_init__(self) -> None:
        for name in ("normal_incidence_tol", "conservation_tol", "validation_tol_pct"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise TypeError(f"{name} must be numeric, got {type(value).__name__}")
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")

    @classmethod
    def from_params(
        cls, params: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> "EngineConfig":
        """
        Examples:
            # Dict-based
            EngineConfig.from_params({'conservation_tol': 1e-8})

            # Hybrid (kwargs override params)
            EngineConfig.from_params({'conservation_tol': 1e-8},
                                     warn_on_nonconservation=True)
        """
        merged = {**(params or {}), **kwargs}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ValueError(f"Unknown EngineConfig parameter(s): {', '.join(unknown)}")
        return cls(**merged)

    def to_params(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = EngineConfig()
