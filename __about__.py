# -*- coding: utf-8 -*-
# Lamina: Characteristic-matrix optics of a single thin film
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for the opticsWolf Lamina.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Lamina"
__description__: Final[str] = (
    "Reflectance, transmittance and absorbance of a single absorbing thin "
    "film by the characteristic-matrix method, with a full calculation trace."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata for introspection."""
    return {
        "title": __title__,
        "version": __version__,
        "license": __license__,
        "description": __description__,
        "copyright": __copyright__,
    }
