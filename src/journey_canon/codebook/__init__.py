"""Codebook enumerations for journey survey data.

Available modules:
- modes: transport mode labels, colors and coarse categories
- purposes: journey purpose labels and colors
- satisfaction: route satisfaction labels and scores
- demographics: age bins and keyword vocabularies for profile fields
"""

from . import demographics, modes, purposes, satisfaction

__all__ = ["demographics", "modes", "purposes", "satisfaction"]
