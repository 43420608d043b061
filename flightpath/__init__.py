"""
Balloon trajectory prediction core
Weather-fused, terrain-aware flight path prediction library
"""

__version__ = "0.1.0"
