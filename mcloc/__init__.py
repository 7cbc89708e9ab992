"""
Monte Carlo localization of a planar robot from range measurements to known landmarks.
"""

__version__ = "0.1.0"
