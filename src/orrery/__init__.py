"""Animated 3-D model of the Solar System."""

__version__ = "1.0.0"
