"""Loader for C3B/C3T 3D scene asset bundles."""

__version__ = "0.3.0"
