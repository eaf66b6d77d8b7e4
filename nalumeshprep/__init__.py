"""Mesh model and preprocessing tasks for wind-energy CFD meshes."""

__version__ = "0.1.0"