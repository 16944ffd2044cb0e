"""Voxel world model, terrain generation, chunk meshing, world saves and UDP game server."""

__version__ = "0.1.0"