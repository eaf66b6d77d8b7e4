"""Nearest distance to wall by brute-force search."""

from __future__ import annotations

import sys
from typing import Any, Mapping

import numpy as np

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task

_CHUNK = 1024


def nearest_wall_distance(points, wall_points) -> np.ndarray:
    """Distance from each point to the closest wall point.

    With no wall points every distance is the square root of the largest float.
    """
    pts = np.asarray(points, dtype=float)
    wall = np.asarray(wall_points, dtype=float)
    if pts.ndim == 1:
        pts = pts.reshape(1, -1) if pts.size else pts.reshape(0, 0)
    if pts.shape[0] == 0:
        return np.zeros(0)
    if wall.size == 0:
        return np.full(pts.shape[0], np.sqrt(sys.float_info.max))
    wall = wall.reshape(-1, pts.shape[1])
    result = np.empty(pts.shape[0])
    for start in range(0, pts.shape[0], _CHUNK):
        block = pts[start:start + _CHUNK]
        diff = block[:, None, :] - wall[None, :, :]
        result[start:start + _CHUNK] = np.sqrt((diff * diff).sum(axis=2).min(axis=1))
    return result


@register_task("calc_ndtw2d_deprecated")
class NDTW2D(PreProcessingTask):
    """Compute the nearest wall distance for each fluid node.

    Intended for 2-D airfoil-like meshes; the search is brute force.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        print("!!!WARNING!!! NDTW2D is a deprecated utility.", file=sys.stderr)
        fluid_names = list(node["fluid_parts"])
        wall_names = list(node["wall_parts"])
        self.wall_dist_name = str(node.get("wall_dist_name", "NDTW"))
        for name in fluid_names:
            if not mesh.has_part(name):
                raise TaskError(f"Missing fluid part in mesh database: {name}")
        for name in wall_names:
            if not mesh.has_part(name):
                raise TaskError(f"Missing wall part in mesh database: {name}")
        self.fluid_parts = fluid_names
        self.wall_parts = wall_names

    def initialize(self) -> None:
        """Declare the wall distance field."""
        self.mesh.declare_field(self.wall_dist_name, 1)

    def run(self) -> None:
        """Compute wall distances and register the field for output."""
        self._calc_ndtw()
        self.mesh.add_output_field(self.wall_dist_name)
        self.mesh.set_write_flag()

    def _calc_ndtw(self) -> None:
        print("Calculating nearest wall distance... ")
        fluid_ids = self.mesh.part_nodes(self.fluid_parts)
        wall_ids = self.mesh.part_nodes(self.wall_parts)
        ndim = self.mesh.ndim
        points = np.array([self.mesh.coordinates(n) for n in fluid_ids]).reshape(-1, ndim)
        wall = np.array([self.mesh.coordinates(n) for n in wall_ids]).reshape(-1, ndim)
        distances = nearest_wall_distance(points, wall)
        field = self.mesh.field(self.wall_dist_name)
        for nid, dist in zip(fluid_ids, distances):
            field[nid] = np.array([dist])