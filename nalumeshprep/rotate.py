"""Rotation of mesh parts about an arbitrary axis."""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


def rotate_point(point, origin, axis, angle: float) -> np.ndarray:
    """Rotate 3-D point(s) by ``angle`` radians about ``axis`` through ``origin``.

    ``point`` may be a single point or an array of points, one per row.
    """
    axis = np.asarray(axis, dtype=float)
    mag = float(np.linalg.norm(axis))
    if mag == 0.0:
        raise ValueError("Rotation axis must be non-zero")
    q0 = math.cos(0.5 * angle)
    q1, q2, q3 = math.sin(0.5 * angle) * axis / mag
    matrix = np.array([
        [q0*q0 + q1*q1 - q2*q2 - q3*q3, 2.0 * (q1*q2 - q0*q3), 2.0 * (q0*q2 + q1*q3)],
        [2.0 * (q1*q2 + q0*q3), q0*q0 - q1*q1 + q2*q2 - q3*q3, 2.0 * (q2*q3 - q0*q1)],
        [2.0 * (q1*q3 - q0*q2), 2.0 * (q0*q1 + q2*q3), q0*q0 - q1*q1 - q2*q2 + q3*q3],
    ])
    origin = np.asarray(origin, dtype=float)
    return (np.asarray(point, dtype=float) - origin) @ matrix.T + origin


@register_task("rotate_mesh")
class RotateMesh(PreProcessingTask):
    """Rotate the nodes of the given parts.

    Input: ``mesh_parts`` (name or list), ``angle`` in degrees,
    ``origin`` and ``axis`` as 3-vectors.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        parts = node["mesh_parts"]
        self.part_names = [parts] if isinstance(parts, str) else list(parts)
        self.angle = math.radians(float(node["angle"]))
        self.axis = [float(v) for v in node["axis"]]
        self.origin = [float(v) for v in node["origin"]]
        if len(self.axis) != 3:
            raise TaskError("RotateMesh: axis must have 3 components")
        if len(self.origin) != 3:
            raise TaskError("RotateMesh: origin must have 3 components")

    def initialize(self) -> None:
        for name in self.part_names:
            if not self.mesh.has_part(name):
                raise TaskError("RotateMesh: Mesh realm not found in mesh database.")

    def run(self) -> None:
        print("Rotating mesh")
        ndim = self.mesh.ndim
        ids = self.mesh.part_nodes(self.part_names)
        if ids:
            points = np.zeros((len(ids), 3))
            points[:, :ndim] = [self.mesh.coordinates(nid) for nid in ids]
            rotated = rotate_point(points, self.origin, self.axis, self.angle)
            for nid, xyz in zip(ids, rotated):
                self.mesh.set_coordinates(nid, xyz[:ndim])
        self.mesh.set_write_flag()