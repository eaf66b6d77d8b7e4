"""Velocity field initialized from a homogeneous isotropic turbulence file."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import numpy as np

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


def hit_index(node_id: int, dims: Sequence[int]) -> int:
    """Record index in the turbulence file for a mesh node id.

    The mesh has one more node than the file in each direction; nodes on the
    upper faces wrap around periodically. Node ids start at 1.
    """
    if len(dims) != 3:
        raise ValueError("HIT dimensions need 3 entries")
    nx, ny, nz = (int(d) for d in dims)
    if nx <= 0 or ny <= 0 or nz <= 0:
        raise ValueError("HIT dimensions must be positive")
    if node_id < 1:
        raise ValueError(f"Node ids start at 1, got {node_id}")
    nxny = (nx + 1) * (ny + 1)
    nx1 = nx + 1
    nid0 = node_id - 1
    iz = (nid0 // nxny) % nz
    nid0 %= nxny
    iy = (nid0 // nx1) % ny
    ix = nid0 % nx1 % nx
    return iz * (nx * ny) + iy * nx + ix


@register_task("init_hit_fields")
class HITFields(PreProcessingTask):
    """Set velocity to a mean velocity plus fluctuations read from a binary file.

    The file holds ``nx * ny * nz`` records of six native doubles
    ``(x, y, z, u, v, w)``.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        mean = [float(v) for v in node["mean_velocity"]]
        if len(mean) != 3:
            raise TaskError("Invalid mean velocity field provided")
        self.mean_vel = np.array(mean)

        self.fluid_parts = list(node["fluid_parts"])
        for name in self.fluid_parts:
            if not mesh.has_part(name):
                raise TaskError(f"Missing fluid part in mesh database: {name}")

        self.hit_filename = str(node["hit_file"])
        self.hit_mesh_dims = [int(d) for d in node["hit_dims"]]
        if len(self.hit_mesh_dims) != 3 or min(self.hit_mesh_dims) <= 0:
            raise TaskError("HITFields:: hit_dims needs 3 positive entries")

    def initialize(self) -> None:
        """Declare the velocity field and register it for output."""
        self.mesh.declare_field("velocity", self.mesh.ndim)
        self.mesh.add_output_field("velocity")

    def _read_buffer(self) -> np.ndarray:
        nx, ny, nz = self.hit_mesh_dims
        count = nx * ny * nz * 6
        try:
            data = np.fromfile(self.hit_filename, dtype=np.float64, count=count)
        except OSError:
            raise TaskError(f"HITFields:: Error opening file: {self.hit_filename}") from None
        if data.size < count:
            raise TaskError(
                f"HITFields:: {self.hit_filename} holds fewer than {count} values"
            )
        return data

    def run(self) -> None:
        """Fill the velocity of every fluid node from the file."""
        ndim = self.mesh.ndim
        buffer = self._read_buffer()
        velocity = self.mesh.field("velocity")

        min_vel = np.full(ndim, 1.0e10)
        max_vel = np.full(ndim, -1.0e10)
        for nid in self.mesh.part_nodes(self.fluid_parts):
            # Skip the (x, y, z) entries of the record.
            idx = hit_index(nid, self.hit_mesh_dims) * 6 + 3
            vel = self.mean_vel[:ndim] + buffer[idx:idx + ndim]
            velocity[nid] = vel
            np.minimum(min_vel, vel, out=min_vel)
            np.maximum(max_vel, vel, out=max_vel)
        for d in range(ndim):
            print(f"    Vel[{d}]: min = {min_vel[d]}; max = {max_vel[d]}")