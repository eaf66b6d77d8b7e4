"""Horizontal sampling planes generated as new node sets in the mesh."""

from __future__ import annotations

import enum
from typing import Any, Mapping

import numpy as np

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


class PlaneBoundaryType(enum.IntEnum):
    """How the horizontal extent of a sampling plane is determined."""

    BOUND_BOX = 0
    QUAD_VERTICES = 1


_BOUNDARY_NAMES = {
    "bounding_box": PlaneBoundaryType.BOUND_BOX,
    "quad_vertices": PlaneBoundaryType.QUAD_VERTICES,
}


def partition_points(total: int, nproc: int, iproc: int) -> tuple[int, int]:
    """Number of points owned by process ``iproc`` of ``nproc`` and its offset."""
    if nproc < 1 or not 0 <= iproc < nproc:
        raise ValueError(f"Invalid process rank {iproc} of {nproc}")
    if total < nproc and iproc < total:
        return 1, 0
    count, rem = divmod(total, nproc)
    offset = iproc * count
    if iproc < rem:
        count += 1
    offset += min(iproc, rem)
    return count, offset


@register_task("generate_planes_deprecated")
class SamplingPlanes(PreProcessingTask):
    """Create planes of nodes at given heights for data sampling.

    The plane outline is either the x-y bounding box of the fluid parts,
    divided with spacings ``dx`` and ``dy``, or a user-given quadrilateral
    divided into ``nx`` by ``ny`` cells.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        if mesh.ndim != 3:
            raise TaskError("SamplingPlanes only available for 3-D meshes")

        parts = node["fluid_part"]
        self.fluid_part_names = [parts] if isinstance(parts, str) else list(parts)

        bdy_name = node.get("boundary_type")
        if bdy_name is None:
            self.boundary_type = PlaneBoundaryType.BOUND_BOX
        else:
            try:
                self.boundary_type = _BOUNDARY_NAMES[str(bdy_name)]
            except KeyError:
                raise TaskError(
                    f"Bad option specified for boundary type: {bdy_name}"
                ) from None

        self.heights = [float(h) for h in node["heights"]]
        self.name_format = str(node["part_name_format"])

        self.vertices = np.zeros((4, 2))
        self.dx = 0.0
        self.dy = 0.0
        self.mx = 0
        self.my = 0
        if self.boundary_type is PlaneBoundaryType.BOUND_BOX:
            self.dx = float(node["dx"])
            self.dy = float(node["dy"])
        else:
            self.mx = int(node["nx"])
            self.my = int(node["ny"])
            vertices = [[float(v) for v in row] for row in node["vertices"]]
            if len(vertices) != 4:
                raise TaskError("Incorrect number of vertices provided. Expected 4.")
            if any(not 2 <= len(row) <= 3 for row in vertices):
                raise TaskError("Inconsistent vertices provided. Check input file.")
            self.vertices = np.array([row[:2] for row in vertices])
        self.nx = self.mx + 1
        self.ny = self.my + 1
        self.fluid_parts: list[str] = []
        self.bounding_box = None

    def part_name(self, height: float) -> str:
        """Name of the part holding the plane at ``height``."""
        return f"{self.name_format}{height:f}"

    def initialize(self) -> None:
        """Check the fluid parts and declare one empty part per plane."""
        for name in self.fluid_part_names:
            if not self.mesh.has_part(name):
                raise TaskError("SamplingPlanes: Fluid realm not found in mesh database.")
        self.fluid_parts = list(self.fluid_part_names)

        print("SamplingPlanes: Registering parts to meta data:")
        for height in self.heights:
            name = self.part_name(height)
            if self.mesh.has_part(name):
                raise TaskError(
                    f"SamplingPlanes: Cannot overwrite existing part in database: {name}"
                )
            self.mesh.add_part(name)
            print(f"\t {name}")

    def run(self) -> None:
        """Generate the nodes of every plane."""
        self._calc_bounding_box()
        for height in self.heights:
            self._generate_zplane(height)
        self.mesh.set_write_flag()

    def _calc_bounding_box(self) -> None:
        bbox = self.mesh.bounding_box(self.fluid_parts)
        self.bounding_box = bbox
        print("Mesh bounding box: ")
        print("".join(f"\t{v}" for v in bbox.lower))
        print("".join(f"\t{v}" for v in bbox.upper))

        if self.boundary_type is PlaneBoundaryType.BOUND_BOX:
            self.mx = int((bbox.x_max - bbox.x_min) / self.dx)
            self.my = int((bbox.y_max - bbox.y_min) / self.dy)
            self.nx = self.mx + 1
            self.ny = self.my + 1
            self.vertices = np.array([
                [bbox.x_min, bbox.y_min],
                [bbox.x_max, bbox.y_min],
                [bbox.x_max, bbox.y_max],
                [bbox.x_min, bbox.y_max],
            ])

        if self.mx <= 0 or self.my <= 0:
            raise TaskError("SamplingPlanes: plane needs at least one cell in x and y")
        # From here on dx and dy are spacings in the unit square.
        self.dx = 1.0 / self.mx
        self.dy = 1.0 / self.my
        print(
            f"Number of nodes per plane: {self.nx * self.ny} "
            f"[ {self.nx} x {self.ny} ]"
        )

    def _generate_zplane(self, height: float) -> None:
        part = self.mesh.parts[self.part_name(height)]
        count, offset = partition_points(self.nx * self.ny, 1, 0)
        next_id = max(self.mesh.nodes, default=0) + 1
        v = self.vertices
        for k in range(count):
            j, i = divmod(offset + k, self.nx)
            rx = i * self.dx
            ry = j * self.dy
            weights = np.array([
                (1.0 - rx) * (1.0 - ry),
                rx * (1.0 - ry),
                rx * ry,
                (1.0 - rx) * ry,
            ])
            x, y = weights @ v
            node_id = next_id + k
            self.mesh.add_node(node_id, (x, y, height))
            part.nodes.add(node_id)