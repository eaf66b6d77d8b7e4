"""Extraction of boundary planes into a separate I/O transfer mesh."""

from __future__ import annotations

from typing import Any, Mapping

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


@register_task("create_bdy_io_mesh")
class BdyIOPlanes(PreProcessingTask):
    """Copy boundary parts of a 3-D mesh into a new mesh and write it out.

    Every boundary gets fresh node ids, so nodes shared by two boundaries are
    duplicated. The quadrilateral faces of a boundary become the shell
    elements of the matching part in the new mesh.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        if mesh.ndim != 3:
            raise TaskError(
                "Boundary IO plane generation only available for 3-D meshes"
            )
        if "output_db" not in node:
            raise TaskError("create_bdy_io_mesh: missing mandatory output_db")
        self.output_db = str(node["output_db"])
        if "boundary_parts" not in node:
            raise TaskError("create_bdy_io_mesh: missing mandatory boundary_parts")
        names = node["boundary_parts"]
        self.boundary_names = [names] if isinstance(names, str) else [str(n) for n in names]
        self.iomesh = Mesh(3)
        self._next_element_id = 1

    def initialize(self) -> None:
        """Check that every requested boundary exists in the mesh."""
        for name in self.boundary_names:
            if not self.mesh.has_part(name):
                raise TaskError(
                    f"create_bdy_io_mesh: Invalid boundary part specified = {name}"
                )

    def _create_boundary(self, name: str) -> None:
        print(f"\t- {name}... ", end="")
        part = self.mesh.parts[name]
        first_id = max(self.iomesh.nodes, default=0) + 1
        node_map: dict[int, int] = {}
        for new_id, source_id in enumerate(self.mesh.part_nodes(name), start=first_id):
            self.iomesh.add_node(new_id, self.mesh.coordinates(source_id))
            node_map[source_id] = new_id

        elements: dict[int, tuple[int, ...]] = {}
        for face in part.faces:
            if len(face) != 4:
                raise TaskError(
                    f"create_bdy_io_mesh: boundary {name} has a face with "
                    f"{len(face)} nodes; only quadrilateral faces are supported"
                )
            elements[self._next_element_id] = tuple(node_map[n] for n in face)
            self._next_element_id += 1

        self.iomesh.add_part(name, nodes=node_map.values(), elements=elements)
        print("done")

    def run(self) -> None:
        """Copy the boundaries and write the I/O mesh."""
        print("Extracting boundary planes: ")
        for name in self.boundary_names:
            self._create_boundary(name)
        print(f"Writing IO mesh: {self.output_db}")
        self.iomesh.save(self.output_db)