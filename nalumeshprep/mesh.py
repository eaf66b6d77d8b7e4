"""In-memory unstructured mesh with named parts and per-entity fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np
import yaml


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box given by its lower and upper corners."""

    lower: tuple[float, ...]
    upper: tuple[float, ...]

    @property
    def x_min(self) -> float:
        return self.lower[0]

    @property
    def x_max(self) -> float:
        return self.upper[0]

    @property
    def y_min(self) -> float:
        return self.lower[1]

    @property
    def y_max(self) -> float:
        return self.upper[1]

    @property
    def z_min(self) -> float:
        return self.lower[2]

    @property
    def z_max(self) -> float:
        return self.upper[2]


@dataclass
class _Part:
    nodes: set[int] = field(default_factory=set)
    elements: dict[int, tuple[int, ...]] = field(default_factory=dict)
    faces: list[tuple[int, ...]] = field(default_factory=list)


class Mesh:
    """Nodes with coordinates, named parts and fields keyed by entity id.

    Field values are numpy arrays holding ``ncomp`` components each.
    """

    def __init__(self, ndim: int = 3):
        if ndim not in (2, 3):
            raise ValueError(f"Unsupported spatial dimension: {ndim}")
        self.ndim = ndim
        self.nodes: dict[int, np.ndarray] = {}
        self.parts: dict[str, _Part] = {}
        self._fields: dict[str, tuple[int, dict[int, np.ndarray]]] = {}
        self.output_fields: list[str] = []
        self.modified = False

    def _as_coords(self, coords: Iterable[float]) -> np.ndarray:
        arr = np.asarray(coords, dtype=float)
        if arr.shape != (self.ndim,):
            raise ValueError(
                f"Expected {self.ndim} coordinates, got shape {arr.shape}"
            )
        return arr

    def add_node(self, node_id: int, coords: Iterable[float]) -> None:
        """Add a node with the given coordinates."""
        node_id = int(node_id)
        if node_id in self.nodes:
            raise ValueError(f"Duplicate node id: {node_id}")
        self.nodes[node_id] = self._as_coords(coords).copy()

    def add_part(
        self,
        name: str,
        nodes: Iterable[int] = (),
        elements: Mapping[int, Sequence[int]] | None = None,
        faces: Iterable[Sequence[int]] = (),
    ) -> None:
        """Add a named part; nodes of its elements and faces belong to it too."""
        if name in self.parts:
            raise ValueError(f"Duplicate part name: {name}")
        elems = {int(eid): tuple(int(n) for n in conn)
                 for eid, conn in (elements or {}).items()}
        face_list = [tuple(int(n) for n in conn) for conn in faces]
        members = {int(n) for n in nodes}
        for conn in (*elems.values(), *face_list):
            members.update(conn)
        missing = sorted(members - self.nodes.keys())
        if missing:
            raise ValueError(f"Part {name} references unknown nodes: {missing}")
        self.parts[name] = _Part(members, elems, face_list)

    def has_part(self, name: str) -> bool:
        return name in self.parts

    def part_nodes(self, names: str | Iterable[str] | None = None) -> list[int]:
        """Sorted ids of the nodes in the union of parts; all nodes for None."""
        if names is None:
            return sorted(self.nodes)
        if isinstance(names, str):
            names = [names]
        selected: set[int] = set()
        for name in names:
            try:
                selected |= self.parts[name].nodes
            except KeyError:
                raise KeyError(f"Part not found in mesh: {name}") from None
        return sorted(selected)

    def coordinates(self, node_id: int) -> np.ndarray:
        """A copy of a node's coordinates."""
        return self.nodes[int(node_id)].copy()

    def set_coordinates(self, node_id: int, coords: Iterable[float]) -> None:
        node_id = int(node_id)
        if node_id not in self.nodes:
            raise KeyError(f"Unknown node id: {node_id}")
        self.nodes[node_id] = self._as_coords(coords).copy()

    def bounding_box(self, names: str | Iterable[str] | None = None) -> BoundingBox:
        """Bounding box of the nodes in the given parts."""
        ids = self.part_nodes(names)
        if not ids:
            raise ValueError("Cannot compute bounding box of an empty selection")
        pts = np.array([self.nodes[n] for n in ids])
        return BoundingBox(
            tuple(float(v) for v in pts.min(axis=0)),
            tuple(float(v) for v in pts.max(axis=0)),
        )

    def declare_field(self, name: str, ncomp: int = 1) -> dict[int, np.ndarray]:
        """Declare a field, or return the existing one with the same size."""
        ncomp = int(ncomp)
        if ncomp < 1:
            raise ValueError(f"Field {name} needs at least one component")
        if name in self._fields:
            existing, values = self._fields[name]
            if existing != ncomp:
                raise ValueError(
                    f"Field {name} already declared with {existing} components"
                )
            return values
        values: dict[int, np.ndarray] = {}
        self._fields[name] = (ncomp, values)
        return values

    def field(self, name: str) -> dict[int, np.ndarray]:
        try:
            return self._fields[name][1]
        except KeyError:
            raise KeyError(f"Field not declared: {name}") from None

    def add_output_field(self, name: str) -> None:
        """Register a declared field to be written with the mesh."""
        if name not in self._fields:
            raise KeyError(f"Field not declared: {name}")
        if name not in self.output_fields:
            self.output_fields.append(name)

    def set_write_flag(self) -> None:
        """Mark the mesh as modified so that it gets written out."""
        self.modified = True

    def save(self, path: str | Path) -> None:
        """Write nodes, parts and output fields as a YAML document."""
        doc = {
            "ndim": self.ndim,
            "nodes": {nid: [float(v) for v in xyz]
                      for nid, xyz in sorted(self.nodes.items())},
            "parts": {
                name: {
                    "nodes": sorted(part.nodes),
                    "elements": {eid: list(conn)
                                 for eid, conn in sorted(part.elements.items())},
                    "faces": [list(conn) for conn in part.faces],
                }
                for name, part in self.parts.items()
            },
            "fields": {
                name: {
                    "components": self._fields[name][0],
                    "values": {
                        eid: [float(v) for v in np.atleast_1d(val)]
                        for eid, val in sorted(self._fields[name][1].items())
                    },
                }
                for name in self.output_fields
            },
        }
        with open(path, "w", encoding="utf-8") as out:
            yaml.safe_dump(doc, out, sort_keys=False)


def load_mesh(path: str | Path) -> Mesh:
    """Read a mesh written by :meth:`Mesh.save`."""
    with open(path, encoding="utf-8") as inp:
        data = yaml.safe_load(inp)
    if not isinstance(data, dict) or "ndim" not in data:
        raise ValueError(f"Not a mesh file: {path}")
    mesh = Mesh(int(data["ndim"]))
    for nid, xyz in (data.get("nodes") or {}).items():
        mesh.add_node(int(nid), xyz)
    for name, spec in (data.get("parts") or {}).items():
        spec = spec or {}
        mesh.add_part(
            name,
            nodes=spec.get("nodes") or (),
            elements=spec.get("elements") or {},
            faces=spec.get("faces") or (),
        )
    for name, spec in (data.get("fields") or {}).items():
        values = mesh.declare_field(name, int(spec["components"]))
        for eid, val in (spec.get("values") or {}).items():
            values[int(eid)] = np.asarray(val, dtype=float)
        mesh.add_output_field(name)
    return mesh