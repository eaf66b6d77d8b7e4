"""Time history of a uniform inflow velocity written on mesh parts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import numpy as np
import yaml

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


def read_inflow(path: str | Path, num_steps: int) -> list[tuple[float, tuple[float, float, float]]]:
    """Read ``num_steps`` records of ``time u v w`` from a whitespace-separated file."""
    try:
        with open(path, encoding="utf-8") as inp:
            tokens = inp.read().split()
    except OSError:
        raise TaskError(f"InflowHistory:: Error opening file: {path}") from None
    needed = 4 * num_steps
    if len(tokens) < needed:
        raise TaskError(
            f"InflowHistory:: {path} holds fewer than {num_steps} timesteps"
        )
    try:
        values = [float(tok) for tok in tokens[:needed]]
    except ValueError as err:
        raise TaskError(f"InflowHistory:: Invalid data in {path}: {err}") from None
    return [
        (values[i], (values[i + 1], values[i + 2], values[i + 3]))
        for i in range(0, needed, 4)
    ]


@register_task("time_varying_inflow")
class InflowHistory(PreProcessingTask):
    """Write a velocity time history from an inflow file onto the fluid parts."""

    def __init__(self, mesh: Mesh, node: Mapping[str, Any]):
        super().__init__(mesh)
        self.part_names = list(node["fluid_parts"])
        for name in self.part_names:
            if not mesh.has_part(name):
                raise TaskError(f"Missing fluid part in mesh database: {name}")
        self.inflow_filename = str(node["inflow_file"])
        self.output_db = str(node["time_history_db"])
        self.num_steps = int(node["num_timesteps"])
        if self.num_steps < 0:
            raise TaskError("InflowHistory:: num_timesteps must not be negative")

    def initialize(self) -> None:
        self.mesh.declare_field("velocity", self.mesh.ndim)

    def run(self) -> None:
        ndim = self.mesh.ndim
        ids = self.mesh.part_nodes(self.part_names)
        records = read_inflow(self.inflow_filename, self.num_steps)
        velocity = self.mesh.field("velocity")

        print(f"Writing time-history file = {self.output_db}")
        steps = []
        for time, vel in records:
            value = np.asarray(vel[:ndim], dtype=float)
            for nid in ids:
                velocity[nid] = value.copy()
            steps.append({
                "time": time,
                "fields": {"velocity": {nid: [float(v) for v in value] for nid in ids}},
            })

        doc = {
            "ndim": ndim,
            "nodes": {nid: [float(v) for v in self.mesh.coordinates(nid)] for nid in ids},
            "timesteps": steps,
        }
        with open(self.output_db, "w", encoding="utf-8") as out:
            yaml.safe_dump(doc, out, sort_keys=False)
        print(f"{self.num_steps} timesteps written successfully")