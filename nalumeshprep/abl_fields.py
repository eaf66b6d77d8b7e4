"""Initial velocity and temperature fields for atmospheric boundary layer runs."""

from __future__ import annotations

import math
from typing import Any, Mapping

import numpy as np

from .mesh import Mesh
from .task import PreProcessingTask, TaskError, register_task


def linear_interp(xs, ys, x):
    """Interpolate ``ys`` tabulated at ``xs`` linearly at ``x``.

    Values outside the table are clamped to the first or last entry. ``x``
    may be a scalar, giving a float, or an array, giving an array.
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    if xs.ndim != 1 or xs.shape != ys.shape:
        raise ValueError("Interpolation tables must be 1-D and of equal length")
    if xs.size == 0:
        raise ValueError("Interpolation tables must not be empty")
    if np.any(np.diff(xs) < 0.0):
        raise ValueError("Interpolation abscissae must be in ascending order")
    result = np.interp(x, xs, ys)
    if np.ndim(result) == 0:
        return float(result)
    return result


@register_task("init_abl_fields")
class ABLFields(PreProcessingTask):
    """Initialize velocity and/or temperature by linear interpolation in height.

    Input sections ``velocity`` and ``temperature`` are both optional. Each
    holds ``heights`` and ``values`` and may hold ``perturbations``.
    """

    def __init__(self, mesh: Mesh, node: Mapping[str, Any], rng=None):
        super().__init__(mesh)
        if mesh.ndim != 3:
            raise TaskError("ABLFields: only available for 3-D meshes")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.ndim = mesh.ndim

        self.do_velocity = False
        self.do_temperature = False

        self.perturb_u = False
        self.delta_u = 1.0
        self.delta_v = 1.0
        self.u_periods = 4.0
        self.v_periods = 4.0
        self.z_ref_height = 50.0

        self.perturb_t = False
        self.theta_amplitude = 0.0
        self.theta_cutoff_height = 0.0
        self.theta_gauss_mean = 0.0
        self.theta_gauss_var = 1.0
        self.periodic_parts: list[str] = []

        fluid_names = list(node["fluid_parts"])

        if node.get("velocity"):
            self.do_velocity = True
            self._load_velocity_info(node["velocity"])

        if node.get("temperature"):
            self.do_temperature = True
            self._load_temperature_info(node["temperature"])

        for name in fluid_names:
            if not mesh.has_part(name):
                raise TaskError(f"Missing fluid part in mesh database: {name}")
        self.fluid_parts = fluid_names

    def _load_velocity_info(self, abl: Mapping[str, Any]) -> None:
        self.v_heights = [float(h) for h in abl["heights"]]
        inputs = [[float(v) for v in row] for row in abl["values"]]
        if len(self.v_heights) != len(inputs):
            raise TaskError(
                "ABLFields: Mismatch between sizes of heights and velocities "
                "provided for initializing ABL fields. Check input file."
            )
        if not inputs or any(len(row) != self.ndim for row in inputs):
            raise TaskError("ABLFields: Velocity components have all 3 components")
        # One row per component for interpolation of each component.
        self.velocity = np.array(inputs).T

        pnode = abl.get("perturbations")
        if pnode:
            self.perturb_u = True
            self.z_ref_height = float(pnode["reference_height"])
            amplitude = [float(v) for v in pnode["amplitude"]]
            if len(amplitude) != 2:
                raise TaskError(
                    "ABLFields: Invalid size for velocity perturbation amplitude array."
                )
            self.delta_u, self.delta_v = amplitude
            periods = [float(v) for v in pnode["periods"]]
            if len(periods) != 2:
                raise TaskError(
                    "ABLFields: Invalid size for velocity perturbation periods array."
                )
            self.u_periods, self.v_periods = periods

    def _load_temperature_info(self, abl: Mapping[str, Any]) -> None:
        self.t_heights = [float(h) for h in abl["heights"]]
        self.t_values = [float(v) for v in abl["values"]]

        pnode = abl.get("perturbations")
        if pnode:
            self.perturb_t = True
            self.theta_cutoff_height = float(pnode["cutoff_height"])
            self.theta_amplitude = float(pnode["amplitude"])
            skip = pnode.get("skip_periodic_parts")
            if skip is not None:
                self.periodic_parts = [skip] if isinstance(skip, str) else list(skip)
            self.theta_gauss_mean = float(
                pnode.get("random_gauss_mean", self.theta_gauss_mean))
            self.theta_gauss_var = float(
                pnode.get("random_gauss_var", self.theta_gauss_var))

        if len(self.t_heights) != len(self.t_values):
            raise TaskError(
                "ABLFields: Mismatch between sizes of heights and temperature values "
                "provided for initializing ABL fields. Check input file."
            )

    def initialize(self) -> None:
        """Declare velocity and temperature fields and register them for output."""
        if self.do_velocity:
            self.mesh.declare_field("velocity", self.ndim)
            self.mesh.add_output_field("velocity")
        if self.do_temperature:
            self.mesh.declare_field("temperature", 1)
            self.mesh.add_output_field("temperature")

    def run(self) -> None:
        """Fill the declared fields by interpolation and add perturbations."""
        print("Generating ABL fields")
        if self.do_velocity:
            self._init_velocity_field()
        if self.do_temperature:
            self._init_temperature_field()
        self.mesh.set_write_flag()

    def _fluid_points(self, names) -> tuple[list[int], np.ndarray]:
        ids = self.mesh.part_nodes(names)
        points = np.array([self.mesh.coordinates(nid) for nid in ids]).reshape(-1, self.ndim)
        return ids, points

    def _init_velocity_field(self) -> None:
        ids, points = self._fluid_points(self.fluid_parts)
        velocity = self.mesh.field("velocity")
        if not ids:
            return
        heights = points[:, 2]
        values = np.column_stack([
            linear_interp(self.v_heights, component, heights)
            for component in self.velocity
        ])
        for nid, vel in zip(ids, values):
            velocity[nid] = vel.copy()
        if self.perturb_u:
            self._perturb_velocity_field(ids, points)

    def _perturb_velocity_field(self, ids: list[int], points: np.ndarray) -> None:
        """Add streak-like perturbations to the horizontal velocity components."""
        bbox = self.mesh.bounding_box(self.fluid_parts)
        aval = self.u_periods * 2.0 * math.pi / (bbox.y_max - bbox.y_min)
        bval = self.v_periods * 2.0 * math.pi / (bbox.x_max - bbox.x_min)
        ufac = self.delta_u * math.exp(0.5) / self.z_ref_height
        vfac = self.delta_v * math.exp(0.5) / self.z_ref_height

        velocity = self.mesh.field("velocity")
        zh = points[:, 2]
        xl = points[:, 0] - bbox.x_min
        yl = points[:, 1] - bbox.y_min
        zl = zh / self.z_ref_height
        damp = np.exp(-0.5 * zl * zl)
        du = ufac * damp * zh * np.cos(aval * yl)
        dv = vfac * damp * zh * np.sin(bval * xl)
        for nid, u_inc, v_inc in zip(ids, du, dv):
            vel = velocity[nid]
            vel[0] += u_inc
            vel[1] += v_inc

    def _init_temperature_field(self) -> None:
        ids, points = self._fluid_points(self.fluid_parts)
        temperature = self.mesh.field("temperature")
        if ids:
            values = linear_interp(self.t_heights, self.t_values, points[:, 2])
            for nid, temp in zip(ids, values):
                temperature[nid] = np.array([temp])
        if self.perturb_t:
            self._perturb_temperature_field()

    def _perturb_temperature_field(self) -> None:
        """Add Gaussian noise to temperatures below the cutoff height."""
        skipped = [name for name in self.periodic_parts if self.mesh.has_part(name)]
        excluded = set(self.mesh.part_nodes(skipped)) if skipped else set()
        temperature = self.mesh.field("temperature")
        for nid in self.mesh.part_nodes(self.fluid_parts):
            if nid in excluded:
                continue
            if self.mesh.coordinates(nid)[2] < self.theta_cutoff_height:
                noise = self.rng.normal(self.theta_gauss_mean, self.theta_gauss_var)
                temperature[nid][0] += self.theta_amplitude * noise