import numpy as np
import pytest

from nalumeshprep.abl_fields import ABLFields, linear_interp
from nalumeshprep.mesh import Mesh
from nalumeshprep.task import TaskError, create_task

HEIGHTS = [0.0, 50.0, 100.0]
VELOCITIES = [[0.0, 0.0, 0.0], [5.0, -5.0, 0.0], [10.0, -10.0, 0.0]]
TEMPS = [280.0, 285.0, 300.0]


def make_mesh():
    mesh = Mesh(3)
    nid = 1
    ids = []
    for z in HEIGHTS:
        for y in (0.0, 100.0):
            for x in (0.0, 100.0):
                mesh.add_node(nid, [x, y, z])
                ids.append(nid)
                nid += 1
    mesh.add_part("fluid", nodes=ids)
    mesh.add_part("periodic", nodes=[1, 2])
    return mesh


def node_at(mesh, xyz):
    for nid in mesh.part_nodes():
        if np.allclose(mesh.coordinates(nid), xyz):
            return nid
    raise AssertionError(f"no node at {xyz}")


def run_task(mesh, node, rng=None):
    task = ABLFields(mesh, node, rng)
    task.initialize()
    task.run()
    return task


def test_linear_interp_at_table_points():
    xs = [0.0, 10.0, 30.0]
    ys = [1.0, 4.0, -2.0]
    for x, y in zip(xs, ys):
        assert linear_interp(xs, ys, x) == pytest.approx(y)


def test_linear_interp_midpoint_and_clamping():
    xs = [0.0, 10.0]
    ys = [0.0, 20.0]
    assert linear_interp(xs, ys, 5.0) == pytest.approx(10.0)
    assert linear_interp(xs, ys, -5.0) == pytest.approx(ys[0])
    assert linear_interp(xs, ys, 50.0) == pytest.approx(ys[-1])


def test_linear_interp_rejects_bad_tables():
    with pytest.raises(ValueError):
        linear_interp([0.0, 1.0], [1.0], 0.5)
    with pytest.raises(ValueError):
        linear_interp([], [], 0.5)


def test_velocity_and_temperature_interpolated():
    mesh = make_mesh()
    node = {
        "fluid_parts": ["fluid"],
        "velocity": {"heights": HEIGHTS, "values": VELOCITIES},
        "temperature": {"heights": HEIGHTS, "values": TEMPS},
    }
    run_task(mesh, node)
    vel = mesh.field("velocity")
    temp = mesh.field("temperature")
    for nid in mesh.part_nodes("fluid"):
        z = mesh.coordinates(nid)[2]
        k = HEIGHTS.index(z)
        assert vel[nid] == pytest.approx(VELOCITIES[k])
        assert temp[nid][0] == pytest.approx(TEMPS[k])
    assert mesh.modified
    assert set(mesh.output_fields) == {"velocity", "temperature"}


def test_velocity_perturbation_invariants():
    mesh = make_mesh()
    amplitude = [2.0, 3.0]
    node = {
        "fluid_parts": ["fluid"],
        "velocity": {
            "heights": HEIGHTS,
            "values": VELOCITIES,
            "perturbations": {
                "reference_height": 50.0,
                "amplitude": amplitude,
                "periods": [4.0, 4.0],
            },
        },
    }
    run_task(mesh, node)
    vel = mesh.field("velocity")
    # At the reference height and y = ymin the u increment equals the amplitude.
    nid = node_at(mesh, [0.0, 0.0, 50.0])
    assert vel[nid][0] - VELOCITIES[1][0] == pytest.approx(amplitude[0])
    # At x = xmin the v perturbation vanishes.
    assert vel[nid][1] == pytest.approx(VELOCITIES[1][1])
    # No perturbation at the ground, and none for w anywhere.
    for nid in mesh.part_nodes("fluid"):
        z = mesh.coordinates(nid)[2]
        k = HEIGHTS.index(z)
        assert vel[nid][2] == pytest.approx(VELOCITIES[k][2])
        if z == 0.0:
            assert vel[nid] == pytest.approx(VELOCITIES[0])


def test_temperature_perturbation_deterministic_with_zero_variance():
    mesh = make_mesh()
    node = {
        "fluid_parts": ["fluid"],
        "temperature": {
            "heights": HEIGHTS,
            "values": TEMPS,
            "perturbations": {
                "cutoff_height": 60.0,
                "amplitude": 2.0,
                "random_gauss_mean": 1.0,
                "random_gauss_var": 0.0,
                "skip_periodic_parts": ["periodic", "not_a_part"],
            },
        },
    }
    run_task(mesh, node, np.random.default_rng(0))
    temp = mesh.field("temperature")
    periodic = set(mesh.part_nodes("periodic"))
    for nid in mesh.part_nodes("fluid"):
        z = mesh.coordinates(nid)[2]
        base = TEMPS[HEIGHTS.index(z)]
        if nid in periodic or z >= 60.0:
            assert temp[nid][0] == pytest.approx(base)
        else:
            assert temp[nid][0] == pytest.approx(base + 2.0 * 1.0)


def test_temperature_perturbation_reproducible_with_seed():
    node = {
        "fluid_parts": ["fluid"],
        "temperature": {
            "heights": HEIGHTS,
            "values": TEMPS,
            "perturbations": {"cutoff_height": 60.0, "amplitude": 0.8},
        },
    }
    results = []
    for _ in range(2):
        mesh = make_mesh()
        run_task(mesh, node, np.random.default_rng(42))
        temp = mesh.field("temperature")
        results.append([temp[n][0] for n in mesh.part_nodes("fluid")])
    assert results[0] == results[1]
    mesh = make_mesh()
    run_task(mesh, node, np.random.default_rng(42))
    temp = mesh.field("temperature")
    top = node_at(mesh, [0.0, 0.0, 100.0])
    assert temp[top][0] == pytest.approx(TEMPS[2])


def test_missing_fluid_part():
    with pytest.raises(TaskError, match="Missing fluid part"):
        ABLFields(make_mesh(), {"fluid_parts": ["nope"]})


def test_mismatched_velocity_sizes():
    node = {"fluid_parts": ["fluid"],
            "velocity": {"heights": [0.0, 10.0], "values": [[1.0, 2.0, 3.0]]}}
    with pytest.raises(TaskError, match="Mismatch"):
        ABLFields(make_mesh(), node)


def test_wrong_velocity_components():
    node = {"fluid_parts": ["fluid"],
            "velocity": {"heights": [0.0], "values": [[1.0, 2.0]]}}
    with pytest.raises(TaskError):
        ABLFields(make_mesh(), node)


def test_mismatched_temperature_sizes():
    node = {"fluid_parts": ["fluid"],
            "temperature": {"heights": [0.0, 10.0], "values": [280.0]}}
    with pytest.raises(TaskError, match="Mismatch"):
        ABLFields(make_mesh(), node)


def test_bad_perturbation_amplitude_size():
    node = {
        "fluid_parts": ["fluid"],
        "velocity": {
            "heights": HEIGHTS,
            "values": VELOCITIES,
            "perturbations": {"reference_height": 50.0,
                              "amplitude": [1.0], "periods": [4.0, 4.0]},
        },
    }
    with pytest.raises(TaskError, match="amplitude"):
        ABLFields(make_mesh(), node)


def test_created_through_registry():
    mesh = make_mesh()
    section = {"init_abl_fields": {"fluid_parts": ["fluid"],
                                   "temperature": {"heights": HEIGHTS, "values": TEMPS}}}
    task = create_task(mesh, section, "init_abl_fields")
    assert isinstance(task, ABLFields)
    task.initialize()
    task.run()
    nid = node_at(mesh, [100.0, 100.0, 50.0])
    assert mesh.field("temperature")[nid][0] == pytest.approx(TEMPS[1])