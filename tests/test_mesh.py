import numpy as np
import pytest

from nalumeshprep.mesh import Mesh, load_mesh


def _mesh():
    mesh = Mesh(3)
    points = [(0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (2.0, 3.0, 0.0), (0.0, 3.0, 1.0)]
    for nid, xyz in enumerate(points, start=1):
        mesh.add_node(nid, xyz)
    mesh.add_part("fluid", elements={10: (1, 2, 3, 4)})
    mesh.add_part("wall", faces=[(1, 2)])
    return mesh


def test_invalid_dimension():
    with pytest.raises(ValueError):
        Mesh(4)


def test_part_nodes_union_and_all():
    mesh = _mesh()
    assert mesh.part_nodes("wall") == [1, 2]
    assert mesh.part_nodes(["wall", "fluid"]) == [1, 2, 3, 4]
    assert mesh.part_nodes(None) == [1, 2, 3, 4]
    assert mesh.has_part("fluid") and not mesh.has_part("inlet")


def test_unknown_part_raises():
    with pytest.raises(KeyError):
        _mesh().part_nodes(["inlet"])


def test_bounding_box():
    box = _mesh().bounding_box(["fluid"])
    assert box.lower == (0.0, 0.0, 0.0)
    assert box.upper == (2.0, 3.0, 1.0)
    assert box.x_max == 2.0 and box.y_max == 3.0 and box.z_min == 0.0


def test_bounding_box_empty_selection():
    mesh = Mesh(2)
    mesh.add_part("empty")
    with pytest.raises(ValueError):
        mesh.bounding_box("empty")


def test_add_node_errors():
    mesh = _mesh()
    with pytest.raises(ValueError):
        mesh.add_node(1, (0.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        mesh.add_node(99, (0.0, 0.0))


def test_add_part_errors():
    mesh = _mesh()
    with pytest.raises(ValueError):
        mesh.add_part("bad", nodes=[42])
    with pytest.raises(ValueError):
        mesh.add_part("fluid", nodes=[1])


def test_coordinates_are_copies():
    mesh = _mesh()
    xyz = mesh.coordinates(2)
    xyz[0] = 100.0
    assert mesh.coordinates(2)[0] == 2.0
    mesh.set_coordinates(2, (5.0, 6.0, 7.0))
    assert np.allclose(mesh.coordinates(2), [5.0, 6.0, 7.0])
    with pytest.raises(KeyError):
        mesh.set_coordinates(77, (0.0, 0.0, 0.0))


def test_fields():
    mesh = _mesh()
    vel = mesh.declare_field("velocity", 3)
    assert mesh.declare_field("velocity", 3) is vel
    assert mesh.field("velocity") is vel
    with pytest.raises(ValueError):
        mesh.declare_field("velocity", 1)
    with pytest.raises(KeyError):
        mesh.field("pressure")
    with pytest.raises(KeyError):
        mesh.add_output_field("pressure")


def test_write_flag():
    mesh = _mesh()
    assert mesh.modified is False
    mesh.set_write_flag()
    assert mesh.modified is True


def test_save_load_round_trip(tmp_path):
    mesh = _mesh()
    vel = mesh.declare_field("velocity", 3)
    vel[1] = np.array([1.5, -2.0, 0.25])
    mesh.add_output_field("velocity")
    scratch = mesh.declare_field("scratch", 1)
    scratch[1] = np.array([3.0])

    path = tmp_path / "mesh.yaml"
    mesh.save(path)
    loaded = load_mesh(path)

    assert loaded.ndim == mesh.ndim
    assert loaded.part_nodes(None) == mesh.part_nodes(None)
    for nid in mesh.part_nodes(None):
        assert np.allclose(loaded.coordinates(nid), mesh.coordinates(nid))
    assert loaded.parts["fluid"].elements == mesh.parts["fluid"].elements
    assert loaded.parts["wall"].faces == mesh.parts["wall"].faces
    assert np.allclose(loaded.field("velocity")[1], vel[1])
    assert loaded.output_fields == ["velocity"]
    with pytest.raises(KeyError):
        loaded.field("scratch")


def test_load_rejects_non_mesh(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_mesh(path)