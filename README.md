# nalumeshprep

Preprocessing tasks for CFD meshes used in wind-energy simulations. Each
task reads its settings from a mapping (typically a section of a YAML
file), declares the fields it needs in `initialize()`, and then modifies
the mesh or fills those fields in `run()`.

## Installation

```
pip install .
```

## Meshes

`nalumeshprep.mesh.Mesh` holds nodes with coordinates, named parts and
fields keyed by entity id. A part has a set of nodes, optional elements
(id to connectivity) and optional faces; the nodes of its elements and
faces belong to the part as well.

```python
from nalumeshprep.mesh import Mesh, load_mesh

mesh = Mesh(3)
mesh.add_node(1, (0.0, 0.0, 0.0))
mesh.add_node(2, (10.0, 0.0, 5.0))
mesh.add_part("fluid", nodes=[1, 2])
print(mesh.bounding_box("fluid"))
mesh.save("mesh.yaml")
mesh = load_mesh("mesh.yaml")
```

`Mesh.save` writes a YAML document with `ndim`, `nodes`, `parts` and the
fields registered with `add_output_field`; `load_mesh` reads it back.
`set_write_flag()` sets `mesh.modified`, which tasks use to signal that
the mesh changed.

## Tasks

A task class registers itself under a name when its module is imported.

| Task name                    | Class            | Module                         | Purpose                                                 |
|------------------------------|------------------|--------------------------------|---------------------------------------------------------|
| `init_abl_fields`            | `ABLFields`      | `nalumeshprep.abl_fields`      | Velocity/temperature profiles with optional perturbations |
| `init_hit_fields`            | `HITFields`      | `nalumeshprep.hit_fields`      | Mean velocity plus fluctuations from a binary file      |
| `time_varying_inflow`        | `InflowHistory`  | `nalumeshprep.inflow_history`  | Write a uniform velocity time history to a YAML file    |
| `rotate_mesh`                | `RotateMesh`     | `nalumeshprep.rotate`          | Rotate parts about an axis through a point              |
| `calc_ndtw2d_deprecated`     | `NDTW2D`         | `nalumeshprep.ndtw`            | Brute-force nearest distance to wall                    |
| `generate_planes_deprecated` | `SamplingPlanes` | `nalumeshprep.sampling_planes` | Horizontal planes of nodes at given heights             |
| `create_bdy_io_mesh`         | `BdyIOPlanes`    | `nalumeshprep.bdy_io_planes`   | Copy boundary parts into a separate mesh and save it    |

`nalumeshprep.task.create_task(mesh, node, lookup)` builds the task whose
settings are `node[lookup]`. A `task_type` entry in that section picks the
task type; otherwise the section name does. An unknown type raises
`TaskError` listing the registered names. `registered_tasks()` returns
the names of the task modules imported so far.

```python
import yaml

import nalumeshprep.abl_fields  # registers init_abl_fields
import nalumeshprep.rotate      # registers rotate_mesh
from nalumeshprep.mesh import load_mesh
from nalumeshprep.task import create_task

settings = yaml.safe_load("""
init_abl_fields:
  fluid_parts: [fluid]
  temperature:
    heights: [0, 650.0, 750.0, 10750.0]
    values:  [280.0, 280.0, 288.0, 318.0]
  velocity:
    heights: [0.0, 10.0, 650.0, 10000.0]
    values:
      - [0.0, 0.0, 0.0]
      - [4.81947, -4.81947, 0.0]
      - [8.74957, -8.74957, 0.0]
      - [8.74957, -8.74957, 0.0]
rotate_mesh:
  mesh_parts: [fluid]
  angle: 45.0
  origin: [500.0, 0.0, 0.0]
  axis: [0.0, 0.0, 1.0]
""")

mesh = load_mesh("mesh.yaml")
tasks = [create_task(mesh, settings, name) for name in settings]
for task in tasks:
    task.initialize()
for task in tasks:
    task.run()
if mesh.modified:
    mesh.save("mesh_out.yaml")
```

Notes on individual tasks:

- `RotateMesh`: `angle` is in degrees; `mesh_parts` may be one name or a list.
- `ABLFields`: needs a 3-D mesh. Temperature perturbations are Gaussian
  noise below `cutoff_height`, skipping nodes of `skip_periodic_parts`;
  pass a numpy `Generator` as `rng` for reproducible noise.
- `HITFields`: the file holds `nx * ny * nz` records of six native
  doubles `(x, y, z, u, v, w)`; `hit_index` maps a node id to its record.
- `SamplingPlanes`: each plane becomes a part named `part_name_format`
  followed by the height formatted with `:f`, e.g. `zplane_70.000000`.
- `BdyIOPlanes`: only quadrilateral faces are supported; the new mesh is
  written with `Mesh.save` to `output_db`.

Geometric helpers can be used on their own: `nalumeshprep.rotate.rotate_point`,
`nalumeshprep.abl_fields.linear_interp`,
`nalumeshprep.ndtw.nearest_wall_distance`,
`nalumeshprep.hit_fields.hit_index` and
`nalumeshprep.sampling_planes.partition_points`.

## What it does not do

There is no command-line program and no runner that reads a whole input
file, builds its list of tasks and writes the result; tasks are created
and run from Python as shown above. Meshes are read and written only in
the YAML layout of `Mesh.save`. There are no tasks for translating a mesh,
for channel-flow fields, or for tagging elements for local refinement.