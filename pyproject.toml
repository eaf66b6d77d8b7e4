[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nalumeshprep"
version = "0.1.0"
description = "Mesh preprocessing tasks for wind-energy CFD: field initialisation, mesh rotation, wall distance, sampling planes and boundary extraction"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pyyaml",
]
keywords = ["cfd", "mesh", "preprocessing", "atmospheric boundary layer", "wind energy"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["nalumeshprep"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
