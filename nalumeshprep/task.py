"""Base class and runtime registry for pre-processing tasks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping

from .mesh import Mesh


class TaskError(RuntimeError):
    """Raised for invalid task input or a task that cannot complete."""


class PreProcessingTask(ABC):
    """A unit of pre-processing work on a mesh.

    ``initialize`` declares parts and fields; ``run`` modifies the mesh data.
    Constructors only parse and check their input.
    """

    def __init__(self, mesh: Mesh):
        self.mesh = mesh

    @abstractmethod
    def initialize(self) -> None:
        """Declare the parts and fields the task needs."""

    @abstractmethod
    def run(self) -> None:
        """Perform the task on the mesh."""


_REGISTRY: dict[str, type[PreProcessingTask]] = {}


def register_task(name: str) -> Callable[[type[PreProcessingTask]], type[PreProcessingTask]]:
    """Class decorator that makes a task available under ``name``."""

    def decorator(cls: type[PreProcessingTask]) -> type[PreProcessingTask]:
        existing = _REGISTRY.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Task type already registered: {name}")
        _REGISTRY[name] = cls
        return cls

    return decorator


def registered_tasks() -> list[str]:
    """Sorted names of all registered task types."""
    return sorted(_REGISTRY)


def create_task(mesh: Mesh, node: Mapping[str, Any], lookup: str) -> PreProcessingTask:
    """Build the task whose input section is ``node[lookup]``.

    The section's ``task_type`` entry, when present, picks the task type;
    otherwise the section name does.
    """
    if lookup not in node:
        raise TaskError(f"Cannot find input section for task: {lookup}")
    inp = node[lookup] or {}
    task_type = inp.get("task_type", lookup)
    try:
        cls = _REGISTRY[task_type]
    except KeyError:
        valid = "\n".join(f"\t{name}" for name in registered_tasks())
        raise TaskError(
            f"Invalid PreProcessingTask => {task_type}\n"
            f"Valid task types are:\n{valid}"
        ) from None
    return cls(mesh, inp)