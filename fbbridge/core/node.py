# SPDX-License-Identifier: MIT
"""Declarative build nodes, the units of a .bff description."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# A property is a string, a boolean, or a list of strings
PropertyValue = Union[str, bool, list[str]]


class NodeKind(Enum):
    """FASTBuild function names."""

    OBJECT_LIST = "ObjectList"
    LIBRARY = "Library"
    EXECUTABLE = "Executable"
    EXEC = "Exec"
    COPY = "Copy"
    ALIAS = "Alias"
    COMPILER = "Compiler"
    SETTINGS = "Settings"


@dataclass
class BuildNode:
    """One FASTBuild function call.

    Attributes:
        kind: The FASTBuild function.
        name: Node identifier; None for unnamed functions like Settings.
        properties: Ordered ``.Key = value`` assignments.
        dependencies: Names of nodes that must be built first. Written as
            ``.PreBuildDependencies`` after the other properties.
    """

    kind: NodeKind
    name: str | None = None
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    dependencies: list[str] = field(default_factory=list)

    def set(self, key: str, value: PropertyValue) -> BuildNode:
        self.properties[key] = value
        return self

    def depends(self, names: str | list[str]) -> None:
        """Add one or more node names that must be built before this one."""
        if isinstance(names, str):
            names = [names]
        for name in names:
            if name not in self.dependencies:
                self.dependencies.append(name)

    def __repr__(self) -> str:
        return f"BuildNode({self.kind.value}, {self.name!r})"


def action_node_name(index: int) -> str:
    """Identifier of the node translated from the action at ``index``."""
    return f"Action_{index}"
