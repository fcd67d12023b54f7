# SPDX-License-Identifier: MIT
"""Generator protocol for build description generation.

Generators take the planner's actions and produce the input file of an
external build engine (e.g., a FASTBuild .bff).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction


@dataclass
class GenerateResult:
    """Outcome of one generation pass.

    Attributes:
        output_path: The file that was written.
        node_names: Top-level node names, in emission order.
        skipped: Sorted positions of actions that could not be translated.
        local_actions: Actions the caller must run itself.
    """

    output_path: Path
    node_names: list[str] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    local_actions: list[BuildAction] = field(default_factory=list)


@runtime_checkable
class Generator(Protocol):
    """Protocol for build description generators."""

    @property
    def name(self) -> str:
        """Generator name (e.g., 'fastbuild')."""
        ...

    def generate(
        self, actions: Sequence[BuildAction], output_path: Path
    ) -> GenerateResult:
        """Generate a build description for the actions.

        Args:
            actions: Planner actions, in planner order.
            output_path: File to create or overwrite.
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality."""

    def __init__(self, name: str) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
        """
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def generate(
        self, actions: Sequence[BuildAction], output_path: Path
    ) -> GenerateResult:
        """Generate the build description. Subclasses must implement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
