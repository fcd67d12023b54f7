# SPDX-License-Identifier: MIT
"""State shared by the action translators during one pass."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from fbbridge.core.graph import producer_indices
from fbbridge.core.node import action_node_name
from fbbridge.core.options import DEFAULT_IMPORTED_ENV_VARS
from fbbridge.toolchains.build_type import BuildType

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction

logger = logging.getLogger(__name__)


@dataclass
class TranslationContext:
    """Everything a translator needs besides the action itself.

    Attributes:
        actions: Actions in sorted (emission) order.
        build_type: Toolchain detected for the batch.
        force_local_modules: Input path fragments that disable distribution.
        env_names: Environment variables substituted in command lines.
        base_dir: Directory relative response files are resolved against.
        emitted: Names of nodes written so far.
    """

    actions: Sequence[BuildAction]
    build_type: BuildType = BuildType.WINDOWS
    force_local_modules: Sequence[str] = ()
    env_names: Sequence[str] = DEFAULT_IMPORTED_ENV_VARS
    base_dir: Path | None = None
    emitted: set[str] = field(default_factory=set)

    def dependency_indices(self, index: int) -> list[int]:
        """Sorted positions of the emitted actions this action depends on.

        Producers that were skipped are dropped with a warning so that
        no node references an undefined name.
        """
        result = []
        for producer in producer_indices(self.actions, index):
            if action_node_name(producer) in self.emitted:
                result.append(producer)
            else:
                logger.warning(
                    "%s depends on %s, which was not translated; "
                    "dropping the dependency",
                    action_node_name(index),
                    action_node_name(producer),
                )
        return result

    def previous_emitted(self, index: int) -> int | None:
        """Position of the closest emitted action before ``index``, if any."""
        for candidate in range(index - 1, -1, -1):
            if action_node_name(candidate) in self.emitted:
                return candidate
        return None

    def produced_paths(self, index: int) -> list[str]:
        return [item.path for item in self.actions[index].produced_items]

    def status(self, index: int) -> str:
        return self.actions[index].status_description
