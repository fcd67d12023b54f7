# SPDX-License-Identifier: MIT
"""Run a batch of planner actions through FASTBuild.

This is the entry point a larger build pipeline calls: generate the .bff,
run fbuild, and report a tri-state result plus the actions that still have
to be run some other way. Nothing here raises for build problems; the
caller decides what to do with a FAILED or UNAVAILABLE result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from fbbridge.configure.config import FBuildSettings
from fbbridge.core.errors import DependencyCycleError, GenerateError
from fbbridge.fbuild import BuildResult, LineSink, run_fbuild
from fbbridge.generators.bff import BffGenerator

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction
    from fbbridge.generators.generator import GenerateResult
    from fbbridge.toolchains.msvc import VcEnvironment

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    """What happened to a batch of actions.

    Attributes:
        result: Overall outcome.
        generation: Details of the written .bff, None if generation failed.
        local_actions: Actions the caller must still execute itself.
    """

    result: BuildResult
    generation: GenerateResult | None = None
    local_actions: list[BuildAction] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result is BuildResult.SUCCEEDED


def execute_actions(
    actions: Sequence[BuildAction],
    bff_path: Path | str,
    settings: FBuildSettings | None = None,
    *,
    vc_env: VcEnvironment | None = None,
    environ: Mapping[str, str] | None = None,
    working_dir: Path | str | None = None,
    sink: LineSink | None = None,
) -> ExecutionReport:
    """Generate a .bff for the actions and build it with fbuild.

    Args:
        actions: Planner actions, in planner order.
        bff_path: Where to write the .bff.
        settings: FASTBuild settings.
        vc_env: MSVC facts for Windows/Xbox One builds.
        environ: Environment for the .bff preamble (default: os.environ).
        working_dir: Directory fbuild runs in; relative response files are
            resolved against it too.
        sink: Receives fbuild's output lines.

    Returns:
        The execution report.
    """
    settings = settings or FBuildSettings()
    bff_path = Path(bff_path)
    base_dir = Path(working_dir) if working_dir is not None else None

    generator = BffGenerator(
        settings, vc_env=vc_env, environ=environ, base_dir=base_dir
    )
    try:
        generation = generator.generate(actions, bff_path)
    except DependencyCycleError as e:
        logger.error("Cannot order actions: %s", e)
        return ExecutionReport(BuildResult.FAILED)
    except GenerateError as e:
        logger.error("Failed to generate %s: %s", bff_path, e)
        return ExecutionReport(BuildResult.FAILED)

    if generation.skipped:
        logger.warning(
            "%d action(s) could not be translated and were left out of %s",
            len(generation.skipped),
            bff_path,
        )

    result = run_fbuild(bff_path, settings, working_dir=working_dir, sink=sink)
    return ExecutionReport(
        result, generation=generation, local_actions=list(generation.local_actions)
    )
