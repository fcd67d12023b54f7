# SPDX-License-Identifier: MIT
"""FASTBuild .bff generator.

Translates a planner's action graph into a FASTBuild description:

1. A preamble: imported environment variables, Compiler() definitions for
   the detected toolchain and a Settings block with the environment that
   FASTBuild's spawned processes need.
2. One block per translated action, producers first. Every block is
   preceded by a comment with the original command line.
3. An ``Alias('all')`` listing every top-level node, so fbuild can be
   asked to build everything at once.

Actions that cannot be translated are skipped with a warning and the rest
of the graph is still written.

Example:
    generator = BffGenerator(settings=load_settings())
    result = generator.generate(actions, Path("Intermediate/fbuild.bff"))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from fbbridge.configure.config import FBuildSettings
from fbbridge.core.action import ActionType
from fbbridge.core.errors import GenerateError, TranslationError
from fbbridge.core.graph import reorder_actions, sort_actions
from fbbridge.core.node import BuildNode, NodeKind, action_node_name
from fbbridge.generators.bff_writer import BffWriter
from fbbridge.generators.generator import BaseGenerator, GenerateResult
from fbbridge.toolchains.build_type import BuildType, detect_build_type
from fbbridge.toolchains.msvc import msvc_compiler_nodes
from fbbridge.toolchains.orbis import (
    SDK_DIR_VARIABLE,
    orbis_compiler_node,
    orbis_variables,
)
from fbbridge.translators import TranslationContext, translate_action

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction
    from fbbridge.toolchains.msvc import VcEnvironment

logger = logging.getLogger(__name__)

ALIAS_NAME = "all"

# Variables passed through to spawned processes when set
PASSTHROUGH_ENV_VARS = ("TMP", "SystemRoot")


class BffGenerator(BaseGenerator):
    """Generator for FASTBuild .bff files.

    Attributes:
        settings: FASTBuild settings (caching, force-local modules, ...).
        vc_env: MSVC facts for the Compiler() definitions, if available.
    """

    def __init__(
        self,
        settings: FBuildSettings | None = None,
        *,
        vc_env: VcEnvironment | None = None,
        environ: Mapping[str, str] | None = None,
        base_dir: Path | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            settings: FASTBuild settings; defaults apply when None.
            vc_env: MSVC installation facts for Windows/Xbox One builds.
            environ: Environment to read preamble variables from
                (default: os.environ at generation time).
            base_dir: Directory relative response files are resolved against.
        """
        super().__init__("fastbuild")
        self.settings = settings or FBuildSettings()
        self.vc_env = vc_env
        self._environ = environ
        self._base_dir = base_dir

    def generate(
        self, actions: Sequence[BuildAction], output_path: Path
    ) -> GenerateResult:
        """Write a .bff for the actions.

        Args:
            actions: Planner actions, in planner order.
            output_path: The .bff file to create or overwrite.

        Returns:
            What was written and what was left out.

        Raises:
            DependencyCycleError: If the action graph has a cycle.
            GenerateError: If the file cannot be written.
        """
        output_path = Path(output_path)
        build_type = detect_build_type(actions)
        order = sort_actions(actions)
        sorted_actions = reorder_actions(actions, order)

        context = TranslationContext(
            actions=sorted_actions,
            build_type=build_type,
            force_local_modules=tuple(self.settings.force_local_modules),
            env_names=tuple(self.settings.imported_env_vars),
            base_dir=self._base_dir,
        )
        result = GenerateResult(output_path=output_path)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                writer = BffWriter(f)
                self._write_environment_setup(writer, build_type)
                for index, action in enumerate(sorted_actions):
                    self._write_action(writer, index, action, context, result)
                writer.node(self._alias_node(result.node_names))
        except OSError as e:
            try:
                output_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove partial file %s", output_path)
            raise GenerateError(f"cannot write {output_path}: {e}") from e

        logger.info(
            "Wrote %s: %d nodes, %d skipped, %d left for local execution",
            output_path,
            len(result.node_names),
            len(result.skipped),
            len(result.local_actions),
        )
        return result

    def _environment(self) -> dict[str, str]:
        environ = os.environ if self._environ is None else self._environ
        # Windows environment variable names are case-insensitive
        return {key.upper(): value for key, value in environ.items()}

    def _write_environment_setup(self, writer: BffWriter, build_type: BuildType) -> None:
        """Write imports, compilers and settings."""
        env = self._environment()

        for name in self.settings.imported_env_vars:
            if name != SDK_DIR_VARIABLE and name.upper() in env:
                writer.import_env(name)

        vc_env = self.vc_env if build_type.is_msvc else None
        if build_type.is_msvc and vc_env is None:
            logger.warning(
                "Failed to get Visual Studio environment; "
                "no MSVC compiler definitions written"
            )
        if vc_env is not None:
            if vc_env.windows_sdk_dir:
                writer.variable("WindowsSDKBasePath", vc_env.windows_sdk_dir)
            writer.blank_line()
            for node in msvc_compiler_nodes(vc_env):
                writer.node(node)

        sdk_dir = env.get(SDK_DIR_VARIABLE.upper())
        if sdk_dir:
            for name, value in orbis_variables(sdk_dir).items():
                writer.variable(name, value)
            writer.blank_line()
            writer.node(orbis_compiler_node())

        settings = BuildNode(NodeKind.SETTINGS)
        if self.settings.enable_caching and self.settings.cache_path:
            settings.set("CachePath", self.settings.cache_path)

        environment: list[str] = vc_env.environment() if vc_env else []
        for name in PASSTHROUGH_ENV_VARS:
            if name.upper() in env:
                environment.append(f"{name}={env[name.upper()]}")
        if vc_env is None:
            for name in ("INCLUDE", "LIB"):
                if name in env:
                    environment.append(f"{name}={env[name]}")
        settings.set("Environment", environment)
        writer.node(settings)

    def _write_action(
        self,
        writer: BffWriter,
        index: int,
        action: BuildAction,
        context: TranslationContext,
        result: GenerateResult,
    ) -> None:
        writer.comment(f'"{action.command_path}" {action.command_arguments}')

        if action.action_type is ActionType.BUILD_PROJECT:
            result.local_actions.append(action)
            return
        if action.action_type not in (ActionType.COMPILE, ActionType.LINK):
            logger.info(
                "FASTBuild is ignoring an unsupported action: %s",
                action.action_type.value,
            )
            return

        try:
            nodes = translate_action(action, index, context)
        except TranslationError as e:
            logger.warning("Skipping %s: %s", action_node_name(index), e)
            result.skipped.append(index)
            return

        for node in nodes:
            writer.node(node)
            if node.name is not None:
                context.emitted.add(node.name)
        result.node_names.append(action_node_name(index))

    def _alias_node(self, names: list[str]) -> BuildNode:
        alias = BuildNode(NodeKind.ALIAS, ALIAS_NAME)
        alias.set("Targets", list(names))
        return alias
