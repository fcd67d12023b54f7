# SPDX-License-Identifier: MIT
"""Toolchain identity for a batch of planner actions.

The planner does not tag actions with a toolchain, only with a command
path, so the toolchain is detected once per batch by looking at the first
compile or link action and then carried around as a plain value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from fbbridge.core.action import ActionType

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction

logger = logging.getLogger(__name__)

MSVC_COMPILER_NAME = "MSVCCompiler"
RESOURCE_COMPILER_NAME = "ResourceCompiler"
ORBIS_COMPILER_NAME = "OrbisCompiler"

XBOXONE_INTERMEDIATE_MARKER = "Intermediate\\Build\\XboxOne"


class BuildType(Enum):
    """Closed set of supported toolchains."""

    WINDOWS = "windows"
    XBOXONE = "xboxone"
    PS4 = "ps4"

    @property
    def is_msvc(self) -> bool:
        """Windows and Xbox One both compile with cl.exe."""
        return self in (BuildType.WINDOWS, BuildType.XBOXONE)

    @property
    def compiler_name(self) -> str:
        """Name of the Compiler() node object lists use."""
        if self is BuildType.PS4:
            return ORBIS_COMPILER_NAME
        return MSVC_COMPILER_NAME


def detect_build_type(actions: Iterable[BuildAction]) -> BuildType:
    """Pick the toolchain from the first compile or link action."""
    for action in actions:
        if action.action_type not in (ActionType.COMPILE, ActionType.LINK):
            continue
        if "orbis" in action.command_path:
            build_type = BuildType.PS4
        elif XBOXONE_INTERMEDIATE_MARKER in action.command_arguments:
            build_type = BuildType.XBOXONE
        elif "Microsoft" in action.command_path:
            build_type = BuildType.WINDOWS
        else:
            continue
        logger.debug("Detected %s toolchain from %s", build_type.value, action)
        return build_type
    return BuildType.WINDOWS


# Tool predicates, by executable name


def is_resource_compiler(action: BuildAction) -> bool:
    return "rc.exe" in action.command_path


def is_librarian(action: BuildAction) -> bool:
    return "lib.exe" in action.command_path or "orbis-snarl" in action.command_path


def is_linker(action: BuildAction) -> bool:
    return "link.exe" in action.command_path or "orbis-clang" in action.command_path


def is_orbis_clang(action: BuildAction) -> bool:
    return "orbis-clang" in action.command_path


def is_xbox_pdb_util(action: BuildAction) -> bool:
    return "XboxOnePDBFileUtil.exe" in action.command_path


def is_ps4_symbol_tool(action: BuildAction) -> bool:
    return "PS4SymbolTool.exe" in action.command_path
