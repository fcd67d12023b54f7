# SPDX-License-Identifier: MIT
"""Orbis (PS4) clang toolchain definitions."""

from __future__ import annotations

from fbbridge.core.node import BuildNode, NodeKind
from fbbridge.toolchains.build_type import ORBIS_COMPILER_NAME

SDK_DIR_VARIABLE = "SCE_ORBIS_SDK_DIR"


def orbis_variables(sdk_dir: str) -> dict[str, str]:
    """Top-level BFF variables the Orbis compiler definition refers to."""
    return {
        SDK_DIR_VARIABLE: sdk_dir,
        "PS4BasePath": f"{sdk_dir}/host_tools/bin",
    }


def orbis_compiler_node() -> BuildNode:
    compiler = BuildNode(NodeKind.COMPILER, ORBIS_COMPILER_NAME)
    compiler.set("Executable", "$PS4BasePath$/orbis-clang.exe")
    compiler.set("ExtraFiles", ["$PS4BasePath$/orbis-snarl.exe"])
    return compiler
