# SPDX-License-Identifier: MIT
"""Toolchain facts (MSVC, Orbis) and per-batch toolchain detection."""

from fbbridge.toolchains.build_type import BuildType, detect_build_type
from fbbridge.toolchains.msvc import VcEnvironment, msvc_compiler_nodes
from fbbridge.toolchains.orbis import orbis_compiler_node, orbis_variables

__all__ = [
    "BuildType",
    "VcEnvironment",
    "detect_build_type",
    "msvc_compiler_nodes",
    "orbis_compiler_node",
    "orbis_variables",
]
