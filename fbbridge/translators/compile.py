# SPDX-License-Identifier: MIT
"""Translate compile actions into FASTBuild ObjectList nodes.

Each compile action becomes one ObjectList with a single input file. The
options are the planner's own, minus the parts FASTBuild fills in itself:
``%1`` stands for the input file and ``%2`` for the output object.
"""

from __future__ import annotations

import logging
import ntpath
from typing import TYPE_CHECKING

from fbbridge.core.errors import TranslationError
from fbbridge.core.node import BuildNode, NodeKind, action_node_name
from fbbridge.core.options import ParsedOptions, parse_command_line
from fbbridge.toolchains.build_type import (
    RESOURCE_COMPILER_NAME,
    is_resource_compiler,
)

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction
    from fbbridge.translators.context import TranslationContext

logger = logging.getLogger(__name__)

SPECIAL_COMPILER_OPTIONS = ("/Fo", "/fo", "/Yc", "/Yu", "/Fp", "-o")


def output_extension(input_file: str, output_file: str, default: str) -> str:
    """Extension FASTBuild must append to the input's stem.

    FASTBuild names objects ``<output path>/<input stem><extension>``, so
    the extension is whatever the planner appended to the stem. Falls back
    to ``default`` when the planner's object name is not stem-based.

    Example:
        >>> output_extension("src/Foo.cpp", "obj/Foo.cpp.obj", ".obj")
        '.cpp.obj'
    """
    stem = ntpath.splitext(ntpath.basename(input_file))[0]
    name = ntpath.basename(output_file)
    if stem and name.startswith(stem + ".") and len(name) > len(stem) + 1:
        return name[len(stem) :]
    return default


def _object_file(parsed: ParsedOptions, action: BuildAction, is_msvc: bool) -> str:
    if not is_msvc:
        return parsed.value("-o", required=True, context=action.command_arguments)
    output = parsed.value("/Fo")
    if not output:
        # rc.exe spells it in lower case
        output = parsed.value("/fo", required=True, context=action.command_arguments)
    return output


def translate_compile(
    action: BuildAction, index: int, context: TranslationContext
) -> list[BuildNode]:
    """Translate one compile action.

    Args:
        action: The compile action.
        index: Its position in the sorted action list.
        context: Shared translation state.

    Returns:
        A single ObjectList node.

    Raises:
        TranslationError: If the object file, its directory or the input
            file cannot be determined.
    """
    build_type = context.build_type
    compiler_name = build_type.compiler_name
    if is_resource_compiler(action):
        compiler_name = RESOURCE_COMPILER_NAME

    parsed = parse_command_line(
        action.command_arguments,
        SPECIAL_COMPILER_OPTIONS,
        base_dir=context.base_dir,
        env_names=context.env_names,
    )

    object_file = _object_file(parsed, action, build_type.is_msvc)
    if not object_file:
        raise TranslationError("no output object file", action.command_arguments)

    output_path = ntpath.dirname(object_file)
    if not output_path:
        raise TranslationError(
            f"no intermediate path for {object_file}", action.command_arguments
        )

    input_file = parsed.value(
        ParsedOptions.INPUT_FILE, required=True, context=action.command_arguments
    )
    if not input_file:
        raise TranslationError("no input file", action.command_arguments)

    node = BuildNode(NodeKind.OBJECT_LIST, action_node_name(index))
    node.set("Compiler", compiler_name)
    node.set("CompilerInputFiles", input_file)
    node.set("CompilerOutputPath", output_path)

    force_local = any(module in input_file for module in context.force_local_modules)
    if not action.allows_distribution or force_local:
        node.set("AllowDistribution", False)

    other = parsed.other_options

    if "/Yc" in parsed:
        # Creates a precompiled header
        pch_header = parsed.value("/Yc", required=True, context=action.command_arguments)
        pch_file = parsed.value("/Fp", required=True, context=action.command_arguments)
        node.set(
            "CompilerOptions",
            f'"%1" /Fo"%2" /Fp"{pch_file}" /Yu"{pch_header}" {other} ',
        )
        node.set(
            "PCHOptions",
            f'"%1" /Fp"%2" /Yc"{pch_header}" {other} /Fo"{object_file}"',
        )
        node.set("PCHInputFile", input_file)
        node.set("PCHOutputFile", pch_file)
        default_extension = ".obj"
    elif "/Yu" in parsed:
        # Uses a precompiled header; force-include its companion header
        pch_header = parsed.value("/Yu", required=True, context=action.command_arguments)
        pch_file = parsed.value("/Fp", required=True, context=action.command_arguments)
        forced_include = pch_file.replace(".pch", "")
        node.set(
            "CompilerOptions",
            f'"%1" /Fo"%2" /Fp"{pch_file}" /Yu"{pch_header}" '
            f'/FI"{forced_include}" {other} ',
        )
        default_extension = ".cpp.obj"
    elif compiler_name == RESOURCE_COMPILER_NAME:
        node.set("CompilerOptions", f'{other} /fo"%2" "%1" ')
        default_extension = ntpath.splitext(input_file)[1] + ".res"
    elif build_type.is_msvc:
        node.set("CompilerOptions", f'{other} /Fo"%2" "%1" ')
        default_extension = ".cpp.obj"
    else:
        node.set("CompilerOptions", f'{other} -o "%2" "%1" ')
        default_extension = ".cpp.o"

    node.set(
        "CompilerOutputExtension",
        output_extension(input_file, object_file, default_extension),
    )

    node.depends([action_node_name(d) for d in context.dependency_indices(index)])

    return [node]
