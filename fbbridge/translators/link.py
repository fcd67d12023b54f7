# SPDX-License-Identifier: MIT
"""Translate link-phase actions: libraries, executables and tool runs.

Link actions are dispatched on the tool they run:
- lib.exe / orbis-snarl            -> Library
- link.exe / orbis-clang           -> Executable (plus a synthetic Copy)
- XboxOnePDBFileUtil / PS4SymbolTool -> Exec
"""

from __future__ import annotations

import logging
import ntpath
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING

from fbbridge.core.errors import TranslationError
from fbbridge.core.node import BuildNode, NodeKind, action_node_name
from fbbridge.core.options import ParsedOptions, parse_command_line
from fbbridge.toolchains.build_type import (
    BuildType,
    is_librarian,
    is_linker,
    is_orbis_clang,
    is_ps4_symbol_tool,
    is_xbox_pdb_util,
)

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction
    from fbbridge.translators.context import TranslationContext

logger = logging.getLogger(__name__)

SPECIAL_LINKER_OPTIONS = ("/OUT:", "@", "-o")

# Outputs of these kinds are already listed in the librarian's response file
PREBUILD_ONLY_MARKERS = (".pch", ".res")

MAP_OPTION = '-map="'


def _output_file(parsed: ParsedOptions, action: BuildAction, build_type: BuildType) -> str:
    if is_xbox_pdb_util(action):
        return parsed.other_options.strip(" ").strip('"')
    if build_type.is_msvc:
        return parsed.value("/OUT:", required=True, context=action.command_arguments)
    output = parsed.value("-o")
    if not output:
        output = parsed.value(
            ParsedOptions.INPUT_FILE, required=True, context=action.command_arguments
        )
    return output


def translate_link(
    action: BuildAction, index: int, context: TranslationContext
) -> list[BuildNode]:
    """Translate one link-phase action.

    Args:
        action: The link action.
        index: Its position in the sorted action list.
        context: Shared translation state.

    Returns:
        The nodes to emit, in order.

    Raises:
        TranslationError: If the output cannot be determined or the tool
            is not recognised.
    """
    if is_ps4_symbol_tool(action):
        # The symbol tool names its output with -map="..." only
        return [_symbol_tool_node(action, index, context)]

    parsed = parse_command_line(
        action.command_arguments,
        SPECIAL_LINKER_OPTIONS,
        save_response_file=True,
        skip_input_file=is_orbis_clang(action),
        base_dir=context.base_dir,
        env_names=context.env_names,
    )

    output_file = _output_file(parsed, action, context.build_type)
    if not output_file:
        raise TranslationError("failed to find output file", action.command_arguments)

    if is_xbox_pdb_util(action):
        return [_pdb_util_node(action, index, context, parsed, output_file)]
    if is_librarian(action):
        return [_library_node(action, index, context, parsed, output_file)]
    if is_linker(action):
        return _executable_nodes(action, index, context, parsed, output_file)

    raise TranslationError(
        f"unsupported link tool {action.command_path}", action.command_arguments
    )


def _pdb_util_node(
    action: BuildAction,
    index: int,
    context: TranslationContext,
    parsed: ParsedOptions,
    output_file: str,
) -> BuildNode:
    input_file = parsed.input_file
    if not input_file:
        raise TranslationError("no input file for PDB utility", action.command_arguments)

    node = BuildNode(NodeKind.EXEC, action_node_name(index))
    node.set("ExecExecutable", action.command_path)
    node.set("ExecArguments", action.command_arguments)
    node.set("ExecInput", [input_file])
    node.set("ExecOutput", output_file)
    node.depends([action_node_name(d) for d in context.dependency_indices(index)])
    return node


def _symbol_tool_node(
    action: BuildAction, index: int, context: TranslationContext
) -> BuildNode:
    arguments = action.command_arguments
    start = arguments.rfind(MAP_OPTION)
    end = arguments.find('"', start + len(MAP_OPTION)) if start >= 0 else -1
    if start < 0 or end < 0:
        raise TranslationError("no -map output for symbol tool", arguments)
    exec_output = arguments[start + len(MAP_OPTION) : end]

    node = BuildNode(NodeKind.EXEC, action_node_name(index))
    node.set("ExecExecutable", action.command_path)
    node.set("ExecArguments", arguments)
    node.set("ExecOutput", exec_output)

    dependencies = context.dependency_indices(index)
    if not dependencies:
        # The symbol tool post-processes the nearest emitted action before it
        previous = context.previous_emitted(index)
        if previous is None:
            logger.warning(
                "%s has no earlier node to follow; emitting it unordered",
                action_node_name(index),
            )
        else:
            dependencies = [previous]
    node.depends([action_node_name(d) for d in dependencies])
    return node


def _library_node(
    action: BuildAction,
    index: int,
    context: TranslationContext,
    parsed: ParsedOptions,
    output_file: str,
) -> BuildNode:
    build_type = context.build_type
    response_file = parsed.response_file
    other = parsed.other_options

    # PCH and resource outputs have the wrong names for librarian inputs
    # and are in the response file anyway; only sequence them.
    dependencies: list[int] = []
    prebuild: list[int] = []
    for dep in context.dependency_indices(index):
        produced = context.produced_paths(dep)
        if any(marker in path for path in produced for marker in PREBUILD_ONLY_MARKERS):
            prebuild.append(dep)
        else:
            dependencies.append(dep)

    node = BuildNode(NodeKind.LIBRARY, action_node_name(index))
    node.set("Compiler", build_type.compiler_name)
    if build_type.is_msvc:
        node.set("CompilerOptions", '"%1" /Fo"%2" /c')
    else:
        node.set("CompilerOptions", '"%1" -o "%2" -c')
    node.set("CompilerOutputPath", ntpath.dirname(output_file))
    node.set("Librarian", action.command_path)

    if response_file:
        if build_type.is_msvc:
            # /ignore:4042: the output is named on the command line and in the rsp
            node.set(
                "LibrarianOptions",
                f' /OUT:"%2" /ignore:4042 @"{response_file}" "%1"',
            )
        elif build_type is BuildType.PS4:
            node.set("LibrarianOptions", '"%2" @"%1"')
        else:
            node.set("LibrarianOptions", f'"%2" @"%1" {other}')
    elif build_type.is_msvc:
        node.set("LibrarianOptions", f' /OUT:"%2" {other} "%1"')
    else:
        node.set("LibrarianOptions", f'{other} "%2" "%1"')

    names = [action_node_name(d) for d in dependencies]
    if dependencies:
        # FASTBuild needs at least one librarian input even when the real
        # inputs are all inside the response file
        if build_type is BuildType.PS4:
            node.set("LibrarianAdditionalInputs", [response_file])
        elif response_file:
            node.set("LibrarianAdditionalInputs", names[:1])
        else:
            node.set("LibrarianAdditionalInputs", names)
        prebuild.extend(dependencies)
    else:
        input_file = parsed.value(
            ParsedOptions.INPUT_FILE, required=True, context=action.command_arguments
        )
        if input_file:
            node.set("LibrarianAdditionalInputs", [input_file])

    node.depends([action_node_name(d) for d in prebuild])
    node.set("LibrarianOutput", output_file)
    return node


def _touch(path: str, base_dir: Path | None) -> None:
    """Refresh the last-access time of ``path``, keeping its mtime."""
    target = Path(path)
    if base_dir is not None and not target.is_absolute():
        target = base_dir / target
    try:
        stat = target.stat()
        os.utime(target, (time.time(), stat.st_mtime))
    except OSError as e:
        logger.debug("Could not touch %s: %s", target, e)


def _executable_nodes(
    action: BuildAction,
    index: int,
    context: TranslationContext,
    parsed: ParsedOptions,
    output_file: str,
) -> list[BuildNode]:
    build_type = context.build_type
    response_file = parsed.response_file
    other = parsed.other_options
    name = action_node_name(index)
    dependencies = context.dependency_indices(index)

    nodes: list[BuildNode] = []

    node = BuildNode(NodeKind.EXECUTABLE, name)
    node.set("Linker", action.command_path)

    if dependencies:
        # Executable has no PreBuildDependencies, so a Copy that depends on
        # everything stands in for them.
        dummy_source = response_file or parsed.input_file
        if not dummy_source:
            raise TranslationError(
                "no response file or input file to order the link after its "
                "dependencies",
                action.command_arguments,
            )
        _touch(dummy_source, context.base_dir)

        copy = BuildNode(NodeKind.COPY, f"{name}_dummy")
        copy.set("Source", dummy_source)
        copy.set("Dest", dummy_source + ".dummy")
        copy.depends([action_node_name(d) for d in dependencies])
        nodes.append(copy)

        node.set("Libraries", copy.name or "")
    else:
        node.set("Libraries", [response_file or parsed.input_file])

    if build_type.is_msvc and not response_file:
        # Objects stay on the command line; /TLBOUT swallows %1
        inputs = f'"{parsed.input_file}" ' if parsed.input_file else ""
        linker_options = f'/TLBOUT:"%1" /Out:"%2" {inputs}{other} '
    elif build_type is BuildType.XBOXONE:
        # /TLBOUT consumes %1, which the response file already covers
        linker_options = f'/TLBOUT:"%1" /Out:"%2" @"{response_file}" {other} '
    elif build_type.is_msvc and not dependencies:
        linker_options = f'/TLBOUT:"%1" /ignore:4042 /Out:"%2" @"{response_file}" '
    elif build_type.is_msvc:
        linker_options = f'/TLBOUT:"%1" /Out:"%2" @"{response_file}" '
    else:
        linker_options = f'{other} -o "%2" @"%1"'
    node.set("LinkerOptions", linker_options)
    node.set("LinkerOutput", output_file)

    nodes.append(node)
    return nodes
