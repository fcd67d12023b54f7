# SPDX-License-Identifier: MIT
"""Low-level writer for FASTBuild .bff text.

Produces output like:

    #import DXSDK_DIR
    .WindowsSDKBasePath = 'C:/Program Files (x86)/Windows Kits/10'

    ObjectList('Action_0')
    {
        .Compiler = 'MSVCCompiler'
        .CompilerInputFiles = 'src/a.cpp'
        .PreBuildDependencies = { 'Action_1' }
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from fbbridge.core.node import BuildNode, PropertyValue

INDENT = "\t"


def quote(value: str) -> str:
    """Single-quote a string, escaping with FASTBuild's ``^`` character.

    ``$`` is left alone so that ``$Var$`` references still expand.
    """
    escaped = value.replace("^", "^^").replace("'", "^'")
    return f"'{escaped}'"


class BffWriter:
    """Writes .bff constructs to a text stream.

    The writer does not own the stream; the caller opens and closes it.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def comment(self, text: str) -> None:
        # Comments end at the line break, so fold multi-line text
        flat = " ".join(text.splitlines())
        self._stream.write(f"// {flat}\n")

    def import_env(self, name: str) -> None:
        self._stream.write(f"#import {name}\n")

    def variable(self, name: str, value: PropertyValue) -> None:
        formatted = self._format_value(value, "")
        separator = "" if formatted.startswith("\n") else " "
        self._stream.write(f".{name} ={separator}{formatted}\n")

    def blank_line(self) -> None:
        self._stream.write("\n")

    def node(self, node: BuildNode) -> None:
        """Write one FASTBuild function call."""
        header = node.kind.value
        if node.name is not None:
            header += f"({quote(node.name)})"
        self._stream.write(f"{header}\n{{\n")
        for key, value in node.properties.items():
            self._property(key, value)
        if node.dependencies:
            self._property("PreBuildDependencies", list(node.dependencies))
        self._stream.write("}\n\n")

    def _property(self, key: str, value: PropertyValue) -> None:
        formatted = self._format_value(value, INDENT)
        separator = "" if formatted.startswith("\n") else " "
        self._stream.write(f"{INDENT}.{key} ={separator}{formatted}\n")

    def _format_value(self, value: PropertyValue, indent: str) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return quote(value)
        items = [quote(v) for v in value]
        if len(items) <= 1:
            return "{ " + "".join(items) + " }" if items else "{ }"
        inner = indent + INDENT
        body = ",\n".join(inner + item for item in items)
        return f"\n{indent}{{\n{body}\n{indent}}}"
