# SPDX-License-Identifier: MIT
"""MSVC toolchain facts and the FASTBuild compiler definitions they produce.

Locating a Visual Studio installation is not fbbridge's job; the caller
supplies a VcEnvironment (or lets ``VcEnvironment.from_environ`` read the
variables a developer command prompt sets). Existence checks here are
best-effort only.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field

from fbbridge.core.node import BuildNode, NodeKind
from fbbridge.toolchains.build_type import MSVC_COMPILER_NAME, RESOURCE_COMPILER_NAME

logger = logging.getLogger(__name__)

VC_TOOLS_COMPONENT = "Microsoft.VisualStudio.Component.VC.Tools.x86.x64"


def _vswhere_install_dir(env: Mapping[str, str]) -> str:
    """Ask vswhere for the newest Visual Studio with the C++ tools.

    Args:
        env: Environment with upper-cased names, as from_environ reads it.

    Returns:
        The installation root, or "" when vswhere is absent or fails.
    """
    program_files = env.get("PROGRAMFILES(X86)", r"C:\Program Files (x86)")
    vswhere = os.path.join(
        program_files, "Microsoft Visual Studio", "Installer", "vswhere.exe"
    )
    if not os.path.isfile(vswhere):
        return ""
    cmd = [
        vswhere,
        "-latest",
        "-requires",
        VC_TOOLS_COMPONENT,
        "-property",
        "installationPath",
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("vswhere failed: %s", e)
        return ""
    if result.returncode != 0:
        logger.debug("vswhere exited with %d", result.returncode)
        return ""
    return result.stdout.strip()


def _split_paths(value: str | None) -> list[str]:
    if not value:
        return []
    return [p for p in value.split(";") if p]


def _upper_keys(environ: Mapping[str, str]) -> dict[str, str]:
    # Windows environment variable names are case-insensitive
    return {key.upper(): value for key, value in environ.items()}


@dataclass(frozen=True)
class VcEnvironment:
    """Read-only facts about an MSVC installation.

    Attributes:
        compiler_dir: Directory containing cl.exe and its DLLs.
        resource_compiler: Path to rc.exe.
        install_dir: Visual Studio installation root.
        windows_sdk_dir: Windows SDK root.
        include_paths: INCLUDE entries for spawned compilers.
        library_paths: LIB entries for spawned linkers.
        tool_version: Suffix of the versioned PDB DLLs (mspdb140.dll).
        redist_dir: Directory with the CRT DLLs cl.exe needs on remote
            workers, or None to ship none.
    """

    compiler_dir: str
    resource_compiler: str
    install_dir: str = ""
    windows_sdk_dir: str = ""
    include_paths: list[str] = field(default_factory=list)
    library_paths: list[str] = field(default_factory=list)
    tool_version: str = "140"
    redist_dir: str | None = None

    @classmethod
    def from_environ(
        cls, environ: Mapping[str, str] | None = None
    ) -> VcEnvironment | None:
        """Build facts from a Visual Studio developer prompt's variables.

        Returns:
            The environment, or None if no MSVC tools are configured.
        """
        env = _upper_keys(os.environ if environ is None else environ)

        tools_dir = env.get("VCTOOLSINSTALLDIR")
        if not tools_dir:
            logger.debug("VCToolsInstallDir is not set, no MSVC environment")
            return None
        compiler_dir = os.path.join(tools_dir, "bin", "Hostx64", "x64")

        resource_compiler = "rc.exe"
        sdk_bin = env.get("WINDOWSSDKVERBINPATH")
        if sdk_bin:
            resource_compiler = os.path.join(sdk_bin, "x64", "rc.exe")

        install_dir = env.get("VSINSTALLDIR") or _vswhere_install_dir(env)

        redist_dir = None
        redist_root = env.get("VCTOOLSREDISTDIR")
        if redist_root:
            redist_dir = _find_crt_redist(os.path.join(redist_root, "x64"))

        return cls(
            compiler_dir=compiler_dir.rstrip("\\/"),
            resource_compiler=resource_compiler,
            install_dir=install_dir.rstrip("\\/"),
            windows_sdk_dir=env.get("WINDOWSSDKDIR", ""),
            include_paths=_split_paths(env.get("INCLUDE")),
            library_paths=_split_paths(env.get("LIB")),
            redist_dir=redist_dir,
        )

    def _find_clui(self) -> str | None:
        """Locate the compiler's UI resource DLL, English first."""
        if os.path.exists(os.path.join(self.compiler_dir, "1033", "clui.dll")):
            return "1033/clui.dll"
        try:
            entries = sorted(os.listdir(self.compiler_dir))
        except OSError:
            return None
        for entry in entries:
            if entry.isdigit() and os.path.exists(
                os.path.join(self.compiler_dir, entry, "clui.dll")
            ):
                return f"{entry}/clui.dll"
        return None

    def extra_files(self) -> list[str]:
        """Files FASTBuild must ship with cl.exe for remote compilation."""
        files = [
            "$Root$/c1.dll",
            "$Root$/c1xx.dll",
            "$Root$/c2.dll",
        ]
        clui = self._find_clui()
        if clui:
            files.append(f"$Root$/{clui}")
        else:
            logger.warning("Could not find clui.dll under %s", self.compiler_dir)
        files += [
            "$Root$/mspdbsrv.exe",
            "$Root$/mspdbcore.dll",
            f"$Root$/mspft{self.tool_version}.dll",
            f"$Root$/msobj{self.tool_version}.dll",
            f"$Root$/mspdb{self.tool_version}.dll",
        ]
        if self.redist_dir:
            files += [
                f"{self.redist_dir}/msvcp{self.tool_version}.dll",
                f"{self.redist_dir}/vccorlib{self.tool_version}.dll",
            ]
        return files

    def environment(self) -> list[str]:
        """``NAME=value`` entries for processes FASTBuild spawns."""
        entries = []
        if self.install_dir:
            entries.append(f"PATH={self.install_dir}\\Common7\\IDE\\;{self.compiler_dir}")
        else:
            entries.append(f"PATH={self.compiler_dir}")
        if self.include_paths:
            entries.append("INCLUDE=" + ";".join(self.include_paths))
        if self.library_paths:
            entries.append("LIB=" + ";".join(self.library_paths))
        return entries


def _find_crt_redist(redist_x64: str) -> str | None:
    try:
        entries = sorted(os.listdir(redist_x64), reverse=True)
    except OSError:
        return None
    for entry in entries:
        if entry.startswith("Microsoft.VC") and entry.endswith(".CRT"):
            return os.path.join(redist_x64, entry)
    return None


def msvc_compiler_nodes(vc_env: VcEnvironment) -> list[BuildNode]:
    """Compiler() definitions for rc.exe and cl.exe."""
    resource_compiler = BuildNode(NodeKind.COMPILER, RESOURCE_COMPILER_NAME)
    resource_compiler.set("Executable", vc_env.resource_compiler)
    resource_compiler.set("CompilerFamily", "custom")

    compiler = BuildNode(NodeKind.COMPILER, MSVC_COMPILER_NAME)
    compiler.set("Root", vc_env.compiler_dir)
    compiler.set("Executable", "$Root$/cl.exe")
    compiler.set("ExtraFiles", vc_env.extra_files())

    return [resource_compiler, compiler]
