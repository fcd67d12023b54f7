# SPDX-License-Identifier: MIT
"""Locate and run the fbuild executable.

fbuild is run as one child process. Its stdout and stderr are drained on
two threads and each line is forwarded to a sink as it arrives. The result
is one of three outcomes so callers can fall back to another execution
strategy when FASTBuild is not installed.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import IO

from fbbridge.configure.config import FBuildSettings
from fbbridge.core.errors import ToolNotFoundError

logger = logging.getLogger(__name__)

LineSink = Callable[[str], None]


class BuildResult(Enum):
    """Outcome of an fbuild run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"  # fbuild missing or could not be started


def find_fbuild(override: str = "", required: bool = False) -> Path | None:
    """Find the fbuild executable.

    Args:
        override: Explicit path to use instead of searching PATH.
        required: Raise instead of returning None.

    Returns:
        Path to fbuild, or None if not found.

    Raises:
        ToolNotFoundError: If required and fbuild cannot be found.
    """
    if override:
        path = Path(override)
        if path.is_file():
            return path
        logger.warning("fbuild override %s does not exist", override)
        found = None
    else:
        # shutil.which applies PATHEXT on Windows
        which = shutil.which("fbuild")
        found = Path(which) if which else None

    if found is None and required:
        raise ToolNotFoundError("fbuild", override or None)
    return found


def fbuild_command(
    executable: Path | str, bff_path: Path | str, settings: FBuildSettings
) -> list[str]:
    """Build the fbuild argument list.

    Example:
        >>> fbuild_command("fbuild", "out.bff", FBuildSettings())
        ['fbuild', '-monitor', '-summary', '-dist', '-ide', '-clean', '-config', 'out.bff']
    """
    cmd = [str(executable)]
    if settings.monitor:
        cmd.append("-monitor")
    if settings.summary:
        cmd.append("-summary")
    if settings.enable_distribution:
        cmd.append("-dist")
    if settings.enable_caching:
        cmd.append(settings.cache_mode.fbuild_flag)
    if settings.ide:
        cmd.append("-ide")
    if settings.clean:
        cmd.append("-clean")
    cmd.extend(settings.extra_args)
    cmd.extend(["-config", str(bff_path)])
    return cmd


def _default_sink(line: str) -> None:
    logger.info("%s", line)


def _pump(stream: IO[str], sink: LineSink) -> None:
    """Forward lines from a pipe until it closes.

    The pipe is drained even if the sink fails, or fbuild would block on
    a full pipe and never exit.
    """
    with stream:
        for line in stream:
            line = line.rstrip("\r\n")
            if not line:
                continue
            try:
                sink(line)
            except Exception:
                logger.exception("Output sink failed on line: %s", line)


def run_fbuild(
    bff_path: Path | str,
    settings: FBuildSettings | None = None,
    working_dir: Path | str | None = None,
    sink: LineSink | None = None,
) -> BuildResult:
    """Run fbuild on a .bff and wait for it.

    Args:
        bff_path: The generated .bff file.
        settings: Settings that select fbuild's switches.
        working_dir: Directory to run fbuild in (default: current directory).
        sink: Receives every output line (default: this module's logger).

    Returns:
        SUCCEEDED for exit code 0, FAILED for any other exit code, and
        UNAVAILABLE when fbuild cannot be found or started.
    """
    settings = settings or FBuildSettings()
    sink = sink or _default_sink

    executable = find_fbuild(settings.fbuild_executable)
    if executable is None:
        logger.error("fbuild not found in PATH")
        logger.info("Install FASTBuild: https://fastbuild.org/")
        return BuildResult.UNAVAILABLE

    cmd = fbuild_command(executable, bff_path, settings)
    logger.info("Running: %s", " ".join(cmd))

    try:
        process = subprocess.Popen(
            cmd,
            cwd=working_dir,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.error("Failed to run fbuild: %s", e)
        return BuildResult.UNAVAILABLE

    readers = [
        threading.Thread(target=_pump, args=(stream, sink), daemon=True)
        for stream in (process.stdout, process.stderr)
    ]
    for reader in readers:
        reader.start()
    returncode = process.wait()
    for reader in readers:
        reader.join()

    if returncode == 0:
        return BuildResult.SUCCEEDED
    logger.error("fbuild exited with code %d", returncode)
    return BuildResult.FAILED
