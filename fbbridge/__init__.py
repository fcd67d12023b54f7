# SPDX-License-Identifier: MIT
"""
fbbridge: Run a build planner's action graph through FASTBuild.

fbbridge takes the compile and link actions a build planner has already
decided on, writes them out as a FASTBuild .bff description and runs
fbuild on it, so the work can be cached and distributed.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
from fbbridge.configure.config import CacheMode, FBuildSettings, load_settings  # noqa: E402
from fbbridge.core.action import ActionType, BuildAction, FileItem, load_actions  # noqa: E402
from fbbridge.executor import ExecutionReport, execute_actions  # noqa: E402
from fbbridge.fbuild import BuildResult, run_fbuild  # noqa: E402
from fbbridge.generators.bff import BffGenerator  # noqa: E402

__all__ = [
    "ActionType",
    "BffGenerator",
    "BuildAction",
    "BuildResult",
    "CacheMode",
    "ExecutionReport",
    "FBuildSettings",
    "FileItem",
    "__version__",
    "execute_actions",
    "load_actions",
    "load_settings",
    "run_fbuild",
]
