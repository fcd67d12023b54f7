# SPDX-License-Identifier: MIT
"""FASTBuild settings for fbbridge.

Settings control how the external engine is asked to build: whether to
distribute work, whether and how to use the shared cache, where fbuild
lives and which actions must stay local.

Settings are read from an optional JSON file and then overridden by
environment variables:

    FBBRIDGE_DIST        1/0, enable distribution
    FBBRIDGE_CACHE       1/0, enable caching
    FBBRIDGE_CACHE_PATH  shared cache location
    FBBRIDGE_CACHE_MODE  readwrite, readonly or writeonly
    FBBRIDGE_FBUILD      explicit path to the fbuild executable
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

from fbbridge.core.errors import ConfigureError
from fbbridge.core.options import DEFAULT_IMPORTED_ENV_VARS

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


class CacheMode(Enum):
    """Shared cache access mode."""

    READ_WRITE = "readwrite"  # read and write the cache
    READ_ONLY = "readonly"  # developer machines with central build machines
    WRITE_ONLY = "writeonly"  # the central build machines themselves

    @property
    def fbuild_flag(self) -> str:
        return {
            CacheMode.READ_WRITE: "-cache",
            CacheMode.READ_ONLY: "-cacheread",
            CacheMode.WRITE_ONLY: "-cachewrite",
        }[self]

    @classmethod
    def parse(cls, value: str) -> CacheMode:
        normalized = value.strip().lower().replace("-", "").replace("_", "")
        for mode in cls:
            if mode.value == normalized:
                return mode
        choices = ", ".join(m.value for m in cls)
        raise ConfigureError(f"invalid cache mode {value!r} (expected one of {choices})")


@dataclass
class FBuildSettings:
    """How fbbridge drives FASTBuild.

    Attributes:
        enable_distribution: Pass ``-dist`` to fbuild.
        enable_caching: Use the cache; cache_path/cache_mode only matter then.
        cache_path: Local or network cache location, written to the .bff.
        cache_mode: Cache access mode.
        fbuild_executable: Explicit fbuild path; searched on PATH when empty.
        monitor: Pass ``-monitor`` (for the FASTBuild monitor extension).
        summary: Pass ``-summary``.
        ide: Pass ``-ide`` for IDE-friendly output.
        clean: Pass ``-clean`` so FASTBuild rebuilds what the planner asks for
            instead of applying its own dependency database.
        extra_args: Additional fbuild arguments.
        force_local_modules: Compiles whose input path contains one of these
            names are never distributed.
        imported_env_vars: Environment variables imported into the .bff and
            substituted in command lines.
    """

    enable_distribution: bool = True
    enable_caching: bool = False
    cache_path: str = ""
    cache_mode: CacheMode = CacheMode.READ_WRITE
    fbuild_executable: str = ""
    monitor: bool = True
    summary: bool = True
    ide: bool = True
    clean: bool = True
    extra_args: list[str] = field(default_factory=list)
    force_local_modules: list[str] = field(default_factory=list)
    imported_env_vars: list[str] = field(
        default_factory=lambda: list(DEFAULT_IMPORTED_ENV_VARS)
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FBuildSettings:
        """Create settings from a decoded JSON mapping.

        Raises:
            ConfigureError: On unknown keys or values of the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigureError(f"unknown settings: {', '.join(unknown)}")

        settings = cls()
        for key, value in data.items():
            default = getattr(settings, key)
            if isinstance(default, CacheMode):
                value = CacheMode.parse(str(value))
            elif isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigureError(f"setting {key} must be true or false")
            elif isinstance(default, list):
                if not isinstance(value, list):
                    raise ConfigureError(f"setting {key} must be a list")
                value = [str(v) for v in value]
            else:
                value = str(value)
            setattr(settings, key, value)
        return settings

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["cache_mode"] = self.cache_mode.value
        return data


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigureError(f"{name} must be a boolean, got {value!r}")


def apply_environment(
    settings: FBuildSettings, environ: Mapping[str, str] | None = None
) -> FBuildSettings:
    """Override settings from FBBRIDGE_* environment variables."""
    env = os.environ if environ is None else environ

    if "FBBRIDGE_DIST" in env:
        settings.enable_distribution = _parse_bool("FBBRIDGE_DIST", env["FBBRIDGE_DIST"])
    if "FBBRIDGE_CACHE" in env:
        settings.enable_caching = _parse_bool("FBBRIDGE_CACHE", env["FBBRIDGE_CACHE"])
    if "FBBRIDGE_CACHE_PATH" in env:
        settings.cache_path = env["FBBRIDGE_CACHE_PATH"]
    if "FBBRIDGE_CACHE_MODE" in env:
        settings.cache_mode = CacheMode.parse(env["FBBRIDGE_CACHE_MODE"])
    if "FBBRIDGE_FBUILD" in env:
        settings.fbuild_executable = env["FBBRIDGE_FBUILD"]
    return settings


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> FBuildSettings:
    """Load settings from a JSON file (if given) and the environment.

    Args:
        path: Optional settings file.
        environ: Environment to read overrides from (default: os.environ).

    Returns:
        The effective settings.

    Raises:
        ConfigureError: If the file is unreadable or invalid.
    """
    settings = FBuildSettings()
    if path is not None:
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigureError(f"cannot read settings from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigureError(f"settings file {path} must contain an object")
        settings = FBuildSettings.from_dict(data)

    return apply_environment(settings, environ)


def save_settings(settings: FBuildSettings, path: Path | str) -> None:
    """Write settings to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(settings.to_dict(), f, indent=2)
        f.write("\n")
