# SPDX-License-Identifier: MIT
"""Planner actions: the input to a translation pass.

A BuildAction is one compile/link/archive/tool step produced by the
upstream build planner. Actions reference files through FileItems; a
FileItem that is built by another action records that action's index
in the planner's list. That index is a lookup key, never an owning link.

Actions can be constructed directly or loaded from a JSON export:

    {
        "actions": [
            {
                "type": "Compile",
                "command_path": "C:/VS/bin/cl.exe",
                "command_arguments": "/c /Fo\\"obj/a.cpp.obj\\" a.cpp",
                "prerequisites": ["a.cpp"],
                "produced": ["obj/a.cpp.obj"],
                "status": "a.cpp",
                "can_execute_remotely": true
            }
        ]
    }

A prerequisite may also be an object ``{"path": ..., "producer": 3}`` to
name its producing action explicitly; otherwise the producer is found by
matching the path against every action's produced files.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from fbbridge.core.errors import GenerateError

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Kind of planner action."""

    COMPILE = "Compile"
    LINK = "Link"
    BUILD_PROJECT = "BuildProject"
    OTHER = "Other"

    @classmethod
    def from_name(cls, name: str) -> ActionType:
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        return cls.OTHER


@dataclass(frozen=True)
class FileItem:
    """A file read or written by an action.

    Attributes:
        path: The file path as the planner wrote it.
        producer: Index of the producing action in the planner's list,
            or None for source files.
    """

    path: str
    producer: int | None = None

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class BuildAction:
    """One unit of work from the upstream planner.

    Actions are read-only for the duration of a translation pass.
    """

    action_type: ActionType
    command_path: str
    command_arguments: str = ""
    prerequisite_items: tuple[FileItem, ...] = field(default_factory=tuple)
    produced_items: tuple[FileItem, ...] = field(default_factory=tuple)
    status_description: str = ""
    can_execute_remotely: bool = True
    can_execute_remotely_with_sndbs: bool = True

    @property
    def allows_distribution(self) -> bool:
        return self.can_execute_remotely and self.can_execute_remotely_with_sndbs

    def describe(self) -> str:
        """Short human-readable label used in diagnostics."""
        if self.status_description:
            return self.status_description
        return f'"{self.command_path}" {self.command_arguments}'.strip()

    def __str__(self) -> str:
        return self.describe()


def _list_field(entry: dict[str, Any], key: str, index: int) -> list[Any]:
    value = entry.get(key, [])
    if not isinstance(value, list):
        raise GenerateError(f"action #{index}: {key} must be a list")
    return value


def _bool_field(entry: dict[str, Any], key: str, index: int) -> bool:
    value = entry.get(key, True)
    if not isinstance(value, bool):
        raise GenerateError(f"action #{index}: {key} must be a boolean, got {value!r}")
    return value


def actions_from_data(data: dict[str, Any] | list[Any]) -> list[BuildAction]:
    """Build actions from a decoded JSON export.

    Args:
        data: Either ``{"actions": [...]}`` or the bare action list.

    Returns:
        Actions in planner order, with producers resolved.

    Raises:
        GenerateError: If an entry is malformed.
    """
    entries = data.get("actions", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise GenerateError("planner export must contain a list of actions")

    # Map every produced path to the index of the action producing it
    producers: dict[str, int] = {}
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise GenerateError(f"action #{index} is not an object")
        for path in _list_field(entry, "produced", index):
            producers.setdefault(str(path), index)

    actions: list[BuildAction] = []
    for index, entry in enumerate(entries):
        command_path = entry.get("command_path")
        if not command_path:
            raise GenerateError(f"action #{index} has no command_path")

        prerequisites: list[FileItem] = []
        for item in _list_field(entry, "prerequisites", index):
            if isinstance(item, dict):
                if "path" not in item:
                    raise GenerateError(f"action #{index} has a prerequisite without a path")
                path = str(item["path"])
                producer = item.get("producer", producers.get(path))
                if producer is not None and (
                    isinstance(producer, bool) or not isinstance(producer, int)
                ):
                    raise GenerateError(f"action #{index} has a non-integer producer")
            else:
                path = str(item)
                producer = producers.get(path)
            if producer is not None and not 0 <= producer < len(entries):
                logger.warning(
                    "Action #%d names producer #%s for %s, which does not exist",
                    index,
                    producer,
                    path,
                )
                producer = None
            prerequisites.append(FileItem(path, producer))

        produced = tuple(
            FileItem(str(p), index) for p in _list_field(entry, "produced", index)
        )

        actions.append(
            BuildAction(
                action_type=ActionType.from_name(str(entry.get("type", "Other"))),
                command_path=str(command_path),
                command_arguments=str(entry.get("command_arguments", "")),
                prerequisite_items=tuple(prerequisites),
                produced_items=produced,
                status_description=str(entry.get("status", "")),
                can_execute_remotely=_bool_field(entry, "can_execute_remotely", index),
                can_execute_remotely_with_sndbs=_bool_field(
                    entry, "can_execute_remotely_with_sndbs", index
                ),
            )
        )

    return actions


def load_actions(path: Path | str) -> list[BuildAction]:
    """Load planner actions from a JSON export file.

    Raises:
        GenerateError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise GenerateError(f"cannot load actions from {path}: {e}") from e

    actions = actions_from_data(data)
    logger.info("Loaded %d actions from %s", len(actions), path)
    return actions
