# SPDX-License-Identifier: MIT
"""Action translators: planner actions to FASTBuild nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fbbridge.core.action import ActionType
from fbbridge.translators.compile import translate_compile
from fbbridge.translators.context import TranslationContext
from fbbridge.translators.link import translate_link

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction
    from fbbridge.core.node import BuildNode


def translate_action(
    action: BuildAction, index: int, context: TranslationContext
) -> list[BuildNode]:
    """Translate a compile or link action.

    Raises:
        TranslationError: If the action cannot be translated.
        ValueError: For action types that have no translation.
    """
    if action.action_type is ActionType.COMPILE:
        return translate_compile(action, index, context)
    if action.action_type is ActionType.LINK:
        return translate_link(action, index, context)
    raise ValueError(f"no translation for {action.action_type.value} actions")


__all__ = [
    "TranslationContext",
    "translate_action",
    "translate_compile",
    "translate_link",
]
