# SPDX-License-Identifier: MIT
"""Custom exceptions for fbbridge.

All fbbridge exceptions inherit from FbBridgeError, which includes
optional context (usually the offending command line) for better
error messages.
"""

from __future__ import annotations


class FbBridgeError(Exception):
    """Base class for all fbbridge exceptions.

    Attributes:
        message: The error message.
        context: Optional extra detail, e.g. the action's command line.
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            return f"{self.message} ({self.context})"
        return self.message


class ConfigureError(FbBridgeError):
    """Error while loading or validating settings."""


class GenerateError(FbBridgeError):
    """Error during the generate phase.

    Raised when the .bff file cannot be written or the planner input
    cannot be read.
    """


class TranslationError(FbBridgeError):
    """A single action could not be translated.

    The generator logs this and skips the action; the rest of the graph
    is still translated.
    """


class DependencyCycleError(FbBridgeError):
    """Circular dependency detected in the action graph.

    Attributes:
        cycle: Descriptions of the actions forming the cycle.
        action: The action that could not be ordered.
        dependency: The dependency of ``action`` that closes the cycle.
    """

    def __init__(self, cycle: list[str], context: str | None = None) -> None:
        self.cycle = cycle
        self.action = cycle[-2] if len(cycle) >= 2 else cycle[0]
        self.dependency = cycle[-1]
        cycle_str = " -> ".join(cycle)
        super().__init__(f"dependency cycle in action graph: {cycle_str}", context)


class ToolNotFoundError(ConfigureError):
    """Required tool was not found.

    Attributes:
        tool: The name of the tool that was not found.
    """

    def __init__(self, tool: str, context: str | None = None) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}", context)
