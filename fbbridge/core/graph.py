# SPDX-License-Identifier: MIT
"""Ordering of planner actions.

FASTBuild only accepts references to nodes that were defined earlier in
the .bff file, so actions must be emitted producers-first. The planner
usually hands over a valid order already; when it does not, the list is
repaired with a depth-first topological sort that keeps the planner's
order wherever it is already consistent.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from fbbridge.core.errors import DependencyCycleError

if TYPE_CHECKING:
    from fbbridge.core.action import BuildAction, FileItem

logger = logging.getLogger(__name__)


def producer_indices(actions: Sequence[BuildAction], index: int) -> list[int]:
    """Indices of the actions producing the prerequisites of one action.

    Producers outside the list and the action itself are ignored.
    Order follows the prerequisite order, without duplicates.
    """
    result: list[int] = []
    for item in actions[index].prerequisite_items:
        producer = item.producer
        if producer is None or producer == index:
            continue
        if 0 <= producer < len(actions) and producer not in result:
            result.append(producer)
    return result


def count_inversions(actions: Sequence[BuildAction]) -> int:
    """Count prerequisite edges whose producer comes after the consumer."""
    inversions = 0
    for index in range(len(actions)):
        for producer in producer_indices(actions, index):
            if producer > index:
                inversions += 1
    return inversions


def sort_actions(actions: Sequence[BuildAction]) -> list[int]:
    """Order actions so every producer precedes its consumers.

    Args:
        actions: Actions in planner order.

    Returns:
        A permutation of ``range(len(actions))``. If the planner order is
        already valid it is returned unchanged.

    Raises:
        DependencyCycleError: If the producer/consumer edges form a cycle.
    """
    inversions = count_inversions(actions)
    if inversions == 0:
        return list(range(len(actions)))

    logger.info("Action graph has %d ordering inversions, re-sorting", inversions)

    order: list[int] = []
    placed: set[int] = set()
    on_stack: set[int] = set()

    for root in range(len(actions)):
        if root in placed:
            continue
        # Iterative DFS; each frame is (action index, pending producers)
        stack: list[tuple[int, list[int]]] = [
            (root, producer_indices(actions, root))
        ]
        on_stack.add(root)
        while stack:
            index, pending = stack[-1]
            if not pending:
                stack.pop()
                on_stack.discard(index)
                placed.add(index)
                order.append(index)
                continue
            producer = pending.pop(0)
            if producer in placed:
                continue
            if producer in on_stack:
                chain = [frame[0] for frame in stack]
                chain = chain[chain.index(producer) :] + [producer]
                action = actions[index]
                dependency = actions[producer]
                logger.error("Action is not topologically sorted.")
                logger.error("  %s %s", action.command_path, action.command_arguments)
                logger.error("Dependency")
                logger.error(
                    "  %s %s", dependency.command_path, dependency.command_arguments
                )
                raise DependencyCycleError([actions[i].describe() for i in chain])
            on_stack.add(producer)
            stack.append((producer, producer_indices(actions, producer)))

    return order


def reorder_actions(
    actions: Sequence[BuildAction], order: Sequence[int]
) -> list[BuildAction]:
    """Return the actions in ``order`` with producer indices remapped.

    After reordering, every FileItem.producer refers to a position in the
    returned list rather than in the planner's original list.
    """
    position = {old: new for new, old in enumerate(order)}

    def remap(items: tuple[FileItem, ...]) -> tuple[FileItem, ...]:
        return tuple(
            replace(item, producer=position.get(item.producer))
            if item.producer is not None
            else item
            for item in items
        )

    return [
        replace(
            actions[old],
            prerequisite_items=remap(actions[old].prerequisite_items),
            produced_items=remap(actions[old].produced_items),
        )
        for old in order
    ]
