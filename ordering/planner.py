"""
Reorder planner: turns a drag-and-drop move into a Plan.

Same-column moves rewrite the whole column densely (one write per task).
Cross-column moves write only the moved task, unless its drop position
does not fit between its new neighbours, in which case the destination
column is renumbered. The source column is never renumbered.
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .columns import tasks_in_column
from .errors import PlanningError
from .positions import dense_position, drop_position
from .types import Move, Plan, PositionWrite, Task

logger = logging.getLogger(__name__)


def _find(tasks: Sequence[Task], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise PlanningError(f"Task not found with ID: {task_id}")


def _renumber(column: List[Task]) -> List[Task]:
    return [replace(task, position=dense_position(i)) for i, task in enumerate(column)]


def _fits(candidate: float, before: Optional[Task], after: Optional[Task]) -> bool:
    """True when candidate sorts strictly between its two neighbours."""
    if before is not None and not candidate > (before.position or 0):
        return False
    if after is not None and not candidate < (after.position or 0):
        return False
    return True


def _merge(tasks: Sequence[Task], changed: Sequence[Task]) -> List[Task]:
    by_id: Dict[str, Task] = {t.id: t for t in changed}
    return [by_id.get(t.id, t) for t in tasks]


def _writes(column: Sequence[Task]) -> tuple:
    return tuple(PositionWrite(t.id, t.status, t.position) for t in column)


def plan_move(tasks: Sequence[Task], move: Move) -> Plan:
    """Compute the post-move collection and the writes that persist it.

    Raises PlanningError when the task is unknown, is not in the column the
    move claims it came from, or the destination index is negative.
    """
    if move.in_place:
        return Plan.identity(tasks, move)

    moving = _find(tasks, move.task_id)
    if moving.status != move.from_status:
        raise PlanningError(
            f"Task {move.task_id} is in {moving.status.value}, not {move.from_status.value}"
        )
    if move.to_index < 0:
        raise PlanningError(f"Invalid destination index: {move.to_index}")

    moved = replace(moving, status=move.to_status)

    if move.same_column:
        column = tasks_in_column(tasks, move.from_status)
        current = next(i for i, t in enumerate(column) if t.id == moving.id)
        if current != move.from_index:
            logger.debug(
                "Drag source index %s for %s does not match column index %s",
                move.from_index, moving.id, current,
            )
        del column[current]
        column.insert(min(move.to_index, len(column)), moved)
        renumbered = _renumber(column)
        return Plan(_merge(tasks, renumbered), _writes(renumbered), move)

    destination = tasks_in_column(tasks, move.to_status)
    slot = min(move.to_index, len(destination))
    candidate = drop_position(move.to_index)
    before = destination[slot - 1] if slot > 0 else None
    after = destination[slot] if slot < len(destination) else None

    if _fits(candidate, before, after):
        placed = replace(moved, position=candidate)
        return Plan(_merge(tasks, [placed]), _writes([placed]), move)

    logger.debug(
        "Drop position %s for %s collides in %s; renumbering column",
        candidate, moving.id, move.to_status.value,
    )
    destination.insert(slot, moved)
    renumbered = _renumber(destination)
    return Plan(_merge(tasks, renumbered), _writes(renumbered), move)
