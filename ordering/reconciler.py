"""
Optimistic state reconciler.

Owns a board's local task collection. A drag gesture is planned against
the local state, applied to it synchronously, and only then persisted
through the storage collaborator. Failed writes surface an error message
on the state; the optimistic change is kept (no rollback, no retry) until
the next full load().

Gesture lifecycle:
  IDLE -> PLAN_COMPUTED -> LOCAL_STATE_APPLIED -> PERSISTING
       -> PERSISTED_OK -> IDLE
       -> PERSISTED_PARTIAL_FAILURE -> ERROR_SURFACED -> IDLE
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .columns import board_order, group_by_column, tasks_in_column
from .errors import PlanningError
from .planner import plan_move
from .positions import next_position
from .storage import TaskStorage
from .types import DropResult, Move, NewTask, Plan, PositionWrite, Status, Task

logger = logging.getLogger(__name__)

MOVE_FAILED = "Failed to update task position. Please try again."
LOAD_FAILED = "Failed to load tasks. Please try refreshing the page."
CREATE_FAILED = "Failed to create task. Please try again."
UPDATE_FAILED = "Failed to update task. Please try again."
DELETE_FAILED = "Failed to delete task. Please try again."


class DragPhase(Enum):
    IDLE = "idle"
    PLAN_COMPUTED = "plan_computed"
    LOCAL_STATE_APPLIED = "local_state_applied"
    PERSISTING = "persisting"
    PERSISTED_OK = "persisted_ok"
    PERSISTED_PARTIAL_FAILURE = "persisted_partial_failure"
    ERROR_SURFACED = "error_surfaced"


@dataclass
class PersistResult:
    """Outcome of one batch of position writes."""
    writes: Tuple[PositionWrite, ...]
    failed: List[Tuple[PositionWrite, BaseException]] = field(default_factory=list)
    stale: List[PositionWrite] = field(default_factory=list)
    # Phases this gesture went through, in order.
    transitions: List[DragPhase] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class BoardState:
    """The local task collection of one board.

    Read freely; only OptimisticReconciler writes to it.
    """

    def __init__(self, board_id: str, tasks: Iterable[Task] = ()):
        self.board_id = board_id
        self._tasks: Tuple[Task, ...] = tuple(tasks)
        self._error: Optional[str] = None
        self._version = 0

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return self._tasks

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def version(self) -> int:
        return self._version

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def column(self, status: Status) -> List[Task]:
        return tasks_in_column(self._tasks, status)

    def columns(self) -> Dict[Status, List[Task]]:
        return group_by_column(self._tasks)

    def _replace(self, tasks: Iterable[Task]) -> None:
        self._tasks = tuple(tasks)
        self._version += 1

    def _set_error(self, message: Optional[str]) -> None:
        self._error = message


class OptimisticReconciler:
    """Applies moves locally first, then persists them."""

    def __init__(self, state: BoardState, storage: TaskStorage, sequence_writes: bool = False):
        self.state = state
        self.storage = storage
        self.sequence_writes = sequence_writes
        self._sequences: Dict[str, int] = {}

    # -- drag gestures -------------------------------------------------

    def plan(self, move: Move) -> Plan:
        return plan_move(self.state.tasks, move)

    def apply(self, plan: Plan) -> None:
        """Write the plan's tasks into local state. Synchronous."""
        if plan.is_noop:
            return
        self.state._replace(plan.updated_tasks)

    def _stamp(self, ops: Sequence[PositionWrite]) -> Tuple[PositionWrite, ...]:
        if not self.sequence_writes:
            return tuple(ops)
        stamped = []
        now = time.time_ns() // 1000
        for op in ops:
            if op.sequence is None:
                # Microsecond clock, forced strictly increasing per task.
                seq = max(self._sequences.get(op.task_id, 0) + 1, now)
                self._sequences[op.task_id] = seq
                op = replace(op, sequence=seq)
            stamped.append(op)
        return tuple(stamped)

    async def persist(
        self,
        ops: Sequence[PositionWrite],
        transitions: Optional[List[DragPhase]] = None,
    ) -> PersistResult:
        """Send every write concurrently; surface an error if any fails.

        Phases are appended to `transitions`, which belongs to one gesture
        so overlapping gestures keep separate histories.
        """
        writes = self._stamp(ops)
        result = PersistResult(writes=writes, transitions=list(transitions or []))
        result.transitions.append(DragPhase.PERSISTING)
        outcomes = await asyncio.gather(
            *(
                self.storage.update_task_position(w.task_id, w.status, w.position, w.sequence)
                for w in writes
            ),
            return_exceptions=True,
        )
        for write, outcome in zip(writes, outcomes):
            if isinstance(outcome, BaseException):
                result.failed.append((write, outcome))
            elif outcome is False:
                result.stale.append(write)

        if result.stale:
            logger.info(
                "Discarded %d stale position writes: %s",
                len(result.stale), [w.task_id for w in result.stale],
            )
        if result.failed:
            result.transitions.append(DragPhase.PERSISTED_PARTIAL_FAILURE)
            logger.error(
                "Failed to update task position in storage (%d of %d writes): %s",
                len(result.failed), len(writes),
                ", ".join(f"{w.task_id}: {exc}" for w, exc in result.failed),
            )
            self.state._set_error(MOVE_FAILED)
            result.transitions.append(DragPhase.ERROR_SURFACED)
        else:
            result.transitions.append(DragPhase.PERSISTED_OK)
        result.transitions.append(DragPhase.IDLE)
        return result

    async def move(self, move: Move) -> Optional[PersistResult]:
        """Run one gesture end to end.

        Returns None when nothing was written: an in-place drop or a move
        that could not be planned.
        """
        try:
            plan = self.plan(move)
        except PlanningError as e:
            logger.warning("Ignoring drop: %s", e)
            return None
        if plan.is_noop:
            return None
        transitions = [DragPhase.PLAN_COMPUTED]
        self.apply(plan)
        transitions.append(DragPhase.LOCAL_STATE_APPLIED)
        logger.debug(
            "Applied move of %s to %s[%d]; %d writes pending",
            move.task_id, move.to_status.value, move.to_index, len(plan.persistence_ops),
        )
        return await self.persist(plan.persistence_ops, transitions)

    async def handle_drop(self, drop: DropResult) -> Optional[PersistResult]:
        """Entry point for a drag-end event."""
        try:
            move = Move.from_drop(drop)
        except ValueError as e:
            logger.warning("Ignoring drop on unknown column: %s", e)
            return None
        if move is None:
            return None
        return await self.move(move)

    # -- collection lifecycle ------------------------------------------

    async def load(self) -> bool:
        """Replace local state with the stored collection."""
        try:
            tasks = await self.storage.fetch_tasks(self.state.board_id)
        except Exception as e:
            logger.error("Error fetching tasks for board %s: %s", self.state.board_id, e)
            self.state._set_error(LOAD_FAILED)
            return False
        self.state._replace(board_order(tasks))
        self.state._set_error(None)
        return True

    async def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        status: Status = Status.TODO,
        owner_id: str = "",
    ) -> Optional[Task]:
        """Append a new task to the end of its column."""
        if not title.strip():
            return None
        self.state._set_error(None)
        position = next_position(t.position for t in self.state.column(status))
        fields = NewTask(title=title.strip(), description=description, status=status)
        try:
            task = await self.storage.create_task(fields, self.state.board_id, owner_id, position)
        except Exception as e:
            logger.error("Error creating task: %s", e)
            self.state._set_error(CREATE_FAILED)
            return None
        self.state._replace(self.state.tasks + (task,))
        return task

    async def update_task(
        self, task_id: str, title: str, description: Optional[str] = None
    ) -> Optional[Task]:
        self.state._set_error(None)
        try:
            task = await self.storage.update_task(task_id, title, description)
        except Exception as e:
            logger.error("Error updating task %s: %s", task_id, e)
            self.state._set_error(UPDATE_FAILED)
            return None
        self.state._replace(task if t.id == task_id else t for t in self.state.tasks)
        return task

    async def delete_task(self, task_id: str) -> bool:
        self.state._set_error(None)
        try:
            await self.storage.delete_task(task_id)
        except Exception as e:
            logger.error("Error deleting task %s: %s", task_id, e)
            self.state._set_error(DELETE_FAILED)
            return False
        self.state._replace(t for t in self.state.tasks if t.id != task_id)
        return True
