"""
Value types shared by the ordering engine.

Tasks are immutable snapshots; every change produces a new value via
dataclasses.replace so a Plan can carry the whole post-move collection
without aliasing the pre-move one.
"""
from enum import Enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, Sequence, Tuple


class Status(str, Enum):
    """Board columns, in display order."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def parse(cls, value: Any) -> "Status":
        if isinstance(value, cls):
            return value
        return cls(str(value))


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Task:
    """A task as the ordering engine sees it."""
    id: str
    title: str
    status: Status
    board_id: str
    position: Optional[float] = None
    description: Optional[str] = None
    # None when unknown; such tasks tie-break by id only.
    created_at: Optional[datetime] = None
    user_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Build from an API payload or a model dump."""
        position = data.get("position")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            status=Status.parse(data.get("status", Status.TODO)),
            board_id=str(data.get("board_id", "")),
            position=float(position) if position is not None else None,
            description=data.get("description"),
            created_at=_parse_datetime(data.get("created_at")),
            user_id=data.get("user_id"),
        )


@dataclass(frozen=True)
class NewTask:
    """Fields a user supplies when creating a task."""
    title: str
    description: Optional[str] = None
    status: Status = Status.TODO


@dataclass(frozen=True)
class PositionWrite:
    """One row-level write: move task_id to (status, position)."""
    task_id: str
    status: Status
    position: float
    sequence: Optional[int] = None


@dataclass(frozen=True)
class DraggableLocation:
    column_id: str
    index: int

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["DraggableLocation"]:
        if data is None:
            return None
        column_id = data.get("droppableId", data.get("columnId", data.get("column_id")))
        return cls(column_id=str(column_id), index=int(data["index"]))


@dataclass(frozen=True)
class DropResult:
    """A drag-end event. destination is None when the drag was cancelled."""
    draggable_id: str
    source: DraggableLocation
    destination: Optional[DraggableLocation] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DropResult":
        draggable_id = data.get("draggableId", data.get("draggable_id"))
        return cls(
            draggable_id=str(draggable_id),
            source=DraggableLocation.from_dict(data["source"]),
            destination=DraggableLocation.from_dict(data.get("destination")),
        )


@dataclass(frozen=True)
class Move:
    """A resolved drag: which task, from where, to where."""
    task_id: str
    from_status: Status
    to_status: Status
    from_index: int
    to_index: int

    @property
    def same_column(self) -> bool:
        return self.from_status == self.to_status

    @property
    def in_place(self) -> bool:
        return self.same_column and self.from_index == self.to_index

    @classmethod
    def from_drop(cls, drop: DropResult) -> Optional["Move"]:
        """Resolve a drop event; None for a cancelled drag.

        Raises ValueError when a column id is not a known status.
        """
        if drop.destination is None:
            return None
        return cls(
            task_id=drop.draggable_id,
            from_status=Status.parse(drop.source.column_id),
            to_status=Status.parse(drop.destination.column_id),
            from_index=drop.source.index,
            to_index=drop.destination.index,
        )


@dataclass(frozen=True)
class Plan:
    """Output of the reorder planner."""
    updated_tasks: Sequence[Task]
    persistence_ops: Tuple[PositionWrite, ...] = ()
    move: Optional[Move] = None

    @property
    def is_noop(self) -> bool:
        return not self.persistence_ops

    @classmethod
    def identity(cls, tasks: Sequence[Task], move: Optional[Move] = None) -> "Plan":
        return cls(updated_tasks=tasks, persistence_ops=(), move=move)
