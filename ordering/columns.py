"""Column views derived from a board's task collection.

Views are recomputed from the collection on every call and never cached.
"""
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import datetime, timezone

from .types import Status, Task


_UNKNOWN_TIME = datetime.min.replace(tzinfo=timezone.utc)


def _utc(value: Optional[datetime]) -> datetime:
    # Naive timestamps are stored UTC.
    if value is None:
        return _UNKNOWN_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sort_key(task: Task) -> Tuple[float, datetime, str]:
    # Absent positions sort as 0; created_at then id make the order total.
    return (task.position or 0, _utc(task.created_at), task.id)


def tasks_in_column(tasks: Iterable[Task], status: Status) -> List[Task]:
    """Tasks with the given status, ordered as the column renders them."""
    return sorted((t for t in tasks if t.status == status), key=sort_key)


def group_by_column(tasks: Iterable[Task]) -> Dict[Status, List[Task]]:
    tasks = list(tasks)
    return {status: tasks_in_column(tasks, status) for status in Status}


def board_order(tasks: Iterable[Task]) -> List[Task]:
    """All tasks, column by column in display order."""
    ordered: List[Task] = []
    for column in group_by_column(tasks).values():
        ordered.extend(column)
    return ordered
