"""Position values for tasks within a column.

Positions are spaced by POSITION_STEP so a new task can be appended
without touching its neighbours. Drag-and-drop reorders rewrite the
column densely instead of interleaving.
"""
from typing import Iterable, Optional

POSITION_STEP = 100


def next_position(existing_positions: Iterable[Optional[float]]) -> float:
    """Position that places a new task after every existing one.

    Absent positions count as 0.
    """
    values = [p or 0 for p in existing_positions]
    if not values:
        return float(POSITION_STEP)
    return float(max(values) + POSITION_STEP)


def dense_position(index: int) -> float:
    """Slot value for a 0-based index when a whole column is renumbered."""
    return float((index + 1) * POSITION_STEP)


def drop_position(index: int) -> float:
    """Position a task dropped into another column at `index` receives."""
    return float(index * POSITION_STEP)
