"""Error taxonomy for the ordering engine."""
from typing import Optional


class KanbanError(Exception):
    """Base class for ordering engine errors."""


class PlanningError(KanbanError):
    """A drop could not be planned; nothing was changed."""


class PersistenceError(KanbanError):
    """A storage write was rejected or could not be delivered."""

    def __init__(self, message: str, task_id: Optional[str] = None):
        super().__init__(message)
        self.task_id = task_id


class NotAuthorized(KanbanError):
    """The caller has no access to the board."""
