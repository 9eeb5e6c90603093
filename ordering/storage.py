"""Storage collaborator interface.

Every operation is a row-level write with no multi-row transaction.
Implementations raise PersistenceError when a write is rejected and
NotAuthorized when the caller has no access to the board.
"""
from typing import List, Optional, Protocol

from .types import NewTask, Status, Task


class TaskStorage(Protocol):

    async def fetch_tasks(self, board_id: str) -> List[Task]:
        ...

    async def update_task_position(
        self,
        task_id: str,
        status: Status,
        position: float,
        sequence: Optional[int] = None,
    ) -> bool:
        """Write status and position for one task.

        Returns False when a sequenced write was discarded as stale.
        """
        ...

    async def create_task(
        self, fields: NewTask, board_id: str, owner_id: str, position: float
    ) -> Task:
        ...

    async def update_task(
        self, task_id: str, title: str, description: Optional[str]
    ) -> Task:
        ...

    async def delete_task(self, task_id: str) -> bool:
        ...
