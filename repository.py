"""
SQL-backed storage for board tasks.

Each write commits on its own; there is no transaction spanning several
rows, so a batch of position writes can partially succeed.

The row-level helpers are shared by SqlTaskStorage and the task routes so
the trimming and updated_at rules live in one place.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from models import Task as TaskRow, utc_now
from ordering.columns import board_order
from ordering.errors import PersistenceError
from ordering.positions import next_position
from ordering.types import NewTask, Status, Task

logger = logging.getLogger(__name__)


def to_task(row: TaskRow) -> Task:
    """Convert a tasks row to the ordering engine's value type"""
    return Task(
        id=row.id,
        title=row.title,
        status=Status.parse(row.status),
        board_id=row.board_id,
        position=row.position,
        description=row.description,
        created_at=row.created_at,
        user_id=row.user_id,
    )


def board_task_rows(session: Session, board_id: str) -> List[TaskRow]:
    """Rows of one board, column by column in display order"""
    rows = session.exec(select(TaskRow).where(TaskRow.board_id == board_id)).all()
    by_id = {row.id: row for row in rows}
    return [by_id[task.id] for task in board_order(to_task(row) for row in rows)]


def column_end_position(session: Session, board_id: str, status: Status) -> float:
    """Position that appends a task to the end of a stored column"""
    positions = session.exec(
        select(TaskRow.position).where(TaskRow.board_id == board_id, TaskRow.status == status)
    ).all()
    return next_position(positions)


def insert_task_row(
    session: Session,
    fields: NewTask,
    board_id: str,
    owner_id: Optional[str],
    position: float
) -> TaskRow:
    """Insert a task row and commit"""
    row = TaskRow(
        board_id=board_id,
        user_id=owner_id or None,
        title=fields.title.strip(),
        description=fields.description.strip() if fields.description else None,
        status=fields.status,
        position=position,
    )
    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info("Created task %s on board %s at %s", row.id, board_id, position)
    return row


def edit_task_row(
    session: Session,
    row: TaskRow,
    title: Optional[str] = None,
    description: Optional[str] = None
) -> TaskRow:
    """Set title and/or description on one row and commit; None leaves a field as is"""
    if title is not None:
        row.title = title.strip()
    if description is not None:
        row.description = description.strip()
    row.updated_at = utc_now()
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def delete_task_row(session: Session, row: TaskRow) -> None:
    task_id, board_id = row.id, row.board_id
    session.delete(row)
    session.commit()
    logger.info("Deleted task %s from board %s", task_id, board_id)


def apply_position_write(
    session: Session,
    row: TaskRow,
    status: Status,
    position: float,
    sequence: Optional[int] = None
) -> bool:
    """
    Set status and position on one row and commit

    A sequenced write older than the last applied one is discarded.

    Returns:
        True if applied, False if discarded as stale
    """
    if sequence is not None:
        if sequence <= row.position_seq:
            logger.info(
                "Discarding stale position write for %s (seq %s <= %s)",
                row.id, sequence, row.position_seq
            )
            return False
        row.position_seq = sequence

    row.status = status
    row.position = position
    row.updated_at = utc_now()
    session.add(row)
    session.commit()
    return True


class SqlTaskStorage:
    """Task storage over a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, task_id: str) -> TaskRow:
        row = self.session.get(TaskRow, task_id)
        if not row:
            raise PersistenceError(f"Task not found: {task_id}", task_id=task_id)
        return row

    def _failed(self, e: SQLAlchemyError, task_id: Optional[str] = None) -> PersistenceError:
        self.session.rollback()
        return PersistenceError(str(e), task_id=task_id)

    async def fetch_tasks(self, board_id: str) -> List[Task]:
        return [to_task(row) for row in board_task_rows(self.session, board_id)]

    async def update_task_position(
        self,
        task_id: str,
        status: Status,
        position: float,
        sequence: Optional[int] = None,
    ) -> bool:
        row = self._row(task_id)
        try:
            return apply_position_write(self.session, row, status, position, sequence)
        except SQLAlchemyError as e:
            raise self._failed(e, task_id) from e

    async def create_task(
        self, fields: NewTask, board_id: str, owner_id: str, position: float
    ) -> Task:
        try:
            row = insert_task_row(self.session, fields, board_id, owner_id, position)
        except SQLAlchemyError as e:
            raise self._failed(e) from e
        return to_task(row)

    async def update_task(
        self, task_id: str, title: str, description: Optional[str]
    ) -> Task:
        row = self._row(task_id)
        try:
            row = edit_task_row(self.session, row, title, description)
        except SQLAlchemyError as e:
            raise self._failed(e, task_id) from e
        return to_task(row)

    async def delete_task(self, task_id: str) -> bool:
        row = self._row(task_id)
        try:
            delete_task_row(self.session, row)
        except SQLAlchemyError as e:
            raise self._failed(e, task_id) from e
        return True
