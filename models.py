import uuid
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import datetime, timezone
from typing import Optional

from ordering.types import Status


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuthUser(SQLModel, table=True):
    """Shadow of the identity provider's user table so FKs resolve."""
    __tablename__ = "user"

    id: str = Field(primary_key=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)


class Board(SQLModel, table=True):
    """A Kanban board owned by one user"""
    __tablename__ = "boards"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(max_length=100)
    user_id: str = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)


class BoardMember(SQLModel, table=True):
    """Grants a non-owner access to a board"""
    __tablename__ = "board_members"
    __table_args__ = (UniqueConstraint("board_id", "user_id"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    board_id: str = Field(foreign_key="boards.id", ondelete="CASCADE", index=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Task(SQLModel, table=True):
    """Task card on a board"""
    __tablename__ = "tasks"

    id: str = Field(default_factory=new_id, primary_key=True)
    board_id: str = Field(foreign_key="boards.id", ondelete="CASCADE", index=True)
    # Creator; access is decided by the board, not by this column.
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")
    title: str = Field(max_length=200)
    description: Optional[str] = None
    status: Status = Field(default=Status.TODO, index=True)
    position: Optional[float] = None
    # Highest write sequence applied to position; 0 when never sequenced.
    position_seq: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
