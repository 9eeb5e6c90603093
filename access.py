"""
Board access control.

A user may open a board they own or one shared with them through a
board_members row. Only the owner may rename, delete or share it.
"""
from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session, select

from database import get_session
from models import Board, BoardMember, Task


def current_user_can_access_board(session: Session, board_id: str, user_id: str) -> bool:
    board = session.get(Board, board_id)
    if not board:
        return False
    if board.user_id == user_id:
        return True
    member = session.exec(
        select(BoardMember).where(
            BoardMember.board_id == board_id, BoardMember.user_id == user_id
        )
    ).first()
    return member is not None


def is_board_owner(session: Session, board_id: str, user_id: str) -> bool:
    board = session.get(Board, board_id)
    return board is not None and board.user_id == user_id


def current_user_id(request: Request) -> str:
    """User id attached by verify_jwt_middleware"""
    return request.state.user_id


def _get_board(session: Session, board_id: str) -> Board:
    board = session.get(Board, board_id)
    if not board:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found"
        )
    return board


async def require_board_access(
    board_id: str,
    request: Request,
    session: Session = Depends(get_session)
) -> Board:
    """Dependency: the board, if the caller owns it or is a member."""
    board = _get_board(session, board_id)
    if not current_user_can_access_board(session, board_id, current_user_id(request)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this board"
        )
    return board


async def require_board_owner(
    board_id: str,
    request: Request,
    session: Session = Depends(get_session)
) -> Board:
    """Dependency: the board, if the caller owns it."""
    board = _get_board(session, board_id)
    if not is_board_owner(session, board_id, current_user_id(request)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the board owner can do this"
        )
    return board


async def require_task_access(
    task_id: str,
    request: Request,
    session: Session = Depends(get_session)
) -> Task:
    """Dependency: the task, if the caller can access its board."""
    task = session.get(Task, task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    if not current_user_can_access_board(session, task.board_id, current_user_id(request)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this board"
        )
    return task
