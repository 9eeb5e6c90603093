import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session
from database import get_session
from models import Board, Task
from schemas import (
    TaskCreate, TaskUpdate, TaskResponse, PositionUpdate, DropRequest,
    MoveResponse, PositionWriteResponse, ApiResponse
)
from middleware.auth import verify_jwt_middleware
from access import current_user_id, require_board_access, require_task_access
from repository import (
    SqlTaskStorage, apply_position_write, board_task_rows, column_end_position,
    delete_task_row, edit_task_row, insert_task_row
)
from ordering.errors import PlanningError
from ordering.reconciler import BoardState, OptimisticReconciler, MOVE_FAILED
from ordering.types import DropResult, Move, NewTask

logger = logging.getLogger(__name__)

router = APIRouter()


def _task_data(task: Task) -> dict:
    return TaskResponse.model_validate(task).model_dump(mode="json")


@router.get("/boards/{board_id}/tasks", dependencies=[Depends(verify_jwt_middleware)])
async def list_tasks(
    board_id: str,
    board: Board = Depends(require_board_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Get all tasks of a board, column by column in display order

    Args:
        board_id: Board ID from URL
        board: Board the caller may access
        session: Database session

    Returns:
        ApiResponse with list of tasks
    """
    return ApiResponse(
        success=True,
        data=[_task_data(task) for task in board_task_rows(session, board_id)]
    )


@router.post(
    "/boards/{board_id}/tasks",
    dependencies=[Depends(verify_jwt_middleware)],
    status_code=status.HTTP_201_CREATED
)
async def create_task(
    board_id: str,
    task_data: TaskCreate,
    request: Request,
    board: Board = Depends(require_board_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Create a task; without an explicit position it goes to the end of its column

    Args:
        board_id: Board ID from URL
        task_data: Task creation data
        request: FastAPI request
        board: Board the caller may access
        session: Database session

    Returns:
        ApiResponse with created task
    """
    position = task_data.position
    if position is None:
        position = column_end_position(session, board_id, task_data.status)

    fields = NewTask(
        title=task_data.title,
        description=task_data.description,
        status=task_data.status
    )
    task = insert_task_row(session, fields, board_id, current_user_id(request), position)

    return ApiResponse(success=True, data=_task_data(task))


@router.post("/boards/{board_id}/moves", dependencies=[Depends(verify_jwt_middleware)])
async def move_task(
    board_id: str,
    drop: DropRequest,
    board: Board = Depends(require_board_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Apply a drag-and-drop result on the server

    Plans the move against the stored board and writes every changed
    position row by row.

    Args:
        board_id: Board ID from URL
        drop: Drag-end event
        board: Board the caller may access
        session: Database session

    Returns:
        ApiResponse with the board's tasks and the writes performed
    """
    reconciler = OptimisticReconciler(BoardState(board_id), SqlTaskStorage(session))
    if not await reconciler.load():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=reconciler.state.error
        )

    move = Move.from_drop(DropResult.from_dict(drop.model_dump(mode="json")))
    if move is None:
        return ApiResponse(success=True, data=MoveResponse(noop=True).model_dump(mode="json"))

    try:
        plan = reconciler.plan(move)
    except PlanningError as e:
        logger.warning("Rejected move on board %s: %s", board_id, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if plan.is_noop:
        return ApiResponse(success=True, data=MoveResponse(noop=True).model_dump(mode="json"))

    reconciler.apply(plan)
    result = await reconciler.persist(plan.persistence_ops)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=MOVE_FAILED
        )

    response = MoveResponse(
        noop=False,
        tasks=[TaskResponse.model_validate(row) for row in board_task_rows(session, board_id)],
        writes=[
            PositionWriteResponse(task_id=w.task_id, status=w.status, position=w.position)
            for w in result.writes
        ]
    )
    return ApiResponse(success=True, data=response.model_dump(mode="json"))


@router.get("/tasks/{task_id}", dependencies=[Depends(verify_jwt_middleware)])
async def get_task(
    task_id: str,
    task: Task = Depends(require_task_access)
) -> ApiResponse:
    """
    Get task details

    Args:
        task_id: Task ID
        task: Task on a board the caller may access

    Returns:
        ApiResponse with task details
    """
    return ApiResponse(success=True, data=_task_data(task))


@router.put("/tasks/{task_id}", dependencies=[Depends(verify_jwt_middleware)])
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    task: Task = Depends(require_task_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Edit a task's title and description

    Args:
        task_id: Task ID
        task_data: Task update data
        task: Task on a board the caller may access
        session: Database session

    Returns:
        ApiResponse with updated task
    """
    task = edit_task_row(session, task, task_data.title, task_data.description)

    return ApiResponse(success=True, data=_task_data(task))


@router.patch("/tasks/{task_id}/position", dependencies=[Depends(verify_jwt_middleware)])
async def update_task_position(
    task_id: str,
    position_data: PositionUpdate,
    task: Task = Depends(require_task_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Write one task's status and position

    Args:
        task_id: Task ID
        position_data: New status, position and optional write sequence
        task: Task on a board the caller may access
        session: Database session

    Returns:
        ApiResponse with whether the write was applied and the stored task
    """
    applied = apply_position_write(
        session, task, position_data.status, position_data.position, position_data.sequence
    )
    session.refresh(task)

    return ApiResponse(
        success=True,
        data={"applied": applied, "task": _task_data(task)}
    )


@router.delete("/tasks/{task_id}", dependencies=[Depends(verify_jwt_middleware)])
async def delete_task(
    task_id: str,
    task: Task = Depends(require_task_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Delete a task

    Args:
        task_id: Task ID
        task: Task on a board the caller may access
        session: Database session

    Returns:
        ApiResponse with success message
    """
    delete_task_row(session, task)

    return ApiResponse(
        success=True,
        data={"message": "Task deleted successfully"}
    )
