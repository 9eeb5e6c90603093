import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session, select
from database import get_session
from models import AuthUser, Board, BoardMember, Task
from schemas import BoardCreate, BoardUpdate, BoardResponse, MemberCreate, MemberResponse, ApiResponse
from middleware.auth import verify_jwt_middleware
from access import current_user_id, require_board_access, require_board_owner

logger = logging.getLogger(__name__)

router = APIRouter()


def _board_data(board: Board, role: str) -> dict:
    data = BoardResponse.model_validate(board)
    data.role = role
    return data.model_dump(mode="json")


def _member_data(member: BoardMember, user: AuthUser) -> dict:
    return MemberResponse(
        id=member.id,
        board_id=member.board_id,
        user_id=member.user_id,
        email=user.email if user else None,
        created_at=member.created_at
    ).model_dump(mode="json")


@router.get("/boards", dependencies=[Depends(verify_jwt_middleware)])
async def list_boards(
    request: Request,
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Boards the caller owns plus boards shared with them, newest first

    Args:
        request: FastAPI request (contains authenticated user info)
        session: Database session

    Returns:
        ApiResponse with list of boards, each tagged with the caller's role
    """
    user_id = current_user_id(request)

    owned = session.exec(select(Board).where(Board.user_id == user_id)).all()
    shared = session.exec(
        select(Board)
        .join(BoardMember, BoardMember.board_id == Board.id)
        .where(BoardMember.user_id == user_id, Board.user_id != user_id)
    ).all()

    boards = [(b, "owner") for b in owned] + [(b, "member") for b in shared]
    boards.sort(key=lambda item: item[0].created_at, reverse=True)

    return ApiResponse(
        success=True,
        data=[_board_data(board, role) for board, role in boards]
    )


@router.post(
    "/boards",
    dependencies=[Depends(verify_jwt_middleware)],
    status_code=status.HTTP_201_CREATED
)
async def create_board(
    board_data: BoardCreate,
    request: Request,
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Create a board owned by the caller

    Args:
        board_data: Board creation data
        request: FastAPI request
        session: Database session

    Returns:
        ApiResponse with created board
    """
    board = Board(name=board_data.name.strip(), user_id=current_user_id(request))

    session.add(board)
    session.commit()
    session.refresh(board)
    logger.info("Created board %s for %s", board.id, board.user_id)

    return ApiResponse(success=True, data=_board_data(board, "owner"))


@router.get("/boards/{board_id}", dependencies=[Depends(verify_jwt_middleware)])
async def get_board(
    board_id: str,
    request: Request,
    board: Board = Depends(require_board_access)
) -> ApiResponse:
    """Board details"""
    role = "owner" if board.user_id == current_user_id(request) else "member"
    return ApiResponse(success=True, data=_board_data(board, role))


@router.patch("/boards/{board_id}", dependencies=[Depends(verify_jwt_middleware)])
async def rename_board(
    board_id: str,
    board_data: BoardUpdate,
    board: Board = Depends(require_board_owner),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """Rename a board (owner only)"""
    board.name = board_data.name.strip()

    session.add(board)
    session.commit()
    session.refresh(board)

    return ApiResponse(success=True, data=_board_data(board, "owner"))


@router.delete("/boards/{board_id}", dependencies=[Depends(verify_jwt_middleware)])
async def delete_board(
    board_id: str,
    board: Board = Depends(require_board_owner),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Delete a board with its tasks and memberships (owner only)

    Args:
        board_id: Board ID
        board: Board the caller owns
        session: Database session

    Returns:
        ApiResponse with success message
    """
    # SQLite does not enforce ON DELETE CASCADE unless foreign keys are on
    for task in session.exec(select(Task).where(Task.board_id == board_id)).all():
        session.delete(task)
    for member in session.exec(select(BoardMember).where(BoardMember.board_id == board_id)).all():
        session.delete(member)
    session.delete(board)
    session.commit()
    logger.info("Deleted board %s", board_id)

    return ApiResponse(
        success=True,
        data={"message": "Board deleted successfully"}
    )


@router.get("/boards/{board_id}/members", dependencies=[Depends(verify_jwt_middleware)])
async def list_members(
    board_id: str,
    board: Board = Depends(require_board_access),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """Members a board is shared with"""
    rows = session.exec(
        select(BoardMember, AuthUser)
        .join(AuthUser, AuthUser.id == BoardMember.user_id)
        .where(BoardMember.board_id == board_id)
        .order_by(BoardMember.created_at)
    ).all()

    return ApiResponse(
        success=True,
        data=[_member_data(member, user) for member, user in rows]
    )


@router.post(
    "/boards/{board_id}/members",
    dependencies=[Depends(verify_jwt_middleware)],
    status_code=status.HTTP_201_CREATED
)
async def add_member(
    board_id: str,
    member_data: MemberCreate,
    board: Board = Depends(require_board_owner),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """
    Share a board with another user (owner only)

    Args:
        board_id: Board ID
        member_data: Target user, by id or email
        board: Board the caller owns
        session: Database session

    Returns:
        ApiResponse with the new membership
    """
    if member_data.user_id:
        user = session.get(AuthUser, member_data.user_id)
    else:
        user = session.exec(
            select(AuthUser).where(AuthUser.email == member_data.email.strip())
        ).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    if user.id == board.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The board owner already has access"
        )

    existing = session.exec(
        select(BoardMember).where(
            BoardMember.board_id == board_id, BoardMember.user_id == user.id
        )
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This user is already a member of the board"
        )

    member = BoardMember(board_id=board_id, user_id=user.id)
    session.add(member)
    session.commit()
    session.refresh(member)
    logger.info("Shared board %s with %s", board_id, user.id)

    return ApiResponse(success=True, data=_member_data(member, user))


@router.delete("/boards/{board_id}/members/{member_id}", dependencies=[Depends(verify_jwt_middleware)])
async def remove_member(
    board_id: str,
    member_id: str,
    board: Board = Depends(require_board_owner),
    session: Session = Depends(get_session)
) -> ApiResponse:
    """Stop sharing a board with a member (owner only)"""
    member = session.get(BoardMember, member_id)

    if not member or member.board_id != board_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )

    session.delete(member)
    session.commit()

    return ApiResponse(
        success=True,
        data={"message": "Member removed successfully"}
    )
