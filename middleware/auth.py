import logging
from typing import Optional

from fastapi import Depends, Request, HTTPException, status
from sqlmodel import Session, select

from database import get_session
from models import AuthUser
from utils.jwt import verify_jwt

logger = logging.getLogger(__name__)


def _bearer_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header"
        )

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format. Expected: Bearer <token>"
        )
    return parts[1]


def _sync_user(session: Session, user_id: str, email: Optional[str]) -> None:
    """Mirror the token's user into the shadow user table."""
    user = session.get(AuthUser, user_id)
    if user and (not email or user.email == email):
        return

    if email:
        owner = session.exec(select(AuthUser).where(AuthUser.email == email)).first()
        if owner and owner.id != user_id:
            logger.warning("Email %s already belongs to user %s", email, owner.id)
            email = None

    if user is None:
        user = AuthUser(id=user_id, email=email)
    elif email:
        user.email = email
    else:
        return

    session.add(user)
    session.commit()


async def verify_jwt_middleware(request: Request, session: Session = Depends(get_session)):
    """
    Verify the bearer JWT and attach the caller to request state

    Args:
        request: FastAPI request object
        session: Database session

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    payload = verify_jwt(_bearer_token(request.headers.get("Authorization")))

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    request.state.user_id = payload["sub"]
    request.state.user_email = payload.get("email")
    _sync_user(session, request.state.user_id, request.state.user_email)
