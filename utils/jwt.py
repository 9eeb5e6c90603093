import jwt
from typing import Optional

from config import AUTH_SECRET, JWT_ALGORITHM


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify JWT token and return payload

    Args:
        token: JWT token string

    Returns:
        Decoded payload if valid and carrying a subject, None otherwise
    """
    try:
        # PyJWT rejects expired tokens when an exp claim is present
        payload = jwt.decode(token, AUTH_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    if not payload.get("sub"):
        return None

    return payload


def create_access_token(user_id: str, email: Optional[str] = None, expires_at: Optional[int] = None) -> str:
    """
    Issue a token in the shape verify_jwt accepts

    Args:
        user_id: Subject claim
        email: Optional email claim
        expires_at: Optional exp claim (unix timestamp)

    Returns:
        Encoded JWT
    """
    payload = {"sub": user_id}
    if email:
        payload["email"] = email
    if expires_at is not None:
        payload["exp"] = expires_at
    return jwt.encode(payload, AUTH_SECRET, algorithm=JWT_ALGORITHM)
