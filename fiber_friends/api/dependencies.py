"""
API Dependencies

FastAPI dependencies for authentication, database access and the tracker.
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, Header, status
from sqlalchemy.orm import Session

from fiber_friends.database import get_db
from fiber_friends.services.firebase import firebase_auth
from fiber_friends.services.store import MonsterStore
from fiber_friends.services.vitality import VitalityTracker
from fiber_friends.models.db_models import User

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an "Authorization: Bearer <token>" header."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return parts[1]


async def get_firebase_user_info(
    authorization: Optional[str] = Header(None),
) -> dict:
    """
    Get Firebase user info without requiring database user.

    Used for registration flow where user doesn't exist in DB yet.

    Returns:
        Dict with uid, email, display_name from Firebase token.

    Raises:
        HTTPException: If token is missing or invalid.
    """
    user_info = firebase_auth.get_user_info(_bearer_token(authorization))

    if not user_info:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_info


async def get_current_user(
    firebase_user: dict = Depends(get_firebase_user_info),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.

    Raises:
        HTTPException: If token is missing, invalid, or user not registered.
    """
    user = db.query(User).filter(User.id == firebase_user["uid"]).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found. Please register first.",
        )

    return user


def get_tracker(db: Session = Depends(get_db)) -> VitalityTracker:
    """Vitality tracker bound to the request's session."""
    return VitalityTracker(MonsterStore(db))
