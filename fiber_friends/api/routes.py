"""
API Routes for Fiber Friends Backend

Endpoints:
- GET /health: Health check for warm-up
- POST /register: Register/login user
- POST /monster: Create the user's monster
- GET /monster: Read the active monster (no side effects)
- POST /monster/recover: Apply the daily recovery
- POST /activities/{category}/complete: Complete an activity and damage the monster
- GET /streaks: Streak counts and bonuses per activity
- GET /tomb: Tomb of retired monsters
"""
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
import logging

from fiber_friends.models.schemas import (
    HealthResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
    MonsterView,
    CreateMonsterRequest,
    TodayRequest,
    ActivityRequest,
    TrackerResult,
    FailureReason,
    StreaksResponse,
    TombResponse,
)
from fiber_friends.models.db_models import User
from fiber_friends.services.errors import StorageError
from fiber_friends.services.vitality import VitalityTracker, local_today
from fiber_friends.api.dependencies import get_current_user, get_firebase_user_info, get_tracker
from fiber_friends.database import get_db
from fiber_friends.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

# HTTP status for each tracker failure
FAILURE_STATUS = {
    FailureReason.MONSTER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.MONSTER_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    FailureReason.MONSTER_RETIRED: status.HTTP_409_CONFLICT,
    FailureReason.CONCURRENT_MODIFICATION: status.HTTP_409_CONFLICT,
    FailureReason.UNKNOWN_ACTIVITY: status.HTTP_400_BAD_REQUEST,
    FailureReason.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _resolve(result: TrackerResult) -> TrackerResult:
    """Return a successful result, or raise it as an HTTP error."""
    if result.success:
        return result
    raise HTTPException(
        status_code=FAILURE_STATUS.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=result.model_dump(mode="json"),
    )


def _storage_unavailable(error: StorageError) -> HTTPException:
    logger.error(f"Read failed: {error.detail}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"success": False, "reason": error.reason.value, "detail": error.detail},
    )


def _today(request: Optional[TodayRequest], user: User):
    if request and request.today:
        return request.today
    return local_today(user.timezone)


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        timezone=user.timezone,
        points=user.points or 0,
        created_at=user.created_at.isoformat(),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint for warm-up pings.
    """
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database_ok = False

    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        database=database_ok,
        version=settings.API_VERSION,
    )


# ============================================
# Protected Endpoints (Require Firebase Auth)
# ============================================

@router.post("/register", response_model=RegisterResponse)
async def register_user(
    request: RegisterRequest = None,
    firebase_user: dict = Depends(get_firebase_user_info),
    db: Session = Depends(get_db),
) -> RegisterResponse:
    """
    Register a new user or login existing user.

    Called after Firebase authentication on the frontend.
    """
    uid = firebase_user["uid"]
    timezone = request.timezone if request and request.timezone else "UTC"

    existing_user = db.query(User).filter(User.id == uid).first()
    if existing_user:
        logger.info(f"Existing user found: {uid}")
        return RegisterResponse(user=_user_response(existing_user), is_new_user=False)

    logger.info(f"Creating new user: {uid}")
    new_user = User(
        id=uid,
        email=firebase_user["email"],
        display_name=firebase_user.get("display_name"),
        timezone=timezone,
        points=0,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return RegisterResponse(user=_user_response(new_user), is_new_user=True)


@router.post("/monster", response_model=TrackerResult, status_code=status.HTTP_201_CREATED)
async def create_monster(
    request: CreateMonsterRequest,
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> TrackerResult:
    """
    Create the user's monster from a generated name and image.

    Only one monster may be active at a time.
    """
    result = tracker.create_monster(user.id, request.name, request.image_url, local_today(user.timezone))
    return _resolve(result)


@router.get("/monster", response_model=MonsterView)
async def get_monster(
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> MonsterView:
    """
    Get the active monster. Read-only: no recovery, no retirement.
    """
    try:
        view = tracker.get_monster(user.id)
    except StorageError as e:
        raise _storage_unavailable(e)
    if view is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active monster")
    return view


@router.post("/monster/recover", response_model=TrackerResult)
async def recover_monster(
    request: Optional[TodayRequest] = None,
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> TrackerResult:
    """
    Apply the once-a-day passive recovery.

    Pages call this on load; repeated calls on the same day do nothing.
    """
    return _resolve(tracker.apply_recovery(user.id, _today(request, user)))


@router.post("/activities/{category}/complete", response_model=TrackerResult)
async def complete_activity(
    category: str,
    request: Optional[ActivityRequest] = None,
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> TrackerResult:
    """
    Complete an activity and get the monster update.

    1. Records the completion (once per category per day)
    2. Updates the streak for the category
    3. Damages the monster by base + streak bonus
    4. Retires the monster to the tomb if it died

    Graded pages send base_damage and points in the body.
    """
    logger.info(f"User {user.id} completing activity: {category}")
    result = tracker.complete_activity(
        user.id,
        category,
        _today(request, user),
        base_damage=request.base_damage if request else None,
        points=request.points if request else None,
    )
    return _resolve(result)


@router.get("/streaks", response_model=StreaksResponse)
async def get_streaks(
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> StreaksResponse:
    """
    Streak counts for every activity category, zero where never logged.
    """
    try:
        return StreaksResponse(streaks=tracker.list_streaks(user.id))
    except StorageError as e:
        raise _storage_unavailable(e)


@router.get("/tomb", response_model=TombResponse)
async def get_tomb(
    user: User = Depends(get_current_user),
    tracker: VitalityTracker = Depends(get_tracker),
) -> TombResponse:
    """
    The Tomb of Monsters, newest first.
    """
    try:
        return TombResponse(entries=tracker.list_tomb(user.id))
    except StorageError as e:
        raise _storage_unavailable(e)
