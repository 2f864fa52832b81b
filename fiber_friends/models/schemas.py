from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import NamedTuple, Optional, List
from datetime import date, datetime


class Activity(NamedTuple):
    """Fixed per-feature reward for completing an activity."""
    base_damage: int
    points: int
    label: str


# Activity catalog: category key -> base damage dealt to the monster and
# points earned by the user. Graded amounts come from the feature pages;
# the tracker never derives them.
ACTIVITY_CATALOG = {
    "kindness": Activity(base_damage=2, points=15, label="the power of kindness"),
    "mindful_moment": Activity(base_damage=3, points=10, label="a mindful moment"),
    "affirmation": Activity(base_damage=2, points=10, label="an amplified affirmation"),
    "thought_reframe": Activity(base_damage=5, points=20, label="a reframed thought"),
    "riddle": Activity(base_damage=8, points=25, label="a solved riddle"),
    "knowledge_quiz": Activity(base_damage=4, points=15, label="a knowledge nugget"),
    "exercise": Activity(base_damage=6, points=15, label="a workout"),
    "food": Activity(base_damage=4, points=10, label="a healthy meal"),
    "sleep": Activity(base_damage=3, points=10, label="a good night's sleep"),
    "prescription": Activity(base_damage=2, points=5, label="a treatment taken on time"),
}

VALID_ACTIVITY_CATEGORIES = list(ACTIVITY_CATALOG)


class VitalityState(str, Enum):
    """Lifecycle of a monster record."""
    ALIVE = "alive"
    RETIRING = "retiring"
    RETIRED = "retired"


class FailureReason(str, Enum):
    """Why a tracker operation did not succeed."""
    STORAGE_ERROR = "storage_error"
    MONSTER_NOT_FOUND = "monster_not_found"
    MONSTER_ALREADY_EXISTS = "monster_already_exists"
    MONSTER_RETIRED = "monster_retired"
    CONCURRENT_MODIFICATION = "concurrent_modification"
    UNKNOWN_ACTIVITY = "unknown_activity"


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""
    status: str
    database: bool
    version: str


# ============================================
# Users
# ============================================

class UserResponse(BaseModel):
    """User info response."""
    id: str
    email: str
    display_name: Optional[str] = None
    timezone: str = "UTC"
    points: int = 0
    created_at: str


class RegisterRequest(BaseModel):
    """Request body for /register endpoint (optional, uses token)."""
    timezone: Optional[str] = Field("UTC", description="User's IANA timezone")


class RegisterResponse(BaseModel):
    """Response body for /register endpoint."""
    user: UserResponse
    is_new_user: bool


# ============================================
# Monster
# ============================================

class MonsterView(BaseModel):
    """Read-only view of the active monster."""
    model_config = ConfigDict(from_attributes=True)

    name: str
    image_url: str
    health: float
    last_recovery_date: Optional[date] = None
    generated: bool = True
    status: str = Field("", description="Human-readable health band")
    health_bar_percent: float = Field(0.0, ge=0.0, le=100.0)


class CreateMonsterRequest(BaseModel):
    """Request body for POST /monster."""
    name: str = Field(..., min_length=1, max_length=80)
    image_url: str = Field(..., min_length=1, description="Generated image reference")


class TodayRequest(BaseModel):
    """Optional user-local date; derived from the user's timezone when omitted."""
    today: Optional[date] = None


class ActivityRequest(TodayRequest):
    """
    Request body for completing an activity.

    Graded features (exercise, food, mindful moments, quizzes) send their
    own base damage and points; the catalog values are used otherwise.
    """
    base_damage: Optional[int] = Field(None, ge=0, le=100)
    points: Optional[int] = Field(None, ge=0, le=1000)


class TombEntryView(BaseModel):
    """One archived monster."""
    model_config = ConfigDict(from_attributes=True)

    name: str
    image_url: str
    cause: str
    final_health: float
    died_at: datetime


class TombResponse(BaseModel):
    entries: List[TombEntryView]


class StreakView(BaseModel):
    category: str
    count: int = Field(..., ge=0)
    last_date: Optional[date] = Field(None, description="Last day counted")
    bonus_damage: int = Field(..., ge=0)


class StreaksResponse(BaseModel):
    streaks: List[StreakView]


# ============================================
# Tracker outcomes
# ============================================

class RecoveryOutcome(BaseModel):
    """What the recovery ticker did."""
    applied: bool
    amount: int = 0
    health_before: float
    health_after: float
    last_recovery_date: Optional[date] = None


class DamageOutcome(BaseModel):
    """What a completed activity did to the monster."""
    category: str
    already_completed: bool = False
    base_damage: int = 0
    bonus_damage: int = 0
    total_damage: int = 0
    health_before: Optional[float] = None
    health_after: Optional[float] = None
    streak_count: int = 0
    points_awarded: int = 0


class RetirementOutcome(BaseModel):
    """A monster moved to the tomb."""
    name: str
    cause: str
    final_health: float
    died_at: datetime


class TrackerResult(BaseModel):
    """
    Typed result returned to calling controllers.

    success is False only when reason is set. A retirement is a successful
    mutation: state is RETIRED and retirement describes the tomb entry.
    """
    success: bool
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None
    state: Optional[VitalityState] = None
    monster: Optional[MonsterView] = None
    recovery: Optional[RecoveryOutcome] = None
    damage: Optional[DamageOutcome] = None
    retirement: Optional[RetirementOutcome] = None
    message: Optional[str] = Field(None, description="Notification text for the UI")
