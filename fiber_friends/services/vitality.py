"""
Vitality Service

Monster health, daily recovery, activity damage, streaks and retirement.
This is the core game logic for Fiber Friends; every feature page goes
through here instead of doing its own health arithmetic.
"""
import logging
import random
from datetime import date, datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fiber_friends.config import settings
from fiber_friends.models.db_models import Monster
from fiber_friends.models.schemas import (
    ACTIVITY_CATALOG,
    DamageOutcome,
    MonsterView,
    RecoveryOutcome,
    RetirementOutcome,
    StreakView,
    TombEntryView,
    TrackerResult,
    VitalityState,
)
from fiber_friends.services import narrator
from fiber_friends.services.errors import (
    TrackerError,
    MonsterNotFoundError,
    MonsterAlreadyExistsError,
    MonsterRetiredError,
    UnknownActivityError,
)
from fiber_friends.services.store import MonsterStore

logger = logging.getLogger(__name__)

# Cause recorded when a monster is found already past the threshold
LINGERING_CAUSE = "wounds it could not shake off"


def local_today(timezone: Optional[str]) -> date:
    """
    Today's calendar date in the user's timezone.

    Args:
        timezone: IANA timezone name, e.g. "Europe/London".

    Returns:
        The local date; UTC is used for a missing or unknown zone.
    """
    try:
        tz = ZoneInfo(timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {timezone!r}, using UTC")
        tz = ZoneInfo("UTC")
    return datetime.now(tz).date()


# ============================================
# Health arithmetic
# ============================================

def is_alive(health: float) -> bool:
    return health > settings.MONSTER_DEATH_THRESHOLD


def roll_initial_health(rng: random.Random) -> int:
    return rng.randint(settings.INITIAL_HEALTH_MIN, settings.INITIAL_HEALTH_MAX)


def roll_recovery(rng: random.Random) -> int:
    return rng.randint(settings.MIN_RECOVERY, settings.MAX_RECOVERY)


def recovery_due(health: float, last_recovery_date: Optional[date], today: date) -> bool:
    """Recovery runs at most once per calendar day and never for a dead monster."""
    return last_recovery_date != today and is_alive(health)


def recover_health(health: float, amount: float) -> float:
    return min(health + amount, settings.MAX_MONSTER_HEALTH)


def damage_health(health: float, total_damage: float) -> float:
    """
    Apply damage to health.

    Only the ceiling is clamped. Health may drop well below the death
    threshold; the retirement check handles that.
    """
    return min(settings.MAX_MONSTER_HEALTH, health - total_damage)


# ============================================
# Streaks
# ============================================

def next_streak_count(count: int, last_date: Optional[date], today: date) -> int:
    """
    Streak count after a qualifying activity today.

    Args:
        count: Stored count (0 if never logged).
        last_date: Last day counted, or None.
        today: User-local date of the activity.

    Returns:
        count + 1 the day after, count on the same day, else 1.
    """
    if last_date is None:
        return 1
    if last_date == today:
        return max(count, 1)
    if last_date + timedelta(days=1) == today:
        return count + 1
    return 1


def streak_bonus(count: int) -> int:
    """+1 bonus damage for every STREAK_DAYS_PER_BONUS days, capped."""
    return min(settings.STREAK_BONUS_CAP, count // settings.STREAK_DAYS_PER_BONUS)


# ============================================
# Tracker
# ============================================

def monster_view(monster: Monster) -> MonsterView:
    return MonsterView(
        name=monster.name,
        image_url=monster.image_url,
        health=monster.health,
        last_recovery_date=monster.last_recovery_date,
        generated=monster.generated,
        status=narrator.describe_health(monster.health),
        health_bar_percent=narrator.health_bar_percent(monster.health),
    )


def _failure(error: TrackerError, **fields) -> TrackerResult:
    return TrackerResult(success=False, reason=error.reason, detail=error.detail, **fields)


class VitalityTracker:
    """
    Applies recovery and damage to a user's monster.

    Each public operation runs as one transaction on the store and returns
    a TrackerResult instead of raising for expected failures.
    """

    def __init__(self, store: MonsterStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    def get_monster(self, user_id: str) -> Optional[MonsterView]:
        """
        Read-only: never recovers, damages or retires.

        Raises:
            StorageError: If the store cannot be read.
        """
        with self.store.transaction():
            monster = self.store.get(user_id)
            return monster_view(monster) if monster else None

    def list_streaks(self, user_id: str) -> List[StreakView]:
        """Streaks for every catalog category, zero where never logged."""
        with self.store.transaction():
            stored = {s.category: s for s in self.store.list_streaks(user_id)}

            streaks = []
            for category in ACTIVITY_CATALOG:
                streak = stored.get(category)
                count = streak.count if streak else 0
                streaks.append(StreakView(
                    category=category,
                    count=count,
                    last_date=streak.date if streak else None,
                    bonus_damage=streak_bonus(count),
                ))
            return streaks

    def list_tomb(self, user_id: str) -> List[TombEntryView]:
        """Newest TOMB_DISPLAY_LIMIT tomb entries."""
        with self.store.transaction():
            entries = self.store.list_tomb(user_id, limit=settings.TOMB_DISPLAY_LIMIT)
            return [TombEntryView.model_validate(e) for e in entries]

    def create_monster(self, user_id: str, name: str, image_url: str, today: date) -> TrackerResult:
        """
        Create a fresh ALIVE monster with random starting health.

        Fails with MONSTER_ALREADY_EXISTS while another one is active.
        """
        try:
            with self.store.transaction():
                if self.store.get(user_id) is not None:
                    raise MonsterAlreadyExistsError(f"User {user_id} already has an active monster")

                health = roll_initial_health(self.rng)
                monster = self.store.create(user_id, name, image_url, health, today)
                view = monster_view(monster)
        except TrackerError as e:
            logger.warning(f"Monster creation failed for user {user_id}: {e.detail}")
            return _failure(e)

        logger.info(f"Created monster {name} for user {user_id} with {health} health")
        return TrackerResult(
            success=True,
            state=VitalityState.ALIVE,
            monster=view,
            message=f"{name} has emerged with {health}% health.",
        )

    def apply_recovery(self, user_id: str, today: date) -> TrackerResult:
        """
        Passive daily regeneration, applied lazily on page load.

        Adds MIN_RECOVERY..MAX_RECOVERY health once per calendar day,
        clamped to MAX_MONSTER_HEALTH. A second call on the same day is a
        no-op.
        """
        retirement = None
        try:
            with self.store.transaction():
                monster = self._require(user_id)
                lingering = self._retire_lingering(user_id, monster)

                if lingering is None:
                    name = monster.name
                    outcome = self._recover(user_id, monster, today)
                    retirement = self._settle(user_id, monster, outcome.health_after, "a sudden relapse")
                    view = None if retirement else monster_view(monster)
        except TrackerError as e:
            logger.warning(f"Recovery failed for user {user_id}: {e.detail}")
            return _failure(e)

        if lingering:
            return self._lingering_result(lingering)
        if retirement:
            return self._retirement_result(retirement, recovery=outcome)

        return TrackerResult(
            success=True,
            state=VitalityState.ALIVE,
            monster=view,
            recovery=outcome,
            message=narrator.recovery_message(name, outcome),
        )

    def complete_activity(
        self,
        user_id: str,
        category: str,
        today: date,
        base_damage: Optional[int] = None,
        points: Optional[int] = None,
    ) -> TrackerResult:
        """
        Handle a completed activity - the main damage entry point.

        1. Checks the completed-today marker (no damage twice a day)
        2. Updates the category streak and its bonus
        3. Applies base + bonus damage and awards points
        4. Retires the monster if health fell to the death threshold

        Args:
            user_id: Firebase UID.
            category: Activity category key from ACTIVITY_CATALOG.
            today: User-local date of the completion.
            base_damage: Graded damage from the feature page; the catalog
                value when None.
            points: Points earned; the catalog value when None.

        Returns:
            TrackerResult with a DamageOutcome, and a RetirementOutcome when
            the monster died.
        """
        retirement = None
        try:
            activity = ACTIVITY_CATALOG.get(category)
            if activity is None:
                raise UnknownActivityError(f"Unknown activity category: {category}")

            with self.store.transaction():
                monster = self._require(user_id)
                lingering = self._retire_lingering(user_id, monster)

                if lingering is None:
                    name = monster.name
                    if self.store.get_completion(user_id, category, today):
                        streak = self.store.get_streak(user_id, category)
                        outcome = DamageOutcome(
                            category=category,
                            already_completed=True,
                            health_before=monster.health,
                            health_after=monster.health,
                            streak_count=streak.count if streak else 0,
                        )
                    else:
                        outcome = self._apply_damage(
                            user_id,
                            monster,
                            category,
                            today,
                            activity.base_damage if base_damage is None else base_damage,
                            activity.points if points is None else points,
                        )
                        retirement = self._settle(user_id, monster, outcome.health_after, activity.label)
                    view = None if retirement else monster_view(monster)
        except TrackerError as e:
            logger.warning(f"Activity {category} failed for user {user_id}: {e.detail}")
            return _failure(e)

        if lingering:
            return self._lingering_result(lingering)
        if retirement:
            return self._retirement_result(retirement, damage=outcome)

        return TrackerResult(
            success=True,
            state=VitalityState.ALIVE,
            monster=view,
            damage=outcome,
            message=narrator.damage_message(name, activity.label, outcome),
        )

    # ----------------------------------------
    # Internals
    # ----------------------------------------

    def _require(self, user_id: str) -> Monster:
        monster = self.store.get(user_id)
        if monster is None:
            raise MonsterNotFoundError(f"No active monster for user {user_id}")
        return monster

    def _retire_lingering(self, user_id: str, monster: Monster) -> Optional[RetirementOutcome]:
        """
        Retire a record already at or below the threshold before mutating it.

        The retirement commits with the surrounding transaction.
        """
        if is_alive(monster.health):
            return None
        entry = self.store.retire(user_id, monster, LINGERING_CAUSE)
        return _retirement_outcome(entry)

    def _recover(self, user_id: str, monster: Monster, today: date) -> RecoveryOutcome:
        before = monster.health

        if not recovery_due(before, monster.last_recovery_date, today):
            return RecoveryOutcome(
                applied=False,
                health_before=before,
                health_after=before,
                last_recovery_date=monster.last_recovery_date,
            )

        amount = roll_recovery(self.rng)
        after = recover_health(before, amount)
        self.store.set(
            user_id,
            {"health": after, "last_recovery_date": today},
            expected_version=monster.version,
        )
        logger.info(f"Monster for user {user_id} recovered {amount} health ({before} -> {after})")

        return RecoveryOutcome(
            applied=True,
            amount=amount,
            health_before=before,
            health_after=after,
            last_recovery_date=today,
        )

    def _apply_damage(
        self, user_id: str, monster: Monster, category: str, today: date, base: int, points: int
    ) -> DamageOutcome:
        streak = self.store.get_streak(user_id, category)
        count = next_streak_count(
            streak.count if streak else 0,
            streak.date if streak else None,
            today,
        )
        self.store.save_streak(user_id, category, count, today)
        bonus = streak_bonus(count)

        total = base + bonus
        before = monster.health
        after = damage_health(before, total)

        self.store.mark_completed(
            user_id,
            category,
            today,
            base_damage=base,
            bonus_damage=bonus,
            points=points,
            health_before=before,
            health_after=after,
        )
        self.store.set(user_id, {"health": after}, expected_version=monster.version)
        self.store.add_points(user_id, points)

        logger.info(
            f"User {user_id} completed {category}: {total} damage "
            f"(base {base}, streak {count}), health {before} -> {after}"
        )

        return DamageOutcome(
            category=category,
            base_damage=base,
            bonus_damage=bonus,
            total_damage=total,
            health_before=before,
            health_after=after,
            streak_count=count,
            points_awarded=points,
        )

    def _settle(self, user_id: str, monster: Monster, health: float, cause: str) -> Optional[RetirementOutcome]:
        """
        Death check, run once as the last step of a health mutation.

        Returns:
            RetirementOutcome if the monster was retired, else None.
        """
        if is_alive(health):
            return None
        logger.info(f"Monster for user {user_id} is {VitalityState.RETIRING.value} at {health} health")
        entry = self.store.retire(user_id, monster, cause)
        return _retirement_outcome(entry)

    def _lingering_result(self, retirement: RetirementOutcome) -> TrackerResult:
        error = MonsterRetiredError(
            f"Monster {retirement.name} was past the death threshold and has been retired"
        )
        logger.warning(error.detail)
        return _failure(
            error,
            state=VitalityState.RETIRED,
            retirement=retirement,
            message=narrator.retirement_message(retirement),
        )

    def _retirement_result(self, retirement: RetirementOutcome, **outcomes) -> TrackerResult:
        return TrackerResult(
            success=True,
            state=VitalityState.RETIRED,
            retirement=retirement,
            message=narrator.retirement_message(retirement),
            **outcomes,
        )


def _retirement_outcome(entry) -> RetirementOutcome:
    return RetirementOutcome(
        name=entry.name,
        cause=entry.cause,
        final_health=entry.final_health,
        died_at=entry.died_at,
    )
