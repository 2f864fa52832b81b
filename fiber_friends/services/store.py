"""
Monster Store

Document-store style access to monster, tomb, streak and completion rows.
All writes made through one store share the caller's session and become
durable together when the transaction() block exits.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Optional, List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from fiber_friends.models.db_models import User, Monster, TombEntry, Streak, ActivityCompletion
from fiber_friends.services.errors import StorageError, ConcurrentModificationError

logger = logging.getLogger(__name__)

# Fields a caller may change with set(); name and image are fixed at creation
MUTABLE_MONSTER_FIELDS = frozenset(["health", "last_recovery_date"])


class MonsterStore:
    """
    Persistence for the vitality tracker, bound to one database session.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self):
        """
        Unit of work: commit on success, roll back on any failure.

        Database errors are re-raised as StorageError so callers never see
        a half-applied update.
        """
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storage failure, transaction rolled back: {e}")
            raise StorageError(f"Storage failure: {e.__class__.__name__}") from e
        except Exception:
            self.db.rollback()
            raise

    # ----------------------------------------
    # Monster record
    # ----------------------------------------

    def get(self, user_id: str) -> Optional[Monster]:
        """Get the active monster for a user, or None."""
        return self.db.query(Monster).filter(Monster.user_id == user_id).first()

    def create(self, user_id: str, name: str, image_url: str, health: float, today: date) -> Monster:
        monster = Monster(
            user_id=user_id,
            name=name,
            image_url=image_url,
            health=health,
            last_recovery_date=today,
            generated=True,
            version=1,
        )
        self.db.add(monster)
        self.db.flush()
        return monster

    def set(self, user_id: str, fields: dict, expected_version: Optional[int] = None) -> None:
        """
        Partially update the active monster.

        With expected_version the write only lands if nobody else has
        written since that version was read.

        Raises:
            ValueError: If fields contains an immutable or unknown field.
            ConcurrentModificationError: If the conditional write matched no row.
        """
        unknown = set(fields) - MUTABLE_MONSTER_FIELDS
        if unknown:
            raise ValueError(f"Cannot set monster fields: {sorted(unknown)}")

        stmt = (
            update(Monster)
            .where(Monster.user_id == user_id)
            .values(**fields, version=Monster.version + 1, updated_at=datetime.utcnow())
        )
        if expected_version is not None:
            stmt = stmt.where(Monster.version == expected_version)

        result = self.db.execute(stmt.execution_options(synchronize_session="evaluate"))

        if result.rowcount == 0:
            raise ConcurrentModificationError(
                f"Monster for user {user_id} changed or vanished during the update"
            )

    def add_to_archive(self, user_id: str, monster: Monster, cause: str) -> TombEntry:
        """Append a tomb entry copied from the monster."""
        entry = TombEntry(
            user_id=user_id,
            name=monster.name,
            image_url=monster.image_url,
            cause=cause,
            final_health=monster.health,
            died_at=datetime.utcnow(),
        )
        self.db.add(entry)
        return entry

    def delete(self, user_id: str, monster_id: Optional[int] = None) -> int:
        """Delete the active monster. Returns the number of rows removed."""
        query = self.db.query(Monster).filter(Monster.user_id == user_id)
        if monster_id is not None:
            query = query.filter(Monster.id == monster_id)
        return query.delete(synchronize_session="evaluate")

    def retire(self, user_id: str, monster: Monster, cause: str) -> TombEntry:
        """
        Archive the monster and delete the active record.

        Both writes are flushed together inside the caller's transaction so
        either both land or neither does.

        Raises:
            ConcurrentModificationError: If another session already removed
                the record. The archive entry is rolled back with the transaction.
        """
        entry = self.add_to_archive(user_id, monster, cause)
        if self.delete(user_id, monster.id) == 0:
            raise ConcurrentModificationError(
                f"Monster {monster.name} for user {user_id} was already retired elsewhere"
            )
        self.db.flush()
        logger.info(f"Monster {monster.name} retired for user {user_id}: {cause}")
        return entry

    def list_tomb(self, user_id: str, limit: int) -> List[TombEntry]:
        """Newest-first tomb entries."""
        return (
            self.db.query(TombEntry)
            .filter(TombEntry.user_id == user_id)
            .order_by(TombEntry.died_at.desc(), TombEntry.id.desc())
            .limit(limit)
            .all()
        )

    # ----------------------------------------
    # Streaks and completion markers
    # ----------------------------------------

    def get_streak(self, user_id: str, category: str) -> Optional[Streak]:
        return self.db.query(Streak).filter(
            Streak.user_id == user_id,
            Streak.category == category,
        ).first()

    def list_streaks(self, user_id: str) -> List[Streak]:
        return self.db.query(Streak).filter(Streak.user_id == user_id).order_by(Streak.category).all()

    def save_streak(self, user_id: str, category: str, count: int, day: date) -> Streak:
        streak = self.get_streak(user_id, category)
        if streak is None:
            streak = Streak(user_id=user_id, category=category)
            self.db.add(streak)
        streak.count = count
        streak.date = day
        self.db.flush()
        return streak

    def get_completion(self, user_id: str, category: str, day: date) -> Optional[ActivityCompletion]:
        return self.db.query(ActivityCompletion).filter(
            ActivityCompletion.user_id == user_id,
            ActivityCompletion.category == category,
            ActivityCompletion.date == day,
        ).first()

    def mark_completed(self, user_id: str, category: str, day: date, **details) -> ActivityCompletion:
        """
        Write the completed-today marker.

        Raises:
            ConcurrentModificationError: If another session wrote the marker
                for the same category and day first.
        """
        completion = ActivityCompletion(user_id=user_id, category=category, date=day, **details)
        self.db.add(completion)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise ConcurrentModificationError(
                f"{category} was already completed on {day} for user {user_id}"
            ) from e
        return completion

    # ----------------------------------------
    # Points
    # ----------------------------------------

    def add_points(self, user_id: str, points: int) -> None:
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(points=User.points + points)
            .execution_options(synchronize_session="evaluate")
        )
