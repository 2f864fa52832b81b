"""
Database ORM Models

SQLAlchemy models for Fiber Friends persistence:
- User: Firebase-authenticated users
- Monster: The user's single active monster and its health
- TombEntry: Append-only archive of retired monsters
- Streak: Consecutive-day counter per activity category
- ActivityCompletion: Daily "completed today" marker per activity category
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Float, Boolean, Date, DateTime,
    ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from fiber_friends.database import Base


class User(Base):
    """
    User account linked to Firebase Auth.

    The id is the Firebase UID, not auto-generated.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True)  # Firebase UID
    email = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    timezone = Column(String, default="UTC")
    points = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    monster = relationship("Monster", back_populates="user", uselist=False, cascade="all, delete-orphan")
    tomb_entries = relationship("TombEntry", back_populates="user", cascade="all, delete-orphan")
    streaks = relationship("Streak", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email}>"


class Monster(Base):
    """
    The user's active monster.

    At most one row per user. The row is deleted when the monster is
    retired to the tomb; a new one is created by the next creation action.
    """
    __tablename__ = "monsters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Set at creation, never changed
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    generated = Column(Boolean, default=True, nullable=False)

    # Vitality
    health = Column(Float, nullable=False)
    last_recovery_date = Column(Date, nullable=True)

    # Bumped on every health write for conditional updates
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="monster")

    def __repr__(self):
        return f"<Monster {self.name} HP:{self.health:.1f}>"


class TombEntry(Base):
    """
    A retired monster. Written once at retirement, never updated.
    """
    __tablename__ = "tomb_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    cause = Column(String, nullable=False)
    final_health = Column(Float, nullable=False)
    died_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="tomb_entries")

    __table_args__ = (
        Index("idx_tomb_user_died", "user_id", "died_at"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<TombEntry {self.name} died {self.died_at}>"


class Streak(Base):
    """
    Consecutive-day counter for one activity category.
    """
    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category = Column(String, nullable=False)
    count = Column(Integer, default=0, nullable=False)
    date = Column(Date, nullable=True)  # Last day counted

    user = relationship("User", back_populates="streaks")

    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_streak_user_category"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<Streak {self.category} x{self.count} @ {self.date}>"


class ActivityCompletion(Base):
    """
    Daily completion log.

    The unique (user, category, date) key is the "completed today" marker
    that keeps an activity from damaging the monster twice in one day.
    """
    __tablename__ = "activity_completions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    base_damage = Column(Float, nullable=False)
    bonus_damage = Column(Integer, default=0, nullable=False)
    points = Column(Integer, default=0, nullable=False)
    health_before = Column(Float, nullable=True)
    health_after = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "category", "date", name="uq_completion_user_category_date"),
        Index("idx_completions_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self):
        return f"<ActivityCompletion {self.category} {self.date}>"
