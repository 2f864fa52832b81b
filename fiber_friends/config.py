from pathlib import Path
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings."""

    # API
    API_TITLE: str = "Fiber Friends Vitality Backend"
    API_VERSION: str = "1.0.0"
    DEBUG: bool = False
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:9002",
    ]

    # Storage
    DATABASE_URL: str = "sqlite:///./fiberfriends.db"
    STORE_TIMEOUT_SECONDS: int = 10

    # Firebase credentials file, relative to the project root
    FIREBASE_DEFAULT_CREDENTIALS: Path = Path(__file__).resolve().parent.parent / "firebase-adminsdk.json"

    # Monster vitality
    MONSTER_DEATH_THRESHOLD: float = -50
    MAX_MONSTER_HEALTH: float = 200
    INITIAL_HEALTH_MIN: int = 80
    INITIAL_HEALTH_MAX: int = 100
    MIN_RECOVERY: int = 10
    MAX_RECOVERY: int = 20

    # Streaks: +1 bonus damage per STREAK_DAYS_PER_BONUS days, capped
    STREAK_DAYS_PER_BONUS: int = 3
    STREAK_BONUS_CAP: int = 3

    # Tomb of Monsters
    TOMB_DISPLAY_LIMIT: int = 50

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }

settings = Settings()
