from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- DB ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "course_enrollment_db"
    # full SQLAlchemy URL, wins over the DB_* parts when set
    DATABASE_URL: Optional[str] = None

    # --- Redis / lease ---
    REDIS_URL: str = "redis://localhost:6379"
    LOCK_BACKEND: Literal["redis", "memory"] = "redis"
    LOCK_TTL_MS: int = 5000
    LOCK_RETRY_COUNT: int = 10
    LOCK_RETRY_DELAY_MS: int = 100
    LOCK_RETRY_JITTER_MS: int = 100

    # widens the read-check-write window, only for race testing
    CRITICAL_SECTION_DELAY_MS: int = 0

    # --- logging ---
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True
    # level for sqlalchemy.engine / redis, kept quieter than the app loggers
    LIBRARY_LOG_LEVEL: str = "WARNING"

    # --- HTTP ---
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
