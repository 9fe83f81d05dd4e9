from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str = "coach"
    POSTGRES_PASSWORD: str = "coach"
    POSTGRES_DB: str = "coach_messaging"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    DB_ECHO: bool = False

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_EVENTS_CHANNEL: str = "coach.messaging.events"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: list[str] = ["*"]

    OUTBOX_POLL_INTERVAL: float = 1.0
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_ATTEMPTS: int = 5

    # Broadcast sweep; one logical scheduler per deployment.
    BROADCAST_SCHEDULER_ENABLED: bool = True
    BROADCAST_POLL_INTERVAL: float = 30.0
    BROADCAST_BATCH_SIZE: int = 20
    # A broadcast in sending longer than this is assumed abandoned and failed.
    BROADCAST_SENDING_LEASE: float = 900.0
    BROADCAST_SHUTDOWN_TIMEOUT: float = 30.0

    THREAD_PAGE_MAX: int = 500

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
