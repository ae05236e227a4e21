from functools import lru_cache
import os
from pydantic import BaseModel, Field


class Settings(BaseModel):
    env: str = Field(default="dev", alias="ENV")
    timezone: str = Field(default="Asia/Kolkata", alias="TIMEZONE")

    database_url: str = Field(default="", alias="DATABASE_URL")
    postgres_db: str = Field(default="booking", alias="POSTGRES_DB")
    postgres_user: str = Field(default="booking", alias="POSTGRES_USER")
    postgres_password: str = Field(default="booking", alias="POSTGRES_PASSWORD")
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")

    jwt_secret: str = Field(default="secret", alias="JWT_SECRET")
    jwt_expire_min: int = Field(default=43200, alias="JWT_EXPIRE_MIN")

    slot_duration_minutes: int = Field(default=30, alias="SLOT_DURATION_MINUTES", gt=0)
    operating_start_hour: int = Field(default=0, alias="OPERATING_START_HOUR", ge=0, le=23)
    operating_end_hour: int = Field(default=24, alias="OPERATING_END_HOUR", ge=1, le=24)
    check_in_grace_minutes: int = Field(default=15, alias="CHECK_IN_GRACE_MINUTES", ge=0)
    suggestion_limit: int = Field(default=4, alias="SUGGESTION_LIMIT", ge=1)
    suggestion_horizon_hours: int = Field(default=24, alias="SUGGESTION_HORIZON_HOURS", ge=1)
    lock_timeout_seconds: float = Field(default=5.0, alias="LOCK_TIMEOUT_SECONDS", gt=0)

    scheduler_enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")
    completion_sweep_minutes: int = Field(default=5, alias="COMPLETION_SWEEP_MINUTES", ge=1)

    default_admin_email: str = Field(default="admin@example.com", alias="DEFAULT_ADMIN_EMAIL")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")

    class Config:
        populate_by_name = True

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(**os.environ)
