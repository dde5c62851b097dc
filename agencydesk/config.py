import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration, read from the environment or a ``.env`` file.

    ``DATABASE_URL`` and ``SECRET_KEY`` have no defaults and must be set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    DATABASE_URL: str = Field(..., description="SQLAlchemy URL of the tenant database")
    DB_POOL_SIZE: int = Field(10, ge=1, description="Queue pool size (ignored for SQLite)")
    DB_MAX_OVERFLOW: int = Field(20, ge=0)

    SECRET_KEY: str = Field(..., min_length=1, description="Key verifying bearer tokens")
    JWT_ALGORITHM: str = "HS256"

    APP_NAME: str = "AgencyDesk API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = Field("", description="Comma-separated allowed origins")
    CORS_ALLOW_CREDENTIALS: bool = True

    # Locked role created for each newly registered owner
    OWNER_ADMIN_ROLE_NAME: str = "Owner Admin"
    SEED_ROLES_ON_REGISTER: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
