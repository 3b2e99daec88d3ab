from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://flextime:flextime_secret@db:5432/flextime"
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # IANA zone used for clock-in/out local times when the punch carries none
    DEFAULT_TIMEZONE: str | None = None

    UNKNOWN_LABEL: str = "Unknown"
    UNSPECIFIED_ACTIVITY_LABEL: str = "Unspecified"

    SESSION_INSERT_BATCH_SIZE: int = 500

    # Client directory import: group label -> client group fuzzy match
    FUZZY_MATCH_THRESHOLD: int = 90


settings = Settings()
