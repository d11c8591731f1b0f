from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./journal_metrics.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "http://localhost:5173,https://charts.example.com"
    CORS_ORIGINS: str = "*"

    # Directory holding one YYYY-MM-DD.md file per day.
    NOTES_PATH: str = ""
    # Single aggregate markdown document listing procrastination events.
    PROCRASTINATION_RECORD_PATH: str = ""
    PROCRASTINATION_SOURCE_TAG: str = "Procrastination Record"

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-3-flash-preview"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def database_url(self) -> str:
        # Hosted Postgres often hands out "postgres://", SQLAlchemy wants "postgresql://"
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL


settings = Settings()
