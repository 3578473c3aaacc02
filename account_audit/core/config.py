from typing import Optional
from pydantic import PostgresDsn, model_validator
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Explicitly load .env file and override existing environment variables
# This ensures that values from .env take precedence over system-wide environment variables.
load_dotenv(override=True)

# Connections always go through psycopg2
POSTGRES_SCHEME = "postgresql+psycopg2"

class Settings(BaseSettings):
    """Settings for the account audit tool."""

    # Database settings
    # Default values for local development, override these in .env file
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "postgres"
    POSTGRES_PORT: int = 5432

    # For Supabase, use the connection string from the dashboard directly
    DATABASE_URL: Optional[str] = None

    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    # Statement timeout applied to every PostgreSQL connection
    QUERY_TIMEOUT_SECONDS: int = 30

    # Audit thresholds
    STALE_UNVERIFIED_HOURS: int = 24
    PURGE_UNVERIFIED_AFTER_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def assemble_db_connection(self) -> "Settings":
        # If DATABASE_URL is provided (Supabase), use it directly
        if self.DATABASE_URL:
            self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL
            return self

        # Otherwise, build the connection string from individual components
        if self.SQLALCHEMY_DATABASE_URI:
            return self
        self.SQLALCHEMY_DATABASE_URI = str(PostgresDsn.build(
            scheme=POSTGRES_SCHEME,
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        ))
        return self

    @model_validator(mode="after")
    def check_thresholds(self) -> "Settings":
        if self.QUERY_TIMEOUT_SECONDS <= 0:
            raise ValueError("QUERY_TIMEOUT_SECONDS must be positive")
        if self.STALE_UNVERIFIED_HOURS <= 0 or self.PURGE_UNVERIFIED_AFTER_DAYS <= 0:
            raise ValueError("Audit thresholds must be positive")
        return self

    model_config = {
        "case_sensitive": True,
        "env_file": ".env",
        "extra": "ignore",
    }

# Create settings instance
settings = Settings()
