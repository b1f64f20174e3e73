"""Application configuration."""
import sys
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./emoc.db"

    # Environment configuration
    ENVIRONMENT: str = "development"  # "development" or "production"

    # CORS configuration - comma-separated origins
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"

    LOG_LEVEL: str = "INFO"

    # Bind address for the uvicorn runner
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # MOC numbers are rendered as <prefix>-<year>-<id>
    MOC_NUMBER_PREFIX: str = "MOC"

    class Config:
        env_file = ".env"

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def is_in_memory_database(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite") and ":memory:" in self.DATABASE_URL

    def validate_production_settings(self) -> None:
        """Validate settings for production environment.

        Raises SystemExit if the database would lose every request on restart.
        """
        if self.ENVIRONMENT == "production":
            if self.is_in_memory_database():
                print("FATAL: DATABASE_URL points at an in-memory database in production!", file=sys.stderr)
                print("Set DATABASE_URL to a file or server database.", file=sys.stderr)
                sys.exit(1)

            if self.LOG_LEVEL.upper() == "DEBUG":
                print("WARNING: DEBUG logging is enabled in production!", file=sys.stderr)


settings = Settings()
# Validate on startup
settings.validate_production_settings()
