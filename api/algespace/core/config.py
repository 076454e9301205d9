from pydantic_settings import BaseSettings
import os
from pathlib import Path

# Try to load .env file explicitly before creating Settings
try:
    from dotenv import load_dotenv
    import logging
    _logger = logging.getLogger(__name__)

    # Look for .env in api directory (parent of algespace directory)
    api_dir = Path(__file__).parent.parent.parent
    env_path = api_dir / ".env"

    if env_path.exists():
        load_dotenv(env_path, override=False)
        _logger.info(f"Loaded .env file from: {env_path}")
    else:
        # Fallback to current directory
        current_env = Path(".env")
        if current_env.exists():
            load_dotenv(current_env, override=False)
            _logger.info(f"Loaded .env file from: {current_env.absolute()}")
        else:
            _logger.debug(f".env file not found at {env_path} or {current_env.absolute()}")
except Exception as e:
    import logging
    _logger = logging.getLogger(__name__)
    _logger.warning(f"Error loading .env file: {e}")


DEVELOPMENT_ENVIRONMENTS = ("development", "dev", "local", "test")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Databases - exercise definitions and study tracking live in separate files
    database_url: str = "sqlite:///./algespace.db"
    studies_database_url: str = "sqlite:///./studies.db"

    # API
    api_v1_prefix: str = ""
    environment: str = "production"

    # CORS
    cors_origins: list[str] = ["https://algespace.netlify.app"]

    # Security - X-API-Key is only enforced outside development when set
    api_key: str = ""
    bearer_token: str = ""

    # Legacy behaviour: clear the (study, user) rows before creating a new entry
    clear_entries_on_create: bool = False

    # Equalization game capacities
    max_items_scale: int = 14
    max_items_digital_scale: int = 10

    # Tracking client
    tracking_base_url: str = "http://localhost:8000"
    tracking_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    def __init__(self, **kwargs):
        # DATABASE_URL / STUDIES_DATABASE_URL may be provided uppercase by the host
        if not kwargs.get("database_url") and os.getenv("DATABASE_URL"):
            kwargs["database_url"] = os.getenv("DATABASE_URL")
        if not kwargs.get("studies_database_url") and os.getenv("STUDIES_DATABASE_URL"):
            kwargs["studies_database_url"] = os.getenv("STUDIES_DATABASE_URL")
        super().__init__(**kwargs)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in DEVELOPMENT_ENVIRONMENTS


# Create settings instance
settings = Settings()

# Validate required database URLs
if not settings.database_url or not settings.studies_database_url:
    raise ValueError("DATABASE_URL and STUDIES_DATABASE_URL must not be empty")
