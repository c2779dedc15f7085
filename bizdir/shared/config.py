from pydantic_settings import BaseSettings, SettingsConfigDict
from enum import Enum
from typing import Optional

class AppEnv(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"

class DirectoryBackend(str, Enum):
    HTTP = "http"
    FILESYSTEM = "filesystem"

class Settings(BaseSettings):
    """
    Central Configuration Registry.
    Strictly typed and validated via Pydantic.
    """

    # --- Application Meta ---
    APP_NAME: str = "bizdir-locator"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    DEBUG: bool = False

    # --- Logging & Observability ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    OTEL_SERVICE_NAME: str = "bizdir-locator"
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None

    # --- Directory Backend ---
    DIRECTORY_BACKEND: DirectoryBackend = DirectoryBackend.HTTP

    # HTTP CONFIG (the listings REST API)
    DIRECTORY_API_BASE_URL: str = "http://localhost:5000"
    DIRECTORY_API_TIMEOUT: float = 30.0
    DIRECTORY_API_MAX_RETRIES: int = 3

    # FILESYSTEM CONFIG (local development seed)
    DIRECTORY_SEED_PATH: str = "data/directory_seed.json"

    # --- Search Behaviour ---
    DEFAULT_PAGE_LIMIT: int = 20
    DEFAULT_SORT: str = "popular"
    CLIENT_FALLBACK_ENABLED: bool = True
    GLOBAL_SCOPE_LABEL: str = "All Locations"

    # --- Resilience ---
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RECOVERY_TIMEOUT: int = 30

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
