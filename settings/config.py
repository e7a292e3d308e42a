from functools import lru_cache
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application configuration loaded from environment variables.
    Uses Pydantic's BaseSettings for robust env parsing and validation.
    """

    # App
    APP_NAME: str = "Presign Gateway"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Providers
    PRIMARY_PROVIDER: str = "aws"  # provider this process is launched to serve; must build
    SUPPORTED_PROVIDERS: str = "aws"  # comma-separated, e.g. "aws,azure"

    # Presigning
    PRESIGN_TIMEOUT_SECONDS: float = 10.0  # deadline for signing every target of one request
    PRESIGN_GET_DEFAULT_TTL_SECONDS: int = 15 * 60
    PRESIGN_GET_MAX_TTL_SECONDS: int = 60 * 60

    # Storage / S3
    AWS_REGION: Optional[str] = None
    AWS_S3_ENDPOINT_URL: Optional[str] = None  # e.g. MinIO; leave unset for AWS
    # Optional explicit credentials (boto3 can also read from environment/instance profile)
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None

    # CORS
    # Comma-separated origins, e.g. "http://localhost:3000,https://myapp.com"
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Security middleware toggles
    ENABLE_RATE_LIMITER: bool = False
    RATE_LIMIT_REQUESTS: int = 100  # requests
    RATE_LIMIT_WINDOW_SECONDS: int = 60  # per this many seconds
    RATE_LIMIT_STORAGE_URI: Optional[str] = None  # e.g., "redis://localhost:6379"

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parses comma-separated origins into a list. Trims spaces, omits empties.
        """
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def supported_providers_list(self) -> List[str]:
        """
        Providers to build signers for, primary first, lower-cased and de-duplicated.
        """
        out = [self.PRIMARY_PROVIDER]
        for p in self.SUPPORTED_PROVIDERS.split(","):
            p = p.strip().lower()
            if p and p not in out:
                out.append(p)
        return out

    @field_validator("DEBUG", mode="before")
    def _normalize_debug(cls, v):
        # Accept "1", "true", "True", etc.
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes", "on")
        return bool(v)

    @field_validator("PRIMARY_PROVIDER", mode="before")
    def _normalize_provider(cls, v):
        return str(v or "").strip().lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance to avoid re-parsing env on each import.
    """
    return Settings()
