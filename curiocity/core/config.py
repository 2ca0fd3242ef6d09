"""Runtime settings, read from the environment and an optional .env file."""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Environment(str, Enum):
    """Deployment mode. Production refuses to start on a bad configuration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Production startup was blocked by the listed problems."""


class Settings(BaseSettings):
    """Curiocity settings.

    Every option maps to an environment variable of the same name
    (case-insensitive), e.g. ``DOCUMENT_TABLE`` or ``ENABLE_CLOUDFLARE_DATABASE``.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of browser origins allowed to call the API"
    )

    # Primary key-value store (DynamoDB)
    # "memory" keeps everything in process and is meant for local runs and tests.
    primary_store_backend: str = Field(
        default="dynamodb",
        description="Primary store backend: 'dynamodb' or 'memory'"
    )
    dynamodb_region: str = Field(default="us-west-1")
    dynamodb_endpoint_url: str = Field(
        default="",
        description="Override endpoint, e.g. http://localhost:8000 for DynamoDB Local"
    )
    document_table: str = Field(default="curiocity-documents")
    resource_table: str = Field(default="curiocity-resources")
    resourcemeta_table: str = Field(default="curiocity-resourcemeta")
    user_table_name: str = Field(default="curiocity-users")

    # Secondary SQL mirror
    enable_cloudflare_database: bool = Field(
        default=False,
        description="Mirror every write into the SQL database at MIRROR_DATABASE_URL"
    )
    mirror_database_url: str = Field(
        default="sqlite:///./curiocity-mirror.db",
        description="SQLAlchemy URL of the secondary mirror"
    )

    # Blob storage
    blob_store_backend: str = Field(
        default="s3",
        description="Blob store backend: 's3' or 'memory'"
    )
    s3_upload_bucket: str = Field(default="")
    s3_upload_region: str = Field(default="us-west-1")
    enable_cloudflare_storage: bool = Field(
        default=False,
        description="Also write uploads to the Cloudflare R2 bucket"
    )
    cloudflare_account_id: str = Field(default="")
    r2_bucket_name: str = Field(default="")
    r2_access_key_id: str = Field(default="")
    r2_secret_access_key: str = Field(default="")
    r2_custom_domain: str = Field(
        default="",
        description="Public hostname serving the R2 bucket"
    )
    presign_default_ttl: int = Field(
        default=3600,
        description="Lifetime in seconds of presigned URLs when the caller gives none"
    )

    # Text extraction (LlamaCloud)
    disable_parsing: bool = Field(
        default=False,
        description="Skip text extraction and store a placeholder instead"
    )
    llama_cloud_api_key: str = Field(default="")
    llama_cloud_api_base: str = Field(default="https://api.cloud.llamaindex.ai")
    parsing_timeout_seconds: float = Field(
        default=300.0,
        description="Give up on a parsing job after this many seconds"
    )
    parsing_poll_interval: float = Field(default=2.0)
    # 350 KiB keeps a Resource row under DynamoDB's 400 KB item limit.
    markdown_max_bytes: int = Field(default=350 * 1024)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(
        default="json",
        description="'json' for one object per line, 'text' for local reading"
    )

    def get_cors_origins(self) -> List[str]:
        """Split ``cors_allowed_origins``; a wildcard is rejected outright."""
        origins = [o.strip() for o in self.cors_allowed_origins.split(",")]
        origins = [o for o in origins if o]
        if "*" in origins:
            raise ValueError("CORS_ALLOWED_ORIGINS must list origins explicitly, not '*'")
        return origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator('primary_store_backend')
    @classmethod
    def validate_primary_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('dynamodb', 'memory'):
            raise ValueError("PRIMARY_STORE_BACKEND must be 'dynamodb' or 'memory'")
        return v_lower

    @field_validator('blob_store_backend')
    @classmethod
    def validate_blob_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ('s3', 'memory'):
            raise ValueError("BLOB_STORE_BACKEND must be 's3' or 'memory'")
        return v_lower

    @property
    def r2_configured(self) -> bool:
        return bool(
            self.enable_cloudflare_storage
            and self.cloudflare_account_id
            and self.r2_bucket_name
            and self.r2_access_key_id
            and self.r2_secret_access_key
        )

    def validate_production_config(self) -> List[str]:
        """List what would make this deployment lose data.

        In production, fails startup if the service would run on in-process
        stores or has nowhere to put uploads. In development, returns the
        problems so main.py can log them as warnings.

        Raises:
            ConfigurationError: In production, when anything is listed.
        """
        problems: List[str] = []

        if self.primary_store_backend == "memory":
            problems.append(
                "PRIMARY_STORE_BACKEND=memory loses every document on restart. "
                "Use dynamodb in production."
            )

        if self.blob_store_backend == "memory":
            problems.append("BLOB_STORE_BACKEND=memory loses every upload on restart.")
        elif not self.s3_upload_bucket and not self.r2_configured:
            problems.append(
                "No blob backend configured. Set S3_UPLOAD_BUCKET "
                "or the ENABLE_CLOUDFLARE_STORAGE/R2_* options."
            )

        if self.enable_cloudflare_storage and not self.r2_custom_domain:
            problems.append("ENABLE_CLOUDFLARE_STORAGE is set but R2_CUSTOM_DOMAIN is empty.")

        if problems and self.environment == Environment.PRODUCTION:
            raise ConfigurationError("; ".join(problems))
        return problems


settings = Settings()
