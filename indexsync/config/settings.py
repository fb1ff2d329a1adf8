"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from indexsync.config.constants import (
    DEFAULT_INDEXING_POLL_INTERVAL_MS,
    DEFAULT_INDEXING_TIMEOUT_MS,
    DEFAULT_RECEIPT_POLL_INTERVAL_MS,
    DEFAULT_RECEIPT_TIMEOUT_MS,
    PROJECTION_CHUNK_SIZE,
    PROJECTION_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Chain RPC
    rpc_url: str

    # Indexer status endpoint (GraphQL, exposes _meta { block { number } })
    indexer_url: str | None = None
    indexer_name: str = Field(
        default="registry-stats",
        description="Name of the local projection pointer in indexer_sync_state",
    )

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/indexsync.log"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Read-after-write tunables (milliseconds)
    receipt_timeout_ms: int = Field(
        default=DEFAULT_RECEIPT_TIMEOUT_MS,
        gt=0,
        description="Overall deadline for all receipts of one write",
    )
    receipt_poll_interval_ms: int = Field(
        default=DEFAULT_RECEIPT_POLL_INTERVAL_MS,
        gt=0,
        description="Delay between receipt polls",
    )
    indexing_timeout_ms: int = Field(
        default=DEFAULT_INDEXING_TIMEOUT_MS,
        gt=0,
        description="Deadline for the indexer to reach the receipt block",
    )
    indexing_poll_interval_ms: int = Field(
        default=DEFAULT_INDEXING_POLL_INTERVAL_MS,
        gt=0,
        description="Delay between indexer status polls",
    )

    # Projection worker
    projection_chunk_size: int = Field(
        default=PROJECTION_CHUNK_SIZE,
        ge=1,
        description="Blocks fetched per projection run",
    )
    projection_start_block: int = Field(
        default=0,
        ge=0,
        description="First block to project when the pointer is empty",
    )
    projection_interval_seconds: int = Field(
        default=PROJECTION_INTERVAL_SECONDS,
        ge=1,
        description="Period between scheduled projection runs",
    )
    registry_addresses: str = ""  # Comma-separated list

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_poll_windows(self) -> 'Settings':
        """Each poll interval must fit inside its timeout."""
        if self.receipt_poll_interval_ms > self.receipt_timeout_ms:
            raise ValueError(
                'RECEIPT_POLL_INTERVAL_MS must not exceed RECEIPT_TIMEOUT_MS'
            )
        if self.indexing_poll_interval_ms > self.indexing_timeout_ms:
            raise ValueError(
                'INDEXING_POLL_INTERVAL_MS must not exceed INDEXING_TIMEOUT_MS'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if not self.indexer_url:
                logger.warning(
                    'INDEXER_URL is not set. Write visibility will be checked '
                    'against the local projection pointer only.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql://', 'postgresql+asyncpg://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql:// or postgresql+asyncpg://'
            )
        return v

    @field_validator('rpc_url', 'indexer_url')
    @classmethod
    def validate_http_url(cls, v: str | None) -> str | None:
        """Validate RPC/indexer endpoint scheme."""
        if v is None:
            return v
        if not v.startswith(('http://', 'https://', 'ws://', 'wss://')):
            raise ValueError(f'Invalid endpoint URL: {v}')
        return v

    @property
    def receipt_timeout(self) -> float:
        """Receipt deadline in seconds."""
        return self.receipt_timeout_ms / 1000

    @property
    def receipt_poll_interval(self) -> float:
        """Receipt poll interval in seconds."""
        return self.receipt_poll_interval_ms / 1000

    @property
    def indexing_timeout(self) -> float:
        """Indexing deadline in seconds."""
        return self.indexing_timeout_ms / 1000

    @property
    def indexing_poll_interval(self) -> float:
        """Indexing poll interval in seconds."""
        return self.indexing_poll_interval_ms / 1000

    def get_registry_addresses(self) -> list[str]:
        """Parse registry addresses from comma-separated string."""
        if not self.registry_addresses:
            return []

        result = []
        for address in self.registry_addresses.split(","):
            address_stripped = address.strip()
            if not address_stripped:
                continue
            if not address_stripped.startswith("0x") or len(address_stripped) != 42:
                logger.warning(f"Invalid registry address: {address_stripped}")
                continue
            result.append(address_stripped.lower())
        return result


# Global settings instance
settings = Settings()
