"""
Core configuration and settings for the Auction Service
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Service information
    service_name: str = Field(default="auction-service")
    service_version: str = Field(default="1.0.0")
    api_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=7001)
    host: str = Field(default="0.0.0.0")

    # Database configuration
    mongodb_host: str = Field(default="localhost")
    mongodb_port: int = Field(default=27017)
    mongodb_username: Optional[str] = Field(default=None)
    mongodb_password: Optional[str] = Field(default=None)
    mongodb_database: str = Field(default="auctions")

    # Store timeouts; a transaction that exceeds these aborts instead of blocking
    mongodb_server_selection_timeout_ms: int = Field(default=5000)
    mongodb_socket_timeout_ms: int = Field(default=10000)
    mongodb_max_time_ms: int = Field(default=5000)

    @property
    def mongodb_url(self) -> str:
        """Construct MongoDB connection URL"""
        if self.mongodb_username and self.mongodb_password:
            return (
                f"mongodb://{self.mongodb_username}:{self.mongodb_password}"
                f"@{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}?authSource=admin"
            )
        return f"mongodb://{self.mongodb_host}:{self.mongodb_port}/{self.mongodb_database}"

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    log_to_file: bool = Field(default=False)
    log_to_console: bool = Field(default=True)
    log_file_path: str = Field(default="logs/auction-service.log")

    # Dapr configuration
    dapr_http_port: int = Field(default=3500)
    dapr_pubsub_name: str = Field(default="auction-pubsub")

    # Topics
    auction_created_topic: str = Field(default="auction-created")
    auction_updated_topic: str = Field(default="auction-updated")
    auction_deleted_topic: str = Field(default="auction-deleted")
    bid_placed_topic: str = Field(default="bid-placed")
    bid_placed_dead_letter_topic: str = Field(default="bid-placed-deadletter")

    # Publication retry budget
    publish_timeout_seconds: float = Field(default=5.0)
    publish_max_attempts: int = Field(default=4)
    publish_backoff_initial_seconds: float = Field(default=0.2)
    publish_backoff_max_seconds: float = Field(default=2.0)

    # Store retry budget for transient failures and version conflicts
    store_max_attempts: int = Field(default=3)
    store_backoff_initial_seconds: float = Field(default=0.1)
    store_backoff_max_seconds: float = Field(default=1.0)
    cas_max_attempts: int = Field(default=10)

    # Outbox relay
    outbox_relay_enabled: bool = Field(default=True)
    outbox_relay_interval_seconds: float = Field(default=30.0)
    outbox_relay_batch_size: int = Field(default=50)

    # JWT Authentication configuration
    jwt_secret: str = Field(default="change-me-auction-service-jwt-secret")
    jwt_algorithm: str = Field(default="HS256")


# Global config instance
config = Config()
