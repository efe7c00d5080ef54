"""Application configuration from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Cosmos DB
    cosmos_endpoint: str = Field(
        default="https://localhost:8081/",
        description="Cosmos DB account endpoint",
    )
    cosmos_key: str = Field(default="", description="Cosmos DB account key")
    cosmos_database: str = Field(default="app", description="Cosmos DB database name")
    cosmos_log: bool = Field(
        default=False,
        description="Log queries and written documents at DEBUG",
    )
    cosmos_audit_log: bool = Field(
        default=False,
        description="Log audit records at DEBUG",
    )
    audit_container_name: str = Field(
        default="audits",
        description="Container holding audit records",
    )
    default_page_size: int = Field(default=500, gt=0, description="Default page size")

    # Background queue
    background_queue_workers: int = Field(
        default=4, ge=1, description="Number of background queue workers"
    )
    background_queue_max_size: int = Field(
        default=10000, ge=0, description="Background queue capacity (0 = unbounded)"
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment name",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
