"""
Centralized Configuration System
Environment-aware settings for the IronMQ driver, push endpoint and worker.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Driver configuration.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # IRONMQ CONNECTION
    # ============================================
    iron_project_id: Optional[str] = None
    iron_token: Optional[str] = None
    iron_host: str = "mq-aws-us-east-1-1.iron.io"
    iron_protocol: Literal["https", "http"] = "https"
    iron_port: int = 443
    iron_api_version: int = 3
    iron_request_timeout_seconds: float = 10.0

    # ============================================
    # QUEUE BEHAVIOUR
    # ============================================
    iron_queue: str = "default"
    iron_encrypt: bool = False
    iron_timeout: int = 60  # Seconds before a reservation expires

    # ============================================
    # PUSH QUEUES
    # ============================================
    iron_push_token: Optional[str] = None  # Shared secret expected as ?token= on push callbacks
    iron_push_message_id_header: str = "iron-message-id"

    # ============================================
    # ENCRYPTION
    # ============================================
    encryption_key: Optional[str] = None  # urlsafe base64 Fernet key

    # ============================================
    # WORKER
    # ============================================
    worker_enabled: bool = False
    worker_max_concurrent: int = 10
    worker_poll_interval: float = 1.0

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "test", "staging", "production"] = "development"

    @property
    def iron_base_url(self) -> str:
        """Base URL of the IronMQ REST API for the configured project."""
        return f"{self.iron_protocol}://{self.iron_host}:{self.iron_port}/{self.iron_api_version}"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


# Convenience accessor for common use
settings = get_settings()
