"""
Configuration management for the application.
"""

import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Retry policy for provider calls: total attempts and the longest backoff between them
PROVIDER_ATTEMPTS = 2
RETRY_WAIT_MAX = 5.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Inference provider (OpenAI-compatible chat completions)
    groq_api_key: Optional[str] = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.1-70b-versatile"

    # Per-tab analysis call
    analysis_max_tokens: int = 300
    analysis_temperature: float = 0.3

    # Batch clustering call
    cluster_max_tokens: int = 800
    cluster_temperature: float = 0.2

    # Resource limits
    request_timeout: float = 30.0  # per HTTP attempt
    call_timeout: Optional[float] = None  # whole provider call, retries included
    max_concurrency: int = 5

    # Ask the provider for JSON-object output mode where supported
    structured_output: bool = False

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def provider_call_timeout(self) -> float:
        """Deadline for one provider call, long enough for every retry attempt."""
        if self.call_timeout is not None:
            return self.call_timeout
        return self.request_timeout * PROVIDER_ATTEMPTS + RETRY_WAIT_MAX


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
