"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    """

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Input limits (HTTP surface only, the engine itself accepts any string)
    max_content_length: int = 20000

    # Primary provider: OpenAI moderation endpoint
    primary_enabled: bool = True
    primary_api_key: str = ""  # Empty key = stage skipped
    primary_api_base_url: str = "https://api.openai.com/v1"
    primary_model: str = "omni-moderation-latest"
    primary_timeout_seconds: float = 10.0

    # Secondary provider: Perspective comment analyzer
    secondary_enabled: bool = True
    secondary_api_key: str = ""  # Empty key = stage skipped
    secondary_api_base_url: str = "https://commentanalyzer.googleapis.com/v1alpha1"
    secondary_timeout_seconds: float = 10.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()
