"""
Configuration Settings.
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_SYSTEM_INSTRUCTION = (
    "You are an experienced software developer and IT architect. "
    "Your responses must be highly professional, accurate, and technical. "
    "Use Markdown formatting heavily to structure complex information "
    "(code blocks, lists, headers)."
)


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Gemini Relay"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # LLM Provider settings
    llm_provider: str = "gemini"  # "gemini" or "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # only used by the openai provider

    # Provider specific keys (still accepted)
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Conversation
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    default_session_id: str = "default-it-user"
    provider_timeout_seconds: float = 120.0

    # Attachments
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MB
    attachment_ttl_seconds: int = 60 * 60  # 0 disables the sweep
    attachment_sweep_interval_seconds: int = Field(5 * 60, gt=0)

    # Front-end
    cors_origins: list[str] = ["*"]
    static_dir: Optional[str] = None  # defaults to the packaged console

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/gemini_relay.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all provider calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def resolved_api_key(self) -> Optional[str]:
        """API key for the active provider, falling back to its legacy variable."""
        if self.llm_api_key:
            return self.llm_api_key
        if self.llm_provider == "openai":
            return self.openai_api_key or None
        return self.gemini_api_key or None


settings = Settings()
