"""
Configuration Management
Environment-based configuration for the privileged user-lifecycle functions
"""

from typing import Optional, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.get_logger(__name__)


class FunctionsSettings(BaseSettings):
    """Functions service configuration"""

    # Service info
    service_name: str = "functions-service"
    service_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "json"

    # Supabase (service role: bypasses row-level security)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # CORS
    cors_origins: List[str] = ["*"]

    # Orchestration behaviour
    compensate_partial_failures: bool = False
    reject_unknown_roles: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(
            "functions_config",
            supabase_url=self.supabase_url or "<unset>",
            service_role_key="set" if self.supabase_service_role_key else "unset",
            compensate_partial_failures=self.compensate_partial_failures,
            reject_unknown_roles=self.reject_unknown_roles,
        )


_settings: Optional[FunctionsSettings] = None


def get_settings() -> FunctionsSettings:
    """Get functions service configuration instance"""
    global _settings
    if _settings is None:
        _settings = FunctionsSettings()
    return _settings
