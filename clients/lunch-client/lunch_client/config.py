"""
Configuration Management
Environment-based configuration for the lunch client
"""

from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.schemas.user import UserRole
from shared.utils.logger import get_logger

logger = get_logger(__name__)


class ClientSettings(BaseSettings):
    """Lunch client configuration (``HOTLUNCH_`` environment variables)"""

    # Supabase (anon key: every request is subject to row-level security)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    functions_url: str = ""

    # Session resolution
    fallback_after_seconds: float = 5.0
    session_deadline_seconds: float = 10.0
    role_details_timeout_seconds: float = 3.0
    guessed_fallback_enabled: bool = True
    fallback_default_role: str = UserRole.ADMIN.value

    # Connectivity check
    connectivity_cache_ttl_seconds: float = 300.0
    connectivity_probe_timeout_seconds: float = 2.0

    # Storage and HTTP
    meal_image_bucket: str = "meal-images"
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "default"
    log_config_path: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HOTLUNCH_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("fallback_default_role")
    @classmethod
    def validate_fallback_role(cls, v):
        if v not in {role.value for role in UserRole}:
            raise ValueError(f"fallback_default_role must be one of: {', '.join(r.value for r in UserRole)}")
        return v

    @model_validator(mode="after")
    def derive_functions_url(self):
        if not self.functions_url and self.supabase_url:
            self.functions_url = f"{self.supabase_url.rstrip('/')}/functions/v1"
        if self.fallback_after_seconds >= self.session_deadline_seconds:
            raise ValueError("fallback_after_seconds must be shorter than session_deadline_seconds")
        return self

    def log_config(self):
        """Log configuration (without sensitive data)"""
        logger.info(
            "Lunch client config: supabase_url=%s functions_url=%s fallback=%ss deadline=%ss",
            self.supabase_url or "<unset>",
            self.functions_url or "<unset>",
            self.fallback_after_seconds,
            self.session_deadline_seconds,
        )


_settings: Optional[ClientSettings] = None


def get_client_settings() -> ClientSettings:
    """Get lunch client configuration instance"""
    global _settings
    if _settings is None:
        _settings = ClientSettings()
    return _settings
