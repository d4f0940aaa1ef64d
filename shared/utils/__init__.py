"""
Shared utilities for HotLunchHub

This package contains common utilities used by the functions service and
the lunch client.
"""

from .logger import setup_logging, get_logger, AuditLogger, get_audit_logger
from .validators import (
    is_valid_email, is_valid_phone, validate_lunch_time,
    validate_new_user_form, validate_login_form,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "AuditLogger",
    "get_audit_logger",
    "is_valid_email",
    "is_valid_phone",
    "validate_lunch_time",
    "validate_new_user_form",
    "validate_login_form",
]

__version__ = "1.0.0"
