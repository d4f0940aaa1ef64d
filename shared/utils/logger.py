"""
Logging utilities for HotLunchHub

Provides centralized logging configuration and the audit logger used for
admin actions.
"""

import os
import copy
import logging
import logging.config
from typing import Optional, Dict, Any
from pathlib import Path

import yaml

# Default logging configuration
DEFAULT_LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'detailed': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(funcName)s - %(lineno)d - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        },
        'json': {
            'format': '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "module": "%(module)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'default',
            'stream': 'ext://sys.stdout'
        }
    },
    'loggers': {
        'hotlunch': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False
        },
        'lunch_client': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False
        }
    },
    'root': {
        'level': 'INFO',
        'handlers': ['console']
    }
}


def _load_config_file(config_path: str) -> Optional[Dict[str, Any]]:
    """Load a YAML logging configuration, returning None when unusable"""
    try:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logging.getLogger(__name__).warning(f"Failed to load logging config from {config_path}: {e}")
        return None


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None
) -> Dict[str, Any]:
    """
    Setup logging configuration

    Args:
        config_path: Path to a YAML logging configuration file
        log_level: Override log level
        log_format: Override log format ('default', 'detailed', 'json')

    Returns:
        dict: The configuration that was applied
    """
    config = None

    if config_path and Path(config_path).exists():
        config = _load_config_file(config_path)

    if not config:
        config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)

    # Environment-specific overrides live under a top-level key
    environment = os.getenv('ENVIRONMENT', 'development')
    env_config = config.pop(environment, None) if environment in config else None
    if env_config:
        config.setdefault('handlers', {}).update(env_config.get('handlers', {}))
        config.setdefault('loggers', {}).update(env_config.get('loggers', {}))

    if log_level:
        log_level = log_level.upper()
        for logger_config in config.get('loggers', {}).values():
            logger_config['level'] = log_level
        for handler_config in config.get('handlers', {}).values():
            handler_config['level'] = log_level
        if 'root' in config:
            config['root']['level'] = log_level

    if log_format and log_format in config.get('formatters', {}):
        for handler_config in config.get('handlers', {}).values():
            handler_config['formatter'] = log_format

    try:
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        logging.basicConfig(
            level=getattr(logging, log_level or 'INFO', logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        logging.getLogger(__name__).error(f"Failed to configure logging, using basic config: {e}")

    return config


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class AuditLogger:
    """Logger for admin actions on users, companies, meals and orders"""

    def __init__(self, name: str = "hotlunch.audit"):
        self.logger = logging.getLogger(name)

    def log_user_action(
        self,
        user_id: Optional[str],
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log admin action for audit trail"""
        self.logger.info(
            f"User {user_id or 'anonymous'} performed {action} on {resource}"
            + (f" {resource_id}" if resource_id is not None else ""),
            extra={
                'user_id': user_id,
                'action': action,
                'resource': resource,
                'resource_id': resource_id,
                'details': details or {},
                'event_type': 'user_action'
            }
        )


def get_audit_logger() -> AuditLogger:
    """Get audit logger instance"""
    return AuditLogger()

