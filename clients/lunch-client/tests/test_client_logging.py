"""
Tests for logging setup and the audit logger
"""

import logging

import pytest

from shared.utils.logger import AuditLogger, setup_logging

from lunch_client.hub import HotLunchClient


@pytest.fixture
def restore_logging():
    names = ["", "hotlunch", "lunch_client", "hotlunch_test"]
    saved = {}
    for name in names:
        logger = logging.getLogger(name)
        saved[name] = (logger.level, list(logger.handlers), logger.propagate, logger.disabled)
    yield
    for name, (level, handlers, propagate, disabled) in saved.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers = handlers
        logger.propagate = propagate
        logger.disabled = disabled


def test_yaml_config_is_applied(tmp_path, restore_logging):
    config_file = tmp_path / "logging.yaml"
    config_file.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "handlers:\n"
        "  null:\n"
        "    class: logging.NullHandler\n"
        "loggers:\n"
        "  hotlunch_test:\n"
        "    level: WARNING\n"
        "    handlers: [null]\n"
    )

    config = setup_logging(str(config_file))

    assert "hotlunch_test" in config["loggers"]
    assert logging.getLogger("hotlunch_test").level == logging.WARNING


def test_level_override(tmp_path, restore_logging):
    config_file = tmp_path / "logging.yaml"
    config_file.write_text(
        "version: 1\n"
        "disable_existing_loggers: false\n"
        "loggers:\n"
        "  hotlunch_test:\n"
        "    level: WARNING\n"
    )

    setup_logging(str(config_file), log_level="debug")

    assert logging.getLogger("hotlunch_test").level == logging.DEBUG


def test_unreadable_config_falls_back_to_defaults(tmp_path, restore_logging):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("version: [unclosed\n")

    config = setup_logging(str(config_file), log_format="json")

    assert set(config["loggers"]) == {"hotlunch", "lunch_client"}
    assert config["handlers"]["console"]["formatter"] == "json"


def test_client_can_configure_logging(fake_supabase, settings, restore_logging):
    settings.log_level = "WARNING"

    HotLunchClient(settings=settings, supabase=fake_supabase, configure_logging=True)

    assert logging.getLogger("lunch_client").level == logging.WARNING


def test_audit_logger_records_action(caplog):
    audit = AuditLogger("hotlunch_test.audit")

    with caplog.at_level(logging.INFO, logger="hotlunch_test.audit"):
        audit.log_user_action("admin-1", "delete_user", "driver", "42", {"auth_id": "abc"})

    record = caplog.records[-1]
    assert record.getMessage() == "User admin-1 performed delete_user on driver 42"
    assert record.action == "delete_user"
    assert record.details == {"auth_id": "abc"}
