"""Unit tests for structured logging helpers."""

import logging

import structlog

from macroboard.core.logging import (
    LoggingContext,
    add_logger_name,
    clear_context,
    configure_logging,
    get_logger,
    rename_message_field,
)


class NamedLogger:
    name = "macroboard.cli"


def test_add_logger_name():
    assert add_logger_name(NamedLogger(), "info", {})["logger"] == "macroboard.cli"
    assert add_logger_name(object(), "info", {})["logger"] == "macroboard"


def test_rename_message_field():
    event_dict = rename_message_field(None, "info", {"event": "Macro activated", "macro_id": "m"})
    assert event_dict == {"message": "Macro activated", "macro_id": "m"}


def test_logging_context_binds_and_unbinds():
    clear_context()

    with LoggingContext(command="templates"):
        assert structlog.contextvars.get_contextvars() == {"command": "templates"}

    assert structlog.contextvars.get_contextvars() == {}


def test_configure_logging_json(settings):
    json_settings = settings.model_copy(update={"log_format": "json"})
    try:
        configure_logging(json_settings)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert rename_message_field in processors
        get_logger("macroboard.test").info("JSON logging configured")
    finally:
        structlog.reset_defaults()


def test_configure_logging_console(settings):
    try:
        configure_logging(settings)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
    finally:
        structlog.reset_defaults()


def test_debug_overrides_log_level(settings):
    quiet = settings.model_copy(update={"log_level": "WARNING"})
    try:
        configure_logging(quiet)
        assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(logging.WARNING)

        configure_logging(quiet.model_copy(update={"debug": True}))
        assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(logging.DEBUG)
    finally:
        structlog.reset_defaults()
