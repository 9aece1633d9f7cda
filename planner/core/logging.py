"""Logfire setup for the planner service.

Modules log through ``logging.getLogger(__name__)`` with a snake_case event
name as the message and structured fields in ``extra``; once
``configure_logfire`` has run, Logfire picks those records up alongside the
spans opened by the task store, the achievement store and the assistant
services.
"""

import logging

import logfire
from fastapi import FastAPI

from planner.core.config import settings


logger = logging.getLogger(__name__)

SERVICE_NAME = "planner"
SERVICE_VERSION = "0.1.0"


def configure_logfire() -> None:
    """Configure Logfire; records stay local unless a token is set."""
    logfire.configure(
        token=settings.logfire_token,
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        send_to_logfire="if-token-present",
    )
    logger.info("logfire_configured", extra={"remote": settings.logfire_token is not None})


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the planner routes."""
    logfire.instrument_fastapi(app)
    logger.info("fastapi_instrumented")


def instrument_pydantic_ai() -> None:
    """Trace collaborator agent runs (prompts, retries, token usage)."""
    logfire.instrument_pydantic_ai()
    logger.info("pydantic_ai_instrumented")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Open a span named ``<component>.<operation>``, e.g. ``task_store.toggle``."""
    return logfire.span(name, **attributes)


def log_with_context(logger: logging.Logger, level: str, event: str, **context: object) -> None:
    """Log ``event`` at ``level`` with ``context`` as structured fields.

    Unknown level names raise ValueError rather than being dropped.
    """
    levels = logging.getLevelNamesMapping()
    try:
        numeric_level = levels[level.upper()]
    except KeyError:
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg) from None
    logger.log(numeric_level, event, extra=context)
