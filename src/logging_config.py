"""Logfire and stdlib logging setup for the bot process."""

import logging
from typing import Any

import logfire
from fastapi import FastAPI

from src.config import get_settings

_LOG_FORMATS = {
    "local": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}
# Logfire handles structured formatting outside local runs
_DEFAULT_LOG_FORMAT = "%(message)s"

# httpx logs full request URLs at INFO, and Send API URLs carry the page token
_QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logfire(app: FastAPI) -> None:
    """
    Configure Logfire and Python logging for the running app.

    Instruments FastAPI requests and Pydantic validation, then sets the
    stdlib log level and a format chosen by environment.
    """
    settings = get_settings()

    logfire_config: dict[str, Any] = {
        "environment": settings.env,
        "send_to_logfire": "if-token-present",
    }
    if settings.logfire_token:
        logfire_config["token"] = settings.logfire_token

    logfire.configure(**logfire_config)
    logfire.instrument_fastapi(app)
    logfire.instrument_pydantic()

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=_LOG_FORMATS.get(settings.env, _DEFAULT_LOG_FORMAT),
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def mask_pii(value: str | None, mask_char: str = "*") -> str:
    """
    Mask potentially sensitive data in logs.

    Args:
        value: Value to mask
        mask_char: Character to use for masking

    Returns:
        Masked string
    """
    if not value:
        return ""

    if len(value) <= 4:
        return mask_char * len(value)

    # Show first 2 and last 2 characters, mask the rest
    return f"{value[:2]}{mask_char * (len(value) - 4)}{value[-2:]}"
