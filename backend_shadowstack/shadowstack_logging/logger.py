"""
Structured logging for the anomaly service.

Every record carries event_type, level, an ISO-8601 UTC timestamp, the
emitting module and service="shadowstack". Pipeline events add wallet_id,
user_id, score and is_anomaly so checks can be followed per wallet.
Credential-like keys are masked before rendering.

Depends only on stdlib logging and structlog (no package imports) so any
module can import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

SERVICE_NAME = "shadowstack"

# Keys whose values never reach the log output
_SECRET_KEYS = frozenset({"authorization", "hf_token", "token", "api_key", "password"})
_MASK = "***"


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def _format_from_env() -> str:
    return os.getenv("LOG_FORMAT", "json").strip().lower()


def _mask_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in event_dict.keys() & _SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = _MASK
    return event_dict


def _event_type_key(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog's positional 'event' becomes event_type; message mirrors it unless given."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_structlog(level: int | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog. Defaults come from LOG_LEVEL and LOG_FORMAT;
    fmt "json" renders one JSON object per line, anything else the console renderer.
    """
    level = _level_from_env() if level is None else level
    fmt = _format_from_env() if fmt is None else fmt
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        _mask_secrets,
        _event_type_key,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger. The first positional argument is the snake_case event name:

        logger = get_logger(__name__)
        logger.info("anomaly_check_scored", wallet_id=addr, score=6.0, is_anomaly=True)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str, name: str = "backend_shadowstack") -> structlog.BoundLogger:
    """Logger for module name with wallet_id bound to all subsequent calls."""
    return get_logger(name).bind(wallet_id=wallet_id)
