"""Centralized logging configuration.

When LOG_FORMAT=json, emits structured JSON records with consistent fields that
log aggregators can parse without regex.

When LOG_FORMAT=text (the default), uses a human-readable format for terminals.

Logs always go to stderr: stdout carries the investigation answer in CLI mode
and the protocol stream in MCP stdio mode.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _build_handler(log_format: str) -> logging.Handler:
    """Return a StreamHandler with the appropriate formatter."""
    handler = logging.StreamHandler(sys.stderr)

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler.setFormatter(formatter)
    return handler


def configure_logging(log_level: str = "INFO", log_format: Optional[str] = None) -> None:
    """Configure root logger with structured or text output.

    Call once at startup, before tracing is initialized, so tracing warnings
    reach the configured sink.
    """
    if log_format is None:
        from cluster_investigator.core.config import settings

        log_format = settings.log_format
    log_format = log_format.lower()

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove any existing handlers to avoid duplicate output
    root.handlers.clear()
    root.addHandler(_build_handler(log_format))

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)
