"""
IRB Wizard Configuration

Environment-driven settings and logging setup.

Environment variables:
    IRBWIZ_LOG_LEVEL    Logging level for the ``irbwiz`` logger (default INFO)
    IRBWIZ_LOG_FORMAT   ``text`` or ``json`` (default text)
    IRBWIZ_INSTITUTION  Institution name used in policy messages (default UB)
    IRBWIZ_TODAY        ISO date overriding "today" for temporal checks
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional

from .canon import parse_date
from .exceptions import ConfigurationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_LOG_FORMATS = {"text", "json"}


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    log_level: str = "INFO"
    log_format: str = "text"
    institution: str = "UB"
    today: Optional[date] = None

    def reference_date(self) -> date:
        """The date temporal rules compare against."""
        return self.today or date.today()


def load_settings(environ: Optional[dict[str, str]] = None) -> Settings:
    """
    Read settings from the environment.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Settings

    Raises:
        ConfigurationError: If a variable holds an unsupported value
    """
    env = os.environ if environ is None else environ

    log_level = env.get("IRBWIZ_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(
            message=f"Unsupported log level: {log_level!r}",
            details={"allowed": sorted(_LOG_LEVELS)},
            source="IRBWIZ_LOG_LEVEL",
        )

    log_format = env.get("IRBWIZ_LOG_FORMAT", "text").strip().lower()
    if log_format not in _LOG_FORMATS:
        raise ConfigurationError(
            message=f"Unsupported log format: {log_format!r}",
            details={"allowed": sorted(_LOG_FORMATS)},
            source="IRBWIZ_LOG_FORMAT",
        )

    institution = env.get("IRBWIZ_INSTITUTION", "UB").strip() or "UB"

    today = None
    raw_today = env.get("IRBWIZ_TODAY", "").strip()
    if raw_today:
        today = parse_date(raw_today)
        if today is None:
            raise ConfigurationError(
                message=f"IRBWIZ_TODAY is not an ISO date: {raw_today!r}",
                source="IRBWIZ_TODAY",
            )

    return Settings(
        log_level=log_level,
        log_format=log_format,
        institution=institution,
        today=today,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return load_settings()


# =============================================================================
# Logging Setup
# =============================================================================

_EXTRA_FIELDS = ("review_type", "snapshot_hash", "check_id", "rule_id", "source")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the ``irbwiz`` package logger.

    Installs a single stream handler; calling it again replaces the
    handler instead of stacking a second one.
    """
    settings = settings or get_settings()

    logger = logging.getLogger("irbwiz")
    logger.setLevel(getattr(logging, settings.log_level))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    return logger
