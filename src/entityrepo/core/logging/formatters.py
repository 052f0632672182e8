"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Includes the
    observability fields (service, env, version, principal) and every `extra`
    passed at the logging call, so repository events such as

        logger.info("repo.create.success", extra={"entity": "Customer", "guid": ...})

    become queryable fields.

  - ColorFormatter: compact, ANSI-colored lines for local development.

The builder (dictConfig) selects between them from LOG_FORMAT.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from entityrepo.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# attributes every LogRecord has; anything else on the record came from `extra`
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g., "development" | "production"); optional.
      - service: logical service name to include in logs.
      - datefmt: optional date format passed to logging.Formatter (used by formatTime).

    Never raises on odd extras: non-serializable values are stringified.
    """

    def __init__(self, *, env: str | None = None, service: str = "entityrepo", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "principal": getattr(record, "principal", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for k, v in record.__dict__.items():
            if k in _STANDARD_ATTRS or k in log_record or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                log_record[k] = v
            except (TypeError, ValueError):
                log_record[k] = str(v)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter.

    TIMESTAMP | LEVEL | LOGGER | PRINCIPAL | MESSAGE [key=value ...]

    Structured extras are appended as key=value pairs so repository events stay
    readable in a terminal.
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;41m",
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        extras = " ".join(
            f"{k}={v}"
            for k, v in record.__dict__.items()
            if k not in _STANDARD_ATTRS and k != "principal" and not k.startswith("_")
        )

        base = (
            f"{timestamp} | {color}{record.levelname:<8}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'principal', '-'):<10} | "
            f"{record.getMessage()}"
        )
        if extras:
            base = f"{base} {extras}"

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
