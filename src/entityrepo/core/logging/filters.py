"""
Logging filters.

PrincipalFilter
---------------
Guarantees every `LogRecord` has a `principal` attribute so formatters can
reference `%(principal)s` without KeyError. The value comes from, in order:

    * `extra={"principal": ...}` passed explicitly at the logging call,
    * the current principal context (`entityrepo.core.principal`), which is
      the same value the audit hook stamps on traceable entities,
    * the sentinel "-".

The context is a `contextvars.ContextVar`, so the value follows asyncio tasks
and awaits.

RedactFilter
------------
Replaces values of well-known sensitive `extra` keys with a placeholder.

Both filters always return True: they annotate records, they never drop them.
"""

import logging
from logging import LogRecord

from entityrepo.core.principal import get_principal


class PrincipalFilter(logging.Filter):
    def filter(self, record: LogRecord) -> bool:
        record.principal = (
            getattr(record, "principal", None) or get_principal() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
    PLACEHOLDER = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.PLACEHOLDER
        return True
