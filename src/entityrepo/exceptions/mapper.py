r"""
Translate low-level persistence failures into the repository's typed errors.

Every repository operation runs inside `translate_errors(...)`. Whatever is
raised inside goes through one three-way branch:

| Raised                                   | Becomes                                              |
| ---------------------------------------- | ---------------------------------------------------- |
| `RepositoryError` (or subclass)          | re-raised unchanged                                  |
| `IntegrityError` / `StaleDataError`      | `ConstraintError(key, entity_name, constraint=...)`  |
| anything else                            | `RepositoryError(key, entity_name, ...)`             |

The constraint name is taken from driver diagnostics when available, from the
driver message otherwise, and as a last resort the innermost driver message
itself (newlines stripped) is used. Downstream code matches on that name, so
it is passed through verbatim.

Rollback is not done here: the transaction scope that owns the transaction
rolls back when the translated error propagates through it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Table
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from .base import ConstraintError, RepositoryError
from .integrity_classifier import ConstraintKind, classify_integrity_error, innermost_message
from .keys import RepositoryErrorKey

logger = logging.getLogger(__name__)

OPTIMISTIC_LOCK_CONSTRAINT = "OPTIMISTIC_LOCK_CONSTRAINT"


def translate_exception(
    exc: BaseException,
    key: RepositoryErrorKey,
    entity_name: str,
    *parameters: Any,
    table: Table | None = None,
    stack_trace_log: bool = False,
) -> RepositoryError:
    """
    Return the typed error for `exc`. The caller raises it `from exc`.

    Args:
        exc: the caught exception.
        key: error key of the failing operation.
        entity_name: display name of the entity; always the first parameter.
        *parameters: further positional parameters (guids, paging values, ...).
        table: mapped table of the entity; lets SQLite column-only messages be
            resolved to a constraint name.
        stack_trace_log: default for the error's `stack_trace_log` flag.
    """
    if isinstance(exc, RepositoryError):
        return exc

    if isinstance(exc, IntegrityError):
        kind, constraint = classify_integrity_error(exc, table)
        return ConstraintError(
            key,
            entity_name,
            *parameters,
            constraint=constraint,
            cause=exc,
            named_parameters={"kind": kind.value},
            stack_trace_log=stack_trace_log,
        )

    if isinstance(exc, StaleDataError):
        return ConstraintError(
            key,
            entity_name,
            *parameters,
            constraint=OPTIMISTIC_LOCK_CONSTRAINT,
            cause=exc,
            named_parameters={"kind": ConstraintKind.OPTIMISTIC_LOCK.value, "detail": innermost_message(exc)},
            stack_trace_log=stack_trace_log,
        )

    return RepositoryError(
        key,
        entity_name,
        *parameters,
        cause=exc,
        stack_trace_log=stack_trace_log,
    )


def _log_translated(error: RepositoryError, exc: BaseException) -> None:
    extra = {
        "error_key": error.key.value,
        "parameters": error.parameters,
        "cause": type(exc).__name__,
    }
    if isinstance(error, ConstraintError):
        extra["constraint"] = error.constraint

    if error.stack_trace_log:
        # ERROR with traceback; opted in per error or via settings
        logger.error("repo.error", extra=extra, exc_info=exc)
    elif isinstance(error, ConstraintError):
        # constraint violations are expected client-level scenarios
        logger.info("repo.constraint_violation", extra=extra)
    else:
        logger.warning("repo.error", extra=extra)


@contextmanager
def translate_errors(
    key: RepositoryErrorKey,
    entity_name: str,
    *parameters: Any,
    table: Table | None = None,
    stack_trace_log: bool = False,
) -> Iterator[None]:
    """
    Usage:
        with translate_errors(RepositoryErrorKey.PERSIST_ENTITY_FAILED, "Customer"):
            ... ORM calls ...
    """
    try:
        yield
    except RepositoryError:
        raise
    except Exception as exc:
        error = translate_exception(
            exc, key, entity_name, *parameters, table=table, stack_trace_log=stack_trace_log
        )
        _log_translated(error, exc)
        raise error from exc
