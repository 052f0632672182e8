"""
Classify storage-level constraint violations.

Given a SQLAlchemy `IntegrityError` this module answers two questions:

    1. what kind of constraint failed (unique, not-null, foreign key, check)?
    2. which constraint was it (its name)?

Postgres drivers expose both through diagnostics (`pgcode`, `sqlstate`,
`diag.constraint_name`, `constraint_name`). Other engines only give a message,
so we fall back to message patterns and, for SQLite which reports columns
instead of names, to a lookup of the failing columns in the table's
constraints.
"""

import logging
import re
from enum import Enum

from sqlalchemy import Index, PrimaryKeyConstraint, Table, UniqueConstraint
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    OPTIMISTIC_LOCK = "optimistic_lock"
    UNKNOWN = "unknown"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_KIND_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION: ConstraintKind.UNIQUE,
    PostgresErrorCodes.NOT_NULL_VIOLATION: ConstraintKind.NOT_NULL,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION: ConstraintKind.FOREIGN_KEY,
    PostgresErrorCodes.CHECK_VIOLATION: ConstraintKind.CHECK,
}

_CONSTRAINT_NAME_PATTERNS = (
    # postgres: duplicate key value violates unique constraint "uq_customers_email"
    re.compile(r'constraint "(?P<name>[^"]+)"', re.IGNORECASE),
    # mysql: Duplicate entry 'a@b.c' for key 'customers.uq_customers_email'
    re.compile(r"for key '(?P<name>[^']+)'", re.IGNORECASE),
    # sqlite (CHECK only): CHECK constraint failed: ck_orders_positive_total
    re.compile(r"CHECK constraint failed: (?P<name>\w+)\s*$", re.IGNORECASE),
)

_SQLITE_COLUMNS_PATTERN = re.compile(
    r"(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$", re.IGNORECASE
)


def strip_newlines(message: str | None) -> str | None:
    if message is None:
        return None
    return message.replace("\r", "").replace("\n", "")


def innermost_message(exc: BaseException) -> str | None:
    """
    Message of the deepest exception in the cause chain.

    For `IntegrityError` this is the driver exception (`.orig`) or whatever
    that one wraps in turn (asyncpg errors are wrapped by the adapter).
    """
    current: BaseException = exc
    seen: set[int] = set()
    while id(current) not in seen:
        seen.add(id(current))
        nested = getattr(current, "orig", None) or current.__cause__
        if nested is None:
            break
        current = nested
    message = str(current)
    return strip_newlines(message) if message else None


def _driver_errors(exc: IntegrityError):
    orig = getattr(exc, "orig", None)
    while orig is not None:
        yield orig
        orig = orig.__cause__


def _kind_from_postgres_diag(exc: IntegrityError) -> tuple[ConstraintKind | None, str | None]:
    """
    Walk the driver exceptions: the SQLAlchemy adapter error carries the
    SQLSTATE, the wrapped asyncpg / psycopg error carries the constraint name.
    """
    pgcode = None
    name = None
    for err in _driver_errors(exc):
        pgcode = pgcode or getattr(err, "pgcode", None) or getattr(err, "sqlstate", None)
        diag = getattr(err, "diag", None)
        name = name or (getattr(diag, "constraint_name", None) if diag else None)
        name = name or getattr(err, "constraint_name", None)

    if not pgcode:
        return None, name

    kind = PGCODE_KIND_MAP.get(pgcode)
    logger.debug(
        "integrity.postgres_diagnostic",
        extra={"pgcode": pgcode, "constraint_name": name},
    )
    if kind is None:
        # Unknown pgcode: warn so it surfaces, keep the classification generic
        logger.warning(
            "integrity.unknown_pgcode",
            extra={"pgcode": pgcode, "constraint_name": name},
        )
        kind = ConstraintKind.UNKNOWN
    return kind, name


def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _kind_from_message(msg: str) -> ConstraintKind:
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return ConstraintKind.UNIQUE

    if _match_any(normalized, ["not null constraint", "not null", "null value in column"]):
        return ConstraintKind.NOT_NULL

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return ConstraintKind.FOREIGN_KEY

    if _match_any(normalized, ["check constraint", "check failed"]):
        return ConstraintKind.CHECK

    logger.debug("integrity.unclassified_message", extra={"message_snippet": msg[:200]})
    return ConstraintKind.UNKNOWN


def _name_from_message(msg: str) -> str | None:
    for pattern in _CONSTRAINT_NAME_PATTERNS:
        m = pattern.search(msg)
        if m:
            return m.group("name")
    return None


def _name_from_columns(msg: str, table: Table | None) -> str | None:
    """
    SQLite reports `UNIQUE constraint failed: customers.email`; look the
    column set up among the table's unique constraints and unique indexes.
    """
    if table is None:
        return None
    m = _SQLITE_COLUMNS_PATTERN.search(msg)
    if not m:
        return None
    columns = {c.split(".")[-1].strip() for c in re.split(r",\s*", m.group("cols"))}

    for constraint in table.constraints:
        if isinstance(constraint, (UniqueConstraint, PrimaryKeyConstraint)):
            if {c.name for c in constraint.columns} == columns and constraint.name:
                return str(constraint.name)
    for index in table.indexes:
        if isinstance(index, Index) and index.unique:
            if {c.name for c in index.columns} == columns and index.name:
                return str(index.name)
    return None


def classify_integrity_error(
    exc: IntegrityError, table: Table | None = None
) -> tuple[ConstraintKind, str | None]:
    """
    Heuristically classify an IntegrityError.

    Returns:
        (kind, constraint name) where the name falls back to the innermost
        driver message (newlines stripped) when no name can be extracted.
    """
    kind, name = _kind_from_postgres_diag(exc)
    message = innermost_message(exc) or ""

    if kind is None:
        kind = _kind_from_message(message)
    if not name:
        name = _name_from_message(message) or _name_from_columns(message, table)
    if not name:
        name = message or None
    return kind, strip_newlines(name)
