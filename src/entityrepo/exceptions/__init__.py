from .keys import RepositoryErrorKey
from .base import ConstraintError, RepositoryError
from .integrity_classifier import ConstraintKind, classify_integrity_error
from .mapper import OPTIMISTIC_LOCK_CONSTRAINT, translate_errors, translate_exception

__all__ = [
    "RepositoryErrorKey",
    "RepositoryError",
    "ConstraintError",
    "ConstraintKind",
    "classify_integrity_error",
    "OPTIMISTIC_LOCK_CONSTRAINT",
    "translate_errors",
    "translate_exception",
]
