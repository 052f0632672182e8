"""
entityrepo: a generic async entity repository over SQLAlchemy.

    from entityrepo import EntityRepository, Persistent, PersistentTraceable
"""

from entityrepo.core.principal import principal_scope, set_principal, get_principal
from entityrepo.database.session import create_engine_from_settings, create_session_factory, session_scope
from entityrepo.database.transaction import TxType
from entityrepo.exceptions import ConstraintError, RepositoryError, RepositoryErrorKey
from entityrepo.models import Persistent, PersistentTraceable
from entityrepo.repositories import EntityRepository, QueryParam

__all__ = [
    "EntityRepository",
    "QueryParam",
    "Persistent",
    "PersistentTraceable",
    "RepositoryError",
    "ConstraintError",
    "RepositoryErrorKey",
    "TxType",
    "create_engine_from_settings",
    "create_session_factory",
    "session_scope",
    "principal_scope",
    "set_principal",
    "get_principal",
]
